"""Символьные иконки фаз (диск + терминатор) для запасного режима.

Иконка рисуется по идентификатору из `FallbackSelector`, поэтому виджету не нужен
растеризатор SVG.
"""
from __future__ import annotations

import math
from typing import Tuple

import numpy as np
from PIL import Image

from moonwidget.services.fallback_service import PHASE_ICONS

STROKE_WIDTH = 2.0
INNER_GAP_INSET = 3.0

# icon id -> frame: 0 new, 1..3 waxing, 4 full, 5..7 waning
ICON_FRAMES = {icon_id: frame for frame, icon_id in enumerate(PHASE_ICONS.values())}
# GENERIC_ICON and unknown ids are drawn as the full-moon outline
FULL_FRAME = 4


def _frame_alpha(frame: int, size: int) -> np.ndarray:
    if frame > 4:
        # waning frames mirror the matching waxing frame
        return _frame_alpha(8 - frame, size)[:, ::-1]

    radius = size * 26 / 64
    ys, xs = np.mgrid[:size, :size].astype(np.float64)
    dx = xs - size / 2 + 0.5
    dy = ys - size / 2 + 0.5
    dist = np.hypot(dx, dy)
    disc_alpha = np.clip(radius + 1 - dist, 0.0, 1.0)

    if frame == 0:
        gap_outer = radius - INNER_GAP_INSET
        gap_inner = gap_outer - STROKE_WIDTH
        # filled disc with a thin transparent ring just inside the edge
        fill = np.ones_like(dist)
        fill = np.where(dist < gap_inner + 0.5, np.clip(gap_inner + 0.5 - dist, 0.0, 1.0), fill)
        in_gap = (dist >= gap_inner + 0.5) & (dist < gap_outer + 0.5)
        fill = np.where(in_gap, np.clip(dist - (gap_outer - 0.5), 0.0, 1.0), fill)
    else:
        half_chord = np.sqrt(np.clip(radius * radius - dy * dy, 0.0, None))
        terminator_x = math.cos(frame * math.pi / 4) * half_chord
        dark_alpha = np.clip((terminator_x - dx + 1) / 2, 0.0, 1.0)
        outline_alpha = np.clip((dist - (radius - STROKE_WIDTH)) / STROKE_WIDTH, 0.0, 1.0)
        fill = np.maximum(dark_alpha, outline_alpha)

    return disc_alpha * fill


def draw_phase_glyph(icon_id: str, size: int, color: Tuple[int, int, int] = (255, 255, 255)) -> Image.Image:
    """RGBA-иконка фазы размером `size`; неизвестный id рисуется как полный диск-контур."""
    frame = ICON_FRAMES.get(icon_id, FULL_FRAME)
    alpha = np.clip(np.rint(_frame_alpha(frame, size) * 255), 0, 255).astype(np.uint8)

    out = np.zeros((size, size, 4), dtype=np.uint8)
    out[..., :3] = color
    out[..., 3] = alpha
    return Image.fromarray(out)
