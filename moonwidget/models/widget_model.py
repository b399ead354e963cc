from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

PLACEHOLDER = "—"


@dataclass(frozen=True)
class WidgetState:
    """Всё, что нужно виджету для отрисовки: подписи и либо снимок, либо иконка."""
    phase_name: str = PLACEHOLDER
    illumination: str = PLACEHOLDER
    age: str = PLACEHOLDER
    next_phase_name: str = PLACEHOLDER
    next_phase_time: str = PLACEHOLDER
    english_phase_name: str = "Full Moon"
    image_path: Optional[Path] = None
    fallback_icon: Optional[str] = None
