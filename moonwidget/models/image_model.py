"""Модели данных для изображений луны и результатов конвейера.

Принципы:
- SRP: только структуры данных и их инварианты, без логики обработки.
- Чистый код: неизменяемость (`frozen=True`) для предсказуемости.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

import numpy as np
from PIL import Image

# Row length in the buffer is padded to a multiple of this many bytes
ROW_ALIGNMENT = 4


def _aligned_rowstride(width: int, n_channels: int) -> int:
    row = width * n_channels
    return (row + ROW_ALIGNMENT - 1) // ROW_ALIGNMENT * ROW_ALIGNMENT


@dataclass(frozen=True)
class RasterImage:
    """Растровое изображение с построчно упакованным буфером пикселей.

    Fields:
        width: Ширина, px.
        height: Высота, px.
        rowstride: Длина строки буфера в байтах (>= width * n_channels).
        n_channels: Число каналов, 3 (RGB) или 4 (RGBA).
        has_alpha: Есть ли альфа-канал.
        bits_per_sample: Бит на канал, всегда 8.
        colorspace: Цветовое пространство, "rgb".
        pixels: Буфер длиной rowstride * height.

    Пиксель (x, y) начинается по смещению ``rowstride * y + n_channels * x``.
    """
    width: int
    height: int
    rowstride: int
    n_channels: int
    has_alpha: bool
    bits_per_sample: int
    colorspace: str
    pixels: bytes

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Недопустимый размер изображения: {self.width}x{self.height}")
        if self.n_channels not in (3, 4):
            raise ValueError(f"Поддерживаются только 3 или 4 канала, получено {self.n_channels}")
        if self.has_alpha != (self.n_channels == 4):
            raise ValueError("has_alpha не согласован с числом каналов")
        if self.rowstride < self.width * self.n_channels:
            raise ValueError(f"rowstride {self.rowstride} меньше ширины строки")
        if len(self.pixels) != self.rowstride * self.height:
            raise ValueError(
                f"Длина буфера {len(self.pixels)} != rowstride*height ({self.rowstride * self.height})"
            )

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    def offset(self, x: int, y: int) -> int:
        """Смещение первого байта пикселя (x, y) в буфере."""
        return self.rowstride * y + self.n_channels * x

    def pixel(self, x: int, y: int) -> tuple[int, ...]:
        start = self.offset(x, y)
        return tuple(self.pixels[start:start + self.n_channels])

    def as_array(self) -> np.ndarray:
        """Возвращает копию пикселей как uint8-массив формы (height, width, n_channels)."""
        rows = np.frombuffer(self.pixels, dtype=np.uint8).reshape(self.height, self.rowstride)
        used = rows[:, : self.width * self.n_channels]
        return used.reshape(self.height, self.width, self.n_channels).copy()

    @classmethod
    def from_array(cls, arr: np.ndarray) -> "RasterImage":
        """Упаковывает массив (h, w, 3|4) в буфер с выровненными строками."""
        if arr.ndim != 3 or arr.shape[2] not in (3, 4):
            raise ValueError(f"Ожидался массив (h, w, 3|4), получено {arr.shape}")
        height, width, n_channels = arr.shape
        rowstride = _aligned_rowstride(width, n_channels)
        buf = np.zeros((height, rowstride), dtype=np.uint8)
        buf[:, : width * n_channels] = np.asarray(arr, dtype=np.uint8).reshape(height, width * n_channels)
        return cls(
            width=width,
            height=height,
            rowstride=rowstride,
            n_channels=n_channels,
            has_alpha=n_channels == 4,
            bits_per_sample=8,
            colorspace="rgb",
            pixels=buf.tobytes(),
        )

    @classmethod
    def from_pil(cls, image: Image.Image) -> "RasterImage":
        # palette/LA images with transparency keep it as a real alpha channel
        if image.mode in ("RGBA", "LA", "PA") or "transparency" in image.info:
            converted = image.convert("RGBA")
        else:
            converted = image.convert("RGB")
        return cls.from_array(np.asarray(converted, dtype=np.uint8))

    def to_pil(self) -> Image.Image:
        return Image.fromarray(self.as_array())


@dataclass(frozen=True)
class DiskBounds:
    """Прямоугольник, ограничивающий диск луны.

    Fields:
        x, y: Левый верхний угол, px.
        width, height: Размеры, px (> 0).
        detected: True, если прямоугольник найден по пикселям, False для запасного.
    """
    x: int
    y: int
    width: int
    height: int
    detected: bool = True

    @property
    def diameter(self) -> int:
        return max(self.width, self.height)

    @property
    def center(self) -> tuple[float, float]:
        return self.x + self.width / 2, self.y + self.height / 2

    def fits(self, image_width: int, image_height: int) -> bool:
        return (
            self.width > 0
            and self.height > 0
            and self.x >= 0
            and self.y >= 0
            and self.x + self.width <= image_width
            and self.y + self.height <= image_height
        )


@dataclass(frozen=True)
class CropRegion:
    """Квадратное окно кадрирования внутри исходного изображения."""
    x: int
    y: int
    size: int

    @property
    def box(self) -> tuple[int, int, int, int]:
        return self.x, self.y, self.x + self.size, self.y + self.size


class PipelineState(str, Enum):
    NO_ARTIFACT = "no_artifact"
    HAS_RAW = "has_raw"
    HAS_CROPPED = "has_cropped"
    HAS_RENDERED = "has_rendered"
    FAILED = "failed"


@dataclass(frozen=True)
class PipelineResult:
    """Результат конвейера: либо путь к готовому PNG, либо id запасной иконки.

    Fields:
        rendered_path: Путь к итоговому изображению (или None).
        fallback_icon: Идентификатор векторной иконки (или None).
        state: Конечное состояние (HAS_RENDERED или FAILED).
    """
    rendered_path: Optional[Path] = None
    fallback_icon: Optional[str] = None
    state: PipelineState = PipelineState.HAS_RENDERED

    def __post_init__(self) -> None:
        if (self.rendered_path is None) == (self.fallback_icon is None):
            raise ValueError("PipelineResult требует ровно одно из: rendered_path, fallback_icon")

    @classmethod
    def rendered(cls, path: Path) -> "PipelineResult":
        return cls(rendered_path=path, state=PipelineState.HAS_RENDERED)

    @classmethod
    def fallback(cls, icon_id: str) -> "PipelineResult":
        return cls(fallback_icon=icon_id, state=PipelineState.FAILED)

    @property
    def is_fallback(self) -> bool:
        return self.fallback_icon is not None
