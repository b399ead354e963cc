from __future__ import annotations

import logging
import math

import numpy as np

from moonwidget.config import CROP_MARGIN, FALLBACK_BOUNDS_RATIO
from moonwidget.models.image_model import CropRegion, DiskBounds, RasterImage

logger = logging.getLogger(__name__)

# Alpha above this marks an opaque disk pixel
ALPHA_THRESHOLD = 1
# Mean RGB below this marks a disk pixel on an opaque light background
BRIGHTNESS_THRESHOLD = 240

LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float64)
RING_COLOR = (0, 0, 0, 128)
RING_INNER_OFFSET = 1.0
RING_OUTER_OFFSET = 2.0


class ProcessService:
    def __init__(self, margin: int = CROP_MARGIN, fallback_ratio: float = FALLBACK_BOUNDS_RATIO) -> None:
        self.margin = margin
        self.fallback_ratio = fallback_ratio

    # ---------- Вспомогательные функции ----------
    def _disk_mask(self, raster: RasterImage) -> np.ndarray:
        """
        Булева маска пикселей диска:
        - с альфой: alpha > 1
        - без альфы: среднее (R, G, B) < 240
        """
        arr = raster.as_array()
        if raster.has_alpha:
            return arr[..., 3] > ALPHA_THRESHOLD
        # integer sum avoids float rounding at the threshold
        rgb_sum = arr[..., :3].astype(np.uint16).sum(axis=2)
        return rgb_sum < BRIGHTNESS_THRESHOLD * 3

    def _luminance(self, rgb: np.ndarray) -> np.ndarray:
        """Яркость 0.299R + 0.587G + 0.114B, округлённая до uint8."""
        lum = rgb.astype(np.float64) @ LUMA_WEIGHTS
        return np.clip(np.rint(lum), 0, 255).astype(np.uint8)

    def _with_alpha(self, raster: RasterImage) -> np.ndarray:
        arr = raster.as_array()
        if raster.has_alpha:
            return arr
        alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
        return np.concatenate([arr, alpha], axis=2)

    # ---------- 1) Поиск диска ----------
    def fallback_bounds(self, width: int, height: int) -> DiskBounds:
        """
        Запасной прямоугольник: квадрат со стороной fallback_ratio * min(w, h) по центру.
        """
        size = max(1, int(min(width, height) * self.fallback_ratio))
        return DiskBounds(
            x=(width - size) // 2,
            y=(height - size) // 2,
            width=size,
            height=size,
            detected=False,
        )

    def locate_disk(self, raster: RasterImage) -> DiskBounds:
        """
        Ограничивающий прямоугольник диска за один проход по пикселям.
        Если диск не найден (min >= max по любой оси), возвращает запасной прямоугольник.
        Без фильтрации шума: одиночные выбросы расширяют рамку.
        """
        mask = self._disk_mask(raster)
        cols = np.flatnonzero(mask.any(axis=0))
        rows = np.flatnonzero(mask.any(axis=1))

        if cols.size == 0 or rows.size == 0:
            logger.debug("No disk pixels in %dx%d image, using fallback bounds", raster.width, raster.height)
            return self.fallback_bounds(raster.width, raster.height)

        min_x, max_x = int(cols[0]), int(cols[-1])
        min_y, max_y = int(rows[0]), int(rows[-1])
        if min_x >= max_x or min_y >= max_y:
            logger.debug("Degenerate disk bounds x=%d..%d y=%d..%d, using fallback", min_x, max_x, min_y, max_y)
            return self.fallback_bounds(raster.width, raster.height)

        return DiskBounds(x=min_x, y=min_y, width=max_x - min_x + 1, height=max_y - min_y + 1)

    # ---------- 2) Адаптивное кадрирование ----------
    def compute_crop(self, width: int, height: int, bounds: DiskBounds) -> CropRegion:
        """
        Квадрат со стороной диаметр + 2 * margin вокруг центра рамки.
        Окно сдвигается (не сжимается), чтобы остаться в пределах изображения;
        сторона уменьшается только если само изображение меньше.
        """
        size = min(bounds.diameter + 2 * self.margin, width, height)
        cx, cy = bounds.center
        x = math.floor(cx - size / 2 + 0.5)
        y = math.floor(cy - size / 2 + 0.5)
        x = max(0, min(x, width - size))
        y = max(0, min(y, height - size))
        return CropRegion(x=x, y=y, size=size)

    def crop(self, raster: RasterImage, region: CropRegion) -> RasterImage:
        arr = raster.as_array()
        x0, y0, x1, y1 = region.box
        return RasterImage.from_array(arr[y0:y1, x0:x1])

    def crop_to_disk(self, raster: RasterImage) -> tuple[RasterImage, DiskBounds]:
        """Находит диск и вырезает вокруг него квадрат. Возвращает кадр и рамку диска."""
        bounds = self.locate_disk(raster)
        region = self.compute_crop(raster.width, raster.height, bounds)
        logger.debug("Disk bounds %s -> crop %s", bounds, region)
        return self.crop(raster, region), bounds

    # ---------- 3) Оттенки серого и кольцо ----------
    def to_grayscale(self, raster: RasterImage) -> RasterImage:
        """
        Замена R, G, B на яркость; альфа не меняется.
        """
        arr = raster.as_array()
        arr[..., :3] = self._luminance(arr[..., :3])[..., None]
        return RasterImage.from_array(arr)

    def ring_mask(self, width: int, height: int, radius: float) -> np.ndarray:
        """
        Пиксели, расстояние которых от центра изображения лежит в [radius - 1, radius + 2].
        """
        ys, xs = np.ogrid[:height, :width]
        dist = np.hypot(xs - (width - 1) / 2.0, ys - (height - 1) / 2.0)
        return (dist >= radius - RING_INNER_OFFSET) & (dist <= radius + RING_OUTER_OFFSET)

    def render_disk(self, raster: RasterImage, radius: float) -> RasterImage:
        """
        Итоговый артефакт: оттенки серого + полупрозрачное чёрное кольцо по радиусу диска.
        Результат всегда RGBA того же размера; пиксели кольца перекрывают яркость.
        """
        arr = self._with_alpha(raster)
        arr[..., :3] = self._luminance(arr[..., :3])[..., None]
        arr[self.ring_mask(raster.width, raster.height, radius)] = RING_COLOR
        return RasterImage.from_array(arr)

    def radius_from_crop(self, raster: RasterImage) -> float:
        """Радиус диска по уже вырезанному кадру (сторона минус поля, пополам)."""
        return max(1.0, (min(raster.width, raster.height) - 2 * self.margin) / 2.0)

    # ---------- 4) Инверсия для светлой темы ----------
    def invert(self, raster: RasterImage) -> RasterImage:
        arr = raster.as_array()
        arr[..., :3] = 255 - arr[..., :3]
        return RasterImage.from_array(arr)
