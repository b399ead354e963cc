"""Чтение и запись растров кэша с диска.

Принципы:
- SRP: класс отвечает только за перевод файлов PNG в `RasterImage` и обратно.
- LSP/ISP: возвращает `RasterImage` с предсказуемыми полями; интерфейс узкий и конкретный.
"""
from __future__ import annotations

import logging
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from moonwidget.models.image_model import RasterImage
from moonwidget.services.errors import ImageDecodeError, ImageEncodeError

logger = logging.getLogger(__name__)


class ImageService:
    def load_image(self, file_path: str | Path) -> RasterImage:
        """Загружает изображение с диска как `RasterImage` (RGB или RGBA).

        Raises:
            FileNotFoundError: если путь не существует или не указывает на файл.
            ImageDecodeError: если файл не распознан как изображение или повреждён.
        """
        path = Path(file_path)
        if not path.is_file():
            raise FileNotFoundError(f"Файл не найден: {path}")

        try:
            with Image.open(path) as pil_image:
                pil_image.load()
                raster = RasterImage.from_pil(pil_image)
        except UnidentifiedImageError as exc:
            raise ImageDecodeError(f"Файл не является изображением: {path}") from exc
        except (OSError, ValueError) as exc:
            raise ImageDecodeError(f"Не удалось декодировать {path}: {exc}") from exc

        logger.debug("Loaded %s (%dx%d, %d channels)", path, raster.width, raster.height, raster.n_channels)
        return raster

    def save_image(self, raster: RasterImage, file_path: str | Path) -> Path:
        """Сохраняет `RasterImage` в PNG. Недописанный файл удаляется.

        Raises:
            ImageEncodeError: если запись не удалась.
        """
        path = Path(file_path)
        try:
            raster.to_pil().save(path, "PNG")
        except (OSError, ValueError) as exc:
            try:
                path.unlink(missing_ok=True)
            except OSError as unlink_exc:
                logger.warning("Could not remove partial file %s: %s", path, unlink_exc)
            raise ImageEncodeError(f"Не удалось сохранить {path}: {exc}") from exc
        logger.debug("Saved %s", path)
        return path
