"""Ошибки конвейера изображения луны.

Все ошибки, кроме `DiskDetectionFailure`, прерывают текущий запуск конвейера
и включают запасную иконку. `DiskDetectionFailure` поглощается локатором.
"""
from __future__ import annotations


class MoonPipelineError(Exception):
    """Базовая ошибка конвейера."""


class NetworkFetchError(MoonPipelineError):
    """Источник недоступен или копирование не удалось."""


class DiskDetectionFailure(MoonPipelineError):
    """Не найдено ни одного пикселя диска."""


class ImageDecodeError(MoonPipelineError):
    """Файл повреждён или не является изображением."""


class ImageEncodeError(MoonPipelineError):
    """Изображение не удалось записать."""


class FileSystemError(MoonPipelineError):
    """Не удалось удалить или переместить промежуточный файл."""
