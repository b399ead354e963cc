"""Кэш артефактов по календарному дню.

Принципы:
- SRP: только имена файлов, проверка наличия и удаление; без сети и обработки.
- Один день всегда даёт одни и те же пути; ключи никогда не инвалидируются.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import List

from moonwidget.models.image_model import PipelineState
from moonwidget.services.errors import FileSystemError

logger = logging.getLogger(__name__)

FILE_PREFIX = "moon-phase"
MIRROR_FILENAME = "moonphase.png"
INVERTED_SUFFIX = "-inverted"

_CACHE_FILE_RE = re.compile(rf"^{FILE_PREFIX}-(raw|cropped|rendered)-(\d{{8}})(?:{INVERTED_SUFFIX})?\.png$")


class CacheStage(str, Enum):
    RAW = "raw"
    CROPPED = "cropped"
    RENDERED = "rendered"


# later stage implies the earlier ones need not be recomputed
STAGE_STATES = (
    (CacheStage.RENDERED, PipelineState.HAS_RENDERED),
    (CacheStage.CROPPED, PipelineState.HAS_CROPPED),
    (CacheStage.RAW, PipelineState.HAS_RAW),
)


@dataclass(frozen=True)
class CacheKey:
    """Календарный день, усечённый до даты."""
    day: date

    @classmethod
    def for_moment(cls, moment: date | datetime) -> "CacheKey":
        if isinstance(moment, datetime):
            return cls(moment.date())
        return cls(moment)

    @property
    def stamp(self) -> str:
        return f"{self.day.year:04d}{self.day.month:02d}{self.day.day:02d}"

    def filename(self, stage: CacheStage, inverted: bool = False) -> str:
        suffix = INVERTED_SUFFIX if inverted else ""
        return f"{FILE_PREFIX}-{stage.value}-{self.stamp}{suffix}.png"


class DayCache:
    def __init__(self, cache_dir: str | Path) -> None:
        self.cache_dir = Path(cache_dir)

    def ensure_dir(self) -> None:
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise FileSystemError(f"Не удалось создать каталог кэша {self.cache_dir}: {exc}") from exc

    def path(self, key: CacheKey, stage: CacheStage) -> Path:
        return self.cache_dir / key.filename(stage)

    def inverted_path(self, key: CacheKey) -> Path:
        return self.cache_dir / key.filename(CacheStage.RENDERED, inverted=True)

    @property
    def mirror_path(self) -> Path:
        return self.cache_dir / MIRROR_FILENAME

    def has(self, key: CacheKey, stage: CacheStage) -> bool:
        return self.path(key, stage).is_file()

    def state(self, key: CacheKey) -> PipelineState:
        """Наиболее поздняя стадия, файл которой есть на диске."""
        for stage, state in STAGE_STATES:
            if self.has(key, stage):
                return state
        return PipelineState.NO_ARTIFACT

    def discard(self, path: Path) -> bool:
        """Удаляет файл; ошибки ФС записываются в лог и не прерывают работу."""
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Could not remove cache file %s: %s", path, exc)
            return False
        return True

    def remove_intermediates(self, key: CacheKey) -> None:
        for stage in (CacheStage.RAW, CacheStage.CROPPED):
            self.discard(self.path(key, stage))

    def list_days(self) -> List[date]:
        days = set()
        if not self.cache_dir.is_dir():
            return []
        for entry in self.cache_dir.iterdir():
            m = _CACHE_FILE_RE.match(entry.name)
            if m:
                days.add(datetime.strptime(m.group(2), "%Y%m%d").date())
        return sorted(days)

    def purge_stale(self, keep: CacheKey) -> int:
        """Удаляет файлы всех дней, кроме `keep`. Возвращает число удалённых файлов."""
        removed = 0
        if not self.cache_dir.is_dir():
            return 0
        for entry in self.cache_dir.iterdir():
            m = _CACHE_FILE_RE.match(entry.name)
            if m and m.group(2) != keep.stamp and self.discard(entry):
                removed += 1
        if removed:
            logger.info("Purged %d stale moon cache files from %s", removed, self.cache_dir)
        return removed
