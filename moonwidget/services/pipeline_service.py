"""Конвейер снимка луны: кэш по дню -> загрузка -> поиск диска -> кадр -> рендер.

Принципы:
- SRP: единственная точка решения, нужна ли сеть или обработка; сами шаги делегируются сервисам.
- DIP: загрузчик, кэш и обработка передаются в конструктор и подменяются в тестах.

Состояния для дня: NO_ARTIFACT -> HAS_RAW -> HAS_CROPPED -> HAS_RENDERED, либо FAILED.
Любая ошибка стадии переводит в FAILED и включает запасную иконку; повторов внутри
одного запуска нет.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import date, datetime
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple

from moonwidget.models.image_model import PipelineResult, PipelineState, RasterImage
from moonwidget.services.cache_service import CacheKey, CacheStage, DayCache
from moonwidget.services.errors import ImageDecodeError, ImageEncodeError, MoonPipelineError
from moonwidget.services.fallback_service import FallbackSelector
from moonwidget.services.fetch_service import RemoteImageFetcher
from moonwidget.services.image_service import ImageService
from moonwidget.services.process_service import ProcessService

logger = logging.getLogger(__name__)


class MoonImagePipeline:
    def __init__(
        self,
        cache: DayCache,
        fetcher: RemoteImageFetcher,
        image_service: Optional[ImageService] = None,
        process_service: Optional[ProcessService] = None,
        fallback: Optional[FallbackSelector] = None,
    ) -> None:
        self.cache = cache
        self.fetcher = fetcher
        self.images = image_service or ImageService()
        self.process = process_service or ProcessService()
        self.fallback = fallback or FallbackSelector()

        self._lock = threading.RLock()
        self._day_locks: Dict[date, threading.Lock] = {}
        self._in_flight: Dict[Tuple[date, bool], Future] = {}
        self._executor: Optional[ThreadPoolExecutor] = None

    # ---- Public API ----
    def run(self, moment: date | datetime, phase_name: str, inverted: bool = False) -> PipelineResult:
        """Синхронный запуск для дня `moment`.

        Возвращает путь к готовому PNG либо id иконки для `phase_name` при любой ошибке.
        """
        key = CacheKey.for_moment(moment)
        with self._day_lock(key.day):
            try:
                path = self._ensure_rendered(key)
                if inverted:
                    path = self._ensure_inverted(key, path)
            except MoonPipelineError as exc:
                logger.warning("Moon image pipeline failed for %s: %s", key.day, exc)
                return self._fallback(phase_name)
            except Exception:
                logger.exception("Unexpected error in moon image pipeline for %s", key.day)
                return self._fallback(phase_name)
        return PipelineResult.rendered(path)

    def submit(
        self,
        moment: date | datetime,
        phase_name: str,
        inverted: bool = False,
        callback: Optional[Callable[[PipelineResult], None]] = None,
    ) -> Future:
        """Запуск в фоновом потоке, чтобы не блокировать цикл событий на сетевом запросе.

        Повторный вызов для того же дня, пока предыдущий не завершён, присоединяется
        к уже идущему запуску вместо второго.
        """
        key = (CacheKey.for_moment(moment).day, inverted)
        with self._lock:
            future = self._in_flight.get(key)
            if future is None:
                if self._executor is None:
                    self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="moon-pipeline")
                future = self._executor.submit(self.run, moment, phase_name, inverted)
                self._in_flight[key] = future
                future.add_done_callback(lambda f, k=key: self._forget(k, f))
            else:
                logger.debug("Joining in-flight moon pipeline run for %s", key[0])
        if callback is not None:
            future.add_done_callback(lambda f: callback(f.result()))
        return future

    def in_flight(self) -> int:
        with self._lock:
            return len(self._in_flight)

    def shutdown(self) -> None:
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=False)
        self.fetcher.close()

    # ---- Stages ----
    def _ensure_rendered(self, key: CacheKey) -> Path:
        rendered_path = self.cache.path(key, CacheStage.RENDERED)
        state = self.cache.state(key)
        if state is PipelineState.HAS_RENDERED:
            logger.debug("Using cached moon image %s", rendered_path)
            return rendered_path

        self.cache.ensure_dir()
        raw_path = self.cache.path(key, CacheStage.RAW)
        cropped_path = self.cache.path(key, CacheStage.CROPPED)

        if state is PipelineState.NO_ARTIFACT:
            self.fetcher.fetch(key.day, raw_path)
            state = PipelineState.HAS_RAW

        if state is PipelineState.HAS_RAW:
            raw = self._load_or_discard(raw_path)
            cropped, bounds = self.process.crop_to_disk(raw)
            self.images.save_image(cropped, cropped_path)
            self._write_mirror(cropped)
            radius = bounds.diameter / 2
        else:
            cropped = self._load_or_discard(cropped_path)
            radius = self.process.radius_from_crop(cropped)

        rendered = self.process.render_disk(cropped, radius)
        self.images.save_image(rendered, rendered_path)
        logger.info("Rendered moon image %s (%dx%d)", rendered_path, rendered.width, rendered.height)

        self.cache.remove_intermediates(key)
        return rendered_path

    def _ensure_inverted(self, key: CacheKey, rendered_path: Path) -> Path:
        inverted_path = self.cache.inverted_path(key)
        if inverted_path.is_file():
            return inverted_path
        rendered = self._load_or_discard(rendered_path)
        self.images.save_image(self.process.invert(rendered), inverted_path)
        logger.debug("Created inverted moon image %s", inverted_path)
        return inverted_path

    def _load_or_discard(self, path: Path) -> RasterImage:
        # a corrupt file would otherwise block the whole day
        try:
            return self.images.load_image(path)
        except ImageDecodeError:
            self.cache.discard(path)
            raise

    def _write_mirror(self, cropped: RasterImage) -> None:
        try:
            self.images.save_image(cropped, self.cache.mirror_path)
        except ImageEncodeError as exc:
            logger.warning("Could not update %s: %s", self.cache.mirror_path, exc)

    # ---- Helpers ----
    def _fallback(self, phase_name: str) -> PipelineResult:
        return PipelineResult.fallback(self.fallback.select(phase_name))

    def _day_lock(self, day: date) -> threading.Lock:
        with self._lock:
            return self._day_locks.setdefault(day, threading.Lock())

    def _forget(self, key: Tuple[date, bool], future: Future) -> None:
        with self._lock:
            if self._in_flight.get(key) is future:
                del self._in_flight[key]
