"""Контроллер виджета: таймер, запрос фазы, конвейер снимка и синхронизация UI.

SOLID:
- SRP: класс связывает UI и сервисы, без логики обработки изображений.
- DIP: калькулятор фаз и конвейер передаются извне; UI видит только `WidgetState`.
Clean Code:
- Обработчики компактны; тяжёлая логика вынесена в сервисы.
"""
from __future__ import annotations

import logging
import webbrowser
from concurrent.futures import Future
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional

import customtkinter as ctk

from moonwidget.config import WidgetConfig
from moonwidget.models.image_model import PipelineResult
from moonwidget.models.phase_model import PhaseInfo
from moonwidget.models.widget_model import WidgetState
from moonwidget.services.fallback_service import FallbackSelector
from moonwidget.services.format_service import build_state
from moonwidget.services.phase_service import MoonPhaseCalculator
from moonwidget.services.pipeline_service import MoonImagePipeline
from moonwidget.translations import Locale
from moonwidget.ui.bottom_bar import BottomBar
from moonwidget.ui.moon_popup import MoonPopup

logger = logging.getLogger(__name__)

# how often the Tk loop checks a running pipeline
POLL_INTERVAL_MS = 200


@dataclass
class AppController:
    """Связывает элементы UI с прикладной логикой.

    Ответственности:
    - Периодическое обновление по таймеру и по требованию.
    - Подписи фазы через `MoonPhaseCalculator` (не зависят от успеха конвейера).
    - Снимок луны через `MoonImagePipeline` в фоне, без блокировки цикла событий.
    - Режим инвертированного снимка для светлой темы.
    """
    popup: MoonPopup
    bottom: BottomBar
    window: ctk.CTk  # MoonWidgetApp: also provides set_phase_icon()
    calculator: MoonPhaseCalculator
    pipeline: MoonImagePipeline
    locale: Locale
    config: WidgetConfig

    _timer_id: Optional[str] = None
    _inverted: bool = False
    _last_state: Optional[WidgetState] = None
    _fallback: FallbackSelector = field(default_factory=FallbackSelector)

    def bind_events(self) -> None:
        """Регистрирует обработчики событий между UI-компонентами."""
        self.popup.on_activate(self._handle_activate)
        self.bottom.on_inverted_change = self._handle_inverted_change
        self.bottom.on_refresh = self.refresh

    def start(self) -> None:
        self.refresh()
        self._schedule_timer()

    def stop(self) -> None:
        """Останавливает таймер; уже идущий запуск конвейера доработает сам."""
        if self._timer_id is not None:
            self.window.after_cancel(self._timer_id)
            self._timer_id = None
        self.pipeline.shutdown()

    def refresh(self) -> None:
        now = datetime.now()
        state = build_state(self._query_phase(now), self.locale)
        self._last_state = state
        # text updates immediately, the image follows when the pipeline finishes
        self.popup.render(state)
        self.window.set_phase_icon(self._fallback.select(state.english_phase_name))

        future = self.pipeline.submit(now, state.english_phase_name, inverted=self._use_inverted())
        self.window.after(POLL_INTERVAL_MS, self._poll_pipeline, future, state)

    # ---- Handlers ----
    def _handle_activate(self) -> None:
        try:
            webbrowser.open(self.config.calendar_url)
        except webbrowser.Error as exc:
            logger.warning("Could not open %s: %s", self.config.calendar_url, exc)

    def _handle_inverted_change(self, value: bool) -> None:
        self._inverted = value
        self.refresh()

    def _handle_pipeline_result(self, state: WidgetState, result: PipelineResult) -> None:
        shown = replace(state, image_path=result.rendered_path, fallback_icon=result.fallback_icon)
        self._last_state = shown
        self.popup.render(shown)
        self.bottom.set_status("" if not result.is_fallback else "offline")

    # ---- Helpers ----
    def _query_phase(self, now: datetime) -> Optional[PhaseInfo]:
        try:
            return self.calculator.query(now)
        except Exception:
            logger.exception("Moon phase calculation failed")
            return None

    def _use_inverted(self) -> bool:
        return self._inverted and ctk.get_appearance_mode().lower() == "light"

    def _poll_pipeline(self, future: Future, state: WidgetState) -> None:
        if not future.done():
            self.window.after(POLL_INTERVAL_MS, self._poll_pipeline, future, state)
            return
        self._handle_pipeline_result(state, future.result())

    def _schedule_timer(self) -> None:
        self._timer_id = self.window.after(self.config.update_interval_seconds * 1000, self._on_timer)

    def _on_timer(self) -> None:
        self.refresh()
        self._schedule_timer()
