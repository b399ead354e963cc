"""Карточка фазы луны: снимок или иконка, название, освещённость, возраст, следующая фаза.

Принципы:
- SRP: только отображение `WidgetState`; данные готовит контроллер.
- ISP: наружу три операции: `render(state)`, `on_activate(callback)`, `destroy()`.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional

import customtkinter as ctk
import tkinter as tk
from PIL import Image

from moonwidget.config import POPUP_ICON_SIZE
from moonwidget.models.widget_model import WidgetState
from moonwidget.services.fallback_service import FallbackSelector
from moonwidget.ui.phase_glyph import draw_phase_glyph

logger = logging.getLogger(__name__)


class MoonPopup(ctk.CTkFrame):
    """Горизонтальный блок: слева изображение луны, справа колонка подписей."""
    def __init__(self, master: ctk.CTk | tk.Misc, icon_size: int = POPUP_ICON_SIZE, **kwargs) -> None:
        super().__init__(master, **kwargs)
        self._icon_size = icon_size
        self._on_activate: Optional[Callable[[], None]] = None
        self._ctk_image: Optional[ctk.CTkImage] = None

        self.grid_columnconfigure(1, weight=1)

        self._image_label = ctk.CTkLabel(self, text="", width=icon_size, height=icon_size)
        self._image_label.grid(row=0, column=0, rowspan=6, padx=(12, 12), pady=12, sticky="n")

        self._phase_val = ctk.StringVar(value="—")
        self._illum_val = ctk.StringVar(value="—")
        self._age_val = ctk.StringVar(value="—")
        self._next_name_val = ctk.StringVar(value="—")
        self._next_time_val = ctk.StringVar(value="—")

        bold = ctk.CTkFont(size=16, weight="bold")
        self._phase_label = ctk.CTkLabel(self, textvariable=self._phase_val, font=bold, anchor="w")
        self._illum_label = ctk.CTkLabel(self, textvariable=self._illum_val, anchor="w")
        self._age_label = ctk.CTkLabel(self, textvariable=self._age_val, anchor="w")
        self._separator = ctk.CTkFrame(self, height=2)
        self._next_name_label = ctk.CTkLabel(self, textvariable=self._next_name_val, font=bold, anchor="w")
        self._next_time_label = ctk.CTkLabel(self, textvariable=self._next_time_val, anchor="w")

        self._phase_label.grid(row=0, column=1, padx=(0, 12), pady=(12, 2), sticky="ew")
        self._illum_label.grid(row=1, column=1, padx=(0, 12), pady=(0, 2), sticky="ew")
        self._age_label.grid(row=2, column=1, padx=(0, 12), pady=(0, 6), sticky="ew")
        self._separator.grid(row=3, column=1, padx=(0, 12), pady=4, sticky="ew")
        self._next_name_label.grid(row=4, column=1, padx=(0, 12), pady=(6, 2), sticky="ew")
        self._next_time_label.grid(row=5, column=1, padx=(0, 12), pady=(0, 12), sticky="ew")

        # whole card is clickable
        for widget in (self, self._image_label, self._phase_label, self._illum_label, self._age_label):
            widget.bind("<Button-1>", self._emit_activate)

    # ---- Public API ----
    def render(self, state: WidgetState) -> None:
        """Обновляет подписи и изображение из `state`."""
        self._phase_val.set(state.phase_name)
        self._illum_val.set(state.illumination)
        self._age_val.set(state.age)
        self._next_name_val.set(state.next_phase_name)
        self._next_time_val.set(state.next_phase_time)

        if state.image_path is not None:
            self._set_moon_image(state)
        elif state.fallback_icon is not None:
            self._set_glyph(state.fallback_icon)

    def on_activate(self, callback: Optional[Callable[[], None]]) -> None:
        self._on_activate = callback

    def destroy(self) -> None:
        self._on_activate = None
        self._ctk_image = None
        super().destroy()

    # ---- Internals ----
    def _set_moon_image(self, state: WidgetState) -> None:
        try:
            with Image.open(state.image_path) as img:
                pil = img.convert("RGBA")
        except OSError as exc:
            # file vanished or got truncated after the pipeline returned it
            logger.warning("Could not display %s: %s", state.image_path, exc)
            self._set_glyph(FallbackSelector().select(state.english_phase_name))
            return
        self._show(pil)

    def _set_glyph(self, icon_id: str) -> None:
        color = (255, 255, 255) if ctk.get_appearance_mode().lower() == "dark" else (0, 0, 0)
        self._show(draw_phase_glyph(icon_id, self._icon_size, color=color))

    def _show(self, pil: Image.Image) -> None:
        self._ctk_image = ctk.CTkImage(light_image=pil, dark_image=pil, size=(self._icon_size, self._icon_size))
        self._image_label.configure(image=self._ctk_image)

    def _emit_activate(self, _event: tk.Event) -> None:
        if self._on_activate:
            self._on_activate()
