from __future__ import annotations

import customtkinter as ctk
from PIL import ImageTk

from moonwidget.config import WidgetConfig
from moonwidget.controllers.app_controller import AppController
from moonwidget.services.cache_service import DayCache
from moonwidget.services.fetch_service import RemoteImageFetcher
from moonwidget.services.phase_service import MoonPhaseCalculator
from moonwidget.services.pipeline_service import MoonImagePipeline
from moonwidget.services.process_service import ProcessService
from moonwidget.translations import get_locale
from moonwidget.ui.bottom_bar import BottomBar
from moonwidget.ui.moon_popup import MoonPopup
from moonwidget.ui.phase_glyph import draw_phase_glyph


class MoonWidgetApp(ctk.CTk):
    def __init__(self, config: WidgetConfig) -> None:
        super().__init__()
        ctk.set_appearance_mode("system")
        ctk.set_default_color_theme("blue")

        self.title("Moon Phase")
        self.resizable(False, False)

        # root layout: popup card on top, controls below
        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(0, weight=1)
        self.grid_rowconfigure(1, weight=0)

        self._icon_size = config.icon_size
        self._window_icon: ImageTk.PhotoImage | None = None

        self._popup = MoonPopup(self, icon_size=config.popup_icon_size)
        self._popup.grid(row=0, column=0, sticky="nsew", padx=12, pady=(12, 6))

        self._bottom = BottomBar(self)
        self._bottom.grid(row=1, column=0, sticky="ew", padx=12, pady=(0, 12))

        pipeline = MoonImagePipeline(
            cache=DayCache(config.cache_dir),
            fetcher=RemoteImageFetcher(config.url_template, timeout=config.fetch_timeout_seconds),
            process_service=ProcessService(margin=config.crop_margin, fallback_ratio=config.fallback_bounds_ratio),
        )
        self._controller = AppController(
            popup=self._popup,
            bottom=self._bottom,
            window=self,
            calculator=MoonPhaseCalculator(),
            pipeline=pipeline,
            locale=get_locale(),
            config=config,
        )
        self._controller.bind_events()
        self.protocol("WM_DELETE_WINDOW", self._on_close)
        self._controller.start()

    def set_phase_icon(self, icon_id: str) -> None:
        """Иконка окна: глиф текущей фазы."""
        color = (255, 255, 255) if ctk.get_appearance_mode().lower() == "dark" else (0, 0, 0)
        glyph = draw_phase_glyph(icon_id, self._icon_size, color=color)
        # Tk drops the image once the last Python reference goes away
        self._window_icon = ImageTk.PhotoImage(glyph)
        self.iconphoto(False, self._window_icon)

    def _on_close(self) -> None:
        self._controller.stop()
        self.destroy()
