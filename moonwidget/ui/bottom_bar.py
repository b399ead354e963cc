from __future__ import annotations

from typing import Callable, Optional

import customtkinter as ctk


class BottomBar(ctk.CTkFrame):
    def __init__(self, master: ctk.CTk, **kwargs) -> None:
        super().__init__(master, height=48, **kwargs)

        # callbacks
        self.on_inverted_change: Optional[Callable[[bool], None]] = None
        self.on_refresh: Optional[Callable[[], None]] = None

        # layout
        self.grid_rowconfigure(0, weight=1)
        self.grid_columnconfigure(1, weight=1)  # status stretches

        # Reversed image toggle (applies on light theme only)
        self._inverted_var = ctk.BooleanVar(value=False)
        self._inverted_switch = ctk.CTkSwitch(
            self,
            text="Reversed image",
            variable=self._inverted_var,
            command=self._on_inverted_toggle,
        )
        self._inverted_switch.grid(row=0, column=0, padx=(10, 6), pady=8, sticky="w")

        self._status_value = ctk.StringVar(value="")
        self._status_label = ctk.CTkLabel(self, textvariable=self._status_value, anchor="w")
        self._status_label.grid(row=0, column=1, padx=6, pady=8, sticky="ew")

        self._refresh_btn = ctk.CTkButton(self, text="⟳", width=32, command=self._on_refresh_click)
        self._refresh_btn.grid(row=0, column=2, padx=(6, 10), pady=8, sticky="e")

    # public API (sync from controller)
    def get_inverted(self) -> bool:
        return bool(self._inverted_var.get())

    def set_status(self, text: str) -> None:
        self._status_value.set(text)

    # events
    def _on_inverted_toggle(self) -> None:
        if self.on_inverted_change:
            self.on_inverted_change(self.get_inverted())

    def _on_refresh_click(self) -> None:
        if self.on_refresh:
            self.on_refresh()
