"""Выбор векторной иконки по названию фазы, когда снимок недоступен."""
from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

GENERIC_ICON = "weather-clear-night-symbolic"

# keyed by the English phase name, never the translated one
PHASE_ICONS: Mapping[str, str] = MappingProxyType({
    "New Moon": "New-moon-symbolic",
    "Waxing Crescent": "Waxing-crescent-symbolic",
    "First Quarter": "First-quarter-symbolic",
    "Waxing Gibbous": "Waxing-gibbous-symbolic",
    "Full Moon": "Full-moon-symbolic",
    "Waning Gibbous": "Waning-gibbous-symbolic",
    "Last Quarter": "Last-quarter-symbolic",
    "Waning Crescent": "Waning-crescent-symbolic",
})


class FallbackSelector:
    def __init__(self, icons: Mapping[str, str] = PHASE_ICONS, generic: str = GENERIC_ICON) -> None:
        self._icons = icons
        self._generic = generic

    def select(self, phase_name: str) -> str:
        """Точное совпадение по таблице; иначе общая ночная иконка."""
        return self._icons.get(phase_name, self._generic)
