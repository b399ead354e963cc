"""Форматирование подписей виджета из `PhaseInfo`."""
from __future__ import annotations

from typing import Optional

from moonwidget.models.phase_model import PhaseInfo
from moonwidget.models.widget_model import PLACEHOLDER, WidgetState
from moonwidget.translations import Locale

NEXT_MAJOR_PHASE = {
    "New Moon": "First Quarter",
    "Waxing Crescent": "First Quarter",
    "First Quarter": "Full Moon",
    "Waxing Gibbous": "Full Moon",
    "Full Moon": "Last Quarter",
    "Waning Gibbous": "Last Quarter",
    "Last Quarter": "New Moon",
    "Waning Crescent": "New Moon",
}

# shown when the date falls outside the phase table
DEFAULT_PHASE = PhaseInfo(
    phase_name="Full Moon",
    illumination_percent=100.0,
    age_days=None,
    seconds_to_next_phase=None,
    next_phase_instant=None,
)


def _one_decimal(value: float) -> str:
    return "0" if value < 0.1 else f"{value:.1f}"


def format_seconds(seconds: Optional[int], locale: Locale) -> str:
    """Формат «3 d 4h 12min»; первая буква слова «дни» берётся из локали."""
    if not seconds:
        return PLACEHOLDER
    days, rest = divmod(int(seconds), 24 * 3600)
    hours, rest = divmod(rest, 3600)
    minutes = rest // 60

    parts = []
    if days > 0:
        parts.append(f"{days} {locale.labels.days[:1]}")
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}min")
    return " ".join(parts) or "0s"


def format_illumination(value: Optional[float], locale: Locale) -> str:
    if value is None:
        return PLACEHOLDER
    return f"{locale.labels.illumination}: {_one_decimal(value)}%"


def format_age(value: Optional[float], locale: Locale) -> str:
    if value is None:
        return PLACEHOLDER
    return f"{locale.labels.age}: {_one_decimal(value)} {locale.labels.days}"


def next_phase_display(english_phase: str, locale: Locale) -> str:
    nxt = NEXT_MAJOR_PHASE.get(english_phase)
    if nxt is None:
        return PLACEHOLDER
    return locale.translate_phase(nxt)


def build_state(info: Optional[PhaseInfo], locale: Locale) -> WidgetState:
    """Подписи виджета; изображение заполняется отдельно результатом конвейера."""
    info = info or DEFAULT_PHASE
    if info.seconds_to_next_phase is None:
        next_name, next_time = PLACEHOLDER, PLACEHOLDER
    else:
        next_name = next_phase_display(info.phase_name, locale)
        next_time = f"{locale.labels.in_} {format_seconds(info.seconds_to_next_phase, locale)}"

    return WidgetState(
        phase_name=locale.translate_phase(info.phase_name),
        illumination=format_illumination(info.illumination_percent, locale),
        age=format_age(info.age_days, locale),
        next_phase_name=next_name,
        next_phase_time=next_time,
        english_phase_name=info.phase_name,
    )
