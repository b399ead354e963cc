"""Настройки виджета: значения по умолчанию и переопределения из окружения.

Переменные окружения (все необязательные):
    MOONWIDGET_CACHE_DIR, MOONWIDGET_URL_TEMPLATE, MOONWIDGET_CALENDAR_URL,
    MOONWIDGET_UPDATE_INTERVAL, MOONWIDGET_FETCH_TIMEOUT, MOONWIDGET_LOG_LEVEL.
"""
from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

STARWALK_URL_TEMPLATE = (
    "https://starwalk.space/assets/moon-calendar/phases/"
    "moon-phase-london-uk-{year}-{month}-{day}-m.png"
)
STARWALK_CALENDAR_URL = "https://starwalk.space/en/moon-calendar"

UPDATE_INTERVAL_SECONDS = 3600
FETCH_TIMEOUT_SECONDS = 20.0
ICON_SIZE = 18
POPUP_ICON_SIZE = 100

# Margin around the detected disk in the square crop
CROP_MARGIN = 3
# Share of min(width, height) used when no disk pixels are found
FALLBACK_BOUNDS_RATIO = 0.8


@dataclass(frozen=True)
class WidgetConfig:
    cache_dir: Path = field(default_factory=lambda: Path(tempfile.gettempdir()))
    url_template: str = STARWALK_URL_TEMPLATE
    calendar_url: str = STARWALK_CALENDAR_URL
    update_interval_seconds: int = UPDATE_INTERVAL_SECONDS
    fetch_timeout_seconds: float = FETCH_TIMEOUT_SECONDS
    crop_margin: int = CROP_MARGIN
    fallback_bounds_ratio: float = FALLBACK_BOUNDS_RATIO
    icon_size: int = ICON_SIZE
    popup_icon_size: int = POPUP_ICON_SIZE
    log_level: str = "INFO"


def _number(environ: Mapping[str, str], key: str, default, cast):
    raw = environ.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = cast(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not a number, using %s", key, raw, default)
        return default
    if value <= 0:
        logger.warning("Ignoring %s=%r: must be positive, using %s", key, raw, default)
        return default
    return value


def load_config(environ: Optional[Mapping[str, str]] = None) -> WidgetConfig:
    """Собирает `WidgetConfig` из значений по умолчанию и переменных окружения."""
    env = os.environ if environ is None else environ
    defaults = WidgetConfig()

    cache_dir = env.get("MOONWIDGET_CACHE_DIR")
    return WidgetConfig(
        cache_dir=Path(cache_dir).expanduser() if cache_dir else defaults.cache_dir,
        url_template=env.get("MOONWIDGET_URL_TEMPLATE") or defaults.url_template,
        calendar_url=env.get("MOONWIDGET_CALENDAR_URL") or defaults.calendar_url,
        update_interval_seconds=_number(
            env, "MOONWIDGET_UPDATE_INTERVAL", defaults.update_interval_seconds, int
        ),
        fetch_timeout_seconds=_number(
            env, "MOONWIDGET_FETCH_TIMEOUT", defaults.fetch_timeout_seconds, float
        ),
        log_level=(env.get("MOONWIDGET_LOG_LEVEL") or defaults.log_level).upper(),
    )
