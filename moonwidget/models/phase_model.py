"""Модели данных лунных фаз."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class PhaseInstant:
    """Известный момент главной фазы (новолуние, четверти, полнолуние)."""
    name: str
    instant: datetime
    illumination: float


@dataclass(frozen=True)
class PhaseInfo:
    """Ответ интерфейса запроса фазы для конкретного момента.

    Fields:
        phase_name: Английское название фазы ("Full Moon", "Waxing Crescent", …).
        illumination_percent: Освещённость, 0..100.
        age_days: Дней с последнего новолуния, если известно.
        seconds_to_next_phase: Секунд до следующей главной фазы, если известно.
        next_phase_instant: Момент следующей главной фазы.
        next_phase_name: Название следующей главной фазы.
        is_exact: True, если момент в пределах ±12 ч от табличной фазы.
    """
    phase_name: str
    illumination_percent: float
    age_days: Optional[float]
    seconds_to_next_phase: Optional[int]
    next_phase_instant: Optional[datetime]
    next_phase_name: Optional[str] = None
    is_exact: bool = False
