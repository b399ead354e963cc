"""Упрощённый расчёт лунной фазы по короткой таблице моментов главных фаз.

Таблица строится один раз из опорного новолуния и среднего синодического месяца;
между соседними моментами значения интерполируются. Это не эфемериды.
"""
from __future__ import annotations

import bisect
import math
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Sequence, Tuple

from moonwidget.models.phase_model import PhaseInfo, PhaseInstant

SYNODIC_MONTH_DAYS = 29.530588853
REFERENCE_NEW_MOON = datetime(2000, 1, 6, 18, 14, tzinfo=timezone.utc)

MAJOR_PHASES = (
    ("New Moon", 0.0),
    ("First Quarter", 50.0),
    ("Full Moon", 100.0),
    ("Last Quarter", 50.0),
)

EXACT_WINDOW = timedelta(hours=12)
SECONDS_PER_DAY = 24 * 60 * 60

INTERMEDIATE_NAMES = {
    ("New Moon", "First Quarter"): "Waxing Crescent",
    ("First Quarter", "Full Moon"): "Waxing Gibbous",
    ("Full Moon", "Last Quarter"): "Waning Gibbous",
    ("Last Quarter", "New Moon"): "Waning Crescent",
}

# phase angle range covered by each quarter of the cycle
TRANSITION_ANGLES = {
    ("New Moon", "First Quarter"): (0.0, math.pi / 2),
    ("First Quarter", "Full Moon"): (math.pi / 2, math.pi),
    ("Full Moon", "Last Quarter"): (math.pi, 3 * math.pi / 2),
    ("Last Quarter", "New Moon"): (3 * math.pi / 2, 2 * math.pi),
}


def build_phase_table(first_year: int = 2020, last_year: int = 2035) -> Tuple[PhaseInstant, ...]:
    """Моменты главных фаз с 1 января `first_year` по 31 декабря `last_year` (UTC)."""
    start = datetime(first_year, 1, 1, tzinfo=timezone.utc)
    end = datetime(last_year + 1, 1, 1, tzinfo=timezone.utc)
    quarter = timedelta(days=SYNODIC_MONTH_DAYS / 4)

    k = math.floor((start - REFERENCE_NEW_MOON) / quarter)
    table = []
    while True:
        instant = REFERENCE_NEW_MOON + k * quarter
        if instant >= end:
            break
        if instant >= start:
            name, illumination = MAJOR_PHASES[k % 4]
            table.append(PhaseInstant(name=name, instant=instant, illumination=illumination))
        k += 1
    return tuple(table)


def intermediate_phase_name(previous: str, following: str) -> str:
    return INTERMEDIATE_NAMES.get((previous, following), f"Between {previous} and {following}")


def _to_utc(moment: date | datetime) -> datetime:
    if isinstance(moment, datetime):
        # naive datetimes are local wall-clock time
        return moment.astimezone(timezone.utc)
    return datetime.combine(moment, time(12, 0), tzinfo=timezone.utc)


class MoonPhaseCalculator:
    """Интерфейс запроса фазы: `query(moment) -> PhaseInfo | None`.

    Args:
        table: Отсортированная таблица моментов фаз; по умолчанию `build_phase_table()`.
        use_raw_time: Считать время до ближайшей фазы без поправки на окно ±12 ч.
    """

    def __init__(self, table: Optional[Sequence[PhaseInstant]] = None, use_raw_time: bool = False) -> None:
        phases = table if table is not None else build_phase_table()
        self._table: Tuple[PhaseInstant, ...] = tuple(sorted(phases, key=lambda p: p.instant))
        if not self._table:
            raise ValueError("Таблица фаз пуста")
        self._instants = [p.instant for p in self._table]
        self.use_raw_time = use_raw_time

    @property
    def table(self) -> Tuple[PhaseInstant, ...]:
        return self._table

    def data_range(self) -> Tuple[datetime, datetime]:
        return self._table[0].instant, self._table[-1].instant

    def _age_days(self, target: datetime) -> Optional[float]:
        idx = bisect.bisect_right(self._instants, target)
        for phase in reversed(self._table[:idx]):
            if phase.name == "New Moon":
                return (target - phase.instant).total_seconds() / SECONDS_PER_DAY
        return None

    def _next_phase(self, target: datetime) -> Optional[PhaseInstant]:
        idx = bisect.bisect_right(self._instants, target)
        if idx >= len(self._table):
            return None
        nxt = self._table[idx]
        if self.use_raw_time or nxt.instant - target >= EXACT_WINDOW:
            return nxt
        # the next phase is "now" for display purposes, count down to the one after
        if idx + 1 < len(self._table):
            return self._table[idx + 1]
        return None

    def _interpolated_illumination(self, previous: PhaseInstant, following: PhaseInstant, target: datetime) -> float:
        total = (following.instant - previous.instant).total_seconds()
        progress = (target - previous.instant).total_seconds() / total
        start, end = TRANSITION_ANGLES.get((previous.name, following.name), (0.0, 2 * math.pi))
        angle = start + (end - start) * progress
        return round((1 - math.cos(angle)) / 2 * 100, 1)

    def query(self, moment: date | datetime) -> Optional[PhaseInfo]:
        """Фаза, освещённость, возраст и время до следующей фазы.

        Возвращает None, если момент вне диапазона таблицы.
        """
        target = _to_utc(moment)
        first, last = self.data_range()

        idx = bisect.bisect_left(self._instants, target)
        exact = None
        for candidate in self._table[max(0, idx - 1): idx + 1]:
            if abs(target - candidate.instant) <= EXACT_WINDOW:
                exact = candidate
                break

        if exact is None and (target < first or target > last):
            return None

        nxt = self._next_phase(target)
        seconds = round((nxt.instant - target).total_seconds()) if nxt else None
        common = dict(
            age_days=self._age_days(target),
            seconds_to_next_phase=seconds,
            next_phase_instant=nxt.instant if nxt else None,
            next_phase_name=nxt.name if nxt else None,
        )

        if exact is not None:
            return PhaseInfo(
                phase_name=exact.name,
                illumination_percent=exact.illumination,
                is_exact=True,
                **common,
            )

        previous = self._table[idx - 1]
        following = self._table[idx]
        return PhaseInfo(
            phase_name=intermediate_phase_name(previous.name, following.name),
            illumination_percent=self._interpolated_illumination(previous, following, target),
            is_exact=False,
            **common,
        )
