from datetime import date, datetime, timedelta, timezone

import pytest

from moonwidget.models.phase_model import PhaseInstant
from moonwidget.services.phase_service import (
    MoonPhaseCalculator,
    build_phase_table,
    intermediate_phase_name,
)

START = datetime(2026, 1, 1, tzinfo=timezone.utc)
WEEK = timedelta(days=7)


@pytest.fixture
def table():
    names = [("New Moon", 0.0), ("First Quarter", 50.0), ("Full Moon", 100.0), ("Last Quarter", 50.0)]
    return [
        PhaseInstant(name=name, instant=START + i * WEEK, illumination=illum)
        for i, (name, illum) in enumerate(names + names[:1])
    ]


@pytest.fixture
def calculator(table):
    return MoonPhaseCalculator(table)


def test_between_phases_gives_intermediate_name(calculator):
    info = calculator.query(START + timedelta(days=3))

    assert info.phase_name == "Waxing Crescent"
    assert not info.is_exact
    assert 0 < info.illumination_percent < 50
    assert info.age_days == pytest.approx(3.0)
    assert info.next_phase_name == "First Quarter"
    assert info.seconds_to_next_phase == 4 * 24 * 3600


def test_illumination_grows_through_waxing_gibbous(calculator):
    early = calculator.query(START + timedelta(days=8))
    late = calculator.query(START + timedelta(days=13))
    assert early.phase_name == late.phase_name == "Waxing Gibbous"
    assert 50 < early.illumination_percent < late.illumination_percent < 100


def test_within_twelve_hours_is_exact(calculator):
    info = calculator.query(START + WEEK + timedelta(hours=6))

    assert info.phase_name == "First Quarter"
    assert info.is_exact
    assert info.illumination_percent == 50.0
    assert info.next_phase_name == "Full Moon"


def test_imminent_phase_is_skipped_in_countdown(calculator, table):
    target = START + WEEK - timedelta(hours=6)
    info = calculator.query(target)

    assert info.phase_name == "First Quarter"
    assert info.next_phase_name == "Full Moon"
    assert info.seconds_to_next_phase == int((7 * 24 + 6) * 3600)

    raw = MoonPhaseCalculator(table, use_raw_time=True).query(target)
    assert raw.next_phase_name == "First Quarter"
    assert raw.seconds_to_next_phase == 6 * 3600


def test_outside_table_is_none(calculator):
    assert calculator.query(START - timedelta(days=1)) is None
    assert calculator.query(START + 4 * WEEK + timedelta(hours=13)) is None


def test_edge_of_table_within_window_is_exact(calculator):
    info = calculator.query(START + 4 * WEEK + timedelta(hours=6))
    assert info.phase_name == "New Moon"
    assert info.seconds_to_next_phase is None
    assert info.next_phase_instant is None


def test_age_unknown_without_previous_new_moon(table):
    calculator = MoonPhaseCalculator(table[1:])
    info = calculator.query(START + timedelta(days=10))
    assert info.age_days is None


def test_date_means_noon_utc(calculator):
    info = calculator.query(date(2026, 1, 4))
    assert info.age_days == pytest.approx(3.5)


def test_empty_table_is_rejected():
    with pytest.raises(ValueError):
        MoonPhaseCalculator([])


def test_unknown_transition_name():
    assert intermediate_phase_name("Full Moon", "New Moon") == "Between Full Moon and New Moon"


def test_default_table_cycles_through_quarters():
    table = build_phase_table(2024, 2024)

    assert table[0].instant.year == 2024 and table[-1].instant.year == 2024
    order = ["New Moon", "First Quarter", "Full Moon", "Last Quarter"]
    start = order.index(table[0].name)
    for i, phase in enumerate(table):
        assert phase.name == order[(start + i) % 4]
    gaps = {round((b.instant - a.instant).total_seconds() / 86400, 3) for a, b in zip(table, table[1:])}
    assert gaps == {7.383}


def test_default_calculator_finds_april_2024_new_moon():
    info = MoonPhaseCalculator().query(datetime(2024, 4, 8, 18, 0, tzinfo=timezone.utc))
    assert info.phase_name == "New Moon"
    assert info.is_exact
    assert MoonPhaseCalculator().data_range()[0].year == 2020
