import pytest

from innerquest.events.phases import (
    DEFAULT_PHASES,
    PhaseDef,
    PhaseTableError,
    phase_name,
    resolve_phase,
    validate_phase_table,
)


@pytest.mark.parametrize("day, expected", [
    (1, 0),
    (14, 0),
    (15, 1),
    (29, 1),
    (30, 2),
    (49, 2),
    (50, 3),
    (10000, 3),
])
def test_resolve_phase_boundaries(day, expected):
    assert resolve_phase(day) == expected


@pytest.mark.parametrize("day", [0, -5])
def test_resolve_phase_before_day_one_defaults_to_first(day):
    assert resolve_phase(day) == 0


def test_phase_name():
    assert [phase_name(p.id) for p in DEFAULT_PHASES] == ["awakening", "chaos", "quest", "harmony"]
    assert phase_name(42) == "awakening"


def test_default_table_is_valid():
    validate_phase_table(DEFAULT_PHASES)


@pytest.mark.parametrize("phases", [
    (),
    (PhaseDef(0, "a", 2, None),),
    (PhaseDef(0, "a", 1, 10), PhaseDef(1, "b", 12, None)),
    (PhaseDef(0, "a", 1, 10), PhaseDef(1, "b", 11, 20)),
    (PhaseDef(0, "a", 1, None), PhaseDef(1, "b", 11, None)),
    (PhaseDef(0, "a", 1, 10), PhaseDef(0, "b", 11, None)),
])
def test_invalid_tables_rejected(phases):
    with pytest.raises(PhaseTableError):
        validate_phase_table(phases)


def test_custom_table():
    phases = (PhaseDef(0, "short", 1, 3), PhaseDef(7, "long", 4, None))

    assert resolve_phase(3, phases) == 0
    assert resolve_phase(4, phases) == 7
    assert phase_name(7, phases) == "long"
