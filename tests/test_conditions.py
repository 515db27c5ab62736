import pytest

from innerquest.events.conditions import check_conditions, event_conditions_met, filter_by_conditions
from innerquest.events.context import PlayerContext
from innerquest.events.model import Bound, Conditions
from innerquest.events.catalog import EventCatalog

from conftest import make_event


def _context(**overrides) -> PlayerContext:
    values = dict(
        day=10,
        phase=0,
        balance=50.0,
        stats={"energie": 50, "mental": 50, "emotionnel": 50, "spiritualite": 50},
        completed_quests=frozenset(),
        achievements=frozenset(),
    )
    values.update(overrides)
    return PlayerContext(**values)


def test_day_min_boundary():
    conditions = Conditions(day=Bound(min=30))

    assert not check_conditions(conditions, _context(day=29))
    assert check_conditions(conditions, _context(day=30))


def test_day_max_is_inclusive():
    conditions = Conditions(day=Bound(max=10))

    assert check_conditions(conditions, _context(day=10))
    assert not check_conditions(conditions, _context(day=11))


def test_balance_range():
    conditions = Conditions(balance=Bound(min=40, max=60))

    assert check_conditions(conditions, _context(balance=40.0))
    assert check_conditions(conditions, _context(balance=60.0))
    assert not check_conditions(conditions, _context(balance=39.75))
    assert not check_conditions(conditions, _context(balance=60.25))


def test_zero_bound_is_a_real_bound():
    conditions = Conditions(stats={"mental": Bound(max=0)})

    assert check_conditions(conditions, _context(stats={"mental": 0}))
    assert not check_conditions(conditions, _context(stats={"mental": 1}))


def test_each_stat_checked_independently():
    conditions = Conditions(stats={"energie": Bound(min=30), "mental": Bound(max=40)})

    assert check_conditions(conditions, _context(stats={"energie": 30, "mental": 40}))
    assert not check_conditions(conditions, _context(stats={"energie": 29, "mental": 40}))
    assert not check_conditions(conditions, _context(stats={"energie": 30, "mental": 41}))


def test_missing_stat_counts_as_zero():
    assert not check_conditions(Conditions(stats={"courage": Bound(min=1)}), _context())
    assert check_conditions(Conditions(stats={"courage": Bound(max=0)}), _context())


def test_quest_requirement():
    conditions = Conditions(quest_completed="first_steps")

    assert not check_conditions(conditions, _context())
    assert check_conditions(conditions, _context(completed_quests=frozenset({"first_steps"})))


def test_achievement_requirement():
    conditions = Conditions(achievement="balanced_week")

    assert not check_conditions(conditions, _context(achievements=frozenset({"other"})))
    assert check_conditions(conditions, _context(achievements=frozenset({"balanced_week"})))


def test_all_present_conditions_must_hold():
    conditions = Conditions(
        balance=Bound(min=40),
        day=Bound(min=5),
        achievement="balanced_week",
    )

    assert not check_conditions(conditions, _context(achievements=frozenset()))
    assert check_conditions(conditions, _context(achievements=frozenset({"balanced_week"})))


def test_empty_condition_set_passes():
    assert check_conditions(Conditions(), _context())


def test_filter_by_conditions_keeps_unconditioned_events():
    catalog = EventCatalog.load([
        make_event("free"),
        make_event("late", conditions={"day": {"min": 30}}),
    ])

    kept = filter_by_conditions(catalog.all_events(), _context(day=29))

    assert [e.id for e in kept] == ["free"]
    assert event_conditions_met(catalog.by_id("late"), _context(day=30))
