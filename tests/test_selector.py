from collections import Counter
import time

import pytest
from scipy.stats import binomtest

from innerquest.core.rng import get_seeded_rng
from innerquest.events.catalog import CatalogNotReadyError, EventCatalog
from innerquest.events.context import PlayerContext
from innerquest.events.model import FALLBACK_EVENT
from innerquest.events.selector import EventSelector, PoolStage, select_event, weighted_pick
from innerquest.player.model import HistoryEntry

from conftest import make_event


def _history(*event_ids: str):
    return tuple(
        HistoryEntry(day=i + 1, event_id=event_id, choice_index=0, timestamp=int(time.time() * 1000))
        for i, event_id in enumerate(event_ids)
    )


def test_selected_event_matches_phase(catalog):
    rng = get_seeded_rng(7)
    for phase in range(4):
        context = PlayerContext(day=1, phase=phase, balance=50.0)
        for _ in range(50):
            assert select_event(catalog, context, rng).allows_phase(phase)


def test_conditions_gate_selection(catalog):
    rng = get_seeded_rng(3)
    early = PlayerContext(day=15, phase=1)
    late = PlayerContext(day=20, phase=1)

    early_ids = {select_event(catalog, early, rng).id for _ in range(300)}
    late_ids = {select_event(catalog, late, rng).id for _ in range(300)}

    assert "middle" not in early_ids
    assert "middle" in late_ids


def test_recent_events_are_excluded(catalog):
    rng = get_seeded_rng(11)
    context = PlayerContext(day=25, phase=1, history=_history("chaos_only", "everywhere"))

    picks = {select_event(catalog, context, rng).id for _ in range(200)}

    assert picks == {"middle"}


def test_only_last_n_history_entries_are_excluded():
    catalog = EventCatalog.load([make_event(f"e{i}") for i in range(7)])
    rng = get_seeded_rng(5)
    # e0 and e1 fall outside the window of 5
    context = PlayerContext(history=_history("e0", "e1", "e2", "e3", "e4", "e5", "e6"))

    picks = {select_event(catalog, context, rng, recent_window=5).id for _ in range(200)}

    assert picks == {"e0", "e1"}


def test_all_recent_falls_back_to_phase_pool():
    ids = [f"e{i}" for i in range(5)]
    catalog = EventCatalog.load([make_event(event_id) for event_id in ids])
    selector = EventSelector(catalog, recent_window=5)
    context = PlayerContext(history=_history(*ids))

    selection = selector.select(context, get_seeded_rng(1))

    assert selection.stage is PoolStage.PHASE
    assert selection.escalated
    assert selection.event.id in ids


def test_phase_fallback_ignores_conditions():
    catalog = EventCatalog.load([
        make_event("locked", phase=2, conditions={"achievement": "never"}),
        make_event("elsewhere", phase=0),
    ])

    selection = EventSelector(catalog).select(PlayerContext(phase=2), get_seeded_rng(1))

    assert selection.stage is PoolStage.PHASE
    assert selection.event.id == "locked"


def test_no_phase_events_falls_back_to_whole_catalog():
    catalog = EventCatalog.load([make_event("a", phase=0), make_event("b", phase=1)])
    rng = get_seeded_rng(2)

    selection = EventSelector(catalog).select(PlayerContext(phase=3), rng)

    assert selection.stage is PoolStage.CATALOG
    assert selection.pool_size == 2
    assert selection.event.id in {"a", "b"}


def test_non_empty_pool_never_escalates(catalog):
    selection = EventSelector(catalog).select(PlayerContext(phase=0), get_seeded_rng(9))

    assert selection.stage is PoolStage.FILTERED
    assert selection.pool_size == 2


def test_weighted_selection_frequency():
    catalog = EventCatalog.load([make_event("A", weight=1), make_event("B", weight=3)])
    rng = get_seeded_rng(2024)
    context = PlayerContext()
    draws = 10_000

    counts = Counter(select_event(catalog, context, rng, recent_window=0).id for _ in range(draws))

    assert counts["A"] + counts["B"] == draws
    assert counts["B"] / draws == pytest.approx(0.75, abs=0.02)
    assert binomtest(counts["B"], draws, 0.75).pvalue > 0.001


def test_weighted_pick_covers_every_slot():
    catalog = EventCatalog.load([make_event("A", weight=1), make_event("B", weight=2)])
    events = catalog.all_events()

    class Cycling:
        def __init__(self):
            self.next_value = 0

        def randrange(self, stop):
            value = self.next_value % stop
            self.next_value += 1
            return value

    rng = Cycling()
    assert [weighted_pick(events, rng).id for _ in range(3)] == ["A", "B", "B"]


def test_weighted_pick_empty_pool():
    with pytest.raises(ValueError):
        weighted_pick([], get_seeded_rng(1))


def test_same_seed_same_sequence(catalog):
    context = PlayerContext(day=20, phase=1)
    rng_a, rng_b = get_seeded_rng(99), get_seeded_rng(99)

    seq_a = [select_event(catalog, context, rng_a).id for _ in range(30)]
    seq_b = [select_event(catalog, context, rng_b).id for _ in range(30)]

    assert seq_a == seq_b


def test_empty_catalog_returns_fallback_event():
    catalog = EventCatalog.load([])

    event = select_event(catalog, PlayerContext(), get_seeded_rng(1))

    assert event is FALLBACK_EVENT
    assert len(event.choices) == 1
    assert dict(event.choices[0].effects) == {}


def test_unloaded_catalog_returns_fallback_event():
    selection = EventSelector(EventCatalog()).select(PlayerContext(), get_seeded_rng(1))

    assert selection.stage is PoolStage.FALLBACK
    assert selection.event is FALLBACK_EVENT


def test_unloaded_catalog_raises_in_strict_mode():
    with pytest.raises(CatalogNotReadyError):
        EventSelector(EventCatalog(), strict=True).select(PlayerContext(), get_seeded_rng(1))


def test_selection_does_not_mutate_inputs(catalog):
    history = _history("everywhere")
    context = PlayerContext(day=20, phase=1, history=history)
    before = catalog.all_events()

    select_event(catalog, context, get_seeded_rng(4))

    assert catalog.all_events() == before
    assert context.history == history
