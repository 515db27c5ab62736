from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
import random
from typing import TYPE_CHECKING, List, Sequence

import numpy as np

from .catalog import CatalogNotReadyError
from .conditions import filter_by_conditions
from .model import FALLBACK_EVENT, Event

if TYPE_CHECKING:
    from ..core.config import GameConfig
    from .catalog import EventCatalog
    from .context import PlayerContext

DEFAULT_RECENT_WINDOW = 5


class PoolStage(str, Enum):
    """Which candidate pool the selected event was drawn from."""
    FILTERED = "filtered"  # phase + conditions + recency
    PHASE = "phase"        # phase filter only
    CATALOG = "catalog"    # whole catalog
    FALLBACK = "fallback"  # catalog empty or not loaded


@dataclass(frozen=True)
class Selection:
    event: Event
    stage: PoolStage
    pool_size: int

    @property
    def escalated(self) -> bool:
        return self.stage is not PoolStage.FILTERED


def filter_by_phase(events: Sequence[Event], phase_id: int) -> List[Event]:
    return [event for event in events if event.allows_phase(phase_id)]


def exclude_recent(events: Sequence[Event], context: PlayerContext, window: int) -> List[Event]:
    recent_ids = context.recent_event_ids(window)
    if not recent_ids:
        return list(events)
    return [event for event in events if event.id not in recent_ids]


def weighted_pick(events: Sequence[Event], rng: random.Random) -> Event:
    """
    Draws one event with probability proportional to its weight. Equivalent to
    picking uniformly from a pool holding `weight` copies of each event, but
    uses cumulative weights and a binary search instead of materializing it.
    """
    if not events:
        raise ValueError("Cannot pick from an empty event pool.")
    cumulative = np.cumsum([event.weight for event in events])
    draw = rng.randrange(int(cumulative[-1]))
    index = int(np.searchsorted(cumulative, draw, side="right"))
    return events[index]


class EventSelector:
    def __init__(self, catalog: EventCatalog, recent_window: int = DEFAULT_RECENT_WINDOW, strict: bool = False):
        self.catalog = catalog
        self.recent_window = recent_window
        # In strict mode a not-ready catalog is a programming error rather than a degraded session
        self.strict = strict

    @classmethod
    def from_config(cls, catalog: EventCatalog, config: GameConfig) -> "EventSelector":
        return cls(catalog, recent_window=config.recent_events_exclusion, strict=config.debug)

    def select(self, context: PlayerContext, rng: random.Random) -> Selection:
        if not self.catalog.is_ready:
            if self.strict:
                raise CatalogNotReadyError("Event requested before the catalog finished loading.")
            return Selection(event=FALLBACK_EVENT, stage=PoolStage.FALLBACK, pool_size=0)

        all_events = self.catalog.all_events()
        if not all_events:
            return Selection(event=FALLBACK_EVENT, stage=PoolStage.FALLBACK, pool_size=0)

        # 1. phase, 2. conditions, 3. recency
        phase_pool = filter_by_phase(all_events, context.phase)
        pool = filter_by_conditions(phase_pool, context)
        pool = exclude_recent(pool, context, self.recent_window)
        stage = PoolStage.FILTERED

        # 4. escalate only when the pool is empty
        if not pool:
            pool, stage = phase_pool, PoolStage.PHASE
        if not pool:
            pool, stage = list(all_events), PoolStage.CATALOG

        # 5. weighted draw
        return Selection(event=weighted_pick(pool, rng), stage=stage, pool_size=len(pool))


def select_event(catalog: EventCatalog, context: PlayerContext, rng: random.Random,
                 recent_window: int = DEFAULT_RECENT_WINDOW, strict: bool = False) -> Event:
    """Returns exactly one event for the given player context. Never mutates catalog or context."""
    return EventSelector(catalog, recent_window=recent_window, strict=strict).select(context, rng).event
