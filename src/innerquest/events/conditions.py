from __future__ import annotations
from typing import TYPE_CHECKING, Iterable, List

if TYPE_CHECKING:
    from .context import PlayerContext
    from .model import Conditions, Event


def check_conditions(conditions: Conditions, context: PlayerContext) -> bool:
    """
    Evaluates an event's condition set against the player context.
    Predicates are checked in a fixed order (balance, day, stats, quest,
    achievement) and the first failure short-circuits.
    """
    if conditions.balance is not None and not conditions.balance.contains(context.balance):
        return False

    if conditions.day is not None and not conditions.day.contains(context.day):
        return False

    for stat, bound in conditions.stats.items():
        # A stat the player does not have counts as 0
        if not bound.contains(context.stats.get(stat, 0)):
            return False

    if conditions.quest_completed is not None and conditions.quest_completed not in context.completed_quests:
        return False

    if conditions.achievement is not None and conditions.achievement not in context.achievements:
        return False

    return True


def event_conditions_met(event: Event, context: PlayerContext) -> bool:
    if event.conditions is None:
        return True
    return check_conditions(event.conditions, context)


def filter_by_conditions(events: Iterable[Event], context: PlayerContext) -> List[Event]:
    return [event for event in events if event_conditions_met(event, context)]
