from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple, Union

from ..core.ids import EventId

# Either a plain string or a mapping of locale code -> string, e.g. {"fr": "...", "en": "..."}
LocalizedText = Union[str, Mapping[str, str]]


@dataclass(frozen=True)
class Bound:
    """Inclusive numeric range. A side left as None is not constrained; 0 is a real bound."""
    min: Optional[float] = None
    max: Optional[float] = None

    def contains(self, value: float) -> bool:
        if self.min is not None and value < self.min:
            return False
        if self.max is not None and value > self.max:
            return False
        return True

    def to_dict(self) -> Dict[str, float]:
        data = {}
        if self.min is not None:
            data["min"] = self.min
        if self.max is not None:
            data["max"] = self.max
        return data


@dataclass(frozen=True)
class Conditions:
    balance: Optional[Bound] = None
    day: Optional[Bound] = None
    stats: Mapping[str, Bound] = field(default_factory=dict)
    quest_completed: Optional[str] = None
    achievement: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.balance is not None:
            data["balance"] = self.balance.to_dict()
        if self.day is not None:
            data["day"] = self.day.to_dict()
        if self.stats:
            data["stats"] = {stat: bound.to_dict() for stat, bound in self.stats.items()}
        if self.quest_completed is not None:
            data["questCompleted"] = self.quest_completed
        if self.achievement is not None:
            data["achievement"] = self.achievement
        return data


@dataclass(frozen=True)
class Choice:
    label: LocalizedText
    effects: Mapping[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class Event:
    id: EventId
    text: LocalizedText
    choices: Tuple[Choice, ...]
    # None means the event is available in every phase
    phase: Optional[FrozenSet[int]] = None
    conditions: Optional[Conditions] = None
    weight: int = 1
    tags: FrozenSet[str] = frozenset()

    def allows_phase(self, phase_id: int) -> bool:
        return self.phase is None or phase_id in self.phase

    def to_dict(self) -> Dict[str, Any]:
        """Serializes the event back to the catalog document shape."""
        data: Dict[str, Any] = {
            "id": self.id,
            "text": self.text if isinstance(self.text, str) else dict(self.text),
            "choices": [
                {
                    "label": choice.label if isinstance(choice.label, str) else dict(choice.label),
                    "effects": dict(choice.effects),
                }
                for choice in self.choices
            ],
        }
        if self.phase is not None:
            data["phase"] = sorted(self.phase)
        if self.conditions is not None:
            data["conditions"] = self.conditions.to_dict()
        if self.weight != 1:
            data["weight"] = self.weight
        if self.tags:
            data["tags"] = sorted(self.tags)
        return data


FALLBACK_EVENT_ID = EventId("fallback_event")

FALLBACK_EVENT = Event(
    id=FALLBACK_EVENT_ID,
    text={
        "fr": "Tu prends un moment pour réfléchir à ta journée...",
        "en": "You take a moment to reflect on your day...",
    },
    choices=(
        Choice(label={"fr": "Continuer", "en": "Continue"}, effects={}),
    ),
)
