from __future__ import annotations
from dataclasses import dataclass, field
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union
import yaml

from ..core.errors import InnerQuestError
from ..core.ids import EventId
from .model import Bound, Choice, Conditions, Event
from .phases import DEFAULT_PHASES, PhaseDef

logger = logging.getLogger(__name__)


class CatalogLoadError(InnerQuestError):
    """Raised when the event source is unreachable, malformed, or an event fails validation."""

    def __init__(self, message: str, event_id: Optional[str] = None, field: Optional[str] = None):
        super().__init__(message)
        self.event_id = event_id
        self.field = field


class CatalogNotReadyError(InnerQuestError):
    """Raised when the catalog is queried before a successful load."""
    pass


@dataclass(frozen=True)
class CatalogStatistics:
    total: int
    with_conditions: int
    weighted: int
    tagged: int
    by_phase: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "byPhase": dict(self.by_phase),
            "withConditions": self.with_conditions,
            "weighted": self.weighted,
            "tagged": self.tagged,
        }


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _validate_localized(value: Any, event_id: str, field_name: str) -> Union[str, Dict[str, str]]:
    if isinstance(value, str) and value:
        return value
    if isinstance(value, dict) and value and all(
        isinstance(k, str) and isinstance(v, str) and v for k, v in value.items()
    ):
        return dict(value)
    raise CatalogLoadError(f"Event {event_id} missing or invalid '{field_name}'", event_id=event_id, field=field_name)


def _parse_bound(raw: Any, event_id: str, field_name: str) -> Bound:
    if not isinstance(raw, dict):
        raise CatalogLoadError(f"Event {event_id}: '{field_name}' must be an object with 'min'/'max'",
                               event_id=event_id, field=field_name)
    low, high = raw.get("min"), raw.get("max")
    for side, value in (("min", low), ("max", high)):
        if value is not None and not _is_number(value):
            raise CatalogLoadError(f"Event {event_id}: '{field_name}.{side}' must be a number",
                                   event_id=event_id, field=f"{field_name}.{side}")
    if low is not None and high is not None and low > high:
        raise CatalogLoadError(f"Event {event_id}: '{field_name}' has min greater than max",
                               event_id=event_id, field=field_name)
    return Bound(min=low, max=high)


def _parse_conditions(raw: Any, event_id: str) -> Conditions:
    if not isinstance(raw, dict):
        raise CatalogLoadError(f"Event {event_id}: 'conditions' must be an object", event_id=event_id, field="conditions")

    balance = _parse_bound(raw["balance"], event_id, "conditions.balance") if raw.get("balance") is not None else None
    day = _parse_bound(raw["day"], event_id, "conditions.day") if raw.get("day") is not None else None

    stats: Dict[str, Bound] = {}
    raw_stats = raw.get("stats")
    if raw_stats is not None:
        if not isinstance(raw_stats, dict):
            raise CatalogLoadError(f"Event {event_id}: 'conditions.stats' must be an object",
                                   event_id=event_id, field="conditions.stats")
        for stat, requirement in raw_stats.items():
            stats[str(stat)] = _parse_bound(requirement, event_id, f"conditions.stats.{stat}")

    quest = raw.get("questCompleted")
    achievement = raw.get("achievement")
    for field_name, value in (("questCompleted", quest), ("achievement", achievement)):
        if value is not None and not (isinstance(value, str) and value):
            raise CatalogLoadError(f"Event {event_id}: 'conditions.{field_name}' must be a non-empty string",
                                   event_id=event_id, field=f"conditions.{field_name}")

    return Conditions(balance=balance, day=day, stats=stats, quest_completed=quest, achievement=achievement)


def _parse_choice(raw: Any, event_id: str, choice_index: int) -> Choice:
    if not isinstance(raw, dict):
        raise CatalogLoadError(f"Event {event_id}, choice {choice_index}: must be an object",
                               event_id=event_id, field=f"choices[{choice_index}]")
    if not raw.get("label"):
        raise CatalogLoadError(f"Event {event_id}, choice {choice_index}: missing 'label'",
                               event_id=event_id, field=f"choices[{choice_index}].label")
    label = _validate_localized(raw["label"], event_id, f"choices[{choice_index}].label")

    effects = raw.get("effects")
    if not isinstance(effects, dict):
        raise CatalogLoadError(f"Event {event_id}, choice {choice_index}: missing 'effects'",
                               event_id=event_id, field=f"choices[{choice_index}].effects")
    for stat, delta in effects.items():
        if not _is_int(delta):
            raise CatalogLoadError(f"Event {event_id}, choice {choice_index}: effect '{stat}' must be an integer",
                                   event_id=event_id, field=f"choices[{choice_index}].effects.{stat}")
    return Choice(label=label, effects={str(stat): delta for stat, delta in effects.items()})


def parse_event(raw: Any, index: int) -> Event:
    """Validates one raw event definition and builds an Event. Raises CatalogLoadError on the first problem."""
    if not isinstance(raw, dict):
        raise CatalogLoadError(f"Event at index {index} must be an object", field="id")

    event_id = raw.get("id")
    if not (isinstance(event_id, str) and event_id):
        raise CatalogLoadError(f"Event at index {index} missing 'id'", field="id")

    if not raw.get("text"):
        raise CatalogLoadError(f"Event {event_id} missing 'text'", event_id=event_id, field="text")
    text = _validate_localized(raw["text"], event_id, "text")

    raw_choices = raw.get("choices")
    if not isinstance(raw_choices, list) or not raw_choices:
        raise CatalogLoadError(f"Event {event_id} missing valid 'choices' array", event_id=event_id, field="choices")
    choices = tuple(_parse_choice(c, event_id, i) for i, c in enumerate(raw_choices))

    phase = None
    raw_phase = raw.get("phase")
    if raw_phase is not None:
        if _is_int(raw_phase):
            phase = frozenset([raw_phase])
        elif isinstance(raw_phase, list) and all(_is_int(p) for p in raw_phase):
            phase = frozenset(raw_phase)
        else:
            raise CatalogLoadError(f"Event {event_id}: 'phase' must be an integer or a list of integers",
                                   event_id=event_id, field="phase")

    conditions = _parse_conditions(raw["conditions"], event_id) if raw.get("conditions") is not None else None

    weight = raw.get("weight", 1)
    if weight is None:
        weight = 1
    if not (_is_int(weight) and weight >= 1):
        raise CatalogLoadError(f"Event {event_id}: 'weight' must be a positive integer", event_id=event_id, field="weight")

    raw_tags = raw.get("tags") or []
    if not (isinstance(raw_tags, list) and all(isinstance(t, str) for t in raw_tags)):
        raise CatalogLoadError(f"Event {event_id}: 'tags' must be a list of strings", event_id=event_id, field="tags")

    return Event(
        id=EventId(event_id),
        text=text,
        choices=choices,
        phase=phase,
        conditions=conditions,
        weight=weight,
        tags=frozenset(raw_tags),
    )


class EventCatalog:
    def __init__(self, phases: Sequence[PhaseDef] = DEFAULT_PHASES):
        self._phases: Tuple[PhaseDef, ...] = tuple(phases)
        self._events: Tuple[Event, ...] = ()
        self._by_id: Dict[EventId, Event] = {}
        self._by_tag: Dict[str, List[Event]] = {}
        self._loaded = False

    @classmethod
    def load(cls, source: Union[str, Path, Sequence[Mapping[str, Any]]],
             phases: Sequence[PhaseDef] = DEFAULT_PHASES) -> "EventCatalog":
        """
        Builds a ready catalog from a JSON/YAML file path or from already
        parsed event definitions. Raises CatalogLoadError on any problem.
        """
        catalog = cls(phases=phases)
        if isinstance(source, (str, Path)):
            path = Path(source)
            if path.suffix.lower() in (".yaml", ".yml"):
                catalog.load_from_yaml(path)
            else:
                catalog.load_from_json(path)
        else:
            catalog.load_from_data(source, origin="<data>")
        return catalog

    def load_from_json(self, path: Path):
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except OSError as e:
            raise CatalogLoadError(f"Failed to read events from '{path}': {e}") from e
        except json.JSONDecodeError as e:
            raise CatalogLoadError(f"Malformed JSON in '{path}': {e}") from e
        self.load_from_data(data, origin=str(path))

    def load_from_yaml(self, path: Path):
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise CatalogLoadError(f"Failed to read events from '{path}': {e}") from e
        except yaml.YAMLError as e:
            raise CatalogLoadError(f"Malformed YAML in '{path}': {e}") from e
        if data is None:
            raise CatalogLoadError(f"YAML file '{path}' is empty or malformed.")
        self.load_from_data(data, origin=str(path))

    def load_from_data(self, data: Any, origin: str = "<data>"):
        if not isinstance(data, list):
            raise CatalogLoadError(f"Top level of {origin} must be a list of events.")

        # Build everything locally so a failure leaves the catalog empty
        self.reset()
        events: List[Event] = []
        by_id: Dict[EventId, Event] = {}
        by_tag: Dict[str, List[Event]] = {}
        for index, raw in enumerate(data):
            event = parse_event(raw, index)
            if event.id in by_id:
                raise CatalogLoadError(f"Duplicate event id '{event.id}' in {origin}", event_id=event.id, field="id")
            events.append(event)
            by_id[event.id] = event
            for tag in event.tags:
                by_tag.setdefault(tag, []).append(event)

        self._events = tuple(events)
        self._by_id = by_id
        self._by_tag = by_tag
        self._loaded = True
        logger.info("Loaded %d events from %s", len(events), origin)

    def reset(self):
        self._events = ()
        self._by_id = {}
        self._by_tag = {}
        self._loaded = False

    @property
    def is_ready(self) -> bool:
        return self._loaded

    @property
    def phases(self) -> Tuple[PhaseDef, ...]:
        return self._phases

    def __len__(self) -> int:
        return len(self._events)

    def _require_ready(self):
        if not self._loaded:
            raise CatalogNotReadyError("Event catalog queried before it was loaded.")

    def all_events(self) -> Tuple[Event, ...]:
        self._require_ready()
        return self._events

    def by_id(self, event_id: str) -> Optional[Event]:
        self._require_ready()
        return self._by_id.get(EventId(event_id))

    def by_phase(self, phase_id: int) -> List[Event]:
        self._require_ready()
        return [event for event in self._events if event.allows_phase(phase_id)]

    def by_tag(self, tag: str) -> List[Event]:
        self._require_ready()
        return list(self._by_tag.get(tag, []))

    def statistics(self) -> CatalogStatistics:
        self._require_ready()
        return CatalogStatistics(
            total=len(self._events),
            with_conditions=sum(1 for e in self._events if e.conditions is not None),
            weighted=sum(1 for e in self._events if e.weight > 1),
            tagged=sum(1 for e in self._events if e.tags),
            by_phase={phase.name: len(self.by_phase(phase.id)) for phase in self._phases},
        )
