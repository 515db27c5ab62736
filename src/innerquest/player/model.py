from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ..core.ids import EventId, QuestId


@dataclass
class HistoryEntry:
    day: int
    event_id: EventId
    choice_index: int
    effects: Dict[str, int] = field(default_factory=dict)
    timestamp: int = 0  # milliseconds since epoch

    def to_dict(self) -> Dict[str, Any]:
        return {
            "day": self.day,
            "eventId": self.event_id,
            "choiceIndex": self.choice_index,
            "effects": dict(self.effects),
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HistoryEntry":
        return cls(
            day=data.get("day", 1),
            event_id=EventId(data["eventId"]),
            choice_index=data.get("choiceIndex", 0),
            effects=dict(data.get("effects", {})),
            timestamp=data.get("timestamp", 0),
        )


@dataclass
class JournalEntry:
    day: int
    text: str
    timestamp: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"day": self.day, "text": self.text, "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "JournalEntry":
        return cls(day=data.get("day", 1), text=data.get("text", ""), timestamp=data.get("timestamp", 0))


@dataclass
class QuestProgress:
    id: QuestId
    progress: float = 0.0
    started_at: int = 1
    completed_at: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {"id": self.id, "progress": self.progress, "startedAt": self.started_at}
        if self.completed_at is not None:
            data["completedAt"] = self.completed_at
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "QuestProgress":
        # Older saves stored completed quests as bare ids
        if isinstance(data, str):
            return cls(id=QuestId(data), progress=100.0)
        return cls(
            id=QuestId(data["id"]),
            progress=data.get("progress", 0.0),
            started_at=data.get("startedAt", 1),
            completed_at=data.get("completedAt"),
        )
