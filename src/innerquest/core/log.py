from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .ids import EventId


@dataclass
class AuditEntry:
    type: str
    day: int
    event_id: Optional[EventId] = None
    delta: float = 0.0
    reason: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)


class AuditLog:
    def __init__(self):
        self.entries: List[AuditEntry] = []

    def add_entry(
        self,
        type: str,
        day: int,
        event_id: Optional[EventId] = None,
        delta: float = 0.0,
        reason: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        entry = AuditEntry(
            type=type,
            day=day,
            event_id=event_id,
            delta=delta,
            reason=reason,
            details=details or {},
        )
        self.entries.append(entry)

    def of_type(self, prefix: str) -> List[AuditEntry]:
        return [entry for entry in self.entries if entry.type.startswith(prefix)]
