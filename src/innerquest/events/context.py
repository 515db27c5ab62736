from dataclasses import dataclass, field
from typing import FrozenSet, Mapping, Sequence

from ..core.ids import AchievementId, QuestId
from ..player.model import HistoryEntry


@dataclass(frozen=True)
class PlayerContext:
    """Read-only snapshot of the player handed to the event selector."""
    day: int = 1
    phase: int = 0
    balance: float = 50.0
    stats: Mapping[str, float] = field(default_factory=dict)
    history: Sequence[HistoryEntry] = ()  # oldest first
    completed_quests: FrozenSet[QuestId] = frozenset()
    achievements: FrozenSet[AchievementId] = frozenset()

    def recent_event_ids(self, window: int) -> FrozenSet[str]:
        if window <= 0 or not self.history:
            return frozenset()
        return frozenset(entry.event_id for entry in list(self.history)[-window:])
