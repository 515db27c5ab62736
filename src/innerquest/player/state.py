from dataclasses import dataclass, field
import time
from typing import Any, Dict, List, Mapping, Optional

from ..core.config import DEFAULT_CONFIG, GameConfig
from ..core.ids import AchievementId, EventId, PhaseId, QuestId
from ..events.context import PlayerContext
from ..events.phases import phase_name, resolve_phase
from .model import HistoryEntry, JournalEntry, QuestProgress


def now_ms() -> int:
    return int(time.time() * 1000)


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


@dataclass
class PlayerState:
    config: GameConfig = field(default=DEFAULT_CONFIG, repr=False, compare=False)
    stats: Dict[str, int] = field(default_factory=dict)
    day: int = 1
    phase: PhaseId = PhaseId(0)
    history: List[HistoryEntry] = field(default_factory=list)
    journal: List[JournalEntry] = field(default_factory=list)
    active_quests: List[QuestProgress] = field(default_factory=list)
    completed_quests: List[QuestProgress] = field(default_factory=list)
    achievements: List[AchievementId] = field(default_factory=list)
    start_date: int = field(default_factory=now_ms)
    last_play_date: int = field(default_factory=now_ms)
    total_playtime: int = 0  # seconds

    def __post_init__(self):
        if not self.stats:
            self.stats = dict(self.config.initial_stats)

    def global_balance(self) -> float:
        """Arithmetic mean of the tracked stats (0-100)."""
        names = self.config.stat_names
        if not names:
            return 0.0
        return sum(self.stats.get(name, 0) for name in names) / len(names)

    def update_stat(self, stat: str, delta: int):
        # Effects on stats the player does not track are ignored
        if stat in self.stats:
            self.stats[stat] = int(clamp(self.stats[stat] + delta, self.config.stat_min, self.config.stat_max))

    def apply_effects(self, effects: Mapping[str, int]):
        for stat, delta in effects.items():
            self.update_stat(stat, delta)

    def next_day(self):
        self.day += 1
        self.update_phase()
        self.last_play_date = now_ms()
        if len(self.history) > self.config.max_history_length:
            self.history = self.history[-self.config.max_history_length:]

    def update_phase(self):
        self.phase = resolve_phase(self.day, self.config.phases)

    def phase_name(self) -> str:
        return phase_name(self.phase, self.config.phases)

    def add_journal_entry(self, text: str):
        self.journal.append(JournalEntry(day=self.day, text=text, timestamp=now_ms()))

    def record_choice(self, event_id: str, choice_index: int, effects: Mapping[str, int]):
        self.history.append(HistoryEntry(
            day=self.day,
            event_id=EventId(event_id),
            choice_index=choice_index,
            effects=dict(effects),
            timestamp=now_ms(),
        ))

    def add_quest(self, quest_id: str) -> bool:
        if any(q.id == quest_id for q in self.active_quests):
            return False
        self.active_quests.append(QuestProgress(id=QuestId(quest_id), progress=0.0, started_at=self.day))
        return True

    def update_quest_progress(self, quest_id: str, progress: float) -> bool:
        """Sets progress on an active quest. Returns True if this completed the quest."""
        quest = self._active_quest(quest_id)
        if quest is None:
            return False
        quest.progress = clamp(progress, 0, 100)
        if quest.progress >= 100:
            return self.complete_quest(quest_id)
        return False

    def complete_quest(self, quest_id: str) -> bool:
        quest = self._active_quest(quest_id)
        if quest is None:
            return False
        self.active_quests.remove(quest)
        quest.completed_at = self.day
        self.completed_quests.append(quest)
        return True

    def _active_quest(self, quest_id: str) -> Optional[QuestProgress]:
        for quest in self.active_quests:
            if quest.id == quest_id:
                return quest
        return None

    def completed_quest_ids(self) -> List[QuestId]:
        return [quest.id for quest in self.completed_quests]

    def unlock_achievement(self, achievement_id: str) -> bool:
        if achievement_id in self.achievements:
            return False
        self.achievements.append(AchievementId(achievement_id))
        return True

    def has_achievement(self, achievement_id: str) -> bool:
        return achievement_id in self.achievements

    def update_playtime(self, seconds: int):
        self.total_playtime += seconds

    def context(self) -> PlayerContext:
        """Builds a fresh, read-only snapshot for event selection."""
        return PlayerContext(
            day=self.day,
            phase=self.phase,
            balance=self.global_balance(),
            stats=dict(self.stats),
            history=tuple(self.history),
            completed_quests=frozenset(self.completed_quest_ids()),
            achievements=frozenset(self.achievements),
        )

    def summary(self) -> Dict[str, Any]:
        return {
            "day": self.day,
            "phase": self.phase_name(),
            "globalBalance": self.global_balance(),
            "stats": dict(self.stats),
            "totalChoices": len(self.history),
            "journalEntries": len(self.journal),
            "activeQuests": len(self.active_quests),
            "completedQuests": len(self.completed_quests),
            "achievements": len(self.achievements),
            "totalPlaytime": self.total_playtime,
            "startDate": self.start_date,
            "lastPlayDate": self.last_play_date,
        }
