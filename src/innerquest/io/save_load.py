import json
from typing import Any, Dict

from ..core.config import DEFAULT_CONFIG, GameConfig
from ..core.errors import InnerQuestError
from ..core.ids import AchievementId, PhaseId
from ..events.phases import resolve_phase
from ..player.model import HistoryEntry, JournalEntry, QuestProgress
from ..player.state import PlayerState


class SaveFormatError(InnerQuestError):
    """Raised when save data cannot be parsed into a player."""
    pass


def to_dict(player: PlayerState) -> Dict[str, Any]:
    """Converts the PlayerState to a dictionary for serialization."""
    return {
        "stats": dict(player.stats),
        "day": player.day,
        "phase": player.phase,
        "history": [entry.to_dict() for entry in player.history],
        "journal": [entry.to_dict() for entry in player.journal],
        "activeQuests": [quest.to_dict() for quest in player.active_quests],
        "completedQuests": [quest.to_dict() for quest in player.completed_quests],
        "achievements": list(player.achievements),
        "startDate": player.start_date,
        "lastPlayDate": player.last_play_date,
        "totalPlaytime": player.total_playtime,
    }


def from_dict(data: Dict[str, Any], config: GameConfig = DEFAULT_CONFIG) -> PlayerState:
    """Creates a PlayerState from a dictionary. Missing keys fall back to new-game values."""
    if not isinstance(data, dict):
        raise SaveFormatError(f"Player data must be an object, got {type(data).__name__}.")

    try:
        stats = dict(config.initial_stats)
        stats.update({str(k): int(v) for k, v in data.get('stats', {}).items()})
        day = int(data.get('day', 1))
        if day < 1:
            raise SaveFormatError(f"Invalid day in save data: {day}")

        player = PlayerState(
            config=config,
            stats=stats,
            day=day,
            phase=PhaseId(int(data['phase'])) if 'phase' in data else resolve_phase(day, config.phases),
            history=[HistoryEntry.from_dict(h) for h in data.get('history', [])],
            journal=[JournalEntry.from_dict(j) for j in data.get('journal', [])],
            active_quests=[QuestProgress.from_dict(q) for q in data.get('activeQuests', [])],
            completed_quests=[QuestProgress.from_dict(q) for q in data.get('completedQuests', [])],
            achievements=[AchievementId(a) for a in data.get('achievements', [])],
        )
        if 'startDate' in data:
            player.start_date = int(data['startDate'])
        if 'lastPlayDate' in data:
            player.last_play_date = int(data['lastPlayDate'])
        player.total_playtime = int(data.get('totalPlaytime', 0))
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise SaveFormatError(f"Invalid player data: {e}") from e

    for stat in player.stats:
        player.stats[stat] = max(config.stat_min, min(config.stat_max, player.stats[stat]))
    return player


def player_from_payload(payload: Any, config: GameConfig = DEFAULT_CONFIG) -> PlayerState:
    """Accepts the player either as an object or as a JSON string (the browser save format)."""
    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as e:
            raise SaveFormatError(f"Player payload is not valid JSON: {e}") from e
    return from_dict(payload, config)


def save_to_json(player: PlayerState, path: str):
    """Saves the player state to a JSON file."""
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(to_dict(player), f, indent=2)


def load_from_json(path: str, config: GameConfig = DEFAULT_CONFIG) -> PlayerState:
    """Loads the player state from a JSON file."""
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    return from_dict(data, config)
