from __future__ import annotations
from dataclasses import dataclass
import logging
import random
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, Union

from .bus import EventBus, Handler
from .config import DEFAULT_CONFIG, GameConfig
from .errors import GameStateError
from .log import AuditLog
from .rng import get_seeded_rng
from ..events.catalog import CatalogLoadError, EventCatalog
from ..events.model import Choice, Event
from ..events.selector import EventSelector, PoolStage
from ..io.save_load import SaveFormatError
from ..io.storage import SaveStore
from ..player.state import PlayerState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChoiceOutcome:
    event: Event
    choice_index: int
    choice: Choice
    stats: Dict[str, int]
    global_balance: float


class Game:
    """
    Orchestrates the day loop: pick an event, apply the chosen effects,
    journal, advance the day. Collaborators are notified through `on()`.
    """

    def __init__(
        self,
        config: GameConfig = DEFAULT_CONFIG,
        store: Optional[SaveStore] = None,
        rng: Optional[random.Random] = None,
        catalog: Optional[EventCatalog] = None,
    ):
        self.config = config
        self.store = store
        self.rng = rng if rng is not None else get_seeded_rng()
        self.catalog = catalog if catalog is not None else EventCatalog(phases=config.phases)
        self.selector = EventSelector.from_config(self.catalog, config)
        self.bus = EventBus()
        self.log = AuditLog()

        self.player: Optional[PlayerState] = None
        self.current_event: Optional[Event] = None
        self.choice_made = False
        self.is_paused = False
        self.is_over = False

    @property
    def is_initialized(self) -> bool:
        return self.catalog.is_ready

    # --- Observers ---

    def on(self, name: str, callback: Handler):
        self.bus.subscribe(name, callback)

    def off(self, name: str, callback: Handler) -> bool:
        return self.bus.unsubscribe(name, callback)

    def emit(self, name: str, data: Optional[Dict[str, Any]] = None):
        logger.debug("Game event emitted: %s", name)
        self.bus.publish(name, data or {})

    # --- Lifecycle ---

    def initialize(self, source: Union[str, Path, Sequence[Mapping[str, Any]]]):
        """Loads the event catalog. Must succeed before any day can start."""
        logger.info("Initializing game...")
        try:
            self.catalog = EventCatalog.load(source, phases=self.config.phases)
        except CatalogLoadError as e:
            logger.critical("Failed to load events: %s (event=%s, field=%s)", e, e.event_id, e.field)
            if self.store is not None:
                # Keep a copy of the player's progress before the caller aborts startup
                try:
                    self.store.create_backup()
                except OSError:
                    logger.exception("Failed to back up save after catalog load failure")
            raise
        self.selector = EventSelector.from_config(self.catalog, self.config)
        self.emit("initialized", {"events": len(self.catalog)})

    def new_game(self) -> Event:
        logger.info("Starting new game")
        self.player = PlayerState(config=self.config)
        self.current_event = None
        self.is_over = False
        self._persist()
        self.emit("new-game", {"player": self.player})
        return self.start_day()

    def restore_game(self, player: PlayerState) -> Optional[Event]:
        """Resumes a saved player. Returns None if the save is already at or past the last day."""
        logger.info("Restoring saved game at day %d", player.day)
        self.player = player
        self.current_event = None
        self.choice_made = False
        self.is_over = False
        self.emit("game-restored", {"player": self.player})
        if self.check_end_game():
            return None
        return self.start_day()

    def start_day(self) -> Event:
        player = self._require_player()
        if self.is_over:
            raise GameStateError("The game is over; start a new game to keep playing.")
        self.log = AuditLog()
        self.choice_made = False
        logger.info("Starting day %d", player.day)
        self.emit("day:start", {"day": player.day, "phase": player.phase_name()})

        selection = self.selector.select(player.context(), self.rng)
        if selection.stage is PoolStage.FALLBACK:
            logger.error("Events not loaded or empty, showing fallback event")
        elif selection.stage is PoolStage.PHASE:
            logger.warning("Event pool empty after filtering, using all phase events")
        elif selection.stage is PoolStage.CATALOG:
            logger.warning("No events for phase %d, using all events", player.phase)

        self.log.add_entry(
            "event.selected",
            player.day,
            event_id=selection.event.id,
            reason=f"Event '{selection.event.id}' drawn from the {selection.stage.value} pool ({selection.pool_size} candidates).",
            details={"stage": selection.stage.value, "pool_size": selection.pool_size},
        )
        self.current_event = selection.event
        self.emit("event:display", {"event": self.current_event})
        return self.current_event

    def select_choice(self, choice_index: int) -> ChoiceOutcome:
        player = self._require_player()
        if self.is_over:
            raise GameStateError("The game is over; start a new game to keep playing.")
        if self.current_event is None:
            raise GameStateError("Cannot select choice: no current event.")
        if self.choice_made:
            raise GameStateError(f"A choice was already made for day {player.day}.")
        if not 0 <= choice_index < len(self.current_event.choices):
            raise GameStateError(f"Invalid choice index: {choice_index}")

        event = self.current_event
        choice = event.choices[choice_index]
        logger.info("Choice %d selected for event '%s'", choice_index, event.id)

        before = dict(player.stats)
        player.apply_effects(choice.effects)
        for stat, old_value in before.items():
            if player.stats[stat] != old_value:
                self.log.add_entry(
                    "stats.changed",
                    player.day,
                    event_id=event.id,
                    delta=player.stats[stat] - old_value,
                    reason=f"{stat} changed from {old_value} to {player.stats[stat]}.",
                    details={"stat": stat, "old": old_value, "new": player.stats[stat]},
                )
        player.record_choice(event.id, choice_index, choice.effects)
        self.choice_made = True

        outcome = ChoiceOutcome(
            event=event,
            choice_index=choice_index,
            choice=choice,
            stats=dict(player.stats),
            global_balance=player.global_balance(),
        )
        self.emit("choice:made", {"outcome": outcome})
        self._persist()
        self.end_day()
        return outcome

    def end_day(self):
        player = self._require_player()
        logger.info("Ending day %d", player.day)
        self.emit("day:end", {
            "day": player.day,
            "stats": dict(player.stats),
            "globalBalance": player.global_balance(),
        })

    def submit_journal(self, entry: str = "") -> Optional[Event]:
        """
        Records the journal entry (blank entries are skipped), advances to the
        next day and starts it. Returns the new day's event, or None once the
        game has ended.
        """
        player = self._require_player()
        if self.is_over:
            raise GameStateError("The game is over; no further journal entries are accepted.")
        if not self.choice_made:
            raise GameStateError(f"Day {player.day} has no choice yet; pick one before journaling.")

        text = entry.strip()
        if text:
            player.add_journal_entry(text)
            self.log.add_entry("journal.added", player.day, reason=f"Journal entry of {len(text)} characters.")

        player.next_day()
        self._persist()
        self.emit("journal:submitted", {"entry": text, "newDay": player.day})

        if self.check_end_game():
            return None
        return self.start_day()

    def pause(self):
        self.is_paused = True
        self.emit("paused")
        logger.info("Game paused")

    def resume(self):
        self.is_paused = False
        self.emit("resumed")
        logger.info("Game resumed")

    def update_playtime(self, seconds: int):
        if self.player is not None and not self.is_paused:
            self.player.update_playtime(seconds)

    # --- Persistence ---

    def _persist(self):
        if self.store is None or self.player is None:
            return
        try:
            self.store.save(self.player)
        except OSError:
            logger.exception("Failed to save game")

    def save(self) -> bool:
        if self.player is None or self.store is None:
            return False
        self.store.save(self.player)
        self.emit("saved")
        return True

    def load(self) -> bool:
        """Restores the stored game, if any. Corrupt saves are backed up and reported."""
        if self.store is None:
            return False
        try:
            player = self.store.load()
        except SaveFormatError:
            logger.exception("Failed to load game")
            self.store.create_backup()
            raise
        if player is None:
            return False
        self.restore_game(player)
        return True

    def restart(self, confirm: bool = False) -> bool:
        if not confirm:
            logger.warning("Restart called without confirmation")
            return False
        logger.info("Restarting game")
        if self.store is not None:
            self.store.create_backup()
            self.store.delete_save()
        self.new_game()
        self.emit("restarted")
        return True

    # --- Progression bookkeeping ---

    def add_quest(self, quest_id: str) -> bool:
        return self._require_player().add_quest(quest_id)

    def update_quest_progress(self, quest_id: str, progress: float) -> bool:
        player = self._require_player()
        completed = player.update_quest_progress(quest_id, progress)
        if completed:
            self.log.add_entry("quest.completed", player.day, reason=f"Quest '{quest_id}' completed.")
            self.emit("quest-completed", {"questId": quest_id})
        return completed

    def unlock_achievement(self, achievement_id: str) -> bool:
        player = self._require_player()
        unlocked = player.unlock_achievement(achievement_id)
        if unlocked:
            self.log.add_entry("achievement.unlocked", player.day, reason=f"Achievement '{achievement_id}' unlocked.")
            self.emit("achievement-unlocked", {"achievementId": achievement_id})
        return unlocked

    def check_end_game(self) -> bool:
        if self.player is None:
            return False
        if self.player.day >= self.config.max_days:
            self.is_over = True
            self.choice_made = False
            self.current_event = None
            self.emit("game:end", {"reason": "max-days", "day": self.player.day})
            return True
        return False

    def game_stats(self) -> Optional[Dict[str, Any]]:
        if self.player is None:
            return None
        stats = self.player.summary()
        stats["currentEvent"] = self.current_event.id if self.current_event else None
        stats["eventStatistics"] = self.catalog.statistics().to_dict() if self.catalog.is_ready else None
        return stats

    def _require_player(self) -> PlayerState:
        if self.player is None:
            raise GameStateError("No player: start a new game or load a save first.")
        return self.player
