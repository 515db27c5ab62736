from __future__ import annotations
import json
import logging
import os
from pathlib import Path
import tempfile
from typing import Any, Callable, Dict, Optional, Union

from ..core.config import DEFAULT_CONFIG, GameConfig
from ..player.state import PlayerState, now_ms
from .save_load import SaveFormatError, player_from_payload, to_dict

logger = logging.getLogger(__name__)

SAVE_FILENAME = "innerquest_save.json"
BACKUP_FILENAME = "innerquest_save_backup.json"
SETTINGS_FILENAME = "innerquest_settings.json"

# Migration steps keyed by the version they upgrade *from*; each rewrites the raw player dict
Migration = Callable[[Dict[str, Any]], Dict[str, Any]]
MIGRATIONS: Dict[str, Migration] = {}


def _write_atomic(path: Path, payload: Dict[str, Any], indent: Optional[int] = None):
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            json.dump(payload, f, indent=indent)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


def _copy_atomic(source: Path, target: Path):
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, 'wb') as f:
            f.write(source.read_bytes())
        os.replace(tmp_name, target)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


def _read_json(path: Path) -> Any:
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


class SaveStore:
    """
    File-backed save slots: the current save, one backup and the user settings,
    all living in a single directory.
    """

    def __init__(self, directory: Union[str, Path], config: GameConfig = DEFAULT_CONFIG):
        self.directory = Path(directory)
        self.config = config
        self.version = config.save_version

    @property
    def save_path(self) -> Path:
        return self.directory / SAVE_FILENAME

    @property
    def backup_path(self) -> Path:
        return self.directory / BACKUP_FILENAME

    @property
    def settings_path(self) -> Path:
        return self.directory / SETTINGS_FILENAME

    def _envelope(self, player: PlayerState, exported: bool = False) -> Dict[str, Any]:
        envelope = {
            "version": self.version,
            "timestamp": now_ms(),
            "player": to_dict(player),
        }
        if exported:
            envelope["exported"] = True
        return envelope

    def save(self, player: PlayerState):
        _write_atomic(self.save_path, self._envelope(player))
        logger.debug("Game saved to %s", self.save_path)

    def has_save(self) -> bool:
        return self.save_path.exists()

    def load(self) -> Optional[PlayerState]:
        """Returns the saved player, or None if there is no save. Raises SaveFormatError on corrupt data."""
        if not self.has_save():
            logger.info("No save found in %s", self.directory)
            return None
        try:
            envelope = _read_json(self.save_path)
        except json.JSONDecodeError as e:
            raise SaveFormatError(f"Save file '{self.save_path}' is not valid JSON: {e}") from e
        player = self._player_from_envelope(envelope)
        if envelope.get("version") != self.version:
            # Persist the upgraded save so the migration only runs once
            self.save(player)
        return player

    def _player_from_envelope(self, envelope: Any) -> PlayerState:
        if not isinstance(envelope, dict) or "player" not in envelope:
            raise SaveFormatError("Invalid save file structure: missing 'player'.")
        if envelope.get("version") != self.version:
            logger.warning("Save version mismatch: %s vs %s", envelope.get("version"), self.version)
            return self.migrate(envelope)
        return player_from_payload(envelope["player"], self.config)

    def migrate(self, envelope: Dict[str, Any]) -> PlayerState:
        """Upgrades an older save envelope to the current version and returns its player."""
        version = envelope.get("version")
        logger.warning("Migrating save from version %s to %s", version, self.version)
        raw_player = envelope["player"]
        if isinstance(raw_player, str):
            try:
                raw_player = json.loads(raw_player)
            except json.JSONDecodeError as e:
                raise SaveFormatError(f"Player payload is not valid JSON: {e}") from e
        seen = set()
        while version in MIGRATIONS and version not in seen:
            seen.add(version)
            raw_player = MIGRATIONS[version](raw_player)
            version = raw_player.pop("_version", self.version)
        return player_from_payload(raw_player, self.config)

    def delete_save(self) -> bool:
        if not self.has_save():
            return False
        self.save_path.unlink()
        logger.info("Save deleted")
        return True

    def export_save(self, player: PlayerState, directory: Union[str, Path]) -> Path:
        """Writes a standalone, human-readable copy of the save and returns its path."""
        path = Path(directory) / f"innerquest-save-day{player.day}-{now_ms()}.json"
        _write_atomic(path, self._envelope(player, exported=True), indent=2)
        logger.info("Save exported to %s", path)
        return path

    def export_payload(self, player: PlayerState) -> Dict[str, Any]:
        return self._envelope(player, exported=True)

    def import_save(self, source: Union[str, Path, Dict[str, Any]]) -> PlayerState:
        """
        Reads an exported save from a file path (Path or str), raw JSON text or an
        already parsed envelope. The imported player is not persisted; callers
        decide when to save.
        """
        if isinstance(source, dict):
            envelope = source
        else:
            if isinstance(source, Path) or not source.lstrip().startswith("{"):
                try:
                    text = Path(source).read_text(encoding='utf-8')
                except OSError as e:
                    raise SaveFormatError(f"Cannot read save file '{source}': {e}") from e
            else:
                text = source
            try:
                envelope = json.loads(text)
            except json.JSONDecodeError as e:
                raise SaveFormatError(f"Imported save is not valid JSON: {e}") from e
        player = self._player_from_envelope(envelope)
        logger.info("Save imported (day %d)", player.day)
        return player

    def create_backup(self) -> bool:
        if not self.has_save():
            return False
        _copy_atomic(self.save_path, self.backup_path)
        logger.info("Backup created")
        return True

    def restore_backup(self) -> bool:
        if not self.backup_path.exists():
            return False
        _copy_atomic(self.backup_path, self.save_path)
        logger.info("Backup restored")
        return True

    def save_info(self) -> Optional[Dict[str, Any]]:
        if not self.has_save():
            return None
        try:
            envelope = _read_json(self.save_path)
        except json.JSONDecodeError as e:
            raise SaveFormatError(f"Save file '{self.save_path}' is not valid JSON: {e}") from e
        # Migrated in memory only; the file is left untouched
        player = self._player_from_envelope(envelope)
        return {
            "version": envelope.get("version"),
            "timestamp": envelope.get("timestamp"),
            "day": player.day,
            "phase": player.phase,
            "globalBalance": round(player.global_balance(), 1),
        }

    def default_settings(self) -> Dict[str, Any]:
        settings = dict(self.config.default_settings)
        settings["locale"] = self.config.default_locale
        return settings

    def save_settings(self, settings: Dict[str, Any]):
        _write_atomic(self.settings_path, dict(settings))
        logger.debug("Settings saved")

    def load_settings(self) -> Optional[Dict[str, Any]]:
        if not self.settings_path.exists():
            return None
        try:
            data = _read_json(self.settings_path)
        except json.JSONDecodeError as e:
            raise SaveFormatError(f"Settings file '{self.settings_path}' is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise SaveFormatError("Settings file must contain an object.")
        return data

    def get_settings(self) -> Dict[str, Any]:
        """Saved settings merged over the defaults, so new settings keys always exist."""
        settings = self.default_settings()
        saved = self.load_settings()
        if saved:
            settings.update(saved)
        return settings

    def clear_all(self):
        for path in (self.save_path, self.settings_path, self.backup_path):
            if path.exists():
                path.unlink()
        logger.info("All data cleared")
