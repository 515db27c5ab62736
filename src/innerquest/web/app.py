import logging
import os
from pathlib import Path
import threading
from typing import Any, Dict, Optional, Union

from flask import Flask, current_app, jsonify, request

from ..core.config import DEFAULT_CONFIG, GameConfig, load_config
from ..core.errors import GameStateError, InnerQuestError
from ..core.game import Game
from ..core.rng import get_seeded_rng
from ..i18n.text import localize_event, resolve_locale
from ..io.save_load import SaveFormatError
from ..io.storage import SaveStore

logger = logging.getLogger(__name__)

# Project root /data, unless overridden
DATA_PATH = Path(os.environ.get("INNERQUEST_DATA_DIR", Path(__file__).resolve().parents[3] / "data"))
SAVE_PATH = Path(os.environ.get("INNERQUEST_SAVE_DIR", Path.home() / ".innerquest"))


class GameController:
    """Serializes access to a single Game shared by all requests."""

    def __init__(self, game: Game):
        self._lock = threading.RLock()
        self._game = game

    def lock(self):
        return self._lock

    @property
    def game(self) -> Game:
        return self._game


def _controller() -> GameController:
    return current_app.extensions["innerquest"]


def _locale(game: Game) -> str:
    requested = request.args.get("locale")
    if requested is None and game.store is not None:
        requested = game.store.get_settings().get("locale")
    return resolve_locale(requested or game.config.default_locale, game.config)


def _state_payload(game: Game) -> Dict[str, Any]:
    return {
        "initialized": game.is_initialized,
        "hasPlayer": game.player is not None,
        "hasSave": game.store.has_save() if game.store is not None else False,
        "paused": game.is_paused,
        "over": game.is_over,
        "awaitingJournal": game.choice_made,
        "player": game.player.summary() if game.player is not None else None,
        "currentEvent": localize_event(game.current_event, _locale(game), game.config) if game.current_event else None,
    }


def create_app(
    data_dir: Optional[Union[str, Path]] = None,
    save_dir: Optional[Union[str, Path]] = None,
    seed: Optional[int] = None,
    config: Optional[GameConfig] = None,
) -> Flask:
    """
    Builds the HTTP app. The event catalog is loaded here, before any request
    is served; a CatalogLoadError aborts app creation.
    """
    data_path = Path(data_dir) if data_dir is not None else DATA_PATH
    if config is None:
        config_file = data_path / "config.yaml"
        config = load_config(config_file) if config_file.exists() else DEFAULT_CONFIG

    store = SaveStore(Path(save_dir) if save_dir is not None else SAVE_PATH, config)
    game = Game(config=config, store=store, rng=get_seeded_rng(seed))
    game.initialize(data_path / "events.json")

    app = Flask(__name__)
    app.extensions["innerquest"] = GameController(game)

    @app.errorhandler(InnerQuestError)
    def handle_game_error(error: InnerQuestError):
        status = 409 if isinstance(error, GameStateError) else 400
        logger.warning("Request failed: %s", error)
        return jsonify({"error": str(error), "type": type(error).__name__}), status

    @app.route('/api/state')
    def get_state():
        controller = _controller()
        with controller.lock():
            return jsonify(_state_payload(controller.game))

    @app.route('/api/game/new', methods=['POST'])
    def new_game():
        controller = _controller()
        with controller.lock():
            controller.game.new_game()
            return jsonify(_state_payload(controller.game))

    @app.route('/api/game/continue', methods=['POST'])
    def continue_game():
        controller = _controller()
        with controller.lock():
            if not controller.game.load():
                return jsonify({"error": "No saved game"}), 404
            return jsonify(_state_payload(controller.game))

    @app.route('/api/game/restart', methods=['POST'])
    def restart_game():
        controller = _controller()
        data = request.get_json(silent=True) or {}
        with controller.lock():
            if not controller.game.restart(confirm=bool(data.get("confirm"))):
                return jsonify({"error": "Restart requires confirmation"}), 400
            return jsonify(_state_payload(controller.game))

    @app.route('/api/event')
    def get_event():
        controller = _controller()
        with controller.lock():
            game = controller.game
            if game.current_event is None:
                return jsonify({"error": "No current event"}), 404
            return jsonify(localize_event(game.current_event, _locale(game), game.config))

    @app.route('/api/choice', methods=['POST'])
    def select_choice():
        data = request.get_json(silent=True) or {}
        index = data.get("index")
        if not isinstance(index, int) or isinstance(index, bool):
            return jsonify({"error": "Missing integer 'index'"}), 400
        controller = _controller()
        with controller.lock():
            outcome = controller.game.select_choice(index)
            return jsonify({
                "eventId": outcome.event.id,
                "choiceIndex": outcome.choice_index,
                "effects": dict(outcome.choice.effects),
                "stats": outcome.stats,
                "globalBalance": outcome.global_balance,
            })

    @app.route('/api/journal', methods=['POST'])
    def submit_journal():
        data = request.get_json(silent=True) or {}
        text = data.get("text", "")
        if not isinstance(text, str):
            return jsonify({"error": "'text' must be a string"}), 400
        controller = _controller()
        with controller.lock():
            controller.game.submit_journal(text)
            return jsonify(_state_payload(controller.game))

    @app.route('/api/stats')
    def get_stats():
        controller = _controller()
        with controller.lock():
            stats = controller.game.game_stats()
            if stats is None:
                return jsonify({"error": "No game in progress"}), 404
            return jsonify(stats)

    @app.route('/api/catalog/stats')
    def get_catalog_stats():
        controller = _controller()
        with controller.lock():
            return jsonify(controller.game.catalog.statistics().to_dict())

    @app.route('/api/save/export')
    def export_save():
        controller = _controller()
        with controller.lock():
            game = controller.game
            if game.player is None:
                return jsonify({"error": "No game in progress"}), 404
            return jsonify(game.store.export_payload(game.player))

    @app.route('/api/save/import', methods=['POST'])
    def import_save():
        data = request.get_json(silent=True)
        if data is None:
            raise SaveFormatError("Request body must be a JSON save file.")
        controller = _controller()
        with controller.lock():
            game = controller.game
            player = game.store.import_save(data)
            game.restore_game(player)
            game.save()
            return jsonify(_state_payload(game))

    @app.route('/api/settings', methods=['GET', 'POST'])
    def settings():
        controller = _controller()
        with controller.lock():
            store = controller.game.store
            if request.method == 'POST':
                data = request.get_json(silent=True)
                if not isinstance(data, dict):
                    return jsonify({"error": "Settings must be a JSON object"}), 400
                merged = store.get_settings()
                merged.update(data)
                if "locale" in data:
                    merged["locale"] = resolve_locale(str(data["locale"]), controller.game.config)
                store.save_settings(merged)
            return jsonify(store.get_settings())

    return app


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    create_app().run(debug=True)
