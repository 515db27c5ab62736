import json
from pathlib import Path
from typing import Any, Dict, List

import pytest

from innerquest.core.config import GameConfig
from innerquest.core.rng import get_seeded_rng
from innerquest.events.catalog import EventCatalog

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DATA_PATH = PROJECT_ROOT / "data"


def make_event(event_id: str, **overrides: Any) -> Dict[str, Any]:
    """Raw event definition in catalog-document shape, with one no-op choice by default."""
    data: Dict[str, Any] = {
        "id": event_id,
        "text": {"fr": f"Texte {event_id}", "en": f"Text {event_id}"},
        "choices": [
            {"label": {"fr": "Oui", "en": "Yes"}, "effects": {"energie": 5, "mental": -2}},
            {"label": {"fr": "Non", "en": "No"}, "effects": {}},
        ],
    }
    data.update(overrides)
    return data


@pytest.fixture
def raw_events() -> List[Dict[str, Any]]:
    return [
        make_event("everywhere"),
        make_event("awakening_only", phase=0, tags=["intro"]),
        make_event("chaos_only", phase=1, weight=3, tags=["stress", "intro"]),
        make_event("middle", phase=[1, 2], conditions={"day": {"min": 20}}),
        make_event("harmony_only", phase=3, conditions={"balance": {"min": 60}}),
    ]


@pytest.fixture
def catalog(raw_events) -> EventCatalog:
    return EventCatalog.load(raw_events)


@pytest.fixture
def events_file(tmp_path, raw_events) -> Path:
    path = tmp_path / "events.json"
    path.write_text(json.dumps(raw_events), encoding="utf-8")
    return path


@pytest.fixture
def rng():
    return get_seeded_rng(1234)


@pytest.fixture
def config() -> GameConfig:
    return GameConfig()
