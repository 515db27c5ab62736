import pytest

from innerquest.core.config import GameConfig
from innerquest.player.state import PlayerState


def test_new_player_defaults():
    player = PlayerState()

    assert player.day == 1
    assert player.phase == 0
    assert player.stats == {"energie": 50, "mental": 50, "emotionnel": 50, "spiritualite": 50}
    assert player.global_balance() == pytest.approx(50.0)


def test_effects_are_clamped():
    player = PlayerState()

    player.apply_effects({"energie": 80, "mental": -75})

    assert player.stats["energie"] == 100
    assert player.stats["mental"] == 0


def test_unknown_stat_ignored():
    player = PlayerState()

    player.apply_effects({"courage": 10})

    assert "courage" not in player.stats


def test_global_balance_is_mean():
    player = PlayerState(stats={"energie": 10, "mental": 20, "emotionnel": 30, "spiritualite": 40})

    assert player.global_balance() == pytest.approx(25.0)


def test_next_day_updates_phase():
    player = PlayerState(day=14)

    player.next_day()

    assert player.day == 15
    assert player.phase == 1
    assert player.phase_name() == "chaos"


def test_history_is_trimmed():
    player = PlayerState(config=GameConfig(max_history_length=3))
    for i in range(5):
        player.record_choice(f"e{i}", 0, {})

    player.next_day()

    assert [h.event_id for h in player.history] == ["e2", "e3", "e4"]


def test_record_choice_and_journal():
    player = PlayerState(day=3)

    player.record_choice("morning_light", 1, {"energie": 2})
    player.add_journal_entry("Good day")

    assert player.history[0].day == 3
    assert player.history[0].effects == {"energie": 2}
    assert player.history[0].timestamp > 0
    assert player.journal[0].text == "Good day"


def test_quest_lifecycle():
    player = PlayerState(day=4)

    assert player.add_quest("first_steps")
    assert not player.add_quest("first_steps")
    assert not player.update_quest_progress("first_steps", 40)
    assert player.active_quests[0].progress == 40
    assert player.update_quest_progress("first_steps", 150)

    assert player.active_quests == []
    assert player.completed_quest_ids() == ["first_steps"]
    assert player.completed_quests[0].completed_at == 4
    assert player.completed_quests[0].progress == 100


def test_unknown_quest_progress_ignored():
    assert not PlayerState().update_quest_progress("nope", 100)


def test_achievements_unlock_once():
    player = PlayerState()

    assert player.unlock_achievement("balanced_week")
    assert not player.unlock_achievement("balanced_week")
    assert player.has_achievement("balanced_week")
    assert player.achievements == ["balanced_week"]


def test_context_snapshot_is_detached():
    player = PlayerState(day=20)
    player.update_phase()
    player.unlock_achievement("a1")
    player.add_quest("q1")
    player.complete_quest("q1")

    context = player.context()
    player.apply_effects({"energie": 10})
    player.record_choice("later", 0, {})

    assert context.day == 20
    assert context.phase == 1
    assert context.stats["energie"] == 50
    assert context.history == ()
    assert context.completed_quests == frozenset({"q1"})
    assert context.achievements == frozenset({"a1"})


def test_summary():
    player = PlayerState()
    player.update_playtime(90)

    summary = player.summary()

    assert summary["phase"] == "awakening"
    assert summary["totalPlaytime"] == 90
    assert summary["totalChoices"] == 0
