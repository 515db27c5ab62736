from typing import List, Tuple

from ..core.log import AuditLog
from ..player.state import PlayerState


def generate_day_report(log: AuditLog, player: PlayerState) -> str:
    """
    Summarizes one day of play: the event drawn, how stats moved, and any
    quests, achievements or journal entries recorded.

    Args:
        log: The AuditLog collected by the game for the day.
        player: The player after the day's choice was applied.

    Returns:
        A string containing the formatted report.
    """
    report = f"--- Day {log.entries[0].day if log.entries else player.day} ---\n"

    for entry in log.of_type("event.selected"):
        report += f"Event: {entry.event_id}"
        if entry.details.get("stage") != "filtered":
            report += f" (fallback: {entry.details.get('stage')} pool)"
        report += "\n"

    changes: List[Tuple[str, float]] = [
        (entry.details["stat"], entry.delta) for entry in log.of_type("stats.changed")
    ]
    # Largest swings first
    changes.sort(key=lambda x: abs(x[1]), reverse=True)
    if not changes:
        report += "No stat changes.\n"
    else:
        for stat, delta in changes:
            report += f"  {stat.capitalize()}: {delta:+.0f}\n"

    for entry in log.of_type("quest.") + log.of_type("achievement.") + log.of_type("journal."):
        report += f"{entry.reason}\n"

    stats_line = ", ".join(f"{name} {value}" for name, value in player.stats.items())
    report += f"Stats: {stats_line}\n"
    report += f"Balance: {player.global_balance():.1f} ({player.phase_name()})\n"
    return report
