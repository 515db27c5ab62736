from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from ..core.ids import PhaseId


@dataclass(frozen=True)
class PhaseDef:
    id: PhaseId
    name: str
    min_day: int
    max_day: Optional[int] = None  # None means unbounded above

    def contains(self, day: int) -> bool:
        if day < self.min_day:
            return False
        return self.max_day is None or day <= self.max_day


DEFAULT_PHASES: Tuple[PhaseDef, ...] = (
    PhaseDef(id=PhaseId(0), name="awakening", min_day=1, max_day=14),
    PhaseDef(id=PhaseId(1), name="chaos", min_day=15, max_day=29),
    PhaseDef(id=PhaseId(2), name="quest", min_day=30, max_day=49),
    PhaseDef(id=PhaseId(3), name="harmony", min_day=50, max_day=None),
)

DEFAULT_PHASE_ID = PhaseId(0)
DEFAULT_PHASE_NAME = "awakening"


class PhaseTableError(ValueError):
    """Raised when a phase table does not cover every day from 1 without gaps."""
    pass


def validate_phase_table(phases: Sequence[PhaseDef]) -> None:
    """
    Checks that the table starts at day 1, is contiguous, has unique ids and
    ends with an unbounded entry.
    """
    if not phases:
        raise PhaseTableError("Phase table must contain at least one phase.")

    seen_ids = set()
    expected_start = 1
    for index, phase in enumerate(phases):
        if phase.id in seen_ids:
            raise PhaseTableError(f"Duplicate phase id {phase.id} ('{phase.name}').")
        seen_ids.add(phase.id)

        if phase.min_day != expected_start:
            raise PhaseTableError(
                f"Phase '{phase.name}' starts at day {phase.min_day}, expected {expected_start}."
            )
        is_last = index == len(phases) - 1
        if phase.max_day is None:
            if not is_last:
                raise PhaseTableError(f"Only the last phase may be unbounded, not '{phase.name}'.")
            break
        if phase.max_day < phase.min_day:
            raise PhaseTableError(f"Phase '{phase.name}' ends before it starts.")
        if is_last:
            raise PhaseTableError(f"Last phase '{phase.name}' must be unbounded above.")
        expected_start = phase.max_day + 1


def resolve_phase(day: int, phases: Sequence[PhaseDef] = DEFAULT_PHASES) -> PhaseId:
    """Maps a day number to its phase id, defaulting to the first phase."""
    if day < 1:
        return DEFAULT_PHASE_ID
    for phase in phases:
        if phase.contains(day):
            return phase.id
    return DEFAULT_PHASE_ID


def phase_name(phase_id: int, phases: Sequence[PhaseDef] = DEFAULT_PHASES) -> str:
    for phase in phases:
        if phase.id == phase_id:
            return phase.name
    return DEFAULT_PHASE_NAME
