from __future__ import annotations
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence

from .phases import PhaseDef

if TYPE_CHECKING:
    from .catalog import CatalogStatistics, EventCatalog
    from .model import Event


def get_events_by_phase(catalog: EventCatalog, phase_id: int) -> List[Event]:
    return catalog.by_phase(phase_id)


def count_events_by_phase(catalog: EventCatalog, phases: Optional[Sequence[PhaseDef]] = None) -> Dict[str, int]:
    """Maps each phase name to the number of events eligible in that phase."""
    table = catalog.phases if phases is None else phases
    return {phase.name: len(catalog.by_phase(phase.id)) for phase in table}


def get_statistics(catalog: EventCatalog) -> CatalogStatistics:
    return catalog.statistics()
