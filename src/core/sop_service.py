"""
TaskClarify SOP Engine — SOP Service.

Glue for the generate -> schedule flow: ask the generator for a procedure,
then anchor it at the user's chosen start time in the store.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.data.models import ScheduledProcedure
    from src.data.sop_store import SOPStore
    from src.ports.generation_port import ProcedureGenerator

logger = logging.getLogger(__name__)


async def generate_and_schedule(
    generator: ProcedureGenerator,
    store: SOPStore,
    notes: str,
    start_time: datetime,
) -> ScheduledProcedure:
    """Generate an SOP from free-text notes and schedule it at start_time.

    GenerationError from the generator propagates unchanged; nothing is
    stored in that case.
    """
    procedure = await generator.generate(notes)
    if not procedure.steps:
        logger.warning("Generator returned SOP '%s' without steps", procedure.name)
    return store.save(procedure, start_time)
