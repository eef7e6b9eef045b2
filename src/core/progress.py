"""
TaskClarify SOP Engine — Progress Tracking.

Step completion drives the procedure lifecycle:

    scheduled -> in-progress -> completed
    (any) -> archived   (terminal)

Lookup misses are not errors: every function returns None and the caller
decides whether that matters. The UI may well hold ids of procedures that
were deleted meanwhile.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from src.data.models import (
    STATUS_ARCHIVED,
    STATUS_COMPLETED,
    STATUS_IN_PROGRESS,
)

if TYPE_CHECKING:
    from src.data.models import ScheduledProcedure
    from src.data.sop_store import SOPStore

logger = logging.getLogger(__name__)


def derive_status(sop: ScheduledProcedure) -> str:
    """Status implied by the step flags and cursor."""
    if sop.status == STATUS_ARCHIVED:
        return STATUS_ARCHIVED
    if sop.steps and all(step.completed for step in sop.steps):
        return STATUS_COMPLETED
    if sop.current_step_index > 0:
        return STATUS_IN_PROGRESS
    return sop.status


def furthest_completed_cursor(sop: ScheduledProcedure) -> int:
    """1 + index of the last completed step in sequence order, 0 if none."""
    cursor = 0
    for index, step in enumerate(sop.steps):
        if step.completed:
            cursor = index + 1
    return cursor


def mark_step_complete(
    store: SOPStore, sop_id: str, step_id: str,
) -> ScheduledProcedure | None:
    """Complete a step, advance the cursor, refresh status, silence its reminder.

    Calling it again for the same step leaves the record unchanged.
    """
    sop = store.get(sop_id)
    if sop is None:
        logger.debug("mark_step_complete: SOP %s not found", sop_id)
        return None
    if sop.status == STATUS_ARCHIVED:
        logger.info("mark_step_complete: SOP %s is archived, ignoring", sop_id)
        return None

    step = sop.find_step(step_id)
    if step is None:
        logger.debug("mark_step_complete: step %s not in SOP %s", step_id, sop_id)
        return None

    step.completed = True
    sop.current_step_index = furthest_completed_cursor(sop)
    sop.status = derive_status(sop)

    reminder = sop.find_reminder(step_id)
    if reminder is not None:
        reminder.triggered = True

    logger.info(
        "Step %s of SOP %s completed (cursor=%d, status=%s)",
        step_id, sop_id, sop.current_step_index, sop.status,
    )
    return store.update(sop_id, {
        "steps": sop.steps,
        "current_step_index": sop.current_step_index,
        "status": sop.status,
        "reminders": sop.reminders,
    })


def mark_reminder_triggered(
    store: SOPStore, sop_id: str, step_id: str,
) -> ScheduledProcedure | None:
    """Flag a step's reminder as fired so it never fires again."""
    sop = store.get(sop_id)
    if sop is None:
        return None

    reminder = sop.find_reminder(step_id)
    if reminder is None:
        return None

    if reminder.triggered:
        return sop

    reminder.triggered = True
    return store.update(sop_id, {"reminders": sop.reminders})


def archive_sop(store: SOPStore, sop_id: str) -> ScheduledProcedure | None:
    """Move a procedure to the terminal archived status."""
    sop = store.get(sop_id)
    if sop is None:
        return None
    if sop.status == STATUS_ARCHIVED:
        return sop

    logger.info("SOP %s archived (was %s)", sop_id, sop.status)
    return store.update(sop_id, {"status": STATUS_ARCHIVED})
