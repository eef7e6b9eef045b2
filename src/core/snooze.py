"""
TaskClarify SOP Engine — Snooze & Reschedule.

Snooze defers a single reminder without touching its original schedule.
Reschedule throws away the whole reminder timeline and rebuilds it from a
new start time; step completion flags survive, trigger and snooze state do not.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from src.config import settings
from src.core.durations import ensure_aware, utc_now
from src.core.reminder_schedule import compute_reminders
from src.data.models import STATUS_ARCHIVED, STATUS_COMPLETED, STATUS_SCHEDULED

if TYPE_CHECKING:
    from src.data.models import ScheduledProcedure
    from src.data.sop_store import SOPStore

logger = logging.getLogger(__name__)


def snooze_reminder(
    store: SOPStore,
    sop_id: str,
    step_id: str,
    minutes: int | None = None,
    now: datetime | None = None,
) -> ScheduledProcedure | None:
    """Push a step's reminder to now + minutes.

    Does not reset `triggered`: a reminder that already fired stays silent.
    """
    if minutes is None:
        minutes = settings.DEFAULT_SNOOZE_MINUTES
    if now is None:
        now = utc_now()

    sop = store.get(sop_id)
    if sop is None:
        return None

    reminder = sop.find_reminder(step_id)
    if reminder is None:
        return None

    reminder.snoozed_until = ensure_aware(now) + timedelta(minutes=minutes)
    logger.info(
        "Reminder for step %s of SOP %s snoozed until %s",
        step_id, sop_id, reminder.snoozed_until.isoformat(),
    )
    return store.update(sop_id, {"reminders": sop.reminders})


def reschedule_sop(
    store: SOPStore, sop_id: str, new_start_time: datetime,
) -> ScheduledProcedure | None:
    """Rebuild every reminder from new_start_time and reset the cursor.

    Completed steps get fresh, untriggered reminders too; the polling loop
    skips them because it also checks the step's completion flag.
    """
    sop = store.get(sop_id)
    if sop is None:
        return None
    if sop.status == STATUS_ARCHIVED:
        logger.info("reschedule_sop: SOP %s is archived, ignoring", sop_id)
        return None

    new_start_time = ensure_aware(new_start_time)
    all_done = bool(sop.steps) and all(step.completed for step in sop.steps)

    logger.info("SOP %s rescheduled to %s", sop_id, new_start_time.isoformat())
    return store.update(sop_id, {
        "start_time": new_start_time,
        "reminders": compute_reminders(sop.steps, new_start_time),
        "status": STATUS_COMPLETED if all_done else STATUS_SCHEDULED,
        "current_step_index": 0,
    })
