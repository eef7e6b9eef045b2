"""Duration and reminder-eligibility helpers — pure functions.

No I/O: this module only transforms data.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.data.models import Reminder, ScheduledProcedure


def utc_now() -> datetime:
    """Timezone-aware current time. The default clock for the whole engine."""
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime) -> datetime:
    """Attach UTC to naive datetimes so all comparisons are between aware values."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def format_duration(minutes: int) -> str:
    """Render minutes as "45 min", "1h 30m" or "2h"."""
    if minutes < 60:
        return f"{minutes} min"
    hours, mins = divmod(minutes, 60)
    return f"{hours}h {mins}m" if mins > 0 else f"{hours}h"


def effective_due_time(reminder: Reminder) -> datetime:
    """The time a reminder is compared against: snooze wins over schedule."""
    if reminder.snoozed_until is not None:
        return reminder.snoozed_until
    return reminder.scheduled_time


def is_reminder_due(reminder: Reminder, now: datetime) -> bool:
    """True if the reminder has not fired yet and its effective time has passed."""
    if reminder.triggered:
        return False
    return now >= effective_due_time(reminder)


def get_next_reminder_time(
    sop: ScheduledProcedure, now: datetime | None = None,
) -> datetime | None:
    """Earliest future due time among pending reminders of incomplete steps.

    Returns None when nothing is left to remind about.
    """
    if now is None:
        now = utc_now()

    upcoming: list[datetime] = []
    for reminder in sop.reminders:
        if reminder.triggered:
            continue
        step = sop.find_step(reminder.step_id)
        if step is not None and step.completed:
            continue
        due = effective_due_time(reminder)
        if due > now:
            upcoming.append(due)

    return min(upcoming) if upcoming else None


def get_sop_progress(sop: ScheduledProcedure) -> float:
    """Fraction of completed steps in [0.0, 1.0]."""
    if not sop.steps:
        return 0.0
    completed = sum(1 for step in sop.steps if step.completed)
    return completed / len(sop.steps)
