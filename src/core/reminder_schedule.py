"""Reminder schedule calculator — pure business logic.

Lays a procedure's steps end to end from a start time and emits one
reminder per step, marking the moment that step should begin.

No I/O: this module only transforms data.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from src.data.models import Reminder

if TYPE_CHECKING:
    from src.data.models import Step

logger = logging.getLogger(__name__)


def compute_reminders(steps: list[Step], start_time: datetime) -> list[Reminder]:
    """Return one untriggered reminder per step, in step order.

    Step i fires at start_time + sum(durations of steps before i).
    Zero-minute steps yield back-to-back reminders at the same instant.
    """
    running_clock = start_time
    reminders: list[Reminder] = []

    for step in steps:
        if step.estimated_duration < 0:
            # Not clamped: a negative estimate is an upstream generation bug.
            logger.warning(
                "Step '%s' has negative duration %d min; schedule will run backwards",
                step.id, step.estimated_duration,
            )
        reminders.append(
            Reminder(step_id=step.id, scheduled_time=running_clock, triggered=False)
        )
        running_clock = running_clock + timedelta(minutes=step.estimated_duration)

    return reminders
