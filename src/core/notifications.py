"""
TaskClarify SOP Engine — Step Reminder Notifications.

Builds the alert for a due step and hands it to the NotificationPort.
Everything here is best-effort: a missing provider, a denied permission or a
provider error is logged and swallowed so the reminder loop can still mark
the reminder as triggered.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

from src.config import settings
from src.core.durations import format_duration
from src.ports.notification_port import PERMISSION_DENIED, PERMISSION_GRANTED

if TYPE_CHECKING:
    from src.data.models import ScheduledProcedure, Step
    from src.ports.notification_port import NotificationPort

logger = logging.getLogger(__name__)


async def request_notification_permission(notifier: NotificationPort | None) -> str:
    """Ask the provider once for permission. Any failure counts as denied."""
    if notifier is None:
        return PERMISSION_DENIED
    try:
        permission = await notifier.request_permission()
    except Exception as exc:
        logger.warning("Notification permission request failed: %s", exc)
        return PERMISSION_DENIED

    logger.info("Notification permission: %s", permission)
    return permission


def reminder_tag(sop: ScheduledProcedure, step: Step) -> str:
    """Stable identifier so providers can collapse duplicate alerts."""
    return f"sop-{sop.id}-step-{step.id}"


def format_step_reminder(sop: ScheduledProcedure, step: Step) -> tuple[str, str]:
    """Return (title, body) for a step reminder."""
    title = f"SOP Reminder: {sop.name}"
    lines = [f"Step {step.step_number}: {step.title}"]
    if step.description:
        lines.append(step.description)

    reminder = sop.find_reminder(step.id)
    if reminder is not None:
        local = reminder.scheduled_time.astimezone(ZoneInfo(settings.TIMEZONE))
        lines.append(
            f"Planned start {local:%H:%M} (about {format_duration(step.estimated_duration)})"
        )

    return title, "\n".join(lines)


async def send_step_reminder(
    notifier: NotificationPort | None,
    permission: str,
    sop: ScheduledProcedure,
    step: Step,
) -> bool:
    """Deliver a step alert if possible. Returns True if the provider accepted it."""
    if notifier is None or permission != PERMISSION_GRANTED:
        return False

    title, body = format_step_reminder(sop, step)
    try:
        await notifier.notify(title, body, reminder_tag(sop, step))
    except Exception as exc:
        logger.warning(
            "Notification for step %s of SOP %s failed: %s", step.id, sop.id, exc,
        )
        return False
    return True
