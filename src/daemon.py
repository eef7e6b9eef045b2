"""
TaskClarify SOP Engine — Reminder Daemon.

Long-running process: opens the SOP store, wires the configured notifier,
and keeps one ReminderChecker polling until interrupted.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from src.adapters.notifier_factory import create_notifier
from src.config import settings
from src.core.reminder_checker import ReminderChecker
from src.data.sop_store import SOPStore

if TYPE_CHECKING:
    from src.data.models import ScheduledProcedure, Step

logger = logging.getLogger(__name__)


def log_reminder(sop: ScheduledProcedure, step: Step) -> None:
    """Default reminder callback: record the due step in the log."""
    logger.info(
        "Step %d of '%s' is due: %s", step.step_number, sop.name, step.title,
    )


async def run(stop_event: asyncio.Event | None = None) -> None:
    """Run the reminder loop until stop_event is set (or forever)."""
    store = SOPStore()
    notifier = create_notifier()
    checker = ReminderChecker(store, log_reminder, notifier=notifier)

    await checker.start()
    logger.info(
        "Watching %d stored SOP(s), provider=%s, notifications %s",
        len(store.load_all()), settings.NOTIFICATION_PROVIDER, checker.permission,
    )
    try:
        if stop_event is None:
            stop_event = asyncio.Event()
        await stop_event.wait()
    finally:
        await checker.stop()


def main() -> None:
    """Entry point: run the daemon until Ctrl+C."""
    logger.info("Starting TaskClarify SOP reminder daemon...")
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
