"""
TaskClarify SOP Engine — Reminder Checker.

A recurring asyncio task that, every REMINDER_POLL_INTERVAL_SECONDS, re-reads
the store and fires each due reminder exactly once:

    callback(sop, step) -> notification (best-effort) -> mark triggered

A reminder fires only if it is untriggered AND its step is not complete.
Both checks are needed: a reschedule re-arms reminders of steps that are
already done.

The loop handle is an explicit object (ReminderChecker). A
ReminderCheckerRegistry holds the active handle; start_reminder_checker goes
through one (the module's `default_registry` unless another is injected), so
starting a new loop always stops the previous one first.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from datetime import datetime
from typing import TYPE_CHECKING, Awaitable, Callable, Union

from src.core.durations import ensure_aware, is_reminder_due, utc_now
from src.core.notifications import request_notification_permission, send_step_reminder
from src.core.progress import mark_reminder_triggered
from src.data.models import STATUS_ARCHIVED, STATUS_COMPLETED
from src.ports.notification_port import PERMISSION_DENIED

if TYPE_CHECKING:
    from src.data.models import ScheduledProcedure, Step
    from src.data.sop_store import SOPStore
    from src.ports.notification_port import NotificationPort

logger = logging.getLogger(__name__)

ReminderCallback = Callable[["ScheduledProcedure", "Step"], Union[Awaitable[None], None]]

_INACTIVE_STATUSES = (STATUS_COMPLETED, STATUS_ARCHIVED)


# ---------------------------------------------------------------------------
# Single tick
# ---------------------------------------------------------------------------


async def check_due_reminders(
    store: SOPStore,
    on_reminder: ReminderCallback,
    notifier: NotificationPort | None = None,
    permission: str = PERMISSION_DENIED,
    now: datetime | None = None,
) -> int:
    """Fire every due reminder across all stored procedures.

    Returns the number of reminders fired. Order across and within
    procedures follows the stored collection and is not guaranteed.
    """
    now = utc_now() if now is None else ensure_aware(now)

    fired = 0
    for sop in store.load_all():
        if sop.status in _INACTIVE_STATUSES:
            continue

        for reminder in sop.reminders:
            if not is_reminder_due(reminder, now):
                continue

            step = sop.find_step(reminder.step_id)
            if step is None or step.completed:
                continue

            try:
                result = on_reminder(sop, step)
                if inspect.isawaitable(result):
                    await result
            except Exception as exc:
                logger.error(
                    "Reminder callback failed for step %s of SOP %s: %s",
                    step.id, sop.id, exc,
                )

            await send_step_reminder(notifier, permission, sop, step)
            mark_reminder_triggered(store, sop.id, reminder.step_id)
            fired += 1
            logger.info("Reminder fired: SOP %s step %s ('%s')", sop.id, step.id, step.title)

    return fired


# ---------------------------------------------------------------------------
# Loop handle
# ---------------------------------------------------------------------------


class ReminderChecker:
    """Owned handle for the polling loop."""

    def __init__(
        self,
        store: SOPStore,
        on_reminder: ReminderCallback,
        notifier: NotificationPort | None = None,
        interval_seconds: float | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        if interval_seconds is None:
            from src.config import settings
            interval_seconds = settings.REMINDER_POLL_INTERVAL_SECONDS

        self._store = store
        self._on_reminder = on_reminder
        self._notifier = notifier
        self._interval = interval_seconds
        self._clock = clock
        self._permission: str | None = None
        self._task: asyncio.Task | None = None
        self._stop_event: asyncio.Event | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def permission(self) -> str | None:
        """Notification permission obtained at first start, None before that."""
        return self._permission

    async def start(self) -> ReminderChecker:
        """Start polling. A loop already running on this handle is stopped first."""
        await self.stop()

        if self._permission is None:
            self._permission = await request_notification_permission(self._notifier)

        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run(self._stop_event), name="sop-reminder-checker")
        logger.info("Reminder checker started (every %ss)", self._interval)
        return self

    async def stop(self) -> None:
        """Stop polling. A tick in progress runs to completion. Safe to call twice."""
        if self._task is None:
            return

        self._stop_event.set()
        try:
            await self._task
        finally:
            self._task = None
            self._stop_event = None
        logger.info("Reminder checker stopped")

    async def tick(self) -> int:
        """Run one check immediately."""
        return await check_due_reminders(
            self._store,
            self._on_reminder,
            notifier=self._notifier,
            permission=self._permission or PERMISSION_DENIED,
            now=self._clock(),
        )

    async def _run(self, stop_event: asyncio.Event) -> None:
        while True:
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self._interval)
                return
            except asyncio.TimeoutError:
                pass

            try:
                await self.tick()
            except Exception as exc:
                logger.error("Reminder check failed: %s", exc)


class ReminderCheckerRegistry:
    """Owns the one active polling loop.

    Starting a checker through the registry stops whichever checker it
    started before, so two loops never poll at once.
    """

    def __init__(self) -> None:
        self._active: ReminderChecker | None = None

    @property
    def active(self) -> ReminderChecker | None:
        return self._active

    async def start(self, checker: ReminderChecker) -> ReminderChecker:
        previous = self._active
        if previous is not None and previous is not checker:
            await previous.stop()
        self._active = checker
        return await checker.start()

    async def stop(self) -> None:
        if self._active is not None:
            await self._active.stop()
            self._active = None


default_registry = ReminderCheckerRegistry()


async def start_reminder_checker(
    store: SOPStore,
    on_reminder: ReminderCallback,
    notifier: NotificationPort | None = None,
    interval_seconds: float | None = None,
    replace: ReminderChecker | None = None,
    registry: ReminderCheckerRegistry | None = None,
) -> ReminderChecker:
    """Build and start a checker as the registry's only active loop.

    The registry's previous checker is stopped first, as is `replace`
    when given. Defaults to the process-wide `default_registry`.
    """
    if registry is None:
        registry = default_registry
    if replace is not None:
        await replace.stop()

    checker = ReminderChecker(
        store, on_reminder, notifier=notifier, interval_seconds=interval_seconds,
    )
    return await registry.start(checker)
