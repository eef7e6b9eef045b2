"""
TaskClarify SOP Engine — Data Models.

A Procedure is what the external generator returns: a named, ordered list of
timed steps. Once the user commits a start time it becomes a
ScheduledProcedure, which owns its steps and one reminder per step.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

STATUS_SCHEDULED = "scheduled"
STATUS_IN_PROGRESS = "in-progress"
STATUS_COMPLETED = "completed"
STATUS_ARCHIVED = "archived"

SOP_STATUSES = (
    STATUS_SCHEDULED,
    STATUS_IN_PROGRESS,
    STATUS_COMPLETED,
    STATUS_ARCHIVED,
)


@dataclass
class Step:
    """One ordered unit of procedure work."""

    id: str                           # unique within its procedure, e.g. "step-1"
    step_number: int                  # 1-based execution order
    title: str
    description: str = ""
    estimated_duration: int = 10      # minutes
    tips: list[str] = field(default_factory=list)
    completed: bool = False
    owner: str | None = None          # responsible role/person, if any


@dataclass
class Procedure:
    """A generated SOP. Immutable after generation except step completion flags."""

    id: str
    name: str
    summary: str
    total_duration: int               # minutes, computed once at generation
    steps: list[Step]
    unclear_points: list[str] = field(default_factory=list)
    created_at: datetime | None = None


@dataclass
class Reminder:
    """A per-step trigger record.

    `triggered` only ever goes False -> True. `snoozed_until`, when set,
    replaces `scheduled_time` for the due comparison but never overwrites it.
    """

    step_id: str
    scheduled_time: datetime
    triggered: bool = False
    snoozed_until: datetime | None = None


@dataclass(kw_only=True)
class ScheduledProcedure(Procedure):
    """A Procedure anchored to a start time, with lifecycle status and reminders."""

    start_time: datetime
    status: str = STATUS_SCHEDULED    # one of SOP_STATUSES
    current_step_index: int = 0
    reminders: list[Reminder] = field(default_factory=list)

    def step_index(self, step_id: str) -> int:
        """Position of the step in `steps`, or -1 if absent."""
        for index, step in enumerate(self.steps):
            if step.id == step_id:
                return index
        return -1

    def find_step(self, step_id: str) -> Step | None:
        index = self.step_index(step_id)
        return self.steps[index] if index != -1 else None

    def find_reminder(self, step_id: str) -> Reminder | None:
        for reminder in self.reminders:
            if reminder.step_id == step_id:
                return reminder
        return None


def build_procedure(
    name: str,
    summary: str,
    steps: list[Step],
    unclear_points: list[str] | None = None,
    procedure_id: str | None = None,
    created_at: datetime | None = None,
) -> Procedure:
    """Assemble a Procedure, computing its total duration from the steps."""
    return Procedure(
        id=procedure_id or f"sop-{uuid.uuid4().hex[:12]}",
        name=name,
        summary=summary,
        total_duration=sum(step.estimated_duration for step in steps),
        steps=steps,
        unclear_points=list(unclear_points or []),
        created_at=created_at or datetime.now(timezone.utc),
    )
