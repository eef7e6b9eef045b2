"""
TaskClarify SOP Engine — Scheduled SOP Store.

Holds every scheduled procedure of the current user as one JSON array under
a single key of the KeyValueDB. Each mutation loads the whole collection,
changes it, and writes the whole collection back.

The store is not the system of record for generated content (the generator
can always be re-run), so unreadable data degrades to an empty collection
instead of raising.
"""

from __future__ import annotations

import copy
import json
import logging
import sqlite3
from dataclasses import fields, replace
from datetime import datetime
from typing import Any

from src.core.durations import ensure_aware
from src.core.reminder_schedule import compute_reminders
from src.data.db import KeyValueDB
from src.data.models import (
    STATUS_SCHEDULED,
    Procedure,
    Reminder,
    ScheduledProcedure,
    Step,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Serialization: camelCase JSON records, ISO-8601 timestamps
# ---------------------------------------------------------------------------


def _format_ts(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_ts(value: Any) -> datetime | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"timestamp must be an ISO-8601 string, got {type(value).__name__}")
    return ensure_aware(datetime.fromisoformat(value.replace("Z", "+00:00")))


def _parse_required_ts(value: Any, field: str) -> datetime:
    parsed = _parse_ts(value)
    if parsed is None:
        raise ValueError(f"{field} is required")
    return parsed


def _step_to_record(step: Step) -> dict[str, Any]:
    return {
        "id": step.id,
        "stepNumber": step.step_number,
        "title": step.title,
        "description": step.description,
        "estimatedDuration": step.estimated_duration,
        "tips": list(step.tips),
        "completed": step.completed,
        "owner": step.owner,
    }


def _record_to_step(record: dict[str, Any]) -> Step:
    return Step(
        id=record["id"],
        step_number=int(record["stepNumber"]),
        title=record["title"],
        description=record.get("description", ""),
        estimated_duration=int(record["estimatedDuration"]),
        tips=list(record.get("tips") or []),
        completed=bool(record.get("completed", False)),
        owner=record.get("owner"),
    )


def _reminder_to_record(reminder: Reminder) -> dict[str, Any]:
    return {
        "stepId": reminder.step_id,
        "scheduledTime": _format_ts(reminder.scheduled_time),
        "triggered": reminder.triggered,
        "snoozedUntil": _format_ts(reminder.snoozed_until),
    }


def _record_to_reminder(record: dict[str, Any]) -> Reminder:
    return Reminder(
        step_id=record["stepId"],
        scheduled_time=_parse_required_ts(record["scheduledTime"], "scheduledTime"),
        triggered=bool(record.get("triggered", False)),
        snoozed_until=_parse_ts(record.get("snoozedUntil")),
    )


def sop_to_record(sop: ScheduledProcedure) -> dict[str, Any]:
    """Serialize a scheduled procedure into its persisted JSON shape."""
    return {
        "id": sop.id,
        "name": sop.name,
        "summary": sop.summary,
        "totalDuration": sop.total_duration,
        "steps": [_step_to_record(s) for s in sop.steps],
        "unclearPoints": list(sop.unclear_points),
        "createdAt": _format_ts(sop.created_at),
        "startTime": _format_ts(sop.start_time),
        "status": sop.status,
        "currentStepIndex": sop.current_step_index,
        "reminders": [_reminder_to_record(r) for r in sop.reminders],
    }


def record_to_sop(record: dict[str, Any]) -> ScheduledProcedure:
    """Rebuild a scheduled procedure from its persisted JSON shape.

    Raises KeyError/TypeError/ValueError on malformed records.
    """
    return ScheduledProcedure(
        id=record["id"],
        name=record["name"],
        summary=record.get("summary", ""),
        total_duration=int(record["totalDuration"]),
        steps=[_record_to_step(s) for s in record["steps"]],
        unclear_points=list(record.get("unclearPoints") or []),
        created_at=_parse_ts(record.get("createdAt")),
        start_time=_parse_required_ts(record["startTime"], "startTime"),
        status=record["status"],
        current_step_index=int(record.get("currentStepIndex", 0)),
        reminders=[_record_to_reminder(r) for r in record["reminders"]],
    )


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class SOPStore:
    """Persisted collection of scheduled procedures, most recent first."""

    def __init__(self, db: KeyValueDB | None = None, storage_key: str | None = None) -> None:
        if db is None:
            db = KeyValueDB()
        if storage_key is None:
            from src.config import settings
            storage_key = settings.SOP_STORAGE_KEY

        self._db = db
        self._key = storage_key

    def _write_all(self, sops: list[ScheduledProcedure]) -> None:
        payload = json.dumps([sop_to_record(s) for s in sops], ensure_ascii=False)
        self._db.set(self._key, payload)

    def save(self, procedure: Procedure, start_time: datetime) -> ScheduledProcedure:
        """Anchor a generated procedure at start_time and persist it."""
        start_time = ensure_aware(start_time)
        steps = copy.deepcopy(procedure.steps)
        base = {f.name: getattr(procedure, f.name) for f in fields(Procedure)}
        base["steps"] = steps
        base["unclear_points"] = list(procedure.unclear_points)

        sop = ScheduledProcedure(
            **base,
            start_time=start_time,
            status=STATUS_SCHEDULED,
            current_step_index=0,
            reminders=compute_reminders(steps, start_time),
        )

        existing = self.load_all()
        self._write_all([sop, *existing])
        logger.info(
            "SOP saved: '%s' (%s) with %d steps starting %s",
            sop.name, sop.id, len(sop.steps), start_time.isoformat(),
        )
        return sop

    def load_all(self) -> list[ScheduledProcedure]:
        """Return every stored procedure; [] if storage is absent or unreadable."""
        try:
            raw = self._db.get(self._key)
            if not raw:
                return []
            data = json.loads(raw)
            if not isinstance(data, list):
                logger.warning(
                    "Stored SOP collection is %s, not a list; ignoring it",
                    type(data).__name__,
                )
                return []
            return [record_to_sop(record) for record in data]
        except (
            sqlite3.Error, json.JSONDecodeError, AttributeError, KeyError, TypeError, ValueError,
        ) as exc:
            logger.warning("Failed to load stored SOPs, treating as empty: %s", exc)
            return []

    def get(self, sop_id: str) -> ScheduledProcedure | None:
        """Fetch a single procedure by id."""
        for sop in self.load_all():
            if sop.id == sop_id:
                return sop
        return None

    def update(self, sop_id: str, updates: dict[str, Any]) -> ScheduledProcedure | None:
        """Merge the given fields into a stored procedure.

        Returns the merged record, or None if the id is unknown.
        Unknown field names raise TypeError.
        """
        sops = self.load_all()
        for index, sop in enumerate(sops):
            if sop.id == sop_id:
                break
        else:
            logger.debug("update: SOP %s not found", sop_id)
            return None

        updated = replace(sops[index], **updates)
        sops[index] = updated
        self._write_all(sops)
        return updated

    def delete(self, sop_id: str) -> None:
        """Remove a procedure. Unknown ids are ignored."""
        sops = self.load_all()
        remaining = [s for s in sops if s.id != sop_id]
        self._write_all(remaining)
        if len(remaining) < len(sops):
            logger.info("SOP %s deleted", sop_id)
