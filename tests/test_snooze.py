"""Tests for src.core.snooze — snooze and reschedule."""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from src.core.progress import archive_sop, mark_reminder_triggered, mark_step_complete
from src.core.snooze import reschedule_sop, snooze_reminder
from src.data.models import STATUS_ARCHIVED, STATUS_COMPLETED, STATUS_SCHEDULED

T0 = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)
NEW_START = datetime(2024, 1, 2, 14, 0, tzinfo=timezone.utc)


class TestSnoozeReminder:
    def test_sets_snoozed_until(self, sop_store, saved_sop):
        now = T0 + timedelta(minutes=5)
        sop = snooze_reminder(sop_store, saved_sop.id, "s2", 10, now=now)
        reminder = sop.find_reminder("s2")
        assert reminder.snoozed_until == now + timedelta(minutes=10)
        assert reminder.scheduled_time == T0 + timedelta(minutes=15)
        assert reminder.triggered is False

    def test_persisted(self, sop_store, saved_sop):
        snooze_reminder(sop_store, saved_sop.id, "s1", 5, now=T0)
        stored = sop_store.get(saved_sop.id)
        assert stored.find_reminder("s1").snoozed_until == T0 + timedelta(minutes=5)

    def test_default_minutes_from_settings(self, sop_store, saved_sop):
        with patch("src.core.snooze.settings") as mock_settings:
            mock_settings.DEFAULT_SNOOZE_MINUTES = 7
            sop = snooze_reminder(sop_store, saved_sop.id, "s1", now=T0)
        assert sop.find_reminder("s1").snoozed_until == T0 + timedelta(minutes=7)

    def test_snooze_does_not_untrigger(self, sop_store, saved_sop):
        mark_reminder_triggered(sop_store, saved_sop.id, "s1")
        sop = snooze_reminder(sop_store, saved_sop.id, "s1", 10, now=T0)
        assert sop.find_reminder("s1").triggered is True

    def test_snooze_again_replaces(self, sop_store, saved_sop):
        snooze_reminder(sop_store, saved_sop.id, "s1", 10, now=T0)
        sop = snooze_reminder(sop_store, saved_sop.id, "s1", 3, now=T0 + timedelta(minutes=10))
        assert sop.find_reminder("s1").snoozed_until == T0 + timedelta(minutes=13)

    def test_missing_sop(self, sop_store, saved_sop):
        assert snooze_reminder(sop_store, "nope", "s1", 10) is None

    def test_missing_step(self, sop_store, saved_sop):
        assert snooze_reminder(sop_store, saved_sop.id, "nope", 10) is None
        assert sop_store.get(saved_sop.id) == saved_sop


class TestRescheduleSOP:
    def test_rebuilds_timeline(self, sop_store, saved_sop):
        sop = reschedule_sop(sop_store, saved_sop.id, NEW_START)
        assert sop.start_time == NEW_START
        assert [r.scheduled_time for r in sop.reminders] == [
            NEW_START, NEW_START + timedelta(minutes=15),
        ]

    def test_resets_triggers_and_snoozes_keeps_completion(self, sop_store, saved_sop):
        mark_step_complete(sop_store, saved_sop.id, "s1")
        snooze_reminder(sop_store, saved_sop.id, "s2", 10, now=T0)
        before = [s.completed for s in sop_store.get(saved_sop.id).steps]

        sop = reschedule_sop(sop_store, saved_sop.id, NEW_START)

        assert all(r.triggered is False for r in sop.reminders)
        assert all(r.snoozed_until is None for r in sop.reminders)
        assert [s.completed for s in sop.steps] == before
        assert sop.find_step("s1").completed is True
        assert sop.status == STATUS_SCHEDULED
        assert sop.current_step_index == 0

    def test_reminder_step_correspondence(self, sop_store, saved_sop):
        sop = reschedule_sop(sop_store, saved_sop.id, NEW_START)
        assert {r.step_id for r in sop.reminders} == {s.id for s in sop.steps}

    def test_fully_completed_stays_completed(self, sop_store, saved_sop):
        mark_step_complete(sop_store, saved_sop.id, "s1")
        mark_step_complete(sop_store, saved_sop.id, "s2")
        sop = reschedule_sop(sop_store, saved_sop.id, NEW_START)
        assert sop.status == STATUS_COMPLETED
        assert sop.current_step_index == 0

    def test_total_duration_not_recomputed(self, sop_store, saved_sop):
        sop = reschedule_sop(sop_store, saved_sop.id, NEW_START)
        assert sop.total_duration == saved_sop.total_duration

    def test_archived_is_terminal(self, sop_store, saved_sop):
        archive_sop(sop_store, saved_sop.id)
        assert reschedule_sop(sop_store, saved_sop.id, NEW_START) is None
        stored = sop_store.get(saved_sop.id)
        assert stored.status == STATUS_ARCHIVED
        assert stored.start_time == T0

    def test_missing(self, sop_store):
        assert reschedule_sop(sop_store, "nope", NEW_START) is None

    def test_naive_start_treated_as_utc(self, sop_store, saved_sop):
        sop = reschedule_sop(sop_store, saved_sop.id, datetime(2024, 1, 2, 14, 0))
        assert sop.start_time == NEW_START
