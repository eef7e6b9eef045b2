"""Shared test fixtures and configuration.

Sets up fake environment variables before any src import, and provides
common fixtures like a temp-file SOP store and a two-step procedure.
"""

import os

# Patch env vars BEFORE any src imports
os.environ.setdefault("NOTIFICATION_PROVIDER", "none")
os.environ.setdefault("SOP_DATABASE_PATH", ":memory:")
os.environ.setdefault("DEFAULT_SNOOZE_MINUTES", "10")
os.environ.setdefault("REMINDER_POLL_INTERVAL_SECONDS", "30")
os.environ.setdefault("TIMEZONE", "UTC")

from datetime import datetime, timezone

import pytest


START = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def start_time():
    """2024-01-01T09:00:00Z."""
    return START


@pytest.fixture
def kv_db(tmp_path):
    """Return a KeyValueDB backed by a temp file."""
    from src.data.db import KeyValueDB
    return KeyValueDB(db_path=str(tmp_path / "test_sops.db"))


@pytest.fixture
def sop_store(kv_db):
    """Return an empty SOPStore on the temp KeyValueDB."""
    from src.data.sop_store import SOPStore
    return SOPStore(db=kv_db, storage_key="test_saved_sops")


@pytest.fixture
def procedure():
    """Two steps: s1 (15 min) then s2 (30 min)."""
    from src.data.models import Step, build_procedure
    return build_procedure(
        name="Morning deploy",
        summary="Ship the release",
        steps=[
            Step(id="s1", step_number=1, title="Freeze branch", estimated_duration=15),
            Step(id="s2", step_number=2, title="Run migrations", description="Prod DB",
                 estimated_duration=30, tips=["Take a backup first"]),
        ],
        unclear_points=["Who approves?"],
        procedure_id="sop-test",
    )


@pytest.fixture
def saved_sop(sop_store, procedure, start_time):
    """The two-step procedure saved at START."""
    return sop_store.save(procedure, start_time)
