"""Tests for src.core.sop_service — generate then schedule."""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from src.core.sop_service import generate_and_schedule
from src.data.models import STATUS_SCHEDULED
from src.ports.generation_port import GenerationError


class TestGenerateAndSchedule:
    @pytest.mark.asyncio
    async def test_generated_procedure_is_stored(self, sop_store, procedure, start_time):
        generator = AsyncMock()
        generator.generate.return_value = procedure

        sop = await generate_and_schedule(generator, sop_store, "deploy notes", start_time)

        generator.generate.assert_awaited_once_with("deploy notes")
        assert sop.status == STATUS_SCHEDULED
        assert sop.reminders[1].scheduled_time == start_time + timedelta(minutes=15)
        assert sop_store.get(sop.id) == sop

    @pytest.mark.asyncio
    async def test_generation_error_propagates(self, sop_store, start_time):
        generator = AsyncMock()
        generator.generate.side_effect = GenerationError("AI API request failed")

        with pytest.raises(GenerationError):
            await generate_and_schedule(generator, sop_store, "notes", start_time)

        assert sop_store.load_all() == []
