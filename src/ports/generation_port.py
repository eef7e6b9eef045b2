"""Generation port — abstract interface for the SOP generator.

Turning free-text notes into steps is done elsewhere (an AI endpoint);
the engine only consumes the resulting Procedure.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from src.data.models import Procedure


class GenerationError(Exception):
    """Raised when the generator returns nothing usable."""


class ProcedureGenerator(Protocol):
    """Abstract SOP generator used by core modules."""

    async def generate(self, notes: str) -> Procedure: ...
