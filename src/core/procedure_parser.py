"""
TaskClarify SOP Engine — Generator Output Parser.

The SOP generator is an LLM endpoint that answers with (usually) a JSON
object, sometimes wrapped in markdown fences or prose. This module turns
that text into a Procedure with stable step ids and a computed total.

JSON example:
{
    "name": "Onboard a new hire",
    "summary": "Accounts, hardware and first-day walkthrough.",
    "steps": [
        {"stepNumber": 1, "title": "Create accounts",
         "description": "Email, chat, VPN", "estimatedDuration": 15,
         "tips": ["Use the onboarding template"]}
    ],
    "unclearPoints": ["Who orders the laptop?"]
}
"""

from __future__ import annotations

import json
import logging
import re

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from src.data.models import Procedure, Step, build_procedure
from src.ports.generation_port import GenerationError

logger = logging.getLogger(__name__)

_DEFAULT_STEP_MINUTES = 10
_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


# ---------------------------------------------------------------------------
# JSON contract of the generator
# ---------------------------------------------------------------------------


class GeneratedStep(BaseModel):
    """One step as the generator emits it. Every field may be missing."""

    model_config = ConfigDict(populate_by_name=True)

    step_number: int | None = Field(default=None, alias="stepNumber")
    title: str | None = None
    description: str | None = None
    estimated_duration: int | None = Field(default=None, alias="estimatedDuration")
    tips: list[str] | None = None
    owner: str | None = None


class GeneratedProcedure(BaseModel):
    """Top-level generator payload."""

    model_config = ConfigDict(populate_by_name=True)

    name: str | None = None
    summary: str | None = None
    steps: list[GeneratedStep] | None = None
    unclear_points: list[str] | None = Field(default=None, alias="unclearPoints")


# ---------------------------------------------------------------------------
# Response cleaning
# ---------------------------------------------------------------------------


def _clean_llm_response(raw_text: str) -> str:
    """Remove markdown code fences and keep the outermost JSON object."""
    cleaned = re.sub(r"```(?:json)?\n?", "", raw_text).strip()
    match = _JSON_OBJECT.search(cleaned)
    if match is None:
        raise GenerationError("No JSON object found in generator response")
    return match.group(0)


# ---------------------------------------------------------------------------
# Conversion
# ---------------------------------------------------------------------------


def procedure_from_payload(payload: GeneratedProcedure) -> Procedure:
    """Fill generator gaps with defaults and assign `step-<n>` ids.

    Falsy values (0, "", []) fall back to the defaults as well.
    """
    steps = [
        Step(
            id=f"step-{index}",
            step_number=item.step_number or index,
            title=item.title or f"Step {index}",
            description=item.description or "",
            estimated_duration=item.estimated_duration or _DEFAULT_STEP_MINUTES,
            tips=list(item.tips or []),
            completed=False,
            owner=item.owner,
        )
        for index, item in enumerate(payload.steps or [], start=1)
    ]
    return build_procedure(
        name=payload.name or "Untitled SOP",
        summary=payload.summary or "",
        steps=steps,
        unclear_points=payload.unclear_points or [],
    )


def parse_procedure_response(raw_text: str) -> Procedure:
    """Parse raw generator text into a Procedure.

    Raises GenerationError if the text holds no valid procedure object.
    """
    cleaned = _clean_llm_response(raw_text)
    try:
        data = json.loads(cleaned)
        payload = GeneratedProcedure.model_validate(data)
    except json.JSONDecodeError as exc:
        logger.error("Failed to parse generator response as JSON: %s, raw: '%s'", exc, raw_text[:200])
        raise GenerationError(f"Invalid JSON from generator: {exc}") from exc
    except ValidationError as exc:
        logger.error("Generator response has unexpected shape: %s", exc)
        raise GenerationError(f"Unexpected generator payload: {exc}") from exc

    procedure = procedure_from_payload(payload)
    logger.info(
        "Parsed SOP '%s' with %d steps (%d min total)",
        procedure.name, len(procedure.steps), procedure.total_duration,
    )
    return procedure
