"""
TaskClarify SOP Engine — Centralized configuration.

Loads all settings from .env and validates required keys.
This module is the foundation for every other module in the project.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (two levels up from src/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Persistence: SQLite file holding the single serialized SOP collection
    SOP_DATABASE_PATH: str = "data/sops.db"
    SOP_STORAGE_KEY: str = "taskclarify_saved_sops"

    # Reminder loop
    REMINDER_POLL_INTERVAL_SECONDS: int = 30
    DEFAULT_SNOOZE_MINUTES: int = 10

    # Notification provider: "telegram" | "none"
    NOTIFICATION_PROVIDER: str = "none"

    # Telegram (only needed when NOTIFICATION_PROVIDER=telegram)
    TELEGRAM_BOT_TOKEN: str = ""
    NOTIFY_CHAT_IDS: list[int] = []

    # Used only to render times in notification text
    TIMEZONE: str = "UTC"

    @field_validator("NOTIFY_CHAT_IDS", mode="before")
    @classmethod
    def parse_chat_ids(cls, v: str | list[int]) -> list[int]:
        if isinstance(v, list):
            return v
        if isinstance(v, str) and v.strip():
            return [int(cid.strip()) for cid in v.split(",") if cid.strip()]
        return []

    @field_validator("REMINDER_POLL_INTERVAL_SECONDS", "DEFAULT_SNOOZE_MINUTES", mode="before")
    @classmethod
    def parse_positive_int(cls, v: str | int) -> int:
        value = int(v)
        if value <= 0:
            raise ValueError(f"must be a positive integer, got {value}")
        return value


def _load_settings() -> Settings:
    """Load settings from environment, validating required keys."""
    provider = os.getenv("NOTIFICATION_PROVIDER", "none").strip().lower()
    token = os.getenv("TELEGRAM_BOT_TOKEN", "")

    if provider == "telegram" and (not token or token.startswith("your-")):
        print(
            "ERROR: NOTIFICATION_PROVIDER=telegram but TELEGRAM_BOT_TOKEN is missing in .env",
            file=sys.stderr,
        )
        sys.exit(1)

    return Settings(
        SOP_DATABASE_PATH=os.getenv("SOP_DATABASE_PATH", "data/sops.db"),
        SOP_STORAGE_KEY=os.getenv("SOP_STORAGE_KEY", "taskclarify_saved_sops"),
        REMINDER_POLL_INTERVAL_SECONDS=os.getenv("REMINDER_POLL_INTERVAL_SECONDS", "30"),
        DEFAULT_SNOOZE_MINUTES=os.getenv("DEFAULT_SNOOZE_MINUTES", "10"),
        NOTIFICATION_PROVIDER=provider,
        TELEGRAM_BOT_TOKEN=token,
        NOTIFY_CHAT_IDS=os.getenv("NOTIFY_CHAT_IDS", ""),
        TIMEZONE=os.getenv("TIMEZONE", "UTC"),
    )


# Singleton — imported by all other modules as:
#   from src.config import settings
settings = _load_settings()
