"""
Kindred — Centralized configuration.

Loads all settings from .env and validates required keys.
The scheduling engine never reads these directly: the service and bot
layers pass the relevant values in as explicit arguments.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (two levels up from kindred/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Telegram
    TELEGRAM_BOT_TOKEN: str

    # Security: the first allowed user also receives reminders
    ALLOWED_USER_IDS: list[int] = []

    # SQLite
    DATABASE_PATH: str = "data/kindred.db"

    # Wall-clock zone used for day boundaries and trigger slots
    TIMEZONE: str = "UTC"

    # Notification preferences
    NOTIFICATION_FREQUENCY: int = 1
    REMINDER_TIMES: list[str] = ["09:00", "14:00", "19:00"]

    # Copy profile: "ios" (2 names per digest) | "android" (3 names)
    PLATFORM_PROFILE: str = "ios"

    # Snooze requests this close to a cadence boundary snap onto it
    SNOOZE_SNAP_WINDOW_HOURS: int = 24

    @field_validator("ALLOWED_USER_IDS", mode="before")
    @classmethod
    def parse_user_ids(cls, v: str | list[int]) -> list[int]:
        if isinstance(v, list):
            return v
        if isinstance(v, str) and v.strip():
            return [int(uid.strip()) for uid in v.split(",") if uid.strip()]
        return []

    @field_validator("REMINDER_TIMES", mode="before")
    @classmethod
    def parse_reminder_times(cls, v: str | list[str]) -> list[str]:
        if isinstance(v, list):
            return v
        if isinstance(v, str) and v.strip():
            return [t.strip() for t in v.split(",") if t.strip()]
        return []

    @field_validator("NOTIFICATION_FREQUENCY", mode="before")
    @classmethod
    def parse_frequency(cls, v: str | int) -> int:
        return min(3, max(1, int(v)))

    @field_validator("SNOOZE_SNAP_WINDOW_HOURS", mode="before")
    @classmethod
    def parse_window(cls, v: str | int) -> int:
        return max(0, int(v))

    @field_validator("PLATFORM_PROFILE", mode="before")
    @classmethod
    def parse_profile(cls, v: str) -> str:
        v = (v or "ios").strip().lower()
        if v not in ("ios", "android"):
            raise ValueError(f"PLATFORM_PROFILE must be 'ios' or 'android', got {v!r}")
        return v


def _load_settings() -> Settings:
    """Load settings from environment, validating required keys."""
    token = os.getenv("TELEGRAM_BOT_TOKEN", "")

    if not token or token.startswith("your-"):
        print("ERROR: TELEGRAM_BOT_TOKEN is missing or not set in .env", file=sys.stderr)
        sys.exit(1)

    return Settings(
        TELEGRAM_BOT_TOKEN=token,
        ALLOWED_USER_IDS=os.getenv("ALLOWED_USER_IDS", ""),
        DATABASE_PATH=os.getenv("DATABASE_PATH", "data/kindred.db"),
        TIMEZONE=os.getenv("TIMEZONE", "UTC"),
        NOTIFICATION_FREQUENCY=os.getenv("NOTIFICATION_FREQUENCY", "1"),
        REMINDER_TIMES=os.getenv("REMINDER_TIMES", "09:00,14:00,19:00"),
        PLATFORM_PROFILE=os.getenv("PLATFORM_PROFILE", "ios"),
        SNOOZE_SNAP_WINDOW_HOURS=os.getenv("SNOOZE_SNAP_WINDOW_HOURS", "24"),
    )


# Singleton, imported by the service and bot layers as:
#   from kindred.config import settings
settings = _load_settings()
