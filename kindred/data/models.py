"""
Kindred — Data Models.

Contacts are the people the user wants to keep in touch with. Each one carries
a cadence (how often to reach out) and an anchor timestamp for the next
reminder. All timestamps are epoch milliseconds.
"""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_REMINDER_TIMES = ["09:00", "14:00", "19:00"]


@dataclass
class Contact:
    """A tracked relationship.

    The scheduling engine treats a Contact as an immutable value per call;
    only the contact service and the DB write new field values.
    """

    id: str
    name: str
    cadence: str                              # e.g. "weekly", "custom"
    custom_interval_days: int | None = None   # only used when cadence == "custom"
    last_contacted_at: int | None = None      # epoch ms, None if never
    next_reminder_at: int | None = None       # epoch ms, the cadence anchor
    birthday: str | None = None               # "MM-DD" or "YYYY-MM-DD"
    is_archived: bool = False


@dataclass
class Interaction:
    """A logged call, text or meeting with a contact."""

    id: str
    contact_id: str
    occurred_at: int           # epoch ms
    kind: str                  # "call" | "text" | "meet"
    notes: str | None = None


@dataclass
class NotificationSettings:
    """How many reminders per day the user wants, and at which clock times."""

    frequency: int = 1
    reminder_times: list[str] = field(
        default_factory=lambda: list(DEFAULT_REMINDER_TIMES)
    )
