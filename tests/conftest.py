"""Shared test fixtures and configuration.

Sets up fake environment variables so kindred.config doesn't sys.exit(),
and provides common fixtures like a temp DB and an in-memory notifier.
"""

import os

# Patch env vars BEFORE any kindred imports
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "fake-token-for-tests")
os.environ.setdefault("ALLOWED_USER_IDS", "12345")
os.environ.setdefault("DATABASE_PATH", ":memory:")
os.environ.setdefault("TIMEZONE", "UTC")

from datetime import datetime, timezone

import pytest

from kindred.data.models import Contact
from kindred.ports.notification_port import NotificationRequest, ScheduledNotification


def ms(iso: str) -> int:
    """Epoch milliseconds for an ISO timestamp (naive values are UTC)."""
    dt = datetime.fromisoformat(iso)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp() * 1000)


def make_contact(**overrides) -> Contact:
    fields = {
        "id": "contact-1",
        "name": "Ada",
        "cadence": "weekly",
        "custom_interval_days": None,
        "last_contacted_at": None,
        "next_reminder_at": None,
        "birthday": None,
        "is_archived": False,
    }
    fields.update(overrides)
    return Contact(**fields)


class FakeNotifier:
    """In-memory NotificationPort that records every request."""

    def __init__(self, granted: bool = True) -> None:
        self.granted = granted
        self.pending: dict[str, NotificationRequest] = {}
        self.scheduled_calls: list[NotificationRequest] = []
        self.cancelled: list[str] = []

    async def ensure_permissions(self) -> bool:
        return self.granted

    async def list_scheduled(self) -> list[ScheduledNotification]:
        return [
            ScheduledNotification(identifier=r.identifier, data=dict(r.data))
            for r in self.pending.values()
        ]

    async def cancel(self, identifier: str) -> None:
        self.cancelled.append(identifier)
        self.pending.pop(identifier, None)

    async def schedule(self, request: NotificationRequest) -> str:
        self.scheduled_calls.append(request)
        self.pending[request.identifier] = request
        return request.identifier

    def for_contact(self, contact_id: str) -> list[NotificationRequest]:
        return [
            r for r in self.pending.values()
            if r.data.get("contactId") == contact_id
        ]


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def tmp_db_path(tmp_path):
    """Return a temporary SQLite DB path."""
    return str(tmp_path / "test_kindred.db")


@pytest.fixture
def contact_db(tmp_db_path):
    """Return a ContactDB instance backed by a temp file."""
    from kindred.data.db import ContactDB
    return ContactDB(db_path=tmp_db_path)
