"""Notification port — abstract interface for delivering reminders.

Core modules decide *when* to notify; the adapter behind this protocol owns
*how* delivery happens.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol


@dataclass
class NotificationRequest:
    """One reminder to fire at ``trigger_at`` (epoch ms)."""

    identifier: str
    title: str
    body: str
    trigger_at: int
    data: dict = field(default_factory=dict)


@dataclass
class ScheduledNotification:
    """A pending reminder as reported by the delivery adapter."""

    identifier: str
    data: dict = field(default_factory=dict)


class NotificationPort(Protocol):
    """Abstract delivery interface used by core modules."""

    async def ensure_permissions(self) -> bool: ...

    async def list_scheduled(self) -> list[ScheduledNotification]: ...

    async def cancel(self, identifier: str) -> None: ...

    async def schedule(self, request: NotificationRequest) -> str: ...
