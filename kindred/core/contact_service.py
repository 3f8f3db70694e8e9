"""
Kindred — Contact Service.

UI-agnostic service layer that applies the reminder lifecycle: every
operation that changes a contact's anchor persists it through the
ContactStore port and then re-runs the reminder scheduler for that contact.

Each UI adapter (the Telegram bot, tests) calls this service; the pure
engine modules never touch storage or delivery themselves.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import tzinfo
from typing import TYPE_CHECKING

from kindred.core.cadence import CUSTOM, compute_next_date, period_days
from kindred.core.clock import DAY_MS, now_ms as wall_clock_ms
from kindred.core.distribution import ImportCandidate, distribute_contacts
from kindred.core.scheduler import (
    cancel_all_reminders,
    cancel_contact_reminder,
    reschedule_all,
    schedule_reminder,
)
from kindred.core.snooze import resolve_snooze
from kindred.core.triggers import IOS_PROFILE, PlatformProfile
from kindred.data.models import Contact, Interaction, NotificationSettings

if TYPE_CHECKING:
    from kindred.ports.contact_store_port import ContactStore
    from kindred.ports.notification_port import NotificationPort

logger = logging.getLogger(__name__)


class ContactNotFoundError(LookupError):
    """Raised when an operation targets a contact id that does not exist."""


@dataclass
class NewContact:
    """Fields supplied by the caller when adding a contact."""

    name: str
    cadence: str
    custom_interval_days: int | None = None
    last_contacted_at: int | None = None
    next_reminder_at: int | None = None
    birthday: str | None = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))


class ContactService:
    """Contact lifecycle operations wired to storage and delivery ports."""

    def __init__(
        self,
        store: ContactStore,
        notifier: NotificationPort,
        preferences: NotificationSettings | None = None,
        profile: PlatformProfile = IOS_PROFILE,
        tz: tzinfo | None = None,
        snap_window_ms: int = DAY_MS,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self.preferences = preferences or NotificationSettings()
        self._profile = profile
        self._tz = tz
        self._snap_window_ms = snap_window_ms

    # -- helpers ------------------------------------------------------------

    def _get(self, contact_id: str) -> Contact:
        contact = self._store.select_by_id(contact_id)
        if contact is None:
            raise ContactNotFoundError(f"Contact not found: {contact_id}")
        return contact

    def _update(self, contact_id: str, **fields: object) -> Contact:
        updated = self._store.update(contact_id, **fields)
        if updated is None:
            raise ContactNotFoundError(f"Contact not found: {contact_id}")
        return updated

    async def _schedule(self, contact: Contact, now: int) -> str | None:
        return await schedule_reminder(
            contact, self._notifier, self.preferences, now,
            profile=self._profile, tz=self._tz,
        )

    # -- lifecycle ----------------------------------------------------------

    async def add_contact(self, new: NewContact, now_ms: int | None = None) -> Contact:
        """Insert a contact and schedule its first reminder.

        Without an explicit anchor, the next date is computed from the last
        interaction; if that yields nothing the reminder is due now.
        """
        now = now_ms if now_ms is not None else wall_clock_ms()
        period_days(new.cadence, new.custom_interval_days)  # rejects unknown cadences

        anchor = new.next_reminder_at
        if anchor is None and new.last_contacted_at is not None:
            anchor = compute_next_date(
                new.cadence, new.last_contacted_at, new.custom_interval_days,
            )
        if anchor is None:
            anchor = now

        contact = self._store.insert(
            Contact(
                id=new.id,
                name=new.name.strip(),
                cadence=new.cadence,
                custom_interval_days=new.custom_interval_days if new.cadence == CUSTOM else None,
                last_contacted_at=new.last_contacted_at,
                next_reminder_at=anchor,
                birthday=new.birthday,
            )
        )
        await self._schedule(contact, now)
        return contact

    async def import_contacts(
        self, candidates: list[ImportCandidate], now_ms: int | None = None,
    ) -> list[Contact]:
        """Bulk-add contacts with first reminders spread across each cadence."""
        now = now_ms if now_ms is not None else wall_clock_ms()
        added: list[Contact] = []
        for result in distribute_contacts(candidates, now):
            added.append(
                await self.add_contact(
                    NewContact(
                        id=result.id,
                        name=result.name,
                        cadence=result.cadence,
                        custom_interval_days=result.custom_interval_days,
                        next_reminder_at=result.next_reminder_at,
                    ),
                    now_ms=now,
                )
            )
        logger.info("Imported %d contact(s)", len(added))
        return added

    async def log_interaction(
        self,
        contact_id: str,
        kind: str,
        notes: str | None = None,
        now_ms: int | None = None,
    ) -> Contact:
        """Record an interaction and restart the cadence from it."""
        now = now_ms if now_ms is not None else wall_clock_ms()
        contact = self._get(contact_id)

        next_at = compute_next_date(contact.cadence, now, contact.custom_interval_days)
        self._store.add_interaction(
            Interaction(
                id=str(uuid.uuid4()),
                contact_id=contact_id,
                occurred_at=now,
                kind=kind,
                notes=notes,
            )
        )
        updated = self._update(
            contact_id,
            last_contacted_at=now,
            next_reminder_at=next_at if next_at is not None else now,
        )
        await self._schedule(updated, now)
        return updated

    async def update_cadence(
        self,
        contact_id: str,
        cadence: str,
        custom_interval_days: int | None = None,
        anchor_ms: int | None = None,
        now_ms: int | None = None,
    ) -> Contact:
        """Change a contact's cadence.

        An explicit anchor wins. Otherwise a changed cadence restarts from now,
        and an unchanged one is recomputed from the last interaction.
        """
        now = now_ms if now_ms is not None else wall_clock_ms()
        contact = self._get(contact_id)
        period_days(cadence, custom_interval_days)

        interval = custom_interval_days if cadence == CUSTOM else None
        if anchor_ms is not None:
            anchor = anchor_ms
        elif cadence != contact.cadence or interval != contact.custom_interval_days:
            anchor = now
        else:
            anchor = compute_next_date(
                cadence, contact.last_contacted_at or now, interval,
            )
            if anchor is None:
                anchor = now

        updated = self._update(
            contact_id,
            cadence=cadence,
            custom_interval_days=interval,
            next_reminder_at=anchor,
        )
        await self._schedule(updated, now)
        return updated

    async def snooze_contact(
        self, contact_id: str, until_ms: int, now_ms: int | None = None,
    ) -> Contact:
        now = now_ms if now_ms is not None else wall_clock_ms()
        contact = self._get(contact_id)
        anchor = resolve_snooze(
            contact, until_ms, now, snap_window_ms=self._snap_window_ms, tz=self._tz,
        )
        updated = self._update(contact_id, next_reminder_at=anchor)
        await self._schedule(updated, now)
        return updated

    async def archive_contact(self, contact_id: str) -> Contact:
        """Archive a contact. Its anchor is kept but no reminders fire."""
        self._get(contact_id)
        updated = self._update(contact_id, is_archived=True)
        await cancel_contact_reminder(self._notifier, contact_id)
        logger.info("Contact %s archived", contact_id)
        return updated

    async def unarchive_contact(self, contact_id: str, now_ms: int | None = None) -> Contact:
        now = now_ms if now_ms is not None else wall_clock_ms()
        self._get(contact_id)
        updated = self._update(contact_id, is_archived=False)
        await self._schedule(updated, now)
        logger.info("Contact %s unarchived", contact_id)
        return updated

    async def apply_preferences(
        self, preferences: NotificationSettings, now_ms: int | None = None,
    ) -> dict[str, str | None]:
        """Store new notification preferences and reschedule every contact."""
        now = now_ms if now_ms is not None else wall_clock_ms()
        self.preferences = preferences
        return await reschedule_all(
            self._store.select_all(include_archived=True),
            self._notifier, preferences, now,
            profile=self._profile, tz=self._tz,
        )

    async def reset(self) -> None:
        """Cancel every reminder and delete all stored data."""
        await cancel_all_reminders(self._notifier)
        self._store.delete_all()

    # -- queries ------------------------------------------------------------

    def list_contacts(self, include_archived: bool = False) -> list[Contact]:
        return self._store.select_all(include_archived=include_archived)

    def get_due_contacts(self, now_ms: int | None = None) -> list[Contact]:
        """Contacts never contacted or whose reminder is due."""
        now = now_ms if now_ms is not None else wall_clock_ms()
        return [
            c for c in self._store.select_all()
            if c.last_contacted_at is None
            or (c.next_reminder_at is not None and c.next_reminder_at <= now)
        ]

    def find_by_name(self, name: str) -> Contact | None:
        """Case-insensitive lookup among active contacts."""
        wanted = name.strip().lower()
        for contact in self._store.select_all():
            if contact.name.strip().lower() == wanted:
                return contact
        return None

    def interaction_history(self, contact_id: str) -> list[Interaction]:
        return self._store.list_interactions(contact_id)
