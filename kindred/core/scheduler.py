"""
Kindred — Reminder Scheduler.

Per-contact reminders: every call cancels the contact's pending reminders
and then schedules one delivery request per trigger slot, so rescheduling
is idempotent. Daily digests: one notification per slot naming every
contact that is due today.

This module is provider-agnostic: it depends on the NotificationPort
protocol, not on a specific delivery adapter. Calls for the same contact id
must not run concurrently.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import tzinfo
from typing import TYPE_CHECKING

from kindred.core.birthdays import is_birthday_today
from kindred.core.clock import day_bounds_ms, local_date
from kindred.core.triggers import (
    IOS_PROFILE,
    PlatformProfile,
    contact_copy,
    digest_copy,
    resolve_trigger_times,
)
from kindred.ports.notification_port import NotificationRequest

if TYPE_CHECKING:
    from kindred.data.models import Contact, NotificationSettings
    from kindred.ports.notification_port import NotificationPort

logger = logging.getLogger(__name__)

CONTACT_REMINDER = "contact-reminder"
DAILY_REMINDER = "daily-reminder"


def contact_reminder_id(contact_id: str, index: int = 0) -> str:
    """Identifier of a contact's n-th trigger.

    Slot numbers follow a "#", which never collides with hyphenated ids.
    """
    base = f"{CONTACT_REMINDER}-{contact_id}"
    return base if index == 0 else f"{base}#{index}"


def _is_contact_slot(identifier: str, contact_id: str) -> bool:
    base = contact_reminder_id(contact_id)
    if identifier == base:
        return True
    slot = identifier[len(base) + 1:]
    return identifier.startswith(f"{base}#") and slot.isdigit()


# ---------------------------------------------------------------------------
# Cancellation
# ---------------------------------------------------------------------------


async def cancel_contact_reminder(notifier: NotificationPort, contact_id: str) -> int:
    """Cancel every pending reminder tied to a contact. Returns the count."""
    cancelled = 0
    for item in await notifier.list_scheduled():
        tagged = item.data.get("contactId")
        if tagged is not None:
            matches = tagged == contact_id
        else:
            matches = _is_contact_slot(item.identifier, contact_id)
        if matches:
            await notifier.cancel(item.identifier)
            cancelled += 1
    if cancelled:
        logger.debug("Cancelled %d reminder(s) for contact %s", cancelled, contact_id)
    return cancelled


async def cancel_daily_digest(notifier: NotificationPort) -> int:
    cancelled = 0
    for item in await notifier.list_scheduled():
        if (
            item.data.get("type") == DAILY_REMINDER
            or item.identifier.startswith(f"{DAILY_REMINDER}-")
        ):
            await notifier.cancel(item.identifier)
            cancelled += 1
    return cancelled


async def cancel_all_reminders(notifier: NotificationPort) -> None:
    """Cancel every pending reminder and digest."""
    scheduled = await notifier.list_scheduled()
    for item in scheduled:
        await notifier.cancel(item.identifier)
    logger.info("Cancelled all %d pending reminder(s)", len(scheduled))


# ---------------------------------------------------------------------------
# Per-contact reminders
# ---------------------------------------------------------------------------


async def schedule_reminder(
    contact: Contact,
    notifier: NotificationPort,
    preferences: NotificationSettings,
    now_ms: int,
    profile: PlatformProfile = IOS_PROFILE,
    tz: tzinfo | None = None,
) -> str | None:
    """Cancel and re-create the reminders for one contact.

    Returns the identifier of the first scheduled reminder, or None when
    nothing was scheduled (no due date, archived, or no permission).
    """
    await cancel_contact_reminder(notifier, contact.id)

    if contact.next_reminder_at is None:
        return None
    if contact.is_archived:
        return None

    if not await notifier.ensure_permissions():
        logger.info("Notification permission denied; skipping %s", contact.id)
        return None

    birthday_today = is_birthday_today(contact, local_date(now_ms, tz))
    triggers = resolve_trigger_times(
        contact.next_reminder_at, now_ms, preferences,
        birthday_today=birthday_today, tz=tz,
    )
    if not triggers:
        return None

    copy = contact_copy(contact.name, profile)
    identifiers: list[str] = []
    for index, trigger_at in enumerate(triggers):
        identifier = await notifier.schedule(
            NotificationRequest(
                identifier=contact_reminder_id(contact.id, index),
                title=copy.title,
                body=copy.body,
                trigger_at=trigger_at,
                data={"type": CONTACT_REMINDER, "contactId": contact.id},
            )
        )
        identifiers.append(identifier)

    logger.info(
        "Scheduled %d reminder(s) for contact %s, first at %d%s",
        len(identifiers), contact.id, triggers[0],
        " (birthday)" if birthday_today else "",
    )
    return identifiers[0]


async def reschedule_all(
    contacts: list[Contact],
    notifier: NotificationPort,
    preferences: NotificationSettings,
    now_ms: int,
    profile: PlatformProfile = IOS_PROFILE,
    tz: tzinfo | None = None,
) -> dict[str, str | None]:
    """Reschedule every contact, e.g. after notification settings change.

    Distinct contacts are independent, so they run concurrently. A failure
    for one contact is logged and reported as None.
    """
    unique: dict[str, Contact] = {c.id: c for c in contacts}

    async def _one(contact: Contact) -> str | None:
        try:
            return await schedule_reminder(
                contact, notifier, preferences, now_ms, profile=profile, tz=tz,
            )
        except Exception as exc:
            logger.error("Failed to schedule reminder for %s: %s", contact.id, exc)
            return None

    results = await asyncio.gather(*(_one(c) for c in unique.values()))
    scheduled = dict(zip(unique, results))
    logger.info(
        "Rescheduled %d contact(s), %d with reminders",
        len(scheduled), sum(1 for r in scheduled.values() if r),
    )
    return scheduled


# ---------------------------------------------------------------------------
# Daily digest
# ---------------------------------------------------------------------------


def _due_today(contact: Contact, now_ms: int, tz: tzinfo | None) -> bool:
    if contact.is_archived:
        return False
    today = local_date(now_ms, tz)
    if is_birthday_today(contact, today):
        return True
    if contact.next_reminder_at is None:
        return False
    _, end_of_today = day_bounds_ms(today, tz)
    return contact.next_reminder_at <= end_of_today


async def schedule_daily_digest(
    contacts: list[Contact],
    notifier: NotificationPort,
    preferences: NotificationSettings,
    now_ms: int,
    profile: PlatformProfile = IOS_PROFILE,
    tz: tzinfo | None = None,
) -> list[str]:
    """Schedule one digest per remaining slot naming every contact due today."""
    await cancel_daily_digest(notifier)

    due = [c for c in contacts if _due_today(c, now_ms, tz)]
    if not due:
        return []

    if not await notifier.ensure_permissions():
        logger.info("Notification permission denied; skipping daily digest")
        return []

    copy = digest_copy([c.name for c in due], profile)
    identifiers: list[str] = []
    for index, trigger_at in enumerate(
        resolve_trigger_times(now_ms, now_ms, preferences, tz=tz)
    ):
        identifiers.append(
            await notifier.schedule(
                NotificationRequest(
                    identifier=f"{DAILY_REMINDER}-{index}",
                    title=copy.title,
                    body=copy.body,
                    trigger_at=trigger_at,
                    data={"type": DAILY_REMINDER, "contactIds": [c.id for c in due]},
                )
            )
        )

    logger.info("Daily digest scheduled for %d contact(s) in %d slot(s)", len(due), len(identifiers))
    return identifiers
