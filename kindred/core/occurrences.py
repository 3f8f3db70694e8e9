"""
Kindred — Occurrence Projector.

Projects a contact's recurring reminder onto a date range for calendar and
agenda views. The calendar grid, the agenda for one day and the monthly
counter all go through ``occurrences_in_range`` so they never disagree.

No I/O: callers pass in the contacts to project.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, tzinfo
from typing import TYPE_CHECKING

from kindred.core.birthdays import birthday_in_year, parse_birthday
from kindred.core.cadence import recurrence_period_ms
from kindred.core.clock import day_bounds_ms, day_key, local_date

if TYPE_CHECKING:
    from kindred.data.models import Contact


@dataclass
class CalendarDay:
    """Everything the calendar grid shows for one day."""

    contact_ids: list[str] = field(default_factory=list)
    overdue_count: int = 0
    birthday_ids: list[str] = field(default_factory=list)

    @property
    def contact_count(self) -> int:
        return len(self.contact_ids)


def occurrences_in_range(contact: Contact, start_ms: int, end_ms: int) -> list[int]:
    """Every timestamp in ``[start_ms, end_ms]`` on which the reminder recurs.

    The anchor is fast-forwarded by whole periods, so far-future ranges cost
    the same as near ones. A contact without a fixed period contributes its
    anchor only, when that falls inside the range.
    """
    anchor = contact.next_reminder_at
    if anchor is None or end_ms < start_ms:
        return []

    period = recurrence_period_ms(contact.cadence, contact.custom_interval_days)
    if period is None:
        return [anchor] if start_ms <= anchor <= end_ms else []

    current = anchor
    if current < start_ms:
        jumps = -(-(start_ms - anchor) // period)  # ceil for positive ints
        current = anchor + jumps * period

    occurrences: list[int] = []
    while current <= end_ms:
        occurrences.append(current)
        current += period
    return occurrences


def is_due_on(contact: Contact, day: date, tz: tzinfo | None = None) -> bool:
    """True if the contact's reminder recurs on the given local day."""
    start, end = day_bounds_ms(day, tz)
    return bool(occurrences_in_range(contact, start, end))


def birthday_dates(birthday: str | None, year: int) -> list[date]:
    """The birthday's calendar days in ``year - 1``, ``year`` and ``year + 1``.

    Three years are returned so queries near a year boundary still see
    the neighbouring birthday.
    """
    parsed = parse_birthday(birthday)
    if parsed is None:
        return []
    return [birthday_in_year(parsed, y) for y in (year - 1, year, year + 1)]


def is_overdue(contact: Contact, now_ms: int) -> bool:
    if contact.next_reminder_at is None:
        return contact.last_contacted_at is not None
    return contact.next_reminder_at <= now_ms


def build_calendar_data(
    contacts: list[Contact],
    start_ms: int,
    end_ms: int,
    now_ms: int,
    tz: tzinfo | None = None,
) -> dict[str, CalendarDay]:
    """Aggregate reminder and birthday markers per day key for a range."""
    data: dict[str, CalendarDay] = {}
    first_day = local_date(start_ms, tz)
    last_day = local_date(end_ms, tz)

    for contact in contacts:
        if contact.is_archived:
            continue

        overdue = is_overdue(contact, now_ms)
        for ts in occurrences_in_range(contact, start_ms, end_ms):
            entry = data.setdefault(day_key(ts, tz), CalendarDay())
            entry.contact_ids.append(contact.id)
            if overdue and ts == contact.next_reminder_at:
                entry.overdue_count += 1

        for year in range(first_day.year, last_day.year + 1):
            for bday in birthday_dates(contact.birthday, year):
                if first_day <= bday <= last_day:
                    entry = data.setdefault(bday.isoformat(), CalendarDay())
                    if contact.id not in entry.birthday_ids:
                        entry.birthday_ids.append(contact.id)

    return data


def contacts_due_on(
    contacts: list[Contact],
    day: date,
    now_ms: int,
    tz: tzinfo | None = None,
) -> list[Contact]:
    """Contacts with a reminder on ``day``: overdue first, then by anchor."""
    due = [c for c in contacts if not c.is_archived and is_due_on(c, day, tz)]
    return sorted(
        due,
        key=lambda c: (not is_overdue(c, now_ms), c.next_reminder_at or 0),
    )


def count_due_in_month(
    contacts: list[Contact],
    year: int,
    month: int,
    tz: tzinfo | None = None,
) -> int:
    """Number of contacts with at least one reminder in the given month (1-12)."""
    first = date(year, month, 1)
    following = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    start, _ = day_bounds_ms(first, tz)
    end = day_bounds_ms(following, tz)[0] - 1
    return sum(
        1 for c in contacts
        if not c.is_archived and occurrences_in_range(c, start, end)
    )
