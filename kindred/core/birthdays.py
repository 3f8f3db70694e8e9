"""Birthday parsing and rules — pure business logic.

Birthdays are stored as "MM-DD" (year unknown) or "YYYY-MM-DD".
A birthday always surfaces a reminder on the day itself, whatever the
contact's cadence anchor says.
"""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from kindred.data.models import Contact

# February allows 29 when the year is unknown
_MAX_DAYS_IN_MONTH = [31, 29, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31]

_MONTH_DAY_RE = re.compile(r"^(\d{1,2})-(\d{1,2})$")
_FULL_DATE_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")


@dataclass
class ValidationResult:
    valid: bool
    error: str | None = None


@dataclass
class Birthday:
    month: int
    day: int
    year: int | None = None


def parse_birthday(value: str | None) -> Birthday | None:
    """Parse a stored birthday string, or return None if absent or invalid."""
    if not value:
        return None
    cleaned = value.strip().replace("/", "-")

    full = _FULL_DATE_RE.match(cleaned)
    if full:
        year, month, day = (int(p) for p in full.groups())
        if not 1 <= month <= 12:
            return None
        if not 1 <= day <= calendar.monthrange(year, month)[1]:
            return None
        return Birthday(month=month, day=day, year=year)

    short = _MONTH_DAY_RE.match(cleaned)
    if short:
        month, day = (int(p) for p in short.groups())
        if not 1 <= month <= 12:
            return None
        if not 1 <= day <= _MAX_DAYS_IN_MONTH[month - 1]:
            return None
        return Birthday(month=month, day=day)

    return None


def validate_birthday(text: str) -> ValidationResult:
    """Validate user input in MM/DD or MM-DD form. Empty input is valid."""
    trimmed = text.strip()
    if trimmed == "":
        return ValidationResult(valid=True)

    match = _MONTH_DAY_RE.match(trimmed.replace("/", "-"))
    if not match:
        return ValidationResult(valid=False, error="Use format MM/DD")

    month, day = (int(p) for p in match.groups())
    if not 1 <= month <= 12:
        return ValidationResult(valid=False, error="Month must be 1-12")
    if not 1 <= day <= _MAX_DAYS_IN_MONTH[month - 1]:
        return ValidationResult(valid=False, error="Invalid day for this month")
    return ValidationResult(valid=True)


def normalize_birthday(text: str) -> str:
    """Return "MM-DD" for valid input, or "" for empty or invalid input."""
    trimmed = text.strip()
    if not trimmed or not validate_birthday(trimmed).valid:
        return ""
    month, day = (int(p) for p in trimmed.replace("/", "-").split("-"))
    return f"{month:02d}-{day:02d}"


def birthday_in_year(birthday: Birthday, year: int) -> date:
    """The calendar day of a birthday in ``year``.

    Feb 29 birthdays land on Feb 28 in non-leap years.
    """
    if birthday.month == 2 and birthday.day == 29 and not calendar.isleap(year):
        return date(year, 2, 28)
    return date(year, birthday.month, birthday.day)


def is_birthday_today(contact: Contact, today: date) -> bool:
    parsed = parse_birthday(contact.birthday)
    if parsed is None:
        return False
    return birthday_in_year(parsed, today.year) == today


def reminder_priority(contact: Contact, today: date) -> str:
    """Return "birthday" when today is the contact's birthday, else "standard"."""
    return "birthday" if is_birthday_today(contact, today) else "standard"
