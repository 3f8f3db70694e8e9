"""Notification trigger resolver — pure business logic.

Turns one due timestamp into the concrete future instants at which the
user should be notified, based on how many reminders per day they want
and at which clock times. Also builds the notification copy.

No I/O: ``kindred.core.scheduler`` hands the results to the
delivery port.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from typing import TYPE_CHECKING

from kindred.core.clock import local_date, to_ms

if TYPE_CHECKING:
    from kindred.data.models import NotificationSettings

logger = logging.getLogger(__name__)

FALLBACK_NAME = "this connection"
MAX_LOOKAHEAD_DAYS = 366
_DEFAULT_SLOT = time(9, 0)


@dataclass(frozen=True)
class PlatformProfile:
    """Copy templates and digest truncation cap for one platform family."""

    name: str
    digest_name_cap: int
    contact_title: str
    contact_body: str
    digest_prefix: str
    digest_body: str


IOS_PROFILE = PlatformProfile(
    name="ios",
    digest_name_cap=2,
    contact_title="Reach out to {name}",
    contact_body="Check in with {name} today.",
    digest_prefix="Reach out: ",
    digest_body="{count} connections are ready today.",
)

ANDROID_PROFILE = PlatformProfile(
    name="android",
    digest_name_cap=3,
    contact_title="Reminder: Reach out to {name}",
    contact_body="{name} is ready for a check-in.",
    digest_prefix="Reminder: ",
    digest_body="You have {count} connections ready today.",
)

PROFILES = {p.name: p for p in (IOS_PROFILE, ANDROID_PROFILE)}


@dataclass
class NotificationCopy:
    title: str
    body: str


def display_name(name: str | None) -> str:
    """Trimmed contact name, or the fallback label when blank."""
    cleaned = (name or "").strip()
    return cleaned or FALLBACK_NAME


def _parse_slot(raw: str) -> time:
    """Parse an HH:MM string. Raises ValueError on malformed input."""
    hour_str, minute_str = raw.strip().split(":")
    hour, minute = int(hour_str), int(minute_str)
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValueError(f"Hour/minute out of range: {hour}:{minute}")
    return time(hour, minute)


def parse_reminder_times(times: list[str]) -> list[time]:
    """Parse, deduplicate and sort HH:MM strings.

    Malformed entries are dropped. Falls back to a single 09:00 slot when
    nothing parses.
    """
    slots: set[time] = set()
    for raw in times:
        try:
            slots.add(_parse_slot(raw))
        except (ValueError, AttributeError) as exc:
            logger.warning("Ignoring malformed reminder time %r: %s", raw, exc)
    if not slots:
        return [_DEFAULT_SLOT]
    return sorted(slots)


def resolve_trigger_times(
    due_ms: int,
    now_ms: int,
    preferences: NotificationSettings,
    birthday_today: bool = False,
    tz: tzinfo | None = None,
) -> list[int]:
    """Return up to ``preferences.frequency`` future trigger instants.

    Starts on the due date's day (or today, if that is later or if the
    birthday override applies) and walks forward day by day through the
    configured slots, keeping only slots strictly after ``now_ms``.
    """
    frequency = max(1, preferences.frequency)
    slots = parse_reminder_times(preferences.reminder_times[:frequency])

    today = local_date(now_ms, tz)
    start_day = today if birthday_today else max(today, local_date(due_ms, tz))

    triggers: list[int] = []
    for offset in range(MAX_LOOKAHEAD_DAYS):
        day: date = start_day + timedelta(days=offset)
        for slot in slots:
            ts = to_ms(datetime.combine(day, slot, tzinfo=tz))
            if ts <= now_ms:
                continue
            triggers.append(ts)
            if len(triggers) >= frequency:
                return triggers
    return triggers


def contact_copy(name: str | None, profile: PlatformProfile = IOS_PROFILE) -> NotificationCopy:
    """Copy for a reminder about a single contact."""
    shown = display_name(name)
    return NotificationCopy(
        title=profile.contact_title.format(name=shown),
        body=profile.contact_body.format(name=shown),
    )


def digest_copy(names: list[str], profile: PlatformProfile = IOS_PROFILE) -> NotificationCopy:
    """Copy for a daily digest covering several due contacts."""
    if len(names) == 1:
        return contact_copy(names[0], profile)

    shown = [display_name(n) for n in names]
    cap = profile.digest_name_cap
    if len(shown) > cap:
        listed = f"{', '.join(shown[:cap])} and {len(shown) - cap} more"
    else:
        listed = f"{', '.join(shown[:-1])} and {shown[-1]}"

    return NotificationCopy(
        title=f"{profile.digest_prefix}{listed}",
        body=profile.digest_body.format(count=len(shown)),
    )
