"""Snooze resolver — pure business logic.

Decides the real new anchor when the user pushes a reminder out. Two rules:

1. Snoozing a birthday prompt never pulls the cadence anchor earlier.
2. A request landing just before the next cadence boundary snaps onto it,
   so the user is not reminded twice within a few hours.
"""

from __future__ import annotations

import logging
from datetime import tzinfo
from typing import TYPE_CHECKING

from kindred.core.birthdays import is_birthday_today
from kindred.core.cadence import recurrence_period_ms
from kindred.core.clock import DAY_MS, local_date

if TYPE_CHECKING:
    from kindred.data.models import Contact

logger = logging.getLogger(__name__)

DEFAULT_SNAP_WINDOW_MS = DAY_MS


def next_cadence_boundary(anchor_ms: int, period_ms: int, at_or_after_ms: int) -> int:
    """First ``anchor + k * period`` (k >= 0) that is not before ``at_or_after_ms``."""
    if at_or_after_ms <= anchor_ms:
        return anchor_ms
    jumps = -(-(at_or_after_ms - anchor_ms) // period_ms)
    return anchor_ms + jumps * period_ms


def resolve_snooze(
    contact: Contact,
    requested_ms: int,
    now_ms: int,
    snap_window_ms: int = DEFAULT_SNAP_WINDOW_MS,
    tz: tzinfo | None = None,
) -> int:
    """Return the anchor to persist for a snooze request."""
    anchor = contact.next_reminder_at

    if (
        anchor is not None
        and anchor > now_ms
        and requested_ms < anchor
        and is_birthday_today(contact, local_date(now_ms, tz))
    ):
        logger.info(
            "Snooze for %s kept at cadence anchor %d (birthday prompt)",
            contact.id, anchor,
        )
        return anchor

    period = recurrence_period_ms(contact.cadence, contact.custom_interval_days)
    if anchor is None or period is None:
        return requested_ms

    boundary = next_cadence_boundary(anchor, period, requested_ms)
    if 0 <= boundary - requested_ms <= snap_window_ms:
        if boundary != requested_ms:
            logger.info(
                "Snooze for %s snapped from %d to cadence boundary %d",
                contact.id, requested_ms, boundary,
            )
        return boundary
    return requested_ms
