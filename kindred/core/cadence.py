"""Cadence table and next-date calculator — pure business logic.

A cadence names how often the user wants to reach out to someone. Each
named cadence maps to a fixed period in days; ``custom`` reads the
contact's own interval instead.

No I/O: this module only transforms data.
"""

from __future__ import annotations

from kindred.core.clock import DAY_MS

CUSTOM = "custom"

CADENCE_DAYS: dict[str, int] = {
    "daily": 1,
    "weekly": 7,
    "bi-weekly": 14,
    "every-three-weeks": 21,
    "monthly": 30,
    "every-six-months": 182,
    "yearly": 365,
}

CADENCES: tuple[str, ...] = (*CADENCE_DAYS, CUSTOM)

_DEFAULT_CUSTOM_DAYS = 30


class UnknownCadenceError(ValueError):
    """Raised when a cadence name is outside the closed set of cadences."""


def is_known_cadence(cadence: str) -> bool:
    return cadence in CADENCES


def valid_custom_interval(custom_interval_days: int | None) -> int | None:
    """Return the interval if it is a usable day count (>= 1), else None."""
    if custom_interval_days is None:
        return None
    try:
        days = int(custom_interval_days)
    except (TypeError, ValueError):
        return None
    return days if days >= 1 else None


def period_days(cadence: str, custom_interval_days: int | None = None) -> int | None:
    """Return the period of a cadence in days.

    Returns None for a custom cadence without a valid interval.
    Raises UnknownCadenceError for names outside ``CADENCES``.
    """
    if cadence == CUSTOM:
        return valid_custom_interval(custom_interval_days)
    try:
        return CADENCE_DAYS[cadence]
    except KeyError:
        raise UnknownCadenceError(f"Unsupported cadence: {cadence!r}") from None


def compute_next_date(
    cadence: str,
    from_ms: int,
    custom_interval_days: int | None = None,
) -> int | None:
    """Compute the next due timestamp for a cadence, starting at ``from_ms``.

    Args:
        cadence: One of ``CADENCES``.
        from_ms: Anchor instant in epoch milliseconds.
        custom_interval_days: Interval used when cadence is ``custom``.

    Returns:
        ``from_ms`` plus one period, or None when a custom cadence has no
        valid interval (the contact is unschedulable, which is not an error).
    """
    days = period_days(cadence, custom_interval_days)
    if days is None:
        return None
    return from_ms + days * DAY_MS


def group_period_days(cadence: str, custom_interval_days: int | None = None) -> int:
    """Period used to spread a batch of contacts sharing one cadence.

    Custom groups fall back to 30 days when the interval is unset.
    """
    if cadence == CUSTOM:
        return valid_custom_interval(custom_interval_days) or _DEFAULT_CUSTOM_DAYS
    return period_days(cadence)


def recurrence_period_ms(cadence: str, custom_interval_days: int | None = None) -> int | None:
    """Period in ms for recurrence math, or None when there is no fixed period.

    Unlike ``period_days`` this never raises: an unknown cadence simply
    has no recurrence.
    """
    if cadence == CUSTOM:
        days = valid_custom_interval(custom_interval_days)
    else:
        days = CADENCE_DAYS.get(cadence)
    return days * DAY_MS if days else None
