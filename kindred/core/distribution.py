"""
Kindred — Import Distribution.

When the user imports many contacts at once, scheduling every first
reminder for the same day would produce a storm of notifications. This
module spreads each cadence group evenly across its period instead.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import tzinfo

from kindred.core.cadence import CUSTOM, group_period_days
from kindred.core.clock import DAY_MS, day_key

logger = logging.getLogger(__name__)


@dataclass
class ImportCandidate:
    """A contact picked for import, before it has a reminder date."""

    id: str
    name: str
    cadence: str
    custom_interval_days: int | None = None


@dataclass
class DistributionResult:
    """An import candidate with its spread-out first reminder."""

    id: str
    name: str
    cadence: str
    next_reminder_at: int
    custom_interval_days: int | None = None


def distribute_contacts(
    candidates: list[ImportCandidate],
    from_ms: int,
) -> list[DistributionResult]:
    """Spread first reminders across each cadence group's period.

    Contacts are grouped by cadence (all custom contacts share one group,
    whose period is the first member's interval). In a group of size g with
    period P days, the i-th member is offset by floor(i * P / g) days.
    Output order matches input order.
    """
    groups: dict[str, list[int]] = {}
    for index, candidate in enumerate(candidates):
        groups.setdefault(candidate.cadence, []).append(index)

    offsets: dict[int, int] = {}
    for cadence, members in groups.items():
        first = candidates[members[0]]
        # TODO: space custom contacts by their own interval, not the first member's.
        period = group_period_days(
            cadence, first.custom_interval_days if cadence == CUSTOM else None,
        )
        size = len(members)
        if size == 1:
            offsets[members[0]] = 0
            continue
        spacing = period / size
        for position, index in enumerate(members):
            offsets[index] = math.floor(position * spacing)
        logger.debug(
            "Distributed %d '%s' contacts over %d days (spacing %.2f)",
            size, cadence, period, spacing,
        )

    return [
        DistributionResult(
            id=c.id,
            name=c.name,
            cadence=c.cadence,
            next_reminder_at=from_ms + offsets[i] * DAY_MS,
            custom_interval_days=c.custom_interval_days,
        )
        for i, c in enumerate(candidates)
    ]


def group_by_day(
    results: list[DistributionResult],
    tz: tzinfo | None = None,
) -> dict[str, list[DistributionResult]]:
    """Group distributed contacts by local day key, in chronological order."""
    grouped: dict[str, list[DistributionResult]] = {}
    for result in sorted(results, key=lambda r: r.next_reminder_at):
        grouped.setdefault(day_key(result.next_reminder_at, tz), []).append(result)
    return grouped
