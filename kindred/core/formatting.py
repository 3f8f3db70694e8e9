"""Human-readable relative labels for reminder and interaction times."""

from __future__ import annotations

import math

from kindred.core.clock import DAY_MS


def format_last_connected(timestamp: int | None, now_ms: int) -> str:
    if not timestamp:
        return "Never"

    days = max(0, now_ms - timestamp) // DAY_MS
    if days == 0:
        return "Today"
    if days <= 2:
        return "Connected recently"
    if days <= 14:
        return "Connected last week"
    if days <= 45:
        return "Connected last month"
    return "It's been a while"


def format_next_reminder(timestamp: int | None, now_ms: int) -> str:
    """Label such as "Today", "Tomorrow", "In 5 days" or "In 3 weeks"."""
    if not timestamp:
        return "Not scheduled"

    diff = timestamp - now_ms
    if diff < DAY_MS:
        return "Today"

    days = math.ceil(diff / DAY_MS)
    if days == 1:
        return "Tomorrow"
    if days < 14:
        return f"In {days} days"
    return f"In {days // 7} weeks"
