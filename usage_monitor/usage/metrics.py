"""Display values derived from usage windows.

All functions here are pure apart from reading the wall clock when ``now`` is
not supplied, so they are re-evaluated on every timer tick and never cache.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone

from usage_monitor.usage.models import parse_timestamp

PLACEHOLDER = "--"

TIER_NORMAL = "normal"
TIER_WARNING = "warning"
TIER_CRITICAL = "critical"

# Lower bounds are inclusive.
WARNING_THRESHOLD = 50.0
CRITICAL_THRESHOLD = 80.0

_DAY_S = 86400
_HOUR_S = 3600
_MINUTE_S = 60


def _now(now: datetime | None) -> datetime:
    return now if now is not None else datetime.now(timezone.utc)


def _remaining_seconds(reset_at: datetime | str | None, now: datetime | None) -> float | None:
    reset = parse_timestamp(reset_at)
    if reset is None:
        return None
    current = parse_timestamp(_now(now))
    return (reset - current).total_seconds()


def format_countdown(reset_at: datetime | str | None, now: datetime | None = None) -> str:
    """Return time left until ``reset_at`` as ``1d4h``, ``3h12m`` or ``45m``.

    Absent input yields the placeholder; an elapsed reset yields ``0m``.
    """
    remaining = _remaining_seconds(reset_at, now)
    if remaining is None:
        return PLACEHOLDER
    if remaining <= 0:
        return "0m"

    total = math.floor(remaining)
    days = total // _DAY_S
    hours = (total % _DAY_S) // _HOUR_S
    minutes = (total % _HOUR_S) // _MINUTE_S

    if days > 0:
        return f"{days}d{hours}h"
    if hours > 0:
        return f"{hours}h{minutes}m"
    return f"{minutes}m"


def progress_percent(
    reset_at: datetime | str | None,
    window_hours: float,
    now: datetime | None = None,
) -> float:
    """Return the share of the window still remaining, 0-100.

    Clamped at 100 when the reset lies further out than a full window.
    """
    remaining = _remaining_seconds(reset_at, now)
    if remaining is None or remaining <= 0 or window_hours <= 0:
        return 0.0
    total = window_hours * _HOUR_S
    return min(100.0, remaining / total * 100)


def color_tier(utilization: float | None) -> str:
    """Classify utilization into the normal/warning/critical display tier."""
    value = utilization or 0.0
    if value >= CRITICAL_THRESHOLD:
        return TIER_CRITICAL
    if value >= WARNING_THRESHOLD:
        return TIER_WARNING
    return TIER_NORMAL


def display_percent(utilization: float | None) -> int:
    """Round utilization half-up for the percentage label."""
    return math.floor((utilization or 0.0) + 0.5)


def bar_fill(percent: float) -> float:
    """Bound a percentage to the 0-100 range a progress bar can draw."""
    return max(0.0, min(100.0, float(percent)))
