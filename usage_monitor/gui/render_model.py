"""Usage render model: latest reset instants plus the values the panel draws."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

from usage_monitor.usage.metrics import (
    PLACEHOLDER,
    TIER_NORMAL,
    bar_fill,
    color_tier,
    display_percent,
    format_countdown,
    progress_percent,
)
from usage_monitor.usage.models import FIVE_HOUR, SEVEN_DAY, WINDOW_HOURS, ResetTimes, UsageSnapshot

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class WindowDisplay:
    """Everything one usage row shows."""

    percent: int | None = None
    tier: str = TIER_NORMAL
    usage_fill: float = 0.0
    countdown: str = PLACEHOLDER
    timer_fill: float = 0.0

    @property
    def percent_label(self) -> str:
        return f"{self.percent}%" if self.percent is not None else f"{PLACEHOLDER}%"


@dataclass
class UsageRenderModel:
    """Holds ``ResetTimes`` and recomputes countdowns from them on demand.

    ``ingest`` is the only writer of ``reset_times``. ``refresh_timers`` reads
    it and is idempotent, so ticks, focus and visibility events may call it in
    any order and a missed tick never accumulates drift.
    """

    clock: Clock = utc_now
    reset_times: ResetTimes = field(default_factory=ResetTimes)
    windows: dict[str, WindowDisplay] = field(
        default_factory=lambda: {FIVE_HOUR: WindowDisplay(), SEVEN_DAY: WindowDisplay()}
    )

    def ingest(self, snapshot: UsageSnapshot) -> None:
        """Apply the windows present in ``snapshot``; absent ones stay as they were."""
        for key, window in snapshot.windows():
            display = self.windows[key]
            display.percent = display_percent(window.utilization)
            display.tier = color_tier(window.utilization)
            display.usage_fill = bar_fill(display.percent)
            self.reset_times.set(key, window.resets_at)
            if window.resets_at is None:
                display.countdown = PLACEHOLDER
                display.timer_fill = 0.0
        self.refresh_timers()

    def refresh_timers(self) -> None:
        now = self.clock()
        for key, hours in WINDOW_HOURS.items():
            reset = self.reset_times.get(key)
            if reset is None:
                continue
            display = self.windows[key]
            display.countdown = format_countdown(reset, now)
            display.timer_fill = progress_percent(reset, hours, now)

    @property
    def title(self) -> str:
        """Short five-hour utilization text used as the window title."""
        return self.windows[FIVE_HOUR].percent_label
