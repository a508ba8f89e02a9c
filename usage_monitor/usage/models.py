"""Usage data models for the two rolling quota windows."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from loguru import logger

FIVE_HOUR = "five_hour"
SEVEN_DAY = "seven_day"

# Nominal window durations in hours.
WINDOW_HOURS: dict[str, int] = {
    FIVE_HOUR: 5,
    SEVEN_DAY: 168,
}


def parse_timestamp(value: object) -> datetime | None:
    """Parse an ISO-8601 reset timestamp; naive values are taken as UTC.

    Returns None for absent or unparseable input.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
        except ValueError:
            logger.debug(f"[usage] Ignoring unparseable reset timestamp {value!r}")
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _as_utilization(value: object) -> float:
    if value is None:
        return 0.0
    try:
        utilization = float(value)
    except (TypeError, ValueError):
        return 0.0
    return utilization if math.isfinite(utilization) else 0.0


@dataclass(frozen=True)
class UsageWindow:
    """Utilization and reset instant of one rolling window."""

    utilization: float = 0.0
    resets_at: datetime | None = None

    @classmethod
    def from_payload(cls, data: object) -> UsageWindow | None:
        if not isinstance(data, dict):
            return None
        return cls(
            utilization=_as_utilization(data.get("utilization")),
            resets_at=parse_timestamp(data.get("resets_at")),
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "utilization": self.utilization,
            "resets_at": self.resets_at.isoformat() if self.resets_at else None,
        }


@dataclass(frozen=True)
class UsageSnapshot:
    """One usage payload; either window may be missing."""

    five_hour: UsageWindow | None = None
    seven_day: UsageWindow | None = None

    @classmethod
    def from_payload(cls, data: dict[str, Any] | None) -> UsageSnapshot:
        if not isinstance(data, dict):
            data = {}
        return cls(
            five_hour=UsageWindow.from_payload(data.get(FIVE_HOUR)),
            seven_day=UsageWindow.from_payload(data.get(SEVEN_DAY)),
        )

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.five_hour is not None:
            payload[FIVE_HOUR] = self.five_hour.to_payload()
        if self.seven_day is not None:
            payload[SEVEN_DAY] = self.seven_day.to_payload()
        return payload

    def windows(self) -> list[tuple[str, UsageWindow]]:
        """Return ``(key, window)`` pairs for the windows this snapshot carries."""
        pairs = [(FIVE_HOUR, self.five_hour), (SEVEN_DAY, self.seven_day)]
        return [(key, window) for key, window in pairs if window is not None]

    @property
    def is_empty(self) -> bool:
        return self.five_hour is None and self.seven_day is None


@dataclass
class ResetTimes:
    """Latest known reset instant per window.

    Written only when a snapshot is ingested; the timer tick only reads it.
    """

    five_hour: datetime | None = None
    seven_day: datetime | None = None

    def get(self, key: str) -> datetime | None:
        return getattr(self, key)

    def set(self, key: str, value: datetime | None) -> None:
        if key not in WINDOW_HOURS:
            raise KeyError(key)
        setattr(self, key, value)


@dataclass(frozen=True)
class Profile:
    """A browser profile the panel can open links with."""

    id: str
    name: str
    email: str | None = None

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> Profile:
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or data["id"]),
            email=data.get("email") or None,
        )

    def to_payload(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "email": self.email}


@dataclass
class AccountInfo:
    """Signed-in account as reported by the profile endpoint."""

    email: str | None = None
    display_name: str | None = None
    full_name: str | None = None
    subscription: str | None = None
