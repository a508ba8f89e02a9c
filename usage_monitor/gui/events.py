"""Panel event contracts and lightweight signal bus."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Union

from usage_monitor.usage.models import UsageSnapshot

EventHandler = Callable[[object], None]

# Push events, backend → panel.
USAGE_UPDATED = "usage-updated"
USAGE_ERROR = "usage-error"
ACCOUNT_UPDATED = "account-updated"

# User actions carried by ``UserClick``.
ACTION_TOGGLE_PROFILES = "toggle-profiles"
ACTION_CLOSE_PROFILES = "close-profiles"
ACTION_SELECT_PROFILE = "select-profile"
ACTION_OPEN_HOME = "open-home"
ACTION_OPEN_SETTINGS = "open-settings"


@dataclass(frozen=True)
class Tick:
    """Once-per-second countdown tick."""


@dataclass(frozen=True)
class Focus:
    """Panel window gained focus."""


@dataclass(frozen=True)
class VisibilityRegained:
    """Panel window was mapped / shown again."""


@dataclass(frozen=True)
class UsageUpdated:
    """Fresh usage snapshot from the backend."""

    snapshot: UsageSnapshot


@dataclass(frozen=True)
class UsageError:
    """Backend reported it could not fetch usage."""

    message: str


@dataclass(frozen=True)
class UserClick:
    """Button or list-row click."""

    action: str
    profile_id: str | None = None


PanelMessage = Union[Tick, Focus, VisibilityRegained, UsageUpdated, UsageError, UserClick]


class EventHub:
    """Simple in-process pub/sub for backend push events."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)

    def subscribe(self, event_name: str, handler: EventHandler) -> Callable[[], None]:
        """Register ``handler``; returns a callable that removes it again."""
        self._handlers[event_name].append(handler)

        def _unsubscribe() -> None:
            handlers = self._handlers.get(event_name, [])
            if handler in handlers:
                handlers.remove(handler)

        return _unsubscribe

    def publish(self, event_name: str, payload: object) -> None:
        for handler in list(self._handlers.get(event_name, [])):
            handler(payload)
