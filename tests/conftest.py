"""Test configuration and fixtures"""

from __future__ import annotations

import json
from concurrent.futures import Future
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable

import pytest

from usage_monitor.gui.events import EventHub

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Mutable wall clock."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeScheduler:
    """Collects ``after``-style callbacks so tests fire them explicitly."""

    def __init__(self) -> None:
        self.pending: list[tuple[int, Callable[[], None]]] = []

    def __call__(self, delay_ms: int, fn: Callable[[], None]) -> object:
        self.pending.append((delay_ms, fn))
        return len(self.pending)

    def fire(self, delay_ms: int) -> int:
        """Run every pending callback scheduled with ``delay_ms``; returns how many ran."""
        due = [entry for entry in self.pending if entry[0] == delay_ms]
        self.pending = [entry for entry in self.pending if entry[0] != delay_ms]
        for _delay, fn in due:
            fn()
        return len(due)


class FakeBridge:
    """In-memory command bridge.

    ``responses`` maps a command to a value, an exception instance, or a
    callable taking the kwargs. Commands listed in ``deferred`` return
    unresolved futures kept in ``held`` for the test to complete.
    """

    def __init__(self) -> None:
        self.responses: dict[str, Any] = {}
        self.deferred: set[str] = set()
        self.held: dict[str, list[Future]] = {}
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self._hub = EventHub()

    def invoke(self, command: str, **kwargs: Any) -> Future:
        self.calls.append((command, kwargs))
        future: Future = Future()
        if command in self.deferred:
            self.held.setdefault(command, []).append(future)
            return future
        response = self.responses.get(command)
        if isinstance(response, BaseException):
            future.set_exception(response)
        elif callable(response):
            future.set_result(response(**kwargs))
        else:
            future.set_result(response)
        return future

    def listen(self, event_name: str, handler: Callable[[object], None]) -> Callable[[], None]:
        return self._hub.subscribe(event_name, handler)

    def emit(self, event_name: str, payload: object) -> None:
        self._hub.publish(event_name, payload)

    def commands(self) -> list[str]:
        return [name for name, _kwargs in self.calls]

    def calls_to(self, command: str) -> list[dict[str, Any]]:
        return [kwargs for name, kwargs in self.calls if name == command]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def bridge() -> FakeBridge:
    return FakeBridge()


@pytest.fixture
def usage_payload() -> Callable[..., dict[str, Any]]:
    """Build a usage payload relative to ``NOW``"""

    def _build(
        five_hour: float | None = 42.0,
        seven_day: float | None = 13.0,
        five_hour_reset: timedelta = timedelta(hours=2, minutes=30),
        seven_day_reset: timedelta = timedelta(days=3, hours=4),
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if five_hour is not None:
            payload["five_hour"] = {
                "utilization": five_hour,
                "resets_at": (NOW + five_hour_reset).isoformat(),
            }
        if seven_day is not None:
            payload["seven_day"] = {
                "utilization": seven_day,
                "resets_at": (NOW + seven_day_reset).isoformat(),
            }
        return payload

    return _build


@pytest.fixture
def chrome_dir(tmp_path: Path) -> Path:
    """Create a Chrome user-data directory with three profiles"""
    root = tmp_path / "chrome"

    def _profile(dir_name: str, name: str, email: str | None) -> None:
        profile_dir = root / dir_name
        profile_dir.mkdir(parents=True)
        prefs: dict[str, Any] = {"profile": {"name": name}}
        if email:
            prefs["account_info"] = [{"email": email}]
        (profile_dir / "Preferences").write_text(json.dumps(prefs), encoding="utf-8")

    _profile("Profile 10", "Side project", None)
    _profile("Default", "Personal", "me@example.com")
    _profile("Profile 2", "Work", "Work@Example.com")
    (root / "System Profile").mkdir()
    (root / "Profile 3").mkdir()  # no Preferences file
    (root / "Local State").write_text("{}", encoding="utf-8")
    return root


@pytest.fixture
def mock_env_vars(monkeypatch):
    """Fixture for mocking environment variables"""

    def _set_env(**kwargs):
        for key, value in kwargs.items():
            if value is None:
                monkeypatch.delenv(key, raising=False)
            else:
                monkeypatch.setenv(key, str(value))

    return _set_env
