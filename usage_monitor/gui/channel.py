"""Command/event bridge between the panel and the backend.

Backend commands run on an asyncio loop in a background thread; host commands
(window sizing) run on the UI thread. Either way the caller gets a
``concurrent.futures.Future``. Push events published by the backend are
re-delivered on the UI thread through ``dispatch``.
"""

from __future__ import annotations

import asyncio
import inspect
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Callable

from loguru import logger

from usage_monitor.gui.events import EventHandler, EventHub

Dispatch = Callable[[Callable[[], None]], None]


class UnknownCommandError(LookupError):
    """Raised (through the returned future) for unregistered command names."""


@dataclass(frozen=True)
class _Command:
    handler: Callable[..., Any]
    on_ui: bool


def _run_now(fn: Callable[[], None]) -> None:
    fn()


def _resolve(future: Future, handler: Callable[..., Any], kwargs: dict[str, Any]) -> None:
    if not future.set_running_or_notify_cancel():
        return
    try:
        result = handler(**kwargs)
    except Exception as exc:
        future.set_exception(exc)
    else:
        future.set_result(result)


class PanelChannel:
    """Bridge between panel requests and backend commands/events."""

    name = "panel"

    def __init__(self, dispatch: Dispatch | None = None) -> None:
        self._dispatch: Dispatch = dispatch or _run_now
        self._hub = EventHub()
        self._commands: dict[str, _Command] = {}
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._ready = threading.Event()

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------

    def set_dispatch(self, dispatch: Dispatch) -> None:
        """Route completions and events through ``dispatch`` (the UI thread)."""
        self._dispatch = dispatch

    def register(self, command: str, handler: Callable[..., Any], on_ui: bool = False) -> None:
        self._commands[command] = _Command(handler=handler, on_ui=on_ui)

    @property
    def loop(self) -> asyncio.AbstractEventLoop | None:
        return self._loop

    def start(self) -> asyncio.AbstractEventLoop:
        """Start the backend event loop thread (idempotent)."""
        if self._thread and self._thread.is_alive() and self._loop is not None:
            return self._loop
        self._ready.clear()
        self._thread = threading.Thread(target=self._run_loop, daemon=True, name="usage-monitor-backend")
        self._thread.start()
        self._ready.wait(timeout=5.0)
        if self._loop is None:
            raise RuntimeError("Backend event loop failed to start")
        return self._loop

    def stop(self) -> None:
        loop = self._loop
        if loop is not None and loop.is_running():
            loop.call_soon_threadsafe(loop.stop)
        thread = self._thread
        if thread and thread.is_alive():
            thread.join(timeout=1.0)
        self._loop = None

    def submit(self, coro: Any) -> Future:
        """Schedule a coroutine on the backend loop."""
        if self._loop is None:
            raise RuntimeError("Backend event loop is not running")
        return asyncio.run_coroutine_threadsafe(coro, self._loop)

    # ------------------------------------------------------------------
    # Panel-facing API
    # ------------------------------------------------------------------

    def invoke(self, command: str, **kwargs: Any) -> Future:
        """Run ``command`` and return a future for its result."""
        entry = self._commands.get(command)
        if entry is None:
            future: Future = Future()
            future.set_exception(UnknownCommandError(command))
            return future

        logger.trace(f"[bridge] invoke {command} {kwargs}")
        if entry.on_ui:
            future = Future()
            self._dispatch(lambda: _resolve(future, entry.handler, kwargs))
            return future

        if self._loop is None:
            future = Future()
            future.set_exception(RuntimeError("Backend event loop is not running"))
            return future

        if inspect.iscoroutinefunction(entry.handler):
            return self.submit(entry.handler(**kwargs))

        async def _call() -> Any:
            return entry.handler(**kwargs)

        return self.submit(_call())

    def listen(self, event_name: str, handler: EventHandler) -> Callable[[], None]:
        return self._hub.subscribe(event_name, handler)

    # ------------------------------------------------------------------
    # Backend-facing API
    # ------------------------------------------------------------------

    def emit(self, event_name: str, payload: object) -> None:
        """Publish a push event; handlers run on the UI thread."""
        logger.trace(f"[bridge] emit {event_name}")
        self._dispatch(lambda: self._hub.publish(event_name, payload))

    def _run_loop(self) -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        self._loop = loop
        self._ready.set()
        try:
            loop.run_forever()
        finally:
            pending = asyncio.all_tasks(loop)
            for task in pending:
                task.cancel()
            if pending:
                loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
            loop.close()
