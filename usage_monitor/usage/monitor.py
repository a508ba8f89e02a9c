"""Background usage monitor - polls the usage endpoint periodically.

Usage:
    monitor = UsageMonitor(client, interval_s=60)
    monitor.on_update = my_callback   # set before start()
    monitor.on_error = show_error
    await monitor.start()
    ...
    monitor.stop()
"""

from __future__ import annotations

import asyncio
from typing import Callable

from loguru import logger

from usage_monitor.usage.client import UsageClient, UsageFetchError
from usage_monitor.usage.models import UsageSnapshot

OnUsageUpdate = Callable[[UsageSnapshot], None]
OnUsageError = Callable[[str], None]


class UsageMonitor:
    """Async background poller that caches the last snapshot and last error."""

    def __init__(self, client: UsageClient, interval_s: float = 60.0) -> None:
        self.client = client
        self.interval_s = interval_s

        # Callbacks, set these before calling start().
        self.on_update: OnUsageUpdate | None = None
        self.on_error: OnUsageError | None = None

        self._task: asyncio.Task | None = None
        self._running = False
        self._last_snapshot: UsageSnapshot | None = None
        self._last_error: str | None = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start the background polling task."""
        self._running = True
        self._task = asyncio.create_task(self._loop(), name="usage-monitor")
        logger.info(f"[usage] Monitor started, interval={self.interval_s}s")

    def stop(self) -> None:
        """Cancel the background task."""
        self._running = False
        if self._task:
            self._task.cancel()
            self._task = None

    @property
    def last_snapshot(self) -> UsageSnapshot | None:
        return self._last_snapshot

    @property
    def last_error(self) -> str | None:
        return self._last_error

    async def refresh(self) -> UsageSnapshot:
        """Fetch now and publish the outcome; raises ``UsageFetchError`` on failure."""
        try:
            snapshot = await asyncio.to_thread(self.client.fetch_usage)
        except UsageFetchError as exc:
            self._publish_error(str(exc))
            raise
        except Exception as exc:
            logger.exception("[usage] Unexpected fetch failure")
            message = f"Unexpected error: {exc}"
            self._publish_error(message)
            raise UsageFetchError(message) from exc

        self._last_snapshot = snapshot
        self._last_error = None
        if self.on_update is not None:
            try:
                self.on_update(snapshot)
            except Exception as exc:
                logger.debug(f"[usage] on_update callback error: {exc}")
        return snapshot

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _loop(self) -> None:
        # First fetch happens immediately on start.
        await self._fetch_and_publish()
        while self._running:
            try:
                await asyncio.sleep(self.interval_s)
                if self._running:
                    await self._fetch_and_publish()
            except asyncio.CancelledError:
                break
            except Exception as exc:
                logger.warning(f"[usage] Monitor loop error: {exc}")

    async def _fetch_and_publish(self) -> None:
        try:
            await self.refresh()
        except UsageFetchError:
            pass

    def _publish_error(self, message: str) -> None:
        logger.warning(f"[usage] Fetch failed: {message}")
        self._last_error = message
        if self.on_error is not None:
            try:
                self.on_error(message)
            except Exception as exc:
                logger.debug(f"[usage] on_error callback error: {exc}")
