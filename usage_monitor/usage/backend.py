"""Backend service: caches usage, serves panel commands and pushes events."""

from __future__ import annotations

import asyncio
import os
import shutil
import subprocess
import sys
import webbrowser
from pathlib import Path
from typing import Any, Callable

from loguru import logger

from usage_monitor.gui.events import ACCOUNT_UPDATED, USAGE_ERROR, USAGE_UPDATED
from usage_monitor.session.profile_store import ProfileStore
from usage_monitor.usage.client import UsageClient, UsageFetchError
from usage_monitor.usage.models import AccountInfo
from usage_monitor.usage.monitor import UsageMonitor

Emit = Callable[[str, object], None]

DEFAULT_PROFILE_ID = "Default"

_MAC_CHROME = "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome"
_LINUX_CHROME_NAMES = ("google-chrome", "google-chrome-stable", "chromium", "chromium-browser")


def find_chrome_binary() -> str | None:
    """Locate a Chrome executable that accepts ``--profile-directory``."""
    if sys.platform == "darwin":
        return _MAC_CHROME if Path(_MAC_CHROME).exists() else None
    if os.name == "nt":
        for env in ("PROGRAMFILES", "PROGRAMFILES(X86)", "LOCALAPPDATA"):
            base = os.environ.get(env)
            if not base:
                continue
            candidate = Path(base) / "Google" / "Chrome" / "Application" / "chrome.exe"
            if candidate.exists():
                return str(candidate)
        return None
    for name in _LINUX_CHROME_NAMES:
        resolved = shutil.which(name)
        if resolved:
            return resolved
    return None


class UsageBackend:
    """Owns the monitor and profile store; everything the panel asks for goes through here."""

    def __init__(
        self,
        client: UsageClient,
        profiles: ProfileStore,
        emit: Emit,
        poll_interval_s: float = 60.0,
        chrome_binary: str | None = None,
    ) -> None:
        self.client = client
        self.profiles = profiles
        self.emit = emit
        self.monitor = UsageMonitor(client, interval_s=poll_interval_s)
        self.monitor.on_update = lambda snapshot: self.emit(USAGE_UPDATED, snapshot.to_payload())
        self.monitor.on_error = lambda message: self.emit(USAGE_ERROR, message)
        self.chrome_binary = chrome_binary if chrome_binary is not None else find_chrome_binary()
        self._account: AccountInfo | None = None

    def register(self, channel: Any) -> None:
        """Register every backend command on ``channel``."""
        channel.register("get_usage", self.get_usage)
        channel.register("get_last_error", self.get_last_error)
        channel.register("refresh_usage", self.refresh_usage)
        channel.register("get_chrome_profiles", self.get_chrome_profiles)
        channel.register("get_selected_profile", self.get_selected_profile)
        channel.register("set_selected_profile", self.set_selected_profile)
        channel.register("open_url", self.open_url)
        channel.register("get_account", self.get_account)

    async def start(self) -> None:
        """Identify the account (auto-selecting its profile), then start polling."""
        await self._load_account()
        await self.monitor.start()

    def stop(self) -> None:
        self.monitor.stop()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def get_usage(self) -> dict[str, Any] | None:
        snapshot = self.monitor.last_snapshot
        return snapshot.to_payload() if snapshot is not None else None

    def get_last_error(self) -> str | None:
        return self.monitor.last_error

    async def refresh_usage(self) -> None:
        await self.monitor.refresh()

    def get_chrome_profiles(self) -> list[dict[str, Any]]:
        return [profile.to_payload() for profile in self.profiles.list_profiles()]

    def get_selected_profile(self) -> str | None:
        return self.profiles.get_selected()

    def set_selected_profile(self, profile_id: str) -> None:
        self.profiles.set_selected(profile_id)

    def open_url(self, url: str) -> None:
        """Open ``url`` in the selected browser profile, or the default browser."""
        profile = self.profiles.get_selected() or DEFAULT_PROFILE_ID
        if self.chrome_binary:
            try:
                subprocess.Popen([self.chrome_binary, f"--profile-directory={profile}", url])
                return
            except OSError as exc:
                logger.warning(f"[usage] Could not launch Chrome: {exc}")
        webbrowser.open(url)

    def get_account(self) -> dict[str, Any] | None:
        account = self._account
        if account is None:
            return None
        return {
            "email": account.email,
            "display_name": account.display_name,
            "full_name": account.full_name,
            "subscription": account.subscription,
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _load_account(self) -> None:
        try:
            account = await asyncio.to_thread(self.client.fetch_account)
        except UsageFetchError as exc:
            logger.info(f"[usage] Account lookup skipped: {exc}")
            return
        self._account = account
        matched = self.profiles.auto_select(account.email)
        if matched:
            logger.info(f"[profiles] Auto-selected {matched!r} for {account.email}")
        self.emit(ACCOUNT_UPDATED, self.get_account())
