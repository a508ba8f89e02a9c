"""Browser profile discovery and the persisted profile selection.

Profiles are read from the Chrome user-data directory::

    <chrome_dir>/
      Default/Preferences        # JSON: profile.name, account_info[].email
      Profile 1/Preferences
      ...

The selected profile id is stored as plain text in
``~/.claude-usage-monitor-profile``.
"""

from __future__ import annotations

import json
import os
import re
import sys
from pathlib import Path

from loguru import logger

from usage_monitor.usage.models import Profile

DEFAULT_SELECTION_PATH = Path.home() / ".claude-usage-monitor-profile"

_PROFILE_DIR_RE = re.compile(r"^Profile (\d+)$")


def default_chrome_dir() -> Path:
    """Return the platform's Chrome user-data directory."""
    home = Path.home()
    if sys.platform == "darwin":
        return home / "Library" / "Application Support" / "Google" / "Chrome"
    if os.name == "nt":
        local = os.environ.get("LOCALAPPDATA") or str(home / "AppData" / "Local")
        return Path(local) / "Google" / "Chrome" / "User Data"
    return home / ".config" / "google-chrome"


def _sort_key(dir_name: str) -> tuple[int, int, str]:
    if dir_name == "Default":
        return (0, 0, dir_name)
    m = _PROFILE_DIR_RE.match(dir_name)
    if m:
        return (1, int(m.group(1)), dir_name)
    return (2, 0, dir_name)


def _read_profile(profile_dir: Path) -> Profile | None:
    prefs_path = profile_dir / "Preferences"
    try:
        prefs = json.loads(prefs_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError):
        return None
    if not isinstance(prefs, dict):
        return None

    name = (prefs.get("profile") or {}).get("name") or profile_dir.name
    email = None
    accounts = prefs.get("account_info")
    if isinstance(accounts, list) and accounts and isinstance(accounts[0], dict):
        email = accounts[0].get("email") or None
    return Profile(id=profile_dir.name, name=str(name), email=email)


class ProfileStore:
    """Lists browser profiles and persists which one the panel opens links in."""

    def __init__(self, chrome_dir: Path | None = None, selection_path: Path | None = None) -> None:
        self.chrome_dir = chrome_dir or default_chrome_dir()
        self.selection_path = selection_path or DEFAULT_SELECTION_PATH

    def list_profiles(self) -> list[Profile]:
        if not self.chrome_dir.is_dir():
            return []
        profiles: list[Profile] = []
        for entry in sorted(self.chrome_dir.iterdir(), key=lambda p: _sort_key(p.name)):
            if not entry.is_dir():
                continue
            if entry.name != "Default" and not entry.name.startswith("Profile "):
                continue
            profile = _read_profile(entry)
            if profile is not None:
                profiles.append(profile)
        return profiles

    def get_selected(self) -> str | None:
        try:
            value = self.selection_path.read_text(encoding="utf-8").strip()
        except OSError:
            return None
        return value or None

    def set_selected(self, profile_id: str) -> None:
        self.selection_path.parent.mkdir(parents=True, exist_ok=True)
        self.selection_path.write_text(profile_id, encoding="utf-8")
        logger.info(f"[profiles] Selected profile saved: {profile_id!r}")

    def find_by_email(self, email: str) -> Profile | None:
        wanted = email.strip().lower()
        for profile in self.list_profiles():
            if profile.email and profile.email.strip().lower() == wanted:
                return profile
        return None

    def auto_select(self, email: str | None) -> str | None:
        """Select the profile signed in with ``email``; returns its id if matched."""
        if not email:
            return None
        profile = self.find_by_email(email)
        if profile is None:
            return None
        self.set_selected(profile.id)
        return profile.id
