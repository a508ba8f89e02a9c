"""Anthropic OAuth usage/profile client.

Credentials come from the Claude Code login: ``~/.claude/.credentials.json``
or, on macOS, the ``Claude Code-credentials`` keychain item. On HTTP 401 the
access token is refreshed once and the request retried.
"""

from __future__ import annotations

import json
import subprocess
import sys
import time
from pathlib import Path
from typing import Any

import requests
from loguru import logger

from usage_monitor.usage.models import AccountInfo, UsageSnapshot

USAGE_URL = "https://api.anthropic.com/api/oauth/usage"
PROFILE_URL = "https://api.anthropic.com/api/oauth/profile"
TOKEN_URL = "https://platform.claude.com/v1/oauth/token"
CLIENT_ID = "9d1c250a-e61b-44d9-88ed-5944d1962f5e"
OAUTH_BETA = "oauth-2025-04-20"
KEYCHAIN_SERVICE = "Claude Code-credentials"
DEFAULT_CREDENTIALS_PATH = Path.home() / ".claude" / ".credentials.json"


class UsageFetchError(RuntimeError):
    """A fetch failed; ``str(exc)`` is the message shown in the panel."""

    def __init__(self, message: str, auth_error: bool = False) -> None:
        super().__init__(message)
        self.auth_error = auth_error


def format_subscription(subscription_type: str | None, rate_limit_tier: str | None) -> str:
    """Human label for the plan, e.g. ``Max 20x`` or ``Pro``."""
    if subscription_type == "max":
        tier = rate_limit_tier or ""
        multiplier = "20x" if "20x" in tier else "5x" if "5x" in tier else ""
        return f"Max {multiplier}".strip()
    if subscription_type == "pro":
        return "Pro"
    if subscription_type in (None, "", "free"):
        return "Free"
    return subscription_type


class CredentialStore:
    """Reads and writes the ``claudeAiOauth`` credentials block."""

    def __init__(self, path: Path | None = None, use_keychain: bool | None = None) -> None:
        self.path = path or DEFAULT_CREDENTIALS_PATH
        self.use_keychain = sys.platform == "darwin" if use_keychain is None else use_keychain

    def _read_raw(self) -> tuple[dict[str, Any], str] | None:
        if self.path.exists():
            try:
                return json.loads(self.path.read_text(encoding="utf-8")), "file"
            except (OSError, json.JSONDecodeError) as exc:
                logger.warning(f"[usage] Unreadable credentials file {self.path}: {exc}")
                return None
        if self.use_keychain:
            raw = self._read_keychain()
            if raw is not None:
                return raw, "keychain"
        return None

    def _read_keychain(self) -> dict[str, Any] | None:
        try:
            result = subprocess.run(
                ["security", "find-generic-password", "-s", KEYCHAIN_SERVICE, "-w"],
                capture_output=True,
                text=True,
                timeout=5,
            )
        except (FileNotFoundError, subprocess.SubprocessError) as exc:
            logger.debug(f"[usage] Keychain lookup failed: {exc}")
            return None
        if result.returncode != 0:
            return None
        try:
            return json.loads(result.stdout.strip())
        except json.JSONDecodeError:
            return None

    def load(self) -> dict[str, Any] | None:
        """Return the ``claudeAiOauth`` mapping, or None when not logged in."""
        raw = self._read_raw()
        if raw is None:
            return None
        oauth = raw[0].get("claudeAiOauth")
        return oauth if isinstance(oauth, dict) and oauth.get("accessToken") else None

    def save_token(self, access_token: str, refresh_token: str | None, expires_in: int | None) -> None:
        """Write refreshed tokens back, keeping every other field."""
        raw = self._read_raw()
        if raw is None:
            return
        payload, source = raw
        oauth = dict(payload.get("claudeAiOauth") or {})
        oauth["accessToken"] = access_token
        if refresh_token:
            oauth["refreshToken"] = refresh_token
        if expires_in:
            oauth["expiresAt"] = int(time.time() * 1000) + int(expires_in) * 1000
        payload["claudeAiOauth"] = oauth
        text = json.dumps(payload)

        if source == "file":
            tmp_path = self.path.with_suffix(".tmp")
            tmp_path.write_text(text, encoding="utf-8")
            tmp_path.replace(self.path)
            return
        subprocess.run(
            ["security", "add-generic-password", "-U", "-s", KEYCHAIN_SERVICE, "-a", "", "-w", text],
            capture_output=True,
            timeout=5,
        )


class UsageClient:
    """Synchronous HTTP client; the monitor runs it in a worker thread."""

    def __init__(
        self,
        credentials: CredentialStore | None = None,
        timeout_s: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self.credentials = credentials or CredentialStore()
        self.timeout_s = timeout_s
        self._session = session or requests.Session()

    def fetch_usage(self) -> UsageSnapshot:
        return UsageSnapshot.from_payload(self._get_json(USAGE_URL))

    def fetch_account(self) -> AccountInfo:
        oauth = self._require_credentials()
        payload = self._get_json(PROFILE_URL)
        account = payload.get("account") or {}
        return AccountInfo(
            email=account.get("email"),
            display_name=account.get("display_name"),
            full_name=account.get("full_name"),
            subscription=format_subscription(oauth.get("subscriptionType"), oauth.get("rateLimitTier")),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_credentials(self) -> dict[str, Any]:
        oauth = self.credentials.load()
        if oauth is None:
            raise UsageFetchError("No OAuth token found in credentials")
        return oauth

    def _get_json(self, url: str) -> dict[str, Any]:
        oauth = self._require_credentials()
        try:
            return self._request(url, oauth["accessToken"])
        except UsageFetchError as exc:
            if not exc.auth_error or not oauth.get("refreshToken"):
                raise
        logger.info("[usage] Access token rejected, refreshing")
        token = self._refresh_token(oauth["refreshToken"])
        return self._request(url, token)

    def _request(self, url: str, token: str) -> dict[str, Any]:
        try:
            resp = self._session.get(
                url,
                headers={
                    "Authorization": f"Bearer {token}",
                    "anthropic-beta": OAUTH_BETA,
                    "User-Agent": "claude-usage-monitor",
                },
                timeout=self.timeout_s,
            )
        except requests.RequestException as exc:
            raise UsageFetchError(f"Request failed: {exc}") from exc

        if resp.status_code != 200:
            raise UsageFetchError(
                f"API returned status: {resp.status_code}",
                auth_error=resp.status_code == 401,
            )
        try:
            data = resp.json()
        except ValueError as exc:
            raise UsageFetchError(f"Failed to parse response: {exc}") from exc
        if not isinstance(data, dict):
            raise UsageFetchError("Failed to parse response: expected an object")
        return data

    def _refresh_token(self, refresh_token: str) -> str:
        try:
            resp = self._session.post(
                TOKEN_URL,
                json={
                    "grant_type": "refresh_token",
                    "refresh_token": refresh_token,
                    "client_id": CLIENT_ID,
                },
                timeout=self.timeout_s,
            )
        except requests.RequestException as exc:
            raise UsageFetchError(f"Token refresh request failed: {exc}") from exc
        if resp.status_code != 200:
            raise UsageFetchError(f"Token refresh failed ({resp.status_code})", auth_error=True)
        try:
            data = resp.json()
            access_token = data["access_token"]
        except (ValueError, KeyError, TypeError) as exc:
            raise UsageFetchError(f"Failed to parse token response: {exc}") from exc

        try:
            self.credentials.save_token(access_token, data.get("refresh_token"), data.get("expires_in"))
        except (OSError, subprocess.SubprocessError) as exc:
            logger.warning(f"[usage] Could not persist refreshed token: {exc}")
        return access_token
