"""Configuration schema for claude-usage-monitor."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings

from usage_monitor.gui.view_mode import PanelGeometry


class PanelConfig(BaseModel):
    """Desktop panel configuration."""

    width: int = 180
    compact_height: int = 109
    profile_header_height: int = 45
    profile_item_height: int = 40
    tick_interval_ms: int = Field(default=1000, gt=0)
    bootstrap_refresh_delay_ms: int = Field(default=2000, ge=0)
    always_on_top: bool = True
    home_url: str = "https://claude.ai/"
    settings_url: str = "https://claude.ai/settings/usage"

    def geometry(self) -> PanelGeometry:
        return PanelGeometry(
            compact_height=self.compact_height,
            header_height=self.profile_header_height,
            item_height=self.profile_item_height,
        )


class BackendConfig(BaseModel):
    """Usage polling and local state locations."""

    poll_interval_s: float = Field(default=60.0, gt=0)
    request_timeout_s: float = Field(default=10.0, gt=0)
    credentials_path: str = "~/.claude/.credentials.json"
    profile_path: str = "~/.claude-usage-monitor-profile"
    chrome_dir: str = ""


class Config(BaseSettings):
    """Root configuration for claude-usage-monitor."""

    panel: PanelConfig = Field(default_factory=PanelConfig)
    backend: BackendConfig = Field(default_factory=BackendConfig)
    log_level: str = "INFO"

    @property
    def credentials_file(self) -> Path:
        return Path(self.backend.credentials_path).expanduser()

    @property
    def profile_file(self) -> Path:
        return Path(self.backend.profile_path).expanduser()

    @property
    def chrome_path(self) -> Path | None:
        raw = self.backend.chrome_dir.strip()
        return Path(raw).expanduser() if raw else None

    model_config = ConfigDict(
        env_prefix="CLAUDE_USAGE_MONITOR_",
        env_nested_delimiter="__",
        extra="ignore",
    )
