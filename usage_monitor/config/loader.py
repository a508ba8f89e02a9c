"""Configuration loading utilities."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import ValidationError

from usage_monitor.config.schema import Config

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def get_config_path() -> Path:
    """Return the default configuration file path."""
    return Path.home() / ".claude-usage-monitor" / "config.json"


def camel_to_snake(name: str) -> str:
    return _CAMEL_RE.sub("_", name).lower()


def snake_to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def convert_keys(data: Any, convert: Any) -> Any:
    """Recursively rename dict keys with ``convert``."""
    if isinstance(data, dict):
        return {convert(k): convert_keys(v, convert) for k, v in data.items()}
    if isinstance(data, list):
        return [convert_keys(item, convert) for item in data]
    return data


def merge_over(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return ``base`` with ``override`` applied on top, nested dicts merged."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_over(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: Path | None = None) -> Config:
    """Load config from disk, falling back to defaults.

    ``CLAUDE_USAGE_MONITOR_*`` environment variables win over the file.
    """
    path = config_path or get_config_path()
    if path.exists():
        try:
            data = convert_keys(json.loads(path.read_text(encoding="utf-8")), camel_to_snake)
            if not isinstance(data, dict):
                raise TypeError("config root must be an object")
            # Only fields actually read from the environment are marked as set.
            from_env = Config().model_dump(exclude_unset=True)
            return Config(**merge_over(data, from_env))
        except (OSError, TypeError, json.JSONDecodeError, ValidationError) as exc:
            logger.warning(f"Failed to load config from {path}: {exc}")
            logger.warning("Using default configuration.")
    return Config()


def save_config(config: Config, config_path: Path | None = None) -> None:
    """Save config to disk using camelCase keys."""
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    data = convert_keys(config.model_dump(), snake_to_camel)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
