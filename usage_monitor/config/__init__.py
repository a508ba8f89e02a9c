"""Configuration module for claude-usage-monitor."""

from usage_monitor.config.loader import get_config_path, load_config, save_config
from usage_monitor.config.schema import Config

__all__ = ["Config", "load_config", "save_config", "get_config_path"]
