"""claude-usage-monitor - always-on panel for Claude usage windows."""

__version__ = "0.1.0"
