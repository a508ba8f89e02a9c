"""Entry point for ``python -m usage_monitor``."""

from usage_monitor.cli.commands import app

if __name__ == "__main__":
    app()
