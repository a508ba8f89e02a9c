"""CLI commands for claude-usage-monitor."""

from __future__ import annotations

import sys

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from usage_monitor import __version__

app = typer.Typer(
    name="claude-usage-monitor",
    help="claude-usage-monitor - Claude usage windows in a small desktop panel",
    no_args_is_help=True,
)
console = Console()


def version_callback(value: bool) -> None:
    if value:
        console.print(f"claude-usage-monitor v{__version__}")
        raise typer.Exit()


def _setup_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """claude-usage-monitor entrypoint."""
    del version


@app.command()
def gui(
    verbose: bool = typer.Option(False, "--verbose", help="Log at DEBUG level."),
) -> None:
    """Start the usage panel and its backend."""
    from usage_monitor.config.loader import load_config
    from usage_monitor.gui.app import UsagePanelApp
    from usage_monitor.gui.channel import PanelChannel
    from usage_monitor.session.profile_store import ProfileStore
    from usage_monitor.usage.backend import UsageBackend
    from usage_monitor.usage.client import CredentialStore, UsageClient

    config = load_config()
    _setup_logging("DEBUG" if verbose else config.log_level)

    channel = PanelChannel()
    client = UsageClient(
        credentials=CredentialStore(config.credentials_file),
        timeout_s=config.backend.request_timeout_s,
    )
    backend = UsageBackend(
        client=client,
        profiles=ProfileStore(chrome_dir=config.chrome_path, selection_path=config.profile_file),
        emit=channel.emit,
        poll_interval_s=config.backend.poll_interval_s,
    )
    backend.register(channel)

    panel = UsagePanelApp(channel, config.panel)
    channel.set_dispatch(panel.run_on_ui)

    loop = channel.start()
    channel.submit(backend.start())
    console.print("Starting claude-usage-monitor panel")
    try:
        panel.run()
    except KeyboardInterrupt:
        pass
    finally:
        loop.call_soon_threadsafe(backend.stop)
        channel.stop()


@app.command()
def usage() -> None:
    """Fetch usage once and print both windows."""
    from usage_monitor.config.loader import load_config
    from usage_monitor.gui.render_model import UsageRenderModel
    from usage_monitor.usage.client import CredentialStore, UsageClient, UsageFetchError
    from usage_monitor.usage.models import FIVE_HOUR, SEVEN_DAY

    config = load_config()
    _setup_logging(config.log_level)
    client = UsageClient(
        credentials=CredentialStore(config.credentials_file),
        timeout_s=config.backend.request_timeout_s,
    )
    try:
        snapshot = client.fetch_usage()
    except UsageFetchError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)

    model = UsageRenderModel()
    model.ingest(snapshot)

    table = Table(title="Claude usage")
    table.add_column("Window")
    table.add_column("Used", justify="right")
    table.add_column("Tier")
    table.add_column("Resets in", justify="right")
    table.add_column("Window left", justify="right")
    for key, label in ((FIVE_HOUR, "5 hours"), (SEVEN_DAY, "7 days")):
        display = model.windows[key]
        table.add_row(
            label,
            display.percent_label,
            display.tier,
            display.countdown,
            f"{display.timer_fill:.0f}%",
        )
    console.print(table)


@app.command()
def profiles() -> None:
    """List browser profiles; the selected one is marked."""
    from usage_monitor.config.loader import load_config
    from usage_monitor.session.profile_store import ProfileStore

    config = load_config()
    store = ProfileStore(chrome_dir=config.chrome_path, selection_path=config.profile_file)
    selected = store.get_selected()
    found = store.list_profiles()
    if not found:
        console.print(f"[yellow]No Chrome profiles found in {store.chrome_dir}[/yellow]")
        return
    for profile in found:
        marker = "[green]*[/green]" if profile.id == selected else " "
        email = f" [dim]{profile.email}[/dim]" if profile.email else ""
        console.print(f"{marker} {profile.name} ({profile.id}){email}")


@app.command()
def status() -> None:
    """Show claude-usage-monitor status."""
    from usage_monitor.config.loader import get_config_path, load_config
    from usage_monitor.session.profile_store import ProfileStore
    from usage_monitor.usage.client import CredentialStore

    config_path = get_config_path()
    config = load_config()
    credentials = CredentialStore(config.credentials_file)
    store = ProfileStore(chrome_dir=config.chrome_path, selection_path=config.profile_file)

    console.print("claude-usage-monitor Status\n")
    console.print(f"Config: {config_path} {'[green]OK[/green]' if config_path.exists() else '[dim]defaults[/dim]'}")
    logged_in = credentials.load() is not None
    console.print(f"Credentials: {'[green]OK[/green]' if logged_in else '[red]NO[/red]'}")
    console.print(f"Selected profile: [cyan]{store.get_selected() or '-'}[/cyan]")
    console.print(f"Poll interval: {config.backend.poll_interval_s:g}s")
    console.print(f"Panel: {config.panel.width}x{config.panel.compact_height}")


if __name__ == "__main__":
    app()
