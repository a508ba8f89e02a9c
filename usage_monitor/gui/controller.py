"""Panel controller: reconciles push events, timer ticks and clicks into one state.

The controller is a single-threaded actor. Every input arrives as one of the
messages in ``usage_monitor.gui.events`` and is handled to completion on the
UI thread before the next one; request completions are marshalled back onto
that thread through ``dispatch`` before they touch state. No locks needed.
"""

from __future__ import annotations

from concurrent.futures import CancelledError, Future
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol

from loguru import logger

from usage_monitor.gui.events import (
    ACTION_CLOSE_PROFILES,
    ACTION_OPEN_HOME,
    ACTION_OPEN_SETTINGS,
    ACTION_SELECT_PROFILE,
    ACTION_TOGGLE_PROFILES,
    USAGE_ERROR,
    USAGE_UPDATED,
    Focus,
    PanelMessage,
    Tick,
    UsageError,
    UsageUpdated,
    UserClick,
    VisibilityRegained,
)
from usage_monitor.gui.render_model import Clock, UsageRenderModel, utc_now
from usage_monitor.gui.view_mode import PanelGeometry, ViewMode
from usage_monitor.usage.models import Profile, UsageSnapshot

DEFAULT_PROFILE_ID = "Default"
HOME_URL = "https://claude.ai/"
SETTINGS_URL = "https://claude.ai/settings/usage"

Schedule = Callable[[int, Callable[[], None]], object]  # (delay_ms, callback), like Tk.after
Dispatch = Callable[[Callable[[], None]], None]


class CommandBridge(Protocol):
    """Request/response commands plus push-event subscription."""

    def invoke(self, command: str, **kwargs: Any) -> Future: ...

    def listen(self, event_name: str, handler: Callable[[object], None]) -> Callable[[], None]: ...


class PanelView(Protocol):
    def render(self, state: UsageRenderState) -> None: ...


@dataclass
class UsageRenderState:
    """Everything the presentation layer reflects."""

    render: UsageRenderModel = field(default_factory=UsageRenderModel)
    view: ViewMode = field(default_factory=ViewMode)


def _run_now(fn: Callable[[], None]) -> None:
    fn()


def coerce_snapshot(payload: object) -> UsageSnapshot:
    if isinstance(payload, UsageSnapshot):
        return payload
    if isinstance(payload, dict):
        return UsageSnapshot.from_payload(payload)
    return UsageSnapshot()


def coerce_profiles(payload: object) -> list[Profile]:
    profiles: list[Profile] = []
    for item in payload or []:  # type: ignore[union-attr]
        profiles.append(item if isinstance(item, Profile) else Profile.from_payload(item))
    return profiles


class PanelController:
    """Owns ``UsageRenderState`` and maps each message to a transition."""

    def __init__(
        self,
        bridge: CommandBridge,
        schedule: Schedule,
        dispatch: Dispatch | None = None,
        view: PanelView | None = None,
        geometry: PanelGeometry | None = None,
        tick_interval_ms: int = 1000,
        refresh_delay_ms: int = 2000,
        home_url: str = HOME_URL,
        settings_url: str = SETTINGS_URL,
        clock: Clock = utc_now,
    ) -> None:
        self.bridge = bridge
        self.view = view
        self.geometry = geometry or PanelGeometry()
        self.tick_interval_ms = tick_interval_ms
        self.refresh_delay_ms = refresh_delay_ms
        self.home_url = home_url
        self.settings_url = settings_url
        self.state = UsageRenderState(render=UsageRenderModel(clock=clock))

        self._schedule = schedule
        self._dispatch = dispatch or _run_now
        self._running = False
        self._unsubscribers: list[Callable[[], None]] = []
        # Bumped by every push event; bootstrap reads older than this are stale.
        self._event_seq = 0
        # Bumped on every open/close of the profile list; stale list loads are dropped.
        self._profile_request = 0

        self._handlers: dict[type, Callable[[Any], None]] = {
            Tick: self._on_refresh,
            Focus: self._on_refresh,
            VisibilityRegained: self._on_refresh,
            UsageUpdated: self._on_usage_updated,
            UsageError: self._on_usage_error,
            UserClick: self._on_click,
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Run the bootstrap sequence."""
        if self._running:
            return
        self._running = True

        self._schedule(self.tick_interval_ms, self._on_tick_timer)
        self._unsubscribers = [
            self.bridge.listen(USAGE_UPDATED, lambda p: self.handle(UsageUpdated(coerce_snapshot(p)))),
            self.bridge.listen(USAGE_ERROR, lambda p: self.handle(UsageError(str(p)))),
        ]
        self._load_cached_state()
        self._schedule(self.refresh_delay_ms, self._refresh_if_still_loading)
        self._check_first_run()
        self._render()
        logger.debug("[panel] Controller started")

    def stop(self) -> None:
        self._running = False
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    # ------------------------------------------------------------------
    # Message entry point
    # ------------------------------------------------------------------

    def handle(self, message: PanelMessage) -> None:
        handler = self._handlers.get(type(message))
        if handler is None:
            raise TypeError(f"Unsupported panel message: {message!r}")
        handler(message)
        self._render()

    def _on_refresh(self, _message: object) -> None:
        self.state.render.refresh_timers()

    def _on_usage_updated(self, message: UsageUpdated) -> None:
        self._event_seq += 1
        self._apply_snapshot(message.snapshot)

    def _on_usage_error(self, message: UsageError) -> None:
        self._event_seq += 1
        logger.info(f"[panel] Usage error: {message.message}")
        self.state.view.show_error(message.message)

    def _on_click(self, message: UserClick) -> None:
        if message.action == ACTION_TOGGLE_PROFILES:
            if self.state.view.profiles_open:
                self.close_profiles()
            else:
                self.open_profiles()
        elif message.action == ACTION_CLOSE_PROFILES:
            self.close_profiles()
        elif message.action == ACTION_SELECT_PROFILE and message.profile_id:
            self.select_profile(message.profile_id)
        elif message.action == ACTION_OPEN_HOME:
            self._fire("open_url", url=self.home_url)
        elif message.action == ACTION_OPEN_SETTINGS:
            self._fire("open_url", url=self.settings_url)
        else:
            logger.debug(f"[panel] Ignoring click {message!r}")

    def _apply_snapshot(self, snapshot: UsageSnapshot) -> None:
        self.state.render.ingest(snapshot)
        self.state.view.show_usage()

    # ------------------------------------------------------------------
    # Bootstrap
    # ------------------------------------------------------------------

    def _on_tick_timer(self) -> None:
        if not self._running:
            return
        self.handle(Tick())
        self._schedule(self.tick_interval_ms, self._on_tick_timer)

    def _load_cached_state(self) -> None:
        """Show cached usage, then the cached error; failures are ignored."""
        seq = self._event_seq

        def _read_error() -> None:
            self._when_done(self.bridge.invoke("get_last_error"), _on_error, _ignore_bootstrap_failure)

        def _on_usage(payload: object) -> None:
            if payload and self._event_seq == seq:
                snapshot = coerce_snapshot(payload)
                if not snapshot.is_empty:
                    self._apply_snapshot(snapshot)
            _read_error()

        def _on_usage_failure(exc: BaseException) -> None:
            _ignore_bootstrap_failure(exc)
            _read_error()

        def _on_error(message: object) -> None:
            if message and self._event_seq == seq:
                self.state.view.show_error(str(message))

        self._when_done(self.bridge.invoke("get_usage"), _on_usage, _on_usage_failure)

    def _refresh_if_still_loading(self) -> None:
        if not self._running or not self.state.view.is_loading:
            return
        logger.debug("[panel] Still loading, requesting refresh")

        def _on_failure(exc: BaseException) -> None:
            self.handle(UsageError(str(exc)))

        self._when_done(self.bridge.invoke("refresh_usage"), _ignore, _on_failure)

    def _check_first_run(self) -> None:
        def _on_selected(selected: object) -> None:
            if not selected:
                logger.info("[profiles] No profile selected yet, opening selector")
                self.open_profiles()

        self._when_done(self.bridge.invoke("get_selected_profile"), _on_selected, _ignore_bootstrap_failure)

    # ------------------------------------------------------------------
    # Profile selector
    # ------------------------------------------------------------------

    def open_profiles(self) -> None:
        """Load the profile list and the selected id, then expand the panel."""
        self._profile_request += 1
        request = self._profile_request

        def _on_profiles(payload: object) -> None:
            profiles = coerce_profiles(payload)

            def _on_selected(selected: object) -> None:
                if request != self._profile_request:
                    return
                self.state.view.open_profiles(profiles, str(selected or DEFAULT_PROFILE_ID))
                self._request_height()

            self._when_done(self.bridge.invoke("get_selected_profile"), _on_selected, _log_profile_failure)

        self._when_done(self.bridge.invoke("get_chrome_profiles"), _on_profiles, _log_profile_failure)

    def close_profiles(self) -> None:
        """Return to the main view and shrink the panel; no backend state changes."""
        self._profile_request += 1
        self.state.view.close_profiles()
        self._request_height()
        self._render()

    def select_profile(self, profile_id: str) -> None:
        """Persist ``profile_id`` and close without waiting for confirmation."""
        logger.info(f"[profiles] Selecting profile {profile_id!r}")
        self._fire("set_selected_profile", profile_id=profile_id)
        self.close_profiles()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _request_height(self) -> None:
        self._fire("set_window_height", height=self.state.view.panel_height(self.geometry))

    def _fire(self, command: str, **kwargs: Any) -> None:
        def _on_failure(exc: BaseException) -> None:
            logger.warning(f"[panel] {command} failed: {exc}")

        self._when_done(self.bridge.invoke(command, **kwargs), _ignore, _on_failure)

    def _when_done(
        self,
        future: Future,
        on_result: Callable[[Any], None],
        on_failure: Callable[[BaseException], None],
    ) -> None:
        """Deliver ``future``'s outcome on the UI thread, then re-render."""

        def _deliver() -> None:
            try:
                result = future.result()
            except (Exception, CancelledError) as exc:
                on_failure(exc)
            else:
                on_result(result)
            self._render()

        future.add_done_callback(lambda _fut: self._dispatch(_deliver))

    def _render(self) -> None:
        if self.view is not None:
            self.view.render(self.state)


def _ignore(_result: object) -> None:
    return None


def _ignore_bootstrap_failure(exc: BaseException) -> None:
    logger.debug(f"[panel] Bootstrap read failed: {exc}")


def _log_profile_failure(exc: BaseException) -> None:
    logger.warning(f"[profiles] Could not load profiles: {exc}")
