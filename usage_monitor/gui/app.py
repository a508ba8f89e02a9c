"""Compact always-on customtkinter panel.

This module only reflects ``UsageRenderState`` into widgets and forwards
window/user events to the ``PanelController`` as messages.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Callable

import customtkinter as ctk
from loguru import logger

from usage_monitor.gui import theme
from usage_monitor.gui.controller import PanelController, UsageRenderState
from usage_monitor.gui.events import (
    ACTION_CLOSE_PROFILES,
    ACTION_OPEN_HOME,
    ACTION_OPEN_SETTINGS,
    ACTION_SELECT_PROFILE,
    ACTION_TOGGLE_PROFILES,
    Focus,
    UserClick,
    VisibilityRegained,
)
from usage_monitor.gui.view_mode import REGION_ERROR, REGION_LOADING, REGION_PROFILES, REGION_USAGE
from usage_monitor.gui.widgets import ProfileList, UsageRow
from usage_monitor.usage.models import FIVE_HOUR, SEVEN_DAY

if TYPE_CHECKING:
    from usage_monitor.config.schema import PanelConfig
    from usage_monitor.gui.channel import PanelChannel

OnClose = Callable[[], None]


class UsagePanelApp:
    """Desktop panel showing the five-hour and seven-day windows."""

    def __init__(
        self,
        channel: PanelChannel,
        config: PanelConfig,
        on_close: OnClose | None = None,
    ) -> None:
        self._channel = channel
        self._config = config
        self._on_close = on_close

        self._root: ctk.CTk | None = None
        self._controller: PanelController | None = None
        self._main_view: ctk.CTkFrame | None = None
        self._regions: dict[str, ctk.CTkBaseClass] = {}
        self._rows: dict[str, UsageRow] = {}
        self._error_label: ctk.CTkLabel | None = None
        self._profile_list: ProfileList | None = None
        self._title = ""

        self._ui_thread_id: int | None = None
        self._pending_calls: list[Callable[[], None]] = []

    @property
    def controller(self) -> PanelController | None:
        return self._controller

    def run(self) -> None:
        """Build widgets, start the controller and run the Tk mainloop."""
        theme.setup_theme()
        root = ctk.CTk()
        self._root = root
        self._ui_thread_id = threading.get_ident()

        root.title("--%")
        root.geometry(f"{self._config.width}x{self._config.compact_height}")
        root.resizable(False, False)
        root.configure(fg_color=theme.COLOR_BG_APP)
        if self._config.always_on_top:
            root.attributes("-topmost", True)
        root.protocol("WM_DELETE_WINDOW", self._handle_close)
        root.grid_columnconfigure(0, weight=1)

        self._build(root)

        self._controller = PanelController(
            bridge=self._channel,
            schedule=self._schedule,
            dispatch=self.run_on_ui,
            view=self,
            geometry=self._config.geometry(),
            tick_interval_ms=self._config.tick_interval_ms,
            refresh_delay_ms=self._config.bootstrap_refresh_delay_ms,
            home_url=self._config.home_url,
            settings_url=self._config.settings_url,
        )
        self._channel.register("set_window_height", self.set_window_height, on_ui=True)

        root.bind("<FocusIn>", lambda _e: self._send(Focus()))
        root.bind("<Map>", self._on_map)

        self._controller.start()
        self._apply_pending_calls()
        root.mainloop()

    def stop(self) -> None:
        """Close the panel safely from any thread."""
        self.run_on_ui(self._handle_close)

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    def _build(self, root: ctk.CTk) -> None:
        font = (theme.FONT_FAMILY, theme.FONT_SIZE)

        main = ctk.CTkFrame(root, fg_color="transparent")
        main.grid(row=0, column=0, sticky="nsew", padx=8, pady=(4, 6))
        main.grid_columnconfigure(0, weight=1)
        self._main_view = main

        toolbar = ctk.CTkFrame(main, fg_color="transparent")
        toolbar.grid(row=0, column=0, sticky="e")
        for column, (text, action) in enumerate(
            (("◉", ACTION_TOGGLE_PROFILES), ("⌂", ACTION_OPEN_HOME), ("⚙", ACTION_OPEN_SETTINGS))
        ):
            ctk.CTkButton(
                toolbar,
                text=text,
                width=22,
                height=22,
                fg_color="transparent",
                hover_color=theme.COLOR_PROFILE_HOVER_BG,
                text_color=theme.COLOR_TEXT_MUTED,
                font=font,
                command=lambda a=action: self._send(UserClick(a)),
            ).grid(row=0, column=column, padx=1)

        loading = ctk.CTkLabel(main, text="Loading…", text_color=theme.COLOR_TEXT_MUTED, font=font)

        usage = ctk.CTkFrame(main, fg_color="transparent")
        usage.grid_columnconfigure(0, weight=1)
        for index, (key, title) in enumerate(((FIVE_HOUR, "5h"), (SEVEN_DAY, "7d"))):
            row = UsageRow(usage, title=title)
            row.grid(row=index, column=0, sticky="ew", pady=2)
            self._rows[key] = row

        error = ctk.CTkFrame(main, fg_color="transparent")
        self._error_label = ctk.CTkLabel(
            error,
            text="",
            wraplength=self._config.width - 24,
            justify="left",
            text_color=theme.COLOR_DANGER,
            font=font,
        )
        self._error_label.pack(fill="both", expand=True)

        for widget in (loading, usage, error):
            widget.grid(row=1, column=0, sticky="nsew")

        self._profile_list = ProfileList(
            root,
            on_select=lambda pid: self._send(UserClick(ACTION_SELECT_PROFILE, profile_id=pid)),
            on_close=lambda: self._send(UserClick(ACTION_CLOSE_PROFILES)),
            header_height=self._config.profile_header_height,
            item_height=self._config.profile_item_height,
        )
        self._profile_list.grid(row=0, column=0, sticky="nsew")

        self._regions = {
            REGION_LOADING: loading,
            REGION_USAGE: usage,
            REGION_ERROR: error,
            REGION_PROFILES: self._profile_list,
        }

    # ------------------------------------------------------------------
    # PanelView
    # ------------------------------------------------------------------

    def render(self, state: UsageRenderState) -> None:
        visible = state.view.visible_regions()
        if self._main_view is not None:
            if REGION_PROFILES in visible:
                self._main_view.grid_remove()
            else:
                self._main_view.grid()
        for name, widget in self._regions.items():
            if name in visible:
                widget.grid()
            else:
                widget.grid_remove()

        for key, row in self._rows.items():
            row.set_display(state.render.windows[key])
        if self._error_label is not None:
            self._error_label.configure(text=state.view.error_message or "")
        if self._profile_list is not None and state.view.profiles_open:
            self._profile_list.set_profiles(state.view.profiles, state.view.selected_profile_id)

        title = state.render.title
        if self._root is not None and title != self._title:
            self._title = title
            self._root.title(title)

    def set_window_height(self, height: int) -> None:
        root = self._root
        if root is None:
            return
        root.geometry(f"{self._config.width}x{int(height)}")

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def _send(self, message: object) -> None:
        if self._controller is not None:
            self._controller.handle(message)  # type: ignore[arg-type]

    def _on_map(self, event: object) -> None:
        if getattr(event, "widget", None) is self._root:
            self._send(VisibilityRegained())

    def _schedule(self, delay_ms: int, fn: Callable[[], None]) -> object:
        if self._root is None:
            return None
        return self._root.after(delay_ms, fn)

    def run_on_ui(self, fn: Callable[[], None]) -> None:
        if self._root is None:
            self._pending_calls.append(fn)
            return
        if threading.get_ident() == self._ui_thread_id:
            fn()
            return
        self._root.after(0, fn)

    def _apply_pending_calls(self) -> None:
        queued = list(self._pending_calls)
        self._pending_calls.clear()
        for fn in queued:
            fn()

    def _handle_close(self) -> None:
        root = self._root
        if self._controller is not None:
            self._controller.stop()
        if self._on_close:
            self._on_close()
        if root:
            try:
                root.quit()
                root.destroy()
            except Exception as exc:
                logger.warning("Error during panel shutdown: {}", exc)
            self._root = None
