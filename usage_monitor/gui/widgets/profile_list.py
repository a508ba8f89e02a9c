"""Selectable list of browser profiles."""

from __future__ import annotations

from typing import Callable

import customtkinter as ctk

from usage_monitor.gui import theme
from usage_monitor.usage.models import Profile


class ProfileList(ctk.CTkFrame):
    """Header plus one clickable row per profile; the selected row is highlighted."""

    def __init__(
        self,
        master: ctk.CTkBaseClass,
        on_select: Callable[[str], None],
        on_close: Callable[[], None],
        header_height: int = 45,
        item_height: int = 40,
    ) -> None:
        super().__init__(master, fg_color="transparent")
        self._on_select = on_select
        self._item_height = item_height
        self._shown: tuple[tuple[Profile, ...], str | None] | None = None
        self._rows: list[ctk.CTkButton] = []
        self.grid_columnconfigure(0, weight=1)

        header = ctk.CTkFrame(self, fg_color="transparent", height=header_height)
        header.grid(row=0, column=0, sticky="ew")
        header.grid_propagate(False)
        header.grid_columnconfigure(0, weight=1)
        ctk.CTkLabel(
            header,
            text="Chrome profile",
            anchor="w",
            text_color=theme.COLOR_TEXT,
            font=(theme.FONT_FAMILY, theme.HEADER_FONT_SIZE, "bold"),
        ).grid(row=0, column=0, sticky="w", padx=8, pady=10)
        ctk.CTkButton(
            header,
            text="✕",
            width=24,
            height=24,
            fg_color="transparent",
            hover_color=theme.COLOR_PROFILE_HOVER_BG,
            command=on_close,
        ).grid(row=0, column=1, sticky="e", padx=6)

        self._body = ctk.CTkFrame(self, fg_color="transparent")
        self._body.grid(row=1, column=0, sticky="nsew")
        self._body.grid_columnconfigure(0, weight=1)

    def set_profiles(self, profiles: list[Profile], selected_id: str | None) -> None:
        key = (tuple(profiles), selected_id)
        if key == self._shown:
            return
        self._shown = key

        for row in self._rows:
            row.destroy()
        self._rows = []

        for index, profile in enumerate(profiles):
            text = profile.name if not profile.email else f"{profile.name}\n{profile.email}"
            selected = profile.id == selected_id
            row = ctk.CTkButton(
                self._body,
                text=text,
                anchor="w",
                height=self._item_height,
                corner_radius=6,
                fg_color=theme.COLOR_PROFILE_SELECTED_BG if selected else theme.COLOR_PROFILE_NORMAL_BG,
                hover_color=theme.COLOR_PROFILE_HOVER_BG,
                text_color=theme.COLOR_TEXT,
                font=(theme.FONT_FAMILY, theme.FONT_SIZE),
                command=lambda pid=profile.id: self._on_select(pid),
            )
            row.grid(row=index, column=0, sticky="ew", padx=4)
            self._rows.append(row)
