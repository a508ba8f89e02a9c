"""One usage window: utilization bar plus countdown bar."""

from __future__ import annotations

import customtkinter as ctk

from usage_monitor.gui import theme
from usage_monitor.gui.render_model import WindowDisplay


class UsageRow(ctk.CTkFrame):
    """``5h  ███░░  42%`` over ``▂▂▂░░  2h13m``."""

    def __init__(self, master: ctk.CTkBaseClass, title: str) -> None:
        super().__init__(master, fg_color="transparent")
        self.grid_columnconfigure(1, weight=1)
        font = (theme.FONT_FAMILY, theme.FONT_SIZE)

        self._title = ctk.CTkLabel(self, text=title, width=24, anchor="w", text_color=theme.COLOR_TEXT, font=font)
        self._title.grid(row=0, column=0, rowspan=2, sticky="w", padx=(0, 4))

        self._usage_bar = ctk.CTkProgressBar(self, height=8, progress_color=theme.COLOR_SUCCESS, fg_color=theme.COLOR_BAR_TRACK)
        self._usage_bar.grid(row=0, column=1, sticky="ew")
        self._usage_bar.set(0)

        self._percent = ctk.CTkLabel(self, text="--%", width=40, anchor="e", text_color=theme.COLOR_TEXT_MUTED, font=font)
        self._percent.grid(row=0, column=2, sticky="e", padx=(4, 0))

        self._timer_bar = ctk.CTkProgressBar(self, height=4, progress_color=theme.COLOR_TIMER_BAR, fg_color=theme.COLOR_BAR_TRACK)
        self._timer_bar.grid(row=1, column=1, sticky="ew")
        self._timer_bar.set(0)

        self._countdown = ctk.CTkLabel(self, text="--", width=40, anchor="e", text_color=theme.COLOR_TEXT_MUTED, font=font)
        self._countdown.grid(row=1, column=2, sticky="e", padx=(4, 0))

    def set_display(self, display: WindowDisplay) -> None:
        color = theme.tier_color(display.tier) if display.percent is not None else theme.COLOR_TEXT_MUTED
        self._usage_bar.configure(progress_color=color)
        self._usage_bar.set(display.usage_fill / 100)
        self._percent.configure(text=display.percent_label, text_color=color)
        self._timer_bar.set(display.timer_fill / 100)
        self._countdown.configure(text=display.countdown)
