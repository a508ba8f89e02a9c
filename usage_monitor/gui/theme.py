"""Shared panel theme defaults."""

from __future__ import annotations

import customtkinter as ctk

from usage_monitor.usage.metrics import TIER_CRITICAL, TIER_NORMAL, TIER_WARNING

FONT_FAMILY = "Segoe UI"
FONT_SIZE = 11
HEADER_FONT_SIZE = 12

COLOR_BG_APP = "#0E1116"
COLOR_TEXT = "#D9E2EF"
COLOR_TEXT_MUTED = "#93A3B8"
COLOR_BAR_TRACK = "#223247"
COLOR_TIMER_BAR = "#5B6B80"
COLOR_SUCCESS = "#39C172"
COLOR_WARN = "#FFA940"
COLOR_DANGER = "#EA5F5F"

# Profile list rows
COLOR_PROFILE_SELECTED_BG = "#192B3E"
COLOR_PROFILE_NORMAL_BG = "#111927"
COLOR_PROFILE_HOVER_BG = "#141E2C"


def tier_color(tier: str) -> str:
    """Return bar/label color for a usage tier."""
    return {
        TIER_NORMAL: COLOR_SUCCESS,
        TIER_WARNING: COLOR_WARN,
        TIER_CRITICAL: COLOR_DANGER,
    }.get(tier, COLOR_TEXT_MUTED)


def setup_theme() -> None:
    """Apply global appearance settings."""
    ctk.set_appearance_mode("dark")
    ctk.set_default_color_theme("blue")
