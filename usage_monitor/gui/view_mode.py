"""View mode state machine for the panel.

Two independent axes:

* content: ``LOADING`` → ``USAGE`` / ``ERROR``, driven only by inbound data,
  error events and the bootstrap sequence.
* overlay: ``MAIN`` ↔ ``PROFILE_SELECT``, driven by the profile button or
  forced open on first run.

While the profile list is open the content region is hidden but its state is
kept, so closing the list shows exactly what was there before.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto

from usage_monitor.usage.models import Profile

REGION_LOADING = "loading"
REGION_USAGE = "usage"
REGION_ERROR = "error"
REGION_PROFILES = "profiles"


class ContentMode(Enum):
    """Which body the main view shows."""

    LOADING = auto()
    USAGE = auto()
    ERROR = auto()


class OverlayMode(Enum):
    """Main view or the profile list."""

    MAIN = auto()
    PROFILE_SELECT = auto()


_CONTENT_REGIONS = {
    ContentMode.LOADING: REGION_LOADING,
    ContentMode.USAGE: REGION_USAGE,
    ContentMode.ERROR: REGION_ERROR,
}


@dataclass(frozen=True)
class PanelGeometry:
    """Pixel sizes the panel height is computed from."""

    compact_height: int = 109
    header_height: int = 45
    item_height: int = 40


@dataclass
class ViewMode:
    content: ContentMode = ContentMode.LOADING
    overlay: OverlayMode = OverlayMode.MAIN
    error_message: str | None = None
    profiles: list[Profile] = field(default_factory=list)
    selected_profile_id: str | None = None

    # -- content axis ------------------------------------------------------

    def show_usage(self) -> None:
        """A snapshot arrived: show usage and drop any error."""
        self.content = ContentMode.USAGE
        self.error_message = None

    def show_error(self, message: str) -> None:
        self.content = ContentMode.ERROR
        self.error_message = message

    @property
    def is_loading(self) -> bool:
        return self.content is ContentMode.LOADING

    # -- overlay axis ------------------------------------------------------

    def open_profiles(self, profiles: list[Profile], selected_id: str | None) -> None:
        self.overlay = OverlayMode.PROFILE_SELECT
        self.profiles = list(profiles)
        self.selected_profile_id = selected_id

    def close_profiles(self) -> None:
        self.overlay = OverlayMode.MAIN
        self.profiles = []

    @property
    def profiles_open(self) -> bool:
        return self.overlay is OverlayMode.PROFILE_SELECT

    # -- derived -----------------------------------------------------------

    def visible_regions(self) -> frozenset[str]:
        """Regions to show; at most one content region is ever included."""
        if self.profiles_open:
            return frozenset({REGION_PROFILES})
        return frozenset({_CONTENT_REGIONS[self.content]})

    def panel_height(self, geometry: PanelGeometry) -> int:
        if self.profiles_open:
            return geometry.header_height + len(self.profiles) * geometry.item_height
        return geometry.compact_height
