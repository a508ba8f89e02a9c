"""Reusable panel widgets."""

from usage_monitor.gui.widgets.profile_list import ProfileList
from usage_monitor.gui.widgets.usage_row import UsageRow

__all__ = ["ProfileList", "UsageRow"]
