"""Tests for countdown, window progress and tier helpers"""

from datetime import timedelta

import pytest

from tests.conftest import NOW
from usage_monitor.usage.metrics import (
    PLACEHOLDER,
    TIER_CRITICAL,
    TIER_NORMAL,
    TIER_WARNING,
    bar_fill,
    color_tier,
    display_percent,
    format_countdown,
    progress_percent,
)


class TestFormatCountdown:
    """Test the remaining-time label"""

    def test_absent_reset_is_placeholder(self):
        assert format_countdown(None, NOW) == PLACEHOLDER

    def test_days_and_hours(self):
        assert format_countdown(NOW + timedelta(hours=25), NOW) == "1d1h"

    def test_hours_and_minutes(self):
        assert format_countdown(NOW + timedelta(minutes=90), NOW) == "1h30m"

    def test_minutes_only(self):
        assert format_countdown(NOW + timedelta(minutes=45, seconds=59), NOW) == "45m"

    def test_under_a_minute_floors_to_zero(self):
        assert format_countdown(NOW + timedelta(seconds=45), NOW) == "0m"

    def test_elapsed_reset_is_zero(self):
        assert format_countdown(NOW - timedelta(hours=1), NOW) == "0m"

    def test_exact_day_keeps_zero_hours(self):
        assert format_countdown(NOW + timedelta(days=2), NOW) == "2d0h"

    def test_accepts_iso_string(self):
        reset = (NOW + timedelta(hours=3, minutes=12)).isoformat().replace("+00:00", "Z")
        assert format_countdown(reset, NOW) == "3h12m"

    def test_unparseable_string_is_placeholder(self):
        assert format_countdown("not-a-date", NOW) == PLACEHOLDER


class TestProgressPercent:
    """Test the share of the window still remaining"""

    def test_absent_reset_is_zero(self):
        assert progress_percent(None, 5, NOW) == 0.0

    def test_half_window_left(self):
        assert progress_percent(NOW + timedelta(hours=2, minutes=30), 5, NOW) == pytest.approx(50.0)

    def test_clamped_to_full_window(self):
        assert progress_percent(NOW + timedelta(hours=10), 5, NOW) == 100.0

    def test_elapsed_reset_is_zero(self):
        assert progress_percent(NOW - timedelta(minutes=1), 168, NOW) == 0.0

    def test_non_positive_window_is_zero(self):
        assert progress_percent(NOW + timedelta(hours=1), 0, NOW) == 0.0

    def test_seven_day_window(self):
        assert progress_percent(NOW + timedelta(hours=84), 168, NOW) == pytest.approx(50.0)


class TestColorTier:
    """Test tier thresholds"""

    @pytest.mark.parametrize(
        "utilization,expected",
        [
            (0.0, TIER_NORMAL),
            (49.9, TIER_NORMAL),
            (50.0, TIER_WARNING),
            (79.99, TIER_WARNING),
            (80.0, TIER_CRITICAL),
            (140.0, TIER_CRITICAL),
            (None, TIER_NORMAL),
        ],
    )
    def test_thresholds(self, utilization, expected):
        assert color_tier(utilization) == expected


class TestDisplayPercent:
    """Test the percentage label and bar fill"""

    def test_rounds_half_up(self):
        assert display_percent(42.5) == 43
        assert display_percent(42.4) == 42

    def test_label_is_not_clamped(self):
        assert display_percent(112.0) == 112

    def test_none_is_zero(self):
        assert display_percent(None) == 0

    def test_bar_fill_clamps(self):
        assert bar_fill(112) == 100.0
        assert bar_fill(-3) == 0.0
        assert bar_fill(37) == 37.0
