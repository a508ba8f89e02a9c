"""Tests for the usage render model"""

from datetime import timedelta

import pytest

from tests.conftest import NOW
from usage_monitor.gui.render_model import UsageRenderModel, WindowDisplay
from usage_monitor.usage.metrics import PLACEHOLDER, TIER_CRITICAL, TIER_NORMAL, TIER_WARNING
from usage_monitor.usage.models import FIVE_HOUR, SEVEN_DAY, UsageSnapshot


@pytest.fixture
def model(clock):
    return UsageRenderModel(clock=clock)


class TestInitialState:
    """Test the model before any data"""

    def test_placeholders(self, model):
        for display in model.windows.values():
            assert display == WindowDisplay()
            assert display.percent_label == "--%"
            assert display.countdown == PLACEHOLDER
        assert model.title == "--%"

    def test_refresh_without_data_changes_nothing(self, model):
        model.refresh_timers()
        assert model.windows[FIVE_HOUR] == WindowDisplay()


class TestIngest:
    """Test applying snapshots"""

    def test_full_snapshot(self, model, usage_payload):
        model.ingest(UsageSnapshot.from_payload(usage_payload(five_hour=82.4, seven_day=50.0)))

        five = model.windows[FIVE_HOUR]
        assert five.percent == 82
        assert five.tier == TIER_CRITICAL
        assert five.usage_fill == 82.0
        assert five.countdown == "2h30m"
        assert five.timer_fill == pytest.approx(50.0)

        seven = model.windows[SEVEN_DAY]
        assert seven.tier == TIER_WARNING
        assert seven.countdown == "3d4h"
        assert model.title == "82%"

    def test_title_matches_row_label(self, model, usage_payload):
        model.ingest(UsageSnapshot.from_payload(usage_payload(five_hour=79.6)))
        assert model.title == "80%"
        assert model.title == model.windows[FIVE_HOUR].percent_label

    def test_tier_uses_raw_utilization(self, model, usage_payload):
        model.ingest(UsageSnapshot.from_payload(usage_payload(five_hour=49.9)))
        assert model.windows[FIVE_HOUR].percent == 50
        assert model.windows[FIVE_HOUR].tier == TIER_NORMAL

    def test_over_limit_fill_is_clamped(self, model, usage_payload):
        model.ingest(UsageSnapshot.from_payload(usage_payload(five_hour=130.0)))
        assert model.windows[FIVE_HOUR].percent_label == "130%"
        assert model.windows[FIVE_HOUR].usage_fill == 100.0

    def test_partial_snapshot_leaves_other_window(self, model, usage_payload):
        model.ingest(UsageSnapshot.from_payload(usage_payload(five_hour=10.0, seven_day=20.0)))
        seven_before = model.reset_times.get(SEVEN_DAY)

        model.ingest(
            UsageSnapshot.from_payload(
                usage_payload(five_hour=60.0, seven_day=None, five_hour_reset=timedelta(hours=1))
            )
        )

        assert model.windows[FIVE_HOUR].percent == 60
        assert model.windows[FIVE_HOUR].countdown == "1h0m"
        assert model.windows[SEVEN_DAY].percent == 20
        assert model.reset_times.get(SEVEN_DAY) == seven_before

    def test_missing_reset_resets_countdown(self, model, usage_payload):
        model.ingest(UsageSnapshot.from_payload(usage_payload()))
        model.ingest(UsageSnapshot.from_payload({FIVE_HOUR: {"utilization": 5.0, "resets_at": None}}))

        five = model.windows[FIVE_HOUR]
        assert model.reset_times.get(FIVE_HOUR) is None
        assert five.countdown == PLACEHOLDER
        assert five.timer_fill == 0.0
        assert model.windows[SEVEN_DAY].countdown == "3d4h"


class TestRefreshTimers:
    """Test tick-driven recomputation"""

    def test_countdown_follows_clock(self, model, clock, usage_payload):
        model.ingest(UsageSnapshot.from_payload(usage_payload(five_hour_reset=timedelta(minutes=2))))
        assert model.windows[FIVE_HOUR].countdown == "2m"

        clock.advance(seconds=61)
        model.refresh_timers()
        assert model.windows[FIVE_HOUR].countdown == "0m"
        assert model.windows[FIVE_HOUR].timer_fill > 0

        clock.advance(seconds=60)
        model.refresh_timers()
        assert model.windows[FIVE_HOUR].countdown == "0m"
        assert model.windows[FIVE_HOUR].timer_fill == 0.0

    def test_refresh_is_idempotent(self, model, usage_payload):
        model.ingest(UsageSnapshot.from_payload(usage_payload()))
        before = {key: WindowDisplay(**vars(display)) for key, display in model.windows.items()}
        model.refresh_timers()
        model.refresh_timers()
        assert model.windows == before

    def test_missed_ticks_do_not_drift(self, model, clock, usage_payload):
        model.ingest(UsageSnapshot.from_payload(usage_payload()))
        clock.advance(hours=1)
        model.refresh_timers()
        assert model.windows[FIVE_HOUR].countdown == "1h30m"

    def test_refresh_keeps_utilization(self, model, clock, usage_payload):
        model.ingest(UsageSnapshot.from_payload(usage_payload(five_hour=33.0)))
        clock.advance(minutes=10)
        model.refresh_timers()
        assert model.windows[FIVE_HOUR].percent == 33
        assert model.reset_times.get(FIVE_HOUR) == NOW + timedelta(hours=2, minutes=30)
