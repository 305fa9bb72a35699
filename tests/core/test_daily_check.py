"""Tests for the daily check scheduler."""

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from clubkey.core.daily_check import (
    DailyCheckConfig,
    DailyCheckScheduler,
    compute_delay_until_next,
    next_occurrence,
)

HOUR_MS = 60 * 60 * 1000
MINUTE_MS = 60 * 1000


class TestComputeDelayUntilNext:
    def test_later_today(self):
        now = datetime(2024, 4, 1, 19, 0, 0)
        assert compute_delay_until_next(20, 0, now) == HOUR_MS

    def test_already_passed_rolls_to_tomorrow(self):
        now = datetime(2024, 4, 1, 20, 1, 0)
        assert compute_delay_until_next(20, 0, now) == 24 * HOUR_MS - MINUTE_MS

    def test_exactly_now_rolls_to_tomorrow(self):
        now = datetime(2024, 4, 1, 20, 0, 0)
        assert compute_delay_until_next(20, 0, now) == 24 * HOUR_MS

    def test_just_before_midnight(self):
        now = datetime(2024, 4, 1, 23, 59, 0)
        assert compute_delay_until_next(20, 0, now) == 20 * HOUR_MS + MINUTE_MS

    def test_midnight_target(self):
        now = datetime(2024, 4, 1, 23, 30, 0)
        assert compute_delay_until_next(0, 0, now) == 30 * MINUTE_MS

    def test_sub_second_precision(self):
        now = datetime(2024, 4, 1, 19, 59, 59, 500000)
        assert compute_delay_until_next(20, 0, now) == 500

    def test_month_and_year_boundary(self):
        assert next_occurrence(8, 0, datetime(2024, 12, 31, 9, 0)) == datetime(2025, 1, 1, 8, 0)

    def test_dst_spring_forward_measures_real_time(self):
        tz = ZoneInfo("America/New_York")
        # Clocks jump from 02:00 to 03:00 on 2024-03-10
        now = datetime(2024, 3, 9, 21, 0, tzinfo=tz)
        assert compute_delay_until_next(20, 0, now) == 22 * HOUR_MS

    def test_dst_fall_back_measures_real_time(self):
        tz = ZoneInfo("America/New_York")
        # Clocks go from 02:00 back to 01:00 on 2024-11-03
        now = datetime(2024, 11, 2, 21, 0, tzinfo=tz)
        assert compute_delay_until_next(20, 0, now) == 24 * HOUR_MS


class Harness:
    def __init__(self, timers, clock, **config):
        self.checks = 0
        self.config = DailyCheckConfig(**config)
        self.scheduler = DailyCheckScheduler(
            timers,
            self.config,
            on_fire=lambda token: self.scheduler.handle_fire(token, self.check),
            clock=clock,
        )

    def check(self):
        self.checks += 1


@pytest.fixture
def h(timers, clock):
    # clock starts at 09:00
    return Harness(timers, clock, enabled=True, hour=20, minute=0)


class TestDailyCheckScheduler:
    def test_arm(self, h, timers, clock):
        delay = h.scheduler.arm()

        assert delay == 11 * HOUR_MS
        assert h.scheduler.armed
        assert h.scheduler.next_fire_at == clock.now + timedelta(hours=11)
        assert len(timers.pending) == 1

    def test_fires_daily_and_rearms(self, h, timers):
        h.scheduler.arm()

        timers.advance(hours=11)
        assert h.checks == 1
        assert len(timers.pending) == 1

        timers.advance(hours=24)
        assert h.checks == 2
        assert len(timers.pending) == 1

    def test_rearm_reads_wall_clock(self, h, timers, clock):
        h.scheduler.arm()
        timers.advance(hours=11)

        assert timers.pending[0].due == datetime(2024, 4, 2, 20, 0)

    def test_reconfigure_before_next_fire(self, h, timers, clock):
        h.scheduler.arm()
        old = h.scheduler.handle

        h.scheduler.reconfigure(10, 30)

        assert old.cancelled
        assert len(timers.pending) == 1
        assert timers.pending[0].due == datetime(2024, 4, 1, 10, 30)
        timers.advance(hours=1, minutes=30)
        assert h.checks == 1

    def test_cancel(self, h, timers):
        h.scheduler.arm()
        h.scheduler.cancel()

        assert not h.scheduler.armed
        assert timers.pending == []
        assert h.scheduler.next_fire_at is None

    def test_disabled_does_not_arm(self, timers, clock):
        h = Harness(timers, clock, enabled=False)

        assert h.scheduler.arm() is None
        assert timers.pending == []

    def test_disabled_after_arm_skips_check(self, h, timers):
        h.scheduler.arm()
        handle = h.scheduler.handle
        h.config.enabled = False

        timers.fire(handle)

        assert h.checks == 0
        assert timers.pending == []

    def test_stale_fire_is_ignored(self, h, timers):
        h.scheduler.arm()
        stale = h.scheduler.handle
        h.scheduler.arm()

        timers.fire(stale)

        assert h.checks == 0
        assert len(timers.pending) == 1

    def test_failing_check_still_rearms(self, timers, clock):
        h = Harness(timers, clock)

        def boom():
            raise RuntimeError("check failed")

        h.check = boom
        h.scheduler.arm()
        timers.advance(hours=11)

        assert len(timers.pending) == 1
