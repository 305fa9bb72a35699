"""Pytest configuration and fixtures for key bot tests."""

from __future__ import annotations

from datetime import datetime, timedelta
from itertools import count

import pytest

from clubkey.core.coordinator import Coordinator
from clubkey.core.daily_check import DailyCheckConfig
from clubkey.core.reminder import ReminderConfig

START = datetime(2024, 4, 1, 9, 0, 0)


class FakeClock:
    """Settable wall clock."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class FakeTimerHandle:
    def __init__(self, token, due: datetime, callback, seq: int) -> None:
        self.token = token
        self.due = due
        self.callback = callback
        self.seq = seq
        self.fired = False
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


class FakeTimerService:
    """TimerService driven by a FakeClock instead of an event loop."""

    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.handles: list[FakeTimerHandle] = []
        self._seq = count()

    def arm(self, delay, callback, token) -> FakeTimerHandle:
        handle = FakeTimerHandle(token, self.clock.now + timedelta(seconds=delay), callback, next(self._seq))
        self.handles.append(handle)
        return handle

    @property
    def pending(self) -> list[FakeTimerHandle]:
        return [h for h in self.handles if not h.cancelled and not h.fired]

    def advance(self, **delta) -> None:
        """Move the clock forward, firing due timers in order."""
        target = self.clock.now + timedelta(**delta)
        while True:
            due = [h for h in self.pending if h.due <= target]
            if not due:
                break
            handle = min(due, key=lambda h: (h.due, h.seq))
            self.clock.now = max(self.clock.now, handle.due)
            self.fire(handle)
        self.clock.now = target

    def fire(self, handle: FakeTimerHandle) -> None:
        """Run a timer's callback now, even if it was cancelled (a late fire)."""
        handle.fired = True
        handle.callback(handle.token)


class RecordingSink:
    def __init__(self) -> None:
        self.notifications = []

    def deliver(self, notification) -> None:
        self.notifications.append(notification)


@pytest.fixture
def clock():
    return FakeClock(START)


@pytest.fixture
def timers(clock):
    return FakeTimerService(clock)


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def make_coordinator(sink, timers, clock):
    """Factory for coordinators wired to the fake clock, timers and sink."""

    def _make(
        interval: int = 30,
        reminder_enabled: bool = True,
        daily_check_enabled: bool = True,
        hour: int = 20,
        minute: int = 0,
        restricted_mode: bool = False,
        start: bool = True,
    ) -> Coordinator:
        coordinator = Coordinator(
            sink=sink,
            timers=timers,
            reminder_config=ReminderConfig(enabled=reminder_enabled, interval_minutes=interval),
            daily_check_config=DailyCheckConfig(enabled=daily_check_enabled, hour=hour, minute=minute),
            restricted_mode=restricted_mode,
            clock=clock,
        )
        if start:
            coordinator.start()
        return coordinator

    return _make


@pytest.fixture
def coordinator(make_coordinator):
    return make_coordinator()
