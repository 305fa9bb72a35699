"""Daily check at a fixed time of day.

Independent of the reminder interval: once a day at ``hour:minute`` the
coordinator looks at the key and nudges the holder if it is still out. Every
re-arm recomputes the delay from the wall clock, so the check does not drift.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable

from clubkey.config.logging import get_logger
from clubkey.core.timers import TimerHandle, TimerService

logger = get_logger("daily_check")


@dataclass
class DailyCheckConfig:
    enabled: bool = True
    hour: int = 20
    minute: int = 0


@dataclass(frozen=True, eq=False)
class DailyCheckToken:
    sequence: int


def next_occurrence(hour: int, minute: int, now: datetime) -> datetime:
    """The first ``hour:minute:00`` strictly after ``now``."""
    target = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if now >= target:
        target += timedelta(days=1)
    return target


def compute_delay_until_next(hour: int, minute: int, now: datetime) -> int:
    """Milliseconds from ``now`` until the next ``hour:minute``.

    If today's ``hour:minute`` has already passed (or is exactly now) the
    target is tomorrow's. For timezone-aware ``now`` the delay is measured in
    real elapsed time, so a DST change between now and the target is accounted
    for.
    """
    target = next_occurrence(hour, minute, now)
    if now.tzinfo is not None:
        delta = target.astimezone(timezone.utc) - now.astimezone(timezone.utc)
    else:
        delta = target - now
    return delta // timedelta(milliseconds=1)


class DailyCheckScheduler:
    """Owns the single recurring daily-check timer."""

    def __init__(
        self,
        timers: TimerService,
        config: DailyCheckConfig,
        on_fire: Callable[[DailyCheckToken], None],
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._timers = timers
        self.config = config
        self._on_fire = on_fire
        self._clock = clock
        self._sequence = 0
        self.handle: TimerHandle | None = None
        self.next_fire_at: datetime | None = None

    @property
    def armed(self) -> bool:
        return self.handle is not None

    def arm(self) -> int | None:
        """(Re-)arm the check for the next configured time of day.

        Returns the delay in milliseconds, or None when the check is disabled.
        """
        self.cancel()
        if not self.config.enabled:
            return None

        now = self._clock()
        delay_ms = compute_delay_until_next(self.config.hour, self.config.minute, now)
        self._sequence += 1
        self.handle = self._timers.arm(delay_ms / 1000, self._on_fire, DailyCheckToken(self._sequence))
        self.next_fire_at = now + timedelta(milliseconds=delay_ms)
        logger.info(
            f"Daily check armed for {self.config.hour:02d}:{self.config.minute:02d} "
            f"(in {delay_ms / 60000:.1f} min)"
        )
        return delay_ms

    def reconfigure(self, hour: int, minute: int) -> int | None:
        """Move the check to a new time; takes effect before the next natural fire."""
        self.config.hour = hour
        self.config.minute = minute
        return self.arm()

    def cancel(self) -> None:
        handle, self.handle = self.handle, None
        self.next_fire_at = None
        if handle is not None:
            handle.cancel()
            logger.debug("Daily check timer cancelled")

    def handle_fire(self, token: DailyCheckToken, check: Callable[[], None]) -> bool:
        """Run ``check`` for a current fire and re-arm for the next day.

        Returns False for a stale fire (superseded or cancelled timer) or when
        the check has been disabled in the meantime.
        """
        if self.handle is None or self.handle.token is not token:
            logger.debug(f"Discarding stale daily check fire #{token.sequence}")
            return False

        self.handle = None
        self.next_fire_at = None
        if not self.config.enabled:
            return False

        try:
            check()
        except Exception as e:
            logger.exception(f"Daily check failed: {e}")

        self.arm()
        return True
