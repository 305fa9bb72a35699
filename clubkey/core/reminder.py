"""Periodic return reminders for the current key holder.

One single-shot timer at a time, owned by the live ``BorrowerSession``. Each
fire sends a reminder and arms the next one ``interval_minutes`` later, so the
reminders keep coming until the key is returned, reminders are switched off,
or the holder changes.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable

from clubkey.config.logging import get_logger
from clubkey.core.session import BorrowerSession
from clubkey.core.timers import TimerService

logger = get_logger("reminder")


class SchedulerState(str, Enum):
    IDLE = "idle"
    ARMED = "armed"


@dataclass
class ReminderConfig:
    enabled: bool = True
    interval_minutes: int = 60


@dataclass(frozen=True, eq=False)
class ReminderToken:
    """Identifies one arm of the reminder timer for one session."""

    session: BorrowerSession
    sequence: int


class ReminderScheduler:
    """Arms, cancels and reschedules the holder's reminder timer.

    The scheduler never decides on its own whether a session is still live.
    Timer fires are routed through ``on_fire`` (the coordinator, which
    serializes them with everything else) and come back via ``handle_fire``
    together with the session the coordinator considers live.
    """

    def __init__(
        self,
        timers: TimerService,
        config: ReminderConfig,
        on_fire: Callable[[ReminderToken], None],
        notify: Callable[[BorrowerSession], None],
    ) -> None:
        self._timers = timers
        self.config = config
        self._on_fire = on_fire
        self._notify = notify
        self._sequence = 0
        self.state = SchedulerState.IDLE

    def arm(self, session: BorrowerSession, delay_minutes: float) -> None:
        """Arm the session's reminder ``delay_minutes`` from now.

        Any timer the session already holds is cancelled first, so a session
        never owns two timers.
        """
        session.cancel_timer()
        self._sequence += 1
        token = ReminderToken(session, self._sequence)
        session.timer_handle = self._timers.arm(delay_minutes * 60, self._on_fire, token)
        self.state = SchedulerState.ARMED
        logger.info(
            f"Reminder #{session.reminder_count + 1} for {session.display_name} in {delay_minutes:g} min",
            extra={"user_id": session.holder_id},
        )

    def cancel(self, session: BorrowerSession | None) -> None:
        if session is not None and session.timer_handle is not None:
            session.cancel_timer()
            logger.info(f"Cancelled reminder for {session.display_name}", extra={"user_id": session.holder_id})
        self.state = SchedulerState.IDLE

    def handle_fire(self, token: ReminderToken, live_session: BorrowerSession | None) -> bool:
        """Run a timer fire if it still belongs to the live session.

        Returns True if a reminder was sent. Fires for a destroyed or replaced
        session, for an arm that has since been superseded, or while reminders
        are disabled are discarded.
        """
        session = token.session
        handle = session.timer_handle
        current = handle is not None and handle.token is token

        if live_session is None or session is not live_session or not current:
            logger.debug(f"Discarding stale reminder fire #{token.sequence}")
            return False

        session.timer_handle = None
        if not self.config.enabled:
            self.state = SchedulerState.IDLE
            logger.debug("Reminders disabled; not re-arming")
            return False

        self.fire_now(session)
        return True

    def fire_now(self, session: BorrowerSession) -> None:
        """Send the next reminder immediately, then arm the following one."""
        session.cancel_timer()
        session.reminder_count += 1
        try:
            self._notify(session)
        except Exception as e:
            logger.exception(f"Failed to queue reminder for {session.display_name}: {e}")
        self.arm(session, self.config.interval_minutes)

    def remaining_minutes(self, session: BorrowerSession, now: datetime) -> float:
        """Minutes from ``now`` until the next reminder is due under the current interval.

        The next reminder is number ``reminder_count + 1`` and is due
        ``(reminder_count + 1) * interval_minutes`` after ``borrowed_at``.
        """
        next_fire_at = (session.reminder_count + 1) * self.config.interval_minutes
        return next_fire_at - session.elapsed_minutes(now)

    def reschedule(self, session: BorrowerSession, now: datetime) -> None:
        """Re-arm after an interval change, keeping the epoch and count.

        If the next reminder is already overdue under the new interval it is
        sent right away.
        """
        remaining = self.remaining_minutes(session, now)
        if remaining > 0:
            self.arm(session, remaining)
        else:
            logger.info(f"Reminder for {session.display_name} overdue by {-remaining:g} min; sending now")
            self.fire_now(session)
