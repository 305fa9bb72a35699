"""The coordinator: single owner of the key state, the borrower session and
both schedulers.

Every inbound event goes through one of the public methods here: button
presses and slash commands from the Discord layer, and timer fires from the
schedulers. They all take the same re-entrant lock, so no two of them ever
interleave. Nothing in here awaits; outbound notifications are handed to the
sink, which only queues them.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable

from clubkey.config.logging import get_logger
from clubkey.core import state as key_state
from clubkey.core.daily_check import DailyCheckConfig, DailyCheckScheduler, DailyCheckToken
from clubkey.core.errors import InvalidSetting, NoActiveSession
from clubkey.core.notify import Notification, NotificationKind, NotificationSink
from clubkey.core.reminder import ReminderConfig, ReminderScheduler, ReminderToken
from clubkey.core.session import BorrowerSession
from clubkey.core.state import STATE_LABELS, KeyOperation, KeyState
from clubkey.core.timers import AsyncioTimerService, TimerService

if TYPE_CHECKING:
    from clubkey.config import KeyBotSettings

logger = get_logger("coordinator")

MIN_INTERVAL_MINUTES = 1
MAX_INTERVAL_MINUTES = 1440


@dataclass
class ReminderSummary:
    """Reminder settings at the time of an operation, for the renderer."""

    reminder_enabled: bool
    interval_minutes: int
    daily_check_enabled: bool
    check_hour: int
    check_minute: int
    first_delay_minutes: float | None = None  # Set when a reminder was armed


@dataclass
class OperationResult:
    operation: KeyOperation
    previous_state: KeyState
    state: KeyState
    label: str
    changed: bool
    session_started: bool
    session_ended: bool
    buttons: tuple[KeyOperation, ...]
    reminder: ReminderSummary
    holder: BorrowerSession | None = None


@dataclass
class ReassignResult:
    previous_holder_id: str
    previous_display_name: str
    session: BorrowerSession
    reminder_delay_minutes: float | None


@dataclass
class StatusSnapshot:
    state: KeyState
    reminder_enabled: bool
    interval_minutes: int
    daily_check_enabled: bool
    check_hour: int
    check_minute: int
    holder_id: str | None = None
    holder_name: str | None = None
    reminder_count: int = 0
    next_daily_check: datetime | None = None


def _validate_minutes(minutes: int | float, what: str = "Interval") -> None:
    if not MIN_INTERVAL_MINUTES <= minutes <= MAX_INTERVAL_MINUTES:
        raise InvalidSetting(
            f"{what} must be between {MIN_INTERVAL_MINUTES} and {MAX_INTERVAL_MINUTES} minutes (got {minutes})."
        )


def _validate_time(hour: int, minute: int) -> None:
    if not 0 <= hour <= 23:
        raise InvalidSetting(f"Hour must be between 0 and 23 (got {hour}).")
    if not 0 <= minute <= 59:
        raise InvalidSetting(f"Minute must be between 0 and 59 (got {minute}).")


class Coordinator:
    """Serializes every key operation, config change and timer fire."""

    def __init__(
        self,
        sink: NotificationSink,
        timers: TimerService | None = None,
        reminder_config: ReminderConfig | None = None,
        daily_check_config: DailyCheckConfig | None = None,
        restricted_mode: bool = False,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._sink = sink
        self._timers = timers or AsyncioTimerService()
        self._clock = clock
        self.restricted_mode = restricted_mode

        self._lock = threading.RLock()
        self._state = KeyState.RETURNED
        self._session: BorrowerSession | None = None
        self._started = False

        self.reminders = ReminderScheduler(
            self._timers,
            reminder_config or ReminderConfig(),
            on_fire=self._on_reminder_fire,
            notify=self._send_reminder,
        )
        self.daily_check = DailyCheckScheduler(
            self._timers,
            daily_check_config or DailyCheckConfig(),
            on_fire=self._on_daily_check_fire,
            clock=clock,
        )

    @classmethod
    def from_settings(
        cls,
        settings: KeyBotSettings,
        sink: NotificationSink,
        timers: TimerService | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> Coordinator:
        r = settings.reminder
        if clock is None:
            clock = _make_clock(r.timezone)
        return cls(
            sink=sink,
            timers=timers,
            reminder_config=ReminderConfig(enabled=r.enabled, interval_minutes=r.interval_minutes),
            daily_check_config=DailyCheckConfig(
                enabled=r.daily_check_enabled,
                hour=r.check_hour,
                minute=r.check_minute,
            ),
            restricted_mode=settings.key.restricted_mode,
            clock=clock,
        )

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def state(self) -> KeyState:
        return self._state

    @property
    def session(self) -> BorrowerSession | None:
        return self._session

    def now(self) -> datetime:
        return self._clock()

    def buttons(self) -> tuple[KeyOperation, ...]:
        """Operations to offer for the current state."""
        return key_state.available_operations(self._state, self.restricted_mode)

    def reminder_summary(self, first_delay_minutes: float | None = None) -> ReminderSummary:
        r, d = self.reminders.config, self.daily_check.config
        return ReminderSummary(
            reminder_enabled=r.enabled,
            interval_minutes=r.interval_minutes,
            daily_check_enabled=d.enabled,
            check_hour=d.hour,
            check_minute=d.minute,
            first_delay_minutes=first_delay_minutes,
        )

    def status(self) -> StatusSnapshot:
        with self._lock:
            r, d = self.reminders.config, self.daily_check.config
            s = self._session
            return StatusSnapshot(
                state=self._state,
                reminder_enabled=r.enabled,
                interval_minutes=r.interval_minutes,
                daily_check_enabled=d.enabled,
                check_hour=d.hour,
                check_minute=d.minute,
                holder_id=s.holder_id if s else None,
                holder_name=s.display_name if s else None,
                reminder_count=s.reminder_count if s else 0,
                next_daily_check=self.daily_check.next_fire_at,
            )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Arm the daily check. Call once the event loop is running."""
        with self._lock:
            if self._started:
                return
            self._started = True
            self.daily_check.arm()
            logger.info(f"Coordinator started (state={self._state.name})")

    def stop(self) -> None:
        """Cancel every outstanding timer. State and session are kept."""
        with self._lock:
            self.daily_check.cancel()
            self.reminders.cancel(self._session)
            self._started = False
            logger.info("Coordinator stopped")

    # ------------------------------------------------------------------
    # Key operations
    # ------------------------------------------------------------------

    def apply_operation(
        self,
        operation: KeyOperation,
        actor_id: str,
        actor_name: str,
        channel: Any,
        now: datetime | None = None,
        delay_minutes: float | None = None,
    ) -> OperationResult:
        """Apply a key operation requested by ``actor_id``.

        Requests that do not apply to the current state leave everything
        untouched and come back with ``changed=False``. ``delay_minutes``
        overrides the delay before the first reminder of a new borrow.
        """
        if delay_minutes is not None:
            _validate_minutes(delay_minutes, "Delay")

        with self._lock:
            now = now or self._clock()
            previous = self._state
            new_state = key_state.apply(previous, operation, self.restricted_mode)
            changed = new_state != previous
            session_started = session_ended = False
            first_delay: float | None = None

            if not changed:
                logger.info(
                    f"{actor_name}: {operation.value} ignored in state {previous.name}",
                    extra={"user_id": actor_id},
                )
            else:
                self._state = new_state
                logger.info(
                    f"{actor_name}: {previous.name} -> {new_state.name}",
                    extra={"user_id": actor_id, "channel_id": _channel_id(channel)},
                )

                if new_state == KeyState.BORROWED and previous == KeyState.RETURNED:
                    first_delay = self._start_session(actor_id, actor_name, channel, now, delay_minutes)
                    session_started = True
                elif new_state == KeyState.RETURNED:
                    self._end_session()
                    session_ended = True

            return OperationResult(
                operation=operation,
                previous_state=previous,
                state=self._state,
                label=STATE_LABELS[self._state],
                changed=changed,
                session_started=session_started,
                session_ended=session_ended,
                buttons=self.buttons(),
                reminder=self.reminder_summary(first_delay),
                holder=self._session,
            )

    def _start_session(
        self,
        holder_id: str,
        display_name: str,
        channel: Any,
        now: datetime,
        delay_minutes: float | None = None,
    ) -> float | None:
        if self._session is not None:
            logger.warning(f"Replacing leftover session of {self._session.display_name}")
            self._session.destroy()

        self._session = BorrowerSession.create(holder_id, display_name, channel, now)
        return self._arm_first_reminder(delay_minutes)

    def _end_session(self) -> None:
        session, self._session = self._session, None
        if session is None:
            return
        self.reminders.cancel(session)
        session.destroy()
        logger.info(f"Session of {session.display_name} ended", extra={"user_id": session.holder_id})

    def _arm_first_reminder(self, delay_minutes: float | None = None) -> float | None:
        """Arm the first reminder of the current epoch, if reminders are on."""
        if self._session is None or not self.reminders.config.enabled:
            self.reminders.cancel(self._session)
            return None
        delay = delay_minutes if delay_minutes is not None else self.reminders.config.interval_minutes
        self.reminders.arm(self._session, delay)
        return delay

    def restart_reminder(self, delay_minutes: float | None = None, now: datetime | None = None) -> float | None:
        """Restart the holder's reminder cycle from zero.

        Used when someone borrows again while the key is already out, e.g. to
        push the first reminder back. Returns the delay armed, or None when
        reminders are off.
        """
        if delay_minutes is not None:
            _validate_minutes(delay_minutes, "Delay")

        with self._lock:
            if self._session is None:
                raise NoActiveSession()
            self._session.restart_epoch(now or self._clock())
            delay = self._arm_first_reminder(delay_minutes)
            logger.info(
                f"Reminder cycle for {self._session.display_name} restarted",
                extra={"user_id": self._session.holder_id},
            )
            return delay

    def reassign_holder(
        self,
        new_holder_id: str,
        new_display_name: str,
        channel: Any = None,
        now: datetime | None = None,
    ) -> ReassignResult:
        """Make someone else responsible for the key.

        The new holder starts a fresh epoch: no reminders sent, first one due a
        full interval from now. ``channel`` defaults to the old session's.
        """
        with self._lock:
            old = self._session
            if old is None or self._state == KeyState.RETURNED:
                raise NoActiveSession()

            now = now or self._clock()
            self.reminders.cancel(old)
            self._session = old.reassign(
                new_holder_id,
                new_display_name,
                channel if channel is not None else old.notify_channel,
                now,
            )
            delay = self._arm_first_reminder()
            logger.info(
                f"Holder changed: {old.display_name} -> {new_display_name}",
                extra={"user_id": new_holder_id},
            )
            return ReassignResult(
                previous_holder_id=old.holder_id,
                previous_display_name=old.display_name,
                session=self._session,
                reminder_delay_minutes=delay,
            )

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def set_interval(self, minutes: int, now: datetime | None = None) -> bool:
        """Change the reminder interval.

        A pending reminder is rescheduled against the new interval without
        resetting the holder's count. Returns True if a reminder was
        rescheduled.
        """
        _validate_minutes(minutes)

        with self._lock:
            self.reminders.config.interval_minutes = minutes
            logger.info(f"Reminder interval set to {minutes} min")
            if self._session is None or not self.reminders.config.enabled:
                return False
            self.reminders.reschedule(self._session, now or self._clock())
            return True

    def set_daily_check_time(self, hour: int, minute: int) -> None:
        _validate_time(hour, minute)

        with self._lock:
            if self._started and self.daily_check.config.enabled:
                self.daily_check.reconfigure(hour, minute)
            else:
                self.daily_check.config.hour = hour
                self.daily_check.config.minute = minute
            logger.info(f"Daily check time set to {hour:02d}:{minute:02d}")

    def toggle_reminder(self) -> bool:
        """Flip reminders on or off and return the new setting.

        Turning reminders off cancels the pending one. Turning them back on
        does not arm anything until the next borrow or holder change.
        """
        with self._lock:
            config = self.reminders.config
            config.enabled = not config.enabled
            if not config.enabled:
                self.reminders.cancel(self._session)
            logger.info(f"Reminders {'ON' if config.enabled else 'OFF'}")
            return config.enabled

    def toggle_daily_check(self) -> bool:
        """Flip the daily check on or off and return the new setting."""
        with self._lock:
            config = self.daily_check.config
            config.enabled = not config.enabled
            if not config.enabled:
                self.daily_check.cancel()
            elif self._started:
                self.daily_check.arm()
            logger.info(f"Daily check {'ON' if config.enabled else 'OFF'}")
            return config.enabled

    # ------------------------------------------------------------------
    # Timer fires
    # ------------------------------------------------------------------

    def _on_reminder_fire(self, token: ReminderToken) -> None:
        with self._lock:
            self.reminders.handle_fire(token, self._session if self._state != KeyState.RETURNED else None)

    def _send_reminder(self, session: BorrowerSession) -> None:
        self._sink.deliver(
            Notification(
                kind=NotificationKind.REMINDER,
                channel=session.notify_channel,
                recipient_id=session.holder_id,
                display_name=session.display_name,
                state=self._state,
                buttons=self.buttons(),
                reminder_count=session.reminder_count,
                elapsed_minutes=self.reminders.config.interval_minutes * session.reminder_count,
                created_at=self._clock(),
            )
        )

    def _on_daily_check_fire(self, token: DailyCheckToken) -> None:
        with self._lock:
            self.daily_check.handle_fire(token, self._run_daily_check)

    def _run_daily_check(self) -> None:
        session = self._session
        if self._state == KeyState.RETURNED or session is None:
            logger.info("Daily check: key is returned")
            return

        now = self._clock()
        logger.info(
            f"Daily check: key still out with {session.display_name} ({self._state.name})",
            extra={"user_id": session.holder_id},
        )
        self._sink.deliver(
            Notification(
                kind=NotificationKind.DAILY_CHECK,
                channel=session.notify_channel,
                recipient_id=session.holder_id,
                display_name=session.display_name,
                state=self._state,
                buttons=self.buttons(),
                reminder_count=session.reminder_count,
                elapsed_minutes=int(session.elapsed_minutes(now)),
                created_at=now,
            )
        )


def _channel_id(channel: Any) -> Any:
    return getattr(channel, "id", channel)


def _make_clock(tz_name: str) -> Callable[[], datetime]:
    """Wall clock in ``tz_name``, or naive local time when empty."""
    if not tz_name:
        return datetime.now

    from zoneinfo import ZoneInfo

    tz = ZoneInfo(tz_name)
    return lambda: datetime.now(tz)
