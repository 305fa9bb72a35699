"""Key custody core: state machine, borrower session, schedulers, coordinator.

Nothing in this package talks to Discord or Slack; outbound messages go
through a ``NotificationSink``.
"""

from clubkey.core.coordinator import (
    Coordinator,
    OperationResult,
    ReassignResult,
    ReminderSummary,
    StatusSnapshot,
)
from clubkey.core.daily_check import DailyCheckConfig, DailyCheckScheduler, compute_delay_until_next
from clubkey.core.errors import InvalidSetting, KeyBotError, NoActiveSession
from clubkey.core.notify import Notification, NotificationKind, NotificationSink
from clubkey.core.reminder import ReminderConfig, ReminderScheduler, SchedulerState
from clubkey.core.session import BorrowerSession
from clubkey.core.state import STATE_LABELS, KeyOperation, KeyState, available_operations
from clubkey.core.timers import AsyncioTimerService, TimerHandle, TimerService

__all__ = [
    "STATE_LABELS",
    "AsyncioTimerService",
    "BorrowerSession",
    "Coordinator",
    "DailyCheckConfig",
    "DailyCheckScheduler",
    "InvalidSetting",
    "KeyBotError",
    "KeyOperation",
    "KeyState",
    "NoActiveSession",
    "Notification",
    "NotificationKind",
    "NotificationSink",
    "OperationResult",
    "ReassignResult",
    "ReminderConfig",
    "ReminderScheduler",
    "ReminderSummary",
    "SchedulerState",
    "StatusSnapshot",
    "TimerHandle",
    "TimerService",
    "available_operations",
    "compute_delay_until_next",
]
