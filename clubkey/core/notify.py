"""Outbound notifications produced by the schedulers.

The core only describes what should be said; a sink (the Discord adapter in
production, a recorder in tests) decides how to render and send it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Protocol

from clubkey.core.state import KeyOperation, KeyState


class NotificationKind(str, Enum):
    REMINDER = "reminder"  # Periodic nudge to the holder
    DAILY_CHECK = "daily_check"  # Time-of-day check while the key is still out


@dataclass
class Notification:
    """A message for the current holder."""

    kind: NotificationKind
    channel: Any
    recipient_id: str
    display_name: str
    state: KeyState
    buttons: tuple[KeyOperation, ...]
    reminder_count: int = 0
    elapsed_minutes: int = 0
    created_at: datetime = field(default_factory=datetime.now)


class NotificationSink(Protocol):
    def deliver(self, notification: Notification) -> None:
        """Queue ``notification`` for delivery.

        Must not block and must not raise: delivery failures are the sink's to
        log.
        """
        ...
