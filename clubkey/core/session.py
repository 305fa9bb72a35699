"""The borrower session: who has the key and how often they have been reminded."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from clubkey.core.timers import TimerHandle


@dataclass(eq=False)
class BorrowerSession:
    """The member currently responsible for the key.

    Exists exactly while the key is out. ``borrowed_at`` marks the start of the
    reminder-counting epoch and ``reminder_count`` counts reminders sent in it.
    Sessions compare by identity: a replaced session is never equal to its
    successor, which is what the stale-fire guard relies on.
    """

    holder_id: str
    display_name: str
    notify_channel: Any
    borrowed_at: datetime
    reminder_count: int = 0
    timer_handle: TimerHandle | None = field(default=None, repr=False)

    @classmethod
    def create(cls, holder_id: str, display_name: str, channel: Any, now: datetime) -> BorrowerSession:
        return cls(
            holder_id=holder_id,
            display_name=display_name,
            notify_channel=channel,
            borrowed_at=now,
        )

    def reassign(
        self,
        new_holder_id: str,
        new_display_name: str,
        new_channel: Any,
        now: datetime,
    ) -> BorrowerSession:
        """Hand the key to someone else.

        This session's timer is cancelled; the replacement starts a new epoch
        with no reminders sent and no timer armed.
        """
        self.destroy()
        return BorrowerSession.create(new_holder_id, new_display_name, new_channel, now)

    def cancel_timer(self) -> None:
        """Cancel the outstanding reminder timer, if any, and drop the handle."""
        handle, self.timer_handle = self.timer_handle, None
        if handle is not None:
            handle.cancel()

    def destroy(self) -> None:
        self.cancel_timer()

    def restart_epoch(self, now: datetime) -> None:
        """Start counting reminders from zero again, keeping the same holder."""
        self.cancel_timer()
        self.borrowed_at = now
        self.reminder_count = 0

    def elapsed_minutes(self, now: datetime) -> float:
        return (now - self.borrowed_at).total_seconds() / 60
