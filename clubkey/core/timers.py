"""Deferred callback abstraction used by the reminder and daily check schedulers.

A timer is armed with a delay, a callback and a token; when it fires, the
callback receives the token back. The schedulers compare that token against
the handle they currently hold, so a fire that slipped past ``cancel()`` is
recognised as stale and ignored.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Protocol

from clubkey.config.logging import get_logger

logger = get_logger("timers")


class TimerHandle(Protocol):
    token: Any

    @property
    def cancelled(self) -> bool: ...

    def cancel(self) -> None: ...


class TimerService(Protocol):
    def arm(self, delay: float, callback: Callable[[Any], None], token: Any) -> TimerHandle:
        """Schedule ``callback(token)`` after ``delay`` seconds."""
        ...


class AsyncioTimerHandle:
    """Handle for a callback scheduled with ``loop.call_later``."""

    def __init__(self, token: Any, handle: asyncio.TimerHandle) -> None:
        self.token = token
        self._handle = handle

    @property
    def cancelled(self) -> bool:
        return self._handle.cancelled()

    def cancel(self) -> None:
        self._handle.cancel()

    def __repr__(self) -> str:
        return f"AsyncioTimerHandle(token={self.token!r}, cancelled={self.cancelled})"


class AsyncioTimerService:
    """TimerService backed by the running asyncio event loop.

    Callbacks run on the loop thread, one at a time, so a fire is serialized
    with every other event the bot handles.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def arm(self, delay: float, callback: Callable[[Any], None], token: Any) -> AsyncioTimerHandle:
        delay = max(0.0, delay)
        handle = self._get_loop().call_later(delay, callback, token)
        logger.debug(f"Armed timer {token!r} for {delay:.1f}s")
        return AsyncioTimerHandle(token, handle)
