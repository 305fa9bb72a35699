"""Slack incoming-webhook announcements.

Posts a one-line "who did what" message whenever the key changes hands or the
room is opened or closed, for members who follow along in Slack.
"""

from __future__ import annotations

import httpx

from clubkey.config.logging import get_logger
from clubkey.core.state import KeyState

logger = get_logger("slack")

ACTION_PHRASES: dict[KeyState, str] = {
    KeyState.RETURNED: "returned the key",
    KeyState.BORROWED: "borrowed the key",
    KeyState.OPENED: "opened the room",
    KeyState.CLOSED: "closed the room",
}


def format_operation_message(who: str, state: KeyState) -> str:
    """E.g. ``"alice borrowed the key"``."""
    return f"{who} {ACTION_PHRASES[state]}"


class SlackNotifier:
    """Sends messages to a Slack incoming webhook. Disabled without a URL."""

    def __init__(
        self,
        webhook_url: str = "",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.webhook_url = webhook_url
        self.timeout = timeout
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.webhook_url)

    async def post(self, text: str) -> bool:
        """Post ``text`` to the webhook. Returns True on a 2xx response.

        Errors are logged, never raised.
        """
        if not self.enabled:
            return False

        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.post(self.webhook_url, json={"text": text}, timeout=self.timeout)
            if response.status_code // 100 != 2:
                logger.warning(f"Slack webhook returned {response.status_code}: {response.text[:200]}")
                return False
            return True
        except httpx.HTTPError as e:
            logger.error(f"Slack webhook request failed: {e}")
            return False

    async def announce(self, who: str, state: KeyState) -> bool:
        return await self.post(format_operation_message(who, state))
