"""Delivers reminder and daily check notifications to Discord channels."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Callable, Iterable

import discord

from clubkey.config.logging import get_logger
from clubkey.core.notify import Notification, NotificationKind
from clubkey.core.state import STATE_LABELS, KeyOperation

if TYPE_CHECKING:
    from clubkey.adapters.discord.views import KeyOperationView

logger = get_logger("bot.sink")


def format_notification(notification: Notification) -> str:
    mention = f"<@{notification.recipient_id}>"
    if notification.kind == NotificationKind.DAILY_CHECK:
        now = notification.created_at.strftime("%H:%M")
        return (
            f"{mention} It is {now} and the key is still out "
            f"({STATE_LABELS[notification.state].lower()}). Please return it."
        )
    return (
        f"{mention} Reminder: you have had the key for {notification.elapsed_minutes} minutes. "
        f"Please return it once you are done."
    )


class DiscordNotificationSink:
    """NotificationSink that sends through the bot.

    ``deliver`` only schedules the send on the event loop, so the coordinator
    never waits on Discord.
    """

    def __init__(
        self,
        bot: discord.Client,
        view_factory: Callable[[Iterable[KeyOperation]], KeyOperationView] | None = None,
    ) -> None:
        self._bot = bot
        self.view_factory = view_factory
        self._pending: set[asyncio.Task[None]] = set()

    def deliver(self, notification: Notification) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(f"No running event loop; dropping {notification.kind.value} notification")
            return

        task = loop.create_task(self._send(notification))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _resolve_channel(self, channel_ref) -> discord.abc.Messageable | None:
        if isinstance(channel_ref, discord.abc.Messageable):
            return channel_ref
        channel_id = int(channel_ref)
        return self._bot.get_channel(channel_id) or await self._bot.fetch_channel(channel_id)

    async def _send(self, notification: Notification) -> None:
        try:
            channel = await self._resolve_channel(notification.channel)
            if channel is None:
                logger.warning(f"Channel {notification.channel} not found", extra={"user_id": notification.recipient_id})
                return

            kwargs = {}
            if self.view_factory is not None:
                kwargs["view"] = self.view_factory(notification.buttons)
            await channel.send(content=format_notification(notification), **kwargs)
            logger.info(
                f"Sent {notification.kind.value} to {notification.display_name}",
                extra={"user_id": notification.recipient_id, "channel_id": getattr(channel, "id", None)},
            )
        except Exception as e:
            logger.exception(f"Failed to deliver {notification.kind.value} notification: {e}")
