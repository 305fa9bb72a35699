"""The key bot client.

Owns the coordinator and wires it to Discord: notifications go out through a
``DiscordNotificationSink``, button clicks and slash commands come in through
the ``KeyCommands`` cog.
"""

from __future__ import annotations

import discord

from clubkey.adapters.discord import setup as setup_commands
from clubkey.adapters.discord.sink import DiscordNotificationSink
from clubkey.adapters.discord.views import KeyOperationView
from clubkey.config import KeyBotSettings
from clubkey.config.logging import get_logger
from clubkey.core.coordinator import Coordinator
from clubkey.core.state import KeyOperation
from clubkey.core.timers import TimerService
from clubkey.services.slack import SlackNotifier

logger = get_logger("bot")

WELCOME_MESSAGE = "Key manager bot here. Choose an operation for the key."


class KeyBot(discord.Bot):
    """Discord bot that manages the club room key."""

    def __init__(self, settings: KeyBotSettings, timers: TimerService | None = None) -> None:
        intents = discord.Intents.default()
        intents.members = True

        super().__init__(
            intents=intents,
            debug_guilds=settings.discord.guild_id_list or None,
        )
        self.settings = settings
        self.slack = SlackNotifier(settings.slack.webhook_url, timeout=settings.slack.timeout)
        self.sink = DiscordNotificationSink(self)
        self.coordinator = Coordinator.from_settings(settings, self.sink, timers=timers)
        self._started = False

        self.key_commands = setup_commands(self)
        self.sink.view_factory = self.key_commands.make_view

    async def on_ready(self) -> None:
        """Called when the Discord connection is established (also after reconnects)."""
        logger.info(f"Logged in as {self.user} (ID: {self.user.id})")
        logger.info(f"Guilds: {len(self.guilds)}")

        if self._started:
            return
        self._started = True

        # Keep buttons on messages from before a restart working
        self.add_view(KeyOperationView(self.key_commands.handle_button, list(KeyOperation)))

        self.coordinator.start()
        await self.key_commands.update_presence()
        await self._post_panel()

    async def _post_panel(self) -> None:
        """Post the operation panel to the log channel."""
        channel_id = self.settings.discord.log_channel_id
        if not channel_id:
            return

        try:
            channel = self.get_channel(channel_id) or await self.fetch_channel(channel_id)
            await channel.send(content=WELCOME_MESSAGE, view=self.key_commands.make_view())
        except discord.HTTPException as e:
            logger.error(f"Failed to post operation panel to {channel_id}: {e}")

    async def close(self) -> None:
        self.coordinator.stop()
        await super().close()
