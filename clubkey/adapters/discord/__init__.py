"""Discord integration for the key bot.

Modules:
- bot: KeyBot client, startup panel and presence
- commands: KeyCommands cog with all slash commands and the button handler
- embeds: Helper functions for creating Discord embeds
- presence: Bot status per key state
- sink: Notification delivery to Discord channels
- views: Key operation buttons
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from clubkey.adapters.discord.bot import KeyBot
    from clubkey.adapters.discord.commands import KeyCommands


def setup(bot: "KeyBot") -> "KeyCommands":
    """Register the KeyCommands cog with the bot.

    Args:
        bot: The key bot instance

    Returns:
        The registered cog
    """
    from clubkey.adapters.discord.commands import KeyCommands

    cog = KeyCommands(bot, bot.coordinator, bot.slack)
    bot.add_cog(cog)
    return cog


__all__ = ["setup"]
