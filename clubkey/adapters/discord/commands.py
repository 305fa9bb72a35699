"""Key bot slash commands and button handling.

Uses Pycord's application commands system. Every reply carries the buttons
for the current key state, so members can always act from the latest message.
"""

import logging
from typing import TYPE_CHECKING, Iterable, Optional

import discord
from discord import option
from discord.ext import commands

from clubkey.adapters.discord.embeds import (
    create_error_embed,
    create_info_embed,
    create_operation_embed,
    create_owner_change_embed,
    create_status_embed,
    create_success_embed,
    display_name,
    format_check_time,
)
from clubkey.adapters.discord.presence import presence_for
from clubkey.adapters.discord.views import KeyOperationView
from clubkey.core.coordinator import MAX_INTERVAL_MINUTES, MIN_INTERVAL_MINUTES, Coordinator, OperationResult
from clubkey.core.errors import KeyBotError
from clubkey.core.state import STATE_LABELS, KeyOperation, KeyState
from clubkey.services.slack import SlackNotifier

if TYPE_CHECKING:
    from clubkey.adapters.discord.bot import KeyBot

logger = logging.getLogger("bot.commands")


class KeyCommands(commands.Cog):
    """Slash commands and buttons for the club room key."""

    def __init__(self, bot: "KeyBot", coordinator: Coordinator, slack: Optional[SlackNotifier] = None):
        self.bot = bot
        self.coordinator = coordinator
        self.slack = slack

    # ==========================================================================
    # Helpers
    # ==========================================================================

    def make_view(self, operations: Optional[Iterable[KeyOperation]] = None) -> KeyOperationView:
        """Buttons for ``operations``, or for the current state when omitted."""
        if operations is None:
            operations = self.coordinator.buttons()
        return KeyOperationView(self.handle_button, operations)

    async def update_presence(self) -> None:
        try:
            await self.bot.change_presence(**presence_for(self.coordinator.state))
        except Exception as e:
            logger.warning(f"[commands] Failed to update presence: {e}")

    async def announce(self, who: str, result: OperationResult) -> None:
        """Mirror a state change to Slack."""
        if self.slack is not None and self.slack.enabled and result.changed:
            await self.slack.announce(who, result.state)

    async def _after_change(self, user, result: OperationResult) -> None:
        await self.update_presence()
        await self.announce(display_name(user), result)

    async def _reply_error(self, ctx: discord.ApplicationContext, title: str, message: str) -> None:
        await ctx.respond(embed=create_error_embed(title, message), view=self.make_view(), ephemeral=True)

    # ==========================================================================
    # Buttons
    # ==========================================================================

    async def handle_button(self, operation: KeyOperation, interaction: discord.Interaction) -> None:
        """Apply the operation behind a pressed button and answer the click."""
        user = interaction.user
        result = self.coordinator.apply_operation(
            operation,
            str(user.id),
            display_name(user),
            interaction.channel_id,
        )

        if not result.changed:
            await interaction.response.send_message(
                embed=create_info_embed("Nothing changed", state_line(result.state)),
                view=self.make_view(result.buttons),
                ephemeral=True,
            )
            return

        await interaction.response.send_message(
            embed=create_operation_embed(result, user),
            view=self.make_view(result.buttons),
        )

        # Strip the buttons from the clicked message so it cannot be pressed twice
        if interaction.message is not None:
            try:
                await interaction.message.edit(view=None)
            except discord.HTTPException as e:
                logger.warning(f"[commands] Could not remove old buttons: {e}")

        await self._after_change(user, result)

    # ==========================================================================
    # Key commands
    # ==========================================================================

    @discord.slash_command(name="borrow", description="Borrow the key, or restart your reminders")
    @option(
        "delay_minutes",
        int,
        description="Minutes until the first reminder",
        required=False,
        default=None,
        min_value=MIN_INTERVAL_MINUTES,
        max_value=MAX_INTERVAL_MINUTES,
    )
    async def borrow(self, ctx: discord.ApplicationContext, delay_minutes: Optional[int] = None):
        """Borrow the key; if it is already out, restart the reminder cycle."""
        user = ctx.author

        if self.coordinator.state == KeyState.RETURNED:
            result = self.coordinator.apply_operation(
                KeyOperation.BORROW,
                str(user.id),
                display_name(user),
                ctx.channel_id,
                delay_minutes=delay_minutes,
            )
            await ctx.respond(embed=create_operation_embed(result, user), view=self.make_view(result.buttons))
            await self._after_change(user, result)
            return

        delay = self.coordinator.restart_reminder(delay_minutes)
        if delay is None:
            message = "Reminders are off. The reminder count was reset."
        else:
            message = f"First reminder in {delay:g} minutes."
        await ctx.respond(embed=create_success_embed("Reminder restarted", message), view=self.make_view())

    @discord.slash_command(name="owner", description="Hand the key to another member")
    @option("user", discord.User, description="The new holder")
    async def owner(self, ctx: discord.ApplicationContext, user: discord.User):
        """Reassign the key and restart reminders for the new holder."""
        result = self.coordinator.reassign_holder(str(user.id), display_name(user), ctx.channel_id)
        await ctx.respond(embed=create_owner_change_embed(result), view=self.make_view())

    @discord.slash_command(name="status", description="Show the key and alarm settings")
    async def status(self, ctx: discord.ApplicationContext):
        await ctx.respond(embed=create_status_embed(self.coordinator.status()), view=self.make_view())

    # ==========================================================================
    # Alarm settings
    # ==========================================================================

    @discord.slash_command(name="reminder", description="Turn return reminders on or off")
    async def reminder(self, ctx: discord.ApplicationContext):
        enabled = self.coordinator.toggle_reminder()
        await ctx.respond(
            embed=create_success_embed(f"Reminders {'ON' if enabled else 'OFF'}"),
            view=self.make_view(),
        )

    @discord.slash_command(name="scheduled-check", description="Turn the daily check on or off")
    async def scheduled_check(self, ctx: discord.ApplicationContext):
        enabled = self.coordinator.toggle_daily_check()
        await ctx.respond(
            embed=create_success_embed(f"Daily check {'ON' if enabled else 'OFF'}"),
            view=self.make_view(),
        )

    @discord.slash_command(name="reminder-time", description="Set the reminder interval")
    @option(
        "minutes",
        int,
        description="Minutes between reminders",
        min_value=MIN_INTERVAL_MINUTES,
        max_value=MAX_INTERVAL_MINUTES,
    )
    async def reminder_time(self, ctx: discord.ApplicationContext, minutes: int):
        rescheduled = self.coordinator.set_interval(minutes)
        description = "The pending reminder was rescheduled." if rescheduled else None
        await ctx.respond(
            embed=create_success_embed(f"Reminder interval set to {minutes} min", description),
            view=self.make_view(),
        )

    @discord.slash_command(name="check-time", description="Set the daily check time")
    @option("hour", int, description="Hour (0-23)", min_value=0, max_value=23)
    @option("minute", int, description="Minute (0-59)", min_value=0, max_value=59)
    async def check_time(self, ctx: discord.ApplicationContext, hour: int, minute: int):
        self.coordinator.set_daily_check_time(hour, minute)
        description = None if self.coordinator.daily_check.config.enabled else "The daily check is currently off."
        await ctx.respond(
            embed=create_success_embed(f"Daily check time set to {format_check_time(hour, minute)}", description),
            view=self.make_view(),
        )

    # ==========================================================================
    # Error Handlers
    # ==========================================================================

    async def cog_command_error(self, ctx: discord.ApplicationContext, error: Exception):
        """Turn rejections into error replies; log everything else."""
        original = getattr(error, "original", error)
        if isinstance(original, KeyBotError):
            await self._reply_error(ctx, "Not possible", str(original))
            return

        logger.error(f"[commands] Unhandled error in /{ctx.command.qualified_name}: {original}", exc_info=original)
        await self._reply_error(ctx, "Error", "Something went wrong.")


def state_line(state: KeyState) -> str:
    return f"The key is currently **{STATE_LABELS[state]}**."
