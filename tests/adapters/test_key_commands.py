"""Tests for the KeyCommands cog."""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from clubkey.adapters.discord.commands import KeyCommands, state_line
from clubkey.core.errors import NoActiveSession
from clubkey.core.reminder import ReminderToken
from clubkey.core.state import KeyOperation, KeyState


def _user(name="alice", user_id=42):
    user = MagicMock()
    user.id = user_id
    user.display_name = name
    user.display_avatar.url = "https://cdn.example/avatar.png"
    return user


def _interaction(user=None):
    interaction = MagicMock()
    interaction.user = user or _user()
    interaction.channel_id = 100
    interaction.response.send_message = AsyncMock()
    interaction.message.edit = AsyncMock()
    return interaction


def _ctx(user=None):
    ctx = MagicMock()
    ctx.author = user or _user()
    ctx.channel_id = 100
    ctx.respond = AsyncMock()
    return ctx


@pytest.fixture
def slack():
    slack = MagicMock()
    slack.enabled = True
    slack.announce = AsyncMock()
    return slack


@pytest.fixture
def cog(coordinator, slack):
    bot = MagicMock()
    bot.change_presence = AsyncMock()
    return KeyCommands(bot, coordinator, slack)


class TestHandleButton:
    @pytest.mark.asyncio
    async def test_borrow_button(self, cog, coordinator, slack):
        interaction = _interaction()

        await cog.handle_button(KeyOperation.BORROW, interaction)

        assert coordinator.state == KeyState.BORROWED
        assert coordinator.session.holder_id == "42"
        kwargs = interaction.response.send_message.await_args.kwargs
        assert kwargs["embed"].title == "Borrowed"
        assert kwargs["view"].operations == [KeyOperation.OPEN, KeyOperation.RETURN]
        interaction.message.edit.assert_awaited_once_with(view=None)
        cog.bot.change_presence.assert_awaited_once()
        assert cog.bot.change_presence.await_args.kwargs["status"] == discord.Status.idle
        slack.announce.assert_awaited_once_with("alice", KeyState.BORROWED)

    @pytest.mark.asyncio
    async def test_ignored_button_replies_privately(self, cog, coordinator, slack):
        interaction = _interaction()

        await cog.handle_button(KeyOperation.OPEN, interaction)

        assert coordinator.state == KeyState.RETURNED
        kwargs = interaction.response.send_message.await_args.kwargs
        assert kwargs["ephemeral"] is True
        assert kwargs["embed"].description == state_line(KeyState.RETURNED)
        assert kwargs["view"].operations == [KeyOperation.BORROW]
        interaction.message.edit.assert_not_awaited()
        slack.announce.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_slack_disabled(self, cog, coordinator, slack):
        slack.enabled = False

        await cog.handle_button(KeyOperation.BORROW, _interaction())

        slack.announce.assert_not_awaited()


class TestBorrowCommand:
    @pytest.mark.asyncio
    async def test_borrow_when_returned(self, cog, coordinator, timers, clock):
        ctx = _ctx()

        await cog.borrow.callback(cog, ctx, delay_minutes=5)

        assert coordinator.state == KeyState.BORROWED
        (handle,) = [h for h in timers.pending if isinstance(h.token, ReminderToken)]
        assert handle.due == clock.now + timedelta(minutes=5)
        ctx.respond.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_borrow_when_out_restarts_reminders(self, cog, coordinator, timers):
        coordinator.apply_operation(KeyOperation.BORROW, "42", "alice", 100)
        timers.advance(minutes=45)
        assert coordinator.session.reminder_count == 1
        ctx = _ctx()

        await cog.borrow.callback(cog, ctx, delay_minutes=None)

        assert coordinator.session.reminder_count == 0
        embed = ctx.respond.await_args.kwargs["embed"]
        assert "Reminder restarted" in embed.title
        assert "30 minutes" in embed.description


class TestErrors:
    @pytest.mark.asyncio
    async def test_rejection_becomes_error_reply(self, cog):
        ctx = _ctx()
        error = discord.ApplicationCommandInvokeError(NoActiveSession())

        await cog.cog_command_error(ctx, error)

        kwargs = ctx.respond.await_args.kwargs
        assert kwargs["ephemeral"] is True
        assert "Not possible" in kwargs["embed"].title
        assert kwargs["embed"].description == "The key is not currently borrowed."


def _reply(ctx):
    return ctx.respond.await_args.kwargs


class TestHolderCommands:
    @pytest.mark.asyncio
    async def test_owner(self, cog, coordinator):
        coordinator.apply_operation(KeyOperation.BORROW, "42", "alice", 100)
        coordinator.apply_operation(KeyOperation.OPEN, "42", "alice", 100)
        ctx = _ctx()

        await cog.owner.callback(cog, ctx, _user("bob", 7))

        assert coordinator.session.holder_id == "7"
        reply = _reply(ctx)
        assert "Key holder changed" in reply["embed"].title
        assert "<@42> → <@7>" in reply["embed"].description
        assert reply["view"].operations == [KeyOperation.CLOSE]

    @pytest.mark.asyncio
    async def test_status(self, cog, coordinator):
        coordinator.apply_operation(KeyOperation.BORROW, "42", "alice", 100)
        ctx = _ctx()

        await cog.status.callback(cog, ctx)

        reply = _reply(ctx)
        values = {f.name: f.value for f in reply["embed"].fields}
        assert values["Key"] == "Borrowed"
        assert values["Holder"].startswith("<@42>")
        assert reply["view"].operations == [KeyOperation.OPEN, KeyOperation.RETURN]


class TestAlarmCommands:
    @pytest.mark.asyncio
    async def test_reminder_toggle(self, cog, coordinator):
        ctx = _ctx()

        await cog.reminder.callback(cog, ctx)

        assert coordinator.reminders.config.enabled is False
        reply = _reply(ctx)
        assert "Reminders OFF" in reply["embed"].title
        assert reply["view"].operations == [KeyOperation.BORROW]

    @pytest.mark.asyncio
    async def test_scheduled_check_toggle(self, cog, coordinator, timers):
        ctx = _ctx()

        await cog.scheduled_check.callback(cog, ctx)

        assert coordinator.daily_check.config.enabled is False
        assert not coordinator.daily_check.armed
        reply = _reply(ctx)
        assert "Daily check OFF" in reply["embed"].title
        assert reply["view"].operations == [KeyOperation.BORROW]

    @pytest.mark.asyncio
    async def test_reminder_time_reschedules(self, cog, coordinator, timers, clock):
        coordinator.apply_operation(KeyOperation.BORROW, "42", "alice", 100)
        ctx = _ctx()

        await cog.reminder_time.callback(cog, ctx, 45)

        assert coordinator.reminders.config.interval_minutes == 45
        (handle,) = [h for h in timers.pending if isinstance(h.token, ReminderToken)]
        assert handle.due == clock.now + timedelta(minutes=45)
        reply = _reply(ctx)
        assert "Reminder interval set to 45 min" in reply["embed"].title
        assert reply["embed"].description == "The pending reminder was rescheduled."
        assert reply["view"].operations == [KeyOperation.OPEN, KeyOperation.RETURN]

    @pytest.mark.asyncio
    async def test_reminder_time_without_holder(self, cog):
        ctx = _ctx()

        await cog.reminder_time.callback(cog, ctx, 45)

        assert _reply(ctx)["embed"].description is None

    @pytest.mark.asyncio
    async def test_check_time(self, cog, coordinator):
        ctx = _ctx()

        await cog.check_time.callback(cog, ctx, 18, 30)

        assert (coordinator.daily_check.config.hour, coordinator.daily_check.config.minute) == (18, 30)
        reply = _reply(ctx)
        assert "Daily check time set to 18:30" in reply["embed"].title
        assert reply["embed"].description is None
        assert reply["view"].operations == [KeyOperation.BORROW]

    @pytest.mark.asyncio
    async def test_check_time_while_off(self, cog, coordinator):
        coordinator.toggle_daily_check()
        ctx = _ctx()

        await cog.check_time.callback(cog, ctx, 7, 0)

        assert _reply(ctx)["embed"].description == "The daily check is currently off."
