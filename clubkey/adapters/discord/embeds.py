"""Discord embed helper functions.

Provides consistent, styled embeds for key operations and command responses.
"""

from __future__ import annotations

from typing import Any

import discord

from clubkey.core.coordinator import OperationResult, ReassignResult, ReminderSummary, StatusSnapshot
from clubkey.core.state import STATE_LABELS

# Color constants
EMBED_COLOR_OPERATION = 0x0099FF  # Light blue
EMBED_COLOR_STATUS = 0x00FF00  # Green
EMBED_COLOR_OWNER = 0xFFA500  # Orange
EMBED_COLOR_SUCCESS = 0x57F287  # Green
EMBED_COLOR_ERROR = 0xED4245  # Red
EMBED_COLOR_INFO = 0x5865F2  # Blurple

REMINDER_FIELD_NAME = "⏰ Reminder settings"


def display_name(user: Any) -> str:
    """Name to show for a Discord user or member."""
    return getattr(user, "display_name", None) or getattr(user, "name", None) or str(user)


def create_success_embed(title: str, description: str | None = None) -> discord.Embed:
    return discord.Embed(
        title=f"✅ {title}",
        description=description,
        color=EMBED_COLOR_SUCCESS,
    )


def create_error_embed(title: str, description: str | None = None) -> discord.Embed:
    return discord.Embed(
        title=f"❌ {title}",
        description=description,
        color=EMBED_COLOR_ERROR,
    )


def create_info_embed(title: str, description: str | None = None) -> discord.Embed:
    return discord.Embed(
        title=title,
        description=description,
        color=EMBED_COLOR_INFO,
    )


def format_check_time(hour: int, minute: int) -> str:
    return f"{hour:02d}:{minute:02d}"


def reminder_settings_text(summary: ReminderSummary) -> str:
    """Body of the reminder settings field shown on a fresh borrow."""
    check = format_check_time(summary.check_hour, summary.check_minute) if summary.daily_check_enabled else "off"

    if not summary.reminder_enabled:
        return f"Reminders are off\n• Daily check: {check}"

    lines = ["Reminders are on", f"• Interval: every {summary.interval_minutes} min"]
    if summary.first_delay_minutes is not None and summary.first_delay_minutes != summary.interval_minutes:
        lines.append(f"• First reminder in {summary.first_delay_minutes:g} min")
    lines.append(f"• Daily check: {check}")
    return "\n".join(lines)


def create_operation_embed(result: OperationResult, user: Any) -> discord.Embed:
    """Embed announcing a key operation, authored by the member who did it."""
    embed = discord.Embed(
        title=result.label,
        color=EMBED_COLOR_OPERATION,
        timestamp=discord.utils.utcnow(),
    )
    avatar = getattr(user, "display_avatar", None)
    embed.set_author(name=display_name(user), icon_url=avatar.url if avatar else None)

    if result.session_started:
        embed.add_field(name=REMINDER_FIELD_NAME, value=reminder_settings_text(result.reminder), inline=False)

    return embed


def create_status_embed(status: StatusSnapshot) -> discord.Embed:
    """Settings overview for ``/status``."""
    embed = discord.Embed(
        title="⚙️ Alarm settings",
        color=EMBED_COLOR_STATUS,
        timestamp=discord.utils.utcnow(),
    )
    embed.add_field(name="Reminders", value="✅ ON" if status.reminder_enabled else "❌ OFF", inline=True)
    embed.add_field(
        name="Daily check", value="✅ ON" if status.daily_check_enabled else "❌ OFF", inline=True
    )
    embed.add_field(name="Reminder interval", value=f"{status.interval_minutes} min", inline=True)
    embed.add_field(
        name="Daily check time", value=format_check_time(status.check_hour, status.check_minute), inline=True
    )
    embed.add_field(name="Key", value=STATE_LABELS[status.state], inline=True)
    if status.holder_id:
        embed.add_field(
            name="Holder",
            value=f"<@{status.holder_id}> ({status.reminder_count} reminders sent)",
            inline=True,
        )
    return embed


def create_owner_change_embed(result: ReassignResult) -> discord.Embed:
    lines = [
        "The key has a new holder",
        f"<@{result.previous_holder_id}> → <@{result.session.holder_id}>",
    ]
    if result.reminder_delay_minutes is not None:
        lines.append(f"⏰ Reminder in {result.reminder_delay_minutes:g} min")
    return discord.Embed(
        title="\U0001f504 Key holder changed",
        description="\n".join(lines),
        color=EMBED_COLOR_OWNER,
        timestamp=discord.utils.utcnow(),
    )
