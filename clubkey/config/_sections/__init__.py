"""Config section models."""

from clubkey.config._sections.discord import DiscordSettings
from clubkey.config._sections.key import KeySettings
from clubkey.config._sections.logging import LoggingSettings
from clubkey.config._sections.reminder import ReminderSettings
from clubkey.config._sections.slack import SlackSettings

__all__ = [
    "DiscordSettings",
    "KeySettings",
    "LoggingSettings",
    "ReminderSettings",
    "SlackSettings",
]
