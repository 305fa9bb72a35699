"""Unified configuration for the key bot.

Usage:
    from clubkey.config import get_settings

    s = get_settings()
    s.discord.bot_token            # "..."
    s.reminder.interval_minutes    # 60
"""

from __future__ import annotations

from pathlib import Path

from clubkey.config._loader import find_config_file
from clubkey.config._settings import KeyBotSettings

_settings: KeyBotSettings | None = None


def get_settings(config_path: str | Path | None = None) -> KeyBotSettings:
    """Return the singleton KeyBotSettings instance (created on first call).

    ``config_path`` only has an effect on the call that creates it.
    """
    global _settings
    if _settings is None:
        _settings = KeyBotSettings(config_path=config_path)
    return _settings


def reset_settings() -> None:
    """Force re-creation of the settings singleton (useful for tests)."""
    global _settings
    _settings = None


__all__ = ["KeyBotSettings", "find_config_file", "get_settings", "reset_settings"]
