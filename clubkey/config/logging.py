"""
Logging configuration with a colored, tag-based console handler.

Usage:
    from clubkey.config.logging import get_logger
    logger = get_logger("coordinator")
    logger.info("Key borrowed", extra={"user_id": "123", "channel_id": "456"})
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime

# ANSI color codes for console output
COLORS = {
    "DEBUG": "\033[36m",  # Cyan
    "INFO": "\033[32m",  # Green
    "WARNING": "\033[33m",  # Yellow
    "ERROR": "\033[31m",  # Red
    "CRITICAL": "\033[35m",  # Magenta
    "RESET": "\033[0m",
}

# Module-specific colors for tags
TAG_COLORS = {
    "coordinator": "\033[94m",  # Blue
    "reminder": "\033[95m",  # Magenta
    "daily_check": "\033[96m",  # Cyan
    "bot": "\033[93m",  # Yellow
    "bot.commands": "\033[93m",  # Yellow
    "bot.sink": "\033[93m",  # Yellow
    "bot.views": "\033[93m",  # Yellow
    "slack": "\033[97m",  # White
    "timers": "\033[36m",  # Cyan
}


class ColoredConsoleFormatter(logging.Formatter):
    """Formatter that adds colors and a bracketed logger tag."""

    def format(self, record: logging.LogRecord) -> str:
        level_color = COLORS.get(record.levelname, "")
        reset = COLORS["RESET"]

        tag = record.name
        tag_color = TAG_COLORS.get(tag, "\033[37m")

        timestamp = datetime.now().strftime("%H:%M:%S")
        level_str = f"{level_color}{record.levelname:8}{reset}"
        tag_str = f"{tag_color}[{tag}]{reset}"

        extra_parts = []
        if hasattr(record, "user_id") and record.user_id:
            extra_parts.append(f"user={record.user_id}")
        if hasattr(record, "channel_id") and record.channel_id:
            extra_parts.append(f"channel={record.channel_id}")

        extra_str = f" ({', '.join(extra_parts)})" if extra_parts else ""
        msg = f"{timestamp} {level_str} {tag_str} {record.getMessage()}{extra_str}"

        if record.exc_info:
            msg += "\n" + self.formatException(record.exc_info)

        return msg


# Global state
_initialized = False


def _level_from_name(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def _get_console_level() -> int:
    """Get console log level from the LOG_LEVEL environment variable."""
    return _level_from_name(os.getenv("LOG_LEVEL", "INFO"))


def init_logging(console_level: int | str | None = None) -> None:
    """Initialize the logging system with the colored console handler."""
    global _initialized

    if _initialized:
        return

    if console_level is None:
        console_level = _get_console_level()
    elif isinstance(console_level, str):
        console_level = _level_from_name(console_level)

    # Clear any existing handlers on root logger (from basicConfig or other sources)
    root_logger = logging.getLogger()
    if root_logger.handlers:
        root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(ColoredConsoleFormatter())

    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(console_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("discord.gateway").setLevel(logging.WARNING)
    logging.getLogger("discord.client").setLevel(logging.WARNING)
    logging.getLogger("discord.http").setLevel(logging.WARNING)
    logging.getLogger("discord.state").setLevel(logging.WARNING)
    logging.getLogger("discord.webhook").setLevel(logging.WARNING)

    _initialized = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name."""
    if not _initialized:
        init_logging()
    return logging.getLogger(name)
