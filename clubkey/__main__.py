"""Entry point for the key bot.

Usage:
    # Run the bot with settings from the environment / .env / keybot.yaml
    python -m clubkey

    # Use an explicit config file and debug logging
    python -m clubkey --config ./keybot.yaml --log-level DEBUG

    # Print the effective settings (token masked) and exit
    python -m clubkey --check
"""

from __future__ import annotations

import argparse
import os
import sys

from dotenv import load_dotenv

from clubkey import __version__


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clubkey",
        description="Club room key manager bot for Discord",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", help="Path to keybot.yaml (takes precedence over KEYBOT_CONFIG)")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Console log level (default: LOG_LEVEL or logging.level setting)",
    )
    parser.add_argument("--check", action="store_true", help="Validate settings and exit")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _mask(secret: str) -> str:
    if not secret:
        return "(not set)"
    return secret[:4] + "..." if len(secret) > 8 else "***"


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    parser = create_parser()
    args = parser.parse_args(argv)

    from clubkey.config import find_config_file, get_settings
    from clubkey.config.logging import get_logger, init_logging

    try:
        config_file = find_config_file(args.config)
    except FileNotFoundError as e:
        parser.error(str(e))

    settings = get_settings(config_file)
    init_logging(args.log_level or os.getenv("LOG_LEVEL") or settings.logging.level)
    logger = get_logger("bot")

    if args.check:
        r = settings.reminder
        print(f"config file             {config_file or '(none)'}")
        print(f"discord.bot_token       {_mask(settings.discord.bot_token)}")
        print(f"discord.log_channel_id  {settings.discord.log_channel_id or '(not set)'}")
        print(f"key.restricted_mode     {settings.key.restricted_mode}")
        print(f"reminder                {'on' if r.enabled else 'off'}, every {r.interval_minutes} min")
        print(
            f"daily check             {'on' if r.daily_check_enabled else 'off'}, "
            f"{r.check_hour:02d}:{r.check_minute:02d} {r.timezone or '(local time)'}"
        )
        print(f"slack                   {'on' if settings.slack.webhook_url else 'off'}")
        return 0

    if not settings.discord.bot_token:
        logger.error("No Discord token configured (set DISCORD__BOT_TOKEN or discord.bot_token)")
        return 1

    from clubkey.adapters.discord.bot import KeyBot

    bot = KeyBot(settings)
    bot.run(settings.discord.bot_token)
    return 0


if __name__ == "__main__":
    sys.exit(main())
