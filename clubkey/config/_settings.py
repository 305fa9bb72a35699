"""Root KeyBotSettings model."""

from __future__ import annotations

from contextvars import ContextVar
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from clubkey.config._loader import YamlSettingsSource, find_config_file
from clubkey.config._sections import (
    DiscordSettings,
    KeySettings,
    LoggingSettings,
    ReminderSettings,
    SlackSettings,
)

# Config file for the settings instance currently being built
_config_path: ContextVar[Path | None] = ContextVar("keybot_config_path", default=None)


class KeyBotSettings(BaseSettings):
    model_config = {"env_nested_delimiter": "__", "case_sensitive": False, "extra": "ignore"}

    discord: DiscordSettings = Field(default_factory=DiscordSettings)
    key: KeySettings = Field(default_factory=KeySettings)
    reminder: ReminderSettings = Field(default_factory=ReminderSettings)
    slack: SlackSettings = Field(default_factory=SlackSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    def __init__(self, config_path: str | Path | None = None, **values: Any) -> None:
        """Build settings from keyword values, the environment and keybot.yaml.

        ``config_path`` names the YAML file to read instead of searching for one.
        """
        token = _config_path.set(find_config_file(config_path))
        try:
            super().__init__(**values)
        finally:
            _config_path.reset(token)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            YamlSettingsSource(settings_cls, _config_path.get()),
        )
