"""Locating and reading keybot.yaml."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic.fields import FieldInfo
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

CONFIG_ENV_VAR = "KEYBOT_CONFIG"
CONFIG_FILE_NAMES = ("keybot.yaml", "keybot.yml")


def default_locations() -> list[Path]:
    """Places searched when no file is named: the working directory, then ~/.keybot."""
    return [Path.cwd() / name for name in CONFIG_FILE_NAMES] + [Path.home() / ".keybot" / "keybot.yaml"]


def find_config_file(explicit: str | Path | None = None) -> Path | None:
    """Resolve which config file to read.

    An explicit path (``--config``) wins and must exist. Otherwise the path in
    ``KEYBOT_CONFIG`` is used if it points at a file, and failing that the
    first of ``default_locations()`` that exists. Returns None when there is
    no file to read.
    """
    if explicit is not None:
        path = Path(explicit).expanduser()
        if not path.is_file():
            raise FileNotFoundError(f"Config file not found: {path}")
        return path

    from_env = os.environ.get(CONFIG_ENV_VAR)
    if from_env:
        path = Path(from_env).expanduser()
        return path if path.is_file() else None

    return next((p for p in default_locations() if p.is_file()), None)


def read_config_file(path: Path) -> dict[str, Any]:
    """Parse ``path`` into a mapping of section name to section values.

    An empty file reads as no settings. Anything but a mapping at the top
    level is rejected.
    """
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping of sections, got {type(data).__name__}")
    return data


class YamlSettingsSource(PydanticBaseSettingsSource):
    """Settings source for the sections of keybot.yaml.

    Ranks below environment variables, so ``DISCORD__BOT_TOKEN`` in the
    environment beats ``discord.bot_token`` in the file.
    """

    def __init__(self, settings_cls: type[BaseSettings], config_path: Path | None = None) -> None:
        super().__init__(settings_cls)
        self.config_path = config_path
        self._sections = read_config_file(config_path) if config_path is not None else {}

    def get_field_value(self, field: FieldInfo, field_name: str) -> tuple[Any, str, bool]:
        value = self._sections.get(field_name)
        return value, field_name, value is not None

    def __call__(self) -> dict[str, Any]:
        known = self.settings_cls.model_fields
        return {name: value for name, value in self._sections.items() if name in known and value is not None}
