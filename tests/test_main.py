"""Tests for the command-line entry point."""

from __future__ import annotations

import os

import pytest

from clubkey.__main__ import _mask, main
from clubkey.config import reset_settings


@pytest.fixture(autouse=True)
def clean_env(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("KEYBOT_CONFIG", str(tmp_path / "missing.yaml"))
    monkeypatch.delenv("DISCORD__BOT_TOKEN", raising=False)
    reset_settings()
    yield
    reset_settings()


def test_check_prints_settings(monkeypatch, capsys):
    monkeypatch.setenv("DISCORD__BOT_TOKEN", "abcdefghijklmnop")
    monkeypatch.setenv("REMINDER__INTERVAL_MINUTES", "15")

    assert main(["--check"]) == 0

    out = capsys.readouterr().out
    assert "abcd..." in out
    assert "abcdefghijklmnop" not in out
    assert "every 15 min" in out


def test_config_flag(tmp_path, capsys):
    config = tmp_path / "club.yaml"
    config.write_text("reminder:\n  check_hour: 18\n  check_minute: 30\n", encoding="utf-8")

    assert main(["--config", str(config), "--check"]) == 0

    out = capsys.readouterr().out
    assert "18:30" in out
    assert str(config) in out
    assert os.environ["KEYBOT_CONFIG"] == str(tmp_path / "missing.yaml")


def test_missing_config_file_is_a_usage_error(tmp_path, capsys):
    with pytest.raises(SystemExit) as exc:
        main(["--config", str(tmp_path / "nope.yaml"), "--check"])

    assert exc.value.code == 2
    assert "Config file not found" in capsys.readouterr().err


def test_missing_token_exits_with_error():
    assert main([]) == 1


def test_mask():
    assert _mask("") == "(not set)"
    assert _mask("short") == "***"
    assert _mask("longer-secret") == "long..."
