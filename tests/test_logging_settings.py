"""Tests for logging settings parsing."""

from pathlib import Path

from clawdbot.logging_settings import parse_logging_settings


def test_parse_logging_settings_with_retention(tmp_path: Path) -> None:
    config_file = tmp_path / "logging_settings.conf"
    config_file.write_text(
        """
# Gateway logging
terminal = debug
file = warning
retention_hours = 72
"""
    )

    settings = parse_logging_settings(config_file)

    assert settings.terminal_level == 10  # DEBUG
    assert settings.file_level == 30  # WARNING
    assert settings.retention_hours == 72


def test_parse_logging_settings_defaults(tmp_path: Path) -> None:
    settings = parse_logging_settings(tmp_path / "nonexistent.conf")

    assert settings.terminal_level == 20
    assert settings.file_level == 20
    assert settings.retention_hours == 48


def test_unknown_keys_and_levels_are_ignored(tmp_path: Path) -> None:
    config_file = tmp_path / "logging_settings.conf"
    config_file.write_text(
        """
terminal = verbose
sessions = debug
not a setting
file = ERROR
"""
    )

    settings = parse_logging_settings(config_file)

    assert settings.terminal_level == 20  # unknown level falls back to INFO
    assert settings.file_level == 40


def test_parse_logging_settings_invalid_retention(tmp_path: Path) -> None:
    config_file = tmp_path / "logging_settings.conf"
    config_file.write_text("retention_hours = invalid\n")

    assert parse_logging_settings(config_file).retention_hours == 48


def test_parse_logging_settings_negative_retention(tmp_path: Path) -> None:
    config_file = tmp_path / "logging_settings.conf"
    config_file.write_text("retention_hours = -10\n")

    assert parse_logging_settings(config_file).retention_hours == 0


def test_parse_logging_settings_off_level(tmp_path: Path) -> None:
    config_file = tmp_path / "logging_settings.conf"
    config_file.write_text(
        """
terminal = off
file = info
"""
    )

    settings = parse_logging_settings(config_file)

    assert settings.terminal_level is None
    assert settings.file_level == 20
