"""
Unit tests for configuration and logging setup.
"""

import logging
from pathlib import Path

import pytest

from src.models.lesson import TeachingMethod
from src.models.settings import AppSettings
from src.utils.config import Config
from src.utils.logger import resolve_level, setup_logger


@pytest.fixture
def clean_env(monkeypatch):
    """Set every variable explicitly so a local .env file cannot leak in."""
    monkeypatch.setenv("EASYTIME_DATA_FILE", "data/easytime.json")
    monkeypatch.setenv("OUTPUT_DIR", "output")
    monkeypatch.setenv("LOG_LEVEL", "INFO")
    monkeypatch.setenv("LOG_FILE", "")
    monkeypatch.setenv("EASYTIME_HOURLY_RATE", "55")
    monkeypatch.setenv("EASYTIME_TAX_RATE", "10")
    monkeypatch.setenv("EASYTIME_TEACHING_METHOD", "online")
    monkeypatch.setenv("EASYTIME_NOTIFICATIONS", "true")
    monkeypatch.setenv("EASYTIME_NOTIFICATION_MINUTES", "30")
    return monkeypatch


class TestConfig:
    """Test cases for Config."""

    def test_defaults(self, clean_env):
        config = Config()

        assert config.validate()
        assert config.data_file == Path("data/easytime.json")
        assert config.log_file is None
        assert config.default_settings() == AppSettings()

    def test_overrides(self, clean_env):
        clean_env.setenv("EASYTIME_HOURLY_RATE", "80.5")
        clean_env.setenv("EASYTIME_TAX_RATE", "0")
        clean_env.setenv("EASYTIME_TEACHING_METHOD", "Offline")
        clean_env.setenv("EASYTIME_NOTIFICATIONS", "no")
        clean_env.setenv("LOG_LEVEL", "debug")

        config = Config()
        settings = config.default_settings()

        assert settings.hourly_rate == 80.5
        assert settings.tax_rate == 0
        assert settings.default_teaching_method == TeachingMethod.OFFLINE
        assert not settings.enable_notifications
        assert config.log_level == "DEBUG"

    def test_all_errors_reported(self, clean_env):
        clean_env.setenv("EASYTIME_HOURLY_RATE", "abc")
        clean_env.setenv("EASYTIME_TAX_RATE", "120")
        clean_env.setenv("EASYTIME_TEACHING_METHOD", "phone")
        clean_env.setenv("LOG_LEVEL", "LOUD")

        with pytest.raises(ValueError) as exc_info:
            Config().validate()

        message = str(exc_info.value)
        assert message.startswith("Configuration validation failed:")
        assert "EASYTIME_HOURLY_RATE" in message
        assert "EASYTIME_TAX_RATE" in message
        assert "EASYTIME_TEACHING_METHOD" in message
        assert "LOG_LEVEL" in message

    def test_default_settings_validates(self, clean_env):
        clean_env.setenv("EASYTIME_NOTIFICATION_MINUTES", "-5")

        with pytest.raises(ValueError):
            Config().default_settings()

    def test_create_output_directories(self, clean_env, tmp_path):
        clean_env.setenv("EASYTIME_DATA_FILE", str(tmp_path / "data" / "easytime.json"))
        clean_env.setenv("OUTPUT_DIR", str(tmp_path / "output"))

        Config().create_output_directories()

        assert (tmp_path / "data").is_dir()
        assert (tmp_path / "output" / "exports").is_dir()
        assert (tmp_path / "output" / "backups").is_dir()


class TestSettings:
    """Test cases for AppSettings."""

    def test_problems(self):
        settings = AppSettings(hourly_rate=0, tax_rate=101, notification_minutes=-1)

        assert len(settings.problems()) == 3
        assert AppSettings().problems() == []

    @pytest.mark.parametrize("changes", [
        {"tax_rate": "15"},
        {"hourly_rate": None},
        {"notification_minutes": "30"},
        {"enable_notifications": "yes"},
        {"tax_rate": float("nan")},
    ])
    def test_problems_reject_wrong_types(self, changes):
        settings = AppSettings().with_changes(**changes)

        assert len(settings.problems()) == 1

    def test_from_dict_ignores_unknown_keys(self):
        settings = AppSettings.from_dict({"tax_rate": 20, "theme": "dark"})

        assert settings.tax_rate == 20
        assert settings.hourly_rate == 55.0

    def test_dict_round_trip(self):
        settings = AppSettings(default_teaching_method=TeachingMethod.OFFLINE)

        data = settings.to_dict()

        assert data["default_teaching_method"] == "offline"
        assert AppSettings.from_dict(data) == settings


class TestLogger:
    """Test cases for logger setup."""

    def test_resolve_level(self):
        assert resolve_level("debug") == logging.DEBUG
        assert resolve_level(logging.WARNING) == logging.WARNING
        with pytest.raises(ValueError):
            resolve_level("LOUD")

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "easytime.log"
        logger = setup_logger("easytime_test_file", level="DEBUG", log_file=str(log_file))

        logger.debug("hello")
        for handler in logger.handlers:
            handler.flush()

        assert logger.level == logging.DEBUG
        assert "hello" in log_file.read_text(encoding="utf-8")

        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)

    def test_no_duplicate_handlers(self):
        first = setup_logger("easytime_test_dup")
        second = setup_logger("easytime_test_dup")

        assert first is second
        assert len(second.handlers) == 1

        for handler in list(second.handlers):
            second.removeHandler(handler)
