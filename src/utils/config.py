"""
Application configuration from environment variables.

Covers where the lesson store and exports live, logging, and the
default AppSettings used before the user saves their own. Values may
also come from a .env file in the working directory.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from src.models.lesson import TeachingMethod
from src.models.settings import AppSettings


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_number(name: str, default: str, cast=float):
    """Read a numeric variable; unparsable values are kept as None for validate()."""
    raw = os.getenv(name, default)
    try:
        return cast(raw)
    except ValueError:
        return None


class Config:
    """
    Application configuration manager.

    Loads configuration from environment variables (and a .env file if
    present) and provides validated access to the values.

    Attributes:
        data_file: JSON file holding lessons and settings
        output_dir: Directory for exports and backups
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path
        default_hourly_rate: Hourly rate used until the user changes it
        default_tax_rate: Tax percentage used until the user changes it
        default_teaching_method: online or offline
        enable_notifications: Whether reminders are on by default
        notification_minutes: Reminder lead time in minutes

    Examples:
        >>> config = Config()
        >>> if config.validate():
        ...     settings = config.default_settings()
    """

    def __init__(self):
        load_dotenv()

        # Storage settings
        self._data_file = Path(os.getenv("EASYTIME_DATA_FILE", "data/easytime.json"))
        self._output_dir = Path(os.getenv("OUTPUT_DIR", "output"))

        # Logging settings
        self._log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        self._log_file = os.getenv("LOG_FILE") or None

        # Defaults for AppSettings
        self._hourly_rate = _env_number("EASYTIME_HOURLY_RATE", "55")
        self._tax_rate = _env_number("EASYTIME_TAX_RATE", "10")
        self._teaching_method = os.getenv("EASYTIME_TEACHING_METHOD", "online").strip().lower()
        self._enable_notifications = _env_bool("EASYTIME_NOTIFICATIONS", "true")
        self._notification_minutes = _env_number("EASYTIME_NOTIFICATION_MINUTES", "30", int)

    @property
    def data_file(self) -> Path:
        """Get lesson store file path."""
        return self._data_file

    @property
    def output_dir(self) -> Path:
        """Get output directory path."""
        return self._output_dir

    @property
    def log_level(self) -> str:
        """Get logging level."""
        return self._log_level

    @property
    def log_file(self) -> Optional[str]:
        """Get log file path, if file logging is enabled."""
        return self._log_file

    @property
    def default_hourly_rate(self) -> Optional[float]:
        return self._hourly_rate

    @property
    def default_tax_rate(self) -> Optional[float]:
        return self._tax_rate

    @property
    def default_teaching_method(self) -> str:
        return self._teaching_method

    @property
    def enable_notifications(self) -> bool:
        return self._enable_notifications

    @property
    def notification_minutes(self) -> Optional[int]:
        return self._notification_minutes

    def default_settings(self) -> AppSettings:
        """
        Build the AppSettings used when nothing has been stored yet.

        Raises:
            ValueError: If the configured defaults are invalid
        """
        self.validate()
        return AppSettings(
            hourly_rate=float(self._hourly_rate),
            tax_rate=float(self._tax_rate),
            default_teaching_method=TeachingMethod(self._teaching_method),
            enable_notifications=self._enable_notifications,
            notification_minutes=int(self._notification_minutes)
        )

    def validate(self) -> bool:
        """
        Validate configuration values.

        Returns:
            True if all configuration is valid

        Raises:
            ValueError: If validation fails
        """
        errors = []

        if self._hourly_rate is None or self._hourly_rate <= 0:
            errors.append("EASYTIME_HOURLY_RATE must be a positive number")

        if self._tax_rate is None or not 0 <= self._tax_rate <= 100:
            errors.append("EASYTIME_TAX_RATE must be a number between 0 and 100")

        valid_methods = [method.value for method in TeachingMethod]
        if self._teaching_method not in valid_methods:
            errors.append(
                f"EASYTIME_TEACHING_METHOD must be one of: {', '.join(valid_methods)}"
            )

        if self._notification_minutes is None or self._notification_minutes < 0:
            errors.append("EASYTIME_NOTIFICATION_MINUTES must be a non-negative integer")

        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self._log_level not in valid_levels:
            errors.append(
                f"LOG_LEVEL must be one of: {', '.join(valid_levels)}"
            )

        if errors:
            error_msg = "Configuration validation failed:\n  - " + "\n  - ".join(errors)
            raise ValueError(error_msg)

        return True

    def create_output_directories(self):
        """Create data and output directories if they don't exist."""
        directories = [
            self.data_file.parent,
            self.output_dir / "exports",
            self.output_dir / "backups",
        ]

        for directory in directories:
            directory.mkdir(parents=True, exist_ok=True)


# Singleton instance
config = Config()
