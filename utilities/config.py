"""
Configuration management using environment variables.
Handles all monitor settings with proper validation and defaults.
"""

from pathlib import Path
from typing import Optional

from babel import Locale, UnknownLocaleError
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


class MonitorSettings(BaseSettings):
    """
    Configuration class for monitor settings.
    Uses pydantic BaseSettings for environment variable management.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Snapshot Configuration
    data_path: str = Field(default="data/snapshot.json")

    # Notification Configuration
    mail_title: str = Field(default="Entries")
    locale: str = Field(default="en_US")
    timezone: str = Field(default="UTC")
    smtp_string: str = Field(default="smtp://localhost:25")
    from_mail: str = Field(default="monitor@localhost")
    to_mail: str = Field(default="root@localhost")

    # Logging Configuration
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")
    log_file: Optional[str] = Field(default="logs/monitor.log")
    debug: bool = Field(default=False)

    # Scheduler Configuration
    check_interval_minutes: int = Field(default=15)

    # JSON Feed Target
    feed_url: str = Field(default="http://localhost:8000/entries.json")
    feed_key_field: str = Field(default="id")
    feed_keep_last: Optional[int] = Field(default=None)
    request_timeout: int = Field(default=30)

    @field_validator('locale')
    @classmethod
    def validate_locale(cls, v):
        """Ensure locale is known to Babel, accepting BCP 47 separators."""
        normalized = v.replace('-', '_')
        try:
            Locale.parse(normalized)
        except (UnknownLocaleError, ValueError):
            raise ValueError(f'locale is not a known locale: {v}')
        return normalized

    @field_validator('timezone')
    @classmethod
    def validate_timezone(cls, v):
        """Ensure timezone exists."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f'timezone is not a known timezone: {v}')
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        """Ensure log level is valid."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'log_level must be one of: {valid_levels}')
        return v.upper()

    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v):
        """Ensure log format is valid."""
        valid_formats = ['json', 'console']
        if v.lower() not in valid_formats:
            raise ValueError(f'log_format must be one of: {valid_formats}')
        return v.lower()

    @field_validator('check_interval_minutes')
    @classmethod
    def validate_check_interval(cls, v):
        """Ensure check interval is reasonable."""
        if v < 1 or v > 1440:
            raise ValueError('check_interval_minutes must be between 1 and 1440')
        return v

    @field_validator('request_timeout')
    @classmethod
    def validate_timeout(cls, v):
        """Ensure timeout is reasonable."""
        if v < 5 or v > 300:
            raise ValueError('request_timeout must be between 5 and 300 seconds')
        return v

    @field_validator('feed_keep_last')
    @classmethod
    def validate_keep_last(cls, v):
        if v is not None and v < 1:
            raise ValueError('feed_keep_last must be at least 1')
        return v

    def get_log_file_path(self) -> Optional[Path]:
        """Get log file path as Path object."""
        if self.log_file:
            return Path(self.log_file)
        return None

    def get_data_path(self) -> Path:
        """Get snapshot file path as Path object."""
        return Path(self.data_path)

    def get_zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


# Global configuration instance
config = MonitorSettings()
