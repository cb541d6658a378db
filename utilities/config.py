"""
Configuration management using environment variables.
Handles all map version monitor settings with proper validation and defaults.
"""

from pathlib import Path
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class MapVersionConfig(BaseSettings):
    """
    Configuration class for the map version monitor.
    Uses pydantic BaseSettings for environment variable management.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra fields from .env
    )

    # MongoDB Configuration
    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_database: str = "map_version_monitor"
    versions_collection: str = "map_versions"
    changes_collection: str = "map_version_changes"

    # Source page
    web_page_url: str = "https://www.tomtom.com/en_gb/maps/latest-map-version/"
    request_timeout: float = 5.0

    # Email notifications
    resend_api_key: str = ""
    resend_api_url: str = "https://api.resend.com/emails"
    notify_email: str = ""
    email_sender: str = "TomTom Map version checker <noreply@akselinurmio.fi>"

    # Scheduler Configuration
    schedule_hour: int = 12
    schedule_minute: int = 0
    timezone: str = "UTC"

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 8000

    # Logging Configuration
    log_level: str = "INFO"
    log_format: str = "json"
    log_file: Optional[str] = None

    # Development/Testing
    debug: bool = False

    @field_validator("request_timeout")
    @classmethod
    def validate_timeout(cls, v):
        """Ensure timeout is reasonable."""
        if v < 1 or v > 60:
            raise ValueError("request_timeout must be between 1 and 60 seconds")
        return v

    @field_validator("schedule_hour")
    @classmethod
    def validate_schedule_hour(cls, v):
        if v < 0 or v > 23:
            raise ValueError("schedule_hour must be between 0 and 23")
        return v

    @field_validator("schedule_minute")
    @classmethod
    def validate_schedule_minute(cls, v):
        if v < 0 or v > 59:
            raise ValueError("schedule_minute must be between 0 and 59")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Ensure log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        """Ensure log format is valid."""
        valid_formats = ["json", "console"]
        if v.lower() not in valid_formats:
            raise ValueError(f"log_format must be one of: {valid_formats}")
        return v.lower()

    def get_log_file_path(self) -> Optional[Path]:
        """Get log file path as Path object."""
        if self.log_file:
            return Path(self.log_file)
        return None

    def get_user_agent(self) -> str:
        """Get user agent string for requests."""
        return "MapVersionMonitor/1.0"

    def get_headers(self) -> dict:
        """Get default headers for HTTP requests."""
        return {
            "User-Agent": self.get_user_agent(),
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
        }


def load_config(**overrides) -> MapVersionConfig:
    """Load configuration from the environment, applying explicit overrides."""
    return MapVersionConfig(**overrides)
