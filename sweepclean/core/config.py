"""Centralized configuration management using Pydantic Settings."""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


DEFAULT_TIMEZONE = "America/Los_Angeles"


def check_timezone(name: str) -> str:
    """Ensure name is a known IANA timezone identifier.

    Args:
        name: Timezone name such as "America/Los_Angeles"

    Returns:
        The name unchanged

    Raises:
        ValueError: If the timezone is unknown
    """
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown timezone: {name}") from e
    return name


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="SweepClean", description="Application name")
    app_env: Environment = Field(default=Environment.DEVELOPMENT, description="Environment")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    log_to_file: bool = Field(default=False, description="Also write logs to logs_dir")
    log_dir: str = Field(default="./logs", description="Directory for log files")

    # Dates
    timezone: str = Field(
        default=DEFAULT_TIMEZONE, description="Reference IANA timezone for date formatting"
    )

    # Deduplication
    enable_fuzzy_duplicate_detection: bool = Field(
        default=False, description="Drop rows whose title signature repeats"
    )
    enable_exact_url_duplicate_detection: bool = Field(
        default=True, description="Drop rows whose canonical URL repeats"
    )

    # Live URL validation
    enable_live_url_validation: bool = Field(
        default=False, description="Check URL reachability over HTTP"
    )
    max_live_checks: int = Field(default=50, ge=0, description="Max distinct URLs checked per run")
    url_check_timeout_ms: int = Field(default=10000, ge=1, description="Per-URL timeout in ms")
    url_check_concurrency: int = Field(default=10, ge=1, description="Max concurrent URL checks")

    # CSV columns
    title_column: str = Field(default="Scrub_Title", description="Title column name")
    url_column: str = Field(default="Entry_Link", description="Entry URL column name")
    end_date_column: str = Field(default="End_Date", description="End date column name")

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Ensure timezone is a known IANA identifier."""
        return check_timezone(v)

    @property
    def logs_dir(self) -> Path:
        """Get logs directory path."""
        path = Path(self.log_dir)
        path.mkdir(parents=True, exist_ok=True)
        return path


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
