# src/deploy_scale/config/settings.py
from typing import Dict, List, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache

from deploy_scale.regions import DEFAULT_REGION_TABLE


class Settings(BaseSettings):
    """
    Single source of truth for the scale command settings.

    Configuration precedence:
    1. Environment variables prefixed with SCALE_ (highest priority)
    2. .env file (if exists)
    3. Default values in this class (lowest priority)

    Command line flags and the on-disk CLI config are layered on top of these
    by the CLI (see deploy_scale.config.files).

    Usage:
        from deploy_scale.config.settings import get_settings
        settings = get_settings()
        api_url = settings.api_url
    """

    # Control plane
    api_url: str = Field(
        default="https://api.zeit.co",
        description="Base URL of the platform API"
    )

    token: Optional[str] = Field(
        default=None,
        description="Login token (overrides the one stored in the global config)"
    )

    team: Optional[str] = Field(
        default=None,
        description="Team scope used for every request"
    )

    # Transport
    request_timeout: float = Field(
        default=30.0,
        gt=0,
        description="HTTP request timeout in seconds"
    )

    max_retries: int = Field(
        default=3,
        ge=1,
        description="Attempts for idempotent (GET) requests"
    )

    # Post-update verification
    verify_timeout: float = Field(
        default=120.0,
        gt=0,
        description="Seconds to wait for instance counts to meet the new rules"
    )

    verify_interval: float = Field(
        default=2.0,
        gt=0,
        description="Seconds between instance count checks"
    )

    # Region table: region code -> DC identifiers
    regions: Dict[str, List[str]] = Field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_REGION_TABLE.items()},
        description="Known regions and the DCs they host"
    )

    # CLI config locations
    global_config_dir: str = Field(
        default="~/.now",
        description="Directory holding auth.json and config.json"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

    @field_validator("api_url")
    @classmethod
    def strip_trailing_slash(cls, v):
        """Paths are appended to the base URL, so drop any trailing slash."""
        return v.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level is one of the logging module names."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        level = v.upper()
        if level not in valid_levels:
            raise ValueError(f"Invalid log_level: {v}. Must be one of {valid_levels}")
        return level

    @field_validator("regions")
    @classmethod
    def validate_regions(cls, v):
        """The region table must name at least one region."""
        if not v:
            raise ValueError("At least one region must be configured")
        return v

    model_config = SettingsConfigDict(
        env_prefix="SCALE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    This ensures we only create one Settings instance per process.
    """
    return Settings()
