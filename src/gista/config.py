"""Configuration loading for Gista."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from gista.utils.logging import resolve_level

DEFAULT_API_BASE_URL = "https://us-central1-dof-ai.cloudfunctions.net/api"

# Identifier of the storage area shared by the share process and the main app
APP_GROUP_ID = "group.Voqa.io.Gista"
SHARE_QUEUE_KEY = "ShareQueue"
SHARED_FILES_DIRECTORY = "SharedFiles"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_prefix="GISTA_")

    # Backend settings
    api_base_url: str = Field(
        default=DEFAULT_API_BASE_URL, description="Base URL of the Gista backend API"
    )
    api_token: str | None = Field(default=None, description="Bearer token for the backend")

    # Request executor settings
    request_timeout: float = Field(default=30.0, description="Per-request timeout in seconds")
    max_retry_attempts: int = Field(
        default=2, description="Additional attempts after a retryable failure"
    )
    retry_delay: float = Field(default=1.0, description="Fixed delay between attempts in seconds")

    # Share hand-off settings
    app_group_dir: Path = Field(
        default=Path.home() / ".gista" / APP_GROUP_ID,
        description="Directory shared by the share process and the main app",
    )

    # Application settings
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("api_base_url")
    @classmethod
    def validate_api_base_url(cls, v: str) -> str:
        """Validate the backend URL is an absolute http(s) URL."""
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError(
                f"GISTA_API_BASE_URL '{v}' must start with http:// or https://."
            )
        return v.rstrip("/")

    @field_validator("request_timeout")
    @classmethod
    def validate_request_timeout(cls, v: float) -> float:
        """Validate the timeout is positive."""
        if v <= 0:
            raise ValueError("GISTA_REQUEST_TIMEOUT must be greater than zero.")
        return v

    @field_validator("max_retry_attempts")
    @classmethod
    def validate_max_retry_attempts(cls, v: int) -> int:
        """Validate the retry count is not negative."""
        if v < 0:
            raise ValueError("GISTA_MAX_RETRY_ATTEMPTS cannot be negative.")
        return v

    @field_validator("retry_delay")
    @classmethod
    def validate_retry_delay(cls, v: float) -> float:
        """Validate the retry delay is not negative."""
        if v < 0:
            raise ValueError("GISTA_RETRY_DELAY cannot be negative.")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate the log level is a standard level name."""
        resolve_level(v)
        return v.strip().upper()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
