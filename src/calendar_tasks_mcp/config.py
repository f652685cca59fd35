"""Process-wide settings loaded from environment variables.

Environment Variables:
    GOOGLE_CLIENT_ID: Google OAuth client ID
    GOOGLE_CLIENT_SECRET: Google OAuth client secret
    GOOGLE_ACCESS_TOKEN: OAuth access token
    GOOGLE_REFRESH_TOKEN: OAuth refresh token
    GOOGLE_EXPIRY_DATE: Access token expiry in epoch milliseconds
    GOOGLE_OAUTH_REDIRECT_PORT: Local port for the setup consent flow (default: 8789)
    CALENDAR_ID: Calendar used by the event tools (default: primary)
    TIMEZONE: IANA zone for naive dates and wall-clock times (default: host zone)
    LOG_LEVEL: Logging level (default: INFO)

Values may also be placed in a ``.env`` file in the working directory.
"""

import os
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_file() -> str | None:
    if os.getenv("PYTEST_CURRENT_TEST"):
        return None
    return ".env"


class Settings(BaseSettings):
    """Server configuration. All values come from environment variables."""

    model_config = SettingsConfigDict(
        env_file=_env_file(),
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
    )

    # OAuth client
    google_client_id: str = Field(default="")
    google_client_secret: str = Field(default="")
    google_oauth_redirect_port: int = Field(default=8789)

    # OAuth tokens (produced by `calendar-tasks-mcp setup`)
    google_access_token: str = Field(default="")
    google_refresh_token: str = Field(default="")
    google_expiry_date: int | None = Field(default=None)

    # Tools
    calendar_id: str = Field(default="primary")
    timezone: str | None = Field(default=None)

    # Logging
    log_level: str = Field(default="INFO")


@lru_cache
def get_settings() -> Settings:
    """Return the cached process-wide settings."""
    return Settings()
