"""OAuth token models."""

from datetime import datetime, timedelta, timezone
from enum import Enum

from pydantic import BaseModel, Field


class TokenStatus(str, Enum):
    """State of the configured OAuth token."""

    VALID = "valid"
    EXPIRED = "expired"
    MISSING = "missing"
    INVALID = "invalid"


class OAuthToken(BaseModel):
    """OAuth2 token as held in memory by the server.

    Attributes:
        access_token: Bearer token sent to Google APIs.
        refresh_token: Long-lived token used to obtain new access tokens.
        expires_at: Expiry of the access token (timezone-aware).
        scopes: Granted OAuth scopes.
        token_type: Token type, always "Bearer" for Google.
    """

    access_token: str
    refresh_token: str | None = None
    expires_at: datetime
    scopes: list[str] = Field(default_factory=list)
    token_type: str = "Bearer"

    def is_expired(self, buffer_seconds: int = 60) -> bool:
        """Check whether the access token is expired or about to expire.

        Args:
            buffer_seconds: Treat the token as expired this many seconds early.

        Returns:
            True if the token should be refreshed before use.
        """
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return datetime.now(timezone.utc) + timedelta(seconds=buffer_seconds) >= expires_at

    @property
    def expiry_millis(self) -> int:
        """Expiry as epoch milliseconds, the format of GOOGLE_EXPIRY_DATE."""
        return int(self.expires_at.timestamp() * 1000)
