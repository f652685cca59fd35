"""OAuth manager for the Google Calendar and Tasks APIs.

The server never stores tokens itself: the access token, refresh token
and expiry are read from the environment at startup (see
``calendar_tasks_mcp.config``) and refreshed in memory when they expire.

Obtaining the initial tokens is a separate, interactive step performed by
``calendar-tasks-mcp setup``, which runs the consent flow through
google-auth-oauthlib and prints the values to put in ``.env``.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from calendar_tasks_mcp.auth.models import OAuthToken, TokenStatus
from calendar_tasks_mcp.config import Settings, get_settings
from calendar_tasks_mcp.errors import RemoteError

logger = logging.getLogger(__name__)

# Calendar and Tasks read/write scopes
GOOGLE_SCOPES = [
    "https://www.googleapis.com/auth/calendar",
    "https://www.googleapis.com/auth/tasks",
]

GOOGLE_AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"  # nosec B105 - public endpoint
DEFAULT_OAUTH_HOST = "127.0.0.1"


class AuthenticationError(RemoteError):
    """No usable OAuth token is available."""


class OAuthManager:
    """Holds the OAuth token for the lifetime of the server process.

    Attributes:
        settings: Settings the token and client credentials come from.

    Example:
        ```python
        manager = OAuthManager()
        if manager.get_status() == TokenStatus.MISSING:
            raise SystemExit("run `calendar-tasks-mcp setup` first")
        access_token = await manager.get_access_token()
        ```
    """

    def __init__(self, settings: Settings | None = None) -> None:
        """Initialize OAuth manager.

        Args:
            settings: Configuration to read tokens from. Uses the process
                settings if not provided.
        """
        self.settings = settings or get_settings()
        self._token = self._token_from_settings()

    @property
    def token(self) -> OAuthToken | None:
        """Current in-memory token, None if none is configured."""
        return self._token

    def _token_from_settings(self) -> OAuthToken | None:
        """Build the initial token from GOOGLE_* settings."""
        settings = self.settings
        if not settings.google_access_token and not settings.google_refresh_token:
            return None

        if settings.google_expiry_date is not None:
            expires_at = datetime.fromtimestamp(settings.google_expiry_date / 1000, tz=timezone.utc)
        elif settings.google_access_token:
            # Unknown expiry: trust the access token for the usual hour
            expires_at = datetime.now(timezone.utc) + timedelta(hours=1)
        else:
            expires_at = datetime.now(timezone.utc)

        return OAuthToken(
            access_token=settings.google_access_token,
            refresh_token=settings.google_refresh_token or None,
            expires_at=expires_at,
            scopes=GOOGLE_SCOPES,
        )

    def _can_refresh(self) -> bool:
        return bool(
            self._token is not None
            and self._token.refresh_token
            and self.settings.google_client_id
            and self.settings.google_client_secret
        )

    def get_status(self) -> TokenStatus:
        """Get the status of the configured token.

        Returns:
            VALID if usable as is, EXPIRED if it must be refreshed first,
            INVALID if it is expired and cannot be refreshed, MISSING if no
            token is configured at all.
        """
        if self._token is None:
            return TokenStatus.MISSING

        if self._token.is_expired() or not self._token.access_token:
            return TokenStatus.EXPIRED if self._can_refresh() else TokenStatus.INVALID

        return TokenStatus.VALID

    def _credentials_to_token(self, credentials: Credentials, scopes: list[str]) -> OAuthToken:
        """Convert google-auth Credentials to OAuthToken.

        Args:
            credentials: Google OAuth2 credentials.
            scopes: List of granted scopes.

        Returns:
            OAuthToken with all credential data.
        """
        if credentials.expiry:
            expires_at = credentials.expiry
            # google-auth reports naive UTC datetimes
            if expires_at.tzinfo is None:
                expires_at = expires_at.replace(tzinfo=timezone.utc)
        else:
            expires_at = datetime.now(timezone.utc) + timedelta(hours=1)

        return OAuthToken(  # nosec B106 - "Bearer" is OAuth token type, not a password
            access_token=credentials.token,
            refresh_token=credentials.refresh_token,
            expires_at=expires_at,
            scopes=scopes,
            token_type="Bearer",
        )

    def _token_to_credentials(self, token: OAuthToken) -> Credentials:
        """Convert OAuthToken to google-auth Credentials."""
        return Credentials(
            token=token.access_token or None,
            refresh_token=token.refresh_token,
            token_uri=GOOGLE_TOKEN_URI,
            client_id=self.settings.google_client_id or None,
            client_secret=self.settings.google_client_secret or None,
            scopes=token.scopes,
        )

    async def refresh(self) -> OAuthToken:
        """Exchange the refresh token for a new access token.

        The new token replaces the in-memory one; nothing is written to disk.

        Returns:
            The refreshed token.

        Raises:
            AuthenticationError: If no refresh is possible or Google rejects it.
        """
        if self._token is None or not self._can_refresh():
            raise AuthenticationError(
                "OAuth token expired and cannot be refreshed. "
                "Set GOOGLE_REFRESH_TOKEN, GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET "
                "or run: calendar-tasks-mcp setup"
            )

        credentials = self._token_to_credentials(self._token)

        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, credentials.refresh, Request())
        except RefreshError as e:
            raise AuthenticationError(f"Token refresh failed: {e}", cause=e) from e

        self._token = self._credentials_to_token(credentials, self._token.scopes)
        logger.info(f"Access token refreshed, expires at {self._token.expires_at.isoformat()}")
        return self._token

    async def get_access_token(self) -> str:
        """Get a valid access token, refreshing if necessary.

        Returns:
            Valid access token string.

        Raises:
            AuthenticationError: If no token is configured or refresh fails.
        """
        status = self.get_status()

        if status == TokenStatus.MISSING:
            raise AuthenticationError(
                "No OAuth token configured. Set GOOGLE_ACCESS_TOKEN / GOOGLE_REFRESH_TOKEN "
                "or run: calendar-tasks-mcp setup"
            )

        if status in (TokenStatus.EXPIRED, TokenStatus.INVALID):
            logger.info("Token expired, attempting refresh...")
            token = await self.refresh()
            return token.access_token

        assert self._token is not None
        return self._token.access_token

    async def authenticate(
        self,
        client_id: str,
        client_secret: str,
        scopes: list[str] | None = None,
        open_browser: bool = True,
    ) -> OAuthToken:
        """Run the interactive consent flow and return the issued token.

        Starts a local callback server on GOOGLE_OAUTH_REDIRECT_PORT and
        opens the browser at Google's consent page.

        Args:
            client_id: Google OAuth client ID.
            client_secret: Google OAuth client secret.
            scopes: OAuth scopes to request. Uses GOOGLE_SCOPES if not specified.
            open_browser: Open the consent page automatically.

        Returns:
            OAuthToken containing access and refresh tokens.

        Raises:
            ValueError: If client ID/secret not provided.
        """
        if scopes is None:
            scopes = GOOGLE_SCOPES

        if not client_id or not client_secret:
            raise ValueError(
                "Client ID and secret required. "
                "Pass as arguments or set GOOGLE_CLIENT_ID and "
                "GOOGLE_CLIENT_SECRET environment variables."
            )

        client_config = {
            "installed": {
                "client_id": client_id,
                "client_secret": client_secret,
                "auth_uri": GOOGLE_AUTH_URI,
                "token_uri": GOOGLE_TOKEN_URI,
                "redirect_uris": [f"http://{DEFAULT_OAUTH_HOST}"],
            }
        }

        # The flow blocks on the local callback server
        loop = asyncio.get_running_loop()
        credentials = await loop.run_in_executor(
            None, self._run_oauth_flow, client_config, scopes, open_browser
        )

        self._token = self._credentials_to_token(credentials, scopes)
        return self._token

    def _run_oauth_flow(
        self, client_config: dict, scopes: list[str], open_browser: bool
    ) -> Credentials:
        """Run the consent flow (blocking operation)."""
        flow = InstalledAppFlow.from_client_config(client_config, scopes=scopes)
        return flow.run_local_server(
            host=DEFAULT_OAUTH_HOST,
            port=self.settings.google_oauth_redirect_port,
            open_browser=open_browser,
            access_type="offline",
            prompt="consent",
        )


def token_to_env_lines(token: OAuthToken, client_id: str, client_secret: str) -> list[str]:
    """Render a token as ``.env`` assignments understood by Settings.

    Args:
        token: Token issued by the consent flow.
        client_id: OAuth client ID the token was issued to.
        client_secret: OAuth client secret.

    Returns:
        One ``NAME=value`` line per setting.
    """
    return [
        f"GOOGLE_CLIENT_ID={client_id}",
        f"GOOGLE_CLIENT_SECRET={client_secret}",
        f"GOOGLE_ACCESS_TOKEN={token.access_token}",
        f"GOOGLE_REFRESH_TOKEN={token.refresh_token or ''}",
        f"GOOGLE_EXPIRY_DATE={token.expiry_millis}",
    ]
