"""OAuth authentication for the Calendar and Tasks APIs.

Quick Start:
    ```python
    from calendar_tasks_mcp.auth import OAuthManager

    manager = OAuthManager()  # reads GOOGLE_* settings
    access_token = await manager.get_access_token()
    ```
"""

from calendar_tasks_mcp.auth.models import OAuthToken, TokenStatus
from calendar_tasks_mcp.auth.oauth_manager import (
    GOOGLE_SCOPES,
    AuthenticationError,
    OAuthManager,
    token_to_env_lines,
)

__all__ = [
    "OAuthManager",
    "OAuthToken",
    "TokenStatus",
    "AuthenticationError",
    "GOOGLE_SCOPES",
    "token_to_env_lines",
]
