"""Command-line interface for calendar-tasks-mcp."""

import asyncio
import sys

import click

from calendar_tasks_mcp.__version__ import __version__


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """Calendar & Tasks MCP Server - Connect Claude to Google Calendar and Tasks.

    This tool provides 12 tools across:
    - Calendar (list, create and delete events)
    - Tasks (task lists, tasks, completion, reordering)
    """
    pass


@main.command()
@click.option("--client-id", envvar="GOOGLE_CLIENT_ID", help="Google OAuth client ID")
@click.option("--client-secret", envvar="GOOGLE_CLIENT_SECRET", help="Google OAuth client secret")
@click.option("--no-browser", is_flag=True, help="Print the consent URL instead of opening it")
def setup(client_id: str | None, client_secret: str | None, no_browser: bool) -> None:
    """Obtain OAuth tokens for Google Calendar and Tasks.

    This will:
    1. Open browser for OAuth2 consent flow
    2. Exchange the authorization code for access and refresh tokens
    3. Print the GOOGLE_* lines to add to your .env file

    Requires:
    - GOOGLE_CLIENT_ID environment variable or --client-id option
    - GOOGLE_CLIENT_SECRET environment variable or --client-secret option
    """
    from calendar_tasks_mcp.auth import OAuthManager, token_to_env_lines

    if not client_id or not client_secret:
        click.echo("❌ Error: OAuth client credentials required")
        click.echo("")
        click.echo("Set environment variables:")
        click.echo("  export GOOGLE_CLIENT_ID='your-client-id'")
        click.echo("  export GOOGLE_CLIENT_SECRET='your-client-secret'")
        click.echo("")
        click.echo("Or pass as options:")
        click.echo("  calendar-tasks-mcp setup --client-id=... --client-secret=...")
        sys.exit(1)

    manager = OAuthManager()

    click.echo("Starting OAuth authentication flow...")
    if no_browser:
        click.echo("Open the URL printed below to grant access...")
    else:
        click.echo("Browser will open for Google consent...")
    click.echo("")

    try:
        token = asyncio.run(
            manager.authenticate(
                client_id=client_id,
                client_secret=client_secret,
                open_browser=not no_browser,
            )
        )
    except Exception as e:
        click.echo(f"❌ Authentication failed: {e}")
        sys.exit(1)

    click.echo("✓ Authentication successful!")
    click.echo("")
    click.echo("Add these lines to your .env file:")
    click.echo("")
    for line in token_to_env_lines(token, client_id, client_secret):
        click.echo(line)
    click.echo("")
    click.echo("Run 'calendar-tasks-mcp doctor' to verify setup.")


@main.command()
def mcp() -> None:
    """Start the MCP server for Claude Desktop integration.

    Starts the stdio MCP server that provides 12 tools:
    - Calendar (4 tools): get-events, create-all-day-event,
      create-timed-event, delete-event
    - Tasks (8 tools): task lists and task management

    OAuth tokens must be configured before starting the server.
    Run 'calendar-tasks-mcp setup' if not already authenticated.
    """
    from calendar_tasks_mcp.auth import OAuthManager, TokenStatus
    from calendar_tasks_mcp.server import main as server_main

    manager = OAuthManager()
    status = manager.get_status()

    if status == TokenStatus.MISSING:
        click.echo("❌ Not authenticated. Run 'calendar-tasks-mcp setup' first.", err=True)
        sys.exit(1)

    if status == TokenStatus.INVALID:
        click.echo(
            "❌ Token expired and cannot be refreshed. "
            "Run 'calendar-tasks-mcp setup' to re-authenticate.",
            err=True,
        )
        sys.exit(1)

    # Start the MCP server (runs indefinitely)
    try:
        click.echo("Starting Calendar & Tasks MCP server...", err=True)
        server_main()
    except KeyboardInterrupt:
        click.echo("\nServer stopped.", err=True)
    except Exception as e:
        click.echo(f"❌ Server error: {e}", err=True)
        sys.exit(1)


@main.command()
def doctor() -> None:
    """Check installation and authentication status.

    Verifies:
    1. Python dependencies installed
    2. OAuth credentials configured
    3. Token validity
    """
    from calendar_tasks_mcp.auth import OAuthManager, TokenStatus
    from calendar_tasks_mcp.config import get_settings

    click.echo("Calendar & Tasks MCP Status:")
    click.echo("")

    click.echo("Dependencies:")
    try:
        import google.auth  # noqa: F401
        import google_auth_oauthlib  # noqa: F401
        import mcp as mcp_sdk  # noqa: F401

        click.echo("  ✓ google-auth installed")
        click.echo("  ✓ google-auth-oauthlib installed")
        click.echo("  ✓ mcp installed")
    except ImportError as e:
        click.echo(f"  ❌ Missing dependency: {e}")
        sys.exit(1)

    click.echo("")

    settings = get_settings()
    click.echo("Configuration:")
    click.echo(f"  Client ID: {'✓ set' if settings.google_client_id else '❌ missing'}")
    click.echo(f"  Client secret: {'✓ set' if settings.google_client_secret else '❌ missing'}")
    click.echo(f"  Calendar: {settings.calendar_id}")
    click.echo(f"  Timezone: {settings.timezone or 'host local'}")
    click.echo("")

    manager = OAuthManager(settings=settings)
    status = manager.get_status()

    click.echo("Authentication:")
    if status == TokenStatus.MISSING:
        click.echo("  ❌ Not authenticated")
        click.echo("")
        click.echo("Run 'calendar-tasks-mcp setup' to authenticate.")
        sys.exit(1)
    elif status == TokenStatus.INVALID:
        click.echo("  ❌ Token expired and no refresh token or client credentials")
        click.echo("")
        click.echo("Run 'calendar-tasks-mcp setup' to re-authenticate.")
        sys.exit(1)
    elif status == TokenStatus.EXPIRED:
        click.echo("  ⚠️  Token expired (will refresh automatically on use)")
    elif status == TokenStatus.VALID:
        click.echo("  ✓ Authenticated")
        if manager.token:
            click.echo(
                f"  Token expires: {manager.token.expires_at.strftime('%Y-%m-%d %H:%M:%S UTC')}"
            )

    click.echo("")
    click.echo("✓ Ready to use!")


@main.command()
def tools() -> None:
    """List the tools the server exposes."""
    from calendar_tasks_mcp.server import CalendarTasksServer

    server = CalendarTasksServer()
    for tool in server.registry.list_tools():
        required = set(tool.inputSchema.get("required", []))
        params = ", ".join(
            name if name in required else f"{name}?" for name in tool.inputSchema["properties"]
        )
        click.echo(f"{tool.name}({params})")
        click.echo(f"    {tool.description}")


if __name__ == "__main__":
    main()
