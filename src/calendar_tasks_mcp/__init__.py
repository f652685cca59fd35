"""Calendar and task management tools for MCP clients.

Exposes Google Calendar events and Google Tasks as MCP tools over stdio.
"""

from calendar_tasks_mcp.__version__ import __version__

__all__ = ["__version__"]
