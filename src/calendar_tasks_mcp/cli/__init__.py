"""Command-line interface for calendar-tasks-mcp."""
