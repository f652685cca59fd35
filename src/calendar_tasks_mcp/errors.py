"""Error taxonomy shared by the tool handlers.

Every failure a tool call can hit is expressed as a ``ToolError`` tagged
with an ``ErrorKind``:

- ``VALIDATION``: a malformed or missing argument, detected before or
  while parsing inputs. The remote service is never contacted.
- ``REMOTE``: the calendar/task service (or the network) rejected the
  request.
- ``INTERNAL``: anything else.

``format_error`` turns any exception into the single line of text that is
returned to the caller.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Category of a tool failure."""

    VALIDATION = "validation"
    REMOTE = "remote"
    INTERNAL = "internal"


class ToolError(Exception):
    """A classified failure raised while serving a tool call.

    Attributes:
        kind: Error category.
        message: Human-readable description.
        cause: Underlying exception, if any.
    """

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.INTERNAL,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.cause = cause


class ValidationError(ToolError):
    """Invalid tool arguments."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message, kind=ErrorKind.VALIDATION, cause=cause)


class RemoteError(ToolError):
    """Failure reported by the remote calendar/task service.

    Attributes:
        status_code: HTTP status returned by the service, None for
            transport-level failures.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, kind=ErrorKind.REMOTE, cause=cause)
        self.status_code = status_code


def classify(error: BaseException) -> ToolError:
    """Wrap an arbitrary exception as a ToolError."""
    if isinstance(error, ToolError):
        return error
    return ToolError(str(error) or type(error).__name__, cause=error)


def format_error(action: str, error: BaseException) -> str:
    """Format a failure as ``Error <action>: <message>``.

    Args:
        action: Gerund phrase naming what failed, e.g. "deleting event".
        error: The exception raised by the handler or adapter.

    Returns:
        Text shown to the caller.
    """
    return f"Error {action}: {classify(error).message}"
