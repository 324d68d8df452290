"""Error taxonomy for svn-mirror.

Every failure that crosses a component boundary is a ``MirrorError``
tagged with an ``ErrorKind``:

- ``ToolUnavailable``   -- the ``svn`` executable cannot be invoked.
- ``ExternalToolError`` -- ``svn`` exited non-zero, crashed, or timed out.
- ``PathNotFoundError`` -- a requested path is missing from the source copy.
- ``SyncError``         -- the only error a ``Reconciler`` caller observes;
  it carries the kind of the failure it wraps.

Callers branch on ``error.kind`` rather than on the concrete class.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Closed set of failure categories."""

    TOOL_UNAVAILABLE = "tool_unavailable"
    EXTERNAL_TOOL = "external_tool"
    PATH_NOT_FOUND = "path_not_found"
    UNKNOWN = "unknown"


UNKNOWN_ERROR_MESSAGE = "unknown error"


class MirrorError(Exception):
    """Base class for all svn-mirror errors."""

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ToolUnavailable(MirrorError):
    """The external version-control executable is not invocable."""

    kind = ErrorKind.TOOL_UNAVAILABLE

    def __init__(self, executable: str, reason: str | None = None) -> None:
        message = f"{executable} is not installed or not on PATH"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.executable = executable


class ExternalToolError(MirrorError):
    """The external executable failed.

    Attributes:
        code: Process exit status, ``-1`` for a timeout, ``1`` when the
            process could not be started.
    """

    kind = ErrorKind.EXTERNAL_TOOL

    def __init__(self, message: str, code: int = 1) -> None:
        super().__init__(message)
        self.code = code


class PathNotFoundError(MirrorError):
    """A requested relative path does not exist under the source root."""

    kind = ErrorKind.PATH_NOT_FOUND

    def __init__(self, path: str) -> None:
        super().__init__(f"Source path does not exist: {path}")
        self.path = path


class SyncError(MirrorError):
    """Top-level reconciliation failure.

    Args:
        message: Description of the underlying failure.
        kind: Kind of the wrapped failure.
    """

    def __init__(
        self, message: str, kind: ErrorKind = ErrorKind.UNKNOWN
    ) -> None:
        super().__init__(message or UNKNOWN_ERROR_MESSAGE)
        self.kind = kind

    @classmethod
    def wrap(cls, exc: BaseException) -> SyncError:
        """Normalize any exception into a ``SyncError``.

        ``SyncError`` instances are returned unchanged.  Other
        ``MirrorError`` subclasses keep their kind; anything else becomes
        ``ErrorKind.UNKNOWN``.  An empty message becomes ``"unknown error"``.
        """
        match exc:
            case SyncError():
                return exc
            case MirrorError(kind=kind, message=message):
                return cls(message, kind)
            case _:
                return cls(str(exc), ErrorKind.UNKNOWN)
