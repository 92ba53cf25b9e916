"""
Exception hierarchy for the explorer engine.

Every error carries a ``kind`` tag and the path that triggered it, and can be
rendered as a plain dict so a front-end can report failures without knowing
the class hierarchy.
"""

from __future__ import annotations

from typing import Any


class ExplorerError(Exception):
    """Base class for exceptions raised by the explorer engine."""

    kind = "error"

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.message = message
        self.path = path

    def to_dict(self) -> dict[str, Any]:
        """Tagged failure value: error kind, offending path and message."""
        return {"error": self.kind, "path": self.path, "message": self.message}


class AccessDenied(ExplorerError, PermissionError):
    """A logical path resolves outside the sandbox root."""

    kind = "access_denied"

    def __init__(self, path: str, base_directory: str):
        super().__init__(
            f"Access denied: path {path} is outside base directory {base_directory}", path
        )
        self.base_directory = base_directory


class InvalidPattern(ExplorerError):
    """A search pattern could not be compiled."""

    kind = "invalid_pattern"

    def __init__(self, pattern: str, error: Exception):
        super().__init__(f"Invalid search pattern {pattern!r}: {error}")
        self.pattern = pattern


class RemoteError(ExplorerError):
    """Base class for failures reported by the remote directory service."""

    operation = "remote"

    def __init__(self, path: str, cause: BaseException | None = None):
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Failed to {self.operation} {path}{detail}", path)
        self.cause = cause


class RemoteListError(RemoteError):
    """Listing a directory failed."""

    kind = "remote_list_error"
    operation = "list directory"


class RemoteStatError(RemoteError):
    """Getting metadata for a path failed."""

    kind = "remote_stat_error"
    operation = "get file info for"


class RemoteReadError(RemoteError):
    """Reading file content failed."""

    kind = "remote_read_error"
    operation = "read file"


class NotFound(RemoteError, FileNotFoundError):
    """The remote service reported that the path does not exist."""

    kind = "not_found"

    def __init__(self, path: str, operation: str, cause: BaseException | None = None):
        self.operation = operation
        super().__init__(path, cause)
        self.message = f"No such file or directory: {path}"
        self.args = (self.message,)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["operation"] = self.operation
        return result
