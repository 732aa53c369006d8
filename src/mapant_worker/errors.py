"""Error taxonomy and cycle ID tracking."""

import uuid
from contextvars import ContextVar
from typing import Any

# Context variable for the current dispatch cycle ID
_cycle_id: ContextVar[str | None] = ContextVar("cycle_id", default=None)


def generate_cycle_id() -> str:
    """Generate a new cycle ID for log correlation."""
    return str(uuid.uuid4())


def get_current_cycle_id() -> str | None:
    """Get the current cycle ID from context."""
    return _cycle_id.get()


def set_cycle_id(cycle_id: str) -> None:
    """Set the cycle ID in context."""
    _cycle_id.set(cycle_id)


def clear_cycle_id() -> None:
    """Clear the cycle ID from context."""
    _cycle_id.set(None)


class WorkerError(Exception):
    """Base exception for everything that can end a dispatch cycle.

    Attributes:
        message: Human-readable error message
        retryable: Whether the failed step would be worth retrying
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        retryable: bool = False,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize worker error."""
        super().__init__(message)
        self.message = message
        self.retryable = retryable
        self.details = details or {}

    def __str__(self) -> str:
        """String representation of error."""
        if self.details:
            return f"{self.message} (details: {self.details})"
        return self.message


class TransportError(WorkerError):
    """Polling the dispatch endpoint failed or returned a non-success status."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        reason: str | None = None,
    ) -> None:
        """Initialize transport error."""
        details: dict[str, Any] = {}
        if status_code is not None:
            details["status_code"] = status_code
        if reason:
            details["reason"] = reason
        super().__init__(message, details=details)
        self.status_code = status_code


class DecodeError(WorkerError):
    """Dispatch response did not match any known job shape."""

    def __init__(self, message: str, errors: list[Any] | None = None) -> None:
        """Initialize decode error."""
        super().__init__(message, details={"errors": errors} if errors else None)
        self.errors = errors or []


class JobValidationError(WorkerError):
    """A decoded job cannot be executed as given."""


class TransferError(WorkerError):
    """Downloading a remote resource failed."""


class TransferHTTPError(TransferError):
    """Remote side of a download failed (status or transport)."""

    def __init__(self, message: str, url: str, status_code: int | None = None) -> None:
        """Initialize HTTP transfer error."""
        details: dict[str, Any] = {"url": url}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, details=details)
        self.url = url
        self.status_code = status_code


class TransferIOError(TransferError):
    """Writing a download to local storage failed."""

    def __init__(self, message: str, path: str) -> None:
        """Initialize I/O transfer error."""
        super().__init__(message, details={"path": path})
        self.path = path


class SpawnError(WorkerError):
    """External command could not be started at all."""

    def __init__(self, message: str, command: str) -> None:
        """Initialize spawn error."""
        super().__init__(message, details={"command": command})
        self.command = command


class ToolError(WorkerError):
    """External command ran but exited with a non-zero code."""

    def __init__(self, operation: str, exit_code: int, stderr: str = "") -> None:
        """Initialize tool error."""
        details: dict[str, Any] = {"exit_code": exit_code}
        if stderr:
            details["stderr"] = stderr
        super().__init__(f"{operation} exited with code {exit_code}", details=details)
        self.operation = operation
        self.exit_code = exit_code
        self.stderr = stderr


class ToolTimeoutError(WorkerError):
    """External command was killed after exceeding its timeout."""

    def __init__(self, command: str, timeout_seconds: float) -> None:
        """Initialize tool timeout error."""
        super().__init__(
            f"{command} timed out after {timeout_seconds}s",
            details={"command": command, "timeout_seconds": timeout_seconds},
        )
