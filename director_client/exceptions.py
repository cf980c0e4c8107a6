"""Exceptions raised by the director client."""

from __future__ import annotations

from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from .models import Task, TaskError


class DirectorError(Exception):
    """Base exception for director client errors."""
    pass


class TransportError(DirectorError):
    """Network or HTTP failure talking to the director service."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        locator: str | None = None,
        response: Any = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.locator = locator
        self.response = response


class MalformedResponseError(DirectorError):
    """Payload did not match the expected shape."""

    def __init__(self, message: str, kind: str | None = None, payload: Any = None):
        super().__init__(message)
        self.kind = kind
        self.payload = payload


class NotFoundError(DirectorError):
    """Addressed entity does not exist."""

    def __init__(self, message: str, kind: str | None = None, locator: str | None = None):
        super().__init__(message)
        self.kind = kind
        self.locator = locator


class KeyNotFoundError(NotFoundError):
    """Metadata key absent on an entity."""

    def __init__(self, key: str, locator: str | None = None):
        super().__init__(
            f"Metadata key {key!r} not found on {locator}",
            kind="metadata",
            locator=locator,
        )
        self.key = key


class InvalidScopeError(DirectorError):
    """Locator does not belong to the user or the admin scope."""

    def __init__(self, locator: str, prefixes: tuple[str, ...] = ()):
        expected = " or ".join(prefixes) if prefixes else "a known scope prefix"
        super().__init__(f"Locator {locator!r} does not start with {expected}")
        self.locator = locator
        self.prefixes = prefixes


class PrivilegeError(DirectorError):
    """Admin-only operation attempted from a user-scoped client."""

    def __init__(self, operation: str, scope: str):
        super().__init__(
            f"Operation {operation!r} requires admin scope (active scope: {scope})"
        )
        self.operation = operation
        self.scope = scope


class TaskTimeoutError(DirectorError):
    """Waiting for a task exceeded its budget. The task may still finish later."""

    def __init__(self, task: Task, last_status: str | None, timeout: float):
        super().__init__(
            f"Task {task.locator} not finished after {timeout:.1f}s "
            f"(last status: {last_status})"
        )
        self.task = task
        self.last_status = last_status
        self.timeout = timeout


class TaskFailedError(DirectorError):
    """Task reached ERROR, CANCELLED or ABORTED."""

    def __init__(self, task: Task, status: str, error: TaskError | None = None):
        detail = f": {error.message}" if error and error.message else ""
        super().__init__(
            f"Task {task.locator} ({task.operation_name or task.operation}) "
            f"expected success, got {status}{detail}"
        )
        self.task = task
        self.status = status
        self.error = error
