"""Exception hierarchy shared by QueryLoop services.

Services raise these; the handlers registered in ``queryloop.main`` render
them as ``{"error": message}`` with the status code carried by the class.

    QueryLoopError
    ├── AuthorizationError          401 / 403
    │   └── PendingModerationError  403
    ├── NotFoundError               404
    ├── ConflictError               409
    ├── ValidationError             400
    ├── MalformedRecordError        500
    ├── StorageError                500
    └── CascadeDeletionError        500
"""

from __future__ import annotations

from typing import Any


class QueryLoopError(Exception):
    """Base exception for all QueryLoop service errors.

    Attributes:
        message: User-facing description, safe to return in a response.
        context: Extra debug data that is logged but never returned.
    """

    status_code = 500

    def __init__(self, message: str = "An unexpected error occurred", context: dict[str, Any] | None = None) -> None:
        self.message = message
        self.context = context or {}
        super().__init__(message)


class AuthorizationError(QueryLoopError):
    """Caller is not logged in (401) or lacks the required role (403)."""

    status_code = 403

    def __init__(self, message: str = "Not allowed", *, authenticated: bool = True, context: dict[str, Any] | None = None) -> None:
        super().__init__(message, context)
        self.authenticated = authenticated
        if not authenticated:
            self.status_code = 401


class PendingModerationError(AuthorizationError):
    """The question exists but is hidden until an admin approves it."""

    def __init__(self, question_id: str) -> None:
        super().__init__(
            "This question is awaiting moderation.",
            context={"question_id": question_id},
        )
        self.question_id = question_id


class NotFoundError(QueryLoopError):
    """Target row is missing or already deleted."""

    status_code = 404

    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        message = f"{resource.capitalize()} not found"
        context: dict[str, Any] = {"resource": resource}
        if resource_id is not None:
            context["resource_id"] = resource_id
        super().__init__(message, context)
        self.resource = resource
        self.resource_id = resource_id


class ConflictError(QueryLoopError):
    """Write would violate a uniqueness rule."""

    status_code = 409


class ValidationError(QueryLoopError):
    """Client input failed a business rule."""

    status_code = 400

    def __init__(self, message: str = "Validation failed", field: str | None = None) -> None:
        super().__init__(message, {"field": field} if field else None)
        self.field = field


class MalformedRecordError(QueryLoopError):
    """A row read from the store does not satisfy its record type."""

    def __init__(self, record: str, detail: str) -> None:
        super().__init__(f"Malformed {record} record", {"detail": detail})
        self.record = record


class StorageError(QueryLoopError):
    """Object storage operation failed."""

    def __init__(self, message: str = "File storage operation failed", context: dict[str, Any] | None = None) -> None:
        super().__init__(message, context)


class CascadeDeletionError(QueryLoopError):
    """A step of a cascade failed; all row deletions were rolled back."""

    def __init__(self, step: str, cause: Exception) -> None:
        message = cause.message if isinstance(cause, QueryLoopError) else str(cause)
        super().__init__(message or "Cascade deletion failed", {"step": step})
        self.step = step
        self.cause = cause
