"""
Error taxonomy for the access layer.

Every failure that leaves the access layer is one of these exceptions.
The API layer renders them with ``to_detail()`` using the same shape as
FastAPI's ``HTTPException`` detail payloads.
"""

from typing import Any, Optional


class AccessError(Exception):
    """Base class for access layer errors."""

    error = "error"
    status_code = 500

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_detail(self) -> dict:
        detail = {"error": self.error, "message": self.message}
        detail.update(self.details)
        return detail


class NotAuthenticated(AccessError):
    """No valid session for an operation that requires one."""

    error = "unauthorized"
    status_code = 401


class NotFound(AccessError):
    """Entity absent, or hidden from the caller."""

    error = "not_found"
    status_code = 404

    def __init__(self, resource_type: str, resource_id: Optional[str] = None):
        super().__init__(
            f"{resource_type.replace('_', ' ').capitalize()} not found",
            resource_type=resource_type,
            resource_id=resource_id,
        )


class AuthorizationDenied(AccessError):
    """Role, ownership or workflow check failed."""

    error = "forbidden"
    status_code = 403


class BackendNotInitialized(AccessError):
    """The data store schema has not been created."""

    error = "backend_not_initialized"
    status_code = 503

    def __init__(self, message: str = "Database tables not found"):
        super().__init__(
            message,
            setup_hint=(
                "Run 'alembic upgrade head' in the backend directory or start the "
                "API with CREATE_SCHEMA_ON_STARTUP=true."
            ),
        )


class Conflict(AccessError):
    """Benign duplicate, e.g. a profile created by a concurrent sign-in."""

    error = "conflict"
    status_code = 409


class RemoteFailure(AccessError):
    """Opaque failure reported by the data store."""

    error = "remote_failure"
    status_code = 502


class RemoteTimeout(AccessError):
    """A data store call did not finish within the configured timeout."""

    error = "remote_timeout"
    status_code = 504


class InvalidRequest(AccessError):
    """Input rejected by a business rule (not by schema validation)."""

    error = "validation_error"
    status_code = 400
