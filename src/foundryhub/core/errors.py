"""Error handling module for foundryhub.

This module defines error codes, exception classes, and response models.

Error Response Format:
{
    "error": {
        "code": "INSTANCE_NOT_FOUND",
        "message": "Instance not found"
    }
}

Taxonomy:
- NotFound (404): referenced instance does not exist
- Conflict (409): operation invalid given current state
- ExecutionFailure (502): the container engine call failed
- Invariant violation (500): a bug or corrupted record

Usage:
    from foundryhub.core.errors import InstanceNotFoundError, NotRunningError

    raise InstanceNotFoundError()
    raise NotRunningError("Instance alpha is not running")
"""

from enum import Enum

from pydantic import BaseModel


class ErrorCode(str, Enum):
    """Error codes."""

    INVALID_REQUEST = "INVALID_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    INSTANCE_NOT_FOUND = "INSTANCE_NOT_FOUND"
    DUPLICATE_NAME = "DUPLICATE_NAME"
    DUPLICATE_PORT = "DUPLICATE_PORT"
    ALREADY_RUNNING = "ALREADY_RUNNING"
    NOT_RUNNING = "NOT_RUNNING"
    INSTANCE_DELETING = "INSTANCE_DELETING"
    ENGINE_FAILURE = "ENGINE_FAILURE"
    MISSING_CONTAINER_REF = "MISSING_CONTAINER_REF"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorDetail(BaseModel):
    """Error detail containing code and message."""

    code: str
    message: str


class ErrorResponse(BaseModel):
    """Error response format."""

    error: ErrorDetail


class FoundryHubError(Exception):
    """Base exception for foundryhub.

    All foundryhub specific exceptions should inherit from this class.
    This enables centralized exception handling in FastAPI.

    Attributes:
        code: The error code from ErrorCode enum
        message: Human-readable error message
        status_code: HTTP status code to return
    """

    def __init__(self, code: ErrorCode, message: str, status_code: int) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    @property
    def is_client_error(self) -> bool:
        """True when the request was invalid, False when the system is broken."""
        return self.status_code < 500

    def to_response(self) -> ErrorResponse:
        """Convert exception to ErrorResponse model."""
        return ErrorResponse(
            error=ErrorDetail(code=self.code.value, message=self.message)
        )


class InvalidRequestError(FoundryHubError):
    """400 Bad Request - Invalid request parameters."""

    def __init__(self, message: str = "Invalid request") -> None:
        super().__init__(ErrorCode.INVALID_REQUEST, message, 400)


class InvalidPortError(InvalidRequestError):
    """400 Bad Request - Port outside the allowed range."""

    def __init__(self, message: str = "Port outside the allowed range") -> None:
        super().__init__(message)


class UnauthorizedError(FoundryHubError):
    """401 Unauthorized - Authentication required."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(ErrorCode.UNAUTHORIZED, message, 401)


class ForbiddenError(FoundryHubError):
    """403 Forbidden - Permission denied."""

    def __init__(self, message: str = "Administrator access required") -> None:
        super().__init__(ErrorCode.FORBIDDEN, message, 403)


class InstanceNotFoundError(FoundryHubError):
    """404 Not Found - Instance not found."""

    def __init__(self, message: str = "Instance not found") -> None:
        super().__init__(ErrorCode.INSTANCE_NOT_FOUND, message, 404)


class ConflictError(FoundryHubError):
    """409 Conflict - Operation is invalid given the current state."""

    def __init__(self, code: ErrorCode, message: str) -> None:
        super().__init__(code, message, 409)


class DuplicateNameError(ConflictError):
    """409 Conflict - Instance name already taken."""

    def __init__(self, message: str = "Instance name already exists") -> None:
        super().__init__(ErrorCode.DUPLICATE_NAME, message)


class DuplicatePortError(ConflictError):
    """409 Conflict - Instance port already in use."""

    def __init__(self, message: str = "Instance port already in use") -> None:
        super().__init__(ErrorCode.DUPLICATE_PORT, message)


class AlreadyRunningError(ConflictError):
    """409 Conflict - Instance is already running."""

    def __init__(self, message: str = "Instance is already running") -> None:
        super().__init__(ErrorCode.ALREADY_RUNNING, message)


class NotRunningError(ConflictError):
    """409 Conflict - Instance is not running."""

    def __init__(self, message: str = "Instance is not running") -> None:
        super().__init__(ErrorCode.NOT_RUNNING, message)


class InstanceDeletingError(ConflictError):
    """409 Conflict - Instance is being deleted."""

    def __init__(self, message: str = "Instance is being deleted") -> None:
        super().__init__(ErrorCode.INSTANCE_DELETING, message)


class ExecutionFailure(FoundryHubError):
    """502 Bad Gateway - Container engine call failed.

    Attributes:
        reason: Short description of what failed
        raw_output: Captured stderr/stdout or engine error text
    """

    def __init__(self, reason: str, raw_output: str = "") -> None:
        self.reason = reason
        self.raw_output = raw_output
        message = f"{reason}: {raw_output}" if raw_output else reason
        super().__init__(ErrorCode.ENGINE_FAILURE, message, 502)


class MissingContainerRefError(FoundryHubError):
    """500 Internal Server Error - Running instance has no container reference."""

    def __init__(self, message: str = "Instance has no associated container") -> None:
        super().__init__(ErrorCode.MISSING_CONTAINER_REF, message, 500)


class InternalError(FoundryHubError):
    """500 Internal Server Error - Unexpected error."""

    def __init__(self, message: str = "Internal server error") -> None:
        super().__init__(ErrorCode.INTERNAL_ERROR, message, 500)
