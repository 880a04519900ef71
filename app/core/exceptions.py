"""Exceptions raised by services and rendered by the error handlers."""


class AppException(Exception):
    """
    Base class for errors that carry an HTTP status and a readable reason.

    Subclasses only set ``status_code`` and ``default_message``.
    """

    status_code = 500
    default_message = "Internal error"

    def __init__(self, message: str | None = None, status_code: int | None = None):
        """Initialize with an optional message and status override."""
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class NotFoundException(AppException):
    """Resource not found, soft-deleted or inactive."""

    status_code = 404
    default_message = "Resource not found"


class UnauthorizedException(AppException):
    """Missing or wrong credentials."""

    status_code = 401
    default_message = "Unauthorized"


class ForbiddenException(AppException):
    """Caller has no rights over the resource or the requested mutation."""

    status_code = 403
    default_message = "Forbidden"


class BadRequestException(AppException):
    """Malformed request parameters outside the schema layer."""

    status_code = 400
    default_message = "Bad request"


class ConflictException(AppException):
    """Request collides with existing state (capacity, overlapping booking)."""

    status_code = 409
    default_message = "Conflict"


class ValidationException(AppException):
    """Well-formed request that violates a business rule."""

    status_code = 400
    default_message = "Validation error"
