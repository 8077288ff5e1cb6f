"""
Typed failures raised by the service layer.

Every failure carries a stable ``kind`` and a caller-safe ``message``; the API
layer maps the kind to an HTTP status code.
"""
import enum


class ErrorKind(str, enum.Enum):
    """Failure taxonomy with the HTTP status each kind maps to."""
    BAD_REQUEST = "bad_request"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    CONFLICT = "conflict"
    UNAUTHORIZED = "unauthorized"
    SERVICE_UNAVAILABLE = "service_unavailable"
    INTERNAL = "internal"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]


_STATUS_CODES = {
    ErrorKind.BAD_REQUEST: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.CONFLICT: 409,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.SERVICE_UNAVAILABLE: 503,
    ErrorKind.INTERNAL: 500,
}


class AppError(Exception):
    """Base class for failures that are safe to report to the caller."""
    kind: ErrorKind = ErrorKind.INTERNAL
    default_message: str = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return self.kind.status_code

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class BadRequestError(AppError):
    kind = ErrorKind.BAD_REQUEST
    default_message = "Bad request"


class NotFoundError(AppError):
    kind = ErrorKind.NOT_FOUND
    default_message = "Resource not found"


class ForbiddenError(AppError):
    kind = ErrorKind.FORBIDDEN
    default_message = "Access denied"


class ConflictError(AppError):
    kind = ErrorKind.CONFLICT
    default_message = "Resource already exists"


class UnauthorizedError(AppError):
    kind = ErrorKind.UNAUTHORIZED
    default_message = "Not authenticated"


class ServiceUnavailableError(AppError):
    kind = ErrorKind.SERVICE_UNAVAILABLE
    default_message = "Service temporarily unavailable"