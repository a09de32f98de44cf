"""
API error taxonomy.

Handlers raise these instead of building error responses by hand; the
ErrorHandlerMiddleware turns them into envelopes:

    raise ConflictError("User with this email already exists", field="email")

    HTTP/1.1 409 Conflict
    {"success": false, "error": "Conflict",
     "message": "User with this email already exists", "field": "email"}
"""

from typing import Any, Dict

from .http.response import HTTPResponse, error_response
from .http.status_codes import HTTPStatus


class APIError(Exception):
    """
    Base class for errors that map directly to an HTTP response.

    Attributes:
        status: Response status code.
        error: Category label placed in the envelope's "error" field.
        message: Human-readable detail.
        extra: Additional envelope fields (field, requiredFields, ...).
    """

    status: HTTPStatus = HTTPStatus.INTERNAL_SERVER_ERROR
    error: str = "Internal Server Error"

    def __init__(self, message: str, **extra: Any):
        super().__init__(message)
        self.message = message
        self.extra: Dict[str, Any] = extra

    def to_response(self) -> HTTPResponse:
        return error_response(self.status, self.error, self.message, **self.extra)


class BadRequestError(APIError):
    status = HTTPStatus.BAD_REQUEST
    error = "Bad Request"


class ValidationError(APIError):
    status = HTTPStatus.UNPROCESSABLE_ENTITY
    error = "Validation Error"


class ConflictError(APIError):
    status = HTTPStatus.CONFLICT
    error = "Conflict"


class NotFoundError(APIError):
    status = HTTPStatus.NOT_FOUND
    error = "Not Found"


class InternalError(APIError):
    status = HTTPStatus.INTERNAL_SERVER_ERROR
    error = "Internal Server Error"
