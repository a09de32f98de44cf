"""
=============================================================================
HTTP RESPONSE BUILDER
=============================================================================

Builds HTTP/1.1 responses and serializes them for the socket.

    HTTP/1.1 201 Created\r\n                      <- status line
    Content-Type: application/json; charset=utf-8\r\n
    Content-Length: 131\r\n                       <- added by to_bytes()
    Location: /api/users/3\r\n
    Date: Mon, 19 Oct 2026 12:00:00 GMT\r\n       <- added by to_bytes()
    Server: UserRecordsAPI/1.0\r\n                <- added by to_bytes()
    \r\n
    {"success": true, "message": "User created successfully", ...}

Every JSON body the API produces is an envelope with a "success" flag;
the helpers at the bottom of this module (ok, created, error_response)
are the only places that build one.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Optional, Dict, Any, Union
import json

from .status_codes import HTTPStatus


@dataclass
class HTTPResponse:
    """
    A response waiting to be serialized.

    Handlers return these; middleware may add headers on the way out.
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        return f"{self.version} {int(self.status)} {HTTPStatus(self.status).phrase}"

    @property
    def json(self) -> Any:
        """The body decoded as JSON (used by tests and the access log)."""
        return json.loads(self.body.decode("utf-8")) if self.body else None

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        self.headers[name] = value
        return self

    def to_bytes(self, server_name: str = "UserRecordsAPI/1.0") -> bytes:
        """
        Serialize status line, headers and body.

        Content-Length, Date and Server are filled in unless a handler or
        middleware already set them.
        """
        response_headers = dict(self.headers)
        response_headers.setdefault("Content-Length", str(len(self.body)))
        response_headers.setdefault("Date", format_http_date(datetime.now(timezone.utc)))
        response_headers.setdefault("Server", server_name)

        lines = [self.status_line]
        lines.extend(f"{name}: {value}" for name, value in response_headers.items())
        lines.append("")
        header_bytes = "\r\n".join(lines).encode("latin-1") + b"\r\n"
        return header_bytes + self.body


class ResponseBuilder:
    """
    Fluent builder for HTTPResponse.

        response = (ResponseBuilder()
            .status(HTTPStatus.CREATED)
            .json({"success": True, "data": user})
            .header("Location", "/api/users/3")
            .build())

    Every method except build() returns self.
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        self._status = status
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        self._body = body.encode("utf-8") if isinstance(body, str) else body
        return self

    def text(self, text: str) -> "ResponseBuilder":
        self._body = text.encode("utf-8")
        self._headers["Content-Type"] = "text/plain; charset=utf-8"
        return self

    def json(self, data: Any, pretty: bool = False) -> "ResponseBuilder":
        """
        Serialize data as the JSON body.

        ensure_ascii=False keeps non-ASCII names readable on the wire
        instead of escaping them to \\uXXXX.
        """
        indent = 2 if pretty else None
        self._body = json.dumps(data, indent=indent, ensure_ascii=False).encode("utf-8")
        self._headers["Content-Type"] = "application/json; charset=utf-8"
        return self

    def close_connection(self) -> "ResponseBuilder":
        self._headers["Connection"] = "close"
        return self

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=self._headers,
            body=self._body,
        )


def format_http_date(dt: datetime) -> str:
    """RFC 7231 HTTP-date for a UTC datetime, e.g. "Mon, 19 Oct 2026 12:00:00 GMT"."""
    return format_datetime(dt.astimezone(timezone.utc), usegmt=True)


# =============================================================================
# ENVELOPE HELPERS
# =============================================================================

def ok(payload: Dict[str, Any]) -> HTTPResponse:
    """200 OK with {"success": true, **payload}."""
    return (ResponseBuilder()
        .status(HTTPStatus.OK)
        .json({"success": True, **payload})
        .build())


def created(payload: Dict[str, Any], location: Optional[str] = None) -> HTTPResponse:
    """201 Created with {"success": true, **payload} and an optional Location header."""
    builder = ResponseBuilder().status(HTTPStatus.CREATED).json({"success": True, **payload})
    if location:
        builder.header("Location", location)
    return builder.build()


def no_content() -> HTTPResponse:
    return ResponseBuilder().status(HTTPStatus.NO_CONTENT).build()


def error_response(
    status: HTTPStatus,
    error: str,
    message: str,
    **extra: Any
) -> HTTPResponse:
    """
    Build an error envelope.

        {"success": false, "error": "Conflict",
         "message": "User with this email already exists", "field": "email"}

    Args:
        status: HTTP status code.
        error: Category label ("Bad Request", "Not Found", ...).
        message: Human-readable detail.
        **extra: Additional envelope fields such as field or requiredFields.
    """
    return (ResponseBuilder()
        .status(status)
        .json({"success": False, "error": error, "message": message, **extra})
        .build())


def internal_error(message: str = "An unexpected error occurred") -> HTTPResponse:
    """500 envelope. Keep the message generic; details go to the log."""
    return error_response(
        HTTPStatus.INTERNAL_SERVER_ERROR,
        HTTPStatus.INTERNAL_SERVER_ERROR.phrase,
        message,
    )
