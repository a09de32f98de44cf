"""
HTTP protocol layer: request parsing, response building, status codes
and URL routing.

    raw bytes --RequestParser--> HTTPRequest --Router--> handler --> HTTPResponse --to_bytes()--> raw bytes
"""

from .status_codes import HTTPStatus
from .request import HTTPRequest, RequestParser, HTTPParseError, parse_request
from .response import (
    HTTPResponse,
    ResponseBuilder,
    ok,
    created,
    no_content,
    error_response,
    internal_error,
    format_http_date,
)
from .router import Router, Route, RouteMatch, Handler

__all__ = [
    "HTTPStatus",
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",
    "parse_request",
    "HTTPResponse",
    "ResponseBuilder",
    "ok",
    "created",
    "no_content",
    "error_response",
    "internal_error",
    "format_http_date",
    "Router",
    "Route",
    "RouteMatch",
    "Handler",
]
