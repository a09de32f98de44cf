"""
Unit tests for HTTP response building.
"""

import json
from datetime import datetime, timezone

from userapi.http.response import (
    HTTPResponse,
    ResponseBuilder,
    ok,
    created,
    no_content,
    error_response,
    internal_error,
    format_http_date,
)
from userapi.http.status_codes import HTTPStatus


class TestHTTPResponse:
    """Tests for HTTPResponse class."""

    def test_status_line(self):
        """Test status line generation."""
        assert HTTPResponse(status=HTTPStatus.OK).status_line == "HTTP/1.1 200 OK"
        assert HTTPResponse(status=HTTPStatus.UNPROCESSABLE_ENTITY).status_line == (
            "HTTP/1.1 422 Unprocessable Entity"
        )

    def test_to_bytes_includes_headers(self):
        """Test that to_bytes includes all headers."""
        response = HTTPResponse(
            status=HTTPStatus.OK,
            headers={"X-Custom": "value"},
            body=b"test",
        )

        result = response.to_bytes()

        assert result.startswith(b"HTTP/1.1 200 OK\r\n")
        assert b"X-Custom: value\r\n" in result
        assert b"Content-Length: 4\r\n" in result
        assert b"Server: UserRecordsAPI/1.0\r\n" in result
        assert result.endswith(b"\r\n\r\ntest")

    def test_to_bytes_keeps_explicit_headers(self):
        """Test that headers set by handlers win over defaults."""
        response = HTTPResponse(headers={"Server": "custom"})
        assert b"Server: custom\r\n" in response.to_bytes()

    def test_set_header_chaining(self):
        """Test method chaining for headers."""
        response = (HTTPResponse()
            .set_header("X-One", "1")
            .set_header("X-Two", "2"))

        assert response.headers["X-One"] == "1"
        assert response.headers["X-Two"] == "2"


class TestResponseBuilder:
    """Tests for ResponseBuilder class."""

    def test_json_body(self):
        """Test JSON body encoding."""
        data = {"name": "Zoë", "age": 30}
        response = ResponseBuilder().json(data).build()

        assert response.headers["Content-Type"] == "application/json; charset=utf-8"
        assert json.loads(response.body) == data
        assert "Zoë".encode("utf-8") in response.body

    def test_text_body(self):
        """Test plain text body."""
        response = ResponseBuilder().text("Hello").build()

        assert response.headers["Content-Type"] == "text/plain; charset=utf-8"
        assert response.body == b"Hello"

    def test_close_connection(self):
        """Test connection close header."""
        response = ResponseBuilder().close_connection().build()
        assert response.headers["Connection"] == "close"

    def test_method_chaining(self):
        """Test fluent API chaining."""
        response = (ResponseBuilder()
            .status(HTTPStatus.CREATED)
            .header("X-Custom", "value")
            .json({"key": "value"})
            .build())

        assert response.status == HTTPStatus.CREATED
        assert response.headers["X-Custom"] == "value"
        assert response.json == {"key": "value"}


class TestEnvelopeHelpers:
    """Tests for the JSON envelope helpers."""

    def test_ok(self):
        """Test ok() adds the success flag."""
        response = ok({"count": 0, "data": []})

        assert response.status == HTTPStatus.OK
        assert response.json == {"success": True, "count": 0, "data": []}

    def test_created(self):
        """Test created() with a Location header."""
        response = created({"data": {"id": 3}}, location="/api/users/3")

        assert response.status == HTTPStatus.CREATED
        assert response.headers["Location"] == "/api/users/3"
        assert response.json["success"] is True

    def test_no_content(self):
        """Test no_content() has an empty body."""
        response = no_content()

        assert response.status == HTTPStatus.NO_CONTENT
        assert response.body == b""

    def test_error_response_extra_fields(self):
        """Test that extra keyword fields land in the envelope."""
        response = error_response(
            HTTPStatus.CONFLICT, "Conflict", "taken", field="email"
        )

        assert response.status == HTTPStatus.CONFLICT
        assert response.json == {
            "success": False,
            "error": "Conflict",
            "message": "taken",
            "field": "email",
        }

    def test_internal_error(self):
        """Test internal_error() default message."""
        response = internal_error()

        assert response.status == HTTPStatus.INTERNAL_SERVER_ERROR
        assert response.json["error"] == "Internal Server Error"
        assert response.json["message"] == "An unexpected error occurred"


class TestHTTPStatus:
    """Tests for HTTPStatus enum."""

    def test_status_phrases(self):
        """Test reason phrases."""
        assert HTTPStatus.OK.phrase == "OK"
        assert HTTPStatus.CONFLICT.phrase == "Conflict"
        assert HTTPStatus.INTERNAL_SERVER_ERROR.phrase == "Internal Server Error"

    def test_status_categories(self):
        """Test status category helpers."""
        assert HTTPStatus.CREATED.is_success
        assert HTTPStatus.NOT_FOUND.is_client_error
        assert HTTPStatus.SERVICE_UNAVAILABLE.is_server_error
        assert HTTPStatus.UNPROCESSABLE_ENTITY.is_error
        assert not HTTPStatus.NO_CONTENT.is_error


class TestFormatHTTPDate:
    """Tests for HTTP date formatting."""

    def test_format(self):
        """Test RFC 7231 date format."""
        dt = datetime(2026, 1, 15, 12, 30, 45, tzinfo=timezone.utc)
        assert format_http_date(dt) == "Thu, 15 Jan 2026 12:30:45 GMT"
