"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Turns the raw bytes a Connection read off the socket into an HTTPRequest.

    PUT /api/users/2?dry=1 HTTP/1.1\r\n            <- request line
    Host: localhost:8000\r\n                        <- header fields
    Content-Type: application/json\r\n
    Content-Length: 18\r\n
    \r\n                                            <- end of head
    {"name": "Janet"}                               <- body

The request line must be exactly three space-separated parts. Header lines
without a colon are ignored.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import parse_qs, unquote, urlsplit

Address = Tuple[str, int]

SUPPORTED_VERSIONS = ("HTTP/1.0", "HTTP/1.1")
KNOWN_METHODS = frozenset({"GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"})


class HTTPParseError(Exception):
    """
    A request that cannot be served.

    status_code is what the server answers before closing the connection:
    400 for malformed input, 405 for unknown methods, 413 for oversized
    requests and 505 for other protocol versions.
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


_UNPARSED = object()


@dataclass
class HTTPRequest:
    """
    One parsed request.

    Header names are lowercased by the parser. `target` is the
    request-target as sent (path and query string); `path` is its
    percent-decoded path part.
    """

    method: str
    path: str
    version: str = "HTTP/1.1"
    target: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    query_params: Dict[str, List[str]] = field(default_factory=dict)
    body: bytes = b""
    path_params: Dict[str, str] = field(default_factory=dict)
    client_address: Address = ("", 0)

    _decoded: Any = field(default=_UNPARSED, repr=False, compare=False)

    def __post_init__(self):
        self.target = self.target or self.path

    def get_header(self, name: str, default: str = "") -> str:
        return self.headers.get(name.lower(), default)

    def get_query(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """First value given for a query parameter."""
        return next(iter(self.query_params.get(name, ())), default)

    @property
    def content_type(self) -> Optional[str]:
        """Media type only, lowercased; parameters such as charset are dropped."""
        media_type = self.get_header("content-type").partition(";")[0]
        return media_type.strip().lower() or None

    @property
    def content_length(self) -> int:
        value = self.get_header("content-length", "0")
        return int(value) if value.isdigit() else 0

    @property
    def user_agent(self) -> str:
        return self.get_header("user-agent")

    @property
    def is_keep_alive(self) -> bool:
        """HTTP/1.1 keeps the connection unless told to close; HTTP/1.0 only when asked."""
        token = self.get_header("connection").lower()
        if self.version == "HTTP/1.0":
            return token == "keep-alive"
        return token != "close"

    @property
    def json(self) -> Any:
        """
        Decoded JSON body, or None when the body is blank.

        Raises:
            HTTPParseError: If the body is not UTF-8 encoded JSON.
        """
        if self._decoded is _UNPARSED:
            text = self.body.strip()
            try:
                self._decoded = json.loads(text.decode("utf-8")) if text else None
            except (UnicodeDecodeError, ValueError) as e:
                raise HTTPParseError(f"Invalid JSON body: {e}") from e
        return self._decoded


class RequestParser:
    """Parses one complete HTTP/1.x request at a time."""

    def __init__(self, max_request_size: int = 1024 * 1024):
        self.max_request_size = max_request_size

    def parse(self, data: bytes, client_address: Address = ("", 0)) -> HTTPRequest:
        """
        Parse raw request bytes.

        Args:
            data: The request head and body as read off the socket.
            client_address: Peer (ip, port), kept for the access log.

        Raises:
            HTTPParseError: If the request is oversized or malformed.
        """
        if len(data) > self.max_request_size:
            raise HTTPParseError(
                f"Request of {len(data)} bytes exceeds {self.max_request_size}",
                status_code=413,
            )

        head, separator, rest = data.partition(b"\r\n\r\n")
        if not separator:
            raise HTTPParseError("Incomplete request: no header terminator")

        request_line, *field_lines = head.decode("latin-1").split("\r\n")
        method, target, version = self.parse_request_line(request_line)
        headers = self.parse_headers(field_lines)

        declared = headers.get("content-length", "0").strip()
        if not declared.isdigit():
            raise HTTPParseError(f"Invalid Content-Length: {declared!r}")
        length = int(declared)
        if len(rest) < length:
            raise HTTPParseError(f"Body has {len(rest)} of {length} declared bytes")

        url = urlsplit(target)
        return HTTPRequest(
            method=method,
            path=unquote(url.path) or "/",
            version=version,
            target=target,
            headers=headers,
            query_params=parse_qs(url.query, keep_blank_values=True),
            body=rest[:length],
            client_address=client_address,
        )

    @staticmethod
    def parse_request_line(line: str) -> Tuple[str, str, str]:
        parts = line.split(" ")
        if len(parts) != 3 or not all(parts):
            raise HTTPParseError(f"Invalid request line: {line!r}")

        method, target, version = parts
        if not version.startswith("HTTP/"):
            raise HTTPParseError(f"Invalid request line: {line!r}")
        if version not in SUPPORTED_VERSIONS:
            raise HTTPParseError(f"HTTP version {version} not supported", status_code=505)
        if method not in KNOWN_METHODS:
            raise HTTPParseError(f"Method {method} not allowed", status_code=405)
        return method, target, version

    @staticmethod
    def parse_headers(lines: List[str]) -> Dict[str, str]:
        """
        Collect header fields under lowercase names.

        A repeated field is joined to the earlier value with ", ". A line
        that starts with whitespace continues the field before it.
        """
        headers: Dict[str, str] = {}
        last: Optional[str] = None

        for line in lines:
            if line[:1] in (" ", "\t"):
                if last:
                    headers[last] = f"{headers[last]} {line.strip()}"
                continue

            name, colon, value = line.partition(":")
            name = name.strip().lower()
            if not colon or not name:
                continue

            value = value.strip()
            headers[name] = f"{headers[name]}, {value}" if name in headers else value
            last = name

        return headers


def parse_request(
    data: bytes,
    client_address: Address = ("", 0),
    max_size: int = 1024 * 1024,
) -> HTTPRequest:
    """Parse a request in one call."""
    return RequestParser(max_request_size=max_size).parse(data, client_address)
