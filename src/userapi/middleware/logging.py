"""
Access log middleware.

Writes one line per request to the "userapi.access" logger, as
Apache-style text or as a JSON object:

    127.0.0.1 - - [19/Oct/2026:12:00:00 +0000] "POST /api/users" 201 131 0.84ms
    {"request_id": "3f9c2a1b", "method": "POST", "path": "/api/users", ...}

The request id is also sent back as X-Request-ID.
"""

import json
import time
import uuid
import logging
from dataclasses import dataclass, asdict
from typing import Iterable, Optional

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse

access_log = logging.getLogger("userapi.access")

TIMESTAMP_FORMAT = "%d/%b/%Y:%H:%M:%S %z"


@dataclass
class RequestLog:
    request_id: str
    method: str
    path: str
    client_ip: str
    user_agent: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        return {**asdict(self), "duration_ms": round(self.duration_ms, 2)}

    def to_text(self) -> str:
        request_line = f"{self.method} {self.path}"
        return (
            f"{self.client_ip} - - [{self.timestamp}] \"{request_line}\" "
            f"{self.status_code} {self.content_length} {self.duration_ms:.2f}ms"
        )


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000


class LoggingMiddleware(Middleware):
    """
    Access log for every request, including CORS preflights when placed first.

    Args:
        log_format: "text" or "json".
        include_request_id: Send the id back in X-Request-ID.
        log_level: Level for non-5xx responses; 5xx always log at ERROR.
        skip_paths: Exact paths that are not logged.
    """

    def __init__(
        self,
        log_format: str = "text",
        include_request_id: bool = True,
        log_level: int = logging.INFO,
        skip_paths: Optional[Iterable[str]] = None,
    ):
        self.log_format = log_format
        self.include_request_id = include_request_id
        self.log_level = log_level
        self.skip_paths = frozenset(skip_paths or ())

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        request_id = uuid.uuid4().hex[:8]
        started = time.perf_counter()

        try:
            response = next(request)
        except Exception as e:
            access_log.error(
                f"Request failed: {request.method} {request.target} "
                f"raised {type(e).__name__}: {e} after {_elapsed_ms(started):.2f}ms"
            )
            raise

        if self.include_request_id:
            response.headers["X-Request-ID"] = request_id
        if request.path not in self.skip_paths:
            self._write(self._entry(request, response, request_id, _elapsed_ms(started)))
        return response

    @staticmethod
    def _entry(request: HTTPRequest, response: HTTPResponse, request_id: str, duration_ms: float) -> RequestLog:
        return RequestLog(
            request_id=request_id,
            method=request.method,
            path=request.target,
            client_ip=request.client_address[0] or "-",
            user_agent=request.user_agent or "-",
            status_code=int(response.status),
            content_length=len(response.body),
            duration_ms=duration_ms,
            timestamp=time.strftime(TIMESTAMP_FORMAT),
        )

    def _write(self, entry: RequestLog):
        level = self.log_level if entry.status_code < 500 else logging.ERROR
        line = json.dumps(entry.to_dict()) if self.log_format == "json" else entry.to_text()
        access_log.log(level, line)
