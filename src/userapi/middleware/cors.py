"""
CORS middleware.

The API is called from browser exercises served on other origins, so every
origin is allowed unless a list is configured. OPTIONS preflights are
answered here with 204 and never reach the router.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, no_content


@dataclass
class CORSConfig:
    allow_origins: List[str] = field(default_factory=lambda: ["*"])
    allow_methods: List[str] = field(
        default_factory=lambda: ["GET", "HEAD", "PUT", "PATCH", "POST", "DELETE"]
    )
    allow_headers: List[str] = field(
        default_factory=lambda: ["Content-Type", "Authorization", "X-Requested-With"]
    )
    expose_headers: List[str] = field(default_factory=lambda: ["X-Request-ID", "Location"])
    allow_credentials: bool = False
    max_age: int = 86400

    def origin_for(self, origin: str) -> Optional[str]:
        """
        Access-Control-Allow-Origin value for a request origin.

        None means the origin is not allowed. A wildcard is never sent
        together with credentials; the caller's origin is echoed instead.
        """
        if "*" in self.allow_origins:
            return origin if self.allow_credentials and origin else "*"
        return origin if origin in self.allow_origins else None


class CORSMiddleware(Middleware):
    """
        server.use(CORSMiddleware())
        server.use(CORSMiddleware(CORSConfig(allow_origins=["https://app.example"])))
    """

    def __init__(self, config: Optional[CORSConfig] = None):
        self.config = config or CORSConfig()

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        if request.method == "OPTIONS":
            response = no_content()
            response.headers.update(self._preflight_headers(request))
        else:
            response = next(request)

        allowed = self.config.origin_for(request.get_header("origin"))
        if allowed is not None:
            response.headers.update(self._origin_headers(allowed))
            if allowed != "*":
                self._vary_on_origin(response)
        return response

    def _preflight_headers(self, request: HTTPRequest) -> Dict[str, str]:
        headers = {
            "Access-Control-Allow-Methods": ", ".join(self.config.allow_methods),
            "Access-Control-Max-Age": str(self.config.max_age),
        }
        if request.get_header("access-control-request-headers"):
            headers["Access-Control-Allow-Headers"] = ", ".join(self.config.allow_headers)
        return headers

    def _origin_headers(self, allowed: str) -> Dict[str, str]:
        headers = {"Access-Control-Allow-Origin": allowed}
        if self.config.allow_credentials:
            headers["Access-Control-Allow-Credentials"] = "true"
        if self.config.expose_headers:
            headers["Access-Control-Expose-Headers"] = ", ".join(self.config.expose_headers)
        return headers

    @staticmethod
    def _vary_on_origin(response: HTTPResponse):
        values = [v.strip() for v in response.headers.get("Vary", "").split(",") if v.strip()]
        if "Origin" not in values:
            values.append("Origin")
        response.headers["Vary"] = ", ".join(values)
