"""
Error boundary middleware.

Sits innermost, right around the router, and converts exceptions into
envelope responses:

    APIError subclasses  -> their own status / label / message
    HTTPParseError       -> 400 "Invalid JSON body" (raised by request.json)
    anything else        -> 500 "An unexpected error occurred", traceback logged
"""

import logging

from .base import Middleware, NextHandler
from ..errors import APIError, BadRequestError
from ..http.request import HTTPRequest, HTTPParseError
from ..http.response import HTTPResponse, internal_error

logger = logging.getLogger(__name__)


class ErrorHandlerMiddleware(Middleware):
    """Turns exceptions raised by handlers into JSON error envelopes."""

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        try:
            return next(request)
        except APIError as e:
            if e.status >= 500:
                logger.error(f"{request.method} {request.target}: {e.message}")
            return e.to_response()
        except HTTPParseError as e:
            logger.debug(f"{request.method} {request.target}: {e}")
            return BadRequestError("Invalid JSON body").to_response()
        except Exception as e:
            logger.exception(f"Unhandled error in {request.method} {request.target}: {e}")
            return internal_error()
