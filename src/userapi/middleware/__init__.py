"""
Middleware for the request pipeline.

    LoggingMiddleware       access log + X-Request-ID
    CORSMiddleware          Access-Control-* headers, OPTIONS preflight
    ErrorHandlerMiddleware  exceptions -> JSON error envelopes
"""

from .base import Middleware, MiddlewarePipeline, NextHandler
from .logging import LoggingMiddleware, RequestLog
from .cors import CORSMiddleware, CORSConfig
from .errors import ErrorHandlerMiddleware

__all__ = [
    "Middleware",
    "MiddlewarePipeline",
    "NextHandler",
    "LoggingMiddleware",
    "RequestLog",
    "CORSMiddleware",
    "CORSConfig",
    "ErrorHandlerMiddleware",
]
