"""
=============================================================================
MIDDLEWARE MODULE
=============================================================================

Cross-cutting request/response processing, composed around a handler
with MiddlewarePipeline (Chain of Responsibility).

LoggingMiddleware:
    Access log line per request, X-Request-ID correlation.

=============================================================================
"""

from .base import Middleware, MiddlewarePipeline, NextHandler
from .logging import LoggingMiddleware, RequestLog

__all__ = [
    # Base classes
    "Middleware",
    "MiddlewarePipeline",
    "NextHandler",

    # Built-in middleware
    "LoggingMiddleware",
    "RequestLog",
]
