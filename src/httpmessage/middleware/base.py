"""
=============================================================================
BASE MIDDLEWARE INTERFACE
=============================================================================

Middleware wraps a handler: it sees the request on the way in and the
response on the way out, and may replace either.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   request ──► [ Logging ──► [ ... ──► [ handler ] ] ]               │
    │   response ◄── [ Logging ◄── [ ... ◄── [ handler ] ] ]              │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Messages are immutable, so middleware never edits a request or response
in place. It derives a new one and passes that along instead:

    def __call__(self, request, next):
        request = request.with_attribute("started", time.monotonic())
        response = next(request)
        return response.with_header("X-Handled-By", "me")

=============================================================================
"""

from abc import ABC, abstractmethod
from typing import Callable, Iterator, List
import logging

from ..http.request import ServerRequest
from ..http.response import Response


logger = logging.getLogger(__name__)


# Signature of everything downstream of a middleware
NextHandler = Callable[[ServerRequest], Response]


class Middleware(ABC):
    """
    Abstract base class for middleware.

    Subclasses implement ``__call__(request, next)`` and either return a
    response of their own (short-circuit) or call ``next(request)``.
    """

    @abstractmethod
    def __call__(self, request: ServerRequest, next: NextHandler) -> Response:
        """
        Process a request.

        Args:
            request: The incoming request.
            next: The rest of the chain.

        Returns:
            The response to send back up the chain.
        """

    @property
    def name(self) -> str:
        return self.__class__.__name__


class MiddlewarePipeline:
    """
    Ordered chain of middleware around a final handler.

        pipeline = MiddlewarePipeline()
        pipeline.add(LoggingMiddleware())
        handler = pipeline.wrap(index)

    The first middleware added is the outermost.
    """

    def __init__(self):
        self._middleware: List[Middleware] = []

    def add(self, middleware: Middleware) -> "MiddlewarePipeline":
        """Append middleware to the chain; returns self for chaining."""
        self._middleware.append(middleware)
        logger.debug(f"Added middleware: {middleware.name}")
        return self

    def wrap(self, handler: NextHandler) -> NextHandler:
        """Compose the chain around ``handler``."""
        current = handler
        for middleware in reversed(self._middleware):
            current = self._bind(middleware, current)
        return current

    @staticmethod
    def _bind(middleware: Middleware, next_handler: NextHandler) -> NextHandler:
        def wrapped(request: ServerRequest) -> Response:
            return middleware(request, next_handler)
        return wrapped

    def __len__(self) -> int:
        return len(self._middleware)

    def __iter__(self) -> Iterator[Middleware]:
        return iter(self._middleware)
