"""
=============================================================================
IMMUTABLE HTTP MESSAGES
=============================================================================

Value types for HTTP requests and responses, plus the factory that builds
a request from a hosting server's environment.

=============================================================================
MESSAGE FLOW
=============================================================================

    environment bag ──► RequestFactory ──► ServerRequest
                                               │
                                               ▼ handler
                                            Response ──► hosting server

Every message is immutable. ``with_*`` methods return a new message with
one field replaced:

    request = request.with_attribute("route", "homepage")
    response = Response().with_status(200).with_header("Content-Type", "text/plain")

=============================================================================
"""

from .errors import InvalidArgumentError, StreamError
from .factory import RequestFactory, from_globals
from .message import Message
from .request import ServerRequest, VALID_METHODS
from .response import Response
from .status_codes import HTTPStatus, reason_phrase
from .stream import (
    MEMORY,
    STDIN,
    InputStream,
    Stream,
    StreamInterface,
    create_stream,
)
from .uri import Uri

__all__ = [
    # Errors
    "InvalidArgumentError",
    "StreamError",

    # Messages
    "Message",
    "ServerRequest",
    "Response",
    "VALID_METHODS",

    # Building requests
    "RequestFactory",
    "from_globals",

    # Bodies
    "StreamInterface",
    "Stream",
    "InputStream",
    "create_stream",
    "STDIN",
    "MEMORY",

    # URIs and status codes
    "Uri",
    "HTTPStatus",
    "reason_phrase",
]
