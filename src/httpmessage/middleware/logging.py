"""
=============================================================================
ACCESS LOGGING MIDDLEWARE
=============================================================================

Writes one access-log line per request to the ``httpmessage.access``
logger and tags the exchange with a short request id.

=============================================================================
LOG FORMATS
=============================================================================

    TEXT (default):
        127.0.0.1 - - [19/Oct/2026:10:55:36 +0000] "GET /" 200 42 0.31ms

    JSON:
        {"request_id": "a1b2c3d4", "method": "GET", "path": "/", ...}

=============================================================================
REQUEST ID
=============================================================================

The id travels both ways:

    request  ──► request.with_attribute("request_id", "a1b2c3d4")
    response ◄── response.with_header("X-Request-ID", "a1b2c3d4")

=============================================================================
"""

from dataclasses import asdict, dataclass
from typing import Iterable, Optional
import json
import logging
import time
import uuid

from .base import Middleware, NextHandler
from ..http.request import ServerRequest
from ..http.response import Response


logger = logging.getLogger("httpmessage.access")


@dataclass
class RequestLog:
    """One access-log entry."""

    request_id: str
    method: str
    path: str
    query: str
    client_ip: str
    user_agent: str
    status_code: int
    content_length: Optional[int]
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        entry = asdict(self)
        entry["duration_ms"] = round(self.duration_ms, 2)
        return entry

    def to_text(self) -> str:
        """Apache combined-style line."""
        size = "-" if self.content_length is None else self.content_length
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method} {self.path}" {self.status_code} '
            f'{size} {self.duration_ms:.2f}ms'
        )


class LoggingMiddleware(Middleware):
    """
    Request logging middleware.

    Args:
        log_format: "text" or "json".
        include_request_id: Add X-Request-ID to the response.
        log_level: Level the access lines are logged at.
        skip_paths: Paths that are not logged (health checks etc.).
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
        self.skip_paths = set(skip_paths or [])

    def __call__(self, request: ServerRequest, next: NextHandler) -> Response:
        request_id = str(uuid.uuid4())[:8]
        request = request.with_attribute("request_id", request_id)

        uri = request.get_uri()
        path = uri.path if uri is not None and uri.path else "/"

        start_time = time.perf_counter()
        try:
            response = next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                f"Request failed: {request.get_method()} {path} "
                f"- {type(e).__name__}: {e} ({duration_ms:.2f}ms)"
            )
            raise
        duration_ms = (time.perf_counter() - start_time) * 1000

        if path not in self.skip_paths:
            server = request.get_server_params()
            entry = RequestLog(
                request_id=request_id,
                method=request.get_method(),
                path=path,
                query=uri.query if uri is not None else "",
                client_ip=str(server.get("REMOTE_ADDR", "-")),
                user_agent=request.get_header_line("User-Agent") or "-",
                status_code=response.get_status_code(),
                content_length=response.get_body().get_size(),
                duration_ms=duration_ms,
                timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
            )
            if self.log_format == "json":
                logger.log(self.log_level, json.dumps(entry.to_dict()))
            else:
                logger.log(self.log_level, entry.to_text())

        if self.include_request_id:
            response = response.with_header("X-Request-ID", request_id)

        return response
