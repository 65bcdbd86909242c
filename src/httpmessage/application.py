"""
=============================================================================
WSGI APPLICATION
=============================================================================

The integration shim between a WSGI server and the message model. This
is the one place that reads the live request environment; everything
behind it works on immutable messages.

=============================================================================
REQUEST LIFECYCLE
=============================================================================

    1. WSGI SERVER CALLS THE APPLICATION
       └── application(environ, start_response)

    2. BUILD THE REQUEST (from_environ)
       └── QUERY_STRING, Cookie header and form body are parsed here,
           then RequestFactory.from_globals() builds the ServerRequest

    3. MIDDLEWARE PIPELINE
       └── LoggingMiddleware → dispatch

    4. ROUTE DISPATCH
       └── "/" (any method) → handlers.index; anything else → 404

    5. SERIALIZE THE RESPONSE
       └── start_response(status_line, header_items)
           body streamed back in chunks, then both bodies are closed

=============================================================================
ERROR MAPPING
=============================================================================

    InvalidArgumentError while building the request  → its status (400/405)
    Any other exception from a handler               → 500, logged with traceback

=============================================================================
"""

from http.cookies import CookieError, SimpleCookie
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional
from urllib.parse import parse_qs
import logging

from .config import AppConfig
from .handlers import index
from .http.errors import InvalidArgumentError
from .http.factory import RequestFactory
from .http.request import ServerRequest
from .http.response import Response
from .http.stream import InputStream
from .middleware import LoggingMiddleware, MiddlewarePipeline


logger = logging.getLogger(__name__)


Handler = Callable[[ServerRequest], Response]

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


# =============================================================================
# AMBIENT ENVIRONMENT → REQUEST
# =============================================================================

def parse_cookies(header: str) -> Dict[str, str]:
    """Cookie name → value from a Cookie header."""
    cookie = SimpleCookie()
    try:
        cookie.load(header)
    except CookieError as e:
        logger.warning(f"Ignoring malformed Cookie header: {e}")
        return {}
    return {name: morsel.value for name, morsel in cookie.items()}


def _content_length(value: Any) -> Optional[int]:
    try:
        length = int(value)
    except (TypeError, ValueError):
        return None
    return length if length >= 0 else None


def from_environ(environ: Mapping[str, Any], trust_forwarded_proto: bool = True) -> ServerRequest:
    """
    Build a ServerRequest from a live WSGI environ.

    Query params are ``parse_qs`` dicts (name → list of values). Body
    params are filled for url-encoded form bodies only; reading them
    goes through the request's InputStream, so the raw body stays
    available to handlers. Uploaded files are not parsed.

    Raises:
        InvalidArgumentError: If the environ describes an invalid method
            or URI.
    """
    body_stream = InputStream(
        environ.get("wsgi.input"),
        content_length=_content_length(environ.get("CONTENT_LENGTH")),
    )

    query = parse_qs(environ.get("QUERY_STRING", ""), keep_blank_values=True)
    cookies = parse_cookies(environ.get("HTTP_COOKIE", ""))

    body: Dict[str, List[str]] = {}
    content_type = str(environ.get("CONTENT_TYPE", "")).split(";")[0].strip().lower()
    if content_type == FORM_CONTENT_TYPE:
        raw = bytes(body_stream).decode("utf-8", errors="replace")
        body = parse_qs(raw, keep_blank_values=True)

    return RequestFactory.from_globals(
        server=environ,
        query=query,
        body=body,
        cookies=cookies,
        files={},
        body_stream=body_stream,
        trust_forwarded_proto=trust_forwarded_proto,
    )


# =============================================================================
# APPLICATION
# =============================================================================

def configure_logging(config: AppConfig) -> None:
    """Configure the ``httpmessage`` loggers from config."""
    level = getattr(logging, config.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("httpmessage").setLevel(level)


def text_response(status: int, text: str) -> Response:
    response = Response(status=status, headers={"Content-Type": "text/plain"})
    response.get_body().write(text)
    return response


class Application:
    """
    WSGI application serving the message model.

    Usage:
        application = Application()          # config from environment

        # or with explicit settings
        application = Application(AppConfig(log_level="DEBUG"))

        # extra routes
        @application.route("/ping")
        def ping(request):
            return text_response(200, "pong")
    """

    def __init__(self, config: Optional[AppConfig] = None):
        self.config = config or AppConfig.from_env()
        self.config.validate()
        configure_logging(self.config)

        self._routes: Dict[str, Handler] = {}
        self.route("/")(index)

        self._pipeline = MiddlewarePipeline()
        self._pipeline.add(LoggingMiddleware(log_format=self.config.log_format))
        self._handler = self._pipeline.wrap(self._dispatch)

        logger.debug(
            f"Application ready: {len(self._pipeline)} middleware "
            f"({', '.join(m.name for m in self._pipeline)})"
        )

    # =========================================================================
    # ROUTING
    # =========================================================================

    def route(self, path: str) -> Callable[[Handler], Handler]:
        """Register a handler for ``path`` (any method)."""
        def decorator(handler: Handler) -> Handler:
            self._routes[path] = handler
            logger.debug(f"Registered route {path} → {handler.__name__}")
            return handler
        return decorator

    def _dispatch(self, request: ServerRequest) -> Response:
        uri = request.get_uri()
        path = uri.path if uri is not None and uri.path else "/"

        handler = self._routes.get(path)
        if handler is None:
            return text_response(404, f"No route for {path}")

        return handler(request.with_attribute("_route", path))

    def handle(self, request: ServerRequest) -> Response:
        """Run a request through middleware and dispatch."""
        return self._handler(request)

    # =========================================================================
    # WSGI ENTRY POINT
    # =========================================================================

    def __call__(self, environ: Dict[str, Any], start_response: Callable) -> "ResponseBody":
        request: Optional[ServerRequest] = None
        try:
            request = from_environ(environ, self.config.trust_forwarded_proto)
        except InvalidArgumentError as e:
            logger.warning(f"Rejected request: {e}")
            response = text_response(e.status_code, str(e))
        else:
            try:
                response = self.handle(request)
            except Exception as e:
                logger.exception(f"Handler error: {e}")
                response = text_response(500, "Internal Server Error")

        response = self._finalize(response)
        start_response(response.status_line, response.header_items())
        return ResponseBody(response, request, self.config.chunk_size)

    def _finalize(self, response: Response) -> Response:
        """Add Content-Length and Server headers when missing."""
        if not response.has_header("Content-Length"):
            size = response.get_body().get_size()
            if size is not None:
                response = response.with_header("Content-Length", str(size))
        if self.config.server_name and not response.has_header("Server"):
            response = response.with_header("Server", self.config.server_name)
        return response


class ResponseBody:
    """
    The iterable handed back to the WSGI server.

    Yields the response body in ``chunk_size`` pieces. ``close()`` releases
    the response and request bodies; the server calls it once it is done,
    whether or not it iterated (PEP 3333).
    """

    def __init__(self, response: Response, request: Optional[ServerRequest], chunk_size: int):
        self._response = response
        self._request = request
        self._chunk_size = chunk_size
        self._closed = False

    def __iter__(self) -> Iterator[bytes]:
        if self._closed:
            return
        body = self._response.get_body()
        try:
            if body.is_seekable():
                body.rewind()
            while True:
                chunk = body.read(self._chunk_size)
                if not chunk:
                    break
                yield chunk
        finally:
            self.close()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._response.get_body().close()
        if self._request is not None:
            self._request.get_body().close()


def create_app(config: Optional[AppConfig] = None) -> Application:
    """Application factory for WSGI servers (``gunicorn 'httpmessage:create_app()'``)."""
    return Application(config)
