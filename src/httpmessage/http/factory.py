"""
=============================================================================
SERVER REQUEST FACTORY
=============================================================================

Builds a ServerRequest from an environment bag: the CGI-style key/value
mapping a hosting server describes the current call with (a WSGI
``environ`` is one).

=============================================================================
FROM ENVIRONMENT TO REQUEST
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   REQUEST_METHOD=POST          ──►  method  "POST"                  │
    │   HTTP_HOST=example.com:8080   ──►  uri     http://example.com:8080 │
    │   REQUEST_URI=/users?page=2           ...   /users?page=2           │
    │   QUERY_STRING=page=2                                                │
    │   HTTP_USER_AGENT=curl/8.0     ──►  header  User-Agent: curl/8.0    │
    │   CONTENT_TYPE=application/json ─►  header  Content-Type: ...       │
    │   CONTENT_LENGTH=17            ──►  header  Content-Length: 17      │
    │   HTTP_COOKIE=sid=abc          ──►  (skipped: cookies come in as    │
    │                                      cookie params)                 │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Header names: an ``HTTP_`` prefixed key becomes a dashed, title-cased
name (``HTTP_X_FORWARDED_PROTO`` → ``X-Forwarded-Proto``). CONTENT_TYPE,
CONTENT_LENGTH and CONTENT_MD5 appear without the prefix and are
special-cased.

=============================================================================
TWO-PHASE CONSTRUCTION
=============================================================================

The parameter bags are not part of the ServerRequest constructor. The
factory builds the base request first, then layers cookies, query and
body params on with the copy-producing setters:

    ServerRequest(server, files, uri, method, body, headers)
        .with_cookie_params(cookies)
        .with_query_params(query)
        .with_body_params(body)

Everything here is a pure function of its arguments. Reading a live
environment (parsing QUERY_STRING, the Cookie header, form bodies) is
done once, at the application boundary; see ``application.from_environ``.

=============================================================================
"""

from typing import Any, Dict, Mapping, Optional, Tuple
from urllib.parse import quote
import logging
import re

from .request import ServerRequest
from .stream import STDIN
from .uri import Uri


logger = logging.getLogger(__name__)


class RequestFactory:
    """
    Marshals environment bags into ServerRequest objects.

    All methods are static or class methods; the class is a namespace
    that subclasses can override piecemeal (e.g. a different
    ``marshal_request_uri`` for an unusual front-end server).
    """

    # Strips "scheme://authority" from absolute-form request URIs
    ABSOLUTE_URI_PREFIX = re.compile(r"^[^/:]+://[^/]+")

    # "[2001:db8::1]" as SERVER_NAME
    IPV6_HOST_PATTERN = re.compile(r"^\[[0-9a-fA-F:]+\]$")

    @classmethod
    def from_globals(
        cls,
        server: Optional[Mapping[str, Any]] = None,
        query: Optional[Mapping[str, Any]] = None,
        body: Optional[Mapping[str, Any]] = None,
        cookies: Optional[Mapping[str, Any]] = None,
        files: Optional[Mapping[str, Any]] = None,
        body_stream: Any = STDIN,
        trust_forwarded_proto: bool = True,
    ) -> ServerRequest:
        """
        Build a request from explicit environment bags.

        Args:
            server: Environment metadata (REQUEST_METHOD, HTTP_*, ...).
            query: Deserialized query string arguments.
            body: Deserialized body parameters.
            cookies: Cookie name → value.
            files: Uploaded file metadata.
            body_stream: Body source handed to ServerRequest.
            trust_forwarded_proto: Honor X-Forwarded-Proto when deriving
                                   the URI scheme.

        Returns:
            The fully constructed ServerRequest.

        Raises:
            InvalidArgumentError: If the environment describes an invalid
                method or URI.
        """
        server = cls.normalize_server(server or {})
        headers = cls.marshal_headers(server)
        uri = cls.marshal_uri_from_server(server, headers, trust_forwarded_proto)
        method = server.get("REQUEST_METHOD") or "GET"

        logger.debug(f"Marshalling request: {method} {uri}")

        request = ServerRequest(
            server,
            files or {},
            uri,
            method,
            body_stream,
            headers,
        )

        return (request
            .with_cookie_params(cookies or {})
            .with_query_params(query or {})
            .with_body_params(body or {}))

    # =========================================================================
    # SERVER PARAMS
    # =========================================================================

    @staticmethod
    def normalize_server(server: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Return a canonical copy of the environment bag.

        - ``HTTP_*`` and ``CONTENT_*`` keys are upper-cased.
        - When HTTP_AUTHORIZATION is missing, it is recovered from the
          ``REDIRECT_`` prefixed copies that rewrite rules leave behind.
        """
        normalized: Dict[str, Any] = {}
        for key, value in server.items():
            if isinstance(key, str) and key.upper().startswith(("HTTP_", "CONTENT_")):
                key = key.upper()
            normalized[key] = value

        if not normalized.get("HTTP_AUTHORIZATION"):
            for fallback in ("REDIRECT_HTTP_AUTHORIZATION", "REDIRECT_REDIRECT_HTTP_AUTHORIZATION"):
                if normalized.get(fallback):
                    normalized["HTTP_AUTHORIZATION"] = normalized[fallback]
                    break

        return normalized

    # =========================================================================
    # HEADERS
    # =========================================================================

    @staticmethod
    def marshal_headers(server: Mapping[str, Any]) -> Dict[str, str]:
        """
        Derive request headers from environment keys.

        Empty values are skipped, as is HTTP_COOKIE.
        """
        headers: Dict[str, str] = {}

        for key, value in server.items():
            if not isinstance(key, str) or value is None or value == "":
                continue

            if key == "HTTP_COOKIE":
                continue

            if key.startswith("HTTP_"):
                name = "-".join(part.capitalize() for part in key[5:].split("_"))
            elif key.startswith("CONTENT_"):
                suffix = key[8:]
                name = "Content-" + (suffix if suffix == "MD5" else suffix.capitalize())
            else:
                continue

            headers[name] = value if isinstance(value, str) else str(value)

        return headers

    @staticmethod
    def get_header(name: str, headers: Mapping[str, str], default: Optional[str] = None) -> Optional[str]:
        """Case-insensitive lookup in a marshalled header dict."""
        name = name.lower()
        for key, value in headers.items():
            if key.lower() == name:
                return value
        return default

    # =========================================================================
    # URI
    # =========================================================================

    @classmethod
    def marshal_uri_from_server(
        cls,
        server: Mapping[str, Any],
        headers: Mapping[str, str],
        trust_forwarded_proto: bool = True,
    ) -> Uri:
        """
        Reconstruct the request URI.

        Scheme: https when HTTPS is set (and not "off"), when the WSGI
        url scheme says so, or when a trusted X-Forwarded-Proto does.
        Host and port: Host header, else SERVER_NAME/SERVER_PORT.
        Path: see ``marshal_request_uri``. Query: QUERY_STRING.
        """
        scheme = "http"
        https = server.get("HTTPS")
        forwarded = cls.get_header("x-forwarded-proto", headers, "") or ""
        if https and str(https).lower() != "off":
            scheme = "https"
        elif server.get("wsgi.url_scheme") == "https":
            scheme = "https"
        elif trust_forwarded_proto and forwarded.lower() == "https":
            scheme = "https"

        host, port = cls.marshal_host_and_port(server, headers)

        path = cls.strip_query_string(cls.marshal_request_uri(server))
        path = path.split("#", 1)[0]

        query = str(server.get("QUERY_STRING") or "").lstrip("?")

        return Uri(
            scheme=scheme,
            host=host,
            port=port,
            path=path,
            query=query,
        )

    @classmethod
    def marshal_host_and_port(
        cls,
        server: Mapping[str, Any],
        headers: Mapping[str, str],
    ) -> Tuple[str, Optional[int]]:
        """Host and port from the Host header or SERVER_NAME/SERVER_PORT."""
        host_header = cls.get_header("host", headers)
        if host_header:
            return cls._split_host_port(host_header)

        server_name = server.get("SERVER_NAME")
        if not server_name:
            return "", None

        host = str(server_name)
        port = cls._parse_port(server.get("SERVER_PORT"))

        # IPv6 literal: take the address from SERVER_ADDR, which is
        # reported without brackets.
        if cls.IPV6_HOST_PATTERN.match(host) and server.get("SERVER_ADDR"):
            host = f"[{server['SERVER_ADDR']}]"

        return host, port

    @classmethod
    def _split_host_port(cls, value: str) -> Tuple[str, Optional[int]]:
        value = value.strip()
        if value.startswith("["):
            # [2001:db8::1]:8080
            end = value.find("]")
            if end == -1:
                return value, None
            host, rest = value[:end + 1], value[end + 1:]
            port = cls._parse_port(rest[1:]) if rest.startswith(":") else None
            return host, port

        if ":" in value:
            host, _, port = value.partition(":")
            return host, cls._parse_port(port)
        return value, None

    @staticmethod
    def _parse_port(value: Any) -> Optional[int]:
        if value is None:
            return None
        value = str(value).strip()
        if not value.isdigit():
            return None
        return int(value)

    @classmethod
    def marshal_request_uri(cls, server: Mapping[str, Any]) -> str:
        """
        Find the request path (possibly with query) the client asked for.

        =====================================================================
        LOOKUP ORDER
        =====================================================================

        1. UNENCODED_URL        IIS with URL Rewrite (IIS_WasUrlRewritten=1)
        2. HTTP_X_ORIGINAL_URL  IIS 7+ with ISAPI_Rewrite
        3. HTTP_X_REWRITE_URL   older IIS rewriters
        4. REQUEST_URI          Apache, nginx, most CGI servers
        5. SCRIPT_NAME + PATH_INFO   WSGI (PEP 3333)
        6. ORIG_PATH_INFO       PHP-style CGI under some servers
        7. "/"

        An absolute-form REQUEST_URI ("http://host/path") is reduced to
        its path.
        =====================================================================
        """
        unencoded_url = server.get("UNENCODED_URL", "")
        if str(server.get("IIS_WasUrlRewritten", "")) == "1" and unencoded_url:
            return unencoded_url

        request_uri = server.get("REQUEST_URI")

        if server.get("HTTP_X_REWRITE_URL") is not None:
            request_uri = server["HTTP_X_REWRITE_URL"]

        if server.get("HTTP_X_ORIGINAL_URL") is not None:
            request_uri = server["HTTP_X_ORIGINAL_URL"]

        if request_uri is not None:
            return cls.ABSOLUTE_URI_PREFIX.sub("", str(request_uri)) or "/"

        if "SCRIPT_NAME" in server or "PATH_INFO" in server:
            # WSGI decodes the path as latin-1; re-quote it like wsgiref does
            path = str(server.get("SCRIPT_NAME", "")) + str(server.get("PATH_INFO", ""))
            return quote(path, safe="/;=,", encoding="latin1") or "/"

        orig_path_info = server.get("ORIG_PATH_INFO")
        if not orig_path_info:
            return "/"
        return str(orig_path_info)

    @staticmethod
    def strip_query_string(path: str) -> str:
        """Drop everything from the first "?" on."""
        return path.split("?", 1)[0]


# =============================================================================
# CONVENIENCE FUNCTION
# =============================================================================

def from_globals(
    server: Optional[Mapping[str, Any]] = None,
    query: Optional[Mapping[str, Any]] = None,
    body: Optional[Mapping[str, Any]] = None,
    cookies: Optional[Mapping[str, Any]] = None,
    files: Optional[Mapping[str, Any]] = None,
    body_stream: Any = STDIN,
    trust_forwarded_proto: bool = True,
) -> ServerRequest:
    """Shorthand for ``RequestFactory.from_globals``."""
    return RequestFactory.from_globals(
        server,
        query,
        body,
        cookies,
        files,
        body_stream=body_stream,
        trust_forwarded_proto=trust_forwarded_proto,
    )
