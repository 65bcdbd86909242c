"""
=============================================================================
SERVER REQUEST
=============================================================================

The inbound side of the message model: an immutable request as seen by
the application, built once per call from the hosting server's
environment.

=============================================================================
WHAT A SERVER REQUEST CARRIES
=============================================================================

    ┌──────────────────┬──────────────────────────────┬─────────────────┐
    │ Field            │ Typical source               │ Mutator         │
    ├──────────────────┼──────────────────────────────┼─────────────────┤
    │ method           │ REQUEST_METHOD               │ with_method     │
    │ uri              │ Host + REQUEST_URI + query   │ with_uri        │
    │ headers          │ HTTP_* / CONTENT_* keys      │ with_header ... │
    │ body             │ input channel                │ with_body       │
    │ server_params    │ WSGI environ / CGI env       │ (none)          │
    │ file_params      │ uploaded file metadata       │ (none)          │
    │ cookie_params    │ Cookie header                │ with_cookie_... │
    │ query_params     │ QUERY_STRING                 │ with_query_...  │
    │ body_params      │ form body / decoded payload  │ with_body_...   │
    │ attributes       │ derived (route match, ...)   │ with_attribute  │
    └──────────────────┴──────────────────────────────┴─────────────────┘

Server and file params are request provenance: they are fixed when the
request is built and have no mutator.

Every map a request owns is copied all the way down, on the way in and
on the way out, so nested lists and dicts are never shared between a
request, its clones and their callers. Values that cannot be copied
(open files, sockets) and the server's own ``wsgi.*`` handles are
shared as they are.

=============================================================================
QUERY PARAMS AND THE URI ARE NOT SYNCHRONIZED
=============================================================================

``with_query_params`` does not touch ``uri.query`` and ``with_uri`` does
not touch the query params. The two are allowed to disagree; code that
needs the original query string should read it from the URI or from
``QUERY_STRING`` in the server params.

=============================================================================
"""

from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Union
import copy

from .errors import InvalidArgumentError
from .message import HeaderValue, Message
from .stream import STDIN, create_stream
from .uri import Uri


VALID_METHODS = frozenset({
    "CONNECT",
    "DELETE",
    "GET",
    "HEAD",
    "OPTIONS",
    "POST",
    "PUT",
    "TRACE",
})


def validate_method(method: Any) -> None:
    """
    Validate an HTTP method.

    ``None`` is accepted (the request then reads back as GET). Any other
    value must be a string naming one of VALID_METHODS, in any case.

    Raises:
        InvalidArgumentError: On a non-string or unsupported method.
    """
    if method is None:
        return

    if not isinstance(method, str):
        raise InvalidArgumentError(
            f"Unsupported HTTP method; must be a string, received {type(method).__name__}",
            status_code=405,
        )

    if method.upper() not in VALID_METHODS:
        raise InvalidArgumentError(
            f'Unsupported HTTP method "{method.upper()}" provided',
            status_code=405,
        )


# Server-owned handles (wsgi.input, wsgi.errors, ...) are shared, never copied
SHARED_SERVER_PREFIXES = ("wsgi.",)


def copy_value(value: Any) -> Any:
    """
    Deep copy of ``value``.

    Objects that cannot be copied (open files, locks, sockets) are
    returned as they are.
    """
    try:
        return copy.deepcopy(value)
    except (TypeError, copy.Error):
        return value


def copy_map(values: Mapping[str, Any], shared_prefixes: Iterable[str] = ()) -> Dict[str, Any]:
    """Copy a map entry by entry, keeping entries under ``shared_prefixes`` as they are."""
    prefixes = tuple(shared_prefixes)
    return {
        key: value if isinstance(key, str) and key.startswith(prefixes) else copy_value(value)
        for key, value in values.items()
    }


class ServerRequest(Message):
    """
    Immutable server-side HTTP request.

    Args:
        server_params: Server/environment metadata (e.g. the WSGI environ).
        file_params:   Uploaded file metadata.
        uri:           Request URI as a string or Uri, if any.
        method:        HTTP method, if any. Stored uppercased.
        body:          STDIN (default), a string identifier, a file-like
                       handle, or a StreamInterface.
        headers:       Header name → value or list of values.

    Raises:
        InvalidArgumentError: For an invalid body source, URI or method.

    Example:
        request = ServerRequest(uri="http://example.com/", method="post")
        request.get_method()                  # "POST"
        request = request.with_attribute("user_id", 42)
    """

    def __init__(
        self,
        server_params: Optional[Mapping[str, Any]] = None,
        file_params: Optional[Mapping[str, Any]] = None,
        uri: Union[None, str, Uri] = None,
        method: Optional[str] = None,
        body: Any = STDIN,
        headers: Optional[Mapping[str, HeaderValue]] = None,
    ):
        stream = create_stream(body)

        if uri is not None and not isinstance(uri, (str, Uri)):
            raise InvalidArgumentError(
                "Invalid URI provided; must be None, a string, or a Uri instance"
            )

        validate_method(method)

        if isinstance(uri, str):
            uri = Uri.parse(uri)

        super().__init__(stream, headers)

        self._method = method.upper() if method else method
        self._uri: Optional[Uri] = uri
        self._request_target: Optional[str] = None

        # Provenance: copied once, never replaced after construction.
        self._server_params = copy_map(server_params or {}, SHARED_SERVER_PREFIXES)
        self._file_params = copy_map(file_params or {})

        self._attributes: Dict[str, Any] = {}
        self._cookie_params: Dict[str, Any] = {}
        self._query_params: Dict[str, Any] = {}
        self._body_params: Dict[str, Any] = {}

    def _clone(self) -> "ServerRequest":
        new = super()._clone()
        new._attributes = copy_map(self._attributes)
        new._cookie_params = copy.deepcopy(self._cookie_params)
        new._query_params = copy.deepcopy(self._query_params)
        new._body_params = copy.deepcopy(self._body_params)
        return new

    # =========================================================================
    # METHOD
    # =========================================================================

    def get_method(self) -> str:
        """
        The request method; never empty.

        Returns "GET" when no method was given.
        """
        if not self._method:
            return "GET"
        return self._method

    def with_method(self, method: str) -> "ServerRequest":
        """
        Return a copy with a different method.

        The method is uppercased before it is validated, so "post" and
        "POST" are equivalent.
        """
        if method is None:
            raise InvalidArgumentError("with_method() requires a method name", status_code=405)
        validate_method(method)
        new = self._clone()
        new._method = method.upper()
        return new

    # =========================================================================
    # URI AND REQUEST TARGET
    # =========================================================================

    def get_uri(self) -> Optional[Uri]:
        return self._uri

    def with_uri(self, uri: Uri) -> "ServerRequest":
        if not isinstance(uri, Uri):
            raise InvalidArgumentError(
                f"with_uri() expects a Uri instance; received {type(uri).__name__}"
            )
        new = self._clone()
        new._uri = uri
        return new

    def get_request_target(self) -> str:
        """
        The request target as it appears on the request line.

        An explicit target set with ``with_request_target`` wins;
        otherwise it is the URI's path plus query, or "/".
        """
        if self._request_target is not None:
            return self._request_target
        if self._uri is None:
            return "/"

        target = self._uri.path or "/"
        if self._uri.query:
            target += f"?{self._uri.query}"
        return target

    def with_request_target(self, target: str) -> "ServerRequest":
        if not isinstance(target, str) or any(ch.isspace() for ch in target):
            raise InvalidArgumentError("Invalid request target; cannot contain whitespace")
        new = self._clone()
        new._request_target = target
        return new

    # =========================================================================
    # PROVENANCE (read-only)
    # =========================================================================

    def get_server_params(self) -> Mapping[str, Any]:
        """
        Server/environment metadata the request was built from.

        A read-only view over a fresh copy; ``wsgi.*`` handles are the
        server's own objects.
        """
        return MappingProxyType(copy_map(self._server_params, SHARED_SERVER_PREFIXES))

    def get_file_params(self) -> Mapping[str, Any]:
        """Uploaded file metadata, as supplied at construction."""
        return MappingProxyType(copy_map(self._file_params))

    # =========================================================================
    # PARAMETER BAGS
    # =========================================================================

    def get_cookie_params(self) -> Dict[str, Any]:
        return copy.deepcopy(self._cookie_params)

    def with_cookie_params(self, cookies: Mapping[str, Any]) -> "ServerRequest":
        new = self._clone()
        new._cookie_params = copy.deepcopy(dict(cookies))
        return new

    def get_query_params(self) -> Dict[str, Any]:
        """
        Deserialized query string arguments.

        These may not match the URI's query; see the module docs.
        """
        return copy.deepcopy(self._query_params)

    def with_query_params(self, query: Mapping[str, Any]) -> "ServerRequest":
        """Return a copy with new query params. The URI is left as it is."""
        new = self._clone()
        new._query_params = copy.deepcopy(dict(query))
        return new

    def get_body_params(self) -> Dict[str, Any]:
        return copy.deepcopy(self._body_params)

    def with_body_params(self, params: Mapping[str, Any]) -> "ServerRequest":
        """
        Return a copy with new body params.

        Use it to inject parameters decoded from the body, e.g. after
        content negotiation found a JSON payload.
        """
        new = self._clone()
        new._body_params = copy.deepcopy(dict(params))
        return new

    # =========================================================================
    # ATTRIBUTES
    # =========================================================================

    def get_attributes(self) -> Dict[str, Any]:
        """Attributes derived from the request (route match results etc.)."""
        return copy_map(self._attributes)

    def get_attribute(self, name: str, default: Any = None) -> Any:
        if name not in self._attributes:
            return default
        return copy_value(self._attributes[name])

    def with_attribute(self, name: str, value: Any) -> "ServerRequest":
        new = self._clone()
        new._attributes[name] = copy_value(value)
        return new

    def without_attribute(self, name: str) -> "ServerRequest":
        """
        Return a copy without the attribute ``name``.

        When the attribute is not set, the request itself is returned
        (``request.without_attribute("missing") is request``).
        """
        if name not in self._attributes:
            return self
        new = self._clone()
        del new._attributes[name]
        return new

    def __repr__(self) -> str:
        return f"ServerRequest({self.get_method()} {self._uri or '/'})"
