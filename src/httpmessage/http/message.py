"""
=============================================================================
IMMUTABLE HTTP MESSAGE
=============================================================================

Capabilities shared by requests and responses: protocol version,
headers and body.

=============================================================================
COPY-ON-WRITE
=============================================================================

A message never changes after construction. Every ``with_*`` method
clones the message, replaces exactly one field on the clone, and returns
the clone:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   a = ServerRequest(method="GET")                                   │
    │   b = a.with_header("Accept", "text/plain")                         │
    │                                                                      │
    │        a                              b                              │
    │   ┌──────────────┐   _clone()    ┌──────────────┐                   │
    │   │ headers: {}  │ ────────────► │ headers:     │                   │
    │   │ body: s1     │               │  Accept: ... │                   │
    │   └──────────────┘               │ body: s1     │                   │
    │     (untouched)                  └──────────────┘                   │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Owned maps (headers here, parameter bags in ServerRequest) are copied on
clone, and getters hand out copies, so no caller can reach into the
internal state of a message.

The body stream is the exception: a stream cannot be duplicated without
consuming it, so a clone refers to the same stream object. The most
recently derived message owns it; see ``with_body``.

=============================================================================
HEADER CASE
=============================================================================

Header names are case-insensitive. The casing of the name as it was
first set is kept for output:

    m = m.with_header("X-Foo", "bar")
    m.get_header("x-foo")   → ["bar"]
    m.get_headers()         → {"X-Foo": ["bar"]}

=============================================================================
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Union
import copy
import re

from .errors import InvalidArgumentError
from .stream import StreamInterface


HeaderValue = Union[str, Iterable[str]]

PROTOCOL_VERSION_PATTERN = re.compile(r"^\d(?:\.\d)?$")


def is_latin1(text: str) -> bool:
    """Check that ``text`` survives the ISO-8859-1 encoding used on the wire."""
    try:
        text.encode("latin-1")
    except UnicodeEncodeError:
        return False
    return True


class Message:
    """
    Base class for immutable HTTP messages.

    Subclasses that own additional mutable state extend ``_clone`` to
    copy it.
    """

    def __init__(
        self,
        body: StreamInterface,
        headers: Optional[Mapping[str, HeaderValue]] = None,
        protocol_version: str = "1.1",
    ):
        self._stream = body
        self._protocol_version = protocol_version
        self._headers: Dict[str, List[str]] = {}
        self._header_names: Dict[str, str] = {}

        for name, value in (headers or {}).items():
            # Lenient: entries that are not valid headers are dropped.
            try:
                self._validate_header_name(name)
                values = self._filter_header_value(value)
            except InvalidArgumentError:
                continue
            # Same name in another casing: merge under the first spelling
            original = self._header_names.get(name.lower())
            if original is not None:
                self._headers[original].extend(values)
            else:
                self._set_header(name, values)

    def _clone(self) -> "Message":
        """Shallow copy with fresh header containers."""
        new = copy.copy(self)
        new._headers = {name: list(values) for name, values in self._headers.items()}
        new._header_names = dict(self._header_names)
        return new

    # =========================================================================
    # PROTOCOL VERSION
    # =========================================================================

    def get_protocol_version(self) -> str:
        return self._protocol_version

    def with_protocol_version(self, version: str) -> "Message":
        if not isinstance(version, str) or not PROTOCOL_VERSION_PATTERN.match(version):
            raise InvalidArgumentError(
                f"Invalid HTTP protocol version {version!r}; expected e.g. '1.1' or '2'"
            )
        new = self._clone()
        new._protocol_version = version
        return new

    # =========================================================================
    # HEADERS
    # =========================================================================

    def get_headers(self) -> Dict[str, List[str]]:
        """All headers, keyed by their original name."""
        return {name: list(values) for name, values in self._headers.items()}

    def has_header(self, name: str) -> bool:
        return name.lower() in self._header_names

    def get_header(self, name: str) -> List[str]:
        """
        All values of a header (case-insensitive lookup).

        Returns an empty list when the header is not present.
        """
        original = self._header_names.get(name.lower())
        if original is None:
            return []
        return list(self._headers[original])

    def get_header_line(self, name: str) -> str:
        """
        Values of a header joined with a comma, as they would appear on
        the wire. Empty string when the header is not present.
        """
        return ", ".join(self.get_header(name))

    def with_header(self, name: str, value: HeaderValue) -> "Message":
        """Replace every value of ``name`` with ``value``."""
        self._validate_header_name(name)
        values = self._filter_header_value(value)

        new = self._clone()
        new._remove_header(name)
        new._set_header(name, values)
        return new

    def with_added_header(self, name: str, value: HeaderValue) -> "Message":
        """Append ``value`` to the existing values of ``name``."""
        self._validate_header_name(name)
        values = self._filter_header_value(value)

        if not self.has_header(name):
            return self.with_header(name, values)

        new = self._clone()
        original = new._header_names[name.lower()]
        new._headers[original].extend(values)
        return new

    def without_header(self, name: str) -> "Message":
        new = self._clone()
        new._remove_header(name)
        return new

    def _set_header(self, name: str, values: List[str]) -> None:
        self._header_names[name.lower()] = name
        self._headers[name] = values

    def _remove_header(self, name: str) -> None:
        original = self._header_names.pop(name.lower(), None)
        if original is not None:
            del self._headers[original]

    @staticmethod
    def _validate_header_name(name: Any) -> None:
        if not isinstance(name, str) or not name:
            raise InvalidArgumentError(
                f"Header name must be a non-empty string; received {name!r}"
            )
        if any(ch in name for ch in ":\r\n ") or not is_latin1(name):
            raise InvalidArgumentError(f'Invalid header name "{name}"')

    @staticmethod
    def _filter_header_value(value: Any) -> List[str]:
        if isinstance(value, str):
            values = [value]
        elif isinstance(value, (list, tuple)):
            values = list(value)
        else:
            raise InvalidArgumentError(
                "Header value must be a string or a list of strings; "
                f"received {type(value).__name__}"
            )

        for item in values:
            if not isinstance(item, str):
                raise InvalidArgumentError(
                    f"Header values must be strings; received {type(item).__name__}"
                )
            # CR/LF would start a new header line
            if "\r" in item or "\n" in item:
                raise InvalidArgumentError("Header values must not contain CR or LF")
            if not is_latin1(item):
                raise InvalidArgumentError(
                    f"Header value {item!r} cannot be encoded as ISO-8859-1"
                )
        return values

    # =========================================================================
    # BODY
    # =========================================================================

    def get_body(self) -> StreamInterface:
        return self._stream

    def with_body(self, body: StreamInterface) -> "Message":
        """
        Return a copy that owns ``body``.

        The receiver keeps its previous stream. Callers should treat the
        stream they hand in as moved: keep using it through the returned
        message only.
        """
        if not isinstance(body, StreamInterface):
            raise InvalidArgumentError(
                f"Body must be a StreamInterface instance; received {type(body).__name__}"
            )
        new = self._clone()
        new._stream = body
        return new
