"""
=============================================================================
RESPONSE
=============================================================================

The outbound side of the message model: status code, reason phrase,
headers and a body stream the hosting server reads to completion.

    response = Response()                          # 200, empty memory body
    response = (response
        .with_status(201)
        .with_header("Content-Type", "application/json"))
    response.get_body().write('{"id": 1}')

A fresh Response owns a writable in-memory body. Writing to it is the
one operation that changes what a response carries without going
through a ``with_*`` method: the stream is a resource, not a field.

=============================================================================
SERIALIZATION
=============================================================================

    status_line       "200 OK"                  (WSGI start_response form)
    header_items()    [("Content-Type", "text/plain"), ...]
    to_bytes()        b"HTTP/1.1 200 OK\\r\\nContent-Type: ...\\r\\n\\r\\n..."

Multi-valued headers are emitted as repeated header lines.

=============================================================================
"""

from typing import Any, List, Mapping, Optional, Tuple

from .errors import InvalidArgumentError
from .message import HeaderValue, Message, is_latin1
from .status_codes import is_valid_status, reason_phrase
from .stream import MEMORY, create_stream


class Response(Message):
    """
    Immutable HTTP response.

    Args:
        body:    MEMORY (default), a string identifier, a file-like handle,
                 or a StreamInterface. File paths are opened read-only.
        status:  Status code, 100-599.
        headers: Header name → value or list of values.
        reason_phrase: Overrides the phrase derived from ``status``.

    Raises:
        InvalidArgumentError: For an invalid body source or status code.
    """

    def __init__(
        self,
        body: Any = MEMORY,
        status: int = 200,
        headers: Optional[Mapping[str, HeaderValue]] = None,
        reason_phrase: Optional[str] = None,
    ):
        stream = create_stream(body)
        self._validate_status(status)
        self._validate_reason_phrase(reason_phrase)

        super().__init__(stream, headers)

        self._status_code = int(status)
        self._reason_phrase = reason_phrase

    # =========================================================================
    # STATUS
    # =========================================================================

    def get_status_code(self) -> int:
        return self._status_code

    def get_reason_phrase(self) -> str:
        """
        The reason phrase; derived from the status code when none was set.

        Unregistered codes without an explicit phrase return "".
        """
        if self._reason_phrase:
            return self._reason_phrase
        return reason_phrase(self._status_code)

    def with_status(self, code: int, reason: Optional[str] = None) -> "Response":
        """
        Return a copy with a new status code and, optionally, phrase.

        Raises:
            InvalidArgumentError: If ``code`` is not an integer in 100-599,
                or ``reason`` is not a single line of ISO-8859-1 text.
        """
        self._validate_status(code)
        self._validate_reason_phrase(reason)

        new = self._clone()
        new._status_code = int(code)
        new._reason_phrase = reason
        return new

    @staticmethod
    def _validate_status(code: Any) -> None:
        if not is_valid_status(code):
            raise InvalidArgumentError(
                f"Invalid status code {code!r}; must be an integer between 100 and 599, inclusive"
            )

    @staticmethod
    def _validate_reason_phrase(reason: Any) -> None:
        if reason is None:
            return
        if not isinstance(reason, str):
            raise InvalidArgumentError("Reason phrase must be a string")
        if "\r" in reason or "\n" in reason or not is_latin1(reason):
            raise InvalidArgumentError(
                f"Invalid reason phrase {reason!r}; must be one line of ISO-8859-1 text"
            )

    # =========================================================================
    # SERIALIZATION
    # =========================================================================

    @property
    def status_line(self) -> str:
        """``"<code> <phrase>"``, the form WSGI's start_response expects."""
        return f"{self._status_code} {self.get_reason_phrase()}"

    def header_items(self) -> List[Tuple[str, str]]:
        """Headers as (name, value) pairs, one pair per value."""
        return [
            (name, value)
            for name, values in self._headers.items()
            for value in values
        ]

    def to_bytes(self) -> bytes:
        """
        Serialize as an HTTP/1.x response.

        Reads the whole body; the stream is rewound first when it can be.
        """
        lines = [f"HTTP/{self._protocol_version} {self.status_line}"]
        lines.extend(f"{name}: {value}" for name, value in self.header_items())
        lines.append("")
        head = "\r\n".join(lines).encode("latin-1") + b"\r\n"
        return head + bytes(self._stream)

    def __repr__(self) -> str:
        return f"Response({self.status_line!r})"
