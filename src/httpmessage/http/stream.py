"""
=============================================================================
MESSAGE BODY STREAMS
=============================================================================

Every message owns its body as a stream: a sequential byte-access handle
over an in-memory buffer, an open file, or the request's input channel.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      WHAT create_stream() ACCEPTS                   │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   STDIN ("stdin://")      ──►  InputStream (read-once, cached)      │
    │   MEMORY ("memory://")    ──►  Stream over io.BytesIO               │
    │   "/path/to/file"         ──►  Stream, file opened on first use     │
    │   open file / BytesIO     ──►  Stream wrapping the handle           │
    │   StreamInterface         ──►  passed through unchanged             │
    │   anything else           ──►  InvalidArgumentError                 │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
WHY A DEDICATED INPUT STREAM?
=============================================================================

The request body arrives on a channel that can only be read once and
cannot seek (CGI stdin, WSGI ``wsgi.input``). Opening it like a file
would let the first reader consume the body for everyone else.

InputStream caches every byte it reads, so the body is still available
in full after a form parser or a handler has consumed it:

    stream = InputStream(environ["wsgi.input"], content_length=13)
    stream.read(5)        # b"name="   (5 bytes from the channel)
    stream.get_contents() # b"John+Doe"  (the remaining 8 bytes)
    bytes(stream)         # b"name=John+Doe" (served from the cache)

=============================================================================
"""

from abc import ABC, abstractmethod
from typing import Any, BinaryIO, Dict, Optional, Union
import io
import os
import sys

from .errors import InvalidArgumentError, StreamError


STDIN = "stdin://"
"""Identifier for the request's input channel."""

MEMORY = "memory://"
"""Identifier for a fresh, writable in-memory buffer."""


def is_resource(value: Any) -> bool:
    """Check whether ``value`` is a raw, file-like handle."""
    if isinstance(value, io.IOBase):
        return True
    return callable(getattr(value, "read", None)) or callable(getattr(value, "write", None))


class StreamInterface(ABC):
    """
    Contract shared by every message body.

    All reads and writes are in bytes. ``str(stream)`` returns the
    whole body decoded as UTF-8.
    """

    @abstractmethod
    def read(self, length: int = -1) -> bytes:
        """Read up to ``length`` bytes (everything left when negative)."""

    @abstractmethod
    def write(self, data: Union[str, bytes]) -> int:
        """Write data, returning the number of bytes written."""

    @abstractmethod
    def seek(self, offset: int, whence: int = os.SEEK_SET) -> None:
        """Move the read/write position."""

    @abstractmethod
    def tell(self) -> int:
        """Current read/write position."""

    @abstractmethod
    def eof(self) -> bool:
        """True once the end of the stream has been reached."""

    @abstractmethod
    def is_readable(self) -> bool: ...

    @abstractmethod
    def is_writable(self) -> bool: ...

    @abstractmethod
    def is_seekable(self) -> bool: ...

    @abstractmethod
    def get_size(self) -> Optional[int]:
        """Size in bytes, or None when unknown."""

    @abstractmethod
    def get_contents(self) -> bytes:
        """Remaining contents from the current position."""

    @abstractmethod
    def get_metadata(self, key: Optional[str] = None) -> Any:
        """All metadata as a dict, or a single entry when ``key`` is given."""

    @abstractmethod
    def close(self) -> None:
        """Release the underlying resource."""

    @abstractmethod
    def detach(self) -> Optional[Any]:
        """Hand the underlying resource to the caller; the stream becomes unusable."""

    @abstractmethod
    def __bytes__(self) -> bytes: ...

    def rewind(self) -> None:
        """Seek back to the beginning."""
        self.seek(0)

    def __str__(self) -> str:
        return bytes(self).decode("utf-8", errors="replace")


class Stream(StreamInterface):
    """
    Body stream over a file-like handle.

    Args:
        source: A string identifier (file path or MEMORY) or an already
                open file-like handle.
        mode:   Open mode used for identifiers; always binary.

    Identifiers are opened lazily, on the first operation that needs
    the handle.
    """

    def __init__(self, source: Union[str, BinaryIO], mode: str = "rb"):
        if isinstance(source, str):
            self._identifier: Optional[str] = source
            self._resource: Optional[Any] = None
        elif is_resource(source):
            self._identifier = getattr(source, "name", None)
            if not isinstance(self._identifier, str):
                self._identifier = None
            self._resource = source
        else:
            raise InvalidArgumentError(
                "Invalid stream provided; must be a string stream identifier "
                f"or a file-like handle, received {type(source).__name__}"
            )

        if "b" not in mode:
            mode += "b"
        self._mode = getattr(self._resource, "mode", mode) if self._resource is not None else mode
        self._detached = False
        self._eof = False

    def _handle(self) -> Any:
        if self._detached:
            raise StreamError("Stream is detached or closed")
        if self._resource is None:
            if self._identifier == MEMORY:
                self._resource = io.BytesIO()
                self._mode = "wb+"
            else:
                self._resource = open(self._identifier, self._mode)
        return self._resource

    # =========================================================================
    # CAPABILITIES
    # =========================================================================

    def is_readable(self) -> bool:
        if self._detached:
            return False
        if self._resource is not None and hasattr(self._resource, "readable"):
            return self._resource.readable()
        mode = "wb+" if self._identifier == MEMORY else str(self._mode)
        return "r" in mode or "+" in mode

    def is_writable(self) -> bool:
        if self._detached:
            return False
        if self._resource is not None and hasattr(self._resource, "writable"):
            return self._resource.writable()
        mode = "wb+" if self._identifier == MEMORY else str(self._mode)
        return any(flag in mode for flag in "wax+")

    def is_seekable(self) -> bool:
        if self._detached:
            return False
        handle = self._handle()
        seekable = getattr(handle, "seekable", None)
        return bool(seekable()) if callable(seekable) else False

    # =========================================================================
    # POSITIONING
    # =========================================================================

    def tell(self) -> int:
        return self._handle().tell()

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> None:
        if not self.is_seekable():
            raise StreamError("Stream is not seekable")
        self._handle().seek(offset, whence)
        self._eof = False

    def eof(self) -> bool:
        if self._detached:
            return True
        if self.is_seekable():
            size = self.get_size()
            return size is not None and self.tell() >= size
        return self._eof

    def get_size(self) -> Optional[int]:
        if self._detached:
            return None
        handle = self._handle()
        if isinstance(handle, io.BytesIO):
            return handle.getbuffer().nbytes
        try:
            handle.flush()
            return os.fstat(handle.fileno()).st_size
        except (AttributeError, OSError, io.UnsupportedOperation):
            pass
        if self.is_seekable():
            position = handle.tell()
            size = handle.seek(0, os.SEEK_END)
            handle.seek(position)
            return size
        return None

    # =========================================================================
    # READ / WRITE
    # =========================================================================

    def read(self, length: int = -1) -> bytes:
        if not self.is_readable():
            raise StreamError("Stream is not readable")
        data = self._handle().read(length)
        if length < 0 or not data or len(data) < length:
            self._eof = True
        return data

    def write(self, data: Union[str, bytes]) -> int:
        if not self.is_writable():
            raise StreamError("Stream is not writable")
        if isinstance(data, str):
            data = data.encode("utf-8")
        return self._handle().write(data)

    def get_contents(self) -> bytes:
        return self.read()

    def get_metadata(self, key: Optional[str] = None) -> Any:
        metadata: Dict[str, Any] = {
            "uri": self._identifier,
            "mode": self._mode,
            "seekable": self.is_seekable() if not self._detached else False,
            "detached": self._detached,
        }
        if key is None:
            return metadata
        return metadata.get(key)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def close(self) -> None:
        resource = self.detach()
        if resource is not None:
            resource.close()

    def detach(self) -> Optional[Any]:
        resource = self._resource
        self._resource = None
        self._detached = True
        return resource

    def __bytes__(self) -> bytes:
        if not self.is_readable():
            return b""
        if self.is_seekable():
            self.rewind()
        return self.read()

    def __repr__(self) -> str:
        return f"Stream({self._identifier or self._resource!r}, mode={self._mode!r})"


class InputStream(StreamInterface):
    """
    Read-once request body with a replay cache.

    Args:
        handle: The input channel. Defaults to the process's standard
                input, resolved on first read.
        content_length: Number of bytes the channel carries, when known.
                        Reads never go past it (WSGI servers are not
                        required to signal EOF on ``wsgi.input``).
    """

    def __init__(self, handle: Optional[BinaryIO] = None, content_length: Optional[int] = None):
        self._handle = handle
        self._content_length = content_length
        self._cache = bytearray()
        self._position = 0
        self._reached_eof = content_length == 0
        self._detached = False

    def _channel(self) -> BinaryIO:
        if self._detached:
            raise StreamError("Stream is detached or closed")
        if self._handle is None:
            self._handle = sys.stdin.buffer
        return self._handle

    def _pull(self, length: int) -> bytes:
        """Read from the channel into the cache."""
        if self._reached_eof:
            return b""

        if self._content_length is not None:
            remaining = self._content_length - len(self._cache)
            length = remaining if length < 0 else min(length, remaining)

        data = self._channel().read(length) if length != 0 else b""
        self._cache.extend(data)

        if length < 0 or not data or len(data) < length:
            self._reached_eof = True
        elif self._content_length is not None and len(self._cache) >= self._content_length:
            self._reached_eof = True
        return data

    def read(self, length: int = -1) -> bytes:
        buffered = len(self._cache) - self._position
        if length < 0:
            self._pull(-1)
        elif buffered < length:
            self._pull(length - buffered)

        end = len(self._cache) if length < 0 else min(len(self._cache), self._position + length)
        data = bytes(self._cache[self._position:end])
        self._position = end
        return data

    def write(self, data: Union[str, bytes]) -> int:
        raise StreamError("Input stream is read-only")

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> None:
        raise StreamError("Input stream is not seekable")

    def tell(self) -> int:
        return self._position

    def eof(self) -> bool:
        return self._reached_eof and self._position >= len(self._cache)

    def is_readable(self) -> bool:
        return not self._detached

    def is_writable(self) -> bool:
        return False

    def is_seekable(self) -> bool:
        return False

    def get_size(self) -> Optional[int]:
        if self._content_length is not None:
            return self._content_length
        if self._reached_eof:
            return len(self._cache)
        return None

    def get_contents(self) -> bytes:
        return self.read()

    def get_metadata(self, key: Optional[str] = None) -> Any:
        metadata = {
            "uri": STDIN,
            "mode": "rb",
            "seekable": False,
            "content_length": self._content_length,
            "cached": len(self._cache),
        }
        if key is None:
            return metadata
        return metadata.get(key)

    def close(self) -> None:
        # The hosting server owns the channel; only drop the reference.
        self.detach()

    def detach(self) -> Optional[BinaryIO]:
        handle = self._handle
        self._handle = None
        self._detached = True
        return handle

    def __bytes__(self) -> bytes:
        """The full body, draining the channel into the cache first."""
        if not self._detached:
            self._pull(-1)
        return bytes(self._cache)

    def __repr__(self) -> str:
        return f"InputStream(cached={len(self._cache)}, eof={self._reached_eof})"


def create_stream(value: Any, mode: str = "rb") -> StreamInterface:
    """
    Turn a body source into a stream.

    Raises:
        InvalidArgumentError: If ``value`` is not a string identifier,
            a file-like handle, or a StreamInterface.
    """
    if isinstance(value, StreamInterface):
        return value
    if isinstance(value, str) and value == STDIN:
        return InputStream()
    if isinstance(value, str) or is_resource(value):
        return Stream(value, mode)
    raise InvalidArgumentError(
        "Stream must be a string stream resource identifier, "
        "an actual stream resource, "
        f"or a StreamInterface implementation; received {type(value).__name__}"
    )
