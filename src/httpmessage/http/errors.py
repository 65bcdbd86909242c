"""
=============================================================================
MESSAGE ERRORS
=============================================================================

A single error kind covers every validation failure in the message model:

    ┌──────────────────────────────┬──────────────────────────────────────┐
    │ Raised by                    │ When                                 │
    ├──────────────────────────────┼──────────────────────────────────────┤
    │ ServerRequest(...)           │ bad URI type, bad method, bad body   │
    │ ServerRequest.with_method()  │ method not in the allowed set        │
    │ Message.with_header()        │ header name/value not strings        │
    │ Response.with_status()       │ status code outside 100-599          │
    │ create_stream() / Stream()   │ body source of an unknown type       │
    │ Uri(...)                     │ unsupported scheme, invalid port     │
    └──────────────────────────────┴──────────────────────────────────────┘

Errors are raised synchronously at the point of construction or mutation.
A message is either fully valid or it is never returned.

=============================================================================
"""


class InvalidArgumentError(ValueError):
    """
    Raised when a value handed to the message model is invalid.

    Subclasses ValueError so callers that already guard against bad
    input with ``except ValueError`` keep working.

    The optional ``status_code`` is the HTTP status a hosting layer
    should answer with when the error escapes request construction.
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class StreamError(RuntimeError):
    """
    Raised when a stream operation is not possible in its current state.

    Examples: seeking a read-once input, writing to a read-only
    stream, reading after the stream has been closed or detached.
    """
