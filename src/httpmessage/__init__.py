"""
=============================================================================
HTTPMESSAGE
=============================================================================

Immutable HTTP request/response messages for WSGI applications.

A hosting server hands over a mutable environment bag (the WSGI environ);
this package reshapes it into an immutable ServerRequest, passes it to a
handler, and serializes the Response the handler returns.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   WSGI server                                                        │
    │       │  environ                                                     │
    │       ▼                                                              │
    │   Application ── from_environ() ──► RequestFactory ──► ServerRequest │
    │       │                                                    │         │
    │       │                              LoggingMiddleware ◄───┘         │
    │       │                                     │                        │
    │       │                                     ▼                        │
    │       │                              handlers.index()                │
    │       │                                     │                        │
    │       ◄──────────── Response ◄──────────────┘                        │
    │       │                                                              │
    │       ▼  status line, headers, body chunks                           │
    │   WSGI server                                                        │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
QUICK START
=============================================================================

    from httpmessage import create_app

    application = create_app()     # any WSGI server can host this

    # or work with messages directly
    import io
    from httpmessage.http import ServerRequest

    request = ServerRequest(uri="http://example.com/", method="get", body=io.BytesIO())
    request.get_method()                            # "GET"
    request.with_method("POST").get_method()        # "POST"
    request.get_method()                            # still "GET"

=============================================================================
"""

__version__ = "1.0.0"

from .application import Application, create_app, from_environ
from .config import AppConfig

__all__ = ["Application", "AppConfig", "create_app", "from_environ", "__version__"]
