"""
=============================================================================
HANDLERS MODULE
=============================================================================

Request handlers: plain functions taking a ServerRequest and returning
a Response.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    REQUEST → HANDLER → RESPONSE                     │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    ServerRequest            Handler                Response          │
    │   ┌─────────────┐        ┌─────────┐          ┌─────────────┐       │
    │   │ GET /       │        │         │          │ 200 OK      │       │
    │   │ User-Agent: │ ─────▶ │ index() │ ───────▶ │ text/plain  │       │
    │   │  TestBot/1.0│        │         │          │ Howdy, ...  │       │
    │   └─────────────┘        └─────────┘          └─────────────┘       │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .default import index

__all__ = [
    "index",
]
