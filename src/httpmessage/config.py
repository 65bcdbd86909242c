"""
=============================================================================
APPLICATION CONFIGURATION
=============================================================================

Settings for the WSGI application that hosts the message model.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Code                                                            │
    │      └── Application(AppConfig(log_level="DEBUG"))                  │
    │                                                                      │
    │   2. Environment variables                                           │
    │      └── HTTPMESSAGE_LOG_LEVEL=DEBUG gunicorn app:application       │
    │                                                                      │
    │   3. Default values (in this dataclass)                              │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from dataclasses import dataclass
import os


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("text", "json")

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _parse_bool(value: str, name: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean (true/false), got {value!r}")


@dataclass
class AppConfig:
    """
    Application configuration.

    =========================================================================
    SETTINGS
    =========================================================================

    log_level              Level for the ``httpmessage`` loggers.
    log_format             Access log format: "text" or "json".
    trust_forwarded_proto  Honor X-Forwarded-Proto when rebuilding the
                           request URI. Disable when not behind a proxy
                           that sets it.
    server_name            Value of the Server header added to responses
                           that have none. Empty string disables it.
    chunk_size             Bytes per chunk when streaming a response body
                           back to the WSGI server.

    =========================================================================
    """

    log_level: str = "INFO"
    log_format: str = "text"
    trust_forwarded_proto: bool = True
    server_name: str = "httpmessage/1.0"
    chunk_size: int = 8192

    @classmethod
    def from_env(cls) -> "AppConfig":
        """
        Create configuration from environment variables.

        HTTPMESSAGE_LOG_LEVEL              (default: INFO)
        HTTPMESSAGE_LOG_FORMAT             (default: text)
        HTTPMESSAGE_TRUST_FORWARDED_PROTO  (default: true)
        HTTPMESSAGE_SERVER_NAME            (default: httpmessage/1.0)
        HTTPMESSAGE_CHUNK_SIZE             (default: 8192)

        Raises:
            ValueError: If a variable cannot be parsed.
        """
        return cls(
            log_level=os.getenv("HTTPMESSAGE_LOG_LEVEL", "INFO").upper(),
            log_format=os.getenv("HTTPMESSAGE_LOG_FORMAT", "text").lower(),
            trust_forwarded_proto=_parse_bool(
                os.getenv("HTTPMESSAGE_TRUST_FORWARDED_PROTO", "true"),
                "HTTPMESSAGE_TRUST_FORWARDED_PROTO",
            ),
            server_name=os.getenv("HTTPMESSAGE_SERVER_NAME", "httpmessage/1.0"),
            chunk_size=int(os.getenv("HTTPMESSAGE_CHUNK_SIZE", "8192")),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Called when the application is created, so a bad setting fails
        at startup rather than on the first request.
        """
        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Invalid log_level: {self.log_level}. Must be one of {LOG_LEVELS}.")

        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"Invalid log_format: {self.log_format}. Must be one of {LOG_FORMATS}.")

        if self.chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")
