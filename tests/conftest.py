"""
pytest configuration and fixtures.
"""

import io
from typing import Any, Callable, Dict, List, Optional, Tuple
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from httpmessage import AppConfig, Application
from httpmessage.http import ServerRequest


def make_environ(
    method: str = "GET",
    path: str = "/",
    query: str = "",
    body: bytes = b"",
    headers: Optional[Dict[str, str]] = None,
    **extra: Any,
) -> Dict[str, Any]:
    """Build a minimal PEP 3333 environ."""
    environ: Dict[str, Any] = {
        "REQUEST_METHOD": method,
        "SCRIPT_NAME": "",
        "PATH_INFO": path,
        "QUERY_STRING": query,
        "SERVER_NAME": "localhost",
        "SERVER_PORT": "8080",
        "SERVER_PROTOCOL": "HTTP/1.1",
        "REMOTE_ADDR": "127.0.0.1",
        "wsgi.version": (1, 0),
        "wsgi.url_scheme": "http",
        "wsgi.input": io.BytesIO(body),
        "wsgi.errors": sys.stderr,
        "wsgi.multithread": False,
        "wsgi.multiprocess": False,
        "wsgi.run_once": False,
    }
    if body:
        environ["CONTENT_LENGTH"] = str(len(body))
    for name, value in (headers or {}).items():
        key = name.upper().replace("-", "_")
        if key not in ("CONTENT_TYPE", "CONTENT_LENGTH"):
            key = "HTTP_" + key
        environ[key] = value
    environ.update(extra)
    return environ


class StartResponse:
    """Records what the application passed to start_response."""

    def __init__(self):
        self.status: Optional[str] = None
        self.headers: List[Tuple[str, str]] = []

    def __call__(self, status: str, headers: List[Tuple[str, str]], exc_info=None):
        self.status = status
        self.headers = headers

    def header(self, name: str) -> Optional[str]:
        for key, value in self.headers:
            if key.lower() == name.lower():
                return value
        return None


@pytest.fixture
def environ_factory() -> Callable[..., Dict[str, Any]]:
    """Factory for WSGI environ dicts."""
    return make_environ


@pytest.fixture
def sample_server() -> Dict[str, str]:
    """CGI-style environment for a JSON POST."""
    return {
        "REQUEST_METHOD": "POST",
        "HTTP_HOST": "example.com",
        "REQUEST_URI": "/api/users?page=2",
        "QUERY_STRING": "page=2",
        "CONTENT_TYPE": "application/json",
        "CONTENT_LENGTH": "17",
        "HTTP_USER_AGENT": "pytest",
        "HTTP_ACCEPT": "application/json",
    }


@pytest.fixture
def request_() -> ServerRequest:
    """A plain GET request with an empty in-memory body."""
    return ServerRequest(
        server_params={"REQUEST_METHOD": "GET"},
        uri="http://example.com/users?page=1",
        method="GET",
        body=io.BytesIO(b""),
        headers={"User-Agent": "TestBot/1.0", "Accept": "text/plain"},
    )


@pytest.fixture
def app() -> Application:
    """Application with quiet logging and a fixed config."""
    return Application(AppConfig(log_level="WARNING"))


@pytest.fixture
def start_response() -> StartResponse:
    return StartResponse()
