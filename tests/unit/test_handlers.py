"""
Unit tests for request handlers and middleware.
"""

import io
import logging

import pytest

from httpmessage.handlers import index
from httpmessage.http import Response, ServerRequest
from httpmessage.middleware import LoggingMiddleware, Middleware, MiddlewarePipeline, RequestLog


def make_request(method="GET", user_agent=None):
    headers = {"User-Agent": user_agent} if user_agent else {}
    return ServerRequest(
        server_params={"REMOTE_ADDR": "10.0.0.1"},
        uri="http://example.com/",
        method=method,
        body=io.BytesIO(),
        headers=headers,
    )


class TestIndexHandler:
    """Tests for the default greeting handler."""

    @pytest.mark.parametrize("method", ["GET", "POST", "PUT", "DELETE"])
    def test_greeting_names_method(self, method):
        """Test that the greeting names the request method."""
        response = index(make_request(method, "TestBot/1.0"))

        assert response.get_status_code() == 200
        assert response.get_header_line("Content-Type") == "text/plain"
        assert str(response.get_body()) == f"Howdy, we received an {method} from TestBot/1.0"

    def test_missing_user_agent(self):
        """Test that a missing User-Agent leaves the slot empty."""
        response = index(make_request())
        assert str(response.get_body()) == "Howdy, we received an GET from "

    def test_request_is_untouched(self):
        """Test that handling does not change the request."""
        request = make_request("POST", "x")
        index(request)

        assert request.get_method() == "POST"
        assert request.get_attributes() == {}


class Tag(Middleware):
    """Appends its label to X-Trace on the way out."""

    def __init__(self, label):
        self.label = label

    def __call__(self, request, next):
        request = request.with_attribute("seen", request.get_attribute("seen", ()) + (self.label,))
        response = next(request)
        return response.with_added_header("X-Trace", self.label)


class TestMiddlewarePipeline:
    """Tests for composing middleware."""

    def test_order(self):
        """Test that the first middleware added is the outermost."""
        seen = {}

        def handler(request):
            seen["order"] = request.get_attribute("seen")
            return Response()

        pipeline = MiddlewarePipeline().add(Tag("outer")).add(Tag("inner"))
        response = pipeline.wrap(handler)(make_request())

        assert seen["order"] == ("outer", "inner")
        assert response.get_header("X-Trace") == ["inner", "outer"]
        assert len(pipeline) == 2
        assert [m.label for m in pipeline] == ["outer", "inner"]

    def test_empty_pipeline(self):
        """Test that an empty pipeline returns the handler itself."""
        assert MiddlewarePipeline().wrap(index) is index

    def test_name(self):
        assert Tag("x").name == "Tag"


class TestLoggingMiddleware:
    """Tests for the access log middleware."""

    def test_request_id(self):
        """Test that the request id reaches the handler and the response."""
        seen = {}

        def handler(request):
            seen["id"] = request.get_attribute("request_id")
            return Response()

        response = LoggingMiddleware()(make_request(), handler)

        assert response.get_header_line("X-Request-ID") == seen["id"]

    def test_request_id_header_disabled(self):
        """Test that the header can be turned off."""
        response = LoggingMiddleware(include_request_id=False)(make_request(), lambda r: Response())
        assert not response.has_header("X-Request-ID")

    def test_skip_paths(self, caplog):
        """Test that skipped paths are not logged."""
        middleware = LoggingMiddleware(skip_paths=["/"])

        with caplog.at_level(logging.INFO, logger="httpmessage.access"):
            middleware(make_request(), lambda r: Response())

        assert not [r for r in caplog.records if r.name == "httpmessage.access"]

    def test_client_ip(self, caplog):
        """Test that the client address comes from the server params."""
        with caplog.at_level(logging.INFO, logger="httpmessage.access"):
            LoggingMiddleware()(make_request(), lambda r: Response(status=204))

        line = [r.getMessage() for r in caplog.records if r.name == "httpmessage.access"][0]
        assert line.startswith("10.0.0.1 - - [")
        assert '"GET /" 204' in line

    def test_error_is_logged_and_raised(self, caplog):
        """Test that handler errors are logged and propagate."""

        def handler(request):
            raise KeyError("missing")

        with caplog.at_level(logging.ERROR, logger="httpmessage.access"):
            with pytest.raises(KeyError):
                LoggingMiddleware()(make_request(), handler)

        assert any("Request failed: GET /" in r.getMessage() for r in caplog.records)

    def test_request_log_formats(self):
        """Test RequestLog serialization."""
        entry = RequestLog(
            request_id="abcd1234",
            method="GET",
            path="/",
            query="",
            client_ip="127.0.0.1",
            user_agent="-",
            status_code=200,
            content_length=None,
            duration_ms=1.23456,
            timestamp="19/Oct/2026:10:00:00 +0000",
        )

        assert entry.to_dict()["duration_ms"] == 1.23
        assert entry.to_text() == '127.0.0.1 - - [19/Oct/2026:10:00:00 +0000] "GET /" 200 - 1.23ms'
