"""
Unit tests for the immutable response.
"""

import io

import pytest

from httpmessage.http.errors import InvalidArgumentError
from httpmessage.http.response import Response
from httpmessage.http.status_codes import HTTPStatus, is_valid_status, reason_phrase
from httpmessage.http.stream import Stream


class TestResponseCreation:
    """Tests for Response construction."""

    def test_defaults(self):
        """Test a bare response."""
        response = Response()

        assert response.get_status_code() == 200
        assert response.get_reason_phrase() == "OK"
        assert response.get_headers() == {}
        assert response.get_protocol_version() == "1.1"
        assert response.get_body().is_writable()

    def test_custom_status_and_headers(self):
        """Test construction with status and headers."""
        response = Response(status=201, headers={"Location": "/users/1"})

        assert response.get_status_code() == 201
        assert response.get_reason_phrase() == "Created"
        assert response.get_header_line("location") == "/users/1"

    def test_explicit_reason_phrase(self):
        """Test that an explicit phrase overrides the registry."""
        response = Response(status=200, reason_phrase="Fine")
        assert response.status_line == "200 Fine"

    def test_file_body_is_opened_read_only(self, tmp_path):
        """Test that a path body is served without truncating the file."""
        path = tmp_path / "page.html"
        path.write_bytes(b"<h1>hi</h1>")

        response = Response(str(path))

        assert bytes(response.get_body()) == b"<h1>hi</h1>"
        assert path.read_bytes() == b"<h1>hi</h1>"
        response.get_body().close()

    @pytest.mark.parametrize("status", [99, 600, 0, -1, "200", 200.0, True, None])
    def test_invalid_status(self, status):
        """Test that out-of-range and non-integer codes are rejected."""
        with pytest.raises(InvalidArgumentError):
            Response(status=status)

    def test_invalid_body(self):
        """Test that an unknown body source is rejected."""
        with pytest.raises(InvalidArgumentError):
            Response(body=12345)


class TestWithStatus:
    """Tests for status changes."""

    def test_with_status_is_a_copy(self):
        """Test that with_status leaves the original alone."""
        response = Response()
        changed = response.with_status(404)

        assert changed.get_status_code() == 404
        assert changed.get_reason_phrase() == "Not Found"
        assert response.get_status_code() == 200

    def test_with_status_and_reason(self):
        """Test a custom reason phrase."""
        response = Response().with_status(418, "Short and stout")
        assert response.status_line == "418 Short and stout"

    def test_with_status_resets_reason(self):
        """Test that a new status drops an earlier custom phrase."""
        response = Response(reason_phrase="Custom").with_status(404)
        assert response.get_reason_phrase() == "Not Found"

    def test_unregistered_code(self):
        """Test that unregistered codes have an empty phrase."""
        assert Response().with_status(599).get_reason_phrase() == ""

    def test_invalid(self):
        """Test that with_status validates."""
        with pytest.raises(InvalidArgumentError):
            Response().with_status(700)
        with pytest.raises(InvalidArgumentError):
            Response().with_status(200, reason=5)


class TestSerialization:
    """Tests for wire output."""

    def test_header_items(self):
        """Test one pair per header value."""
        response = (Response()
            .with_header("Content-Type", "text/plain")
            .with_added_header("Set-Cookie", "a=1")
            .with_added_header("Set-Cookie", "b=2"))

        assert response.header_items() == [
            ("Content-Type", "text/plain"),
            ("Set-Cookie", "a=1"),
            ("Set-Cookie", "b=2"),
        ]

    def test_to_bytes(self):
        """Test a full HTTP/1.1 response."""
        response = Response(status=404).with_header("Content-Type", "text/plain")
        response.get_body().write("Not here")

        assert response.to_bytes() == (
            b"HTTP/1.1 404 Not Found\r\n"
            b"Content-Type: text/plain\r\n"
            b"\r\n"
            b"Not here"
        )

    def test_body_shared_with_copies(self):
        """Test that derived responses keep using the same stream."""
        response = Response()
        changed = response.with_header("X-A", "1")
        changed.get_body().write(b"data")

        assert changed.get_body() is response.get_body()

    def test_with_body(self):
        """Test replacing the body."""
        body = Stream(io.BytesIO(b"replacement"))
        response = Response().with_body(body)

        assert bytes(response.get_body()) == b"replacement"


class TestStatusCodes:
    """Tests for the status registry."""

    def test_enum_members(self):
        """Test that members behave as ints with phrases."""
        assert HTTPStatus.NOT_FOUND == 404
        assert HTTPStatus.NOT_FOUND.phrase == "Not Found"
        assert HTTPStatus(500) is HTTPStatus.INTERNAL_SERVER_ERROR

    def test_reason_phrase(self):
        """Test phrase lookup."""
        assert reason_phrase(405) == "Method Not Allowed"
        assert reason_phrase(299) == ""

    @pytest.mark.parametrize("code, valid", [
        (100, True), (599, True), (99, False), (600, False), (True, False), ("200", False),
    ])
    def test_is_valid_status(self, code, valid):
        """Test status validation bounds."""
        assert is_valid_status(code) is valid


class TestWireSafety:
    """Tests that everything accepted can be written as ISO-8859-1."""

    @pytest.mark.parametrize("value", ["snow ☃", ["ok", "€"]])
    def test_non_latin1_header_values_rejected(self, value):
        """Test that header values must encode as ISO-8859-1."""
        with pytest.raises(InvalidArgumentError):
            Response().with_header("X-Text", value)

    def test_latin1_header_name(self):
        """Test that latin-1 header names serialize."""
        response = Response().with_header("X-über", "x")
        assert b"X-\xfcber: x\r\n" in response.to_bytes()

    def test_non_latin1_header_name_rejected(self):
        """Test header names that cannot be encoded."""
        with pytest.raises(InvalidArgumentError):
            Response().with_header("X-☃", "1")

    def test_constructor_drops_unencodable_headers(self):
        """Test that lenient construction drops values it could not send."""
        response = Response(headers={"X-Ok": "café", "X-Bad": "☃", "X-☃": "name"})

        assert response.get_headers() == {"X-Ok": ["café"]}
        assert b"X-Ok: caf\xe9\r\n" in response.to_bytes()

    @pytest.mark.parametrize("reason", ["Fine ☃", "Two\r\nLines"])
    def test_invalid_reason_phrase(self, reason):
        """Test that reason phrases must fit on the status line."""
        with pytest.raises(InvalidArgumentError):
            Response().with_status(200, reason)
        with pytest.raises(InvalidArgumentError):
            Response(reason_phrase=reason)
