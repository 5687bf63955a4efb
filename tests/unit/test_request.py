"""
Unit tests for the request object.
"""

import io

from listenkit.http import HTTPRequest


class TestHTTPRequest:
    """Tests for HTTPRequest class."""

    def test_method_uppercased(self):
        """Test that the method is normalized."""
        assert HTTPRequest(method="post").method == "POST"

    def test_case_insensitive_headers(self):
        """Test header lookups in any case."""
        request = HTTPRequest(method="GET", headers={"Content-Encoding": "gzip"})

        assert request.get_header("content-encoding") == "gzip"
        assert request.get_header("CONTENT-ENCODING") == "gzip"
        assert request.headers == {"content-encoding": "gzip"}

    def test_get_header_default(self):
        """Test default value for missing headers."""
        request = HTTPRequest(method="GET")

        assert request.get_header("X-Missing") == ""
        assert request.get_header("X-Missing", "default") == "default"

    def test_get_query(self):
        """Test query parameter access."""
        request = HTTPRequest(method="GET", query_params={"id": ["7", "8"]})

        assert request.get_query("id") == "7"
        assert request.get_query("missing") is None
        assert request.get_query("missing", "x") == "x"

    def test_url(self):
        """Test path plus reassembled query string."""
        assert HTTPRequest(method="GET", path="/users").url == "/users"
        request = HTTPRequest(method="GET", path="/users", query_params={"id": ["7"]})
        assert request.url == "/users?id=7"

    def test_content_type(self):
        """Test that parameters are stripped from the content type."""
        request = HTTPRequest(
            method="POST",
            headers={"Content-Type": "application/JSON; charset=utf-8"},
        )
        assert request.content_type == "application/json"
        assert HTTPRequest(method="GET").content_type is None

    def test_content_length(self):
        """Test Content-Length parsing."""
        assert HTTPRequest(method="POST", headers={"Content-Length": "12"}).content_length == 12
        assert HTTPRequest(method="POST", headers={"Content-Length": "abc"}).content_length == 0
        assert HTTPRequest(method="POST").content_length == 0


class TestReplayableBody:
    """Tests for read_body() and replace_body()."""

    def test_default_stream_empty(self):
        """Test that a request without a stream has an empty body."""
        assert HTTPRequest(method="GET").read_body() == b""

    def test_read_consumes(self):
        """Test that reading drains the stream."""
        request = HTTPRequest.with_body("POST", "/", b"payload")

        assert request.read_body() == b"payload"
        assert request.read_body() == b""

    def test_replace_body(self):
        """Test that replace_body() makes the body readable again."""
        request = HTTPRequest.with_body("POST", "/", b"payload")
        data = request.read_body()
        request.replace_body(data)

        assert request.read_body() == b"payload"

    def test_custom_stream(self):
        """Test that any binary stream can back the body."""
        request = HTTPRequest(method="POST", stream=io.BytesIO(b"abc"))

        assert request.read_body() == b"abc"
