"""
Unit tests for access logging hooks.
"""

import json
import logging
import re

import pytest

from listenkit import AccessLog, parse_body_param
from listenkit.http import ResponseWriter
from listenkit.middleware import RequestLog


ACCESS_LOGGER = "listenkit.access"


def serve(extender, business, request):
    writer = ResponseWriter()
    extender.extend_handler(business)(writer, request)
    return writer.to_response()


class TestAccessLog:
    """Tests for AccessLog."""

    def test_request_id_header(self, extender, make_request):
        """Test that every response carries a request id."""
        AccessLog().install(extender)

        response = serve(extender, lambda r: (1, 200, None), make_request())

        assert re.fullmatch(r"[0-9a-f]{8}", response.headers["X-Request-ID"])

    def test_request_id_disabled(self, extender, make_request):
        """Test that request ids can be turned off."""
        AccessLog(include_request_id=False).install(extender)

        response = serve(extender, lambda r: (1, 200, None), make_request())

        assert "X-Request-ID" not in response.headers

    def test_text_line(self, extender, make_request, caplog):
        """Test the text record."""
        AccessLog().install(extender)
        request = make_request(
            "GET", "/users",
            headers={"User-Agent": "pytest"},
            query_params={"id": ["7"]},
            client_address=("127.0.0.1", 4000),
        )

        with caplog.at_level(logging.INFO, logger=ACCESS_LOGGER):
            serve(extender, lambda r: (None, 404, None), request)

        records = [r for r in caplog.records if r.name == ACCESS_LOGGER]
        assert len(records) == 1
        line = records[0].getMessage()
        assert line.startswith("127.0.0.1 - [")
        assert '"GET /users?id=7" 404' in line
        assert '"pytest"' in line
        assert 'err="Not Found"' in line

    def test_json_record(self, extender, make_request, caplog):
        """Test the JSON record."""
        AccessLog(log_format="json").install(extender)

        with caplog.at_level(logging.INFO, logger=ACCESS_LOGGER):
            response = serve(extender, lambda r: ({"ok": True}, 200, None), make_request("POST", "/items"))

        entry = json.loads(caplog.records[-1].getMessage())
        assert entry["method"] == "POST"
        assert entry["path"] == "/items"
        assert entry["status_code"] == 200
        assert entry["error"] is None
        assert entry["duration_ms"] >= 0
        assert entry["request_id"] == response.headers["X-Request-ID"]
        assert "body" not in entry

    def test_skip_paths(self, extender, make_request, caplog):
        """Test that skipped paths produce no record."""
        AccessLog(skip_paths=["/health"]).install(extender)

        with caplog.at_level(logging.INFO, logger=ACCESS_LOGGER):
            serve(extender, lambda r: ("up", 200, None), make_request(path="/health"))

        assert [r for r in caplog.records if r.name == ACCESS_LOGGER] == []

    def test_log_body(self, extender, make_request, caplog):
        """Test that the body is still readable after the handler parsed it."""
        AccessLog(log_format="json", log_body=True).install(extender)

        with caplog.at_level(logging.INFO, logger=ACCESS_LOGGER):
            serve(
                extender,
                lambda r: (parse_body_param(r), 200, None),
                make_request("POST", body=b'{"name": "Ada"}'),
            )

        entry = json.loads(caplog.records[-1].getMessage())
        assert entry["body"] == '{"name": "Ada"}'

    def test_log_body_truncated(self, extender, make_request, caplog):
        """Test that long bodies are cut."""
        AccessLog(log_format="json", log_body=True, max_body_length=4).install(extender)

        with caplog.at_level(logging.INFO, logger=ACCESS_LOGGER):
            serve(extender, lambda r: (1, 200, None), make_request("POST", body=b"abcdefgh"))

        assert json.loads(caplog.records[-1].getMessage())["body"] == "abcd..."

    def test_invalid_format(self):
        """Test that unknown formats are rejected."""
        with pytest.raises(ValueError):
            AccessLog(log_format="xml")


class TestRequestLog:
    """Tests for RequestLog formatting."""

    def _entry(self, **overrides):
        values = dict(
            request_id="abcd1234",
            method="GET",
            path="/",
            client_ip="",
            user_agent="",
            status_code=200,
            duration_ms=1.23456,
            error=None,
            timestamp="19/Oct/2026:10:00:00 +0000",
        )
        values.update(overrides)
        return RequestLog(**values)

    def test_to_dict_rounds_duration(self):
        """Test that the duration is rounded."""
        assert self._entry().to_dict()["duration_ms"] == 1.23

    def test_to_text_placeholders(self):
        """Test dashes for missing client and user agent."""
        line = self._entry().to_text()

        assert line == '- - [19/Oct/2026:10:00:00 +0000] "GET /" 200 1.23ms "-" rid=abcd1234'
