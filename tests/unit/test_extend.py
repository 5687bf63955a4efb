"""
Unit tests for the extend wrapper.
"""

import gzip
import json
import math

import pytest

from listenkit import (
    BodyDecodeError,
    ConfigError,
    Extender,
    ExtendConfig,
    HandlerError,
    RawBytes,
    extend_handler,
    gzip_handler,
    parse_body_param,
)
from listenkit.http import ResponseWriter


def gunzip_json(body):
    return json.loads(gzip.decompress(body))


def run(handler, request):
    """Call a (writer, request) handler and return the finished response."""
    writer = ResponseWriter()
    handler(writer, request)
    return writer.to_response()


class TestEnvelopeOutput:
    """Tests for what the client receives."""

    def test_success(self, extender, make_request):
        """Test the success envelope, headers and status."""
        handler = extender.extend_handler(lambda r: ({"x": 1}, 200, None))
        response = run(handler, make_request())

        assert response.status == 200
        assert response.body == b'{"data":{"x":1},"errno":0}'
        assert response.headers["Content-Type"] == "application/json"
        assert response.headers["Content-Length"] == str(len(response.body))

    def test_error_with_ok_status(self, extender, make_request):
        """Test that an error with status 200 is sent as 400."""
        handler = extender.extend_handler(lambda r: (None, 200, ValueError("bad")))
        response = run(handler, make_request())

        assert response.status == 400
        assert response.body == b'{"errno":400,"errmsg":"bad"}'

    def test_status_without_error(self, extender, make_request):
        """Test that the reason phrase is used as the message."""
        handler = extender.extend_handler(lambda r: (None, 404, None))
        response = run(handler, make_request())

        assert response.status == 404
        assert response.body == b'{"errno":404,"errmsg":"Not Found"}'

    def test_raw_bytes(self, extender, make_request):
        """Test that RawBytes are written without an envelope."""
        handler = extender.extend_handler(lambda r: (RawBytes(b"hello"), 200, None))
        response = run(handler, make_request())

        assert response.status == 200
        assert response.body == b"hello"
        assert response.headers["Content-Length"] == "5"

    def test_unserializable_payload(self, extender, make_request):
        """Test that an encoding failure becomes a plain 500."""
        calls = []
        extender.add_end_hook(lambda w, r, result: calls.append(result))

        handler = extender.extend_handler(lambda r: ({"v": math.nan}, 200, None))
        response = run(handler, make_request())

        assert response.status == 500
        assert response.body
        assert b"errno" not in response.body
        assert "Content-Type" not in response.headers
        assert calls == []

    def test_handler_error_raised(self, extender, make_request):
        """Test that a raised HandlerError becomes the error envelope."""
        def handler(request):
            raise HandlerError("gone", status_code=410)

        response = run(extender.extend_handler(handler), make_request())

        assert response.status == 410
        assert json.loads(response.body) == {"errno": 410, "errmsg": "gone"}

    def test_other_exceptions_propagate(self, extender, make_request):
        """Test that unexpected exceptions are not swallowed."""
        def handler(request):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            run(extender.extend_handler(handler), make_request())

    def test_body_decode_error(self, extender, make_request):
        """Test that a bad JSON body gives a 400 envelope."""
        @extender.extend
        def create(request):
            return parse_body_param(request), 200, None

        response = run(create, make_request("POST", body=b"{not json"))
        body = json.loads(response.body)

        assert response.status == 400
        assert body["errno"] == 400
        assert body["errmsg"].startswith("invalid JSON body")

    def test_decorator_keeps_name(self, extender):
        """Test that @extender.extend keeps the function name."""
        @extender.extend
        def get_users(request):
            return [], 200, None

        assert get_users.__name__ == "get_users"

    def test_module_level_extend_handler(self, make_request):
        """Test the standalone extend_handler()."""
        handler = extend_handler(lambda r: ("ok", 200, None))
        response = run(handler, make_request())

        assert response.body == b'{"data":"ok","errno":0}'


class TestFieldNames:
    """Tests for renaming the envelope keys."""

    def test_rename_fields(self, extender, make_request):
        """Test that renamed keys are used."""
        extender.set_data_field_name("result")
        extender.set_code_field_name("code")
        extender.set_message_field_name("msg")

        ok = run(extender.extend_handler(lambda r: (1, 200, None)), make_request())
        bad = run(extender.extend_handler(lambda r: (None, 403, None)), make_request())

        assert ok.body == b'{"result":1,"code":0}'
        assert bad.body == b'{"code":403,"msg":"Forbidden"}'

    def test_collision_rejected(self, extender):
        """Test that a colliding name is rejected and nothing changes."""
        before = extender.field_names

        with pytest.raises(ConfigError):
            extender.set_data_field_name("errno")

        assert extender.field_names == before

    def test_empty_rejected(self, extender):
        """Test that an empty name is rejected."""
        with pytest.raises(ConfigError):
            extender.set_message_field_name("")

        assert extender.field_names.message == "errmsg"

    def test_config_names(self, make_request):
        """Test that names from ExtendConfig are used."""
        extender = Extender(ExtendConfig(data_field="payload"))
        response = run(extender.extend_handler(lambda r: (1, 200, None)), make_request())

        assert response.body == b'{"payload":1,"errno":0}'

    def test_invalid_config_rejected(self):
        """Test that Extender validates its config."""
        with pytest.raises(ConfigError):
            Extender(ExtendConfig(code_field="errmsg"))

    def test_extenders_are_independent(self):
        """Test that renaming on one Extender does not affect another."""
        first, second = Extender(), Extender()
        first.set_data_field_name("result")

        assert second.field_names.data == "data"


class TestCORS:
    """Tests for CORS headers and preflight handling."""

    def test_disabled_by_default(self, extender, make_request):
        """Test that no CORS headers are added by default."""
        handler = extender.extend_handler(lambda r: (1, 200, None))
        response = run(handler, make_request(headers={"Origin": "https://a.example"}))

        assert "Access-Control-Allow-Origin" not in response.headers

    def test_origin_echoed(self, cors_extender, make_request):
        """Test that the request Origin is echoed back."""
        handler = cors_extender.extend_handler(lambda r: (1, 200, None))
        response = run(handler, make_request(headers={"Origin": "https://a.example"}))

        assert response.headers["Access-Control-Allow-Origin"] == "https://a.example"
        assert response.headers["Access-Control-Allow-Credentials"] == "true"

    def test_no_origin_wildcard(self, cors_extender, make_request):
        """Test that a request without Origin gets "*"."""
        handler = cors_extender.extend_handler(lambda r: (1, 200, None))
        response = run(handler, make_request())

        assert response.headers["Access-Control-Allow-Origin"] == "*"

    def test_preflight(self, cors_extender, make_request):
        """Test that OPTIONS is answered without calling the handler."""
        called = []
        ended = []
        cors_extender.add_end_hook(lambda w, r, result: ended.append(result))

        def handler(request):
            called.append(request)
            return 1, 200, None

        request = make_request("OPTIONS", headers={
            "Origin": "https://a.example",
            "Access-Control-Request-Method": "PUT",
            "Access-Control-Request-Headers": "X-Token",
        })
        response = run(cors_extender.extend_handler(handler), request)

        assert response.status == 200
        assert response.body == b""
        assert response.headers["Access-Control-Allow-Methods"] == "PUT"
        assert response.headers["Access-Control-Allow-Headers"] == "X-Token"
        assert called == []
        assert ended == []

    def test_options_short_circuit_without_cors(self, extender, make_request):
        """Test that OPTIONS is answered 200 even with CORS off."""
        handler = extender.extend_handler(lambda r: (None, 500, None))
        response = run(handler, make_request("OPTIONS"))

        assert response.status == 200
        assert response.body == b""
        assert "Access-Control-Allow-Origin" not in response.headers

    def test_enable_at_runtime(self, extender, make_request):
        """Test that enable_cors() affects already wrapped handlers."""
        handler = extender.extend_handler(lambda r: (1, 200, None))
        extender.enable_cors()

        response = run(handler, make_request())

        assert extender.cors_enabled
        assert response.headers["Access-Control-Allow-Origin"] == "*"


class TestWithGzip:
    """Tests for the extend wrapper behind the compression middleware."""

    def test_no_content_length(self, extender, make_request):
        """Test that Content-Length is left off for compressed output."""
        handler = gzip_handler(extender.extend_handler(lambda r: ({"x": 1}, 200, None)))
        response = run(handler, make_request(headers={"Accept-Encoding": "gzip"}))

        assert response.status == 200
        assert "Content-Length" not in response.headers
        assert response.headers["Content-Encoding"] == "gzip"
        assert response.headers["Content-Type"] == "application/json"
        assert gunzip_json(response.body) == {"data": {"x": 1}, "errno": 0}

    def test_error_status_kept(self, extender, make_request):
        """Test that error statuses survive compression."""
        handler = gzip_handler(extender.extend_handler(lambda r: (None, 404, None)))
        response = run(handler, make_request(headers={"Accept-Encoding": "gzip"}))

        assert response.status == 404
        assert gunzip_json(response.body) == {"errno": 404, "errmsg": "Not Found"}

    def test_gzip_request_body(self, extender, make_request):
        """Test that a gzip request body reaches the handler decompressed."""
        @extender.extend
        def echo(request):
            return parse_body_param(request), 200, None

        request = make_request(
            "POST",
            body=gzip.compress(b'{"name": "Ada"}'),
            headers={"Content-Encoding": "gzip"},
        )
        response = run(gzip_handler(echo), request)

        assert response.body == b'{"data":{"name":"Ada"},"errno":0}'

    def test_body_decode_error_type(self, make_request):
        """Test that the raised error really is a BodyDecodeError."""
        seen = []
        extender = Extender()
        extender.add_end_hook(lambda w, r, result: seen.append(result.error))

        handler = extender.extend_handler(lambda r: (parse_body_param(r), 200, None))
        run(handler, make_request("POST", body=b"[1,"))

        assert isinstance(seen[0], BodyDecodeError)
