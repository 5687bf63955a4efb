"""
=============================================================================
WSGI ADAPTER
=============================================================================

Runs a listenkit handler under any WSGI server (gunicorn, uWSGI,
waitress, wsgiref, ...):

    from listenkit import Extender, gzip_handler, to_wsgi

    extender = Extender()

    @extender.extend
    def hello(request):
        return {"hello": "world"}, 200, None

    application = to_wsgi(gzip_handler(hello))

=============================================================================
ENVIRON → HTTPRequest
=============================================================================

    REQUEST_METHOD            → method
    PATH_INFO                 → path
    QUERY_STRING              → query_params
    SERVER_PROTOCOL           → version
    HTTP_ACCEPT_ENCODING      → headers["accept-encoding"]
    CONTENT_TYPE/CONTENT_LENGTH → headers["content-type"/"content-length"]
    wsgi.input                → stream (read once, buffered in a BytesIO)
    REMOTE_ADDR/REMOTE_PORT   → client_address

The body is buffered up front: WSGI input streams are not replayable and
must not be read past CONTENT_LENGTH.

=============================================================================
"""

from typing import Any, Callable, Dict, Iterable, List
from urllib.parse import parse_qs
import io

from .http import HandlerFunc
from .http.request import HTTPRequest
from .http.response import ResponseWriter


StartResponse = Callable[..., Any]


def _read_input(environ: Dict[str, Any]) -> bytes:
    stream = environ.get("wsgi.input")
    if stream is None:
        return b""

    try:
        length = int(environ.get("CONTENT_LENGTH") or 0)
    except ValueError:
        length = 0

    if length > 0:
        return stream.read(length)
    return b""


def request_from_environ(environ: Dict[str, Any]) -> HTTPRequest:
    """
    Build an HTTPRequest from a WSGI environ.

    Header names are recovered from HTTP_* keys ("HTTP_ACCEPT_ENCODING"
    → "accept-encoding"); CONTENT_TYPE and CONTENT_LENGTH are added as
    headers too, since WSGI strips their HTTP_ prefix.
    """
    headers: Dict[str, str] = {}
    for key, value in environ.items():
        if key.startswith("HTTP_"):
            headers[key[5:].replace("_", "-").lower()] = value
    if environ.get("CONTENT_TYPE"):
        headers["content-type"] = environ["CONTENT_TYPE"]
    if environ.get("CONTENT_LENGTH"):
        headers["content-length"] = environ["CONTENT_LENGTH"]

    try:
        port = int(environ.get("REMOTE_PORT") or 0)
    except ValueError:
        port = 0

    return HTTPRequest(
        method=environ.get("REQUEST_METHOD", "GET"),
        path=environ.get("PATH_INFO", "") or "/",
        version=environ.get("SERVER_PROTOCOL", "HTTP/1.1"),
        headers=headers,
        query_params=parse_qs(environ.get("QUERY_STRING", ""), keep_blank_values=True),
        client_address=(environ.get("REMOTE_ADDR", ""), port),
        stream=io.BytesIO(_read_input(environ)),
    )


class WSGIAdapter:
    """
    A WSGI application wrapping one listenkit handler.

    Each call gets a fresh ResponseWriter. When the handler returns, the
    buffered response is handed to start_response in one piece.
    """

    def __init__(self, handler: HandlerFunc):
        self.handler = handler

    def __call__(self, environ: Dict[str, Any], start_response: StartResponse) -> Iterable[bytes]:
        request = request_from_environ(environ)
        writer = ResponseWriter()

        self.handler(writer, request)

        response = writer.to_response()
        start_response(response.status_line, response.header_items())
        body: List[bytes] = [response.body] if response.body else []
        return body


def to_wsgi(handler: HandlerFunc) -> WSGIAdapter:
    """Shorthand for WSGIAdapter(handler)."""
    return WSGIAdapter(handler)
