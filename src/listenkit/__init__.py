"""
=============================================================================
LISTENKIT
=============================================================================

Server-side glue for HTTP handlers:

    1. GZIP       transparent request decompression and response
                  compression (CompressionMiddleware)

    2. ENVELOPE   business handlers return (payload, status, error); the
                  client always gets {"data": ..., "errno": 0} or
                  {"errno": <status>, "errmsg": "..."} (Extender)

    3. HOOKS      begin/end callbacks around every request for logging,
                  timing, request ids (HookRegistry, AccessLog)

=============================================================================
QUICK START
=============================================================================

    from dataclasses import dataclass
    from listenkit import Extender, AccessLog, gzip_handler, parse_body_param, to_wsgi

    extender = Extender()
    AccessLog().install(extender)

    @dataclass
    class Greeting:
        name: str

    @extender.extend
    def greet(request):
        greeting = parse_body_param(request, Greeting)   # 400 on bad JSON
        return {"message": f"hello, {greeting.name}"}, 200, None

    application = to_wsgi(gzip_handler(greet))

=============================================================================
REQUEST FLOW
=============================================================================

    WSGI server
        │
        ▼
    CompressionMiddleware ── gunzip body / swap in GzipResponseWriter
        │
        ▼
    extended handler ── begin hooks → CORS → business handler
        │                → envelope → write → end hooks
        ▼
    WSGI server

=============================================================================
"""

__version__ = "1.0.0"

from .body import parse_body_param
from .config import ExtendConfig
from .envelope import FieldNames, JSONValue, RawBytes, build_envelope
from .errors import (
    BodyDecodeError,
    BodyParamError,
    BodyReadError,
    ConfigError,
    EnvelopeEncodeError,
    HandlerError,
    ListenKitError,
)
from .extend import Extender, extend_handler
from .hooks import HandleResult, HookRegistry
from .http import HTTPRequest, HTTPResponse, HTTPStatus, ResponseWriter
from .logsetup import setup_logging
from .middleware import (
    AccessLog,
    CompressionMiddleware,
    GzipResponseWriter,
    MiddlewarePipeline,
    gzip_handler,
)
from .wsgi import WSGIAdapter, to_wsgi

__all__ = [
    "__version__",

    # Extend / envelope
    "Extender",
    "extend_handler",
    "ExtendConfig",
    "FieldNames",
    "RawBytes",
    "JSONValue",
    "build_envelope",

    # Hooks
    "HookRegistry",
    "HandleResult",
    "AccessLog",

    # Body parsing
    "parse_body_param",

    # Compression
    "CompressionMiddleware",
    "GzipResponseWriter",
    "gzip_handler",
    "MiddlewarePipeline",

    # HTTP primitives
    "HTTPRequest",
    "HTTPResponse",
    "HTTPStatus",
    "ResponseWriter",

    # Hosting
    "WSGIAdapter",
    "to_wsgi",
    "setup_logging",

    # Errors
    "ListenKitError",
    "ConfigError",
    "HandlerError",
    "BodyParamError",
    "BodyReadError",
    "BodyDecodeError",
    "EnvelopeEncodeError",
]
