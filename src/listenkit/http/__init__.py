"""
=============================================================================
HTTP PRIMITIVES
=============================================================================

The request and response types every other listenkit module is written
against.

    ┌─────────────────────────────────────────────────────────────────────┐
    │ REQUEST (request.py)                                                │
    │ ─────────────────────────────────────────────────────────────────── │
    │ HTTPRequest: method, path, lowercase headers, replayable body       │
    │ stream (read_body / replace_body)                                   │
    └─────────────────────────────────────────────────────────────────────┘

    ┌─────────────────────────────────────────────────────────────────────┐
    │ RESPONSE (response.py)                                              │
    │ ─────────────────────────────────────────────────────────────────── │
    │ ResponseWriter: headers, write_header(), write()                    │
    │ HTTPResponse:   the finished status / headers / body                │
    └─────────────────────────────────────────────────────────────────────┘

    ┌─────────────────────────────────────────────────────────────────────┐
    │ STATUS CODES (status_codes.py)                                      │
    │ ─────────────────────────────────────────────────────────────────── │
    │ HTTPStatus enum, status_text() reason phrases                       │
    └─────────────────────────────────────────────────────────────────────┘

    ┌─────────────────────────────────────────────────────────────────────┐
    │ CONTENT SNIFFING (sniff.py)                                         │
    │ ─────────────────────────────────────────────────────────────────── │
    │ detect_content_type(): MIME type from leading body bytes            │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from typing import Callable

from .request import HTTPRequest
from .response import HTTPResponse, ResponseWriter
from .status_codes import HTTPStatus, status_text
from .sniff import detect_content_type


# The plain handler shape: write a response for a request.
HandlerFunc = Callable[[ResponseWriter, HTTPRequest], None]


__all__ = [
    "HTTPRequest",
    "HTTPResponse",
    "ResponseWriter",
    "HandlerFunc",
    "HTTPStatus",
    "status_text",
    "detect_content_type",
]
