"""
=============================================================================
HTTP RESPONSE WRITER
=============================================================================

Handlers in this package do not return a response object; they write to a
ResponseWriter, the same write-as-you-go shape WSGI servers use underneath:

    def handler(writer: ResponseWriter, request: HTTPRequest) -> None:
        writer.headers["Content-Type"] = "text/plain"
        writer.write_header(201)
        writer.write(b"created")

The write shape is what lets middleware swap the writer underneath a
handler. The compression middleware hands the handler a writer that gzips
every byte on its way through, and the handler never knows:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        WRITER STACKING                              │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   handler ──write(b"...")──►  GzipResponseWriter                     │
    │                                   │  compress                        │
    │                                   ▼                                  │
    │                               ResponseWriter  (buffers bytes)        │
    │                                   │                                  │
    │                                   ▼                                  │
    │                               to_response() → HTTPResponse           │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
HEADER TIMING
=============================================================================

Headers are frozen the moment the status is written. Anything added to
writer.headers after write_header() (or after the first write(), which
implies write_header(200)) does not reach the client. Set headers first.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union
import logging

from .status_codes import HTTPStatus, status_text


logger = logging.getLogger("listenkit.response")


@dataclass
class HTTPResponse:
    """
    A finished response: status, frozen headers and the full body.

    Produced by ResponseWriter.to_response() once the handler returns.
    """

    status: int = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def status_line(self) -> str:
        """
        Status code plus reason phrase, e.g. "200 OK".

        This is the format WSGI's start_response() expects. Unknown codes
        get an empty phrase ("599 ").
        """
        return f"{int(self.status)} {status_text(self.status)}"

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """Set a response header. Returns self for method chaining."""
        self.headers[name] = value
        return self

    def header_items(self) -> List[Tuple[str, str]]:
        """Headers as a list of (name, value) pairs."""
        return list(self.headers.items())


class ResponseWriter:
    """
    Buffered response writer.

    =========================================================================
    THE WRITER CONTRACT
    =========================================================================

        headers          mutable dict, canonical header names
                         ("Content-Type", not "content-type")

        write_header(s)  send the status line; first call wins,
                         later calls are logged and ignored

        write(data)      append body bytes; the first write without a
                         prior write_header() sends 200 OK

    =========================================================================
    """

    def __init__(self):
        self.headers: Dict[str, str] = {}
        self._status: Optional[int] = None
        self._sent_headers: Optional[Dict[str, str]] = None
        self._body = bytearray()

    @property
    def wrote_header(self) -> bool:
        """True once the status (and therefore the headers) are sent."""
        return self._status is not None

    @property
    def status(self) -> Optional[int]:
        """The written status code, or None if nothing was written yet."""
        return self._status

    @property
    def body(self) -> bytes:
        return bytes(self._body)

    def write_header(self, status: int) -> None:
        """
        Send the status code and freeze the current headers.

        Args:
            status: HTTP status code (int or HTTPStatus)
        """
        if self._status is not None:
            logger.warning(
                f"Superfluous write_header({int(status)}) call; "
                f"status {self._status} already written"
            )
            return
        self._status = int(status)
        self._sent_headers = dict(self.headers)

    def write(self, data: Union[bytes, bytearray, memoryview]) -> int:
        """
        Append body bytes.

        Returns:
            Number of bytes accepted (always len(data)).
        """
        if self._status is None:
            self.write_header(HTTPStatus.OK)
        self._body += data
        return len(data)

    def to_response(self) -> HTTPResponse:
        """
        Snapshot the written response.

        A writer nobody touched becomes an empty 200 OK, matching what an
        HTTP server sends when a handler returns without writing.
        """
        if self._status is None:
            return HTTPResponse(status=HTTPStatus.OK, headers=dict(self.headers), body=b"")
        return HTTPResponse(
            status=self._status,
            headers=dict(self._sent_headers),
            body=bytes(self._body),
        )
