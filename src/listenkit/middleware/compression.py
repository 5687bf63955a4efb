"""
=============================================================================
COMPRESSION MIDDLEWARE
=============================================================================

Transparent gzip in both directions:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    GZIP NEGOTIATION                                 │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   INBOUND   Content-Encoding: gzip                                   │
    │             → read the body, decompress, install the plaintext       │
    │             → on failure keep the original bytes and log it          │
    │                                                                      │
    │   OUTBOUND  Accept-Encoding contains gzip                            │
    │             → Content-Encoding: gzip                                 │
    │             → handler writes through a GzipResponseWriter            │
    │             → compressor closed when the handler returns             │
    │                                                                      │
    │             Accept-Encoding without gzip                             │
    │             → handler called with the original writer                │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
STREAMING, NOT POST-PROCESSING
=============================================================================

The handler's bytes are compressed as they are written, so the compressed
length is unknown until the compressor is closed. That is why the extend
wrapper leaves Content-Length off when it sees a GzipResponseWriter.

The gzip container is produced by zlib directly (wbits=31 selects the gzip
header and trailer), which emits nothing until the first byte of body
arrives. The handler keeps full control of the status code up to its first
write.

=============================================================================
"""

import gzip
import logging
import zlib
from typing import Dict, Optional, Union

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ResponseWriter
from ..http.sniff import detect_content_type
from ..http.status_codes import HTTPStatus


logger = logging.getLogger("listenkit.compression")

# zlib window bits: 16 + MAX_WBITS selects the gzip container format
_GZIP_WBITS = 16 + zlib.MAX_WBITS


class GzipResponseWriter(ResponseWriter):
    """
    A ResponseWriter that gzips everything written through it.

    Shares headers and status with the writer it wraps; only the body
    bytes are transformed. Use it as a context manager, or call close()
    when done: the gzip trailer is only written on close.

        with GzipResponseWriter(writer) as gz:
            gz.write(b"hello")

    On the first write, if no Content-Type has been set, one is sniffed
    from the uncompressed bytes. After compression nobody can tell.
    """

    def __init__(self, inner: ResponseWriter, level: int = 6):
        # Headers and status live in `inner`; no super().__init__()
        self.inner = inner
        self.level = level
        self._compressor = zlib.compressobj(level, zlib.DEFLATED, _GZIP_WBITS)
        self._closed = False
        self._wrote_body = False

    @property
    def headers(self) -> Dict[str, str]:
        return self.inner.headers

    @property
    def wrote_header(self) -> bool:
        return self.inner.wrote_header

    @property
    def status(self) -> Optional[int]:
        return self.inner.status

    @property
    def body(self) -> bytes:
        """The compressed bytes written to the inner writer so far."""
        return self.inner.body

    @property
    def closed(self) -> bool:
        return self._closed

    def write_header(self, status: int) -> None:
        # A handler-supplied length describes the plaintext, not what we send
        self.headers.pop("Content-Length", None)
        self.inner.write_header(status)

    def write(self, data: Union[bytes, bytearray, memoryview]) -> int:
        """
        Compress ``data`` into the inner writer.

        Returns:
            Number of uncompressed bytes accepted.

        Raises:
            ValueError: If the writer was already closed.
        """
        if self._closed:
            raise ValueError("write to closed GzipResponseWriter")

        if not self._wrote_body:
            self._wrote_body = True
            if not self.headers.get("Content-Type"):
                self.headers["Content-Type"] = detect_content_type(bytes(data))

        if not self.inner.wrote_header:
            self.write_header(HTTPStatus.OK)

        chunk = self._compressor.compress(bytes(data))
        if chunk:
            self.inner.write(chunk)
        return len(data)

    def close(self) -> None:
        """
        Flush the compressor and write the gzip trailer.

        Safe to call more than once. Closing a writer nobody wrote to
        still emits a valid (empty) gzip stream.
        """
        if self._closed:
            return
        self._closed = True
        if not self.inner.wrote_header:
            self.write_header(HTTPStatus.OK)
        self.inner.write(self._compressor.flush())

    def to_response(self) -> HTTPResponse:
        return self.inner.to_response()

    def __enter__(self) -> "GzipResponseWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class CompressionMiddleware(Middleware):
    """
    Gzip request/response middleware.

    =========================================================================
    USAGE
    =========================================================================

        # Default: level 6, best-effort request decompression
        pipeline.add(CompressionMiddleware())

        # Reject undecodable gzip request bodies with 400
        pipeline.add(CompressionMiddleware(strict_requests=True))

    =========================================================================
    """

    def __init__(self, level: int = 6, strict_requests: bool = False):
        """
        Initialize compression middleware.

        Args:
            level: gzip compression level (0-9).
                   1 = fastest, 6 = balanced (default), 9 = smallest.

            strict_requests: What to do with a request body that claims to
                   be gzip but does not decompress.
                   False (default) = log it and hand the handler the
                                     original bytes
                   True            = answer 400 without calling the handler
        """
        if not 0 <= level <= 9:
            raise ValueError(f"gzip level must be 0-9, got {level}")
        self.level = level
        self.strict_requests = strict_requests

    def __call__(self, writer: ResponseWriter, request: HTTPRequest, next: NextHandler) -> None:
        # ═══════════════════════════════════════════════════════════════════
        # INBOUND: gzip request body
        # ═══════════════════════════════════════════════════════════════════
        if "gzip" in request.get_header("content-encoding").lower():
            if not self._decompress_request(request):
                if self.strict_requests:
                    self._reject(writer)
                    return

        # ═══════════════════════════════════════════════════════════════════
        # OUTBOUND: does the client take gzip?
        # ═══════════════════════════════════════════════════════════════════
        if "gzip" not in request.get_header("accept-encoding").lower():
            next(writer, request)
            return

        writer.headers["Content-Encoding"] = "gzip"

        gz = GzipResponseWriter(writer, self.level)
        try:
            next(gz, request)
        finally:
            gz.close()

    def _decompress_request(self, request: HTTPRequest) -> bool:
        """
        Replace a gzip request body with its plaintext.

        Returns:
            True if the body was decompressed, False if the original bytes
            were kept. A body that could not be read is replaced by an
            empty one.
        """
        try:
            data = request.read_body()
        except OSError as e:
            # The stream is in an unknown position; hand on an empty body
            request.replace_body(b"")
            logger.warning(f"Failed to read gzip request body for {request.method} {request.path}: {e}")
            return False

        try:
            plain = gzip.decompress(data)
        except (OSError, EOFError, zlib.error) as e:
            # Best effort: the handler gets the bytes exactly as they arrived
            request.replace_body(data)
            logger.warning(
                f"Failed to decompress request body for {request.method} {request.path} "
                f"({len(data)} bytes): {type(e).__name__}: {e}"
            )
            return False

        request.replace_body(plain)
        logger.debug(f"Decompressed request body {len(data)} → {len(plain)} bytes")
        return True

    @staticmethod
    def _reject(writer: ResponseWriter) -> None:
        writer.headers["Content-Type"] = "text/plain; charset=utf-8"
        writer.write_header(HTTPStatus.BAD_REQUEST)
        writer.write(b"malformed gzip request body\n")


def gzip_handler(handler: NextHandler, level: int = 6, strict_requests: bool = False) -> NextHandler:
    """
    Wrap a single handler with gzip support.

    Shorthand for CompressionMiddleware(...).wrap(handler):

        app = to_wsgi(gzip_handler(extender.extend_handler(get_users)))
    """
    return CompressionMiddleware(level=level, strict_requests=strict_requests).wrap(handler)
