"""
=============================================================================
HTTP REQUEST
=============================================================================

The request object handed to middleware, hooks and business handlers.

=============================================================================
THE REPLAYABLE BODY
=============================================================================

A request body is a stream: once somebody reads it, it is gone. That is a
problem for a layer like this one, where several parties want the body:

    ┌────────────────────────────────────────────────────────────────────┐
    │                      WHO READS THE BODY?                            │
    ├────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   CompressionMiddleware   reads gzip bytes, installs plaintext      │
    │            │                                                        │
    │            ▼                                                        │
    │   parse_body_param()      reads JSON, installs a fresh copy         │
    │            │                                                        │
    │            ▼                                                        │
    │   AccessLog end hook      reads the body again for the log line     │
    │                                                                     │
    └────────────────────────────────────────────────────────────────────┘

Every reader that consumes the stream puts back a fresh io.BytesIO over
the same bytes with replace_body(), so the next reader sees the full
content from the start.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import BinaryIO, Dict, Optional
import io


@dataclass
class HTTPRequest:
    """
    Represents an incoming HTTP request.

    Attributes:
        method:         HTTP method in upper case (GET, POST, OPTIONS, ...)
        path:           Request path without the query string
        version:        HTTP version string
        headers:        Header name → value, names stored LOWERCASE
        query_params:   Parsed query string, name → list of values
        client_address: (ip, port) of the client
        stream:         Readable body stream; defaults to an empty BytesIO

    Header lookups go through get_header(), which lowercases the name,
    so "Content-Encoding" and "content-encoding" find the same value.
    """

    method: str
    path: str = "/"
    version: str = "HTTP/1.1"
    headers: Dict[str, str] = field(default_factory=dict)
    query_params: Dict[str, list[str]] = field(default_factory=dict)
    client_address: tuple[str, int] = ("", 0)
    stream: Optional[BinaryIO] = field(default=None, repr=False)

    def __post_init__(self):
        self.method = self.method.upper()
        # Normalize header names once so lookups never need .lower()
        self.headers = {name.lower(): value for name, value in self.headers.items()}
        if self.stream is None:
            self.stream = io.BytesIO(b"")

    @classmethod
    def with_body(cls, method: str, path: str = "/", body: bytes = b"", **kwargs) -> "HTTPRequest":
        """
        Build a request whose stream holds ``body``.

        Convenience for tests and adapters:

            request = HTTPRequest.with_body("POST", "/users", b'{"name": "Ada"}')
        """
        return cls(method=method, path=path, stream=io.BytesIO(body), **kwargs)

    # =========================================================================
    # BODY ACCESS
    # =========================================================================

    def read_body(self) -> bytes:
        """
        Read the body stream to the end.

        The stream is consumed. Callers that want later readers to see the
        body again must call replace_body() with the returned bytes.

        Raises:
            OSError: If the underlying stream fails.
        """
        return self.stream.read()

    def replace_body(self, data: bytes) -> None:
        """Install a fresh, independently readable stream over ``data``."""
        self.stream = io.BytesIO(data)

    # =========================================================================
    # HEADER ACCESS
    # =========================================================================

    def get_header(self, name: str, default: str = "") -> str:
        """
        Get a header value (case-insensitive lookup).

        Args:
            name: Header name (any case)
            default: Value to return if header not found

        Returns:
            Header value or default
        """
        return self.headers.get(name.lower(), default)

    def get_query(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get the first value of a query parameter."""
        values = self.query_params.get(name, [])
        return values[0] if values else default

    @property
    def content_type(self) -> Optional[str]:
        """Content-Type without parameters, or None when absent."""
        ct = self.headers.get("content-type", "")
        return ct.split(";")[0].strip().lower() or None

    @property
    def content_length(self) -> int:
        """Content-Length as an integer; 0 when missing or invalid."""
        try:
            return int(self.headers.get("content-length", 0))
        except ValueError:
            return 0

    @property
    def user_agent(self) -> str:
        return self.headers.get("user-agent", "")

    @property
    def origin(self) -> str:
        """The Origin header sent by browsers on cross-origin requests."""
        return self.headers.get("origin", "")

    @property
    def url(self) -> str:
        """Path plus the query string, reassembled for logging."""
        if not self.query_params:
            return self.path
        query = "&".join(
            f"{name}={value}"
            for name, values in self.query_params.items()
            for value in values
        )
        return f"{self.path}?{query}"
