"""
=============================================================================
ACCESS LOGGING
=============================================================================

One log record per extended request, written by a pair of hooks:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   begin hook   assign request id, set X-Request-ID on the writer     │
    │       │                                                              │
    │       ▼                                                              │
    │   ... handler, envelope, write ...                                   │
    │       │                                                              │
    │       ▼                                                              │
    │   end hook     status + cost from HandleResult → listenkit.access    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Timing comes from HandleResult.cost, so the logged duration is exactly
what the extend wrapper measured.

=============================================================================
OUTPUT
=============================================================================

    text:  127.0.0.1 - [19/Oct/2026:10:00:00 +0000] "GET /users?id=7" 200
           0.84ms "curl/8.5" rid=3f9a2c1e

    json:  {"request_id": "3f9a2c1e", "method": "GET", "path": "/users", ...}

=============================================================================
"""

import time
import json
import uuid
import logging
from typing import TYPE_CHECKING, Optional
from dataclasses import asdict, dataclass

from ..hooks import HandleResult
from ..http.request import HTTPRequest
from ..http.response import ResponseWriter

if TYPE_CHECKING:
    from ..extend import Extender


logger = logging.getLogger("listenkit.access")

REQUEST_ID_HEADER = "X-Request-ID"


@dataclass
class RequestLog:
    """
    Structured log entry for a request.

    request_id:  Short random id, also sent back as X-Request-ID
    method:      HTTP method
    path:        Path plus query string
    client_ip:   Client address
    user_agent:  User-Agent header
    status_code: Status written to the client
    duration_ms: Time measured by the extend wrapper
    error:       Error message for failed requests
    timestamp:   When the record was produced
    body:        Request body text (only with log_body=True)
    """

    request_id: str
    method: str
    path: str
    client_ip: str
    user_agent: str
    status_code: int
    duration_ms: float
    error: Optional[str]
    timestamp: str
    body: Optional[str] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["duration_ms"] = round(self.duration_ms, 2)
        if self.body is None:
            del data["body"]
        return data

    def to_text(self) -> str:
        line = (
            f'{self.client_ip or "-"} - [{self.timestamp}] '
            f'"{self.method} {self.path}" {self.status_code} '
            f'{self.duration_ms:.2f}ms "{self.user_agent or "-"}"'
        )
        if self.request_id:
            line += f" rid={self.request_id}"
        if self.error:
            line += f' err="{self.error}"'
        if self.body is not None:
            line += f" body={self.body}"
        return line


class AccessLog:
    """
    Access log hooks for an Extender.

    =========================================================================
    USAGE
    =========================================================================

        # Text lines, request ids on
        AccessLog().install(extender)

        # JSON for log shippers, skip the health probe
        AccessLog(log_format="json", skip_paths=["/health"]).install(extender)

        # Include the (replayable) request body
        AccessLog(log_body=True).install(extender)

    =========================================================================
    """

    def __init__(
        self,
        log_format: str = "text",
        include_request_id: bool = True,
        log_level: int = logging.INFO,
        skip_paths: Optional[list[str]] = None,
        log_body: bool = False,
        max_body_length: int = 1024,
    ):
        """
        Args:
            log_format: "text" (one readable line) or "json".
            include_request_id: Assign an id and send it as X-Request-ID.
            log_level: Level the records are emitted at.
            skip_paths: Paths never logged (health probes are noisy).
            log_body: Read the request body again and include it.
            max_body_length: Truncate logged bodies to this many characters.
        """
        if log_format not in ("text", "json"):
            raise ValueError(f"log_format must be 'text' or 'json', got {log_format!r}")
        self.log_format = log_format
        self.include_request_id = include_request_id
        self.log_level = log_level
        self.skip_paths = set(skip_paths or [])
        self.log_body = log_body
        self.max_body_length = max_body_length

    def install(self, extender: "Extender") -> "AccessLog":
        """Register the begin and end hooks on ``extender``."""
        extender.add_begin_hook(self.begin)
        extender.add_end_hook(self.end)
        return self

    def begin(self, writer: ResponseWriter, request: HTTPRequest) -> None:
        """Assign the request id before anything is written."""
        if self.include_request_id:
            # 8 hex chars is plenty to correlate one request in the logs
            writer.headers[REQUEST_ID_HEADER] = uuid.uuid4().hex[:8]

    def end(self, writer: ResponseWriter, request: HTTPRequest, result: HandleResult) -> None:
        """Emit the record for a finished request."""
        if request.path in self.skip_paths:
            return

        entry = RequestLog(
            request_id=writer.headers.get(REQUEST_ID_HEADER, ""),
            method=request.method,
            path=request.url,
            client_ip=request.client_address[0],
            user_agent=request.user_agent,
            status_code=result.status_code,
            duration_ms=result.cost_ms,
            error=str(result.error) if result.error is not None else None,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
            body=self._read_body(request) if self.log_body else None,
        )

        if self.log_format == "json":
            logger.log(self.log_level, json.dumps(entry.to_dict(), ensure_ascii=False))
        else:
            logger.log(self.log_level, entry.to_text())

    def _read_body(self, request: HTTPRequest) -> str:
        data = request.read_body()
        request.replace_body(data)
        text = data.decode("utf-8", errors="replace")
        if len(text) > self.max_body_length:
            text = text[:self.max_body_length] + "..."
        return text
