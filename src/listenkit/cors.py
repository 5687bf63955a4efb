"""
=============================================================================
CORS HEADERS
=============================================================================

The cross-origin headers the extend wrapper adds when CORS handling is
enabled.

This is deliberately permissive: the request's own Origin is echoed back,
credentials are allowed, and a preflight gets exactly the method and
headers it asked for.

    SIMPLE REQUEST                      PREFLIGHT (OPTIONS)
    ──────────────                      ───────────────────
    Origin: https://app.example         Origin: https://app.example
                                        Access-Control-Request-Method: PUT
                                        Access-Control-Request-Headers: X-Token
            │                                   │
            ▼                                   ▼
    Access-Control-Allow-Origin:        Access-Control-Allow-Origin:
        https://app.example                 https://app.example
    Access-Control-Allow-Credentials:   Access-Control-Allow-Credentials: true
        true                            Access-Control-Allow-Methods: PUT
                                        Access-Control-Allow-Headers: X-Token

No Origin header at all → Access-Control-Allow-Origin: *

=============================================================================
"""

from .http.request import HTTPRequest
from .http.response import ResponseWriter


def is_preflight(request: HTTPRequest) -> bool:
    """True for OPTIONS requests, which the extend wrapper answers itself."""
    return request.method == "OPTIONS"


def apply_cors_headers(writer: ResponseWriter, request: HTTPRequest) -> None:
    """
    Add CORS response headers for ``request`` to ``writer``.

    Must run before anything is written; headers set after the status
    line is sent are lost.
    """
    writer.headers["Access-Control-Allow-Origin"] = request.origin or "*"
    writer.headers["Access-Control-Allow-Credentials"] = "true"

    if not is_preflight(request):
        return

    # Preflight: allow exactly what the browser asked for
    requested_method = request.get_header("access-control-request-method")
    requested_headers = request.get_header("access-control-request-headers")

    if requested_method:
        writer.headers["Access-Control-Allow-Methods"] = requested_method
    if requested_headers:
        writer.headers["Access-Control-Allow-Headers"] = requested_headers
