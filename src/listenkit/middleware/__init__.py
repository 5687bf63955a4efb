"""
=============================================================================
MIDDLEWARE
=============================================================================

Code that runs between the host server and a handler.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   Incoming Request                                                   │
    │        │                                                             │
    │        ▼                                                             │
    │   ┌──────────────────────┐                                          │
    │   │ CompressionMiddleware │ ──► gunzip request, gzip response        │
    │   └──────────┬───────────┘                                          │
    │              ▼                                                       │
    │   ┌──────────────────────┐                                          │
    │   │ extended handler      │ ──► hooks, CORS, JSON envelope           │
    │   └──────────────────────┘      (AccessLog runs as hooks here)       │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Middleware:
    Middleware, MiddlewarePipeline   the (writer, request, next) contract
    CompressionMiddleware            gzip in both directions
    GzipResponseWriter               the compressing writer it installs
    gzip_handler                     one-handler shorthand

Hooks:
    AccessLog                        per-request log records

=============================================================================
"""

from .base import Middleware, MiddlewarePipeline, NextHandler
from .compression import CompressionMiddleware, GzipResponseWriter, gzip_handler
from .logging import AccessLog, RequestLog

__all__ = [
    # Base classes
    "Middleware",
    "MiddlewarePipeline",
    "NextHandler",

    # Compression
    "CompressionMiddleware",
    "GzipResponseWriter",
    "gzip_handler",

    # Access logging
    "AccessLog",
    "RequestLog",
]
