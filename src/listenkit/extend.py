"""
=============================================================================
EXTEND HANDLER
=============================================================================

Turns a business handler that RETURNS its result into a plain handler
that WRITES a JSON envelope:

    def get_user(request):                      # business handler
        user = users.get(request.get_query("id"))
        if user is None:
            return None, 404, None
        return user, 200, None

    extender = Extender()
    handler = extender.extend_handler(get_user)  # (writer, request) -> None

=============================================================================
PER-REQUEST STEPS
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   1. start the clock                                                 │
    │   2. begin hooks                                                     │
    │   3. CORS headers                          (if enabled)              │
    │   4. OPTIONS?  → 200, empty body, DONE     (no end hooks)            │
    │   5. business handler → (payload, status, error)                     │
    │   6. envelope → (status, body)                                       │
    │        serialization failure → 500, error text, DONE                 │
    │   7. Content-Type: application/json                                  │
    │      Content-Length            (not for gzip writers)                │
    │   8. write status + body                                             │
    │   9. end hooks with HandleResult(payload, status, error, cost)       │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
SHARED STATE
=============================================================================

An Extender owns the state its handlers share: hooks, envelope field
names and the CORS flag. All of it sits behind one ReadWriteLock, so
configuration can change while requests are in flight. Separate
Extenders share nothing, which keeps tests (and sub-applications) apart.

=============================================================================
"""

from typing import Any, Callable, Optional, Tuple
import logging
import time

from .config import ExtendConfig
from .core.rwlock import ReadWriteLock
from .cors import apply_cors_headers, is_preflight
from .envelope import FieldNames, build_envelope
from .errors import EnvelopeEncodeError, HandlerError
from .hooks import BeginHook, EndHook, HandleResult, HookRegistry, LegacyEndHook
from .http import HandlerFunc
from .http.request import HTTPRequest
from .http.response import ResponseWriter
from .http.status_codes import HTTPStatus
from .middleware.compression import GzipResponseWriter


logger = logging.getLogger("listenkit.extend")


# A business handler returns (payload, status_code, error)
BusinessHandler = Callable[[HTTPRequest], Tuple[Any, int, Optional[BaseException]]]


class Extender:
    """
    Wraps business handlers and owns the state they share.

    =========================================================================
    USAGE
    =========================================================================

        extender = Extender(ExtendConfig(enable_cors=True))

        @extender.add_end_hook
        def access_log(writer, request, result):
            print(request.method, request.url, result.status_code,
                  f"{result.cost:.3f}s", request.user_agent)

        @extender.extend
        def hello(request):
            return {"hello": "world"}, 200, None

        app = to_wsgi(gzip_handler(hello))

    =========================================================================
    """

    def __init__(self, config: Optional[ExtendConfig] = None, hooks: Optional[HookRegistry] = None):
        """
        Create an Extender.

        Args:
            config: Initial settings; validated here.
            hooks: An existing registry to use. By default a new registry
                   is created sharing this Extender's lock.

        Raises:
            ConfigError: If config is invalid.
        """
        config = config or ExtendConfig()
        config.validate()

        self._lock = ReadWriteLock()
        self.hooks = hooks if hooks is not None else HookRegistry(self._lock)
        self._fields = config.field_names()
        self._cors = config.enable_cors

    # =========================================================================
    # HOOKS
    # =========================================================================

    def add_begin_hook(self, hook: BeginHook) -> BeginHook:
        """Register a hook run before each business handler."""
        return self.hooks.add_begin_hook(hook)

    def add_end_hook(self, hook: EndHook) -> EndHook:
        """Register a hook run after each response is written."""
        return self.hooks.add_end_hook(hook)

    def add_legacy_end_hook(self, hook: LegacyEndHook) -> LegacyEndHook:
        """Register an end hook with the six-argument call shape."""
        return self.hooks.add_legacy_end_hook(hook)

    # =========================================================================
    # CONFIGURATION
    # =========================================================================

    @property
    def field_names(self) -> FieldNames:
        with self._lock.read_locked():
            return self._fields

    @property
    def cors_enabled(self) -> bool:
        with self._lock.read_locked():
            return self._cors

    def enable_cors(self, enabled: bool = True) -> None:
        """Turn CORS handling on (or off with enabled=False)."""
        with self._lock.write_locked():
            self._cors = enabled

    def set_data_field_name(self, name: str) -> None:
        """
        Rename the payload key of the success envelope.

        Raises:
            ConfigError: If name is empty or equals the code or message
                key. The current names are left unchanged.
        """
        self._replace_fields(data=name)

    def set_code_field_name(self, name: str) -> None:
        """Rename the code key. Same rules as set_data_field_name()."""
        self._replace_fields(code=name)

    def set_message_field_name(self, name: str) -> None:
        """Rename the message key. Same rules as set_data_field_name()."""
        self._replace_fields(message=name)

    def _replace_fields(self, **changes: str) -> None:
        with self._lock.write_locked():
            current = self._fields
            candidate = FieldNames(
                data=changes.get("data", current.data),
                code=changes.get("code", current.code),
                message=changes.get("message", current.message),
            )
            candidate.validate()
            self._fields = candidate

    # =========================================================================
    # HANDLER WRAPPING
    # =========================================================================

    def extend_handler(self, handler: BusinessHandler) -> HandlerFunc:
        """
        Wrap a business handler into a (writer, request) handler.

        Args:
            handler: Callable taking the request and returning
                     (payload, status_code, error). It may also raise
                     HandlerError, which is treated as returning
                     (None, error.status_code, error).

        Returns:
            A handler suitable for middleware and the WSGI adapter.
        """
        def extended(writer: ResponseWriter, request: HTTPRequest) -> None:
            self._serve(handler, writer, request)

        extended.__name__ = getattr(handler, "__name__", "extended")
        extended.__doc__ = getattr(handler, "__doc__", None)
        return extended

    # Decorator spelling: @extender.extend
    extend = extend_handler

    def _serve(self, handler: BusinessHandler, writer: ResponseWriter, request: HTTPRequest) -> None:
        # ═══════════════════════════════════════════════════════════════════
        # 1-2. CLOCK + BEGIN HOOKS
        # ═══════════════════════════════════════════════════════════════════
        start = time.perf_counter()
        self.hooks.run_begin_hooks(writer, request)

        # ═══════════════════════════════════════════════════════════════════
        # 3-4. CORS + PREFLIGHT
        # ═══════════════════════════════════════════════════════════════════
        if self.cors_enabled:
            apply_cors_headers(writer, request)

        if is_preflight(request):
            writer.write_header(HTTPStatus.OK)
            return

        # ═══════════════════════════════════════════════════════════════════
        # 5. BUSINESS HANDLER
        # ═══════════════════════════════════════════════════════════════════
        payload, status, error = self._call_business_handler(handler, request)

        # ═══════════════════════════════════════════════════════════════════
        # 6. ENVELOPE
        # ═══════════════════════════════════════════════════════════════════
        try:
            status, body, error = build_envelope(payload, status, error, self.field_names)
        except EnvelopeEncodeError as e:
            logger.error(f"Failed to encode response for {request.method} {request.path}: {e}")
            writer.write_header(HTTPStatus.INTERNAL_SERVER_ERROR)
            writer.write(str(e).encode("utf-8"))
            return

        # ═══════════════════════════════════════════════════════════════════
        # 7-8. HEADERS + WRITE
        # ═══════════════════════════════════════════════════════════════════
        writer.headers["Content-Type"] = "application/json"
        if not isinstance(writer, GzipResponseWriter):
            writer.headers["Content-Length"] = str(len(body))
        writer.write_header(status)
        writer.write(body)

        # ═══════════════════════════════════════════════════════════════════
        # 9. END HOOKS
        # ═══════════════════════════════════════════════════════════════════
        result = HandleResult(
            data=payload,
            status_code=status,
            error=error,
            cost=max(0.0, time.perf_counter() - start),
        )
        self.hooks.run_end_hooks(writer, request, result)

    @staticmethod
    def _call_business_handler(
        handler: BusinessHandler, request: HTTPRequest
    ) -> Tuple[Any, int, Optional[BaseException]]:
        try:
            payload, status, error = handler(request)
        except HandlerError as e:
            return None, e.status_code, e
        return payload, status, error


def extend_handler(handler: BusinessHandler, extender: Optional[Extender] = None) -> HandlerFunc:
    """
    Wrap a business handler without keeping an Extender around.

    With no extender, a fresh one with default settings and no hooks is
    used for this handler alone.
    """
    return (extender or Extender()).extend_handler(handler)
