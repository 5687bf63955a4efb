"""
=============================================================================
REQUEST HOOKS
=============================================================================

Hooks run cross-cutting code around every extended handler without the
handler knowing: access logs, timing, metrics, request IDs.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      HOOK LIFECYCLE                                 │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   request ──► begin hooks (writer, request)          in order added  │
    │                   │                                                  │
    │                   ▼                                                  │
    │              business handler → envelope → write                     │
    │                   │                                                  │
    │                   ▼                                                  │
    │              end hooks (writer, request, HandleResult)  in order     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Hooks are append-only: there is no removal, no priority and no
de-duplication. Registering the same function twice runs it twice.

Hooks run synchronously on the request thread. A slow hook is a slow
request. An exception from a hook propagates to the caller.

=============================================================================
"""

from dataclasses import dataclass
from typing import Any, Callable, List, Optional
import logging

from .core.rwlock import ReadWriteLock
from .http.request import HTTPRequest
from .http.response import ResponseWriter


logger = logging.getLogger("listenkit.hooks")


@dataclass
class HandleResult:
    """
    What an end hook learns about the request it follows.

    Attributes:
        data:        The payload the business handler returned
        status_code: The status code actually written to the client
                     (after normalization, e.g. 200 + error → 400)
        error:       The handler's error, or the synthesized one, or None
        cost:        Seconds from request start to response written (>= 0)
    """

    data: Any = None
    status_code: int = 200
    error: Optional[BaseException] = None
    cost: float = 0.0

    @property
    def cost_ms(self) -> float:
        return self.cost * 1000


BeginHook = Callable[[ResponseWriter, HTTPRequest], None]
EndHook = Callable[[ResponseWriter, HTTPRequest, HandleResult], None]

# Older call shape: result fields spread over positional arguments
# (writer, request, data, status_code, error, cost_seconds)
LegacyEndHook = Callable[
    [ResponseWriter, HTTPRequest, Any, int, Optional[BaseException], float], None
]


def _check_hook(hook: Any) -> None:
    if hook is None or not callable(hook):
        raise TypeError(f"hook must be callable, got {hook!r}")


class HookRegistry:
    """
    Ordered begin/end hook lists behind a reader/writer lock.

    =========================================================================
    LOCKING
    =========================================================================

    add_*()  takes the WRITE side: exclusive with other registrations
             and with any request copying the hook list.

    run_*()  copies the list under the READ side, then calls the hooks
             with the lock released. A hook may read Extender state or
             register another hook; the new hook runs from the next
             request on.

    Pass a lock to share it with other state (the Extender shares one lock
    between hooks and envelope field names).

    =========================================================================
    USAGE
    =========================================================================

        hooks = HookRegistry()

        @hooks.add_end_hook
        def access_log(writer, request, result):
            logger.info(f"{request.method} {request.path} "
                        f"{result.status_code} {result.cost_ms:.1f}ms")

    =========================================================================
    """

    def __init__(self, lock: Optional[ReadWriteLock] = None):
        self._lock = lock or ReadWriteLock()
        self._begin_hooks: List[BeginHook] = []
        self._end_hooks: List[EndHook] = []

    # =========================================================================
    # REGISTRATION
    # =========================================================================

    def add_begin_hook(self, hook: BeginHook) -> BeginHook:
        """
        Register a hook run before the business handler.

        Returns the hook unchanged, so this works as a decorator.

        Raises:
            TypeError: If hook is None or not callable.
        """
        _check_hook(hook)
        with self._lock.write_locked():
            self._begin_hooks.append(hook)
        logger.debug(f"Added begin hook: {getattr(hook, '__name__', hook)!s}")
        return hook

    def add_end_hook(self, hook: EndHook) -> EndHook:
        """
        Register a hook run after the response is written.

        Returns the hook unchanged, so this works as a decorator.

        Raises:
            TypeError: If hook is None or not callable.
        """
        _check_hook(hook)
        with self._lock.write_locked():
            self._end_hooks.append(hook)
        logger.debug(f"Added end hook: {getattr(hook, '__name__', hook)!s}")
        return hook

    def add_legacy_end_hook(self, hook: LegacyEndHook) -> LegacyEndHook:
        """
        Register an end hook written against the six-argument call shape.

            def log(writer, request, data, status, error, seconds): ...

        The hook is adapted to the HandleResult form and takes the same
        place in the run order as any other end hook.
        """
        _check_hook(hook)

        def adapter(writer: ResponseWriter, request: HTTPRequest, result: HandleResult) -> None:
            hook(writer, request, result.data, result.status_code, result.error, result.cost)

        adapter.__name__ = getattr(hook, "__name__", "legacy_end_hook")
        self.add_end_hook(adapter)
        return hook

    # =========================================================================
    # INVOCATION
    # =========================================================================

    def run_begin_hooks(self, writer: ResponseWriter, request: HTTPRequest) -> None:
        """Call every begin hook once, in registration order."""
        with self._lock.read_locked():
            hooks = list(self._begin_hooks)
        for hook in hooks:
            hook(writer, request)

    def run_end_hooks(self, writer: ResponseWriter, request: HTTPRequest, result: HandleResult) -> None:
        """Call every end hook once, in registration order."""
        with self._lock.read_locked():
            hooks = list(self._end_hooks)
        for hook in hooks:
            hook(writer, request, result)

    # =========================================================================
    # INTROSPECTION
    # =========================================================================

    @property
    def begin_hooks(self) -> List[BeginHook]:
        """A copy of the begin hook list."""
        with self._lock.read_locked():
            return list(self._begin_hooks)

    @property
    def end_hooks(self) -> List[EndHook]:
        """A copy of the end hook list."""
        with self._lock.read_locked():
            return list(self._end_hooks)

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._begin_hooks) + len(self._end_hooks)
