"""
=============================================================================
MIDDLEWARE BASE CLASSES
=============================================================================

A middleware sits between the host server and a handler. It sees the
request first, decides which writer the handler writes to, and gets
control back when the handler returns:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    MIDDLEWARE CALL SHAPE                            │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   middleware(writer, request, next)                                  │
    │       │                                                              │
    │       ├── before: inspect / rewrite the request                      │
    │       │                                                              │
    │       ├── next(writer', request)    writer' may wrap writer          │
    │       │                                                              │
    │       └── after: flush / close whatever writer' holds                │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from abc import ABC, abstractmethod
from typing import Callable, List, Optional
import logging

from ..http.request import HTTPRequest
from ..http.response import ResponseWriter


logger = logging.getLogger(__name__)


# NextHandler is the signature for the next middleware or final handler.
NextHandler = Callable[[ResponseWriter, HTTPRequest], None]


class Middleware(ABC):
    """
    Abstract base class for middleware.

    Every middleware implements __call__:

        class Timing(Middleware):
            def __call__(self, writer, request, next):
                start = time.perf_counter()
                next(writer, request)   # MUST call next unless short-circuiting
                logger.info(f"{request.path} took {time.perf_counter() - start:.3f}s")

    A middleware may short-circuit by writing its own response and not
    calling next.
    """

    @abstractmethod
    def __call__(self, writer: ResponseWriter, request: HTTPRequest, next: NextHandler) -> None:
        """
        Process the request.

        Args:
            writer: The writer the response goes to
            request: The incoming HTTP request
            next: The next handler in the chain
        """

    @property
    def name(self) -> str:
        """Get the middleware name for logging."""
        return self.__class__.__name__

    def wrap(self, handler: NextHandler) -> NextHandler:
        """
        Bind this middleware to a handler.

        Returns a plain handler that runs this middleware around ``handler``.
        """
        def wrapped(writer: ResponseWriter, request: HTTPRequest) -> None:
            self(writer, request, handler)

        wrapped.__name__ = getattr(handler, "__name__", "handler")
        return wrapped


class MiddlewarePipeline:
    """
    Chains several middleware around one handler.

        pipeline = MiddlewarePipeline()
        pipeline.add(CompressionMiddleware())
        pipeline.add(other)

        handler = pipeline.wrap(extender.extend_handler(business))

    First added = outermost:

        CompressionMiddleware
          └── other
                └── handler

    The request flows inward in the order added; control returns outward
    in reverse.
    """

    def __init__(self, middleware: Optional[List[Middleware]] = None):
        self._middleware: List[Middleware] = list(middleware or [])

    def add(self, middleware: Middleware) -> "MiddlewarePipeline":
        """Append a middleware. Returns self for chaining."""
        self._middleware.append(middleware)
        logger.debug(f"Added middleware: {middleware.name}")
        return self

    def use(self, *middleware: Middleware) -> "MiddlewarePipeline":
        """Add several middleware at once."""
        for mw in middleware:
            self.add(mw)
        return self

    def wrap(self, handler: NextHandler) -> NextHandler:
        """
        Wrap a handler with all middleware in the pipeline.

        Wrapping happens in reverse so the first-added middleware ends up
        outermost: reversed([A, B, C]) → A(B(C(handler))).
        """
        current = handler
        for middleware in reversed(self._middleware):
            current = middleware.wrap(current)
        return current

    def __len__(self) -> int:
        return len(self._middleware)

    def __iter__(self):
        return iter(self._middleware)
