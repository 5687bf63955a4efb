"""
=============================================================================
LISTENKIT EXCEPTIONS
=============================================================================

Every failure raised by this package derives from ListenKitError.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     EXCEPTION HIERARCHY                             │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   ListenKitError                                                     │
    │     ├── ConfigError            bad field names, bad settings         │
    │     ├── EnvelopeEncodeError    payload is not JSON serializable      │
    │     └── HandlerError           carries an HTTP status code           │
    │           └── BodyParamError                                         │
    │                 ├── BodyReadError    request stream read failed      │
    │                 └── BodyDecodeError  body is not valid JSON          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

HandlerError subclasses can be raised straight out of a business handler;
the extend wrapper turns them into the JSON error envelope with the
carried status code.

=============================================================================
"""

from typing import Optional


class ListenKitError(Exception):
    """Base class for all listenkit errors."""


class ConfigError(ListenKitError, ValueError):
    """
    Raised when a configuration value is rejected.

    Configuration setters validate first and mutate second, so catching
    this exception always leaves the previous configuration in place.
    """


class HandlerError(ListenKitError):
    """
    An error with an HTTP status code attached.

    Business handlers may raise this instead of returning
    ``(None, status, error)``:

        def get_user(request):
            user = users.get(request.get_query("id"))
            if user is None:
                raise HandlerError("user not found", status_code=404)
            return user, 200, None
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class BodyParamError(HandlerError):
    """Base class for request body parsing failures (400 Bad Request)."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message, status_code=400)
        self.cause = cause


class BodyReadError(BodyParamError):
    """The request body stream could not be read."""


class BodyDecodeError(BodyParamError):
    """The request body is not valid JSON for the requested shape."""


class EnvelopeEncodeError(ListenKitError):
    """The response envelope could not be serialized to JSON."""
