"""
Request body parsing.

parse_body_param() reads a JSON request body and leaves the body stream
readable again for whoever comes next (an access-log hook, a second
parse, the handler itself).
"""

from dataclasses import fields as dataclass_fields, is_dataclass
from typing import Any, Callable, Type, TypeVar, Union, overload
import json

from .errors import BodyDecodeError, BodyReadError
from .http.request import HTTPRequest


T = TypeVar("T")


@overload
def parse_body_param(request: HTTPRequest) -> Any: ...
@overload
def parse_body_param(request: HTTPRequest, model: Type[T]) -> T: ...
@overload
def parse_body_param(request: HTTPRequest, model: dict) -> dict: ...


def parse_body_param(request: HTTPRequest, model: Union[None, dict, Callable[[Any], Any]] = None) -> Any:
    """
    Decode the JSON request body.

    The whole body is read into memory, then the request's stream is
    replaced with a fresh copy of the same bytes BEFORE decoding, so the
    body stays replayable even when decoding fails.

    Args:
        request: The request whose body to read.
        model: Where the decoded JSON goes:
               None            → return the decoded value
               dataclass type  → construct it from the decoded object
               dict instance   → update it in place and return it
               other callable  → call it with the decoded value

    Returns:
        The decoded (and possibly converted) value.

    Raises:
        BodyReadError: The body stream could not be read.
        BodyDecodeError: The body is not UTF-8 JSON, or does not fit model.

    Example:
        @dataclass
        class Login:
            user: str
            password: str

        def login(request):
            creds = parse_body_param(request, Login)
            ...
    """
    try:
        body = request.read_body()
    except OSError as e:
        raise BodyReadError(f"failed to read request body: {e}", cause=e) from e

    # Reset the stream so it can be read again
    request.replace_body(body)

    try:
        value = json.loads(body.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise BodyDecodeError(f"request body is not valid UTF-8: {e}", cause=e) from e
    except json.JSONDecodeError as e:
        raise BodyDecodeError(f"invalid JSON body: {e}", cause=e) from e

    if model is None:
        return value
    return _convert(value, model)


def _convert(value: Any, model: Any) -> Any:
    if isinstance(model, dict):
        if not isinstance(value, dict):
            raise BodyDecodeError(f"cannot decode JSON {type(value).__name__} into a dict")
        model.update(value)
        return model

    if is_dataclass(model) and isinstance(model, type):
        if not isinstance(value, dict):
            raise BodyDecodeError(
                f"cannot decode JSON {type(value).__name__} into {model.__name__}"
            )
        # Unknown keys are ignored, like most JSON decoders do for structs
        known = {f.name for f in dataclass_fields(model)}
        kwargs = {k: v for k, v in value.items() if k in known}
        try:
            return model(**kwargs)
        except TypeError as e:
            raise BodyDecodeError(f"cannot decode into {model.__name__}: {e}", cause=e) from e

    if callable(model):
        try:
            return model(value)
        except (TypeError, ValueError) as e:
            raise BodyDecodeError(f"cannot decode body: {e}", cause=e) from e

    raise TypeError(f"model must be None, a dict, a dataclass or a callable, got {model!r}")
