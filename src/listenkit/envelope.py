"""
=============================================================================
JSON RESPONSE ENVELOPE
=============================================================================

Every extended handler answers in one of two fixed JSON shapes:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        ENVELOPE SHAPES                              │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   SUCCESS   (error is None and status == 200)                        │
    │                                                                      │
    │       {"data": <payload>, "errno": 0}                                │
    │                                                                      │
    │   FAILURE   (error is not None or status != 200)                     │
    │                                                                      │
    │       {"errno": <status>, "errmsg": "<message>"}                     │
    │                                                                      │
    │   RAW       (payload is RawBytes)                                    │
    │                                                                      │
    │       the bytes, exactly as given, no envelope                       │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The three key names are configurable (FieldNames), the shapes are not.

=============================================================================
FAILURE NORMALIZATION
=============================================================================

    handler returns             written status   envelope
    ─────────────────────────   ──────────────   ──────────────────────────
    (x, 200, None)              200              {"data": x, "errno": 0}
    (x, 200, Error("bad"))      400              {"errno": 400, "errmsg": "bad"}
    (x, 404, None)              404              {"errno": 404, "errmsg": "Not Found"}
    (x, 409, Error("taken"))    409              {"errno": 409, "errmsg": "taken"}

An error reported with status 200 is a contradiction; it becomes 400.
A failure status without an error gets the standard reason phrase.

=============================================================================
"""

from dataclasses import asdict, dataclass, is_dataclass
from typing import Any, Optional, Tuple
import json

from .errors import ConfigError, EnvelopeEncodeError
from .http.status_codes import HTTPStatus, status_text


@dataclass(frozen=True)
class FieldNames:
    """
    The envelope key names.

    Frozen: changing a name means building a new FieldNames, validating
    it, then swapping it in. A rejected change never leaves a half-updated
    set behind.
    """

    data: str = "data"
    code: str = "errno"
    message: str = "errmsg"

    def validate(self) -> None:
        """
        Check the names are non-empty and pairwise distinct.

        Raises:
            ConfigError: Describing the first problem found.
        """
        for role, name in (("data", self.data), ("code", self.code), ("message", self.message)):
            if not isinstance(name, str) or not name:
                raise ConfigError(f"{role} field name must be a non-empty string, got {name!r}")

        if self.data == self.code:
            raise ConfigError(f"data field name {self.data!r} collides with code field name")
        if self.data == self.message:
            raise ConfigError(f"data field name {self.data!r} collides with message field name")
        if self.code == self.message:
            raise ConfigError(f"code field name {self.code!r} collides with message field name")


# =============================================================================
# PAYLOAD VARIANTS
# =============================================================================
#
# A handler says how its payload is to be written by the type it returns:
#
#     return RawBytes(png_bytes), 200, None      → written verbatim
#     return JSONValue(b"x"), 200, None          → JSON-wrapped (and fails,
#                                                  bytes aren't JSON)
#     return {"id": 1}, 200, None                → JSON-wrapped
#
# Plain values are JSON values. A bare `bytes` payload is NOT special-cased;
# wrap it in RawBytes to send it as-is.
#
# =============================================================================

@dataclass(frozen=True)
class RawBytes:
    """A payload written to the client verbatim, bypassing the envelope."""

    data: bytes

    def __len__(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class JSONValue:
    """An explicit JSON payload. Equivalent to returning the value itself."""

    value: Any


def unwrap_payload(payload: Any) -> Any:
    """Strip a JSONValue wrapper; anything else is returned unchanged."""
    if isinstance(payload, JSONValue):
        return payload.value
    return payload


def _json_default(value: Any) -> Any:
    """
    Serialize the objects json does not know about.

    - dataclass instances → dict of their fields
    - objects with to_dict() → whatever it returns
    - sets → lists
    """
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if isinstance(value, (set, frozenset)):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def encode_json(obj: Any) -> bytes:
    """
    Compact UTF-8 JSON.

    Raises:
        EnvelopeEncodeError: If obj cannot be serialized (unknown types,
            NaN or Infinity, circular references).
    """
    try:
        text = json.dumps(
            obj,
            ensure_ascii=False,
            separators=(",", ":"),
            allow_nan=False,
            default=_json_default,
        )
    except (TypeError, ValueError, RecursionError) as e:
        raise EnvelopeEncodeError(f"json: {e}") from e
    return text.encode("utf-8")


def build_envelope(
    payload: Any,
    status: int,
    error: Optional[BaseException],
    fields: Optional[FieldNames] = None,
) -> Tuple[int, bytes, Optional[BaseException]]:
    """
    Turn a business handler's return value into a status and body.

    Args:
        payload: The handler's payload (RawBytes, JSONValue or any value)
        status: The handler's status code
        error: The handler's error, or None
        fields: Envelope key names (defaults: data / errno / errmsg)

    Returns:
        (status, body, error): the status to write, the body bytes, and
        the error as end hooks should see it. The error is synthesized
        from the reason phrase when a failure status came without one.

    Raises:
        EnvelopeEncodeError: If the envelope cannot be serialized.
    """
    fields = fields or FieldNames()
    status = int(status)

    # ═══════════════════════════════════════════════════════════════════════
    # RAW BYTES: no envelope at all
    # ═══════════════════════════════════════════════════════════════════════
    if isinstance(payload, RawBytes):
        return status, payload.data, error

    # ═══════════════════════════════════════════════════════════════════════
    # FAILURE
    # ═══════════════════════════════════════════════════════════════════════
    if error is not None or status != HTTPStatus.OK:
        if status == HTTPStatus.OK:
            status = int(HTTPStatus.BAD_REQUEST)
        if error is None:
            error = Exception(status_text(status))
        result = {
            fields.code: status,
            fields.message: str(error),
        }
        return status, encode_json(result), error

    # ═══════════════════════════════════════════════════════════════════════
    # SUCCESS
    # ═══════════════════════════════════════════════════════════════════════
    result = {
        fields.data: unwrap_payload(payload),
        fields.code: 0,
    }
    return status, encode_json(result), error
