"""Request validation: check the payload shape and serialize it to the bytes we encode."""

import json
from collections.abc import Mapping

from jsonqr.errors import EmptyPayload, InvalidPayload, SerializationError
from jsonqr.logging import get_logger

log = get_logger("validator")


def validate(payload: object) -> bytes:
    """Serialize a JSON object/array payload to compact UTF-8 JSON.

    Raises:
        InvalidPayload: payload is None or a scalar.
        SerializationError: cycles, NaN/Infinity or non-JSON members.
        EmptyPayload: serialization produced nothing.
    """
    if payload is None:
        raise InvalidPayload("Invalid JSON data provided. Expected an object, got null.")
    if not isinstance(payload, (Mapping, list, tuple)):
        raise InvalidPayload(
            f"Invalid JSON data provided. Expected an object, got {type(payload).__name__}."
        )
    if isinstance(payload, Mapping) and not isinstance(payload, dict):
        payload = dict(payload)

    try:
        text = json.dumps(payload, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError, RecursionError) as e:
        raise SerializationError(f"Failed to serialize JSON data: {e}") from e

    if not text:
        raise EmptyPayload("Serialized JSON data is empty.")

    log.debug("payload serialized (%d chars)", len(text))
    return text.encode("utf-8")
