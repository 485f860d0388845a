"""Record capability protocol and serialization."""

from __future__ import annotations

import json
from typing import Any, Protocol, Union, runtime_checkable

from .exceptions import RecordSerializationError

JsonValue = Union[dict, list, str, int, float, bool, None]

_PLAIN_JSON_TYPES = (dict, list, str, int, float, bool, type(None))


@runtime_checkable
class Serializable(Protocol):
    """Anything that can render itself as a JSON-compatible value."""

    def to_json(self) -> JsonValue: ...


def serialize_record(record: Any) -> str:
    """Render a record as the JSON text stored in the archive.

    Args:
        record: A ``Serializable`` or a plain JSON value

    Returns:
        Compact JSON string for the record

    Raises:
        RecordSerializationError: If the record is neither, its
            ``to_json()`` raises, or the result holds values that are not
            standard JSON (including NaN and infinities)
    """
    if isinstance(record, Serializable):
        try:
            value = record.to_json()
        except Exception as e:
            raise RecordSerializationError(
                type(record).__name__, f"to_json() failed: {e}"
            ) from e
    elif isinstance(record, _PLAIN_JSON_TYPES):
        value = record
    else:
        raise RecordSerializationError(
            type(record).__name__, "record does not implement to_json()"
        )

    try:
        return json.dumps(value, ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise RecordSerializationError(type(record).__name__, str(e)) from e
