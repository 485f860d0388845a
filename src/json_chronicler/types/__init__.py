"""JSON Chronicler - Shared Types.

Exceptions and the record capability protocol used across the package.
"""

from .exceptions import (
    ChroniclerError,
    CompactionError,
    InvalidConfigError,
    ObjectDisposedError,
    RecordSerializationError,
)
from .records import JsonValue, Serializable, serialize_record

__all__ = [
    # Exceptions
    "ChroniclerError",
    "CompactionError",
    "InvalidConfigError",
    "ObjectDisposedError",
    "RecordSerializationError",
    # Records
    "JsonValue",
    "Serializable",
    "serialize_record",
]
