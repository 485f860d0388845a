"""Persist records to rolling, compressed JSON archive files.

A chronicler appends JSON-serializable records to
``<log_dir>/<log_name>.<epoch-ms>.json``. Each file is a JSON array that is
closed and gzip-compressed once the configured rotation interval has
elapsed. Writes are queued and committed in submission order by a single
background drain, so callers never block on disk I/O unless they choose to
await the returned future.

Basic Usage:
    >>> from json_chronicler import JsonChronicler, JsonChroniclerConfig, RotationOptions
    >>> config = JsonChroniclerConfig(
    ...     log_directory="./logs",
    ...     log_name="sensor",
    ...     rotation_settings=RotationOptions(hours=1),
    ... )
    >>> async with JsonChronicler(config) as chronicler:
    ...     await chronicler.save_record({"temp": 21.5})

Records:
    Anything with a ``to_json()`` method, or a plain JSON value.

    >>> class Reading:
    ...     def __init__(self, value):
    ...         self.value = value
    ...     def to_json(self):
    ...         return {"value": self.value}

Factory:
    >>> from json_chronicler import JsonChroniclerFactory, ChroniclerDescription
    >>> description = ChroniclerDescription.from_yaml("chronicler.yaml")
    >>> chronicler = await JsonChroniclerFactory().build_chronicler(description)
"""

__version__ = "0.1.0"

from json_chronicler.types import (
    # Exceptions
    ChroniclerError,
    CompactionError,
    InvalidConfigError,
    ObjectDisposedError,
    RecordSerializationError,
    # Records
    JsonValue,
    Serializable,
    serialize_record,
)
from json_chronicler.rotation import (
    RotationOptions,
    RotationPolicy,
    is_rotation_options,
    ms_from_rotation_options,
)
from json_chronicler.config import (
    DEFAULT_BATCH_INTERVAL_MS,
    ChroniclerDescription,
    JsonChroniclerConfig,
)
from json_chronicler.archive import ArchiveWriter, archive_filename
from json_chronicler.compaction import compact_logs, compress_log
from json_chronicler.scheduler import OperationQueue, SchedulerState
from json_chronicler.chronicler import Chronicler, JsonChronicler
from json_chronicler.factory import JsonChroniclerFactory

__all__ = [
    # Version
    "__version__",
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
    # Rotation
    "RotationOptions",
    "RotationPolicy",
    "is_rotation_options",
    "ms_from_rotation_options",
    # Configuration
    "DEFAULT_BATCH_INTERVAL_MS",
    "ChroniclerDescription",
    "JsonChroniclerConfig",
    # Components
    "ArchiveWriter",
    "archive_filename",
    "compact_logs",
    "compress_log",
    "OperationQueue",
    "SchedulerState",
    # Chronicler
    "Chronicler",
    "JsonChronicler",
    "JsonChroniclerFactory",
]
