"""JSON Chronicler - Exception Classes.

This module defines all exceptions raised by the chronicler.
All exceptions inherit from ChroniclerError for easy catching.

Usage:
    try:
        await chronicler.save_record(record)
    except ChroniclerError as e:
        print(f"Chronicler error: {e}")

Disk I/O failures are not wrapped: the ``OSError`` raised by the failing
call reaches the future of the operation that triggered it.
"""

from __future__ import annotations


class ChroniclerError(Exception):
    """Base exception for all chronicler errors."""
    pass


class ObjectDisposedError(ChroniclerError):
    """Raised when a write or rotation is requested after disposal."""

    MESSAGE = "Object Disposed!"

    def __init__(self) -> None:
        super().__init__(self.MESSAGE)


class InvalidConfigError(ChroniclerError):
    """Raised when configuration is invalid."""

    def __init__(self, message: str):
        self.detail = message
        super().__init__(f"Invalid configuration: {message}")


class RecordSerializationError(ChroniclerError):
    """Raised when a record cannot be converted to JSON."""

    def __init__(self, record_type: str, reason: str = ""):
        self.record_type = record_type
        self.reason = reason
        msg = f"Cannot serialize record of type {record_type}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class CompactionError(ChroniclerError):
    """Raised after a compaction pass in which some files failed to compress.

    The pass attempts every eligible file before raising, so ``compressed``
    lists the files that did succeed.
    """

    def __init__(
        self,
        failures: dict[str, BaseException],
        compressed: list[str] | None = None,
    ):
        self.failures = failures
        self.compressed = compressed or []
        names = ", ".join(sorted(failures))
        super().__init__(f"Failed to compress {len(failures)} log file(s): {names}")
