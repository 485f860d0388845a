"""JsonChronicler - persist records to rolling, compressed JSON archives.

Wires together the pieces of the package:

    save_record() --> OperationQueue --> RotationPolicy / ArchiveWriter
                                               |
                                          (on rotation)
                                               v
                                         compact_logs()

All writes to the active archive happen inside operations run by the
queue, one at a time and in submission order. Rotation is checked right
before each write. After a rotation the retired file is compressed in a
background task that never holds the active handle.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, Callable, Optional, Protocol

from json_chronicler.archive import NO_FILE, ArchiveWriter
from json_chronicler.compaction import compact_logs
from json_chronicler.config import JsonChroniclerConfig
from json_chronicler.rotation import RotationPolicy, current_millis
from json_chronicler.scheduler import OperationQueue
from json_chronicler.types import (
    CompactionError,
    ObjectDisposedError,
    RecordSerializationError,
    serialize_record,
)


class Chronicler(Protocol):
    """What a host framework needs from any chronicler.

    Identity fields, a type tag used to pick a factory, the properties
    needed to rebuild the instance, and disposal.
    """

    @property
    def id(self) -> str: ...

    @property
    def name(self) -> str: ...

    @property
    def description(self) -> str: ...

    def get_type(self) -> str: ...

    def get_chronicler_properties(self) -> dict[str, Any]: ...

    def dispose(self) -> asyncio.Future[None]: ...

    async def dispose_async(self) -> None: ...


class JsonChronicler:
    """Persist records to a rolling set of JSON array files.

    Files are named ``<log_name>.<epoch-ms>.json`` and live in
    ``log_directory``. A file is rotated once the configured interval has
    elapsed since it was opened; retired files are gzip-compressed to
    ``<name>.gz``.

    Usage:
        >>> config = JsonChroniclerConfig(
        ...     log_directory="./logs",
        ...     log_name="sensor",
        ...     rotation_settings=RotationOptions(hours=1),
        ... )
        >>> async with JsonChronicler(config) as chronicler:
        ...     chronicler.save_record({"temp": 21.5})   # fire and forget
        ...     await chronicler.save_record({"temp": 21.7})  # wait for disk
    """

    TYPE = "JSON-CHRONICLER"

    def __init__(
        self,
        config: JsonChroniclerConfig,
        logger: Optional[logging.Logger] = None,
        clock: Callable[[], int] = current_millis,
    ):
        """Initialize the chronicler.

        Args:
            config: Validated on construction
            logger: Logger to report through (default: module logger)
            clock: Epoch-millisecond clock, injectable for tests

        Raises:
            InvalidConfigError: If the configuration is invalid
        """
        config.validate()
        self._config = config
        self._logger = logger or logging.getLogger(__name__)
        self._policy = RotationPolicy(config.rotation_settings.interval_ms, clock=clock)
        self._archive = ArchiveWriter(config.directory, config.log_name, clock=clock)
        self._queue = OperationQueue(config.batch_interval_ms)
        self._compaction_lock = asyncio.Lock()
        self._compaction_tasks: set[asyncio.Task[Any]] = set()
        self._disposed = False
        self._dispose_task: Optional[asyncio.Task[None]] = None

    # ------------------------------------------------------------------
    # Identity

    @property
    def id(self) -> str:
        return self._config.id

    @property
    def name(self) -> str:
        return self._config.name

    @property
    def description(self) -> str:
        return self._config.description

    @property
    def config(self) -> JsonChroniclerConfig:
        return self._config

    @property
    def disposed(self) -> bool:
        return self._disposed

    def get_type(self) -> str:
        return JsonChronicler.TYPE

    def get_chronicler_properties(self) -> dict[str, Any]:
        """Properties needed to restore this chronicler."""
        return self._config.to_dict()

    # ------------------------------------------------------------------
    # Writes

    def save_record(self, record: Any) -> asyncio.Future[None]:
        """Queue a record for writing.

        The record is serialized immediately; later changes to it are not
        reflected in the archive. Must be called from a running event loop.

        Args:
            record: A ``Serializable`` or plain JSON value

        Returns:
            Future resolved once this record is written, or failed with
            ObjectDisposedError, RecordSerializationError or the OSError
            that prevented the write
        """
        if self._disposed:
            return self._failed(ObjectDisposedError())
        try:
            serialized = serialize_record(record)
        except RecordSerializationError as e:
            return self._failed(e)
        return self._queue.submit(lambda: self._write(serialized))

    async def flush(self) -> None:
        """Write everything queued so far without waiting for the batch timer."""
        await self._queue.flush()

    async def rotate_log(self) -> str:
        """Force a rotation and return the new active filename.

        Queued records ahead of the rotation are written to the old file.
        """
        if self._disposed:
            raise ObjectDisposedError()
        rotated = self._queue.submit(self._rotate)
        await self._queue.flush()
        return await rotated

    async def compact_logs(self) -> list[str]:
        """Compress every retired archive of this chronicler right now.

        Returns:
            Names of the files compressed in this pass

        Raises:
            CompactionError: If some files could not be compressed
        """
        async with self._compaction_lock:
            return await compact_logs(
                self._config.directory,
                self._config.log_name,
                exclude=lambda: self._archive.active_filenames,
            )

    # ------------------------------------------------------------------
    # Rotation queries

    def get_current_filename(self) -> str:
        """Name of the active archive, or "N/A" before the first write."""
        return self._archive.current_filename or NO_FILE

    def seconds_since_rotation(self) -> float:
        return self._policy.seconds_since_rotation()

    def seconds_until_rotation(self) -> int:
        return self._policy.seconds_until_rotation()

    # ------------------------------------------------------------------
    # Disposal

    def dispose(self) -> asyncio.Task[None]:
        """Stop accepting writes, drain the queue and close the active file.

        Idempotent: every call returns the same task, so the teardown runs
        once and later callers observe the same outcome.
        """
        if self._dispose_task is None:
            self._disposed = True
            self._dispose_task = asyncio.get_running_loop().create_task(self._teardown())
        return self._dispose_task

    async def dispose_async(self) -> None:
        await self.dispose()

    async def __aenter__(self) -> JsonChronicler:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.dispose_async()

    # ------------------------------------------------------------------
    # Internals (run inside the operation queue)

    async def _write(self, serialized: str) -> None:
        if await self._archive.needs_file():
            async with self._track_new_file():
                name = await self._archive.open_new()
            self._logger.debug(f"Started archive {name}")
        if self._policy.should_rotate():
            await self._rotate()
        await self._archive.append(serialized)

    async def _rotate(self) -> str:
        async with self._track_new_file():
            name, retired = await self._archive.rotate()
        self._logger.info(f"Rotated {self._config.log_name} archive: {retired} -> {name}")
        if retired is not None:
            self._schedule_compaction()
        return name

    @contextlib.asynccontextmanager
    async def _track_new_file(self):
        """Restart the rotation clock whenever a new file became active.

        Also applies when the swap raised after installing the new file.
        """
        before = self._archive.current_filename
        try:
            yield
        finally:
            if self._archive.current_filename != before:
                self._policy.mark_rotated()

    def _schedule_compaction(self) -> None:
        task = asyncio.get_running_loop().create_task(self._background_compaction())
        self._compaction_tasks.add(task)
        task.add_done_callback(self._compaction_tasks.discard)

    async def _background_compaction(self) -> None:
        try:
            await self.compact_logs()
        except CompactionError as e:
            self._logger.warning(f"Background compaction incomplete: {e}")
        except OSError as e:
            self._logger.warning(f"Background compaction failed: {e}")

    async def _teardown(self) -> None:
        await self._queue.close()
        try:
            closed = await self._archive.close()
        finally:
            if self._compaction_tasks:
                await asyncio.gather(*self._compaction_tasks, return_exceptions=True)
        if closed:
            self._logger.info(f"Disposed chronicler {self._config.log_name}, closed {closed}")

    def _failed(self, error: BaseException) -> asyncio.Future[None]:
        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        future.set_exception(error)
        return future


__all__ = [
    "Chronicler",
    "JsonChronicler",
]
