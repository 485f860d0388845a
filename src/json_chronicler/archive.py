"""File Lifecycle Manager.

Owns the single archive file open for writing. Each archive is a JSON array
written incrementally:

    [<record>,\\n<record>,\\n<record>]

The opening bracket is written when the file is created and the closing
bracket only when the file is retired (rotation or disposal). While a file
is active its contents are a valid JSON array *prefix*; readers must not
expect it to parse until it has been closed.

Blocking file calls run in worker threads via ``asyncio.to_thread`` so the
event loop is never stalled on disk I/O. Callers must serialize access;
the chronicler only touches an ArchiveWriter from its operation queue.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Callable, Optional, TextIO, Union

from json_chronicler.rotation import current_millis

logger = logging.getLogger(__name__)

OPEN_ARRAY = "["
CLOSE_ARRAY = "]"
RECORD_SEPARATOR = ",\n"
NO_FILE = "N/A"


def archive_filename(log_name: str, created_ms: int) -> str:
    """Archive filename for a file created at ``created_ms``."""
    return f"{log_name}.{created_ms}.json"


class ArchiveWriter:
    """Creates, appends to, rotates and closes a chronicler's archive files."""

    def __init__(
        self,
        log_directory: Union[str, Path],
        log_name: str,
        clock: Callable[[], int] = current_millis,
    ):
        self.log_directory = Path(log_directory)
        self.log_name = log_name
        self._clock = clock
        self._handle: Optional[TextIO] = None
        self._current_file: Optional[str] = None
        self._opening: Optional[str] = None
        self._first_write = True
        self._last_stamp_ms = -1

    @property
    def current_filename(self) -> Optional[str]:
        return self._current_file

    @property
    def current_path(self) -> Optional[Path]:
        if self._current_file is None:
            return None
        return self.log_directory / self._current_file

    @property
    def active_filenames(self) -> frozenset[str]:
        """Files that must not be compacted: the active one and any being opened."""
        return frozenset(n for n in (self._current_file, self._opening) if n is not None)

    @property
    def is_open(self) -> bool:
        return self._handle is not None

    def generate_filename(self) -> str:
        """Next archive name, strictly increasing within this writer.

        Two files requested within the same millisecond get consecutive
        stamps so a rotation can never reopen (and truncate) the active file.
        """
        stamp = max(self._clock(), self._last_stamp_ms + 1)
        self._last_stamp_ms = stamp
        return archive_filename(self.log_name, stamp)

    async def needs_file(self) -> bool:
        """True if no file was created yet or the active file vanished from disk."""
        path = self.current_path
        if path is None:
            return True
        exists = await asyncio.to_thread(path.exists)
        if not exists:
            logger.debug(f"Active archive {path} is missing, starting a new one")
        return not exists

    async def open_new(self) -> str:
        """Create a fresh archive and make it the active file.

        The new file is created before the previously active handle is
        closed with its closing bracket. Both names stay in
        ``active_filenames`` until the swap completes. If closing the
        previous handle fails the new file is still installed before the
        error propagates, so later appends keep working.

        Returns:
            Name of the new active file
        """
        name = self.generate_filename()
        self._opening = name
        try:
            handle = await asyncio.to_thread(self._create, self.log_directory / name)
            previous = self._handle
            self._handle = None
            try:
                if previous is not None:
                    await asyncio.to_thread(self._finish, previous)
            finally:
                self._handle = handle
                self._current_file = name
                self._first_write = True
        finally:
            self._opening = None
        logger.debug(f"Created archive {self.log_directory / name}")
        return name

    async def rotate(self) -> tuple[str, Optional[str]]:
        """Open a new archive and retire the active one.

        Returns:
            (new filename, retired filename or None if nothing was active)
        """
        retired = self._current_file if self._handle is not None else None
        name = await self.open_new()
        return name, retired

    async def append(self, serialized: str) -> None:
        """Write one serialized record to the active archive."""
        if self._handle is None:
            raise RuntimeError("No active archive file to append to")
        data = serialized if self._first_write else RECORD_SEPARATOR + serialized
        await asyncio.to_thread(self._write, self._handle, data)
        self._first_write = False

    async def close(self) -> Optional[str]:
        """Write the closing bracket and close the active handle.

        Returns:
            Name of the closed file, or None if nothing was open
        """
        handle = self._handle
        if handle is None:
            return None
        self._handle = None
        await asyncio.to_thread(self._finish, handle)
        logger.debug(f"Closed archive {self.current_path}")
        return self._current_file

    @staticmethod
    def _create(path: Path) -> TextIO:
        path.parent.mkdir(parents=True, exist_ok=True)
        handle = open(path, "w", encoding="utf-8")
        try:
            handle.write(OPEN_ARRAY)
            handle.flush()
        except BaseException:
            handle.close()
            raise
        return handle

    @staticmethod
    def _write(handle: TextIO, data: str) -> None:
        handle.write(data)
        handle.flush()

    @staticmethod
    def _finish(handle: TextIO) -> None:
        try:
            handle.write(CLOSE_ARRAY)
            handle.flush()
        finally:
            handle.close()


__all__ = [
    "NO_FILE",
    "ArchiveWriter",
    "archive_filename",
]
