"""Compactor - gzip retired archive files.

A retired archive ``<log_name>.<stamp>.json`` is compressed to
``<log_name>.<stamp>.json.gz`` and the plaintext original is deleted once
the compressed copy is complete. Files are processed one at a time; a
failure on one file is recorded and the pass moves on to the next.
"""

from __future__ import annotations

import asyncio
import gzip
import logging
import re
import shutil
from pathlib import Path
from typing import Callable, Collection, Iterable, Optional, Union

from json_chronicler.types import CompactionError

logger = logging.getLogger(__name__)

COMPRESSED_SUFFIX = ".gz"
_COMPRESSED_PATTERN = re.compile(r".*\.json\.gz$")

Exclusion = Union[str, Collection[str], Callable[[], Collection[str]]]


def archive_pattern(log_name: str) -> re.Pattern[str]:
    """Pattern matching plaintext archives that belong to ``log_name``.

    The stamp must be all digits, so a chronicler named ``sensor`` never
    claims ``sensor2.<stamp>.json`` or ``sensor.backup.<stamp>.json``.
    """
    return re.compile(rf"^{re.escape(log_name)}\.\d+\.json$")


def select_retired(
    names: Iterable[str],
    log_name: str,
    exclude: Optional[Union[str, Collection[str]]] = None,
) -> list[str]:
    """Filter a directory listing down to the files a compaction pass should touch."""
    pattern = archive_pattern(log_name)
    if exclude is None:
        exclude = ()
    elif isinstance(exclude, str):
        exclude = (exclude,)
    return sorted(
        name
        for name in names
        if pattern.match(name)
        and not _COMPRESSED_PATTERN.match(name)
        and name not in exclude
    )


def compress_log(path: Path) -> Path:
    """Gzip ``path`` to ``path.gz`` and delete the original.

    The original is only removed after the compressed stream has been
    fully written and closed. A partial ``.gz`` left by a failed attempt
    is removed so the next pass starts clean.

    Returns:
        Path of the compressed file
    """
    destination = path.with_name(path.name + COMPRESSED_SUFFIX)
    try:
        with open(path, "rb") as source, gzip.open(destination, "wb") as compressed:
            shutil.copyfileobj(source, compressed)
    except BaseException:
        destination.unlink(missing_ok=True)
        raise
    path.unlink()
    return destination


async def compact_logs(
    log_directory: Union[str, Path],
    log_name: str,
    exclude: Optional[Exclusion] = None,
) -> list[str]:
    """Compress every retired archive of ``log_name`` in ``log_directory``.

    Args:
        log_directory: Directory to scan
        log_name: Filename prefix of the owning chronicler
        exclude: Filename(s) never compressed. A callable is evaluated
            after the directory is listed, so a file created while the
            listing ran is still protected.

    Returns:
        Names of the files that were compressed

    Raises:
        CompactionError: After the full pass, if any file failed
    """
    directory = Path(log_directory)
    try:
        listing = await asyncio.to_thread(lambda: [p.name for p in directory.iterdir()])
    except FileNotFoundError:
        logger.debug(f"Log directory {directory} does not exist yet, nothing to compact")
        return []

    compressed: list[str] = []
    failures: dict[str, BaseException] = {}
    if callable(exclude):
        exclude = exclude()
    for name in select_retired(listing, log_name, exclude):
        try:
            await asyncio.to_thread(compress_log, directory / name)
        except Exception as e:
            logger.warning(f"Failed to compress {directory / name}: {e}")
            failures[name] = e
            continue
        logger.debug(f"Compressed {directory / name}")
        compressed.append(name)

    if failures:
        raise CompactionError(failures, compressed)
    return compressed


__all__ = [
    "archive_pattern",
    "compact_logs",
    "compress_log",
    "select_retired",
]
