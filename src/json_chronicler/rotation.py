"""Rotation Policy.

Turns a rotation duration into a millisecond threshold and answers the
"is it time to rotate?" question against the time of the last rotation.

Rotation is lazy: nothing here runs on a timer. The chronicler asks
``should_rotate()`` right before each write, so a due rotation takes effect
at the next write attempt.

Only elapsed time gates rotation. ``max_file_size`` and ``max_file_count``
are accepted and persisted with the configuration but never evaluated.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, fields
from typing import Any, Callable, Mapping, Optional, Union

MS_PER_DAY = 86_400_000
MS_PER_HOUR = 3_600_000
MS_PER_MINUTE = 60_000
MS_PER_SECOND = 1_000

# Duration field -> millisecond multiplier
DURATION_MULTIPLIERS: dict[str, int] = {
    "days": MS_PER_DAY,
    "hours": MS_PER_HOUR,
    "minutes": MS_PER_MINUTE,
    "seconds": MS_PER_SECOND,
    "milliseconds": 1,
}

# Persisted descriptions use camelCase for the threshold fields
_CAMEL_CASE_KEYS = {
    "maxFileSize": "max_file_size",
    "maxFileCount": "max_file_count",
}


def current_millis() -> int:
    """Wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


@dataclass
class RotationOptions:
    """How long an archive file stays active before it is rotated.

    Every component is optional; absent components contribute nothing to
    the interval. An instance with no components yields an interval of 0,
    which in practice rotates on every write.

    Attributes:
        days: Whole or fractional days
        hours: Hours
        minutes: Minutes
        seconds: Seconds
        milliseconds: Milliseconds
        max_file_size: Accepted for compatibility, not enforced
        max_file_count: Accepted for compatibility, not enforced

    Example:
        >>> RotationOptions(hours=12).interval_ms
        43200000
    """

    days: Optional[float] = None
    hours: Optional[float] = None
    minutes: Optional[float] = None
    seconds: Optional[float] = None
    milliseconds: Optional[float] = None
    max_file_size: Optional[int] = None
    max_file_count: Optional[int] = None

    @property
    def interval_ms(self) -> int:
        return ms_from_rotation_options(self)

    def to_dict(self) -> dict[str, Any]:
        """Serialize present fields only."""
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RotationOptions:
        """Create from a mapping, accepting snake_case or camelCase threshold keys."""
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            key = _CAMEL_CASE_KEYS.get(key, key)
            if key in known:
                kwargs[key] = value
        return cls(**kwargs)


def is_rotation_options(value: Any) -> bool:
    """Check whether a value conforms to the RotationOptions shape.

    All fields are optional, so any mapping (or RotationOptions) conforms.
    """
    if value is None:
        return False
    return isinstance(value, (RotationOptions, Mapping))


def ms_from_rotation_options(options: Union[RotationOptions, Mapping[str, Any]]) -> int:
    """Total rotation interval in milliseconds.

    Sums each present duration component times its multiplier. Absent or
    falsy components contribute 0.

    Args:
        options: RotationOptions or an equivalent mapping

    Returns:
        Interval in milliseconds (>= 0 for non-negative components)

    Example:
        >>> ms_from_rotation_options({"days": 2, "hours": 3, "minutes": 20,
        ...                           "seconds": 3, "milliseconds": 21})
        184803021
    """
    if isinstance(options, Mapping):
        options = RotationOptions.from_dict(options)

    total = 0
    for name, multiplier in DURATION_MULTIPLIERS.items():
        value = getattr(options, name)
        if value:
            total += value * multiplier
    return int(total)


class RotationPolicy:
    """Tracks the last rotation and decides when the next one is due.

    The clock is injectable so tests can move time without sleeping.
    """

    def __init__(
        self,
        interval_ms: int,
        clock: Callable[[], int] = current_millis,
    ):
        self.interval_ms = interval_ms
        self._clock = clock
        self.last_rotation_ms: Optional[int] = None

    def mark_rotated(self, at_ms: Optional[int] = None) -> int:
        """Stamp the rotation time (defaults to now) and return it."""
        self.last_rotation_ms = self._clock() if at_ms is None else at_ms
        return self.last_rotation_ms

    def seconds_since_rotation(self) -> float:
        """Seconds since the last rotation.

        Before the first file exists this returns the current epoch time in
        seconds, a sentinel meaning "never rotated".
        """
        now = self._clock()
        if self.last_rotation_ms is None:
            return now / 1000
        elapsed = now - self.last_rotation_ms
        if elapsed == 0:
            return 0
        return elapsed // 1000

    def seconds_until_rotation(self) -> int:
        """Seconds until the next rotation; negative once rotation is due."""
        if self.last_rotation_ms is None:
            return self.interval_ms // 1000
        remaining = self.last_rotation_ms + self.interval_ms - self._clock()
        if remaining == 0:
            return 0
        return remaining // 1000

    def should_rotate(self) -> bool:
        return self.seconds_until_rotation() < 0


__all__ = [
    "DURATION_MULTIPLIERS",
    "RotationOptions",
    "RotationPolicy",
    "current_millis",
    "is_rotation_options",
    "ms_from_rotation_options",
]
