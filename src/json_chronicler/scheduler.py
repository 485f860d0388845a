"""Write Scheduler - serialized operation queue with micro-batching.

Every file-mutating operation of a chronicler runs through one
OperationQueue so the single active file handle is only ever touched by one
operation at a time.

State machine:

    IDLE --(timer fires | flush)--> DRAINING --(queue empty)--> IDLE
    IDLE | DRAINING --(close)--> DISPOSED

Submitting work while IDLE arms a batch timer; when it fires, a drain task
runs queued operations one after another in submission order until the
queue is empty. Work submitted while a drain is running joins that drain.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Deque, Generic, Optional, TypeVar

from json_chronicler.types import ObjectDisposedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _noop() -> None:
    return None


class SchedulerState(Enum):
    """Lifecycle of an OperationQueue."""

    IDLE = "idle"
    DRAINING = "draining"
    DISPOSED = "disposed"


@dataclass
class PendingOperation(Generic[T]):
    """One caller's queued work and the future that reports its outcome."""

    run: Callable[[], Awaitable[T]]
    future: asyncio.Future[T]


class OperationQueue:
    """Run submitted coroutines one at a time, FIFO, in timed batches.

    Usage:
        >>> queue = OperationQueue(batch_interval_ms=100)
        >>> done = queue.submit(lambda: write_something())
        >>> await done          # resolves once this operation has run
        >>> await queue.flush() # drain now instead of waiting for the timer
        >>> await queue.close() # drain what is left, then refuse new work
    """

    def __init__(self, batch_interval_ms: int = 100):
        """Initialize the queue.

        Args:
            batch_interval_ms: Delay between a submit and the drain that
                runs it, unless flushed sooner
        """
        self.batch_interval_ms = batch_interval_ms
        self._pending: Deque[PendingOperation[Any]] = deque()
        self._timer: Optional[asyncio.TimerHandle] = None
        self._drain_task: Optional[asyncio.Task[None]] = None
        self._closed = False

    @property
    def state(self) -> SchedulerState:
        if self._drain_task is not None and not self._drain_task.done():
            return SchedulerState.DRAINING
        if self._closed:
            return SchedulerState.DISPOSED
        return SchedulerState.IDLE

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def submit(self, operation: Callable[[], Awaitable[T]]) -> asyncio.Future[T]:
        """Queue an operation.

        Must be called from inside a running event loop.

        Args:
            operation: Zero-argument coroutine function to run

        Returns:
            Future resolved with the operation's result once it has run,
            or failed with the exception it raised
        """
        loop = asyncio.get_running_loop()
        future: asyncio.Future[T] = loop.create_future()
        if self._closed:
            future.set_exception(ObjectDisposedError())
            return future

        self._pending.append(PendingOperation(operation, future))
        if self.state is SchedulerState.IDLE and self._timer is None:
            self._timer = loop.call_later(self.batch_interval_ms / 1000, self._on_timer)
        return future

    async def flush(self) -> None:
        """Run everything queued so far without waiting for the timer.

        If a drain is already running this joins it rather than starting a
        second one. Returns once every operation submitted before the call
        has completed; work submitted afterwards is not waited for, so a
        busy queue cannot keep a flush from returning.
        """
        self._cancel_timer()
        if self._closed:
            await self._drain_all()
            return
        if not self._pending and self.state is not SchedulerState.DRAINING:
            return
        # FIFO: once this marker has run, everything queued before it has too
        marker: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._pending.append(PendingOperation(_noop, marker))
        self._ensure_drain()
        await marker

    async def close(self) -> None:
        """Refuse new work, then run whatever is still queued."""
        self._closed = True
        self._cancel_timer()
        await self._drain_all()

    async def _drain_all(self) -> None:
        while self._pending or self.state is SchedulerState.DRAINING:
            await asyncio.shield(self._ensure_drain())

    def _on_timer(self) -> None:
        self._timer = None
        if self._pending:
            self._ensure_drain()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _ensure_drain(self) -> asyncio.Task[None]:
        if self._drain_task is None or self._drain_task.done():
            self._drain_task = asyncio.get_running_loop().create_task(self._drain())
        return self._drain_task

    async def _drain(self) -> None:
        """Run queued operations until the queue is empty."""
        count = 0
        while self._pending:
            op = self._pending.popleft()
            if op.future.cancelled():
                continue
            try:
                result = await op.run()
            except Exception as e:
                if not op.future.done():
                    op.future.set_exception(e)
            else:
                if not op.future.done():
                    op.future.set_result(result)
            count += 1
        if count:
            logger.debug(f"Drained {count} queued operation(s)")


__all__ = [
    "OperationQueue",
    "PendingOperation",
    "SchedulerState",
]
