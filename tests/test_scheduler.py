"""Tests for the OperationQueue write scheduler."""

import asyncio

import pytest

from json_chronicler import ObjectDisposedError, OperationQueue, SchedulerState


def recorder(log, value, delay=0.0):
    """Operation that appends ``value`` to ``log`` after an optional delay."""

    async def _op():
        await asyncio.sleep(delay)
        log.append(value)
        return value

    return _op


class TestOrdering:
    """Test FIFO execution."""

    @pytest.mark.asyncio
    async def test_runs_in_submission_order(self):
        """Test operations commit in the order they were submitted."""
        queue = OperationQueue(batch_interval_ms=1000)
        log = []
        futures = [queue.submit(recorder(log, i)) for i in range(10)]

        await queue.flush()

        assert log == list(range(10))
        assert [f.result() for f in futures] == list(range(10))

    @pytest.mark.asyncio
    async def test_operations_never_overlap(self):
        """Test a slow operation finishes before the next one starts."""
        queue = OperationQueue(batch_interval_ms=1000)
        active = 0
        max_active = 0

        async def op():
            nonlocal active, max_active
            active += 1
            max_active = max(max_active, active)
            await asyncio.sleep(0.005)
            active -= 1

        for _ in range(5):
            queue.submit(op)
        await queue.flush()

        assert max_active == 1


class TestBatchTimer:
    """Test timer-driven draining."""

    @pytest.mark.asyncio
    async def test_timer_drains_without_flush(self):
        """Test queued work runs after the batch interval."""
        queue = OperationQueue(batch_interval_ms=10)
        log = []
        future = queue.submit(recorder(log, "a"))

        assert queue.pending_count == 1
        assert await asyncio.wait_for(future, timeout=2) == "a"
        assert log == ["a"]
        assert queue.pending_count == 0

    @pytest.mark.asyncio
    async def test_work_submitted_mid_drain_joins_it(self):
        """Test an operation queued during a drain runs in that drain."""
        queue = OperationQueue(batch_interval_ms=1000)
        log = []
        late = []

        async def first():
            assert queue.state is SchedulerState.DRAINING
            late.append(queue.submit(recorder(log, "late")))
            log.append("first")

        queue.submit(first)
        await asyncio.wait_for(queue.flush(), timeout=2)
        await asyncio.wait_for(late[0], timeout=2)

        assert log == ["first", "late"]
        assert queue.pending_count == 0


class TestErrorRouting:
    """Test failures reach only the failing caller."""

    @pytest.mark.asyncio
    async def test_failure_isolated_to_its_future(self):
        """Test one failing operation does not affect its neighbours."""
        queue = OperationQueue(batch_interval_ms=1000)
        log = []

        async def boom():
            raise OSError("disk full")

        before = queue.submit(recorder(log, 1))
        failing = queue.submit(boom)
        after = queue.submit(recorder(log, 2))

        await queue.flush()

        assert before.result() == 1
        assert after.result() == 2
        with pytest.raises(OSError, match="disk full"):
            failing.result()
        assert log == [1, 2]


class TestFlush:
    """Test explicit flushing."""

    @pytest.mark.asyncio
    async def test_flush_waits_for_every_future(self):
        """Test flush returns only once all submitted futures are settled."""
        queue = OperationQueue(batch_interval_ms=1000)
        log = []
        futures = [queue.submit(recorder(log, i, delay=0.001)) for i in range(5)]

        await queue.flush()

        assert all(f.done() for f in futures)

    @pytest.mark.asyncio
    async def test_flush_during_running_drain(self):
        """Test a flush issued mid-drain waits for that drain."""
        queue = OperationQueue(batch_interval_ms=1000)
        log = []
        queue.submit(recorder(log, "slow", delay=0.02))
        queue.submit(recorder(log, "next"))

        first_flush = asyncio.ensure_future(queue.flush())
        await asyncio.sleep(0.005)
        assert queue.state is SchedulerState.DRAINING

        await queue.flush()
        await first_flush
        assert log == ["slow", "next"]

    @pytest.mark.asyncio
    async def test_flush_ignores_work_submitted_after_it(self):
        """Test a flush returns under constant load once earlier work is done."""
        queue = OperationQueue(batch_interval_ms=1000)
        log = []
        stop = False

        async def chain():
            await asyncio.sleep(0.001)
            log.append("op")
            if not stop:
                queue.submit(chain)

        first = queue.submit(chain)
        await asyncio.wait_for(queue.flush(), timeout=2)
        assert first.done()

        stop = True
        await queue.close()
        assert queue.pending_count == 0

    @pytest.mark.asyncio
    async def test_flush_not_released_by_cancelled_caller(self):
        """Test cancelling the last caller's future does not end a flush early."""
        queue = OperationQueue(batch_interval_ms=1000)
        log = []
        slow = queue.submit(recorder(log, "slow", delay=0.01))
        last = queue.submit(recorder(log, "last"))
        last.cancel()

        await queue.flush()

        assert slow.done()
        assert log == ["slow"]

    @pytest.mark.asyncio
    async def test_flush_empty_queue(self):
        """Test flushing with nothing queued returns immediately."""
        queue = OperationQueue()
        await queue.flush()
        assert queue.state is SchedulerState.IDLE


class TestClose:
    """Test shutdown."""

    @pytest.mark.asyncio
    async def test_close_drains_pending(self):
        """Test queued work still runs when the queue is closed."""
        queue = OperationQueue(batch_interval_ms=1000)
        log = []
        futures = [queue.submit(recorder(log, i)) for i in range(3)]

        await queue.close()

        assert log == [0, 1, 2]
        assert all(f.done() for f in futures)
        assert queue.state is SchedulerState.DISPOSED

    @pytest.mark.asyncio
    async def test_submit_after_close_rejected(self):
        """Test new work is refused once closed."""
        queue = OperationQueue()
        await queue.close()

        log = []
        future = queue.submit(recorder(log, "x"))
        with pytest.raises(ObjectDisposedError):
            await future
        assert log == []
