"""Tests for IngestionWorker claiming, poison-run handling and the pool loop."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from knowbase.core.ingestion.run_tracker import ClaimedRun
from knowbase.core.ingestion.worker import IngestionWorker


def _claimed(run_id: str, attempts: int = 1) -> ClaimedRun:
    return ClaimedRun(run_id=run_id, knowledge_base_id=7, attempts=attempts, event=MagicMock())


@pytest.fixture
def tracker() -> MagicMock:
    tracker = MagicMock()
    tracker.claim_next = AsyncMock(return_value=None)
    tracker.recover_stale = AsyncMock(return_value=0)
    tracker.fail = AsyncMock()
    return tracker


@pytest.fixture
def pipeline(tracker: MagicMock) -> MagicMock:
    pipeline = MagicMock()
    pipeline.tracker = tracker
    pipeline.execute = AsyncMock()
    return pipeline


class TestRunNext:
    """Test IngestionWorker.run_next()."""

    @pytest.mark.asyncio
    async def test_empty_queue(self, pipeline: MagicMock) -> None:
        worker = IngestionWorker(pipeline)

        assert await worker.run_next() is None
        pipeline.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_executes_claimed_run(self, pipeline: MagicMock, tracker: MagicMock) -> None:
        tracker.claim_next.return_value = _claimed("run-1")
        worker = IngestionWorker(pipeline)

        assert await worker.run_next() == "run-1"
        pipeline.execute.assert_awaited_once_with("run-1")

    @pytest.mark.asyncio
    async def test_pipeline_failure_does_not_propagate(
        self, pipeline: MagicMock, tracker: MagicMock
    ) -> None:
        tracker.claim_next.return_value = _claimed("run-1")
        pipeline.execute.side_effect = RuntimeError("boom")
        worker = IngestionWorker(pipeline)

        assert await worker.run_next() == "run-1"

    @pytest.mark.asyncio
    async def test_repeatedly_abandoned_run_fails(
        self, pipeline: MagicMock, tracker: MagicMock
    ) -> None:
        tracker.claim_next.return_value = _claimed("run-1", attempts=4)
        worker = IngestionWorker(pipeline, max_claims=3)

        await worker.run_next()

        pipeline.execute.assert_not_awaited()
        tracker.fail.assert_awaited_once()
        assert tracker.fail.await_args.args[0] == "run-1"


class TestDrainAndRun:
    @pytest.mark.asyncio
    async def test_drain_until_empty(self, pipeline: MagicMock, tracker: MagicMock) -> None:
        tracker.claim_next.side_effect = [_claimed("a"), _claimed("b"), None]
        worker = IngestionWorker(pipeline)

        assert await worker.drain() == 2
        tracker.recover_stale.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_pool_stops_on_request(self, pipeline: MagicMock, tracker: MagicMock) -> None:
        worker = IngestionWorker(pipeline, concurrency=3, poll_interval_seconds=0.01)

        task = asyncio.create_task(worker.run())
        await asyncio.sleep(0.05)
        worker.stop()
        await asyncio.wait_for(task, timeout=1)

        assert tracker.claim_next.await_count >= 3
        tracker.recover_stale.assert_awaited()

    @pytest.mark.asyncio
    async def test_runs_execute_concurrently(self, pipeline: MagicMock, tracker: MagicMock) -> None:
        """Two slow runs overlap on a pool of two."""
        tracker.claim_next.side_effect = [_claimed("a"), _claimed("b")] + [None] * 1000
        active = 0
        peak = 0

        async def slow_execute(run_id: str) -> None:
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.05)
            active -= 1

        pipeline.execute.side_effect = slow_execute
        worker = IngestionWorker(pipeline, concurrency=2, poll_interval_seconds=0.01)

        task = asyncio.create_task(worker.run())
        await asyncio.sleep(0.1)
        worker.stop()
        await asyncio.wait_for(task, timeout=1)

        assert peak == 2


def test_concurrency_must_be_positive(pipeline: MagicMock) -> None:
    with pytest.raises(ValueError):
        IngestionWorker(pipeline, concurrency=0)
