"""
Ingestion worker pool.

Runs ``concurrency`` asyncio tasks that claim queued pipeline runs and
execute them. Each run suspends only its own task while awaiting I/O.
A recovery task requeues runs whose worker died mid-run; checkpoints let
the next claim resume after the last completed step.

Dependencies: asyncio, python-dotenv, knowbase.core.ingestion.entrypoint
System role: Background execution of ingestion runs

Usage:
    python -m knowbase.core.ingestion.worker
    python -m knowbase.core.ingestion.worker --concurrency 8
    python -m knowbase.core.ingestion.worker --once
"""

import argparse
import asyncio
import logging

from dotenv import load_dotenv

from knowbase.core.exceptions import KnowbaseException
from knowbase.core.ingestion.entrypoint import IngestionPipeline

logger = logging.getLogger(__name__)


class IngestionWorker:
    """Claim and execute queued pipeline runs."""

    def __init__(
        self,
        pipeline: IngestionPipeline,
        concurrency: int = 4,
        poll_interval_seconds: float = 2.0,
        recovery_interval_seconds: float = 60.0,
        max_claims: int = 3,
    ) -> None:
        """
        Initialize worker.

        Args:
            pipeline: Pipeline executing claimed runs
            concurrency: Number of runs executed at once
            poll_interval_seconds: Idle wait between empty queue polls
            recovery_interval_seconds: Interval between stale-lease sweeps
            max_claims: Claims after which a repeatedly abandoned run fails
        """
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self._pipeline = pipeline
        self._tracker = pipeline.tracker
        self._concurrency = concurrency
        self._poll_interval = poll_interval_seconds
        self._recovery_interval = recovery_interval_seconds
        self._max_claims = max_claims
        self._stopping = asyncio.Event()

    def stop(self) -> None:
        """Ask every loop to exit after its current run."""
        self._stopping.set()

    async def run_next(self) -> str | None:
        """
        Claim and execute one queued run.

        Failures are recorded on the run; they do not propagate.

        Returns:
            str: ID of the run that was handled, or None if the queue was empty
        """
        claimed = await self._tracker.claim_next()
        if claimed is None:
            return None

        if claimed.attempts > self._max_claims:
            error = KnowbaseException(
                f"Run abandoned after {claimed.attempts - 1} claims",
                {"attempts": claimed.attempts},
            )
            await self._tracker.fail(claimed.run_id, error)
            return claimed.run_id

        try:
            await self._pipeline.execute(claimed.run_id)
        except Exception:
            # Already marked as error by the pipeline
            logger.exception(f"{__name__}:run_next - Run {claimed.run_id} ended in error")
        return claimed.run_id

    async def drain(self) -> int:
        """
        Execute queued runs until the queue is empty.

        Returns:
            int: Number of runs handled
        """
        await self._tracker.recover_stale()
        handled = 0
        while await self.run_next() is not None:
            handled += 1
        return handled

    async def run(self) -> None:
        """Run the pool until ``stop`` is called."""
        logger.info(
            f"{__name__}:run - Starting worker pool",
            extra={"concurrency": self._concurrency},
        )
        async with asyncio.TaskGroup() as group:
            group.create_task(self._recovery_loop())
            for index in range(self._concurrency):
                group.create_task(self._worker_loop(index))
        logger.info(f"{__name__}:run - Worker pool stopped")

    async def _worker_loop(self, index: int) -> None:
        while not self._stopping.is_set():
            try:
                handled = await self.run_next()
            except Exception:
                logger.exception(f"{__name__}:_worker_loop - Worker {index} failed to claim a run")
                handled = None
            if handled is None:
                await self._idle(self._poll_interval)

    async def _recovery_loop(self) -> None:
        while not self._stopping.is_set():
            try:
                await self._tracker.recover_stale()
            except Exception:
                logger.exception(f"{__name__}:_recovery_loop - Stale run recovery failed")
            await self._idle(self._recovery_interval)

    async def _idle(self, seconds: float) -> None:
        try:
            await asyncio.wait_for(self._stopping.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass


async def main(concurrency: int | None = None, once: bool = False) -> None:
    from knowbase.boundary.db import get_async_engine, get_async_session_factory
    from knowbase.configs import get_settings

    settings = get_settings()
    engine = get_async_engine(settings.database)
    try:
        pipeline = IngestionPipeline.from_settings(get_async_session_factory(engine), settings)
        ingestion = settings.ingestion
        worker = IngestionWorker(
            pipeline,
            concurrency=concurrency or ingestion.worker_concurrency,
            poll_interval_seconds=ingestion.poll_interval_seconds,
            recovery_interval_seconds=max(ingestion.poll_interval_seconds, ingestion.lease_timeout_seconds / 4),
            max_claims=ingestion.max_attempts,
        )
        if once:
            handled = await worker.drain()
            logger.info(f"{__name__}:main - Drained {handled} runs")
        else:
            await worker.run()
    finally:
        await engine.dispose()


if __name__ == "__main__":
    from knowbase.configs import get_settings
    from knowbase.observability import configure_logging

    parser = argparse.ArgumentParser(description="Knowledge-base ingestion worker")
    parser.add_argument("--concurrency", type=int, default=None, help="Runs executed at once")
    parser.add_argument("--once", action="store_true", help="Drain the queue and exit")
    args = parser.parse_args()

    load_dotenv()
    configure_logging(get_settings().log_level)
    try:
        asyncio.run(main(concurrency=args.concurrency, once=args.once))
    except KeyboardInterrupt:
        logger.info(f"{__name__} - Interrupted, shutting down")
