"""
Pipeline run CRUD operations.

Run rows are the durable work queue: workers claim queued runs with a
compare-and-set update so each run is executed by exactly one worker at a
time. Checkpoints are stored per (run, step).

Dependencies: sqlalchemy, knowbase.boundary.db.models
System role: Run queue, status and checkpoint persistence
"""

from datetime import datetime
from typing import Iterable
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from knowbase.boundary.db.CRUD.base_crud import BaseCRUD
from knowbase.boundary.db.models import PipelineRunModel, RunCheckpointModel, RunStatus


class PipelineRunCRUD(BaseCRUD[PipelineRunModel]):
    """CRUD operations for PipelineRunModel and its checkpoints."""

    def __init__(self) -> None:
        super().__init__(PipelineRunModel)

    async def claim_next(
        self,
        session: AsyncSession,
        now: datetime,
        message: str = "",
    ) -> PipelineRunModel | None:
        """
        Claim the oldest queued run.

        Args:
            session: Async database session
            now: Lease start timestamp
            message: Status message written on claim

        Returns:
            Claimed run, or None when the queue is empty or another worker
            won the race
        """
        candidate = (
            select(PipelineRunModel.id)
            .where(PipelineRunModel.status == RunStatus.QUEUED)
            .order_by(PipelineRunModel.created_at)
            .limit(1)
            .with_for_update(skip_locked=True)
        )
        run_id = (await session.execute(candidate)).scalar_one_or_none()
        if run_id is None:
            return None

        stmt = (
            update(PipelineRunModel)
            .where(
                PipelineRunModel.id == run_id,
                PipelineRunModel.status == RunStatus.QUEUED,
            )
            .values(
                status=RunStatus.PROCESSING,
                claimed_at=now,
                attempts=PipelineRunModel.attempts + 1,
                message=message,
            )
            .returning(PipelineRunModel)
            .execution_options(synchronize_session="fetch")
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def requeue_stale(self, session: AsyncSession, cutoff: datetime) -> int:
        """
        Return runs whose lease started before ``cutoff`` to the queue.

        Returns:
            int: Number of requeued runs
        """
        stmt = (
            update(PipelineRunModel)
            .where(
                PipelineRunModel.status == RunStatus.PROCESSING,
                PipelineRunModel.claimed_at < cutoff,
            )
            .values(status=RunStatus.QUEUED, claimed_at=None)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount

    async def renew_lease(self, session: AsyncSession, id: UUID, now: datetime) -> bool:
        """
        Restart the lease of a processing run.

        Returns:
            bool: False when the run is not processing
        """
        stmt = (
            update(PipelineRunModel)
            .where(
                PipelineRunModel.id == id,
                PipelineRunModel.status == RunStatus.PROCESSING,
            )
            .values(claimed_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount > 0

    async def update_if_status(
        self,
        session: AsyncSession,
        id: UUID,
        allowed: Iterable[RunStatus],
        **values,
    ) -> PipelineRunModel | None:
        """
        Update a run only while its status is one of ``allowed``.

        Returns:
            Updated run, or None when the run is missing or in another status
        """
        return await self.update_where(
            session, id, PipelineRunModel.status.in_(list(allowed)), **values
        )

    async def get_checkpoint(self, session: AsyncSession, run_id: UUID, step: str) -> dict | None:
        stmt = select(RunCheckpointModel.payload).where(
            RunCheckpointModel.run_id == run_id,
            RunCheckpointModel.step == step,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def save_checkpoint(
        self,
        session: AsyncSession,
        run_id: UUID,
        step: str,
        payload: dict,
    ) -> None:
        """Insert or overwrite the checkpoint of one step."""
        stmt = select(RunCheckpointModel).where(
            RunCheckpointModel.run_id == run_id,
            RunCheckpointModel.step == step,
        )
        existing = (await session.execute(stmt)).scalar_one_or_none()
        if existing is None:
            session.add(RunCheckpointModel(run_id=run_id, step=step, payload=payload))
        else:
            existing.payload = payload
        await session.flush()


pipeline_run_crud = PipelineRunCRUD()
