"""
Pipeline run tracking.

Persists runs, their status transitions and step checkpoints, and maps the
internal run state to the status reported to the dashboard. Each method
runs in its own short transaction.

Status state machine:
    queued -> processing -> complete | error
    queued -> error
Terminal states are final; any transition out of them is rejected.

Dependencies: sqlalchemy, knowbase.boundary.db
System role: Durable queue and progress reporting for ingestion runs
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from knowbase.boundary.db.CRUD import pipeline_run_crud
from knowbase.boundary.db.models import PipelineRunModel, RunStatus
from knowbase.core.exceptions import InvalidRunTransitionError, RunNotFoundError
from knowbase.core.ingestion.models import (
    IngestionEvent,
    PipelineResult,
    PipelineStep,
    RunStatusReport,
)

logger = logging.getLogger(__name__)

STARTING_MESSAGE = "Starting agent creation..."
COMPLETED_MESSAGE = "Agent creation completed successfully"
FAILED_MESSAGE = "An error occurred during agent creation"


@dataclass(frozen=True)
class ClaimedRun:
    """A run leased to one worker."""

    run_id: str
    knowledge_base_id: int
    attempts: int
    event: IngestionEvent


def _parse_run_id(run_id: str | uuid.UUID) -> uuid.UUID:
    if isinstance(run_id, uuid.UUID):
        return run_id
    try:
        return uuid.UUID(run_id)
    except (TypeError, ValueError):
        raise RunNotFoundError(str(run_id)) from None


class RunTracker:
    """Create, advance and report pipeline runs."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        lease_timeout_seconds: int = 900,
    ) -> None:
        """
        Initialize tracker.

        Args:
            session_factory: Factory for short-lived sessions
            lease_timeout_seconds: Age after which a processing run is requeued
        """
        self._session_factory = session_factory
        self._lease_timeout = timedelta(seconds=lease_timeout_seconds)

    async def create_run(self, session: AsyncSession, event: IngestionEvent) -> str:
        """
        Add a queued run inside the caller's transaction.

        Args:
            session: Async database session (caller commits)
            event: Ingestion event to execute

        Returns:
            str: Run ID
        """
        run = await pipeline_run_crud.create(
            session,
            knowledge_base_id=event.knowledge_base_id,
            status=RunStatus.QUEUED,
            progress=0,
            message=STARTING_MESSAGE,
            event=event.model_dump(mode="json", by_alias=True),
            result={},
        )
        logger.info(
            f"{__name__}:create_run - Queued run {run.id}",
            extra={"knowledge_base_id": event.knowledge_base_id},
        )
        return str(run.id)

    async def enqueue(self, event: IngestionEvent) -> str:
        """
        Persist a queued run and return immediately.

        Args:
            event: Ingestion event to execute

        Returns:
            str: Run ID for status polling
        """
        async with self._session_factory() as session:
            async with session.begin():
                return await self.create_run(session, event)

    async def get_status(self, run_id: str) -> RunStatusReport:
        """
        Report a run's status.

        A queued run reports ``processing`` at progress 0 and step
        ``initialize``.

        Raises:
            RunNotFoundError: Unknown or malformed run ID
        """
        run = await self._get_run(run_id)
        match run.status:
            case RunStatus.QUEUED:
                return RunStatusReport(
                    status="processing",
                    progress=0,
                    message=STARTING_MESSAGE,
                    step="initialize",
                    knowledge_base_id=run.knowledge_base_id,
                )
            case RunStatus.PROCESSING:
                return RunStatusReport(
                    status="processing",
                    progress=run.progress,
                    message=run.message or STARTING_MESSAGE,
                    step=run.step or "initialize",
                    knowledge_base_id=run.knowledge_base_id,
                )
            case RunStatus.COMPLETE:
                return RunStatusReport(
                    status="complete",
                    progress=100,
                    message=run.message or COMPLETED_MESSAGE,
                    step="complete",
                    knowledge_base_id=run.knowledge_base_id,
                )
            case RunStatus.ERROR:
                return RunStatusReport(
                    status="error",
                    progress=0,
                    message=run.message or FAILED_MESSAGE,
                    step="error",
                    knowledge_base_id=run.knowledge_base_id,
                )

    async def get_result(self, run_id: str) -> dict[str, Any]:
        """Return the stored result or error details of a run."""
        run = await self._get_run(run_id)
        return run.result

    async def get_event(self, run_id: str) -> IngestionEvent:
        run = await self._get_run(run_id)
        return IngestionEvent.model_validate(run.event)

    async def claim_next(self) -> ClaimedRun | None:
        """
        Lease the oldest queued run to the calling worker.

        Returns:
            ClaimedRun, or None when nothing is queued
        """
        async with self._session_factory() as session:
            async with session.begin():
                run = await pipeline_run_crud.claim_next(
                    session,
                    now=datetime.now(timezone.utc),
                    message=STARTING_MESSAGE,
                )
                if run is None:
                    return None
                claimed = ClaimedRun(
                    run_id=str(run.id),
                    knowledge_base_id=run.knowledge_base_id,
                    attempts=run.attempts,
                    event=IngestionEvent.model_validate(run.event),
                )
        logger.info(
            f"{__name__}:claim_next - Claimed run {claimed.run_id}",
            extra={"attempts": claimed.attempts},
        )
        return claimed

    async def recover_stale(self) -> int:
        """
        Requeue processing runs whose lease expired (worker crashed).

        Returns:
            int: Number of requeued runs
        """
        cutoff = datetime.now(timezone.utc) - self._lease_timeout
        async with self._session_factory() as session:
            async with session.begin():
                count = await pipeline_run_crud.requeue_stale(session, cutoff)
        if count:
            logger.warning(f"{__name__}:recover_stale - Requeued {count} stale runs")
        return count

    async def mark_step(self, run_id: str, step: PipelineStep, progress: int, message: str) -> None:
        """
        Record the step a processing run is executing.

        Also restarts the run's lease.

        Raises:
            InvalidRunTransitionError: Run is not processing
        """
        await self._transition(
            run_id,
            RunStatus.PROCESSING,
            allowed=(RunStatus.PROCESSING,),
            step=step.value,
            progress=progress,
            message=message,
            claimed_at=datetime.now(timezone.utc),
        )

    async def complete(self, run_id: str, result: PipelineResult) -> None:
        """
        Mark a processing run complete.

        Raises:
            InvalidRunTransitionError: Run is not processing
        """
        message = COMPLETED_MESSAGE
        if result.failed_sources:
            message = f"Agent creation completed; {len(result.failed_sources)} source(s) failed"
        await self._transition(
            run_id,
            RunStatus.COMPLETE,
            allowed=(RunStatus.PROCESSING,),
            status=RunStatus.COMPLETE,
            step="complete",
            progress=100,
            message=message,
            result=result.model_dump(mode="json"),
            claimed_at=None,
        )

    async def fail(self, run_id: str, error: BaseException) -> None:
        """
        Mark a run as failed with error details.

        Raises:
            InvalidRunTransitionError: Run is already terminal
        """
        details = getattr(error, "details", None) or {}
        await self._transition(
            run_id,
            RunStatus.ERROR,
            allowed=tuple(status for status in RunStatus if not status.is_terminal),
            status=RunStatus.ERROR,
            progress=0,
            message=FAILED_MESSAGE,
            result={
                "error": str(getattr(error, "message", error)),
                "error_type": type(error).__name__,
                "details": details,
            },
            claimed_at=None,
        )

    async def get_checkpoint(self, run_id: str, step: PipelineStep) -> dict | None:
        async with self._session_factory() as session:
            return await pipeline_run_crud.get_checkpoint(session, _parse_run_id(run_id), step.value)

    async def save_checkpoint(self, run_id: str, step: PipelineStep, payload: dict) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                parsed = _parse_run_id(run_id)
                await pipeline_run_crud.save_checkpoint(session, parsed, step.value, payload)
                await pipeline_run_crud.renew_lease(session, parsed, datetime.now(timezone.utc))

    async def _get_run(self, run_id: str) -> PipelineRunModel:
        async with self._session_factory() as session:
            run = await pipeline_run_crud.get_by_id(session, _parse_run_id(run_id))
        if run is None:
            raise RunNotFoundError(str(run_id))
        return run

    async def _transition(
        self,
        run_id: str,
        target: RunStatus,
        allowed: tuple[RunStatus, ...],
        **values,
    ) -> None:
        parsed = _parse_run_id(run_id)
        async with self._session_factory() as session:
            async with session.begin():
                updated = await pipeline_run_crud.update_if_status(session, parsed, allowed, **values)
                if updated is None:
                    current = await pipeline_run_crud.get_by_id(session, parsed)
                    if current is None:
                        raise RunNotFoundError(str(run_id))
                    raise InvalidRunTransitionError(str(run_id), current.status.value, target.value)
        logger.info(
            f"{__name__}:_transition - Run {run_id} -> {target.value}",
            extra={"step": values.get("step"), "progress": values.get("progress")},
        )
