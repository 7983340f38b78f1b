"""
Ingestion run API endpoints.

Routes: POST /ingestion/runs, GET /ingestion/runs/{run_id}/result

Dependencies: knowbase.core.ingestion, knowbase.models
System role: Pipeline trigger HTTP API
"""

from fastapi import APIRouter, Depends, HTTPException, status

from knowbase.api.deps import get_run_tracker
from knowbase.core.exceptions import RunNotFoundError
from knowbase.core.ingestion.models import IngestionEvent
from knowbase.core.ingestion.run_tracker import RunTracker
from knowbase.models.ingestion import RunCreatedResponse

router = APIRouter(prefix="/ingestion", tags=["ingestion"])


@router.post("/runs", response_model=RunCreatedResponse, status_code=status.HTTP_202_ACCEPTED)
async def create_run(
    event: IngestionEvent,
    tracker: RunTracker = Depends(get_run_tracker),
) -> RunCreatedResponse:
    """
    Queue an ingestion run and return immediately.

    The run executes on the worker pool; poll
    ``GET /agent/training-status?runId=...`` for progress.

    Args:
        event: Knowledge base ID and its new or changed sources
        tracker: Injected RunTracker

    Returns:
        RunCreatedResponse: ID of the queued run
    """
    run_id = await tracker.enqueue(event)
    return RunCreatedResponse(run_id=run_id)


@router.get("/runs/{run_id}/result")
async def get_run_result(
    run_id: str,
    tracker: RunTracker = Depends(get_run_tracker),
) -> dict:
    """
    Get the stored result of a run.

    Complete runs carry counts and per-source failures; failed runs carry
    the error type and details; queued and processing runs return ``{}``.

    Raises:
        HTTPException(404): Run not found
    """
    try:
        return await tracker.get_result(run_id)
    except RunNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
