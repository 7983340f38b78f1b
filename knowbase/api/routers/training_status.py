"""
Training status API endpoint.

Routes: GET /agent/training-status?runId=<id>

Dependencies: knowbase.core.ingestion, knowbase.models
System role: Run progress polling HTTP API
"""

from fastapi import APIRouter, Depends, HTTPException, Query

from knowbase.api.deps import get_run_tracker
from knowbase.core.exceptions import RunNotFoundError
from knowbase.core.ingestion.run_tracker import RunTracker
from knowbase.models.ingestion import TrainingStatusResponse

router = APIRouter(prefix="/agent", tags=["agent"])


@router.get("/training-status", response_model=TrainingStatusResponse)
async def get_training_status(
    run_id: str | None = Query(default=None, alias="runId"),
    tracker: RunTracker = Depends(get_run_tracker),
) -> TrainingStatusResponse:
    """
    Get the status of an agent training (ingestion) run.

    The dashboard polls this endpoint until status is ``complete`` or
    ``error``.

    Example Response:
        {
            "status": "processing",
            "progress": 50,
            "message": "Processed 42 chunks",
            "step": "generate-embeddings",
            "runId": "123e4567-e89b-12d3-a456-426614174000",
            "knowledgeBaseId": 7
        }

    Raises:
        HTTPException(400): runId missing
        HTTPException(404): Run not found
    """
    if not run_id:
        raise HTTPException(status_code=400, detail="Run ID is required")

    try:
        report = await tracker.get_status(run_id)
    except RunNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)

    return TrainingStatusResponse(
        status=report.status,
        progress=report.progress,
        message=report.message,
        step=report.step,
        run_id=run_id,
        knowledge_base_id=report.knowledge_base_id,
    )
