"""
Source API endpoints.

Routes: POST /knowledge-bases/{kb_id}/sources,
    GET /knowledge-bases/{kb_id}/sources,
    DELETE /knowledge-bases/{kb_id}/sources/{source_id}

Dependencies: knowbase.application.services, knowbase.models
System role: Source management HTTP API
"""

from fastapi import APIRouter, Depends, HTTPException, Response, status

from knowbase.api.deps import get_source_service
from knowbase.application.services import SourceService
from knowbase.models.source import (
    ReplaceSourcesRequest,
    ReplaceSourcesResponse,
    SourceListResponse,
    SourceResponse,
)

router = APIRouter(prefix="/knowledge-bases", tags=["sources"])


@router.post(
    "/{kb_id}/sources",
    response_model=ReplaceSourcesResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def replace_sources(
    kb_id: int,
    request: ReplaceSourcesRequest,
    source_service: SourceService = Depends(get_source_service),
) -> ReplaceSourcesResponse:
    """
    Replace the sources of a knowledge base and queue their ingestion.

    Every existing source and its embeddings are deleted; the request's
    sources are created and one run ingests them.

    Args:
        kb_id: Knowledge base ID
        request: Complete new content
        source_service: Injected SourceService

    Returns:
        ReplaceSourcesResponse: Created sources and run ID (null when empty)
    """
    replacement = await source_service.replace_sources(kb_id, request)
    return ReplaceSourcesResponse(
        run_id=replacement.run_id,
        sources=[SourceResponse.from_source(source) for source in replacement.sources],
    )


@router.get("/{kb_id}/sources", response_model=SourceListResponse)
async def list_sources(
    kb_id: int,
    source_service: SourceService = Depends(get_source_service),
) -> SourceListResponse:
    """List the sources of a knowledge base."""
    sources = await source_service.list_sources(kb_id)
    return SourceListResponse(
        sources=[SourceResponse.from_source(source) for source in sources],
        total=len(sources),
    )


@router.delete("/{kb_id}/sources/{source_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_source(
    kb_id: int,
    source_id: int,
    source_service: SourceService = Depends(get_source_service),
) -> Response:
    """
    Delete one source and all of its embeddings.

    Raises:
        HTTPException(404): Source not found in this knowledge base
    """
    if not await source_service.delete_source(kb_id, source_id):
        raise HTTPException(status_code=404, detail=f"Source {source_id} not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
