"""
Retrieval API endpoint.

Routes: POST /knowledge-bases/{kb_id}/retrieve

Dependencies: knowbase.core.retrieval, knowbase.models
System role: Context retrieval HTTP API for the chat handler
"""

from fastapi import APIRouter, Depends

from knowbase.api.deps import get_retriever
from knowbase.core.retrieval import Retriever
from knowbase.models.retrieval import RetrievedContextResponse, RetrieveRequest

router = APIRouter(prefix="/knowledge-bases", tags=["retrieval"])


@router.post("/{kb_id}/retrieve", response_model=list[RetrievedContextResponse])
async def retrieve(
    kb_id: int,
    request: RetrieveRequest,
    retriever: Retriever = Depends(get_retriever),
) -> list[RetrievedContextResponse]:
    """
    Retrieve context passages for a question.

    Never fails on retrieval errors: the chat continues with an empty list.

    Args:
        kb_id: Knowledge base whose chunks are searched
        request: Question to answer
        retriever: Injected Retriever

    Returns:
        list[RetrievedContextResponse]: Passages by descending similarity
    """
    contexts = await retriever.retrieve(request.question, kb_id)
    return [
        RetrievedContextResponse(
            content=context.content,
            metadata=context.metadata,
            similarity=context.similarity,
        )
        for context in contexts
    ]
