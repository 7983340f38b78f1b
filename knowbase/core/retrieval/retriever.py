"""
Retrieval query for the chat path.

Embeds a question once and returns the most similar chunks of one
knowledge base. Retrieval never fails the chat: errors and timeouts are
logged and degrade to an empty context.

Dependencies: sqlalchemy, knowbase.boundary.vdb, ingestion embedding task
System role: Query-time context retrieval
"""

import asyncio
import logging
from typing import Any

from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from knowbase.boundary.vdb import PgVectorStore
from knowbase.configs import RetrievalSettings
from knowbase.core.ingestion.tasks import EmbeddingGenerator
from knowbase.observability import log_exception_with_context, log_with_context

logger = logging.getLogger(__name__)


class RetrievedContext(BaseModel):
    """One context passage returned to the chat handler."""

    content: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    similarity: float
    source_id: int | None = None


class Retriever:
    """Tenant-scoped similarity search over stored chunks."""

    def __init__(
        self,
        generator: EmbeddingGenerator,
        store: PgVectorStore,
        session_factory: async_sessionmaker[AsyncSession],
        top_k: int = 5,
        min_similarity: float = 0.5,
        timeout_seconds: float = 30.0,
    ) -> None:
        """
        Initialize retriever.

        Args:
            generator: Embeds the question
            store: Vector store to search
            session_factory: Factory for read sessions
            top_k: Maximum passages per question
            min_similarity: Passages must score strictly above this
            timeout_seconds: Default bound for one retrieval
        """
        self._generator = generator
        self._store = store
        self._session_factory = session_factory
        self._top_k = top_k
        self._min_similarity = min_similarity
        self._timeout = timeout_seconds

    @classmethod
    def from_settings(
        cls,
        generator: EmbeddingGenerator,
        store: PgVectorStore,
        session_factory: async_sessionmaker[AsyncSession],
        settings: RetrievalSettings,
    ) -> "Retriever":
        return cls(
            generator,
            store,
            session_factory,
            top_k=settings.top_k,
            min_similarity=settings.min_similarity,
            timeout_seconds=settings.timeout_seconds,
        )

    async def retrieve(
        self,
        question: str,
        knowledge_base_id: int,
        timeout: float | None = None,
    ) -> list[RetrievedContext]:
        """
        Find context passages for a question.

        Args:
            question: User question
            knowledge_base_id: Only this knowledge base's chunks are searched
            timeout: Seconds before giving up (default from settings)

        Returns:
            list[RetrievedContext]: Passages by descending similarity; empty
            when nothing matches or retrieval failed
        """
        if not question.strip():
            return []

        try:
            results = await asyncio.wait_for(
                self._search(question, knowledge_base_id),
                timeout=timeout if timeout is not None else self._timeout,
            )
        except asyncio.TimeoutError:
            log_with_context(
                logger,
                logging.WARNING,
                f"{__name__}:retrieve - Retrieval timed out",
                knowledge_base_id=knowledge_base_id,
            )
            return []
        except Exception as e:
            log_exception_with_context(
                logger,
                f"{__name__}:retrieve - Retrieval failed, continuing without context",
                e,
                knowledge_base_id=knowledge_base_id,
            )
            return []

        log_with_context(
            logger,
            logging.INFO,
            f"{__name__}:retrieve - Retrieved {len(results)} passages",
            knowledge_base_id=knowledge_base_id,
        )
        return results

    async def _search(self, question: str, knowledge_base_id: int) -> list[RetrievedContext]:
        vector = await self._generator.embed_query(" ".join(question.split()))
        async with self._session_factory() as session:
            results = await self._store.query(
                session,
                vector,
                k=self._top_k,
                knowledge_base_id=knowledge_base_id,
                min_similarity=self._min_similarity,
            )
        return [
            RetrievedContext(
                content=result.content,
                metadata=result.metadata,
                similarity=result.similarity,
                source_id=result.source_id,
            )
            for result in results
        ]
