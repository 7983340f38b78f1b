"""
Vector store task.

Writes a run's chunks and vectors to pgvector in one transaction.

Dependencies: sqlalchemy, knowbase.boundary.vdb
System role: Final stage (store) of the ingestion pipeline
"""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from knowbase.boundary.vdb import PgVectorStore
from knowbase.core.ingestion.models import Chunk


class VectorStoreTask:
    """Persist chunk embeddings atomically."""

    def __init__(
        self,
        store: PgVectorStore,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        self._store = store
        self._session_factory = session_factory

    async def store(self, chunks: list[Chunk], vectors: list[list[float]]) -> int:
        """
        Replace the batch's rows with the given chunks.

        Args:
            chunks: Chunks from the process-sources step
            vectors: Index-aligned vectors from the generate-embeddings step

        Returns:
            int: Number of rows written

        Raises:
            VectorStoreError: Write failed; nothing was committed
            ContractViolationError: chunks and vectors do not line up
        """
        async with self._session_factory() as session:
            async with session.begin():
                return await self._store.upsert(session, chunks, vectors)
