"""
pgvector-backed vector store.

Stores one embedding row per chunk and answers tenant-scoped nearest
neighbour queries. On PostgreSQL the ``<=>`` cosine distance operator is
used so the HNSW index serves the query; other dialects (SQLite in tests
and local development) load the tenant's vectors and rank them with numpy.

All methods run inside the caller's session; the caller commits.

Dependencies: sqlalchemy, pgvector, numpy
System role: Vector index reads and writes
"""

import logging
from typing import Sequence

import numpy as np
from sqlalchemy import delete, func, insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from knowbase.boundary.db.models import EMBEDDING_DIMENSION, EmbeddingModel, SourceModel
from knowbase.boundary.vdb.vector_schemas import VectorSearchResult
from knowbase.core.exceptions import (
    DimensionMismatchError,
    EmbeddingContractError,
    VectorStoreError,
)
from knowbase.core.ingestion.models import Chunk

logger = logging.getLogger(__name__)


class PgVectorStore:
    """
    Vector store over the ``embeddings`` table.

    Tenant isolation: every query joins ``sources`` and filters on the
    knowledge base ID.
    """

    def __init__(self, dimension: int = EMBEDDING_DIMENSION, insert_batch_size: int = 100) -> None:
        """
        Initialize vector store.

        Args:
            dimension: Width of every stored and queried vector
            insert_batch_size: Rows per INSERT statement
        """
        self._dimension = dimension
        self._insert_batch_size = insert_batch_size

    async def upsert(
        self,
        session: AsyncSession,
        chunks: Sequence[Chunk],
        embeddings: Sequence[Sequence[float]],
    ) -> int:
        """
        Replace the stored rows of the batch's sources with the given chunks.

        Existing rows of every source present in ``chunks`` are deleted
        first, so re-running the same batch never duplicates rows.

        Args:
            session: Async database session (caller commits)
            chunks: Chunks to store
            embeddings: Vectors index-aligned with ``chunks``

        Returns:
            int: Number of rows written

        Raises:
            EmbeddingContractError: chunks and embeddings differ in length
            DimensionMismatchError: A vector has the wrong width
            VectorStoreError: Database write failed
        """
        if len(chunks) != len(embeddings):
            raise EmbeddingContractError(
                f"Got {len(embeddings)} embeddings for {len(chunks)} chunks",
                {"chunks": len(chunks), "embeddings": len(embeddings)},
            )
        for vector in embeddings:
            self._check_dimension(vector)
        if not chunks:
            return 0

        source_ids = sorted({chunk.source_id for chunk in chunks})
        rows = [
            {
                "source_id": chunk.source_id,
                "content": chunk.content,
                "embedding": list(vector),
                "chunk_index": chunk.chunk_index,
                "chunk_metadata": chunk.metadata,
            }
            for chunk, vector in zip(chunks, embeddings)
        ]

        try:
            await session.execute(
                delete(EmbeddingModel).where(EmbeddingModel.source_id.in_(source_ids))
            )
            for start in range(0, len(rows), self._insert_batch_size):
                await session.execute(
                    insert(EmbeddingModel),
                    rows[start : start + self._insert_batch_size],
                )
        except SQLAlchemyError as e:
            raise VectorStoreError(
                f"Failed to store embeddings: {e}",
                operation="upsert",
                details={"source_ids": source_ids, "rows": len(rows)},
            ) from e

        logger.info(
            f"{__name__}:upsert - Stored {len(rows)} embeddings",
            extra={"source_ids": source_ids},
        )
        return len(rows)

    async def query(
        self,
        session: AsyncSession,
        vector: Sequence[float],
        k: int,
        knowledge_base_id: int,
        min_similarity: float = 0.0,
    ) -> list[VectorSearchResult]:
        """
        Find the chunks of one knowledge base most similar to a vector.

        Args:
            session: Async database session
            vector: Query embedding
            k: Maximum number of results
            knowledge_base_id: Tenant scope
            min_similarity: Results must score strictly above this

        Returns:
            list[VectorSearchResult]: Results by descending similarity

        Raises:
            DimensionMismatchError: Query vector has the wrong width
            VectorStoreError: Database read failed
        """
        self._check_dimension(vector)
        if k <= 0:
            return []

        try:
            if session.get_bind().dialect.name == "postgresql":
                results = await self._query_pgvector(session, vector, k, knowledge_base_id, min_similarity)
            else:
                results = await self._query_scan(session, vector, k, knowledge_base_id, min_similarity)
        except SQLAlchemyError as e:
            raise VectorStoreError(
                f"Vector search failed: {e}",
                operation="query",
                details={"knowledge_base_id": knowledge_base_id},
            ) from e

        logger.info(
            f"{__name__}:query - Found {len(results)} results",
            extra={"knowledge_base_id": knowledge_base_id, "k": k},
        )
        return results

    async def delete_by_source_ids(self, session: AsyncSession, source_ids: Sequence[int]) -> int:
        """
        Remove every embedding row of the given sources.

        Returns:
            int: Number of deleted rows

        Raises:
            VectorStoreError: Database delete failed
        """
        if not source_ids:
            return 0
        try:
            result = await session.execute(
                delete(EmbeddingModel).where(EmbeddingModel.source_id.in_(list(source_ids)))
            )
        except SQLAlchemyError as e:
            raise VectorStoreError(
                f"Failed to delete embeddings: {e}",
                operation="delete",
                details={"source_ids": list(source_ids)},
            ) from e
        return result.rowcount

    async def count_by_source_ids(self, session: AsyncSession, source_ids: Sequence[int]) -> int:
        stmt = select(func.count(EmbeddingModel.id)).where(
            EmbeddingModel.source_id.in_(list(source_ids))
        )
        return (await session.execute(stmt)).scalar_one()

    async def _query_pgvector(
        self,
        session: AsyncSession,
        vector: Sequence[float],
        k: int,
        knowledge_base_id: int,
        min_similarity: float,
    ) -> list[VectorSearchResult]:
        distance = EmbeddingModel.embedding.cosine_distance(list(vector))
        stmt = (
            select(
                EmbeddingModel.content,
                EmbeddingModel.chunk_metadata,
                EmbeddingModel.source_id,
                EmbeddingModel.chunk_index,
                (1 - distance).label("similarity"),
            )
            .join(SourceModel, SourceModel.id == EmbeddingModel.source_id)
            .where(SourceModel.knowledge_base_id == knowledge_base_id)
            .where(distance < 1 - min_similarity)
            .order_by(distance)
            .limit(k)
        )
        rows = (await session.execute(stmt)).all()
        return [
            VectorSearchResult(
                content=row.content,
                metadata=row.chunk_metadata or {},
                source_id=row.source_id,
                chunk_index=row.chunk_index,
                similarity=float(row.similarity),
            )
            for row in rows
        ]

    async def _query_scan(
        self,
        session: AsyncSession,
        vector: Sequence[float],
        k: int,
        knowledge_base_id: int,
        min_similarity: float,
    ) -> list[VectorSearchResult]:
        stmt = (
            select(
                EmbeddingModel.id,
                EmbeddingModel.content,
                EmbeddingModel.chunk_metadata,
                EmbeddingModel.source_id,
                EmbeddingModel.chunk_index,
                EmbeddingModel.embedding,
            )
            .join(SourceModel, SourceModel.id == EmbeddingModel.source_id)
            .where(SourceModel.knowledge_base_id == knowledge_base_id)
            .order_by(EmbeddingModel.id)
        )
        rows = (await session.execute(stmt)).all()
        if not rows:
            return []

        matrix = np.asarray([np.asarray(row.embedding, dtype=float) for row in rows])
        query = np.asarray(vector, dtype=float)
        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
        with np.errstate(divide="ignore", invalid="ignore"):
            similarities = np.where(norms > 0, matrix @ query / norms, 0.0)

        # Stable sort keeps insertion order among equal scores
        order = np.argsort(-similarities, kind="stable")
        results = []
        for position in order:
            similarity = float(similarities[position])
            if similarity <= min_similarity:
                break
            row = rows[position]
            results.append(
                VectorSearchResult(
                    content=row.content,
                    metadata=row.chunk_metadata or {},
                    source_id=row.source_id,
                    chunk_index=row.chunk_index,
                    similarity=similarity,
                )
            )
            if len(results) == k:
                break
        return results

    def _check_dimension(self, vector: Sequence[float]) -> None:
        if len(vector) != self._dimension:
            raise DimensionMismatchError(self._dimension, len(vector))
