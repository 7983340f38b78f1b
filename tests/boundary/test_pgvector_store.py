"""
Test suite for PgVectorStore.

Runs against in-memory SQLite, which exercises the numpy ranking path;
the SQL path is covered by statement compilation for PostgreSQL.

System role: Verification of vector index reads and writes
"""

import pytest
from sqlalchemy import select
from sqlalchemy.dialects import postgresql

from knowbase.boundary.db.models import EMBEDDING_DIMENSION, EmbeddingModel
from knowbase.core.exceptions import DimensionMismatchError, EmbeddingContractError
from knowbase.core.ingestion.models import Chunk, TextDetails


def _basis(*weights: tuple[int, float]) -> list[float]:
    vector = [0.0] * EMBEDDING_DIMENSION
    for position, weight in weights:
        vector[position] = weight
    return vector


def _chunks(source_id: int, *contents: str) -> list[Chunk]:
    return [
        Chunk(source_id=source_id, chunk_index=index, content=content, metadata={"type": "text"})
        for index, content in enumerate(contents)
    ]


class TestUpsert:
    """Test PgVectorStore.upsert()."""

    @pytest.mark.asyncio
    async def test_rows_written(self, vector_store, session_factory, create_source) -> None:
        source = await create_source(1, TextDetails(content="x"))
        chunks = _chunks(source.id, "first", "second")

        async with session_factory() as session:
            async with session.begin():
                written = await vector_store.upsert(
                    session, chunks, [_basis((0, 1.0)), _basis((1, 1.0))]
                )
            rows = (
                await session.execute(select(EmbeddingModel).order_by(EmbeddingModel.chunk_index))
            ).scalars().all()

        assert written == 2
        assert [(row.chunk_index, row.content) for row in rows] == [(0, "first"), (1, "second")]
        assert rows[0].chunk_metadata == {"type": "text"}
        assert len(rows[0].embedding) == EMBEDDING_DIMENSION

    @pytest.mark.asyncio
    async def test_same_batch_twice_does_not_duplicate(
        self, vector_store, session_factory, create_source
    ) -> None:
        """Re-running a batch replaces its sources' rows."""
        source = await create_source(1, TextDetails(content="x"))
        chunks = _chunks(source.id, "a", "b", "c")
        vectors = [_basis((i, 1.0)) for i in range(3)]

        for _ in range(2):
            async with session_factory() as session:
                async with session.begin():
                    await vector_store.upsert(session, chunks, vectors)

        async with session_factory() as session:
            assert await vector_store.count_by_source_ids(session, [source.id]) == 3

    @pytest.mark.asyncio
    async def test_length_mismatch(self, vector_store, test_async_db) -> None:
        with pytest.raises(EmbeddingContractError):
            await vector_store.upsert(test_async_db, _chunks(1, "a", "b"), [_basis((0, 1.0))])

    @pytest.mark.asyncio
    async def test_dimension_mismatch(self, vector_store, test_async_db) -> None:
        with pytest.raises(DimensionMismatchError) as exc_info:
            await vector_store.upsert(test_async_db, _chunks(1, "a"), [[1.0, 0.0]])

        assert exc_info.value.details == {"expected": EMBEDDING_DIMENSION, "actual": 2}

    @pytest.mark.asyncio
    async def test_empty_batch(self, vector_store, test_async_db) -> None:
        assert await vector_store.upsert(test_async_db, [], []) == 0


class TestQuery:
    """Test PgVectorStore.query()."""

    @pytest.mark.asyncio
    async def test_ranked_by_similarity_with_threshold(
        self, vector_store, session_factory, create_source
    ) -> None:
        source = await create_source(1, TextDetails(content="x"))
        chunks = _chunks(source.id, "exact", "close", "orthogonal")
        vectors = [_basis((0, 1.0)), _basis((0, 1.0), (1, 1.0)), _basis((2, 1.0))]
        async with session_factory() as session:
            async with session.begin():
                await vector_store.upsert(session, chunks, vectors)

            results = await vector_store.query(
                session, _basis((0, 1.0)), k=5, knowledge_base_id=1, min_similarity=0.5
            )

        assert [result.content for result in results] == ["exact", "close"]
        assert results[0].similarity == pytest.approx(1.0)
        assert results[1].similarity == pytest.approx(2 ** -0.5)
        assert results[0].source_id == source.id

    @pytest.mark.asyncio
    async def test_top_k(self, vector_store, session_factory, create_source) -> None:
        source = await create_source(1, TextDetails(content="x"))
        chunks = _chunks(source.id, *[f"chunk {i}" for i in range(6)])
        vectors = [_basis((0, 1.0), (i + 1, 0.1 * i)) for i in range(6)]
        async with session_factory() as session:
            async with session.begin():
                await vector_store.upsert(session, chunks, vectors)

            results = await vector_store.query(session, _basis((0, 1.0)), k=2, knowledge_base_id=1)

        assert [result.content for result in results] == ["chunk 0", "chunk 1"]

    @pytest.mark.asyncio
    async def test_tenant_isolation(self, vector_store, session_factory, create_source) -> None:
        """A knowledge base never sees another one's chunks."""
        own = await create_source(1, TextDetails(content="x"))
        other = await create_source(2, TextDetails(content="x"))
        async with session_factory() as session:
            async with session.begin():
                await vector_store.upsert(session, _chunks(own.id, "own"), [_basis((0, 0.5))])
                await vector_store.upsert(session, _chunks(other.id, "other"), [_basis((0, 1.0))])

            results = await vector_store.query(session, _basis((0, 1.0)), k=10, knowledge_base_id=1)

        assert [result.content for result in results] == ["own"]

    @pytest.mark.asyncio
    async def test_unknown_knowledge_base(self, vector_store, test_async_db) -> None:
        assert await vector_store.query(test_async_db, _basis((0, 1.0)), k=3, knowledge_base_id=99) == []

    @pytest.mark.asyncio
    async def test_query_dimension_checked(self, vector_store, test_async_db) -> None:
        with pytest.raises(DimensionMismatchError):
            await vector_store.query(test_async_db, [1.0], k=3, knowledge_base_id=1)


class TestDelete:
    """Test PgVectorStore.delete_by_source_ids()."""

    @pytest.mark.asyncio
    async def test_removes_only_given_sources(self, vector_store, session_factory, create_source) -> None:
        first = await create_source(1, TextDetails(content="x"))
        second = await create_source(1, TextDetails(content="y"))
        async with session_factory() as session:
            async with session.begin():
                await vector_store.upsert(session, _chunks(first.id, "a", "b"), [_basis((0, 1.0))] * 2)
                await vector_store.upsert(session, _chunks(second.id, "c"), [_basis((0, 1.0))])

            async with session.begin():
                deleted = await vector_store.delete_by_source_ids(session, [first.id])

            assert deleted == 2
            assert await vector_store.count_by_source_ids(session, [first.id]) == 0
            assert await vector_store.count_by_source_ids(session, [second.id]) == 1

    @pytest.mark.asyncio
    async def test_empty_ids(self, vector_store, test_async_db) -> None:
        assert await vector_store.delete_by_source_ids(test_async_db, []) == 0


def test_hnsw_index_declared_for_postgres() -> None:
    index = next(i for i in EmbeddingModel.__table__.indexes if i.name == "embeddings_embedding_hnsw_idx")

    assert index.dialect_options["postgresql"]["using"] == "hnsw"
    assert index.dialect_options["postgresql"]["ops"] == {"embedding": "vector_cosine_ops"}


def test_cosine_distance_operator_compiles() -> None:
    stmt = select(EmbeddingModel.id).order_by(EmbeddingModel.embedding.cosine_distance(_basis((0, 1.0))))

    compiled = str(stmt.compile(dialect=postgresql.dialect()))

    assert "<=>" in compiled
