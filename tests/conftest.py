"""
Shared test fixtures and configuration for entire test suite.

Provides: in-memory database engine and sessions, deterministic embeddings,
source factories
Dependencies: pytest, sqlalchemy, aiosqlite, langchain_core
System role: Test infrastructure and fixture management
"""

import hashlib
import re

import pytest
from langchain_core.embeddings import Embeddings

from knowbase.boundary.db.models import EMBEDDING_DIMENSION

_WORD = re.compile(r"[a-z0-9]+")


class FakeEmbeddings(Embeddings):
    """
    Deterministic bag-of-words embeddings.

    Each word (truncated to a five-letter stem so "refund" and "refunds"
    match) is hashed into one bucket. Texts sharing words have positive
    cosine similarity; texts sharing none score zero.
    """

    def __init__(self, dimension: int = EMBEDDING_DIMENSION) -> None:
        self.dimension = dimension
        self.document_calls = 0

    def _vector(self, text: str) -> list[float]:
        vector = [0.0] * self.dimension
        for word in _WORD.findall(text.lower()):
            bucket = int(hashlib.md5(word[:5].encode()).hexdigest(), 16) % self.dimension
            vector[bucket] += 1.0
        return vector

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        self.document_calls += 1
        return [self._vector(text) for text in texts]

    def embed_query(self, text: str) -> list[float]:
        return self._vector(text)


@pytest.fixture
async def engine():
    """
    Create in-memory SQLite async engine with all tables.

    Yields:
        AsyncEngine: Engine sharing one connection across sessions
    """
    from sqlalchemy.ext.asyncio import create_async_engine
    from sqlalchemy.pool import StaticPool

    from knowbase.boundary.db.create_tables import create_all_tables, drop_all_tables

    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    await create_all_tables(engine)

    yield engine

    await drop_all_tables(engine)
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    from knowbase.boundary.db import get_async_session_factory

    return get_async_session_factory(engine)


@pytest.fixture
async def test_async_db(session_factory):
    """
    Provide a test database session.

    Yields:
        AsyncSession: Session rolled back after the test
    """
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def fake_embeddings() -> FakeEmbeddings:
    return FakeEmbeddings()


@pytest.fixture
def embedding_generator(fake_embeddings):
    from knowbase.core.ingestion.tasks import EmbeddingGenerator

    return EmbeddingGenerator(fake_embeddings, dimension=EMBEDDING_DIMENSION)


@pytest.fixture
def vector_store():
    from knowbase.boundary.vdb import PgVectorStore

    return PgVectorStore(dimension=EMBEDDING_DIMENSION)


@pytest.fixture
def create_source(session_factory):
    """
    Factory persisting a source row and returning its domain Source.

    Usage:
        source = await create_source(7, TextDetails(content="..."), name="Text")
    """
    from knowbase.boundary.db.CRUD import source_crud
    from knowbase.core.ingestion.models import SourceKind

    async def _create(knowledge_base_id: int, details, name: str = "Source"):
        async with session_factory() as session:
            async with session.begin():
                row = await source_crud.create_source(
                    session,
                    knowledge_base_id=knowledge_base_id,
                    kind=SourceKind(details.kind),
                    name=name,
                    details=details.model_dump(mode="json", exclude={"kind"}),
                )
                return row.to_domain()

    return _create
