"""
Dependency injection container.

Factory functions for FastAPI dependencies. Long-lived clients (engine,
embedding client, vector store, tracker, retriever) are built once and
cached; sessions and services are per request.

Dependencies: knowbase.configs, knowbase.application, knowbase.boundary,
    knowbase.core
System role: DI container for service injection
"""

from functools import lru_cache
from typing import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from knowbase.application.services import SourceService
from knowbase.boundary.db import get_async_engine, get_async_session_factory
from knowbase.boundary.vdb import PgVectorStore, create_embeddings
from knowbase.configs import Settings, get_settings
from knowbase.core.ingestion.run_tracker import RunTracker
from knowbase.core.ingestion.tasks import EmbeddingGenerator
from knowbase.core.retrieval import Retriever


class ServiceCache:
    """Container for cached service instances."""

    def __init__(self) -> None:
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None
        self._embedding_generator: EmbeddingGenerator | None = None
        self._vector_store: PgVectorStore | None = None
        self._run_tracker: RunTracker | None = None
        self._retriever: Retriever | None = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            self._engine = get_async_engine(get_settings().database)
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            self._session_factory = get_async_session_factory(self.engine)
        return self._session_factory

    @property
    def embedding_generator(self) -> EmbeddingGenerator:
        """Get cached embedding generator (query embeddings for retrieval)."""
        if self._embedding_generator is None:
            ingestion = get_settings().ingestion
            self._embedding_generator = EmbeddingGenerator(
                create_embeddings(ingestion),
                dimension=ingestion.embedding_dimension,
            )
        return self._embedding_generator

    @property
    def vector_store(self) -> PgVectorStore:
        if self._vector_store is None:
            self._vector_store = PgVectorStore(dimension=get_settings().ingestion.embedding_dimension)
        return self._vector_store

    @property
    def run_tracker(self) -> RunTracker:
        if self._run_tracker is None:
            self._run_tracker = RunTracker(
                self.session_factory,
                lease_timeout_seconds=get_settings().ingestion.lease_timeout_seconds,
            )
        return self._run_tracker

    @property
    def retriever(self) -> Retriever:
        """Get cached retriever."""
        if self._retriever is None:
            self._retriever = Retriever.from_settings(
                self.embedding_generator,
                self.vector_store,
                self.session_factory,
                get_settings().retrieval,
            )
        return self._retriever

    def clear(self) -> None:
        """Clear all cached instances."""
        self._engine = None
        self._session_factory = None
        self._embedding_generator = None
        self._vector_store = None
        self._run_tracker = None
        self._retriever = None

    async def dispose(self) -> None:
        """Close pooled connections and clear the cache."""
        if self._engine is not None:
            await self._engine.dispose()
        self.clear()


# Global service cache
_service_cache = ServiceCache()


def get_service_cache() -> ServiceCache:
    """Get service cache singleton."""
    return _service_cache


@lru_cache
def get_settings_dependency() -> Settings:
    """Get settings singleton."""
    return get_settings()


async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Provide a request-scoped database session.

    Yields:
        AsyncSession: Session closed when the request finishes
    """
    async with _service_cache.session_factory() as session:
        yield session


def get_run_tracker() -> RunTracker:
    return _service_cache.run_tracker


def get_vector_store() -> PgVectorStore:
    return _service_cache.vector_store


def get_retriever() -> Retriever:
    return _service_cache.retriever


def get_source_service(
    db: AsyncSession = Depends(get_async_db),
    tracker: RunTracker = Depends(get_run_tracker),
    store: PgVectorStore = Depends(get_vector_store),
) -> SourceService:
    """
    Get source service instance.

    Args:
        db: Async database session (injected via Depends)
        tracker: Cached run tracker
        store: Cached vector store

    Returns:
        SourceService: Service bound to the request session
    """
    return SourceService(db=db, tracker=tracker, store=store)
