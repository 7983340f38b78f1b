"""
Database connection management.

Provides the async SQLAlchemy engine and session factory. PostgreSQL
connections get the pgvector codec registered on connect.

Dependencies: sqlalchemy, pgvector, knowbase.configs
System role: Database connection lifecycle management
"""

from pgvector.asyncpg import register_vector
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import AsyncAdaptedQueuePool

from knowbase.configs import DatabaseSettings, get_settings


def get_async_engine(
    db_config: DatabaseSettings | None = None,
    register_vector_type: bool = True,
) -> AsyncEngine:
    """
    Create async SQLAlchemy engine with connection pooling.

    pool_pre_ping=True verifies connections before use to detect stale or
    broken connections early.

    Args:
        db_config: Database settings (application settings if None)
        register_vector_type: Register the pgvector codec on asyncpg
            connections. Must be False until the extension exists.

    Returns:
        AsyncEngine: Configured async SQLAlchemy engine

    Usage:
        engine = get_async_engine()
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
    """
    db_config = db_config or get_settings().database

    engine = create_async_engine(
        db_config.async_database_url,
        echo=db_config.echo_sql,
        poolclass=AsyncAdaptedQueuePool,
        pool_size=db_config.pool_size,
        max_overflow=db_config.max_overflow,
        pool_timeout=db_config.pool_timeout,
        pool_pre_ping=True,
    )

    if register_vector_type and engine.dialect.driver == "asyncpg":

        @event.listens_for(engine.sync_engine, "connect")
        def _register_vector(dbapi_connection, connection_record) -> None:
            dbapi_connection.run_async(register_vector)

    return engine


def get_async_session_factory(engine: AsyncEngine | None = None) -> async_sessionmaker[AsyncSession]:
    """
    Create async session factory for database operations.

    autoflush=False and expire_on_commit=False give explicit transaction
    control; ORM objects stay readable after commit.

    Args:
        engine: Engine to bind (a new default engine if None)

    Returns:
        async_sessionmaker: Async session factory

    Usage:
        SessionFactory = get_async_session_factory()
        async with SessionFactory() as session:
            session.add(obj)
            await session.commit()
    """
    return async_sessionmaker(
        bind=engine or get_async_engine(),
        autoflush=False,
        expire_on_commit=False,
    )
