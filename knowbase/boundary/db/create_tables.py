"""
Database table creation script.

Creates the pgvector extension and all tables defined in ORM models.

Dependencies: sqlalchemy, python-dotenv, knowbase.configs
System role: Database schema initialization

Usage:
    python -m knowbase.boundary.db.create_tables [--drop]
"""

import argparse
import asyncio
import logging

from dotenv import load_dotenv
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from knowbase.boundary.db.base import Base
from knowbase.boundary.db.connection import get_async_engine
from knowbase.configs import get_settings

# Import all models to register them with Base.metadata
from knowbase.boundary.db.models import EmbeddingModel, PipelineRunModel, SourceModel  # noqa: F401

logger = logging.getLogger(__name__)


async def create_all_tables(engine: AsyncEngine) -> None:
    """
    Create the vector extension and all tables.

    Idempotent: existing tables and the extension are left unchanged.

    Args:
        engine: Async engine to run DDL on
    """
    async with engine.begin() as conn:
        if conn.dialect.name == "postgresql":
            await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"{__name__}:create_all_tables - All tables created successfully")


async def drop_all_tables(engine: AsyncEngine) -> None:
    """
    Drop all tables and their data.

    WARNING: Irreversible data loss. Only use in development environments.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    logger.info(f"{__name__}:drop_all_tables - All tables dropped")


async def _main(drop: bool = False) -> None:
    if drop and get_settings().is_production:
        raise SystemExit("Refusing to drop tables in production")

    # The vector type does not exist before the extension is created
    engine = get_async_engine(register_vector_type=False)
    try:
        if drop:
            await drop_all_tables(engine)
        await create_all_tables(engine)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    from knowbase.observability import configure_logging

    parser = argparse.ArgumentParser(description="Create the knowbase schema")
    parser.add_argument("--drop", action="store_true", help="Drop all tables first")
    args = parser.parse_args()

    load_dotenv()
    configure_logging(get_settings().log_level)
    asyncio.run(_main(drop=args.drop))
