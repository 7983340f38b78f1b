"""
FastAPI application with assembled routers.

Initializes FastAPI app with all API routers and configures uvicorn server.

Dependencies: fastapi, knowbase.api.routers, uvicorn
System role: API entry point with router assembly and server launch
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from knowbase import __version__
from knowbase.api.deps.dependencies import get_service_cache
from knowbase.observability.middleware import RequestLoggingMiddleware

from .routers import (
    health_router,
    ingestion_router,
    retrieval_router,
    sources_router,
    training_status_router,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown events.
    """
    logger = logging.getLogger("uvicorn")

    # Startup
    logger.info("Pre-warming service cache...")
    cache = get_service_cache()
    _ = cache.run_tracker
    _ = cache.retriever
    logger.info("Service cache pre-warmed")

    yield

    # Shutdown
    await cache.dispose()
    logger.info("Service cache cleared")


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application with routers.

    Returns:
        FastAPI: Configured application instance with all routers registered
    """
    app = FastAPI(
        title="Knowbase API",
        description="Knowledge-base ingestion and retrieval for chat agents",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    # Register all routers with /api/v1 prefix for versioning
    app.include_router(health_router, prefix="/api/v1")
    app.include_router(ingestion_router, prefix="/api/v1")
    app.include_router(training_status_router, prefix="/api/v1")
    app.include_router(sources_router, prefix="/api/v1")
    app.include_router(retrieval_router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    from dotenv import load_dotenv

    from knowbase.configs import get_settings
    from knowbase.observability import configure_logging

    load_dotenv()
    configure_logging(get_settings().log_level)
    uvicorn.run(
        "knowbase.api.main:app",
        host="0.0.0.0",
        port=8000,
    )
