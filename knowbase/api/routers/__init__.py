"""API routers."""

from .health import router as health_router
from .ingestion import router as ingestion_router
from .retrieval import router as retrieval_router
from .sources import router as sources_router
from .training_status import router as training_status_router

__all__ = [
    "health_router",
    "ingestion_router",
    "retrieval_router",
    "sources_router",
    "training_status_router",
]
