"""API-specific dependencies."""

from .dependencies import (
    ServiceCache,
    get_async_db,
    get_retriever,
    get_run_tracker,
    get_service_cache,
    get_settings_dependency,
    get_source_service,
    get_vector_store,
)

__all__ = [
    "ServiceCache",
    "get_async_db",
    "get_retriever",
    "get_run_tracker",
    "get_service_cache",
    "get_settings_dependency",
    "get_source_service",
    "get_vector_store",
]
