"""
Configuration management module.

Provides centralized, type-safe configuration using Pydantic Settings.
All config modules support environment variable mapping with validation.
"""

from knowbase.configs.database import DatabaseSettings
from knowbase.configs.ingestion import IngestionSettings
from knowbase.configs.retrieval import RetrievalSettings
from knowbase.configs.settings import Settings, get_settings
from knowbase.configs.storage import StorageSettings

__all__ = [
    "Settings",
    "get_settings",
    "DatabaseSettings",
    "IngestionSettings",
    "RetrievalSettings",
    "StorageSettings",
]
