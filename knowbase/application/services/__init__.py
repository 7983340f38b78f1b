"""Application services."""

from knowbase.application.services.source_service import SourceReplacement, SourceService

__all__ = ["SourceReplacement", "SourceService"]
