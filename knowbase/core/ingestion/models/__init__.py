"""
Models for the ingestion pipeline.

Exports: Source and its details union, Chunk, IngestionEvent, pipeline results
"""

from .chunk import Chunk
from .ingestion_event import (
    EventSources,
    FileSourcePayload,
    IngestionEvent,
    NotionSourcePayload,
    QASourcePayload,
    TextSourcePayload,
    WebsiteSourcePayload,
)
from .pipeline_result import (
    GeneratedEmbeddings,
    PipelineResult,
    PipelineStep,
    ProcessedSources,
    RunStatusReport,
    SourceOutcome,
    SourceOutcomeStatus,
    StoredEmbeddings,
)
from .source import (
    FileDetails,
    NotionDetails,
    QADetails,
    QAPair,
    Source,
    SourceDetails,
    SourceKind,
    TextDetails,
    WebsiteDetails,
)

__all__ = [
    "Chunk",
    "EventSources",
    "FileSourcePayload",
    "IngestionEvent",
    "NotionSourcePayload",
    "QASourcePayload",
    "TextSourcePayload",
    "WebsiteSourcePayload",
    "GeneratedEmbeddings",
    "PipelineResult",
    "PipelineStep",
    "ProcessedSources",
    "RunStatusReport",
    "SourceOutcome",
    "SourceOutcomeStatus",
    "StoredEmbeddings",
    "FileDetails",
    "NotionDetails",
    "QADetails",
    "QAPair",
    "Source",
    "SourceDetails",
    "SourceKind",
    "TextDetails",
    "WebsiteDetails",
]
