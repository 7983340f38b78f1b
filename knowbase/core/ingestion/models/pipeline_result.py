"""
Pipeline result models.

Per-source outcomes and the summary of one pipeline run, plus the payloads
persisted as step checkpoints.

Dependencies: pydantic
System role: Return and checkpoint types for IngestionPipeline
"""

import enum
from typing import Literal

from pydantic import BaseModel, Field

from knowbase.core.ingestion.models.chunk import Chunk


class SourceOutcomeStatus(str, enum.Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class SourceOutcome(BaseModel):
    """What happened to one source during the process-sources step."""

    source_id: int
    name: str
    kind: str
    status: SourceOutcomeStatus
    chunk_count: int = 0
    error: str | None = None
    error_type: str | None = None


class ProcessedSources(BaseModel):
    """Checkpoint payload of the process-sources step."""

    chunks: list[Chunk] = Field(default_factory=list)
    outcomes: list[SourceOutcome] = Field(default_factory=list)

    @property
    def failed(self) -> list[SourceOutcome]:
        return [o for o in self.outcomes if o.status == SourceOutcomeStatus.FAILED]


class GeneratedEmbeddings(BaseModel):
    """Checkpoint payload of the generate-embeddings step; index-aligned with chunks."""

    vectors: list[list[float]] = Field(default_factory=list)


class StoredEmbeddings(BaseModel):
    """Checkpoint payload of the store step."""

    stored: int = 0


class PipelineResult(BaseModel):
    """Result of one pipeline run."""

    run_id: str = Field(description="Pipeline run identifier")
    knowledge_base_id: int
    chunks_processed: int = Field(description="Number of chunks generated")
    embeddings_stored: int = Field(description="Number of embedding rows written")
    failed_sources: list[SourceOutcome] = Field(default_factory=list)
    processing_time_ms: float = Field(description="Total processing time in milliseconds")


class PipelineStep(str, enum.Enum):
    """Pipeline steps in execution order."""

    PROCESS_SOURCES = "process-sources"
    GENERATE_EMBEDDINGS = "generate-embeddings"
    STORE = "store"


class RunStatusReport(BaseModel):
    """Externally visible status of a pipeline run."""

    status: Literal["processing", "complete", "error"]
    progress: int = Field(ge=0, le=100)
    message: str
    step: str
    knowledge_base_id: int | None = None
