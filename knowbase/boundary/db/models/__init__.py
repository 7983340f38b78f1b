"""
Database models package.

Exports:
  - SourceModel: Knowledge-base source
  - EmbeddingModel, EMBEDDING_DIMENSION: Chunk vectors
  - PipelineRunModel, RunCheckpointModel, RunStatus: Run queue and checkpoints

Dependencies: sqlalchemy, pgvector, knowbase.boundary.db.base
System role: Database model definitions for domain entities
"""

from knowbase.boundary.db.models.embedding_model import EMBEDDING_DIMENSION, EmbeddingModel
from knowbase.boundary.db.models.pipeline_run_model import (
    PipelineRunModel,
    RunCheckpointModel,
    RunStatus,
)
from knowbase.boundary.db.models.source_model import SourceModel

__all__ = [
    "EMBEDDING_DIMENSION",
    "EmbeddingModel",
    "PipelineRunModel",
    "RunCheckpointModel",
    "RunStatus",
    "SourceModel",
]
