"""
Chunk domain model for the ingestion pipeline.

A bounded span of text derived from exactly one Source, with its ordinal
position inside that source.

Dependencies: pydantic
System role: Data structure for chunks flowing through the pipeline
"""

from typing import Any

from pydantic import BaseModel, Field


class Chunk(BaseModel):
    """Text chunk with provenance metadata."""

    source_id: int = Field(description="Owning source ID")
    chunk_index: int = Field(description="Zero-based, gapless position within the source", ge=0)
    content: str = Field(description="Chunk text content")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Provenance: at least type and name, plus kind-specific extras",
    )
