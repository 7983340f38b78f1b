"""
Vector database schemas.

Pydantic models for vector search results.

Dependencies: pydantic
System role: Type definitions for vector operations
"""

from typing import Any

from pydantic import BaseModel, Field


class VectorSearchResult(BaseModel):
    """Single result from vector search."""

    content: str = Field(description="Chunk text content")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Chunk provenance")
    source_id: int = Field(description="Owning source ID")
    chunk_index: int = Field(description="Ordinal within the source")
    similarity: float = Field(description="Cosine similarity (1 - cosine distance)")
