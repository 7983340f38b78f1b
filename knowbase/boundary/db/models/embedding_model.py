"""
Embedding ORM model.

One row per chunk: the chunk text, its vector and its provenance. Rows are
owned by their source and removed with it.

Dependencies: sqlalchemy, pgvector
System role: Vector index storage
"""

from datetime import datetime

from pgvector.sqlalchemy import Vector
from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from knowbase.boundary.db.base import Base, utc_now

# Width of the vector column; INGESTION_EMBEDDING_DIMENSION must match
EMBEDDING_DIMENSION = 768


class EmbeddingModel(Base):
    """
    Embedding ORM model.

    Attributes:
        id: Integer primary key
        source_id: Owning source (cascade delete)
        content: Chunk text
        embedding: Vector of EMBEDDING_DIMENSION floats
        chunk_index: Ordinal within the source
        chunk_metadata: Provenance, stored in the ``metadata`` column
        created_at: Insert timestamp
    """

    __tablename__ = "embeddings"
    __table_args__ = (
        Index(
            "embeddings_embedding_hnsw_idx",
            "embedding",
            postgresql_using="hnsw",
            postgresql_with={"m": 16, "ef_construction": 64},
            postgresql_ops={"embedding": "vector_cosine_ops"},
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    source_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("sources.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    content: Mapped[str] = mapped_column(Text, nullable=False)

    embedding = mapped_column(Vector(EMBEDDING_DIMENSION), nullable=False)

    chunk_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    chunk_metadata: Mapped[dict] = mapped_column("metadata", JSON, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )
