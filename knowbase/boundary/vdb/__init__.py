"""
Vector database layer.

Exports: PgVectorStore, VectorSearchResult, FixedDimensionEmbeddings
"""

from knowbase.boundary.vdb.embeddings_wrapper import FixedDimensionEmbeddings, create_embeddings
from knowbase.boundary.vdb.pgvector_store import PgVectorStore
from knowbase.boundary.vdb.vector_schemas import VectorSearchResult

__all__ = [
    "FixedDimensionEmbeddings",
    "create_embeddings",
    "PgVectorStore",
    "VectorSearchResult",
]
