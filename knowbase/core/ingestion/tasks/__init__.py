"""
Ingestion pipeline tasks.

Exports: SourceChunker, SourceProcessor, EmbeddingGenerator, VectorStoreTask
"""

from .chunking_task import SourceChunker
from .embedding_task import EmbeddingGenerator
from .source_processing_task import SourceProcessor
from .vector_store_task import VectorStoreTask

__all__ = [
    "SourceChunker",
    "EmbeddingGenerator",
    "SourceProcessor",
    "VectorStoreTask",
]
