"""
Source chunking task using RecursiveCharacterTextSplitter.

Turns one Source into ordered chunks. Free text, website markdown, notion
pages and loaded file text are split with overlap; Q&A pairs become one
chunk each and are never split.

Dependencies: langchain_text_splitters
System role: Chunking stage of the ingestion pipeline
"""

from typing import Any

from langchain_text_splitters import RecursiveCharacterTextSplitter

from knowbase.core.exceptions import ChunkingError, EmptyDocumentError
from knowbase.core.ingestion.loaders import clean_text
from knowbase.core.ingestion.models import (
    Chunk,
    FileDetails,
    NotionDetails,
    QADetails,
    Source,
    TextDetails,
    WebsiteDetails,
)


class SourceChunker:
    """Split sources into chunks with dense per-source ordinals."""

    def __init__(
        self,
        chunk_size: int = 1000,
        chunk_overlap: int = 200,
    ) -> None:
        """
        Initialize chunker with splitter configuration.

        Args:
            chunk_size: Maximum chunk size in characters
            chunk_overlap: Overlap between consecutive chunks

        Raises:
            ValueError: When chunk_overlap is not smaller than chunk_size
        """
        if chunk_overlap >= chunk_size:
            raise ValueError(
                f"chunk_overlap ({chunk_overlap}) must be smaller than chunk_size ({chunk_size})"
            )
        self._splitter = RecursiveCharacterTextSplitter(
            chunk_size=chunk_size,
            chunk_overlap=chunk_overlap,
            add_start_index=True,
            length_function=len,
        )

    def chunk(self, source: Source) -> list[Chunk]:
        """
        Chunk a source whose content is carried inline.

        Args:
            source: Text, website, Q&A or notion source

        Returns:
            list[Chunk]: Chunks in source order, ``chunk_index`` from 0

        Raises:
            EmptyDocumentError: Source has no content to chunk
            ChunkingError: File source passed without its loaded text
        """
        details = source.details
        match details:
            case QADetails():
                return self._chunk_qa(source, details)
            case TextDetails():
                return self._split(source, details.content, {"type": "text", "name": source.name})
            case WebsiteDetails():
                return self._split(
                    source,
                    details.content,
                    {"type": "website", "name": source.name, "url": details.url},
                )
            case NotionDetails():
                return self._split(
                    source,
                    details.content,
                    {"type": "notion", "name": source.name, "url": details.url},
                )
            case FileDetails():
                raise ChunkingError(
                    "File sources are chunked from their loaded text",
                    source_id=source.id,
                )

    def chunk_text_source(self, source: Source, text: str) -> list[Chunk]:
        """
        Chunk the loaded text of a file source.

        Args:
            source: File source the text was loaded from
            text: Extracted document text

        Returns:
            list[Chunk]: Chunks in document order
        """
        if not isinstance(source.details, FileDetails):
            raise ChunkingError("Loaded text is only accepted for file sources", source_id=source.id)
        metadata = {"type": "file", "name": source.name, "mimeType": source.details.mime_type}
        return self._split(source, text, metadata)

    def _chunk_qa(self, source: Source, details: QADetails) -> list[Chunk]:
        if not details.pairs:
            raise EmptyDocumentError("Q&A source has no pairs", source_id=source.id)
        return [
            Chunk(
                source_id=source.id,
                chunk_index=index,
                content=f"Question: {pair.question}\nAnswer: {pair.answer}",
                metadata={"type": "qa", "name": source.name},
            )
            for index, pair in enumerate(details.pairs)
        ]

    def _split(self, source: Source, text: str, metadata: dict[str, Any]) -> list[Chunk]:
        normalized = clean_text(text)
        if not normalized:
            raise EmptyDocumentError(f"{metadata['type']} source has no content", source_id=source.id)

        documents = self._splitter.create_documents([normalized], metadatas=[metadata])
        documents = [doc for doc in documents if doc.page_content.strip()]
        return [
            Chunk(
                source_id=source.id,
                chunk_index=index,
                content=doc.page_content,
                metadata=doc.metadata,
            )
            for index, doc in enumerate(documents)
        ]
