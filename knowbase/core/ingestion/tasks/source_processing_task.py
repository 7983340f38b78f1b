"""
Source processing task.

Runs every source of a batch through fetch, load and chunk. A source the
batch's knowledge base does not own is rejected before any work. A terminal
failure is recorded as that source's outcome and its siblings continue;
retryable failures (blob fetch) propagate so the whole step is retried.

Dependencies: loaders, chunking_task, boundary.storage, boundary.db
System role: First stage (process-sources) of the ingestion pipeline
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from knowbase.boundary.db.CRUD import source_crud
from knowbase.boundary.storage import BlobFetcher
from knowbase.core.exceptions import SourceOwnershipError, SourceProcessingError
from knowbase.core.ingestion.loaders import DocumentFormat, DocumentLoader
from knowbase.core.ingestion.models import (
    Chunk,
    FileDetails,
    ProcessedSources,
    Source,
    SourceOutcome,
    SourceOutcomeStatus,
)
from knowbase.core.ingestion.tasks.chunking_task import SourceChunker

logger = logging.getLogger(__name__)


class SourceProcessor:
    """Turn a batch of sources into chunks plus per-source outcomes."""

    def __init__(
        self,
        chunker: SourceChunker,
        loader: DocumentLoader,
        blob_fetcher: BlobFetcher,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        self._chunker = chunker
        self._loader = loader
        self._blob_fetcher = blob_fetcher
        self._session_factory = session_factory

    async def process(self, sources: list[Source]) -> ProcessedSources:
        """
        Process sources in order.

        Args:
            sources: Batch sources, in batch order

        Returns:
            ProcessedSources: Concatenated chunks and one outcome per source

        Raises:
            RetryableError: Transient failure; the caller retries the batch
        """
        chunks: list[Chunk] = []
        outcomes: list[SourceOutcome] = []

        async with self._session_factory() as session:
            owners = await source_crud.get_owners(session, (s.id for s in sources))

        for source in sources:
            try:
                if owners.get(source.id) != source.knowledge_base_id:
                    raise SourceOwnershipError(source.id, source.knowledge_base_id)
                source_chunks = await self._process_one(source)
            except SourceProcessingError as e:
                logger.warning(
                    f"{__name__}:process - Source failed: {e.message}",
                    extra={
                        "source_id": source.id,
                        "kind": source.kind.value,
                        "error_type": type(e).__name__,
                    },
                )
                outcomes.append(
                    SourceOutcome(
                        source_id=source.id,
                        name=source.name,
                        kind=source.kind.value,
                        status=SourceOutcomeStatus.FAILED,
                        error=e.message,
                        error_type=type(e).__name__,
                    )
                )
                continue

            chunks.extend(source_chunks)
            outcomes.append(
                SourceOutcome(
                    source_id=source.id,
                    name=source.name,
                    kind=source.kind.value,
                    status=SourceOutcomeStatus.SUCCEEDED,
                    chunk_count=len(source_chunks),
                )
            )

        logger.info(
            f"{__name__}:process - Processed {len(sources)} sources into {len(chunks)} chunks",
            extra={"failed": sum(o.status == SourceOutcomeStatus.FAILED for o in outcomes)},
        )
        return ProcessedSources(chunks=chunks, outcomes=outcomes)

    async def _process_one(self, source: Source) -> list[Chunk]:
        details = source.details
        if not isinstance(details, FileDetails):
            return self._chunker.chunk(source)

        try:
            # Reject unknown types before spending a fetch on them
            DocumentFormat.from_mime_type(details.mime_type)
        except SourceProcessingError as e:
            e.source_id = source.id
            e.details["source_id"] = source.id
            raise

        blob = await self._blob_fetcher.fetch(details.file_url)
        text = await self._loader.aload(blob, details.mime_type)
        return self._chunker.chunk_text_source(source, text)
