"""
Source service orchestrator.

Replaces the content of a knowledge base and enqueues the run that ingests
it. Re-ingestion supersedes every existing source, files included: old
embeddings and sources are deleted, new sources are created and the run is
queued, all in one transaction, so a failure leaves the old state intact.

Dependencies: sqlalchemy, knowbase.boundary.db, knowbase.boundary.vdb,
    knowbase.core.ingestion
System role: Source lifecycle orchestration
"""

import logging
from dataclasses import dataclass, field
from typing import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from knowbase.boundary.db.CRUD import source_crud
from knowbase.boundary.vdb import PgVectorStore
from knowbase.core.ingestion.models import (
    FileDetails,
    IngestionEvent,
    NotionDetails,
    QADetails,
    Source,
    SourceKind,
    TextDetails,
    WebsiteDetails,
)
from knowbase.core.ingestion.run_tracker import RunTracker
from knowbase.models.source import ReplaceSourcesRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceReplacement:
    """Outcome of replacing a knowledge base's sources."""

    run_id: str | None
    sources: list[Source] = field(default_factory=list)
    removed: int = 0


class SourceService:
    """
    Source service orchestrator.

    Handles source lifecycle: replacement, listing and deletion. The service
    owns the request session's transaction and commits it.
    """

    def __init__(self, db: AsyncSession, tracker: RunTracker, store: PgVectorStore) -> None:
        """
        Initialize source service.

        Args:
            db: AsyncSession for source rows, embeddings and the queued run
            tracker: Run tracker that queues the ingestion run
            store: Vector store whose rows are removed with their sources
        """
        self.db = db
        self.tracker = tracker
        self.store = store

    async def replace_sources(
        self,
        knowledge_base_id: int,
        request: ReplaceSourcesRequest,
    ) -> SourceReplacement:
        """
        Supersede all sources of a knowledge base and queue their ingestion.

        Args:
            knowledge_base_id: Knowledge base to update
            request: Complete new content of the knowledge base

        Returns:
            SourceReplacement: New sources and the run ID (None when the
            request carries no content)
        """
        try:
            existing = await source_crud.get_by_knowledge_base(self.db, knowledge_base_id)
            removed = await self._delete(knowledge_base_id, [source.id for source in existing])

            sources = []
            for kind, name, details in self._requested(request):
                row = await source_crud.create_source(
                    self.db,
                    knowledge_base_id=knowledge_base_id,
                    kind=kind,
                    name=name,
                    details=details.model_dump(mode="json", exclude={"kind"}),
                )
                sources.append(row.to_domain())

            run_id = None
            if sources:
                event = IngestionEvent.from_sources(knowledge_base_id, sources)
                run_id = await self.tracker.create_run(self.db, event)

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            f"{__name__}:replace_sources - Replaced {removed} sources with {len(sources)}",
            extra={"knowledge_base_id": knowledge_base_id, "run_id": run_id},
        )
        return SourceReplacement(run_id=run_id, sources=sources, removed=removed)

    async def list_sources(self, knowledge_base_id: int) -> list[Source]:
        """
        List the sources of a knowledge base in creation order.

        Args:
            knowledge_base_id: Knowledge base to list

        Returns:
            list[Source]: Typed sources
        """
        rows = await source_crud.get_by_knowledge_base(self.db, knowledge_base_id)
        return [row.to_domain() for row in rows]

    async def delete_source(self, knowledge_base_id: int, source_id: int) -> bool:
        """
        Delete one source with all of its embeddings.

        Args:
            knowledge_base_id: Owning knowledge base
            source_id: Source to delete

        Returns:
            bool: False if the source does not exist in this knowledge base
        """
        row = await source_crud.get_by_id(self.db, source_id)
        if row is None or row.knowledge_base_id != knowledge_base_id:
            return False
        try:
            await self._delete(knowledge_base_id, [source_id])
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return True

    async def _delete(self, knowledge_base_id: int, source_ids: Sequence[int]) -> int:
        if not source_ids:
            return 0
        embeddings = await self.store.delete_by_source_ids(self.db, source_ids)
        removed = await source_crud.delete_by_ids(self.db, source_ids)
        logger.info(
            f"{__name__}:_delete - Deleted {removed} sources and {embeddings} embeddings",
            extra={"knowledge_base_id": knowledge_base_id},
        )
        return removed

    @staticmethod
    def _requested(request: ReplaceSourcesRequest):
        """Yield (kind, name, details) in ingestion order."""
        for file in request.files:
            yield SourceKind.FILE, file.name, FileDetails(
                file_url=file.file_url,
                mime_type=file.mime_type,
                file_size=file.file_size,
            )
        if request.text is not None:
            yield SourceKind.TEXT, request.text.name, TextDetails(content=request.text.content)
        if request.qa is not None:
            yield SourceKind.QA, request.qa.name, QADetails(pairs=request.qa.pairs)
        for website in request.websites:
            yield SourceKind.WEBSITE, website.name or website.url, WebsiteDetails(
                url=website.url,
                content=website.content,
            )
        if request.notion is not None:
            yield SourceKind.NOTION, request.notion.name, NotionDetails(
                url=request.notion.url,
                content=request.notion.content,
            )
