"""Tests for SourceProcessor per-source isolation and retry propagation."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from knowbase.core.exceptions import BlobFetchError
from knowbase.core.ingestion.loaders import DocumentLoader
from knowbase.core.ingestion.models import (
    FileDetails,
    QADetails,
    QAPair,
    Source,
    SourceOutcomeStatus,
    TextDetails,
)
from knowbase.core.ingestion.tasks import SourceChunker, SourceProcessor


@pytest.fixture
def blob_fetcher() -> MagicMock:
    fetcher = MagicMock()
    fetcher.fetch = AsyncMock(return_value=b"Handbook: refunds take five days.")
    return fetcher


@pytest.fixture
def processor(blob_fetcher: MagicMock, session_factory) -> SourceProcessor:
    return SourceProcessor(
        chunker=SourceChunker(chunk_size=200, chunk_overlap=20),
        loader=DocumentLoader(),
        blob_fetcher=blob_fetcher,
        session_factory=session_factory,
    )


@pytest.fixture
def create_file(create_source):
    async def _create(name: str, mime_type: str) -> Source:
        details = FileDetails(file_url=f"https://s/files/7/{name}", mime_type=mime_type)
        return await create_source(7, details, name=name)

    return _create


class TestSourceProcessor:
    """Test batch processing of sources."""

    @pytest.mark.asyncio
    async def test_unsupported_file_fails_only_itself(
        self, processor: SourceProcessor, blob_fetcher: MagicMock, create_file, create_source
    ) -> None:
        """Should record the failure and keep processing siblings."""
        sources = [
            await create_file("a.bin", "application/unknown"),
            await create_file("b.txt", "text/plain"),
            await create_source(7, TextDetails(content="Opening hours 9-5"), name="Text"),
        ]

        processed = await processor.process(sources)

        assert [o.status for o in processed.outcomes] == [
            SourceOutcomeStatus.FAILED,
            SourceOutcomeStatus.SUCCEEDED,
            SourceOutcomeStatus.SUCCEEDED,
        ]
        failed = processed.failed
        assert len(failed) == 1
        assert failed[0].source_id == sources[0].id
        assert failed[0].error == "Unsupported file type: application/unknown"
        assert failed[0].error_type == "UnsupportedFormatError"
        assert {chunk.source_id for chunk in processed.chunks} == {sources[1].id, sources[2].id}
        # The unsupported file is rejected before any fetch
        blob_fetcher.fetch.assert_awaited_once_with("https://s/files/7/b.txt")

    @pytest.mark.asyncio
    async def test_chunks_follow_batch_order(
        self, processor: SourceProcessor, create_file, create_source
    ) -> None:
        pairs = [QAPair(question="What is X?", answer="Y"), QAPair(question="Why?", answer="Z")]
        file_source = await create_file("notes.txt", "text/plain")
        faq = await create_source(7, QADetails(pairs=pairs), name="FAQ")

        processed = await processor.process([file_source, faq])

        assert [(c.source_id, c.chunk_index) for c in processed.chunks] == [
            (file_source.id, 0),
            (faq.id, 0),
            (faq.id, 1),
        ]
        assert processed.outcomes[1].chunk_count == 2

    @pytest.mark.asyncio
    async def test_empty_source_recorded_as_failure(self, processor: SourceProcessor, create_source) -> None:
        source = await create_source(7, TextDetails(content="   "), name="Empty")

        processed = await processor.process([source])

        assert processed.chunks == []
        assert processed.failed[0].error_type == "EmptyDocumentError"

    @pytest.mark.asyncio
    async def test_fetch_failure_propagates(
        self, processor: SourceProcessor, blob_fetcher: MagicMock, create_file
    ) -> None:
        """Retryable errors are not per-source outcomes."""
        blob_fetcher.fetch.side_effect = BlobFetchError("HTTP 503", file_url="u")
        source = await create_file("c.txt", "text/plain")

        with pytest.raises(BlobFetchError):
            await processor.process([source])


class TestSourceOwnership:
    """Sources must belong to the knowledge base the batch is for."""

    @pytest.mark.asyncio
    async def test_source_of_other_knowledge_base_rejected(
        self, processor: SourceProcessor, blob_fetcher: MagicMock, create_file, create_source
    ) -> None:
        owned = await create_source(7, TextDetails(content="Opening hours 9-5"), name="Text")
        foreign = await create_file("d.txt", "text/plain")
        claimed = Source(
            id=foreign.id,
            knowledge_base_id=42,
            name=foreign.name,
            details=foreign.details,
        )
        relabelled = Source(id=owned.id, knowledge_base_id=42, name="Text", details=owned.details)

        processed = await processor.process([claimed, relabelled])

        assert processed.chunks == []
        assert [o.error_type for o in processed.outcomes] == ["SourceOwnershipError"] * 2
        assert processed.outcomes[0].error == f"Source {foreign.id} does not belong to knowledge base 42"
        blob_fetcher.fetch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_source_id_rejected(self, processor: SourceProcessor, create_source) -> None:
        owned = await create_source(7, TextDetails(content="Opening hours 9-5"), name="Text")
        unknown = Source(id=owned.id + 100, knowledge_base_id=7, name="Ghost", details=TextDetails(content="Boo"))

        processed = await processor.process([owned, unknown])

        assert [o.status for o in processed.outcomes] == [
            SourceOutcomeStatus.SUCCEEDED,
            SourceOutcomeStatus.FAILED,
        ]
        assert processed.outcomes[1].error_type == "SourceOwnershipError"
        assert {c.source_id for c in processed.chunks} == {owned.id}
