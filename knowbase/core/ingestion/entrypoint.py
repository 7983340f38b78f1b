"""
Ingestion pipeline orchestrator.

Executes one pipeline run: process sources, generate embeddings, store.
Steps run strictly in order. Each step is skipped when its checkpoint
exists, retried as a whole on retryable errors and checkpointed on success,
so a run resumed after a crash repeats no completed work.

Dependencies: tenacity, all task modules, run_tracker
System role: Pipeline orchestration (coordinates only)
"""

import logging
import time
from typing import Awaitable, Callable, TypeVar

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from knowbase.boundary.storage import BlobFetcher
from knowbase.boundary.vdb import PgVectorStore, create_embeddings
from knowbase.configs import Settings, get_settings
from knowbase.core.exceptions import KnowbaseException
from knowbase.core.ingestion.loaders import DocumentLoader, TesseractOcrEngine
from knowbase.core.ingestion.models import (
    GeneratedEmbeddings,
    PipelineResult,
    PipelineStep,
    ProcessedSources,
    StoredEmbeddings,
)
from knowbase.core.ingestion.run_tracker import RunTracker
from knowbase.core.ingestion.tasks import (
    EmbeddingGenerator,
    SourceChunker,
    SourceProcessor,
    VectorStoreTask,
)
from knowbase.observability import log_exception_with_context

logger = logging.getLogger(__name__)

StepOutputT = TypeVar("StepOutputT", bound=BaseModel)


def is_retryable(error: BaseException) -> bool:
    """Only errors flagged retryable are retried; contract and per-source errors are not."""
    return isinstance(error, KnowbaseException) and error.retryable


class IngestionPipeline:
    """Orchestrate ingestion: process-sources -> generate-embeddings -> store."""

    def __init__(
        self,
        tracker: RunTracker,
        processor: SourceProcessor,
        generator: EmbeddingGenerator,
        store_task: VectorStoreTask,
        max_attempts: int = 3,
        retry_initial_wait_seconds: float = 1.0,
        retry_max_wait_seconds: float = 30.0,
    ) -> None:
        """
        Initialize pipeline with its tasks.

        Args:
            tracker: Run status and checkpoint persistence
            processor: process-sources step
            generator: generate-embeddings step
            store_task: store step
            max_attempts: Attempts per step before the run fails
            retry_initial_wait_seconds: First backoff delay
            retry_max_wait_seconds: Backoff ceiling
        """
        self._tracker = tracker
        self._processor = processor
        self._generator = generator
        self._store_task = store_task
        self._max_attempts = max_attempts
        self._retry_initial_wait = retry_initial_wait_seconds
        self._retry_max_wait = retry_max_wait_seconds

    @classmethod
    def from_settings(
        cls,
        session_factory: async_sessionmaker[AsyncSession],
        settings: Settings | None = None,
    ) -> "IngestionPipeline":
        """
        Build the production pipeline.

        Args:
            session_factory: Session factory shared by tracker and store
            settings: Application settings (cached settings if None)
        """
        settings = settings or get_settings()
        ingestion = settings.ingestion

        ocr_engine = TesseractOcrEngine(language=ingestion.ocr_language) if ingestion.ocr_enabled else None
        processor = SourceProcessor(
            chunker=SourceChunker(
                chunk_size=ingestion.chunk_size,
                chunk_overlap=ingestion.chunk_overlap,
            ),
            loader=DocumentLoader(ocr_engine=ocr_engine),
            blob_fetcher=BlobFetcher.from_settings(settings.storage),
            session_factory=session_factory,
        )
        generator = EmbeddingGenerator(
            create_embeddings(ingestion),
            dimension=ingestion.embedding_dimension,
        )
        store_task = VectorStoreTask(
            PgVectorStore(dimension=ingestion.embedding_dimension),
            session_factory,
        )
        return cls(
            tracker=RunTracker(session_factory, lease_timeout_seconds=ingestion.lease_timeout_seconds),
            processor=processor,
            generator=generator,
            store_task=store_task,
            max_attempts=ingestion.max_attempts,
            retry_initial_wait_seconds=ingestion.retry_initial_wait_seconds,
            retry_max_wait_seconds=ingestion.retry_max_wait_seconds,
        )

    @property
    def tracker(self) -> RunTracker:
        return self._tracker

    async def execute(self, run_id: str) -> PipelineResult:
        """
        Execute a claimed run to completion.

        The run must be in ``processing``. On success it becomes
        ``complete``; on any failure it becomes ``error`` and the exception
        propagates.

        Args:
            run_id: Run to execute

        Returns:
            PipelineResult: Counts and per-source failures

        Raises:
            RetryableError: Step still failing after max_attempts
            ContractViolationError: Internal invariant broken
            RunNotFoundError: Unknown run
        """
        start_time = time.perf_counter()
        event = await self._tracker.get_event(run_id)
        sources = event.to_sources()

        try:
            processed = await self._run_step(
                run_id,
                PipelineStep.PROCESS_SOURCES,
                ProcessedSources,
                lambda: self._processor.process(sources),
                progress=20,
                message="Processing sources",
            )
            generated = await self._run_step(
                run_id,
                PipelineStep.GENERATE_EMBEDDINGS,
                GeneratedEmbeddings,
                lambda: self._generate(processed),
                progress=50,
                message=f"Processed {len(processed.chunks)} chunks",
            )
            stored = await self._run_step(
                run_id,
                PipelineStep.STORE,
                StoredEmbeddings,
                lambda: self._store(processed, generated),
                progress=90,
                message=f"Generated {len(generated.vectors)} embeddings",
            )

            result = PipelineResult(
                run_id=run_id,
                knowledge_base_id=event.knowledge_base_id,
                chunks_processed=len(processed.chunks),
                embeddings_stored=stored.stored,
                failed_sources=processed.failed,
                processing_time_ms=(time.perf_counter() - start_time) * 1000,
            )
            await self._tracker.complete(run_id, result)
        except Exception as e:
            log_exception_with_context(
                logger,
                f"{__name__}:execute - Run {run_id} failed",
                e,
                run_id=run_id,
                knowledge_base_id=event.knowledge_base_id,
            )
            await self._tracker.fail(run_id, e)
            raise

        logger.info(
            f"{__name__}:execute - Run {run_id} complete",
            extra={
                "knowledge_base_id": event.knowledge_base_id,
                "chunks_processed": result.chunks_processed,
                "embeddings_stored": result.embeddings_stored,
                "failed_sources": len(result.failed_sources),
            },
        )
        return result

    async def _run_step(
        self,
        run_id: str,
        step: PipelineStep,
        output_type: type[StepOutputT],
        action: Callable[[], Awaitable[StepOutputT]],
        progress: int,
        message: str,
    ) -> StepOutputT:
        checkpoint = await self._tracker.get_checkpoint(run_id, step)
        if checkpoint is not None:
            logger.info(f"{__name__}:_run_step - Resuming {step.value} from checkpoint")
            return output_type.model_validate(checkpoint)

        await self._tracker.mark_step(run_id, step, progress, message)

        def _log_retry(retry_state: RetryCallState) -> None:
            logger.warning(
                f"{__name__}:_run_step - Retry {retry_state.attempt_number}/{self._max_attempts} "
                f"of {step.value}: {retry_state.outcome.exception()}",
                extra={"run_id": run_id},
            )

        async for attempt in AsyncRetrying(
            retry=retry_if_exception(is_retryable),
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential_jitter(initial=self._retry_initial_wait, max=self._retry_max_wait),
            before_sleep=_log_retry,
            reraise=True,
        ):
            with attempt:
                output = await action()

        await self._tracker.save_checkpoint(run_id, step, output.model_dump(mode="json"))
        return output

    async def _generate(self, processed: ProcessedSources) -> GeneratedEmbeddings:
        vectors = await self._generator.embed([chunk.content for chunk in processed.chunks])
        return GeneratedEmbeddings(vectors=vectors)

    async def _store(
        self,
        processed: ProcessedSources,
        generated: GeneratedEmbeddings,
    ) -> StoredEmbeddings:
        stored = await self._store_task.store(processed.chunks, generated.vectors)
        return StoredEmbeddings(stored=stored)
