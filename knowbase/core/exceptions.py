"""
Exception hierarchy for the knowledge-base ingestion service.

Provides layered exception structure for domain-specific errors.
All exceptions include context for observability and debugging.

Three families matter to the pipeline:
- SourceProcessingError: terminal for one source, siblings keep going
- RetryableError: the whole pipeline step is retried
- ContractViolationError: programming errors, never retried

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from typing import Any


class KnowbaseException(Exception):
    """Base exception for all knowbase errors."""

    retryable: bool = False

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# ============================================================================
# Terminal, per-source
# ============================================================================


class SourceProcessingError(KnowbaseException):
    """Base for failures that end processing of a single source."""

    def __init__(
        self,
        message: str,
        source_id: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize source processing error.

        Args:
            message: Error message
            source_id: ID of the source that failed
            details: Additional context
        """
        details = details or {}
        if source_id is not None:
            details["source_id"] = source_id
        self.source_id = source_id
        super().__init__(message, details)


class UnsupportedFormatError(SourceProcessingError):
    """Raised when no extractor handles the declared MIME type."""

    def __init__(self, mime_type: str, source_id: int | None = None) -> None:
        self.mime_type = mime_type
        super().__init__(
            f"Unsupported file type: {mime_type}",
            source_id,
            {"mime_type": mime_type},
        )


class EmptyDocumentError(SourceProcessingError):
    """Raised when a document yields no extractable text."""


class DocumentParsingError(SourceProcessingError):
    """Raised when an extractor cannot read malformed content."""

    def __init__(
        self,
        message: str,
        source_id: int | None = None,
        file_type: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if file_type:
            details["file_type"] = file_type
        super().__init__(message, source_id, details)


class ChunkingError(SourceProcessingError):
    """Raised when a source cannot be split into chunks."""


class SourceOwnershipError(SourceProcessingError):
    """Raised when a batch names a source that its knowledge base does not own."""

    def __init__(self, source_id: int, knowledge_base_id: int) -> None:
        self.knowledge_base_id = knowledge_base_id
        super().__init__(
            f"Source {source_id} does not belong to knowledge base {knowledge_base_id}",
            source_id,
            {"knowledge_base_id": knowledge_base_id},
        )



# ============================================================================
# Retryable, per-run
# ============================================================================


class RetryableError(KnowbaseException):
    """Base for transient failures; the pipeline retries the whole step."""

    retryable = True


class BlobFetchError(RetryableError):
    """Raised when a source file cannot be fetched from object storage."""

    def __init__(
        self,
        message: str,
        file_url: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if file_url:
            details["file_url"] = file_url
        super().__init__(message, details)


class EmbeddingError(RetryableError):
    """Raised when the embedding API call fails."""


class VectorStoreError(RetryableError):
    """Raised when vector store operations fail."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize vector store error.

        Args:
            message: Error message
            operation: Operation that failed (upsert, query, delete)
            details: Additional context
        """
        details = details or {}
        if operation:
            details["operation"] = operation
        super().__init__(message, details)


# ============================================================================
# Contract violations (fatal)
# ============================================================================


class ContractViolationError(KnowbaseException):
    """Raised when an internal invariant is broken; indicates a bug."""


class EmbeddingContractError(ContractViolationError):
    """Raised when the embedding client returns misaligned output."""


class DimensionMismatchError(ContractViolationError):
    """Raised when a vector does not have the index dimensionality."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(
            f"Embedding dimension mismatch: expected {expected}, got {actual}",
            {"expected": expected, "actual": actual},
        )


# ============================================================================
# Orchestration
# ============================================================================


class RunNotFoundError(KnowbaseException):
    """Raised when a pipeline run ID is unknown."""

    def __init__(self, run_id: str) -> None:
        super().__init__(f"Pipeline run not found: {run_id}", {"run_id": run_id})


class InvalidRunTransitionError(ContractViolationError):
    """Raised when a run status change would leave a terminal state."""

    def __init__(self, run_id: str, current: str, target: str) -> None:
        super().__init__(
            f"Run {run_id} cannot move from {current} to {target}",
            {"run_id": run_id, "current": current, "target": target},
        )
