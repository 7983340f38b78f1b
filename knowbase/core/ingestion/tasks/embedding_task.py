"""
Embedding generation task.

Embeds all chunk texts of a run in one call to a langchain Embeddings
client (the client batches internally) and checks that the output lines up
with the input.

Dependencies: langchain_core.embeddings
System role: Embedding stage (generate-embeddings) of the ingestion pipeline
"""

import logging

from langchain_core.embeddings import Embeddings

from knowbase.core.exceptions import EmbeddingContractError, EmbeddingError

logger = logging.getLogger(__name__)


class EmbeddingGenerator:
    """Generate fixed-width vectors for chunk texts and queries."""

    def __init__(self, embeddings: Embeddings, dimension: int = 768) -> None:
        """
        Initialize generator.

        Args:
            embeddings: Embedding client (FixedDimensionEmbeddings in production)
            dimension: Expected vector width

        Raises:
            ValueError: When dimension is not positive
        """
        if dimension <= 0:
            raise ValueError("dimension must be positive")
        self._embeddings = embeddings
        self._dimension = dimension

    @property
    def dimension(self) -> int:
        return self._dimension

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """
        Embed texts, preserving length and order.

        Args:
            texts: Chunk texts

        Returns:
            list[list[float]]: One vector per text

        Raises:
            EmbeddingError: Embedding API call failed (retryable)
            EmbeddingContractError: Client returned misaligned output
        """
        if not texts:
            return []

        try:
            vectors = await self._embeddings.aembed_documents(texts)
        except Exception as e:
            raise EmbeddingError(
                f"Failed to generate embeddings: {e}",
                {"texts": len(texts)},
            ) from e

        if len(vectors) != len(texts):
            raise EmbeddingContractError(
                f"Embedding client returned {len(vectors)} vectors for {len(texts)} texts",
                {"expected": len(texts), "actual": len(vectors)},
            )
        for position, vector in enumerate(vectors):
            self._check_width(vector, position)

        logger.info(
            f"{__name__}:embed - Generated {len(vectors)} embeddings",
            extra={"dimension": self._dimension},
        )
        return [[float(value) for value in vector] for vector in vectors]

    async def embed_query(self, text: str) -> list[float]:
        """
        Embed a single question.

        Raises:
            EmbeddingError: Embedding API call failed
            EmbeddingContractError: Vector has the wrong width
        """
        try:
            vector = await self._embeddings.aembed_query(text)
        except Exception as e:
            raise EmbeddingError(f"Failed to embed query: {e}") from e
        self._check_width(vector, 0)
        return [float(value) for value in vector]

    def _check_width(self, vector: list[float], position: int) -> None:
        if len(vector) != self._dimension:
            raise EmbeddingContractError(
                f"Embedding at position {position} has {len(vector)} dimensions, "
                f"expected {self._dimension}",
                {"position": position, "expected": self._dimension, "actual": len(vector)},
            )
