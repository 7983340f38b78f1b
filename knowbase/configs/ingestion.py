"""
Configuration settings for the ingestion pipeline.

Chunking, embedding and orchestration knobs. Chunk size and overlap are
configuration, not constants.

Dependencies: pydantic, pydantic_settings
System role: Centralized pipeline configuration
"""

from pydantic import Field, model_validator
from pydantic_settings import SettingsConfigDict

from knowbase.configs.base import BaseSettings


class IngestionSettings(BaseSettings):
    """Settings for the source ingestion pipeline."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="INGESTION_",
        case_sensitive=False,
        extra="ignore",
    )

    # Chunking settings
    chunk_size: int = Field(
        default=1000,
        description="Maximum chunk size in characters",
        gt=0,
    )
    chunk_overlap: int = Field(
        default=200,
        description="Overlap between consecutive chunks",
        ge=0,
    )

    # Embedding settings
    embedding_model_id: str = Field(
        default="models/text-embedding-004",
        description="Google embedding model ID",
    )
    embedding_dimension: int = Field(
        default=768,
        description="Fixed embedding width shared by the whole index",
        gt=0,
    )

    # Orchestration settings
    max_attempts: int = Field(
        default=3,
        description="Attempts per pipeline step before the run is marked error",
        ge=1,
    )
    retry_initial_wait_seconds: float = Field(default=1.0, ge=0)
    retry_max_wait_seconds: float = Field(default=30.0, ge=0)
    worker_concurrency: int = Field(
        default=4,
        description="Runs executed concurrently by one worker process",
        ge=1,
    )
    poll_interval_seconds: float = Field(default=2.0, gt=0)
    lease_timeout_seconds: int = Field(
        default=900,
        description="Runs stuck in processing longer than this are requeued",
        gt=0,
    )

    # OCR fallback
    ocr_enabled: bool = Field(default=True, description="Enable Tesseract OCR fallback")
    ocr_language: str = Field(default="eng", description="Tesseract language code")

    @model_validator(mode="after")
    def _check_overlap(self) -> "IngestionSettings":
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError("chunk_overlap must be smaller than chunk_size")
        return self
