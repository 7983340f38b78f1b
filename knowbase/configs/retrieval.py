"""
Retrieval configuration.

Top-k and similarity cut-off are tunables, never per-call arguments.

Dependencies: pydantic, pydantic_settings
System role: Retrieval query configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from knowbase.configs.base import BaseSettings


class RetrievalSettings(BaseSettings):
    """Settings for chat-time context retrieval."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RETRIEVAL_",
        case_sensitive=False,
        extra="ignore",
    )

    top_k: int = Field(default=5, description="Number of chunks returned", ge=1, le=100)
    min_similarity: float = Field(
        default=0.5,
        description="Minimum cosine similarity for a chunk to count as context",
        ge=-1.0,
        le=1.0,
    )
    timeout_seconds: float = Field(
        default=30.0,
        description="Upper bound for one retrieval on the chat path",
        gt=0,
    )
