"""
Retrieval schemas.

Dependencies: pydantic
System role: Retrieval API contracts
"""

from typing import Any

from pydantic import BaseModel, Field


class RetrieveRequest(BaseModel):
    """Request schema for context retrieval."""

    question: str = Field(description="User question")


class RetrievedContextResponse(BaseModel):
    content: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    similarity: float
