"""
Ingestion run schemas.

Dependencies: pydantic
System role: Pipeline run API contracts
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RunCreatedResponse(BaseModel):
    """Response schema for an enqueued run."""

    run_id: str = Field(description="Run ID to poll for status")


class TrainingStatusResponse(BaseModel):
    """Status of a pipeline run as shown on the dashboard."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status: Literal["processing", "complete", "error"]
    progress: int = Field(ge=0, le=100)
    message: str
    step: str
    run_id: str
    knowledge_base_id: int | None = None
