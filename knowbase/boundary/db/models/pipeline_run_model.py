"""
Pipeline run ORM models.

A pipeline run is one execution of the ingestion pipeline over one
ingestion event; the table doubles as the durable work queue. Checkpoints
hold each completed step's output so a resumed run skips it.

Dependencies: sqlalchemy, knowbase.boundary.db.base
System role: Run state, work queue and step checkpoints
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from knowbase.boundary.db.base import Base, TimestampMixin, UUIDMixin


class RunStatus(str, enum.Enum):
    """Run status. COMPLETE and ERROR are terminal."""

    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETE = "complete"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (RunStatus.COMPLETE, RunStatus.ERROR)


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class PipelineRunModel(Base, UUIDMixin, TimestampMixin):
    """
    Pipeline run ORM model.

    Attributes:
        id: UUID run identifier returned to callers
        knowledge_base_id: Knowledge base being ingested
        status: Run status
        step: Current or last pipeline step
        progress: Progress percentage (0-100)
        message: Human-readable status line
        attempts: Number of times a worker claimed the run
        event: Ingestion event the run executes
        result: Pipeline result or error details
        claimed_at: Lease start of the current worker
    """

    __tablename__ = "pipeline_runs"

    knowledge_base_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    status: Mapped[RunStatus] = mapped_column(
        Enum(RunStatus, native_enum=False, values_callable=_enum_values),
        nullable=False,
        default=RunStatus.QUEUED,
        index=True,
    )

    step: Mapped[str | None] = mapped_column(String(64), nullable=True)

    progress: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        doc="Progress percentage (0-100)",
    )

    message: Mapped[str] = mapped_column(String(512), nullable=False, default="")

    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    event: Mapped[dict] = mapped_column(JSON, nullable=False)

    result: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
        doc="Pipeline result or error details",
    )

    claimed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class RunCheckpointModel(Base, TimestampMixin):
    """
    Output of one completed pipeline step, keyed by run and step name.

    Attributes:
        id: Integer primary key
        run_id: Owning run
        step: Step name
        payload: Step output
    """

    __tablename__ = "run_checkpoints"
    __table_args__ = (UniqueConstraint("run_id", "step", name="uq_run_checkpoints_run_step"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    run_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("pipeline_runs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    step: Mapped[str] = mapped_column(String(64), nullable=False)

    payload: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
