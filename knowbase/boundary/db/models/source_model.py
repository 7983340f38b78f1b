"""
Source ORM model.

One row per unit of ingested content. ``details`` holds the kind-specific
payload; its shape is validated by the Source domain model on the way out.

Dependencies: sqlalchemy, knowbase.boundary.db.base
System role: Persistence of knowledge-base sources
"""

from sqlalchemy import JSON, Enum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from knowbase.boundary.db.base import Base, TimestampMixin
from knowbase.core.ingestion.models import Source, SourceKind


class SourceModel(Base, TimestampMixin):
    """
    Source ORM model.

    Attributes:
        id: Integer primary key
        knowledge_base_id: Owning knowledge base (tenant scope)
        kind: Content kind, fixed at creation
        name: Display name
        details: Kind-specific payload
    """

    __tablename__ = "sources"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    knowledge_base_id: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        index=True,
    )

    kind: Mapped[SourceKind] = mapped_column(
        Enum(SourceKind, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    details: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    def to_domain(self) -> Source:
        """Validate the row into a typed Source."""
        return Source.model_validate(
            {
                "id": self.id,
                "knowledge_base_id": self.knowledge_base_id,
                "name": self.name,
                "details": {**self.details, "kind": self.kind.value},
            }
        )
