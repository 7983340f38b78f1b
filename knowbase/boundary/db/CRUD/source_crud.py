"""
Source CRUD operations.

Dependencies: sqlalchemy, knowbase.boundary.db.models
System role: Source persistence operations
"""

from typing import Iterable, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from knowbase.boundary.db.CRUD.base_crud import BaseCRUD
from knowbase.boundary.db.models import SourceModel
from knowbase.core.ingestion.models import SourceKind


class SourceCRUD(BaseCRUD[SourceModel]):
    """CRUD operations for SourceModel, scoped by knowledge base."""

    def __init__(self) -> None:
        super().__init__(SourceModel)

    async def create_source(
        self,
        session: AsyncSession,
        knowledge_base_id: int,
        kind: SourceKind,
        name: str,
        details: dict,
    ) -> SourceModel:
        """
        Insert a source row.

        Args:
            session: Async database session
            knowledge_base_id: Owning knowledge base
            kind: Content kind
            name: Display name
            details: Kind-specific payload without the ``kind`` key

        Returns:
            SourceModel: Created row with its generated ID
        """
        return await self.create(
            session,
            knowledge_base_id=knowledge_base_id,
            kind=kind,
            name=name,
            details=details,
        )

    async def get_by_knowledge_base(
        self,
        session: AsyncSession,
        knowledge_base_id: int,
        kinds: Iterable[SourceKind] | None = None,
    ) -> Sequence[SourceModel]:
        """
        Retrieve the sources of one knowledge base in creation order.

        Args:
            session: Async database session
            knowledge_base_id: Knowledge base to list
            kinds: Restrict to these kinds (all kinds if None)

        Returns:
            Sequence of SourceModels
        """
        stmt = select(SourceModel).where(SourceModel.knowledge_base_id == knowledge_base_id)
        if kinds is not None:
            stmt = stmt.where(SourceModel.kind.in_(list(kinds)))
        result = await session.execute(stmt.order_by(SourceModel.id))
        return result.scalars().all()

    async def get_owners(self, session: AsyncSession, ids: Iterable[int]) -> dict[int, int]:
        """
        Map source IDs to their owning knowledge base.

        IDs with no row are absent from the result.
        """
        ids = list(ids)
        if not ids:
            return {}
        stmt = select(SourceModel.id, SourceModel.knowledge_base_id).where(SourceModel.id.in_(ids))
        result = await session.execute(stmt)
        return {source_id: kb_id for source_id, kb_id in result.all()}

    async def delete_by_ids(self, session: AsyncSession, ids: Sequence[int]) -> int:
        """
        Delete sources by ID.

        Embedding rows must be removed first where foreign keys are not
        enforced (SQLite); PostgreSQL cascades.

        Returns:
            int: Number of deleted rows
        """
        return await self.delete_many(session, ids)


source_crud = SourceCRUD()
