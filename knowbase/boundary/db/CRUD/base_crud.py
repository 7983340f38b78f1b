"""
Base CRUD operations for SQLAlchemy models.

Generic insert, lookup, conditional update and bulk delete shared by the
source and pipeline-run CRUD classes.

Dependencies: sqlalchemy
System role: Foundation for all database CRUD operations
"""

from typing import Any, Generic, Sequence, TypeVar

from sqlalchemy import ColumnElement, delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from knowbase.boundary.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseCRUD(Generic[ModelT]):
    """
    Generic base class for CRUD operations.

    Methods flush but never commit; the caller owns the transaction, so a
    service can delete and insert rows of several tables atomically.

    Type Parameters:
        ModelT: SQLAlchemy model class with an ``id`` primary key
    """

    def __init__(self, model: type[ModelT]) -> None:
        self.model = model

    async def create(self, session: AsyncSession, **kwargs) -> ModelT:
        """
        Insert a row and load its generated columns.

        Args:
            session: Async database session
            **kwargs: Model field values

        Returns:
            Created model instance with generated ID and timestamps
        """
        instance = self.model(**kwargs)
        session.add(instance)
        await session.flush()
        await session.refresh(instance)
        return instance

    async def get_by_id(self, session: AsyncSession, id: Any) -> ModelT | None:
        stmt = select(self.model).where(self.model.id == id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def update_where(
        self,
        session: AsyncSession,
        id: Any,
        *conditions: ColumnElement[bool],
        **values,
    ) -> ModelT | None:
        """
        Update one row only while every extra condition holds.

        The conditions are evaluated by the database in the same statement,
        which makes this a compare-and-set.

        Args:
            session: Async database session
            id: Primary key
            *conditions: Additional WHERE clauses
            **values: Columns to set

        Returns:
            Updated instance, or None when no row matched
        """
        stmt = (
            update(self.model)
            .where(self.model.id == id, *conditions)
            .values(**values)
            .returning(self.model)
            .execution_options(synchronize_session="fetch")
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def delete_many(self, session: AsyncSession, ids: Sequence[Any]) -> int:
        """
        Delete rows by primary key.

        Returns:
            int: Number of deleted rows (0 for an empty ``ids``)
        """
        if not ids:
            return 0
        result = await session.execute(delete(self.model).where(self.model.id.in_(list(ids))))
        return result.rowcount
