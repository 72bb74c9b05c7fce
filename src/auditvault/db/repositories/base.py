"""Base repository with common CRUD operations.

Provides a generic repository pattern for SQLAlchemy models with
async support.

Usage:
    from auditvault.db.repositories.base import BaseRepository

    class ExportRecordRepository(BaseRepository[ExportRecord, UUID]):
        pass

    repo = ExportRecordRepository(db_session)
    record = await repo.get(export_id)
"""

from collections.abc import Sequence
from typing import Generic, TypeVar
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from auditvault.core.exceptions import RecordNotFoundError
from auditvault.db.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)
PKType = TypeVar("PKType", bound=UUID | int | str)


class BaseRepository(Generic[ModelType, PKType]):
    """Generic repository for SQLAlchemy models.

    Subclass with a concrete model to add model-specific queries.

    Attributes:
        model: The model class
        db: The database session
    """

    model: type[ModelType]

    def __init__(self, db: AsyncSession):
        self.db = db

    def __init_subclass__(cls, **kwargs):
        """Extract model type from generic parameter."""
        super().__init_subclass__(**kwargs)
        for base in getattr(cls, "__orig_bases__", []):
            args = getattr(base, "__args__", None)
            if args and len(args) >= 1:
                first_arg = args[0]
                if isinstance(first_arg, type) and issubclass(first_arg, Base):
                    cls.model = first_arg
                    break

    async def get(self, pk: PKType) -> ModelType | None:
        """Get a single record by primary key.

        Reloads the row even if it is already in the identity map, because
        bulk conditional updates bypass the session.
        """
        return await self.db.get(self.model, pk, populate_existing=True)

    async def get_or_raise(self, pk: PKType) -> ModelType:
        """Get a single record by primary key or raise.

        Raises:
            RecordNotFoundError: If record not found
        """
        result = await self.get(pk)
        if result is None:
            raise RecordNotFoundError(self.model.__name__, pk)
        return result

    async def get_many(self, pks: Sequence[PKType]) -> list[ModelType]:
        """Get multiple records by primary keys.

        Returns:
            Found models (may be fewer than requested if some not found)
        """
        if not pks:
            return []

        pk_col = self._get_pk_column()
        stmt = (
            select(self.model)
            .where(pk_col.in_(pks))
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_recent(self, *, order_by: str, limit: int = 50) -> list[ModelType]:
        """List records newest first by the given timestamp column."""
        col = getattr(self.model, order_by)
        stmt = select(self.model).order_by(col.desc()).limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def count(self) -> int:
        """Count total records."""
        pk_col = self._get_pk_column()
        result = await self.db.execute(select(func.count(pk_col)))
        return result.scalar() or 0

    async def create(self, obj: ModelType, *, commit: bool = True) -> ModelType:
        """Create a new record.

        Args:
            obj: Model instance to create
            commit: Whether to commit the transaction
        """
        self.db.add(obj)
        if commit:
            await self.db.commit()
            await self.db.refresh(obj)
        else:
            await self.db.flush()
        return obj

    def _get_pk_column(self):
        """Get the primary key column for this model."""
        pk_cols = self.model.__mapper__.primary_key
        if not pk_cols:
            raise ValueError(f"No primary key found for {self.model.__name__}")
        return pk_cols[0]
