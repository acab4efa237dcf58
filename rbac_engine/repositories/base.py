"""
Generic repositories over a single mapped model.

Repositories only flush; committing is the caller's decision, so a
service can group several repository calls into one unit of work.
"""

from typing import TypeVar, Generic, Type, Any
from uuid import UUID
from sqlalchemy import Select, select, func
from sqlalchemy.ext.asyncio import AsyncSession

from rbac_engine.models.base import Base

ModelT = TypeVar("ModelT", bound=Base)


def _as_uuid(value: UUID | str) -> UUID | None:
    """UUID for an id, or None when it is malformed."""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        return None


class BaseRepository(Generic[ModelT]):
    """
    Lookup, count and insert for one model.

    Usage:
        class UserRepository(BaseRepository[User]):
            model = User

        user = await UserRepository(db).get_by_id(user_id)
    """

    model: Type[ModelT]

    def __init__(self, db: AsyncSession):
        self.db = db

    def _base_query(self) -> Select:
        """Rows visible to this repository. Subclasses narrow it."""
        return select(self.model)

    async def get_by_id(self, id: UUID | str) -> ModelT | None:
        """Visible row by id. A malformed id matches nothing."""
        key = _as_uuid(id)
        if key is None:
            return None
        stmt = self._base_query().where(self.model.id == key)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def count(self, **filters: Any) -> int:
        """Visible rows whose columns equal the given values."""
        stmt = self._base_query().filter_by(**filters)
        return await self.db.scalar(select(func.count()).select_from(stmt.subquery())) or 0

    async def create(self, **data: Any) -> ModelT:
        """Insert a row and load its server-side defaults."""
        entity = self.model(**data)
        self.db.add(entity)
        await self.db.flush()
        await self.db.refresh(entity)
        return entity


class SoftDeleteRepository(BaseRepository[ModelT]):
    """
    Hides flagged rows and flips the flag instead of deleting.

    The model must use SoftDeleteMixin and AuditMixin.
    """

    def _base_query(self) -> Select:
        return select(self.model).where(self.model.is_deleted.is_(False))

    async def get_any_by_id(self, id: UUID | str) -> ModelT | None:
        """Row by id whether flagged or not."""
        key = _as_uuid(id)
        if key is None:
            return None
        result = await self.db.execute(select(self.model).where(self.model.id == key))
        return result.scalar_one_or_none()

    async def _mark(self, entity: ModelT, deleted: bool, actor_id: UUID | None) -> ModelT:
        entity.is_deleted = deleted
        entity.updated_by = actor_id
        await self.db.flush()
        await self.db.refresh(entity)
        return entity

    async def soft_delete(
        self,
        id: UUID | str,
        actor_id: UUID | None = None,
    ) -> ModelT | None:
        """Flag an active row. Returns None if no active row has that id."""
        entity = await self.get_by_id(id)
        if entity is None:
            return None
        return await self._mark(entity, True, actor_id)

    async def restore(
        self,
        id: UUID | str,
        actor_id: UUID | None = None,
        **changes: Any,
    ) -> ModelT | None:
        """
        Clear the flag on a row, keeping its id.

        Extra keyword arguments update matching attributes on the way
        (e.g. description on dimension rows); unknown ones are ignored.
        """
        entity = await self.get_any_by_id(id)
        if entity is None:
            return None
        for field, value in changes.items():
            if value is not None and hasattr(entity, field):
                setattr(entity, field, value)
        return await self._mark(entity, False, actor_id)
