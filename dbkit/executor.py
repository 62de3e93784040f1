# executor.py
from __future__ import annotations

from typing import Any, Generic, Iterable, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from .conditions import Q
from .db import DEFAULT_BATCH_SIZE, Db
from .entity import id_field_name_of, table_name_of
from .fields import Field
from .pagination import PaginationConfig
from .updater import Updater

T = TypeVar("T")  # SQLAlchemy model class (Declarative)


class Executor(Generic[T]):
    """
    Typed CRUD for one model, on top of a ``Db`` bound to its table.
    - Every method takes the caller's AsyncSession first.
    - commit/rollback is the caller's job.
    - ``*_by_id`` methods filter on ``__id_field__`` of the model, or ``id``.
    """

    def __init__(self, db: Db, model: type[T], table_name: str | None = None) -> None:
        if model is None:
            raise ValueError("Executor(): model must not be None")
        if not isinstance(model, type):
            model = type(model)
        name = table_name_of(model) if table_name is None else table_name
        if not name:
            raise ValueError(f"Executor(): table name of {model.__name__} is empty")
        self.model = model
        self.table_name = name
        self.db = db.with_model(model).with_table_name(name)
        self.id_field: Field[Any] = Field(id_field_name_of(model))

    def __repr__(self) -> str:
        return f"Executor({self.model.__name__}, table={self.table_name!r})"

    def _by_id(self, id: Any) -> Any:
        return Q(self.id_field.eq(id))

    # ------------------------ By id ------------------------

    async def get_by_id(self, session: AsyncSession, id: Any) -> T | None:
        """Row with the given id, or None."""
        _, entity = await self.exists_by_id(session, id)
        return entity

    async def exists_by_id(self, session: AsyncSession, id: Any) -> tuple[bool, T | None]:
        """(found, entity). A None id is never found and skips the database."""
        if id is None:
            return False, None
        entities = await self.find(session, self._by_id(id))
        if not entities:
            return False, None
        return True, entities[0]

    async def update_by_id(self, session: AsyncSession, id: Any, updater: Updater) -> int:
        return await self.update_by_query(session, self._by_id(id), updater)

    async def delete_by_id(self, session: AsyncSession, id: Any) -> int:
        return await self.delete_by_query(session, self._by_id(id))

    # ------------------------ Read ------------------------

    async def find(
        self,
        session: AsyncSession,
        query: Any = None,
        pagination: PaginationConfig | None = None,
    ) -> list[T]:
        return await self.db.find(session, query, pagination)

    async def exists(self, session: AsyncSession, query: Any = None) -> tuple[bool, T | None]:
        """(found, first matching entity), fetching at most one row."""
        entities = await self.find(session, query, PaginationConfig().with_limit(1))
        if not entities:
            return False, None
        return True, entities[0]

    async def count(self, session: AsyncSession, query: Any = None) -> int:
        return await self.db.count(session, query)

    # ------------------------ Write ------------------------

    async def create(self, session: AsyncSession, entity: T) -> None:
        await self.db.create(session, entity)

    async def save(self, session: AsyncSession, entity: T) -> None:
        await self.db.save(session, entity)

    async def update(self, session: AsyncSession, entity: T) -> int:
        return await self.db.update(session, entity)

    async def delete(self, session: AsyncSession, entity: T) -> int:
        return await self.db.delete(session, entity)

    async def batch_create(
        self,
        session: AsyncSession,
        entities: Iterable[T],
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> int:
        return await self.db.batch_create(session, entities, batch_size)

    async def batch_save(self, session: AsyncSession, entities: Iterable[T]) -> int:
        return await self.db.batch_save(session, entities)

    async def update_by_query(self, session: AsyncSession, query: Any, updater: Updater) -> int:
        return await self.db.update_by_query(session, query, updater)

    async def delete_by_query(self, session: AsyncSession, query: Any) -> int:
        return await self.db.delete_by_query(session, self.model, query)

    # ------------------------ Raw SQL ------------------------

    async def raw(self, session: AsyncSession, sql: str, *args: Any) -> list[T]:
        """Run a literal SELECT and build entities from its columns."""
        return await self.db.raw(session, sql, *args)

    async def exec(self, session: AsyncSession, sql: str, *args: Any) -> None:
        await self.db.exec(session, sql, *args)
