"""
Backend-facing database handle.

``Db`` is an immutable binding to one model and/or table.  Every operation
takes the caller's ``AsyncSession`` first and runs SQLAlchemy Core statements
on it; commit and rollback stay with the caller.  Errors raised by SQLAlchemy
or the driver, including cancellation, propagate unchanged.
"""
from __future__ import annotations

import functools
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from typing import Any

import sqlalchemy as sa
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.inspection import inspect as sa_inspect
from sqlalchemy.sql.expression import FromClause

from .conditions import to_expression
from .entity import from_row, set_column, to_row
from .exceptions import MissingWhereClauseError, UnboundModelError
from .pagination import OrderConfig, PaginationConfig
from .sql import bind_positional
from .updater import Updater

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 1000


@functools.lru_cache(maxsize=256)
def _renamed_table(table: sa.Table, name: str) -> sa.Table:
    """Copy of a mapped table under another name, e.g. one shard of it."""
    return table.to_metadata(sa.MetaData(), name=name)


def _has_default(table: FromClause, name: str) -> bool:
    col = table.c.get(name)
    if col is None:
        return False
    return bool(col.primary_key or col.default is not None or col.server_default is not None)


def _insert_rows(entities: list[Any], table: FromClause) -> list[dict[str, Any]]:
    """Rows for one INSERT; every row gets the same keys.

    A column left ``None`` by every entity is omitted when the database can
    fill it in (autoincrement key, default, server default).
    """
    rows = [to_row(e) for e in entities]
    keys: dict[str, None] = {}
    for row in rows:
        keys.update(dict.fromkeys(row))
    keep = [
        k for k in keys
        if not (_has_default(table, k) and all(row.get(k) is None for row in rows))
    ]
    return [{k: row.get(k) for k in keep} for row in rows]


def _dialect_name(session: AsyncSession) -> str:
    return session.bind.dialect.name if session.bind is not None else ""


def _text(session: AsyncSession, sql: str, args: tuple[Any, ...]) -> sa.TextClause:
    return bind_positional(sql, args, backslash_escapes=_dialect_name(session) in ("mysql", "mariadb"))


@dataclass(frozen=True)
class Db:
    """Binding of a model class and/or table name.

    ``with_model`` and ``with_table_name`` return new handles; a ``Db`` is
    never modified, so one instance can be shared between tasks.
    """

    model: type[Any] | None = None
    table_name: str | None = None

    def with_model(self, model: Any) -> Db:
        if model is not None and not isinstance(model, type):
            model = type(model)
        return replace(self, model=model)

    def with_table_name(self, table_name: str) -> Db:
        return replace(self, table_name=table_name)

    @property
    def table(self) -> FromClause:
        """The table statements run against."""
        if self.model is not None:
            mapped = sa_inspect(self.model).local_table
            if not self.table_name or self.table_name == mapped.name:
                return mapped
            return _renamed_table(mapped, self.table_name)
        if self.table_name:
            return sa.table(self.table_name)
        raise UnboundModelError("Db is bound to neither a model nor a table name")

    def _writable(self, names: Iterable[str]) -> FromClause:
        # a name-only binding knows no columns, so declare the ones written
        if self.model is None and self.table_name:
            return sa.table(self.table_name, *(sa.column(name) for name in names))
        return self.table

    def _for(self, entity: Any) -> Db:
        if self.model is None and entity is not None and not isinstance(entity, Mapping):
            return self.with_model(entity)
        return self

    def _require_model(self) -> None:
        if self.model is None:
            raise UnboundModelError(
                f"Operation needs a model binding (table {self.table_name!r} has no known key)"
            )

    def _materialize(self, result: sa.Result[Any]) -> list[Any]:
        rows = result.mappings().all()
        if self.model is None:
            return [dict(row) for row in rows]
        return [from_row(self.model, row) for row in rows]

    def _identity(self, entity: Any, table: FromClause) -> dict[str, Any] | None:
        names = [col.name for col in table.primary_key.columns]
        if not names:
            return None
        row = to_row(entity)
        identity = {name: row.get(name) for name in names}
        if any(v is None for v in identity.values()):
            return None
        return identity

    @staticmethod
    def _match(table: FromClause, identity: dict[str, Any]) -> sa.ColumnElement[bool]:
        return sa.and_(*(table.c[name] == value for name, value in identity.items()))

    def _where(self, query: Any, table: FromClause, action: str) -> sa.ColumnElement[bool]:
        where = to_expression(query, table)
        if where is None:
            raise MissingWhereClauseError(f"Refusing to {action} every row of {table.name}")
        return where

    # ------------------------ Read ------------------------

    async def find(
        self,
        session: AsyncSession,
        query: Any = None,
        pagination: PaginationConfig | None = None,
    ) -> list[Any]:
        """Rows matching ``query``: model instances when a model is bound,
        dicts otherwise."""
        table = self.table
        if self.model is not None:
            stmt = sa.select(table)
        else:
            stmt = sa.select(sa.literal_column("*")).select_from(table)

        where = to_expression(query, table)
        if where is not None:
            stmt = stmt.where(where)

        if pagination is not None:
            if pagination.limit is not None:
                stmt = stmt.limit(pagination.limit)
            if pagination.offset is not None:
                stmt = stmt.offset(pagination.offset)
            if pagination.orders:
                stmt = stmt.order_by(*(self._order_by(o, table) for o in pagination.orders))

        res = await session.execute(stmt)
        return self._materialize(res)

    @staticmethod
    def _order_by(order: OrderConfig, table: FromClause) -> sa.ColumnElement[Any]:
        col = order.column.to_expression(table, raw=True)
        return col.desc() if order.desc else col

    async def count(self, session: AsyncSession, query: Any = None) -> int:
        """Number of rows matching ``query``."""
        table = self.table
        stmt = sa.select(sa.func.count()).select_from(table)
        where = to_expression(query, table)
        if where is not None:
            stmt = stmt.where(where)
        res = await session.execute(stmt)
        return int(res.scalar_one())

    # ------------------------ Write ------------------------

    async def create(self, session: AsyncSession, entity: Any) -> None:
        """Insert one entity.

        Generated values (primary key, column defaults, and server defaults
        where the dialect can return them) are copied onto attributes the
        entity left as ``None``.
        """
        db = self._for(entity)
        table = db._writable(to_row(entity))
        (row,) = _insert_rows([entity], table)
        if db.model is None:
            await session.execute(sa.insert(table).values(row))
            return

        res = await session.execute(sa.insert(table).values(row).return_defaults())
        generated = dict(res.last_inserted_params())
        if res.returned_defaults is not None:
            generated.update(res.returned_defaults._mapping)
        for col, value in zip(table.primary_key.columns, res.inserted_primary_key or ()):
            generated[col.name] = value
        current = to_row(entity)
        for name, value in generated.items():
            if value is not None and current.get(name) is None:
                set_column(entity, name, value)

    async def save(self, session: AsyncSession, entity: Any) -> None:
        """Insert, or overwrite every column of the row with the same primary key."""
        db = self._for(entity)
        db._require_model()
        table = db.table
        identity = db._identity(entity, table)
        if identity is None:
            await db.create(session, entity)
            return

        row = to_row(entity)
        values = {k: v for k, v in row.items() if k not in identity}
        if values:
            res = await session.execute(sa.update(table).where(self._match(table, identity)).values(values))
            matched = res.rowcount
        else:
            stmt = sa.select(sa.func.count()).select_from(table).where(self._match(table, identity))
            matched = (await session.execute(stmt)).scalar_one()
        if not matched:
            (row,) = _insert_rows([entity], table)
            await session.execute(sa.insert(table).values(row))

    async def update(self, session: AsyncSession, entity: Any) -> int:
        """Write the non-``None`` attributes of ``entity`` to its row."""
        db = self._for(entity)
        db._require_model()
        table = db.table
        identity = db._identity(entity, table)
        if identity is None:
            raise MissingWhereClauseError(f"Entity has no primary key value for {table.name}")
        values = {k: v for k, v in to_row(entity).items() if k not in identity and v is not None}
        if not values:
            logger.debug("Nothing to update on %s for %s", table.name, identity)
            return 0
        res = await session.execute(sa.update(table).where(self._match(table, identity)).values(values))
        return res.rowcount

    async def delete(self, session: AsyncSession, entity: Any) -> int:
        db = self._for(entity)
        db._require_model()
        table = db.table
        identity = db._identity(entity, table)
        if identity is None:
            raise MissingWhereClauseError(f"Entity has no primary key value for {table.name}")
        res = await session.execute(sa.delete(table).where(self._match(table, identity)))
        return res.rowcount

    async def update_by_query(self, session: AsyncSession, query: Any, updater: Updater) -> int:
        """Apply ``updater`` to every row matching ``query``; returns the row count."""
        params = updater.params()
        table = self._writable(params)
        if not params:
            logger.debug("Empty updater, skipping update of %s", table.name)
            return 0
        where = self._where(query, table, "update")
        res = await session.execute(sa.update(table).where(where).values(params))
        return res.rowcount

    async def delete_by_query(self, session: AsyncSession, entity: Any, query: Any) -> int:
        """Delete every row matching ``query``.

        ``entity`` (a model class or instance, or ``None`` for this handle's
        binding) only selects the table.
        """
        db = self if entity is None else self.with_model(entity)
        table = db.table
        where = db._where(query, table, "delete")
        res = await session.execute(sa.delete(table).where(where))
        return res.rowcount

    async def batch_create(
        self,
        session: AsyncSession,
        entities: Iterable[Any],
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> int:
        """Insert ``entities`` in chunks of ``batch_size`` rows.

        A non-positive ``batch_size`` means ``DEFAULT_BATCH_SIZE``.  Generated
        keys are not copied back onto the entities.
        """
        items = list(entities)
        if not items:
            logger.debug("No entities to insert")
            return 0
        if batch_size <= 0:
            batch_size = DEFAULT_BATCH_SIZE
        db = self._for(items[0])
        table = db._writable({name: None for e in items for name in to_row(e)})
        for start in range(0, len(items), batch_size):
            chunk = items[start : start + batch_size]
            logger.debug("Inserting rows %d-%d of %d into %s", start, start + len(chunk), len(items), table.name)
            await session.execute(sa.insert(table), _insert_rows(chunk, table))
        return len(items)

    async def batch_save(
        self,
        session: AsyncSession,
        entities: Iterable[Any],
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> int:
        """Upsert ``entities`` by primary key, chunked like ``batch_create``."""
        items = list(entities)
        if not items:
            logger.debug("No entities to save")
            return 0
        if batch_size <= 0:
            batch_size = DEFAULT_BATCH_SIZE
        db = self._for(items[0])
        db._require_model()
        table = db.table

        fresh = [e for e in items if db._identity(e, table) is None]
        known = [e for e in items if db._identity(e, table) is not None]
        if fresh:
            await db.batch_create(session, fresh, batch_size)

        keys = [col.name for col in table.primary_key.columns]
        dialect = _dialect_name(session)
        for start in range(0, len(known), batch_size):
            chunk = known[start : start + batch_size]
            rows = [to_row(e) for e in chunk]
            others = [name for name in rows[0] if name not in keys]
            match dialect:
                case "sqlite" | "postgresql":
                    insert = sqlite.insert if dialect == "sqlite" else postgresql.insert
                    stmt = insert(table)
                    if others:
                        stmt = stmt.on_conflict_do_update(
                            index_elements=keys,
                            set_={name: stmt.excluded[name] for name in others},
                        )
                    else:
                        stmt = stmt.on_conflict_do_nothing(index_elements=keys)
                case "mysql" | "mariadb":
                    stmt = mysql.insert(table)
                    if others:
                        stmt = stmt.on_duplicate_key_update({name: stmt.inserted[name] for name in others})
                    else:
                        stmt = stmt.prefix_with("IGNORE")
                case _:
                    logger.debug("No native upsert for %r, saving %d rows one by one", dialect, len(chunk))
                    for entity in chunk:
                        await db.save(session, entity)
                    continue
            await session.execute(stmt, rows)
        return len(items)

    # ------------------------ Raw SQL ------------------------

    async def raw(self, session: AsyncSession, sql: str, *args: Any) -> list[Any]:
        """Run a literal query; rows come back as for ``find``."""
        res = await session.execute(_text(session, sql, args))
        return self._materialize(res)

    async def exec(self, session: AsyncSession, sql: str, *args: Any) -> None:
        """Run a literal statement and discard any result."""
        await session.execute(_text(session, sql, args))
