"""
dbkit - typed query conditions and CRUD executors over SQLAlchemy.

Usage:
    from dbkit import Field, Q, or_, new_db, new_executor, new_updater

    class UserFields:
        email = Field[str]("email")
        age = Field[int]("age")

    users = new_executor(new_db(), User)
    adults = await users.find(session, Q(UserFields.age.gt_eq(18), UserFields.email.ends_with(domain)))
"""
from __future__ import annotations

from typing import Any, TypeVar

from .conditions import Q, Condition, Query, and_, not_, or_, to_expression
from .config import DbConfig
from .database import get_session, new_engine, new_session_factory
from .db import DEFAULT_BATCH_SIZE, Db
from .entity import Entity
from .exceptions import DbkitError, MissingWhereClauseError, UnboundModelError
from .executor import Executor
from .fields import Column, Field
from .pagination import OrderConfig, PaginationConfig
from .updater import Updater

__version__ = "0.1.0"

T = TypeVar("T")


def new_db(model: Any = None) -> Db:
    """An unbound Db, or one bound to ``model``."""
    db = Db()
    return db if model is None else db.with_model(model)


def new_field(column_name: str) -> Field[Any]:
    return Field(column_name)


def new_executor(db: Db, model: type[T]) -> Executor[T]:
    """Executor for ``model`` on its declared table."""
    return Executor(db, model)


def new_executor_with_table_name(db: Db, model: type[T], table_name: str) -> Executor[T]:
    """Executor for ``model`` on another table with the same columns, e.g.
    ``new_executor_with_table_name(db, User, "user_tab_00000001")``."""
    return Executor(db, model, table_name)


def new_updater() -> Updater:
    return Updater()


def new_pagination_config() -> PaginationConfig:
    return PaginationConfig()


def new_order_config(column: Column, desc: bool = False) -> OrderConfig:
    return OrderConfig(column, desc)


def new_db_config(host: str, port: int, user: str, password: str, db_name: str) -> DbConfig:
    return DbConfig(host=host, port=port, user=user, password=password, db_name=db_name)


__all__ = [
    "DEFAULT_BATCH_SIZE",
    "Column",
    "Condition",
    "Db",
    "DbConfig",
    "DbkitError",
    "Entity",
    "Executor",
    "Field",
    "MissingWhereClauseError",
    "OrderConfig",
    "PaginationConfig",
    "Q",
    "Query",
    "UnboundModelError",
    "Updater",
    "and_",
    "get_session",
    "new_db",
    "new_db_config",
    "new_engine",
    "new_executor",
    "new_executor_with_table_name",
    "new_field",
    "new_order_config",
    "new_pagination_config",
    "new_session_factory",
    "new_updater",
    "not_",
    "or_",
    "to_expression",
]
