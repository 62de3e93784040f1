"""
Entity descriptors.

An entity is a SQLAlchemy declarative model.  Its table name comes from
``__tablename__``; the column used by the ``*_by_id`` executor methods is
``__id_field__`` when the class sets it, ``"id"`` otherwise.
"""
from __future__ import annotations

import functools
from collections.abc import Mapping
from typing import Any, ClassVar, Protocol, TypeVar

from sqlalchemy.inspection import inspect as sa_inspect
from sqlalchemy.orm.attributes import set_committed_value

DEFAULT_ID_FIELD = "id"

E = TypeVar("E")


class Entity(Protocol):
    __tablename__: ClassVar[str]


def table_name_of(model: type[Any]) -> str:
    name = getattr(model, "__tablename__", None)
    if name:
        return name
    table = getattr(model, "__table__", None)
    return getattr(table, "name", None) or ""


def id_field_name_of(model: type[Any]) -> str:
    return getattr(model, "__id_field__", None) or DEFAULT_ID_FIELD


@functools.lru_cache(maxsize=None)
def column_keys(model: type[Any]) -> dict[str, str]:
    """Table column name -> mapped attribute key."""
    mapper = sa_inspect(model)
    return {prop.columns[0].name: prop.key for prop in mapper.column_attrs}


def to_row(entity: Any) -> dict[str, Any]:
    """Column values of ``entity`` keyed by column name.

    Plain mappings are taken as rows already.
    """
    if isinstance(entity, Mapping):
        return dict(entity)
    return {name: getattr(entity, key, None) for name, key in column_keys(type(entity)).items()}


def from_row(model: type[E], row: Mapping[str, Any]) -> E:
    """Build a ``model`` instance from a result row, ignoring unknown columns.

    Like ORM loading, the model's ``__init__`` is not called.
    """
    keys = column_keys(model)
    entity = sa_inspect(model).class_manager.new_instance()
    for name, value in row.items():
        if name in keys:
            set_committed_value(entity, keys[name], value)
    return entity


def set_column(entity: Any, name: str, value: Any) -> None:
    if isinstance(entity, Mapping):
        return
    key = column_keys(type(entity)).get(name)
    if key is not None:
        setattr(entity, key, value)
