from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Generic, TypeVar

import sqlalchemy as sa

from .conditions import Condition

if TYPE_CHECKING:
    from sqlalchemy.sql.elements import ColumnElement
    from sqlalchemy.sql.expression import FromClause

T = TypeVar("T")


@dataclass(frozen=True, eq=False)
class Column:
    """A named column. Two columns are equal when their names are."""

    name: str
    table: str | None = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Column name must not be empty")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Column):
            return NotImplemented
        return self.name == other.name

    def __hash__(self) -> int:
        return hash(self.name)

    def with_table(self, table: str) -> Column:
        """Same column, qualified by ``table`` when rendered."""
        return replace(self, table=table)

    def to_expression(self, table: FromClause | None = None, *, raw: bool = False) -> ColumnElement[Any]:
        """Resolve to a SQLAlchemy column.

        Prefers the typed column of ``table``; otherwise renders the bare name
        (verbatim when ``raw``).
        """
        if self.table is not None and (table is None or getattr(table, "name", None) != self.table):
            return sa.table(self.table, sa.column(self.name)).c[self.name]
        if table is not None and self.name in table.c:
            return table.c[self.name]
        if raw:
            return sa.literal_column(self.name)
        return sa.column(self.name)


class Field(Column, Generic[T]):
    """A column that builds conditions over values of type ``T``.

    Every method taking a value returns ``None`` instead of a condition when
    the value is ``None`` (or an empty sequence for ``in_``/``not_in``), so
    optional filters can be passed straight through::

        User.email.eq(filters.email)   # None when filters.email is None
    """

    def _compare(self, operator: str, value: Any) -> Condition | None:
        if value is None:
            return None
        return Condition(self, operator, (value,))

    def _members(self, operator: str, values: Iterable[T] | None) -> Condition | None:
        if isinstance(values, (str, bytes)):
            raise TypeError(f"{self.name}: {operator} takes a collection of values, not {type(values).__name__}")
        members = () if values is None else tuple(values)
        if not members:
            return None
        return Condition(self, operator, members)

    # common

    def is_null(self) -> Condition:
        return Condition(self, "is_null")

    def is_not_null(self) -> Condition:
        return Condition(self, "is_not_null")

    def eq(self, value: T | None) -> Condition | None:
        return self._compare("eq", value)

    def not_eq(self, value: T | None) -> Condition | None:
        return self._compare("not_eq", value)

    def in_(self, values: Iterable[T] | None) -> Condition | None:
        return self._members("in", values)

    def not_in(self, values: Iterable[T] | None) -> Condition | None:
        return self._members("not_in", values)

    # ordering

    def gt(self, value: T | None) -> Condition | None:
        return self._compare("gt", value)

    def gt_eq(self, value: T | None) -> Condition | None:
        return self._compare("gt_eq", value)

    def lt(self, value: T | None) -> Condition | None:
        return self._compare("lt", value)

    def lt_eq(self, value: T | None) -> Condition | None:
        return self._compare("lt_eq", value)

    # patterns; like/not_like take the pattern as given, wildcards unescaped

    def like(self, pattern: str | None) -> Condition | None:
        return self._compare("like", pattern)

    def not_like(self, pattern: str | None) -> Condition | None:
        return self._compare("not_like", pattern)

    def starts_with(self, value: str | None) -> Condition | None:
        return None if value is None else self.like(value + "%")

    def ends_with(self, value: str | None) -> Condition | None:
        return None if value is None else self.like("%" + value)

    def contains(self, value: str | None) -> Condition | None:
        return None if value is None else self.like("%" + value + "%")

    def not_contains(self, value: str | None) -> Condition | None:
        return None if value is None else self.not_like("%" + value + "%")
