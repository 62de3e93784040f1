"""
Condition algebra.

A ``Condition`` is a single comparison over one column; a ``Query`` combines
conditions under AND / OR / NOT.  Both are immutable and are translated into
SQLAlchemy expressions only when they reach a ``Db`` operation.

``None`` stands for "no condition": field methods return it for absent
values and queries drop it when translating, so

    and_(User.email.eq(email), User.age.gt(min_age))

filters only on the values that were actually given.
"""
from __future__ import annotations

import logging
import operator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

import sqlalchemy as sa
from sqlalchemy.sql.elements import ColumnElement

if TYPE_CHECKING:
    from sqlalchemy.sql.expression import FromClause

    from .fields import Column

logger = logging.getLogger(__name__)

AND = "AND"
OR = "OR"
NOT = "NOT"

_OPERATORS: dict[str, Callable[..., ColumnElement[bool]]] = {
    "eq": operator.eq,
    "not_eq": operator.ne,
    "gt": operator.gt,
    "gt_eq": operator.ge,
    "lt": operator.lt,
    "lt_eq": operator.le,
    "in": lambda col, *values: col.in_(values),
    "not_in": lambda col, *values: col.not_in(values),
    "is_null": lambda col: col.is_(None),
    "is_not_null": lambda col: col.is_not(None),
    "like": lambda col, pattern: col.like(pattern),
    "not_like": lambda col, pattern: col.not_like(pattern),
}


class _Composable:
    """``&``, ``|`` and ``~`` shorthands for and_/or_/not_."""

    def __and__(self, other: Any) -> Query:
        return and_(self, other)

    def __or__(self, other: Any) -> Query:
        return or_(self, other)

    def __invert__(self) -> Query:
        return not_(self)


@dataclass(frozen=True)
class Condition(_Composable):
    """A comparison of one column against zero or more operands."""

    column: Column
    operator: str
    operands: tuple[Any, ...] = ()

    def __post_init__(self) -> None:
        if self.operator not in _OPERATORS:
            raise ValueError(f"Unknown condition operator: {self.operator!r}")

    def to_expression(self, table: FromClause | None = None) -> ColumnElement[bool]:
        col = self.column.to_expression(table)
        return _OPERATORS[self.operator](col, *self.operands)


@dataclass(frozen=True)
class Query(_Composable):
    """A keyword (AND, OR, NOT) over an ordered tuple of child conditions.

    Children may be ``Condition``/``Query`` objects, SQLAlchemy column
    expressions, or ``None``.  Anything that cannot be translated is left out
    of the generated expression.
    """

    keyword: str
    children: tuple[Any, ...] = ()

    def __post_init__(self) -> None:
        if self.keyword not in (AND, OR, NOT):
            raise ValueError(f"Unknown query keyword: {self.keyword!r}")

    def to_expression(self, table: FromClause | None = None) -> ColumnElement[bool] | None:
        """Translate to a SQLAlchemy boolean expression.

        Returns ``None`` when no child is translatable, meaning "no filter".
        """
        expressions = []
        for child in self.children:
            if child is None:
                logger.debug("Dropping absent condition from %s query", self.keyword)
                continue
            expr = _translate(child, table)
            if expr is not None:
                expressions.append(expr)

        if not expressions:
            return None
        if self.keyword == NOT:
            return sa.not_(expressions[0] if len(expressions) == 1 else sa.and_(*expressions))
        if len(expressions) == 1:
            return expressions[0]
        if self.keyword == OR:
            return sa.or_(*expressions)
        return sa.and_(*expressions)


def _translate(node: Any, table: FromClause | None) -> ColumnElement[bool] | None:
    if isinstance(node, ColumnElement):
        return node
    to_expr = getattr(node, "to_expression", None)
    if callable(to_expr):
        return to_expr(table)
    logger.warning("Dropping untranslatable condition %r (%s)", node, type(node).__name__)
    return None


def to_expression(query: Any, table: FromClause | None = None) -> ColumnElement[bool] | None:
    """Translate a query, condition or SQLAlchemy expression for ``table``.

    ``None`` in, ``None`` out: an absent query means an unfiltered statement.
    """
    if query is None:
        return None
    return _translate(query, table)


def and_(*conditions: Any) -> Query:
    return Query(AND, conditions)


def or_(*conditions: Any) -> Query:
    return Query(OR, conditions)


def not_(condition: Any) -> Query:
    return Query(NOT, (condition,))


# Q() reads better at call sites that only ever AND their filters together.
Q = and_
