from __future__ import annotations

from dataclasses import dataclass

from .fields import Column


@dataclass(frozen=True)
class OrderConfig:
    """One ORDER BY key."""

    column: Column
    desc: bool = False


class PaginationConfig:
    """Limit, offset and ordering for ``find``.

    Builder methods update this instance and return it for chaining. Orders
    apply in the order they were appended.
    """

    def __init__(self) -> None:
        self._limit: int | None = None
        self._offset: int | None = None
        self._orders: list[OrderConfig] = []

    def with_limit(self, limit: int | None) -> PaginationConfig:
        self._limit = limit
        return self

    def with_offset(self, offset: int | None) -> PaginationConfig:
        self._offset = offset
        return self

    def append_order(self, order: OrderConfig) -> PaginationConfig:
        self._orders.append(order)
        return self

    @property
    def limit(self) -> int | None:
        return self._limit

    @property
    def offset(self) -> int | None:
        return self._offset

    @property
    def orders(self) -> list[OrderConfig]:
        return list(self._orders)

    def __repr__(self) -> str:
        return f"PaginationConfig(limit={self._limit!r}, offset={self._offset!r}, orders={self._orders!r})"
