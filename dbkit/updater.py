from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .fields import Column


class Updater:
    """Pending ``column -> value`` assignments for a partial update.

    Later assignments to the same column replace earlier ones. Not
    synchronised: build it at one call site, then hand it to the executor.
    """

    def __init__(self) -> None:
        self._updates: dict[str, Any] = {}

    def add(self, column: Column, value: Any) -> Updater:
        self._updates[column.name] = value
        return self

    def add_by_map(self, columns: Mapping[Column, Any]) -> Updater:
        for column, value in columns.items():
            self.add(column, value)
        return self

    def remove(self, column: Column) -> Updater:
        self._updates.pop(column.name, None)
        return self

    def params(self) -> dict[str, Any]:
        """Assignments keyed by column name, exactly as built."""
        return self._updates

    def __len__(self) -> int:
        return len(self._updates)

    def __repr__(self) -> str:
        return f"Updater({self._updates!r})"
