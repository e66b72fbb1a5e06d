"""A shared handle that compares and hashes by identity, not by value."""

from __future__ import annotations

import functools
from typing import Generic, TypeVar

T = TypeVar("T")


class _Cell(Generic[T]):
    __slots__ = ("value",)

    def __init__(self, value: T) -> None:
        self.value = value


@functools.total_ordering
class Ptr(Generic[T]):
    """Cheap-to-copy wrapper whose equality is the identity of the shared value.

    Two handles made by separate constructions are never equal, even if the
    wrapped values are; copies of one handle are equal to each other.
    """

    __slots__ = ("_cell",)

    def __init__(self, value: T) -> None:
        self._cell = _Cell(value)

    @property
    def value(self) -> T:
        """The wrapped value."""
        return self._cell.value

    def __copy__(self) -> Ptr[T]:
        clone = Ptr.__new__(Ptr)
        clone._cell = self._cell
        return clone

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Ptr):
            return NotImplemented
        return self._cell is other._cell

    def __hash__(self) -> int:
        return hash(id(self._cell))

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Ptr):
            return NotImplemented
        return id(self._cell) < id(other._cell)

    def __str__(self) -> str:
        return str(self._cell.value)

    def __repr__(self) -> str:
        return repr(self._cell.value)