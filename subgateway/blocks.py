"""Blocks, block references and the block constraints of a query."""

from __future__ import annotations

import enum
import functools
from dataclasses import dataclass
from typing import Optional


def _hex(hash_: bytes) -> str:
    return "0x" + hash_.hex()


@dataclass(frozen=True, order=True)
class Block:
    """A chain block. Ordered by number, then hash, then timestamp."""

    number: int
    hash: bytes
    timestamp: int


@functools.total_ordering
@dataclass(frozen=True)
class UnresolvedBlock:
    """A reference to a block by hash or by number."""

    hash: Optional[bytes] = None
    number: Optional[int] = None

    def __post_init__(self) -> None:
        if (self.hash is None) == (self.number is None):
            raise ValueError("an unresolved block needs exactly one of hash or number")

    @classmethod
    def with_hash(cls, hash: bytes) -> UnresolvedBlock:
        return cls(hash=hash)

    @classmethod
    def with_number(cls, number: int) -> UnresolvedBlock:
        return cls(number=number)

    def matches(self, block: Block) -> bool:
        """Return True if ``block`` is the block this reference names."""
        if self.hash is not None:
            return self.hash == block.hash
        return self.number == block.number

    def _key(self) -> tuple:
        if self.hash is not None:
            return (0, self.hash)
        return (1, self.number)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, UnresolvedBlock):
            return NotImplemented
        return self._key() < other._key()

    def __str__(self) -> str:
        if self.hash is not None:
            return _hex(self.hash)
        return str(self.number)


class BlockConstraintKind(enum.Enum):
    """The kinds of block constraint, in their sort order."""

    UNCONSTRAINED = 0
    HASH = 1
    NUMBER = 2
    NUMBER_GTE = 3


@functools.total_ordering
@dataclass(frozen=True)
class BlockConstraint:
    """A block constraint of a query field."""

    kind: BlockConstraintKind
    hash: Optional[bytes] = None
    number: Optional[int] = None

    @classmethod
    def unconstrained(cls) -> BlockConstraint:
        return cls(BlockConstraintKind.UNCONSTRAINED)

    @classmethod
    def with_hash(cls, hash: bytes) -> BlockConstraint:
        return cls(BlockConstraintKind.HASH, hash=hash)

    @classmethod
    def with_number(cls, number: int) -> BlockConstraint:
        return cls(BlockConstraintKind.NUMBER, number=number)

    @classmethod
    def with_number_gte(cls, number: int) -> BlockConstraint:
        return cls(BlockConstraintKind.NUMBER_GTE, number=number)

    def into_unresolved(self) -> Optional[UnresolvedBlock]:
        """The block this constraint refers to, or None when unconstrained."""
        if self.kind is BlockConstraintKind.UNCONSTRAINED:
            return None
        if self.kind is BlockConstraintKind.HASH:
            return UnresolvedBlock.with_hash(self.hash)  # type: ignore[arg-type]
        return UnresolvedBlock.with_number(self.number)  # type: ignore[arg-type]

    def _key(self) -> tuple:
        return (self.kind.value, self.hash or b"", self.number or 0)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, BlockConstraint):
            return NotImplemented
        return self._key() < other._key()