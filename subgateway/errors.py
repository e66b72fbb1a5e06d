"""Errors reported to clients and errors attributed to indexers."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Hashable, Optional

from subgateway.blocks import UnresolvedBlock
from subgateway.graphql import error_response
from subgateway.http.types import Response


def _describe(cause: object) -> str:
    """Render ``cause`` together with the chain of exceptions behind it."""
    parts = [str(cause)]
    seen = {id(cause)}
    inner = getattr(cause, "__cause__", None)
    while inner is not None and id(inner) not in seen:
        seen.add(id(inner))
        parts.append(str(inner))
        inner = inner.__cause__
    return ": ".join(parts)


class GatewayError(Exception):
    """An error answered to the client as a GraphQL error response."""

    def to_response(self) -> Response:
        """The GraphQL error response for this error."""
        return error_response(self)


class InternalError(GatewayError):
    """Errors that should only occur in exceptional conditions."""

    def __init__(self, cause: object) -> None:
        self.cause = cause
        super().__init__(f"internal error: {_describe(cause)}")


class AuthError(GatewayError):
    """Failed to authenticate or authorize the client request."""

    def __init__(self, cause: object) -> None:
        self.cause = cause
        super().__init__(f"auth error: {_describe(cause)}")


class BlockNotFoundError(GatewayError):
    """A block required by the query is not found."""

    def __init__(self, block: UnresolvedBlock) -> None:
        self.block = block
        super().__init__(f"block not found: {block}")


class SubgraphNotFoundError(GatewayError):
    """The requested subgraph or deployment is not found or invalid."""

    def __init__(self, cause: object) -> None:
        self.cause = cause
        super().__init__(f"subgraph not found: {_describe(cause)}")


class BadQueryError(GatewayError):
    """The GraphQL query is invalid."""

    def __init__(self, cause: object) -> None:
        self.cause = cause
        super().__init__(f"bad query: {_describe(cause)}")


class NoIndexersError(GatewayError):
    """No indexers are allocated to the requested subgraph or deployment."""

    def __init__(self) -> None:
        super().__init__("no indexers found")


class IndexerErrors(dict):
    """Errors by indexer address, rendered in address order."""

    @staticmethod
    def _format_key(key: Hashable) -> str:
        if isinstance(key, (bytes, bytearray)):
            return "0x" + bytes(key).hex()
        return str(key)

    def __str__(self) -> str:
        entries = ", ".join(
            f"{self._format_key(key)}: {value}"
            for key, value in sorted(self.items(), key=lambda item: item[0])
        )
        return "{" + entries + "}"


class BadIndexersError(GatewayError):
    """Indexers are available, but failed to return a suitable result."""

    def __init__(self, errors: IndexerErrors) -> None:
        self.errors = errors
        super().__init__(f"bad indexers: {errors}")


@dataclass(frozen=True)
class MissingBlockError:
    """An indexer lacks a block the query needs."""

    missing: Optional[int] = None
    latest: Optional[int] = None

    def message(self) -> str:
        """Human-readable description of the missing block."""
        text = "missing block"
        if self.missing is not None:
            text += f": {self.missing}"
        if self.latest is not None:
            text += f", latest: {self.latest}"
        return text


class UnavailableKind(enum.Enum):
    """Why an indexer is considered unavailable."""

    BLOCKED = "blocked"
    BLOCKED_BAD_POI = "blocked_bad_poi"
    NOT_SUPPORTED = "not_supported"
    NO_STATUS = "no_status"
    NO_STAKE = "no_stake"
    NO_FEE = "no_fee"
    MISSING_BLOCK = "missing_block"
    TOO_FAR_BEHIND = "too_far_behind"
    INTERNAL = "internal"


_NEEDS_DETAIL = {
    UnavailableKind.NOT_SUPPORTED,
    UnavailableKind.NO_STATUS,
    UnavailableKind.INTERNAL,
}

_FIXED_TEXT = {
    UnavailableKind.BLOCKED: "blocked",
    UnavailableKind.BLOCKED_BAD_POI: "blocked (bad POI)",
    UnavailableKind.NO_STAKE: "no stake",
    UnavailableKind.NO_FEE: "no fee",
    UnavailableKind.TOO_FAR_BEHIND: "too far behind",
}

_DETAIL_PREFIX = {
    UnavailableKind.NOT_SUPPORTED: "not supported",
    UnavailableKind.NO_STATUS: "no status",
    UnavailableKind.INTERNAL: "internal error",
}


@dataclass(frozen=True)
class UnavailableReason:
    """The reason an indexer is unavailable, with its details where it has any."""

    kind: UnavailableKind
    detail: Optional[str] = None
    missing_block: Optional[MissingBlockError] = None

    def __post_init__(self) -> None:
        if self.kind in _NEEDS_DETAIL and self.detail is None:
            raise ValueError(f"{self.kind.name} needs a detail")
        if self.kind is UnavailableKind.MISSING_BLOCK and self.missing_block is None:
            raise ValueError("MISSING_BLOCK needs a missing_block")

    def __str__(self) -> str:
        if self.kind is UnavailableKind.MISSING_BLOCK:
            return self.missing_block.message()  # type: ignore[union-attr]
        if self.kind in _DETAIL_PREFIX:
            return f"{_DETAIL_PREFIX[self.kind]}: {self.detail}"
        return _FIXED_TEXT[self.kind]


class IndexerError(Exception):
    """A failure attributed to an indexer."""


class IndexerInternalError(IndexerError):
    """Errors that should only occur in exceptional conditions."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"InternalError({reason})")


class IndexerUnavailableError(IndexerError):
    """The indexer is considered unavailable."""

    def __init__(self, reason: UnavailableReason) -> None:
        self.reason = reason
        super().__init__(f"Unavailable({reason})")


class IndexerTimeoutError(IndexerError):
    """The indexer request timed out."""

    def __init__(self) -> None:
        super().__init__("Timeout")


class IndexerBadResponseError(IndexerError):
    """The indexer's response is bad."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"BadResponse({detail})")