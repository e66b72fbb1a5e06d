"""Authorization checks shared by the authentication schemes."""

from __future__ import annotations

from typing import Collection, Hashable


def is_subgraph_authorized(authorized: Collection[Hashable], subgraph: Hashable) -> bool:
    """True if ``subgraph`` is in ``authorized``, or ``authorized`` is empty."""
    return not authorized or subgraph in authorized


def _match_domain(pattern: str, origin: str) -> bool:
    if pattern.startswith("*"):
        return origin.endswith(pattern.lstrip("*"))
    return origin == pattern


def is_domain_authorized(authorized: Collection[str], origin: str) -> bool:
    """True if ``origin`` matches one of ``authorized``, or ``authorized`` is empty.

    A pattern starting with ``*`` matches any origin ending with the rest of it.
    """
    return not authorized or any(_match_domain(p, origin) for p in authorized)