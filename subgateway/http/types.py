"""Minimal HTTP request and response values used by the middleware."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Type, TypeVar, Union

E = TypeVar("E")

HeadersInput = Union[Mapping[str, str], Iterable[Tuple[str, str]], None]


def _normalize_headers(headers: HeadersInput) -> Dict[str, str]:
    if headers is None:
        return {}
    pairs = headers.items() if isinstance(headers, Mapping) else headers
    return {name.lower(): value for name, value in pairs}


@dataclass
class Request:
    """An HTTP request with case-insensitive headers and typed extensions."""

    method: str = "GET"
    uri: str = "/"
    headers: Dict[str, str] = field(default_factory=dict)
    body: Any = None
    extensions: Dict[type, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.headers = _normalize_headers(self.headers)

    def header(self, name: str) -> Optional[str]:
        """Return the value of header ``name``, or None."""
        return self.headers.get(name.lower())

    def extension(self, kind: Type[E]) -> Optional[E]:
        """Return the extension stored for ``kind``, or None."""
        return self.extensions.get(kind)

    def insert_extension(self, value: Any) -> Any:
        """Store ``value`` keyed by its type; return what it replaced, if anything."""
        previous = self.extensions.get(type(value))
        self.extensions[type(value)] = value
        return previous


@dataclass
class Response:
    """An HTTP response with case-insensitive headers and a text body."""

    status: int = 200
    headers: Dict[str, str] = field(default_factory=dict)
    body: str = ""

    def __post_init__(self) -> None:
        self.headers = _normalize_headers(self.headers)

    def header(self, name: str) -> Optional[str]:
        """Return the value of header ``name``, or None."""
        return self.headers.get(name.lower())

    def json(self) -> Any:
        """Decode the body as JSON."""
        return json.loads(self.body)