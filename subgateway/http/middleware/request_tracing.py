"""Middleware that runs each client request inside its own tracing span."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional

from subgateway.http.types import Request, Response

Service = Callable[[Request], Awaitable[Response]]


@dataclass
class _Span:
    """A named span with a fixed set of fields that may be filled in later."""

    name: str
    fields: Dict[str, Any] = field(default_factory=dict)

    def record(self, name: str, value: Any) -> None:
        """Set a declared field; fields not declared on the span are ignored."""
        if name in self.fields:
            self.fields[name] = value


_CURRENT_SPAN: contextvars.ContextVar[Optional[_Span]] = contextvars.ContextVar(
    "current_span", default=None
)


def current_span() -> Optional[_Span]:
    """The span of the client request being handled, if any."""
    return _CURRENT_SPAN.get()


class RequestTracing:
    """Runs the inner service inside a ``client_request`` span.

    The span declares the ``request_id`` and ``selector`` fields, left empty
    for later layers to fill in. This should be the outermost layer.
    """

    def __init__(self, inner: Service) -> None:
        self.inner = inner

    async def __call__(self, request: Request) -> Response:
        span = _Span("client_request", {"request_id": None, "selector": None})
        token = _CURRENT_SPAN.set(span)
        try:
            return await self.inner(request)
        finally:
            _CURRENT_SPAN.reset(token)


class RequestTracingLayer:
    """Wraps services in :class:`RequestTracing`."""

    def layer(self, inner: Service) -> RequestTracing:
        return RequestTracing(inner)