"""Middleware that assigns an identifier to each incoming request."""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterator, Union

from subgateway.http.middleware.request_tracing import current_span
from subgateway.http.types import Request, Response

Service = Callable[[Request], Awaitable[Response]]

#: Header carrying the Cloudflare Ray ID.
CLOUDFLARE_RAY_ID = "cf-ray"


def _is_valid_header_text(text: str) -> bool:
    return all(ch == "\t" or 32 <= ord(ch) <= 126 for ch in text)


@dataclass(frozen=True)
class RequestId:
    """An identifier for a request."""

    value: str

    @classmethod
    def from_header_value(cls, value: Union[str, bytes]) -> RequestId:
        """Build from a header value; an invalid value gives an empty id."""
        if isinstance(value, (bytes, bytearray)):
            try:
                value = bytes(value).decode("ascii")
            except UnicodeDecodeError:
                return cls("")
        return cls(value if _is_valid_header_text(value) else "")

    @classmethod
    def from_gateway_id_and_count(cls, gateway_id: str, counter: int) -> RequestId:
        """Build from the gateway id and a request counter, in hex."""
        return cls(f"{gateway_id}-{counter:x}")

    def __str__(self) -> str:
        return self.value


class SetRequestId:
    """Sets a :class:`RequestId` extension on requests that lack one.

    The ``cf-ray`` header is used when present; otherwise the id is derived
    from the gateway id and a shared counter.
    """

    def __init__(self, inner: Service, gateway_id: str, counter: Iterator[int]) -> None:
        self.inner = inner
        self.gateway_id = gateway_id
        self._counter = counter

    async def __call__(self, request: Request) -> Response:
        if request.extension(RequestId) is None:
            ray_id = request.header(CLOUDFLARE_RAY_ID)
            if ray_id is not None:
                request_id = RequestId.from_header_value(ray_id)
            else:
                request_id = RequestId.from_gateway_id_and_count(
                    self.gateway_id, next(self._counter)
                )
            span = current_span()
            if span is not None:
                span.record("request_id", str(request_id))
            request.insert_extension(request_id)
        return await self.inner(request)


class SetRequestIdLayer:
    """Wraps services in :class:`SetRequestId`, sharing one counter."""

    def __init__(self, gateway_id: str) -> None:
        self.gateway_id = str(gateway_id)
        self._counter = itertools.count()

    def layer(self, inner: Service) -> SetRequestId:
        return SetRequestId(inner, self.gateway_id, self._counter)