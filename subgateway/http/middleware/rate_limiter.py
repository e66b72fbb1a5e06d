"""Middleware that limits the number of requests per key and interval."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Hashable, Optional

from subgateway.errors import AuthError
from subgateway.graphql import error_response
from subgateway.http.types import Request, Response

Service = Callable[[Request], Awaitable[Response]]


@dataclass(frozen=True)
class RateLimitSettings:
    """Rate limit for a request: the key it counts against, and queries per minute.

    Settings may come from global configuration or from the request's
    authorization (e.g. a subscription-specific rate).
    """

    key: Hashable = "0x" + "00" * 20
    queries_per_minute: int = 0


class RateLimitCounters:
    """Thread-safe request counters, one per rate limit key."""

    def __init__(self) -> None:
        self._counts: Dict[Hashable, int] = {}
        self._lock = threading.Lock()

    def increment(self, key: Hashable) -> int:
        """Add one to the counter for ``key``; return its value before the increment."""
        with self._lock:
            previous = self._counts.get(key, 0)
            self._counts[key] = previous + 1
            return previous

    def get(self, key: Hashable) -> Optional[int]:
        """The counter for ``key``, or None if it is not tracked."""
        with self._lock:
            return self._counts.get(key)

    def reset(self) -> None:
        """Drop counters that are zero and set every other counter back to zero."""
        with self._lock:
            self._counts = {key: 0 for key, count in self._counts.items() if count != 0}

    def __len__(self) -> int:
        with self._lock:
            return len(self._counts)


class RateLimiter:
    """Rejects requests whose :class:`RateLimitSettings` limit is exceeded.

    Requests without settings pass through untouched. Rejected requests still
    count against their key, and are answered with a GraphQL error response.
    """

    def __init__(self, inner: Service, counters: RateLimitCounters) -> None:
        self.inner = inner
        self.counters = counters

    async def __call__(self, request: Request) -> Response:
        settings = request.extension(RateLimitSettings)
        if settings is not None:
            count = self.counters.increment(settings.key)
            if count >= settings.queries_per_minute:
                return error_response(AuthError("rate limit exceeded"))
        return await self.inner(request)