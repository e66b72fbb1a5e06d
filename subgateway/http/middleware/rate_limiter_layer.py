"""Layer that adds rate limiting to services and periodically resets the counters."""

from __future__ import annotations

import asyncio
import math
from datetime import timedelta
from typing import Optional, Union

from subgateway.http.middleware.rate_limiter import (
    RateLimitCounters,
    RateLimiter,
    Service,
)

#: Counters are reset once per minute by default.
DEFAULT_RESET_INTERVAL = 60.0


class AddRateLimiterLayer:
    """Wraps services in :class:`RateLimiter`, all sharing one set of counters.

    The counters are reset every ``reset_interval`` seconds by :meth:`run`:
    counters that are zero are removed, every other counter is set back to zero.
    A ``reset_interval`` of None or infinity means the counters are never reset.
    """

    def __init__(
        self, reset_interval: Union[float, timedelta, None] = DEFAULT_RESET_INTERVAL
    ) -> None:
        if isinstance(reset_interval, timedelta):
            reset_interval = reset_interval.total_seconds()
        if reset_interval is not None:
            reset_interval = float(reset_interval)
            if math.isnan(reset_interval) or reset_interval <= 0:
                raise ValueError("reset interval must be positive")
            if math.isinf(reset_interval):
                reset_interval = None
        self._reset_interval: Optional[float] = reset_interval
        self._counters = RateLimitCounters()

    @property
    def reset_interval(self) -> Optional[float]:
        """Seconds between counter resets, or None if they are never reset."""
        return self._reset_interval

    @property
    def counters(self) -> RateLimitCounters:
        """The counters shared by every service this layer wraps."""
        return self._counters

    def layer(self, inner: Service) -> RateLimiter:
        """Wrap ``inner`` in a rate limiter using this layer's counters."""
        return RateLimiter(inner, self._counters)

    def reset_counters(self) -> None:
        """Remove zero counters and set the others back to zero."""
        self._counters.reset()

    async def run(self) -> None:
        """Reset the counters every reset interval until cancelled."""
        if self._reset_interval is None:
            await asyncio.Event().wait()
            return
        while True:
            await asyncio.sleep(self._reset_interval)
            self.reset_counters()