"""Adjusts the minimum indexer fee towards a target average query fee."""

from __future__ import annotations

import asyncio
import logging
import math
import threading
from typing import Tuple

logger = logging.getLogger(__name__)

#: Lower bound of the minimum indexer fee, in USD.
MIN_INDEXER_FEES = 10e-6
_K_I = 0.2


class DecayBuffer:
    """Frames of values whose older entries decay geometrically over time."""

    def __init__(self, frames: int = 6, decay_per_mille: int = 4) -> None:
        if frames <= 0:
            raise ValueError("a decay buffer needs at least one frame")
        if not 0 <= decay_per_mille < 1000:
            raise ValueError("decay_per_mille must be in [0, 1000)")
        self._frames = [0.0] * frames
        self._decay = 1.0 - 1e-3 * decay_per_mille

    @property
    def frames(self) -> Tuple[float, ...]:
        """The frame values, most recent first."""
        return tuple(self._frames)

    def add_to_current(self, value: float) -> None:
        """Add ``value`` to the most recent frame."""
        self._frames[0] += value

    def decay(self) -> None:
        """Fold each frame into the next older one and start a fresh current frame."""
        for i in range(len(self._frames) - 1, 0, -1):
            retain = (1.0 - 4.0 ** -i) * self._decay
            take = 4.0 ** -(i - 1) * self._decay
            self._frames[i] = self._frames[i] * retain + self._frames[i - 1] * take
        self._frames[0] = 0.0


class Controller:
    """Integral controller over the average fee per query."""

    def __init__(self, query_fees_target: float) -> None:
        self.query_fees_target = float(query_fees_target)
        self.recent_fees = 0.0
        self.recent_count = 0
        self.average_fees = 0.0
        self._error_history = DecayBuffer(6, 4)

    def add_recent_fees(self, fees: float) -> None:
        """Record the fees paid for one query."""
        if math.isnan(fees):
            raise ValueError("fees must not be NaN")
        self.recent_fees += fees
        self.recent_count += 1

    def control_variable(self) -> float:
        """Compute the next minimum indexer fee and reset the recent window."""
        target = self.query_fees_target
        if target < MIN_INDEXER_FEES:
            raise ValueError("query fees target is below the minimum indexer fee")
        process_variable = self.recent_fees / max(self.recent_count, 1)
        logger.debug("avg_fees=%s", process_variable)
        self.average_fees = process_variable

        self.recent_fees = 0.0
        self.recent_count = 0
        self._error_history.decay()
        self._error_history.add_to_current((target - process_variable) / target)

        integral = sum(self._error_history.frames)
        control = integral * _K_I * target
        if math.isnan(control):
            control = 0.0
        return min(max(control, MIN_INDEXER_FEES), target)


class Budgeter:
    """Tracks query fees and publishes the current minimum indexer fee."""

    def __init__(self, query_fees_target: float) -> None:
        self.query_fees_target = float(query_fees_target)
        self.min_indexer_fees = self.query_fees_target
        self._controller = Controller(self.query_fees_target)
        self._lock = threading.Lock()

    def feedback(self, fees: float) -> None:
        """Report the fees paid for one query."""
        with self._lock:
            self._controller.add_recent_fees(fees)

    def revise_budget(self) -> float:
        """Update the minimum indexer fee if fees were reported since the last update."""
        with self._lock:
            if self._controller.recent_count:
                self.min_indexer_fees = self._controller.control_variable()
                logger.debug("min_indexer_fees=%s", self.min_indexer_fees)
            return self.min_indexer_fees

    async def run(self, interval: float = 1.0) -> None:
        """Revise the budget every ``interval`` seconds until cancelled."""
        while True:
            self.revise_budget()
            await asyncio.sleep(interval)