"""A bounded view of a chain's recent blocks, as reported by indexers."""

from __future__ import annotations

import itertools
import logging
from typing import Hashable, Iterator, Optional, Set

from sortedcontainers import SortedDict

from subgateway.blocks import Block, UnresolvedBlock

logger = logging.getLogger(__name__)

#: Maximum number of distinct blocks kept.
MAX_LEN = 512
#: Block rate reported when there are too few consensus blocks to measure it.
DEFAULT_BLOCKS_PER_MINUTE = 6


class Chain:
    """Blocks reported by indexers, with the set of indexers that reported each."""

    def __init__(self) -> None:
        self._blocks: SortedDict = SortedDict()

    def __len__(self) -> int:
        return len(self._blocks)

    def latest(self) -> Optional[Block]:
        """The newest block with majority consensus, if any."""
        return next(self.consensus_blocks(), None)

    def find(self, unresolved: UnresolvedBlock) -> Optional[Block]:
        """The consensus block matching ``unresolved``, if any."""
        return next((b for b in self.consensus_blocks() if unresolved.matches(b)), None)

    def blocks_per_minute(self) -> int:
        """Average block production rate over the consensus blocks; always above 0."""
        blocks = self.consensus_blocks()
        last = next(blocks, None)
        first = None
        for first in blocks:
            pass
        if first is None or last is None:
            return DEFAULT_BLOCKS_PER_MINUTE
        b = max(last.number - first.number, 1)
        t = max(last.timestamp - first.timestamp, 1)
        return int(b / t * 60.0)

    def should_insert(self, block: Block, indexer: Hashable) -> bool:
        """True if recording ``indexer`` for ``block`` would add information."""
        indexers: Optional[Set[Hashable]] = self._blocks.get(block)
        redundant = indexers is not None and indexer in indexers
        lowest = self._blocks.peekitem(0)[0].number if self._blocks else 0
        has_space = len(self._blocks) < MAX_LEN or block.number > lowest
        return not redundant and has_space

    def insert(self, block: Block, indexer: Hashable) -> None:
        """Record that ``indexer`` reported ``block``, evicting the oldest if full."""
        logger.debug("insert block %s from indexer %s", block, indexer)
        if len(self._blocks) >= MAX_LEN:
            self._evict()
        self._blocks.setdefault(block, set()).add(indexer)

    def _evict(self) -> None:
        if not self._blocks:
            return
        min_block, _ = self._blocks.popitem(0)
        while self._blocks and self._blocks.peekitem(0)[0].number <= min_block.number:
            self._blocks.popitem(0)

    def consensus_blocks(self) -> Iterator[Block]:
        """Blocks with simple majority consensus, newest first."""
        items = reversed(self._blocks.items())
        for _, group in itertools.groupby(items, key=lambda item: item[0].number):
            forks = list(group)
            most = max(len(indexers) for _, indexers in forks)
            candidates = [block for block, indexers in forks if len(indexers) == most]
            if len(candidates) == 1:
                yield candidates[0]