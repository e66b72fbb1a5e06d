"""Shared per-chain state, fed by indexer block reports."""

from __future__ import annotations

import threading
from collections import deque
from contextlib import contextmanager
from typing import Deque, Dict, Hashable, Iterator, Mapping, Optional, Tuple

from subgateway.blocks import Block
from subgateway.chain import Chain


class ChainReader:
    """A handle to one chain: queue block reports and read the chain."""

    def __init__(self) -> None:
        self._chain = Chain()
        self._lock = threading.RLock()
        self._pending: Deque[Tuple[Block, Hashable]] = deque()

    @contextmanager
    def read(self) -> Iterator[Chain]:
        """Apply queued reports, then hold the chain for reading."""
        self.flush()
        with self._lock:
            yield self._chain

    def notify(self, block: Block, indexer: Hashable) -> None:
        """Queue a report that ``indexer`` has ``block``."""
        self._pending.append((block, indexer))

    def flush(self) -> int:
        """Apply queued reports to the chain; return how many were inserted."""
        messages = []
        while True:
            try:
                messages.append(self._pending.popleft())
            except IndexError:
                break
        with self._lock:
            wanted = [m for m in messages if self._chain.should_insert(*m)]
            inserted = 0
            for block, indexer in wanted:
                if self._chain.should_insert(block, indexer):
                    self._chain.insert(block, indexer)
                    inserted += 1
        return inserted


class Chains:
    """Chains by name, with aliases resolved to canonical names."""

    def __init__(self, aliases: Optional[Mapping[str, str]] = None) -> None:
        self._aliases: Dict[str, str] = dict(aliases or {})
        self._data: Dict[str, ChainReader] = {}
        self._lock = threading.Lock()

    def chain(self, name: str) -> ChainReader:
        """The reader for chain ``name`` (or its alias target), created on first use."""
        name = self._aliases.get(name, name)
        with self._lock:
            reader = self._data.get(name)
            if reader is None:
                reader = self._data[name] = ChainReader()
            return reader