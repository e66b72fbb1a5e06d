import random

import pytest

from subgateway.blocks import Block, UnresolvedBlock
from subgateway.chain import DEFAULT_BLOCKS_PER_MINUTE, MAX_LEN, Chain


def _hash(n: int) -> bytes:
    return n.to_bytes(32, "big")


INDEXERS = [f"0x{'00' * 19}{n:02x}" for n in range(1, 4)]


@pytest.mark.parametrize("seed", [0, 1, 42, 1337])
def test_random_chain_invariants(seed):
    chain = Chain()
    rng = random.Random(seed)
    number = 0
    timestamp = 0
    for _ in range(MAX_LEN * 2):
        number += rng.randint(0, 2)
        timestamp += rng.randint(0, 1)
        block = Block(number=number, hash=_hash(timestamp), timestamp=timestamp)
        indexer = rng.choice(INDEXERS)
        if chain.should_insert(block, indexer):
            chain.insert(block, indexer)

    assert len(chain) <= MAX_LEN
    consensus = list(chain.consensus_blocks())
    assert len(consensus) <= len(chain)
    assert chain.blocks_per_minute() > 0
    numbers = [b.number for b in consensus]
    assert numbers == sorted(numbers, reverse=True)
    assert len(set(numbers)) == len(numbers)


def test_empty_chain():
    chain = Chain()
    assert chain.latest() is None
    assert chain.find(UnresolvedBlock.with_number(1)) is None
    assert chain.blocks_per_minute() == DEFAULT_BLOCKS_PER_MINUTE


def test_latest_and_find():
    chain = Chain()
    a = Block(number=123, hash=_hash(0), timestamp=10)
    b = Block(number=124, hash=_hash(1), timestamp=11)
    chain.insert(a, INDEXERS[0])
    chain.insert(b, INDEXERS[0])
    assert chain.latest() == b
    assert chain.find(UnresolvedBlock.with_number(123)) == a
    assert chain.find(UnresolvedBlock.with_hash(_hash(1))) == b
    assert chain.find(UnresolvedBlock.with_number(125)) is None


def test_fork_majority_wins():
    chain = Chain()
    winner = Block(number=10, hash=_hash(1), timestamp=1)
    loser = Block(number=10, hash=_hash(2), timestamp=1)
    chain.insert(winner, INDEXERS[0])
    chain.insert(winner, INDEXERS[1])
    chain.insert(loser, INDEXERS[2])
    assert list(chain.consensus_blocks()) == [winner]


def test_fork_tie_has_no_consensus():
    chain = Chain()
    older = Block(number=9, hash=_hash(9), timestamp=0)
    a = Block(number=10, hash=_hash(1), timestamp=1)
    b = Block(number=10, hash=_hash(2), timestamp=1)
    chain.insert(older, INDEXERS[0])
    chain.insert(a, INDEXERS[0])
    chain.insert(b, INDEXERS[1])
    assert list(chain.consensus_blocks()) == [older]
    assert chain.latest() == older


def test_should_insert_rejects_redundant():
    chain = Chain()
    block = Block(number=1, hash=_hash(1), timestamp=1)
    assert chain.should_insert(block, INDEXERS[0])
    chain.insert(block, INDEXERS[0])
    assert not chain.should_insert(block, INDEXERS[0])
    assert chain.should_insert(block, INDEXERS[1])


def test_blocks_per_minute():
    chain = Chain()
    chain.insert(Block(number=0, hash=_hash(0), timestamp=0), INDEXERS[0])
    chain.insert(Block(number=60, hash=_hash(60), timestamp=60), INDEXERS[0])
    assert chain.blocks_per_minute() == 60


def test_eviction_when_full():
    chain = Chain()
    for n in range(MAX_LEN):
        chain.insert(Block(number=n, hash=_hash(n), timestamp=n), INDEXERS[0])
    assert len(chain) == MAX_LEN
    old = Block(number=0, hash=_hash(10_000), timestamp=0)
    assert not chain.should_insert(old, INDEXERS[1])
    new = Block(number=MAX_LEN, hash=_hash(MAX_LEN), timestamp=MAX_LEN)
    assert chain.should_insert(new, INDEXERS[0])
    chain.insert(new, INDEXERS[0])
    assert len(chain) == MAX_LEN
    assert chain.find(UnresolvedBlock.with_number(0)) is None
    assert chain.latest() == new