"""Wall-clock helpers."""

import time


def unix_timestamp() -> int:
    """Return milliseconds since the Unix epoch."""
    return time.time_ns() // 1_000_000