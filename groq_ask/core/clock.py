from __future__ import annotations

import time


def monotonic_ms() -> int:
    """Monotonic clock in milliseconds.

    Use this for latency measurements.
    """

    return int(time.monotonic() * 1000)


def elapsed_ms(start_ms: int) -> int:
    return monotonic_ms() - start_ms
