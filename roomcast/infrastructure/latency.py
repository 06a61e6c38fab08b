"""Latency Simulator — artificial network round-trip before every command.

Invariants:
    - Delay is uniform in [min_ms, max_ms]; min_ms == max_ms == 0 never suspends on a timer
    - The delay is not cancellable by the caller once started (asyncio cancellation aside)
"""

import asyncio
import random


class LatencySimulator:
    def __init__(self, min_ms: int = 100, max_ms: int = 500, rng: random.Random | None = None):
        if min_ms < 0 or max_ms < min_ms:
            raise ValueError("latency bounds must satisfy 0 <= min_ms <= max_ms")
        self.min_ms = min_ms
        self.max_ms = max_ms
        self._rng = rng or random.Random()

    def next_delay_ms(self) -> float:
        return self._rng.uniform(self.min_ms, self.max_ms)

    async def __call__(self) -> float:
        delay_ms = self.next_delay_ms()
        if delay_ms > 0:
            await asyncio.sleep(delay_ms / 1000)
        return delay_ms
