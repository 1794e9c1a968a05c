"""In-memory token-bucket rate limiting per tool (per-process, best-effort)."""

from __future__ import annotations

import asyncio
import time
from typing import Dict, Optional


class TokenBucket:
    def __init__(self, rate: float, capacity: float) -> None:
        self.rate = rate
        self.capacity = capacity
        self.tokens = capacity
        self.timestamp = time.monotonic()
        self._lock = asyncio.Lock()

    async def consume(self, amount: float = 1.0) -> bool:
        async with self._lock:
            now = time.monotonic()
            elapsed = now - self.timestamp
            self.timestamp = now
            self.tokens = min(self.capacity, self.tokens + elapsed * self.rate)
            if self.tokens >= amount:
                self.tokens -= amount
                return True
            return False


class PerKeyRateLimiter:
    """
    One token bucket per key (tool name).

    Keys listed in ``per_tool`` get their own rate; their burst is that rate,
    floored at one request.
    """

    def __init__(
        self,
        rate_per_sec: float,
        burst: float | None = None,
        *,
        per_tool: Optional[Dict[str, float]] = None,
    ) -> None:
        self.rate = rate_per_sec
        self.burst = burst if burst is not None else max(rate_per_sec, 1.0)
        self.per_tool = dict(per_tool or {})
        self._limiters: Dict[str, TokenBucket] = {}
        self._lock = asyncio.Lock()

    def _new_bucket(self, key: str) -> TokenBucket:
        override = self.per_tool.get(key)
        if override is not None:
            return TokenBucket(override, max(override, 1.0))
        return TokenBucket(self.rate, self.burst)

    async def allow(self, key: str) -> bool:
        async with self._lock:
            bucket = self._limiters.get(key)
            if bucket is None:
                bucket = self._new_bucket(key)
                self._limiters[key] = bucket
        return await bucket.consume()
