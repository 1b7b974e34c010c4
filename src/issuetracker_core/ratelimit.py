"""Per-client token bucket rate limiting.

All limiter state lives in one dictionary guarded by a single lock. Request
handlers and the periodic sweep both take the lock, and each holds it for
constant time.
"""
import asyncio
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

logger = logging.getLogger("issuetracker-core.ratelimit")


@dataclass
class TokenBucket:
    """Refills at `rate` tokens per second up to `burst`."""

    rate: float
    burst: int
    tokens: float = field(init=False)
    updated: Optional[float] = None

    def __post_init__(self):
        self.tokens = float(self.burst)

    def allow(self, now: float) -> bool:
        if self.updated is not None:
            self.tokens = min(float(self.burst), self.tokens + (now - self.updated) * self.rate)
        self.updated = now
        if self.tokens >= 1.0:
            self.tokens -= 1.0
            return True
        return False


@dataclass
class _Client:
    bucket: TokenBucket
    last_seen: float


class RateLimiter:
    """Registry of token buckets keyed by client identity."""

    def __init__(
        self,
        rate: float,
        burst: int,
        enabled: bool = True,
        idle_ttl: float = 180.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.rate = rate
        self.burst = burst
        self.enabled = enabled
        self.idle_ttl = idle_ttl
        self._clock = clock
        self._clients: dict[str, _Client] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._clients)

    def allow(self, key: str) -> bool:
        """Take one token from key's bucket, creating the bucket on first sight."""
        if not self.enabled:
            return True
        now = self._clock()
        with self._lock:
            client = self._clients.get(key)
            if client is None:
                client = _Client(bucket=TokenBucket(self.rate, self.burst), last_seen=now)
                self._clients[key] = client
            client.last_seen = now
            return client.bucket.allow(now)

    def sweep(self) -> int:
        """Evict clients unseen for longer than idle_ttl. Returns the number evicted."""
        now = self._clock()
        with self._lock:
            stale = [key for key, client in self._clients.items() if now - client.last_seen > self.idle_ttl]
            for key in stale:
                del self._clients[key]
        if stale:
            logger.debug(f"Evicted {len(stale)} idle rate limiter entries")
        return len(stale)

    async def run_sweeper(self, interval: float = 60.0) -> None:
        """Sweep forever every `interval` seconds; cancel the task to stop."""
        while True:
            await asyncio.sleep(interval)
            self.sweep()

    @classmethod
    def from_settings(cls, settings, clock: Optional[Callable[[], float]] = None) -> "RateLimiter":
        return cls(
            rate=settings.limiter_rps,
            burst=settings.limiter_burst,
            enabled=settings.limiter_enabled,
            idle_ttl=settings.limiter_idle_ttl,
            clock=clock or time.monotonic,
        )
