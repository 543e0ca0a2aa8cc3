"""Fixed-window request rate limiting.

State lives behind :class:`RateLimitStore`; the in-memory store is
process-local and unlocked, so limits are per worker process. Expired
records are pruned at most once per window.
"""

from __future__ import annotations

import logging
import math
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass

from forge_server.core.errors import RateLimitExceededError

logger = logging.getLogger(__name__)


@dataclass
class RateLimitRecord:
    """Request count of one client within its current window."""

    count: int
    reset_time: float


class RateLimitStore(ABC):
    """Storage for per-client rate limit records."""

    @abstractmethod
    def get(self, key: str) -> RateLimitRecord | None:
        """Return the record for ``key``, or ``None`` if there is none."""

    @abstractmethod
    def increment(self, key: str) -> RateLimitRecord:
        """Add one request to an existing record and return it."""

    @abstractmethod
    def reset(self, key: str, reset_time: float) -> RateLimitRecord:
        """Start a new window for ``key`` with a count of one."""

    def prune(self, now: float) -> int:
        """Drop records whose window ended before ``now``.

        Stores that expire records on their own can keep this no-op.

        Returns:
            int: Number of records removed.
        """
        return 0


class InMemoryRateLimitStore(RateLimitStore):
    """Dictionary-backed store for a single process."""

    def __init__(self) -> None:
        self._records: dict[str, RateLimitRecord] = {}

    def get(self, key: str) -> RateLimitRecord | None:
        return self._records.get(key)

    def increment(self, key: str) -> RateLimitRecord:
        record = self._records[key]
        record.count += 1
        return record

    def reset(self, key: str, reset_time: float) -> RateLimitRecord:
        record = RateLimitRecord(count=1, reset_time=reset_time)
        self._records[key] = record
        return record

    def prune(self, now: float) -> int:
        expired = [
            key for key, record in self._records.items() if now > record.reset_time
        ]
        for key in expired:
            del self._records[key]
        return len(expired)

    def clear(self) -> None:
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)


class RateLimiter:
    """Fixed-window limiter keyed by client identifier.

    Args:
        store: Record storage.
        max_requests: Requests allowed per window.
        window_seconds: Window length in seconds.
        clock: Monotonic time source in seconds.
    """

    def __init__(
        self,
        store: RateLimitStore | None = None,
        max_requests: int = 100,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.store = store if store is not None else InMemoryRateLimitStore()
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock
        self._next_prune = float("-inf")

    def check(self, key: str) -> RateLimitRecord:
        """Count one request for ``key``.

        Args:
            key: Client identifier, usually the remote address.

        Returns:
            RateLimitRecord: The record after counting this request.

        Raises:
            RateLimitExceededError: If the client already used its window.
        """
        now = self.clock()
        if now >= self._next_prune:
            removed = self.store.prune(now)
            if removed:
                logger.debug("Pruned %d expired rate limit records", removed)
            self._next_prune = now + self.window_seconds

        record = self.store.get(key)

        if record is None or now > record.reset_time:
            return self.store.reset(key, now + self.window_seconds)

        if record.count >= self.max_requests:
            retry_after = math.ceil(record.reset_time - now)
            logger.warning(
                "Rate limit exceeded for %s (retry after %ds)", key, retry_after
            )
            raise RateLimitExceededError(retry_after)

        return self.store.increment(key)
