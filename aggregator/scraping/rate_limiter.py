"""
Per-domain request throttling shared across adapter threads.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from urllib.parse import urlparse


class DomainRateLimiter:
    """
    Reserves request slots per domain so concurrent adapters hitting the same
    host stay under the configured rate while other hosts proceed freely.
    """

    def __init__(
        self,
        *,
        rate_limit_per_second: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._min_interval = 1.0 / max(0.1, rate_limit_per_second)
        self._next_slot_by_domain: dict[str, float] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self._sleep = sleep

    def wait(self, url: str) -> float:
        """
        Block until the domain of ``url`` may be requested. Returns seconds waited.
        """

        parsed = urlparse(url)
        domain = parsed.netloc.lower() or parsed.path.lower()
        if not domain:
            return 0.0

        with self._lock:
            now = self._clock()
            slot = max(now, self._next_slot_by_domain.get(domain, now))
            self._next_slot_by_domain[domain] = slot + self._min_interval

        # Sleep outside the lock: only this domain's later callers are delayed.
        delay = slot - now
        if delay > 0:
            self._sleep(delay)
        return max(0.0, delay)
