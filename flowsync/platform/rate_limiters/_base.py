"""Sliding-window request limiter shared by all clients of one remote store."""

import asyncio
import time
from collections import deque
from typing import Deque, Optional

from flowsync.core.logging import logger


class BaseRateLimiter:
    """Process-wide limiter, one instance per subclass.

    A slot is granted when fewer than ``MAX_REQUESTS_PER_WINDOW`` grants happened
    in the last ``RATE_LIMIT_WINDOW_SECONDS``. Callers wait for a free slot for at
    most ``MAX_WAIT_FOR_SLOT_SECONDS``.
    """

    MAX_REQUESTS_PER_WINDOW: int = NotImplemented
    RATE_LIMIT_WINDOW_SECONDS: float = 1.0
    MAX_WAIT_FOR_SLOT_SECONDS: float = 120.0
    POLL_INTERVAL_SECONDS: float = 0.1

    _instance: Optional["BaseRateLimiter"] = None

    def __new__(cls):
        """Return the process singleton for this limiter type."""
        instance = cls._instance
        if instance is None:
            instance = super().__new__(cls)
            instance._ready = False
            cls._instance = instance
        return instance

    def __init__(self):
        if self._ready:
            return
        self._grants: Deque[float] = deque()
        self._lock = asyncio.Lock()
        self._ready = True
        logger.debug(
            f"{type(self).__name__}: {self.MAX_REQUESTS_PER_WINDOW} requests "
            f"per {self.RATE_LIMIT_WINDOW_SECONDS:g}s"
        )

    def _expire(self, now: float) -> None:
        horizon = now - self.RATE_LIMIT_WINDOW_SECONDS
        while self._grants and self._grants[0] <= horizon:
            self._grants.popleft()

    def _try_grant(self, now: float) -> Optional[float]:
        """Record a grant and return None, or return how long until the oldest one expires."""
        self._expire(now)
        if len(self._grants) < self.MAX_REQUESTS_PER_WINDOW:
            self._grants.append(now)
            return None
        return self._grants[0] + self.RATE_LIMIT_WINDOW_SECONDS - now

    async def acquire(self) -> None:
        """Block until a slot is free.

        Raises:
            TimeoutError: when no slot frees up within MAX_WAIT_FOR_SLOT_SECONDS
        """
        deadline = time.monotonic() + self.MAX_WAIT_FOR_SLOT_SECONDS
        while True:
            async with self._lock:
                now = time.monotonic()
                until_free = self._try_grant(now)
            if until_free is None:
                return

            remaining = deadline - now
            if remaining <= 0:
                raise TimeoutError(
                    f"No {type(self).__name__} slot freed up within "
                    f"{self.MAX_WAIT_FOR_SLOT_SECONDS}s"
                )
            await asyncio.sleep(max(0.0, min(until_free, self.POLL_INTERVAL_SECONDS, remaining)))

    def reset(self) -> None:
        """Forget all recorded requests."""
        self._grants.clear()
