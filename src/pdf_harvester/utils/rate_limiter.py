"""Concurrency limiting for document downloads."""

import asyncio
from time import monotonic


class ConcurrencyLimiter:
    """Optional bound on in-flight acquisition chains with staggered starts.

    With ``max_concurrent`` of 0 every chain runs at once; otherwise at most
    ``max_concurrent`` hold a slot. New chains start at least
    ``delay_seconds`` apart.
    """

    _MAX_DELAY = 5.0  # Upper bound for adaptive back-off

    def __init__(self, max_concurrent: int = 0, delay_seconds: float = 0.0):
        self.delay_seconds = delay_seconds
        self._semaphore = asyncio.Semaphore(max_concurrent) if max_concurrent > 0 else None
        self._last_start: float = 0.0
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        """Acquire a slot, then enforce the minimum delay between starts."""
        if self._semaphore is not None:
            await self._semaphore.acquire()
        if self.delay_seconds <= 0:
            return
        async with self._lock:
            wait_time = self.delay_seconds - (monotonic() - self._last_start)
            if wait_time > 0:
                await asyncio.sleep(wait_time)
            self._last_start = monotonic()

    def release(self) -> None:
        if self._semaphore is not None:
            self._semaphore.release()

    async def __aenter__(self):
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.release()

    def back_off(self) -> None:
        """Double the delay between starts (capped at _MAX_DELAY).

        Called when a download is rate limited so later chains slow down.
        """
        self.delay_seconds = min(max(self.delay_seconds, 0.1) * 2, self._MAX_DELAY)
