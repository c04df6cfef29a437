"""Bounded, first-come first-served admission of browser sessions."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from contextlib import asynccontextmanager
from typing import AsyncIterator, Deque

LOGGER = logging.getLogger(__name__)


class AdmissionController:
    """Counting gate limiting how many pages may be open at once.

    A released permit is handed straight to the oldest waiter, so callers
    arriving later can never overtake the queue.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._available = capacity
        self._waiters: Deque[asyncio.Future[None]] = deque()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def available(self) -> int:
        return self._available

    @property
    def in_use(self) -> int:
        return self._capacity - self._available

    @property
    def waiting(self) -> int:
        return sum(1 for waiter in self._waiters if not waiter.done())

    async def acquire(self) -> None:
        if self._available > 0 and not self._waiters:
            self._available -= 1
            return
        waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        LOGGER.debug("Waiting for a page slot (%d queued)", len(self._waiters))
        try:
            await waiter
        except asyncio.CancelledError:
            if waiter.done() and not waiter.cancelled():
                # The permit arrived together with the cancellation; pass it on.
                self.release()
            elif waiter in self._waiters:
                self._waiters.remove(waiter)
            raise

    def release(self) -> None:
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_result(None)
                return
        if self._available >= self._capacity:
            raise RuntimeError("release() called without a matching acquire()")
        self._available += 1

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[None]:
        """Hold one permit for the duration of the ``async with`` block."""

        await self.acquire()
        try:
            yield
        finally:
            self.release()
