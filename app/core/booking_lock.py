"""Per-provider serialization of booking writes."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID


class ProviderBookingLock:
    """
    In-process lock registry keyed by provider id.

    The scheduling engine holds a provider's lock from its capacity and
    conflict reads through the insert and commit, so two bookings for the
    same provider never interleave inside one process. Bookings for different
    providers do not contend. Across processes the engine additionally
    row-locks the provider inside the booking transaction.
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._locks: dict[UUID, asyncio.Lock] = {}
        self._waiters: dict[UUID, int] = {}

    @asynccontextmanager
    async def acquire(self, provider_id: UUID) -> AsyncIterator[None]:
        """Hold the lock for ``provider_id`` for the duration of the block."""
        lock = self._locks.setdefault(provider_id, asyncio.Lock())
        self._waiters[provider_id] = self._waiters.get(provider_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[provider_id] -= 1
            if self._waiters[provider_id] == 0:
                # Nobody else holds or waits on it
                del self._waiters[provider_id]
                del self._locks[provider_id]

    def active_providers(self) -> int:
        """Number of providers with a held or awaited lock."""
        return len(self._locks)
