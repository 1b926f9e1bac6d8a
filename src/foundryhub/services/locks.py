"""Per-instance locks for lifecycle operations."""

import asyncio


class InstanceLocks:
    """Keyed registry of asyncio locks.

    Prevents TOCTOU races by ensuring only one lifecycle operation per
    instance at a time. Operations on different instances never contend.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}

    def get(self, instance_id: str) -> asyncio.Lock:
        """Get or create the lock for an instance."""
        if instance_id not in self._locks:
            self._locks[instance_id] = asyncio.Lock()
        return self._locks[instance_id]

    def discard(self, instance_id: str) -> None:
        """Forget the lock of a deleted instance, unless someone is waiting on it."""
        lock = self._locks.get(instance_id)
        if lock is not None and not lock.locked():
            del self._locks[instance_id]

    def __len__(self) -> int:
        return len(self._locks)
