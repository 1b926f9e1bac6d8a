"""Per-instance data directory interface."""

from abc import ABC, abstractmethod


class DataDirectoryProvider(ABC):
    """Prepares the persistent data directory bound into an instance container."""

    @abstractmethod
    async def provision(self, instance_id: str) -> str:
        """Create the instance directory and set its ownership. Idempotent.

        Returns:
            Path of the directory as seen by the container engine (bind source)
        """
        ...

    @abstractmethod
    async def purge(self, instance_id: str) -> None:
        """Delete the instance directory and everything in it."""
        ...
