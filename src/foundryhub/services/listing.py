"""Instance listing with health.

Fans health probes out across every instance and pairs each instance with
its own result.
"""

import asyncio

from foundryhub.core.domain import HealthStatus
from foundryhub.core.models import FoundryInstance
from foundryhub.services.health import HealthProber
from foundryhub.services.repository import InstanceRepository


class InstanceListing:
    def __init__(
        self,
        repository: InstanceRepository,
        prober: HealthProber,
        max_concurrency: int = 16,
    ) -> None:
        self._repository = repository
        self._prober = prober
        self._max_concurrency = max_concurrency

    async def list_with_health(self) -> list[tuple[FoundryInstance, HealthStatus]]:
        instances = await self._repository.list()
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def bounded_probe(instance: FoundryInstance) -> HealthStatus:
            async with semaphore:
                return await self._prober.probe(instance)

        results = await asyncio.gather(*(bounded_probe(i) for i in instances))
        return list(zip(instances, results, strict=True))
