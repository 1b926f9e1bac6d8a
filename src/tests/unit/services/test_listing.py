"""Tests for InstanceListing."""

import asyncio
import random
from unittest.mock import AsyncMock

import httpx

from foundryhub.core.domain import HealthStatus, InstanceStatus
from foundryhub.core.models import FoundryInstance
from foundryhub.services import HealthProber, InstanceListing, InstanceRepository


async def seed(repository: InstanceRepository, count: int) -> list[FoundryInstance]:
    instances = []
    for i in range(count):
        instance = await repository.create(f"inst-{i}", 30000 + i)
        instances.append(
            await repository.update(instance.id, status=InstanceStatus.RUNNING)
        )
    return instances


class TestInstanceListing:
    async def test_empty(self, listing: InstanceListing) -> None:
        assert await listing.list_with_health() == []

    async def test_pairs_under_random_latency(self, repository: InstanceRepository) -> None:
        await seed(repository, 20)
        rng = random.Random(7)

        async def probe(instance: FoundryInstance) -> HealthStatus:
            await asyncio.sleep(rng.uniform(0, 0.02))
            return HealthStatus.HEALTHY if instance.port % 2 == 0 else HealthStatus.UNHEALTHY

        prober = AsyncMock(spec=HealthProber)
        prober.probe = AsyncMock(side_effect=probe)
        listing = InstanceListing(repository, prober, max_concurrency=4)

        pairs = await listing.list_with_health()

        assert len(pairs) == 20
        for instance, health in pairs:
            expected = HealthStatus.HEALTHY if instance.port % 2 == 0 else HealthStatus.UNHEALTHY
            assert health == expected
        assert [i.name for i, _ in pairs] == [f"inst-{i}" for i in range(20)]

    async def test_concurrency_is_bounded(self, repository: InstanceRepository) -> None:
        await seed(repository, 10)
        in_flight = 0
        peak = 0

        async def probe(instance: FoundryInstance) -> HealthStatus:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return HealthStatus.HEALTHY

        prober = AsyncMock(spec=HealthProber)
        prober.probe = AsyncMock(side_effect=probe)

        await InstanceListing(repository, prober, max_concurrency=3).list_with_health()

        assert 1 < peak <= 3

    async def test_stopped_instances_are_not_probed(
        self,
        repository: InstanceRepository,
        listing: InstanceListing,
        probe_requests: list[httpx.Request],
    ) -> None:
        running, stopped = await seed(repository, 2)
        await repository.update(stopped.id, status=InstanceStatus.STOPPED)

        pairs = dict((i.id, h) for i, h in await listing.list_with_health())

        assert pairs == {running.id: HealthStatus.HEALTHY, stopped.id: HealthStatus.UNKNOWN}
        assert len(probe_requests) == 1
