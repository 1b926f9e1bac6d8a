"""Instance health probing.

Best-effort HTTP liveness check against an instance's published port.
"""

import logging

import httpx

from foundryhub.app.config import HealthConfig
from foundryhub.core.domain import HealthStatus, InstanceStatus
from foundryhub.core.logging_schema import LogEvent
from foundryhub.core.models import FoundryInstance

logger = logging.getLogger(__name__)


class HealthProber:
    """Probes running instances over HTTP. Never raises."""

    def __init__(
        self,
        config: HealthConfig,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._client = client or httpx.AsyncClient(timeout=config.timeout)
        self._owns_client = client is None

    def probe_url(self, port: int) -> str:
        return f"http://{self._config.probe_host}:{port}/"

    async def probe(self, instance: FoundryInstance) -> HealthStatus:
        if instance.status != InstanceStatus.RUNNING:
            return HealthStatus.UNKNOWN

        url = self.probe_url(instance.port)
        try:
            response = await self._client.get(url, timeout=self._config.timeout)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.debug(
                "Health probe failed for %s (%s): %s",
                instance.id,
                url,
                e,
                extra={"event": LogEvent.PROBE_FAILED, "instance_id": instance.id},
            )
            return HealthStatus.UNHEALTHY

        if response.status_code < self._config.status_ceiling:
            return HealthStatus.HEALTHY

        logger.debug(
            "Health probe for %s returned %s",
            instance.id,
            response.status_code,
            extra={"event": LogEvent.PROBE_FAILED, "instance_id": instance.id},
        )
        return HealthStatus.UNHEALTHY

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
