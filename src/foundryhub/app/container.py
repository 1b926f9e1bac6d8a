"""Service wiring.

Everything that holds a connection or a client is built here from Settings
and lives for the lifetime of the app (or one CLI command).
"""

import logging
from dataclasses import dataclass

from foundryhub.adapters.engine import DockerCliEngine, DockerSdkEngine
from foundryhub.adapters.storage import LocalDirDataProvider
from foundryhub.app.config import EngineConfig, Settings
from foundryhub.core.interfaces import ContainerEngine, DataDirectoryProvider
from foundryhub.infra import CommandExecutor, Database
from foundryhub.services import (
    HealthProber,
    InstanceListing,
    InstanceRepository,
    InstanceService,
)

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    settings: Settings
    db: Database
    engine: ContainerEngine
    storage: DataDirectoryProvider
    repository: InstanceRepository
    prober: HealthProber
    instances: InstanceService
    listing: InstanceListing

    async def close(self) -> None:
        await self.prober.close()
        self.engine.close()
        await self.db.close()


def build_engine(config: EngineConfig) -> ContainerEngine:
    """Create the configured container engine backend."""
    if config.backend == "docker-cli":
        return DockerCliEngine(
            CommandExecutor(timeout=config.command_timeout),
            binary=config.binary,
        )
    if config.backend == "docker-sdk":
        return DockerSdkEngine(
            docker_host=config.docker_host,
            timeout=config.command_timeout,
        )
    raise ValueError(f"Unsupported engine backend: {config.backend}")


def build_services(
    settings: Settings,
    db: Database,
    engine: ContainerEngine | None = None,
    storage: DataDirectoryProvider | None = None,
    prober: HealthProber | None = None,
) -> ServiceContainer:
    """Wire services around a connected database."""
    engine = engine or build_engine(settings.engine)
    storage = storage or LocalDirDataProvider(
        data_root=settings.storage.data_root,
        engine_data_root=settings.storage.engine_data_root,
        uid=settings.runtime.uid,
        gid=settings.runtime.gid,
    )
    prober = prober or HealthProber(settings.health)
    repository = InstanceRepository(db)

    logger.info(
        "Services ready (engine=%s, data_root=%s)",
        engine.backend_name,
        settings.storage.data_root,
    )
    return ServiceContainer(
        settings=settings,
        db=db,
        engine=engine,
        storage=storage,
        repository=repository,
        prober=prober,
        instances=InstanceService(
            repository=repository,
            engine=engine,
            storage=storage,
            runtime=settings.runtime,
            ports=settings.ports,
        ),
        listing=InstanceListing(
            repository=repository,
            prober=prober,
            max_concurrency=settings.health.max_concurrency,
        ),
    )
