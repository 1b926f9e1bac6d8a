"""Shared test fixtures for foundryhub tests."""

import itertools
from collections.abc import AsyncIterator
from pathlib import Path
from unittest.mock import AsyncMock

import httpx
import pytest
from pydantic import SecretStr

from foundryhub.app.config import (
    AuthConfig,
    DatabaseConfig,
    RecoveryConfig,
    Settings,
    StorageConfig,
    get_settings,
)
from foundryhub.core.interfaces import ContainerEngine, DataDirectoryProvider
from foundryhub.infra import Database
from foundryhub.services import (
    HealthProber,
    InstanceListing,
    InstanceRepository,
    InstanceService,
)

ADMIN_TOKEN = "test-admin-token"
ENGINE_DATA_ROOT = "/host/foundry-data"


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Settings are cached per process; never leak them between tests."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings backed by a temporary SQLite database and data root."""
    return Settings(
        database=DatabaseConfig(url=f"sqlite+aiosqlite:///{tmp_path / 'foundryhub.db'}"),
        storage=StorageConfig(
            data_root=str(tmp_path / "data"),
            host_data_root=ENGINE_DATA_ROOT,
        ),
        auth=AuthConfig(admin_token=SecretStr(ADMIN_TOKEN)),
        recovery=RecoveryConfig(on_startup=False),
    )


@pytest.fixture
async def db(settings: Settings) -> AsyncIterator[Database]:
    database = Database(settings.database.url)
    await database.connect(create_tables=True)
    yield database
    await database.close()


@pytest.fixture
def repository(db: Database) -> InstanceRepository:
    return InstanceRepository(db)


@pytest.fixture
def mock_engine() -> AsyncMock:
    """Mock ContainerEngine: every call succeeds, containers report running.

    run() hands out container-1, container-2, ... in call order.
    """
    engine = AsyncMock(spec=ContainerEngine)
    engine.backend_name = "docker-cli"
    refs = itertools.count(1)
    engine.run = AsyncMock(side_effect=lambda spec: f"container-{next(refs)}")
    engine.start = AsyncMock()
    engine.stop = AsyncMock()
    engine.remove = AsyncMock()
    engine.inspect_state = AsyncMock(return_value="running")
    engine.ping = AsyncMock(return_value=True)
    return engine


@pytest.fixture
def mock_storage() -> AsyncMock:
    """Mock DataDirectoryProvider returning the engine-side path."""
    storage = AsyncMock(spec=DataDirectoryProvider)
    storage.provision = AsyncMock(
        side_effect=lambda instance_id: f"{ENGINE_DATA_ROOT}/{instance_id}"
    )
    storage.purge = AsyncMock()
    return storage


@pytest.fixture
def service(
    repository: InstanceRepository,
    mock_engine: AsyncMock,
    mock_storage: AsyncMock,
    settings: Settings,
) -> InstanceService:
    return InstanceService(
        repository=repository,
        engine=mock_engine,
        storage=mock_storage,
        runtime=settings.runtime,
        ports=settings.ports,
    )


@pytest.fixture
def probe_requests() -> list[httpx.Request]:
    """Requests seen by the probe transport."""
    return []


@pytest.fixture
def probe_client(probe_requests: list[httpx.Request]) -> httpx.AsyncClient:
    """HTTP client whose instances all answer 200."""

    def handler(request: httpx.Request) -> httpx.Response:
        probe_requests.append(request)
        return httpx.Response(200, text="ok")

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def prober(settings: Settings, probe_client: httpx.AsyncClient) -> HealthProber:
    return HealthProber(settings.health, client=probe_client)


@pytest.fixture
def listing(repository: InstanceRepository, prober: HealthProber) -> InstanceListing:
    return InstanceListing(repository, prober)
