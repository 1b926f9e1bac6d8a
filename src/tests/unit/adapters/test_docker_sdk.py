"""Tests for DockerSdkEngine."""

from collections.abc import Iterator
from unittest.mock import MagicMock, patch

import pytest
from docker.errors import APIError, NotFound

from foundryhub.adapters.engine import DockerSdkEngine
from foundryhub.core.errors import ExecutionFailure
from foundryhub.core.interfaces import ContainerSpec


@pytest.fixture
def mock_docker() -> Iterator[MagicMock]:
    with patch("foundryhub.adapters.engine.docker_sdk.docker") as mock:
        yield mock


@pytest.fixture
def client(mock_docker: MagicMock) -> MagicMock:
    client = MagicMock()
    mock_docker.from_env.return_value = client
    mock_docker.DockerClient.return_value = client
    return client


@pytest.fixture
def engine(client: MagicMock) -> DockerSdkEngine:
    return DockerSdkEngine(timeout=5.0)


@pytest.fixture
def spec() -> ContainerSpec:
    return ContainerSpec(
        name="foundry-alpha",
        image="felddy/foundryvtt:latest",
        host_port=30001,
        container_port=30000,
        data_mount="/host/data/01ABC",
        mount_path="/data",
        user="1000:1000",
        environment={"FOUNDRY_USERNAME": "gm"},
    )


class TestDockerSdkEngine:
    def test_backend_name(self, engine: DockerSdkEngine) -> None:
        assert engine.backend_name == "docker-sdk"

    async def test_client_is_lazy(self, mock_docker: MagicMock, client: MagicMock) -> None:
        DockerSdkEngine()
        mock_docker.from_env.assert_not_called()

    async def test_docker_host(self, mock_docker: MagicMock, client: MagicMock) -> None:
        engine = DockerSdkEngine(docker_host="tcp://docker-proxy:2375", timeout=10.0)
        client.containers.get.return_value.status = "running"

        await engine.inspect_state("abc")

        mock_docker.DockerClient.assert_called_once_with(
            base_url="tcp://docker-proxy:2375", timeout=10
        )
        mock_docker.from_env.assert_not_called()

    async def test_run(
        self, engine: DockerSdkEngine, client: MagicMock, spec: ContainerSpec
    ) -> None:
        client.containers.run.return_value.id = "abc123"

        ref = await engine.run(spec)

        assert ref == "abc123"
        client.containers.run.assert_called_once_with(
            "felddy/foundryvtt:latest",
            name="foundry-alpha",
            detach=True,
            ports={"30000/tcp": 30001},
            user="1000:1000",
            environment={"FOUNDRY_USERNAME": "gm"},
            volumes={"/host/data/01ABC": {"bind": "/data", "mode": "rw"}},
        )

    async def test_run_failure(
        self, engine: DockerSdkEngine, client: MagicMock, spec: ContainerSpec
    ) -> None:
        client.containers.run.side_effect = APIError("port is already allocated")

        with pytest.raises(ExecutionFailure) as exc_info:
            await engine.run(spec)

        assert "port is already allocated" in exc_info.value.raw_output

    async def test_start_and_stop(self, engine: DockerSdkEngine, client: MagicMock) -> None:
        container = client.containers.get.return_value

        await engine.start("abc123")
        await engine.stop("abc123")

        container.start.assert_called_once()
        container.stop.assert_called_once()

    async def test_stop_missing_container_fails(
        self, engine: DockerSdkEngine, client: MagicMock
    ) -> None:
        client.containers.get.side_effect = NotFound("No such container: abc123")
        with pytest.raises(ExecutionFailure):
            await engine.stop("abc123")

    async def test_remove(self, engine: DockerSdkEngine, client: MagicMock) -> None:
        await engine.remove("abc123")
        client.containers.get.return_value.remove.assert_called_once_with(force=True)

    async def test_remove_missing_container_is_success(
        self, engine: DockerSdkEngine, client: MagicMock
    ) -> None:
        client.containers.get.side_effect = NotFound("No such container: abc123")
        await engine.remove("abc123")

    async def test_inspect_state(self, engine: DockerSdkEngine, client: MagicMock) -> None:
        client.containers.get.return_value.status = "exited"
        assert await engine.inspect_state("abc123") == "exited"

    async def test_ping(self, engine: DockerSdkEngine, client: MagicMock) -> None:
        client.ping.return_value = True
        assert await engine.ping() is True

    async def test_ping_unreachable(self, engine: DockerSdkEngine, client: MagicMock) -> None:
        client.ping.side_effect = APIError("connection refused")
        assert await engine.ping() is False

    async def test_close(self, engine: DockerSdkEngine, client: MagicMock) -> None:
        client.ping.return_value = True
        await engine.ping()

        engine.close()

        client.close.assert_called_once()
