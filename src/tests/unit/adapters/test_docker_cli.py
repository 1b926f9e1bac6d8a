"""Tests for DockerCliEngine."""

from unittest.mock import AsyncMock

import pytest

from foundryhub.adapters.engine import DockerCliEngine
from foundryhub.core.errors import ExecutionFailure
from foundryhub.core.interfaces import ContainerSpec
from foundryhub.infra import CommandExecutor


@pytest.fixture
def executor() -> AsyncMock:
    executor = AsyncMock(spec=CommandExecutor)
    executor.run = AsyncMock(return_value="")
    return executor


@pytest.fixture
def engine(executor: AsyncMock) -> DockerCliEngine:
    return DockerCliEngine(executor)


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
        environment={"FOUNDRY_USERNAME": "gm", "FOUNDRY_PASSWORD": "hunter2"},
    )


class TestBuildRunArgv:
    def test_argv(self, engine: DockerCliEngine, spec: ContainerSpec) -> None:
        assert engine.build_run_argv(spec) == [
            "docker",
            "run",
            "-d",
            "--name",
            "foundry-alpha",
            "-p",
            "30001:30000",
            "--user",
            "1000:1000",
            "-e",
            "FOUNDRY_PASSWORD",
            "-e",
            "FOUNDRY_USERNAME",
            "-v",
            "/host/data/01ABC:/data",
            "felddy/foundryvtt:latest",
        ]

    def test_secrets_not_in_argv(self, engine: DockerCliEngine, spec: ContainerSpec) -> None:
        assert "hunter2" not in " ".join(engine.build_run_argv(spec))

    def test_custom_binary(self, executor: AsyncMock, spec: ContainerSpec) -> None:
        engine = DockerCliEngine(executor, binary="/usr/bin/podman")
        assert engine.build_run_argv(spec)[0] == "/usr/bin/podman"


class TestDockerCliEngine:
    def test_backend_name(self, engine: DockerCliEngine) -> None:
        assert engine.backend_name == "docker-cli"

    async def test_run_returns_container_id(
        self, engine: DockerCliEngine, executor: AsyncMock, spec: ContainerSpec
    ) -> None:
        executor.run.return_value = "Unable to find image locally\nabc123def"

        ref = await engine.run(spec)

        assert ref == "abc123def"
        executor.run.assert_awaited_once_with(
            engine.build_run_argv(spec), env=dict(spec.environment)
        )

    async def test_run_without_output(
        self, engine: DockerCliEngine, executor: AsyncMock, spec: ContainerSpec
    ) -> None:
        executor.run.return_value = ""
        with pytest.raises(ExecutionFailure):
            await engine.run(spec)

    async def test_start_stderr_is_fatal(
        self, engine: DockerCliEngine, executor: AsyncMock
    ) -> None:
        await engine.start("abc123")
        executor.run.assert_awaited_once_with(["docker", "start", "abc123"], stderr_fatal=True)

    async def test_stop_stderr_is_fatal(
        self, engine: DockerCliEngine, executor: AsyncMock
    ) -> None:
        await engine.stop("abc123")
        executor.run.assert_awaited_once_with(["docker", "stop", "abc123"], stderr_fatal=True)

    async def test_stop_failure_propagates(
        self, engine: DockerCliEngine, executor: AsyncMock
    ) -> None:
        executor.run.side_effect = ExecutionFailure("docker exited with status 1", "daemon down")
        with pytest.raises(ExecutionFailure):
            await engine.stop("abc123")

    async def test_remove_forces(self, engine: DockerCliEngine, executor: AsyncMock) -> None:
        await engine.remove("abc123")
        executor.run.assert_awaited_once_with(["docker", "rm", "-f", "abc123"])

    async def test_remove_missing_container_is_success(
        self, engine: DockerCliEngine, executor: AsyncMock
    ) -> None:
        executor.run.side_effect = ExecutionFailure(
            "docker exited with status 1",
            "Error response from daemon: No such container: abc123",
        )
        await engine.remove("abc123")

    async def test_remove_other_failure_raises(
        self, engine: DockerCliEngine, executor: AsyncMock
    ) -> None:
        executor.run.side_effect = ExecutionFailure("docker exited with status 1", "permission denied")
        with pytest.raises(ExecutionFailure):
            await engine.remove("abc123")

    async def test_inspect_state(self, engine: DockerCliEngine, executor: AsyncMock) -> None:
        executor.run.return_value = "exited"

        assert await engine.inspect_state("abc123") == "exited"
        executor.run.assert_awaited_once_with(
            ["docker", "inspect", "--format", "{{.State.Status}}", "abc123"]
        )

    async def test_ping(self, engine: DockerCliEngine, executor: AsyncMock) -> None:
        executor.run.return_value = "27.1.1"
        assert await engine.ping() is True

    async def test_ping_unreachable(self, engine: DockerCliEngine, executor: AsyncMock) -> None:
        executor.run.side_effect = ExecutionFailure("Failed to launch docker")
        assert await engine.ping() is False
