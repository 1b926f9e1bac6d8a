"""Docker SDK container engine.

Manages instance containers using the Docker Engine API (docker-py).
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Literal, TypeVar

import docker
from docker.errors import DockerException, NotFound

from foundryhub.core.errors import ExecutionFailure
from foundryhub.core.interfaces.engine import ContainerEngine, ContainerSpec

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TIMEOUT = 60.0


class DockerSdkEngine(ContainerEngine):
    """Container engine using the Docker Engine API."""

    def __init__(
        self,
        docker_host: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize with optional Docker host.

        Args:
            docker_host: Docker host URL (e.g., 'tcp://docker-proxy:2375').
                        If None, uses DOCKER_HOST env var or default socket.
            timeout: Wall-clock limit for each engine call (seconds).
        """
        self._docker_host = docker_host
        self._timeout = timeout
        self._client: docker.DockerClient | None = None

    @property
    def backend_name(self) -> Literal["docker-sdk"]:
        return "docker-sdk"

    def _get_client(self) -> docker.DockerClient:
        """Create the client on first use (runs in a worker thread)."""
        if self._client is None:
            if self._docker_host:
                self._client = docker.DockerClient(
                    base_url=self._docker_host, timeout=int(self._timeout)
                )
            else:
                self._client = docker.from_env(timeout=int(self._timeout))
        return self._client

    async def _call(self, action: str, fn: Callable[..., T], *args: object) -> T:
        """Run a blocking docker-py call in a thread with a timeout."""
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(fn, *args), timeout=self._timeout
            )
        except TimeoutError as e:
            raise ExecutionFailure(f"{action} timed out after {self._timeout}s") from e
        except (DockerException, OSError) as e:
            raise ExecutionFailure(f"Failed to {action}", str(e)) from e

    def _run_sync(self, spec: ContainerSpec) -> str:
        logger.info(
            "Creating container: %s (image=%s, port=%s, data=%s)",
            spec.name,
            spec.image,
            spec.host_port,
            spec.data_mount,
        )
        container = self._get_client().containers.run(
            spec.image,
            name=spec.name,
            detach=True,
            ports={f"{spec.container_port}/tcp": spec.host_port},
            user=spec.user,
            environment=dict(spec.environment),
            volumes={spec.data_mount: {"bind": spec.mount_path, "mode": "rw"}},
        )
        logger.info("Container created and started: %s (%s)", spec.name, container.id)
        return container.id

    async def run(self, spec: ContainerSpec) -> str:
        return await self._call(f"create container {spec.name}", self._run_sync, spec)

    def _start_sync(self, container_ref: str) -> None:
        logger.info("Starting existing container: %s", container_ref)
        self._get_client().containers.get(container_ref).start()

    async def start(self, container_ref: str) -> None:
        await self._call(f"start container {container_ref}", self._start_sync, container_ref)

    def _stop_sync(self, container_ref: str) -> None:
        logger.info("Stopping container: %s", container_ref)
        self._get_client().containers.get(container_ref).stop()

    async def stop(self, container_ref: str) -> None:
        await self._call(f"stop container {container_ref}", self._stop_sync, container_ref)

    def _remove_sync(self, container_ref: str) -> None:
        try:
            container = self._get_client().containers.get(container_ref)
        except NotFound:
            logger.info("Container not found (no-op): %s", container_ref)
            return

        logger.info("Removing container: %s", container_ref)
        try:
            container.remove(force=True)
        except NotFound:
            logger.info("Container already removed: %s", container_ref)

    async def remove(self, container_ref: str) -> None:
        await self._call(
            f"remove container {container_ref}", self._remove_sync, container_ref
        )

    def _inspect_state_sync(self, container_ref: str) -> str:
        return self._get_client().containers.get(container_ref).status

    async def inspect_state(self, container_ref: str) -> str:
        return await self._call(
            f"inspect container {container_ref}", self._inspect_state_sync, container_ref
        )

    def _ping_sync(self) -> bool:
        return bool(self._get_client().ping())

    async def ping(self) -> bool:
        try:
            return await self._call("ping docker engine", self._ping_sync)
        except ExecutionFailure as e:
            logger.warning("Docker engine unreachable: %s", e.message)
            return False

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
