"""Docker CLI container engine.

Drives the docker binary through CommandExecutor. Arguments are always passed
as a vector; credentials travel through the child environment, not argv.
"""

import logging
from typing import Literal

from foundryhub.core.errors import ExecutionFailure
from foundryhub.core.interfaces.engine import ContainerEngine, ContainerSpec
from foundryhub.infra.executor import CommandExecutor

logger = logging.getLogger(__name__)

# docker rm -f output when the container does not exist
NO_SUCH_CONTAINER = "No such container"


class DockerCliEngine(ContainerEngine):
    """Container engine using the docker command line client."""

    def __init__(self, executor: CommandExecutor, binary: str = "docker") -> None:
        self._executor = executor
        self._binary = binary

    @property
    def backend_name(self) -> Literal["docker-cli"]:
        return "docker-cli"

    def build_run_argv(self, spec: ContainerSpec) -> list[str]:
        """Build the `docker run` argument vector for a container spec."""
        argv = [
            self._binary,
            "run",
            "-d",
            "--name",
            spec.name,
            "-p",
            f"{spec.host_port}:{spec.container_port}",
            "--user",
            spec.user,
        ]
        # `-e KEY` takes the value from the client's environment
        for key in sorted(spec.environment):
            argv += ["-e", key]
        argv += ["-v", f"{spec.data_mount}:{spec.mount_path}", spec.image]
        return argv

    async def run(self, spec: ContainerSpec) -> str:
        logger.info(
            "Creating container: %s (image=%s, port=%s, data=%s)",
            spec.name,
            spec.image,
            spec.host_port,
            spec.data_mount,
        )
        # Image pull progress goes to stderr; only the exit status counts
        container_ref = await self._executor.run(
            self.build_run_argv(spec), env=dict(spec.environment)
        )
        if not container_ref:
            raise ExecutionFailure(f"docker run returned no container id for {spec.name}")
        return container_ref.splitlines()[-1]

    async def start(self, container_ref: str) -> None:
        logger.info("Starting existing container: %s", container_ref)
        await self._executor.run([self._binary, "start", container_ref], stderr_fatal=True)

    async def stop(self, container_ref: str) -> None:
        logger.info("Stopping container: %s", container_ref)
        await self._executor.run([self._binary, "stop", container_ref], stderr_fatal=True)

    async def remove(self, container_ref: str) -> None:
        logger.info("Removing container: %s", container_ref)
        try:
            await self._executor.run([self._binary, "rm", "-f", container_ref])
        except ExecutionFailure as e:
            if NO_SUCH_CONTAINER in e.raw_output:
                logger.info("Container not found (no-op): %s", container_ref)
                return
            raise

    async def inspect_state(self, container_ref: str) -> str:
        return await self._executor.run(
            [self._binary, "inspect", "--format", "{{.State.Status}}", container_ref]
        )

    async def ping(self) -> bool:
        try:
            await self._executor.run(
                [self._binary, "version", "--format", "{{.Server.Version}}"]
            )
        except ExecutionFailure as e:
            logger.warning("Docker engine unreachable: %s", e.message)
            return False
        return True
