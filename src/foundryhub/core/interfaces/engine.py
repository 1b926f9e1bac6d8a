"""Container engine interface."""

from abc import ABC, abstractmethod
from typing import Literal

from pydantic import BaseModel, Field


class ContainerSpec(BaseModel):
    """Everything needed to create a container for one instance."""

    name: str
    image: str
    host_port: int
    container_port: int
    data_mount: str
    mount_path: str
    user: str
    environment: dict[str, str] = Field(default_factory=dict)

    model_config = {"frozen": True}


class ContainerEngine(ABC):
    """Lifecycle commands against an external container engine.

    Implementations: DockerSdkEngine, DockerCliEngine

    Every method raises ExecutionFailure when the engine call fails or
    exceeds its timeout. No method retries.
    """

    @property
    @abstractmethod
    def backend_name(self) -> Literal["docker-sdk", "docker-cli"]:
        """Return the backend identifier."""
        ...

    @abstractmethod
    async def run(self, spec: ContainerSpec) -> str:
        """Create and start a new container.

        Returns:
            Opaque container reference assigned by the engine
        """
        ...

    @abstractmethod
    async def start(self, container_ref: str) -> None:
        """Start an existing container."""
        ...

    @abstractmethod
    async def stop(self, container_ref: str) -> None:
        """Stop a running container. The container is kept."""
        ...

    @abstractmethod
    async def remove(self, container_ref: str) -> None:
        """Forcibly remove a container. A container that is already gone is success."""
        ...

    @abstractmethod
    async def inspect_state(self, container_ref: str) -> str:
        """Return the engine's raw state string (e.g. 'running', 'exited')."""
        ...

    @abstractmethod
    async def ping(self) -> bool:
        """Check engine reachability. Never raises."""
        ...

    def close(self) -> None:
        """Release client resources. Default: nothing to release."""
        return None
