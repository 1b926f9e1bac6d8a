"""Container engine adapters."""

from foundryhub.adapters.engine.docker_cli import DockerCliEngine
from foundryhub.adapters.engine.docker_sdk import DockerSdkEngine

__all__ = ["DockerCliEngine", "DockerSdkEngine"]
