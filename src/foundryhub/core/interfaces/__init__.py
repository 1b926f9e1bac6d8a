"""Interfaces for external collaborators."""

from foundryhub.core.interfaces.engine import ContainerEngine, ContainerSpec
from foundryhub.core.interfaces.storage import DataDirectoryProvider

__all__ = [
    "ContainerEngine",
    "ContainerSpec",
    "DataDirectoryProvider",
]
