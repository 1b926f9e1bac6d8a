"""Instance orchestration services."""

from foundryhub.services.health import HealthProber
from foundryhub.services.instance_service import InstanceService
from foundryhub.services.listing import InstanceListing
from foundryhub.services.locks import InstanceLocks
from foundryhub.services.recovery import startup_recovery
from foundryhub.services.repository import InstanceRepository

__all__ = [
    "HealthProber",
    "InstanceListing",
    "InstanceLocks",
    "InstanceRepository",
    "InstanceService",
    "startup_recovery",
]
