"""Domain enums for foundryhub."""

from foundryhub.core.domain.instance import HealthStatus, InstanceStatus

__all__ = ["HealthStatus", "InstanceStatus"]
