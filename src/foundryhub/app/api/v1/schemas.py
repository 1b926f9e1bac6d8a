"""Instance schemas for the API."""

from datetime import datetime

from pydantic import BaseModel, Field

from foundryhub.core.domain import HealthStatus, InstanceStatus
from foundryhub.core.models import FoundryInstance


# Request schemas
class InstanceCreate(BaseModel):
    """Request schema for creating an instance."""

    # Becomes part of the container name
    name: str = Field(
        ..., min_length=1, max_length=255, pattern=r"^[a-zA-Z0-9][a-zA-Z0-9_.-]*$"
    )
    port: int
    owner_id: str | None = Field(default=None, max_length=255)


# Response schemas
class InstanceResponse(BaseModel):
    """Response schema for instance."""

    id: str
    name: str
    port: int
    status: InstanceStatus
    container_ref: str | None
    owner_id: str | None
    created_at: datetime
    updated_at: datetime
    health: HealthStatus | None = None

    @classmethod
    def from_instance(
        cls, instance: FoundryInstance, health: HealthStatus | None = None
    ) -> "InstanceResponse":
        return cls(
            id=instance.id,
            name=instance.name,
            port=instance.port,
            status=InstanceStatus(instance.status),
            container_ref=instance.container_ref,
            owner_id=instance.owner_id,
            created_at=instance.created_at,
            updated_at=instance.updated_at,
            health=health,
        )


class InstanceListResponse(BaseModel):
    """Response schema for instance list."""

    items: list[InstanceResponse]


class InstanceStatusResponse(BaseModel):
    """Response schema for reconciled status."""

    id: str
    status: InstanceStatus


class SystemHealthResponse(BaseModel):
    """Response schema for /health."""

    status: str
    database: str
    engine: str
