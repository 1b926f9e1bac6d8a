"""Foundry instance model."""

from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, String, UniqueConstraint
from sqlmodel import Field, SQLModel
from ulid import ULID

from foundryhub.core.domain.instance import InstanceStatus

# Constraint names are matched when translating integrity errors
NAME_CONSTRAINT = "uq_foundry_instances_name"
PORT_CONSTRAINT = "uq_foundry_instances_port"
CONTAINER_REF_CONSTRAINT = "uq_foundry_instances_container_ref"


def generate_ulid() -> str:
    """Generate a new ULID string."""
    return str(ULID())


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(UTC)


class FoundryInstance(SQLModel, table=True):
    """A managed, containerized Foundry VTT deployment.

    name and port are immutable after creation. container_ref is set once the
    first container has been created and survives stop.
    """

    __tablename__ = "foundry_instances"

    id: str = Field(default_factory=generate_ulid, primary_key=True)
    name: str = Field(max_length=255)
    port: int
    status: InstanceStatus = Field(default=InstanceStatus.CREATING, sa_type=String)
    container_ref: str | None = Field(default=None, max_length=255)
    owner_id: str | None = Field(default=None, index=True)

    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )

    __table_args__ = (
        UniqueConstraint("name", name=NAME_CONSTRAINT),
        UniqueConstraint("port", name=PORT_CONSTRAINT),
        UniqueConstraint("container_ref", name=CONTAINER_REF_CONSTRAINT),
    )
