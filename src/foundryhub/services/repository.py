"""Instance repository.

Durable CRUD over FoundryInstance records. Every call opens its own session,
so reads always observe committed writes.
"""

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from foundryhub.core.errors import (
    DuplicateNameError,
    DuplicatePortError,
    InstanceNotFoundError,
)
from foundryhub.core.models import FoundryInstance, utc_now
from foundryhub.core.models.instance import NAME_CONSTRAINT, PORT_CONSTRAINT
from foundryhub.infra.database import Database

logger = logging.getLogger(__name__)

# Fields callers may change through update()
MUTABLE_FIELDS = frozenset({"status", "container_ref", "owner_id"})


class InstanceRepository:
    """Repository for instance records."""

    def __init__(self, db: Database) -> None:
        self._db = db

    async def create(
        self, name: str, port: int, owner_id: str | None = None
    ) -> FoundryInstance:
        """Insert a new CREATING instance.

        Uniqueness is enforced by the database; a single INSERT either wins or
        fails with no partial write.

        Raises:
            DuplicateNameError: name already taken
            DuplicatePortError: port already in use
        """
        instance = FoundryInstance(name=name, port=port, owner_id=owner_id)
        async with self._db.session() as session:
            session.add(instance)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                duplicate = await self._duplicate_error(e, name, port)
                if duplicate is None:
                    raise
                raise duplicate from e
            await session.refresh(instance)
        return instance

    async def _duplicate_error(
        self, error: IntegrityError, name: str, port: int
    ) -> DuplicateNameError | DuplicatePortError | None:
        """Map a failed INSERT to the violated uniqueness rule (name before port)."""
        text = str(error.orig)
        if NAME_CONSTRAINT in text or await self._exists(FoundryInstance.name, name):
            return DuplicateNameError(f"Instance name '{name}' already exists")
        if PORT_CONSTRAINT in text or await self._exists(FoundryInstance.port, port):
            return DuplicatePortError(f"Port {port} is already in use")
        return None

    async def _exists(self, column: Any, value: Any) -> bool:
        async with self._db.session() as session:
            result = await session.execute(
                select(FoundryInstance.id).where(col(column) == value)
            )
            return result.first() is not None

    async def find(self, instance_id: str) -> FoundryInstance:
        """Get an instance by id.

        Raises:
            InstanceNotFoundError: no such instance
        """
        async with self._db.session() as session:
            instance = await session.get(FoundryInstance, instance_id)
        if instance is None:
            raise InstanceNotFoundError(f"Instance {instance_id} not found")
        return instance

    async def update(self, instance_id: str, **fields: Any) -> FoundryInstance:
        """Apply field changes and bump updated_at.

        Raises:
            InstanceNotFoundError: no such instance
            ValueError: a field is not mutable
        """
        unknown = set(fields) - MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        async with self._db.session() as session:
            instance = await session.get(FoundryInstance, instance_id)
            if instance is None:
                raise InstanceNotFoundError(f"Instance {instance_id} not found")
            for key, value in fields.items():
                setattr(instance, key, value)
            instance.updated_at = utc_now()
            session.add(instance)
            await session.commit()
            await session.refresh(instance)
        return instance

    async def delete(self, instance_id: str) -> None:
        """Remove an instance record.

        Raises:
            InstanceNotFoundError: no such instance
        """
        async with self._db.session() as session:
            instance = await session.get(FoundryInstance, instance_id)
            if instance is None:
                raise InstanceNotFoundError(f"Instance {instance_id} not found")
            await session.delete(instance)
            await session.commit()

    async def list(self) -> list[FoundryInstance]:
        """Snapshot of all instances, oldest first."""
        async with self._db.session() as session:
            result = await session.execute(
                select(FoundryInstance).order_by(
                    col(FoundryInstance.created_at), col(FoundryInstance.id)
                )
            )
            return list(result.scalars().all())
