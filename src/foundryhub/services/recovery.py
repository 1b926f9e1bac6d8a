"""Startup recovery for instances whose record drifted from the engine.

Called during server startup before accepting API requests, and by the
`reconcile` CLI command.
"""

import logging
from datetime import UTC, timedelta

from foundryhub.core.domain import InstanceStatus
from foundryhub.core.logging_schema import LogEvent
from foundryhub.core.models import FoundryInstance, utc_now
from foundryhub.services.instance_service import InstanceService
from foundryhub.services.repository import InstanceRepository

logger = logging.getLogger(__name__)


async def startup_recovery(
    repository: InstanceRepository,
    service: InstanceService,
    creating_grace: timedelta = timedelta(0),
) -> int:
    """Reconcile every instance record with the container engine.

    Recovery Matrix:
    | DB Status | Container ref | Result                          |
    |-----------|---------------|---------------------------------|
    | CREATING  | none          | record removed (crashed create) |
    | DELETING  | any           | delete resumed                  |
    | otherwise | none          | STOPPED                         |
    | otherwise | present       | engine state (or ERROR)         |

    CREATING records updated within `creating_grace` are left alone, since a
    create may still be running in another process. Server startup passes no
    grace; the CLI passes the configured one.

    A failure on one instance is logged and does not stop the others.

    Returns:
        Number of instances whose record was changed or removed.
    """
    instances = await repository.list()
    if not instances:
        logger.info("No instances to recover")
        return 0

    fixed = 0
    for instance in instances:
        if _creating_within_grace(instance, creating_grace):
            logger.info("Skipping instance %s, create may be in progress", instance.id)
            continue
        try:
            if instance.status == InstanceStatus.CREATING and not instance.container_ref:
                logger.warning(
                    "Removing instance %s left in CREATING without a container",
                    instance.id,
                    extra={"event": LogEvent.ROLLBACK, "instance_id": instance.id},
                )
                await repository.delete(instance.id)
                fixed += 1
            elif instance.status == InstanceStatus.DELETING:
                logger.info("Resuming delete of instance %s", instance.id)
                await service.delete_instance(instance.id)
                fixed += 1
            else:
                reconciled = await service.reconcile_status(instance.id)
                if reconciled.status != instance.status:
                    fixed += 1
        except Exception as e:
            logger.exception(
                "Failed to recover instance %s (status=%s): %s",
                instance.id,
                instance.status,
                e,
            )
            continue

    logger.info(
        "Recovery complete: %d/%d instance(s) changed",
        fixed,
        len(instances),
        extra={"event": LogEvent.RECOVERY_COMPLETE},
    )
    return fixed


def _creating_within_grace(instance: FoundryInstance, grace: timedelta) -> bool:
    if instance.status != InstanceStatus.CREATING or not grace:
        return False
    updated_at = instance.updated_at
    if updated_at.tzinfo is None:
        # SQLite drops the offset; values are stored as UTC
        updated_at = updated_at.replace(tzinfo=UTC)
    return utc_now() - updated_at < grace

