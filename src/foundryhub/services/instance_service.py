"""Instance service for orchestrating instance lifecycle operations.

Owns the instance state machine. Each operation reads the record, checks the
transition is legal, performs side effects (data directory, container engine)
and then persists the new state. Operations on the same instance are
serialized by a per-instance lock; the service never retries.
"""

import logging

from foundryhub.app.config import PortRangeConfig, RuntimeConfig
from foundryhub.core.domain import InstanceStatus
from foundryhub.core.errors import (
    AlreadyRunningError,
    ExecutionFailure,
    InstanceDeletingError,
    InstanceNotFoundError,
    InvalidPortError,
    MissingContainerRefError,
    NotRunningError,
)
from foundryhub.core.interfaces import ContainerEngine, ContainerSpec, DataDirectoryProvider
from foundryhub.core.logging_schema import LogEvent
from foundryhub.core.models import FoundryInstance
from foundryhub.services.locks import InstanceLocks
from foundryhub.services.repository import InstanceRepository

logger = logging.getLogger(__name__)

# Engine state -> persisted status. Anything else maps to ERROR.
ENGINE_STATE_MAP = {
    "running": InstanceStatus.RUNNING,
    "exited": InstanceStatus.STOPPED,
    # Created but never started; startable, so STOPPED rather than ERROR
    "created": InstanceStatus.STOPPED,
}


def map_engine_state(raw_state: str) -> InstanceStatus:
    """Translate an engine state string into an instance status."""
    state = raw_state.strip().strip("'\"").lower()
    status = ENGINE_STATE_MAP.get(state)
    if status is None:
        logger.warning("Unrecognized engine state '%s', marking ERROR", raw_state)
        return InstanceStatus.ERROR
    return status


class InstanceService:
    """Service for instance lifecycle operations."""

    def __init__(
        self,
        repository: InstanceRepository,
        engine: ContainerEngine,
        storage: DataDirectoryProvider,
        runtime: RuntimeConfig,
        ports: PortRangeConfig,
        locks: InstanceLocks | None = None,
    ) -> None:
        self._repository = repository
        self._engine = engine
        self._storage = storage
        self._runtime = runtime
        self._ports = ports
        self._locks = locks or InstanceLocks()

    # =========================================================================
    # Queries
    # =========================================================================

    async def get_instance(self, instance_id: str) -> FoundryInstance:
        return await self._repository.find(instance_id)

    async def list_instances(self) -> list[FoundryInstance]:
        return await self._repository.list()

    def build_container_spec(
        self, instance: FoundryInstance, data_mount: str
    ) -> ContainerSpec:
        """Build the container definition for an instance."""
        environment: dict[str, str] = {}
        if self._runtime.foundry_username:
            environment["FOUNDRY_USERNAME"] = self._runtime.foundry_username
        if self._runtime.foundry_password is not None:
            environment["FOUNDRY_PASSWORD"] = (
                self._runtime.foundry_password.get_secret_value()
            )

        return ContainerSpec(
            name=f"{self._runtime.container_prefix}{instance.name}",
            image=self._runtime.image,
            host_port=instance.port,
            container_port=self._runtime.container_port,
            data_mount=data_mount,
            mount_path=self._runtime.mount_path,
            user=f"{self._runtime.uid}:{self._runtime.gid}",
            environment=environment,
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def create_instance(
        self, name: str, port: int, owner_id: str | None = None
    ) -> FoundryInstance:
        """Create an instance and start its first container.

        If the start fails the new record is deleted and the error re-raised,
        so a failed create leaves nothing behind.

        Raises:
            InvalidPortError: port outside the configured range
            DuplicateNameError / DuplicatePortError: name or port taken
            ExecutionFailure: container could not be created
        """
        if not self._ports.contains(port):
            logger.info(
                "Rejected create of %s: port %s outside %s-%s",
                name,
                port,
                self._ports.min_port,
                self._ports.max_port,
                extra={"event": LogEvent.OPERATION_REJECTED},
            )
            raise InvalidPortError(
                f"Port {port} outside allowed range "
                f"{self._ports.min_port}-{self._ports.max_port}"
            )

        instance = await self._repository.create(name, port, owner_id)
        logger.info(
            "Created instance %s (name=%s, port=%s)",
            instance.id,
            name,
            port,
            extra={"event": LogEvent.OPERATION_STARTED, "instance_id": instance.id},
        )

        async with self._locks.get(instance.id):
            try:
                return await self._start(instance)
            except Exception:
                logger.warning(
                    "Start failed for new instance %s, removing record",
                    instance.id,
                    extra={"event": LogEvent.ROLLBACK, "instance_id": instance.id},
                )
                try:
                    await self._repository.delete(instance.id)
                except InstanceNotFoundError:
                    pass
                raise

    async def start_instance(self, instance_id: str) -> FoundryInstance:
        """Start a stopped, errored or never-started instance.

        Raises:
            InstanceNotFoundError: no such instance
            AlreadyRunningError: instance is RUNNING
            InstanceDeletingError: instance is being deleted
            ExecutionFailure: engine call failed (status unchanged)
        """
        async with self._locks.get(instance_id):
            instance = await self._repository.find(instance_id)
            return await self._start(instance)

    async def _start(self, instance: FoundryInstance) -> FoundryInstance:
        status = InstanceStatus(instance.status)
        if status == InstanceStatus.RUNNING:
            raise AlreadyRunningError(f"Instance {instance.name} is already running")
        if status == InstanceStatus.DELETING:
            raise InstanceDeletingError(f"Instance {instance.name} is being deleted")

        try:
            if instance.container_ref is None:
                return await self._run_first_container(instance)

            await self._engine.start(instance.container_ref)
        except ExecutionFailure as e:
            logger.error(
                "Failed to start instance %s: %s",
                instance.id,
                e.message,
                extra={"event": LogEvent.OPERATION_FAILED, "instance_id": instance.id},
            )
            raise

        return await self._transition(instance, InstanceStatus.RUNNING)

    async def _run_first_container(self, instance: FoundryInstance) -> FoundryInstance:
        data_mount = await self._storage.provision(instance.id)
        spec = self.build_container_spec(instance, data_mount)
        try:
            container_ref = await self._engine.run(spec)
        except ExecutionFailure:
            # run can create the container and then fail to start it
            await self._discard_container(instance, spec.name)
            raise

        try:
            updated = await self._repository.update(
                instance.id,
                container_ref=container_ref,
                status=InstanceStatus.RUNNING,
            )
        except Exception:
            # Record could not hold the new container; do not leak it
            logger.exception(
                "Failed to persist container %s for %s, removing it",
                container_ref,
                instance.id,
                extra={"event": LogEvent.ROLLBACK, "instance_id": instance.id},
            )
            await self._engine.remove(container_ref)
            raise

        self._log_transition(instance, InstanceStatus.RUNNING)
        return updated

    async def stop_instance(self, instance_id: str) -> FoundryInstance:
        """Stop a running instance. The container and its ref are kept.

        Raises:
            InstanceNotFoundError: no such instance
            NotRunningError: instance is not RUNNING
            MissingContainerRefError: RUNNING record without a container
            ExecutionFailure: engine call failed (status unchanged)
        """
        async with self._locks.get(instance_id):
            instance = await self._repository.find(instance_id)
            if instance.status != InstanceStatus.RUNNING:
                raise NotRunningError(f"Instance {instance.name} is not running")

            if not instance.container_ref:
                logger.error(
                    "Instance %s is RUNNING but has no container reference",
                    instance.id,
                    extra={
                        "event": LogEvent.INVARIANT_VIOLATION,
                        "instance_id": instance.id,
                    },
                )
                raise MissingContainerRefError(
                    f"Instance {instance.name} has no associated container"
                )

            try:
                await self._engine.stop(instance.container_ref)
            except ExecutionFailure as e:
                logger.error(
                    "Failed to stop instance %s: %s",
                    instance.id,
                    e.message,
                    extra={
                        "event": LogEvent.OPERATION_FAILED,
                        "instance_id": instance.id,
                    },
                )
                raise

            return await self._transition(instance, InstanceStatus.STOPPED)

    async def delete_instance(self, instance_id: str, purge_data: bool = False) -> None:
        """Remove the container (if any), then the record.

        The record is marked DELETING first. If the engine fails it stays
        DELETING and delete can be retried.

        Args:
            instance_id: Instance to delete
            purge_data: Also delete the instance data directory

        Raises:
            InstanceNotFoundError: no such instance
            ExecutionFailure: container removal failed
        """
        async with self._locks.get(instance_id):
            instance = await self._repository.find(instance_id)
            if instance.status != InstanceStatus.DELETING:
                instance = await self._transition(instance, InstanceStatus.DELETING)

            if instance.container_ref:
                try:
                    await self._engine.remove(instance.container_ref)
                except ExecutionFailure as e:
                    logger.error(
                        "Failed to remove container for %s, record kept DELETING: %s",
                        instance.id,
                        e.message,
                        extra={
                            "event": LogEvent.OPERATION_FAILED,
                            "instance_id": instance.id,
                        },
                    )
                    raise

            if purge_data:
                await self._storage.purge(instance.id)

            await self._repository.delete(instance.id)
            logger.info(
                "Deleted instance %s (%s)",
                instance.id,
                instance.name,
                extra={"event": LogEvent.OPERATION_SUCCESS, "instance_id": instance.id},
            )

        self._locks.discard(instance_id)

    async def reconcile_status(self, instance_id: str) -> FoundryInstance:
        """Align the stored status with what the engine reports.

        Raises:
            InstanceNotFoundError: no such instance
            ExecutionFailure: inspection failed (instance is marked ERROR)
        """
        async with self._locks.get(instance_id):
            instance = await self._repository.find(instance_id)
            return await self._reconcile(instance)

    async def _reconcile(self, instance: FoundryInstance) -> FoundryInstance:
        if instance.status == InstanceStatus.DELETING:
            # Only a completed delete moves a record out of DELETING
            logger.info(
                "Skipping reconcile for %s, delete in progress",
                instance.id,
                extra={"event": LogEvent.RECONCILE_SKIPPED, "instance_id": instance.id},
            )
            return instance

        if not instance.container_ref:
            observed = InstanceStatus.STOPPED
        else:
            try:
                raw_state = await self._engine.inspect_state(instance.container_ref)
            except ExecutionFailure as e:
                logger.error(
                    "Failed to inspect container for %s: %s",
                    instance.id,
                    e.message,
                    extra={
                        "event": LogEvent.OPERATION_FAILED,
                        "instance_id": instance.id,
                    },
                )
                await self._transition(instance, InstanceStatus.ERROR)
                raise
            observed = map_engine_state(raw_state)

        if instance.status == observed:
            return instance
        return await self._transition(instance, observed)

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _discard_container(self, instance: FoundryInstance, container: str) -> None:
        logger.warning(
            "Engine run failed for %s, removing container %s",
            instance.id,
            container,
            extra={"event": LogEvent.ROLLBACK, "instance_id": instance.id},
        )
        try:
            await self._engine.remove(container)
        except ExecutionFailure as e:
            logger.error(
                "Failed to remove container %s for %s: %s",
                container,
                instance.id,
                e.message,
                extra={"event": LogEvent.OPERATION_FAILED, "instance_id": instance.id},
            )

    async def _transition(
        self, instance: FoundryInstance, to_state: InstanceStatus
    ) -> FoundryInstance:
        updated = await self._repository.update(instance.id, status=to_state)
        self._log_transition(instance, to_state)
        return updated

    @staticmethod
    def _log_transition(instance: FoundryInstance, to_state: InstanceStatus) -> None:
        if instance.status == to_state:
            return
        logger.info(
            "Instance %s: %s -> %s",
            instance.id,
            instance.status,
            to_state,
            extra={
                "event": LogEvent.STATE_CHANGED,
                "instance_id": instance.id,
                "from_status": str(instance.status),
                "to_status": str(to_state),
            },
        )
