"""Local directory data provider.

Two paths needed:
- data_root: for file operations (this process's view)
- engine_data_root: for the Docker bind mount (the engine host's view)

Each instance gets <root>/<instance_id>, owned by the container runtime user.
"""

import asyncio
import logging
import os
import shutil

from foundryhub.core.interfaces.storage import DataDirectoryProvider

logger = logging.getLogger(__name__)


def _chown_tree(path: str, uid: int, gid: int) -> None:
    """chown -R equivalent."""
    os.chown(path, uid, gid)
    for dirpath, dirnames, filenames in os.walk(path):
        for name in dirnames + filenames:
            os.chown(os.path.join(dirpath, name), uid, gid, follow_symlinks=False)


class LocalDirDataProvider(DataDirectoryProvider):
    def __init__(
        self,
        data_root: str,
        engine_data_root: str | None = None,
        uid: int = 1000,
        gid: int = 1000,
    ) -> None:
        self._data_root = data_root.rstrip("/")
        self._engine_data_root = (engine_data_root or data_root).rstrip("/")
        self._uid = uid
        self._gid = gid

    def internal_path(self, instance_id: str) -> str:
        """Path for file operations."""
        return f"{self._data_root}/{instance_id}"

    def external_path(self, instance_id: str) -> str:
        """Path for Docker bind mount."""
        return f"{self._engine_data_root}/{instance_id}"

    def _provision_sync(self, instance_id: str) -> None:
        path = self.internal_path(instance_id)
        os.makedirs(path, exist_ok=True)
        try:
            _chown_tree(path, self._uid, self._gid)
        except PermissionError as e:
            # Unprivileged runs cannot chown; the container user must cope
            logger.warning(
                "Cannot set ownership of %s to %s:%s: %s", path, self._uid, self._gid, e
            )
            return
        logger.debug("Prepared %s for %s:%s", path, self._uid, self._gid)

    async def provision(self, instance_id: str) -> str:
        await asyncio.to_thread(self._provision_sync, instance_id)
        return self.external_path(instance_id)

    async def purge(self, instance_id: str) -> None:
        path = self.internal_path(instance_id)
        if os.path.exists(path):
            logger.info("Purging data directory: %s", path)
            await asyncio.to_thread(shutil.rmtree, path)
