"""Data directory adapters."""

from foundryhub.adapters.storage.local_dir import LocalDirDataProvider

__all__ = ["LocalDirDataProvider"]
