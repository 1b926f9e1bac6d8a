"""Infrastructure: database handle and external command execution."""

from foundryhub.infra.database import Database
from foundryhub.infra.executor import CommandExecutor

__all__ = ["CommandExecutor", "Database"]
