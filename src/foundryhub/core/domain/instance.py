"""Instance domain enums.

State transitions:
- (none) -> CREATING (create)
- CREATING -> RUNNING (start succeeded) | record removed (start failed)
- RUNNING -> STOPPED (stop)
- STOPPED / ERROR -> RUNNING (start)
- any -> DELETING -> record removed (delete)
- any -> ERROR (engine reports an unrecognized or failed condition)
"""

from enum import StrEnum


class InstanceStatus(StrEnum):
    """Persisted instance status."""

    CREATING = "CREATING"
    RUNNING = "RUNNING"
    STOPPED = "STOPPED"
    ERROR = "ERROR"
    DELETING = "DELETING"


class HealthStatus(StrEnum):
    """Derived liveness of an instance. Never persisted.

    CHECKING is a marker for callers with a probe in flight; the core never
    returns it.
    """

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    UNKNOWN = "unknown"
    CHECKING = "checking"
