"""Logging field schema.

Standard fields (added to all logs):
- service: Service name (foundryhub)
- event: Event type (operation_started, state_changed, etc.)
- request_id: Request ID (when inside an HTTP request)

High cardinality fields (OK in logs):
- instance_id: Instance ID
- container_ref: Container handle
"""

from enum import StrEnum


class LogEvent(StrEnum):
    """Standard log event types.

    Use these event types in the 'event' extra field for consistent
    log filtering and analysis.
    """

    # Lifecycle operations
    OPERATION_STARTED = "operation_started"
    OPERATION_SUCCESS = "operation_success"
    OPERATION_FAILED = "operation_failed"
    OPERATION_REJECTED = "operation_rejected"
    STATE_CHANGED = "state_changed"
    ROLLBACK = "rollback"
    INVARIANT_VIOLATION = "invariant_violation"

    # Engine and probes
    COMMAND_EXECUTED = "command_executed"
    COMMAND_FAILED = "command_failed"
    PROBE_FAILED = "probe_failed"

    # Process lifecycle
    APP_STARTED = "app_started"
    APP_STOPPED = "app_stopped"
    RECOVERY_COMPLETE = "recovery_complete"
    RECONCILE_SKIPPED = "reconcile_skipped"
    DB_CONNECTED = "db_connected"
