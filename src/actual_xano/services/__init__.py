"""Services for HP transaction export and status reporting."""

from actual_xano.services.reconciliation import (
    ReconciliationEngine,
    RunInProgressError,
    RunLockError,
    RunResult,
    RunState,
    StatusSnapshot,
    TransitionError,
    TriggerResult,
)
from actual_xano.services.status_publisher import (
    HomeAssistantPublisher,
    NullPublisher,
    StatusPublisher,
    StatusPublishError,
    create_publisher,
)

__all__ = [
    "ReconciliationEngine",
    "RunInProgressError",
    "RunLockError",
    "RunResult",
    "RunState",
    "StatusSnapshot",
    "TransitionError",
    "TriggerResult",
    "HomeAssistantPublisher",
    "NullPublisher",
    "StatusPublisher",
    "StatusPublishError",
    "create_publisher",
]
