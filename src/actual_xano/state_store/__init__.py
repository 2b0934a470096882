"""
State Store (JSON file).

Durable record of every HP transaction the exporter has seen:
- Export status per Actual transaction id
- Lifetime statistics
- Timestamp of the last run

Each transaction id is tracked at most once and never removed.
"""

from .json_store import (
    Counters,
    ProcessingState,
    StateLockedError,
    StateStore,
    Statistics,
    TrackedStatus,
    TrackedTransaction,
    utc_now_iso,
)

__all__ = [
    "StateStore",
    "StateLockedError",
    "ProcessingState",
    "Statistics",
    "Counters",
    "TrackedStatus",
    "TrackedTransaction",
    "utc_now_iso",
]
