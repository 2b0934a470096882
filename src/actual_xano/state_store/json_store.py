"""
JSON file state store implementation.

Document layout:
- transactions: {actual_transaction_id: TrackedTransaction}
- last_processing: ISO timestamp of the last completed run
- statistics: lifetime totals

The document is always written whole (temp file + fsync + rename), so a crash
leaves either the previous snapshot or the new one. Fields this version does
not know about are kept and written back unchanged.
"""

import fcntl
import json
import logging
import os
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def utc_now_iso() -> str:
    """Current UTC time as ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat()


class TrackedStatus(str, Enum):
    """Export status of a tracked transaction."""

    PENDING = "pending"
    SUBMITTED = "submitted"
    PAID = "paid"
    FAILED = "failed"


class StateLockedError(Exception):
    """Another run holds the state lock."""

    pass


@dataclass
class TrackedTransaction:
    """Processing record of one Actual transaction.

    Snapshot fields (payee, amount, date, category) are captured when the
    transaction is first detected and not refreshed afterwards.
    """

    id: str
    payee: str
    amount: int  # minor units, signed, as in Actual
    date: str  # YYYY-MM-DD
    category: str | None
    account: str | None = None
    status: TrackedStatus = TrackedStatus.PENDING
    attempts: int = 0
    created_at: str = field(default_factory=utc_now_iso)
    last_attempt: str | None = None
    submitted_at: str | None = None
    paid_at: str | None = None
    xano_id: str | None = None
    error: str | None = None
    # Submitted by a dry run only; Xano never received it
    dry_run: bool = False
    # Unknown fields from the state file, preserved on save
    extra: dict[str, Any] = field(default_factory=dict)

    _FIELDS = (
        "id",
        "payee",
        "amount",
        "date",
        "category",
        "account",
        "status",
        "attempts",
        "created_at",
        "last_attempt",
        "submitted_at",
        "paid_at",
        "xano_id",
        "error",
        "dry_run",
    )

    @classmethod
    def from_dict(cls, data: dict) -> "TrackedTransaction":
        """Create from a state file entry."""
        extra = {k: v for k, v in data.items() if k not in cls._FIELDS}
        xano_id = data.get("xano_id")
        return cls(
            id=str(data["id"]),
            payee=data.get("payee") or "",
            amount=int(data.get("amount") or 0),
            date=data.get("date") or "",
            category=data.get("category"),
            account=data.get("account"),
            status=TrackedStatus(data.get("status", TrackedStatus.PENDING.value)),
            attempts=int(data.get("attempts") or 0),
            created_at=data.get("created_at") or utc_now_iso(),
            last_attempt=data.get("last_attempt"),
            submitted_at=data.get("submitted_at"),
            paid_at=data.get("paid_at"),
            xano_id=str(xano_id) if xano_id is not None else None,
            error=data.get("error"),
            dry_run=bool(data.get("dry_run", False)),
            extra=extra,
        )

    def to_dict(self) -> dict:
        """Convert to a state file entry."""
        data = dict(self.extra)
        data.update(
            {
                "id": self.id,
                "payee": self.payee,
                "amount": self.amount,
                "date": self.date,
                "category": self.category,
                "account": self.account,
                "status": self.status.value,
                "attempts": self.attempts,
                "created_at": self.created_at,
                "last_attempt": self.last_attempt,
                "submitted_at": self.submitted_at,
                "paid_at": self.paid_at,
                "xano_id": self.xano_id,
                "error": self.error,
                "dry_run": self.dry_run,
            }
        )
        return data


@dataclass
class Statistics:
    """Lifetime totals across all runs."""

    total_processed: int = 0
    total_submitted: int = 0
    total_paid: int = 0
    total_failed: int = 0
    extra: dict[str, Any] = field(default_factory=dict)

    _FIELDS = ("total_processed", "total_submitted", "total_paid", "total_failed")

    @classmethod
    def from_dict(cls, data: dict) -> "Statistics":
        return cls(
            total_processed=int(data.get("total_processed", 0)),
            total_submitted=int(data.get("total_submitted", 0)),
            total_paid=int(data.get("total_paid", 0)),
            total_failed=int(data.get("total_failed", 0)),
            extra={k: v for k, v in data.items() if k not in cls._FIELDS},
        )

    def to_dict(self) -> dict:
        data = dict(self.extra)
        data.update(
            {
                "total_processed": self.total_processed,
                "total_submitted": self.total_submitted,
                "total_paid": self.total_paid,
                "total_failed": self.total_failed,
            }
        )
        return data


@dataclass
class Counters:
    """Per-status tally, derived from ProcessingState and never persisted."""

    pending: int = 0
    submitted: int = 0
    paid: int = 0
    failed: int = 0
    processed_today: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "pending": self.pending,
            "submitted": self.submitted,
            "paid": self.paid,
            "failed": self.failed,
            "processed_today": self.processed_today,
        }


@dataclass
class ProcessingState:
    """Root object of the state file."""

    transactions: dict[str, TrackedTransaction] = field(default_factory=dict)
    last_processing: str | None = None
    statistics: Statistics = field(default_factory=Statistics)
    extra: dict[str, Any] = field(default_factory=dict)

    _FIELDS = ("transactions", "last_processing", "statistics")

    @classmethod
    def from_dict(cls, data: dict) -> "ProcessingState":
        transactions = {}
        for tx_id, entry in (data.get("transactions") or {}).items():
            entry = dict(entry)
            entry.setdefault("id", tx_id)
            transactions[str(tx_id)] = TrackedTransaction.from_dict(entry)

        return cls(
            transactions=transactions,
            last_processing=data.get("last_processing"),
            statistics=Statistics.from_dict(data.get("statistics") or {}),
            extra={k: v for k, v in data.items() if k not in cls._FIELDS},
        )

    def to_dict(self) -> dict:
        data = dict(self.extra)
        data.update(
            {
                "transactions": {
                    tx_id: tracked.to_dict() for tx_id, tracked in self.transactions.items()
                },
                "last_processing": self.last_processing,
                "statistics": self.statistics.to_dict(),
            }
        )
        return data

    def get(self, transaction_id: str) -> TrackedTransaction | None:
        return self.transactions.get(transaction_id)

    def compute_counters(self, today: str | None = None) -> Counters:
        """
        Tally tracked transactions by status.

        Args:
            today: UTC date (YYYY-MM-DD) for processed_today; defaults to now
        """
        today = today or datetime.now(timezone.utc).date().isoformat()
        counters = Counters()
        # Copy: a status query may run while the run thread inserts entries
        for tracked in list(self.transactions.values()):
            if tracked.status == TrackedStatus.PENDING:
                counters.pending += 1
            elif tracked.status == TrackedStatus.SUBMITTED:
                counters.submitted += 1
            elif tracked.status == TrackedStatus.PAID:
                counters.paid += 1
            elif tracked.status == TrackedStatus.FAILED:
                counters.failed += 1

            if tracked.created_at and tracked.created_at.startswith(today):
                counters.processed_today += 1
        return counters


class StateStore:
    """
    JSON file state store for the export pipeline.

    Provides:
    - load(): never fails on a missing file
    - save(): atomic replace, never raises
    - run_lock(): cross-process guard so only one run touches the file

    Single-writer: only the run holding run_lock() may call save().
    """

    def __init__(self, path: Path | str):
        """
        Initialize state store.

        Args:
            path: Path to the JSON state file
        """
        self.path = Path(path)
        self.lock_path = self.path.with_name(self.path.name + ".lock")

    def load(self, quarantine: bool = True) -> ProcessingState:
        """
        Load the processing state.

        A missing file yields an empty state. An unreadable or torn file is
        moved aside (``<name>.corrupt-<timestamp>``) and also yields an empty
        state; the ledger markers still prevent re-submission.

        Args:
            quarantine: Move an unreadable file aside. Readers that do not
                hold run_lock() pass False and leave the file in place.
        """
        if not self.path.exists():
            logger.info(f"No state file at {self.path}, starting with empty state")
            return ProcessingState()

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError(f"expected a JSON object, got {type(data).__name__}")
            state = ProcessingState.from_dict(data)
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Failed to load state file {self.path}: {e}")
            if quarantine:
                self._quarantine()
            return ProcessingState()

        logger.info(f"State loaded: {len(state.transactions)} tracked transactions")
        return state

    def _quarantine(self) -> None:
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
        target = self.path.with_name(f"{self.path.name}.corrupt-{stamp}")
        try:
            os.replace(self.path, target)
            logger.warning(f"Moved unreadable state file to {target}")
        except OSError as e:
            logger.error(f"Could not move unreadable state file aside: {e}")

    def save(self, state: ProcessingState) -> bool:
        """
        Write the whole state atomically.

        Returns:
            True on success, False if the write failed (logged, not raised)
        """
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            payload = json.dumps(state.to_dict(), indent=2)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(payload)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self.path)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to save state: {e}")
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            return False

        logger.debug("State saved successfully")
        return True

    @contextmanager
    def run_lock(self) -> Iterator[None]:
        """
        Hold an exclusive advisory lock for the duration of a run.

        Raises:
            StateLockedError: If another process holds the lock
        """
        self.lock_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.lock_path, "a") as handle:
            try:
                fcntl.flock(handle, fcntl.LOCK_EX | fcntl.LOCK_NB)
            except BlockingIOError as e:
                raise StateLockedError(f"State {self.path} is locked by another run") from e
            try:
                yield
            finally:
                fcntl.flock(handle, fcntl.LOCK_UN)

    def is_locked(self) -> bool:
        """True if some process currently holds run_lock()."""
        if not self.lock_path.exists():
            return False
        try:
            with open(self.lock_path) as handle:
                try:
                    fcntl.flock(handle, fcntl.LOCK_SH | fcntl.LOCK_NB)
                except BlockingIOError:
                    return True
                fcntl.flock(handle, fcntl.LOCK_UN)
        except OSError as e:
            logger.warning(f"Could not inspect run lock {self.lock_path}: {e}")
        return False
