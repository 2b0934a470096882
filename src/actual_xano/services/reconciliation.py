"""HP transaction reconciliation engine.

One run walks the following states:

    idle → initializing → fetching → filtering → submitting → persisting → idle
                                                                       ↘ errored

- initializing: open the Actual budget session (fatal on failure)
- fetching: resolve the HP category group, list on-budget open accounts and
  pull each account's transactions in the lookback window (an account that
  fails is skipped)
- filtering: keep cleared, HP-categorized, unmarked transactions, then drop
  those the state file already knows as submitted, paid or failed (entries
  only simulated by a dry run are submitted for real)
- submitting: submit up to max_transactions_per_batch to Xano, tag each
  success with #HP-Submitted, record failures
- persisting: update lifetime statistics and write the state file once

The engine is the only writer of ProcessingState. At most one run executes at
a time, both within the process and across processes sharing a state file.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import TYPE_CHECKING, Any

from actual_xano.export_client import ExportClient, ExportError
from actual_xano.ledger_client import (
    LedgerClient,
    LedgerConnectionError,
    LedgerError,
    LedgerNotFoundError,
    LedgerTransaction,
)
from actual_xano.schemas.eligibility import filter_eligible
from actual_xano.schemas.export_payload import build_export_payload, minor_to_major
from actual_xano.schemas.markers import PAID_MARKER, SUBMITTED_MARKER
from actual_xano.services.status_publisher import NullPublisher, create_publisher
from actual_xano.state_store import (
    Counters,
    ProcessingState,
    StateLockedError,
    StateStore,
    TrackedStatus,
    TrackedTransaction,
    utc_now_iso,
)

if TYPE_CHECKING:
    from actual_xano.config import Config
    from actual_xano.ledger_client import LedgerCategory
    from actual_xano.services.status_publisher import StatusPublisher

logger = logging.getLogger(__name__)

RUN_IN_PROGRESS = "run already in progress"


class RunState(str, Enum):
    """Possible states of the engine."""

    IDLE = "idle"
    INITIALIZING = "initializing"
    FETCHING = "fetching"
    FILTERING = "filtering"
    SUBMITTING = "submitting"
    PERSISTING = "persisting"
    ERRORED = "errored"
    # A run held by another process sharing the state file
    RUNNING_ELSEWHERE = "running_elsewhere"


class RunInProgressError(Exception):
    """A run is already executing."""

    def __init__(self, message: str = RUN_IN_PROGRESS):
        super().__init__(message)


class RunLockError(Exception):
    """The run lock could not be taken for a reason other than a conflict."""

    pass


class TransitionError(Exception):
    """A requested status change is not allowed."""

    pass


@dataclass
class RunResult:
    """Result of one reconciliation run."""

    processed: int = 0
    submitted: int = 0
    failed: int = 0
    candidates: int = 0
    eligible: int = 0
    tags_repaired: int = 0
    skipped_accounts: list[str] = field(default_factory=list)
    dry_run: bool = False
    persisted: bool = False
    duration_ms: int = 0

    @property
    def success(self) -> bool:
        """False only when every attempted submission failed."""
        return not (self.processed > 0 and self.submitted == 0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "processed": self.processed,
            "submitted": self.submitted,
            "failed": self.failed,
            "candidates": self.candidates,
            "eligible": self.eligible,
            "tags_repaired": self.tags_repaired,
            "skipped_accounts": list(self.skipped_accounts),
            "dry_run": self.dry_run,
            "persisted": self.persisted,
            "duration_ms": self.duration_ms,
        }


@dataclass
class TriggerResult:
    """Response of a run trigger."""

    started: bool
    manual: bool = False
    result: RunResult | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        if not self.started or self.error is not None or self.result is None:
            return False
        return self.result.success

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "success": self.success,
            "started": self.started,
            "manual": self.manual,
            "timestamp": utc_now_iso(),
        }
        if self.result is not None:
            data.update(
                processed=self.result.processed,
                submitted=self.result.submitted,
                failed=self.result.failed,
                persisted=self.result.persisted,
            )
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class StatusSnapshot:
    """Read-only view of the engine for status queries."""

    run_state: RunState
    counters: Counters
    last_processing: str | None
    statistics: dict[str, int]
    tracked: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_state": self.run_state.value,
            "counters": self.counters.to_dict(),
            "last_processing": self.last_processing,
            "statistics": dict(self.statistics),
            "tracked": self.tracked,
        }


class ReconciliationEngine:
    """Orchestrates the HP export pipeline.

    Safe to run repeatedly:
    - Transactions tagged #HP-Submitted or #HP-Paid are never selected
    - Transactions the state file knows as submitted or paid are never
      re-submitted, even when their tag is missing (the tag is re-written)
    - Failed transactions wait for an explicit reprocess()

    Usage:
        engine = ReconciliationEngine.from_config(config)
        response = engine.trigger(manual=True)
    """

    def __init__(
        self,
        ledger_factory: Callable[[], LedgerClient],
        export_client: ExportClient | None,
        state_store: StateStore,
        config: Config,
        publisher: StatusPublisher | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the engine and load the persisted state.

        Args:
            ledger_factory: Builds a fresh ledger client for each run.
            export_client: Xano client; may be None only in dry-run mode.
            state_store: Durable state store.
            config: Application configuration.
            publisher: Status sink; defaults to a no-op publisher.
            sleep: Pacing delay function.
        """
        self.ledger_factory = ledger_factory
        self.export_client = export_client
        self.store = state_store
        self.config = config
        self.publisher = publisher or NullPublisher()
        self._sleep = sleep

        # Runs reload under the lock; until then leave an unreadable file in place
        self.state: ProcessingState = state_store.load(quarantine=False)
        self.run_state = RunState.IDLE
        # True while the in-memory state holds changes a failed save lost
        self._unsaved = False
        self._run_lock = threading.Lock()

    @classmethod
    def from_config(cls, config: Config) -> ReconciliationEngine:
        """Wire up the engine with real clients."""

        def ledger_factory() -> LedgerClient:
            return LedgerClient(
                base_url=config.ledger.base_url,
                budget_id=config.ledger.budget_id,
                password=config.ledger.password,
                timeout=config.ledger.timeout_seconds,
                retry_policy=config.retry,
            )

        export_client = None
        if config.export.api_url:
            export_client = ExportClient(
                api_url=config.export.api_url,
                api_key=config.export.api_key,
                timeout=config.export.timeout_seconds,
                retry_policy=config.retry,
            )

        return cls(
            ledger_factory=ledger_factory,
            export_client=export_client,
            state_store=StateStore(config.state_path),
            config=config,
            publisher=create_publisher(config.home_assistant),
        )

    def close(self) -> None:
        """Release the HTTP sessions of the export client and publisher."""
        if self.export_client is not None:
            self.export_client.close()
        self.publisher.close()

    # ------------------------------------------------------------------
    # Exposed operations
    # ------------------------------------------------------------------

    def trigger(
        self,
        manual: bool = False,
        dry_run: bool | None = None,
        limit: int | None = None,
    ) -> TriggerResult:
        """Start a run unless one is already active.

        Never raises: a conflict yields started=False, a failed run yields
        started=True with the error message.

        Args:
            manual: True for a user request, False for the scheduler.
            dry_run: Override the configured dry-run flag.
            limit: Lower the configured batch size for this run.
        """
        logger.info(
            "Manual HP transaction processing triggered"
            if manual
            else "Scheduled HP transaction processing started"
        )
        try:
            result = self.run(manual=manual, dry_run=dry_run, limit=limit)
        except RunInProgressError:
            logger.warning("Rejected trigger: %s", RUN_IN_PROGRESS)
            return TriggerResult(started=False, manual=manual, error=RUN_IN_PROGRESS)
        except RunLockError as e:
            logger.error("Run not started: %s", e)
            return TriggerResult(started=False, manual=manual, error=str(e))
        except Exception as e:
            return TriggerResult(started=True, manual=manual, error=str(e))
        return TriggerResult(started=True, manual=manual, result=result)

    def run(
        self,
        manual: bool = False,
        dry_run: bool | None = None,
        limit: int | None = None,
    ) -> RunResult:
        """Execute one run.

        Raises:
            RunInProgressError: If another run holds the lock.
            RunLockError: If the run lock cannot be taken.
            LedgerError: If the ledger session cannot be established.
        """
        with self._exclusive():
            return self._execute(manual=manual, dry_run=dry_run, limit=limit)

    def status(self) -> StatusSnapshot:
        """Current counters and run state, without touching the state file."""
        run_state = self.run_state
        if (
            run_state == RunState.IDLE
            and not self._run_lock.locked()
            and self.store.is_locked()
        ):
            run_state = RunState.RUNNING_ELSEWHERE
        return StatusSnapshot(
            run_state=run_state,
            counters=self.state.compute_counters(),
            last_processing=self.state.last_processing,
            statistics=self.state.statistics.to_dict(),
            tracked=len(self.state.transactions),
        )

    def reprocess(
        self,
        transaction_ids: list[str] | None = None,
        all_failed: bool = False,
    ) -> list[str]:
        """Move failed transactions back to pending so the next run retries them.

        Args:
            transaction_ids: Specific ids to reset.
            all_failed: Reset every failed transaction.

        Returns:
            Ids that were reset.

        Raises:
            RunInProgressError: If a run is active.
            TransitionError: If an id is unknown.
        """
        with self._exclusive():
            self._refresh_state()
            if all_failed:
                targets = [
                    t for t in self.state.transactions.values() if t.status == TrackedStatus.FAILED
                ]
            else:
                targets = []
                for tx_id in transaction_ids or []:
                    tracked = self.state.get(tx_id)
                    if tracked is None:
                        raise TransitionError(f"Transaction {tx_id} is not tracked")
                    targets.append(tracked)

            reset = []
            for tracked in targets:
                if tracked.status != TrackedStatus.FAILED:
                    logger.warning(
                        "Not reprocessing %s: status is %s, only failed transactions can be reset",
                        tracked.id,
                        tracked.status.value,
                    )
                    continue
                tracked.status = TrackedStatus.PENDING
                tracked.error = None
                reset.append(tracked.id)
                logger.info("Transaction %s reset to pending", tracked.id)

            if reset:
                self._save()
            return reset

    def mark_paid(self, transaction_id: str) -> TrackedTransaction:
        """Advance a submitted transaction to paid and tag it #HP-Paid.

        Raises:
            RunInProgressError: If a run is active.
            TransitionError: If the transaction is not tracked or not submitted.
        """
        with self._exclusive():
            self._refresh_state()
            tracked = self.state.get(transaction_id)
            if tracked is None:
                raise TransitionError(f"Transaction {transaction_id} is not tracked")
            if tracked.status != TrackedStatus.SUBMITTED:
                raise TransitionError(
                    f"Transaction {transaction_id} is {tracked.status.value}, "
                    "only submitted transactions can be marked paid"
                )
            if tracked.dry_run:
                raise TransitionError(
                    f"Transaction {transaction_id} was only submitted in dry-run mode"
                )

            tracked.status = TrackedStatus.PAID
            tracked.paid_at = utc_now_iso()
            self.state.statistics.total_paid += 1

            if self.config.processing.dry_run:
                logger.info("DRY RUN: Would add %s tag to transaction %s", PAID_MARKER, tracked.id)
            else:
                self._tag_paid(tracked)

            self._save()
            self._publish_counters()
            return tracked

    # ------------------------------------------------------------------
    # Run phases
    # ------------------------------------------------------------------

    def _execute(self, manual: bool, dry_run: bool | None, limit: int | None) -> RunResult:
        processing = self.config.processing
        dry_run = processing.dry_run if dry_run is None else dry_run
        batch_size = processing.max_transactions_per_batch
        if limit is not None:
            batch_size = max(0, min(batch_size, limit))

        if not dry_run and self.export_client is None:
            raise ValueError("Xano export client is not configured (XANO_API_URL)")

        start_time = time.time()
        result = RunResult(dry_run=dry_run)
        ledger: LedgerClient | None = None

        logger.info("=== Starting HP Transaction Processing Run ===")
        logger.info("Category Group ID: %s", processing.category_group_id)
        logger.info("Dry Run Mode: %s", dry_run)
        self._refresh_state()

        try:
            self._set_run_state(RunState.INITIALIZING)
            ledger = self.ledger_factory()
            ledger.open_session()
            self._publish_status(
                "running",
                {
                    "description": "Processing HP transactions",
                    "trigger": "manual" if manual else "scheduled",
                },
            )

            self._set_run_state(RunState.FETCHING)
            categories = self._resolve_hp_categories(ledger)
            category_ids = {c.id for c in categories}
            candidates = self._fetch_candidates(ledger, result) if categories else []
            result.candidates = len(candidates)

            self._set_run_state(RunState.FILTERING)
            eligible = filter_eligible(candidates, category_ids)
            to_submit, to_repair = self._apply_state_guard(eligible)
            result.eligible = len(to_submit)
            self._log_eligible(to_submit, categories)

            self._set_run_state(RunState.SUBMITTING)
            if to_repair and not dry_run:
                result.tags_repaired = self._repair_tags(ledger, to_repair)

            batch = to_submit[:batch_size]
            if batch:
                logger.info(
                    "Processing %d transactions (batch size: %d)", len(batch), batch_size
                )
            else:
                logger.info("No eligible HP transactions found for processing")

            for index, transaction in enumerate(batch):
                if index and processing.pacing_seconds > 0:
                    self._sleep(processing.pacing_seconds)
                submitted = self._process_transaction(ledger, transaction, dry_run)
                result.processed += 1
                if submitted:
                    result.submitted += 1
                else:
                    result.failed += 1

            self._set_run_state(RunState.PERSISTING)
            stats = self.state.statistics
            stats.total_processed += result.processed
            stats.total_submitted += result.submitted
            stats.total_failed += result.failed
            self.state.last_processing = utc_now_iso()
            result.persisted = self._save()

            self._set_run_state(RunState.IDLE)

        except Exception as e:
            self._set_run_state(RunState.ERRORED)
            logger.exception("HP transaction processing failed: %s", e)
            self._publish_status("error", {"description": f"Processing failed: {e}"})
            raise

        finally:
            if ledger is not None:
                self._close_ledger(ledger)
            result.duration_ms = int((time.time() - start_time) * 1000)

        self._publish_counters()
        if result.processed:
            self._publish_status(
                "completed", {"description": f"Processed {result.processed} transactions"}
            )
        else:
            self._publish_status("idle", {"description": "No transactions to process"})

        logger.info(
            "=== Processing Complete - Processed: %d, Submitted: %d, Failed: %d ===",
            result.processed,
            result.submitted,
            result.failed,
        )
        return result

    def _resolve_hp_categories(self, ledger: LedgerClient) -> list[LedgerCategory]:
        """Find the HP category group and return its categories.

        The configured group id wins; otherwise a group named "HP" or
        containing "hp" (case-insensitive) is used.
        """
        group_id = self.config.processing.category_group_id
        groups = ledger.list_category_groups()
        logger.info("Found %d category groups", len(groups))

        group = next((g for g in groups if g.id == group_id), None)
        if group is None:
            group = next(
                (g for g in groups if g.name == "HP" or "hp" in g.name.lower()),
                None,
            )
        if group is None:
            logger.error("HP category group not found. Looking for ID: %s", group_id)
            logger.info(
                "Available category groups: %s",
                ", ".join(f"{g.name} ({g.id})" for g in groups),
            )
            return []

        logger.info('Found HP category group: "%s" (%s)', group.name, group.id)
        categories = [c for c in ledger.list_categories() if c.group_id == group.id]
        if not categories:
            logger.warning("No categories found in HP group")
        for category in categories:
            logger.info("  - %s (%s)", category.name, category.id)
        return categories

    def _fetch_candidates(
        self, ledger: LedgerClient, result: RunResult
    ) -> list[LedgerTransaction]:
        """Merge the lookback window of every on-budget open account.

        An account whose fetch fails is skipped. If every account fails and
        the bridge was unreachable, the last connection error is raised.
        """
        accounts = [a for a in ledger.list_accounts() if a.on_budget and not a.closed]
        logger.info("Found %d on-budget accounts", len(accounts))

        end_date = date.today()
        start_date = end_date - timedelta(days=self.config.processing.lookback_days)

        merged: dict[str, LedgerTransaction] = {}
        last_connection_error: LedgerConnectionError | None = None

        for account in accounts:
            try:
                transactions = ledger.list_transactions(account.id, start_date, end_date)
            except LedgerError as e:
                logger.warning(
                    "Failed to fetch transactions for account %s: %s", account.name, e
                )
                result.skipped_accounts.append(account.id)
                if isinstance(e, LedgerConnectionError):
                    last_connection_error = e
                continue

            for transaction in transactions:
                merged.setdefault(transaction.id, transaction)

        if accounts and len(result.skipped_accounts) == len(accounts) and last_connection_error:
            raise last_connection_error

        logger.info(
            "Found %d transactions between %s and %s", len(merged), start_date, end_date
        )
        return list(merged.values())

    def _apply_state_guard(
        self, eligible: list[LedgerTransaction]
    ) -> tuple[list[LedgerTransaction], list[tuple[LedgerTransaction, TrackedTransaction]]]:
        """Split eligible transactions using the persisted status.

        Returns:
            (to_submit, to_repair): new, pending or dry-run-only transactions,
            and submitted/paid ones whose ledger tag is missing.
        """
        to_submit = []
        to_repair = []
        for transaction in eligible:
            tracked = self.state.get(transaction.id)
            if tracked is None or tracked.status == TrackedStatus.PENDING or tracked.dry_run:
                to_submit.append(transaction)
            elif tracked.status in (TrackedStatus.SUBMITTED, TrackedStatus.PAID):
                logger.warning(
                    "Transaction %s is %s in state but untagged in Actual, not resubmitting",
                    transaction.id,
                    tracked.status.value,
                )
                to_repair.append((transaction, tracked))
            else:
                logger.debug("Transaction %s failed earlier, awaiting reprocess", transaction.id)
        return to_submit, to_repair

    def _repair_tags(
        self,
        ledger: LedgerClient,
        to_repair: list[tuple[LedgerTransaction, TrackedTransaction]],
    ) -> int:
        repaired = 0
        for transaction, tracked in to_repair:
            marker = PAID_MARKER if tracked.status == TrackedStatus.PAID else SUBMITTED_MARKER
            try:
                if ledger.add_note_tag(transaction, marker):
                    repaired += 1
            except LedgerError as e:
                logger.error("Failed to repair tag on transaction %s: %s", transaction.id, e)
        return repaired

    def _process_transaction(
        self, ledger: LedgerClient, transaction: LedgerTransaction, dry_run: bool
    ) -> bool:
        """Submit one transaction and record the outcome.

        Returns:
            True if submitted (or simulated in dry-run), False if it failed.
        """
        tx_id = transaction.id
        logger.info(
            "Processing transaction %s: %s - $%s",
            tx_id,
            transaction.payee,
            minor_to_major(transaction.amount),
        )

        tracked = self.state.get(tx_id)
        if tracked is None:
            tracked = TrackedTransaction(
                id=tx_id,
                payee=transaction.payee,
                amount=transaction.amount,
                date=transaction.date.isoformat(),
                category=transaction.category,
                account=transaction.account,
            )
            self.state.transactions[tx_id] = tracked

        tracked.attempts += 1
        tracked.last_attempt = utc_now_iso()

        if dry_run:
            logger.info("DRY RUN: Would submit transaction %s to Xano", tx_id)
            self._mark_submitted(tracked, remote_id=None, dry_run=True)
            logger.info("DRY RUN: Would add %s tag to transaction notes", SUBMITTED_MARKER)
            return True

        try:
            export_result = self.export_client.submit(build_export_payload(transaction))
        except ExportError as e:
            return self._mark_failed(tracked, str(e))
        except Exception as e:
            logger.exception("Unexpected error submitting transaction %s", tx_id)
            return self._mark_failed(tracked, str(e))

        self._mark_submitted(tracked, remote_id=export_result.remote_id)
        logger.info("Successfully submitted transaction %s to Xano", tx_id)

        try:
            ledger.add_note_tag(transaction, SUBMITTED_MARKER)
        except LedgerError as e:
            # The submitted status blocks resubmission; the tag is repaired next run
            logger.error("Failed to add tag to transaction %s: %s", tx_id, e)

        return True

    @staticmethod
    def _mark_submitted(
        tracked: TrackedTransaction, remote_id: str | None, dry_run: bool = False
    ) -> None:
        tracked.status = TrackedStatus.SUBMITTED
        tracked.submitted_at = utc_now_iso()
        tracked.xano_id = remote_id
        tracked.error = None
        tracked.dry_run = dry_run

    @staticmethod
    def _mark_failed(tracked: TrackedTransaction, message: str) -> bool:
        tracked.status = TrackedStatus.FAILED
        tracked.error = message
        tracked.dry_run = False
        logger.error("Failed to submit transaction %s: %s", tracked.id, message)
        return False

    def _tag_paid(self, tracked: TrackedTransaction) -> None:
        """Write #HP-Paid onto the ledger transaction (best effort)."""
        if not tracked.account or not tracked.date:
            logger.warning(
                "Transaction %s has no account snapshot, cannot tag it as paid", tracked.id
            )
            return

        ledger = self.ledger_factory()
        try:
            ledger.open_session()
            day = date.fromisoformat(tracked.date)
            transaction = next(
                (
                    t
                    for t in ledger.list_transactions(tracked.account, day, day)
                    if t.id == tracked.id
                ),
                None,
            )
            if transaction is None:
                raise LedgerNotFoundError(404, f"Transaction {tracked.id} not found")
            ledger.add_note_tag(transaction, PAID_MARKER)
        except LedgerError as e:
            logger.error("Failed to add %s tag to transaction %s: %s", PAID_MARKER, tracked.id, e)
        finally:
            self._close_ledger(ledger)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        """Hold the in-process and cross-process run locks.

        Raises:
            RunInProgressError: If either lock is already held.
            RunLockError: If the lock file cannot be opened.
        """
        if not self._run_lock.acquire(blocking=False):
            raise RunInProgressError()
        try:
            with ExitStack() as stack:
                try:
                    stack.enter_context(self.store.run_lock())
                except StateLockedError as e:
                    raise RunInProgressError() from e
                except OSError as e:
                    raise RunLockError(f"Cannot lock state {self.store.path}: {e}") from e
                yield
        finally:
            self._run_lock.release()

    def _refresh_state(self) -> None:
        """Reload the state file unless in-memory changes were never saved."""
        if self._unsaved:
            logger.warning("Keeping in-memory state: last save failed")
            return
        self.state = self.store.load()

    def _save(self) -> bool:
        saved = self.store.save(self.state)
        self._unsaved = not saved
        if not saved:
            logger.error("State not persisted; in-memory state stays authoritative until next save")
        return saved

    def _set_run_state(self, state: RunState) -> None:
        logger.debug("Run state: %s → %s", self.run_state.value, state.value)
        self.run_state = state

    def _close_ledger(self, ledger: LedgerClient) -> None:
        try:
            ledger.close()
        except Exception as e:
            logger.warning("Error during Actual Budget shutdown: %s", e)

    def _log_eligible(
        self, transactions: list[LedgerTransaction], categories: list[LedgerCategory]
    ) -> None:
        names = {c.id: c.name for c in categories}
        logger.info("Found %d eligible HP transactions for processing", len(transactions))
        for index, t in enumerate(transactions, start=1):
            logger.info(
                "  %d. %s - $%s - %s - %s",
                index,
                t.payee or "Unknown Payee",
                minor_to_major(t.amount),
                names.get(t.category, "Unknown Category"),
                t.date.isoformat(),
            )

    def _publish_status(self, status: str, attributes: dict[str, Any] | None = None) -> None:
        try:
            self.publisher.publish_status(status, attributes)
        except Exception as e:
            logger.warning("Failed to publish automation status %s: %s", status, e)

    def _publish_counters(self) -> None:
        counters = self.state.compute_counters()
        try:
            self.publisher.publish_counters(counters, self.state.last_processing)
        except Exception as e:
            logger.warning("Failed to publish counters: %s", e)
        logger.info(
            "Updated counters - Pending: %d, Submitted: %d, Paid: %d, Failed: %d",
            counters.pending,
            counters.submitted,
            counters.paid,
            counters.failed,
        )
