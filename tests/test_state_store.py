"""Tests for the JSON state store."""

import json
from pathlib import Path

import pytest

from actual_xano.state_store import (
    ProcessingState,
    StateLockedError,
    StateStore,
    Statistics,
    TrackedStatus,
    TrackedTransaction,
)


def make_tracked(tx_id: str, status: TrackedStatus = TrackedStatus.SUBMITTED, **kwargs):
    defaults = dict(
        payee="Office Depot",
        amount=-4599,
        date="2025-03-14",
        category="cat-office",
        status=status,
        attempts=1,
        created_at="2025-03-14T08:00:00+00:00",
    )
    defaults.update(kwargs)
    return TrackedTransaction(id=tx_id, **defaults)


class TestStateStore:
    """Tests for load/save."""

    @pytest.fixture
    def store(self, state_path: Path) -> StateStore:
        return StateStore(state_path)

    def test_missing_file_is_empty_state(self, store):
        state = store.load()

        assert state.transactions == {}
        assert state.last_processing is None
        assert state.statistics.total_processed == 0

    def test_save_and_load(self, store):
        state = ProcessingState(
            transactions={
                "t1": make_tracked("t1", xano_id="42", submitted_at="2025-03-14T08:00:01+00:00"),
                "t2": make_tracked("t2", status=TrackedStatus.FAILED, error="Xano API error 400"),
            },
            last_processing="2025-03-14T08:00:02+00:00",
            statistics=Statistics(total_processed=2, total_submitted=1, total_failed=1),
        )

        assert store.save(state) is True
        loaded = store.load()

        assert loaded.transactions["t1"].status == TrackedStatus.SUBMITTED
        assert loaded.transactions["t1"].xano_id == "42"
        assert loaded.transactions["t2"].status == TrackedStatus.FAILED
        assert loaded.transactions["t2"].error == "Xano API error 400"
        assert loaded.last_processing == "2025-03-14T08:00:02+00:00"
        assert loaded.statistics.total_failed == 1

    def test_file_layout(self, store, state_path):
        """State file uses the documented top-level keys."""
        store.save(ProcessingState(transactions={"t1": make_tracked("t1")}))

        data = json.loads(state_path.read_text())

        assert set(data) == {"transactions", "last_processing", "statistics"}
        assert data["transactions"]["t1"]["status"] == "submitted"
        assert data["transactions"]["t1"]["amount"] == -4599

    def test_unknown_fields_preserved(self, store, state_path):
        """Fields written by other tools survive a load/save cycle."""
        state_path.write_text(
            json.dumps(
                {
                    "schema_hint": 3,
                    "transactions": {
                        "t1": {
                            "id": "t1",
                            "payee": "Office Depot",
                            "amount": -4599,
                            "date": "2025-03-14",
                            "category": "cat-office",
                            "status": "paid",
                            "attempts": 1,
                            "created_at": "2025-03-14T08:00:00+00:00",
                            "receipt_url": "https://example.test/r/1",
                        }
                    },
                    "last_processing": None,
                    "statistics": {
                        "total_processed": 1,
                        "total_paid": 1,
                        "by_month": {"2025-03": 1},
                    },
                }
            )
        )

        state = store.load()
        state.transactions["t1"].attempts = 2
        assert store.save(state) is True

        data = json.loads(state_path.read_text())
        assert data["schema_hint"] == 3
        assert data["transactions"]["t1"]["receipt_url"] == "https://example.test/r/1"
        assert data["transactions"]["t1"]["attempts"] == 2
        assert data["statistics"]["by_month"] == {"2025-03": 1}

    def test_entry_id_defaults_to_key(self, store, state_path):
        state_path.write_text(
            json.dumps({"transactions": {"t9": {"status": "pending", "amount": -100}}})
        )

        assert store.load().transactions["t9"].id == "t9"

    @pytest.mark.parametrize(
        "content",
        ["{not json", "[1, 2, 3]", '{"transactions": {"t1": {"status": "bogus"}}}'],
    )
    def test_corrupt_file_quarantined(self, store, state_path, content):
        """Unreadable state is moved aside and an empty state is returned."""
        state_path.write_text(content)

        state = store.load()

        assert state.transactions == {}
        assert not state_path.exists()
        quarantined = list(state_path.parent.glob(f"{state_path.name}.corrupt-*"))
        assert len(quarantined) == 1
        assert quarantined[0].read_text() == content

    def test_corrupt_file_left_in_place_without_quarantine(self, store, state_path):
        """Readers outside the run lock never move the state file."""
        state_path.write_text("{not json")

        assert store.load(quarantine=False).transactions == {}
        assert state_path.read_text() == "{not json"
        assert not list(state_path.parent.glob(f"{state_path.name}.corrupt-*"))

    def test_dry_run_flag_round_trip(self, store):
        store.save(ProcessingState(transactions={"t1": make_tracked("t1", dry_run=True)}))

        assert store.load().transactions["t1"].dry_run is True

    def test_dry_run_flag_defaults_to_false(self, store, state_path):
        state_path.write_text(json.dumps({"transactions": {"t1": {"status": "submitted"}}}))
        assert store.load().transactions["t1"].dry_run is False

    def test_save_failure_returns_false(self, tmp_path):
        """A failed write is reported, not raised."""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        store = StateStore(blocker / "hp-state.json")

        assert store.save(ProcessingState()) is False

    def test_save_leaves_no_temp_files(self, store, state_path):
        store.save(ProcessingState(transactions={"t1": make_tracked("t1")}))
        store.save(ProcessingState(transactions={"t2": make_tracked("t2")}))

        assert [p.name for p in state_path.parent.iterdir()] == [state_path.name]
        assert set(store.load().transactions) == {"t2"}


class TestRunLock:
    """Tests for the cross-run lock."""

    def test_second_holder_rejected(self, state_path):
        first = StateStore(state_path)
        second = StateStore(state_path)

        with first.run_lock():
            with pytest.raises(StateLockedError):
                with second.run_lock():
                    pass

    def test_lock_released_after_run(self, state_path):
        store = StateStore(state_path)

        with store.run_lock():
            pass
        with store.run_lock():
            pass

    def test_is_locked_reports_holder(self, state_path):
        store = StateStore(state_path)
        assert store.is_locked() is False

        with StateStore(state_path).run_lock():
            assert store.is_locked() is True
        assert store.is_locked() is False


class TestCounters:
    """Tests for derived counters."""

    def test_tally_by_status(self):
        state = ProcessingState(
            transactions={
                "t1": make_tracked("t1", status=TrackedStatus.PENDING),
                "t2": make_tracked("t2", status=TrackedStatus.SUBMITTED),
                "t3": make_tracked("t3", status=TrackedStatus.SUBMITTED),
                "t4": make_tracked("t4", status=TrackedStatus.PAID),
                "t5": make_tracked("t5", status=TrackedStatus.FAILED),
            }
        )

        counters = state.compute_counters(today="2025-03-15")

        assert counters.to_dict() == {
            "pending": 1,
            "submitted": 2,
            "paid": 1,
            "failed": 1,
            "processed_today": 0,
        }

    def test_processed_today(self):
        state = ProcessingState(
            transactions={
                "t1": make_tracked("t1", created_at="2025-03-14T08:00:00+00:00"),
                "t2": make_tracked("t2", created_at="2025-03-15T00:10:00+00:00"),
                "t3": make_tracked("t3", created_at="2025-03-15T23:59:00+00:00"),
            }
        )

        assert state.compute_counters(today="2025-03-15").processed_today == 2

    def test_counters_sum_to_tracked(self):
        state = ProcessingState(
            transactions={
                f"t{i}": make_tracked(f"t{i}", status=status)
                for i, status in enumerate(TrackedStatus)
            }
        )
        counters = state.compute_counters()

        total = counters.pending + counters.submitted + counters.paid + counters.failed
        assert total == len(state.transactions)
