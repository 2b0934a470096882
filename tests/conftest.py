"""Shared pytest fixtures."""

from pathlib import Path

import pytest
from fixtures import GROCERIES_CATEGORY, HP_CATEGORY_OFFICE, HP_CATEGORY_TRAVEL, HP_GROUP_ID

from actual_xano.config import (
    Config,
    ExportConfig,
    HomeAssistantConfig,
    LedgerConfig,
    ProcessingConfig,
    RetryPolicy,
)
from actual_xano.ledger_client import LedgerAccount, LedgerCategory, LedgerCategoryGroup


@pytest.fixture
def hp_category_groups() -> list[LedgerCategoryGroup]:
    """Category groups as reported by Actual."""
    return [
        LedgerCategoryGroup(id="grp-living", name="Living"),
        LedgerCategoryGroup(id=HP_GROUP_ID, name="Home Practice"),
    ]


@pytest.fixture
def hp_categories() -> list[LedgerCategory]:
    """Categories, two of them in the HP group."""
    return [
        LedgerCategory(id=HP_CATEGORY_OFFICE, name="Office Supplies", group_id=HP_GROUP_ID),
        LedgerCategory(id=HP_CATEGORY_TRAVEL, name="Travel", group_id=HP_GROUP_ID),
        LedgerCategory(id=GROCERIES_CATEGORY, name="Groceries", group_id="grp-living"),
    ]


@pytest.fixture
def accounts() -> list[LedgerAccount]:
    """Accounts: two on-budget open ones, one off-budget, one closed."""
    return [
        LedgerAccount(id="acc-checking", name="Checking"),
        LedgerAccount(id="acc-card", name="Credit Card"),
        LedgerAccount(id="acc-mortgage", name="Mortgage", offbudget=True),
        LedgerAccount(id="acc-old", name="Old Savings", closed=True),
    ]


@pytest.fixture
def state_path(tmp_path: Path) -> Path:
    """Temporary state file path for testing."""
    return tmp_path / "hp-state.json"


@pytest.fixture
def config(state_path: Path) -> Config:
    """Test configuration: no pacing, single-attempt retry policy."""
    return Config(
        ledger=LedgerConfig(base_url="http://actual.test:3000", budget_id="budget-1"),
        export=ExportConfig(api_url="https://xano.test/api:v1", api_key="xano-key"),
        processing=ProcessingConfig(
            category_group_id=HP_GROUP_ID,
            dry_run=False,
            max_transactions_per_batch=50,
            lookback_days=30,
            pacing_seconds=0,
        ),
        retry=RetryPolicy(max_attempts=1),
        home_assistant=HomeAssistantConfig(token=None),
        state_path=state_path,
    )
