"""
Actual Budget HTTP bridge client implementation.
"""

import logging
from dataclasses import dataclass
from datetime import date

import requests
from requests.adapters import HTTPAdapter

from ..config import RetryPolicy
from ..schemas.markers import append_marker

logger = logging.getLogger(__name__)


class LedgerError(Exception):
    """Base exception for ledger client errors."""

    pass


class LedgerConnectionError(LedgerError):
    """Bridge unreachable, timed out, rejected auth, or kept failing server-side.

    Fatal for the current run.
    """

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class LedgerAPIError(LedgerError):
    """API returned an error response for a specific request."""

    def __init__(self, status_code: int, message: str, response_body: str | None = None):
        self.status_code = status_code
        self.message = message
        self.response_body = response_body
        super().__init__(f"Ledger API error {status_code}: {message}")


class LedgerNotFoundError(LedgerAPIError):
    """Requested budget, account or transaction does not exist."""

    pass


class LedgerValidationError(LedgerAPIError):
    """Request rejected as invalid, or the response could not be parsed."""

    pass


@dataclass
class LedgerAccount:
    """Actual account representation."""

    id: str
    name: str
    offbudget: bool = False
    closed: bool = False

    @property
    def on_budget(self) -> bool:
        return not self.offbudget

    @classmethod
    def from_api_response(cls, data: dict) -> "LedgerAccount":
        return cls(
            id=data["id"],
            name=data.get("name") or "",
            offbudget=bool(data.get("offbudget")),
            closed=bool(data.get("closed")),
        )


@dataclass
class LedgerCategoryGroup:
    """Actual category group representation."""

    id: str
    name: str

    @classmethod
    def from_api_response(cls, data: dict) -> "LedgerCategoryGroup":
        return cls(id=data["id"], name=data.get("name") or "")


@dataclass
class LedgerCategory:
    """Actual category representation.

    Older Actual versions report the group as ``cat_group`` instead of
    ``group_id``; both are accepted.
    """

    id: str
    name: str
    group_id: str | None = None

    @classmethod
    def from_api_response(cls, data: dict) -> "LedgerCategory":
        return cls(
            id=data["id"],
            name=data.get("name") or "",
            group_id=data.get("group_id") or data.get("cat_group"),
        )


@dataclass
class LedgerTransaction:
    """Actual transaction representation.

    amount is a signed integer in minor currency units (cents), as stored by
    Actual. Outflows are negative.
    """

    id: str
    date: date
    amount: int
    payee: str = ""
    account: str | None = None
    category: str | None = None
    notes: str | None = None
    cleared: bool = False

    @classmethod
    def from_api_response(cls, data: dict) -> "LedgerTransaction":
        """Create from bridge API response.

        Raises:
            LedgerValidationError: If id, date or amount are missing or malformed
        """
        try:
            tx_id = str(data["id"])
            tx_date = date.fromisoformat(str(data["date"])[:10])
            amount = int(data["amount"])
        except (KeyError, TypeError, ValueError) as e:
            raise LedgerValidationError(
                422, f"Malformed transaction payload: {e}", response_body=str(data)
            ) from e

        return cls(
            id=tx_id,
            date=tx_date,
            amount=amount,
            payee=data.get("payee_name") or data.get("payee") or "",
            account=data.get("account"),
            category=data.get("category") or None,
            notes=data.get("notes"),
            # Reconciled transactions are always cleared in Actual
            cleared=bool(data.get("cleared") or data.get("reconciled")),
        )


class LedgerClient:
    """
    Client for the Actual Budget HTTP bridge.

    Features:
    - Session lifecycle (open budget, close)
    - Category groups, categories, accounts
    - Transactions per account and date range
    - Notes tagging
    - Automatic retry with backoff (shared RetryPolicy)
    """

    DEFAULT_TIMEOUT = 30

    def __init__(
        self,
        base_url: str,
        budget_id: str | None = None,
        password: str | None = None,
        timeout: int = DEFAULT_TIMEOUT,
        retry_policy: RetryPolicy | None = None,
    ):
        """
        Initialize ledger client.

        Args:
            base_url: Bridge URL (e.g., "http://localhost:3000")
            budget_id: Budget sync id to load; None loads the first budget
            password: Actual server password, forwarded on budget load
            timeout: Request timeout in seconds
            retry_policy: Retry policy for transient failures
        """
        self.base_url = base_url.rstrip("/")
        self.budget_id = budget_id
        self.password = password
        self.timeout = timeout
        self.retry_policy = retry_policy or RetryPolicy()
        self.loaded_budget_id: str | None = None

        # Configure session with retry
        self.session = requests.Session()
        self.session.headers.update(
            {
                "Accept": "application/json",
                "Content-Type": "application/json",
            }
        )

        adapter = HTTPAdapter(max_retries=self.retry_policy.build_retry())
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    def __enter__(self) -> "LedgerClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(
        self,
        method: str,
        endpoint: str,
        params: dict | None = None,
        json_data: dict | None = None,
    ) -> requests.Response:
        """Make an API request with error handling."""
        url = f"{self.base_url}{endpoint}"

        logger.debug(f"API Request: {method} {url}")

        try:
            response = self.session.request(
                method=method,
                url=url,
                params=params,
                json=json_data,
                timeout=self.timeout,
            )
        except requests.exceptions.ConnectionError as e:
            logger.error(f"Connection error to {url}: {e}")
            raise LedgerConnectionError(
                f"Failed to connect to Actual bridge at {self.base_url}: {e}"
            ) from e
        except requests.exceptions.Timeout as e:
            logger.error(f"Timeout for {url}: {e}")
            raise LedgerConnectionError(f"Request to Actual bridge timed out: {e}") from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Request error for {url}: {e}")
            raise LedgerError(f"Request failed: {e}") from e

        logger.debug(f"Response status: {response.status_code}")

        if not response.ok:
            error_body = response.text
            try:
                message = response.json().get("error") or response.reason
            except (ValueError, AttributeError):
                message = response.reason

            logger.error(f"API Error {response.status_code} for {method} {endpoint}: {message}")

            status = response.status_code
            if status == 404:
                raise LedgerNotFoundError(status, message, error_body)
            if status in (400, 422):
                raise LedgerValidationError(status, message, error_body)
            if status in (401, 403) or status >= 500:
                raise LedgerConnectionError(
                    f"Actual bridge error {status}: {message}", status_code=status
                )
            raise LedgerAPIError(status, message, error_body)

        return response

    def _get_list(self, endpoint: str, key: str, params: dict | None = None) -> list[dict]:
        """GET an endpoint returning {"status": "success", key: [...]}."""
        response = self._request("GET", endpoint, params=params)
        try:
            data = response.json()
        except ValueError as e:
            raise LedgerValidationError(
                response.status_code, f"Invalid JSON from {endpoint}", response.text
            ) from e

        items = data.get(key) if isinstance(data, dict) else data
        if not isinstance(items, list):
            raise LedgerValidationError(
                response.status_code,
                f"Expected '{key}' list from {endpoint}",
                response.text,
            )
        return items

    def open_session(self) -> str:
        """
        Open the configured budget on the bridge.

        Loads budget_id, or the first budget reported by the bridge when no
        budget id is configured.

        Returns:
            The loaded budget id

        Raises:
            LedgerConnectionError: If the bridge cannot be reached
            LedgerNotFoundError: If no budget is available
        """
        logger.info("Opening Actual Budget session...")
        self._request("GET", "/")

        budget_id = self.budget_id
        if not budget_id:
            budgets = self._get_list("/budgets", "budgets")
            if not budgets:
                raise LedgerNotFoundError(404, "No budget files found")
            budget = budgets[0]
            budget_id = budget.get("cloudFileId") or budget.get("groupId") or budget.get("id")
            logger.info(f"Loading first available budget: {budget.get('name')} ({budget_id})")
        else:
            logger.info(f"Loading budget file: {budget_id}")

        body = {"budgetId": budget_id}
        if self.password:
            body["password"] = self.password
        self._request("POST", "/load-budget", json_data=body)

        self.loaded_budget_id = budget_id
        logger.info("Budget loaded successfully")
        return budget_id

    def list_category_groups(self) -> list[LedgerCategoryGroup]:
        """List all category groups."""
        return [
            LedgerCategoryGroup.from_api_response(g)
            for g in self._get_list("/category-groups", "groups")
        ]

    def list_categories(self) -> list[LedgerCategory]:
        """List all categories with their group membership."""
        return [
            LedgerCategory.from_api_response(c)
            for c in self._get_list("/categories", "categories")
        ]

    def list_accounts(self) -> list[LedgerAccount]:
        """List all accounts, including off-budget and closed ones."""
        return [LedgerAccount.from_api_response(a) for a in self._get_list("/accounts", "accounts")]

    def list_transactions(
        self,
        account_id: str,
        start_date: date,
        end_date: date,
    ) -> list[LedgerTransaction]:
        """
        List transactions of one account within a date range (inclusive).

        Args:
            account_id: Actual account id
            start_date: First date to include
            end_date: Last date to include

        Returns:
            Transactions in the order the bridge returns them
        """
        params = {
            "accountId": account_id,
            "startDate": start_date.isoformat(),
            "endDate": end_date.isoformat(),
        }
        return [
            LedgerTransaction.from_api_response(t)
            for t in self._get_list("/transactions", "transactions", params=params)
        ]

    def update_notes(self, transaction_id: str, notes: str) -> None:
        """Replace the notes field of a transaction."""
        self._request("PUT", f"/transactions/{transaction_id}", json_data={"notes": notes})

    def add_note_tag(self, transaction: LedgerTransaction, tag: str) -> bool:
        """
        Append a tag to the transaction's notes.

        The local transaction object is updated too, so later checks see the
        tag without a refetch.

        Returns:
            True if the notes were written, False if the tag was already present
        """
        new_notes = append_marker(transaction.notes, tag)
        if new_notes == (transaction.notes or ""):
            logger.debug(f"Transaction {transaction.id} already tagged with {tag}")
            return False

        self.update_notes(transaction.id, new_notes)
        transaction.notes = new_notes
        logger.info(f'Added tag "{tag}" to transaction {transaction.id}')
        return True

    def close(self) -> None:
        """Close the HTTP session."""
        self.session.close()
        self.loaded_budget_id = None
        logger.info("Actual Budget session closed")
