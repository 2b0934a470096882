"""
Xano accounting API client implementation.
"""

import json
import logging
from dataclasses import dataclass

import requests
from requests.adapters import HTTPAdapter

from ..config import RetryPolicy
from ..schemas.export_payload import ExportPayload

logger = logging.getLogger(__name__)


class ExportError(Exception):
    """Base exception for export client errors."""

    pass


class ExportConnectionError(ExportError):
    """Failed to connect to Xano."""

    pass


class ExportAPIError(ExportError):
    """API returned an error response."""

    def __init__(self, status_code: int, message: str, response_body: str | None = None):
        self.status_code = status_code
        self.message = message
        self.response_body = response_body
        super().__init__(f"Xano API error {status_code}: {message}")


@dataclass
class ExportResult:
    """Successful submission result."""

    remote_id: str | None
    response: dict


class ExportClient:
    """
    Client for the Xano accounting API.

    Features:
    - Submit a normalized transaction record (POST /transactions)
    - Static bearer token authentication
    - Retry on connection failures only for submissions, so a request that
      reached Xano is never sent twice
    """

    DEFAULT_TIMEOUT = 30
    TRANSACTIONS_ENDPOINT = "/transactions"

    def __init__(
        self,
        api_url: str,
        api_key: str,
        timeout: int = DEFAULT_TIMEOUT,
        retry_policy: RetryPolicy | None = None,
    ):
        """
        Initialize export client.

        Args:
            api_url: Xano API base URL (e.g., "https://x8ki-letl-twmt.n7.xano.io/api:abc")
            api_key: Bearer token
            timeout: Request timeout in seconds
            retry_policy: Retry policy for transient failures
        """
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        retry_policy = retry_policy or RetryPolicy()

        self.session = requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {api_key}",
                "Accept": "application/json",
                "Content-Type": "application/json",
            }
        )

        adapter = HTTPAdapter(max_retries=retry_policy.build_retry(allowed_methods=("GET",)))
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    def _request(
        self,
        method: str,
        endpoint: str,
        json_data: dict | None = None,
    ) -> dict:
        """Make an API request and return the decoded JSON body."""
        url = f"{self.api_url}{endpoint}"

        logger.debug(f"API Request: {method} {url}")
        if json_data:
            logger.debug(f"Request body: {json.dumps(json_data, indent=2)}")

        try:
            response = self.session.request(
                method=method,
                url=url,
                json=json_data,
                timeout=self.timeout,
            )
        except requests.exceptions.ConnectionError as e:
            logger.error(f"Connection error to {url}: {e}")
            raise ExportConnectionError(f"Failed to connect to Xano at {self.api_url}: {e}") from e
        except requests.exceptions.Timeout as e:
            logger.error(f"Timeout for {url}: {e}")
            raise ExportConnectionError(f"Request to Xano timed out: {e}") from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Request error for {url}: {e}")
            raise ExportError(f"Request failed: {e}") from e

        try:
            body = response.json() if response.content else {}
        except ValueError:
            body = None

        if not response.ok:
            message = response.reason
            if isinstance(body, dict) and body.get("message"):
                message = body["message"]
            elif body is None and response.text:
                message = response.text
            raise ExportAPIError(response.status_code, message, response.text)

        if body is None:
            raise ExportAPIError(response.status_code, "Parse error: invalid JSON", response.text)

        return body

    def submit(self, payload: ExportPayload) -> ExportResult:
        """
        Submit a transaction record to Xano.

        Args:
            payload: Normalized export payload

        Returns:
            ExportResult carrying the Xano record id

        Raises:
            ExportConnectionError: If Xano cannot be reached
            ExportAPIError: If Xano rejects the record
        """
        logger.info(f"Submitting transaction to Xano: {payload.actual_transaction_id}")
        body = self._request("POST", self.TRANSACTIONS_ENDPOINT, json_data=payload.to_dict())

        remote_id = body.get("id") if isinstance(body, dict) else None
        return ExportResult(
            remote_id=str(remote_id) if remote_id is not None else None,
            response=body if isinstance(body, dict) else {"data": body},
        )

    def close(self) -> None:
        """Close the HTTP session."""
        self.session.close()
