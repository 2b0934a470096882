"""
Configuration management (SSOT).

This module defines ALL configuration for the Actual → Xano exporter.
All config keys are defined here; no other module should invent config keys
or read environment variables on its own.

The environment variable names match the ones exported by the Home Assistant
add-on wrapper (ACTUAL_BUDGET_URL, HP_DRY_RUN_MODE, XANO_API_KEY, ...), so the
same container environment drives both.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml
from urllib3.util.retry import Retry

DEFAULT_CATEGORY_GROUP_ID = "a85d9076-d269-4eb4-ab58-92d2f37997c6"


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    pass


@dataclass
class RetryPolicy:
    """Retry policy shared by every HTTP client (SSOT).

    Applied at the client boundary only. The reconciliation engine never
    retries on its own; a failed run is retried by the next trigger.
    """

    # Total attempts including the first one
    max_attempts: int = 3
    # urllib3 backoff: sleep = backoff_factor * 2 ** (retry - 1)
    backoff_factor: float = 0.5
    status_forcelist: tuple[int, ...] = (429, 500, 502, 503, 504)

    def build_retry(self, allowed_methods: tuple[str, ...] = ("GET", "PUT", "POST")) -> Retry:
        """Build the urllib3 Retry mounted on a requests session.

        Args:
            allowed_methods: Methods that may be retried after the request
                reached the server. Connection failures are retried for
                every method, since the request was never sent.
        """
        return Retry(
            total=max(self.max_attempts - 1, 0),
            backoff_factor=self.backoff_factor,
            status_forcelist=list(self.status_forcelist),
            allowed_methods=list(allowed_methods),
            raise_on_status=False,
        )


@dataclass
class LedgerConfig:
    """Actual Budget HTTP bridge configuration.

    The bridge holds the Actual server session; password is only forwarded
    when loading a budget.
    """

    base_url: str = "http://localhost:3000"
    password: str | None = None
    # Budget sync id; None means "first budget the bridge reports"
    budget_id: str | None = None
    timeout_seconds: int = 30


@dataclass
class ExportConfig:
    """Xano accounting API configuration."""

    api_url: str = ""
    api_key: str = ""
    timeout_seconds: int = 30


@dataclass
class ProcessingConfig:
    """HP transaction processing settings."""

    category_group_id: str = DEFAULT_CATEGORY_GROUP_ID
    dry_run: bool = False
    max_transactions_per_batch: int = 50
    # Transactions older than this are never fetched
    lookback_days: int = 30
    # Delay between two submissions (rate limiting)
    pacing_seconds: float = 1.0


@dataclass
class HomeAssistantConfig:
    """Home Assistant sensor publishing configuration."""

    supervisor_url: str = "http://supervisor/core"
    token: str | None = None
    enabled: bool = True
    timeout_seconds: int = 10

    @property
    def active(self) -> bool:
        """Publishing is only possible with a supervisor token."""
        return self.enabled and bool(self.token)


@dataclass
class Config:
    """Application configuration (SSOT).

    Built once by load_config() and passed by reference to every component.
    """

    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    processing: ProcessingConfig = field(default_factory=ProcessingConfig)
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    home_assistant: HomeAssistantConfig = field(default_factory=HomeAssistantConfig)
    state_path: Path = field(default_factory=lambda: Path("/data/hp-state.json"))
    log_file: Path | None = None

    def validate(self) -> list[str]:
        """Validate configuration completeness and consistency.

        Returns:
            List of validation errors (empty if valid)
        """
        errors: list[str] = []

        if not self.ledger.base_url:
            errors.append("ledger.base_url is required")

        # Xano is never contacted in dry-run mode
        if not self.processing.dry_run:
            if not self.export.api_url:
                errors.append("export.api_url is required (XANO_API_URL)")
            if not self.export.api_key:
                errors.append("export.api_key is required (XANO_API_KEY)")

        if not self.processing.category_group_id:
            errors.append("processing.category_group_id is required")
        if self.processing.max_transactions_per_batch < 1:
            errors.append("processing.max_transactions_per_batch must be >= 1")
        if self.processing.lookback_days < 0:
            errors.append("processing.lookback_days must be >= 0")
        if self.processing.pacing_seconds < 0:
            errors.append("processing.pacing_seconds must be >= 0")
        if self.retry.max_attempts < 1:
            errors.append("retry.max_attempts must be >= 1")

        return errors

    def require_valid(self) -> None:
        """Raise ConfigValidationError if validate() reports problems."""
        errors = self.validate()
        if errors:
            raise ConfigValidationError("; ".join(errors))


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name, "").strip().lower()
    if value == "true":
        return True
    if value == "false":
        return False
    return default


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name, "")
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default  # Keep default


def _as_int(value, key: str) -> int:
    """Coerce a YAML value to int; numeric strings are accepted."""
    if isinstance(value, bool):
        raise ConfigValidationError(f"{key} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigValidationError(f"{key} must be an integer, got {value!r}") from None


def _as_float(value, key: str) -> float:
    if isinstance(value, bool):
        raise ConfigValidationError(f"{key} must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigValidationError(f"{key} must be a number, got {value!r}") from None


def _as_bool(value, key: str) -> bool:
    """Coerce a YAML value to bool; "true"/"false" strings are accepted."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ConfigValidationError(f"{key} must be true or false, got {value!r}")


def load_config(config_path: Path) -> Config:
    """
    Load configuration from YAML file.

    Raises:
        ConfigValidationError: If a value has the wrong type

    Environment variables override config values:
    - ACTUAL_BUDGET_URL, ACTUAL_BUDGET_PASSWORD, ACTUAL_BUDGET_SYNC_ID
    - XANO_API_URL, XANO_API_KEY
    - HP_CATEGORY_GROUP_ID, HP_DRY_RUN_MODE (true/false)
    - HP_MAX_TRANSACTIONS_PER_BATCH, HP_RETRY_ATTEMPTS
    - SUPERVISOR_TOKEN
    - HP_STATE_FILE, HP_LOG_FILE
    """
    if config_path.exists():
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    else:
        data = {}

    # Ledger config
    ledger_data = data.get("ledger", {})
    ledger = LedgerConfig(
        base_url=os.environ.get(
            "ACTUAL_BUDGET_URL", ledger_data.get("base_url", "http://localhost:3000")
        ),
        password=os.environ.get("ACTUAL_BUDGET_PASSWORD", ledger_data.get("password")),
        budget_id=os.environ.get("ACTUAL_BUDGET_SYNC_ID", ledger_data.get("budget_id")),
        timeout_seconds=_as_int(
            ledger_data.get("timeout_seconds", 30), "ledger.timeout_seconds"
        ),
    )

    # Export config
    export_data = data.get("export", {})
    export = ExportConfig(
        api_url=os.environ.get("XANO_API_URL", export_data.get("api_url", "")),
        api_key=os.environ.get("XANO_API_KEY", export_data.get("api_key", "")),
        timeout_seconds=_as_int(
            export_data.get("timeout_seconds", 30), "export.timeout_seconds"
        ),
    )

    # Processing config
    proc_data = data.get("processing", {})
    processing = ProcessingConfig(
        category_group_id=os.environ.get(
            "HP_CATEGORY_GROUP_ID",
            proc_data.get("category_group_id", DEFAULT_CATEGORY_GROUP_ID),
        ),
        dry_run=_env_bool(
            "HP_DRY_RUN_MODE", _as_bool(proc_data.get("dry_run", False), "processing.dry_run")
        ),
        max_transactions_per_batch=_env_int(
            "HP_MAX_TRANSACTIONS_PER_BATCH",
            _as_int(
                proc_data.get("max_transactions_per_batch", 50),
                "processing.max_transactions_per_batch",
            ),
        ),
        lookback_days=_as_int(proc_data.get("lookback_days", 30), "processing.lookback_days"),
        pacing_seconds=_as_float(
            proc_data.get("pacing_seconds", 1.0), "processing.pacing_seconds"
        ),
    )

    # Retry policy
    retry_data = data.get("retry", {})
    retry = RetryPolicy(
        max_attempts=_env_int(
            "HP_RETRY_ATTEMPTS", _as_int(retry_data.get("max_attempts", 3), "retry.max_attempts")
        ),
        backoff_factor=_as_float(
            retry_data.get("backoff_factor", 0.5), "retry.backoff_factor"
        ),
        status_forcelist=tuple(
            _as_int(code, "retry.status_forcelist")
            for code in retry_data.get("status_forcelist", (429, 500, 502, 503, 504))
        ),
    )

    # Home Assistant
    ha_data = data.get("home_assistant", {})
    home_assistant = HomeAssistantConfig(
        supervisor_url=ha_data.get("supervisor_url", "http://supervisor/core"),
        token=os.environ.get("SUPERVISOR_TOKEN", ha_data.get("token")),
        enabled=_as_bool(ha_data.get("enabled", True), "home_assistant.enabled"),
        timeout_seconds=_as_int(
            ha_data.get("timeout_seconds", 10), "home_assistant.timeout_seconds"
        ),
    )

    state_path = os.environ.get("HP_STATE_FILE", data.get("state_path", "/data/hp-state.json"))
    log_file = os.environ.get("HP_LOG_FILE", data.get("log_file"))

    return Config(
        ledger=ledger,
        export=export,
        processing=processing,
        retry=retry,
        home_assistant=home_assistant,
        state_path=Path(state_path),
        log_file=Path(log_file) if log_file else None,
    )


def create_default_config(config_path: Path) -> None:
    """Create a default configuration file."""
    default_config = f"""# Actual Budget → Xano HP export configuration
#
# Every value can be overridden by the environment variable noted next to it.

ledger:
  base_url: "http://localhost:3000"       # Actual HTTP bridge (ACTUAL_BUDGET_URL)
  password: null                          # Actual server password (ACTUAL_BUDGET_PASSWORD)
  budget_id: null                         # Sync id, null = first budget (ACTUAL_BUDGET_SYNC_ID)
  timeout_seconds: 30

export:
  api_url: "https://example.xano.io/api:v1"  # Xano API base (XANO_API_URL)
  api_key: "YOUR_XANO_API_KEY"            # Bearer token (XANO_API_KEY)
  timeout_seconds: 30

processing:
  category_group_id: "{DEFAULT_CATEGORY_GROUP_ID}"  # HP_CATEGORY_GROUP_ID
  dry_run: false                          # HP_DRY_RUN_MODE
  max_transactions_per_batch: 50          # HP_MAX_TRANSACTIONS_PER_BATCH
  lookback_days: 30                       # Only fetch transactions this recent
  pacing_seconds: 1.0                     # Delay between submissions

# Applied to every HTTP client
retry:
  max_attempts: 3                         # HP_RETRY_ATTEMPTS
  backoff_factor: 0.5
  status_forcelist: [429, 500, 502, 503, 504]

home_assistant:
  supervisor_url: "http://supervisor/core"
  token: null                             # SUPERVISOR_TOKEN
  enabled: true

state_path: "/data/hp-state.json"         # HP_STATE_FILE
log_file: null                            # HP_LOG_FILE, e.g. /data/hp-processing.log
"""

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        f.write(default_config)
