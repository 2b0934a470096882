"""Home Assistant status publishing.

The reconciliation engine reports its state through a StatusPublisher. The
publisher is a best-effort sink: the engine swallows every publishing error,
so a missing or unreachable Home Assistant never changes a run's outcome.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol

import requests

from actual_xano.state_store import utc_now_iso

if TYPE_CHECKING:
    from actual_xano.config import HomeAssistantConfig
    from actual_xano.state_store import Counters

logger = logging.getLogger(__name__)

SENSOR_PREFIX = "sensor.actual_budget_hp_"

AUTOMATION_STATUS_SENSOR = f"{SENSOR_PREFIX}automation_status"
LAST_PROCESSING_SENSOR = f"{SENSOR_PREFIX}last_processing"
COUNTER_SENSORS = {
    "pending": f"{SENSOR_PREFIX}pending_transactions",
    "submitted": f"{SENSOR_PREFIX}submitted_transactions",
    "paid": f"{SENSOR_PREFIX}paid_transactions",
    "failed": f"{SENSOR_PREFIX}failed_transactions",
}

# Values published by `init-sensors` before the first run
DEFAULT_SENSOR_STATES = {
    AUTOMATION_STATUS_SENSOR: "idle",
    **{entity_id: 0 for entity_id in COUNTER_SENSORS.values()},
    LAST_PROCESSING_SENSOR: "never",
}


class StatusPublishError(Exception):
    """Publishing a sensor state failed."""

    pass


def friendly_name(entity_id: str) -> str:
    """Human-readable sensor name.

    Examples:
        friendly_name("sensor.actual_budget_hp_failed_transactions") → "HP failed transactions"
    """
    return entity_id.replace(SENSOR_PREFIX, "HP ").replace("_", " ")


class StatusPublisher(Protocol):
    """Sink for engine status updates."""

    def publish_status(self, status: str, attributes: dict[str, Any] | None = None) -> None:
        """Publish the automation status (running, idle, completed, error)."""

    def publish_counters(self, counters: Counters, last_processing: str | None = None) -> None:
        """Publish per-status counters and the last processing time."""

    def close(self) -> None:
        """Release any connection held by the publisher."""


class NullPublisher:
    """Publisher used when Home Assistant is not configured."""

    def publish_status(self, status: str, attributes: dict[str, Any] | None = None) -> None:
        logger.debug(f"Status: {status} {attributes or {}}")

    def publish_counters(self, counters: Counters, last_processing: str | None = None) -> None:
        logger.debug(f"Counters: {counters.to_dict()}")

    def close(self) -> None:
        pass


class HomeAssistantPublisher:
    """
    Publishes sensor states through the Home Assistant REST API.

    Inside an add-on the API is reached via the supervisor proxy
    (http://supervisor/core/api/states/<entity_id>) with SUPERVISOR_TOKEN.
    """

    def __init__(self, base_url: str, token: str, timeout: int = 10):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
            }
        )

    def update_sensor(
        self,
        entity_id: str,
        state: Any,
        attributes: dict[str, Any] | None = None,
    ) -> None:
        """
        Set a sensor state.

        Raises:
            StatusPublishError: If the request fails or is rejected
        """
        body = {
            "state": state,
            "attributes": {
                "friendly_name": friendly_name(entity_id),
                "last_update": utc_now_iso(),
                **(attributes or {}),
            },
        }
        url = f"{self.base_url}/api/states/{entity_id}"

        try:
            response = self.session.post(url, json=body, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise StatusPublishError(f"Error updating HA sensor {entity_id}: {e}") from e

        if response.status_code not in (200, 201):
            raise StatusPublishError(
                f"Failed to update HA sensor {entity_id}: HTTP {response.status_code}"
            )
        logger.debug(f"Updated HA sensor {entity_id}: {state}")

    def publish_status(self, status: str, attributes: dict[str, Any] | None = None) -> None:
        self.update_sensor(AUTOMATION_STATUS_SENSOR, status, attributes)

    def publish_counters(self, counters: Counters, last_processing: str | None = None) -> None:
        values = counters.to_dict()
        for key, entity_id in COUNTER_SENSORS.items():
            self.update_sensor(entity_id, values[key])
        if last_processing:
            self.update_sensor(
                LAST_PROCESSING_SENSOR,
                last_processing,
                {"device_class": "timestamp", "processed_today": counters.processed_today},
            )

    def initialize_sensors(self) -> list[str]:
        """
        Publish default states for all sensors.

        Returns:
            Entity ids that could not be initialized
        """
        failed = []
        for entity_id, state in DEFAULT_SENSOR_STATES.items():
            try:
                self.update_sensor(entity_id, state)
            except StatusPublishError as e:
                logger.warning(str(e))
                failed.append(entity_id)
        return failed

    def close(self) -> None:
        """Close the HTTP session."""
        self.session.close()


def create_publisher(config: HomeAssistantConfig) -> StatusPublisher:
    """Build the publisher for the given Home Assistant settings."""
    if not config.active:
        logger.info("No supervisor token available, HA sensor updates disabled")
        return NullPublisher()
    return HomeAssistantPublisher(
        base_url=config.supervisor_url,
        token=config.token or "",
        timeout=config.timeout_seconds,
    )
