"""Tests for Home Assistant status publishing."""

import json

import pytest
import responses
from requests.exceptions import ConnectionError as RequestsConnectionError

from actual_xano.config import HomeAssistantConfig
from actual_xano.services import (
    HomeAssistantPublisher,
    NullPublisher,
    StatusPublishError,
    create_publisher,
)
from actual_xano.services.status_publisher import (
    AUTOMATION_STATUS_SENSOR,
    COUNTER_SENSORS,
    DEFAULT_SENSOR_STATES,
    LAST_PROCESSING_SENSOR,
    friendly_name,
)
from actual_xano.state_store import Counters

HA_URL = "http://supervisor/core"


def state_url(entity_id: str) -> str:
    return f"{HA_URL}/api/states/{entity_id}"


@pytest.fixture
def publisher() -> HomeAssistantPublisher:
    return HomeAssistantPublisher(HA_URL, "supervisor-token")


class TestHomeAssistantPublisher:
    @responses.activate
    def test_publish_status(self, publisher):
        responses.add(responses.POST, state_url(AUTOMATION_STATUS_SENSOR), json={}, status=200)

        publisher.publish_status("running", {"description": "Processing HP transactions"})

        request = responses.calls[0].request
        assert request.headers["Authorization"] == "Bearer supervisor-token"
        body = json.loads(request.body)
        assert body["state"] == "running"
        assert body["attributes"]["description"] == "Processing HP transactions"
        assert body["attributes"]["friendly_name"] == "HP automation status"
        assert "last_update" in body["attributes"]

    @responses.activate
    def test_publish_counters(self, publisher):
        for entity_id in [*COUNTER_SENSORS.values(), LAST_PROCESSING_SENSOR]:
            responses.add(responses.POST, state_url(entity_id), json={}, status=201)

        counters = Counters(pending=1, submitted=4, paid=2, failed=3, processed_today=5)
        publisher.publish_counters(counters, "2025-03-14T08:00:00+00:00")

        published = {
            call.request.url.rsplit("/", 1)[-1]: json.loads(call.request.body)
            for call in responses.calls
        }
        assert published[COUNTER_SENSORS["submitted"]]["state"] == 4
        assert published[COUNTER_SENSORS["failed"]]["state"] == 3
        last = published[LAST_PROCESSING_SENSOR]
        assert last["state"] == "2025-03-14T08:00:00+00:00"
        assert last["attributes"]["device_class"] == "timestamp"
        assert last["attributes"]["processed_today"] == 5

    @responses.activate
    def test_counters_without_last_processing(self, publisher):
        for entity_id in COUNTER_SENSORS.values():
            responses.add(responses.POST, state_url(entity_id), json={}, status=200)

        publisher.publish_counters(Counters(), None)

        assert len(responses.calls) == len(COUNTER_SENSORS)

    @responses.activate
    def test_rejected_update_raises(self, publisher):
        responses.add(responses.POST, state_url(AUTOMATION_STATUS_SENSOR), status=401)

        with pytest.raises(StatusPublishError, match="HTTP 401"):
            publisher.publish_status("idle")

    @responses.activate
    def test_unreachable_raises(self, publisher):
        responses.add(
            responses.POST,
            state_url(AUTOMATION_STATUS_SENSOR),
            body=RequestsConnectionError("no route to host"),
        )

        with pytest.raises(StatusPublishError):
            publisher.publish_status("idle")

    @responses.activate
    def test_initialize_sensors_reports_failures(self, publisher):
        for entity_id in DEFAULT_SENSOR_STATES:
            status = 500 if entity_id == LAST_PROCESSING_SENSOR else 200
            responses.add(responses.POST, state_url(entity_id), json={}, status=status)

        failed = publisher.initialize_sensors()

        assert failed == [LAST_PROCESSING_SENSOR]
        assert len(responses.calls) == len(DEFAULT_SENSOR_STATES)


class TestCreatePublisher:
    def test_no_token_gives_null_publisher(self):
        assert isinstance(create_publisher(HomeAssistantConfig(token=None)), NullPublisher)

    def test_disabled_gives_null_publisher(self):
        config = HomeAssistantConfig(token="t", enabled=False)
        assert isinstance(create_publisher(config), NullPublisher)

    def test_token_gives_home_assistant_publisher(self):
        publisher = create_publisher(HomeAssistantConfig(token="t"))
        assert isinstance(publisher, HomeAssistantPublisher)
        assert publisher.base_url == HA_URL


def test_null_publisher_accepts_everything():
    publisher = NullPublisher()
    publisher.publish_status("running", {"description": "x"})
    publisher.publish_counters(Counters(), None)


@pytest.mark.parametrize(
    "entity_id,expected",
    [
        ("sensor.actual_budget_hp_failed_transactions", "HP failed transactions"),
        ("sensor.actual_budget_hp_last_processing", "HP last processing"),
    ],
)
def test_friendly_name(entity_id, expected):
    assert friendly_name(entity_id) == expected
