"""HTTP client behaviour against a fake session."""

from __future__ import annotations

import pytest
import requests

from core.timeseries import TimeWindow
from watchmqtt import ENDPOINTS, WatchMQTTClient, WatchMQTTError, settings_from_dict
from tests.conftest import BASE_URL, get_test_logger
from tests.helpers import FakeHttpResponse, FakeSession, build_overview_payload, build_series_payload

logger = get_test_logger(__name__)
logger.info("Starting tests for WatchMQTT client")

WINDOW = TimeWindow(start=1000, end=1060, step=15)


def test_get_series_sends_window_params(make_client) -> None:
    payload = build_series_payload({"messages_sent_per_sec_1m": [[1000, 1.5], [1015, 2.5]]})
    client = make_client({ENDPOINTS["traffic"]: payload})

    series = client.get_traffic(WINDOW, broker="edge-1")

    url, params = client.session.calls[0]
    logger.info("Requested %s with %s", url, params)
    assert url == BASE_URL + "/api/v1/timeseries/traffic"
    assert params == {"broker": "edge-1", "from": 1000, "to": 1060, "step": 15}
    assert series["messages_sent_per_sec_1m"].values() == [1.5, 2.5]


def test_default_broker_used(make_client) -> None:
    client = make_client({ENDPOINTS["storage"]: {"series": []}}, default_broker="core")

    assert client.get_storage(WINDOW) == {}
    assert client.session.calls[0][1]["broker"] == "core"


def test_http_error_not_retried(make_client) -> None:
    client = make_client({ENDPOINTS["connections"]: FakeHttpResponse({}, status_code=500)}, retries=3)

    with pytest.raises(WatchMQTTError) as excinfo:
        client.get_connections(WINDOW)

    assert excinfo.value.status_code == 500
    assert len(client.session.calls) == 1


def test_connection_error_retried_then_succeeds(make_client) -> None:
    payload = build_series_payload({"connected": [[1000, 3]]})
    client = make_client(
        {ENDPOINTS["connections"]: [requests.ConnectionError("refused"), requests.Timeout("slow"), payload]},
        retries=3,
    )

    series = client.get_connections(WINDOW)

    assert series["connected"].values() == [3.0]
    assert len(client.session.calls) == 3


def test_connection_error_exhausts_retries(make_client) -> None:
    client = make_client({ENDPOINTS["overview"]: requests.ConnectionError("down")}, retries=2)

    with pytest.raises(WatchMQTTError, match="Network error") as excinfo:
        client.get_overview()

    assert excinfo.value.status_code is None
    assert len(client.session.calls) == 2


def test_invalid_json_rejected(make_client) -> None:
    client = make_client({ENDPOINTS["traffic"]: FakeHttpResponse(None, invalid_json=True)})

    with pytest.raises(WatchMQTTError, match="Invalid JSON"):
        client.get_traffic(WINDOW)


def test_unknown_kind(make_client) -> None:
    with pytest.raises(ValueError):
        make_client().get_series("latency", WINDOW)


def test_overview_and_rollups(make_client) -> None:
    client = make_client(
        {
            ENDPOINTS["overview"]: build_overview_payload(),
            ENDPOINTS["rollups_24h"]: FakeHttpResponse(["not", "a", "dict"]),
        }
    )

    assert client.get_overview()["connected"] == 4
    assert client.get_rollups_24h() == {}


def test_from_settings_and_context_manager() -> None:
    settings = settings_from_dict({"api": {"base_url": BASE_URL + "/", "retries": 4, "default_broker": "edge"}})
    session = FakeSession()

    with WatchMQTTClient.from_settings(settings, session=session, backoff_s=0) as client:
        assert client.base_url == BASE_URL
        assert client.retries == 4
        assert client.default_broker == "edge"

    assert session.closed
