"""HTTP client for the WatchMQTT REST API."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests
from requests import Response
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from core.timeseries import Series, TimeWindow, parse_series_set

from .settings import DashboardSettings

LOGGER = logging.getLogger(__name__)

ENDPOINTS: Dict[str, str] = {
    "overview": "/api/v1/overview",
    "traffic": "/api/v1/timeseries/traffic",
    "connections": "/api/v1/timeseries/connections",
    "storage": "/api/v1/timeseries/storage",
    "rollups_24h": "/api/v1/rollups/24h",
}
SERIES_KINDS = ("traffic", "connections", "storage")


class WatchMQTTError(RuntimeError):
    """Request to the WatchMQTT API failed."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class WatchMQTTClient:
    """Thin wrapper over ``requests`` with retries on connection failures."""

    def __init__(
        self,
        base_url: str,
        *,
        session: Optional[requests.Session] = None,
        timeout_s: float = 10.0,
        retries: int = 3,
        backoff_s: float = 1.0,
        default_broker: str = "local",
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout_s = timeout_s
        self.retries = max(1, int(retries))
        self.backoff_s = backoff_s
        self.default_broker = default_broker

    @classmethod
    def from_settings(cls, settings: DashboardSettings, **kwargs: Any) -> "WatchMQTTClient":
        return cls(
            settings.api.base_url,
            timeout_s=settings.api.timeout_s,
            retries=settings.api.retries,
            default_broker=settings.api.default_broker,
            **kwargs,
        )

    def __enter__(self) -> "WatchMQTTClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self.session.close()

    def _request(self, url: str, params: Dict[str, Any]) -> Any:
        try:
            response: Response = self.session.get(url, params=params, timeout=self.timeout_s)
        except (requests.ConnectionError, requests.Timeout) as exc:
            raise ConnectionError(f"Request to {url} failed: {exc}") from exc
        except requests.RequestException as exc:
            raise WatchMQTTError(f"Request to {url} failed: {exc}") from exc
        if response.status_code >= 400:
            raise WatchMQTTError(f"API Error: {response.status_code} for {url}", status_code=response.status_code)
        try:
            return response.json()
        except ValueError as exc:
            raise WatchMQTTError(f"Invalid JSON payload from {url}: {exc}") from exc

    def _get(self, name: str, params: Dict[str, Any]) -> Any:
        url = self.base_url + ENDPOINTS[name]
        LOGGER.info("GET %s %s", url, params)
        retrying = Retrying(
            reraise=True,
            stop=stop_after_attempt(self.retries),
            wait=wait_fixed(self.backoff_s),
            retry=retry_if_exception_type(ConnectionError),
        )
        try:
            return retrying(self._request, url, params)
        except ConnectionError as exc:
            raise WatchMQTTError(f"Network error - check that {self.base_url} is reachable ({exc})") from exc

    def get_overview(self, broker: Optional[str] = None) -> Dict[str, Any]:
        payload = self._get("overview", {"broker": broker or self.default_broker})
        return payload if isinstance(payload, dict) else {}

    def get_rollups_24h(self, broker: Optional[str] = None) -> Dict[str, Any]:
        payload = self._get("rollups_24h", {"broker": broker or self.default_broker})
        return payload if isinstance(payload, dict) else {}

    def get_series(self, kind: str, window: TimeWindow, broker: Optional[str] = None) -> Dict[str, Series]:
        if kind not in SERIES_KINDS:
            raise ValueError(f"Unknown series kind '{kind}'; expected one of {', '.join(SERIES_KINDS)}")
        params = {
            "broker": broker or self.default_broker,
            "from": window.start,
            "to": window.end,
            "step": window.step,
        }
        return parse_series_set(self._get(kind, params))

    def get_traffic(self, window: TimeWindow, broker: Optional[str] = None) -> Dict[str, Series]:
        return self.get_series("traffic", window, broker)

    def get_connections(self, window: TimeWindow, broker: Optional[str] = None) -> Dict[str, Series]:
        return self.get_series("connections", window, broker)

    def get_storage(self, window: TimeWindow, broker: Optional[str] = None) -> Dict[str, Series]:
        return self.get_series("storage", window, broker)


__all__ = ["ENDPOINTS", "SERIES_KINDS", "WatchMQTTClient", "WatchMQTTError"]
