"""WatchMQTT API access and dashboard views."""

from .client import ENDPOINTS, SERIES_KINDS, WatchMQTTClient, WatchMQTTError
from .dashboard import (
    Card,
    Tile,
    load_overview_cards,
    load_rollup_cards,
    load_series_table,
    load_traffic_connections,
    load_traffic_tiles,
    overview_cards,
    rollup_cards,
)
from .settings import ConfigurationError, DashboardSettings, RefreshConfig, load_settings, settings_from_dict

__all__ = [
    "Card",
    "ConfigurationError",
    "DashboardSettings",
    "ENDPOINTS",
    "RefreshConfig",
    "SERIES_KINDS",
    "Tile",
    "WatchMQTTClient",
    "WatchMQTTError",
    "load_overview_cards",
    "load_rollup_cards",
    "load_series_table",
    "load_settings",
    "load_traffic_connections",
    "load_traffic_tiles",
    "overview_cards",
    "rollup_cards",
    "settings_from_dict",
]
