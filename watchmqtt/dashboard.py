"""Chart-ready views assembled from WatchMQTT API responses."""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from core.timeseries import (
    AlignedTable,
    GapPolicy,
    MatchPolicy,
    Series,
    StepPolicy,
    align,
    format_bytes,
    format_count,
    format_rate,
    format_throughput,
    format_uptime,
    is_all_gap,
    is_numeric,
    merge,
    plan,
    tail_series_set,
)

from .client import WatchMQTTClient

LOGGER = logging.getLogger(__name__)

TRAFFIC_TILES: Tuple[Tuple[str, str, str], ...] = (
    ("Messages Sent", "messages_sent_per_sec_1m", "messages"),
    ("Messages Received", "messages_received_per_sec_1m", "messages"),
    ("Bytes Sent", "bytes_sent_per_sec_1m", "bytes"),
    ("Bytes Received", "bytes_received_per_sec_1m", "bytes"),
)
TILE_WINDOW_MINUTES = 5


@dataclass(slots=True)
class Tile:
    title: str
    series: str
    unit: str
    value: float
    display: str
    trend: List[Optional[float]] = field(default_factory=list)


@dataclass(slots=True)
class Card:
    label: str
    value: str


def load_series_table(
    client: WatchMQTTClient,
    kind: str,
    broker: Optional[str] = None,
    window_minutes: float = 60,
    *,
    gap_policy: GapPolicy = GapPolicy.NULL_FILL,
    match: MatchPolicy = MatchPolicy.EXACT,
    policy: Optional[StepPolicy] = None,
    now: Optional[float] = None,
) -> AlignedTable:
    """Plan the window, fetch one series kind and align it onto the window axis."""
    window = plan(window_minutes, now=now, policy=policy)
    series_set = client.get_series(kind, window, broker)
    table = align(series_set, window, gap_policy, match=match)
    if series_set and is_all_gap(table):
        LOGGER.warning("%s data for broker %s has no samples in %s", kind, broker or client.default_broker, window.to_dict())
    return table


def load_traffic_connections(
    client: WatchMQTTClient,
    broker: Optional[str] = None,
    window_minutes: float = 60,
    *,
    gap_policy: GapPolicy = GapPolicy.NULL_FILL,
    match: MatchPolicy = MatchPolicy.EXACT,
    policy: Optional[StepPolicy] = None,
    now: Optional[float] = None,
) -> AlignedTable:
    """Fetch traffic and connections concurrently and merge them into one table."""
    window = plan(window_minutes, now=now, policy=policy)
    with ThreadPoolExecutor(max_workers=2, thread_name_prefix="watchmqtt-fetch") as pool:
        traffic_future = pool.submit(client.get_series, "traffic", window, broker)
        connections_future = pool.submit(client.get_series, "connections", window, broker)
        traffic = traffic_future.result()
        connections = connections_future.result()

    tables = [
        align(traffic, window, gap_policy, match=match),
        align(connections, window, gap_policy, match=match),
    ]
    merged = merge(tables)
    LOGGER.info(
        "Merged %d traffic and %d connection series over %d rows",
        len(traffic),
        len(connections),
        len(merged),
    )
    return merged


def _latest_value(series: Optional[Series]) -> float:
    if series is None or not series.points:
        return 0.0
    value = series.sorted().points[-1].value
    return float(value) if value is not None else 0.0


def load_traffic_tiles(
    client: WatchMQTTClient,
    broker: Optional[str] = None,
    sample_size: int = 5,
    *,
    window_minutes: float = TILE_WINDOW_MINUTES,
    policy: Optional[StepPolicy] = None,
    now: Optional[float] = None,
) -> List[Tile]:
    window = plan(window_minutes, now=now, policy=policy)
    series_set = client.get_series("traffic", window, broker)
    trends = tail_series_set(series_set, sample_size)

    tiles: List[Tile] = []
    for title, name, unit in TRAFFIC_TILES:
        value = _latest_value(series_set.get(name))
        tiles.append(
            Tile(
                title=title,
                series=name,
                unit=unit,
                value=value,
                display=format_throughput(value, unit),
                trend=trends.get(name, []),
            )
        )
    return tiles


def _count(overview: Dict[str, Any], key: str) -> float:
    value = overview.get(key)
    return float(value) if is_numeric(value) and value > 0 else 0.0


def _connection_status(overview: Dict[str, Any]) -> str:
    connected = _count(overview, "connected")
    disconnected = _count(overview, "disconnected")
    if connected > 0 and disconnected == 0:
        return "Healthy"
    total = connected + disconnected
    if total == 0:
        return "No Clients"
    ratio = connected / total
    if ratio >= 0.9:
        return "Healthy"
    if ratio >= 0.7:
        return "Warning"
    return "Critical"


def overview_cards(overview: Dict[str, Any]) -> List[Card]:
    bytes_per_sec = overview.get("bytes_sent_per_sec_1m")
    return [
        Card("Connection Status", _connection_status(overview)),
        Card("Connected Clients", format_count(overview.get("connected"))),
        Card("Active Clients", format_count(overview.get("active"))),
        Card("Subscriptions", format_count(overview.get("subscriptions"))),
        Card("Retained Messages", format_count(overview.get("retained"))),
        Card("Messages/sec", format_rate(overview.get("messages_sent_per_sec_1m"))),
        Card("Bytes/sec", format_bytes(bytes_per_sec) + "/s" if bytes_per_sec else "0"),
        Card("Uptime", format_uptime(overview.get("uptime_seconds"))),
    ]


def load_overview_cards(client: WatchMQTTClient, broker: Optional[str] = None) -> List[Card]:
    return overview_cards(client.get_overview(broker))


def rollup_cards(rollups: Dict[str, Any]) -> List[Card]:
    """24 hour totals; missing or malformed fields render as zero."""
    return [
        Card("24h Messages Sent", format_count(rollups.get("msgs_sent_total_24h"))),
        Card("24h Messages Received", format_count(rollups.get("msgs_received_total_24h"))),
        Card("24h Data Sent", format_bytes(rollups.get("bytes_sent_total_24h"))),
        Card("24h Data Received", format_bytes(rollups.get("bytes_received_total_24h"))),
        Card("24h Avg Connections", format_count(rollups.get("avg_connections_24h"))),
        Card("24h Peak Connections", format_count(rollups.get("peak_connections_24h"))),
    ]


def load_rollup_cards(client: WatchMQTTClient, broker: Optional[str] = None) -> List[Card]:
    return rollup_cards(client.get_rollups_24h(broker))


def tiles_as_dicts(tiles: Sequence[Tile]) -> List[Dict[str, Any]]:
    return [
        {
            "title": tile.title,
            "series": tile.series,
            "unit": tile.unit,
            "value": tile.value,
            "display": tile.display,
            "trend": list(tile.trend),
        }
        for tile in tiles
    ]


__all__ = [
    "Card",
    "TRAFFIC_TILES",
    "Tile",
    "load_overview_cards",
    "load_rollup_cards",
    "load_series_table",
    "load_traffic_connections",
    "load_traffic_tiles",
    "overview_cards",
    "rollup_cards",
    "tiles_as_dicts",
]
