from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from core.timeseries import AlignedTable, GapPolicy, TimeSeriesError
from core.timeseries.planner import TIME_RANGES, describe_plan, plan
from watchmqtt import (
    SERIES_KINDS,
    ConfigurationError,
    DashboardSettings,
    WatchMQTTClient,
    WatchMQTTError,
    load_overview_cards,
    load_rollup_cards,
    load_series_table,
    load_settings,
    load_traffic_connections,
    load_traffic_tiles,
)

from .common import configure_logging, console, ensure_dir, format_cell

app = typer.Typer(help="WatchMQTT dashboard command line interface")

MAX_ROWS_SHOWN = 40


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug details")) -> None:
    configure_logging("cli", level=logging.DEBUG if verbose else logging.INFO)


def _settings(config: Optional[Path]) -> DashboardSettings:
    try:
        return load_settings(config)
    except ConfigurationError as exc:
        console().print(f"[red]Configuration error:[/] {exc}")
        raise typer.Exit(code=2) from exc


def _build_client(settings: DashboardSettings) -> WatchMQTTClient:
    return WatchMQTTClient.from_settings(settings)


def _gap(value: Optional[str], settings: DashboardSettings) -> GapPolicy:
    if not value:
        return settings.alignment.gap_policy
    try:
        return GapPolicy.parse(value)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _render_table(table: AlignedTable, title: str) -> None:
    grid = Table(title=title)
    grid.add_column("timestamp", justify="right")
    for column in table.columns:
        grid.add_column(column, justify="right")
    records = table.to_records()
    for record in records[-MAX_ROWS_SHOWN:]:
        grid.add_row(*(format_cell(value) for value in record.values()))
    console().print(grid)
    if len(records) > MAX_ROWS_SHOWN:
        console().print(f"[dim]showing last {MAX_ROWS_SHOWN} of {len(records)} rows[/]")


def _fail(exc: Exception) -> None:
    console().print(f"[red]Error:[/] {exc}")
    raise typer.Exit(code=1) from exc


@app.command("plan")
def plan_command(
    minutes: float = typer.Option(60.0, "--minutes", "-m", help="Look-back window in minutes"),
    config: Optional[Path] = typer.Option(None, help="Optional dashboard config override"),
    presets: bool = typer.Option(False, "--presets", help="Plan every preset range"),
) -> None:
    """Show the step-aligned window requested for a look-back length."""
    settings = _settings(config)
    grid = Table(title="Query plan")
    for column in ("range", "from", "to", "step", "points"):
        grid.add_column(column, justify="right")

    ranges = TIME_RANGES if presets else ((f"{minutes:g}m", minutes),)
    try:
        for label, length in ranges:
            info = describe_plan(plan(length, policy=settings.planner))
            grid.add_row(label, *(str(info[key]) for key in ("from", "to", "step", "points")))
    except TimeSeriesError as exc:
        _fail(exc)
    console().print(grid)


@app.command("series")
def series_command(
    kind: str = typer.Argument(..., help=f"One of: {', '.join(SERIES_KINDS + ('traffic-connections',))}"),
    broker: Optional[str] = typer.Option(None, "--broker", "-b"),
    minutes: float = typer.Option(60.0, "--minutes", "-m"),
    gap: Optional[str] = typer.Option(None, "--gap", help="null_fill or zero_fill"),
    out: Optional[Path] = typer.Option(None, help="Write the aligned table as CSV"),
    config: Optional[Path] = typer.Option(None),
) -> None:
    """Fetch a series kind and print it aligned on the planned axis."""
    settings = _settings(config)
    if kind not in SERIES_KINDS and kind != "traffic-connections":
        raise typer.BadParameter(f"Unknown series kind '{kind}'")
    gap_policy = _gap(gap, settings)

    with _build_client(settings) as client:
        try:
            if kind == "traffic-connections":
                table = load_traffic_connections(
                    client,
                    broker,
                    minutes,
                    gap_policy=gap_policy,
                    match=settings.alignment.match,
                    policy=settings.planner,
                )
            else:
                table = load_series_table(
                    client,
                    kind,
                    broker,
                    minutes,
                    gap_policy=gap_policy,
                    match=settings.alignment.match,
                    policy=settings.planner,
                )
        except (TimeSeriesError, WatchMQTTError) as exc:
            _fail(exc)

    if out:
        ensure_dir(out)
        table.to_frame().to_csv(out)
        console().print(f"[green]{out}[/] ready with {len(table)} rows")
        return
    _render_table(table, f"{kind} ({broker or settings.api.default_broker})")


@app.command("tiles")
def tiles_command(
    broker: Optional[str] = typer.Option(None, "--broker", "-b"),
    config: Optional[Path] = typer.Option(None),
) -> None:
    """Show current traffic rates with their recent trend."""
    settings = _settings(config)
    with _build_client(settings) as client:
        try:
            tiles = load_traffic_tiles(
                client,
                broker,
                settings.tiles.sample_size,
                window_minutes=settings.tiles.window_minutes,
                policy=settings.planner,
            )
        except (TimeSeriesError, WatchMQTTError) as exc:
            _fail(exc)

    grid = Table(title="Traffic")
    grid.add_column("Tile")
    grid.add_column("Current", justify="right")
    grid.add_column("Trend")
    for tile in tiles:
        grid.add_row(tile.title, tile.display, " ".join(format_cell(value) for value in tile.trend))
    console().print(grid)


@app.command("overview")
def overview_command(
    broker: Optional[str] = typer.Option(None, "--broker", "-b"),
    config: Optional[Path] = typer.Option(None),
) -> None:
    """Show broker KPI cards."""
    settings = _settings(config)
    with _build_client(settings) as client:
        try:
            cards = load_overview_cards(client, broker)
        except WatchMQTTError as exc:
            _fail(exc)

    grid = Table(title="Overview")
    grid.add_column("Metric")
    grid.add_column("Value", justify="right")
    for card in cards:
        grid.add_row(card.label, card.value)
    console().print(grid)


@app.command("rollups")
def rollups_command(
    broker: Optional[str] = typer.Option(None, "--broker", "-b"),
    config: Optional[Path] = typer.Option(None),
) -> None:
    """Show 24 hour traffic and connection totals."""
    settings = _settings(config)
    with _build_client(settings) as client:
        try:
            cards = load_rollup_cards(client, broker)
        except WatchMQTTError as exc:
            _fail(exc)

    grid = Table(title=f"Last 24h ({broker or settings.api.default_broker})")
    grid.add_column("Metric")
    grid.add_column("Total", justify="right")
    for card in cards:
        grid.add_row(card.label, card.value)
    console().print(grid)


@app.command("serve")
def serve_command(
    host: str = typer.Option("127.0.0.1", "--host", "-h"),
    port: int = typer.Option(8090, "--port", "-p"),
    open_browser: bool = typer.Option(False, "--open/--no-open", help="Open the API docs in a browser"),
) -> None:
    """Start the dashboard JSON API."""
    from ui.server import start_ui

    console().print(f"Starting dashboard API on {host}:{port}")
    try:
        start_ui(host, port, open_browser=open_browser)
    except KeyboardInterrupt:
        console().print("Shutdown requested")


if __name__ == "__main__":
    app()
