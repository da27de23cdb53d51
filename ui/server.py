"""FastAPI application serving chart-ready WatchMQTT data."""

from __future__ import annotations

import asyncio
import logging
import threading
import webbrowser
from functools import lru_cache
from typing import Iterator, List, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse
from uvicorn import Config, Server

from core.timeseries import GapPolicy, TimeSeriesError, plan
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
from watchmqtt.dashboard import tiles_as_dicts

from .schemas import CardResponse, ErrorResponse, PlanResponse, RefreshResponse, TableResponse, TileResponse

LOGGER = logging.getLogger(__name__)

ERROR_RESPONSES = {400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}}

router = APIRouter(prefix="/api", responses=ERROR_RESPONSES)


@lru_cache(maxsize=1)
def get_settings() -> DashboardSettings:
    try:
        return load_settings()
    except ConfigurationError as exc:
        LOGGER.error("Dashboard configuration unavailable: %s", exc)
        raise HTTPException(status_code=503, detail=str(exc)) from exc


def get_client(settings: DashboardSettings = Depends(get_settings)) -> Iterator[WatchMQTTClient]:
    client = WatchMQTTClient.from_settings(settings)
    try:
        yield client
    finally:
        client.close()


def _gap(value: Optional[str], settings: DashboardSettings) -> GapPolicy:
    if not value:
        return settings.alignment.gap_policy
    try:
        return GapPolicy.parse(value)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.get("/plan", response_model=PlanResponse)
async def api_plan(
    minutes: float = Query(60.0),
    settings: DashboardSettings = Depends(get_settings),
) -> PlanResponse:
    return PlanResponse.from_window(plan(minutes, policy=settings.planner))


@router.get("/series/{kind}", response_model=TableResponse)
def api_series(
    kind: str,
    broker: Optional[str] = Query(None),
    minutes: float = Query(60.0),
    gap: Optional[str] = Query(None),
    settings: DashboardSettings = Depends(get_settings),
    client: WatchMQTTClient = Depends(get_client),
) -> TableResponse:
    if kind not in SERIES_KINDS:
        raise HTTPException(status_code=404, detail=f"Unknown series kind '{kind}'")
    table = load_series_table(
        client,
        kind,
        broker,
        minutes,
        gap_policy=_gap(gap, settings),
        match=settings.alignment.match,
        policy=settings.planner,
    )
    return TableResponse.from_table(table)


@router.get("/traffic-connections", response_model=TableResponse)
def api_traffic_connections(
    broker: Optional[str] = Query(None),
    minutes: float = Query(60.0),
    gap: Optional[str] = Query(None),
    settings: DashboardSettings = Depends(get_settings),
    client: WatchMQTTClient = Depends(get_client),
) -> TableResponse:
    table = load_traffic_connections(
        client,
        broker,
        minutes,
        gap_policy=_gap(gap, settings),
        match=settings.alignment.match,
        policy=settings.planner,
    )
    return TableResponse.from_table(table)


@router.get("/tiles", response_model=List[TileResponse])
def api_tiles(
    broker: Optional[str] = Query(None),
    settings: DashboardSettings = Depends(get_settings),
    client: WatchMQTTClient = Depends(get_client),
) -> List[TileResponse]:
    tiles = load_traffic_tiles(
        client,
        broker,
        settings.tiles.sample_size,
        window_minutes=settings.tiles.window_minutes,
        policy=settings.planner,
    )
    return [TileResponse(**item) for item in tiles_as_dicts(tiles)]


@router.get("/overview", response_model=List[CardResponse])
def api_overview(
    broker: Optional[str] = Query(None),
    client: WatchMQTTClient = Depends(get_client),
) -> List[CardResponse]:
    return [CardResponse(label=card.label, value=card.value) for card in load_overview_cards(client, broker)]


@router.get("/rollups", response_model=List[CardResponse])
def api_rollups(
    broker: Optional[str] = Query(None),
    client: WatchMQTTClient = Depends(get_client),
) -> List[CardResponse]:
    return [CardResponse(label=card.label, value=card.value) for card in load_rollup_cards(client, broker)]


@router.get("/refresh", response_model=RefreshResponse)
async def api_refresh(settings: DashboardSettings = Depends(get_settings)) -> RefreshResponse:
    refresh = settings.refresh
    return RefreshResponse(
        overview_s=refresh.overview_s,
        timeseries_s=refresh.timeseries_s,
        rollups_s=refresh.rollups_s,
    )


app = FastAPI(title="WatchMQTT dashboard API")
app.include_router(router)


@app.exception_handler(TimeSeriesError)
async def timeseries_error_handler(request: Request, exc: TimeSeriesError) -> JSONResponse:
    LOGGER.warning("Rejected %s: %s", request.url.path, exc)
    return JSONResponse(status_code=400, content={"detail": str(exc), "meta": {"error": type(exc).__name__}})


@app.exception_handler(WatchMQTTError)
async def upstream_error_handler(request: Request, exc: WatchMQTTError) -> JSONResponse:
    LOGGER.error("Upstream failure on %s: %s", request.url.path, exc)
    meta = {"upstream_status": exc.status_code} if exc.status_code is not None else {}
    return JSONResponse(status_code=502, content={"detail": str(exc), "meta": meta})


@app.get("/", include_in_schema=False)
async def root_redirect() -> RedirectResponse:
    return RedirectResponse(url="/docs")


def start_ui(host: str, port: int, open_browser: bool = False) -> None:
    """Start the dashboard API server via uvicorn."""

    config = Config(app=app, host=host, port=port, log_level="info")
    server = Server(config=config)

    if open_browser:
        url = f"http://{host}:{port}/docs"
        threading.Timer(1.0, webbrowser.open, args=(url,)).start()

    asyncio.run(server.serve())
