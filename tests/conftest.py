"""Shared pytest configuration and fixtures for the WatchMQTT dashboard."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Dict, Iterable, Optional

import pytest

from core.timeseries import TimeWindow
from tests.helpers import FakeSession

LOGS_ROOT = Path(__file__).resolve().parents[1] / "logs" / "tests"
SESSION_LOG = LOGS_ROOT / "pytest.session.log"
_MODULE_HANDLERS: Dict[str, logging.Handler] = {}

# fixed clock, a multiple of every default tier
FIXED_NOW = 1_700_006_400
BASE_URL = "http://watchmqtt.test"


def _initialise_logging() -> None:
    LOGS_ROOT.mkdir(parents=True, exist_ok=True)
    (LOGS_ROOT / ".gitkeep").touch(exist_ok=True)

    handler = logging.FileHandler(SESSION_LOG, mode="w", encoding="utf-8")
    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(logging.INFO)
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)


def get_test_logger(module_name: str) -> logging.Logger:
    """Return a logger writing into ``logs/tests/<module>.log``."""
    normalised = module_name.replace("tests.", "")
    logger = logging.getLogger(f"tests.{normalised}")
    logger.setLevel(logging.INFO)
    if normalised not in _MODULE_HANDLERS:
        LOGS_ROOT.mkdir(parents=True, exist_ok=True)
        log_path = LOGS_ROOT / f"{normalised}.log"
        handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
        logger.addHandler(handler)
        _MODULE_HANDLERS[normalised] = handler
    return logger


@pytest.hookimpl(tryfirst=True)
def pytest_configure(config: pytest.Config) -> None:  # noqa: D401 - pytest hook
    _initialise_logging()


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item: pytest.Item, call: pytest.CallInfo[None]) -> Iterable[pytest.TestReport]:
    outcome = yield
    report = outcome.get_result()
    if report.outcome != "failed":
        return
    module = getattr(item, "module", None)
    module_name = getattr(module, "__name__", "tests")
    target = LOGS_ROOT / f"{module_name.split('.')[-1]}.log"
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("a", encoding="utf-8") as handle:
        handle.write("\n=== TEST FAILURE ===\n")
        handle.write(f"nodeid: {item.nodeid}\n")
        handle.write(f"phase: {report.when}\n")
        handle.write(str(report.longrepr))
        handle.write("\n")


@pytest.fixture(scope="session")
def project_root() -> Path:
    return Path(__file__).resolve().parents[1]


@pytest.fixture
def window() -> TimeWindow:
    return TimeWindow(start=1000, end=1060, step=15)


@pytest.fixture
def dashboard_config(tmp_path: Path) -> Path:
    path = tmp_path / "dashboard.yaml"
    path.write_text(
        "\n".join(
            [
                "api:",
                f"  base_url: {BASE_URL}/",
                "  default_broker: local",
                "  timeout_s: 2",
                "  retries: 2",
                "alignment:",
                "  gap_policy: null_fill",
                "  match: exact",
                "tiles:",
                "  sample_size: 5",
                "  window_minutes: 5",
            ]
        )
        + "\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def make_client() -> Callable[..., "WatchMQTTClient"]:
    from watchmqtt import WatchMQTTClient

    def _factory(routes: Optional[Dict[str, object]] = None, **kwargs: object) -> WatchMQTTClient:
        kwargs.setdefault("backoff_s", 0)
        return WatchMQTTClient(BASE_URL, session=FakeSession(routes), **kwargs)

    return _factory


@pytest.fixture(autouse=True)
def clear_watchmqtt_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ("WATCHMQTT_CONFIG", "WATCHMQTT_API_BASE_URL"):
        monkeypatch.delenv(key, raising=False)


__all__ = [
    "BASE_URL",
    "FIXED_NOW",
    "get_test_logger",
]
