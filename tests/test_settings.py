"""Dashboard configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from core.timeseries import GapPolicy, MatchPolicy
from watchmqtt import ConfigurationError, load_settings, settings_from_dict
from tests.conftest import BASE_URL, get_test_logger

logger = get_test_logger(__name__)
logger.info("Starting tests for dashboard settings")


def test_load_settings_from_explicit_path(dashboard_config: Path) -> None:
    settings = load_settings(dashboard_config)
    logger.info("Loaded settings: %s", settings)

    assert settings.api.base_url == BASE_URL
    assert settings.api.retries == 2
    assert settings.api.timeout_s == 2.0
    assert settings.alignment.gap_policy is GapPolicy.NULL_FILL
    assert settings.alignment.match is MatchPolicy.EXACT
    assert settings.planner.target_points == 80
    assert settings.refresh.timeseries_s == 30


def test_env_var_selects_config(monkeypatch: pytest.MonkeyPatch, dashboard_config: Path) -> None:
    monkeypatch.setenv("WATCHMQTT_CONFIG", str(dashboard_config))

    assert load_settings().api.base_url == BASE_URL


def test_repository_config_expands_environment(monkeypatch: pytest.MonkeyPatch, project_root: Path) -> None:
    monkeypatch.setenv("WATCHMQTT_API_BASE_URL", "https://broker.example:8443/")

    settings = load_settings(project_root / "config" / "dashboard.yaml")

    assert settings.api.base_url == "https://broker.example:8443"
    assert settings.planner.tiers[-1] == 21600
    assert settings.tiles.sample_size == 5


def test_missing_environment_variable(project_root: Path) -> None:
    with pytest.raises(ConfigurationError, match="WATCHMQTT_API_BASE_URL"):
        load_settings(project_root / "config" / "dashboard.yaml")


def test_no_config_found(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)

    with pytest.raises(ConfigurationError, match="No configuration file"):
        load_settings()


def test_json_config(tmp_path: Path) -> None:
    path = tmp_path / "dashboard.json"
    path.write_text('{"api": {"base_url": "http://json.test"}, "alignment": {"gap_policy": "zero"}}', encoding="utf-8")

    settings = load_settings(path)

    assert settings.api.base_url == "http://json.test"
    assert settings.alignment.gap_policy is GapPolicy.ZERO_FILL


@pytest.mark.parametrize(
    ("name", "content"),
    [("dashboard.yaml", "api: [unclosed"), ("dashboard.toml", "api = 1")],
)
def test_unreadable_config(tmp_path: Path, name: str, content: str) -> None:
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ConfigurationError):
        load_settings(path)


@pytest.mark.parametrize(
    "raw",
    [
        {},
        {"api": {"base_url": ""}},
        {"api": {"base_url": BASE_URL, "retries": 0}},
        {"api": {"base_url": BASE_URL, "timeout_s": "soon"}},
        {"api": {"base_url": BASE_URL}, "alignment": {"gap_policy": "interpolate"}},
        {"api": {"base_url": BASE_URL}, "planner": {"tiers": [60, 30]}},
        {"api": {"base_url": BASE_URL}, "tiles": {"sample_size": 0}},
        {"api": {"base_url": BASE_URL}, "tiles": {"unknown": 1}},
    ],
)
def test_invalid_settings(raw) -> None:
    with pytest.raises(ConfigurationError):
        settings_from_dict(raw)
