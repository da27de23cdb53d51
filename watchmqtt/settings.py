"""Dashboard configuration loaded from YAML with ``${VAR}`` expansion."""
from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from core.timeseries import GapPolicy, MatchPolicy, StepPolicy

_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z0-9_]+)\}")
DEFAULT_CONFIG_PATH = Path("config") / "dashboard.yaml"
CONFIG_ENV = "WATCHMQTT_CONFIG"


class ConfigurationError(RuntimeError):
    """Raised when the dashboard configuration is missing or invalid."""


@dataclass(slots=True)
class ApiConfig:
    base_url: str
    default_broker: str = "local"
    timeout_s: float = 10.0
    retries: int = 3


@dataclass(slots=True)
class AlignmentConfig:
    gap_policy: GapPolicy = GapPolicy.NULL_FILL
    match: MatchPolicy = MatchPolicy.EXACT


@dataclass(slots=True)
class TileConfig:
    sample_size: int = 5
    window_minutes: int = 5


@dataclass(slots=True)
class RefreshConfig:
    overview_s: int = 300
    timeseries_s: int = 30
    rollups_s: int = 300


@dataclass(slots=True)
class DashboardSettings:
    api: ApiConfig
    planner: StepPolicy = field(default_factory=StepPolicy)
    alignment: AlignmentConfig = field(default_factory=AlignmentConfig)
    tiles: TileConfig = field(default_factory=TileConfig)
    refresh: RefreshConfig = field(default_factory=RefreshConfig)


def _expand_env_values(value: object, *, source: Optional[Path] = None) -> object:
    if isinstance(value, dict):
        return {key: _expand_env_values(val, source=source) for key, val in value.items()}
    if isinstance(value, list):
        return [_expand_env_values(item, source=source) for item in value]
    if isinstance(value, str):
        def replacer(match: re.Match[str]) -> str:
            var_name = match.group(1)
            if var_name not in os.environ:
                location = f" in config '{source}'" if source else ""
                raise ConfigurationError(f"Environment variable '{var_name}' referenced{location} is not set")
            return os.environ[var_name]

        return _ENV_VAR_PATTERN.sub(replacer, value)
    return value


def _load_file(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    try:
        suffix = path.suffix.lower()
        if suffix in {".yaml", ".yml"}:
            return yaml.safe_load(text) or {}
        if suffix == ".json":
            return json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"Invalid configuration format: {exc}") from exc
    raise ConfigurationError("Unsupported configuration format; use YAML or JSON")


def settings_from_dict(raw: Dict[str, Any]) -> DashboardSettings:
    api_raw = raw.get("api") or {}
    base_url = api_raw.get("base_url")
    if not base_url:
        raise ConfigurationError("`api.base_url` is required")
    try:
        api = ApiConfig(
            base_url=str(base_url).rstrip("/"),
            default_broker=str(api_raw.get("default_broker", "local")),
            timeout_s=float(api_raw.get("timeout_s", 10.0)),
            retries=int(api_raw.get("retries", 3)),
        )
        planner = StepPolicy.from_config(raw.get("planner"))
        alignment_raw = raw.get("alignment") or {}
        alignment = AlignmentConfig(
            gap_policy=GapPolicy.parse(alignment_raw.get("gap_policy", GapPolicy.NULL_FILL)),
            match=MatchPolicy.parse(alignment_raw.get("match", MatchPolicy.EXACT)),
        )
        tiles = TileConfig(**(raw.get("tiles") or {}))
        refresh = RefreshConfig(**(raw.get("refresh") or {}))
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid dashboard configuration: {exc}") from exc

    if api.retries < 1:
        raise ConfigurationError("`api.retries` must be at least 1")
    if tiles.sample_size < 1:
        raise ConfigurationError("`tiles.sample_size` must be positive")
    return DashboardSettings(api=api, planner=planner, alignment=alignment, tiles=tiles, refresh=refresh)


def load_settings(path: Optional[Path | str] = None) -> DashboardSettings:
    candidate_paths: List[Path] = []
    if path:
        candidate_paths.append(Path(path))
    env_path = os.getenv(CONFIG_ENV)
    if env_path:
        candidate_paths.append(Path(env_path))
    candidate_paths.append(DEFAULT_CONFIG_PATH)

    for candidate in candidate_paths:
        if candidate.exists():
            raw = _load_file(candidate)
            config_path = candidate
            break
    else:
        raise ConfigurationError("No configuration file found")

    expanded = _expand_env_values(raw, source=config_path)
    return settings_from_dict(expanded)


__all__ = [
    "AlignmentConfig",
    "ApiConfig",
    "ConfigurationError",
    "DashboardSettings",
    "RefreshConfig",
    "TileConfig",
    "load_settings",
    "settings_from_dict",
]
