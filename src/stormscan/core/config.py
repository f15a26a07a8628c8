"""Configuration loading and resolution."""

from __future__ import annotations

import math
from copy import deepcopy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union

import yaml


class ConfigurationError(ValueError):
    """Raised when configuration is invalid."""


MAX_DISTANCE_DEG = 180.0

DEFAULT_CONFIG: dict[str, Any] = {
    "grid": {
        "regional": False,
    },
    "cyclones": {
        "warm_core_dist": 0.0,
        "no_warm_core_dist": 0.0,
        "min_laplacian": 0.0,
        "wind_search_dist": 0.0,
        "variables": {
            "psl": "PSL",
            "u850": "U850",
            "v850": "V850",
            "t200": "T200",
            "t500": "T500",
        },
    },
    "rivers": {
        "variable": "IWV",
        "laplacian_size": 5,
        "min_laplacian": 1.5,
        "min_abs_lat": 15.0,
        "min_value": 20.0,
        "zonal_mean_weight": 0.7,
        "zonal_max_weight": 0.3,
        "merid_mean_weight": 0.9,
        "merid_max_weight": 0.1,
        "min_area": 0,
        "laplacian_out": False,
    },
}


@dataclass(frozen=True)
class NoWarmCoreCheck:
    """Candidates are not tested against upper-level temperature maxima."""


@dataclass(frozen=True)
class RequireProximity:
    """Keep a candidate only if both T200 and T500 maxima lie within ``distance_deg``."""

    distance_deg: float


@dataclass(frozen=True)
class RequireSeparation:
    """Keep a candidate only if a T200 or T500 maximum lies at least ``distance_deg`` away."""

    distance_deg: float


WarmCoreCriterion = Union[NoWarmCoreCheck, RequireProximity, RequireSeparation]


@dataclass(frozen=True)
class CycloneConfig:
    warm_core: WarmCoreCriterion = NoWarmCoreCheck()
    min_laplacian: float = 0.0
    wind_search_dist: float = 0.0
    regional: bool = False
    psl_var: str = "PSL"
    u850_var: str = "U850"
    v850_var: str = "V850"
    t200_var: str = "T200"
    t500_var: str = "T500"


@dataclass(frozen=True)
class RiverConfig:
    variable: str = "IWV"
    laplacian_size: int = 5
    min_laplacian: float = 1.5
    min_abs_lat: float = 15.0
    min_value: float = 20.0
    zonal_mean_weight: float = 0.7
    zonal_max_weight: float = 0.3
    merid_mean_weight: float = 0.9
    merid_max_weight: float = 0.1
    min_area: int = 0
    laplacian_out: bool = False
    regional: bool = False


def validate_distance(value: float, name: str) -> float:
    """Return a geodesic distance in degrees, rejecting values outside [0, 180]."""

    try:
        dist = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name} must be a number of degrees, got {value!r}") from exc
    if math.isnan(dist) or dist < 0.0:
        raise ConfigurationError(f"{name} must be a non-negative number of degrees, got {value!r}")
    if dist > MAX_DISTANCE_DEG:
        raise ConfigurationError(f"{name} must be at most {MAX_DISTANCE_DEG:g} degrees, got {dist:g}")
    return dist


def warm_core_criterion(warm_core_dist: float = 0.0, no_warm_core_dist: float = 0.0) -> WarmCoreCriterion:
    """Fold the two mutually exclusive distance options into one criterion."""

    warm = validate_distance(warm_core_dist, "warm_core_dist")
    no_warm = validate_distance(no_warm_core_dist, "no_warm_core_dist")
    if warm != 0.0 and no_warm != 0.0:
        raise ConfigurationError("Only one of warm_core_dist and no_warm_core_dist may be active")
    if warm != 0.0:
        return RequireProximity(warm)
    if no_warm != 0.0:
        return RequireSeparation(no_warm)
    return NoWarmCoreCheck()


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries and return a new dictionary."""

    out = deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = deep_merge(out[key], value)
        else:
            out[key] = value
    return out


def load_yaml(path: str | Path) -> dict[str, Any]:
    p = Path(path)
    if not p.exists():
        raise ConfigurationError(f"Config file not found: {p}")
    with p.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config must be a mapping at root: {p}")
    return data


def resolve_config(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Resolve run configuration from defaults, an optional user file, and overrides."""

    resolved = deepcopy(DEFAULT_CONFIG)
    if config_path is not None:
        resolved = deep_merge(resolved, load_yaml(config_path))
    if overrides:
        resolved = deep_merge(resolved, overrides)
    _validate(resolved)
    return resolved


def dump_yaml(data: dict[str, Any], out_path: str | Path) -> None:
    p = Path(out_path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, sort_keys=False)


def cyclone_config_from_mapping(cfg: dict[str, Any]) -> CycloneConfig:
    section = cfg.get("cyclones", {})
    names = section.get("variables", {})
    return CycloneConfig(
        warm_core=warm_core_criterion(
            section.get("warm_core_dist", 0.0),
            section.get("no_warm_core_dist", 0.0),
        ),
        min_laplacian=_as_float(section.get("min_laplacian", 0.0), "cyclones.min_laplacian"),
        wind_search_dist=validate_distance(section.get("wind_search_dist", 0.0), "wind_search_dist"),
        regional=bool(cfg.get("grid", {}).get("regional", False)),
        psl_var=str(names.get("psl", "PSL")),
        u850_var=str(names.get("u850", "U850")),
        v850_var=str(names.get("v850", "V850")),
        t200_var=str(names.get("t200", "T200")),
        t500_var=str(names.get("t500", "T500")),
    )


def river_config_from_mapping(cfg: dict[str, Any]) -> RiverConfig:
    section = cfg.get("rivers", {})
    defaults = RiverConfig()
    laplacian_size = _as_int(section.get("laplacian_size", defaults.laplacian_size), "rivers.laplacian_size")
    if laplacian_size < 1:
        raise ConfigurationError(f"rivers.laplacian_size must be >= 1, got {laplacian_size}")
    min_area = _as_int(section.get("min_area", defaults.min_area), "rivers.min_area")
    if min_area < 0:
        raise ConfigurationError(f"rivers.min_area must be >= 0, got {min_area}")
    return RiverConfig(
        variable=str(section.get("variable", defaults.variable)),
        laplacian_size=laplacian_size,
        min_laplacian=_as_float(section.get("min_laplacian", defaults.min_laplacian), "rivers.min_laplacian"),
        min_abs_lat=_as_float(section.get("min_abs_lat", defaults.min_abs_lat), "rivers.min_abs_lat"),
        min_value=_as_float(section.get("min_value", defaults.min_value), "rivers.min_value"),
        zonal_mean_weight=_as_float(section.get("zonal_mean_weight", defaults.zonal_mean_weight), "rivers.zonal_mean_weight"),
        zonal_max_weight=_as_float(section.get("zonal_max_weight", defaults.zonal_max_weight), "rivers.zonal_max_weight"),
        merid_mean_weight=_as_float(section.get("merid_mean_weight", defaults.merid_mean_weight), "rivers.merid_mean_weight"),
        merid_max_weight=_as_float(section.get("merid_max_weight", defaults.merid_max_weight), "rivers.merid_max_weight"),
        min_area=min_area,
        laplacian_out=bool(section.get("laplacian_out", defaults.laplacian_out)),
        regional=bool(cfg.get("grid", {}).get("regional", False)),
    )


def _validate(cfg: dict[str, Any]) -> None:
    cyclone_config_from_mapping(cfg)
    river_config_from_mapping(cfg)


def _as_float(value: Any, name: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name} must be numeric, got {value!r}") from exc


def _as_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    try:
        out = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from exc
    if out != float(value):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    return out
