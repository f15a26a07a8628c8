from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from stormscan.core.config import (
    ConfigurationError,
    NoWarmCoreCheck,
    RequireProximity,
    RequireSeparation,
    cyclone_config_from_mapping,
    deep_merge,
    resolve_config,
    river_config_from_mapping,
    validate_distance,
    warm_core_criterion,
)


def test_warm_core_options_fold_into_one_criterion() -> None:
    assert warm_core_criterion(0.0, 0.0) == NoWarmCoreCheck()
    assert warm_core_criterion(5.0, 0.0) == RequireProximity(5.0)
    assert warm_core_criterion(0.0, 3.0) == RequireSeparation(3.0)


def test_both_warm_core_options_are_rejected() -> None:
    with pytest.raises(ConfigurationError, match="Only one"):
        warm_core_criterion(5.0, 3.0)
    with pytest.raises(ConfigurationError):
        resolve_config(overrides={"cyclones": {"warm_core_dist": 1.0, "no_warm_core_dist": 1.0}})


@pytest.mark.parametrize("value", [-1.0, 180.5, float("nan"), "far"])
def test_invalid_distances(value: object) -> None:
    with pytest.raises(ConfigurationError):
        validate_distance(value, "dist")


def test_distance_limits_are_inclusive() -> None:
    assert validate_distance(0, "dist") == 0.0
    assert validate_distance(180, "dist") == 180.0


def test_deep_merge_keeps_untouched_keys() -> None:
    merged = deep_merge({"a": {"x": 1, "y": 2}, "b": 3}, {"a": {"y": 5}})
    assert merged == {"a": {"x": 1, "y": 5}, "b": 3}


def test_defaults_resolve_to_typed_configs() -> None:
    resolved = resolve_config()
    cyc = cyclone_config_from_mapping(resolved)
    riv = river_config_from_mapping(resolved)
    assert cyc.warm_core == NoWarmCoreCheck()
    assert cyc.psl_var == "PSL"
    assert riv.variable == "IWV"
    assert riv.laplacian_size == 5
    assert riv.zonal_mean_weight == pytest.approx(0.7)
    assert not riv.regional


def test_yaml_file_and_overrides_layer_on_defaults(tmp_path: Path) -> None:
    path = tmp_path / "run.yaml"
    with path.open("w", encoding="utf-8") as f:
        yaml.safe_dump({"rivers": {"min_area": 3, "variable": "TMQ"}, "grid": {"regional": True}}, f)
    resolved = resolve_config(config_path=path, overrides={"rivers": {"min_area": 7}})
    riv = river_config_from_mapping(resolved)
    assert riv.min_area == 7
    assert riv.variable == "TMQ"
    assert riv.regional
    assert riv.min_value == pytest.approx(20.0)


def test_missing_or_malformed_config_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        resolve_config(config_path=tmp_path / "missing.yaml")
    bad = tmp_path / "bad.yaml"
    bad.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        resolve_config(config_path=bad)


@pytest.mark.parametrize(
    "section",
    [{"laplacian_size": 0}, {"min_area": -1}, {"laplacian_size": 2.5}, {"min_value": "high"}],
)
def test_invalid_river_settings(section: dict) -> None:
    with pytest.raises(ConfigurationError):
        resolve_config(overrides={"rivers": section})


def test_wind_search_radius_is_validated() -> None:
    with pytest.raises(ConfigurationError):
        resolve_config(overrides={"cyclones": {"wind_search_dist": 200.0}})
