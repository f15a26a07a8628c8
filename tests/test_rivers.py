from __future__ import annotations

import numpy as np
import pytest

from stormscan.core.config import RiverConfig
from stormscan.grid import TopologyError, build_from_connectivity, build_lat_lon_degrees
from stormscan.weather.rivers import mask_to_frame, meridional_threshold, tag_rivers_one_time, zonal_threshold

CONFIG = RiverConfig(laplacian_size=2, min_laplacian=0.1)


def _grid():
    return build_lat_lon_degrees(np.arange(-60.0, 60.1, 2.0), np.arange(0.0, 360.0, 2.0))


def _iwv(grid, ridge_lat: float = 40.0) -> np.ndarray:
    lat = np.rad2deg(grid.lat_axis())
    lon = np.rad2deg(grid.lon_axis())
    iwv = np.full(grid.shape, 10.0)
    row = int(np.argmin(np.abs(lat - ridge_lat)))
    iwv[row, (lon >= 100.0) & (lon <= 140.0)] = 50.0
    blob_row = int(np.argmin(np.abs(lat + 40.0)))
    iwv[blob_row, (lon >= 300.0) & (lon <= 302.0)] = 50.0
    return iwv


def test_thresholds_blend_mean_and_max() -> None:
    data = np.array([[1.0, 3.0], [5.0, 7.0]])
    assert np.allclose(zonal_threshold(data, 0.5, 0.5), [2.5, 6.5])
    assert np.allclose(meridional_threshold(data, 1.0, 0.0), [3.0, 5.0])


def test_ridge_and_blob_are_tagged() -> None:
    grid = _grid()
    result = tag_rivers_one_time(grid, _iwv(grid), CONFIG)
    assert result.mask.shape == grid.shape
    assert int(result.mask.sum()) == 23
    assert sorted(len(c) for c in result.components) == [2, 21]
    assert result.n_removed == 0
    assert np.all(np.isnan(result.laplacian[:2]))


def test_small_blobs_are_removed_by_area() -> None:
    grid = _grid()
    cfg = RiverConfig(laplacian_size=2, min_laplacian=0.1, min_area=5)
    result = tag_rivers_one_time(grid, _iwv(grid), cfg)
    assert int(result.mask.sum()) == 21
    assert [len(c) for c in result.components] == [21]
    assert result.n_removed == 1


def test_tropical_ridge_is_not_tagged() -> None:
    grid = _grid()
    iwv = _iwv(grid, ridge_lat=10.0)
    result = tag_rivers_one_time(grid, iwv, CONFIG)
    lat = np.rad2deg(grid.lat_axis())
    assert not result.mask[np.abs(lat) < 15.0].any()
    assert int(result.mask.sum()) == 2


def test_weak_ridge_fails_the_sharpness_test() -> None:
    grid = _grid()
    result = tag_rivers_one_time(grid, _iwv(grid), RiverConfig(laplacian_size=2, min_laplacian=50.0))
    assert not result.mask.any()


def test_tag_table_layout() -> None:
    grid = _grid()
    result = tag_rivers_one_time(grid, _iwv(grid), CONFIG)
    frame = mask_to_frame(grid, result, time=None, include_laplacian=True)
    assert list(frame.columns) == ["time", "lat", "lon", "ar_tag", "ar_dx2"]
    assert len(frame) == grid.size
    assert int(frame["ar_tag"].sum()) == 23
    tagged = frame[frame["ar_tag"] == 1]
    assert set(np.round(tagged["lat"]).astype(int)) == {40, -40}
    assert (tagged["ar_dx2"] < 0.0).all()
    assert "ar_dx2" not in mask_to_frame(grid, result).columns


def test_rivers_need_a_lat_lon_grid() -> None:
    grid = build_from_connectivity(["2", "0 0 1 2", "1 0 1 1"])
    with pytest.raises(TopologyError):
        tag_rivers_one_time(grid, np.array([30.0, 30.0]), CONFIG)


def test_grid_narrower_than_stencil_tags_nothing() -> None:
    grid = build_lat_lon_degrees(np.arange(20.0, 38.1, 2.0), np.arange(0.0, 360.0, 10.0))
    iwv = np.full(grid.shape, 60.0)
    result = tag_rivers_one_time(grid, iwv, RiverConfig())
    assert grid.n_lat == 10
    assert np.all(np.isnan(result.laplacian))
    assert not result.mask.any()
    assert result.components == []
