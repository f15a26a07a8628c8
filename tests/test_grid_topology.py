from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from stormscan.data.io import DataAccessError
from stormscan.grid import (
    GraphAdjacency,
    RasterAdjacency,
    RangeError,
    TopologyError,
    build_from_connectivity,
    build_from_connectivity_file,
    build_lat_lon,
    build_lat_lon_degrees,
)

CONNECTIVITY_TEXT = """3
0.0, 0.0, 2, 2, 3
10.0, 0.0, 1, 1
0.0, 10.0, 1, 1
"""


def _grid_4x4(regional: bool = False):
    return build_lat_lon_degrees([-60.0, -20.0, 20.0, 60.0], [0.0, 90.0, 180.0, 270.0], regional=regional)


def test_lat_lon_grid_is_row_major_with_compass_edges() -> None:
    grid = _grid_4x4()
    assert grid.size == 16
    assert grid.shape == (4, 4)
    assert grid.index(2, 1) == 9
    assert grid.row_col(9) == (2, 1)
    assert set(grid.connectivity[grid.index(1, 1)]) == {1, 9, 6, 4}
    # Row 0 has no southern neighbor; longitude wraps.
    assert set(grid.connectivity[0]) == {4, 1, 3}
    assert np.allclose(np.rad2deg(grid.lat_axis()), [-60.0, -20.0, 20.0, 60.0])
    assert np.allclose(np.rad2deg(grid.lon_axis()), [0.0, 90.0, 180.0, 270.0])


def test_regional_grid_drops_only_the_wrap_edge() -> None:
    grid = _grid_4x4(regional=True)
    assert set(grid.connectivity[grid.index(1, 0)]) == {0, 8, 5}
    assert set(grid.connectivity[grid.index(1, 3)]) == {3, 11, 6}
    assert set(grid.connectivity[grid.index(1, 1)]) == {1, 9, 6, 4}


def test_latitudes_in_degrees_are_rejected() -> None:
    with pytest.raises(RangeError):
        build_lat_lon([0.0, 45.0, 90.0], [0.0, 1.0])


def test_empty_or_non_finite_axes_are_rejected() -> None:
    with pytest.raises(DataAccessError):
        build_lat_lon([], [0.0, 1.0])
    with pytest.raises(DataAccessError):
        build_lat_lon([0.0, np.nan], [0.0, 1.0])


def test_grid_coordinates_are_read_only() -> None:
    grid = _grid_4x4()
    with pytest.raises(ValueError):
        grid.lat[0] = 0.0


def test_misaligned_field_is_rejected() -> None:
    grid = _grid_4x4()
    assert grid.as_field(np.zeros((4, 4))).shape == (16,)
    with pytest.raises(DataAccessError):
        grid.as_field(np.zeros(15))


def test_connectivity_listing_is_one_based_in_degrees() -> None:
    grid = build_from_connectivity(CONNECTIVITY_TEXT.splitlines())
    assert grid.size == 3
    assert not grid.is_regular
    assert grid.connectivity == ((1, 2), (0,), (0,))
    assert grid.lat[2] == pytest.approx(np.deg2rad(10.0))
    assert grid.lon[1] == pytest.approx(np.deg2rad(10.0))


def test_connectivity_listing_accepts_whitespace_separators() -> None:
    grid = build_from_connectivity(["2", "0 0 1 2", "5 5 1 1"])
    assert grid.connectivity == ((1,), (0,))


def test_connectivity_listing_premature_end() -> None:
    with pytest.raises(DataAccessError, match="Premature end"):
        build_from_connectivity(["3", "0.0, 0.0, 2, 2, 3", "10.0, 0.0, 1"])


def test_connectivity_listing_neighbor_out_of_range() -> None:
    with pytest.raises(DataAccessError):
        build_from_connectivity(["2", "0, 0, 1, 3", "1, 1, 1, 1"])


def test_connectivity_listing_bad_latitude() -> None:
    with pytest.raises(RangeError):
        build_from_connectivity(["1", "0, 95, 0"])


def test_connectivity_file(tmp_path: Path) -> None:
    path = tmp_path / "grid.dat"
    path.write_text(CONNECTIVITY_TEXT, encoding="utf-8")
    grid = build_from_connectivity_file(path)
    assert grid.size == 3
    with pytest.raises(DataAccessError):
        build_from_connectivity_file(tmp_path / "missing.dat")


def test_raster_adjacency_is_eight_connected_with_wrap() -> None:
    grid = _grid_4x4()
    adj = RasterAdjacency(grid)
    assert len(adj.neighbors(grid.index(1, 1))) == 8
    assert set(adj.neighbors(0)) == {3, 1, 7, 4, 5}


def test_raster_adjacency_regional_does_not_wrap() -> None:
    grid = _grid_4x4(regional=True)
    assert set(RasterAdjacency(grid).neighbors(0)) == {1, 4, 5}


def test_raster_adjacency_needs_lat_lon_layout() -> None:
    grid = build_from_connectivity(CONNECTIVITY_TEXT.splitlines())
    assert GraphAdjacency(grid).neighbors(0) == (1, 2)
    with pytest.raises(TopologyError):
        RasterAdjacency(grid)
