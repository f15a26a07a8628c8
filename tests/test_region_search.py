from __future__ import annotations

import numpy as np
import pytest

from stormscan.core.config import ConfigurationError
from stormscan.grid import build_from_connectivity, build_lat_lon_degrees
from stormscan.ops.region_search import (
    find_local_average,
    find_local_maximum,
    find_local_minimum,
    reachable_nodes,
)


def _equatorial_grid():
    return build_lat_lon_degrees([-10.0, 0.0, 10.0], np.arange(0.0, 360.0, 10.0))


def _detour_grid():
    # Node 2 is 5 degrees from node 0 but only reachable through node 1 at 20 degrees.
    return build_from_connectivity(["3", "0 0 1 2", "20 0 2 1 3", "5 0 1 2"])


def test_zero_radius_returns_the_seed() -> None:
    grid = _equatorial_grid()
    field = np.arange(grid.size, dtype=float)
    seed = grid.index(1, 5)
    peak = find_local_maximum(grid, field, seed, 0.0)
    assert peak.index == seed
    assert peak.value == field[seed]
    assert peak.distance_deg == 0.0
    assert reachable_nodes(grid, seed, 0.0) == [seed]


def test_maximum_within_radius_and_its_distance() -> None:
    grid = _equatorial_grid()
    field = np.zeros(grid.shape)
    field[1, 3] = 5.0
    seed = grid.index(1, 0)
    peak = find_local_maximum(grid, field, seed, 45.0)
    assert peak.index == grid.index(1, 3)
    assert peak.value == 5.0
    assert peak.distance_deg == pytest.approx(30.0)

    outside = find_local_maximum(grid, field, seed, 25.0)
    assert outside.index == seed
    assert outside.distance_deg == 0.0


def test_ties_keep_the_seed() -> None:
    grid = _equatorial_grid()
    field = np.ones(grid.size)
    seed = grid.index(1, 7)
    assert find_local_maximum(grid, field, seed, 90.0).index == seed
    assert find_local_minimum(grid, field, seed, 90.0).index == seed


def test_half_circle_radius_finds_global_extrema() -> None:
    rng = np.random.default_rng(3)
    grid = build_lat_lon_degrees(np.linspace(-60.0, 60.0, 5), np.arange(0.0, 360.0, 45.0))
    field = rng.normal(size=grid.size)
    seed = grid.index(2, 4)
    assert find_local_maximum(grid, field, seed, 180.0).index == int(np.argmax(field))
    assert find_local_minimum(grid, field, seed, 180.0).index == int(np.argmin(field))
    assert find_local_average(grid, field, seed, 180.0) == pytest.approx(float(field.mean()))


def test_disk_is_closed_under_out_of_disk_nodes() -> None:
    grid = _detour_grid()
    field = np.array([0.0, 0.0, 9.0])
    near = find_local_maximum(grid, field, 0, 10.0)
    assert near.index == 0
    assert reachable_nodes(grid, 0, 10.0) == [0]
    assert find_local_average(grid, field, 0, 10.0) == 0.0

    far = find_local_maximum(grid, field, 0, 25.0)
    assert far.index == 2
    assert far.distance_deg == pytest.approx(5.0)
    assert find_local_average(grid, field, 0, 25.0) == pytest.approx(3.0)


def test_zero_radius_average_is_the_seed_value() -> None:
    grid = _equatorial_grid()
    field = np.arange(grid.size, dtype=float)
    seed = grid.index(2, 2)
    assert find_local_average(grid, field, seed, 0.0) == field[seed]


def test_radius_outside_half_circle_is_rejected() -> None:
    grid = _equatorial_grid()
    field = np.zeros(grid.size)
    with pytest.raises(ConfigurationError):
        find_local_maximum(grid, field, 0, 181.0)
    with pytest.raises(ConfigurationError):
        find_local_average(grid, field, 0, -1.0)


def test_seed_outside_grid_is_rejected() -> None:
    grid = _equatorial_grid()
    with pytest.raises(IndexError):
        find_local_maximum(grid, np.zeros(grid.size), grid.size, 10.0)
