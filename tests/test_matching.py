from __future__ import annotations

import numpy as np
import pytest

from stormscan.grid import build_lat_lon_degrees
from stormscan.ops import SpatialIndex


def _grid():
    return build_lat_lon_degrees([-30.0, 0.0, 30.0], np.arange(0.0, 360.0, 30.0))


def test_indexed_node_is_at_zero_distance() -> None:
    grid = _grid()
    node = grid.index(1, 4)
    with SpatialIndex.build({node, grid.index(2, 0)}, grid) as idx:
        assert len(idx) == 2
        assert idx.query(node) == pytest.approx(0.0, abs=1e-9)
        assert idx.nearest(node) == (node, pytest.approx(0.0, abs=1e-9))


def test_angular_distance_to_nearest_point() -> None:
    grid = _grid()
    # Both on the equator, 90 degrees apart.
    with SpatialIndex.build([grid.index(1, 3)], grid) as idx:
        assert idx.query(grid.index(1, 0)) == pytest.approx(90.0)
        assert idx.query(grid.index(2, 3)) == pytest.approx(30.0)


def test_nearest_picks_closest_across_longitude_wrap() -> None:
    grid = _grid()
    with SpatialIndex.build([grid.index(1, 11), grid.index(1, 5)], grid) as idx:
        node, dist = idx.nearest(grid.index(1, 0))
        assert node == grid.index(1, 11)
        assert dist == pytest.approx(30.0)


def test_empty_index_answers_none() -> None:
    grid = _grid()
    with SpatialIndex.build([], grid) as idx:
        assert idx.empty
        assert idx.query(0) is None
        assert idx.nearest_point(0.0, 0.0) is None


def test_closed_index_refuses_queries() -> None:
    grid = _grid()
    with SpatialIndex.build([0], grid) as idx:
        pass
    with pytest.raises(RuntimeError):
        idx.query(0)
