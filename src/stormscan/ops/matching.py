"""Nearest-neighbor angular matching between node sets on the sphere."""

from __future__ import annotations

from typing import Iterable

import numpy as np
from scipy.spatial import cKDTree

from stormscan.grid.topology import Grid
from stormscan.ops.geodesy import chord_to_angle_deg, unit_vectors


class SpatialIndex:
    """KD-tree over the unit-sphere embedding of a node subset.

    Built fresh for one matching pass and closed at its end; use it as a
    context manager so the tree never outlives the pass.
    """

    def __init__(self, grid: Grid, nodes: list[int], tree: cKDTree | None) -> None:
        self.grid = grid
        self.nodes = nodes
        self._tree = tree
        self._closed = False

    @classmethod
    def build(cls, points: Iterable[int], grid: Grid) -> "SpatialIndex":
        nodes = sorted({int(p) for p in points})
        if not nodes:
            return cls(grid, nodes, None)
        idx = np.asarray(nodes, dtype=int)
        xyz = unit_vectors(grid.lat[idx], grid.lon[idx])
        return cls(grid, nodes, cKDTree(xyz))

    def __enter__(self) -> "SpatialIndex":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def __len__(self) -> int:
        return len(self.nodes)

    @property
    def empty(self) -> bool:
        return not self.nodes

    def close(self) -> None:
        self._tree = None
        self._closed = True

    def query(self, node: int) -> float | None:
        """Angular distance (degrees) from a grid node to the nearest indexed node, or None if empty."""

        n = int(node)
        return self.query_point(float(self.grid.lat[n]), float(self.grid.lon[n]))

    def query_point(self, lat: float, lon: float) -> float | None:
        nearest = self.nearest_point(lat, lon)
        return None if nearest is None else nearest[1]

    def nearest(self, node: int) -> tuple[int, float] | None:
        n = int(node)
        return self.nearest_point(float(self.grid.lat[n]), float(self.grid.lon[n]))

    def nearest_point(self, lat: float, lon: float) -> tuple[int, float] | None:
        """(indexed node, angular distance in degrees) closest to (lat, lon) given in radians."""

        if self._closed:
            raise RuntimeError("SpatialIndex has been closed")
        if self._tree is None:
            return None
        chord, pos = self._tree.query(unit_vectors(lat, lon)[0], k=1)
        return self.nodes[int(pos)], float(chord_to_angle_deg(float(chord)))
