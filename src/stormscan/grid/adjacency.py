"""Neighbor capabilities over a Grid.

``GraphAdjacency`` walks the grid's stored connectivity (compass edges for
lat-lon layouts, the listed neighbors for unstructured grids). It drives the
geodesic region search.

``RasterAdjacency`` is the 3x3 raster neighborhood of a lat-lon layout:
8-connectivity, longitude wraps (unless regional), latitude is clamped. It
drives component segmentation and the regular-grid extremum stencil.

The two are deliberately separate: a 4-connected graph and an 8-connected
raster give different reachability.
"""

from __future__ import annotations

from typing import Protocol

from stormscan.grid.topology import Grid


class Adjacency(Protocol):
    name: str

    def neighbors(self, node: int) -> tuple[int, ...]:
        ...


class GraphAdjacency:
    name = "graph"

    def __init__(self, grid: Grid) -> None:
        self.grid = grid

    def neighbors(self, node: int) -> tuple[int, ...]:
        return self.grid.connectivity[int(node)]


class RasterAdjacency:
    name = "raster"

    def __init__(self, grid: Grid) -> None:
        self.grid = grid
        self.n_lat = grid.n_lat
        self.n_lon = grid.n_lon
        self.regional = grid.regional

    def neighbors(self, node: int) -> tuple[int, ...]:
        j, i = divmod(int(node), self.n_lon)
        out: list[int] = []
        for dj in (-1, 0, 1):
            jj = j + dj
            if jj < 0 or jj >= self.n_lat:
                continue
            for di in (-1, 0, 1):
                if dj == 0 and di == 0:
                    continue
                ii = i + di
                if self.regional:
                    if ii < 0 or ii >= self.n_lon:
                        continue
                else:
                    ii %= self.n_lon
                nb = jj * self.n_lon + ii
                if nb != node and nb not in out:
                    out.append(nb)
        return tuple(out)


def default_adjacency(grid: Grid) -> Adjacency:
    """Raster adjacency for lat-lon layouts, graph adjacency otherwise."""

    if grid.is_regular:
        return RasterAdjacency(grid)
    return GraphAdjacency(grid)
