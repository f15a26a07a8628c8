"""Bounded breadth-first search within a geodesic radius of a seed node.

Both searches use a closed disk: a node farther than ``max_dist_deg`` from the
seed is neither scored nor expanded, so the reachable set is the part of the
disk connected to the seed through in-disk nodes.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field as dc_field
from typing import Iterator

import numpy as np

from stormscan.core.config import validate_distance
from stormscan.grid.adjacency import GraphAdjacency
from stormscan.grid.topology import Grid
from stormscan.ops.geodesy import great_circle_deg


@dataclass(frozen=True)
class LocalExtremum:
    index: int
    value: float
    distance_deg: float


@dataclass
class SearchState:
    """Queue and visited set owned by a single search call."""

    seed: int
    queue: deque[int] = dc_field(default_factory=deque)
    visited: set[int] = dc_field(default_factory=set)

    def __post_init__(self) -> None:
        self.queue.append(self.seed)


def find_local_extremum(
    grid: Grid,
    field: np.ndarray,
    seed: int,
    max_dist_deg: float,
    want_max: bool,
) -> LocalExtremum:
    """Return the strongest extremum reachable inside the disk around ``seed``."""

    values = grid.as_field(field)
    seed = _check_seed(grid, seed)
    max_dist = _check_radius(max_dist_deg)

    best = LocalExtremum(index=seed, value=float(values[seed]), distance_deg=0.0)
    for node, dist in _walk_disk(grid, seed, max_dist):
        v = float(values[node])
        improved = v > best.value if want_max else v < best.value
        if improved:
            best = LocalExtremum(index=node, value=v, distance_deg=float(dist))
    return best


def find_local_maximum(grid: Grid, field: np.ndarray, seed: int, max_dist_deg: float) -> LocalExtremum:
    return find_local_extremum(grid, field, seed, max_dist_deg, want_max=True)


def find_local_minimum(grid: Grid, field: np.ndarray, seed: int, max_dist_deg: float) -> LocalExtremum:
    return find_local_extremum(grid, field, seed, max_dist_deg, want_max=False)


def find_local_average(grid: Grid, field: np.ndarray, seed: int, max_dist_deg: float) -> float:
    """Unweighted mean of the field over every node reached inside the disk, seed included."""

    values = grid.as_field(field)
    seed = _check_seed(grid, seed)
    max_dist = _check_radius(max_dist_deg)

    total = 0.0
    count = 0
    for node, _ in _walk_disk(grid, seed, max_dist):
        total += float(values[node])
        count += 1
    return total / count


def reachable_nodes(grid: Grid, seed: int, max_dist_deg: float) -> list[int]:
    """Nodes visited by the bounded search, in visiting order."""

    seed = _check_seed(grid, seed)
    return [node for node, _ in _walk_disk(grid, seed, _check_radius(max_dist_deg))]


def _walk_disk(grid: Grid, seed: int, max_dist: float) -> Iterator[tuple[int, float]]:
    adjacency = GraphAdjacency(grid)
    state = SearchState(seed=seed)
    lat0 = float(grid.lat[seed])
    lon0 = float(grid.lon[seed])
    while state.queue:
        node = state.queue.popleft()
        if node in state.visited:
            continue
        state.visited.add(node)

        dist = 0.0 if node == seed else float(great_circle_deg(lat0, lon0, grid.lat[node], grid.lon[node]))
        if dist > max_dist:
            continue
        yield node, dist

        for nb in adjacency.neighbors(node):
            if nb not in state.visited:
                state.queue.append(nb)


def _check_seed(grid: Grid, seed: int) -> int:
    idx = int(seed)
    if idx < 0 or idx >= grid.size:
        raise IndexError(f"Seed node {seed} outside grid of {grid.size} nodes")
    return idx


def _check_radius(max_dist_deg: float) -> float:
    return validate_distance(max_dist_deg, "max_dist_deg")
