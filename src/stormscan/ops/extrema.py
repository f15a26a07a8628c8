"""Strict pointwise extremum scan over a grid stencil."""

from __future__ import annotations

import operator
from typing import Callable

import numpy as np

from stormscan.grid.topology import Grid

_STENCIL_OFFSETS = [(dj, di) for dj in (-1, 0, 1) for di in (-1, 0, 1) if (dj, di) != (0, 0)]


def find_all_local_minima(grid: Grid, field: np.ndarray) -> set[int]:
    """Nodes strictly less than every stencil neighbor."""

    return _find_extrema(grid, field, operator.lt)


def find_all_local_maxima(grid: Grid, field: np.ndarray) -> set[int]:
    """Nodes strictly greater than every stencil neighbor."""

    return _find_extrema(grid, field, operator.gt)


def _find_extrema(grid: Grid, field: np.ndarray, beats: Callable) -> set[int]:
    values = grid.as_field(field)
    if grid.is_regular:
        return _scan_lat_lon(grid, values.reshape(grid.shape), beats)
    return _scan_graph(grid, values, beats)


def _scan_lat_lon(grid: Grid, data: np.ndarray, beats: Callable) -> set[int]:
    # Pole rows are never scanned; regional edge columns lack a full stencil.
    n_lat, n_lon = data.shape
    if n_lat < 3:
        return set()
    flags = np.ones((n_lat, n_lon), dtype=bool)
    flags[0, :] = False
    flags[-1, :] = False
    if grid.regional:
        flags[:, 0] = False
        flags[:, -1] = False
    for dj, di in _STENCIL_OFFSETS:
        shifted = np.roll(data, shift=(-dj, -di), axis=(0, 1))
        flags &= beats(data, shifted)
    rows, cols = np.nonzero(flags)
    return {int(j) * n_lon + int(i) for j, i in zip(rows.tolist(), cols.tolist())}


def _scan_graph(grid: Grid, values: np.ndarray, beats: Callable) -> set[int]:
    out: set[int] = set()
    for node, nbrs in enumerate(grid.connectivity):
        if not nbrs:
            continue
        v = values[node]
        if all(beats(v, values[nb]) for nb in nbrs):
            out.add(node)
    return out
