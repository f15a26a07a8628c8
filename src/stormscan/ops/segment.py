"""Connected-component segmentation of boolean masks with minimum-size filtering.

Lat-lon rasters are labeled with ``scipy.ndimage.label`` under 8-connectivity;
labels touching across the longitude seam are then merged unless the grid is
regional. Unstructured grids are labeled as the masked subgraph of the stored
connectivity.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from scipy import ndimage
from scipy.sparse import coo_matrix
from scipy.sparse.csgraph import connected_components

from stormscan.data.io import DataAccessError
from stormscan.grid.adjacency import Adjacency, RasterAdjacency, default_adjacency
from stormscan.grid.topology import Grid

_EIGHT_CONNECTED = np.ones((3, 3), dtype=int)


@dataclass(frozen=True, eq=False)
class Segmentation:
    mask: np.ndarray
    components: list[frozenset[int]]
    removed: list[frozenset[int]]

    @property
    def n_components(self) -> int:
        return len(self.components)


def label_components(grid: Grid, mask: np.ndarray, adjacency: Adjacency | None = None) -> list[frozenset[int]]:
    """Partition the true nodes of ``mask`` into maximal connected components."""

    flat = _as_mask(grid, mask)
    adj = adjacency or default_adjacency(grid)
    if isinstance(adj, RasterAdjacency):
        return _label_raster(grid, flat)
    return _label_graph(adj, flat)


def segment_mask(
    grid: Grid,
    mask: np.ndarray,
    min_size: int,
    adjacency: Adjacency | None = None,
) -> Segmentation:
    """Unmask every component with fewer than ``min_size`` nodes."""

    flat = _as_mask(grid, mask).copy()
    kept: list[frozenset[int]] = []
    removed: list[frozenset[int]] = []
    for comp in label_components(grid, flat, adjacency=adjacency):
        if len(comp) < int(min_size):
            flat[list(comp)] = False
            removed.append(comp)
        else:
            kept.append(comp)
    return Segmentation(mask=flat.reshape(np.shape(mask)), components=kept, removed=removed)


def components_to_mask(grid: Grid, components: list[frozenset[int]]) -> np.ndarray:
    out = np.zeros(grid.size, dtype=bool)
    for comp in components:
        out[list(comp)] = True
    return out.reshape(grid.shape)


def _label_raster(grid: Grid, flat: np.ndarray) -> list[frozenset[int]]:
    labels, n_labels = ndimage.label(flat.reshape(grid.shape), structure=_EIGHT_CONNECTED)
    if n_labels == 0:
        return []
    if not grid.regional:
        labels = _merge_across_seam(labels, n_labels)
    ids = labels.reshape(-1)
    nodes = np.flatnonzero(ids)
    return _group(nodes, ids[nodes])


def _merge_across_seam(labels: np.ndarray, n_labels: int) -> np.ndarray:
    # Last column touches the first column in the same row and the rows above and below.
    n_lat = labels.shape[0]
    east = labels[:, -1]
    west = labels[:, 0]
    src: list[np.ndarray] = []
    dst: list[np.ndarray] = []
    for dj in (-1, 0, 1):
        lo = max(0, -dj)
        hi = n_lat - max(0, dj)
        a = east[lo:hi]
        b = west[lo + dj : hi + dj]
        touching = (a > 0) & (b > 0)
        src.append(a[touching])
        dst.append(b[touching])
    rows = np.concatenate(src)
    if rows.size == 0:
        return labels
    cols = np.concatenate(dst)
    graph = coo_matrix((np.ones(rows.size), (rows, cols)), shape=(n_labels + 1, n_labels + 1))
    _, root = connected_components(graph, directed=False)
    return np.where(labels > 0, root[labels] + 1, 0)


def _label_graph(adjacency: Adjacency, flat: np.ndarray) -> list[frozenset[int]]:
    nodes = np.flatnonzero(flat)
    if nodes.size == 0:
        return []
    position = np.full(flat.size, -1, dtype=int)
    position[nodes] = np.arange(nodes.size)
    rows: list[int] = []
    cols: list[int] = []
    for k, node in enumerate(nodes.tolist()):
        for nb in adjacency.neighbors(node):
            if flat[nb]:
                rows.append(k)
                cols.append(int(position[nb]))
    graph = coo_matrix((np.ones(len(rows)), (rows, cols)), shape=(nodes.size, nodes.size))
    _, ids = connected_components(graph, directed=False)
    return _group(nodes, ids)


def _group(nodes: np.ndarray, ids: np.ndarray) -> list[frozenset[int]]:
    order = np.argsort(ids, kind="stable")
    _, starts = np.unique(ids[order], return_index=True)
    return [frozenset(chunk.tolist()) for chunk in np.split(nodes[order], starts[1:])]


def _as_mask(grid: Grid, mask: np.ndarray) -> np.ndarray:
    arr = np.asarray(mask)
    if arr.size != grid.size:
        raise DataAccessError(f"Mask of shape {arr.shape} is not aligned with grid of {grid.size} nodes")
    return arr.reshape(-1).astype(bool)
