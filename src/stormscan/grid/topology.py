"""Grid topology: node coordinates plus graph connectivity.

Regular latitude-longitude layouts are flattened row-major
(``index = row * n_lon + col``). Unstructured grids come from a plain-text
connectivity listing with one record per node.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

import numpy as np

from stormscan.data.io import DataAccessError

LAT_TOLERANCE = 1.0e-12


class RangeError(ValueError):
    """Raised when grid coordinates fall outside their valid range."""


class TopologyError(ValueError):
    """Raised when an operation needs a grid layout the grid does not have."""


@dataclass(frozen=True, eq=False)
class Grid:
    """Fixed set of nodes with (lat, lon) in radians and per-node neighbor lists."""

    lat: np.ndarray
    lon: np.ndarray
    connectivity: tuple[tuple[int, ...], ...]
    shape: tuple[int, ...]
    regional: bool = False

    @property
    def size(self) -> int:
        return int(self.lat.size)

    @property
    def is_regular(self) -> bool:
        return len(self.shape) == 2

    @property
    def n_lat(self) -> int:
        self._require_regular()
        return int(self.shape[0])

    @property
    def n_lon(self) -> int:
        self._require_regular()
        return int(self.shape[1])

    def index(self, row: int, col: int) -> int:
        """Row-major node index of a regular-grid cell."""

        self._require_regular()
        if not (0 <= row < self.shape[0] and 0 <= col < self.shape[1]):
            raise IndexError(f"Cell ({row}, {col}) outside grid of shape {self.shape}")
        return int(row) * int(self.shape[1]) + int(col)

    def row_col(self, index: int) -> tuple[int, int]:
        self._require_regular()
        return divmod(int(index), int(self.shape[1]))

    def lat_axis(self) -> np.ndarray:
        """Latitude of each row (radians) for regular grids."""

        return self.lat.reshape(self.shape)[:, 0]

    def lon_axis(self) -> np.ndarray:
        """Longitude of each column (radians) for regular grids."""

        return self.lon.reshape(self.shape)[0, :]

    def as_field(self, values: np.ndarray | Sequence[float]) -> np.ndarray:
        """Flatten and check a scalar field against this grid."""

        arr = np.asarray(values, dtype=float)
        if self.is_regular and arr.shape == self.shape:
            arr = arr.reshape(-1)
        if arr.ndim != 1 or arr.size != self.size:
            raise DataAccessError(
                f"Field of shape {np.shape(values)} is not aligned with grid of {self.size} nodes"
            )
        return arr

    def as_raster(self, values: np.ndarray | Sequence[float]) -> np.ndarray:
        return self.as_field(values).reshape(self.shape)

    def _require_regular(self) -> None:
        if not self.is_regular:
            raise TopologyError("Operation requires a regular latitude-longitude grid")


def build_lat_lon(
    lat: np.ndarray | Sequence[float],
    lon: np.ndarray | Sequence[float],
    regional: bool = False,
) -> Grid:
    """Build the graph of a regular lat-lon grid; coordinates in radians."""

    lat_arr = np.asarray(lat, dtype=float).reshape(-1)
    lon_arr = np.asarray(lon, dtype=float).reshape(-1)
    if lat_arr.size == 0 or lon_arr.size == 0:
        raise DataAccessError("Latitude and longitude arrays must be non-empty")
    if not np.all(np.isfinite(lat_arr)) or not np.all(np.isfinite(lon_arr)):
        raise DataAccessError("Latitude and longitude arrays must be finite")
    if np.any(np.abs(lat_arr) > 0.5 * np.pi + LAT_TOLERANCE):
        raise RangeError("Latitude array must be given in radians")

    n_lat = lat_arr.size
    n_lon = lon_arr.size
    lat_nodes = np.repeat(lat_arr, n_lon)
    lon_nodes = np.tile(lon_arr, n_lat)

    connectivity: list[tuple[int, ...]] = []
    for j in range(n_lat):
        for i in range(n_lon):
            nbrs: list[int] = []
            if j != 0:
                nbrs.append((j - 1) * n_lon + i)
            if j != n_lat - 1:
                nbrs.append((j + 1) * n_lon + i)
            # Longitude-wrap edge is dropped for regional grids.
            if n_lon > 1:
                east = j * n_lon + (i + 1) % n_lon
                west = j * n_lon + (i + n_lon - 1) % n_lon
                if not (regional and i == n_lon - 1):
                    nbrs.append(east)
                if not (regional and i == 0) and west not in nbrs:
                    nbrs.append(west)
            connectivity.append(tuple(nbrs))

    return Grid(
        lat=_frozen(lat_nodes),
        lon=_frozen(lon_nodes),
        connectivity=tuple(connectivity),
        shape=(n_lat, n_lon),
        regional=bool(regional),
    )


def build_lat_lon_degrees(
    lat_deg: np.ndarray | Sequence[float],
    lon_deg: np.ndarray | Sequence[float],
    regional: bool = False,
) -> Grid:
    return build_lat_lon(np.deg2rad(np.asarray(lat_deg, dtype=float)), np.deg2rad(np.asarray(lon_deg, dtype=float)), regional)


def build_from_connectivity(lines: Iterable[str]) -> Grid:
    """Parse a connectivity listing.

    The first token is the node count N. Each of the N records that follow is
    ``lon, lat, k, nb_1, ..., nb_k`` with coordinates in degrees and one-based
    neighbor indices. Separators may be commas and/or whitespace.
    """

    tokens = _tokenize(lines)
    pos = 0

    def take(what: str) -> str:
        nonlocal pos
        if pos >= len(tokens):
            raise DataAccessError(f"Premature end of connectivity file while reading {what}")
        tok = tokens[pos]
        pos += 1
        return tok

    n_nodes = _as_int(take("node count"), "node count")
    if n_nodes <= 0:
        raise DataAccessError(f"Connectivity file declares {n_nodes} nodes")

    lon_deg = np.empty(n_nodes, dtype=float)
    lat_deg = np.empty(n_nodes, dtype=float)
    connectivity: list[tuple[int, ...]] = []
    for f in range(n_nodes):
        lon_deg[f] = _as_float(take(f"longitude of node {f}"), "longitude")
        lat_deg[f] = _as_float(take(f"latitude of node {f}"), "latitude")
        n_nbrs = _as_int(take(f"neighbor count of node {f}"), "neighbor count")
        if n_nbrs < 0:
            raise DataAccessError(f"Node {f} declares a negative neighbor count")
        nbrs: list[int] = []
        for _ in range(n_nbrs):
            one_based = _as_int(take(f"neighbors of node {f}"), "neighbor index")
            if not (1 <= one_based <= n_nodes):
                raise DataAccessError(f"Node {f} lists neighbor {one_based} outside 1..{n_nodes}")
            nbrs.append(one_based - 1)
        connectivity.append(tuple(nbrs))

    lat = np.deg2rad(lat_deg)
    if np.any(np.abs(lat) > 0.5 * np.pi + LAT_TOLERANCE):
        raise RangeError("Connectivity file latitudes must lie within [-90, 90] degrees")
    return Grid(
        lat=_frozen(lat),
        lon=_frozen(np.deg2rad(lon_deg)),
        connectivity=tuple(connectivity),
        shape=(n_nodes,),
        regional=False,
    )


def build_from_connectivity_file(path: str | Path) -> Grid:
    p = Path(path)
    if not p.exists():
        raise DataAccessError(f"Connectivity file not found: {p}")
    with p.open("r", encoding="utf-8") as f:
        return build_from_connectivity(f)


def _tokenize(lines: Iterable[str]) -> list[str]:
    out: list[str] = []
    for line in lines:
        out.extend(tok for tok in line.replace(",", " ").split() if tok)
    return out


def _as_int(tok: str, what: str) -> int:
    try:
        return int(tok)
    except ValueError as exc:
        raise DataAccessError(f"Malformed {what} '{tok}' in connectivity file") from exc


def _as_float(tok: str, what: str) -> float:
    try:
        return float(tok)
    except ValueError as exc:
        raise DataAccessError(f"Malformed {what} '{tok}' in connectivity file") from exc


def _frozen(arr: np.ndarray) -> np.ndarray:
    out = np.array(arr, dtype=float, copy=True)
    out.setflags(write=False)
    return out
