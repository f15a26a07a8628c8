"""Grid topology and neighbor capabilities."""

from stormscan.grid.adjacency import GraphAdjacency, RasterAdjacency, default_adjacency
from stormscan.grid.topology import (
    Grid,
    RangeError,
    TopologyError,
    build_from_connectivity,
    build_from_connectivity_file,
    build_lat_lon,
    build_lat_lon_degrees,
)

__all__ = [
    "Grid",
    "RangeError",
    "TopologyError",
    "build_lat_lon",
    "build_lat_lon_degrees",
    "build_from_connectivity",
    "build_from_connectivity_file",
    "GraphAdjacency",
    "RasterAdjacency",
    "default_adjacency",
]
