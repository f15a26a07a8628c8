"""Spatial feature-detection operators over a Grid."""

from stormscan.ops.extrema import find_all_local_maxima, find_all_local_minima
from stormscan.ops.laplacian import nine_point_laplacian, spherical_laplacian_at
from stormscan.ops.matching import SpatialIndex
from stormscan.ops.region_search import LocalExtremum, find_local_average, find_local_extremum
from stormscan.ops.segment import Segmentation, components_to_mask, label_components, segment_mask

__all__ = [
    "find_all_local_minima",
    "find_all_local_maxima",
    "find_local_extremum",
    "find_local_average",
    "LocalExtremum",
    "SpatialIndex",
    "segment_mask",
    "label_components",
    "components_to_mask",
    "Segmentation",
    "nine_point_laplacian",
    "spherical_laplacian_at",
]
