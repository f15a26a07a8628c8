"""Storm-center and atmospheric-river detectors built on the grid operators."""

from stormscan.weather.cyclones import (
    CandidateRecord,
    CycloneFields,
    RejectionCounts,
    TimestepResult,
    detect_cyclones_one_time,
    filter_laplacian,
    filter_warm_core,
)
from stormscan.weather.rivers import RiverTagResult, meridional_threshold, tag_rivers_one_time, zonal_threshold

__all__ = [
    "CycloneFields",
    "CandidateRecord",
    "RejectionCounts",
    "TimestepResult",
    "detect_cyclones_one_time",
    "filter_warm_core",
    "filter_laplacian",
    "RiverTagResult",
    "tag_rivers_one_time",
    "zonal_threshold",
    "meridional_threshold",
]
