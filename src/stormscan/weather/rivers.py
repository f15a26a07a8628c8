"""Atmospheric-river tagging from integrated water vapor.

A cell is tagged when it lies poleward of ``min_abs_lat``, exceeds the
absolute IWV floor and both the zonal and meridional blended thresholds, and
sits on a sharp ridge (9-point Laplacian at most ``-min_laplacian``). Tagged
blobs smaller than ``min_area`` cells are then removed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd

from stormscan.core.config import RiverConfig
from stormscan.grid.topology import Grid, TopologyError
from stormscan.ops.laplacian import nine_point_laplacian
from stormscan.ops.segment import label_components, segment_mask

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class RiverTagResult:
    mask: np.ndarray
    laplacian: np.ndarray
    components: list[frozenset[int]]
    n_removed: int = 0


def zonal_threshold(data: np.ndarray, mean_weight: float, max_weight: float) -> np.ndarray:
    """Per-latitude blend of the zonal mean and zonal maximum."""

    arr = np.asarray(data, dtype=float)
    return mean_weight * arr.mean(axis=1) + max_weight * arr.max(axis=1)


def meridional_threshold(data: np.ndarray, mean_weight: float, max_weight: float) -> np.ndarray:
    """Per-longitude blend of the meridional mean and meridional maximum."""

    arr = np.asarray(data, dtype=float)
    return mean_weight * arr.mean(axis=0) + max_weight * arr.max(axis=0)


def tag_rivers_one_time(grid: Grid, iwv: np.ndarray, config: RiverConfig | None = None) -> RiverTagResult:
    cfg = config or RiverConfig()
    if not grid.is_regular:
        raise TopologyError("River tagging requires a regular lat-lon grid")

    data = grid.as_raster(iwv)
    lat_axis = grid.lat_axis()
    lon_axis = grid.lon_axis()
    laplacian = nine_point_laplacian(data, lat_axis, lon_axis, cfg.laplacian_size, regional=grid.regional)

    zonal = zonal_threshold(data, cfg.zonal_mean_weight, cfg.zonal_max_weight)
    merid = meridional_threshold(data, cfg.merid_mean_weight, cfg.merid_max_weight)
    abs_lat_deg = np.abs(np.rad2deg(lat_axis))

    with np.errstate(invalid="ignore"):
        ridge = laplacian <= -float(cfg.min_laplacian)
    mask = (
        (abs_lat_deg[:, None] >= cfg.min_abs_lat)
        & (data >= cfg.min_value)
        & (data >= zonal[:, None])
        & (data >= merid[None, :])
        & ridge
    )

    if cfg.min_area > 0:
        seg = segment_mask(grid, mask, cfg.min_area)
        logger.debug("Removed %d blobs below %d cells", len(seg.removed), cfg.min_area)
        return RiverTagResult(mask=seg.mask, laplacian=laplacian, components=seg.components, n_removed=len(seg.removed))
    return RiverTagResult(mask=mask, laplacian=laplacian, components=label_components(grid, mask))


def mask_to_frame(
    grid: Grid,
    result: RiverTagResult,
    time: Any = None,
    include_laplacian: bool = False,
) -> pd.DataFrame:
    """Long-format table of the tag raster: time, lat, lon, ar_tag[, ar_dx2]."""

    out = pd.DataFrame(
        {
            "time": time,
            "lat": np.rad2deg(grid.lat),
            "lon": np.rad2deg(grid.lon),
            "ar_tag": np.asarray(result.mask, dtype=np.int8).reshape(-1),
        }
    )
    if include_laplacian:
        out["ar_dx2"] = np.asarray(result.laplacian, dtype=float).reshape(-1)
    return out
