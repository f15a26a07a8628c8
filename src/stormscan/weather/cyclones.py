"""Storm-center candidates: sea-level pressure minima filtered and characterized.

Per timestep: every strict PSL minimum is a raw candidate. Candidates are
optionally filtered by proximity to (or separation from) upper-level
temperature maxima, then by the sharpness of the pressure minimum (its
Laplacian). Survivors get the peak 850 hPa wind speed within a geodesic
radius and its distance from the centre.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any

import numpy as np
import pandas as pd

from stormscan.core.config import (
    CycloneConfig,
    NoWarmCoreCheck,
    RequireProximity,
    RequireSeparation,
    WarmCoreCriterion,
)
from stormscan.grid.topology import Grid, TopologyError
from stormscan.ops.extrema import find_all_local_maxima, find_all_local_minima
from stormscan.ops.laplacian import spherical_laplacian_at
from stormscan.ops.matching import SpatialIndex
from stormscan.ops.region_search import find_local_maximum

logger = logging.getLogger(__name__)

CANDIDATE_COLUMNS = ["time", "candidate", "node", "row", "col", "lon", "lat", "wind_max", "r_wind_max", "psl"]
COUNT_COLUMNS = ["time", "total_minima", "rejected_warm_core", "rejected_no_warm_core", "rejected_laplacian", "candidates"]


@dataclass(frozen=True, eq=False)
class CycloneFields:
    """One timestep of the quantities the detector needs, aligned with a grid."""

    psl: np.ndarray
    u850: np.ndarray
    v850: np.ndarray
    t200: np.ndarray
    t500: np.ndarray


@dataclass(frozen=True)
class CandidateRecord:
    node: int
    row: int | None
    col: int | None
    lon_deg: float
    lat_deg: float
    psl: float
    wind_max: float
    r_wind_max_deg: float


@dataclass(frozen=True)
class RejectionCounts:
    total_minima: int = 0
    warm_core: int = 0
    no_warm_core: int = 0
    laplacian: int = 0


@dataclass(frozen=True)
class TimestepResult:
    candidates: list[CandidateRecord]
    counts: RejectionCounts


def detect_cyclones_one_time(grid: Grid, fields: CycloneFields, config: CycloneConfig | None = None) -> TimestepResult:
    """Run the candidate pipeline on one fully materialized timestep."""

    cfg = config or CycloneConfig()
    psl = grid.as_field(fields.psl)
    wind = np.hypot(grid.as_field(fields.u850), grid.as_field(fields.v850))

    minima = find_all_local_minima(grid, psl)
    total = len(minima)

    minima, rejected_warm, rejected_no_warm = filter_warm_core(
        grid,
        minima,
        grid.as_field(fields.t200),
        grid.as_field(fields.t500),
        cfg.warm_core,
    )

    rejected_lap = 0
    if cfg.min_laplacian != 0.0:
        minima, rejected_lap = filter_laplacian(grid, minima, psl, cfg.min_laplacian)

    counts = RejectionCounts(
        total_minima=total,
        warm_core=rejected_warm,
        no_warm_core=rejected_no_warm,
        laplacian=rejected_lap,
    )
    logger.info("Total candidates: %d", len(minima))
    logger.info("Rejected (   warm core): %d", rejected_warm)
    logger.info("Rejected (no warm core): %d", rejected_no_warm)
    logger.info("Rejected (   laplacian): %d", rejected_lap)

    records: list[CandidateRecord] = []
    for node in sorted(minima):
        peak = find_local_maximum(grid, wind, node, cfg.wind_search_dist)
        row, col = grid.row_col(node) if grid.is_regular else (None, None)
        records.append(
            CandidateRecord(
                node=int(node),
                row=row,
                col=col,
                lon_deg=float(np.rad2deg(grid.lon[node])),
                lat_deg=float(np.rad2deg(grid.lat[node])),
                psl=float(psl[node]),
                wind_max=peak.value,
                r_wind_max_deg=peak.distance_deg,
            )
        )
    return TimestepResult(candidates=records, counts=counts)


def filter_warm_core(
    grid: Grid,
    candidates: set[int],
    t200: np.ndarray,
    t500: np.ndarray,
    criterion: WarmCoreCriterion,
) -> tuple[set[int], int, int]:
    """Apply the warm-core criterion; return (kept, rejected_warm_core, rejected_no_warm_core).

    With no temperature maxima on a level the nearest-maximum distance is
    treated as infinite: proximity fails and separation holds.
    """

    if isinstance(criterion, NoWarmCoreCheck):
        return set(candidates), 0, 0

    kept: set[int] = set()
    rejected_warm = 0
    rejected_no_warm = 0
    with SpatialIndex.build(find_all_local_maxima(grid, t200), grid) as idx200, SpatialIndex.build(
        find_all_local_maxima(grid, t500), grid
    ) as idx500:
        for node in candidates:
            d200 = _distance_or_inf(idx200.query(node))
            d500 = _distance_or_inf(idx500.query(node))
            if isinstance(criterion, RequireSeparation):
                if d200 >= criterion.distance_deg or d500 >= criterion.distance_deg:
                    kept.add(node)
                else:
                    rejected_warm += 1
            elif isinstance(criterion, RequireProximity):
                if d200 <= criterion.distance_deg and d500 <= criterion.distance_deg:
                    kept.add(node)
                else:
                    rejected_no_warm += 1
            else:
                raise TypeError(f"Unknown warm-core criterion {criterion!r}")
    return kept, rejected_warm, rejected_no_warm


def filter_laplacian(grid: Grid, candidates: set[int], psl: np.ndarray, min_laplacian: float) -> tuple[set[int], int]:
    """Keep minima whose PSL Laplacian (per square degree) is at least ``min_laplacian``."""

    if not grid.is_regular:
        raise TopologyError("The Laplacian sharpness filter requires a regular lat-lon grid")
    data = grid.as_raster(psl)
    lat_axis = grid.lat_axis()
    lon_axis = grid.lon_axis()
    kept: set[int] = set()
    rejected = 0
    for node in candidates:
        row, col = grid.row_col(node)
        if spherical_laplacian_at(data, lat_axis, lon_axis, row, col) >= float(min_laplacian):
            kept.add(node)
        else:
            rejected += 1
    return kept, rejected


def candidates_to_frame(result: TimestepResult, time: Any = None) -> pd.DataFrame:
    rows: list[dict[str, Any]] = []
    for i, rec in enumerate(result.candidates):
        rows.append(
            {
                "time": time,
                "candidate": i,
                "node": rec.node,
                "row": rec.row,
                "col": rec.col,
                "lon": rec.lon_deg,
                "lat": rec.lat_deg,
                "wind_max": rec.wind_max,
                "r_wind_max": rec.r_wind_max_deg,
                "psl": rec.psl,
            }
        )
    if not rows:
        return pd.DataFrame(columns=CANDIDATE_COLUMNS)
    return pd.DataFrame(rows, columns=CANDIDATE_COLUMNS)


def counts_to_row(result: TimestepResult, time: Any = None) -> dict[str, Any]:
    counts = asdict(result.counts)
    return {
        "time": time,
        "total_minima": counts["total_minima"],
        "rejected_warm_core": counts["warm_core"],
        "rejected_no_warm_core": counts["no_warm_core"],
        "rejected_laplacian": counts["laplacian"],
        "candidates": len(result.candidates),
    }


def _distance_or_inf(value: float | None) -> float:
    return float("inf") if value is None else float(value)
