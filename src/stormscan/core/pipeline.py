"""Per-timestep orchestration of cyclone detection and river tagging."""

from __future__ import annotations

import hashlib
import importlib.metadata
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

from stormscan.core.config import (
    CycloneConfig,
    RiverConfig,
    cyclone_config_from_mapping,
    dump_yaml,
    resolve_config,
    river_config_from_mapping,
)
from stormscan.data.fields import field_from_frame, grid_axes, iter_timesteps
from stormscan.data.io import DataAccessError, load_snapshots, write_json, write_table
from stormscan.grid.topology import Grid, RangeError, TopologyError, build_lat_lon_degrees
from stormscan.utils.safe_math import NumericalDegeneracy
from stormscan.viz.plots import plot_candidates, plot_tag_frequency
from stormscan.weather.cyclones import (
    CANDIDATE_COLUMNS,
    COUNT_COLUMNS,
    CycloneFields,
    candidates_to_frame,
    counts_to_row,
    detect_cyclones_one_time,
)
from stormscan.weather.rivers import mask_to_frame, tag_rivers_one_time

logger = logging.getLogger(__name__)

_TIMESTEP_ERRORS = (DataAccessError, NumericalDegeneracy, RangeError, TopologyError)

# Packages whose versions can change detection results.
_REPORTED_PACKAGES = ("stormscan", "numpy", "scipy", "pandas", "pyarrow")


class PipelineError(RuntimeError):
    """Raised when a timestep cannot be processed; the run stops there."""


@dataclass(frozen=True)
class RunResult:
    tables: dict[str, pd.DataFrame]
    metadata: dict[str, Any]


class GridCache:
    """Builds each distinct lat-lon topology once per run."""

    def __init__(self, regional: bool) -> None:
        self.regional = bool(regional)
        self._grids: dict[tuple[bytes, bytes], Grid] = {}

    def get(self, lat_deg: np.ndarray, lon_deg: np.ndarray) -> Grid:
        key = (np.asarray(lat_deg, dtype=float).tobytes(), np.asarray(lon_deg, dtype=float).tobytes())
        grid = self._grids.get(key)
        if grid is None:
            grid = build_lat_lon_degrees(lat_deg, lon_deg, regional=self.regional)
            self._grids[key] = grid
            logger.debug("Built %dx%d grid (regional=%s)", lat_deg.size, lon_deg.size, self.regional)
        return grid

    def __len__(self) -> int:
        return len(self._grids)


def detect_cyclones_in_frame(frame: pd.DataFrame, config: CycloneConfig | None = None) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Detect candidates in every timestep of a long-format table.

    Returns (candidates, per-timestep rejection counts).
    """

    cfg = config or CycloneConfig()
    grids = GridCache(cfg.regional)
    cand_frames: list[pd.DataFrame] = []
    count_rows: list[dict[str, Any]] = []
    for t_val, grp in iter_timesteps(frame):
        label = _time_label(t_val)
        logger.info("Time %s", label)
        try:
            lat_deg, lon_deg = grid_axes(grp)
            grid = grids.get(lat_deg, lon_deg)
            fields = CycloneFields(
                psl=field_from_frame(grp, cfg.psl_var, lat_deg, lon_deg),
                u850=field_from_frame(grp, cfg.u850_var, lat_deg, lon_deg),
                v850=field_from_frame(grp, cfg.v850_var, lat_deg, lon_deg),
                t200=field_from_frame(grp, cfg.t200_var, lat_deg, lon_deg),
                t500=field_from_frame(grp, cfg.t500_var, lat_deg, lon_deg),
            )
            result = detect_cyclones_one_time(grid, fields, cfg)
        except _TIMESTEP_ERRORS as exc:
            raise PipelineError(f"Timestep {label}: {exc}") from exc
        cand_frames.append(candidates_to_frame(result, time=t_val))
        count_rows.append(counts_to_row(result, time=t_val))

    non_empty = [df for df in cand_frames if not df.empty]
    candidates = pd.concat(non_empty, ignore_index=True) if non_empty else pd.DataFrame(columns=CANDIDATE_COLUMNS)
    counts = pd.DataFrame(count_rows, columns=COUNT_COLUMNS)
    return candidates, counts


def tag_rivers_in_frame(frame: pd.DataFrame, config: RiverConfig | None = None) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Tag river cells in every timestep; returns (tag table, per-timestep summary)."""

    cfg = config or RiverConfig()
    grids = GridCache(cfg.regional)
    tag_frames: list[pd.DataFrame] = []
    summary_rows: list[dict[str, Any]] = []
    for t_val, grp in iter_timesteps(frame):
        label = _time_label(t_val)
        logger.info("Time %s", label)
        try:
            lat_deg, lon_deg = grid_axes(grp)
            grid = grids.get(lat_deg, lon_deg)
            iwv = field_from_frame(grp, cfg.variable, lat_deg, lon_deg)
            result = tag_rivers_one_time(grid, iwv, cfg)
        except _TIMESTEP_ERRORS as exc:
            raise PipelineError(f"Timestep {label}: {exc}") from exc
        tag_frames.append(mask_to_frame(grid, result, time=t_val, include_laplacian=cfg.laplacian_out))
        summary_rows.append(
            {
                "time": t_val,
                "tagged_cells": int(np.count_nonzero(result.mask)),
                "components": len(result.components),
                "removed_components": int(result.n_removed),
            }
        )
    tags = pd.concat(tag_frames, ignore_index=True) if tag_frames else pd.DataFrame(columns=["time", "lat", "lon", "ar_tag"])
    summary = pd.DataFrame(summary_rows, columns=["time", "tagged_cells", "components", "removed_components"])
    return tags, summary


def run_cyclone_detection(
    input_path: str | Path,
    out_dir: str | Path,
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
    argv: list[str] | None = None,
    plots: bool = False,
) -> RunResult:
    resolved = resolve_config(config_path=config_path, overrides=overrides)
    cfg = cyclone_config_from_mapping(resolved)
    out_root = _prepare_out_dir(out_dir, resolved)

    frame = load_snapshots(input_path)
    candidates, counts = detect_cyclones_in_frame(frame, cfg)
    write_table(candidates, out_root / "candidates.parquet")
    write_table(counts, out_root / "rejections.parquet")
    if plots:
        plot_candidates(candidates, out_root / "figures" / "candidates.png")

    metadata = _run_metadata(input_path, resolved, argv, command="cyclones")
    metadata["n_candidates"] = int(len(candidates))
    metadata["n_timesteps"] = int(len(counts))
    write_json(metadata, out_root / "run_metadata.json")
    return RunResult(tables={"candidates": candidates, "rejections": counts}, metadata=metadata)


def run_river_tagging(
    input_path: str | Path,
    out_dir: str | Path,
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
    argv: list[str] | None = None,
    plots: bool = False,
) -> RunResult:
    resolved = resolve_config(config_path=config_path, overrides=overrides)
    cfg = river_config_from_mapping(resolved)
    out_root = _prepare_out_dir(out_dir, resolved)

    frame = load_snapshots(input_path)
    tags, summary = tag_rivers_in_frame(frame, cfg)
    write_table(tags, out_root / "ar_tags.parquet")
    write_table(summary, out_root / "ar_summary.parquet")
    if plots:
        plot_tag_frequency(tags, out_root / "figures" / "ar_tag_frequency.png")

    metadata = _run_metadata(input_path, resolved, argv, command="rivers")
    metadata["n_timesteps"] = int(len(summary))
    write_json(metadata, out_root / "run_metadata.json")
    return RunResult(tables={"ar_tags": tags, "ar_summary": summary}, metadata=metadata)


def _prepare_out_dir(out_dir: str | Path, resolved: dict[str, Any]) -> Path:
    out_root = Path(out_dir)
    out_root.mkdir(parents=True, exist_ok=True)
    dump_yaml(resolved, out_root / "config_resolved.yaml")
    return out_root


def _run_metadata(input_path: str | Path, resolved: dict[str, Any], argv: list[str] | None, command: str) -> dict[str, Any]:
    return {
        "command": command,
        "timestamp_utc": datetime.now(timezone.utc).replace(microsecond=0).isoformat(),
        "package_versions": {name: _installed_version(name) for name in _REPORTED_PACKAGES},
        "input_path": str(Path(input_path).resolve()),
        "input_sha256": _file_digest(input_path),
        "config_hash": hashlib.sha256(json.dumps(resolved, sort_keys=True).encode("utf-8")).hexdigest(),
        "cli_invocation": " ".join(argv or []),
    }


def _installed_version(name: str) -> str:
    try:
        return importlib.metadata.version(name)
    except importlib.metadata.PackageNotFoundError:
        return "not-installed"


def _file_digest(path: str | Path) -> str:
    digest = hashlib.sha256()
    with Path(path).open("rb") as f:
        for chunk in iter(lambda: f.read(1 << 20), b""):
            digest.update(chunk)
    return digest.hexdigest()


def _time_label(t_val: Any) -> str:
    return "0" if t_val is None else str(t_val)
