"""Materialize per-timestep scalar fields from long-format snapshot tables."""

from __future__ import annotations

from typing import Any, Iterator

import numpy as np
import pandas as pd

from stormscan.data.io import DataAccessError, require_columns


def grid_axes(frame: pd.DataFrame, *, lat_col: str = "lat", lon_col: str = "lon") -> tuple[np.ndarray, np.ndarray]:
    """Sorted unique latitude/longitude values (degrees) present in the table."""

    require_columns(frame, [lat_col, lon_col])
    lat_vals = pd.to_numeric(frame[lat_col], errors="coerce")
    lon_vals = pd.to_numeric(frame[lon_col], errors="coerce")
    if lat_vals.isna().any() or lon_vals.isna().any():
        raise DataAccessError(f"Coordinate columns '{lat_col}'/'{lon_col}' contain non-numeric values")
    lat_axis = np.sort(lat_vals.unique().astype(float))
    lon_axis = np.sort(lon_vals.unique().astype(float))
    if lat_axis.size < 2 or lon_axis.size < 2:
        raise DataAccessError("Snapshot table must span at least two latitudes and two longitudes")
    return lat_axis, lon_axis


def field_from_frame(
    frame: pd.DataFrame,
    column: str,
    lat_vals: np.ndarray,
    lon_vals: np.ndarray,
    *,
    lat_col: str = "lat",
    lon_col: str = "lon",
) -> np.ndarray:
    """Pivot one variable onto the (lat, lon) raster; every cell must be present."""

    if column not in frame.columns:
        raise DataAccessError(f"No variable '{column}' found in input table")
    dup = frame.duplicated([lat_col, lon_col])
    if dup.any():
        raise DataAccessError(f"Variable '{column}' lists {int(dup.sum())} grid cells more than once")
    pivot = frame.pivot(index=lat_col, columns=lon_col, values=column)
    pivot = pivot.reindex(index=lat_vals, columns=lon_vals)
    arr = pivot.to_numpy(dtype=float)
    if arr.shape != (lat_vals.size, lon_vals.size):
        raise DataAccessError(f"Variable '{column}' does not fill the {lat_vals.size}x{lon_vals.size} grid")
    n_bad = int(np.count_nonzero(~np.isfinite(arr)))
    if n_bad:
        raise DataAccessError(f"Variable '{column}' has {n_bad} missing or non-finite grid cells")
    return arr


def iter_timesteps(frame: pd.DataFrame, *, time_col: str = "time") -> Iterator[tuple[Any, pd.DataFrame]]:
    """Yield (time, rows) per timestep in time order.

    Tables without a time column are a single snapshot with time ``None``.
    Numeric time columns (e.g. hours since an epoch) are passed through
    unchanged; anything else is parsed into timestamps.
    """

    if time_col not in frame.columns:
        yield None, frame
        return
    raw = frame[time_col]
    if pd.api.types.is_numeric_dtype(raw) and not pd.api.types.is_bool_dtype(raw):
        if raw.isna().any():
            raise DataAccessError(f"Column '{time_col}' contains missing time values")
        for t_val, grp in frame.groupby(time_col, sort=True):
            yield t_val.item() if hasattr(t_val, "item") else t_val, grp
        return
    times = pd.to_datetime(frame[time_col], errors="coerce")
    if times.isna().any():
        raise DataAccessError(f"Column '{time_col}' contains unparseable timestamps")
    df = frame.assign(**{time_col: times})
    for t_val, grp in df.groupby(time_col, sort=True):
        yield pd.Timestamp(t_val), grp
