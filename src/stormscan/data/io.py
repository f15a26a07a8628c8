"""I/O helpers for gridded snapshot tables and detection outputs."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable

import numpy as np
import pandas as pd


class DataAccessError(LookupError):
    """Raised when a required field or coordinate array is absent or malformed."""


SUPPORTED_SUFFIXES = {".parquet", ".csv"}


def load_snapshots(path: str | Path) -> pd.DataFrame:
    """Read a long-format snapshot table (one row per time/lat/lon)."""

    p = Path(path)
    if not p.exists():
        raise DataAccessError(f"Input table does not exist: {p}")
    suffix = p.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise DataAccessError(f"Unsupported input format '{suffix}'. Supported: {sorted(SUPPORTED_SUFFIXES)}")
    if suffix == ".parquet":
        return pd.read_parquet(p)
    return pd.read_csv(p)


def require_columns(frame: pd.DataFrame, columns: Iterable[str]) -> None:
    missing = [c for c in columns if c not in frame.columns]
    if missing:
        raise DataAccessError(f"Input table missing required columns: {missing}")


def write_table(frame: pd.DataFrame, path: str | Path) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    if p.suffix.lower() == ".csv":
        frame.to_csv(p, index=False)
    else:
        frame.to_parquet(p, index=False)
    return p


def write_json(data: dict[str, Any], path: str | Path) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, sort_keys=True, default=_json_default)


def _json_default(obj: Any) -> Any:
    if isinstance(obj, np.generic):
        return obj.item()
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, (pd.Timestamp, Path)):
        return str(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")
