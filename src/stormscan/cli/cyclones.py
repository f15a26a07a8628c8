"""Implementation of `stormscan cyclones`."""

from __future__ import annotations

import argparse
import sys
from typing import Any

from stormscan.core.pipeline import run_cyclone_detection


def register(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("cyclones", help="Detect storm-center candidates from PSL minima")
    parser.add_argument("input", help="Snapshot table (.parquet or .csv) with time, lat, lon and field columns")
    parser.add_argument("--out", required=True, help="Output folder")
    parser.add_argument("--config", default=None, help="Config YAML")
    parser.add_argument("--warm-core-dist", type=float, default=None, help="Require T200/T500 maxima within this distance (degrees)")
    parser.add_argument("--no-warm-core-dist", type=float, default=None, help="Reject candidates with T200/T500 maxima within this distance (degrees)")
    parser.add_argument("--min-laplacian", type=float, default=None, help="Minimum PSL Laplacian (Pa / degree^2)")
    parser.add_argument("--wind-dist", type=float, default=None, help="Search radius for the maximum wind (degrees)")
    parser.add_argument("--regional", action="store_true", help="Do not wrap longitude")
    parser.add_argument("--plots", action="store_true", help="Write quick-look figures")
    parser.set_defaults(func=cmd_cyclones)


def cmd_cyclones(args: argparse.Namespace) -> int:
    result = run_cyclone_detection(
        input_path=args.input,
        out_dir=args.out,
        config_path=args.config,
        overrides=_overrides(args),
        argv=sys.argv,
        plots=bool(args.plots),
    )
    print(f"Wrote {len(result.tables['candidates'])} candidates to {args.out}/candidates.parquet")
    print(f"Wrote rejection counts to {args.out}/rejections.parquet")
    print(f"Wrote resolved config to {args.out}/config_resolved.yaml")
    return 0


def _overrides(args: argparse.Namespace) -> dict[str, Any]:
    section: dict[str, Any] = {}
    if args.warm_core_dist is not None:
        section["warm_core_dist"] = args.warm_core_dist
    if args.no_warm_core_dist is not None:
        section["no_warm_core_dist"] = args.no_warm_core_dist
    if args.min_laplacian is not None:
        section["min_laplacian"] = args.min_laplacian
    if args.wind_dist is not None:
        section["wind_search_dist"] = args.wind_dist
    out: dict[str, Any] = {"cyclones": section} if section else {}
    if args.regional:
        out["grid"] = {"regional": True}
    return out
