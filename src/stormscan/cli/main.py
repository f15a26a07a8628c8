"""Main CLI entrypoint."""

from __future__ import annotations

import argparse
import logging
import sys

from stormscan.cli import cyclones, rivers
from stormscan.core.config import ConfigurationError
from stormscan.core.logging import setup_logging
from stormscan.core.pipeline import PipelineError
from stormscan.data.io import DataAccessError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="stormscan", description="Grid-based storm and atmospheric-river detection")
    subparsers = parser.add_subparsers(dest="command")

    cyclones.register(subparsers)
    rivers.register(subparsers)

    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(verbose=getattr(args, "verbose", False))

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return int(args.func(args))
    except (ConfigurationError, DataAccessError, PipelineError) as exc:
        logger.error("%s", exc)
        return 2
    except KeyboardInterrupt:
        print("Interrupted")
        return 130


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
