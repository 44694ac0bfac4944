"""
Command-line entry point for the replication.

Usage:
    labor-tightness --output results/
    labor-tightness --config config/pipeline.json --api-key KEY --no-cache
"""

from __future__ import annotations

import argparse
import dataclasses
import sys
from pathlib import Path
from typing import Optional

from .core.config import load_pipeline_config
from .core.errors import FetchError
from .pipeline import run_pipeline
from .report import format_summary, save_report


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="labor-tightness",
        description=(
            "Fetch labor-market tightness series from FRED, standardize them "
            "against a baseline and fit lagged Phillips-curve regressions."
        ),
    )
    parser.add_argument("--config", type=str, default=None, help="Path to a pipeline JSON config.")
    parser.add_argument("--api-key", type=str, default=None, help="FRED API key (overrides FRED_API_KEY).")
    parser.add_argument("--output", type=str, default=None, help="Directory for CSV/text/HTML outputs.")
    parser.add_argument("--no-cache", action="store_true", help="Always refetch from FRED.")
    parser.add_argument("--cache-dir", type=str, default=None, help="Directory for the Parquet cache.")
    parser.add_argument("--quiet", action="store_true", help="Only print the summary table.")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        # Paths given on the command line are relative to the working directory
        config_path = Path(args.config).resolve() if args.config else None
        config = load_pipeline_config(config_path)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    overrides = {}
    if args.api_key:
        overrides["api_key"] = args.api_key
    if args.no_cache:
        overrides["use_cache"] = False
    if args.cache_dir:
        overrides["cache_dir"] = args.cache_dir
    config = dataclasses.replace(config, **overrides)

    try:
        result = run_pipeline(config, verbose=not args.quiet)
    except (FetchError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print()
    print(format_summary(result.regression_table()))

    if args.output:
        paths = save_report(result, args.output)
        if not args.quiet:
            print(f"\nSaved outputs to {args.output}:")
            for name, path in paths.items():
                print(f"  {name}: {path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
