"""
Command-line interface for inspecting persisted latency history.

Prints a per category and method summary of the ``.eps`` files in a data
directory and optionally writes interactive plots.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import polars as pl

from ..plotter import load_history_frame, plot_history, summarize_history

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s"


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="latencymon-history",
        description="Summarise and plot persisted latency history."
    )
    parser.add_argument(
        "-d",
        "--data-dir",
        type=Path,
        required=True,
        help="Directory holding the .eps history files.",
    )
    parser.add_argument(
        "-c",
        "--category",
        type=str,
        default=None,
        help="Only inspect this work category.",
    )
    parser.add_argument(
        "--plot-dir",
        type=Path,
        default=None,
        help="Write one interactive HTML plot per category to this directory.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Entry point of ``latencymon-history``.

    Returns:
        Process exit code
    """
    args = build_parser().parse_args(argv)
    _setup_logging(args.verbose)

    if not args.data_dir.is_dir():
        logger.error(f"Data directory not found: {args.data_dir}")
        return 1

    frame = load_history_frame(args.data_dir, category=args.category)
    if frame.is_empty():
        logger.warning(f"No durations found in {args.data_dir}")
        return 0

    summary = summarize_history(frame)
    with pl.Config(tbl_rows=-1, tbl_cols=-1, fmt_str_lengths=80):
        print(summary)

    if args.plot_dir is not None:
        written = plot_history(frame, args.plot_dir)
        logger.info(f"Wrote {len(written)} plot(s) to {args.plot_dir}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
