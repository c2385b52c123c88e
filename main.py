"""
Pairwise distance calculator – CLI entry point.

Usage
-----
    python main.py <zipcodes.csv> <distances.csv> [--workers N] [--unit mi|km]

Reads labelled coordinates from the input CSV and writes the great-circle
distance of every ordered pair of distinct points to the output CSV.
"""

from __future__ import annotations

import argparse
import logging
import sys

from pairdist.conduits import QueueBackend
from pairdist.config import DEFAULT_BATCH_SIZE, DEFAULT_WORKER_MULTIPLIER, PipelineConfig
from pairdist.coordinator import Coordinator, PipelineReport
from pairdist.distance import EARTH_RADIUS
from pairdist.errors import DistanceError

USAGE = "distance <zipcodes.csv> <distances.csv>"

logger = logging.getLogger("pairdist")


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------
_LINE = "=" * 80


def _section(title: str) -> None:
    print(f"\n{_LINE}")
    print(f"  {title}")
    print(_LINE)


def _print_summary(report: PipelineReport, output_path: str) -> None:
    _section("PAIRWISE DISTANCE SUMMARY")

    print(f"\n  Points loaded          : {report.points}")
    print(f"  Workers                : {report.workers}")
    print(f"  Rows written           : {report.rows_written:,}")
    print(f"  Batches flushed        : {report.batches}")
    print(f"  Elapsed                : {report.elapsed_s:.2f} s")
    print(f"  Output                 : {output_path}")

    print(f"\n{_LINE}")
    print("  Done.")
    print(_LINE)


def setup_logging(level: str = "INFO") -> None:
    """Setup logging configuration"""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="distance",
        usage=USAGE,
        description="Great-circle distance between every pair of input points.",
    )
    parser.add_argument("paths", nargs="*", help="input CSV and output CSV")
    parser.add_argument(
        "--workers", type=int, default=None,
        help=f"worker count (default: {DEFAULT_WORKER_MULTIPLIER} x CPU count)",
    )
    parser.add_argument(
        "--multiplier", type=int, default=DEFAULT_WORKER_MULTIPLIER,
        help="workers per CPU when --workers is not given",
    )
    parser.add_argument(
        "--batch-size", type=int, default=DEFAULT_BATCH_SIZE,
        help=f"rows per output write (default: {DEFAULT_BATCH_SIZE})",
    )
    parser.add_argument("--unit", default="mi", choices=sorted(EARTH_RADIUS))
    parser.add_argument(
        "--backend", default=QueueBackend.THREAD.value,
        choices=[b.value for b in QueueBackend],
    )
    parser.add_argument(
        "--half-matrix", action="store_true",
        help="emit each unordered pair once instead of both directions",
    )
    parser.add_argument(
        "--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------
def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_intermixed_args(argv)

    if len(args.paths) != 2:
        print(USAGE)
        return 0

    input_path, output_path = args.paths
    setup_logging(args.log_level)

    try:
        config = PipelineConfig(
            worker_count=args.workers,
            worker_multiplier=args.multiplier,
            batch_size=args.batch_size,
            unit=args.unit,
            backend=QueueBackend(args.backend),
            half_matrix=args.half_matrix,
        )
    except ValueError as exc:
        parser.error(str(exc))

    try:
        report = Coordinator(config).run(input_path, output_path)
    except DistanceError as exc:
        logger.critical(f"{type(exc).__name__}: {exc}")
        return 1

    _print_summary(report, output_path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
