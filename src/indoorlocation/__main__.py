"""Command-line interface."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Dict, Optional, Sequence

import matplotlib.pyplot as plt

from indoorlocation.config import DEFAULT_FLOORPLAN_PATH, DEFAULT_MAX_ITERATIONS, MIN_MEASUREMENTS
from indoorlocation.errors import PositioningError
from indoorlocation.logging_config import setup_logging
from indoorlocation.positioning.estimator import PositionEstimate, PositionEstimator
from indoorlocation.positioning.floorplan import Floorplan

logger = logging.getLogger("indoorlocation.cli")


def load_distances(filepath: str) -> Dict[str, float]:
    """Read a JSON object mapping anchor ids to distances in meters."""
    with open(filepath, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Distances file '{filepath}' must contain a JSON object.")
    try:
        return {str(anchor_id): float(distance) for anchor_id, distance in data.items()}
    except (TypeError, ValueError) as e:
        raise ValueError(f"Distances file '{filepath}' has a non-numeric distance: {e}") from e


def print_residuals(floorplan: Floorplan, estimate: PositionEstimate) -> None:
    """One line per anchor used by the estimate: measured, computed and their difference."""
    anchors = floorplan.anchors_by_id
    for anchor_id, measured in estimate.distances.items():
        anchor = anchors[anchor_id]
        computed = anchor.distance_to(estimate.location)
        kind = "exact" if anchor.exact else "approx"
        print(f"{anchor_id} ({kind}): measured {measured:0.2f} computed {computed:0.2f} "
              f"residual {computed - measured:+0.2f}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="indoorlocation",
        description="Estimate a receiver position from anchor distance readings.",
    )
    parser.add_argument("--floorplan", default=DEFAULT_FLOORPLAN_PATH, help="Floorplan JSON file.")
    parser.add_argument("--distances", required=True, help="JSON object: anchor id -> distance (m).")
    parser.add_argument("--max-iterations", type=int, default=DEFAULT_MAX_ITERATIONS)
    parser.add_argument("--min-measurements", type=int, default=MIN_MEASUREMENTS)
    parser.add_argument("--ignore-unknown", action="store_true",
                        help="Drop readings of anchors missing from the floorplan.")
    parser.add_argument("--residuals", action="store_true",
                        help="Also print measured vs. computed distance per anchor.")
    parser.add_argument("--plot", metavar="IMAGE", help="Save a plot of the probed points.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level=logging.DEBUG if args.verbose else logging.WARNING)

    try:
        floorplan = Floorplan.from_file(args.floorplan)
        distances = load_distances(args.distances)
        estimator = PositionEstimator(
            floorplan,
            max_iterations=args.max_iterations,
            min_measurements=args.min_measurements,
            ignore_unknown_anchors=args.ignore_unknown,
        )
        estimate = estimator.estimate(distances)
    except (PositioningError, OSError, ValueError) as e:
        logger.error(f"{e}")
        return 2

    if estimate is None:
        print("Not enough usable distance readings.")
        return 1
    if not estimate.feasible:
        print("No feasible position.")
        return 1

    print(" ".join(f"{x:0.2f}" for x in estimate.location))
    print(f"error: {estimate.error:.4f} ({estimate.result.iterations} iterations, {estimate.result.status})")

    if args.residuals:
        print_residuals(floorplan, estimate)

    if args.plot:
        ax = estimate.probes.plot(floorplan=floorplan, location=estimate.location)
        ax.figure.savefig(args.plot)
        plt.close(ax.figure)
        logger.info(f"Probe plot saved to: {args.plot}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
