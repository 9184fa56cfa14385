"""CLI entrypoint for the endurance stint planner."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import pandas as pd

from endurance_engine import __version__
from endurance_engine.config import DEFAULT_RACE_PATH, load_race_parameters
from endurance_engine.core.comparison import compare_mode_mixes
from endurance_engine.core.pace import PACE_MODES, STANDARD
from endurance_engine.core.planner import compute_plan
from endurance_engine.reporting import (
    candidates_to_frame,
    format_duration,
    mode_mixes_to_frame,
    stints_to_frame,
)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Plan stints and pit stops for an endurance race.")
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_RACE_PATH,
        help="race YAML file (default: %(default)s)",
    )
    parser.add_argument(
        "--mode",
        choices=PACE_MODES,
        default=STANDARD,
        help="pace mode to plan for",
    )
    parser.add_argument(
        "--compare",
        action="store_true",
        help="also compare pace-mode mixes",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Compute and print a stint plan for the configured race."""
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print(f"Endurance Stint Planner v{__version__}")
    print("=" * 56)

    # -- Load race -------------------------------------------------------------
    params = load_race_parameters(args.config)
    print(f"\nRace   : {format_duration(params.race_duration_seconds)}")
    print(f"Tank   : {params.effective_tank_capacity:.1f} L")
    print(f"Mode   : {args.mode}")
    print("-" * 56)

    # -- Plan ------------------------------------------------------------------
    result = compute_plan(params, args.mode)
    if not result.ok:
        for message in result.errors:
            print(f"  ERROR: {message}")
        return 1
    plan = result.plan

    print(f"\nSelected   : {plan.winner.label}")
    print(f"Laps       : {plan.total_laps} ({plan.fractional_laps:.3f} at the flag)")
    print(f"Pit stops  : {plan.pit_stops}")
    print(f"Pit time   : {plan.total_pit_time:.1f} s")
    print(f"Race time  : {format_duration(plan.total_race_time)}")
    if plan.min_laps_warning:
        print("  WARNING: minimum stint length exceeds the maximum laps per stint")

    with pd.option_context("display.width", 160, "display.max_columns", None):
        print("\nStints:\n")
        print(stints_to_frame(plan).round(2).to_string())
        print("\nCandidates:\n")
        print(candidates_to_frame(plan).round(3).to_string(index=False))

        # -- Mode-mix comparison ----------------------------------------------
        if args.compare:
            comparison = compare_mode_mixes(params)
            print("\nPace-mode mixes:\n")
            print(mode_mixes_to_frame(comparison).round(2).to_string(index=False))

    return 0


if __name__ == "__main__":
    sys.exit(main())
