"""Tabular views of plans and comparisons for display.

Every function returns a :class:`pandas.DataFrame` with one row per stint
or strategy; numeric columns stay numeric so callers can sort or plot
them, and human-readable time strings are added alongside.
"""

from __future__ import annotations

import math

import pandas as pd

from endurance_engine.core.comparison import ModeComparison
from endurance_engine.core.planner import StrategyPlan

# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


def format_duration(seconds: float, show_ms: bool = False) -> str:
    """Format *seconds* as ``h:mm:ss`` (or ``m:ss`` under an hour)."""
    if seconds is None or not math.isfinite(seconds):
        return "--"
    if show_ms:
        total_ms = round(seconds * 1000)
        whole, ms = divmod(total_ms, 1000)
        suffix = f".{ms:03d}"
    else:
        whole = round(seconds)
        suffix = ""
    hours, rest = divmod(int(whole), 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}{suffix}"
    return f"{minutes}:{secs:02d}{suffix}"


def format_lap_time(seconds: float) -> str:
    """Format a lap time as ``m:ss.sss``."""
    if seconds is None or not math.isfinite(seconds) or seconds <= 0:
        return "--"
    total_ms = round(seconds * 1000)
    minutes, ms = divmod(total_ms, 60_000)
    return f"{minutes}:{ms / 1000:06.3f}"


# ---------------------------------------------------------------------------
# Frames
# ---------------------------------------------------------------------------


def stints_to_frame(plan: StrategyPlan) -> pd.DataFrame:
    """One row per stint with laps, fuel, timing and validation status."""
    rows = [
        {
            "stint": s.id,
            "laps": s.laps,
            "start_lap": s.start_lap,
            "end_lap": s.end_lap,
            "mode": s.pace_mode,
            "lap_time": format_lap_time(s.lap_seconds),
            "start": format_duration(s.start_time),
            "end": format_duration(s.end_time),
            "duration_s": s.duration,
            "fuel_at_start": s.fuel_at_start,
            "fuel_used": s.fuel_used,
            "fuel_remaining": s.fuel_remaining,
            "fuel_added": s.fuel_added,
            "fuel_target": s.fuel_target,
            "pit_loss_s": s.pit_loss,
            "errors": ", ".join(issue.kind for issue in s.validation.errors),
            "warnings": ", ".join(issue.kind for issue in s.validation.warnings),
        }
        for s in plan.stints
    ]
    return pd.DataFrame(rows).set_index("stint")


def candidates_to_frame(plan: StrategyPlan) -> pd.DataFrame:
    """Viable candidates in rank order followed by rejected ones."""
    rows = []
    for rank, cand in enumerate(plan.candidates, start=1):
        rows.append(
            {
                "rank": rank,
                "label": cand.label,
                "stints": cand.stint_count,
                "distribution": "-".join(str(n) for n in cand.distribution),
                "fractional_laps": cand.fractional_laps,
                "pit_time_s": cand.pit_time,
                "selected": cand == plan.winner,
                "rejection": "",
            }
        )
    for cand in plan.rejected_candidates:
        rows.append(
            {
                "rank": pd.NA,
                "label": cand.label,
                "stints": cand.stint_count,
                "distribution": "-".join(str(n) for n in cand.distribution),
                "fractional_laps": float("nan"),
                "pit_time_s": cand.pit_time,
                "selected": False,
                "rejection": cand.rejection,
            }
        )
    return pd.DataFrame(rows)


def mode_mixes_to_frame(comparison: ModeComparison) -> pd.DataFrame:
    """The standard run followed by the ranked alternatives."""
    rows = [
        {
            "strategy": s.name,
            "pit_stops": s.result.pit_stops,
            "fractional_laps": s.result.fractional_laps,
            "laps_gained": s.laps_gained,
            "pit_time_s": s.result.total_pit_time,
            "pit_time_saved_s": s.pit_time_saved,
            "lap_time_cost_s": s.lap_time_cost,
            "net_delta_s": s.net_time_delta,
            "final_stint_ratio": s.final_stint_ratio,
            "splash": s.has_splash,
        }
        for s in comparison.strategies
    ]
    return pd.DataFrame(rows)
