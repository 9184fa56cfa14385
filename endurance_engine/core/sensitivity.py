"""Sensitivity analysis for the endurance stint planner.

Measures how the planned race distance responds to small changes in the
per-mode fuel burn and lap time (elasticity via central differences),
and sweeps the fuel burn over a grid to show where the stint count and
pit time step.

The planner is deterministic, so no seeding is involved.
"""

from __future__ import annotations

from dataclasses import replace

import numpy as np
from numpy.typing import NDArray

from endurance_engine.core.pace import (
    EXTRA_FUEL_SAVING,
    FUEL_SAVING,
    PACE_MODES,
    STANDARD,
    resolve_fuel_per_lap,
    resolve_lap_seconds,
)
from endurance_engine.core.params import RaceParameters
from endurance_engine.core.planner import compute_plan

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MIN_PERTURBED_VALUE: float = 1e-6

_FUEL_FIELDS: dict[str, str] = {
    STANDARD: "standard_fuel_per_lap",
    FUEL_SAVING: "fuel_saving_fuel_per_lap",
    EXTRA_FUEL_SAVING: "extra_fuel_saving_fuel_per_lap",
}

_LAP_FIELDS: dict[str, str] = {
    STANDARD: "standard_lap_seconds",
    FUEL_SAVING: "fuel_saving_lap_seconds",
    EXTRA_FUEL_SAVING: "extra_fuel_saving_lap_seconds",
}

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _planned_laps(params: RaceParameters, mode: str) -> float:
    result = compute_plan(params, mode)
    if not result.ok:
        raise ValueError(" ".join(result.errors))
    assert result.plan is not None
    return result.plan.fractional_laps


def _central_difference(
    params: RaceParameters,
    mode: str,
    field_name: str,
    value: float,
    delta: float,
) -> float:
    plus: float = value + delta
    minus: float = max(MIN_PERTURBED_VALUE, value - delta)

    laps_plus = _planned_laps(replace(params, **{field_name: plus}), mode)
    laps_minus = _planned_laps(replace(params, **{field_name: minus}), mode)

    actual_delta: float = plus - minus
    if actual_delta == 0.0:
        return 0.0
    return (laps_plus - laps_minus) / actual_delta


def _check_mode(mode: str) -> None:
    if mode not in PACE_MODES:
        raise ValueError(f"Unknown pace mode '{mode}'.")


# ---------------------------------------------------------------------------
# Fuel burn sensitivity
# ---------------------------------------------------------------------------


def compute_fuel_sensitivity(
    params: RaceParameters,
    mode: str = STANDARD,
    delta: float = 0.01,
) -> float:
    """Estimate the change in planned laps per litre of fuel burn per lap.

    Uses a central-difference approximation::

        sensitivity = (laps_plus - laps_minus) / (fuel_plus - fuel_minus)

    where the mode's fuel burn is perturbed by ``+delta`` and ``-delta``.
    The lower value is clamped above zero.

    Args:
        params: Race parameters.
        mode: Pace mode whose fuel burn is perturbed and planned.
        delta: Perturbation magnitude in litres per lap.

    Returns:
        Central-difference estimate (laps per L/lap, usually negative).

    Raises:
        ValueError: If the mode is unknown or a perturbed plan cannot be
            computed.
    """
    _check_mode(mode)
    fuel = resolve_fuel_per_lap(mode, params)
    if fuel is None:
        raise ValueError("Fuel usage per lap must be greater than zero.")
    return _central_difference(params, mode, _FUEL_FIELDS[mode], fuel, delta)


# ---------------------------------------------------------------------------
# Lap time sensitivity
# ---------------------------------------------------------------------------


def compute_lap_time_sensitivity(
    params: RaceParameters,
    mode: str = STANDARD,
    delta: float = 0.1,
) -> float:
    """Estimate the change in planned laps per second of lap time.

    Same central-difference scheme as :func:`compute_fuel_sensitivity`,
    applied to the mode's lap time.

    Raises:
        ValueError: If the mode is unknown or a perturbed plan cannot be
            computed.
    """
    _check_mode(mode)
    lap = resolve_lap_seconds(mode, params)
    if lap is None:
        raise ValueError("Provide a valid average lap time.")
    return _central_difference(params, mode, _LAP_FIELDS[mode], lap, delta)


# ---------------------------------------------------------------------------
# Fuel burn sweep
# ---------------------------------------------------------------------------


def sweep_fuel_rate(
    params: RaceParameters,
    mode: str,
    rates: NDArray[np.float64] | list[float],
) -> dict[str, NDArray]:
    """Plan the race at every fuel burn in *rates*.

    Rates for which no plan can be computed (e.g. the tank cannot hold
    one lap) yield ``nan`` distance and pit time and ``0`` stints.

    Args:
        params: Race parameters.
        mode: Pace mode whose fuel burn is swept.
        rates: Fuel burns per lap to evaluate.

    Returns:
        Dict with ``"fuel_per_lap"``, ``"fractional_laps"``, ``"stints"``
        and ``"pit_time"`` arrays, aligned with *rates*.
    """
    _check_mode(mode)
    grid = np.asarray(rates, dtype=np.float64)
    laps = np.full(grid.shape, np.nan, dtype=np.float64)
    pit_time = np.full(grid.shape, np.nan, dtype=np.float64)
    stints = np.zeros(grid.shape, dtype=np.int64)

    field_name = _FUEL_FIELDS[mode]
    for idx, rate in enumerate(grid):
        result = compute_plan(replace(params, **{field_name: float(rate)}), mode)
        if not result.ok or result.plan is None:
            continue
        laps[idx] = result.plan.fractional_laps
        pit_time[idx] = result.plan.total_pit_time
        stints[idx] = result.plan.stint_count

    return {
        "fuel_per_lap": grid,
        "fractional_laps": laps,
        "stints": stints,
        "pit_time": pit_time,
    }
