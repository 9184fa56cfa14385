"""Pace model for the endurance stint planner.

A pace mode is a named driving style with its own lap time and fuel burn.
Three modes are recognised: ``standard``, ``fuel-saving`` and
``extra-fuel-saving``.  Values missing for a mode fall back to the
standard mode, and a missing standard fuel rate falls back to a built-in
default.  Lap time has no built-in default.
"""

from __future__ import annotations

from dataclasses import dataclass

from endurance_engine.core.params import RaceParameters

# ---------------------------------------------------------------------------
# Pace modes
# ---------------------------------------------------------------------------

STANDARD: str = "standard"
FUEL_SAVING: str = "fuel-saving"
EXTRA_FUEL_SAVING: str = "extra-fuel-saving"

PACE_MODES: tuple[str, ...] = (STANDARD, FUEL_SAVING, EXTRA_FUEL_SAVING)

DEFAULT_FUEL_PER_LAP: dict[str, float] = {
    STANDARD: 3.18,
    FUEL_SAVING: 3.07,
    EXTRA_FUEL_SAVING: 3.02,
}


@dataclass(frozen=True)
class Pace:
    """Resolved lap time and fuel burn for one pace mode.

    Attributes:
        mode: Pace mode name (one of :data:`PACE_MODES`).
        lap_seconds: Lap time in seconds (> 0).
        fuel_per_lap: Fuel burned per lap in litres (> 0).
    """

    mode: str
    lap_seconds: float
    fuel_per_lap: float

    def __post_init__(self) -> None:
        if self.mode not in PACE_MODES:
            raise ValueError(f"Unknown pace mode '{self.mode}'.")
        if self.lap_seconds <= 0.0:
            raise ValueError("lap_seconds must be > 0.")
        if self.fuel_per_lap <= 0.0:
            raise ValueError("fuel_per_lap must be > 0.")


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


def _raw_values(mode: str, params: RaceParameters) -> tuple[float | None, float | None]:
    if mode == FUEL_SAVING:
        return params.fuel_saving_lap_seconds, params.fuel_saving_fuel_per_lap
    if mode == EXTRA_FUEL_SAVING:
        return (
            params.extra_fuel_saving_lap_seconds,
            params.extra_fuel_saving_fuel_per_lap,
        )
    return params.standard_lap_seconds, params.standard_fuel_per_lap


def _positive(value: float | None) -> bool:
    return value is not None and value > 0.0


def resolve_lap_seconds(mode: str, params: RaceParameters) -> float | None:
    """Lap time for *mode*, falling back to the standard lap time."""
    lap, _ = _raw_values(mode, params)
    if _positive(lap):
        return lap
    if _positive(params.standard_lap_seconds):
        return params.standard_lap_seconds
    return None


def resolve_fuel_per_lap(mode: str, params: RaceParameters) -> float | None:
    """Fuel burn for *mode*.

    Falls back to the standard fuel burn, then to
    :data:`DEFAULT_FUEL_PER_LAP` when no standard value was given at
    all.  An explicit non-positive standard value resolves to ``None``.
    """
    _, fuel = _raw_values(mode, params)
    if _positive(fuel):
        return fuel
    if _positive(params.standard_fuel_per_lap):
        return params.standard_fuel_per_lap
    if params.standard_fuel_per_lap is None:
        return DEFAULT_FUEL_PER_LAP[mode]
    return None


def resolve_pace(mode: str, params: RaceParameters) -> Pace | None:
    """Resolve the pace for *mode*, or ``None`` if nothing usable exists.

    Unknown mode names are treated as ``standard``.
    """
    if mode not in PACE_MODES:
        mode = STANDARD
    lap = resolve_lap_seconds(mode, params)
    fuel = resolve_fuel_per_lap(mode, params)
    if lap is None or fuel is None:
        return None
    return Pace(mode=mode, lap_seconds=lap, fuel_per_lap=fuel)


def configured_pace(mode: str, params: RaceParameters) -> Pace | None:
    """Return the pace for *mode* only if both of its values were supplied.

    Used to decide whether a blended final stint can be considered; no
    fallback is applied.
    """
    lap, fuel = _raw_values(mode, params)
    if not (_positive(lap) and _positive(fuel)):
        return None
    return Pace(mode=mode, lap_seconds=lap, fuel_per_lap=fuel)
