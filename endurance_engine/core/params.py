"""Race input parameters for the endurance stint planner."""

from __future__ import annotations

from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

FULL_TANK_FUELING_SECONDS: float = 41.1  # time to fill an empty tank

# ---------------------------------------------------------------------------
# Parameter record
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RaceParameters:
    """Scalar inputs for one planning computation.

    Unlike the value objects in ``core``, this record performs no
    validation on construction: user input may be incomplete or
    malformed, and problems are reported as data by
    :func:`endurance_engine.core.validation.validate_parameters`.

    Attributes:
        race_duration_seconds: Scheduled race length in seconds.
        tank_capacity: Nominal fuel tank capacity in litres.
        standard_lap_seconds: Lap time at standard pace.
        standard_fuel_per_lap: Fuel burned per lap at standard pace.
        fuel_saving_lap_seconds: Lap time at fuel-saving pace.
        fuel_saving_fuel_per_lap: Fuel burned per lap at fuel-saving pace.
        extra_fuel_saving_lap_seconds: Lap time at extra-fuel-saving pace.
        extra_fuel_saving_fuel_per_lap: Fuel burned per lap at
            extra-fuel-saving pace.
        reserve_fuel: Fuel kept in the tank at the end of every stint.
        formation_lap_fuel: Fuel burned on the formation lap before stint 1.
        pit_lane_delta: Time lost driving through the pit lane (seconds).
        full_tank_fueling_seconds: Time to fuel an empty tank to full.
        lap_penalties: Extra seconds added to the first laps of every
            stint (out-lap first).
        min_laps_per_stint: Shortest acceptable final stint.  ``None``
            uses the built-in default.
        max_laps_per_stint: User cap on stint length.  ``None`` means
            fuel capacity is the only limit.
        fuel_bop_percent: Balance-of-performance reduction of the tank
            capacity, in percent.
    """

    race_duration_seconds: float
    tank_capacity: float
    standard_lap_seconds: float | None = None
    standard_fuel_per_lap: float | None = None
    fuel_saving_lap_seconds: float | None = None
    fuel_saving_fuel_per_lap: float | None = None
    extra_fuel_saving_lap_seconds: float | None = None
    extra_fuel_saving_fuel_per_lap: float | None = None
    reserve_fuel: float = 0.0
    formation_lap_fuel: float = 0.0
    pit_lane_delta: float = 0.0
    full_tank_fueling_seconds: float = FULL_TANK_FUELING_SECONDS
    lap_penalties: tuple[float, ...] = ()
    min_laps_per_stint: int | None = None
    max_laps_per_stint: int | None = None
    fuel_bop_percent: float = 0.0

    @property
    def effective_tank_capacity(self) -> float:
        """Tank capacity after the fuel BoP reduction."""
        return self.tank_capacity * (1.0 - max(0.0, self.fuel_bop_percent) / 100.0)

    @property
    def effective_penalties(self) -> tuple[float, ...]:
        """Lap penalties with non-positive entries zeroed."""
        return tuple(p if p > 0.0 else 0.0 for p in self.lap_penalties)

    @property
    def safe_reserve(self) -> float:
        return max(0.0, self.reserve_fuel)

    @property
    def safe_formation_fuel(self) -> float:
        return max(0.0, self.formation_lap_fuel)

    @property
    def safe_pit_lane_delta(self) -> float:
        return max(0.0, self.pit_lane_delta)
