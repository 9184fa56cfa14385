"""Pace-mode mix comparison.

Where :func:`endurance_engine.core.planner.compute_plan` searches stint
counts at one pace, this module answers a different question: *how many
stints should be driven in each pace mode, and in which order?*

Each mix is an ordered sequence of modes, one per stint (the last mode
repeats if the car needs more stints than listed).  A mix is simulated
lap by lap with real fuel: the car pits as soon as the tank can no longer
cover another lap plus the reserve, and every stop but the last fills the
tank.  The last stop is re-solved as a splash: only the fuel the final
stint needs to reach the flag is added, which shortens the stop, which
may allow one more lap, which changes the fuel needed.  A short
fixed-point iteration settles it.

Lap penalties are not modelled here.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from endurance_engine.core.pace import (
    EXTRA_FUEL_SAVING,
    FUEL_SAVING,
    PACE_MODES,
    STANDARD,
    Pace,
    resolve_pace,
)
from endurance_engine.core.params import RaceParameters
from endurance_engine.core.pit_service import fueling_time
from endurance_engine.core.validation import validate_parameters

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

SPLASH_THRESHOLD_RATIO: float = 0.61  # tyre-change time / full-tank fueling time
SPLASH_FUEL_RATIO: float = 0.90
SPLASH_MAX_ITERATIONS: int = 10
SPLASH_TOLERANCE: float = 0.01  # litres
MAX_ALTERNATIVES: int = 10

SAVE_LATE: str = "Save Late"
SAVE_EARLY: str = "Save Early"

MODE_ABBREVIATIONS: dict[str, str] = {
    STANDARD: "STD",
    FUEL_SAVING: "FS",
    EXTRA_FUEL_SAVING: "EFS",
}

# ---------------------------------------------------------------------------
# Result containers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MixStint:
    """One stint of a simulated mode mix."""

    id: int
    mode: str
    laps: int
    start_lap: int
    duration: float
    fuel_at_start: float
    fuel_used: float
    fuel_remaining: float
    fuel_added: float = 0.0
    pit_seconds: float = 0.0
    is_splash: bool = False

    @property
    def end_lap(self) -> int:
        return self.start_lap + self.laps - 1


@dataclass(frozen=True)
class MixResult:
    """Outcome of simulating one mode mix."""

    stints: tuple[MixStint, ...]
    fractional_laps: float
    total_pit_time: float
    formation_lap_fuel: float = 0.0

    @property
    def pit_stops(self) -> int:
        return max(0, len(self.stints) - 1)

    @property
    def total_laps(self) -> int:
        return sum(s.laps for s in self.stints)

    @property
    def total_fuel_used(self) -> float:
        return self.formation_lap_fuel + sum(s.fuel_used for s in self.stints)

    @property
    def stint_modes(self) -> tuple[str, ...]:
        return tuple(s.mode for s in self.stints)

    def laps_in(self, mode: str) -> int:
        return sum(s.laps for s in self.stints if s.mode == mode)


@dataclass(frozen=True)
class MixStrategy:
    """A simulated mix scored against the all-standard run.

    Attributes:
        name: Display name, e.g. ``"2 pits: 2xSTD, 1xEFS (Save Late)"``.
        result: Underlying simulation.
        mode_counts: Requested stints per mode.
        variant: ``"Save Late"``, ``"Save Early"`` or ``None``.
        final_stint_ratio: Final-stint laps over its mode's capacity.
        has_splash: ``True`` if the final stint is below the splash
            threshold.
        pit_time_saved: Standard pit time minus this mix's pit time.
        lap_time_cost: Extra driving time from slower modes.
        net_time_delta: ``pit_time_saved - lap_time_cost``; positive is
            ahead of the standard run.
        laps_gained: Fractional laps gained over the standard run.
        pits_saved: Stops saved over the standard run.
    """

    name: str
    result: MixResult
    mode_counts: Mapping[str, int]
    variant: str | None
    final_stint_ratio: float
    has_splash: bool
    pit_time_saved: float = 0.0
    lap_time_cost: float = 0.0
    net_time_delta: float = 0.0
    laps_gained: float = 0.0
    pits_saved: int = 0

    @property
    def strategy_type(self) -> str:
        if self.mode_counts.get(EXTRA_FUEL_SAVING, 0) > 0:
            return EXTRA_FUEL_SAVING
        if self.mode_counts.get(FUEL_SAVING, 0) > 0:
            return FUEL_SAVING
        return STANDARD


@dataclass(frozen=True)
class ModeComparison:
    """The standard run plus the best alternatives, best first."""

    standard: MixStrategy
    alternatives: tuple[MixStrategy, ...]
    capacities: Mapping[str, int]

    @property
    def strategies(self) -> tuple[MixStrategy, ...]:
        return (self.standard,) + self.alternatives

    @property
    def best(self) -> MixStrategy:
        return self.alternatives[0] if self.alternatives else self.standard


# ---------------------------------------------------------------------------
# Capacities
# ---------------------------------------------------------------------------


def stint_capacities(
    tank_capacity: float,
    reserve_fuel: float,
    paces: Mapping[str, Pace],
) -> dict[str, int]:
    """Laps a full tank covers in each mode, never less than one."""
    usable = max(0.0, tank_capacity - reserve_fuel)
    return {
        mode: max(1, math.floor(usable / pace.fuel_per_lap))
        for mode, pace in paces.items()
    }


def resolve_mode_paces(params: RaceParameters) -> dict[str, Pace]:
    """Resolved pace for every mode.

    Raises:
        ValueError: If the parameters cannot support a plan.
    """
    errors = validate_parameters(params, STANDARD)
    if errors:
        raise ValueError(" ".join(errors))
    paces: dict[str, Pace] = {}
    for mode in PACE_MODES:
        pace = resolve_pace(mode, params)
        if pace is None:
            raise ValueError(f"No usable pace for mode '{mode}'.")
        paces[mode] = pace
    return paces


# ---------------------------------------------------------------------------
# Simulation
# ---------------------------------------------------------------------------


def solve_final_splash(
    fuel_remaining: float,
    time_remaining: float,
    pace: Pace,
    tank_capacity: float,
    reserve_fuel: float,
    pit_lane_delta: float,
    full_tank_seconds: float,
) -> tuple[float, int, float]:
    """Fuel to add at the final stop so the last stint just reaches the flag.

    Args:
        fuel_remaining: Fuel in the tank when the car enters the pits.
        time_remaining: Race time left at pit entry.
        pace: Pace of the final stint.
        tank_capacity: Tank capacity in litres.
        reserve_fuel: Fuel to hold back at the flag.
        pit_lane_delta: Pit-lane time loss.
        full_tank_seconds: Time to fill an empty tank.

    Returns:
        ``(fuel_to_add, complete_laps, pit_seconds)`` where
        ``complete_laps`` excludes the white-flag lap.
    """
    room = max(0.0, tank_capacity - fuel_remaining)

    def _outcome(fuel_to_add: float) -> tuple[int, float]:
        pit_seconds = pit_lane_delta + fueling_time(
            fuel_to_add, tank_capacity, full_tank_seconds
        )
        by_time = math.floor((time_remaining - pit_seconds) / pace.lap_seconds)
        by_fuel = math.floor(
            (fuel_remaining + fuel_to_add - reserve_fuel) / pace.fuel_per_lap
        )
        return max(0, min(by_time, by_fuel)), pit_seconds

    fuel_to_add = room
    for _ in range(SPLASH_MAX_ITERATIONS):
        complete, _ = _outcome(fuel_to_add)
        needed = (complete + 1) * pace.fuel_per_lap + reserve_fuel
        updated = min(room, max(0.0, needed - fuel_remaining))
        converged = abs(updated - fuel_to_add) < SPLASH_TOLERANCE
        fuel_to_add = updated
        if converged:
            break

    complete, pit_seconds = _outcome(fuel_to_add)
    return fuel_to_add, complete, pit_seconds


def simulate_mode_mix(
    params: RaceParameters,
    modes: Sequence[str],
    paces: Mapping[str, Pace],
) -> MixResult:
    """Simulate *modes* (one per stint) with fuel-driven pit stops.

    Raises:
        ValueError: If *modes* is empty or the race duration is not
            positive.
    """
    if not modes:
        raise ValueError("modes must not be empty.")
    duration: float = params.race_duration_seconds
    if duration is None or duration <= 0:
        raise ValueError("race_duration_seconds must be > 0.")

    tank: float = params.effective_tank_capacity
    reserve: float = params.safe_reserve
    lane: float = params.safe_pit_lane_delta
    full_seconds: float = params.full_tank_fueling_seconds

    # (mode, laps, start_lap, duration, fuel_at_start, fuel_remaining)
    raw: list[tuple[str, int, int, float, float, float]] = []

    fuel: float = tank - params.safe_formation_fuel
    clock: float = 0.0
    completed: int = 0
    fractional: float = 0.0
    index: int = 0
    stint_laps: int = 0
    stint_start_time: float = 0.0
    stint_start_fuel: float = fuel
    ended_in_pits = False

    while True:
        mode = modes[min(index, len(modes) - 1)]
        pace = paces[mode]

        if fuel < pace.fuel_per_lap + reserve and stint_laps > 0:
            raw.append(
                (
                    mode,
                    stint_laps,
                    completed - stint_laps + 1,
                    clock - stint_start_time,
                    stint_start_fuel,
                    fuel,
                )
            )
            clock += lane + fueling_time(tank - fuel, tank, full_seconds)
            if clock >= duration:
                fractional = float(completed)
                ended_in_pits = True
                break
            fuel = tank
            index += 1
            mode = modes[min(index, len(modes) - 1)]
            pace = paces[mode]
            stint_laps = 0
            stint_start_time = clock
            stint_start_fuel = fuel

        lap_start = clock
        clock += pace.lap_seconds
        completed += 1
        stint_laps += 1
        fuel -= pace.fuel_per_lap

        if lap_start < duration <= clock:
            fractional = completed - 1 + (duration - lap_start) / pace.lap_seconds
            break

    if not ended_in_pits:
        raw.append(
            (
                mode,
                stint_laps,
                completed - stint_laps + 1,
                clock - stint_start_time,
                stint_start_fuel,
                fuel,
            )
        )

    # -- Full-tank stops before the final one -------------------------------
    stints: list[MixStint] = []
    clock_before_final_stop: float = 0.0
    total_pit: float = 0.0
    stops = len(raw) - 1
    for i, (mode, laps, start_lap, stint_time, at_start, remaining) in enumerate(raw):
        added = 0.0
        pit_seconds = 0.0
        if i < stops - 1 or ended_in_pits:
            added = tank - remaining
            pit_seconds = lane + fueling_time(added, tank, full_seconds)
        stints.append(
            MixStint(
                id=i + 1,
                mode=mode,
                laps=laps,
                start_lap=start_lap,
                duration=stint_time,
                fuel_at_start=at_start,
                fuel_used=at_start - remaining,
                fuel_remaining=remaining,
                fuel_added=added,
                pit_seconds=pit_seconds,
            )
        )
        total_pit += pit_seconds
        if i < stops:
            clock_before_final_stop += stint_time + pit_seconds

    if stops <= 0 or ended_in_pits:
        return MixResult(
            stints=tuple(stints),
            fractional_laps=fractional,
            total_pit_time=total_pit,
            formation_lap_fuel=params.safe_formation_fuel,
        )

    # -- Splash-and-dash final stop -------------------------------------------
    penultimate, final = stints[-2], stints[-1]
    final_pace = paces[final.mode]
    splash, complete, pit_seconds = solve_final_splash(
        penultimate.fuel_remaining,
        duration - clock_before_final_stop,
        final_pace,
        tank,
        reserve,
        lane,
        full_seconds,
    )
    total_pit += pit_seconds
    fuel_at_start = penultimate.fuel_remaining + splash
    final_laps = complete + 1
    final_used = final_laps * final_pace.fuel_per_lap

    stints[-2] = MixStint(
        id=penultimate.id,
        mode=penultimate.mode,
        laps=penultimate.laps,
        start_lap=penultimate.start_lap,
        duration=penultimate.duration,
        fuel_at_start=penultimate.fuel_at_start,
        fuel_used=penultimate.fuel_used,
        fuel_remaining=penultimate.fuel_remaining,
        fuel_added=splash,
        pit_seconds=pit_seconds,
    )
    stints[-1] = MixStint(
        id=final.id,
        mode=final.mode,
        laps=final_laps,
        start_lap=penultimate.end_lap + 1,
        duration=final_laps * final_pace.lap_seconds,
        fuel_at_start=fuel_at_start,
        fuel_used=final_used,
        fuel_remaining=fuel_at_start - final_used,
        is_splash=splash < (tank - penultimate.fuel_remaining) * SPLASH_FUEL_RATIO,
    )

    laps_before = sum(s.laps for s in stints[:-1])
    into_white_flag = duration - (
        clock_before_final_stop + pit_seconds + complete * final_pace.lap_seconds
    )
    return MixResult(
        stints=tuple(stints),
        fractional_laps=laps_before + complete + into_white_flag / final_pace.lap_seconds,
        total_pit_time=total_pit,
        formation_lap_fuel=params.safe_formation_fuel,
    )


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


def _mix_name(pit_stops: int, counts: Mapping[str, int], variant: str | None) -> str:
    parts = [
        f"{counts[mode]}x{MODE_ABBREVIATIONS[mode]}"
        for mode in PACE_MODES
        if counts.get(mode, 0) > 0
    ]
    suffix = f" ({variant})" if variant else ""
    return f"{pit_stops} pit{'s' if pit_stops != 1 else ''}: {', '.join(parts)}{suffix}"


def _final_ratio(result: MixResult, capacities: Mapping[str, int]) -> float:
    final = result.stints[-1]
    return final.laps / capacities[final.mode]


def score_mix(
    result: MixResult,
    standard: MixResult,
    counts: Mapping[str, int],
    variant: str | None,
    paces: Mapping[str, Pace],
    capacities: Mapping[str, int],
) -> MixStrategy:
    """Score *result* against the all-standard run.

    Lap-time cost charges every stint driven in a slower mode for the
    difference to the standard lap time; the final stint is charged only
    for the fraction of it driven before the flag.
    """
    standard_lap = paces[STANDARD].lap_seconds
    laps_before_final = sum(s.laps for s in result.stints[:-1])
    final_fraction = result.fractional_laps - laps_before_final

    lap_time_cost = 0.0
    for i, stint in enumerate(result.stints):
        laps = final_fraction if i == len(result.stints) - 1 else stint.laps
        lap_time_cost += laps * (paces[stint.mode].lap_seconds - standard_lap)

    pit_time_saved = standard.total_pit_time - result.total_pit_time
    ratio = _final_ratio(result, capacities)
    return MixStrategy(
        name=_mix_name(result.pit_stops, counts, variant),
        result=result,
        mode_counts=dict(counts),
        variant=variant,
        final_stint_ratio=ratio,
        has_splash=ratio < SPLASH_THRESHOLD_RATIO,
        pit_time_saved=pit_time_saved,
        lap_time_cost=lap_time_cost,
        net_time_delta=pit_time_saved - lap_time_cost,
        laps_gained=result.fractional_laps - standard.fractional_laps,
        pits_saved=standard.pit_stops - result.pit_stops,
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def compare_mode_mixes(
    params: RaceParameters,
    max_alternatives: int = MAX_ALTERNATIVES,
) -> ModeComparison:
    """Compare the all-standard run with mixes that save one or two stops.

    For each target stop count (one and two fewer than the standard
    run), every split of the stints between the three modes is tried in
    "save late" order (standard, fuel-saving, extra-fuel-saving) and,
    when more than one mode is used, in "save early" order as well.  A
    mix is kept only if it actually achieves the target stop count.

    Alternatives are ranked by net time delta.  If the standard run ends
    on a splash, alternatives without one are ranked first.

    Args:
        params: Race parameters.
        max_alternatives: Number of alternatives to keep.

    Returns:
        A :class:`ModeComparison`.

    Raises:
        ValueError: If the parameters cannot support a plan.
    """
    paces = resolve_mode_paces(params)
    capacities = stint_capacities(
        params.effective_tank_capacity, params.safe_reserve, paces
    )

    standard_result = simulate_mode_mix(params, (STANDARD,), paces)
    standard_ratio = _final_ratio(standard_result, capacities)
    standard = MixStrategy(
        name="Standard",
        result=standard_result,
        mode_counts={STANDARD: len(standard_result.stints)},
        variant=None,
        final_stint_ratio=standard_ratio,
        has_splash=standard_ratio < SPLASH_THRESHOLD_RATIO,
    )

    alternatives: list[MixStrategy] = []
    standard_stops = standard_result.pit_stops
    for target_stops in range(standard_stops - 1, max(0, standard_stops - 2) - 1, -1):
        total = target_stops + 1
        for n_efs in range(total + 1):
            for n_fs in range(total - n_efs + 1):
                n_std = total - n_efs - n_fs
                if n_efs == 0 and n_fs == 0:
                    continue
                counts = {STANDARD: n_std, FUEL_SAVING: n_fs, EXTRA_FUEL_SAVING: n_efs}
                mixed = sum(1 for n in counts.values() if n > 0) > 1

                orders = [(SAVE_LATE if mixed else None, PACE_MODES)]
                if mixed:
                    orders.append((SAVE_EARLY, tuple(reversed(PACE_MODES))))

                for variant, order in orders:
                    modes = [mode for mode in order for _ in range(counts[mode])]
                    result = simulate_mode_mix(params, modes, paces)
                    if result.pit_stops != target_stops:
                        logger.debug(
                            "Discarded %s: %d stops instead of %d",
                            modes,
                            result.pit_stops,
                            target_stops,
                        )
                        continue
                    alternatives.append(
                        score_mix(result, standard_result, counts, variant, paces, capacities)
                    )

    alternatives.sort(
        key=lambda s: (standard.has_splash and s.has_splash, -s.net_time_delta)
    )
    kept = tuple(alternatives[:max_alternatives])
    if kept:
        logger.info(
            "Best mode mix %s: net %+.1fs versus standard", kept[0].name, kept[0].net_time_delta
        )
    return ModeComparison(standard=standard, alternatives=kept, capacities=capacities)
