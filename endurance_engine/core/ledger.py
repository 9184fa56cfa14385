"""Per-stint fuel and pit-time ledger.

Expands a lap distribution into concrete stints.  The walk starts with a
full tank and, for every stint:

    1. Caps the laps at the stint pace's fuel-capacity limit and at the
       laps still to run.
    2. Computes the fuel needed (laps x burn + reserve, less the
       formation-lap allowance on stint 1) and the fuel used, which can
       never exceed what is in the tank.
    3. Decides the fuel added at the following stop: a full top-up,
       except before the final stint where only the final stint's need is
       added (splash-and-dash).
    4. Derives fueling time, service time and total pit loss.
    5. Validates the stint's fuel target and sufficiency.

The fuel *used* by a stint includes the reserve it must hold back, so
``fuel_remaining`` is the fuel left beyond that reserve.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from endurance_engine.core.candidates import max_laps_for_fuel
from endurance_engine.core.pace import Pace
from endurance_engine.core.params import RaceParameters
from endurance_engine.core.pit_service import PitService, fueling_time, service_time_for
from endurance_engine.core.simulation import stint_penalty_seconds
from endurance_engine.core.validation import (
    StintValidation,
    ValidationIssue,
    check_fuel_sufficiency,
    check_fuel_target,
    check_next_stint,
    check_stint_capacity,
    classify_stint,
)

# ---------------------------------------------------------------------------
# Stint record
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Stint:
    """One stint of the plan.

    Times are offsets from the start of the race; ``start_time`` includes
    all earlier stops.

    Attributes:
        id: 1-based stint number.
        start_lap: First lap of the stint (1-based).
        end_lap: Last lap of the stint.
        laps: Laps in the stint.
        pace_mode: Pace mode driven.
        lap_seconds: Lap time of the pace mode.
        fuel_per_lap: Fuel burn of the pace mode.
        duration: Driving time including lap penalties.
        penalty_seconds: Lap penalties charged to the stint.
        start_time: Race clock when the stint starts.
        end_time: Race clock when the stint ends (before its stop).
        fuel_at_start: Fuel in the tank at the start of the stint.
        fuel_needed: Laps x burn + reserve (less formation fuel on stint 1).
        fuel_used: ``min(fuel_needed, fuel_at_start)``.
        fuel_remaining: ``fuel_at_start - fuel_used``.
        fuel_added: Fuel added at the following stop (0 for the last stint).
        fueling_seconds: Time to add ``fuel_added``.
        service_seconds: Stationary time of the following stop.
        pit_loss: Pit lane plus service time (0 for the last stint).
        fuel_target: Affordable fuel per lap for the stint.
        validation: Errors and warnings.
    """

    id: int
    start_lap: int
    end_lap: int
    laps: int
    pace_mode: str
    lap_seconds: float
    fuel_per_lap: float
    duration: float
    penalty_seconds: float
    start_time: float
    end_time: float
    fuel_at_start: float
    fuel_needed: float
    fuel_used: float
    fuel_remaining: float
    fuel_added: float
    fueling_seconds: float
    service_seconds: float
    pit_loss: float
    fuel_target: float
    validation: StintValidation


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------


def _capped_laps(planned: int, pace: Pace, tank: float, laps_left: int) -> int:
    limit = max_laps_for_fuel(tank, pace.fuel_per_lap)
    return max(0, min(planned, limit, laps_left))


def build_ledger(
    distribution: Sequence[int],
    params: RaceParameters,
    pace: Pace,
    standard_fuel_per_lap: float,
    final_pace: Pace | None = None,
    target_laps: int | None = None,
    pit_services: Mapping[int, PitService | float] | None = None,
    fuel_overrides: Mapping[int, float] | None = None,
) -> tuple[Stint, ...]:
    """Expand *distribution* into stints.

    Args:
        distribution: Planned laps per stint.
        params: Race parameters (tank, reserve, pit lane, penalties).
        pace: Pace for every stint except the last.
        standard_fuel_per_lap: Standard burn used for target validation.
        final_pace: Pace for the last stint.  Defaults to *pace*.
        target_laps: Total laps to cover.  Defaults to the distribution sum.
        pit_services: Optional per-stop service requests keyed by the id
            of the stint *before* the stop.  A :class:`PitService` is
            priced with the pit-service model; a plain number is used as
            the service time in seconds.
        fuel_overrides: Optional fixed fuel adds keyed like
            *pit_services*, clamped to the room in the tank.

    Returns:
        Tuple of :class:`Stint` in race order.

    Raises:
        ValueError: If the distribution is empty.
    """
    if not distribution:
        raise ValueError("distribution must not be empty.")

    count: int = len(distribution)
    tank: float = params.effective_tank_capacity
    reserve: float = params.safe_reserve
    formation: float = params.safe_formation_fuel
    penalties: tuple[float, ...] = params.effective_penalties
    target: int = sum(distribution) if target_laps is None else target_laps
    paces: list[Pace] = [pace] * (count - 1) + [final_pace or pace]
    services: Mapping[int, PitService | float] = pit_services or {}
    overrides: Mapping[int, float] = fuel_overrides or {}

    stints: list[Stint] = []
    fuel_in_tank: float = tank
    completed: int = 0
    clock: float = 0.0

    for idx, planned in enumerate(distribution):
        stint_id = idx + 1
        stint_pace = paces[idx]
        is_first = idx == 0
        is_last = idx == count - 1

        wanted = max(0, min(planned, target - completed))
        laps = _capped_laps(planned, stint_pace, tank, target - completed)
        penalty = stint_penalty_seconds(laps, penalties)
        duration = laps * stint_pace.lap_seconds + penalty

        # -- Fuel for this stint ---------------------------------------------
        fuel_needed = laps * stint_pace.fuel_per_lap + reserve
        if is_first:
            fuel_needed = max(0.0, fuel_needed - formation)
        fuel_used = min(fuel_needed, fuel_in_tank)
        fuel_remaining = fuel_in_tank - fuel_used

        # -- Following stop ----------------------------------------------------
        fuel_added = 0.0
        fueling = 0.0
        service = 0.0
        pit_loss = 0.0
        stop_issue = None
        if not is_last:
            next_pace = paces[idx + 1]
            next_laps = _capped_laps(
                distribution[idx + 1], next_pace, tank, target - completed - laps
            )
            next_need = next_laps * next_pace.fuel_per_lap + reserve
            room = max(0.0, tank - fuel_remaining)

            if stint_id in overrides:
                fuel_added = min(max(0.0, overrides[stint_id]), room)
            elif idx == count - 2:
                # Splash-and-dash: only what the final stint needs.
                fuel_added = min(max(0.0, next_need - fuel_remaining), room)
            else:
                fuel_added = room

            fueling = fueling_time(fuel_added, tank, params.full_tank_fueling_seconds)
            request = services.get(stint_id)
            if request is None:
                service = fueling
            elif isinstance(request, PitService):
                service = service_time_for(
                    request, fuel_added, tank, params.full_tank_fueling_seconds
                )
            else:
                service = max(0.0, float(request))
            pit_loss = params.safe_pit_lane_delta + service

            if fuel_added < room:
                stop_issue = check_next_stint(
                    fuel_remaining + fuel_added,
                    next_laps,
                    next_pace.fuel_per_lap,
                    reserve,
                )

        # -- Validation --------------------------------------------------------
        target_check = check_fuel_target(
            fuel_in_tank, laps, reserve, formation, is_first, standard_fuel_per_lap
        )
        sufficiency = check_fuel_sufficiency(
            fuel_in_tank, laps, stint_pace.fuel_per_lap, reserve
        )
        validation = classify_stint(target_check, sufficiency, laps)
        extra_errors: tuple[ValidationIssue, ...] = ()
        if laps < wanted:
            # Cut short by the tank: report the laps that were asked for.
            cap_issue = check_stint_capacity(
                fuel_in_tank, wanted, stint_pace.fuel_per_lap, reserve
            )
            if cap_issue is not None:
                extra_errors += (cap_issue,)
        if stop_issue is not None:
            extra_errors += (stop_issue,)
        if extra_errors:
            validation = StintValidation(
                errors=validation.errors + extra_errors,
                warnings=validation.warnings,
            )

        stints.append(
            Stint(
                id=stint_id,
                start_lap=completed + 1,
                end_lap=completed + laps,
                laps=laps,
                pace_mode=stint_pace.mode,
                lap_seconds=stint_pace.lap_seconds,
                fuel_per_lap=stint_pace.fuel_per_lap,
                duration=duration,
                penalty_seconds=penalty,
                start_time=clock,
                end_time=clock + duration,
                fuel_at_start=fuel_in_tank,
                fuel_needed=fuel_needed,
                fuel_used=fuel_used,
                fuel_remaining=fuel_remaining,
                fuel_added=fuel_added,
                fueling_seconds=fueling,
                service_seconds=service,
                pit_loss=pit_loss,
                fuel_target=target_check.target_per_lap,
                validation=validation,
            )
        )

        completed += laps
        clock += duration + pit_loss
        fuel_in_tank = fuel_remaining + fuel_added

    return tuple(stints)
