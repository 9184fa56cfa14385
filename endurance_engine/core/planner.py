"""Planning pipeline: pace -> baseline -> candidate search -> ledger.

:func:`compute_plan` is the single entry point used by callers.  It is a
pure function of its inputs; identical arguments always produce equal
results.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from endurance_engine.core.candidates import (
    DEFAULT_MIN_STINT_LAPS,
    Candidate,
    choose_stint_count,
    distribute_laps,
    generate_blended_candidates,
    max_laps_for_fuel,
    rank_candidates,
)
from endurance_engine.core.ledger import Stint, build_ledger
from endurance_engine.core.pace import (
    EXTRA_FUEL_SAVING,
    STANDARD,
    Pace,
    configured_pace,
    resolve_fuel_per_lap,
    resolve_pace,
)
from endurance_engine.core.params import RaceParameters
from endurance_engine.core.pit_service import PitService
from endurance_engine.core.simulation import (
    SimulationResult,
    max_race_time,
    simulate_baseline,
)
from endurance_engine.core.validation import validate_parameters

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Result containers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StrategyPlan:
    """A complete stint plan for one pace-mode selection.

    Attributes:
        pace: Pace used for every stint except a blended final stint.
        stints: Stints in race order.
        target_laps: Laps the race is planned to cover.
        fractional_laps: Winning candidate's distance at the boundary.
        total_pit_time: Sum of pit losses.
        total_race_time: Driving plus pit time, capped at
            ``max_race_time``.
        max_race_time: Race duration plus one lap.
        max_laps_per_stint: Effective stint length limit.
        baseline: Unconstrained simulation result.
        winner: Selected candidate.
        candidates: Viable candidates, best first.
        rejected_candidates: Candidates excluded by feasibility checks.
        min_laps_warning: ``True`` if the requested minimum stint length
            exceeds ``max_laps_per_stint``.
    """

    pace: Pace
    stints: tuple[Stint, ...]
    target_laps: int
    fractional_laps: float
    total_pit_time: float
    total_race_time: float
    max_race_time: float
    max_laps_per_stint: int
    baseline: SimulationResult
    winner: Candidate
    candidates: tuple[Candidate, ...]
    rejected_candidates: tuple[Candidate, ...] = ()
    min_laps_warning: bool = False

    @property
    def total_laps(self) -> int:
        return sum(s.laps for s in self.stints)

    @property
    def stint_count(self) -> int:
        return len(self.stints)

    @property
    def pit_stops(self) -> int:
        return max(0, len(self.stints) - 1)

    @property
    def total_fuel_used(self) -> float:
        return sum(s.fuel_used for s in self.stints)

    @property
    def average_pit_loss(self) -> float:
        return self.total_pit_time / self.pit_stops if self.pit_stops else 0.0

    @property
    def has_errors(self) -> bool:
        return any(not s.validation.is_valid for s in self.stints)


@dataclass(frozen=True)
class PlanResult:
    """Either a plan or the parameter errors that prevented one."""

    plan: StrategyPlan | None = None
    errors: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.plan is not None and not self.errors


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def apply_custom_laps(
    distribution: Sequence[int],
    custom_laps: Mapping[int, int],
    target_laps: int,
    max_laps: int | None = None,
) -> tuple[int, ...]:
    """Override stint lengths by stint id (1-based).

    Overridden stints keep at least one lap and, when *max_laps* is given,
    at most *max_laps*.  Unless the final stint is itself overridden it
    absorbs the difference to *target_laps*.  Stints that would start after
    the target is reached are dropped, and laps still missing are added as
    extra stints of at most *max_laps* each, so the result always sums to
    *target_laps*.
    """
    cap: int | None = max_laps if max_laps is not None and max_laps > 0 else None

    def _fit(n: int) -> int:
        return n if cap is None else min(n, cap)

    laps = [
        _fit(max(1, int(custom_laps[i + 1]))) if i + 1 in custom_laps else planned
        for i, planned in enumerate(distribution)
    ]
    if len(laps) not in custom_laps:
        laps[-1] = _fit(target_laps - sum(laps[:-1]))

    trimmed: list[int] = []
    remaining = target_laps
    for n in laps:
        take = min(n, remaining)
        if take <= 0:
            break
        trimmed.append(take)
        remaining -= take

    while remaining > 0:
        extra = _fit(remaining)
        trimmed.append(extra)
        remaining -= extra
    return tuple(trimmed) or (max(1, target_laps),)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def compute_plan(
    params: RaceParameters,
    mode: str = STANDARD,
    pit_services: Mapping[int, PitService | float] | None = None,
    fuel_overrides: Mapping[int, float] | None = None,
    custom_laps: Mapping[int, int] | None = None,
) -> PlanResult:
    """Plan stints, fuel and pit stops for *params* at pace *mode*.

    Steps:
        1. Validate parameters; any error aborts with messages only.
        2. Resolve the pace and the fuel-limited stint length.
        3. Simulate the unconstrained race to get the target lap count.
        4. Choose the stint count and an even lap distribution.
        5. If an extra-fuel-saving pace is configured and more than one
           stint is planned, evaluate blended-finish candidates.
        6. Rank candidates and expand the winner through the ledger.

    Args:
        params: Race parameters.
        mode: Pace mode for the plan.
        pit_services: Per-stop service requests or service-time
            overrides, keyed by the id of the stint before the stop.
        fuel_overrides: Per-stop fixed fuel adds, keyed the same way.
        custom_laps: Per-stint lap overrides applied to the winner.

    Returns:
        A :class:`PlanResult`.
    """
    errors = validate_parameters(params, mode)
    if errors:
        return PlanResult(errors=tuple(errors))

    pace = resolve_pace(mode, params)
    assert pace is not None
    standard_fuel: float = resolve_fuel_per_lap(STANDARD, params) or pace.fuel_per_lap

    duration: float = params.race_duration_seconds
    tank: float = params.effective_tank_capacity
    penalties: tuple[float, ...] = params.effective_penalties
    race_limit: float = max_race_time(duration, pace.lap_seconds)

    fuel_limit_laps: int = max_laps_for_fuel(tank, pace.fuel_per_lap)
    max_laps: int = max_laps_for_fuel(tank, pace.fuel_per_lap, params.max_laps_per_stint)
    estimated_stop_loss: float = (
        params.safe_pit_lane_delta + params.full_tank_fueling_seconds
    )

    # -- Baseline distance ----------------------------------------------------
    baseline = simulate_baseline(
        duration, pace, fuel_limit_laps, estimated_stop_loss, penalties
    )
    target_laps: int = baseline.total_laps

    # -- Stint count ----------------------------------------------------------
    min_stint: int = (
        int(params.min_laps_per_stint)
        if params.min_laps_per_stint is not None and params.min_laps_per_stint > 0
        else DEFAULT_MIN_STINT_LAPS
    )
    count = choose_stint_count(target_laps, max_laps, min_stint)

    evaluated: list[Candidate] = [
        Candidate(
            stint_count=count,
            distribution=distribute_laps(target_laps, count),
            fractional_laps=baseline.fractional_laps,
            pit_time=(count - 1) * estimated_stop_loss,
            label=f"{count} stints (pure)",
        )
    ]

    # -- Blended-finish candidates -------------------------------------------
    final_pace = configured_pace(EXTRA_FUEL_SAVING, params)
    if final_pace is not None and count > 1 and pace.mode != EXTRA_FUEL_SAVING:
        evaluated.extend(
            generate_blended_candidates(
                target_laps,
                count,
                params,
                pace,
                final_pace,
                standard_fuel,
                max_laps,
                estimated_stop_loss,
                race_limit,
            )
        )

    ranked = rank_candidates(evaluated)
    winner = ranked[0]
    logger.info(
        "Selected %s: %.3f laps, %d stops, %.1fs pit time",
        winner.label,
        winner.fractional_laps,
        winner.pit_stops,
        winner.pit_time,
    )

    # -- Ledger -----------------------------------------------------------------
    distribution = winner.distribution
    if custom_laps:
        lap_cap = max_laps
        if winner.blended and final_pace is not None:
            lap_cap = min(lap_cap, max_laps_for_fuel(tank, final_pace.fuel_per_lap))
        distribution = apply_custom_laps(distribution, custom_laps, target_laps, lap_cap)

    stints = build_ledger(
        distribution,
        params,
        pace,
        standard_fuel,
        final_pace=final_pace if winner.blended else None,
        target_laps=target_laps,
        pit_services=pit_services,
        fuel_overrides=fuel_overrides,
    )

    total_pit_time = sum(s.pit_loss for s in stints)
    driving_time = sum(s.duration for s in stints)

    plan = StrategyPlan(
        pace=pace,
        stints=stints,
        target_laps=target_laps,
        fractional_laps=winner.fractional_laps,
        total_pit_time=total_pit_time,
        total_race_time=min(driving_time + total_pit_time, race_limit),
        max_race_time=race_limit,
        max_laps_per_stint=max_laps,
        baseline=baseline,
        winner=winner,
        candidates=ranked,
        rejected_candidates=tuple(c for c in evaluated if not c.viable),
        min_laps_warning=(
            params.min_laps_per_stint is not None
            and params.min_laps_per_stint > max_laps
        ),
    )
    return PlanResult(plan=plan)
