"""Core planning modules for the endurance stint planner."""

from endurance_engine.core.candidates import (
    Candidate,
    choose_stint_count,
    distribute_laps,
    generate_blended_candidates,
    max_laps_for_fuel,
    rank_candidates,
)
from endurance_engine.core.comparison import (
    ModeComparison,
    MixStrategy,
    compare_mode_mixes,
    simulate_mode_mix,
    stint_capacities,
)
from endurance_engine.core.ledger import Stint, build_ledger
from endurance_engine.core.pace import (
    EXTRA_FUEL_SAVING,
    FUEL_SAVING,
    PACE_MODES,
    STANDARD,
    Pace,
    resolve_pace,
)
from endurance_engine.core.params import FULL_TANK_FUELING_SECONDS, RaceParameters
from endurance_engine.core.pit_service import (
    PitService,
    TireChange,
    service_time,
    tire_service_time,
)
from endurance_engine.core.planner import PlanResult, StrategyPlan, compute_plan
from endurance_engine.core.sensitivity import (
    compute_fuel_sensitivity,
    compute_lap_time_sensitivity,
    sweep_fuel_rate,
)
from endurance_engine.core.simulation import (
    SimulationResult,
    simulate_baseline,
    simulate_stints,
)
from endurance_engine.core.validation import (
    StintValidation,
    ValidationIssue,
    validate_parameters,
)

__all__ = [
    "Candidate",
    "EXTRA_FUEL_SAVING",
    "FUEL_SAVING",
    "FULL_TANK_FUELING_SECONDS",
    "MixStrategy",
    "ModeComparison",
    "PACE_MODES",
    "Pace",
    "PitService",
    "PlanResult",
    "RaceParameters",
    "STANDARD",
    "SimulationResult",
    "Stint",
    "StintValidation",
    "StrategyPlan",
    "TireChange",
    "ValidationIssue",
    "build_ledger",
    "choose_stint_count",
    "compare_mode_mixes",
    "compute_fuel_sensitivity",
    "compute_lap_time_sensitivity",
    "compute_plan",
    "distribute_laps",
    "generate_blended_candidates",
    "max_laps_for_fuel",
    "rank_candidates",
    "resolve_pace",
    "service_time",
    "simulate_baseline",
    "simulate_mode_mix",
    "simulate_stints",
    "stint_capacities",
    "sweep_fuel_rate",
    "tire_service_time",
    "validate_parameters",
]
