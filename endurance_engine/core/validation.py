"""Parameter checks and per-stint fuel validation rules.

Parameter problems abort planning and are returned as a list of messages.
Stint problems never abort: they are attached to the stint as
:class:`ValidationIssue` records carrying enough numeric detail for a
caller to assert on them without re-deriving anything.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from endurance_engine.core.candidates import MIN_FUEL_RATIO
from endurance_engine.core.pace import resolve_fuel_per_lap, resolve_lap_seconds
from endurance_engine.core.params import RaceParameters

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

AGGRESSIVE_FUEL_RATIO: float = 0.95
FUEL_EPSILON: float = 1e-9

# Issue kinds
TARGET_BELOW_MINIMUM: str = "target_below_minimum"
INSUFFICIENT_FUEL: str = "insufficient_fuel"
NEXT_STINT_INSUFFICIENT: str = "next_stint_insufficient"
AGGRESSIVE_TARGET: str = "aggressive_target"

# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ValidationIssue:
    """One error or warning attached to a stint.

    Attributes:
        kind: Machine-readable identifier (e.g. ``"insufficient_fuel"``).
        level: ``"error"`` or ``"warning"``.
        message: Human-readable summary.
        details: Numeric values behind the verdict as ``(name, value)``
            pairs, so issues stay hashable.
    """

    kind: str
    level: str
    message: str
    details: tuple[tuple[str, float], ...] = ()

    def detail(self, name: str) -> float:
        """Return the detail value called *name*.

        Raises:
            KeyError: If the issue carries no such detail.
        """
        for key, value in self.details:
            if key == name:
                return value
        raise KeyError(name)


@dataclass(frozen=True)
class StintValidation:
    """Errors and warnings for one stint."""

    errors: tuple[ValidationIssue, ...] = ()
    warnings: tuple[ValidationIssue, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def kinds(self) -> set[str]:
        return {issue.kind for issue in self.errors + self.warnings}


@dataclass(frozen=True)
class FuelTargetCheck:
    """Fuel-per-lap the stint can afford compared with the standard rate."""

    target_per_lap: float
    min_allowed: float
    usable_fuel: float
    standard_fuel_per_lap: float
    is_valid: bool
    is_aggressive: bool
    shortfall_per_lap: float
    total_shortfall: float


@dataclass(frozen=True)
class FuelSufficiencyCheck:
    """Fuel required for a stint compared with the fuel on board."""

    required: float
    available: float
    shortfall: float
    is_sufficient: bool
    max_laps_possible: int


# ---------------------------------------------------------------------------
# Parameter validation
# ---------------------------------------------------------------------------


def validate_parameters(params: RaceParameters, mode: str) -> list[str]:
    """Return user-facing messages for unusable core inputs.

    An empty list means planning can proceed.
    """
    errors: list[str] = []

    if params.race_duration_seconds is None or params.race_duration_seconds <= 0:
        errors.append("Race duration must be greater than zero.")

    if resolve_lap_seconds(mode, params) is None:
        errors.append("Provide a valid average lap time.")

    fuel_per_lap = resolve_fuel_per_lap(mode, params)
    if fuel_per_lap is None:
        errors.append("Fuel usage per lap must be greater than zero.")

    if params.tank_capacity is None or params.effective_tank_capacity <= 0:
        errors.append("Tank capacity must be greater than zero.")
    elif fuel_per_lap is not None and params.effective_tank_capacity < fuel_per_lap:
        errors.append("Tank capacity must hold enough fuel for at least one lap.")

    return errors


# ---------------------------------------------------------------------------
# Stint checks
# ---------------------------------------------------------------------------


def check_fuel_target(
    available_fuel: float,
    laps: int,
    reserve_fuel: float,
    formation_lap_fuel: float,
    is_first_stint: bool,
    standard_fuel_per_lap: float,
) -> FuelTargetCheck:
    """Fuel-per-lap target for a stint, judged against the standard rate.

    The target is the usable fuel (on board, minus reserve, minus the
    formation lap on stint 1) spread over the stint's laps.  A target
    below 90% of the standard rate is not sustainable; below 95% it is
    aggressive.
    """
    usable: float = available_fuel - reserve_fuel - (
        formation_lap_fuel if is_first_stint else 0.0
    )
    target: float = usable / laps if laps > 0 else 0.0
    minimum: float = standard_fuel_per_lap * MIN_FUEL_RATIO
    is_valid: bool = target >= minimum - FUEL_EPSILON
    shortfall_per_lap: float = max(0.0, minimum - target)
    return FuelTargetCheck(
        target_per_lap=target,
        min_allowed=minimum,
        usable_fuel=usable,
        standard_fuel_per_lap=standard_fuel_per_lap,
        is_valid=is_valid,
        is_aggressive=is_valid and target < standard_fuel_per_lap * AGGRESSIVE_FUEL_RATIO,
        shortfall_per_lap=shortfall_per_lap,
        total_shortfall=shortfall_per_lap * laps,
    )


def check_fuel_sufficiency(
    available_fuel: float,
    laps: int,
    fuel_per_lap: float,
    reserve_fuel: float,
) -> FuelSufficiencyCheck:
    """Compare the fuel a stint needs (laps plus reserve) with what is on board."""
    required: float = laps * fuel_per_lap + reserve_fuel
    max_laps: int = (
        math.floor((available_fuel - reserve_fuel) / fuel_per_lap + FUEL_EPSILON)
        if available_fuel > reserve_fuel
        else 0
    )
    return FuelSufficiencyCheck(
        required=required,
        available=available_fuel,
        shortfall=max(0.0, required - available_fuel),
        is_sufficient=available_fuel >= required - FUEL_EPSILON,
        max_laps_possible=max_laps,
    )


def classify_stint(
    target: FuelTargetCheck,
    sufficiency: FuelSufficiencyCheck,
    laps: int,
) -> StintValidation:
    """Turn the two stint checks into errors and warnings."""
    errors: list[ValidationIssue] = []
    warnings: list[ValidationIssue] = []

    if not sufficiency.is_sufficient:
        errors.append(
            ValidationIssue(
                kind=INSUFFICIENT_FUEL,
                level="error",
                message=f"Insufficient fuel for {laps} laps",
                details=(
                    ("required", sufficiency.required),
                    ("available", sufficiency.available),
                    ("shortfall", sufficiency.shortfall),
                    ("max_laps_possible", float(sufficiency.max_laps_possible)),
                ),
            )
        )

    if not target.is_valid:
        errors.append(
            ValidationIssue(
                kind=TARGET_BELOW_MINIMUM,
                level="error",
                message=(
                    f"Target fuel consumption below {MIN_FUEL_RATIO:.0%} minimum"
                ),
                details=(
                    ("target", target.target_per_lap),
                    ("minimum", target.min_allowed),
                    ("shortfall_per_lap", target.shortfall_per_lap),
                    ("total_shortfall", target.total_shortfall),
                    (
                        "max_laps_possible",
                        float(math.floor(max(0.0, target.usable_fuel) / target.min_allowed)),
                    ),
                ),
            )
        )
    elif target.is_aggressive:
        standard = target.standard_fuel_per_lap
        warnings.append(
            ValidationIssue(
                kind=AGGRESSIVE_TARGET,
                level="warning",
                message="Aggressive fuel saving required",
                details=(
                    ("target", target.target_per_lap),
                    ("standard", standard),
                    (
                        "percentage_below",
                        (standard - target.target_per_lap) / standard * 100.0,
                    ),
                ),
            )
        )

    return StintValidation(errors=tuple(errors), warnings=tuple(warnings))


def check_next_stint(
    fuel_for_next: float,
    next_laps: int,
    next_fuel_per_lap: float,
    reserve_fuel: float,
) -> ValidationIssue | None:
    """Flag a stop that leaves the following stint short of fuel."""
    check = check_fuel_sufficiency(fuel_for_next, next_laps, next_fuel_per_lap, reserve_fuel)
    if check.is_sufficient:
        return None
    return ValidationIssue(
        kind=NEXT_STINT_INSUFFICIENT,
        level="error",
        message=f"Fuel added is not enough for the next {next_laps} laps",
        details=(
            ("required", check.required),
            ("available", check.available),
            ("shortfall", check.shortfall),
            ("max_laps_possible", float(check.max_laps_possible)),
        ),
    )


def check_stint_capacity(
    available_fuel: float,
    wanted_laps: int,
    fuel_per_lap: float,
    reserve_fuel: float,
) -> ValidationIssue | None:
    """Flag a stint asked to run more laps than the fuel on board allows."""
    check = check_fuel_sufficiency(available_fuel, wanted_laps, fuel_per_lap, reserve_fuel)
    if check.is_sufficient:
        return None
    return ValidationIssue(
        kind=INSUFFICIENT_FUEL,
        level="error",
        message=(
            f"Insufficient fuel for {wanted_laps} laps, "
            f"stint cut to {check.max_laps_possible}"
        ),
        details=(
            ("required", check.required),
            ("available", check.available),
            ("shortfall", check.shortfall),
            ("max_laps_possible", float(check.max_laps_possible)),
            ("laps_requested", float(wanted_laps)),
        ),
    )
