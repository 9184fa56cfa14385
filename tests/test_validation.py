"""Tests for parameter validation and stint fuel checks."""

import pytest

from endurance_engine.core.params import RaceParameters
from endurance_engine.core.validation import (
    AGGRESSIVE_TARGET,
    INSUFFICIENT_FUEL,
    NEXT_STINT_INSUFFICIENT,
    TARGET_BELOW_MINIMUM,
    check_fuel_sufficiency,
    check_fuel_target,
    check_next_stint,
    classify_stint,
    validate_parameters,
)

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def _sample_params(**overrides: object) -> RaceParameters:
    values: dict = dict(
        race_duration_seconds=10800.0,
        tank_capacity=106.0,
        standard_lap_seconds=103.5,
        standard_fuel_per_lap=3.20,
        reserve_fuel=0.3,
    )
    values.update(overrides)
    return RaceParameters(**values)


# ---------------------------------------------------------------------------
# Parameter validation
# ---------------------------------------------------------------------------


def test_valid_parameters_have_no_errors() -> None:
    assert validate_parameters(_sample_params(), "standard") == []


def test_each_parameter_error_message() -> None:
    """Every unusable core input yields its own user-facing message."""
    assert validate_parameters(_sample_params(race_duration_seconds=0.0), "standard") == [
        "Race duration must be greater than zero."
    ]
    assert validate_parameters(_sample_params(standard_lap_seconds=None), "standard") == [
        "Provide a valid average lap time."
    ]
    assert validate_parameters(_sample_params(standard_fuel_per_lap=-1.0), "standard") == [
        "Fuel usage per lap must be greater than zero."
    ]
    assert validate_parameters(_sample_params(tank_capacity=0.0), "standard") == [
        "Tank capacity must be greater than zero."
    ]


def test_tank_must_hold_one_lap() -> None:
    errors = validate_parameters(_sample_params(tank_capacity=2.0), "standard")
    assert errors == ["Tank capacity must hold enough fuel for at least one lap."]


def test_errors_accumulate() -> None:
    errors = validate_parameters(
        _sample_params(race_duration_seconds=-5.0, tank_capacity=0.0), "standard"
    )
    assert len(errors) == 2


# ---------------------------------------------------------------------------
# Fuel target
# ---------------------------------------------------------------------------


def test_first_stint_target_excludes_formation_fuel() -> None:
    """Stint 1 spreads the tank minus reserve and formation lap over its laps."""
    check = check_fuel_target(106.0, 26, 0.3, 1.5, True, 3.2)
    assert check.target_per_lap == pytest.approx((106.0 - 0.3 - 1.5) / 26)
    assert check.is_valid
    assert not check.is_aggressive


def test_target_below_ninety_percent_is_invalid() -> None:
    check = check_fuel_target(80.0, 30, 0.0, 0.0, False, 3.2)
    assert not check.is_valid
    assert check.shortfall_per_lap == pytest.approx(2.88 - 80.0 / 30)
    assert check.total_shortfall == pytest.approx(check.shortfall_per_lap * 30)


def test_target_below_ninety_five_percent_is_aggressive() -> None:
    check = check_fuel_target(90.0, 30, 0.0, 0.0, False, 3.2)
    assert check.is_valid
    assert check.is_aggressive


# ---------------------------------------------------------------------------
# Fuel sufficiency
# ---------------------------------------------------------------------------


def test_sufficiency_reports_shortfall_and_max_laps() -> None:
    check = check_fuel_sufficiency(50.0, 20, 3.0, 0.3)
    assert check.required == pytest.approx(60.3)
    assert check.shortfall == pytest.approx(10.3)
    assert not check.is_sufficient
    assert check.max_laps_possible == 16


def test_sufficiency_tolerates_rounding_on_exact_fill() -> None:
    """A tank filled to exactly the requirement is sufficient."""
    available = (106.0 - 83.5) + (25 * 3.2 + 0.3 - (106.0 - 83.5))
    assert check_fuel_sufficiency(available, 25, 3.2, 0.3).is_sufficient


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def test_classify_insufficient_and_below_minimum() -> None:
    target = check_fuel_target(50.0, 20, 0.3, 0.0, False, 3.2)
    sufficiency = check_fuel_sufficiency(50.0, 20, 3.2, 0.3)
    validation = classify_stint(target, sufficiency, 20)

    assert not validation.is_valid
    assert validation.kinds() == {INSUFFICIENT_FUEL, TARGET_BELOW_MINIMUM}
    insufficient = next(e for e in validation.errors if e.kind == INSUFFICIENT_FUEL)
    assert insufficient.level == "error"
    assert insufficient.detail("required") == pytest.approx(64.3)
    assert insufficient.detail("available") == 50.0


def test_classify_aggressive_is_warning_only() -> None:
    target = check_fuel_target(90.0, 30, 0.0, 0.0, False, 3.2)
    sufficiency = check_fuel_sufficiency(90.0, 30, 3.0, 0.0)
    validation = classify_stint(target, sufficiency, 30)

    assert validation.is_valid
    assert [w.kind for w in validation.warnings] == [AGGRESSIVE_TARGET]
    assert validation.warnings[0].detail("percentage_below") == pytest.approx(6.25)


def test_next_stint_check() -> None:
    """A stop leaving the next stint short is flagged with the shortfall."""
    assert check_next_stint(80.3, 25, 3.2, 0.3) is None
    issue = check_next_stint(70.0, 25, 3.2, 0.3)
    assert issue is not None
    assert issue.kind == NEXT_STINT_INSUFFICIENT
    assert issue.detail("shortfall") == pytest.approx(10.3)


def test_issues_are_hashable() -> None:
    issue = check_next_stint(70.0, 25, 3.2, 0.3)
    assert issue is not None
    validation = classify_stint(
        check_fuel_target(50.0, 20, 0.3, 0.0, False, 3.2),
        check_fuel_sufficiency(50.0, 20, 3.2, 0.3),
        20,
    )

    assert len({issue, issue}) == 1
    assert isinstance(hash(validation), int)
    with pytest.raises(KeyError):
        issue.detail("missing")
