"""Tests for the lap-by-lap race clock and the white-flag rule."""

import pytest

from endurance_engine.core.pace import STANDARD, Pace
from endurance_engine.core.simulation import (
    lap_penalty,
    max_race_time,
    simulate_baseline,
    simulate_stints,
    stint_penalty_seconds,
)

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def _sample_pace(lap_seconds: float = 30.0) -> Pace:
    return Pace(mode=STANDARD, lap_seconds=lap_seconds, fuel_per_lap=3.0)


# ---------------------------------------------------------------------------
# White-flag rule
# ---------------------------------------------------------------------------


def test_race_ends_after_lap_in_progress() -> None:
    """The lap running when the clock expires is the final lap."""
    result = simulate_stints(100.0, [(None, _sample_pace())], pit_loss=0.0)

    assert result.completed_laps == 3
    assert result.fractional_laps == pytest.approx(3.0 + 10.0 / 30.0)
    assert result.white_flag_lap
    assert result.total_laps == 4
    assert result.elapsed_seconds == pytest.approx(120.0)


def test_lap_ending_on_boundary_gets_one_more_lap() -> None:
    """Crossing the line exactly at the boundary still shows the white flag."""
    result = simulate_stints(90.0, [(None, _sample_pace())], pit_loss=0.0)

    assert result.completed_laps == 3
    assert result.fractional_laps == pytest.approx(3.0)
    assert result.white_flag_lap
    assert result.total_laps == 4


def test_race_shorter_than_one_lap() -> None:
    result = simulate_stints(20.0, [(None, _sample_pace())], pit_loss=0.0)

    assert result.completed_laps == 0
    assert 0.0 < result.fractional_laps < 1.0
    assert result.total_laps == 1


def test_clock_expiring_in_pits_credits_out_lap() -> None:
    """The out-lap after a stop past the boundary counts up to the time limit."""
    pace = _sample_pace()
    result = simulate_stints(70.0, [(2, pace), (None, pace)], pit_loss=20.0)

    assert result.completed_laps == 2
    # Stop ends at 80 s; 20 s of the 100 s limit remain for a 30 s lap.
    assert result.fractional_laps == pytest.approx(2.0 + 20.0 / 30.0)
    assert result.white_flag_lap
    # 60 s driving + 20 s stop + 30 s out-lap, capped at 70 + 30.
    assert result.elapsed_seconds == pytest.approx(100.0)


def test_stop_overrunning_time_limit_credits_nothing() -> None:
    pace = _sample_pace()
    result = simulate_stints(70.0, [(2, pace), (None, pace)], pit_loss=50.0)

    assert result.fractional_laps == pytest.approx(2.0)
    assert result.total_laps == 3
    assert result.elapsed_seconds == pytest.approx(100.0)


def test_elapsed_never_exceeds_max_race_time() -> None:
    """Reported elapsed time is capped at duration plus one lap."""
    pace = _sample_pace()
    result = simulate_stints(
        95.0, [(3, pace), (None, pace)], pit_loss=50.0, lap_penalties=(40.0,)
    )
    assert result.elapsed_seconds <= max_race_time(95.0, pace.lap_seconds)


def test_exhausted_stints_report_planned_laps() -> None:
    """Running out of planned laps before the flag yields whole laps only."""
    result = simulate_stints(1000.0, [(2, _sample_pace())], pit_loss=0.0)

    assert result.completed_laps == 2
    assert result.fractional_laps == 2.0
    assert not result.white_flag_lap


# ---------------------------------------------------------------------------
# Lap penalties
# ---------------------------------------------------------------------------


def test_penalties_apply_to_first_laps_of_each_stint() -> None:
    """Every stint's out-lap pays the first penalty again."""
    pace = _sample_pace()
    # 35 + 35 + 30 = 100 completes exactly on the boundary.
    result = simulate_stints(
        100.0, [(1, pace), (None, pace)], pit_loss=0.0, lap_penalties=(5.0,)
    )
    assert result.completed_laps == 3
    assert result.fractional_laps == pytest.approx(3.0)


def test_lap_penalty_helpers() -> None:
    """Penalties beyond the list are zero and negative entries are ignored."""
    penalties = (10.0, -3.0, 2.0)
    assert lap_penalty(0, penalties) == 10.0
    assert lap_penalty(1, penalties) == 0.0
    assert lap_penalty(5, penalties) == 0.0
    assert stint_penalty_seconds(2, penalties) == 10.0
    assert stint_penalty_seconds(10, penalties) == 12.0


# ---------------------------------------------------------------------------
# Baseline
# ---------------------------------------------------------------------------


def test_baseline_pits_every_max_laps() -> None:
    """The unconstrained race pits after every full fuel load."""
    pace = Pace(mode=STANDARD, lap_seconds=103.5, fuel_per_lap=3.2)
    result = simulate_baseline(10800.0, pace, max_laps_per_stint=33, pit_loss=68.1)

    # Three stops before the final stint; 3 laps in, then the white flag.
    assert result.completed_laps == 102
    assert result.fractional_laps == pytest.approx(102.0 + 38.7 / 103.5)
    assert result.total_laps == 103


def test_invalid_inputs_raise() -> None:
    """Non-positive durations, negative pit losses and zero-lap stints fail."""
    pace = _sample_pace()
    with pytest.raises(ValueError):
        simulate_stints(0.0, [(None, pace)], pit_loss=0.0)
    with pytest.raises(ValueError):
        simulate_stints(100.0, [(None, pace)], pit_loss=-1.0)
    with pytest.raises(ValueError):
        simulate_baseline(100.0, pace, max_laps_per_stint=0, pit_loss=0.0)
