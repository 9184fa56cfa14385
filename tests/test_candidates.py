"""Tests for stint-count selection, lap distribution and candidate ranking."""

import pytest

from endurance_engine.core.candidates import (
    BELOW_EFFICIENT_CONSUMPTION,
    EARLY_STINT_OVER_CAPACITY,
    FINAL_STINT_OVER_TANK,
    Candidate,
    _blended_rejection,
    blended_distribution,
    choose_stint_count,
    distribute_laps,
    generate_blended_candidates,
    max_laps_for_fuel,
    rank_candidates,
)
from endurance_engine.core.pace import EXTRA_FUEL_SAVING, STANDARD, Pace
from endurance_engine.core.params import RaceParameters

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def _sample_params() -> RaceParameters:
    return RaceParameters(
        race_duration_seconds=10800.0,
        tank_capacity=106.0,
        standard_lap_seconds=103.5,
        standard_fuel_per_lap=3.20,
        extra_fuel_saving_lap_seconds=105.1,
        extra_fuel_saving_fuel_per_lap=3.02,
        reserve_fuel=0.3,
        formation_lap_fuel=1.5,
        pit_lane_delta=27.0,
    )


def _standard_pace() -> Pace:
    return Pace(mode=STANDARD, lap_seconds=103.5, fuel_per_lap=3.20)


def _efs_pace(fuel_per_lap: float = 3.02) -> Pace:
    return Pace(mode=EXTRA_FUEL_SAVING, lap_seconds=105.1, fuel_per_lap=fuel_per_lap)


def _candidate(laps: float, stints: int, pit_time: float = 0.0, **kw: object) -> Candidate:
    return Candidate(
        stint_count=stints,
        distribution=distribute_laps(100, stints),
        fractional_laps=laps,
        pit_time=pit_time,
        **kw,
    )


# ---------------------------------------------------------------------------
# Stint count and distribution
# ---------------------------------------------------------------------------


def test_max_laps_for_fuel() -> None:
    """Capacity limit is floor(tank / burn), optionally capped by the user."""
    assert max_laps_for_fuel(106.0, 3.2) == 33
    assert max_laps_for_fuel(106.0, 3.2, user_max=20) == 20
    assert max_laps_for_fuel(106.0, 3.2, user_max=50) == 33
    with pytest.raises(ValueError):
        max_laps_for_fuel(106.0, 0.0)


def test_choose_stint_count_uses_fewest_fitting_stints() -> None:
    """The smallest count whose average stint fits the limit wins."""
    assert choose_stint_count(103, 33) == 4
    assert choose_stint_count(66, 33) == 2
    assert choose_stint_count(10, 33) == 1
    assert choose_stint_count(0, 33) == 1


def test_min_stint_laps_never_changes_the_count() -> None:
    """The fewest fitting stints leave no smaller count to fall back to."""
    for total in (34, 67, 103, 132):
        assert choose_stint_count(total, 33, 30) == choose_stint_count(total, 33, 1)


def test_choose_stint_count_rejects_zero_limit() -> None:
    with pytest.raises(ValueError):
        choose_stint_count(100, 0)


def test_distribute_laps_gives_remainder_to_early_stints() -> None:
    """Extra laps go to the first stints; the lap sum is preserved."""
    assert distribute_laps(103, 4) == (26, 26, 26, 25)
    assert distribute_laps(10, 3) == (4, 3, 3)
    assert sum(distribute_laps(257, 9)) == 257


def test_blended_distribution_final_stint_absorbs_remainder() -> None:
    assert blended_distribution(103, 5) == (20, 20, 20, 20, 23)
    assert blended_distribution(7, 1) == (7,)


# ---------------------------------------------------------------------------
# Candidate record
# ---------------------------------------------------------------------------


def test_candidate_validation() -> None:
    """Candidate must have at least one stint and a matching distribution."""
    with pytest.raises(ValueError):
        Candidate(stint_count=0, distribution=(), fractional_laps=0.0, pit_time=0.0)
    with pytest.raises(ValueError):
        Candidate(stint_count=2, distribution=(10,), fractional_laps=0.0, pit_time=0.0)


# ---------------------------------------------------------------------------
# Blended candidates
# ---------------------------------------------------------------------------


def test_blended_candidates_around_baseline() -> None:
    """Neighbouring counts are evaluated; over-capacity layouts are rejected."""
    candidates = generate_blended_candidates(
        total_laps=103,
        baseline_count=4,
        params=_sample_params(),
        pace=_standard_pace(),
        final_pace=_efs_pace(),
        standard_fuel_per_lap=3.2,
        max_laps_per_stint=33,
        pit_loss=68.1,
        race_time_limit=10903.5,
    )
    by_count = {c.stint_count: c for c in candidates}

    assert sorted(by_count) == [2, 3, 5]
    assert by_count[2].rejection == EARLY_STINT_OVER_CAPACITY
    assert by_count[3].rejection == EARLY_STINT_OVER_CAPACITY

    five = by_count[5]
    assert five.viable and five.blended
    assert five.distribution == (20, 20, 20, 20, 23)
    # 4 x 20 laps + 4 stops, then 21 full laps at 105.1 s before the flag.
    assert five.fractional_laps == pytest.approx(101.0 + 40.5 / 105.1)
    assert five.pit_time == pytest.approx(4 * 68.1)


def test_final_stint_over_tank_is_rejected() -> None:
    reason = _blended_rejection(
        (20, 20, 20, 20, 23), _efs_pace(4.6), 3.2, _sample_params(), 33
    )
    assert reason == FINAL_STINT_OVER_TANK


def test_single_stint_below_efficient_consumption_is_rejected() -> None:
    """With one stint the formation lap eats into the final stint's fuel."""
    # (106 - 0.3 - 1.5) / 30 = 3.473 L/lap available, 3.5 L/lap needed.
    reason = _blended_rejection((30,), _efs_pace(3.5), 3.2, _sample_params(), 33)
    assert reason == BELOW_EFFICIENT_CONSUMPTION


# ---------------------------------------------------------------------------
# Ranking
# ---------------------------------------------------------------------------


def test_rank_prefers_more_distance() -> None:
    ranked = rank_candidates([_candidate(100.0, 3), _candidate(101.0, 4)])
    assert ranked[0].fractional_laps == 101.0


def test_rank_ties_within_tolerance_prefer_fewer_stops() -> None:
    """Distances within 0.01 laps are ties broken by stop count, then pit time."""
    a = _candidate(100.500, 4, pit_time=150.0)
    b = _candidate(100.505, 3, pit_time=200.0)
    c = _candidate(100.502, 3, pit_time=120.0)
    ranked = rank_candidates([a, b, c])
    assert ranked == (c, b, a)


def test_rank_with_chained_near_ties_ignores_input_order() -> None:
    """Near-ties are grouped against the longest distance, not pairwise."""
    a = _candidate(100.000, 1)
    b = _candidate(100.008, 2)
    c = _candidate(100.016, 3)
    orders = ([a, b, c], [c, b, a], [b, c, a], [a, c, b])

    rankings = {rank_candidates(order) for order in orders}

    assert rankings == {(b, c, a)}


def test_rank_drops_rejected_candidates() -> None:
    rejected = _candidate(200.0, 2, rejection=EARLY_STINT_OVER_CAPACITY)
    ranked = rank_candidates([rejected, _candidate(100.0, 3)])
    assert rejected not in ranked
    assert len(ranked) == 1
