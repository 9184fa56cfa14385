"""Stint-count candidate generation and ranking.

The search starts from the baseline distance produced by the
unconstrained simulation, picks the smallest stint count whose average
stint fits the fuel-limited maximum, and then explores neighbouring stint
counts in which the final stint is driven at a slower, more fuel-efficient
pace.  Trading lap time on the last stint for a skipped pit stop is the
trade-off the ranking resolves.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass

from endurance_engine.core.pace import Pace
from endurance_engine.core.params import RaceParameters
from endurance_engine.core.simulation import simulate_stints

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_MIN_STINT_LAPS: int = 5
MIN_FUEL_RATIO: float = 0.90  # floor on any stint's fuel-per-lap vs standard
RANKING_TOLERANCE_LAPS: float = 0.01
MAX_CANDIDATE_STINTS: int = 50
CANDIDATE_OFFSETS: tuple[int, ...] = (-2, -1, 0, 1)

# Rejection reasons
EARLY_STINT_OVER_CAPACITY: str = "early_stint_over_capacity"
FINAL_STINT_OVER_TANK: str = "final_stint_over_tank"
BELOW_EFFICIENT_CONSUMPTION: str = "below_efficient_consumption"
BELOW_FUEL_FLOOR: str = "below_fuel_floor"

# ---------------------------------------------------------------------------
# Candidate record
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Candidate:
    """One proposed stint layout and its score.

    Attributes:
        stint_count: Number of stints.
        distribution: Laps per stint, in order.
        fractional_laps: Simulated distance at the duration boundary.
        pit_time: Total estimated pit time in seconds.
        blended: ``True`` if the final stint runs the extra-fuel-saving pace.
        label: Human-readable name.
        rejection: Machine-readable rejection reason, ``None`` if viable.
    """

    stint_count: int
    distribution: tuple[int, ...]
    fractional_laps: float
    pit_time: float
    blended: bool = False
    label: str = ""
    rejection: str | None = None

    def __post_init__(self) -> None:
        if self.stint_count < 1:
            raise ValueError("stint_count must be >= 1.")
        if len(self.distribution) != self.stint_count:
            raise ValueError("distribution length must equal stint_count.")

    @property
    def pit_stops(self) -> int:
        return self.stint_count - 1

    @property
    def total_laps(self) -> int:
        return sum(self.distribution)

    @property
    def viable(self) -> bool:
        return self.rejection is None


# ---------------------------------------------------------------------------
# Stint count and distribution
# ---------------------------------------------------------------------------


def max_laps_for_fuel(
    tank_capacity: float,
    fuel_per_lap: float,
    user_max: int | None = None,
) -> int:
    """Fuel-capacity-limited laps per stint, intersected with *user_max*.

    Raises:
        ValueError: If fuel_per_lap <= 0.
    """
    if fuel_per_lap <= 0.0:
        raise ValueError("fuel_per_lap must be > 0.")
    laps: int = math.floor(tank_capacity / fuel_per_lap)
    if user_max is not None and user_max > 0:
        laps = min(laps, int(user_max))
    return laps


def choose_stint_count(
    total_laps: int,
    max_laps_per_stint: int,
    min_stint_laps: int = DEFAULT_MIN_STINT_LAPS,
) -> int:
    """Pick the stint count for *total_laps*.

    1. Start from ``ceil(total / max)``.
    2. Greedily accept smaller counts while the average stint still fits.
    3. If the final stint (which receives no remainder laps) would be
       shorter than *min_stint_laps*, drop one more stint when that keeps
       every stint within the limit and makes the final stint acceptable.

    Step 2 already stops at the smallest count whose average stint fits,
    so the reduction in step 3 never finds a smaller count that fits and
    *min_stint_laps* leaves the count unchanged.  The user minimum reaches
    the plan through :attr:`StrategyPlan.min_laps_warning` instead.

    Raises:
        ValueError: If max_laps_per_stint < 1.
    """
    if max_laps_per_stint < 1:
        raise ValueError("max_laps_per_stint must be >= 1.")
    total_laps = max(1, total_laps)

    count: int = max(1, math.ceil(total_laps / max_laps_per_stint))
    trial: int = count - 1
    while trial > 0 and total_laps / trial <= max_laps_per_stint:
        count = trial
        trial -= 1

    final_laps: int = total_laps // count
    if 0 < final_laps < min_stint_laps and count > 1:
        reduced = count - 1
        if (
            total_laps / reduced <= max_laps_per_stint
            and total_laps // reduced >= min_stint_laps
        ):
            logger.debug(
                "Reducing stint count %d -> %d to avoid a %d-lap final stint",
                count,
                reduced,
                final_laps,
            )
            count = reduced

    return count


def distribute_laps(total_laps: int, stint_count: int) -> tuple[int, ...]:
    """Split *total_laps* evenly; remainder laps go to the earliest stints."""
    if stint_count < 1:
        raise ValueError("stint_count must be >= 1.")
    base, extra = divmod(total_laps, stint_count)
    return tuple(base + (1 if i < extra else 0) for i in range(stint_count))


def blended_distribution(total_laps: int, stint_count: int) -> tuple[int, ...]:
    """Base laps for every stint but the last, which absorbs the rest."""
    if stint_count < 1:
        raise ValueError("stint_count must be >= 1.")
    base = total_laps // stint_count
    early = (base,) * (stint_count - 1)
    return early + (total_laps - base * (stint_count - 1),)


# ---------------------------------------------------------------------------
# Blended-pace candidates
# ---------------------------------------------------------------------------


def _blended_rejection(
    distribution: tuple[int, ...],
    final_pace: Pace,
    standard_fuel_per_lap: float,
    params: RaceParameters,
    max_laps_per_stint: int,
) -> str | None:
    early, final_laps = distribution[:-1], distribution[-1]
    tank: float = params.effective_tank_capacity
    reserve: float = params.safe_reserve

    if early and max(early) > max_laps_per_stint:
        return EARLY_STINT_OVER_CAPACITY

    final_fuel_needed: float = final_laps * final_pace.fuel_per_lap + reserve
    if final_fuel_needed > tank:
        return FINAL_STINT_OVER_TANK

    # Fuel per lap the final stint would have to hit to use its full tank.
    formation: float = params.safe_formation_fuel if len(distribution) == 1 else 0.0
    required_per_lap: float = (
        (tank - reserve - formation) / final_laps if final_laps > 0 else math.inf
    )
    if required_per_lap < final_pace.fuel_per_lap:
        return BELOW_EFFICIENT_CONSUMPTION
    if required_per_lap < standard_fuel_per_lap * MIN_FUEL_RATIO:
        return BELOW_FUEL_FLOOR
    return None


def generate_blended_candidates(
    total_laps: int,
    baseline_count: int,
    params: RaceParameters,
    pace: Pace,
    final_pace: Pace,
    standard_fuel_per_lap: float,
    max_laps_per_stint: int,
    pit_loss: float,
    race_time_limit: float,
) -> list[Candidate]:
    """Evaluate stint counts around *baseline_count* with a blended finish.

    Counts ``baseline_count - 2 .. baseline_count + 1`` (clipped to
    ``[1, MAX_CANDIDATE_STINTS]``, skipping the baseline itself) are tried.
    Every stint except the last runs *pace*; the last runs *final_pace*
    and absorbs all remaining laps.  Viable layouts are re-simulated lap
    by lap to obtain their fractional-lap score.

    Returns:
        All evaluated candidates, viable and rejected, in count order.
    """
    candidates: list[Candidate] = []
    for offset in CANDIDATE_OFFSETS:
        count = baseline_count + offset
        if count == baseline_count or not 1 <= count <= MAX_CANDIDATE_STINTS:
            continue

        distribution = blended_distribution(total_laps, count)
        label = f"{count} stints (blended)"
        pit_time = (count - 1) * pit_loss
        rejection = _blended_rejection(
            distribution, final_pace, standard_fuel_per_lap, params, max_laps_per_stint
        )

        if rejection is not None:
            logger.debug("Rejected %s %s: %s", label, distribution, rejection)
            candidates.append(
                Candidate(
                    stint_count=count,
                    distribution=distribution,
                    fractional_laps=0.0,
                    pit_time=pit_time,
                    blended=True,
                    label=label,
                    rejection=rejection,
                )
            )
            continue

        stints = [(laps, pace) for laps in distribution[:-1]]
        stints.append((distribution[-1], final_pace))
        result = simulate_stints(
            params.race_duration_seconds,
            stints,
            pit_loss,
            params.effective_penalties,
            race_time_limit=race_time_limit,
        )
        logger.debug(
            "Simulated %s %s: %.3f laps", label, distribution, result.fractional_laps
        )
        candidates.append(
            Candidate(
                stint_count=count,
                distribution=distribution,
                fractional_laps=result.fractional_laps,
                pit_time=pit_time,
                blended=True,
                label=label,
            )
        )
    return candidates


# ---------------------------------------------------------------------------
# Ranking
# ---------------------------------------------------------------------------


def _tie_break_key(candidate: Candidate) -> tuple:
    return (
        candidate.pit_stops,
        candidate.pit_time,
        -candidate.fractional_laps,
        candidate.distribution,
        candidate.label,
    )


def rank_candidates(candidates: Sequence[Candidate]) -> tuple[Candidate, ...]:
    """Rank viable candidates best-first; rejected ones are dropped.

    The longest remaining distance anchors a tie group of every candidate
    within ``RANKING_TOLERANCE_LAPS`` of it.  The group is ordered by pit
    stops, then pit time, and emitted before the next group is formed from
    what is left.  The result does not depend on the input order.
    """
    remaining = [c for c in candidates if c.viable]
    ranked: list[Candidate] = []
    while remaining:
        best = max(c.fractional_laps for c in remaining)
        group = [c for c in remaining if best - c.fractional_laps <= RANKING_TOLERANCE_LAPS]
        ranked.extend(sorted(group, key=_tie_break_key))
        remaining = [c for c in remaining if best - c.fractional_laps > RANKING_TOLERANCE_LAPS]
    return tuple(ranked)
