"""Deterministic lap-by-lap race clock for the endurance stint planner.

The simulator advances a race clock one lap at a time across a sequence
of stints, inserting a fixed pit-stop loss between consecutive stints and
adding the configured lap penalties to the first laps of every stint.

White-flag rule
---------------
The race ends at the end of the lap during which the scheduled duration
elapses.  A lap that finishes exactly on the boundary is followed by one
final lap.  If the clock runs out while the car is in the pits, the
out-lap is the final lap and contributes no progress to the fractional
distance.  The maximum race time is the scheduled duration plus one
standard lap; reported elapsed time never exceeds it.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from itertools import repeat

from endurance_engine.core.pace import Pace

# ---------------------------------------------------------------------------
# Result container
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SimulationResult:
    """Outcome of one simulated race.

    Attributes:
        completed_laps: Whole laps completed before the duration elapsed.
        fractional_laps: Distance at the duration boundary, in laps.
        elapsed_seconds: Simulated time at the chequered flag, capped at
            the maximum race time.
        white_flag_lap: ``True`` if a lap was in progress at the boundary
            and is completed after it.
    """

    completed_laps: int
    fractional_laps: float
    elapsed_seconds: float
    white_flag_lap: bool

    @property
    def total_laps(self) -> int:
        """Laps driven including the white-flag lap."""
        return self.completed_laps + (1 if self.white_flag_lap else 0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def max_race_time(race_duration: float, lap_seconds: float) -> float:
    """Latest possible chequered-flag time for a race."""
    return race_duration + lap_seconds


def lap_penalty(lap_in_stint: int, lap_penalties: Sequence[float]) -> float:
    """Extra seconds for the *lap_in_stint*-th lap (0-based) of a stint."""
    if lap_in_stint < len(lap_penalties):
        return max(0.0, lap_penalties[lap_in_stint])
    return 0.0


def stint_penalty_seconds(laps: int, lap_penalties: Sequence[float]) -> float:
    """Total penalty seconds charged to a stint of *laps* laps."""
    return sum(lap_penalty(i, lap_penalties) for i in range(max(0, laps)))


def _stint_laps(laps: int | None) -> Iterator[int]:
    i = 0
    while laps is None or i < laps:
        yield i
        i += 1


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def simulate_stints(
    race_duration: float,
    stints: Iterable[tuple[int | None, Pace]],
    pit_loss: float,
    lap_penalties: Sequence[float] = (),
    race_time_limit: float | None = None,
) -> SimulationResult:
    """Run the race clock over a sequence of stints.

    Per lap:
        1. The lap time is the stint pace's lap time plus the penalty for
           the lap's position within the stint.
        2. If the lap would end after the scheduled duration, it is the
           final lap: the fraction completed at the boundary is
           interpolated linearly and the simulation stops.
        3. Otherwise the lap is completed.

    Between stints ``pit_loss`` seconds are added to the clock.  If the
    stop itself runs past the scheduled duration, the out-lap is the final
    lap and is credited with the share of one lap that still fits before
    the race time limit.

    If the stint sequence is exhausted before the duration elapses, the
    result reports the planned laps as both completed and fractional
    distance and no white-flag lap.

    Args:
        race_duration: Scheduled race length in seconds (> 0).
        stints: Iterable of ``(laps, pace)``.  ``laps=None`` makes a stint
            unbounded.
        pit_loss: Seconds added between consecutive stints.
        lap_penalties: Extra seconds for the first laps of each stint.
        race_time_limit: Cap for the reported elapsed time.  ``None``
            uses the duration plus the first stint's lap time.

    Returns:
        A :class:`SimulationResult`.

    Raises:
        ValueError: If race_duration <= 0 or pit_loss < 0.
    """
    if race_duration <= 0.0:
        raise ValueError("race_duration must be > 0.")
    if pit_loss < 0.0:
        raise ValueError("pit_loss must be >= 0.")

    elapsed: float = 0.0
    completed: int = 0
    limit: float | None = race_time_limit

    for index, (laps, pace) in enumerate(stints):
        if limit is None:
            limit = max_race_time(race_duration, pace.lap_seconds)
        if index > 0:
            elapsed += pit_loss
            if elapsed > race_duration:
                fraction = min(max(0.0, limit - elapsed) / pace.lap_seconds, 1.0)
                return SimulationResult(
                    completed_laps=completed,
                    fractional_laps=completed + fraction,
                    elapsed_seconds=min(elapsed + pace.lap_seconds, limit),
                    white_flag_lap=True,
                )

        for lap_in_stint in _stint_laps(laps):
            lap_time: float = pace.lap_seconds + lap_penalty(lap_in_stint, lap_penalties)

            if elapsed + lap_time > race_duration:
                # Clock reaches zero during this lap: it is the white-flag lap.
                fraction = (race_duration - elapsed) / lap_time
                return SimulationResult(
                    completed_laps=completed,
                    fractional_laps=completed + fraction,
                    elapsed_seconds=min(elapsed + lap_time, limit),
                    white_flag_lap=True,
                )

            elapsed += lap_time
            completed += 1

    if limit is not None:
        elapsed = min(elapsed, limit)
    return SimulationResult(
        completed_laps=completed,
        fractional_laps=float(completed),
        elapsed_seconds=elapsed,
        white_flag_lap=False,
    )


def simulate_baseline(
    race_duration: float,
    pace: Pace,
    max_laps_per_stint: int,
    pit_loss: float,
    lap_penalties: Sequence[float] = (),
) -> SimulationResult:
    """Simulate the unconstrained race at a single pace.

    The car pits after every ``max_laps_per_stint`` laps and keeps going
    until the white-flag rule ends the race.

    Raises:
        ValueError: If max_laps_per_stint < 1.
    """
    if max_laps_per_stint < 1:
        raise ValueError("max_laps_per_stint must be >= 1.")
    return simulate_stints(
        race_duration,
        repeat((max_laps_per_stint, pace)),
        pit_loss,
        lap_penalties,
        race_time_limit=max_race_time(race_duration, pace.lap_seconds),
    )
