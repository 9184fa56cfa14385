"""Pit-stop service time model.

Fueling, tyre changes and a driver swap happen in parallel, so the
stationary time of a stop is the largest of the three.
"""

from __future__ import annotations

from dataclasses import dataclass

from endurance_engine.core.params import FULL_TANK_FUELING_SECONDS

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

TIRE_CORNER_SECONDS: float = 7.0
WALL_CORNER_SECONDS: float = 5.5  # corners on the pit-wall side are quicker
DRIVER_SWAP_SECONDS: float = 25.0

PIT_WALL_SIDES: tuple[str, ...] = ("left", "right")


@dataclass(frozen=True)
class TireChange:
    """Corners to change at a stop.

    The left and front flags refer to the pit-wall-side corners when the
    wall is on the left; right and rear when it is on the right.
    """

    left: bool = False
    right: bool = False
    front: bool = False
    rear: bool = False

    @property
    def corners(self) -> tuple[bool, bool, bool, bool]:
        return (self.left, self.right, self.front, self.rear)

    @property
    def count(self) -> int:
        return sum(self.corners)


@dataclass(frozen=True)
class PitService:
    """Activities requested for one pit stop.

    Attributes:
        tire_change: Corners to change, or ``None`` for no tyres.
        pit_wall_side: ``"left"``, ``"right"`` or ``None``.
        driver_swap: Whether the driver changes at this stop.
    """

    tire_change: TireChange | None = None
    pit_wall_side: str | None = None
    driver_swap: bool = False

    def __post_init__(self) -> None:
        if self.pit_wall_side is not None and self.pit_wall_side not in PIT_WALL_SIDES:
            raise ValueError("pit_wall_side must be 'left', 'right' or None.")


# ---------------------------------------------------------------------------
# Time components
# ---------------------------------------------------------------------------


def fueling_time(
    fuel_to_add: float,
    tank_capacity: float,
    full_tank_seconds: float = FULL_TANK_FUELING_SECONDS,
) -> float:
    """Seconds to add *fuel_to_add* litres, proportional to a full fill."""
    if fuel_to_add <= 0.0 or tank_capacity <= 0.0:
        return 0.0
    return (fuel_to_add / tank_capacity) * full_tank_seconds


def tire_service_time(tire_change: TireChange | None, pit_wall_side: str | None) -> float:
    """Seconds to change the selected corners.

    With the wall on the left, the left and front corners are wall
    corners; with the wall on the right, the right and rear corners are.
    Without a wall side (or when no wall corner is selected) every corner
    takes :data:`TIRE_CORNER_SECONDS`.
    """
    if tire_change is None or tire_change.count == 0:
        return 0.0

    left, right, front, rear = tire_change.corners
    if pit_wall_side == "left" and (left or front):
        wall_indices = (0, 2)
    elif pit_wall_side == "right" and (right or rear):
        wall_indices = (1, 3)
    else:
        return tire_change.count * TIRE_CORNER_SECONDS

    total: float = 0.0
    for idx, selected in enumerate(tire_change.corners):
        if selected:
            total += WALL_CORNER_SECONDS if idx in wall_indices else TIRE_CORNER_SECONDS
    return total


def service_time(
    tire_change: TireChange | None,
    pit_wall_side: str | None,
    driver_swap: bool,
    fuel_to_add: float,
    tank_capacity: float,
    full_tank_seconds: float = FULL_TANK_FUELING_SECONDS,
) -> float:
    """Stationary time of a stop: the bottleneck of fuel, tyres and swap."""
    return max(
        fueling_time(fuel_to_add, tank_capacity, full_tank_seconds),
        tire_service_time(tire_change, pit_wall_side),
        DRIVER_SWAP_SECONDS if driver_swap else 0.0,
    )


def service_time_for(
    request: PitService,
    fuel_to_add: float,
    tank_capacity: float,
    full_tank_seconds: float = FULL_TANK_FUELING_SECONDS,
) -> float:
    """:func:`service_time` for a :class:`PitService` request."""
    return service_time(
        request.tire_change,
        request.pit_wall_side,
        request.driver_swap,
        fuel_to_add,
        tank_capacity,
        full_tank_seconds,
    )
