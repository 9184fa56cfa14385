"""Configuration loader for the endurance stint planner."""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from endurance_engine.core.pace import PACE_MODES
from endurance_engine.core.params import FULL_TANK_FUELING_SECONDS, RaceParameters

logger = logging.getLogger(__name__)

DATA_DIR: Path = Path(__file__).resolve().parent.parent / "data"
DEFAULT_RACE_PATH: Path = DATA_DIR / "default_race.yaml"

_REQUIRED_FIELDS: tuple[str, ...] = (
    "race_duration_minutes",
    "tank_capacity",
)

_OPTIONAL_NUMERIC_FIELDS: tuple[str, ...] = (
    "fuel_bop_percent",
    "reserve_fuel",
    "formation_lap_fuel",
    "pit_lane_delta",
    "full_tank_fueling_seconds",
)

_OPTIONAL_INT_FIELDS: tuple[str, ...] = (
    "min_laps_per_stint",
    "max_laps_per_stint",
)

_PACE_FIELD_PREFIX: dict[str, str] = {
    "standard": "standard",
    "fuel-saving": "fuel_saving",
    "extra-fuel-saving": "extra_fuel_saving",
}


# ---------------------------------------------------------------------------
# Value parsing
# ---------------------------------------------------------------------------


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_lap_time(value: Any) -> float | None:
    """Parse a lap time given as seconds or as an ``m:ss.sss`` string.

    Returns:
        Lap time in seconds, or ``None`` if *value* is empty, malformed
        or not positive.
    """
    if value is None or value == "":
        return None
    if _is_number(value):
        seconds = float(value)
    elif isinstance(value, str):
        minutes_part, sep, seconds_part = value.strip().rpartition(":")
        try:
            seconds = float(seconds_part)
            if sep:
                seconds += float(minutes_part) * 60.0
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(seconds) or seconds <= 0.0:
        return None
    return seconds


def _number(mapping: Mapping[str, Any], key: str, default: float | None) -> float | None:
    value = mapping.get(key)
    if value is None or value == "":
        return default
    if not _is_number(value):
        raise ValueError(f"'{key}' must be numeric, got {type(value).__name__}")
    return float(value)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def race_parameters_from_mapping(mapping: Mapping[str, Any]) -> RaceParameters:
    """Build :class:`RaceParameters` from a plain mapping (e.g. parsed YAML).

    Race duration is read from ``race_duration_minutes`` (or
    ``race_duration_seconds`` when given).  Pace values live under
    ``paces.<mode>.lap_time`` / ``paces.<mode>.fuel_per_lap``.  Values
    that are present but unusable (zero, negative, an unparseable lap
    time) are passed through so that planning reports them as parameter
    errors.

    Raises:
        ValueError: If a required field is missing, a field has the wrong
            type, or an unknown pace mode is listed.
    """
    for field in _REQUIRED_FIELDS:
        if field not in mapping and not (
            field == "race_duration_minutes" and "race_duration_seconds" in mapping
        ):
            raise ValueError(f"Race configuration is missing required field '{field}'")

    if "race_duration_seconds" in mapping:
        duration = _number(mapping, "race_duration_seconds", 0.0)
    else:
        minutes = _number(mapping, "race_duration_minutes", 0.0)
        duration = minutes * 60.0 if minutes is not None else 0.0

    kwargs: dict[str, Any] = {
        "race_duration_seconds": duration,
        "tank_capacity": _number(mapping, "tank_capacity", 0.0),
    }

    defaults: dict[str, float] = {"full_tank_fueling_seconds": FULL_TANK_FUELING_SECONDS}
    for field in _OPTIONAL_NUMERIC_FIELDS:
        kwargs[field] = _number(mapping, field, defaults.get(field, 0.0))

    for field in _OPTIONAL_INT_FIELDS:
        value = _number(mapping, field, None)
        kwargs[field] = int(value) if value is not None and value > 0 else None

    penalties = mapping.get("lap_penalties") or []
    if not isinstance(penalties, (list, tuple)) or not all(_is_number(p) for p in penalties):
        raise ValueError("'lap_penalties' must be a list of numbers")
    kwargs["lap_penalties"] = tuple(float(p) for p in penalties)

    paces = mapping.get("paces") or {}
    if not isinstance(paces, Mapping):
        raise ValueError("'paces' must be a mapping of pace mode to values")
    for mode, values in paces.items():
        if mode not in PACE_MODES:
            raise ValueError(
                f"Unknown pace mode '{mode}'; expected one of {', '.join(PACE_MODES)}"
            )
        values = values or {}
        if not isinstance(values, Mapping):
            raise ValueError(
                f"Pace '{mode}' must be a mapping with lap_time and fuel_per_lap, "
                f"got {type(values).__name__}"
            )
        prefix = _PACE_FIELD_PREFIX[mode]
        raw_lap = values.get("lap_time")
        lap = parse_lap_time(raw_lap)
        if raw_lap not in (None, "") and lap is None:
            # Keep the field set so the planner reports an invalid lap time.
            lap = 0.0
        kwargs[f"{prefix}_lap_seconds"] = lap
        kwargs[f"{prefix}_fuel_per_lap"] = _number(values, "fuel_per_lap", None)

    return RaceParameters(**kwargs)


def load_race_parameters(path: Path | None = None) -> RaceParameters:
    """Load race parameters from a YAML file.

    Args:
        path: Optional override for the race file path.

    Returns:
        :class:`RaceParameters` for the race.

    Raises:
        FileNotFoundError: If the race file does not exist.
        ValueError: If the file is not a mapping or any entry is invalid.
    """
    race_path = Path(path) if path is not None else DEFAULT_RACE_PATH
    if not race_path.exists():
        raise FileNotFoundError(f"Race file not found: {race_path}")

    with open(race_path, encoding="utf-8") as fh:
        data = yaml.safe_load(fh)

    if not isinstance(data, Mapping):
        raise ValueError(f"Race file {race_path} must contain a mapping")

    logger.debug("Loaded race configuration from %s", race_path)
    return race_parameters_from_mapping(data)
