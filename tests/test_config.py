"""Tests for the YAML race configuration loader."""

from pathlib import Path

import pytest

from endurance_engine.config import (
    load_race_parameters,
    parse_lap_time,
    race_parameters_from_mapping,
)
from endurance_engine.core.planner import compute_plan

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def _sample_mapping() -> dict:
    return {
        "race_duration_minutes": 60,
        "tank_capacity": 90,
        "reserve_fuel": 0.5,
        "paces": {
            "standard": {"lap_time": "1:40.000", "fuel_per_lap": 3.0},
            "extra-fuel-saving": {"lap_time": 101.5, "fuel_per_lap": 2.8},
        },
    }


# ---------------------------------------------------------------------------
# Lap time parsing
# ---------------------------------------------------------------------------


def test_parse_lap_time_formats() -> None:
    assert parse_lap_time("1:43.500") == pytest.approx(103.5)
    assert parse_lap_time("95.2") == pytest.approx(95.2)
    assert parse_lap_time(100) == 100.0


def test_parse_lap_time_rejects_bad_values() -> None:
    for value in ("abc", "", None, 0, "-1:00", "1:xx", True):
        assert parse_lap_time(value) is None, value


# ---------------------------------------------------------------------------
# Mapping conversion
# ---------------------------------------------------------------------------


def test_mapping_converts_units() -> None:
    params = race_parameters_from_mapping(_sample_mapping())

    assert params.race_duration_seconds == 3600.0
    assert params.tank_capacity == 90.0
    assert params.standard_lap_seconds == pytest.approx(100.0)
    assert params.extra_fuel_saving_lap_seconds == pytest.approx(101.5)
    assert params.fuel_saving_lap_seconds is None
    assert params.full_tank_fueling_seconds == pytest.approx(41.1)
    assert params.max_laps_per_stint is None


def test_missing_required_field_raises() -> None:
    mapping = _sample_mapping()
    del mapping["tank_capacity"]
    with pytest.raises(ValueError, match="tank_capacity"):
        race_parameters_from_mapping(mapping)


def test_non_numeric_field_raises() -> None:
    mapping = _sample_mapping()
    mapping["tank_capacity"] = "full"
    with pytest.raises(ValueError, match="numeric"):
        race_parameters_from_mapping(mapping)


def test_unknown_pace_mode_raises() -> None:
    mapping = _sample_mapping()
    mapping["paces"]["push"] = {"lap_time": 99.0}
    with pytest.raises(ValueError, match="push"):
        race_parameters_from_mapping(mapping)


def test_pace_entry_must_be_mapping() -> None:
    mapping = _sample_mapping()
    mapping["paces"]["standard"] = "1:43"
    with pytest.raises(ValueError, match="standard"):
        race_parameters_from_mapping(mapping)


def test_unparseable_lap_time_surfaces_as_plan_error() -> None:
    mapping = _sample_mapping()
    mapping["paces"]["standard"]["lap_time"] = "fast"
    result = compute_plan(race_parameters_from_mapping(mapping))
    assert "Provide a valid average lap time." in result.errors


# ---------------------------------------------------------------------------
# File loading
# ---------------------------------------------------------------------------


def test_default_race_file_loads() -> None:
    params = load_race_parameters()

    assert params.race_duration_seconds == 180 * 60
    assert params.tank_capacity == 106.0
    assert params.standard_lap_seconds == pytest.approx(103.5)
    assert params.extra_fuel_saving_fuel_per_lap == pytest.approx(3.02)
    assert params.formation_lap_fuel == pytest.approx(1.5)
    assert params.lap_penalties == ()


def test_custom_race_file(tmp_path: Path) -> None:
    race_file = tmp_path / "race.yaml"
    race_file.write_text(
        "race_duration_minutes: 45\n"
        "tank_capacity: 80\n"
        "max_laps_per_stint: 12\n"
        "lap_penalties: [8, 2.5]\n"
        "paces:\n"
        "  standard:\n"
        "    lap_time: '2:00.000'\n"
        "    fuel_per_lap: 4\n",
        encoding="utf-8",
    )
    params = load_race_parameters(race_file)

    assert params.race_duration_seconds == 2700.0
    assert params.max_laps_per_stint == 12
    assert params.lap_penalties == (8.0, 2.5)
    assert params.standard_lap_seconds == 120.0


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_race_parameters(tmp_path / "nope.yaml")


def test_non_mapping_file_raises(tmp_path: Path) -> None:
    race_file = tmp_path / "race.yaml"
    race_file.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_race_parameters(race_file)
