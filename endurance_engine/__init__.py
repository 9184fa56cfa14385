"""Endurance race stint and pit-stop strategy planner."""

__version__ = "0.4.0"
