"""Wellness alert classification.

Each check-in is scored against six independent concern thresholds; the
number of concerns sets the alert level. Computed on demand, never stored.
"""

from dataclasses import dataclass, field
from typing import Any

HIGH = "high"
MEDIUM = "medium"
LOW = "low"

LOW_MOODS = frozenset({"poor", "terrible"})


@dataclass(frozen=True)
class WellnessAlert:
    level: str
    concerns: list[str] = field(default_factory=list)


def _number(log: dict, key: str):
    value: Any = log.get(key)
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def classify(log: dict) -> WellnessAlert:
    """Alert level and the list of concerns for one wellness log.

    Missing or non-numeric metrics raise no concern.
    """
    concerns = []

    sleep_hours = _number(log, "sleep_hours")
    if sleep_hours is not None and sleep_hours < 6:
        concerns.append("low sleep")

    sleep_quality = _number(log, "sleep_quality")
    if sleep_quality is not None and sleep_quality <= 2:
        concerns.append("poor sleep quality")

    energy = _number(log, "energy_level")
    if energy is not None and energy <= 2:
        concerns.append("low energy")

    soreness = _number(log, "muscle_soreness")
    if soreness is not None and soreness >= 4:
        concerns.append("high soreness")

    stress = _number(log, "stress_level")
    if stress is not None and stress >= 4:
        concerns.append("high stress")

    if log.get("mood") in LOW_MOODS:
        concerns.append("low mood")

    if len(concerns) >= 3:
        level = HIGH
    elif concerns:
        level = MEDIUM
    else:
        level = LOW
    return WellnessAlert(level=level, concerns=concerns)
