"""Derived travel distance.

Pure functions mapping (time budget, speed) to the distance the oracle
expects, plus the speed sensitivity series shown next to the map.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from pyisochrone._constants import SENSITIVITY_SPEEDS


class DistanceRounding(StrEnum):
    """How a fractional metre budget is turned into an integer."""

    FLOOR = "floor"
    NEAREST = "nearest"


def distance_budget_m(
    time_minutes: float,
    speed_kmh: float,
    rounding: DistanceRounding = DistanceRounding.FLOOR,
) -> int:
    """Return the distance (metres) covered in *time_minutes* at *speed_kmh*.

    ``(time / 60) * speed * 1000``, computed as a single division so integer
    inputs that divide evenly never pick up float noise.

    >>> distance_budget_m(5, 50)
    4166
    >>> distance_budget_m(5, 50, DistanceRounding.NEAREST)
    4167
    """
    metres = time_minutes * speed_kmh * 1000 / 60
    if rounding == DistanceRounding.NEAREST:
        return int(math.floor(metres + 0.5))
    return int(math.floor(metres))


def distance_km(time_minutes: float, speed_kmh: float) -> float:
    """Distance in kilometres, rounded to two decimals."""
    return round(time_minutes * speed_kmh / 60, 2)


class SensitivityPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    speed_kmh: float
    distance_km: float


def sensitivity_series(
    time_minutes: float,
    speeds: Iterable[float] = SENSITIVITY_SPEEDS,
) -> list[SensitivityPoint]:
    """Distance reachable in *time_minutes* for each speed in *speeds*."""
    return [SensitivityPoint(speed_kmh=speed, distance_km=distance_km(time_minutes, speed)) for speed in speeds]
