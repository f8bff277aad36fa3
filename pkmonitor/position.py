"""Track-position (PK) integration from GPS speed.

Positions are kilometric points along the line; speed arrives in m/s, so a
step of ``speed * elapsed`` metres moves the position by a thousandth of that.
"""

from __future__ import annotations

import math

from .constants import METERS_PER_KM
from .domain_models import Direction


def displacement_km(speed_mps: float, elapsed_s: float) -> float:
    """Unsigned distance covered, in km.

    Non-positive or non-finite inputs yield ``0.0`` so that clock anomalies
    and missing speed readings never move the position.
    """
    if not (math.isfinite(speed_mps) and math.isfinite(elapsed_s)):
        return 0.0
    if speed_mps <= 0 or elapsed_s <= 0:
        return 0.0
    return speed_mps * elapsed_s / METERS_PER_KM


class PositionIntegrator:
    """Holds the running track position of the active session."""

    def __init__(self, start_position: float = 0.0) -> None:
        self._position = float(start_position)

    @property
    def position(self) -> float:
        return self._position

    def reset(self, start_position: float) -> None:
        self._position = float(start_position)

    def advance(self, speed_mps: float, elapsed_s: float, direction: Direction) -> float:
        delta_km = displacement_km(speed_mps, elapsed_s)
        if delta_km > 0:
            self._position += direction.sign * delta_km
        return self._position
