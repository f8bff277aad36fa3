"""Last-known GPS speed, scoped to the recording state.

``GPSSpeedSource`` is the only place the speed is written (from position
fixes); the recorder reads it whenever a motion event arrives.  Both run on
the same event loop, so no locking is involved.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable
from typing import Any

from .constants import MPS_TO_KMH

LOGGER = logging.getLogger(__name__)


def _read_non_negative(value: object) -> float | None:
    if (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
        and value >= 0
    ):
        return float(value)
    return None


class GPSSpeedSource:
    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self.subscribed: bool = False
        self.speed_mps: float = 0.0
        self.accuracy_m: float | None = None
        self.last_update_ts: float | None = None
        self.fix_count: int = 0

    def subscribe(self) -> None:
        """Start accepting fixes; readings from a previous session are discarded."""
        if self.subscribed:
            return
        self._clear_readings()
        self.subscribed = True
        LOGGER.info("GPS speed subscription acquired")

    def release(self) -> None:
        """Stop accepting fixes; the speed falls back to zero."""
        if not self.subscribed:
            return
        self.subscribed = False
        LOGGER.info("GPS speed subscription released after %d fix(es)", self.fix_count)
        self._clear_readings()

    def _clear_readings(self) -> None:
        self.speed_mps = 0.0
        self.accuracy_m = None
        self.last_update_ts = None
        self.fix_count = 0

    def on_fix(self, speed_mps: float | None, accuracy_m: float | None = None) -> bool:
        """Record a position fix.  A missing or invalid speed counts as standstill.

        Returns ``False`` when the fix is ignored because no session is recording.
        """
        if not self.subscribed:
            LOGGER.debug("Ignoring GPS fix outside of a recording session")
            return False
        self.speed_mps = _read_non_negative(speed_mps) or 0.0
        self.accuracy_m = _read_non_negative(accuracy_m)
        self.last_update_ts = self._clock()
        self.fix_count += 1
        return True

    def last_update_age_s(self) -> float | None:
        if self.last_update_ts is None:
            return None
        return max(0.0, self._clock() - self.last_update_ts)

    def status(self) -> dict[str, Any]:
        return {
            "subscribed": self.subscribed,
            "speed_mps": self.speed_mps,
            "speed_kmh": self.speed_mps * MPS_TO_KMH,
            "accuracy_m": self.accuracy_m,
            "fix_count": self.fix_count,
            "last_update_age_s": self.last_update_age_s(),
        }
