"""Position-interval selection of session samples for export and reports."""

from __future__ import annotations

from collections.abc import Iterable

from .domain_models import Sample


def filter_by_position(samples: Iterable[Sample], low: float, high: float) -> list[Sample]:
    """Return the samples whose position lies in ``[min, max]`` of the bounds.

    Bounds may be given in either order.  A sample without a position is
    treated as being at ``0.0``.  Input order is preserved.
    """
    lo, hi = (low, high) if low <= high else (high, low)
    return [sample for sample in samples if lo <= sample.position_or_zero() <= hi]


def position_span(samples: Iterable[Sample]) -> tuple[float, float] | None:
    """``(min, max)`` position over *samples*, or ``None`` when there are none."""
    positions = [sample.position_or_zero() for sample in samples]
    if not positions:
        return None
    return min(positions), max(positions)
