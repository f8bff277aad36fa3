"""Running session statistics.

Maxima and exceedance counters only ever grow during a session; the mean
magnitude and the duration are recomputed on every sample.
"""

from __future__ import annotations

from dataclasses import replace

from .constants import MS_PER_SECOND
from .domain_models import Sample, SessionConfig, SessionStats
from .thresholds import Band, classify_sample

_COUNTER_BY_BAND: dict[Band, str] = {
    Band.ALERT: "count_alert",
    Band.INTERVENTION: "count_intervention",
    Band.IMMEDIATE: "count_immediate",
}


def update(
    stats: SessionStats,
    sample: Sample,
    *,
    sample_count: int,
    first_timestamp_ms: float,
    band: Band | None = None,
) -> SessionStats:
    """Fold *sample* into *stats*.

    *sample_count* is the 1-based number of samples seen so far, *sample*
    included.  When *band* is omitted it is derived from the thresholds of
    ``stats.config``.
    """
    if sample_count < 1:
        raise ValueError(f"sample_count must be >= 1, got {sample_count}")
    if band is None:
        band = classify_sample(sample, stats.config.thresholds)
    changes: dict[str, float | int] = {
        "max_vertical": max(stats.max_vertical, abs(sample.z)),
        "max_transversal": max(stats.max_transversal, abs(sample.x), abs(sample.y)),
        "avg_magnitude": (
            (stats.avg_magnitude * (sample_count - 1) + sample.magnitude) / sample_count
        ),
        "duration_s": max(0.0, (sample.timestamp_ms - first_timestamp_ms) / MS_PER_SECOND),
    }
    counter = _COUNTER_BY_BAND.get(band)
    if counter is not None:
        changes[counter] = getattr(stats, counter) + 1
    return replace(stats, **changes)


class StatsAggregator:
    """Stateful wrapper tracking the sample count and first timestamp of a session."""

    def __init__(self, config: SessionConfig | None = None) -> None:
        self._stats = SessionStats.initial(config or SessionConfig())
        self._count = 0
        self._first_timestamp_ms: float | None = None

    @property
    def stats(self) -> SessionStats:
        return self._stats

    @property
    def sample_count(self) -> int:
        return self._count

    def reset(self, config: SessionConfig) -> None:
        self._stats = SessionStats.initial(config)
        self._count = 0
        self._first_timestamp_ms = None

    def update(self, sample: Sample) -> Band:
        self._count += 1
        if self._first_timestamp_ms is None:
            self._first_timestamp_ms = sample.timestamp_ms
        band = classify_sample(sample, self._stats.config.thresholds)
        self._stats = update(
            self._stats,
            sample,
            sample_count=self._count,
            first_timestamp_ms=self._first_timestamp_ms,
            band=band,
        )
        return band
