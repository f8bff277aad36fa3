"""Intermediate data model for the PDF report.

Selects the samples inside the requested PK range and computes everything
the renderer draws, so the PDF code contains no domain logic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

import numpy as np

from .. import __version__
from ..domain_models import AnalysisResult, Sample, SessionConfig, SessionRecord, SessionStats
from ..range_filter import filter_by_position, position_span
from ..thresholds import Band, classify_sample
from .i18n import normalize_lang


@dataclass(frozen=True, slots=True)
class AxisSummary:
    axis: str
    peak: float
    rms: float
    p95: float


@dataclass
class ReportData:
    lang: str
    report_id: str
    record_id: str
    date_text: str
    time_text: str
    config: SessionConfig
    stats: SessionStats
    low: float
    high: float
    sample_count: int
    total_samples: int
    lateral_points: list[tuple[float, float]] = field(default_factory=list)
    vertical_points: list[tuple[float, float]] = field(default_factory=list)
    axis_summaries: list[AxisSummary] = field(default_factory=list)
    range_counts: dict[Band, int] = field(default_factory=dict)
    analysis: AnalysisResult | None = None
    version_marker: str = ""


def summarize_axis(axis: str, values: list[float]) -> AxisSummary:
    """Peak, RMS and 95th percentile of ``|a|``; zeros for an empty selection."""
    if not values:
        return AxisSummary(axis=axis, peak=0.0, rms=0.0, p95=0.0)
    arr = np.asarray(values, dtype=np.float64)
    magnitudes = np.abs(arr)
    return AxisSummary(
        axis=axis,
        peak=float(magnitudes.max()),
        rms=float(np.sqrt(np.mean(np.square(arr)))),
        p95=float(np.percentile(magnitudes, 95)),
    )


def split_date(date_text: str, fallback: datetime | None = None) -> tuple[str, str]:
    """Split a ``dd/mm/YYYY HH:MM:SS`` session date into its date and time parts."""
    date_part, _, time_part = date_text.strip().partition(" ")
    if date_part and time_part:
        return date_part, time_part
    moment = fallback or datetime.now()
    return moment.strftime("%d/%m/%Y"), moment.strftime("%H:%M:%S")


def report_id_for(date_part: str, time_part: str, track: str) -> str:
    return f"{date_part.replace('/', '')}_{time_part.replace(':', '')}_{track}"


def _count_bands(samples: list[Sample], config: SessionConfig) -> dict[Band, int]:
    counts = {Band.ALERT: 0, Band.INTERVENTION: 0, Band.IMMEDIATE: 0}
    for sample in samples:
        band = classify_sample(sample, config.thresholds)
        if band is not Band.NONE:
            counts[band] += 1
    return counts


def build_report_data(
    record: SessionRecord,
    low: float | None = None,
    high: float | None = None,
    lang: str = "en",
) -> ReportData:
    """Select the samples of *record* between *low* and *high* (either order).

    A missing bound defaults to the corresponding end of the session's
    position span.
    """
    config = record.stats.config
    span = position_span(record.samples) or (config.start_position, config.start_position)
    lo = span[0] if low is None else float(low)
    hi = span[1] if high is None else float(high)
    lo, hi = min(lo, hi), max(lo, hi)
    selected = filter_by_position(record.samples, lo, hi)
    date_part, time_part = split_date(record.date)
    return ReportData(
        lang=normalize_lang(lang),
        report_id=report_id_for(date_part, time_part, config.track),
        record_id=record.id,
        date_text=date_part,
        time_text=time_part,
        config=config,
        stats=record.stats,
        low=lo,
        high=hi,
        sample_count=len(selected),
        total_samples=len(record.samples),
        lateral_points=[(s.position_or_zero(), s.y) for s in selected],
        vertical_points=[(s.position_or_zero(), s.z) for s in selected],
        axis_summaries=[
            summarize_axis("lateral", [s.y for s in selected]),
            summarize_axis("vertical", [s.z for s in selected]),
        ],
        range_counts=_count_bands(selected, config),
        analysis=record.analysis,
        version_marker=f"pkmonitor {__version__}",
    )
