"""Shared test helpers for the pkmonitor test suite."""

from __future__ import annotations

import time
from collections.abc import Iterable, Sequence
from io import BytesIO

from pkmonitor.domain_models import (
    AnalysisResult,
    ComplianceLevel,
    Sample,
    SessionConfig,
    SessionRecord,
    SessionStats,
    Thresholds,
)


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start_ms: float = 1_700_000_000_000.0) -> None:
        self.now_ms = start_ms

    def __call__(self) -> float:
        return self.now_ms

    def advance(self, ms: float) -> float:
        self.now_ms += ms
        return self.now_ms


def wait_until(predicate, timeout_s: float = 2.0, step_s: float = 0.02) -> bool:
    """Poll *predicate* until it returns truthy, or *timeout_s* expires."""
    deadline = time.monotonic() + timeout_s
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(step_s)
    return False


# ---------------------------------------------------------------------------
# PDF text extraction helper
# ---------------------------------------------------------------------------


def extract_pdf_text(pdf_bytes: bytes) -> str:
    """Extract all text from a PDF byte string using pypdf."""
    from pypdf import PdfReader

    reader = PdfReader(BytesIO(pdf_bytes))
    return "\n".join((page.extract_text() or "") for page in reader.pages)


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def make_config(**overrides: object) -> SessionConfig:
    values: dict[str, object] = {
        "start_position": 100.0,
        "track": "V1",
        "thresholds": Thresholds(alert=1.2, intervention=2.2, immediate=2.8),
    }
    values.update(overrides)
    return SessionConfig(**values)  # type: ignore[arg-type]


def make_samples(
    positions: Iterable[float],
    *,
    y: float | Sequence[float] = 0.5,
    z: float = 9.81,
    start_ms: float = 0.0,
    step_ms: float = 100.0,
) -> tuple[Sample, ...]:
    pos_list = list(positions)
    ys = list(y) if isinstance(y, Sequence) else [y] * len(pos_list)
    return tuple(
        Sample.from_axes(start_ms + i * step_ms, 0.1, ys[i], z, position=pos)
        for i, pos in enumerate(pos_list)
    )


def make_analysis(level: ComplianceLevel = ComplianceLevel.MONITOR) -> AnalysisResult:
    return AnalysisResult(
        activity_type="Track inspection",
        intensity_score=42.0,
        observations=("Lateral peaks near PK 100.050",),
        recommendations="Re-check the alignment at PK 100.050.",
        compliance_level=level,
    )


def make_record(
    record_id: str = "sess_1",
    *,
    samples: Sequence[Sample] | None = None,
    config: SessionConfig | None = None,
    analysis: AnalysisResult | None = None,
    date: str = "18/10/2026 14:05:09",
) -> SessionRecord:
    cfg = config or make_config()
    if samples is None:
        samples = make_samples([100.000, 100.001, 100.002, 100.003, 100.004])
    return SessionRecord(
        id=record_id,
        date=date,
        stats=SessionStats.initial(cfg),
        samples=tuple(samples),
        analysis=analysis,
    )
