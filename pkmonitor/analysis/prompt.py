"""Request payload for the remote session analysis."""

from __future__ import annotations

import json
from collections.abc import Sequence

from ..constants import ANALYSIS_MAX_SAMPLES, ANALYSIS_SAMPLE_STRIDE
from ..domain_models import ComplianceLevel, Sample, SessionStats

RESPONSE_SCHEMA: dict[str, object] = {
    "type": "OBJECT",
    "properties": {
        "activityType": {"type": "STRING"},
        "intensityScore": {"type": "NUMBER"},
        "observations": {"type": "ARRAY", "items": {"type": "STRING"}},
        "recommendations": {"type": "STRING"},
        "complianceLevel": {
            "type": "STRING",
            "enum": [level.value for level in ComplianceLevel],
        },
    },
    "required": [
        "activityType",
        "intensityScore",
        "observations",
        "recommendations",
        "complianceLevel",
    ],
}


def sample_for_analysis(
    samples: Sequence[Sample],
    *,
    stride: int = ANALYSIS_SAMPLE_STRIDE,
    max_samples: int = ANALYSIS_MAX_SAMPLES,
) -> list[Sample]:
    """Every *stride*-th sample, keeping only the most recent *max_samples* of those."""
    picked = list(samples[:: max(1, stride)])
    return picked[-max(1, max_samples) :]


def _compact(sample: Sample) -> dict[str, float | None]:
    return {
        "t": round(sample.timestamp_ms),
        "pk": round(sample.position, 5) if sample.position is not None else None,
        "x": round(sample.x, 3),
        "y": round(sample.y, 3),
        "z": round(sample.z, 3),
    }


def build_prompt(samples: Sequence[Sample], stats: SessionStats) -> str:
    cfg = stats.config
    th = cfg.thresholds
    data = json.dumps([_compact(s) for s in samples], separators=(",", ":"))
    return (
        "Track inspection analysis.\n"
        f"Context: track {cfg.track}, starting PK {cfg.start_position:.3f}, "
        f"{cfg.direction.value} direction.\n"
        "Configured thresholds for transversal acceleration Y (m/s²): "
        f"alert={th.alert}, intervention={th.intervention}, immediate={th.immediate}.\n"
        f"Recorded statistics: max vertical={stats.max_vertical:.3f}, "
        f"max transversal={stats.max_transversal:.3f}.\n"
        "Threshold exceedances on the Y axis: "
        f"alert={stats.count_alert}, intervention={stats.count_intervention}, "
        f"immediate={stats.count_immediate}.\n\n"
        "Analyse the acceleration data (X/Y transversal, Z vertical, t in ms, pk in km):\n"
        f"{data}\n\n"
        "Determine the activity type and the compliance level, and give precise "
        "recommendations based on the threshold exceedances observed on track "
        f"{cfg.track}."
    )
