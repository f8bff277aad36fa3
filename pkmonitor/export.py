"""CSV flattening of session samples."""

from __future__ import annotations

import csv
import io
import re
from collections.abc import Iterable
from typing import Any

from .domain_models import Sample

EXPORT_CSV_COLUMNS: tuple[str, ...] = (
    "timestamp",
    "position",
    "x",
    "y",
    "z",
    "magnitude",
)

_SAFE_FILENAME_RE = re.compile(r"[^a-zA-Z0-9._-]")


def flatten_for_csv(sample: Sample) -> dict[str, Any]:
    return {
        "timestamp": int(sample.timestamp_ms),
        "position": f"{sample.position_or_zero():.5f}",
        "x": f"{sample.x:.4f}",
        "y": f"{sample.y:.4f}",
        "z": f"{sample.z:.4f}",
        "magnitude": f"{sample.magnitude:.4f}",
    }


def samples_to_csv(samples: Iterable[Sample]) -> str:
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=EXPORT_CSV_COLUMNS, lineterminator="\n")
    writer.writeheader()
    for sample in samples:
        writer.writerow(flatten_for_csv(sample))
    return buf.getvalue()


def safe_filename(name: str) -> str:
    """Sanitize *name* for use in Content-Disposition headers."""
    return _SAFE_FILENAME_RE.sub("_", name)[:200] or "download"
