"""JSON helpers for persisted and transmitted payloads.

Session payloads may carry numpy scalars (report summaries) or non-finite
floats (a sensor glitch that slipped through).  Both are normalised here so
``json.dumps(allow_nan=False)`` never fails on stored history.
"""

from __future__ import annotations

import json
import logging
import math
from typing import Any

import numpy as np

__all__ = ["dumps_json", "loads_json", "to_plain"]

LOGGER = logging.getLogger(__name__)


def to_plain(value: Any) -> Any:
    """Return *value* as plain Python with non-finite floats replaced by ``None``."""
    if isinstance(value, np.ndarray):
        value = value.tolist()
    elif isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, dict):
        return {str(k): to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(item) for item in value]
    return value


def dumps_json(value: Any) -> str:
    return json.dumps(to_plain(value), ensure_ascii=False, allow_nan=False)


def loads_json(raw: str | bytes | None, *, context: str) -> Any | None:
    """Decode *raw*; ``None`` for empty or malformed input (logged with *context*)."""
    if not raw:
        return None
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        LOGGER.warning("Skipping invalid JSON payload while reading %s", context, exc_info=True)
        return None
