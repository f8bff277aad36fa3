"""Shared physical and session constants. Single source of truth.

Every numeric literal that appears in more than one module should live here
so that a change only needs to happen in one place.
"""

from __future__ import annotations

from typing import Final

# ---------------------------------------------------------------------------
# Unit conversion
# ---------------------------------------------------------------------------
METERS_PER_KM: Final[float] = 1000.0
"""Track positions (PK) are kept in kilometres; GPS speed arrives in m/s."""

MS_PER_SECOND: Final[float] = 1000.0

MPS_TO_KMH: Final[float] = 3.6
"""Multiply metres-per-second by this to get kilometres-per-hour."""

# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------
HISTORY_MAX_ENTRIES: Final[int] = 10
"""Number of completed sessions kept in the local history."""

SESSION_ID_PREFIX: Final[str] = "sess_"

SESSION_DATE_FORMAT: Final[str] = "%d/%m/%Y %H:%M:%S"
"""Human-readable session date, ``dd/mm/YYYY HH:MM:SS``."""

# ---------------------------------------------------------------------------
# Default severity thresholds (m/s², lateral axis)
# ---------------------------------------------------------------------------
DEFAULT_THRESHOLD_ALERT: Final[float] = 1.2
DEFAULT_THRESHOLD_INTERVENTION: Final[float] = 2.2
DEFAULT_THRESHOLD_IMMEDIATE: Final[float] = 2.8

# ---------------------------------------------------------------------------
# Remote analysis
# ---------------------------------------------------------------------------
ANALYSIS_MIN_SAMPLES: Final[int] = 50
"""Sessions with fewer samples are not sent for analysis."""

ANALYSIS_SAMPLE_STRIDE: Final[int] = 10
ANALYSIS_MAX_SAMPLES: Final[int] = 200
