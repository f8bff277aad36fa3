"""Domain model objects for the PK monitor backend.

Typed dataclasses for samples, session configuration, running statistics and
stored sessions.  ``to_dict``/``from_dict`` keep the persisted JSON layout
stable; ``from_dict`` defaults unknown or missing keys to base values and
also understands the camelCase keys written by the first mobile release.
"""

from __future__ import annotations

import enum
import logging
import math
from collections.abc import Collection, Mapping
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any

from .constants import (
    DEFAULT_THRESHOLD_ALERT,
    DEFAULT_THRESHOLD_IMMEDIATE,
    DEFAULT_THRESHOLD_INTERVENTION,
    SESSION_DATE_FORMAT,
    SESSION_ID_PREFIX,
)

LOGGER = logging.getLogger(__name__)

METADATA_FIELDS: tuple[str, ...] = (
    "operator",
    "line",
    "train",
    "engine_number",
    "train_position",
    "note",
)
"""Free-text session metadata, entered by the operator."""

_LEGACY_METADATA_KEYS: dict[str, str] = {
    "engine_number": "engineNumber",
    "train_position": "position",
}


class SessionConfigError(ValueError):
    """Raised when a session cannot start because required fields are missing."""


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------


def _as_float_or_none(value: object) -> float | None:
    if value in (None, "") or isinstance(value, bool):
        return None
    try:
        out = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if not math.isfinite(out):
        return None
    return out


def _as_float(value: object, default: float = 0.0) -> float:
    out = _as_float_or_none(value)
    return default if out is None else out


def _as_count(value: object) -> int:
    out = _as_float_or_none(value)
    if out is None or out < 0:
        return 0
    return int(out)


def _as_text(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _pick(data: Mapping[str, Any], *keys: str) -> Any:
    """Return the first present value among *keys* (current name first)."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def parse_start_position(value: object) -> float:
    """Parse an operator-entered PK such as ``"175.100"`` or ``"175,100"``.

    Raises :class:`SessionConfigError` when the value is not a finite number.
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        parsed = _as_float_or_none(value)
    else:
        parsed = _as_float_or_none(_as_text(value).replace(",", "."))
    if parsed is None:
        raise SessionConfigError(f"Starting position is not a number: {value!r}")
    return parsed


def new_session_id(now: datetime, taken: Collection[str] = ()) -> str:
    """Millisecond-stamped id; a numeric suffix keeps it clear of *taken* ids."""
    base = f"{SESSION_ID_PREFIX}{int(now.timestamp() * 1000)}"
    candidate = base
    suffix = 2
    while candidate in taken:
        candidate = f"{base}_{suffix}"
        suffix += 1
    return candidate


def format_session_date(now: datetime) -> str:
    return now.strftime(SESSION_DATE_FORMAT)


# ---------------------------------------------------------------------------
# Sample
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Sample:
    """One accelerometer reading, stamped with the track position at capture."""

    timestamp_ms: float
    x: float
    y: float
    z: float
    magnitude: float
    position: float | None = None

    @classmethod
    def from_axes(
        cls,
        timestamp_ms: float,
        x: float,
        y: float,
        z: float,
        position: float | None = None,
    ) -> Sample:
        x, y, z = float(x), float(y), float(z)
        return cls(
            timestamp_ms=float(timestamp_ms),
            x=x,
            y=y,
            z=z,
            magnitude=math.sqrt(x * x + y * y + z * z),
            position=position,
        )

    @property
    def lateral(self) -> float:
        """Acceleration on the axis classified against severity thresholds."""
        return self.y

    def position_or_zero(self) -> float:
        return self.position if self.position is not None else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp_ms": self.timestamp_ms,
            "x": self.x,
            "y": self.y,
            "z": self.z,
            "magnitude": self.magnitude,
            "position": self.position,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Sample:
        x = _as_float(data.get("x"))
        y = _as_float(data.get("y"))
        z = _as_float(data.get("z"))
        magnitude = _as_float_or_none(data.get("magnitude"))
        if magnitude is None or magnitude < 0:
            magnitude = math.sqrt(x * x + y * y + z * z)
        return cls(
            timestamp_ms=_as_float(_pick(data, "timestamp_ms", "timestamp")),
            x=x,
            y=y,
            z=z,
            magnitude=magnitude,
            position=_as_float_or_none(_pick(data, "position", "pk")),
        )


# ---------------------------------------------------------------------------
# Session configuration
# ---------------------------------------------------------------------------


class Direction(str, enum.Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"

    @property
    def sign(self) -> float:
        return 1.0 if self is Direction.INCREASING else -1.0

    @classmethod
    def parse(cls, value: object) -> Direction:
        if isinstance(value, Direction):
            return value
        text = _as_text(value).lower()
        if text in ("decreasing", "decroissant", "décroissant"):
            return cls.DECREASING
        return cls.INCREASING


@dataclass(frozen=True, slots=True)
class Thresholds:
    """Lateral-acceleration severity thresholds in m/s², least severe first."""

    alert: float = DEFAULT_THRESHOLD_ALERT
    intervention: float = DEFAULT_THRESHOLD_INTERVENTION
    immediate: float = DEFAULT_THRESHOLD_IMMEDIATE

    def is_ordered(self) -> bool:
        return self.alert <= self.intervention <= self.immediate

    def to_dict(self) -> dict[str, float]:
        return {
            "alert": self.alert,
            "intervention": self.intervention,
            "immediate": self.immediate,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Thresholds:
        return cls(
            alert=_as_float(
                _pick(data, "threshold_alert", "alert", "thresholdLA"), DEFAULT_THRESHOLD_ALERT
            ),
            intervention=_as_float(
                _pick(data, "threshold_intervention", "intervention", "thresholdLI"),
                DEFAULT_THRESHOLD_INTERVENTION,
            ),
            immediate=_as_float(
                _pick(data, "threshold_immediate", "immediate", "thresholdLAI"),
                DEFAULT_THRESHOLD_IMMEDIATE,
            ),
        )


@dataclass(frozen=True, slots=True)
class SessionConfig:
    start_position: float = 0.0
    direction: Direction = Direction.INCREASING
    track: str = ""
    thresholds: Thresholds = Thresholds()
    operator: str = ""
    line: str = ""
    train: str = ""
    engine_number: str = ""
    train_position: str = ""
    note: str = ""

    def validate(self) -> None:
        if not self.track.strip():
            raise SessionConfigError("A track identifier is required to start a session")
        if not math.isfinite(self.start_position):
            raise SessionConfigError("A numeric starting position is required")

    def metadata(self) -> dict[str, str]:
        return {name: getattr(self, name) for name in METADATA_FIELDS}

    def with_metadata(self, metadata: Mapping[str, Any]) -> SessionConfig:
        """Return a copy with the known metadata fields of *metadata* applied."""
        changes = {
            name: _as_text(metadata[name])
            for name in METADATA_FIELDS
            if name in metadata and metadata[name] is not None
        }
        if "start_position" in metadata and metadata["start_position"] is not None:
            changes["start_position"] = parse_start_position(metadata["start_position"])
        return replace(self, **changes) if changes else self

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "start_position": self.start_position,
            "direction": self.direction.value,
            "track": self.track,
            "threshold_alert": self.thresholds.alert,
            "threshold_intervention": self.thresholds.intervention,
            "threshold_immediate": self.thresholds.immediate,
        }
        out.update(self.metadata())
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SessionConfig:
        metadata: dict[str, str] = {}
        for name in METADATA_FIELDS:
            legacy = _LEGACY_METADATA_KEYS.get(name)
            value = _pick(data, name, legacy) if legacy else data.get(name)
            metadata[name] = _as_text(value) if isinstance(value, str) else ""
        return cls(
            start_position=_as_float(_pick(data, "start_position", "startPK")),
            direction=Direction.parse(data.get("direction")),
            track=_as_text(data.get("track")),
            thresholds=Thresholds.from_dict(data),
            **metadata,
        )


# ---------------------------------------------------------------------------
# Running statistics
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SessionStats:
    """Session configuration plus the aggregates derived from its samples."""

    config: SessionConfig
    max_vertical: float = 0.0
    max_transversal: float = 0.0
    avg_magnitude: float = 0.0
    duration_s: float = 0.0
    count_alert: int = 0
    count_intervention: int = 0
    count_immediate: int = 0

    @classmethod
    def initial(cls, config: SessionConfig) -> SessionStats:
        return cls(config=config)

    def with_config(self, config: SessionConfig) -> SessionStats:
        return replace(self, config=config)

    @property
    def exceedance_total(self) -> int:
        return self.count_alert + self.count_intervention + self.count_immediate

    def to_dict(self) -> dict[str, Any]:
        out = self.config.to_dict()
        out.update(
            {
                "max_vertical": self.max_vertical,
                "max_transversal": self.max_transversal,
                "avg_magnitude": self.avg_magnitude,
                "duration_s": self.duration_s,
                "count_alert": self.count_alert,
                "count_intervention": self.count_intervention,
                "count_immediate": self.count_immediate,
            }
        )
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SessionStats:
        return cls(
            config=SessionConfig.from_dict(data),
            max_vertical=_as_float(_pick(data, "max_vertical", "maxVertical")),
            max_transversal=_as_float(_pick(data, "max_transversal", "maxTransversal")),
            avg_magnitude=_as_float(_pick(data, "avg_magnitude", "avgMagnitude")),
            duration_s=_as_float(_pick(data, "duration_s", "duration")),
            count_alert=_as_count(_pick(data, "count_alert", "countLA")),
            count_intervention=_as_count(_pick(data, "count_intervention", "countLI")),
            count_immediate=_as_count(_pick(data, "count_immediate", "countLAI")),
        )


# ---------------------------------------------------------------------------
# Remote analysis result
# ---------------------------------------------------------------------------


class ComplianceLevel(str, enum.Enum):
    COMPLIANT = "Compliant"
    MONITOR = "Monitor"
    CRITICAL = "Critical"

    @classmethod
    def parse(cls, value: object) -> ComplianceLevel:
        text = _as_text(value).lower()
        for level, aliases in _COMPLIANCE_ALIASES.items():
            if text in aliases:
                return level
        raise ValueError(f"Unknown compliance level: {value!r}")


_COMPLIANCE_ALIASES: dict[ComplianceLevel, tuple[str, ...]] = {
    ComplianceLevel.COMPLIANT: ("compliant", "conforme"),
    ComplianceLevel.MONITOR: ("monitor", "surveillance"),
    ComplianceLevel.CRITICAL: ("critical", "critique"),
}


@dataclass(frozen=True, slots=True)
class AnalysisResult:
    activity_type: str
    intensity_score: float
    observations: tuple[str, ...]
    recommendations: str
    compliance_level: ComplianceLevel

    def to_dict(self) -> dict[str, Any]:
        return {
            "activity_type": self.activity_type,
            "intensity_score": self.intensity_score,
            "observations": list(self.observations),
            "recommendations": self.recommendations,
            "compliance_level": self.compliance_level.value,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AnalysisResult:
        """Build from persisted or remote JSON; raises ``ValueError`` when unusable."""
        if not isinstance(data, Mapping):
            raise ValueError("Analysis payload must be an object")
        score = _as_float_or_none(_pick(data, "intensity_score", "intensityScore"))
        if score is None:
            raise ValueError("Analysis payload has no numeric intensity score")
        observations = _pick(data, "observations")
        if not isinstance(observations, (list, tuple)):
            observations = []
        return cls(
            activity_type=_as_text(_pick(data, "activity_type", "activityType")),
            intensity_score=max(0.0, min(100.0, score)),
            observations=tuple(_as_text(item) for item in observations if _as_text(item)),
            recommendations=_as_text(data.get("recommendations")),
            compliance_level=ComplianceLevel.parse(
                _pick(data, "compliance_level", "complianceLevel")
            ),
        )


# ---------------------------------------------------------------------------
# Stored session
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SessionRecord:
    """A completed session.  Only ``analysis`` may change after creation."""

    id: str
    date: str
    stats: SessionStats
    samples: tuple[Sample, ...]
    analysis: AnalysisResult | None = None

    def with_analysis(self, analysis: AnalysisResult | None) -> SessionRecord:
        return replace(self, analysis=analysis)

    def summary(self) -> dict[str, Any]:
        """Light-weight listing entry (no samples)."""
        return {
            "id": self.id,
            "date": self.date,
            "track": self.stats.config.track,
            "start_position": self.stats.config.start_position,
            "direction": self.stats.config.direction.value,
            "sample_count": len(self.samples),
            "duration_s": self.stats.duration_s,
            "exceedances": self.stats.exceedance_total,
            "has_analysis": self.analysis is not None,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "stats": self.stats.to_dict(),
            "samples": [sample.to_dict() for sample in self.samples],
            "analysis": self.analysis.to_dict() if self.analysis is not None else None,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SessionRecord:
        if not isinstance(data, Mapping):
            raise ValueError("Session record must be an object")
        record_id = _as_text(data.get("id"))
        if not record_id:
            raise ValueError("Session record has no id")
        raw_stats = data.get("stats")
        raw_samples = _pick(data, "samples", "data")
        samples = tuple(
            Sample.from_dict(item)
            for item in (raw_samples if isinstance(raw_samples, list) else [])
            if isinstance(item, Mapping)
        )
        analysis: AnalysisResult | None = None
        raw_analysis = data.get("analysis")
        if raw_analysis is not None:
            try:
                analysis = AnalysisResult.from_dict(raw_analysis)
            except ValueError:
                LOGGER.warning("Dropping unreadable analysis of session %s", record_id)
        return cls(
            id=record_id,
            date=_as_text(data.get("date")),
            stats=SessionStats.from_dict(raw_stats if isinstance(raw_stats, Mapping) else {}),
            samples=samples,
            analysis=analysis,
        )
