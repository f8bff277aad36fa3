"""Pydantic request/response models for the pkmonitor HTTP API.

Kept apart from the route modules so routing logic stays distinct from
data contracts.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class SessionMetadataFields(BaseModel):
    operator: str | None = Field(default=None, max_length=128)
    line: str | None = Field(default=None, max_length=128)
    train: str | None = Field(default=None, max_length=128)
    engine_number: str | None = Field(default=None, max_length=64)
    train_position: str | None = Field(default=None, max_length=64)
    note: str | None = Field(default=None, max_length=2000)


class SessionStartRequest(SessionMetadataFields):
    # Operators type PKs such as "175,100"; parsing happens in the domain layer.
    start_position: float | str | None = None
    direction: str | None = Field(default=None, pattern="^(increasing|decreasing)$")
    track: str | None = Field(default=None, max_length=64)
    threshold_alert: float | None = Field(default=None, ge=0)
    threshold_intervention: float | None = Field(default=None, ge=0)
    threshold_immediate: float | None = Field(default=None, ge=0)


class SessionStopRequest(SessionMetadataFields):
    start_position: float | str | None = None


class MotionEventRequest(BaseModel):
    x: float | None = None
    y: float | None = None
    z: float | None = None
    timestamp_ms: float | None = None


class GPSFixRequest(BaseModel):
    speed: float | None = None
    accuracy: float | None = None


class AnalysisUpdateRequest(BaseModel):
    analysis: dict[str, Any] | None = None


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    status: str
    version: str
    recording: bool
    history_entries: int


class SessionStatusResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    state: str
    generation: int
    sample_count: int
    position: float
    stats: dict[str, Any]
    has_analysis: bool
    last_notice: str | None = None
    selected_id: str | None = None


class SessionStartResponse(SessionStatusResponse):
    started: bool


class SessionStopResponse(BaseModel):
    stopped: bool
    record: dict[str, Any] | None = None


class LiveSessionResponse(BaseModel):
    generation: int
    recording: bool
    stats: dict[str, Any]
    samples: list[dict[str, Any]]
    analysis: dict[str, Any] | None = None


class MotionEventResponse(BaseModel):
    accepted: bool
    band: str | None = None
    sample: dict[str, Any] | None = None


class GPSFixResponse(BaseModel):
    accepted: bool
    speed_mps: float
    speed_kmh: float


class AnalysisResponse(BaseModel):
    analysis: dict[str, Any]
    attached_to: str | None = None


class HistoryListResponse(BaseModel):
    sessions: list[dict[str, Any]]
    selected_id: str | None = None
    max_entries: int


class HistoryRecordResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    date: str
    stats: dict[str, Any]
    samples: list[dict[str, Any]] = Field(default_factory=list)
    analysis: dict[str, Any] | None = None


class DeleteHistoryResponse(BaseModel):
    id: str
    status: str
