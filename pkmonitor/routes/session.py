"""Session control endpoints: start/stop, status, live data, live analysis and export."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import Response

from ..api_models import (
    AnalysisResponse,
    LiveSessionResponse,
    SessionStartRequest,
    SessionStartResponse,
    SessionStatusResponse,
    SessionStopRequest,
    SessionStopResponse,
)
from ..domain_models import (
    Direction,
    SessionConfig,
    SessionConfigError,
    Thresholds,
    parse_start_position,
)
from ._helpers import csv_response, live_record, pdf_response, run_analysis

if TYPE_CHECKING:
    from ..app import RuntimeState

LOGGER = logging.getLogger(__name__)


def session_config_from_request(req: SessionStartRequest, defaults: SessionConfig) -> SessionConfig:
    """Merge a start request over the configured form defaults.

    Raises :class:`SessionConfigError` for an unparseable starting position
    or a missing track.
    """
    start_raw = req.start_position if req.start_position is not None else defaults.start_position
    base = defaults.thresholds
    thresholds = Thresholds(
        alert=req.threshold_alert if req.threshold_alert is not None else base.alert,
        intervention=(
            req.threshold_intervention
            if req.threshold_intervention is not None
            else base.intervention
        ),
        immediate=req.threshold_immediate if req.threshold_immediate is not None else base.immediate,
    )
    config = SessionConfig(
        start_position=parse_start_position(start_raw),
        direction=Direction.parse(req.direction) if req.direction else defaults.direction,
        track=(req.track if req.track is not None else defaults.track).strip(),
        thresholds=thresholds,
    )
    metadata = {**defaults.metadata(), **req.model_dump(exclude_none=True)}
    config = config.with_metadata(
        {key: value for key, value in metadata.items() if key != "start_position"}
    )
    config.validate()
    return config


def create_session_routes(state: RuntimeState) -> APIRouter:
    router = APIRouter()

    def _status(**extra: Any) -> dict[str, Any]:
        return {**state.status(), **extra}

    @router.get("/api/session/status", response_model=SessionStatusResponse)
    async def get_session_status() -> dict[str, Any]:
        return _status()

    @router.post("/api/session/start", response_model=SessionStartResponse)
    async def start_session(req: SessionStartRequest) -> dict[str, Any]:
        if state.recorder.is_recording:
            return _status(started=False)
        try:
            config = session_config_from_request(req, state.config.session)
            started = state.start_session(config)
        except SessionConfigError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return _status(started=started)

    @router.post("/api/session/stop", response_model=SessionStopResponse)
    async def stop_session(req: SessionStopRequest | None = None) -> dict[str, Any]:
        metadata = req.model_dump(exclude_none=True) if req is not None else None
        record = state.stop_session(metadata)
        if record is None:
            return {"stopped": False, "record": None}
        return {"stopped": True, "record": record.summary()}

    @router.get("/api/session/live", response_model=LiveSessionResponse)
    async def get_live_session(
        limit: int | None = Query(default=None, ge=1, description="Return only the last N samples"),
    ) -> dict[str, Any]:
        snapshot = state.recorder.snapshot()
        samples = snapshot.samples if limit is None else snapshot.samples[-limit:]
        return {
            "generation": snapshot.generation,
            "recording": snapshot.recording,
            "stats": snapshot.stats.to_dict(),
            "samples": [sample.to_dict() for sample in samples],
            "analysis": snapshot.analysis.to_dict() if snapshot.analysis is not None else None,
        }

    @router.post("/api/session/analyze", response_model=AnalysisResponse)
    async def analyze_live_session() -> dict[str, object]:
        return await run_analysis(state.analysis_runner.analyze_live())

    @router.get("/api/session/export.csv")
    async def export_live_csv(
        low: float | None = Query(default=None),
        high: float | None = Query(default=None),
    ) -> Response:
        return csv_response(live_record(state), low, high)

    @router.get("/api/session/report.pdf")
    async def download_live_report(
        low: float | None = Query(default=None),
        high: float | None = Query(default=None),
        lang: str | None = Query(default=None),
    ) -> Response:
        return await pdf_response(
            live_record(state), low, high, lang or state.config.report.language
        )

    return router
