"""History endpoints: listing, selection, deletion, analysis and export."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import Response

from ..api_models import (
    AnalysisResponse,
    AnalysisUpdateRequest,
    DeleteHistoryResponse,
    HistoryListResponse,
    HistoryRecordResponse,
)
from ..domain_models import AnalysisResult
from ._helpers import csv_response, pdf_response, require_record, run_analysis

if TYPE_CHECKING:
    from ..app import RuntimeState

LOGGER = logging.getLogger(__name__)


def create_history_routes(state: RuntimeState) -> APIRouter:
    router = APIRouter()
    history = state.history

    # -- listing and selection -------------------------------------------------

    @router.get("/api/history", response_model=HistoryListResponse)
    async def get_history() -> dict[str, Any]:
        return {
            "sessions": [record.summary() for record in history.records],
            "selected_id": history.selected_id,
            "max_entries": history.max_entries,
        }

    @router.delete("/api/history/selection", response_model=HistoryListResponse)
    async def clear_history_selection() -> dict[str, Any]:
        history.clear_selection()
        return await get_history()

    @router.get("/api/history/{record_id}", response_model=HistoryRecordResponse)
    async def get_history_record(record_id: str) -> dict[str, Any]:
        return require_record(history, record_id).to_dict()

    @router.post("/api/history/{record_id}/select", response_model=HistoryRecordResponse)
    async def select_history_record(record_id: str) -> dict[str, Any]:
        record = require_record(history, record_id)
        history.select(record_id)
        return record.to_dict()

    @router.delete("/api/history/{record_id}", response_model=DeleteHistoryResponse)
    async def delete_history_record(record_id: str) -> dict[str, str]:
        if not history.remove(record_id):
            raise HTTPException(status_code=404, detail="Session not found")
        return {"id": record_id, "status": "deleted"}

    # -- analysis --------------------------------------------------------------

    @router.post("/api/history/{record_id}/analyze", response_model=AnalysisResponse)
    async def analyze_history_record(record_id: str) -> dict[str, object]:
        require_record(history, record_id)
        return await run_analysis(state.analysis_runner.analyze_record(record_id))

    @router.put("/api/history/{record_id}/analysis", response_model=HistoryRecordResponse)
    async def put_history_analysis(record_id: str, req: AnalysisUpdateRequest) -> dict[str, Any]:
        require_record(history, record_id)
        analysis: AnalysisResult | None = None
        if req.analysis is not None:
            try:
                analysis = AnalysisResult.from_dict(req.analysis)
            except ValueError as exc:
                raise HTTPException(status_code=422, detail=str(exc)) from exc
        history.attach_analysis(record_id, analysis)
        return require_record(history, record_id).to_dict()

    # -- export ----------------------------------------------------------------

    @router.get("/api/history/{record_id}/export.csv")
    async def export_history_csv(
        record_id: str,
        low: float | None = Query(default=None),
        high: float | None = Query(default=None),
    ) -> Response:
        return csv_response(require_record(history, record_id), low, high)

    @router.get("/api/history/{record_id}/report.pdf")
    async def download_history_report(
        record_id: str,
        low: float | None = Query(default=None),
        high: float | None = Query(default=None),
        lang: str | None = Query(default=None),
    ) -> Response:
        record = require_record(history, record_id)
        return await pdf_response(record, low, high, lang or state.config.report.language)

    return router
