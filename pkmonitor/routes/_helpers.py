"""Shared route helpers used across multiple route modules."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import TYPE_CHECKING

from fastapi import HTTPException
from fastapi.responses import Response

from ..analysis import (
    AnalysisBusyError,
    AnalysisError,
    AnalysisOutcome,
    AnalysisUnavailableError,
)
from ..domain_models import SessionRecord, format_session_date
from ..export import safe_filename, samples_to_csv
from ..range_filter import filter_by_position, position_span
from ..report import build_report_data, build_report_pdf

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from ..app import RuntimeState
    from ..history_store import HistoryStore

LOGGER = logging.getLogger(__name__)

LIVE_RECORD_ID = "live"


def require_record(history: HistoryStore, record_id: str) -> SessionRecord:
    """Fetch a stored session or raise HTTP 404."""
    record = history.get(record_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return record


def live_record(state: RuntimeState) -> SessionRecord:
    """The live session as a provisional record, for export; HTTP 409 when empty."""
    snapshot = state.recorder.snapshot()
    if not snapshot.samples:
        raise HTTPException(status_code=409, detail="No samples recorded in the live session")
    return SessionRecord(
        id=LIVE_RECORD_ID,
        date=format_session_date(datetime.now()),
        stats=snapshot.stats,
        samples=snapshot.samples,
        analysis=snapshot.analysis,
    )


def csv_response(record: SessionRecord, low: float | None, high: float | None) -> Response:
    span = position_span(record.samples) or (0.0, 0.0)
    lo = span[0] if low is None else low
    hi = span[1] if high is None else high
    body = samples_to_csv(filter_by_position(record.samples, lo, hi))
    name = f"{safe_filename(record.id)}.csv"
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{name}"'},
    )


async def pdf_response(
    record: SessionRecord, low: float | None, high: float | None, lang: str
) -> Response:
    def _build_pdf() -> tuple[str, bytes]:
        data = build_report_data(record, low, high, lang)
        return data.report_id, build_report_pdf(data)

    try:
        report_id, pdf = await asyncio.to_thread(_build_pdf)
    except Exception as exc:
        LOGGER.warning("PDF generation failed for session %s", record.id, exc_info=True)
        raise HTTPException(status_code=422, detail="PDF generation failed") from exc
    name = f"Report_{safe_filename(report_id)}.pdf"
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{name}"'},
    )


async def run_analysis(request: Awaitable[AnalysisOutcome]) -> dict[str, object]:
    """Await an analysis and map its failures to HTTP errors."""
    try:
        outcome = await request
    except AnalysisBusyError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except AnalysisUnavailableError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except AnalysisError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return {"analysis": outcome.result.to_dict(), "attached_to": outcome.attached_to}
