"""Runtime orchestration: sensor input -> recorder -> history, behind FastAPI.

Boundary note for maintainers:
- Keep this module focused on wiring and lifecycle, not algorithm details.
- Position, classification and statistics belong in their own modules.
- API schemas belong in ``api_models.py``.
"""

from __future__ import annotations

import argparse
import logging
from collections.abc import Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

import uvicorn
from fastapi import FastAPI

from . import __version__
from .analysis import AnalysisClient, AnalysisRunner, GeminiAnalysisClient
from .config import AppConfig, load_config
from .domain_models import SessionConfig, SessionRecord
from .gps_speed import GPSSpeedSource
from .history_db import HistoryDB
from .history_store import HistoryPersistence, HistoryStore
from .recorder import SessionRecorder
from .routes import create_router

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class RuntimeState:
    config: AppConfig
    speed_source: GPSSpeedSource
    recorder: SessionRecorder
    history: HistoryStore
    analysis_runner: AnalysisRunner
    history_db: HistoryDB | None = None
    last_notice: str | None = None
    last_notice_at: str | None = None

    def notify(self, message: str) -> None:
        """Record a user-facing notice, shown by the session status endpoint."""
        self.last_notice = message
        self.last_notice_at = datetime.now().isoformat(timespec="seconds")

    def start_session(self, config: SessionConfig) -> bool:
        started = self.recorder.start(config)
        if started:
            self.history.clear_selection()
            self.last_notice = None
            self.last_notice_at = None
        return started

    def stop_session(self, metadata: Mapping[str, Any] | None = None) -> SessionRecord | None:
        record = self.recorder.stop(
            metadata, taken_ids=[r.id for r in self.history.records]
        )
        if record is None:
            return None
        self.history.append(record)
        self.history.select(record.id)
        return record

    def status(self) -> dict[str, Any]:
        out = self.recorder.status()
        out["last_notice"] = self.last_notice
        out["last_notice_at"] = self.last_notice_at
        out["selected_id"] = self.history.selected_id
        out["analysis_in_progress"] = sorted(self.analysis_runner.in_flight)
        return out

    def shutdown(self) -> None:
        self.recorder.shutdown()
        if self.history_db is not None:
            try:
                self.history_db.close()
            except Exception:
                LOGGER.warning("Error closing history DB", exc_info=True)


def create_app(
    config_path: Path | None = None,
    *,
    persistence: HistoryPersistence | None = None,
    analysis_client: AnalysisClient | None = None,
) -> FastAPI:
    config = load_config(config_path)

    history_db: HistoryDB | None = None
    if persistence is None:
        history_db = HistoryDB.open_or_recreate(config.storage.history_db_path)
        persistence = history_db

    def _notify(message: str) -> None:
        runtime.notify(message)

    speed_source = GPSSpeedSource()
    recorder = SessionRecorder(
        speed_source, remembered_sessions=config.storage.max_history_entries
    )
    history = HistoryStore(
        persistence,
        max_entries=config.storage.max_history_entries,
        error_callback=_notify,
    )
    runner = AnalysisRunner(
        analysis_client or GeminiAnalysisClient.from_config(config.analysis),
        recorder,
        history,
        enabled=config.analysis.enabled,
        min_samples=config.analysis.min_samples,
        notify=_notify,
    )
    runtime = RuntimeState(
        config=config,
        speed_source=speed_source,
        recorder=recorder,
        history=history,
        analysis_runner=runner,
        history_db=history_db,
    )
    history.load()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        LOGGER.info("pkmonitor %s ready with %d stored session(s)", __version__, len(history))
        try:
            yield
        finally:
            runtime.shutdown()

    app = FastAPI(title="pkmonitor", version=__version__, lifespan=lifespan)
    app.state.runtime = runtime
    app.include_router(create_router(runtime))
    return app


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the pkmonitor server")
    parser.add_argument("--config", type=Path, default=None, help="Path to config YAML")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    runtime_app = create_app(config_path=args.config)
    runtime: RuntimeState = runtime_app.state.runtime
    uvicorn.run(
        runtime_app,
        host=runtime.config.server.host,
        port=runtime.config.server.port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
