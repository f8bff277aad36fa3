"""Session recorder: per-event orchestration and the start/stop lifecycle.

``SessionRecorder`` owns the live sample buffer and running statistics of
the active session.  Each accepted motion event advances the track position
with the last known GPS speed, is classified against the session thresholds
and folded into the statistics.  ``stop`` freezes the session into a
:class:`~pkmonitor.domain_models.SessionRecord` that the caller hands to the
history store.
"""

from __future__ import annotations

import enum
import logging
import math
import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from .constants import HISTORY_MAX_ENTRIES, MS_PER_SECOND
from .domain_models import (
    AnalysisResult,
    Sample,
    SessionConfig,
    SessionConfigError,
    SessionRecord,
    SessionStats,
    format_session_date,
    new_session_id,
)
from .gps_speed import GPSSpeedSource
from .position import PositionIntegrator
from .stats import StatsAggregator
from .thresholds import Band, warn_if_unordered

LOGGER = logging.getLogger(__name__)


class RecorderState(str, enum.Enum):
    IDLE = "idle"
    RECORDING = "recording"


@dataclass(frozen=True, slots=True)
class LiveSnapshot:
    """Copy of the live session handed to slow collaborators (analysis, export)."""

    generation: int
    recording: bool
    samples: tuple[Sample, ...]
    stats: SessionStats
    analysis: AnalysisResult | None


def _wall_clock_ms() -> float:
    return time.time() * MS_PER_SECOND


def _is_reading(value: object) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


class SessionRecorder:
    def __init__(
        self,
        speed_source: GPSSpeedSource,
        *,
        clock_ms: Callable[[], float] = _wall_clock_ms,
        now: Callable[[], datetime] = datetime.now,
        remembered_sessions: int = HISTORY_MAX_ENTRIES,
    ) -> None:
        self._speed_source = speed_source
        self._remembered_sessions = max(1, remembered_sessions)
        self._clock_ms = clock_ms
        self._now = now
        self._state = RecorderState.IDLE
        self._config = SessionConfig()
        self._integrator = PositionIntegrator()
        self._aggregator = StatsAggregator()
        self._samples: list[Sample] = []
        self._last_timestamp_ms: float | None = None
        self._last_band: Band = Band.NONE
        self._live_analysis: AnalysisResult | None = None
        self._generation = 0
        self._stopped_record_ids: dict[int, str] = {}
        self.dropped_events = 0

    # -- read-only views ------------------------------------------------------

    @property
    def state(self) -> RecorderState:
        return self._state

    @property
    def is_recording(self) -> bool:
        return self._state is RecorderState.RECORDING

    @property
    def generation(self) -> int:
        """Incremented on every start; identifies the session an operation targets."""
        return self._generation

    @property
    def config(self) -> SessionConfig:
        return self._config

    @property
    def stats(self) -> SessionStats:
        return self._aggregator.stats

    @property
    def position(self) -> float:
        return self._integrator.position

    @property
    def sample_count(self) -> int:
        return len(self._samples)

    @property
    def last_band(self) -> Band:
        """Band of the most recently accepted sample."""
        return self._last_band

    @property
    def live_analysis(self) -> AnalysisResult | None:
        return self._live_analysis

    def snapshot(self) -> LiveSnapshot:
        return LiveSnapshot(
            generation=self._generation,
            recording=self.is_recording,
            samples=tuple(self._samples),
            stats=self._aggregator.stats,
            analysis=self._live_analysis,
        )

    def status(self) -> dict[str, Any]:
        last = self._samples[-1] if self._samples else None
        return {
            "state": self._state.value,
            "generation": self._generation,
            "sample_count": len(self._samples),
            "dropped_events": self.dropped_events,
            "position": self._integrator.position,
            "last_band": self._last_band.value,
            "last_sample": last.to_dict() if last is not None else None,
            "stats": self._aggregator.stats.to_dict(),
            "has_analysis": self._live_analysis is not None,
            "speed": self._speed_source.status(),
        }

    # -- lifecycle ------------------------------------------------------------

    def start(self, config: SessionConfig) -> bool:
        """Enter the recording state.

        Returns ``False`` (and changes nothing) when already recording.
        Raises :class:`SessionConfigError` when *config* lacks a track or a
        usable starting position.
        """
        if self.is_recording:
            LOGGER.info("Start ignored: session %d is already recording", self._generation)
            return False
        config.validate()
        warn_if_unordered(config.thresholds)
        self._generation += 1
        self._config = config
        self._samples = []
        self._last_timestamp_ms = None
        self._last_band = Band.NONE
        self._live_analysis = None
        self.dropped_events = 0
        self._integrator.reset(config.start_position)
        self._aggregator.reset(config)
        self._speed_source.subscribe()
        self._state = RecorderState.RECORDING
        LOGGER.info(
            "Recording started: track=%s start_position=%.3f direction=%s",
            config.track,
            config.start_position,
            config.direction.value,
        )
        return True

    def stop(
        self,
        metadata: Mapping[str, Any] | None = None,
        *,
        taken_ids: Iterable[str] = (),
    ) -> SessionRecord | None:
        """Freeze the active session into a record; ``None`` when idle.

        *metadata* carries the operator fields as they stand at stop time and
        overrides those captured at start.  *taken_ids* are ids already in the
        history; the new record id never repeats one of them.
        """
        if not self.is_recording:
            LOGGER.info("Stop ignored: no session is recording")
            return None
        config = self._config
        if metadata:
            try:
                config = config.with_metadata(metadata)
            except SessionConfigError:
                LOGGER.warning(
                    "Ignoring unparseable starting position at stop; keeping %.3f",
                    config.start_position,
                )
                config = config.with_metadata(
                    {k: v for k, v in metadata.items() if k != "start_position"}
                )
        self._config = config
        stopped_at = self._now()
        record = SessionRecord(
            id=new_session_id(
                stopped_at, set(taken_ids).union(self._stopped_record_ids.values())
            ),
            date=format_session_date(stopped_at),
            stats=self._aggregator.stats.with_config(config),
            samples=tuple(self._samples),
            analysis=self._live_analysis,
        )
        self._speed_source.release()
        self._samples = []
        self._last_timestamp_ms = None
        self._live_analysis = None
        self._state = RecorderState.IDLE
        self._stopped_record_ids[self._generation] = record.id
        while len(self._stopped_record_ids) > self._remembered_sessions:
            del self._stopped_record_ids[next(iter(self._stopped_record_ids))]
        LOGGER.info(
            "Recording stopped: %s with %d sample(s), %d exceedance(s)",
            record.id,
            len(record.samples),
            record.stats.exceedance_total,
        )
        return record

    def shutdown(self) -> None:
        """Release external subscriptions on teardown without storing a record."""
        self._speed_source.release()

    # -- ingestion ------------------------------------------------------------

    def on_motion(
        self,
        x: float | None,
        y: float | None,
        z: float | None,
        timestamp_ms: float | None = None,
    ) -> Sample | None:
        """Process one motion event; returns the stored sample or ``None`` if dropped."""
        if not self.is_recording:
            return None
        if not (_is_reading(x) and _is_reading(y) and _is_reading(z)):
            self.dropped_events += 1
            LOGGER.debug("Dropping motion event with a missing axis reading")
            return None
        ts = float(timestamp_ms) if _is_reading(timestamp_ms) else self._clock_ms()
        if self._last_timestamp_ms is None:
            elapsed_s = 0.0
        elif ts <= self._last_timestamp_ms:
            # The time base never moves backward; a late event covers no distance.
            if ts < self._last_timestamp_ms:
                LOGGER.debug(
                    "Out-of-order motion timestamp %.0f ms (last %.0f ms); clamping",
                    ts,
                    self._last_timestamp_ms,
                )
            ts = self._last_timestamp_ms
            elapsed_s = 0.0
        else:
            elapsed_s = (ts - self._last_timestamp_ms) / MS_PER_SECOND
        self._last_timestamp_ms = ts
        position = self._integrator.advance(
            self._speed_source.speed_mps, elapsed_s, self._config.direction
        )
        sample = Sample.from_axes(ts, x, y, z, position=position)  # type: ignore[arg-type]
        self._last_band = self._aggregator.update(sample)
        self._samples.append(sample)
        return sample

    # -- analysis -------------------------------------------------------------

    def attach_live_analysis(self, analysis: AnalysisResult, generation: int) -> bool:
        """Attach *analysis* to the live session if it is still session *generation*."""
        if not self.is_recording or generation != self._generation:
            return False
        self._live_analysis = analysis
        return True

    def record_id_for_generation(self, generation: int) -> str | None:
        """Id of the record produced by stopping session *generation*, if known."""
        return self._stopped_record_ids.get(generation)
