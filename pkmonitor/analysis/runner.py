"""Runs remote analyses off the event loop and attaches their results.

The target is captured when the request is made: the live session (by its
recorder generation) or a stored record (by id).  A live analysis that
finishes after the session was stopped lands on the record that stop
produced.  A record deleted in the meantime simply discards the result.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

from ..constants import ANALYSIS_MIN_SAMPLES
from ..domain_models import AnalysisResult
from ..history_store import HistoryStore
from ..recorder import SessionRecorder
from .client import AnalysisClient, AnalysisError

LOGGER = logging.getLogger(__name__)


class AnalysisBusyError(AnalysisError):
    """An analysis for the same target is already running."""


class AnalysisUnavailableError(AnalysisError):
    """The request cannot be analysed: analysis disabled or too few samples."""


@dataclass(frozen=True, slots=True)
class AnalysisOutcome:
    result: AnalysisResult
    attached_to: str | None
    """``"live"``, a record id, or ``None`` when the target disappeared."""


class AnalysisRunner:
    def __init__(
        self,
        client: AnalysisClient,
        recorder: SessionRecorder,
        history: HistoryStore,
        *,
        enabled: bool = True,
        min_samples: int = ANALYSIS_MIN_SAMPLES,
        notify: Callable[[str], None] | None = None,
    ) -> None:
        self._client = client
        self._recorder = recorder
        self._history = history
        self.enabled = enabled
        self.min_samples = max(1, int(min_samples))
        self._notify = notify
        self._in_flight: set[str] = set()

    @property
    def in_flight(self) -> frozenset[str]:
        return frozenset(self._in_flight)

    def _fail(self, message: str, error: type[AnalysisError] = AnalysisError) -> AnalysisError:
        LOGGER.warning("Analysis not available: %s", message)
        if self._notify is not None:
            self._notify(message)
        return error(message)

    def _check_request(self, target: str, sample_count: int) -> None:
        if not self.enabled:
            raise self._fail("Analysis is disabled in the configuration", AnalysisUnavailableError)
        if target in self._in_flight:
            raise AnalysisBusyError(f"An analysis of {target} is already running")
        if sample_count < self.min_samples:
            raise self._fail(
                f"Not enough data to analyse: {sample_count} sample(s), "
                f"at least {self.min_samples} required",
                AnalysisUnavailableError,
            )

    async def analyze_live(self) -> AnalysisOutcome:
        snapshot = self._recorder.snapshot()
        target = f"live:{snapshot.generation}"
        self._check_request(target, len(snapshot.samples))
        self._in_flight.add(target)
        try:
            result = await asyncio.to_thread(
                self._client.analyze, snapshot.samples, snapshot.stats
            )
        except AnalysisError as exc:
            raise self._fail(str(exc)) from exc
        finally:
            self._in_flight.discard(target)

        if self._recorder.attach_live_analysis(result, snapshot.generation):
            LOGGER.info("Attached analysis to live session %d", snapshot.generation)
            return AnalysisOutcome(result=result, attached_to="live")
        record_id = self._recorder.record_id_for_generation(snapshot.generation)
        if record_id is not None and self._history.attach_analysis(record_id, result):
            LOGGER.info("Attached late analysis of session %d to %s", snapshot.generation, record_id)
            return AnalysisOutcome(result=result, attached_to=record_id)
        LOGGER.info("Analysis of session %d has no remaining target", snapshot.generation)
        return AnalysisOutcome(result=result, attached_to=None)

    async def analyze_record(self, record_id: str) -> AnalysisOutcome:
        """Analyse a stored session; raises ``KeyError`` when *record_id* is unknown."""
        record = self._history.get(record_id)
        if record is None:
            raise KeyError(record_id)
        self._check_request(record_id, len(record.samples))
        self._in_flight.add(record_id)
        try:
            result = await asyncio.to_thread(self._client.analyze, record.samples, record.stats)
        except AnalysisError as exc:
            raise self._fail(str(exc)) from exc
        finally:
            self._in_flight.discard(record_id)
        attached = self._history.attach_analysis(record_id, result)
        return AnalysisOutcome(result=result, attached_to=record_id if attached else None)
