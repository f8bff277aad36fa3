"""Bounded, most-recent-first history of completed sessions.

Every mutation is persisted as a full overwrite through a
:class:`HistoryPersistence` port.  Persistence problems never take the
in-memory history down with them: a failed load yields an empty history
and a failed save is logged and reported through ``error_callback``.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import Any, Protocol

from .constants import HISTORY_MAX_ENTRIES
from .domain_models import AnalysisResult, SessionRecord

LOGGER = logging.getLogger(__name__)


class HistoryPersistence(Protocol):
    def load(self) -> list[dict[str, Any]]: ...

    def save(self, records: list[dict[str, Any]]) -> None: ...


class MemoryHistoryPersistence:
    """Keeps the serialized history in memory, round-tripped through JSON."""

    def __init__(self, payload: str | None = None) -> None:
        self.payload = payload
        self.save_count = 0

    def load(self) -> list[dict[str, Any]]:
        if self.payload is None:
            return []
        data = json.loads(self.payload)
        if not isinstance(data, list):
            raise ValueError("Stored history is not a list")
        return data

    def save(self, records: list[dict[str, Any]]) -> None:
        self.payload = json.dumps(records, ensure_ascii=False)
        self.save_count += 1


class HistoryStore:
    def __init__(
        self,
        persistence: HistoryPersistence,
        *,
        max_entries: int = HISTORY_MAX_ENTRIES,
        error_callback: Callable[[str], None] | None = None,
    ) -> None:
        self._persistence = persistence
        self._max_entries = max(1, int(max_entries))
        self._error_callback = error_callback
        self._records: list[SessionRecord] = []
        self._selected_id: str | None = None

    @property
    def records(self) -> tuple[SessionRecord, ...]:
        return tuple(self._records)

    @property
    def max_entries(self) -> int:
        return self._max_entries

    @property
    def selected_id(self) -> str | None:
        return self._selected_id

    @property
    def selected(self) -> SessionRecord | None:
        return self.get(self._selected_id) if self._selected_id is not None else None

    def __len__(self) -> int:
        return len(self._records)

    def get(self, record_id: str) -> SessionRecord | None:
        for record in self._records:
            if record.id == record_id:
                return record
        return None

    # -- persistence ----------------------------------------------------------

    def load(self) -> int:
        """Replace the in-memory history with the persisted one; returns its size."""
        self._selected_id = None
        try:
            raw = self._persistence.load()
        except Exception:
            LOGGER.warning("Could not load session history; starting empty", exc_info=True)
            self._records = []
            return 0
        if not isinstance(raw, list):
            LOGGER.warning("Stored session history is malformed; starting empty")
            self._records = []
            return 0
        records: list[SessionRecord] = []
        for item in raw:
            try:
                records.append(SessionRecord.from_dict(item))
            except ValueError as exc:
                LOGGER.warning("Skipping unreadable stored session: %s", exc)
        self._records = records[: self._max_entries]
        LOGGER.info("Loaded %d stored session(s)", len(self._records))
        return len(self._records)

    def save(self) -> bool:
        try:
            self._persistence.save([record.to_dict() for record in self._records])
        except Exception as exc:
            LOGGER.warning("Could not save session history", exc_info=True)
            if self._error_callback is not None:
                self._error_callback(f"History could not be saved: {exc}")
            return False
        return True

    # -- mutations ------------------------------------------------------------

    def append(self, record: SessionRecord) -> None:
        """Prepend *record*, dropping the oldest entries beyond the cap."""
        self._records.insert(0, record)
        evicted = self._records[self._max_entries :]
        del self._records[self._max_entries :]
        for old in evicted:
            LOGGER.info("History full; dropping oldest session %s", old.id)
            if old.id == self._selected_id:
                self._selected_id = None
        self.save()

    def attach_analysis(self, record_id: str, analysis: AnalysisResult | None) -> bool:
        for index, record in enumerate(self._records):
            if record.id == record_id:
                self._records[index] = record.with_analysis(analysis)
                self.save()
                return True
        LOGGER.info("Analysis for unknown session %s discarded", record_id)
        return False

    def remove(self, record_id: str) -> bool:
        before = len(self._records)
        self._records = [record for record in self._records if record.id != record_id]
        if len(self._records) == before:
            return False
        if self._selected_id == record_id:
            self._selected_id = None
        self.save()
        return True

    # -- selection ------------------------------------------------------------

    def select(self, record_id: str) -> SessionRecord | None:
        record = self.get(record_id)
        if record is not None:
            self._selected_id = record_id
        return record

    def clear_selection(self) -> None:
        self._selected_id = None
