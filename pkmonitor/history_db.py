"""SQLite persistence for the session history.

The history is small (a handful of sessions) and always written as a whole:
``save`` replaces every stored session inside one transaction so a crash
mid-write leaves the previous history intact.  Samples are stored as typed
columns rather than a JSON blob; a session of a few thousand samples loads
in milliseconds on a phone-class device.
"""

from __future__ import annotations

import logging
import math
import sqlite3
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from threading import RLock
from typing import Any

from .json_utils import dumps_json, loads_json

LOGGER = logging.getLogger(__name__)

_SCHEMA_VERSION = 1

_SAMPLE_COLS: tuple[str, ...] = ("timestamp_ms", "x", "y", "z", "magnitude", "position")

_SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS schema_meta (
    key   TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS sessions (
    session_id     TEXT PRIMARY KEY,
    position       INTEGER NOT NULL,
    date           TEXT NOT NULL,
    stats_json     TEXT NOT NULL,
    analysis_json  TEXT,
    sample_count   INTEGER NOT NULL DEFAULT 0,
    saved_at       TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS samples (
    session_id    TEXT NOT NULL REFERENCES sessions(session_id) ON DELETE CASCADE,
    seq           INTEGER NOT NULL,
    timestamp_ms  REAL NOT NULL,
    x             REAL NOT NULL,
    y             REAL NOT NULL,
    z             REAL NOT NULL,
    magnitude     REAL NOT NULL,
    position      REAL,
    PRIMARY KEY (session_id, seq)
);
"""

_INSERT_SAMPLE_SQL = (
    f"INSERT INTO samples (session_id, seq, {', '.join(_SAMPLE_COLS)}) "
    f"VALUES ({', '.join('?' * (len(_SAMPLE_COLS) + 2))})"
)


def _finite_or_none(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value) if math.isfinite(value) else None


class HistoryDB:
    """Session history in a single SQLite file.

    Implements the history persistence port: ``load() -> list[dict]`` and
    ``save(list[dict])`` with records in most-recent-first order.
    """

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        self._lock = RLock()
        self.schema_version = _SCHEMA_VERSION
        db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(db_path), check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA foreign_keys=ON")
        self._ensure_schema()

    @classmethod
    def open_or_recreate(cls, db_path: Path) -> HistoryDB:
        """Open *db_path*; an unreadable file is moved aside and a fresh DB created."""
        try:
            return cls(db_path)
        except sqlite3.DatabaseError:
            stamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%S")
            aside = db_path.with_name(f"{db_path.name}.corrupt-{stamp}")
            LOGGER.warning(
                "History DB %s is unreadable; moving it to %s", db_path, aside, exc_info=True
            )
            db_path.replace(aside)
            return cls(db_path)

    # -- lifecycle ------------------------------------------------------------

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    @contextmanager
    def _cursor(self, *, commit: bool = True) -> Iterator[sqlite3.Cursor]:
        with self._lock:
            cur = self._conn.cursor()
            try:
                yield cur
                if commit:
                    self._conn.commit()
            except Exception:
                self._conn.rollback()
                raise
            finally:
                cur.close()

    def _ensure_schema(self) -> None:
        with self._cursor() as cur:
            cur.executescript(_SCHEMA_SQL)
        with self._cursor() as cur:
            cur.execute("SELECT value FROM schema_meta WHERE key = ?", ("version",))
            row = cur.fetchone()
            if row is None:
                cur.execute(
                    "INSERT INTO schema_meta (key, value) VALUES (?, ?)",
                    ("version", str(_SCHEMA_VERSION)),
                )
                self.schema_version = _SCHEMA_VERSION
                return
            self.schema_version = int(str(row[0]))
        if self.schema_version != _SCHEMA_VERSION:
            LOGGER.warning(
                "History DB %s has schema version %d; this build reads version %d",
                self.db_path,
                self.schema_version,
                _SCHEMA_VERSION,
            )

    def _require_supported_schema(self) -> None:
        # A file written by another schema version is neither read nor overwritten.
        if self.schema_version != _SCHEMA_VERSION:
            raise RuntimeError(
                f"Unsupported history DB schema version {self.schema_version}; "
                f"expected {_SCHEMA_VERSION}. Delete the database file to recreate."
            )

    # -- persistence port -----------------------------------------------------

    def save(self, records: Sequence[Mapping[str, Any]]) -> None:
        """Replace the stored history with *records* (most recent first)."""
        self._require_supported_schema()
        saved_at = datetime.now(UTC).isoformat()
        with self._cursor() as cur:
            cur.execute("DELETE FROM samples")
            cur.execute("DELETE FROM sessions")
            for position, record in enumerate(records):
                session_id = str(record["id"])
                samples = record.get("samples") or []
                analysis = record.get("analysis")
                cur.execute(
                    "INSERT INTO sessions (session_id, position, date, stats_json, "
                    "analysis_json, sample_count, saved_at) VALUES (?, ?, ?, ?, ?, ?, ?)",
                    (
                        session_id,
                        position,
                        str(record.get("date") or ""),
                        dumps_json(record.get("stats") or {}),
                        dumps_json(analysis) if analysis is not None else None,
                        len(samples),
                        saved_at,
                    ),
                )
                cur.executemany(
                    _INSERT_SAMPLE_SQL,
                    (self._sample_row(session_id, seq, s) for seq, s in enumerate(samples)),
                )
        LOGGER.debug("Saved %d session(s) to %s", len(records), self.db_path)

    def load(self) -> list[dict[str, Any]]:
        self._require_supported_schema()
        with self._cursor(commit=False) as cur:
            cur.execute(
                "SELECT session_id, date, stats_json, analysis_json "
                "FROM sessions ORDER BY position ASC"
            )
            rows = cur.fetchall()
        records: list[dict[str, Any]] = []
        for session_id, date, stats_json, analysis_json in rows:
            stats = loads_json(stats_json, context=f"session {session_id} stats")
            records.append(
                {
                    "id": session_id,
                    "date": date,
                    "stats": stats if isinstance(stats, dict) else {},
                    "samples": self.load_samples(session_id),
                    "analysis": loads_json(analysis_json, context=f"session {session_id} analysis"),
                }
            )
        return records

    # -- queries --------------------------------------------------------------

    def load_samples(self, session_id: str) -> list[dict[str, Any]]:
        with self._cursor(commit=False) as cur:
            cur.execute(
                f"SELECT {', '.join(_SAMPLE_COLS)} FROM samples "
                "WHERE session_id = ? ORDER BY seq ASC",
                (session_id,),
            )
            rows = cur.fetchall()
        return [dict(zip(_SAMPLE_COLS, row, strict=True)) for row in rows]

    def list_sessions(self) -> list[dict[str, Any]]:
        """Listing without samples, most recent first."""
        self._require_supported_schema()
        with self._cursor(commit=False) as cur:
            cur.execute(
                "SELECT session_id, date, sample_count, analysis_json IS NOT NULL "
                "FROM sessions ORDER BY position ASC"
            )
            rows = cur.fetchall()
        return [
            {
                "id": session_id,
                "date": date,
                "sample_count": int(sample_count),
                "has_analysis": bool(has_analysis),
            }
            for session_id, date, sample_count, has_analysis in rows
        ]

    @staticmethod
    def _sample_row(session_id: str, seq: int, sample: Mapping[str, Any]) -> tuple[Any, ...]:
        values: list[Any] = [session_id, seq]
        for col in _SAMPLE_COLS:
            val = _finite_or_none(sample.get(col))
            if val is None and col != "position":
                val = 0.0
            values.append(val)
        return tuple(values)
