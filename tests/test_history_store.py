from __future__ import annotations

import json
import logging
from typing import Any

import pytest

from pkmonitor.history_store import HistoryStore, MemoryHistoryPersistence

from conftest import make_analysis, make_record


class _FailingPersistence:
    def __init__(self) -> None:
        self.load_calls = 0

    def load(self) -> list[dict[str, Any]]:
        self.load_calls += 1
        raise RuntimeError("disk unreadable")

    def save(self, records: list[dict[str, Any]]) -> None:
        raise OSError("disk full")


def test_append_keeps_ten_most_recent_first() -> None:
    persistence = MemoryHistoryPersistence()
    store = HistoryStore(persistence)
    for i in range(1, 12):
        store.append(make_record(f"S{i}"))
    assert [r.id for r in store.records] == [f"S{i}" for i in range(11, 1, -1)]
    assert len(store) == 10
    assert persistence.save_count == 11


def test_appended_history_survives_reload() -> None:
    persistence = MemoryHistoryPersistence()
    store = HistoryStore(persistence)
    store.append(make_record("S1"))
    store.append(make_record("S2", analysis=make_analysis()))

    reloaded = HistoryStore(persistence)
    assert reloaded.load() == 2
    assert [r.id for r in reloaded.records] == ["S2", "S1"]
    assert reloaded.get("S2").analysis == make_analysis()
    assert reloaded.get("S1").samples == make_record("S1").samples


def test_corrupt_payload_loads_as_empty(caplog: pytest.LogCaptureFixture) -> None:
    store = HistoryStore(MemoryHistoryPersistence("{not json"))
    with caplog.at_level(logging.WARNING, logger="pkmonitor.history_store"):
        assert store.load() == 0
    assert store.records == ()
    assert "starting empty" in caplog.text


def test_non_list_payload_loads_as_empty() -> None:
    store = HistoryStore(MemoryHistoryPersistence(json.dumps({"id": "S1"})))
    assert store.load() == 0


def test_unreadable_entries_are_skipped() -> None:
    payload = json.dumps([make_record("S1").to_dict(), {"date": "no id"}, "garbage"])
    store = HistoryStore(MemoryHistoryPersistence(payload))
    assert store.load() == 1
    assert store.records[0].id == "S1"


def test_load_failure_from_persistence_is_soft() -> None:
    persistence = _FailingPersistence()
    store = HistoryStore(persistence)
    assert store.load() == 0
    assert persistence.load_calls == 1


def test_save_failure_keeps_memory_and_reports() -> None:
    notices: list[str] = []
    store = HistoryStore(_FailingPersistence(), error_callback=notices.append)
    store.append(make_record("S1"))
    assert [r.id for r in store.records] == ["S1"]
    assert len(notices) == 1
    assert "disk full" in notices[0]


def test_attach_analysis_replaces_only_that_record() -> None:
    store = HistoryStore(MemoryHistoryPersistence())
    store.append(make_record("S1"))
    store.append(make_record("S2"))
    analysis = make_analysis()
    assert store.attach_analysis("S1", analysis) is True
    assert store.get("S1").analysis == analysis
    assert store.get("S2").analysis is None
    assert store.attach_analysis("missing", analysis) is False


def test_attach_analysis_none_clears_it() -> None:
    store = HistoryStore(MemoryHistoryPersistence())
    store.append(make_record("S1", analysis=make_analysis()))
    assert store.attach_analysis("S1", None) is True
    assert store.get("S1").analysis is None


def test_remove_and_selection() -> None:
    store = HistoryStore(MemoryHistoryPersistence())
    store.append(make_record("S1"))
    store.append(make_record("S2"))
    assert store.select("S1").id == "S1"
    assert store.selected_id == "S1"
    assert store.select("unknown") is None
    assert store.selected_id == "S1"
    assert store.remove("S1") is True
    assert store.selected_id is None
    assert store.selected is None
    assert store.remove("S1") is False
    assert [r.id for r in store.records] == ["S2"]


def test_eviction_clears_selection_of_evicted_record() -> None:
    store = HistoryStore(MemoryHistoryPersistence(), max_entries=2)
    store.append(make_record("S1"))
    store.select("S1")
    store.append(make_record("S2"))
    store.append(make_record("S3"))
    assert [r.id for r in store.records] == ["S3", "S2"]
    assert store.selected_id is None


def test_load_truncates_to_capacity() -> None:
    payload = json.dumps([make_record(f"S{i}").to_dict() for i in range(5)])
    store = HistoryStore(MemoryHistoryPersistence(payload), max_entries=3)
    assert store.load() == 3
    assert [r.id for r in store.records] == ["S0", "S1", "S2"]
