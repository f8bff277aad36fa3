from __future__ import annotations

from pathlib import Path

import pytest

from pkmonitor.history_db import HistoryDB
from pkmonitor.history_store import HistoryStore
from pkmonitor.report_cli import main

from conftest import extract_pdf_text, make_analysis, make_record


def _seed_db(path: Path) -> None:
    db = HistoryDB(path)
    store = HistoryStore(db)
    store.append(make_record("S1"))
    store.append(make_record("S2", analysis=make_analysis()))
    db.close()


def test_list_sessions(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    db_path = tmp_path / "history.db"
    _seed_db(db_path)
    assert main(["--config", str(tmp_path / "none.yaml"), "--db", str(db_path), "--list"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert [line.split("\t")[0] for line in lines] == ["S2", "S1"]


def test_writes_pdf_and_csv_for_range(tmp_path: Path) -> None:
    db_path = tmp_path / "history.db"
    _seed_db(db_path)
    out_pdf = tmp_path / "out" / "report.pdf"
    out_csv = tmp_path / "out" / "samples.csv"
    rc = main(
        [
            "S2",
            "--config", str(tmp_path / "none.yaml"),
            "--db", str(db_path),
            "--output", str(out_pdf),
            "--csv", str(out_csv),
            "--low", "100.003",
            "--high", "100.001",
        ]
    )  # fmt: skip
    assert rc == 0
    text = extract_pdf_text(out_pdf.read_bytes())
    assert "100.00100 to 100.00300" in text
    assert "Automated analysis" in text
    assert len(out_csv.read_text(encoding="utf-8").splitlines()) == 4


def test_unknown_session_fails(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    db_path = tmp_path / "history.db"
    _seed_db(db_path)
    assert main(["nope", "--config", str(tmp_path / "none.yaml"), "--db", str(db_path)]) == 1
    assert "session not found" in capsys.readouterr().err


def test_missing_database_fails(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    rc = main(["S1", "--config", str(tmp_path / "none.yaml"), "--db", str(tmp_path / "x.db")])
    assert rc == 1
    assert "not found" in capsys.readouterr().err
