from __future__ import annotations

import csv
import io

from pkmonitor.domain_models import Sample
from pkmonitor.export import EXPORT_CSV_COLUMNS, safe_filename, samples_to_csv

from conftest import make_samples


def test_csv_has_header_and_formatted_rows() -> None:
    text = samples_to_csv(make_samples([100.0, 100.0015], y=[1.5, -2.25], start_ms=1000.0))
    rows = list(csv.DictReader(io.StringIO(text)))
    assert tuple(rows[0].keys()) == EXPORT_CSV_COLUMNS
    assert rows[0]["timestamp"] == "1000"
    assert rows[0]["position"] == "100.00000"
    assert rows[1]["position"] == "100.00150"
    assert rows[1]["y"] == "-2.2500"
    assert rows[1]["z"] == "9.8100"


def test_empty_csv_is_header_only() -> None:
    assert samples_to_csv([]) == ",".join(EXPORT_CSV_COLUMNS) + "\n"


def test_missing_position_exports_as_zero() -> None:
    text = samples_to_csv([Sample.from_axes(5.0, 0.0, 0.0, 0.0)])
    assert text.splitlines()[1].startswith("5,0.00000,")


def test_safe_filename() -> None:
    assert safe_filename("sess 1/../x") == "sess_1_.._x"
    assert safe_filename("") == "download"
