from __future__ import annotations

import pytest

from pkmonitor.domain_models import Direction, SessionStats
from pkmonitor.report import build_report_data, build_report_pdf
from pkmonitor.report.i18n import normalize_lang, tr
from pkmonitor.report.pdf_charts import downsample
from pkmonitor.report.report_data import report_id_for, split_date, summarize_axis
from pkmonitor.thresholds import Band

from conftest import extract_pdf_text, make_analysis, make_config, make_record, make_samples


def _record(**kwargs):
    samples = make_samples(
        [100.000, 100.001, 100.002, 100.003, 100.004],
        y=[0.5, -1.5, 2.3, -3.0, 2.8],
    )
    return make_record(samples=samples, **kwargs)


def test_report_data_defaults_to_full_position_span() -> None:
    data = build_report_data(_record())
    assert (data.low, data.high) == (100.000, 100.004)
    assert data.sample_count == data.total_samples == 5
    assert data.report_id == "18102026_140509_V1"
    assert data.date_text == "18/10/2026"
    assert data.time_text == "14:05:09"
    assert data.range_counts == {Band.ALERT: 1, Band.INTERVENTION: 1, Band.IMMEDIATE: 2}


def test_report_data_selects_range_in_either_order() -> None:
    forward = build_report_data(_record(), 100.001, 100.003)
    backward = build_report_data(_record(), 100.003, 100.001)
    assert forward.lateral_points == backward.lateral_points
    assert [y for _, y in forward.lateral_points] == [-1.5, 2.3, -3.0]
    assert (backward.low, backward.high) == (100.001, 100.003)
    assert forward.sample_count == 3


def test_report_data_without_samples_uses_start_position() -> None:
    record = make_record(samples=(), config=make_config(start_position=42.0))
    data = build_report_data(record)
    assert (data.low, data.high) == (42.0, 42.0)
    assert data.axis_summaries[0].peak == 0.0
    assert data.range_counts == {Band.ALERT: 0, Band.INTERVENTION: 0, Band.IMMEDIATE: 0}


def test_summarize_axis() -> None:
    summary = summarize_axis("lateral", [3.0, -4.0])
    assert summary.peak == 4.0
    assert summary.rms == pytest.approx((12.5) ** 0.5)
    assert 3.0 <= summary.p95 <= 4.0


def test_date_helpers() -> None:
    assert split_date("01/02/2026 03:04:05") == ("01/02/2026", "03:04:05")
    assert report_id_for("01/02/2026", "03:04:05", "V2") == "01022026_030405_V2"


def test_i18n_lookup() -> None:
    assert normalize_lang("fr-FR") == "fr"
    assert normalize_lang(None) == "en"
    assert tr("fr", "NOTE_EMPTY") == "RAS"
    assert tr("en", "PAGE_LABEL", page=1, total=2) == "Page 1 / 2"
    assert tr("en", "NOT_A_KEY") == "NOT_A_KEY"


def test_downsample_keeps_endpoints() -> None:
    points = [(float(i), float(i)) for i in range(1000)]
    reduced = downsample(points, max_points=100)
    assert len(reduced) <= 101
    assert reduced[0] == points[0]
    assert reduced[-1] == points[-1]


def test_pdf_single_page_without_analysis() -> None:
    pdf = build_report_pdf(build_report_data(_record()))
    assert pdf.startswith(b"%PDF")
    text = extract_pdf_text(pdf)
    assert "REPORT 18102026_140509_V1" in text
    assert "100.00000 to 100.00400" in text
    assert "n/a" in text
    assert "Page 1 / 1" in text
    assert "Automated analysis" not in text


def test_pdf_second_page_with_analysis() -> None:
    pdf = build_report_pdf(build_report_data(_record(analysis=make_analysis())))
    text = extract_pdf_text(pdf)
    assert "Automated analysis" in text
    assert "Re-check the alignment" in text
    assert "Page 2 / 2" in text


def test_pdf_in_french_with_metadata() -> None:
    config = make_config(
        direction=Direction.DECREASING, operator="Dupont", note="Voie mouillée"
    )
    record = make_record(
        samples=make_samples([5.2, 5.1, 5.0]),
        config=config,
    )
    text = extract_pdf_text(build_report_pdf(build_report_data(record, lang="fr")))
    assert "RAPPORT" in text
    assert "Dupont" in text
    assert "5.00000" in text


def test_pdf_with_empty_selection_still_renders() -> None:
    data = build_report_data(_record(), 200.0, 201.0)
    assert data.sample_count == 0
    text = extract_pdf_text(build_report_pdf(data))
    assert "0 of 5" in text


def test_pdf_reports_whole_session_counts_from_stats() -> None:
    data = build_report_data(_record(), 100.000, 100.000)
    data.stats = SessionStats(config=data.config, count_alert=17, count_immediate=23)
    text = extract_pdf_text(build_report_pdf(data))
    assert "Whole session" in text
    assert "17" in text
    assert "23" in text
