from __future__ import annotations

import math
from datetime import datetime

import pytest

from pkmonitor.domain_models import (
    AnalysisResult,
    ComplianceLevel,
    Direction,
    Sample,
    SessionConfig,
    SessionConfigError,
    SessionRecord,
    SessionStats,
    format_session_date,
    new_session_id,
    parse_start_position,
)

from conftest import make_config


def test_sample_magnitude_is_euclidean_norm() -> None:
    sample = Sample.from_axes(0.0, 3.0, 4.0, 12.0)
    assert sample.magnitude == pytest.approx(13.0)
    assert sample.lateral == 4.0


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("175.100", 175.1), ("175,100", 175.1), (" 12 ", 12.0), (3, 3.0), (-0.5, -0.5)],
)
def test_parse_start_position(raw: object, expected: float) -> None:
    assert parse_start_position(raw) == pytest.approx(expected)


@pytest.mark.parametrize("raw", ["", "abc", None, math.nan, True])
def test_parse_start_position_rejects_non_numbers(raw: object) -> None:
    with pytest.raises(SessionConfigError):
        parse_start_position(raw)


def test_direction_parse_accepts_french_labels() -> None:
    assert Direction.parse("décroissant") is Direction.DECREASING
    assert Direction.parse("croissant") is Direction.INCREASING
    assert Direction.parse(None) is Direction.INCREASING
    assert Direction.DECREASING.sign == -1.0


def test_session_config_validate_requires_track() -> None:
    with pytest.raises(SessionConfigError, match="track"):
        make_config(track="").validate()
    make_config().validate()


def test_with_metadata_applies_known_fields_only() -> None:
    config = make_config().with_metadata(
        {"operator": " Jo ", "unknown": "x", "note": None, "start_position": "101,5"}
    )
    assert config.operator == "Jo"
    assert config.note == ""
    assert config.start_position == 101.5
    assert not hasattr(config, "unknown")


def test_stats_from_dict_reads_legacy_keys() -> None:
    stats = SessionStats.from_dict(
        {
            "startPK": 175.1,
            "direction": "decroissant",
            "track": "V2",
            "thresholdLA": 1.0,
            "thresholdLI": 2.0,
            "thresholdLAI": 3.0,
            "maxVertical": 4.5,
            "maxTransversal": 2.5,
            "avgMagnitude": 9.9,
            "duration": 12.0,
            "countLA": 3,
            "countLI": 2,
            "countLAI": 1,
            "engineNumber": "BB 7200",
            "position": "head",
        }
    )
    assert stats.config.start_position == 175.1
    assert stats.config.direction is Direction.DECREASING
    assert stats.config.thresholds.immediate == 3.0
    assert stats.config.engine_number == "BB 7200"
    assert stats.config.train_position == "head"
    assert (stats.count_alert, stats.count_intervention, stats.count_immediate) == (3, 2, 1)
    assert stats.duration_s == 12.0


def test_stats_from_dict_defaults_missing_fields() -> None:
    stats = SessionStats.from_dict({"count_alert": -4, "max_vertical": "oops"})
    assert stats.count_alert == 0
    assert stats.max_vertical == 0.0
    assert stats.config.thresholds.alert == 1.2


def test_analysis_from_camel_case_payload() -> None:
    result = AnalysisResult.from_dict(
        {
            "activityType": "Inspection",
            "intensityScore": 140,
            "observations": ["a", "", "b"],
            "recommendations": "none",
            "complianceLevel": "Conforme",
        }
    )
    assert result.intensity_score == 100.0
    assert result.observations == ("a", "b")
    assert result.compliance_level is ComplianceLevel.COMPLIANT


@pytest.mark.parametrize(
    "payload",
    [
        {"intensity_score": 10, "compliance_level": "unknown"},
        {"compliance_level": "Critical"},
        ["not", "a", "mapping"],
    ],
)
def test_analysis_from_dict_rejects_unusable_payloads(payload: object) -> None:
    with pytest.raises(ValueError):
        AnalysisResult.from_dict(payload)  # type: ignore[arg-type]


def test_record_from_dict_drops_unreadable_analysis() -> None:
    record = SessionRecord.from_dict(
        {"id": "S1", "date": "d", "stats": {}, "samples": [{"x": 3, "y": 4}], "analysis": {}}
    )
    assert record.analysis is None
    assert record.samples[0].magnitude == pytest.approx(5.0)
    assert record.samples[0].position is None


def test_record_from_dict_requires_id() -> None:
    with pytest.raises(ValueError):
        SessionRecord.from_dict({"date": "d"})


def test_record_summary() -> None:
    config = SessionConfig(start_position=3.0, track="V1")
    record = SessionRecord(
        id="S1",
        date="18/10/2026 14:05:09",
        stats=SessionStats(config=config, count_alert=2, count_immediate=1, duration_s=4.0),
        samples=(Sample.from_axes(0.0, 0.0, 0.0, 0.0, position=3.0),),
    )
    assert record.summary() == {
        "id": "S1",
        "date": "18/10/2026 14:05:09",
        "track": "V1",
        "start_position": 3.0,
        "direction": "increasing",
        "sample_count": 1,
        "duration_s": 4.0,
        "exceedances": 3,
        "has_analysis": False,
    }


def test_session_id_and_date_format() -> None:
    moment = datetime(2026, 1, 2, 3, 4, 5)
    assert new_session_id(moment) == f"sess_{int(moment.timestamp() * 1000)}"
    assert format_session_date(moment) == "02/01/2026 03:04:05"


def test_session_id_avoids_taken_ids() -> None:
    moment = datetime(2026, 1, 2, 3, 4, 5)
    base = new_session_id(moment)
    assert new_session_id(moment, {base}) == f"{base}_2"
    assert new_session_id(moment, [base, f"{base}_2"]) == f"{base}_3"
    assert new_session_id(moment, {"sess_other"}) == base
