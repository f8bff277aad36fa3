from __future__ import annotations

import logging

import pytest

from pkmonitor.domain_models import Sample, Thresholds
from pkmonitor.thresholds import Band, classify, classify_sample, warn_if_unordered

_DEFAULT = Thresholds(alert=1.2, intervention=2.2, immediate=2.8)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (0.0, Band.NONE),
        (1.19, Band.NONE),
        (1.2, Band.ALERT),
        (2.19, Band.ALERT),
        (2.2, Band.INTERVENTION),
        (2.8, Band.IMMEDIATE),
        (10.0, Band.IMMEDIATE),
    ],
)
def test_classify_boundaries_are_inclusive(value: float, expected: Band) -> None:
    assert classify(value, _DEFAULT) is expected


@pytest.mark.parametrize("value", [0.5, 1.5, 2.5, 3.0])
def test_classification_is_symmetric(value: float) -> None:
    assert classify(value, _DEFAULT) is classify(-value, _DEFAULT)


def test_scenario_sequence_maps_to_expected_bands() -> None:
    bands = [classify(v, _DEFAULT) for v in (0.5, -1.5, 2.3, -3.0, 2.8)]
    assert bands == [Band.NONE, Band.ALERT, Band.INTERVENTION, Band.IMMEDIATE, Band.IMMEDIATE]


def test_classify_sample_uses_lateral_axis_only() -> None:
    sample = Sample.from_axes(0.0, 5.0, 0.3, 12.0)
    assert classify_sample(sample, _DEFAULT) is Band.NONE
    sample = Sample.from_axes(0.0, 0.0, -2.5, 0.0)
    assert classify_sample(sample, _DEFAULT) is Band.INTERVENTION


def test_unordered_thresholds_pick_most_severe_match(caplog: pytest.LogCaptureFixture) -> None:
    swapped = Thresholds(alert=2.0, intervention=1.0, immediate=3.0)
    with caplog.at_level(logging.WARNING, logger="pkmonitor.thresholds"):
        assert warn_if_unordered(swapped) is False
    assert "not ascending" in caplog.text
    assert classify(1.5, swapped) is Band.INTERVENTION
    assert classify(2.5, swapped) is Band.INTERVENTION


def test_ordered_thresholds_do_not_warn(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="pkmonitor.thresholds"):
        assert warn_if_unordered(_DEFAULT) is True
    assert caplog.text == ""
