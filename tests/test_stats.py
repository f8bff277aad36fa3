from __future__ import annotations

import pytest

from pkmonitor.domain_models import Sample, SessionStats
from pkmonitor.stats import StatsAggregator, update
from pkmonitor.thresholds import Band

from conftest import make_config


def _feed(aggregator: StatsAggregator, ys: list[float], *, step_ms: float = 100.0) -> list[Band]:
    return [
        aggregator.update(Sample.from_axes(i * step_ms, 0.0, y, 0.0))
        for i, y in enumerate(ys)
    ]


def test_scenario_counts_exceedances_per_band() -> None:
    aggregator = StatsAggregator(make_config())
    bands = _feed(aggregator, [0.5, -1.5, 2.3, -3.0, 2.8])
    assert bands == [Band.NONE, Band.ALERT, Band.INTERVENTION, Band.IMMEDIATE, Band.IMMEDIATE]
    stats = aggregator.stats
    assert (stats.count_alert, stats.count_intervention, stats.count_immediate) == (1, 1, 2)
    assert stats.exceedance_total == 4
    assert stats.max_transversal == pytest.approx(3.0)


def test_maxima_and_counters_never_decrease() -> None:
    aggregator = StatsAggregator(make_config())
    previous = aggregator.stats
    for i, (x, y, z) in enumerate([(0.1, 2.5, 9.8), (3.3, 0.0, 1.0), (0.0, 0.1, -12.0), (0, 0, 0)]):
        aggregator.update(Sample.from_axes(i * 50.0, x, y, z))
        current = aggregator.stats
        assert current.max_vertical >= previous.max_vertical
        assert current.max_transversal >= previous.max_transversal
        assert current.count_alert >= previous.count_alert
        assert current.count_intervention >= previous.count_intervention
        assert current.count_immediate >= previous.count_immediate
        previous = current
    assert previous.max_vertical == pytest.approx(12.0)
    assert previous.max_transversal == pytest.approx(3.3)


def test_average_magnitude_is_order_independent() -> None:
    axes = [(3.0, 4.0, 0.0), (0.0, 0.0, 1.0), (1.0, 2.0, 2.0), (6.0, 0.0, 8.0)]
    forward = StatsAggregator(make_config())
    backward = StatsAggregator(make_config())
    for i, (x, y, z) in enumerate(axes):
        forward.update(Sample.from_axes(float(i), x, y, z))
    for i, (x, y, z) in enumerate(reversed(axes)):
        backward.update(Sample.from_axes(float(i), x, y, z))
    expected = (5.0 + 1.0 + 3.0 + 10.0) / 4
    assert forward.stats.avg_magnitude == pytest.approx(expected)
    assert backward.stats.avg_magnitude == pytest.approx(expected)


def test_duration_is_measured_from_first_sample() -> None:
    aggregator = StatsAggregator(make_config())
    for ts in (5_000.0, 5_500.0, 7_250.0):
        aggregator.update(Sample.from_axes(ts, 0.0, 0.0, 0.0))
    assert aggregator.stats.duration_s == pytest.approx(2.25)
    assert aggregator.sample_count == 3


def test_reset_starts_from_initial_stats() -> None:
    aggregator = StatsAggregator(make_config())
    _feed(aggregator, [3.0, 3.0])
    new_config = make_config(track="V2")
    aggregator.reset(new_config)
    assert aggregator.stats == SessionStats.initial(new_config)
    assert aggregator.sample_count == 0


def test_update_rejects_non_positive_sample_count() -> None:
    with pytest.raises(ValueError):
        update(
            SessionStats.initial(make_config()),
            Sample.from_axes(0.0, 0.0, 0.0, 0.0),
            sample_count=0,
            first_timestamp_ms=0.0,
        )


def test_update_derives_band_when_not_given() -> None:
    stats = update(
        SessionStats.initial(make_config()),
        Sample.from_axes(0.0, 0.0, 2.9, 0.0),
        sample_count=1,
        first_timestamp_ms=0.0,
    )
    assert stats.count_immediate == 1
    assert stats.avg_magnitude == pytest.approx(2.9)


def test_duration_never_goes_negative() -> None:
    aggregator = StatsAggregator(make_config())
    aggregator.update(Sample.from_axes(5_000.0, 0.0, 0.1, 0.0))
    aggregator.update(Sample.from_axes(1_000.0, 0.0, 0.1, 0.0))
    assert aggregator.stats.duration_s == 0.0
