from __future__ import annotations

import math

import pytest

from pkmonitor.gps_speed import GPSSpeedSource


class _Clock:
    def __init__(self) -> None:
        self.t = 100.0

    def __call__(self) -> float:
        return self.t


def test_fixes_are_ignored_until_subscribed() -> None:
    source = GPSSpeedSource()
    assert source.on_fix(12.0) is False
    assert source.speed_mps == 0.0


def test_fix_updates_speed_and_status() -> None:
    clock = _Clock()
    source = GPSSpeedSource(clock=clock)
    source.subscribe()
    assert source.on_fix(25.0, 4.5) is True
    clock.t += 1.5
    status = source.status()
    assert status["speed_mps"] == 25.0
    assert status["speed_kmh"] == pytest.approx(90.0)
    assert status["accuracy_m"] == 4.5
    assert status["fix_count"] == 1
    assert status["last_update_age_s"] == pytest.approx(1.5)


@pytest.mark.parametrize("speed", [None, -1.0, math.nan, math.inf])
def test_invalid_speed_counts_as_standstill(speed: float | None) -> None:
    source = GPSSpeedSource()
    source.subscribe()
    source.on_fix(10.0)
    source.on_fix(speed)
    assert source.speed_mps == 0.0


def test_release_resets_readings() -> None:
    source = GPSSpeedSource()
    source.subscribe()
    source.on_fix(10.0, 3.0)
    source.release()
    assert source.subscribed is False
    assert source.speed_mps == 0.0
    assert source.fix_count == 0
    assert source.last_update_age_s() is None


def test_subscribe_twice_keeps_readings() -> None:
    source = GPSSpeedSource()
    source.subscribe()
    source.on_fix(8.0)
    source.subscribe()
    assert source.speed_mps == 8.0
