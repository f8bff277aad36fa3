"""Severity classification of lateral acceleration."""

from __future__ import annotations

import enum
import logging

from .domain_models import Sample, Thresholds

LOGGER = logging.getLogger(__name__)


class Band(str, enum.Enum):
    NONE = "none"
    ALERT = "alert"
    INTERVENTION = "intervention"
    IMMEDIATE = "immediate"


def classify(value: float, thresholds: Thresholds) -> Band:
    """Return the single band of ``|value|``; the most severe band wins at equality."""
    magnitude = abs(value)
    if magnitude >= thresholds.immediate:
        return Band.IMMEDIATE
    if magnitude >= thresholds.intervention:
        return Band.INTERVENTION
    if magnitude >= thresholds.alert:
        return Band.ALERT
    return Band.NONE


def classify_sample(sample: Sample, thresholds: Thresholds) -> Band:
    return classify(sample.lateral, thresholds)


def warn_if_unordered(thresholds: Thresholds) -> bool:
    """Log a warning when thresholds are not ascending; return whether they are."""
    if thresholds.is_ordered():
        return True
    LOGGER.warning(
        "Thresholds are not ascending (alert=%.3f intervention=%.3f immediate=%.3f); "
        "the most severe matching band still wins",
        thresholds.alert,
        thresholds.intervention,
        thresholds.immediate,
    )
    return False
