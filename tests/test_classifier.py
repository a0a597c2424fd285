"""
tests/test_classifier.py

Unit tests for monitor/services/classifier.py.
Covers threshold boundaries, invalid input, and alert construction.
"""

import math

import pytest

from monitor.constants import MESSAGE_HIGH, MESSAGE_LOW, MESSAGE_NORMAL
from monitor.errors import InvalidReading
from monitor.schemas import AlertKind, GlucoseStatus, Severity, ThresholdConfig
from monitor.services.classifier import alert_for, classify
from tests.fixtures import BASE_TIME

DEFAULTS = ThresholdConfig()


@pytest.mark.parametrize("value", [0, 40, 69, 69.9])
def test_below_low_threshold_is_low(value: float) -> None:
    result = classify(value, DEFAULTS)
    assert result.status is GlucoseStatus.LOW
    assert result.message == MESSAGE_LOW


@pytest.mark.parametrize("value", [180.1, 181, 250, 600])
def test_above_high_threshold_is_high(value: float) -> None:
    result = classify(value, DEFAULTS)
    assert result.status is GlucoseStatus.HIGH
    assert result.message == MESSAGE_HIGH


@pytest.mark.parametrize("value", [70, 100, 126, 180])
def test_boundaries_and_range_are_normal(value: float) -> None:
    result = classify(value, DEFAULTS)
    assert result.status is GlucoseStatus.NORMAL
    assert result.message == MESSAGE_NORMAL


def test_custom_thresholds_are_respected() -> None:
    config = ThresholdConfig(low_threshold=80, high_threshold=140)
    assert classify(75, config).status is GlucoseStatus.LOW
    assert classify(80, config).status is GlucoseStatus.NORMAL
    assert classify(140, config).status is GlucoseStatus.NORMAL
    assert classify(141, config).status is GlucoseStatus.HIGH


@pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf, -1, 5000])
def test_invalid_values_raise(value: float) -> None:
    """NaN must not slip through comparisons and look normal."""
    with pytest.raises(InvalidReading):
        classify(value, DEFAULTS)


def test_threshold_config_rejects_inverted_bounds() -> None:
    with pytest.raises(ValueError):
        ThresholdConfig(low_threshold=180, high_threshold=70)
    with pytest.raises(ValueError):
        ThresholdConfig(low_threshold=100, high_threshold=100)


def test_low_reading_builds_hypo_alert() -> None:
    alert = alert_for(classify(65, DEFAULTS), 65, BASE_TIME, 900)
    assert alert is not None
    assert alert.kind is AlertKind.HYPO
    assert alert.severity is Severity.HIGH
    assert alert.window_seconds == 900
    assert "65" in alert.message


def test_high_reading_builds_hyper_alert() -> None:
    alert = alert_for(classify(190, DEFAULTS), 190, BASE_TIME, 900)
    assert alert is not None
    assert alert.kind is AlertKind.HYPER
    assert alert.severity is Severity.MEDIUM


def test_normal_reading_builds_no_alert() -> None:
    assert alert_for(classify(110, DEFAULTS), 110, BASE_TIME, 900) is None


def test_predicted_alert_message() -> None:
    alert = alert_for(classify(55, DEFAULTS), 55, BASE_TIME, 900, predicted=True)
    assert alert is not None
    assert alert.predicted is True
    assert alert.message == "Hypoglycemia predicted! Expected glucose: 55 mg/dL"
