"""
monitor/services/classifier.py

Threshold classification of glucose readings.
- classify: maps a reading to low / normal / high against a ThresholdConfig
- alert_for: turns a breach into an Alert, or None for a normal reading

Uses constants from monitor/constants.py; no magic numbers allowed.
"""

import math
from datetime import datetime
from typing import Optional

from monitor.constants import (
    GLUCOSE_PHYSIOLOGICAL_MAX,
    GLUCOSE_PHYSIOLOGICAL_MIN,
    MESSAGE_HIGH,
    MESSAGE_LOW,
    MESSAGE_NORMAL,
)
from monitor.errors import InvalidReading
from monitor.schemas import (
    Alert,
    AlertKind,
    Classification,
    GlucoseStatus,
    Severity,
    ThresholdConfig,
)


def validate_reading(value: float) -> float:
    """Reject non-finite or out-of-range values instead of misclassifying them."""
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidReading(value) from exc
    if not math.isfinite(number):
        raise InvalidReading(value)
    if not GLUCOSE_PHYSIOLOGICAL_MIN <= number <= GLUCOSE_PHYSIOLOGICAL_MAX:
        raise InvalidReading(value)
    return number


def classify(reading: float, config: ThresholdConfig) -> Classification:
    """
    Classify a reading against the configured thresholds.

    Both boundary values classify as normal.
    Raises InvalidReading for NaN, infinities, and out-of-range values.
    """
    value = validate_reading(reading)
    if value < config.low_threshold:
        return Classification(status=GlucoseStatus.LOW, message=MESSAGE_LOW)
    if value > config.high_threshold:
        return Classification(status=GlucoseStatus.HIGH, message=MESSAGE_HIGH)
    return Classification(status=GlucoseStatus.NORMAL, message=MESSAGE_NORMAL)


def alert_for(
    classification: Classification,
    value: float,
    created_at: datetime,
    window_seconds: int,
    predicted: bool = False,
) -> Optional[Alert]:
    """Build the alert for a classification; normal readings raise none."""
    if predicted:
        prefix, suffix = "predicted", f"Expected glucose: {value:g} mg/dL"
    else:
        prefix, suffix = "detected", f"Glucose: {value:g} mg/dL"

    if classification.status is GlucoseStatus.LOW:
        return Alert(
            kind=AlertKind.HYPO,
            message=f"Hypoglycemia {prefix}! {suffix}",
            severity=Severity.HIGH,
            created_at=created_at,
            window_seconds=window_seconds,
            predicted=predicted,
        )
    if classification.status is GlucoseStatus.HIGH:
        return Alert(
            kind=AlertKind.HYPER,
            message=f"Hyperglycemia {prefix}! {suffix}",
            severity=Severity.MEDIUM,
            created_at=created_at,
            window_seconds=window_seconds,
            predicted=predicted,
        )
    return None
