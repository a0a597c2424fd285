"""
insights/predictor.py

Local what-if projection of glucose from insulin, carbs and activity.
Deterministic; the remote predictive service remains the source of risk alerts.
"""

from monitor.constants import (
    PROJECTION_ACTIVITY_FACTOR,
    PROJECTION_CARB_FACTOR,
    PROJECTION_CARB_TRIGGER_G,
    PROJECTION_INSULIN_FACTOR,
    PROJECTION_MAX,
    PROJECTION_MIN,
)


def project_glucose(
    glucose: float,
    insulin_units: float = 0.0,
    carbs: float = 0.0,
    activity_minutes: float = 0.0,
) -> int:
    """Projected glucose (mg/dL), rounded and clamped to the display range."""
    projected = glucose
    if carbs > PROJECTION_CARB_TRIGGER_G:
        projected += carbs * PROJECTION_CARB_FACTOR
    if insulin_units > 0:
        projected -= insulin_units * PROJECTION_INSULIN_FACTOR
    if activity_minutes > 0:
        projected -= activity_minutes * PROJECTION_ACTIVITY_FACTOR
    return max(PROJECTION_MIN, min(PROJECTION_MAX, round(projected)))
