"""
monitor/constants.py

Clinical and presentation constants used by the alert engine.
All clinical numeric values must be referenced from this module.
Magic numbers in business logic are prohibited.
"""

# ── Glucose thresholds (mg/dL) ───────────────────────────────
DEFAULT_LOW_THRESHOLD: float = 70.0
DEFAULT_HIGH_THRESHOLD: float = 180.0
GLUCOSE_PHYSIOLOGICAL_MIN: float = 0.0
GLUCOSE_PHYSIOLOGICAL_MAX: float = 1000.0
READING_CONTEXT_MAX_LEN: int = 50  # glucose_readings.context column width

# ── Trend ────────────────────────────────────────────────────
DEFAULT_TREND_MARGIN: float = 10.0  # hysteresis band, mg/dL

# ── Alert queue ──────────────────────────────────────────────
ALERT_QUEUE_CAP: int = 5

# ── Countdown ────────────────────────────────────────────────
TICK_INTERVAL_MS: int = 1000
SECONDS_PER_MINUTE: int = 60
MIN_COUNTDOWN_MINUTES: int = 1

# ── Statistics ───────────────────────────────────────────────
CHART_WINDOW_SIZE: int = 15

# ── Local projection engine ──────────────────────────────────
PROJECTION_CARB_TRIGGER_G: float = 30.0
PROJECTION_CARB_FACTOR: float = 1.5  # mg/dL per gram
PROJECTION_INSULIN_FACTOR: float = 8.0  # mg/dL per unit
PROJECTION_ACTIVITY_FACTOR: float = 2.0  # mg/dL per minute
PROJECTION_MIN: int = 50
PROJECTION_MAX: int = 300

# ── Classification messages ──────────────────────────────────
MESSAGE_LOW: str = "Low blood sugar detected!"
MESSAGE_NORMAL: str = "Blood sugar normal."
MESSAGE_HIGH: str = "High blood sugar detected!"
SUMMARY_PLACEHOLDER: str = "AI summary not available yet. Please wait..."

# ── Predictive service risk labels ───────────────────────────
RISK_HYPO: str = "Hypo risk"
RISK_HYPER: str = "Hyper risk"
