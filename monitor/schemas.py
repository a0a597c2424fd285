"""
monitor/schemas.py

Pydantic data models for the monitor layer.
- Reading / ReadingCreate: glucose measurements and their submission body
- ThresholdConfig: per-session low/high classification bounds
- Alert: a notification raised by the classifier or the predictive service
- CountdownView / RevealView: presentation state of displayed alerts
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

from monitor.constants import (
    DEFAULT_HIGH_THRESHOLD,
    DEFAULT_LOW_THRESHOLD,
    READING_CONTEXT_MAX_LEN,
)


def new_id() -> str:
    """Generate an opaque identifier for readings and alerts."""
    return uuid4().hex


class GlucoseStatus(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


class Trend(str, Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class AlertKind(str, Enum):
    HYPO = "hypo"
    HYPER = "hyper"
    STABLE = "stable"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class CountdownStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    DISMISSED = "dismissed"


# ── Readings ─────────────────────────────────────────────────

class Reading(BaseModel):
    """A single glucose measurement. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    value: float  # mg/dL
    timestamp: datetime
    context: str = ""
    notes: Optional[str] = None


class ReadingCreate(BaseModel):
    """Request body for submitting a new reading."""

    value: float
    timestamp: Optional[datetime] = None
    context: str = Field(default="", max_length=READING_CONTEXT_MAX_LEN)
    notes: Optional[str] = None


# ── Thresholds ───────────────────────────────────────────────

class ThresholdConfig(BaseModel):
    """Low/high bounds used to classify a reading."""

    low_threshold: float = Field(default=DEFAULT_LOW_THRESHOLD, allow_inf_nan=False)
    high_threshold: float = Field(default=DEFAULT_HIGH_THRESHOLD, allow_inf_nan=False)

    @model_validator(mode="after")
    def _check_order(self) -> "ThresholdConfig":
        if self.low_threshold >= self.high_threshold:
            raise ValueError(
                f"low_threshold ({self.low_threshold}) must be below "
                f"high_threshold ({self.high_threshold})"
            )
        return self


class ThresholdUpdate(BaseModel):
    """Request body for updating thresholds; ordering is checked by the session."""

    low_threshold: float
    high_threshold: float


# ── Classification and alerts ────────────────────────────────

class Classification(BaseModel):
    status: GlucoseStatus
    message: str


class Alert(BaseModel):
    """A threshold breach or predictive notification held in the alert queue."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    kind: AlertKind
    message: str
    severity: Severity
    created_at: datetime
    window_seconds: int
    predicted: bool = False


class CountdownView(BaseModel):
    alert_id: str
    total_seconds: int
    remaining_seconds: int
    state: CountdownStatus
    progress: float
    display: str


class RevealView(BaseModel):
    """Current position of a one-at-a-time alert reveal."""

    closed: bool
    index: int
    total: int
    alert: Optional[Alert] = None
    countdown: Optional[CountdownView] = None


class ReadingOutcome(BaseModel):
    """Result of submitting a reading through a monitoring session."""

    reading: Reading
    classification: Classification
    trend: Trend
    alert: Optional[Alert] = None


class GlucoseStats(BaseModel):
    total: int = 0
    urgent: int = 0
    monitor: int = 0
    urgent_streak: int = 0
    average: float = 0.0
    maximum: float = 0.0
    latest: Optional[float] = None
    chart: list[Reading] = Field(default_factory=list)


# ── Insights ─────────────────────────────────────────────────

class PredictiveAlertItem(BaseModel):
    """One entry of the predictive service's alert list."""

    id: Optional[str | int] = None
    risk: Optional[str] = None
    message: Optional[str] = None
    time: Optional[str] = None


class PredictiveResult(BaseModel):
    forecast_mgdl: Optional[float] = None
    main_alert: Optional[PredictiveAlertItem] = None
    alerts: list[PredictiveAlertItem] = Field(default_factory=list)


class InsightsView(BaseModel):
    available: bool
    forecast: Optional[float] = None
    forecast_mgdl: Optional[float] = None
    alerts: list[Alert] = Field(default_factory=list)
    summary: str


class ProjectionRequest(BaseModel):
    """What-if inputs for the local projection engine."""

    glucose: float
    insulin_units: float = 0.0
    carbs: float = 0.0
    activity_minutes: float = 0.0


class ProjectionView(BaseModel):
    projected: int
    classification: Classification
    alert: Optional[Alert] = None
