"""
insights/aggregate.py

Combines the AI service calls into one dashboard view.
Calls run concurrently and fail independently: a failed summary never hides
prediction alerts, and a failed prediction only disables the predictive card.
"""

import asyncio
from datetime import datetime, timezone
from typing import Optional

import structlog

from insights import client
from monitor.constants import RISK_HYPER, RISK_HYPO, SUMMARY_PLACEHOLDER
from monitor.errors import NetworkError
from monitor.schemas import (
    Alert,
    AlertKind,
    InsightsView,
    PredictiveResult,
    Severity,
)
from monitor.services.countdown import parse_duration_label

logger = structlog.get_logger(__name__)

# Defaults used by the dashboard when no treatment inputs are supplied
DEFAULT_INSULIN_TYPE: str = "fast-acting"
DEFAULT_ACTIVITY: str = "none"


def alerts_from_prediction(
    result: PredictiveResult,
    now: Optional[datetime] = None,
) -> list[Alert]:
    """Map the predictive service's alert list onto domain alerts."""
    created_at = now or datetime.now(timezone.utc)
    fallback_message = result.main_alert.message if result.main_alert else None

    alerts: list[Alert] = []
    for item in result.alerts:
        if item.risk == RISK_HYPO:
            kind, severity = AlertKind.HYPO, Severity.CRITICAL
        elif item.risk == RISK_HYPER:
            kind, severity = AlertKind.HYPER, Severity.HIGH
        else:
            kind, severity = AlertKind.STABLE, Severity.MEDIUM

        extra = {"id": str(item.id)} if item.id is not None else {}
        alerts.append(
            Alert(
                kind=kind,
                message=item.message or fallback_message or "No message",
                severity=severity,
                created_at=created_at,
                window_seconds=parse_duration_label(item.time),
                predicted=True,
                **extra,
            )
        )
    return alerts


async def gather_insights(
    history: list[float],
    insulin_type: str = DEFAULT_INSULIN_TYPE,
    insulin_units: float = 0.0,
    calories: float = 0.0,
    activity: str = DEFAULT_ACTIVITY,
) -> InsightsView:
    """
    Query forecast, prediction and summary concurrently.

    NetworkError from any call is logged and replaced by its placeholder.
    """
    if not history:
        return InsightsView(available=False, summary=SUMMARY_PLACEHOLDER)

    forecast_result, predict_result, summary_result = await asyncio.gather(
        client.forecast(history[-1]),
        client.predict(history, insulin_type, insulin_units, calories, activity),
        client.summarize(history),
        return_exceptions=True,
    )

    for name, outcome in (
        ("forecast", forecast_result),
        ("predict", predict_result),
        ("summarize", summary_result),
    ):
        if isinstance(outcome, BaseException) and not isinstance(outcome, NetworkError):
            raise outcome
        if isinstance(outcome, NetworkError):
            logger.warning("insight_degraded", service=name, error=str(outcome))

    view = InsightsView(
        available=isinstance(predict_result, PredictiveResult),
        forecast=None if isinstance(forecast_result, NetworkError) else forecast_result,
        summary=(
            SUMMARY_PLACEHOLDER
            if isinstance(summary_result, NetworkError) or not summary_result
            else summary_result
        ),
    )
    if isinstance(predict_result, PredictiveResult):
        view.forecast_mgdl = predict_result.forecast_mgdl
        view.alerts = alerts_from_prediction(predict_result)

    logger.info(
        "insights_gathered",
        available=view.available,
        alert_count=len(view.alerts),
        has_forecast=view.forecast is not None,
    )
    return view
