"""
insights/client.py

HTTP clients for the external AI forecasting service.
- forecast: glucose forecast 30 minutes ahead
- predict: risk prediction with a main alert and an alert list
- summarize: natural-language summary of recent values

Every failure is logged and raised as NetworkError; callers decide how
to degrade.
"""

from typing import Any

import httpx
import structlog

from config import settings
from monitor.errors import NetworkError
from monitor.schemas import PredictiveResult

logger = structlog.get_logger(__name__)


async def _post(service: str, path: str, payload: dict[str, Any]) -> dict:
    """POST a JSON body to the AI service and return the decoded response."""
    url = f"{settings.ai_service_url}{path}"
    try:
        async with httpx.AsyncClient(timeout=settings.ai_timeout_seconds) as client:
            response = await client.post(url, json=payload)
            response.raise_for_status()
            return response.json()
    except httpx.TimeoutException as exc:
        logger.warning("ai_timeout", service=service, url=url)
        raise NetworkError(service, "timeout") from exc
    except httpx.HTTPStatusError as exc:
        logger.error(
            "ai_http_error",
            service=service,
            status=exc.response.status_code,
        )
        raise NetworkError(service, f"status {exc.response.status_code}") from exc
    except (httpx.HTTPError, ValueError) as exc:
        logger.error("ai_unexpected_error", service=service, error=str(exc))
        raise NetworkError(service, str(exc)) from exc


async def forecast(current_value: float) -> float:
    """Forecast glucose from the current value."""
    data = await _post("forecast", "/forecast", {"currentGlucose": current_value})
    try:
        return float(data["forecast"])
    except (KeyError, TypeError, ValueError) as exc:
        raise NetworkError("forecast", "malformed response") from exc


async def predict(
    history: list[float],
    insulin_type: str,
    insulin_units: float,
    calories: float,
    activity: str,
) -> PredictiveResult:
    """Ask the predictive service for risk alerts over the glucose history."""
    data = await _post(
        "predict",
        "/predict",
        {
            "glucoseHistory": history,
            "insulinType": insulin_type,
            "insulinUnits": insulin_units,
            "calories": calories,
            "activity": activity,
        },
    )
    try:
        return PredictiveResult(
            forecast_mgdl=data.get("forecast_mgdl"),
            main_alert=data.get("main_alert"),
            alerts=data.get("alerts") or [],
        )
    except (AttributeError, ValueError) as exc:
        raise NetworkError("predict", "malformed response") from exc


async def summarize(values: list[float]) -> str:
    """Request a short summary of the given glucose values."""
    data = await _post("summarize", "/summarize", {"values": values})
    summary = data.get("summary") if isinstance(data, dict) else None
    if not isinstance(summary, str):
        raise NetworkError("summarize", "malformed response")
    return summary
