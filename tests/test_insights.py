"""
tests/test_insights.py

Tests for insights/client.py, insights/aggregate.py and insights/predictor.py.
All HTTP calls are mocked; no AI service is contacted.
"""

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from insights.aggregate import alerts_from_prediction, gather_insights
from insights.predictor import project_glucose
from monitor.constants import SUMMARY_PLACEHOLDER
from monitor.errors import NetworkError
from monitor.schemas import AlertKind, PredictiveResult, Severity


def _response(status: int, payload: dict) -> httpx.Response:
    return httpx.Response(
        status,
        json=payload,
        request=httpx.Request("POST", "http://ai.test/predict"),
    )


# ── Client ───────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_forecast_posts_current_glucose() -> None:
    with patch(
        "insights.client.httpx.AsyncClient.post",
        new_callable=AsyncMock,
        return_value=_response(200, {"forecast": 142.5}),
    ) as mock_post:
        from insights.client import forecast

        result = await forecast(126)

        assert result == 142.5
        assert mock_post.call_args.kwargs["json"] == {"currentGlucose": 126}


@pytest.mark.asyncio
async def test_predict_parses_alerts() -> None:
    payload = {
        "forecast_mgdl": 65,
        "main_alert": {"risk": "Hypo risk", "message": "Eat 15 g of carbs"},
        "alerts": [{"id": 7, "risk": "Hypo risk", "time": "15 min"}],
    }
    with patch(
        "insights.client.httpx.AsyncClient.post",
        new_callable=AsyncMock,
        return_value=_response(200, payload),
    ) as mock_post:
        from insights.client import predict

        result = await predict([120, 95], "fast-acting", 0, 0, "none")

        assert result.forecast_mgdl == 65
        assert result.alerts[0].risk == "Hypo risk"
        body = mock_post.call_args.kwargs["json"]
        assert body["glucoseHistory"] == [120, 95]
        assert body["insulinType"] == "fast-acting"


@pytest.mark.asyncio
async def test_client_raises_network_error_on_timeout() -> None:
    with patch(
        "insights.client.httpx.AsyncClient.post",
        new_callable=AsyncMock,
        side_effect=httpx.TimeoutException("timeout"),
    ):
        from insights.client import summarize

        with pytest.raises(NetworkError):
            await summarize([100.0])


@pytest.mark.asyncio
async def test_client_raises_network_error_on_http_error() -> None:
    with patch(
        "insights.client.httpx.AsyncClient.post",
        new_callable=AsyncMock,
        return_value=_response(502, {"detail": "bad gateway"}),
    ):
        from insights.client import forecast

        with pytest.raises(NetworkError) as exc_info:
            await forecast(100)

        assert "502" in str(exc_info.value)


@pytest.mark.asyncio
async def test_summary_without_text_is_malformed() -> None:
    with patch(
        "insights.client.httpx.AsyncClient.post",
        new_callable=AsyncMock,
        return_value=_response(200, {"unexpected": True}),
    ):
        from insights.client import summarize

        with pytest.raises(NetworkError):
            await summarize([100.0])


# ── Aggregation ──────────────────────────────────────────────

def test_alerts_from_prediction_maps_risks() -> None:
    result = PredictiveResult(
        main_alert={"message": "Main message"},
        alerts=[
            {"id": "a", "risk": "Hypo risk", "message": "Low soon", "time": "15 min"},
            {"risk": "Hyper risk", "time": "30 min"},
            {"risk": "trend_warning", "time": "bad"},
        ],
    )

    alerts = alerts_from_prediction(result)

    assert [(a.kind, a.severity) for a in alerts] == [
        (AlertKind.HYPO, Severity.CRITICAL),
        (AlertKind.HYPER, Severity.HIGH),
        (AlertKind.STABLE, Severity.MEDIUM),
    ]
    assert alerts[0].id == "a"
    assert alerts[0].message == "Low soon"
    assert alerts[1].message == "Main message"
    assert [a.window_seconds for a in alerts] == [900, 1800, 60]
    assert all(a.predicted for a in alerts)


def test_alert_without_any_message() -> None:
    alerts = alerts_from_prediction(PredictiveResult(alerts=[{"risk": "Hypo risk"}]))
    assert alerts[0].message == "No message"


@pytest.mark.asyncio
async def test_gather_insights_combines_all_services() -> None:
    prediction = PredictiveResult(
        forecast_mgdl=190,
        alerts=[{"risk": "Hyper risk", "message": "High soon", "time": "30 min"}],
    )
    with patch(
        "insights.client.forecast", new_callable=AsyncMock, return_value=185.0
    ), patch(
        "insights.client.predict", new_callable=AsyncMock, return_value=prediction
    ), patch(
        "insights.client.summarize", new_callable=AsyncMock, return_value="Rising after lunch."
    ):
        view = await gather_insights([120.0, 160.0])

        assert view.available is True
        assert view.forecast == 185.0
        assert view.forecast_mgdl == 190
        assert view.summary == "Rising after lunch."
        assert [a.kind for a in view.alerts] == [AlertKind.HYPER]


@pytest.mark.asyncio
async def test_failed_summary_keeps_prediction() -> None:
    prediction = PredictiveResult(alerts=[{"risk": "Hypo risk", "time": "15 min"}])
    with patch(
        "insights.client.forecast", new_callable=AsyncMock, return_value=80.0
    ), patch(
        "insights.client.predict", new_callable=AsyncMock, return_value=prediction
    ), patch(
        "insights.client.summarize",
        new_callable=AsyncMock,
        side_effect=NetworkError("summarize", "timeout"),
    ):
        view = await gather_insights([95.0])

        assert view.available is True
        assert len(view.alerts) == 1
        assert view.summary == SUMMARY_PLACEHOLDER


@pytest.mark.asyncio
async def test_failed_prediction_disables_card_only() -> None:
    with patch(
        "insights.client.forecast",
        new_callable=AsyncMock,
        side_effect=NetworkError("forecast", "status 500"),
    ), patch(
        "insights.client.predict",
        new_callable=AsyncMock,
        side_effect=NetworkError("predict", "timeout"),
    ), patch(
        "insights.client.summarize", new_callable=AsyncMock, return_value="Stable day."
    ):
        view = await gather_insights([110.0])

        assert view.available is False
        assert view.forecast is None
        assert view.alerts == []
        assert view.summary == "Stable day."


@pytest.mark.asyncio
async def test_gather_insights_without_history() -> None:
    view = await gather_insights([])
    assert view.available is False
    assert view.summary == SUMMARY_PLACEHOLDER


# ── Local projection ─────────────────────────────────────────

def test_projection_applies_inputs() -> None:
    assert project_glucose(126) == 126
    assert project_glucose(120, carbs=40) == 180
    assert project_glucose(120, carbs=30) == 120
    assert project_glucose(200, insulin_units=2, activity_minutes=10) == 164


def test_projection_is_clamped() -> None:
    assert project_glucose(60, insulin_units=10) == 50
    assert project_glucose(250, carbs=100) == 300
