"""
monitor/routers/insights.py

AI insights for the dashboard.
Failures of the AI service never fail the request; they degrade to
placeholders (see insights/aggregate.py).
"""

import structlog
from fastapi import APIRouter, Depends

from insights.aggregate import gather_insights
from monitor.constants import SUMMARY_PLACEHOLDER
from monitor.dependencies import get_session
from monitor.schemas import InsightsView
from monitor.services.session import MonitoringSession

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/users/{user_id}", tags=["insights"])


@router.get("/insights", response_model=InsightsView)
async def get_insights(
    insulin_units: float = 0.0,
    calories: float = 0.0,
    session: MonitoringSession = Depends(get_session),
) -> InsightsView:
    """
    Gather forecast, predictive alerts and summary for the session's readings.

    Predictive alerts are revealed one at a time with their countdowns.
    """
    view = await session.track(
        gather_insights(
            session.readings.values(),
            insulin_units=insulin_units,
            calories=calories,
        )
    )
    if view is None:
        logger.info("insights_abandoned", user_id=session.user_id)
        return InsightsView(available=False, summary=SUMMARY_PLACEHOLDER)

    if view.alerts:
        session.start_reveal(view.alerts)
    return view
