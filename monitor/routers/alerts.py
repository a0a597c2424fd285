"""
monitor/routers/alerts.py

Alert queue, countdown and sequential reveal endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException

from monitor.dependencies import get_session, require_write_access
from monitor.schemas import Alert, CountdownView, RevealView
from monitor.services.session import MonitoringSession

router = APIRouter(prefix="/users/{user_id}", tags=["alerts"])


@router.get("/alerts", response_model=list[Alert])
async def list_alerts(session: MonitoringSession = Depends(get_session)) -> list[Alert]:
    """Active alerts, newest first."""
    return session.alerts()


@router.delete(
    "/alerts/{alert_id}",
    status_code=204,
    dependencies=[Depends(require_write_access)],
)
async def dismiss_alert(
    alert_id: str,
    session: MonitoringSession = Depends(get_session),
) -> None:
    """Mark an alert as read. Unknown ids are not an error."""
    session.dismiss_alert(alert_id)


@router.delete(
    "/alerts",
    status_code=204,
    dependencies=[Depends(require_write_access)],
)
async def dismiss_all_alerts(session: MonitoringSession = Depends(get_session)) -> None:
    session.dismiss_all()


@router.get("/alerts/{alert_id}/countdown", response_model=CountdownView)
async def get_countdown(
    alert_id: str,
    session: MonitoringSession = Depends(get_session),
) -> CountdownView:
    view = session.presenter.view(alert_id)
    if view is None:
        raise HTTPException(status_code=404, detail="Alert is not displayed")
    return view


@router.get("/reveal", response_model=RevealView)
async def get_reveal(session: MonitoringSession = Depends(get_session)) -> RevealView:
    return session.reveal_view()


@router.post(
    "/reveal/dismiss",
    response_model=RevealView,
    dependencies=[Depends(require_write_access)],
)
async def dismiss_revealed(session: MonitoringSession = Depends(get_session)) -> RevealView:
    """Dismiss the alert being revealed and advance to the next one."""
    return session.dismiss_revealed()
