"""
monitor/dependencies.py

FastAPI dependencies shared by the routers.
"""

from fastapi import Depends, HTTPException, Request

from monitor.errors import StoreError
from monitor.services.session import MonitoringSession, SessionRegistry


def get_registry(request: Request) -> SessionRegistry:
    """The session registry created by the application lifespan."""
    return request.app.state.registry


async def get_session(
    user_id: str,
    registry: SessionRegistry = Depends(get_registry),
) -> MonitoringSession:
    """Resolve (and lazily load) the monitoring session for a caller."""
    try:
        return await registry.get(user_id)
    except StoreError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc


def require_write_access(
    user_id: str,
    registry: SessionRegistry = Depends(get_registry),
) -> None:
    """Family viewers are read-only: anything that changes the patient's session is 403."""
    if registry.is_family_view(user_id):
        raise HTTPException(status_code=403, detail="Read-only access")
