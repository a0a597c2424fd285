"""
monitor/routers/sessions.py

Family mode and logout.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from monitor.dependencies import get_registry
from monitor.services.session import SessionRegistry

router = APIRouter(prefix="/users/{user_id}", tags=["sessions"])


class FamilySessionBody(BaseModel):
    patient_user_id: str


@router.put("/family", status_code=204)
async def enter_family_mode(
    user_id: str,
    body: FamilySessionBody,
    registry: SessionRegistry = Depends(get_registry),
) -> None:
    """View a patient's data read-only."""
    registry.enter_family_mode(user_id, body.patient_user_id)


@router.delete("/family", status_code=204)
async def exit_family_mode(
    user_id: str,
    registry: SessionRegistry = Depends(get_registry),
) -> None:
    registry.exit_family_mode(user_id)


@router.delete("/session")
async def logout(
    user_id: str,
    registry: SessionRegistry = Depends(get_registry),
) -> dict[str, bool]:
    """Tear down the caller's session: timers, alerts and in-flight AI calls."""
    return {"ended": registry.end(user_id)}
