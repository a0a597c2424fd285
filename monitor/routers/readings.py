"""
monitor/routers/readings.py

Reading capture, trend, statistics, thresholds and local projection.
"""

from typing import Literal

import structlog
from fastapi import APIRouter, Depends, HTTPException

from monitor.dependencies import get_session, require_write_access
from monitor.errors import InvalidReading, InvalidThresholdConfig, StoreError
from monitor.schemas import (
    GlucoseStats,
    ProjectionRequest,
    ProjectionView,
    Reading,
    ReadingCreate,
    ReadingOutcome,
    ThresholdConfig,
    ThresholdUpdate,
    Trend,
)
from monitor.services.session import MonitoringSession

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/users/{user_id}", tags=["readings"])


@router.post(
    "/readings",
    response_model=ReadingOutcome,
    status_code=201,
    dependencies=[Depends(require_write_access)],
)
async def submit_reading(
    user_id: str,
    body: ReadingCreate,
    session: MonitoringSession = Depends(get_session),
) -> ReadingOutcome:
    """
    Record a reading and evaluate it.

    Flow:
    1. Family viewers are read-only and get 403
    2. Invalid values are rejected with 422 before anything is stored
    3. Store failures surface as 503
    """
    logger.info("reading_received", user_id=user_id, value=body.value)
    try:
        return await session.submit_reading(
            body.value,
            timestamp=body.timestamp,
            context=body.context,
            notes=body.notes,
        )
    except InvalidReading as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except StoreError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc


@router.get("/readings", response_model=list[Reading])
async def list_readings(
    order: Literal["asc", "desc"] = "desc",
    session: MonitoringSession = Depends(get_session),
) -> list[Reading]:
    if order == "asc":
        return session.readings.ascending()
    return session.readings.newest_first()


@router.get("/trend")
async def get_trend(session: MonitoringSession = Depends(get_session)) -> dict[str, Trend]:
    return {"trend": session.trend()}


@router.get("/stats", response_model=GlucoseStats)
async def get_stats(session: MonitoringSession = Depends(get_session)) -> GlucoseStats:
    return session.statistics()


@router.get("/thresholds", response_model=ThresholdConfig)
async def get_thresholds(
    session: MonitoringSession = Depends(get_session),
) -> ThresholdConfig:
    return session.thresholds


@router.put(
    "/thresholds",
    response_model=ThresholdConfig,
    dependencies=[Depends(require_write_access)],
)
async def update_thresholds(
    body: ThresholdUpdate,
    session: MonitoringSession = Depends(get_session),
) -> ThresholdConfig:
    try:
        return session.set_thresholds(body.low_threshold, body.high_threshold)
    except InvalidThresholdConfig as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.post(
    "/projection",
    response_model=ProjectionView,
    dependencies=[Depends(require_write_access)],
)
async def project(
    body: ProjectionRequest,
    session: MonitoringSession = Depends(get_session),
) -> ProjectionView:
    """Project glucose from treatment inputs and alert on the projected value."""
    try:
        return await session.project(
            body.glucose,
            insulin_units=body.insulin_units,
            carbs=body.carbs,
            activity_minutes=body.activity_minutes,
        )
    except InvalidReading as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
