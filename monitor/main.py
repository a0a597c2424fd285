"""
monitor/main.py

FastAPI application entry point for the glucose monitor service.
Creates the session registry on startup and tears every session down on
shutdown so no alert timer outlives the process.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI

from monitor.routers.alerts import router as alerts_router
from monitor.routers.insights import router as insights_router
from monitor.routers.readings import router as readings_router
from monitor.routers.sessions import router as sessions_router
from monitor.services.notification import PushAlertSink
from monitor.services.persistence import SqlDataStore
from monitor.services.session import SessionRegistry

logger = structlog.get_logger(__name__)


def build_registry() -> SessionRegistry:
    return SessionRegistry(
        SqlDataStore(),
        sink_factory=lambda user_id: [PushAlertSink(user_id)],
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifecycle: startup and shutdown."""
    if getattr(app.state, "registry", None) is None:
        app.state.registry = build_registry()
    logger.info("monitor_starting")
    yield
    app.state.registry.teardown_all()
    logger.info("monitor_shutting_down")


app = FastAPI(
    title="Glucose Sentinel",
    description="Glucose reading capture, threshold alerts and AI insights",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(readings_router)
app.include_router(alerts_router)
app.include_router(insights_router)
app.include_router(sessions_router)
