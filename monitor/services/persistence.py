"""
monitor/services/persistence.py

Data Store for glucose readings and raised alerts.
Uses SQLAlchemy 2.0 async sessions. Failures are logged and surfaced as
StoreError; nothing here retries.
"""

from datetime import datetime, timezone
from typing import Protocol

import structlog
from sqlalchemy import select

from db.models import AlertLog, AsyncSessionLocal, GlucoseReadingRow
from monitor.errors import StoreError
from monitor.schemas import Alert, Reading

logger = structlog.get_logger(__name__)


class DataStore(Protocol):
    """Backing persistence consumed by monitoring sessions."""

    async def append(self, user_id: str, reading: Reading) -> Reading: ...

    async def list(self, user_id: str) -> list[Reading]: ...


def _to_db_time(value: datetime) -> datetime:
    """DateTime columns hold naive UTC; naive inputs are already taken as UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _row_to_reading(row: GlucoseReadingRow) -> Reading:
    return Reading(
        id=row.id,
        value=float(row.value),
        timestamp=row.timestamp.replace(tzinfo=timezone.utc),
        context=row.context or "",
        notes=row.notes,
    )


class SqlDataStore:
    """DataStore backed by the glucose_readings table."""

    async def append(self, user_id: str, reading: Reading) -> Reading:
        """Insert a reading and return it as stored."""
        try:
            async with AsyncSessionLocal() as session:
                row = GlucoseReadingRow(
                    id=reading.id,
                    user_id=user_id,
                    value=reading.value,
                    timestamp=_to_db_time(reading.timestamp),
                    context=reading.context or None,
                    notes=reading.notes,
                )
                session.add(row)
                await session.commit()
                logger.info(
                    "reading_persisted",
                    user_id=user_id,
                    reading_id=reading.id,
                    recorded_at=str(reading.timestamp),
                )
                return reading
        except Exception as exc:
            logger.error(
                "reading_persist_failed",
                user_id=user_id,
                error=str(exc),
            )
            raise StoreError(f"could not store reading for {user_id}") from exc

    async def list(self, user_id: str) -> list[Reading]:
        """All readings for a user ordered by timestamp ascending."""
        try:
            async with AsyncSessionLocal() as session:
                result = await session.execute(
                    select(GlucoseReadingRow)
                    .where(GlucoseReadingRow.user_id == user_id)
                    .order_by(GlucoseReadingRow.timestamp.asc())
                )
                rows = result.scalars().all()
        except Exception as exc:
            logger.error(
                "reading_query_failed",
                user_id=user_id,
                error=str(exc),
            )
            raise StoreError(f"could not load readings for {user_id}") from exc

        logger.info("readings_loaded", user_id=user_id, count=len(rows))
        return [_row_to_reading(row) for row in rows]


async def log_alert(user_id: str, alert: Alert) -> None:
    """Persist a raised alert. A failure is logged and does not block delivery."""
    try:
        async with AsyncSessionLocal() as session:
            session.add(
                AlertLog(
                    alert_id=alert.id,
                    user_id=user_id,
                    kind=alert.kind.value,
                    severity=alert.severity.value,
                    message=alert.message,
                    predicted=alert.predicted,
                    raised_at=_to_db_time(alert.created_at),
                )
            )
            await session.commit()
            logger.info("alert_logged", user_id=user_id, alert_id=alert.id)
    except Exception as exc:
        logger.error(
            "alert_log_failed",
            user_id=user_id,
            alert_id=alert.id,
            error=str(exc),
        )
