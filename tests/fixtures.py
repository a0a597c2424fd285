"""
tests/fixtures.py

Shared test data and helper functions for constructing test objects.
All tests must use these fixtures instead of hardcoding test values.
"""

import asyncio
from collections.abc import Callable
from datetime import datetime, timedelta

from monitor.errors import StoreError
from monitor.schemas import Alert, AlertKind, Reading, Severity

BASE_TIME: datetime = datetime(2024, 6, 15, 13, 30, 0)


def build_reading(
    value: float = 110.0,
    minutes: int = 0,
    reading_id: str | None = None,
    context: str = "",
) -> Reading:
    """Build a Reading at BASE_TIME + minutes."""
    extra = {"id": reading_id} if reading_id else {}
    return Reading(
        value=value,
        timestamp=BASE_TIME + timedelta(minutes=minutes),
        context=context,
        **extra,
    )


def build_readings_newest_first(*values: float) -> list[Reading]:
    """Readings one minute apart; the first value is the most recent."""
    count = len(values)
    return [build_reading(value, minutes=count - index) for index, value in enumerate(values)]


def build_alert(
    kind: AlertKind = AlertKind.HYPO,
    severity: Severity = Severity.HIGH,
    seconds: int = 0,
    window_seconds: int = 900,
    message: str = "Test alert",
) -> Alert:
    """Build an Alert created at BASE_TIME + seconds."""
    return Alert(
        kind=kind,
        message=message,
        severity=severity,
        created_at=BASE_TIME + timedelta(seconds=seconds),
        window_seconds=window_seconds,
    )


class ManualTimer:
    def __init__(self, interval_ms: int, on_tick: Callable[[], None]) -> None:
        self.interval_ms = interval_ms
        self.on_tick = on_tick
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Fake clock: ticks fire only when the test advances time."""

    def __init__(self) -> None:
        self.timers: list[ManualTimer] = []

    def schedule_tick(self, interval_ms: int, on_tick: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(interval_ms, on_tick)
        self.timers.append(timer)
        return timer

    @property
    def active(self) -> list[ManualTimer]:
        return [timer for timer in self.timers if not timer.cancelled]

    def advance(self, seconds: int) -> None:
        for _ in range(seconds):
            for timer in list(self.active):
                if not timer.cancelled:
                    timer.on_tick()


class FakeDataStore:
    """In-memory DataStore; set fail=True to make every call raise StoreError."""

    def __init__(self, readings: dict[str, list[Reading]] | None = None) -> None:
        self.readings: dict[str, list[Reading]] = readings or {}
        self.fail = False
        self.append_calls = 0

    async def append(self, user_id: str, reading: Reading) -> Reading:
        self.append_calls += 1
        if self.fail:
            raise StoreError("store unavailable")
        self.readings.setdefault(user_id, []).append(reading)
        return reading

    async def list(self, user_id: str) -> list[Reading]:
        if self.fail:
            raise StoreError("store unavailable")
        return sorted(self.readings.get(user_id, []), key=lambda r: r.timestamp)


class GatedDataStore(FakeDataStore):
    """FakeDataStore whose append blocks until the test opens the gate."""

    def __init__(self) -> None:
        super().__init__()
        self.entered = asyncio.Event()
        self.gate = asyncio.Event()

    async def append(self, user_id: str, reading: Reading) -> Reading:
        self.entered.set()
        await self.gate.wait()
        return await super().append(user_id, reading)


class RecordingSink:
    """AlertSink that remembers every alert it was notified of."""

    def __init__(self) -> None:
        self.alerts: list[Alert] = []

    async def notify(self, alert: Alert) -> None:
        self.alerts.append(alert)


# ── Test user profile ───────────────────────────────────────

TEST_USER_ID: str = "user_001"
TEST_PATIENT_ID: str = "patient_042"
