"""
monitor/services/session.py

Per-user monitoring sessions.
A session owns one user's reading store, alert queue, thresholds, countdowns
and in-flight AI calls. It is the single writer of that state; submissions
are serialized so readings are classified in the order they arrive.
"""

import asyncio
import math
from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime, timezone
from typing import Any, Optional, Protocol, TypeVar

import structlog
from pydantic import ValidationError

from config import settings
from insights.predictor import project_glucose
from monitor.errors import InvalidReading, InvalidThresholdConfig
from monitor.schemas import (
    Alert,
    GlucoseStats,
    ProjectionView,
    Reading,
    ReadingOutcome,
    RevealView,
    ThresholdConfig,
    Trend,
)
from monitor.services.alert_queue import AlertQueue
from monitor.services.classifier import alert_for, classify, validate_reading
from monitor.services.countdown import (
    AsyncioScheduler,
    Scheduler,
    SequentialReveal,
    parse_duration_label,
)
from monitor.services.notification import AlertSink, CountdownPresenter
from monitor.services.persistence import DataStore
from monitor.services.reading_store import ReadingStore
from monitor.services.statistics import StatsCounter, summarize_readings
from monitor.services.trend import estimate_trend

logger = structlog.get_logger(__name__)

T = TypeVar("T")

# Key under which family mode stores the patient being viewed
FAMILY_SESSION_KEY: str = "family_session"


class SessionContext(Protocol):
    """Key/value session state, e.g. which patient a family member is viewing."""

    def get(self, key: str) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...

    def clear(self, key: Optional[str] = None) -> None: ...


class InMemorySessionContext:
    def __init__(self) -> None:
        self._values: dict[str, Any] = {}

    def get(self, key: str) -> Any:
        return self._values.get(key)

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value

    def clear(self, key: Optional[str] = None) -> None:
        if key is None:
            self._values.clear()
        else:
            self._values.pop(key, None)


def resolve_user(user_id: str, context: SessionContext) -> str:
    """Return the patient id when in family mode, otherwise the caller's id."""
    family = context.get(FAMILY_SESSION_KEY) or {}
    return family.get("patient_user_id") or user_id


def default_thresholds() -> ThresholdConfig:
    return ThresholdConfig(
        low_threshold=settings.low_threshold,
        high_threshold=settings.high_threshold,
    )


class MonitoringSession:
    """Glucose monitoring state for one user."""

    def __init__(
        self,
        user_id: str,
        store: DataStore,
        scheduler: Optional[Scheduler] = None,
        sinks: Sequence[AlertSink] = (),
        thresholds: Optional[ThresholdConfig] = None,
        trend_margin: Optional[float] = None,
        queue_cap: Optional[int] = None,
        debounce_seconds: Optional[int] = None,
        window_label: Optional[str] = None,
    ) -> None:
        self.user_id = user_id
        self.store = store
        self.scheduler = scheduler or AsyncioScheduler()
        self.thresholds = thresholds or default_thresholds()
        self.trend_margin = (
            settings.trend_margin if trend_margin is None else trend_margin
        )
        self.window_seconds = parse_duration_label(
            window_label or settings.alert_window_label
        )
        self.readings = ReadingStore()
        self.queue = AlertQueue(
            cap=queue_cap or settings.alert_queue_cap,
            debounce_seconds=(
                settings.alert_debounce_seconds
                if debounce_seconds is None
                else debounce_seconds
            ),
        )
        self.stats = StatsCounter()
        self.presenter = CountdownPresenter(self.scheduler, on_expire=self._on_expire)
        self.sinks: list[AlertSink] = [self.presenter, *sinks]
        self.reveal: Optional[SequentialReveal] = None
        self._loaded = False
        self._closed = False
        self._lock = asyncio.Lock()
        self._tasks: set[asyncio.Task] = set()

    @property
    def closed(self) -> bool:
        return self._closed

    async def load(self) -> None:
        """Fill the reading store from the data store once."""
        if self._loaded:
            return
        async with self._lock:
            if self._loaded:
                return
            for reading in await self.store.list(self.user_id):
                self.readings.insert(reading)
            self._loaded = True
            logger.info("session_loaded", user_id=self.user_id, readings=len(self.readings))

    # ── Readings ─────────────────────────────────────────────

    async def submit_reading(
        self,
        value: float,
        timestamp: Optional[datetime] = None,
        context: str = "",
        notes: Optional[str] = None,
    ) -> ReadingOutcome:
        """
        Persist, classify and alert on a new reading.

        Flow:
        1. Validate the value (InvalidReading before anything is stored)
        2. Append to the data store (StoreError propagates, nothing else changes)
        3. Insert into the ordered store, classify, update counters
        4. Push an alert for low/high readings and notify every sink once
        """
        value = validate_reading(value)
        await self.load()
        async with self._lock:
            reading = Reading(
                value=value,
                timestamp=timestamp or datetime.now(timezone.utc),
                context=context,
                notes=notes,
            )
            reading = await self.store.append(self.user_id, reading)
            if self._closed:
                logger.info(
                    "reading_after_teardown",
                    user_id=self.user_id,
                    reading_id=reading.id,
                )
                return ReadingOutcome(
                    reading=reading,
                    classification=classify(reading.value, self.thresholds),
                    trend=self.trend(),
                    alert=None,
                )
            self.readings.insert(reading)

            classification = classify(reading.value, self.thresholds)
            self.stats.record(classification.status)
            trend = self.trend()

            alert = alert_for(
                classification,
                reading.value,
                created_at=datetime.now(timezone.utc),
                window_seconds=self.window_seconds,
            )
            if alert is not None:
                alert = await self._raise(alert)

            logger.info(
                "reading_processed",
                user_id=self.user_id,
                value=reading.value,
                status=classification.status.value,
                trend=trend.value,
                alert_id=alert.id if alert else None,
            )
            return ReadingOutcome(
                reading=reading,
                classification=classification,
                trend=trend,
                alert=alert,
            )

    def trend(self) -> Trend:
        return estimate_trend(self.readings.newest_first(), margin=self.trend_margin)

    def statistics(self) -> GlucoseStats:
        return summarize_readings(self.readings.ascending(), self.stats)

    def set_thresholds(self, low_threshold: float, high_threshold: float) -> ThresholdConfig:
        """Replace the thresholds; rejects low >= high and non-finite values."""
        try:
            config = ThresholdConfig(
                low_threshold=low_threshold,
                high_threshold=high_threshold,
            )
        except ValidationError as exc:
            raise InvalidThresholdConfig(str(exc)) from exc
        self.thresholds = config
        logger.info(
            "thresholds_updated",
            user_id=self.user_id,
            low=config.low_threshold,
            high=config.high_threshold,
        )
        return config

    async def project(
        self,
        glucose: float,
        insulin_units: float = 0.0,
        carbs: float = 0.0,
        activity_minutes: float = 0.0,
    ) -> ProjectionView:
        """
        Classify a locally projected value and raise a predicted alert for it.

        Raises InvalidReading for an out-of-range glucose or a non-finite input.
        """
        glucose = validate_reading(glucose)
        for amount in (insulin_units, carbs, activity_minutes):
            if not math.isfinite(amount):
                raise InvalidReading(amount)
        projected = project_glucose(glucose, insulin_units, carbs, activity_minutes)
        classification = classify(projected, self.thresholds)
        alert = alert_for(
            classification,
            projected,
            created_at=datetime.now(timezone.utc),
            window_seconds=self.window_seconds,
            predicted=True,
        )
        if alert is not None:
            async with self._lock:
                alert = await self._raise(alert)
        return ProjectionView(
            projected=projected,
            classification=classification,
            alert=alert,
        )

    # ── Alerts ───────────────────────────────────────────────

    def alerts(self) -> list[Alert]:
        return self.queue.snapshot()

    def dismiss_alert(self, alert_id: str) -> Optional[Alert]:
        """Mark an alert as read. Unknown ids are ignored."""
        self.presenter.dismiss(alert_id)
        return self.queue.remove(alert_id)

    def dismiss_all(self) -> list[Alert]:
        self.presenter.clear()
        return self.queue.clear()

    def start_reveal(self, alerts: Sequence[Alert]) -> RevealView:
        """Show a batch of alerts one at a time, replacing any running reveal."""
        if self._closed:
            logger.info("reveal_after_teardown", user_id=self.user_id, alerts=len(alerts))
            return self.reveal_view()
        if self.reveal is not None:
            self.reveal.close()
        self.reveal = SequentialReveal(alerts, self.scheduler)
        return self.reveal.view()

    def reveal_view(self) -> RevealView:
        if self.reveal is None:
            return RevealView(closed=True, index=0, total=0)
        return self.reveal.view()

    def dismiss_revealed(self) -> RevealView:
        if self.reveal is not None:
            self.reveal.dismiss()
        return self.reveal_view()

    # ── AI calls ─────────────────────────────────────────────

    async def track(self, call: Awaitable[T]) -> Optional[T]:
        """
        Run an AI call as a task owned by this session.

        Teardown cancels it; a cancelled call returns None so results never
        land on a torn-down session.
        """
        if self._closed:
            if asyncio.iscoroutine(call):
                call.close()
            return None
        task = asyncio.ensure_future(call)
        self._tasks.add(task)
        try:
            return await task
        except asyncio.CancelledError:
            if not self._closed:
                raise
            logger.info("ai_call_cancelled", user_id=self.user_id)
            return None
        finally:
            self._tasks.discard(task)

    # ── Teardown ─────────────────────────────────────────────

    def teardown(self) -> None:
        """Cancel every timer and in-flight call and clear the alert queue."""
        self.presenter.clear()
        if self.reveal is not None:
            self.reveal.close()
            self.reveal = None
        cleared = self.queue.clear()
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()
        self._closed = True
        logger.info("session_torn_down", user_id=self.user_id, alerts_cleared=len(cleared))

    # ── Internals ────────────────────────────────────────────

    async def _raise(self, alert: Alert) -> Optional[Alert]:
        """Queue and deliver an alert; None if it was debounced or the session is closed."""
        if self._closed:
            logger.info("alert_after_teardown", user_id=self.user_id, alert_id=alert.id)
            return None
        for evicted in self.queue.push(alert):
            self.presenter.discard(evicted.id)
        if alert.id not in self.queue:
            return None
        for sink in self.sinks:
            await sink.notify(alert)
        return alert

    def _on_expire(self, alert_id: str) -> None:
        self.queue.remove(alert_id)
        logger.info("alert_expired", user_id=self.user_id, alert_id=alert_id)


class SessionRegistry:
    """
    One monitoring session per user, created on first use.

    Each caller has its own SessionContext. A caller whose context holds a
    family session is routed to the patient's monitoring session, read-only.
    """

    def __init__(
        self,
        store: DataStore,
        sink_factory: Optional[Callable[[str], Sequence[AlertSink]]] = None,
        scheduler: Optional[Scheduler] = None,
        context_factory: Callable[[], SessionContext] = InMemorySessionContext,
    ) -> None:
        self.store = store
        self.sink_factory = sink_factory
        self.scheduler = scheduler
        self.context_factory = context_factory
        self._contexts: dict[str, SessionContext] = {}
        self._sessions: dict[str, MonitoringSession] = {}

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._sessions

    def context_for(self, user_id: str) -> SessionContext:
        context = self._contexts.get(user_id)
        if context is None:
            context = self.context_factory()
            self._contexts[user_id] = context
        return context

    def is_family_view(self, user_id: str) -> bool:
        return resolve_user(user_id, self.context_for(user_id)) != user_id

    def enter_family_mode(self, user_id: str, patient_user_id: str) -> None:
        self.context_for(user_id).set(
            FAMILY_SESSION_KEY, {"patient_user_id": patient_user_id}
        )
        logger.info("family_mode_entered", user_id=user_id, patient_user_id=patient_user_id)

    def exit_family_mode(self, user_id: str) -> None:
        self.context_for(user_id).clear(FAMILY_SESSION_KEY)

    async def get(self, user_id: str) -> MonitoringSession:
        target = resolve_user(user_id, self.context_for(user_id))
        session = self._sessions.get(target)
        if session is None:
            sinks = self.sink_factory(target) if self.sink_factory else ()
            session = MonitoringSession(
                target,
                self.store,
                scheduler=self.scheduler,
                sinks=sinks,
            )
            self._sessions[target] = session
        await session.load()
        return session

    def end(self, user_id: str) -> bool:
        """
        Log a caller out: clear its context and tear down its own session.

        A family viewer only drops its context; the patient's session stays.
        Returns False if there was no session to tear down.
        """
        family_view = self.is_family_view(user_id)
        context = self._contexts.pop(user_id, None)
        if context is not None:
            context.clear()
        if family_view:
            return False
        session = self._sessions.pop(user_id, None)
        if session is None:
            return False
        session.teardown()
        return True

    def teardown_all(self) -> None:
        for session in self._sessions.values():
            session.teardown()
        self._sessions.clear()
        self._contexts.clear()
