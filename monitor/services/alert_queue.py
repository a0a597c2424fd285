"""
monitor/services/alert_queue.py

Bounded, newest-first collection of alerts for one monitoring session.
Notification dispatch is the caller's job; the queue only holds state.
"""

import collections
from collections.abc import Iterator
from typing import Optional

import structlog

from monitor.constants import ALERT_QUEUE_CAP
from monitor.schemas import Alert

logger = structlog.get_logger(__name__)


class AlertQueue:
    """
    Newest-first alert queue capped at `cap` entries.

    push() prepends and drops the oldest entries beyond the cap.
    With debounce_seconds > 0, a new alert of the same kind as a queued alert
    created less than debounce_seconds earlier is suppressed.
    """

    def __init__(self, cap: int = ALERT_QUEUE_CAP, debounce_seconds: int = 0) -> None:
        if cap < 1:
            raise ValueError("alert queue cap must be at least 1")
        self.cap = cap
        self.debounce_seconds = debounce_seconds
        self._alerts: collections.deque[Alert] = collections.deque(maxlen=cap)

    def __len__(self) -> int:
        return len(self._alerts)

    def __iter__(self) -> Iterator[Alert]:
        return iter(list(self._alerts))

    def __contains__(self, alert_id: object) -> bool:
        return any(alert.id == alert_id for alert in self._alerts)

    def snapshot(self) -> list[Alert]:
        """Current alerts, newest first."""
        return list(self._alerts)

    def get(self, alert_id: str) -> Optional[Alert]:
        for alert in self._alerts:
            if alert.id == alert_id:
                return alert
        return None

    def should_suppress(self, alert: Alert) -> bool:
        """True when a same-kind alert inside the debounce window is queued."""
        if self.debounce_seconds <= 0:
            return False
        for queued in self._alerts:
            if queued.kind != alert.kind:
                continue
            age = (alert.created_at - queued.created_at).total_seconds()
            if 0 <= age < self.debounce_seconds:
                return True
        return False

    def push(self, alert: Alert) -> list[Alert]:
        """
        Insert an alert at the head.

        Returns the alerts evicted by the cap so the caller can tear down
        their presentation state. A suppressed alert is not inserted and
        nothing is evicted.
        """
        if self.should_suppress(alert):
            logger.info("alert_suppressed", alert_id=alert.id, kind=alert.kind.value)
            return []

        evicted: list[Alert] = []
        if len(self._alerts) == self.cap:
            evicted.append(self._alerts[-1])
        self._alerts.appendleft(alert)

        if evicted:
            logger.info(
                "alert_evicted",
                alert_id=evicted[0].id,
                kind=evicted[0].kind.value,
                cap=self.cap,
            )
        return evicted

    def remove(self, alert_id: str) -> Optional[Alert]:
        """Remove one alert. Absent ids are ignored."""
        alert = self.get(alert_id)
        if alert is not None:
            self._alerts.remove(alert)
        return alert

    def clear(self) -> list[Alert]:
        """Empty the queue and return what was in it."""
        removed = list(self._alerts)
        self._alerts.clear()
        return removed
