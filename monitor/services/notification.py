"""
monitor/services/notification.py

Alert sinks: the narrow interface between alert decisions and their delivery.
- PushAlertSink: push notification (FCM stub) plus the alert_log record
- CountdownPresenter: gives every displayed alert its own countdown timer
"""

from collections.abc import Callable
from typing import Optional, Protocol

import structlog

from config import settings
from monitor.schemas import Alert, CountdownView
from monitor.services.countdown import CountdownAlert, Scheduler
from monitor.services.persistence import log_alert

logger = structlog.get_logger(__name__)


class AlertSink(Protocol):
    async def notify(self, alert: Alert) -> None: ...


async def send_push(user_id: str, alert: Alert) -> None:
    """
    Send a push notification for an alert.

    In production, this would integrate with FCM or APNs.
    """
    logger.info(
        "push_notification_sent",
        user_id=user_id,
        alert_id=alert.id,
        kind=alert.kind.value,
        severity=alert.severity.value,
        fcm_key_present=bool(settings.fcm_server_key),
    )
    # TODO: Integrate with FCM/APNs using settings.fcm_server_key


class PushAlertSink:
    """Delivers each alert as a push notification and records it."""

    def __init__(self, user_id: str) -> None:
        self.user_id = user_id

    async def notify(self, alert: Alert) -> None:
        await send_push(self.user_id, alert)
        await log_alert(self.user_id, alert)


class CountdownPresenter:
    """
    Owns the countdowns of visible alerts, one timer per alert.

    on_expire is called with the alert id once its countdown runs out.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        on_expire: Optional[Callable[[str], None]] = None,
    ) -> None:
        self._scheduler = scheduler
        self._on_expire = on_expire
        self._countdowns: dict[str, CountdownAlert] = {}

    def __len__(self) -> int:
        return len(self._countdowns)

    async def notify(self, alert: Alert) -> None:
        self.show(alert)

    def show(self, alert: Alert) -> CountdownAlert:
        """Start a countdown for an alert, replacing any previous one for it."""
        self.discard(alert.id)
        countdown = CountdownAlert(
            alert.id,
            alert.window_seconds,
            self._scheduler,
            on_expire=self._expired,
        )
        self._countdowns[alert.id] = countdown
        countdown.start()
        return countdown

    def get(self, alert_id: str) -> Optional[CountdownAlert]:
        return self._countdowns.get(alert_id)

    def view(self, alert_id: str) -> Optional[CountdownView]:
        countdown = self._countdowns.get(alert_id)
        return countdown.view() if countdown is not None else None

    def dismiss(self, alert_id: str) -> bool:
        """Dismiss and hide an alert's countdown. False if it was not visible."""
        countdown = self._countdowns.pop(alert_id, None)
        if countdown is None:
            return False
        countdown.dismiss()
        return True

    def discard(self, alert_id: str) -> None:
        """Cancel a countdown without callbacks."""
        countdown = self._countdowns.pop(alert_id, None)
        if countdown is not None:
            countdown.cancel()

    def clear(self) -> None:
        for countdown in self._countdowns.values():
            countdown.cancel()
        self._countdowns.clear()

    def _expired(self, alert_id: str) -> None:
        self._countdowns.pop(alert_id, None)
        if self._on_expire is not None:
            self._on_expire(alert_id)
