"""
monitor/services/countdown.py

Countdown-based presentation lifecycle of displayed alerts.
- Scheduler / AsyncioScheduler: periodic tick abstraction over the event loop
- CountdownAlert: per-alert timer state machine (active -> expired | dismissed)
- SequentialReveal: shows a batch of alerts one at a time
- parse_duration_label: "15 min" style labels to seconds

Every visible alert owns exactly one periodic timer. Timers are cancelled
before being recreated and never fire after a terminal state.
"""

import asyncio
import re
from collections.abc import Callable, Sequence
from typing import Optional, Protocol

import structlog

from monitor.constants import (
    MIN_COUNTDOWN_MINUTES,
    SECONDS_PER_MINUTE,
    TICK_INTERVAL_MS,
)
from monitor.schemas import Alert, CountdownStatus, CountdownView, RevealView

logger = structlog.get_logger(__name__)

_LEADING_INT = re.compile(r"([+-]?\d+)")


class CancelHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def schedule_tick(
        self, interval_ms: int, on_tick: Callable[[], None]
    ) -> CancelHandle: ...


class _PeriodicHandle:
    """Re-arms loop.call_later after every tick until cancelled."""

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        interval_s: float,
        on_tick: Callable[[], None],
    ) -> None:
        self._loop = loop
        self._interval_s = interval_s
        self._on_tick = on_tick
        self._cancelled = False
        self._timer: Optional[asyncio.TimerHandle] = loop.call_later(
            interval_s, self._fire
        )

    def _fire(self) -> None:
        if self._cancelled:
            return
        self._timer = self._loop.call_later(self._interval_s, self._fire)
        self._on_tick()

    def cancel(self) -> None:
        self._cancelled = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None


class AsyncioScheduler:
    """Scheduler backed by the running asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    def schedule_tick(
        self, interval_ms: int, on_tick: Callable[[], None]
    ) -> CancelHandle:
        loop = self._loop or asyncio.get_running_loop()
        return _PeriodicHandle(loop, interval_ms / 1000.0, on_tick)


def parse_duration_label(label: Optional[str]) -> int:
    """
    Convert a label such as "45 min" to seconds.

    The leading integer token is taken as minutes; anything unparseable
    or non-positive falls back to one minute.
    """
    minutes = 0
    if label:
        match = _LEADING_INT.match(label.strip())
        if match:
            minutes = int(match.group(1))
    return max(MIN_COUNTDOWN_MINUTES, minutes) * SECONDS_PER_MINUTE


def compute_progress(total_seconds: int, remaining_seconds: int) -> float:
    """Elapsed share of the countdown in percent, clamped to [0, 100]."""
    elapsed = total_seconds - remaining_seconds
    progress = elapsed / max(total_seconds, 1) * 100
    return min(100.0, max(0.0, progress))


class CountdownAlert:
    """
    Timer state machine for one displayed alert.

    on_expire fires exactly once when the countdown reaches zero.
    on_dismiss fires at most once, on the first dismiss() of an active alert.
    """

    def __init__(
        self,
        alert_id: str,
        total_seconds: int,
        scheduler: Scheduler,
        on_expire: Optional[Callable[[str], None]] = None,
        on_dismiss: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.alert_id = alert_id
        self.total_seconds = max(total_seconds, 0)
        self.remaining_seconds = self.total_seconds
        self.state = CountdownStatus.ACTIVE
        self._scheduler = scheduler
        self._on_expire = on_expire
        self._on_dismiss = on_dismiss
        self._handle: Optional[CancelHandle] = None

    @property
    def is_active(self) -> bool:
        return self.state is CountdownStatus.ACTIVE

    @property
    def progress(self) -> float:
        return compute_progress(self.total_seconds, self.remaining_seconds)

    @property
    def display(self) -> str:
        remaining = max(self.remaining_seconds, 0)
        minutes, seconds = divmod(remaining, SECONDS_PER_MINUTE)
        return f"{minutes}:{seconds:02d}"

    def start(self) -> None:
        """Schedule the tick timer; a running timer is torn down first."""
        if not self.is_active:
            return
        self._cancel_timer()
        if self.remaining_seconds <= 0:
            self._expire()
            return
        self._handle = self._scheduler.schedule_tick(TICK_INTERVAL_MS, self._tick)

    def restart(self, total_seconds: int) -> None:
        """Reset to a new duration; the old timer is cancelled before the new one starts."""
        if not self.is_active:
            return
        self._cancel_timer()
        self.total_seconds = max(total_seconds, 0)
        self.remaining_seconds = self.total_seconds
        self.start()

    def dismiss(self) -> None:
        """Dismiss the alert. Repeated calls and calls after expiry are no-ops."""
        if not self.is_active:
            return
        self._cancel_timer()
        self.state = CountdownStatus.DISMISSED
        logger.info("countdown_dismissed", alert_id=self.alert_id)
        if self._on_dismiss is not None:
            self._on_dismiss(self.alert_id)

    def cancel(self) -> None:
        """Tear down without callbacks (session teardown, queue eviction)."""
        if not self.is_active:
            return
        self._cancel_timer()
        self.state = CountdownStatus.DISMISSED

    def view(self) -> CountdownView:
        return CountdownView(
            alert_id=self.alert_id,
            total_seconds=self.total_seconds,
            remaining_seconds=max(self.remaining_seconds, 0),
            state=self.state,
            progress=self.progress,
            display=self.display,
        )

    def _tick(self) -> None:
        if not self.is_active:
            return
        self.remaining_seconds -= 1
        if self.remaining_seconds <= 0:
            self._expire()

    def _expire(self) -> None:
        self.remaining_seconds = 0
        self._cancel_timer()
        self.state = CountdownStatus.EXPIRED
        logger.info("countdown_expired", alert_id=self.alert_id)
        if self._on_expire is not None:
            self._on_expire(self.alert_id)

    def _cancel_timer(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class SequentialReveal:
    """
    Show a batch of alerts one at a time.

    Expiry or dismissal of the current alert advances to the next one;
    advancing past the last alert closes the reveal.
    """

    def __init__(
        self,
        alerts: Sequence[Alert],
        scheduler: Scheduler,
        on_close: Optional[Callable[[], None]] = None,
    ) -> None:
        self.alerts = list(alerts)
        self.index = 0
        self.closed = not self.alerts
        self._scheduler = scheduler
        self._on_close = on_close
        self._current: Optional[CountdownAlert] = None
        if not self.closed:
            self._show()

    @property
    def current(self) -> Optional[Alert]:
        if self.closed:
            return None
        return self.alerts[self.index]

    @property
    def countdown(self) -> Optional[CountdownAlert]:
        return None if self.closed else self._current

    def dismiss(self) -> None:
        """Dismiss the alert being shown and move on."""
        if self._current is not None:
            self._current.dismiss()

    def advance(self, _alert_id: Optional[str] = None) -> None:
        if self.closed:
            return
        if self.index < len(self.alerts) - 1:
            self.index += 1
            self._show()
        else:
            self.close()

    def close(self) -> None:
        """Cancel the visible countdown and close the reveal. Idempotent."""
        if self.closed:
            return
        if self._current is not None:
            self._current.cancel()
        self.closed = True
        logger.info("reveal_closed", shown=self.index + 1, total=len(self.alerts))
        if self._on_close is not None:
            self._on_close()

    def view(self) -> RevealView:
        countdown = self.countdown
        return RevealView(
            closed=self.closed,
            index=self.index,
            total=len(self.alerts),
            alert=self.current,
            countdown=countdown.view() if countdown is not None else None,
        )

    def _show(self) -> None:
        if self._current is not None:
            self._current.cancel()
        alert = self.alerts[self.index]
        self._current = CountdownAlert(
            alert.id,
            alert.window_seconds,
            self._scheduler,
            on_expire=self.advance,
            on_dismiss=self.advance,
        )
        self._current.start()
