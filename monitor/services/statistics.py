"""
monitor/services/statistics.py

Dashboard counters and summary figures over a session's readings.
"""

from collections.abc import Sequence

import numpy as np

from monitor.constants import CHART_WINDOW_SIZE
from monitor.schemas import GlucoseStats, GlucoseStatus, Reading


class StatsCounter:
    """
    Running counters updated once per submitted reading.

    total counts every reading, urgent counts highs, monitor counts lows.
    urgent_streak counts consecutive out-of-range readings and resets on
    a normal one.
    """

    def __init__(self) -> None:
        self.total = 0
        self.urgent = 0
        self.monitor = 0
        self.urgent_streak = 0

    def record(self, status: GlucoseStatus) -> None:
        self.total += 1
        if status is GlucoseStatus.HIGH:
            self.urgent += 1
            self.urgent_streak += 1
        elif status is GlucoseStatus.LOW:
            self.monitor += 1
            self.urgent_streak += 1
        else:
            self.urgent_streak = 0

    def reset(self) -> None:
        self.total = self.urgent = self.monitor = self.urgent_streak = 0


def summarize_readings(
    readings_ascending: Sequence[Reading],
    counter: StatsCounter | None = None,
) -> GlucoseStats:
    """Average, maximum and latest value plus the chart window of recent readings."""
    stats = GlucoseStats()
    if counter is not None:
        stats.total = counter.total
        stats.urgent = counter.urgent
        stats.monitor = counter.monitor
        stats.urgent_streak = counter.urgent_streak

    if not readings_ascending:
        return stats

    values = np.array([reading.value for reading in readings_ascending], dtype=float)
    stats.average = round(float(values.mean()), 2)
    stats.maximum = float(values.max())
    stats.latest = float(values[-1])
    stats.chart = list(readings_ascending[-CHART_WINDOW_SIZE:])
    return stats
