"""
monitor/services/trend.py

Short-term trend from the two most recent readings.
"""

from collections.abc import Sequence

from monitor.constants import DEFAULT_TREND_MARGIN
from monitor.schemas import Reading, Trend


def estimate_trend(
    readings_newest_first: Sequence[Reading],
    margin: float = DEFAULT_TREND_MARGIN,
) -> Trend:
    """
    Compare the latest reading with the previous one.

    Changes inside the +/- margin band are reported as stable so that
    sensor noise does not flip the trend back and forth.
    """
    if len(readings_newest_first) < 2:
        return Trend.STABLE

    latest = readings_newest_first[0].value
    previous = readings_newest_first[1].value

    if latest > previous + margin:
        return Trend.UP
    if latest < previous - margin:
        return Trend.DOWN
    return Trend.STABLE
