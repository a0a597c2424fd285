"""
monitor/services/reading_store.py

Ordered in-memory readings for one monitoring session.
Persistence lives behind the DataStore protocol (see persistence.py).
"""

import bisect
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Optional

from monitor.schemas import Reading


def _sort_key(timestamp: datetime) -> datetime:
    # Naive timestamps are stored as UTC
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp


class ReadingStore:
    """
    Readings kept in ascending timestamp order.

    insert() places a reading after every entry with an equal or earlier
    timestamp; existing entries are never reordered.
    """

    def __init__(self, readings: Iterable[Reading] = ()) -> None:
        self._readings: list[Reading] = []
        self._keys: list[datetime] = []
        for reading in readings:
            self.insert(reading)

    def __len__(self) -> int:
        return len(self._readings)

    def insert(self, reading: Reading) -> int:
        """Insert a reading and return its position in ascending order."""
        key = _sort_key(reading.timestamp)
        position = bisect.bisect_right(self._keys, key)
        self._keys.insert(position, key)
        self._readings.insert(position, reading)
        return position

    def ascending(self) -> list[Reading]:
        return list(self._readings)

    def newest_first(self) -> list[Reading]:
        return list(reversed(self._readings))

    def latest(self) -> Optional[Reading]:
        return self._readings[-1] if self._readings else None

    def values(self) -> list[float]:
        """Glucose values in ascending time order."""
        return [reading.value for reading in self._readings]

    def clear(self) -> None:
        self._readings.clear()
        self._keys.clear()
