"""
monitor/errors.py

Error taxonomy for the alert engine.
Routers translate these into HTTP responses; nothing else escapes the core.
"""


class MonitorError(Exception):
    """Base class for all alert engine errors."""


class InvalidReading(MonitorError):
    """A glucose value is non-finite or outside the physiological range."""

    def __init__(self, value: object) -> None:
        super().__init__(f"invalid glucose reading: {value!r}")
        self.value = value


class InvalidThresholdConfig(MonitorError):
    """Low threshold is not strictly below the high threshold."""


class StoreError(MonitorError):
    """The backing data store call failed. Not retried."""


class NetworkError(MonitorError):
    """An AI service call failed, timed out, or returned a non-2xx status."""

    def __init__(self, service: str, detail: str) -> None:
        super().__init__(f"{service}: {detail}")
        self.service = service
        self.detail = detail
