"""
tests/test_alert_queue.py

Unit tests for monitor/services/alert_queue.py.
"""

import pytest

from monitor.schemas import AlertKind, Severity
from monitor.services.alert_queue import AlertQueue
from tests.fixtures import build_alert


def test_push_keeps_newest_first() -> None:
    queue = AlertQueue(cap=5)
    first, second = build_alert(), build_alert(seconds=1)
    queue.push(first)
    queue.push(second)
    assert [a.id for a in queue] == [second.id, first.id]


def test_six_pushes_keep_five_most_recent() -> None:
    queue = AlertQueue(cap=5)
    alerts = [build_alert(seconds=i) for i in range(6)]
    evicted = []
    for alert in alerts:
        evicted.extend(queue.push(alert))

    assert len(queue) == 5
    assert [a.id for a in queue.snapshot()] == [a.id for a in reversed(alerts[1:])]
    assert [a.id for a in evicted] == [alerts[0].id]


def test_remove_specific_alert() -> None:
    queue = AlertQueue()
    keep, drop = build_alert(), build_alert(seconds=1)
    queue.push(keep)
    queue.push(drop)

    removed = queue.remove(drop.id)

    assert removed == drop
    assert drop.id not in queue
    assert queue.snapshot() == [keep]


def test_remove_absent_alert_is_not_an_error() -> None:
    queue = AlertQueue()
    assert queue.remove("missing") is None


def test_clear_empties_queue() -> None:
    queue = AlertQueue()
    for i in range(3):
        queue.push(build_alert(seconds=i))
    removed = queue.clear()
    assert len(removed) == 3
    assert len(queue) == 0


def test_repeated_same_kind_alerts_stack_by_default() -> None:
    queue = AlertQueue()
    queue.push(build_alert(seconds=0))
    queue.push(build_alert(seconds=1))
    assert len(queue) == 2


def test_debounce_suppresses_same_kind_inside_window() -> None:
    queue = AlertQueue(debounce_seconds=60)
    queue.push(build_alert(seconds=0))
    queue.push(build_alert(seconds=30))
    assert len(queue) == 1


def test_debounce_allows_other_kind_and_later_alerts() -> None:
    queue = AlertQueue(debounce_seconds=60)
    queue.push(build_alert(seconds=0))
    queue.push(build_alert(kind=AlertKind.HYPER, severity=Severity.MEDIUM, seconds=10))
    queue.push(build_alert(seconds=61))
    assert len(queue) == 3


def test_cap_must_be_positive() -> None:
    with pytest.raises(ValueError):
        AlertQueue(cap=0)


def test_suppressed_alert_is_not_queued() -> None:
    queue = AlertQueue(cap=1, debounce_seconds=60)
    first, repeat = build_alert(seconds=0), build_alert(seconds=10)
    queue.push(first)

    assert queue.push(repeat) == []
    assert repeat.id not in queue
    assert queue.snapshot() == [first]
