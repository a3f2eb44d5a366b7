"""Tests for expiry helpers and change signals."""

from __future__ import annotations

from modules.utils.cache import TTLCache, filter_by_age, record_age_ms
from modules.utils.events import Signal


def test_filter_by_age_is_strict_and_ordered():
    records = [
        {"id": "old", "timestamp": 0},
        {"id": "edge", "timestamp": 1},
        {"id": "new", "timestamp": 50},
    ]
    kept = filter_by_age(records, now=100, window_ms=100)
    assert [record["id"] for record in kept] == ["edge", "new"]


def test_record_age_requires_numeric_timestamp():
    assert record_age_ms({"timestamp": 40}, 100) == 60
    assert record_age_ms({}, 100) is None
    assert record_age_ms({"timestamp": "40"}, 100) is None
    assert record_age_ms({"timestamp": True}, 100) is None


def test_ttl_cache_expires_entries():
    now = [1000.0]
    cache: TTLCache[str, int] = TTLCache(ttl_seconds=10, clock=lambda: now[0])
    cache.set("a", 1)
    assert cache.get("a") == 1

    now[0] += 11
    assert cache.get("a") is None


def test_ttl_cache_clear():
    cache: TTLCache[str, int] = TTLCache()
    cache.set("a", 1)
    cache.clear()
    assert cache.get("a") is None


def test_signal_delivers_in_subscription_order():
    signal = Signal("test")
    calls: list[str] = []
    signal.subscribe(lambda: calls.append("first"))
    signal.subscribe(lambda: calls.append("second"))

    signal.emit()
    assert calls == ["first", "second"]
    assert len(signal) == 2


def test_signal_unsubscribe_is_idempotent():
    signal = Signal("test")
    calls: list[str] = []
    unsubscribe = signal.subscribe(lambda: calls.append("x"))

    unsubscribe()
    unsubscribe()
    signal.emit()

    assert calls == []
    assert len(signal) == 0


def test_signal_listener_may_unsubscribe_during_emit():
    signal = Signal("test")
    calls: list[str] = []
    unsubscribers = []

    def once() -> None:
        calls.append("once")
        unsubscribers[0]()

    unsubscribers.append(signal.subscribe(once))
    signal.subscribe(lambda: calls.append("always"))

    signal.emit()
    signal.emit()
    assert calls == ["once", "always", "always"]
