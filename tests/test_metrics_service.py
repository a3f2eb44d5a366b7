"""MetricsService unit tests."""

from __future__ import annotations

import json
import math

import pytest

from modules.services.metrics_service import (
    MANUAL_ESTIMATES,
    METRICS_KEY,
    METRICS_WINDOW_MS,
    GenerationMetric,
    GenerationType,
    MetricsService,
    durations_by_type,
    round_half_up,
)
from modules.services.storage_service import JsonFileStorage, MemoryStorage
from modules.utils.cache import HOUR_MS

START = 1_700_000_000_000


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, now: int = START) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


def build_service(storage: MemoryStorage | None = None, clock: FakeClock | None = None):
    storage = storage or MemoryStorage()
    clock = clock or FakeClock()
    return MetricsService(storage, clock=clock), storage, clock


def test_every_type_has_manual_estimate():
    assert set(MANUAL_ESTIMATES) == set(GenerationType)
    assert MANUAL_ESTIMATES[GenerationType.KSP] == 40
    assert MANUAL_ESTIMATES[GenerationType.COMM] == 10


def test_round_half_up():
    assert round_half_up(108.75) == 109
    assert round_half_up(2.5) == 3
    assert round_half_up(-2.5) == -2
    assert round_half_up(0.49) == 0
    assert math.isnan(round_half_up(math.nan))


def test_empty_store_stats():
    service, _, _ = build_service()
    stats = service.init()

    assert stats.count_24h == 0
    assert stats.time_saved_min == 0
    assert stats.last_gen_duration_sec == 0
    assert stats.last_gen_type is None
    assert stats.recent == []


def test_three_lesson_plans_save_109_minutes():
    service, _, _ = build_service()
    for duration in (30000, 45000, 600000):
        service.record(GenerationType.KSP, duration)

    stats = service.stats()

    assert stats.count_24h == 3
    assert stats.time_saved_min == 109
    assert stats.last_gen_duration_sec == 600
    assert stats.last_gen_type is GenerationType.KSP


def test_time_saved_can_be_negative():
    service, _, _ = build_service()
    service.record("COMM", 15 * 60000)

    assert service.stats().time_saved_min == -5


def test_record_persists_camel_case_payload():
    service, storage, clock = build_service()
    service.record("SOR", 12345)

    payload = json.loads(storage.get(METRICS_KEY))
    assert len(payload) == 1
    record = payload[0]
    assert record["type"] == "SOR"
    assert record["timestamp"] == clock.now
    assert record["durationMs"] == 12345
    assert record["manualEstimateMin"] == 60
    assert record["id"]


def test_record_unknown_type_rejected():
    service, storage, _ = build_service()
    with pytest.raises(ValueError):
        service.record("ESSAY", 1000)
    assert storage.get(METRICS_KEY) is None


def test_window_excludes_records_at_24_hours():
    service, _, clock = build_service()
    service.record("KSP", 1000)
    clock.advance(METRICS_WINDOW_MS - 1)
    assert service.stats().count_24h == 1

    clock.advance(1)
    assert service.stats().count_24h == 0
    assert service.list() == []


def test_list_keeps_insertion_order():
    service, _, clock = build_service()
    service.record("KSP", 1000)
    clock.advance(HOUR_MS)
    service.record("COMM", 2000)

    kinds = [metric.type for metric in service.list()]
    assert kinds == [GenerationType.KSP, GenerationType.COMM]
    assert service.stats().last_gen_type is GenerationType.COMM


def test_write_purges_expired_records():
    service, storage, clock = build_service()
    service.record("KSP", 1000)
    clock.advance(25 * HOUR_MS)
    service.record("SOR", 2000)

    payload = json.loads(storage.get(METRICS_KEY))
    assert [record["type"] for record in payload] == ["SOR"]


def test_subscribers_notified_on_record():
    service, _, _ = build_service()
    calls: list[int] = []
    unsubscribe = service.subscribe(lambda: calls.append(service.stats().count_24h))

    service.record("KSP", 1000)
    unsubscribe()
    service.record("KSP", 1000)

    assert calls == [1]


def test_dispose_detaches_listeners():
    service, _, _ = build_service()
    calls: list[str] = []
    service.subscribe(lambda: calls.append("x"))

    service.dispose()
    service.record("KSP", 1000)

    assert calls == []


def test_corrupt_payload_reads_as_empty():
    storage = MemoryStorage()
    storage.set(METRICS_KEY, "{not json")
    service, _, _ = build_service(storage=storage)

    assert service.stats().count_24h == 0
    service.record("KSP", 1000)
    assert service.stats().count_24h == 1


def test_record_without_timestamp_is_ignored():
    storage = MemoryStorage()
    storage.set(
        METRICS_KEY,
        json.dumps(
            [
                {"id": "a", "type": "KSP", "durationMs": 1000, "manualEstimateMin": 40},
                {"id": "b", "type": "KSP", "timestamp": START, "durationMs": 1000, "manualEstimateMin": 40},
            ]
        ),
    )
    service, _, _ = build_service(storage=storage)

    assert [metric.id for metric in service.list()] == ["b"]


def test_missing_estimate_yields_nan():
    storage = MemoryStorage()
    storage.set(
        METRICS_KEY,
        json.dumps([{"id": "a", "type": "LEGACY", "timestamp": START, "durationMs": 1000}]),
    )
    service, _, _ = build_service(storage=storage)

    stats = service.stats()
    assert stats.count_24h == 1
    assert stats.last_gen_type == "LEGACY"
    assert math.isnan(stats.time_saved_min)


def test_metric_from_dict_round_trip():
    metric = GenerationMetric(
        id="x", type=GenerationType.SOCH, timestamp=START, duration_ms=5000, manual_estimate_min=60
    )
    assert GenerationMetric.from_dict(metric.to_dict()) == metric


def test_durations_by_type():
    service, _, _ = build_service()
    service.record("KSP", 30000)
    service.record("KSP", 15000)
    service.record("COMM", 2000)

    totals = durations_by_type(service.list())
    assert totals == {"KSP": 45.0, "COMM": 2.0}


def test_stats_as_dict_serialises_recent():
    service, _, _ = build_service()
    service.record("ANALYSIS", 6000)

    payload = service.stats().as_dict()
    assert payload["count_24h"] == 1
    assert payload["recent"][0]["durationMs"] == 6000


def test_expired_record_stays_in_storage_until_next_write():
    service, storage, clock = build_service()
    service.record("KSP", 1000)
    clock.advance(METRICS_WINDOW_MS + HOUR_MS)

    assert service.stats().count_24h == 0
    assert len(json.loads(storage.get(METRICS_KEY))) == 1


def test_round_half_up_passes_infinity_through():
    assert round_half_up(math.inf) == math.inf
    assert round_half_up(-math.inf) == -math.inf


def test_infinite_duration_does_not_break_stats():
    storage = MemoryStorage()
    storage.set(
        METRICS_KEY,
        '[{"id": "a", "type": "KSP", "timestamp": %d, "durationMs": Infinity, "manualEstimateMin": 40}]'
        % START,
    )
    service, _, _ = build_service(storage=storage)

    stats = service.stats()
    assert stats.count_24h == 1
    assert stats.time_saved_min == -math.inf
    assert stats.last_gen_duration_sec == math.inf


def test_undecodable_metrics_file_reads_as_empty(tmp_path):
    (tmp_path / f"{METRICS_KEY}.json").write_bytes(b"\xff\xfe[garbage")
    service = MetricsService(JsonFileStorage(tmp_path), clock=FakeClock())

    assert service.list() == []
    assert service.stats().count_24h == 0
