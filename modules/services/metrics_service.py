"""Rolling 24-hour generation metrics and time-saved statistics."""

from __future__ import annotations

import logging
import math
import uuid
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from modules.services.storage_service import KeyValueStorage, read_records, write_records
from modules.utils.cache import HOUR_MS, filter_by_age, now_ms
from modules.utils.events import Listener, Signal

logger = logging.getLogger(__name__)

METRICS_KEY = "ustaz_ai_metrics"
METRICS_WINDOW_MS = 24 * HOUR_MS


class GenerationType(str, Enum):
    """Document kinds produced by a generation call."""

    KSP = "KSP"
    SOR = "SOR"
    SOCH = "SOCH"
    ANALYSIS = "ANALYSIS"
    COMM = "COMM"


# Minutes of manual work each document kind replaces.
MANUAL_ESTIMATES: Dict[GenerationType, int] = {
    GenerationType.KSP: 40,
    GenerationType.SOR: 60,
    GenerationType.SOCH: 60,
    GenerationType.ANALYSIS: 30,
    GenerationType.COMM: 10,
}

_missing_estimates = [member.value for member in GenerationType if member not in MANUAL_ESTIMATES]
if _missing_estimates:
    raise RuntimeError(f"MANUAL_ESTIMATES has no entry for: {', '.join(_missing_estimates)}")

Number = Union[int, float]


def _number(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return math.nan
    return float(value)


def round_half_up(value: float) -> Number:
    """Round to the nearest integer with halves going up; ``nan`` and infinities pass through."""
    if not math.isfinite(value):
        return value
    return int(math.floor(value + 0.5))


@dataclass(frozen=True, slots=True)
class GenerationMetric:
    """One completed generation call."""

    id: str
    type: Union[GenerationType, str, None]
    timestamp: float
    duration_ms: float
    manual_estimate_min: float

    @property
    def saved_min(self) -> float:
        return self.manual_estimate_min - self.duration_ms / 60000

    def to_dict(self) -> Dict[str, Any]:
        kind = self.type.value if isinstance(self.type, GenerationType) else self.type
        return {
            "id": self.id,
            "type": kind,
            "timestamp": self.timestamp,
            "durationMs": self.duration_ms,
            "manualEstimateMin": self.manual_estimate_min,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GenerationMetric":
        """Decode a persisted record without validating it.

        Missing numeric fields become ``nan`` and an unknown type is kept as
        the raw value, so older or hand-edited records still read back.
        """
        raw_type = data.get("type")
        try:
            kind: Union[GenerationType, str, None] = GenerationType(raw_type)
        except ValueError:
            kind = raw_type
        return cls(
            id=str(data.get("id", "")),
            type=kind,
            timestamp=_number(data.get("timestamp")),
            duration_ms=_number(data.get("durationMs")),
            manual_estimate_min=_number(data.get("manualEstimateMin")),
        )


@dataclass(slots=True)
class MetricsStats:
    """Aggregate view over the rolling window."""

    count_24h: int = 0
    time_saved_min: Number = 0
    last_gen_duration_sec: Number = 0
    last_gen_type: Optional[GenerationType | str] = None
    recent: List[GenerationMetric] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["recent"] = [metric.to_dict() for metric in self.recent]
        return payload


class MetricsService:
    """Append-only generation metrics over a key-value slot."""

    def __init__(
        self,
        storage: KeyValueStorage,
        clock: Callable[[], int] = now_ms,
        window_ms: int = METRICS_WINDOW_MS,
        key: str = METRICS_KEY,
    ) -> None:
        self.storage = storage
        self.clock = clock
        self.window_ms = window_ms
        self.key = key
        self.changed = Signal("metrics changed")

    def init(self) -> MetricsStats:
        """Load the current window and return its statistics."""
        stats = self.stats()
        logger.info(
            "Metrics loaded: %d generations in window, %s min saved",
            stats.count_24h,
            stats.time_saved_min,
        )
        return stats

    def dispose(self) -> None:
        """Detach every listener."""
        self.changed.clear()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` after each write; returns the unsubscribe function."""
        return self.changed.subscribe(listener)

    def _visible_records(self) -> List[Mapping[str, Any]]:
        return filter_by_age(read_records(self.storage, self.key), self.clock(), self.window_ms)

    def record(self, kind: GenerationType | str, duration_ms: float) -> None:
        """Append one completed generation and notify subscribers."""
        kind = GenerationType(kind)
        metric = GenerationMetric(
            id=uuid.uuid4().hex,
            type=kind,
            timestamp=self.clock(),
            duration_ms=duration_ms,
            manual_estimate_min=MANUAL_ESTIMATES.get(kind, math.nan),
        )
        records = [dict(item) for item in self._visible_records()]
        records.append(metric.to_dict())
        write_records(self.storage, self.key, records)
        logger.info("Recorded %s generation in %.0f ms", kind.value, duration_ms)
        self.changed.emit()

    def list(self) -> List[GenerationMetric]:
        """Metrics younger than the window, oldest first."""
        return [GenerationMetric.from_dict(item) for item in self._visible_records()]

    def stats(self) -> MetricsStats:
        recent = self.list()
        total_saved = sum((metric.saved_min for metric in recent), 0.0)
        last = recent[-1] if recent else None
        return MetricsStats(
            count_24h=len(recent),
            time_saved_min=round_half_up(total_saved),
            last_gen_duration_sec=round_half_up(last.duration_ms / 1000) if last else 0,
            last_gen_type=last.type if last else None,
            recent=recent,
        )


def durations_by_type(recent: List[GenerationMetric]) -> Dict[str, float]:
    """Seconds of generation time per document kind."""
    totals: Dict[str, float] = {}
    for metric in recent:
        kind = metric.type.value if isinstance(metric.type, GenerationType) else str(metric.type)
        totals[kind] = totals.get(kind, 0.0) + metric.duration_ms / 1000
    return totals
