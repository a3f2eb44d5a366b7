"""Efficiency dashboard figures and markdown rendering."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Sequence, Tuple

from modules.services.history_service import StoredItem
from modules.services.metrics_service import (
    GenerationType,
    MetricsStats,
    durations_by_type,
    round_half_up,
)

TYPE_LABELS: Dict[str, str] = {
    GenerationType.KSP.value: "КСП",
    GenerationType.SOR.value: "СОР",
    GenerationType.SOCH.value: "СОЧ",
    GenerationType.ANALYSIS.value: "Анализ",
    GenerationType.COMM.value: "Сообщение",
}


def type_label(kind: object) -> str:
    value = kind.value if isinstance(kind, GenerationType) else str(kind)
    return TYPE_LABELS.get(value, value)


def format_saved_time(minutes: float) -> str:
    """``2ч 5м`` above an hour, ``45м`` otherwise."""
    if isinstance(minutes, float) and not math.isfinite(minutes):
        return "—"
    minutes = int(minutes)
    if minutes > 60:
        return f"{minutes // 60}ч {minutes % 60}м"
    return f"{minutes}м"


@dataclass(slots=True)
class EfficiencySummary:
    time_saved_min: float
    count_24h: int
    total_ai_sec: float
    total_manual_min: float
    average_ai_sec: float
    active_documents: int
    seconds_by_type: Dict[str, float] = field(default_factory=dict)

    @property
    def total_ai_min(self) -> float:
        return round_half_up(self.total_ai_sec / 60 * 10) / 10


def summarize(stats: MetricsStats, history: Sequence[StoredItem]) -> EfficiencySummary:
    total_ai_sec = sum(metric.duration_ms / 1000 for metric in stats.recent)
    total_manual_min = sum(metric.manual_estimate_min for metric in stats.recent)
    return EfficiencySummary(
        time_saved_min=stats.time_saved_min,
        count_24h=stats.count_24h,
        total_ai_sec=total_ai_sec,
        total_manual_min=total_manual_min,
        average_ai_sec=round_half_up(total_ai_sec / (stats.count_24h or 1)),
        active_documents=len(history),
        seconds_by_type=durations_by_type(stats.recent),
    )


def render_header(stats: MetricsStats) -> str:
    return f"**Сэкономлено за 24ч:** {format_saved_time(stats.time_saved_min)}"


def render_dashboard(summary: EfficiencySummary) -> str:
    lines = [
        "### Эффективность за 24 часа",
        "",
        "| Показатель | Значение |",
        "|---|---|",
        f"| Сэкономлено времени | {format_saved_time(summary.time_saved_min)} |",
        f"| Работ сгенерировано | {summary.count_24h} |",
        f"| Средняя скорость ИИ | ~{summary.average_ai_sec} сек |",
        f"| Ручной труд (оценка) | {summary.total_manual_min:g} мин |",
        f"| Время ИИ | {summary.total_ai_min:g} мин |",
        f"| Активные файлы (3ч) | {summary.active_documents} |",
    ]
    if summary.seconds_by_type:
        lines += ["", "| Тип документа | Время ИИ, сек |", "|---|---|"]
        for kind, seconds in sorted(summary.seconds_by_type.items()):
            lines.append(f"| {type_label(kind)} | {round_half_up(seconds)} |")
    return "\n".join(lines)


def history_choices(items: Sequence[StoredItem]) -> List[Tuple[str, str]]:
    """Dropdown ``(label, id)`` pairs, newest first."""
    choices: List[Tuple[str, str]] = []
    for item in items:
        try:
            stamp = datetime.fromtimestamp(item.timestamp / 1000).strftime("%H:%M")
        except (OverflowError, ValueError, OSError):
            stamp = ""
        parts = [type_label(item.type), item.topic or "", item.subject or "", stamp]
        label = " · ".join(part for part in parts if part)
        choices.append((label, item.id))
    return choices
