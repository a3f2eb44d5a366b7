"""Dashboard formatting tests."""

from __future__ import annotations

import math

from modules.services.history_service import StoredItem
from modules.services.metrics_service import GenerationMetric, GenerationType, MetricsStats
from modules.ui.dashboard import (
    format_saved_time,
    history_choices,
    render_dashboard,
    render_header,
    summarize,
    type_label,
)


def metric(kind: GenerationType, duration_ms: float, estimate: float) -> GenerationMetric:
    return GenerationMetric(
        id=kind.value, type=kind, timestamp=0, duration_ms=duration_ms, manual_estimate_min=estimate
    )


def test_format_saved_time():
    assert format_saved_time(45) == "45м"
    assert format_saved_time(60) == "60м"
    assert format_saved_time(125) == "2ч 5м"
    assert format_saved_time(-3) == "-3м"
    assert format_saved_time(math.nan) == "—"


def test_type_label_falls_back_to_raw_value():
    assert type_label(GenerationType.SOCH) == "СОЧ"
    assert type_label("KSP") == "КСП"
    assert type_label("LEGACY") == "LEGACY"


def test_summarize_totals():
    recent = [
        metric(GenerationType.KSP, 30000, 40),
        metric(GenerationType.COMM, 90000, 10),
    ]
    stats = MetricsStats(count_24h=2, time_saved_min=48, recent=recent)

    summary = summarize(stats, history=[])

    assert summary.total_ai_sec == 120
    assert summary.total_ai_min == 2
    assert summary.total_manual_min == 50
    assert summary.average_ai_sec == 60
    assert summary.seconds_by_type == {"KSP": 30.0, "COMM": 90.0}


def test_render_dashboard_and_header():
    stats = MetricsStats(count_24h=1, time_saved_min=39, recent=[metric(GenerationType.KSP, 30000, 40)])
    text = render_dashboard(summarize(stats, history=[]))

    assert "| Сэкономлено времени | 39м |" in text
    assert "| КСП | 30 |" in text
    assert render_header(stats) == "**Сэкономлено за 24ч:** 39м"


def test_empty_dashboard_has_no_type_table():
    text = render_dashboard(summarize(MetricsStats(), history=[]))
    assert "Тип документа" not in text
    assert "| Работ сгенерировано | 0 |" in text


def test_history_choices_label_and_value():
    item = StoredItem(
        id="abc",
        type="SOR",
        topic="Давление",
        subject="Физика",
        grade="7",
        content="...",
        timestamp=1_700_000_000_000,
    )
    label, value = history_choices([item])[0]

    assert value == "abc"
    assert label.startswith("СОР · Давление · Физика · ")


def test_history_choices_tolerates_out_of_range_timestamp():
    item = StoredItem(
        id="far", type="KSP", topic="Тема", subject="", grade="", content="", timestamp=1e20
    )
    label, value = history_choices([item])[0]

    assert value == "far"
    assert label == "КСП · Тема"


def test_infinite_saved_time_renders_dash():
    assert format_saved_time(-math.inf) == "—"
    stats = MetricsStats(count_24h=1, time_saved_min=-math.inf)
    assert render_header(stats) == "**Сэкономлено за 24ч:** —"
