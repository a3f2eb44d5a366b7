"""DocumentService tests with a stub generation client."""

from __future__ import annotations

import json
from typing import Optional

import pytest

from config.settings import AppConfig
from modules.generation.client import GenerationError, GenerationRequest
from modules.generation.curriculum import CurriculumRegistry, CurriculumUnit
from modules.generation.grades import MarkCounts, ScoreDistribution, ScoreEntry
from modules.generation.service import (
    AssessmentRequest,
    DocumentService,
    LessonPlanRequest,
    ValidationError,
)
from modules.services.history_service import GenerationHistoryService
from modules.services.metrics_service import GenerationType, MetricsService
from modules.services.storage_service import MemoryStorage

START = 1_700_000_000_000


class DummyClient:
    """Stub generation client capturing requests."""

    def __init__(self, reply: str = "# Документ") -> None:
        self.reply = reply
        self.requests: list[GenerationRequest] = []
        self.should_fail = False

    def generate(self, request: GenerationRequest, backend: Optional[str] = None) -> str:
        self.requests.append(request)
        if self.should_fail:
            raise GenerationError("backend failed")
        return self.reply


class StepTimer:
    """perf_counter stand-in advancing by a fixed step per call."""

    def __init__(self, step: float) -> None:
        self.value = 0.0
        self.step = step

    def __call__(self) -> float:
        current = self.value
        self.value += self.step
        return current


def build_service(client: DummyClient | None = None, step: float = 2.5):
    storage = MemoryStorage()
    clock = lambda: START  # noqa: E731
    metrics = MetricsService(storage, clock=clock)
    history = GenerationHistoryService(storage, clock=clock)
    client = client or DummyClient()
    service = DocumentService(
        AppConfig(thinking_budget=1234),
        client,
        metrics,
        history,
        curriculum=CurriculumRegistry(),
        timer=StepTimer(step),
    )
    return service, client, metrics, history


def test_lesson_plan_records_metric_and_history():
    service, client, metrics, history = build_service()

    result = service.generate_lesson_plan(
        LessonPlanRequest(subject="Физика", topic="Закон Ома", grade="8")
    )

    assert result.kind is GenerationType.KSP
    assert result.content == "# Документ"
    assert result.duration_ms == 2500
    request = client.requests[0]
    assert request.tier == "pro"
    assert request.thinking_budget == 1234
    stats = metrics.stats()
    assert stats.count_24h == 1
    assert stats.last_gen_type is GenerationType.KSP
    stored = history.list()
    assert [(item.type, item.topic, item.subject) for item in stored] == [("KSP", "Закон Ома", "Физика")]
    assert stored[0].id == result.item.id


def test_lesson_plan_requires_topic():
    service, client, metrics, history = build_service()

    with pytest.raises(ValidationError, match="выберите тему"):
        service.generate_lesson_plan(LessonPlanRequest(subject="Физика", topic=" ", grade="8"))

    assert client.requests == []
    assert metrics.stats().count_24h == 0
    assert history.list() == []


def test_failed_generation_records_nothing():
    client = DummyClient()
    client.should_fail = True
    service, _, metrics, history = build_service(client)

    with pytest.raises(GenerationError):
        service.draft_parent_message("Арман", "опаздывает")

    assert metrics.stats().count_24h == 0
    assert history.list() == []


def test_sor_requires_objectives():
    service, client, _, _ = build_service()
    with pytest.raises(ValidationError, match="хотя бы одну цель"):
        service.generate_assessment(
            AssessmentRequest(kind="SOR", subject="Физика", grade="8", unit="Раздел 1")
        )
    assert client.requests == []


def test_sor_stores_unit_as_topic():
    service, client, metrics, history = build_service()
    service.generate_assessment(
        AssessmentRequest(
            kind="SOR",
            subject="Физика",
            grade="8",
            unit="Тепловые явления",
            objectives=["8.3.1.1 Объяснять"],
        )
    )

    assert "12-15 баллов" in client.requests[0].prompt
    assert metrics.stats().last_gen_type is GenerationType.SOR
    assert history.list()[0].topic == "Тепловые явления"


def test_soch_uses_quarter_topic():
    service, client, _, history = build_service()
    result = service.generate_assessment(
        AssessmentRequest(kind="SOCH", subject="Физика", grade="8", quarter="3")
    )

    assert result.kind is GenerationType.SOCH
    assert "СТРОГО 25 баллов" in client.requests[0].prompt
    item = history.list()[0]
    assert item.type == "SOCH"
    assert item.topic == "3-я четверть"


def test_soch_downgraded_for_one_hour_subject():
    service, client, _, _ = build_service()
    result = service.generate_assessment(
        AssessmentRequest(kind="SOCH", subject="Музыка", grade="5", objectives=["5.1.1.1 Петь"])
    )
    assert result.kind is GenerationType.SOR
    assert "12-15 баллов" in client.requests[0].prompt


def test_unknown_assessment_kind_rejected():
    service, _, _, _ = build_service()
    with pytest.raises(ValidationError):
        service.generate_assessment(AssessmentRequest(kind="KSP", subject="Физика", grade="8"))


def test_senior_assessment_defaults_to_emc_stream():
    service, client, _, _ = build_service()
    service.generate_assessment(
        AssessmentRequest(kind="SOCH", subject="Информатика", grade="11", quarter="1", stream="")
    )
    prompt = client.requests[0].prompt
    assert "Направление: ЕМЦ" in prompt
    assert "Искусственный интеллект" in prompt


def test_analyses_use_analysis_type():
    service, _, metrics, history = build_service()
    service.analyze_marks(MarkCounts(five=5, four=10, three=3, two=0), "слабая тема дроби")
    service.analyze_scores(
        ScoreDistribution(
            kind="SOR", grade="7", total_students=25, entries=[ScoreEntry(points=15, count=5)]
        )
    )
    service.analyze_scanned_work(b"%PDF-1.4", "application/pdf", "work.pdf")

    kinds = {metric.type for metric in metrics.list()}
    assert kinds == {GenerationType.ANALYSIS}
    assert [item.topic for item in history.list()] == [
        "work.pdf",
        "Анализ SOR",
        "Анализ результатов (качество 83%)",
    ]


def test_analysis_inputs_validated():
    service, client, _, _ = build_service()
    with pytest.raises(ValidationError):
        service.analyze_marks(MarkCounts())
    with pytest.raises(ValidationError):
        service.analyze_scores(ScoreDistribution(kind="SOR", grade="7", total_students=20))
    with pytest.raises(ValidationError):
        service.analyze_scanned_work(b"", "image/png")
    assert client.requests == []


def test_scanned_work_sends_attachment():
    service, client, _, _ = build_service()
    service.analyze_scanned_work(b"\x89PNG", "image/png", "scan.png")

    attachment = client.requests[0].attachment
    assert attachment is not None
    assert attachment.mime_type == "image/png"
    assert attachment.data == b"\x89PNG"


def test_parent_message_default_praise():
    service, client, metrics, history = build_service()
    service.draft_parent_message("Арман", "не сдает домашние задания")

    assert "в целом старается" in client.requests[0].prompt
    assert metrics.stats().last_gen_type is GenerationType.COMM
    assert history.list()[0].topic == "Арман"


def test_fetch_curriculum_uses_registry_first():
    service, client, _, _ = build_service()
    service.curriculum.add("Физика", "9", [CurriculumUnit("Механика", ["9.1"])])

    units = service.fetch_curriculum("Физика", "9")

    assert units[0].title == "Механика"
    assert client.requests == []


def test_fetch_curriculum_looks_up_and_caches():
    client = DummyClient(json.dumps({"units": [{"title": "Раздел 1", "objectives": ["7.1.1.1"]}]}))
    service, _, metrics, history = build_service(client)

    first = service.fetch_curriculum("Химия", "7")
    second = service.fetch_curriculum("Химия", "7")

    assert first == second == [CurriculumUnit("Раздел 1", ["7.1.1.1"])]
    assert len(client.requests) == 1
    assert client.requests[0].response_mime_type == "application/json"
    assert metrics.stats().count_24h == 0
    assert history.list() == []


def test_fetch_curriculum_does_not_cache_empty_result():
    client = DummyClient("not json")
    service, _, _, _ = build_service(client)

    assert service.fetch_curriculum("Химия", "7") == []
    assert service.fetch_curriculum("Химия", "7") == []
    assert len(client.requests) == 2
