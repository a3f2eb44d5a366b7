"""Document generation façade: validate, prompt, call, record."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from config.settings import AppConfig
from modules.generation import prompts
from modules.generation.client import Attachment, GenerationClient, GenerationRequest
from modules.generation.curriculum import (
    STREAMS,
    CurriculumRegistry,
    CurriculumUnit,
    is_one_hour_subject,
    is_senior,
    parse_units,
)
from modules.generation.grades import MarkCounts, ScoreDistribution
from modules.services.history_service import DraftItem, GenerationHistoryService, StoredItem
from modules.services.metrics_service import GenerationType, MetricsService
from modules.utils.cache import TTLCache

logger = logging.getLogger(__name__)

DEFAULT_PRAISE = "в целом старается"
QUARTERS = ("1", "2", "3", "4")


class ValidationError(ValueError):
    """Required input is missing; no generation call is made."""


@dataclass(slots=True)
class LessonPlanRequest:
    subject: str
    topic: str
    grade: str
    unit: str = ""
    objectives: str = ""
    teacher_name: str = ""
    lesson_date: str = ""


@dataclass(slots=True)
class AssessmentRequest:
    kind: str
    subject: str
    grade: str
    quarter: str = "1"
    unit: str = ""
    objectives: List[str] = field(default_factory=list)
    stream: Optional[str] = None
    one_hour: bool = False


@dataclass(slots=True)
class GenerationResult:
    """A successful generation and the history entry it produced."""

    kind: GenerationType
    content: str
    duration_ms: int
    item: StoredItem


def _require(value: Optional[str], message: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationError(message)
    return cleaned


class DocumentService:
    """Builds prompts for each document kind and records successful results."""

    def __init__(
        self,
        config: AppConfig,
        client: GenerationClient,
        metrics: MetricsService,
        history: GenerationHistoryService,
        curriculum: Optional[CurriculumRegistry] = None,
        timer: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.config = config
        self.client = client
        self.metrics = metrics
        self.history = history
        self.curriculum = curriculum or CurriculumRegistry()
        self._curriculum_cache: TTLCache[tuple[str, str], List[CurriculumUnit]] = TTLCache(
            ttl_seconds=config.curriculum_cache_seconds
        )
        self._timer = timer

    def _run(
        self,
        kind: GenerationType,
        request: GenerationRequest,
        draft: Callable[[str], DraftItem],
    ) -> GenerationResult:
        start = self._timer()
        content = self.client.generate(request)
        duration_ms = int(round((self._timer() - start) * 1000))
        self.metrics.record(kind, duration_ms)
        item = self.history.save(draft(content))
        return GenerationResult(kind=kind, content=content, duration_ms=duration_ms, item=item)

    # Curriculum --------------------------------------------------------------
    def fetch_curriculum(self, subject: str, grade: str) -> List[CurriculumUnit]:
        """Programme units for a subject; looked up through the model when unknown."""
        subject = _require(subject, "Укажите предмет.")
        grade = str(grade).strip()
        known = self.curriculum.get(subject, grade)
        if known is not None:
            return known

        cached = self._curriculum_cache.get((subject, grade))
        if cached is not None:
            return list(cached)

        text = self.client.generate(
            GenerationRequest(
                prompt=prompts.curriculum_prompt(subject, grade),
                tier="fast",
                response_mime_type="application/json",
            )
        )
        units = parse_units(text)
        if units:
            self._curriculum_cache.set((subject, grade), units)
        else:
            logger.warning("Curriculum lookup for %s, grade %s returned no units", subject, grade)
        return units

    # Lesson plans ------------------------------------------------------------
    def generate_lesson_plan(self, request: LessonPlanRequest) -> GenerationResult:
        if not (request.subject or "").strip() or not (request.topic or "").strip():
            raise ValidationError("Пожалуйста, выберите тему из списка или укажите вручную.")
        subject = request.subject.strip()
        topic = request.topic.strip()
        prompt = prompts.lesson_plan_prompt(
            subject=subject,
            topic=topic,
            grade=request.grade,
            unit=request.unit,
            objectives=request.objectives,
            teacher_name=request.teacher_name or "Учитель",
            lesson_date=request.lesson_date,
        )
        return self._run(
            GenerationType.KSP,
            GenerationRequest(prompt=prompt, tier="pro", thinking_budget=self.config.thinking_budget),
            lambda content: DraftItem(
                type=GenerationType.KSP.value,
                topic=topic,
                subject=subject,
                grade=request.grade,
                content=content,
            ),
        )

    # Summative assessment ----------------------------------------------------
    def resolve_assessment_kind(self, request: AssessmentRequest) -> GenerationType:
        """SOCH is not held for one-hour-a-week subjects; those get a SOR."""
        try:
            kind = GenerationType(request.kind)
        except ValueError:
            kind = None
        if kind not in (GenerationType.SOR, GenerationType.SOCH):
            raise ValidationError(f"Неизвестный тип оценивания: {request.kind}")
        if kind is GenerationType.SOCH and (request.one_hour or is_one_hour_subject(request.subject)):
            return GenerationType.SOR
        return kind

    def generate_assessment(self, request: AssessmentRequest) -> GenerationResult:
        subject = _require(request.subject, "Укажите предмет.")
        kind = self.resolve_assessment_kind(request)
        quarter = request.quarter if request.quarter in QUARTERS else "1"
        stream = None
        if is_senior(request.grade):
            stream = request.stream if request.stream in STREAMS else STREAMS[0]

        if kind is GenerationType.SOR:
            if not request.objectives:
                raise ValidationError("Выберите хотя бы одну цель обучения для СОР!")
            unit = request.unit
            objectives = list(request.objectives)
            topic = unit
        else:
            unit = "Итоговый за четверть"
            objectives = []
            topic = f"{quarter}-я четверть"

        prompt = prompts.assessment_prompt(
            kind=kind.value,
            subject=subject,
            grade=request.grade,
            unit=unit,
            objectives=objectives,
            stream=stream,
            quarter=quarter,
        )
        return self._run(
            kind,
            GenerationRequest(prompt=prompt, tier="pro", thinking_budget=self.config.thinking_budget),
            lambda content: DraftItem(
                type=kind.value,
                topic=topic,
                subject=subject,
                grade=request.grade,
                content=content,
            ),
        )

    # Analysis ----------------------------------------------------------------
    def analyze_marks(self, counts: MarkCounts, comment: Optional[str] = None) -> GenerationResult:
        """Pedagogical report for a class mark distribution."""
        if counts.total == 0:
            raise ValidationError("Введите количество оценок.")
        # Recorded as ANALYSIS (30 min), not SOR; see the analysis-type decision in DESIGN.md.
        prompt = prompts.results_analysis_prompt(counts.summary(), comment)
        return self._run(
            GenerationType.ANALYSIS,
            GenerationRequest(prompt=prompt, tier="fast"),
            lambda content: DraftItem(
                type=GenerationType.ANALYSIS.value,
                topic=f"Анализ результатов (качество {counts.quality_percent}%)",
                subject="",
                grade="",
                content=content,
            ),
        )

    def analyze_scores(self, distribution: ScoreDistribution) -> GenerationResult:
        """Report for a SOR/SOCH points distribution."""
        if not distribution.entries:
            raise ValidationError("Добавьте хотя бы один балл.")
        prompt = prompts.results_analysis_prompt(distribution.summary())
        return self._run(
            GenerationType.ANALYSIS,
            GenerationRequest(prompt=prompt, tier="fast"),
            lambda content: DraftItem(
                type=GenerationType.ANALYSIS.value,
                topic=f"Анализ {distribution.kind}",
                subject="",
                grade=distribution.grade,
                content=content,
            ),
        )

    def analyze_scanned_work(
        self, data: Optional[bytes], mime_type: Optional[str], filename: str = ""
    ) -> GenerationResult:
        """Check a scanned student paper against the marking descriptors."""
        if not data:
            raise ValidationError("Загрузите скан работы.")
        mime_type = _require(mime_type, "Не удалось определить тип файла.")
        return self._run(
            GenerationType.ANALYSIS,
            GenerationRequest(
                prompt=prompts.SCANNED_WORK_PROMPT,
                tier="fast",
                attachment=Attachment(data=data, mime_type=mime_type),
            ),
            lambda content: DraftItem(
                type=GenerationType.ANALYSIS.value,
                topic=filename or "Скан работы",
                subject="",
                grade="",
                content=content,
            ),
        )

    # Communication -----------------------------------------------------------
    def draft_parent_message(
        self, student_name: str, issue: str, positive: str = ""
    ) -> GenerationResult:
        name = _require(student_name, "Укажите имя ученика.")
        issue = _require(issue, "Опишите суть проблемы.")
        prompt = prompts.parent_message_prompt(name, issue, positive.strip() or DEFAULT_PRAISE)
        return self._run(
            GenerationType.COMM,
            GenerationRequest(prompt=prompt, tier="fast"),
            lambda content: DraftItem(
                type=GenerationType.COMM.value,
                topic=name,
                subject="",
                grade="",
                content=content,
            ),
        )
