"""Callback implementations for the Gradio interface."""

from __future__ import annotations

import logging
import mimetypes
from datetime import date
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence

from modules.generation.curriculum import (
    OTHER_SUBJECT,
    is_one_hour_subject,
    is_senior,
    objectives_for,
    subjects_for_grade,
    unit_titles,
)
from modules.generation.grades import MarkCounts, ScoreDistribution, ScoreEntry
from modules.generation.service import (
    AssessmentRequest,
    GenerationResult,
    LessonPlanRequest,
    ValidationError,
)
from modules.services.session import Session
from modules.ui.dashboard import history_choices, render_dashboard, render_header, summarize

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "Ошибка при генерации. Попробуйте еще раз."


def build_callbacks(session: Session) -> dict[str, Any]:
    """Return a dictionary of Gradio callback functions."""

    documents = session.documents

    def _final_subject(subject: str, custom_subject: str) -> str:
        if subject == OTHER_SUBJECT:
            return (custom_subject or "").strip()
        return (subject or "").strip()

    def _to_int(value: Any, default: int = 0) -> int:
        if value in ("", None):
            return default
        try:
            return int(float(value))
        except (TypeError, ValueError):
            return default

    def _run(action: Callable[[], GenerationResult]) -> tuple[Optional[str], str]:
        try:
            result = action()
        except ValidationError as exc:
            return None, f"⚠️ {exc}"
        except Exception:  # noqa: BLE001
            logger.exception("Document generation failed")
            return None, GENERIC_FAILURE
        seconds = round(result.duration_ms / 1000)
        return result.content, f"Готово за {seconds} сек."

    def on_grade_change(grade: str) -> tuple[List[str], str, bool]:
        subjects = subjects_for_grade(grade)
        return subjects, subjects[0], is_senior(grade)

    def on_subject_change(subject: str) -> bool:
        return is_one_hour_subject(subject or "")

    def on_load_curriculum(subject: str, custom_subject: str, grade: str) -> tuple[List[str], str]:
        final_subject = _final_subject(subject, custom_subject)
        if not final_subject:
            return [], "Укажите предмет."
        try:
            units = documents.fetch_curriculum(final_subject, grade)
        except Exception:  # noqa: BLE001
            logger.exception("Curriculum lookup failed for %s", final_subject)
            return [], "Не удалось загрузить КТП."
        if not units:
            return [], "Цели обучения не найдены. Укажите тему вручную."
        return unit_titles(units), f"Загружено разделов: {len(units)}."

    def on_select_unit(subject: str, custom_subject: str, grade: str, unit: str) -> List[str]:
        final_subject = _final_subject(subject, custom_subject)
        if not final_subject or not unit:
            return []
        try:
            units = documents.fetch_curriculum(final_subject, grade)
        except Exception:  # noqa: BLE001
            logger.exception("Curriculum lookup failed for %s", final_subject)
            return []
        return objectives_for(units, unit)

    def on_generate_ksp(
        grade: str,
        subject: str,
        custom_subject: str,
        topic: str,
        unit: str,
        objectives: Sequence[str] | str,
        teacher_name: str,
        lesson_date: str,
    ) -> tuple[Optional[str], str]:
        if isinstance(objectives, str):
            objective_text = objectives
        else:
            objective_text = "\n".join(objectives or [])
        request = LessonPlanRequest(
            subject=_final_subject(subject, custom_subject),
            topic=topic or "",
            grade=str(grade),
            unit=unit or "",
            objectives=objective_text,
            teacher_name=teacher_name or "",
            lesson_date=lesson_date or date.today().isoformat(),
        )
        return _run(lambda: documents.generate_lesson_plan(request))

    def on_generate_assessment(
        kind: str,
        grade: str,
        subject: str,
        quarter: str,
        stream: str,
        one_hour: bool,
        unit: str,
        objectives: Sequence[str],
    ) -> tuple[Optional[str], str]:
        request = AssessmentRequest(
            kind=kind,
            subject=subject or "",
            grade=str(grade),
            quarter=str(quarter),
            unit=unit or "",
            objectives=list(objectives or []),
            stream=stream or None,
            one_hour=bool(one_hour),
        )
        return _run(lambda: documents.generate_assessment(request))

    def on_mark_indicators(five: Any, four: Any, three: Any, two: Any) -> str:
        try:
            counts = MarkCounts(_to_int(five), _to_int(four), _to_int(three), _to_int(two))
        except ValueError as exc:
            return f"⚠️ {exc}"
        return f"**Качество:** {counts.quality_percent}%  ·  **Успеваемость:** {counts.success_percent}%"

    def on_analyze_marks(
        five: Any, four: Any, three: Any, two: Any, comment: str
    ) -> tuple[Optional[str], str]:
        def _action() -> GenerationResult:
            try:
                counts = MarkCounts(_to_int(five), _to_int(four), _to_int(three), _to_int(two))
            except ValueError as exc:
                raise ValidationError(str(exc)) from exc
            return documents.analyze_marks(counts, comment or None)

        return _run(_action)

    def _score_entries(rows: Any) -> List[ScoreEntry]:
        if rows is None:
            return []
        if hasattr(rows, "values") and hasattr(rows, "columns"):
            rows = rows.values.tolist()
        entries: List[ScoreEntry] = []
        for row in rows:
            if not row or len(row) < 2 or row[0] in ("", None) or row[1] in ("", None):
                continue
            entries.append(ScoreEntry(points=_to_int(row[0]), count=_to_int(row[1])))
        return entries

    def on_analyze_scores(
        kind: str, grade: str, total_students: Any, absent_students: Any, rows: Any
    ) -> tuple[Optional[str], str]:
        def _action() -> GenerationResult:
            try:
                distribution = ScoreDistribution(
                    kind=kind,
                    grade=str(grade),
                    total_students=_to_int(total_students),
                    absent_students=_to_int(absent_students),
                    entries=_score_entries(rows),
                )
            except ValueError as exc:
                raise ValidationError(str(exc)) from exc
            return documents.analyze_scores(distribution)

        return _run(_action)

    def on_analyze_scan(file_path: Optional[str]) -> tuple[Optional[str], str]:
        def _action() -> GenerationResult:
            if not file_path:
                raise ValidationError("Загрузите скан работы.")
            path = Path(file_path)
            mime_type, _ = mimetypes.guess_type(path.name)
            return documents.analyze_scanned_work(path.read_bytes(), mime_type, path.name)

        return _run(_action)

    def on_draft_message(student_name: str, issue: str, positive: str) -> tuple[Optional[str], str]:
        return _run(
            lambda: documents.draft_parent_message(student_name or "", issue or "", positive or "")
        )

    def on_refresh() -> tuple[str, str, list[tuple[str, str]]]:
        snapshot = session.refresh()
        summary = summarize(snapshot.stats, snapshot.history)
        return (
            render_dashboard(summary),
            render_header(snapshot.stats),
            history_choices(snapshot.history),
        )

    def on_open_history(item_id: Optional[str]) -> str:
        if not item_id:
            return ""
        item = session.history.get(item_id)
        if item is None:
            return "Документ больше не доступен (хранится 3 часа)."
        return item.content or ""

    return {
        "on_grade_change": on_grade_change,
        "on_subject_change": on_subject_change,
        "on_load_curriculum": on_load_curriculum,
        "on_select_unit": on_select_unit,
        "on_generate_ksp": on_generate_ksp,
        "on_generate_assessment": on_generate_assessment,
        "on_mark_indicators": on_mark_indicators,
        "on_analyze_marks": on_analyze_marks,
        "on_analyze_scores": on_analyze_scores,
        "on_analyze_scan": on_analyze_scan,
        "on_draft_message": on_draft_message,
        "on_refresh": on_refresh,
        "on_open_history": on_open_history,
    }
