"""Instruction templates for each document kind."""

from __future__ import annotations

from typing import Optional, Sequence

from modules.generation.curriculum import (
    GOSO_CONTEXT,
    INFORMATICS_11_EMC_QUARTERS,
    is_informatics_11,
)

SCANNED_WORK_PROMPT = (
    "Ты — эксперт по проверке СОР/СОЧ в Казахстане.\n"
    "Проанализируй скан работы ученика. Сверь ответы с дескрипторами Приказа №130.\n"
    "Выставь баллы по каждому заданию, укажи ошибки и дай рекомендации для ученика."
)


def curriculum_prompt(subject: str, grade: str) -> str:
    return (
        f'Предоставь официальное КТП Республики Казахстан для предмета "{subject}", {grade} класс.\n'
        'Верни JSON объект строго в формате: { "units": [{ "title": "Название раздела", '
        '"objectives": ["Код и описание цели обучения"] }] }\n'
        "Используй только актуальные цели обучения (ЦО) из типовой программы РК."
    )


def lesson_plan_prompt(
    subject: str,
    topic: str,
    grade: str,
    unit: str = "",
    objectives: str = "",
    teacher_name: str = "",
    lesson_date: str = "",
) -> str:
    lines = [
        "Составь КСП (Краткосрочный план урока) по Приказу №130 РК.",
        f"Предмет: {subject}, Тема: {topic}, Класс: {grade}.",
    ]
    if unit:
        lines.append(f"Раздел: {unit}.")
    if objectives.strip():
        lines.append(f"Цели обучения: {objectives.strip()}")
    if teacher_name:
        lines.append(f"Учитель: {teacher_name}.")
    if lesson_date:
        lines.append(f"Дата: {lesson_date}.")
    lines.append(
        "Разделы: Цели обучения, Критерии оценивания, Ход урока (Начало, Середина, Конец), "
        "Дифференциация, Оценивание, Здоровье и техника безопасности."
    )
    lines.append("Оформление: Табличный вид в Markdown.")
    return "\n".join(lines)


def _subject_context(subject: str, grade: str, stream: Optional[str], quarter: str) -> str:
    context = GOSO_CONTEXT.get(subject, "")
    if is_informatics_11(subject, grade) and stream == "ЕМЦ":
        quarter_info = INFORMATICS_11_EMC_QUARTERS.get(quarter or "1", "")
        context += f"\nВАЖНО (СПЕЦИФИКА УЧЕБНИКА 11 ЕМЦ): {quarter_info}"
    return context


def assessment_prompt(
    kind: str,
    subject: str,
    grade: str,
    unit: str,
    objectives: Sequence[str],
    stream: Optional[str] = None,
    quarter: str = "1",
) -> str:
    """Instruction for a summative assessment (SOR for a unit, SOCH for a quarter)."""
    is_sor = kind == "SOR"
    scope = f"Раздел: {unit}" if is_sor else "Тип: Итоговая работа за четверть (СОЧ)"
    goals = "; ".join(objectives) if objectives else "Используй стандартные за эту четверть"
    total = "12-15 баллов" if is_sor else "СТРОГО 25 баллов (не больше и не меньше)"
    table_total = "12-15" if is_sor else "25"
    return f"""СТРОГОЕ ЗАДАНИЕ: Составь документ {kind} (Суммативное оценивание) по стандартам Республики Казахстан.

ПАРАМЕТРЫ:
- Предмет: {subject}
- Класс: {grade}
- Направление: {stream or 'Общее'}
- Четверть: {quarter or '1'}
- {scope}
- Цели обучения: {goals}

ДОПОЛНИТЕЛЬНЫЙ КОНТЕКСТ ГОСО: {_subject_context(subject, grade, stream, quarter)}

ТРЕБОВАНИЯ К ОФОРМЛЕНИЮ (ПРИКАЗ №130):
1. ОБЩИЙ БАЛЛ: {total}.
2. УРОВНИ МЫШЛЕНИЯ: Знание и понимание (30%), Применение (40%), Навыки высокого порядка (30%).
3. СТРУКТУРА В MARKDOWN:
   - Спецификация суммативного оценивания (таблица: цели, уровни, время, баллы). Сумма баллов в таблице должна быть ровно {table_total}.
   - Текст заданий: МВО (тесты), задания с кратким ответом, задания с развернутым ответом.
   - Схема выставления баллов (таблица с дескрипторами для каждого задания).

ЯЗЫК: Русский. Тон: Официально-педагогический."""


def results_analysis_prompt(stats: str, comment: Optional[str] = None) -> str:
    return (
        "Проведи педагогический анализ результатов (Приказ №130 РК).\n"
        f"Статистические данные: {stats}.\n"
        f"Комментарий учителя: {comment or 'нет'}.\n\n"
        "Выдай отчет в формате Markdown:\n"
        "1. Таблица успеваемости (ФИО не нужны, только цифры).\n"
        "2. Анализ наиболее часто допускаемых ошибок.\n"
        "3. Список целей обучения, требующих повторения.\n"
        "4. Конкретный план коррекционной работы (мероприятия)."
    )


def parent_message_prompt(student_name: str, issue: str, positive: str) -> str:
    return (
        f"Напиши корректное, вежливое сообщение родителю ученика по имени {student_name}.\n"
        f"Начни с похвалы ({positive}), затем аккуратно упомяни проблему ({issue}) "
        "и предложи способ решения."
    )
