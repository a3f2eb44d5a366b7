"""Gradio layout composition for the teacher assistant."""

from __future__ import annotations

from typing import Any, Optional

try:
    import gradio as gr
except ImportError:  # pragma: no cover
    gr = None  # type: ignore

from config.settings import AppConfig
from modules.generation.curriculum import STREAMS, all_subjects, subjects_for_grade
from modules.services.session import Session
from modules.ui.callbacks import build_callbacks

GRADES = [str(grade) for grade in range(1, 12)]
QUARTERS = ["1", "2", "3", "4"]


def build_app(config: AppConfig, session: Optional[Session] = None) -> Any:
    """Compose and return the Gradio application."""
    if gr is None:
        raise RuntimeError("Gradio не установлен, выполните установку зависимостей.")

    session = session or Session(config).init()
    cb = build_callbacks(session)

    def _choices_update(choices: list) -> Any:
        return gr.update(choices=choices, value=choices[0] if choices else None)

    def _refresh() -> tuple[str, str, Any]:
        dashboard, header, history = cb["on_refresh"]()
        return dashboard, header, gr.update(choices=history)

    def _grade_subjects(grade: str) -> Any:
        subjects, default_subject, _ = cb["on_grade_change"](grade)
        return gr.update(choices=subjects, value=default_subject)

    def _load_units(subject: str, custom: str, grade: str) -> tuple[Any, str]:
        titles, message = cb["on_load_curriculum"](subject, custom, grade)
        return _choices_update(titles), message

    def _select_unit_objectives(subject: str, custom: str, grade: str, unit: str) -> Any:
        objectives = cb["on_select_unit"](subject, custom, grade, unit)
        return gr.update(choices=objectives, value=[])

    def _select_unit_text(subject: str, custom: str, grade: str, unit: str) -> str:
        return "\n".join(cb["on_select_unit"](subject, custom, grade, unit))

    with gr.Blocks(title="Ustaz-AI") as demo:
        with gr.Row():
            gr.Markdown("## Ustaz-AI · помощник учителя")
            header = gr.Markdown()

        # Дашборд
        with gr.Tab("Дашборд"):
            dashboard = gr.Markdown()
            refresh_btn = gr.Button("Обновить")

        # Генератор КСП
        with gr.Tab("Генератор КСП"):
            with gr.Row():
                with gr.Column():
                    ksp_grade = gr.Dropdown(label="Класс обучения", choices=GRADES, value="7")
                    initial_subjects = subjects_for_grade("7")
                    ksp_subject = gr.Dropdown(
                        label="Предмет", choices=initial_subjects, value=initial_subjects[0]
                    )
                    ksp_custom = gr.Textbox(label="Другой предмет", placeholder="Название предмета")
                    ksp_unit = gr.Dropdown(label="Раздел", choices=[], allow_custom_value=True)
                    ksp_curriculum_status = gr.Markdown()
                    ksp_topic = gr.Textbox(label="Тема урока")
                    ksp_objectives = gr.Textbox(label="Цели обучения", lines=4)
                    with gr.Row():
                        ksp_teacher = gr.Textbox(label="ФИО педагога")
                        ksp_date = gr.Textbox(label="Дата", placeholder="ГГГГ-ММ-ДД")
                    ksp_btn = gr.Button("Сгенерировать КСП", variant="primary")
                with gr.Column():
                    ksp_status = gr.Markdown("Готово к работе.")
                    ksp_result = gr.Markdown()

        # СОР / СОЧ
        with gr.Tab("СОР / СОЧ"):
            with gr.Tab("Генератор"):
                with gr.Row():
                    with gr.Column():
                        sor_kind = gr.Radio(label="Тип", choices=["SOR", "SOCH"], value="SOR")
                        with gr.Row():
                            sor_grade = gr.Dropdown(label="Класс", choices=GRADES, value="7")
                            sor_quarter = gr.Dropdown(label="Четверть", choices=QUARTERS, value="1")
                        sor_one_hour = gr.Checkbox(
                            label="Предмет ведется 1 час в неделю (СОЧ не проводится)", value=False
                        )
                        sor_stream = gr.Radio(
                            label="Направление", choices=list(STREAMS), value=STREAMS[0], visible=False
                        )
                        subjects = all_subjects()
                        sor_subject = gr.Dropdown(
                            label="Предмет",
                            choices=subjects,
                            value="Информатика" if "Информатика" in subjects else subjects[0],
                        )
                        sor_unit = gr.Dropdown(label="Раздел", choices=[], allow_custom_value=True)
                        sor_curriculum_status = gr.Markdown()
                        sor_objectives = gr.CheckboxGroup(label="Цели обучения (ЦО)", choices=[])
                        sor_btn = gr.Button("Сгенерировать (Приказ №130)", variant="primary")
                    with gr.Column():
                        sor_status = gr.Markdown("Готово к работе.")
                        sor_result = gr.Markdown()

            with gr.Tab("Анализ (Ведомость)"):
                with gr.Row():
                    with gr.Column():
                        scores_kind = gr.Radio(label="Тип", choices=["SOR", "SOCH"], value="SOR")
                        scores_grade = gr.Dropdown(label="Класс", choices=GRADES, value="7")
                        with gr.Row():
                            scores_total = gr.Number(label="Учеников в классе", value=25, precision=0)
                            scores_absent = gr.Number(label="Отсутствовало", value=0, precision=0)
                        scores_table = gr.Dataframe(
                            headers=["Балл", "Учеников"],
                            datatype=["number", "number"],
                            value=[[15, 5]],
                            row_count=(1, "dynamic"),
                            col_count=(2, "fixed"),
                            type="array",
                            label="Распределение баллов",
                        )
                        scores_btn = gr.Button("Сформировать анализ", variant="primary")
                    with gr.Column():
                        scores_status = gr.Markdown("Готово к работе.")
                        scores_result = gr.Markdown()

        # Анализ оценок
        with gr.Tab("Анализ оценок"):
            with gr.Row():
                with gr.Column():
                    with gr.Row():
                        mark_five = gr.Number(label='Оценка "5"', value=5, precision=0)
                        mark_four = gr.Number(label='Оценка "4"', value=10, precision=0)
                        mark_three = gr.Number(label='Оценка "3"', value=3, precision=0)
                        mark_two = gr.Number(label='Оценка "2"', value=0, precision=0)
                    marks_comment = gr.Textbox(label="Комментарий учителя", lines=3)
                    marks_indicators = gr.Markdown()
                    marks_btn = gr.Button("Сформировать анализ", variant="primary")
                with gr.Column():
                    marks_status = gr.Markdown("Готово к работе.")
                    marks_result = gr.Markdown()

        # Проверка скана
        with gr.Tab("Проверка работы"):
            with gr.Row():
                with gr.Column():
                    scan_file = gr.File(
                        label="Скан работы (изображение или PDF)",
                        type="filepath",
                        file_types=["image", ".pdf"],
                    )
                    scan_btn = gr.Button("Проверить", variant="primary")
                with gr.Column():
                    scan_status = gr.Markdown("Готово к работе.")
                    scan_result = gr.Markdown()

        # Коммуникатор
        with gr.Tab("Коммуникатор"):
            with gr.Row():
                with gr.Column():
                    msg_name = gr.Textbox(label="Имя ученика")
                    msg_issue = gr.Textbox(label="Суть проблемы", lines=3)
                    msg_positive = gr.Textbox(label="За что похвалить", placeholder="в целом старается")
                    msg_btn = gr.Button("Сгенерировать сообщение", variant="primary")
                with gr.Column():
                    msg_status = gr.Markdown("Готово к работе.")
                    msg_result = gr.Markdown()

        # История
        with gr.Tab("История (3ч)"):
            history_select = gr.Dropdown(label="Документы", choices=[])
            history_content = gr.Markdown()

        refresh_outputs = [dashboard, header, history_select]
        timer = gr.Timer(value=config.refresh_seconds)
        timer.tick(fn=_refresh, outputs=refresh_outputs)
        refresh_btn.click(fn=_refresh, outputs=refresh_outputs)
        demo.load(fn=_refresh, outputs=refresh_outputs)

        ksp_grade.change(fn=_grade_subjects, inputs=[ksp_grade], outputs=[ksp_subject])
        for trigger in (ksp_subject.change, ksp_custom.submit, ksp_grade.change):
            trigger(
                fn=_load_units,
                inputs=[ksp_subject, ksp_custom, ksp_grade],
                outputs=[ksp_unit, ksp_curriculum_status],
            )
        ksp_unit.change(
            fn=_select_unit_text,
            inputs=[ksp_subject, ksp_custom, ksp_grade, ksp_unit],
            outputs=[ksp_objectives],
        )
        ksp_btn.click(
            fn=cb["on_generate_ksp"],
            inputs=[
                ksp_grade,
                ksp_subject,
                ksp_custom,
                ksp_topic,
                ksp_unit,
                ksp_objectives,
                ksp_teacher,
                ksp_date,
            ],
            outputs=[ksp_result, ksp_status],
        ).then(fn=_refresh, outputs=refresh_outputs)

        sor_grade.change(
            fn=lambda grade: gr.update(visible=cb["on_grade_change"](grade)[2]),
            inputs=[sor_grade],
            outputs=[sor_stream],
        )
        sor_subject.change(fn=cb["on_subject_change"], inputs=[sor_subject], outputs=[sor_one_hour])
        for trigger in (sor_subject.change, sor_grade.change):
            trigger(
                fn=_load_units,
                inputs=[sor_subject, gr.State(""), sor_grade],
                outputs=[sor_unit, sor_curriculum_status],
            )
        sor_unit.change(
            fn=_select_unit_objectives,
            inputs=[sor_subject, gr.State(""), sor_grade, sor_unit],
            outputs=[sor_objectives],
        )
        sor_btn.click(
            fn=cb["on_generate_assessment"],
            inputs=[
                sor_kind,
                sor_grade,
                sor_subject,
                sor_quarter,
                sor_stream,
                sor_one_hour,
                sor_unit,
                sor_objectives,
            ],
            outputs=[sor_result, sor_status],
        ).then(fn=_refresh, outputs=refresh_outputs)

        scores_btn.click(
            fn=cb["on_analyze_scores"],
            inputs=[scores_kind, scores_grade, scores_total, scores_absent, scores_table],
            outputs=[scores_result, scores_status],
        ).then(fn=_refresh, outputs=refresh_outputs)

        mark_inputs = [mark_five, mark_four, mark_three, mark_two]
        for field in mark_inputs:
            field.change(fn=cb["on_mark_indicators"], inputs=mark_inputs, outputs=[marks_indicators])
        demo.load(fn=cb["on_mark_indicators"], inputs=mark_inputs, outputs=[marks_indicators])
        marks_btn.click(
            fn=cb["on_analyze_marks"],
            inputs=[*mark_inputs, marks_comment],
            outputs=[marks_result, marks_status],
        ).then(fn=_refresh, outputs=refresh_outputs)

        scan_btn.click(
            fn=cb["on_analyze_scan"],
            inputs=[scan_file],
            outputs=[scan_result, scan_status],
        ).then(fn=_refresh, outputs=refresh_outputs)

        msg_btn.click(
            fn=cb["on_draft_message"],
            inputs=[msg_name, msg_issue, msg_positive],
            outputs=[msg_result, msg_status],
        ).then(fn=_refresh, outputs=refresh_outputs)

        history_select.change(
            fn=cb["on_open_history"], inputs=[history_select], outputs=[history_content]
        )

    return demo
