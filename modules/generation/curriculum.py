"""Curriculum reference data (Kazakhstan standard programme) and unit registry."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

OTHER_SUBJECT = "Другой предмет..."

SUBJECTS_BY_CATEGORY: Dict[str, List[str]] = {
    "primary": [
        "Обучение грамоте / Букварь", "Математика", "Казахский язык", "Русский язык",
        "Английский язык", "Цифровая грамотность", "Познание мира", "Естествознание",
        "Музыка", "Художественный труд", "Самопознание", "Физическая культура",
    ],
    "middle_early": [
        "Математика", "Казахский язык", "Казахская литература", "Русский язык",
        "Русская литература", "Английский язык", "История Казахстана", "Всемирная история",
        "География", "Биология", "Информатика", "Естествознание (5 класс)", "Музыка",
        "Художественный труд", "Физическая культура",
    ],
    "middle_late": [
        "Алгебра", "Геометрия", "Информатика", "Физика", "Химия", "Биология", "География",
        "История Казахстана", "Всемирная история", "Казахский язык", "Казахская литература",
        "Русский язык", "Русская литература", "Английский язык", "Основы права (9 класс)",
        "Художественный труд", "Физическая культура",
    ],
    "senior": [
        "Алгебра и начала анализа", "Геометрия", "Информатика", "Физика", "Химия", "Биология",
        "География", "История Казахстана", "Всемирная история", "Казахский язык",
        "Казахская литература", "Русский язык", "Русская литература", "Английский язык",
        "Основы права", "Графика и проектирование", "Основы предпринимательства и бизнеса",
        "Начальная военная и технологическая подготовка", "Физическая культура",
    ],
}

# Taught one hour a week: only unit-level assessment (SOR), never SOCH.
ONE_HOUR_SUBJECTS = frozenset(
    {"Музыка", "Художественный труд", "Самопознание", "Графика и проектирование"}
)

STREAMS = ("ЕМЦ", "ОГН")

GOSO_CONTEXT: Dict[str, str] = {
    "Математика": (
        "Для 1-6 классов - интеграция арифметики и геометрии. С 7 класса - разделение на "
        "Алгебру и Геометрию. 10-11 класс ЕМЦ включает производные, интегралы и комплексные числа."
    ),
    "История Казахстана": (
        "Соблюдай хронологию: Древний мир (саки, гунны), Средневековье (Тюркский каганат, "
        "Золотая Орда, Казахское ханство), Новое и Новейшее время. Акцент на этногенез и "
        "государственность."
    ),
    "Биология": (
        "Соблюдай спиральный принцип: от цитологии в 7-9 классах до молекулярной биологии и "
        "генетики в 10-11 классах ЕМЦ."
    ),
    "Физика": (
        "В 10-11 классах ЕМЦ - упор на квантовую физику, термодинамику и электродинамику с "
        "применением сложного математического аппарата."
    ),
}

INFORMATICS_11_EMC_QUARTERS: Dict[str, str] = {
    "1": (
        "Раздел I: Искусственный интеллект. Темы: Понятие ИИ, тест Тьюринга, биологические и "
        "искусственные нейронные сети, структура нейрона (входы, синапсы, веса, активационная "
        "функция), моделирование простейшего нейрона в Excel (формулы активации, дельта-вес, "
        "скорость обучения), линейная регрессия и прогнозирование в Excel (функции ПРЕДСКАЗ, "
        "ДОВЕРИТ), машинное обучение (с учителем и без), кластеризация."
    ),
    "2": (
        "Разделы II и III: 3D моделирование и Аппаратное обеспечение. Темы: Виртуальная и "
        "дополненная реальностей (VR/AR), виды VR (простой, 3D-модель, многопользовательский), "
        "3D панорамы (плоскостная, сферическая, кубическая, цилиндрическая), программы "
        "(Dermandar, Autostitch, Hugin), виртуальные машины (VirtualBox, VMware, Microsoft "
        "Virtual PC), характеристики и модули мобильных устройств (АКБ, контроллер питания, "
        "CPU, RAM, сенсоры)."
    ),
    "3": (
        "Раздел IV: Интернет вещей. Темы: Понятие и архитектура IoT (уровни приложения, сети, "
        "поддержки, устройства), промышленный и пользовательский IoT, системы 'Умный дом' "
        "(датчики движения, протечки, задымления, умные розетки), симуляция в Cisco Packet "
        "Tracer, разработка мобильных приложений в MIT App Inventor (режимы Дизайнер и Блоки, "
        "работа с компонентами, событиями и сенсором акселерометра)."
    ),
    "4": (
        "Разделы V и VI: IT Startup и Цифровая грамотность. Темы: Понятие Startup, Crowdfunding "
        "(Kickstarter, Starttime.kz), этапы развития стартапа (Pre-seed, Seed, Prototype, Alpha, "
        "Beta), маркетинг и реклама (инфографика, виды рекламы), цифровизация в РК (Big Data, "
        "Smart City), Blockchain (публичный и приватный), правовая защита информации (авторское "
        "и патентное право), ЭЦП (RSA, AUTH_RSA), электронное правительство egov.kz."
    ),
}


@dataclass(slots=True)
class CurriculumUnit:
    """A programme unit with its learning objectives."""

    title: str
    objectives: List[str] = field(default_factory=list)


INFORMATICS_11_UNITS: List[CurriculumUnit] = [
    CurriculumUnit("Раздел I: Искусственный интеллект", [
        "11.3.4.1 Объяснять принципы машинного обучения и нейронных сетей",
        "11.3.4.2 Проектировать нейронную сеть в электронных таблицах",
        "11.3.4.3 Описывать сферы применения ИИ",
    ]),
    CurriculumUnit("Раздел II: 3D моделирование", [
        "11.2.4.1 Объяснять назначение VR и AR",
        "11.2.4.2 Создавать 3D панораму",
        "11.2.4.3 Рассуждать о влиянии VR на здоровье",
    ]),
    CurriculumUnit("Раздел III: Аппаратное обеспечение", [
        "11.1.1.1 Описывать назначение виртуальных машин",
        "11.1.1.2 Сравнивать характеристики мобильных устройств",
    ]),
    CurriculumUnit("Раздел IV: Интернет вещей", [
        "11.1.2.1 Описывать принципы работы IoT",
        "11.1.2.2 Разрабатывать мобильные приложения в конструкторе",
        "11.1.2.3 Создавать проекты умного дома",
    ]),
    CurriculumUnit("Раздел V: IT Startup", [
        "11.4.1.1 Описывать понятие Startup",
        "11.4.1.2 Знать принципы работы Crowdfunding",
        "11.4.2.1 Создавать маркетинговую рекламу",
    ]),
    CurriculumUnit("Раздел VI: Цифровая грамотность", [
        "11.6.1.1 Анализировать тенденции цифровизации",
        "11.6.1.2 Объяснять принципы Blockchain",
        "11.5.1.1 Описывать назначение ЭЦП и сертификата",
    ]),
]


def grade_category(grade: str | int) -> str:
    """Map a school grade (1-11) to its subject-table category."""
    try:
        value = int(grade)
    except (TypeError, ValueError):
        return "senior"
    if 1 <= value <= 4:
        return "primary"
    if 5 <= value <= 6:
        return "middle_early"
    if 7 <= value <= 9:
        return "middle_late"
    return "senior"


def subjects_for_grade(grade: str | int) -> List[str]:
    """Subjects offered for a grade, followed by the custom-subject option."""
    return [*SUBJECTS_BY_CATEGORY[grade_category(grade)], OTHER_SUBJECT]


def all_subjects() -> List[str]:
    """Every subject across grade categories, without duplicates."""
    seen: List[str] = []
    for subjects in SUBJECTS_BY_CATEGORY.values():
        for subject in subjects:
            if subject not in seen:
                seen.append(subject)
    return seen


def is_senior(grade: str | int) -> bool:
    try:
        return int(grade) >= 10
    except (TypeError, ValueError):
        return False


def is_one_hour_subject(subject: str) -> bool:
    return subject in ONE_HOUR_SUBJECTS


def is_informatics_11(subject: str, grade: str | int) -> bool:
    return "Информатика" in (subject or "") and str(grade).strip() == "11"


def parse_units(text: str) -> List[CurriculumUnit]:
    """Read ``{"units": [{"title", "objectives"}]}``; anything malformed gives no units."""
    cleaned = (text or "").strip()
    if cleaned.startswith("```"):
        lines = cleaned.splitlines()
        if lines and lines[0].startswith("```"):
            lines = lines[1:]
        if lines and lines[-1].startswith("```"):
            lines = lines[:-1]
        cleaned = "\n".join(lines).strip()
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        return []
    if not isinstance(data, dict) or not isinstance(data.get("units"), list):
        return []
    return units_from_data(data["units"])


def units_from_data(entries: List[Any]) -> List[CurriculumUnit]:
    """Build units from decoded JSON entries, skipping malformed ones."""
    units: List[CurriculumUnit] = []
    for entry in entries:
        if not isinstance(entry, dict) or not entry.get("title"):
            continue
        objectives = entry.get("objectives") or []
        if not isinstance(objectives, list):
            objectives = []
        units.append(
            CurriculumUnit(
                title=str(entry["title"]),
                objectives=[str(item) for item in objectives if item],
            )
        )
    return units


class CurriculumRegistry:
    """In-memory registry of known programme units, keyed by subject and grade."""

    def __init__(self) -> None:
        self._units: Dict[Tuple[str, str], List[CurriculumUnit]] = {}

    def load_from_file(self, path: Path) -> None:
        """Load units from a JSON file of ``{"subject", "grade", "units"}`` entries."""
        if not path.exists():
            return
        with path.open("r", encoding="utf-8") as fp:
            data = json.load(fp)
        for entry in data:
            self.add(entry["subject"], str(entry["grade"]), units_from_data(entry.get("units", [])))

    def add(self, subject: str, grade: str, units: List[CurriculumUnit]) -> None:
        """Register units for a subject and grade."""
        self._units[(subject, str(grade))] = list(units)

    def get(self, subject: str, grade: str) -> Optional[List[CurriculumUnit]]:
        """Return known units, or None when the programme must be looked up."""
        units = self._units.get((subject, str(grade)))
        if units is not None:
            return list(units)
        if is_informatics_11(subject, grade):
            return list(INFORMATICS_11_UNITS)
        return None


def unit_titles(units: List[CurriculumUnit]) -> List[str]:
    return [unit.title for unit in units]


def objectives_for(units: List[CurriculumUnit], title: str) -> List[str]:
    for unit in units:
        if unit.title == title:
            return list(unit.objectives)
    return []


def units_to_json(units: List[CurriculumUnit]) -> List[Dict[str, Any]]:
    return [{"title": unit.title, "objectives": list(unit.objectives)} for unit in units]
