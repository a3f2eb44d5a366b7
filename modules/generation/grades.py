"""Class result statistics fed into the analysis prompts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List


def _percent(part: int, total: int) -> int:
    if total <= 0:
        return 0
    return int(part * 100 / total + 0.5)


@dataclass(slots=True)
class MarkCounts:
    """How many students received each mark on the 5-point scale."""

    five: int = 0
    four: int = 0
    three: int = 0
    two: int = 0

    def __post_init__(self) -> None:
        for name in ("five", "four", "three", "two"):
            if getattr(self, name) < 0:
                raise ValueError(f"Mark count '{name}' cannot be negative")

    @property
    def total(self) -> int:
        return self.five + self.four + self.three + self.two

    @property
    def quality_percent(self) -> int:
        """Share of "5" and "4" marks."""
        return _percent(self.five + self.four, self.total)

    @property
    def success_percent(self) -> int:
        """Share of passing marks ("5", "4" and "3")."""
        return _percent(self.five + self.four + self.three, self.total)

    def summary(self) -> str:
        return (
            f"5: {self.five}, 4: {self.four}, 3: {self.three}, 2: {self.two}, "
            f"Итого: {self.total}, Качество: {self.quality_percent}%, "
            f"Успеваемость: {self.success_percent}%"
        )


@dataclass(slots=True)
class ScoreEntry:
    points: int
    count: int


@dataclass(slots=True)
class ScoreDistribution:
    """Points distribution for a SOR/SOCH sitting."""

    kind: str
    grade: str
    total_students: int
    absent_students: int = 0
    entries: List[ScoreEntry] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.total_students < 0 or self.absent_students < 0:
            raise ValueError("Student counts cannot be negative")
        if self.absent_students > self.total_students:
            raise ValueError("Absent students cannot exceed class size")
        if any(entry.count < 0 or entry.points < 0 for entry in self.entries):
            raise ValueError("Score entries cannot be negative")

    @property
    def present_students(self) -> int:
        return self.total_students - self.absent_students

    def summary(self) -> str:
        scores = ", ".join(f"{entry.points}б:{entry.count}чел" for entry in self.entries)
        return (
            f"Тип: {self.kind}, Класс: {self.grade}, Всего: {self.total_students}, "
            f"Отсутствует: {self.absent_students}, Распределение баллов: {scores}"
        )
