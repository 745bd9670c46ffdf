"""
Statistics data models.

All structures here are derived from lesson records on demand and are
never persisted on their own. Field names are used verbatim as export
column keys, so keep them stable.
"""

from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional

from src.models.lesson import LessonRecord


@dataclass(frozen=True)
class LessonStats:
    """
    Aggregate over a window of lessons.

    Hours are decimal hours, currency values are decimal amounts and
    completion_rate is an integer percentage. Only completed lessons
    contribute hours and income.

    Attributes:
        total_lessons: Lessons in the window (all statuses)
        completed_lessons: Completed lessons
        planned_lessons: Planned lessons
        cancelled_lessons: Cancelled lessons
        total_hours: Hours of completed lessons
        online_hours: Completed hours taught online
        offline_hours: Completed hours taught offline
        gross_income: Sum of duration * hourly_rate over completed lessons
        tax_deduction: gross_income * tax rate
        net_income: gross_income - tax_deduction
        unique_students: Distinct student names in the window
        completion_rate: round(100 * completed / total), 0 for an empty window
        average_hourly_rate: net_income / total_hours, 0 without hours
        most_cancelled_student: Student with most cancellations, or None
    """

    total_lessons: int = 0
    completed_lessons: int = 0
    planned_lessons: int = 0
    cancelled_lessons: int = 0
    total_hours: float = 0.0
    online_hours: float = 0.0
    offline_hours: float = 0.0
    gross_income: float = 0.0
    tax_deduction: float = 0.0
    net_income: float = 0.0
    unique_students: int = 0
    completion_rate: int = 0
    average_hourly_rate: float = 0.0
    most_cancelled_student: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class LessonIncome:
    """Income split of a single lesson."""

    gross_income: float
    tax_deduction: float
    net_income: float


@dataclass(frozen=True)
class YearlyStats:
    """
    Year overview: one LessonStats per calendar month plus totals.

    Attributes:
        year: Calendar year
        monthly: Twelve LessonStats, January first
        summary: LessonStats over the whole year
        average_monthly_income: Net income divided by 12
    """

    year: int
    monthly: List[LessonStats]
    summary: LessonStats
    average_monthly_income: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "year": self.year,
            "monthly": [stats.to_dict() for stats in self.monthly],
            "summary": self.summary.to_dict(),
            "average_monthly_income": self.average_monthly_income
        }


@dataclass(frozen=True)
class StudentSummary:
    """Per-student totals across all time."""

    student_name: str
    total_lessons: int
    completed_lessons: int
    cancelled_lessons: int
    total_hours: float
    net_income: float
    average_hourly_rate: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class DailySummary:
    """Lessons of one day ordered by start time, with hour totals."""

    day: date
    lessons: List[LessonRecord] = field(default_factory=list)
    total_hours: float = 0.0
    completed_hours: float = 0.0
    planned_hours: float = 0.0
