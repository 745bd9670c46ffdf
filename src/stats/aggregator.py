"""
Lesson statistics aggregation.

Rolls a collection of lesson records up into time, income and completion
figures for a window (day, month, year, student or everything). Every
call recomputes from the records it is given; nothing is cached and the
input is never modified.

Sums are accumulated unrounded and rounded half away from zero to two
places only when the result is built.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Callable, Iterable, List, Optional

from src.models.lesson import LessonRecord, LessonStatus, TeachingMethod
from src.models.stats import (
    DailySummary,
    LessonIncome,
    LessonStats,
    StudentSummary,
    YearlyStats,
)
from src.scheduling.date_utils import to_date
from src.scheduling.time_utils import round_half_up


logger = logging.getLogger(__name__)


class WindowKind(Enum):
    """Kinds of aggregation window."""
    DAY = "day"
    MONTH = "month"
    YEAR = "year"
    STUDENT = "student"
    ALL = "all"


@dataclass(frozen=True)
class StatsWindow:
    """
    Filter applied to lessons before aggregation.

    Build with the class methods rather than the constructor.

    Examples:
        >>> StatsWindow.month(2024, 5)
        >>> StatsWindow.student("Alice")
    """

    kind: WindowKind
    day_value: Optional[date] = None
    year_value: Optional[int] = None
    month_value: Optional[int] = None
    student_name: Optional[str] = None

    @classmethod
    def day(cls, value) -> "StatsWindow":
        return cls(WindowKind.DAY, day_value=to_date(value))

    @classmethod
    def month(cls, year: int, month: int) -> "StatsWindow":
        if not 1 <= month <= 12:
            raise ValueError(f"Month must be between 1 and 12, got {month}")
        return cls(WindowKind.MONTH, year_value=year, month_value=month)

    @classmethod
    def year(cls, year: int) -> "StatsWindow":
        return cls(WindowKind.YEAR, year_value=year)

    @classmethod
    def student(cls, name: str) -> "StatsWindow":
        return cls(WindowKind.STUDENT, student_name=name)

    @classmethod
    def all(cls) -> "StatsWindow":
        return cls(WindowKind.ALL)

    def matches(self, lesson: LessonRecord) -> bool:
        """Whether a lesson falls inside this window."""
        if self.kind == WindowKind.DAY:
            return lesson.date == self.day_value
        if self.kind == WindowKind.MONTH:
            return (lesson.date.year, lesson.date.month) == (self.year_value, self.month_value)
        if self.kind == WindowKind.YEAR:
            return lesson.date.year == self.year_value
        if self.kind == WindowKind.STUDENT:
            return lesson.student_name == self.student_name
        return True

    def select(self, lessons: Iterable[LessonRecord]) -> List[LessonRecord]:
        return [lesson for lesson in lessons if self.matches(lesson)]

    @property
    def label(self) -> str:
        if self.kind == WindowKind.DAY:
            return self.day_value.isoformat()
        if self.kind == WindowKind.MONTH:
            return f"{self.year_value}-{self.month_value:02d}"
        if self.kind == WindowKind.YEAR:
            return str(self.year_value)
        if self.kind == WindowKind.STUDENT:
            return self.student_name
        return "all"


def _most_cancelled(lessons: List[LessonRecord]) -> Optional[str]:
    """Student with most cancellations; ties go to the first one seen."""
    counts = Counter()
    for lesson in lessons:
        if lesson.status == LessonStatus.CANCELLED:
            counts[lesson.student_name] += 1

    best, best_count = None, 0
    # Counter preserves insertion order, so strict > keeps the first on ties
    for name, count in counts.items():
        if count > best_count:
            best, best_count = name, count
    return best


def summarize(lessons: List[LessonRecord], tax_rate_percent: float) -> LessonStats:
    """
    Aggregate an already filtered list of lessons.

    Args:
        lessons: Lessons to aggregate (all statuses)
        tax_rate_percent: Tax percentage, e.g. 10 for 10%

    Returns:
        LessonStats; a zeroed record for an empty list
    """
    completed = planned = cancelled = 0
    total_hours = online_hours = offline_hours = gross = 0.0

    for lesson in lessons:
        if lesson.status == LessonStatus.PLANNED:
            planned += 1
        elif lesson.status == LessonStatus.CANCELLED:
            cancelled += 1
        elif lesson.status == LessonStatus.COMPLETED:
            completed += 1
            total_hours += lesson.duration
            gross += lesson.duration * lesson.hourly_rate
            if lesson.teaching_method == TeachingMethod.ONLINE:
                online_hours += lesson.duration
            else:
                offline_hours += lesson.duration

    tax = gross * tax_rate_percent / 100
    net = gross - tax
    total = len(lessons)

    return LessonStats(
        total_lessons=total,
        completed_lessons=completed,
        planned_lessons=planned,
        cancelled_lessons=cancelled,
        total_hours=round_half_up(total_hours),
        online_hours=round_half_up(online_hours),
        offline_hours=round_half_up(offline_hours),
        gross_income=round_half_up(gross),
        tax_deduction=round_half_up(tax),
        net_income=round_half_up(net),
        unique_students=len({lesson.student_name for lesson in lessons}),
        completion_rate=int(round_half_up(100 * completed / total, 0)) if total else 0,
        average_hourly_rate=round_half_up(net / total_hours) if total_hours > 0 else 0.0,
        most_cancelled_student=_most_cancelled(lessons)
    )


def aggregate(
    lessons: Iterable[LessonRecord],
    window: StatsWindow,
    tax_rate_percent: float
) -> LessonStats:
    """
    Filter lessons by a window and aggregate them.

    Args:
        lessons: All lesson records (not modified)
        window: Day, month, year, student or all-time window
        tax_rate_percent: Tax percentage from the user's settings

    Returns:
        LessonStats for the window

    Examples:
        >>> stats = aggregate(lessons, StatsWindow.month(2024, 5), 10)
        >>> stats.net_income
        270.0
    """
    selected = window.select(lessons)
    logger.debug(f"Aggregating {len(selected)} lessons for window {window.label}")
    return summarize(selected, tax_rate_percent)


def lesson_income(lesson: LessonRecord, tax_rate_percent: float) -> LessonIncome:
    """Gross, tax and net income of one lesson (zero unless completed)."""
    gross = lesson.income
    tax = gross * tax_rate_percent / 100
    return LessonIncome(
        gross_income=round_half_up(gross),
        tax_deduction=round_half_up(tax),
        net_income=round_half_up(gross - tax)
    )


def yearly_report(
    lessons: Iterable[LessonRecord],
    year: int,
    tax_rate_percent: float
) -> YearlyStats:
    """
    Twelve monthly aggregates plus a whole-year aggregate.

    The yearly summary is computed from the raw records, not by adding
    up rounded monthly figures.
    """
    yearly = StatsWindow.year(year).select(lessons)
    monthly = [
        aggregate(yearly, StatsWindow.month(year, month), tax_rate_percent)
        for month in range(1, 13)
    ]
    summary = summarize(yearly, tax_rate_percent)
    return YearlyStats(
        year=year,
        monthly=monthly,
        summary=summary,
        average_monthly_income=round_half_up(summary.net_income / 12)
    )


def student_breakdown(
    lessons: Iterable[LessonRecord],
    tax_rate_percent: float
) -> List[StudentSummary]:
    """
    Per-student totals, highest net income first.

    Students with equal income keep first-seen order.
    """
    by_student = {}
    for lesson in lessons:
        by_student.setdefault(lesson.student_name, []).append(lesson)

    summaries = []
    for name, student_lessons in by_student.items():
        stats = summarize(student_lessons, tax_rate_percent)
        summaries.append(StudentSummary(
            student_name=name,
            total_lessons=stats.total_lessons,
            completed_lessons=stats.completed_lessons,
            cancelled_lessons=stats.cancelled_lessons,
            total_hours=stats.total_hours,
            net_income=stats.net_income,
            average_hourly_rate=stats.average_hourly_rate
        ))

    return sorted(summaries, key=lambda summary: summary.net_income, reverse=True)


def daily_summary(lessons: Iterable[LessonRecord], day) -> DailySummary:
    """
    Lessons of one day sorted by start time, with completed and planned
    hours. total_hours counts completed and planned lessons only.
    """
    target = to_date(day)
    todays = sorted(
        (lesson for lesson in lessons if lesson.date == target),
        key=lambda lesson: lesson.sort_key
    )

    def hours(predicate: Callable[[LessonRecord], bool]) -> float:
        return sum(lesson.duration for lesson in todays if predicate(lesson))

    completed_hours = hours(lambda lesson: lesson.status == LessonStatus.COMPLETED)
    planned_hours = hours(lambda lesson: lesson.status == LessonStatus.PLANNED)

    return DailySummary(
        day=target,
        lessons=todays,
        total_hours=round_half_up(completed_hours + planned_hours),
        completed_hours=round_half_up(completed_hours),
        planned_hours=round_half_up(planned_hours)
    )
