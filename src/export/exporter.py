"""
Spreadsheet export of lessons and statistics.

Rows are built as plain dictionaries first (build_*_rows) and only then
turned into pandas DataFrames and written as CSV or Excel, so the row
shape can be checked without touching the file system.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List

import pandas as pd

from src.models.errors import ExportError
from src.models.lesson import LessonRecord, LessonStatus, TeachingMethod
from src.models.stats import LessonStats, StudentSummary, YearlyStats
from src.scheduling.date_utils import format_iso_date
from src.scheduling.time_utils import format_duration, round_half_up
from src.stats.aggregator import StatsWindow, aggregate, student_breakdown, yearly_report
from src.utils.file_utils import save_csv, save_excel


logger = logging.getLogger(__name__)


LESSON_COLUMNS = [
    "No.",
    "Date",
    "Start Time",
    "Duration",
    "Student",
    "Teaching Method",
    "Status",
    "Hourly Rate",
    "Income",
    "Notes",
]

SUMMARY_COLUMNS = ["Item", "Value", "Unit"]

YEARLY_COLUMNS = ["Month", "Lessons", "Completed", "Hours", "Gross Income", "Tax", "Net Income"]

STUDENT_COLUMNS = [
    "No.",
    "Student",
    "Lessons",
    "Completed",
    "Cancelled",
    "Hours",
    "Net Income",
    "Average Rate",
]

METHOD_LABELS = {
    TeachingMethod.ONLINE: "Online",
    TeachingMethod.OFFLINE: "Offline",
}

STATUS_LABELS = {
    LessonStatus.PLANNED: "Planned",
    LessonStatus.COMPLETED: "Completed",
    LessonStatus.CANCELLED: "Cancelled",
}


def build_lesson_rows(lessons: Iterable[LessonRecord]) -> List[Dict[str, Any]]:
    """
    One export row per lesson, numbered from 1 in input order.

    Income is duration * hourly rate for completed lessons and 0 otherwise.

    Examples:
        >>> build_lesson_rows([lesson])[0]["Income"]
        150.0
    """
    rows = []
    for number, lesson in enumerate(lessons, 1):
        rows.append({
            "No.": number,
            "Date": format_iso_date(lesson.date),
            "Start Time": lesson.start_time,
            "Duration": format_duration(lesson.duration),
            "Student": lesson.student_name,
            "Teaching Method": METHOD_LABELS[lesson.teaching_method],
            "Status": STATUS_LABELS[lesson.status],
            "Hourly Rate": lesson.hourly_rate,
            "Income": round_half_up(lesson.income),
            "Notes": lesson.notes or "",
        })
    return rows


def build_summary_rows(stats: LessonStats) -> List[Dict[str, Any]]:
    """Item / value / unit rows for a statistics sheet."""
    items = [
        ("Total lessons", stats.total_lessons, "lessons"),
        ("Completed lessons", stats.completed_lessons, "lessons"),
        ("Planned lessons", stats.planned_lessons, "lessons"),
        ("Cancelled lessons", stats.cancelled_lessons, "lessons"),
        ("Total hours", stats.total_hours, "hours"),
        ("Online hours", stats.online_hours, "hours"),
        ("Offline hours", stats.offline_hours, "hours"),
        ("Gross income", stats.gross_income, "currency"),
        ("Tax deduction", stats.tax_deduction, "currency"),
        ("Net income", stats.net_income, "currency"),
        ("Unique students", stats.unique_students, "students"),
        ("Completion rate", stats.completion_rate, "%"),
        ("Average hourly rate", stats.average_hourly_rate, "currency/hour"),
        ("Most cancelled student", stats.most_cancelled_student or "", ""),
    ]
    return [dict(zip(SUMMARY_COLUMNS, item)) for item in items]


def build_yearly_rows(report: YearlyStats) -> List[Dict[str, Any]]:
    """Twelve month rows followed by a total row taken from the yearly summary."""
    def row(label: str, stats: LessonStats) -> Dict[str, Any]:
        return dict(zip(YEARLY_COLUMNS, [
            label,
            stats.total_lessons,
            stats.completed_lessons,
            stats.total_hours,
            stats.gross_income,
            stats.tax_deduction,
            stats.net_income,
        ]))

    rows = [
        row(f"{report.year}-{month:02d}", stats)
        for month, stats in enumerate(report.monthly, 1)
    ]
    rows.append(row("Total", report.summary))
    return rows


def build_student_rows(summaries: Iterable[StudentSummary]) -> List[Dict[str, Any]]:
    return [
        dict(zip(STUDENT_COLUMNS, [
            number,
            summary.student_name,
            summary.total_lessons,
            summary.completed_lessons,
            summary.cancelled_lessons,
            summary.total_hours,
            summary.net_income,
            summary.average_hourly_rate,
        ]))
        for number, summary in enumerate(summaries, 1)
    ]


def _frame(rows: List[Dict[str, Any]], columns: List[str]) -> pd.DataFrame:
    return pd.DataFrame(rows, columns=columns)


def lessons_dataframe(lessons: Iterable[LessonRecord]) -> pd.DataFrame:
    return _frame(build_lesson_rows(lessons), LESSON_COLUMNS)


def _write_excel(sheets: Dict[str, pd.DataFrame], path: Path) -> Path:
    path = Path(path)
    if not save_excel(sheets, path):
        raise ExportError(f"Failed to write Excel file: {path}")
    logger.info(f"Exported {', '.join(sheets)} to {path}")
    return path


def export_lessons_csv(lessons: Iterable[LessonRecord], path: Path) -> Path:
    """
    Write lessons as CSV.

    Raises:
        ExportError: If the file cannot be written
    """
    path = Path(path)
    df = lessons_dataframe(lessons)
    if not save_csv(df, path):
        raise ExportError(f"Failed to write CSV file: {path}")
    logger.info(f"Exported {len(df)} lessons to {path}")
    return path


def export_month_workbook(
    lessons: Iterable[LessonRecord],
    year: int,
    month: int,
    tax_rate_percent: float,
    path: Path
) -> Path:
    """
    Workbook with the month's lessons (chronological) and its statistics.

    Raises:
        ExportError: If the file cannot be written
    """
    lessons = list(lessons)
    window = StatsWindow.month(year, month)
    monthly = sorted(window.select(lessons), key=lambda lesson: lesson.sort_key)
    stats = aggregate(lessons, window, tax_rate_percent)

    return _write_excel({
        f"Lessons {window.label}": lessons_dataframe(monthly),
        f"Summary {window.label}": _frame(build_summary_rows(stats), SUMMARY_COLUMNS),
    }, path)


def export_year_workbook(
    lessons: Iterable[LessonRecord],
    year: int,
    tax_rate_percent: float,
    path: Path
) -> Path:
    """Workbook with one row per month plus a yearly total."""
    report = yearly_report(lessons, year, tax_rate_percent)
    return _write_excel({
        f"Year {year}": _frame(build_yearly_rows(report), YEARLY_COLUMNS),
        f"Summary {year}": _frame(build_summary_rows(report.summary), SUMMARY_COLUMNS),
    }, path)


def export_student_workbook(
    lessons: Iterable[LessonRecord],
    tax_rate_percent: float,
    path: Path
) -> Path:
    """Workbook with per-student totals, highest income first."""
    summaries = student_breakdown(lessons, tax_rate_percent)
    return _write_excel({
        "Students": _frame(build_student_rows(summaries), STUDENT_COLUMNS),
    }, path)
