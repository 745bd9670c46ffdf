#!/usr/bin/env python3
"""
EasyTime Report Script.

Prints lesson statistics for a month or a year and writes them to a
spreadsheet in OUTPUT_DIR/exports.

Usage:
    python run_report.py (--month YYYY-MM | --year YYYY) [--format csv|xlsx]
                         [--students] [--data-file PATH] [--log-level LEVEL]

Examples:
    # Monthly report as an Excel workbook
    python run_report.py --month 2024-05

    # Lessons of 2024 as CSV
    python run_report.py --year 2024 --format csv

    # Include the per-student workbook
    python run_report.py --year 2024 --students

    # Use another lesson store
    export EASYTIME_DATA_FILE="backup/easytime.json"
    python run_report.py --month 2024-05
"""

import sys
import argparse
from pathlib import Path
from typing import Tuple

from src.export.exporter import (
    export_lessons_csv,
    export_month_workbook,
    export_student_workbook,
    export_year_workbook,
)
from src.models.errors import EasyTimeError
from src.models.stats import LessonStats
from src.services.lesson_service import LessonService
from src.stats.aggregator import StatsWindow, student_breakdown
from src.storage.repository import JsonLessonRepository
from src.utils.config import config
from src.utils.file_utils import generate_filename
from src.utils.logger import setup_logger


def parse_arguments():
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(
        description="Lesson statistics and spreadsheet export",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    period = parser.add_mutually_exclusive_group(required=True)
    period.add_argument(
        "--month",
        help="Target month in YYYY-MM format (e.g., 2024-05)"
    )
    period.add_argument(
        "--year",
        type=int,
        help="Target year (e.g., 2024)"
    )

    parser.add_argument(
        "--format",
        choices=["csv", "xlsx"],
        default="xlsx",
        help="Export format (default: xlsx)"
    )

    parser.add_argument(
        "--students",
        action="store_true",
        help="Also write the per-student workbook"
    )

    parser.add_argument(
        "--data-file",
        type=Path,
        help="Lesson store (overrides EASYTIME_DATA_FILE env var)"
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: LOG_LEVEL env var)"
    )

    return parser.parse_args()


def parse_target_month(month_str: str) -> Tuple[int, int]:
    """
    Parse month string to (year, month).

    Args:
        month_str: Month string in YYYY-MM format

    Returns:
        Tuple of (year, month)

    Raises:
        ValueError: If format is invalid
    """
    try:
        year, month = month_str.split("-")
        year = int(year)
        month = int(month)
    except ValueError:
        raise ValueError(f"Invalid month format '{month_str}', expected YYYY-MM")

    if not (1 <= month <= 12):
        raise ValueError(f"Invalid month format '{month_str}': month must be between 1 and 12")

    return year, month


def display_summary(label: str, stats: LessonStats):
    """
    Display statistics for one period.

    Args:
        label: Period label (e.g., "2024-05")
        stats: Aggregated statistics
    """
    print("\n" + "=" * 60)
    print(f"LESSON SUMMARY {label}")
    print("=" * 60)
    print(f"Total lessons:            {stats.total_lessons}")
    print(f"Completed / planned:      {stats.completed_lessons} / {stats.planned_lessons}")
    print(f"Cancelled:                {stats.cancelled_lessons}")
    print(f"Hours (online/offline):   {stats.total_hours:g} ({stats.online_hours:g}/{stats.offline_hours:g})")
    print(f"Gross income:             {stats.gross_income:.2f}")
    print(f"Tax deduction:            {stats.tax_deduction:.2f}")
    print(f"Net income:               {stats.net_income:.2f}")
    print(f"Completion rate:          {stats.completion_rate}%")
    print(f"Average hourly rate:      {stats.average_hourly_rate:.2f}")
    print(f"Students:                 {stats.unique_students}")
    if stats.most_cancelled_student:
        print(f"Most cancellations:       {stats.most_cancelled_student}")
    print("=" * 60)


def main():
    """Main execution function."""
    args = parse_arguments()

    logger = setup_logger(
        level=args.log_level or config.log_level,
        log_file=config.log_file
    )

    try:
        logger.info("Validating configuration")
        config.validate()
        config.create_output_directories()

        data_file = args.data_file or config.data_file
        logger.info(f"Lesson store: {data_file}")

        service = LessonService(
            JsonLessonRepository(data_file),
            default_settings=config.default_settings()
        )
        lessons = service.list_lessons()
        tax_rate = service.settings.tax_rate
        export_dir = config.output_dir / "exports"

        if args.month:
            year, month = parse_target_month(args.month)
            window = StatsWindow.month(year, month)
        else:
            year, month = args.year, None
            window = StatsWindow.year(year)

        display_summary(window.label, service.stats(window))

        prefix = f"lessons_{window.label}"
        path = export_dir / generate_filename(prefix, args.format)
        if args.format == "csv":
            selected = sorted(window.select(lessons), key=lambda lesson: lesson.sort_key)
            export_lessons_csv(selected, path)
        elif month is not None:
            export_month_workbook(lessons, year, month, tax_rate, path)
        else:
            export_year_workbook(lessons, year, tax_rate, path)
        print(f"\nReport saved to: {path}")

        if args.students:
            students = window.select(lessons)
            print(f"\nStudents: {len(student_breakdown(students, tax_rate))}")
            student_path = export_dir / generate_filename(f"students_{window.label}", "xlsx")
            export_student_workbook(students, tax_rate, student_path)
            print(f"Student report saved to: {student_path}")

        return 0

    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        logger.info("Interrupted by user")
        return 130

    except (EasyTimeError, ValueError) as e:
        logger.error(f"Report failed: {e}")
        print(f"\nERROR: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
