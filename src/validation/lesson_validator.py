"""
Lesson form validator.

Validates a candidate lesson field by field and then checks it against
the existing schedule for time conflicts.
"""

import logging
import unicodedata
from datetime import date
from typing import Any, Dict, Iterable, Optional, Union

from src.models.errors import FormatError
from src.models.lesson import LessonFormData, LessonRecord, LessonStatus, TeachingMethod
from src.scheduling.conflict import find_conflict
from src.scheduling.date_utils import shift_years, to_date
from src.scheduling.time_utils import (
    MINUTES_PER_DAY,
    compute_duration_hours,
    end_minutes,
    format_minutes,
    is_valid_time,
    to_minutes,
)

from .validators import Validator, ValidationResult


logger = logging.getLogger(__name__)


def _is_name_char(ch: str) -> bool:
    """Letters and combining marks of any script, or whitespace."""
    return ch.isspace() or unicodedata.category(ch)[0] in ("L", "M")


def _enum_value(value: Any) -> Any:
    return value.value if isinstance(value, (LessonStatus, TeachingMethod)) else value


class LessonValidator(Validator):
    """
    Validator for candidate lessons.

    Every field is checked independently so the form can show all
    problems at once. Only when all fields pass is the schedule checked
    for conflicts; a conflict is reported on start_time.

    Examples:
        >>> validator = LessonValidator()
        >>> form = LessonFormData(
        ...     date="2024-05-01",
        ...     start_time="09:30",
        ...     duration=1,
        ...     student_name="Alice",
        ...     hourly_rate=100
        ... )
        >>> result = validator.validate(form, existing=lessons)
        >>> if not result.is_valid:
        ...     print(result.field_errors)
    """

    # Business rule constraints
    MIN_NAME_LENGTH = 2
    MAX_NAME_LENGTH = 50
    MIN_DURATION = 0.5  # hours
    MAX_DURATION = 12  # hours
    MIN_HOURLY_RATE = 10
    MAX_HOURLY_RATE = 10000
    MAX_NOTES_LENGTH = 500
    MAX_YEARS_AHEAD = 1
    MAX_YEARS_BACK = 2

    VALID_STATUSES = [status.value for status in LessonStatus]
    VALID_METHODS = [method.value for method in TeachingMethod]

    def __init__(self, today: Optional[date] = None):
        """
        Args:
            today: Reference day for the date range rule (defaults to date.today())
        """
        self.today = today

    def validate(
        self,
        data: Union[LessonFormData, Dict[str, Any]],
        existing: Optional[Iterable[LessonRecord]] = None,
        exclude_id: Optional[str] = None
    ) -> ValidationResult:
        """
        Validate a candidate lesson.

        Args:
            data: Candidate lesson (LessonFormData or a dict of its fields)
            existing: Lessons already scheduled; enables the conflict check
            exclude_id: Id of the lesson being edited

        Returns:
            ValidationResult with one message per invalid field
        """
        if isinstance(data, dict):
            data = LessonFormData(**data)

        result = ValidationResult()

        self._check_student_name(data.student_name, result)
        self._check_date(data.date, result)
        self._check_start_time(data.start_time, result)
        duration = self._check_end_time(data, result)
        self._check_duration(duration, data, result)
        self._check_hourly_rate(data.hourly_rate, result)
        self._check_notes(data.notes, result)
        self._check_choices(data, result)

        if result.is_valid and existing is not None:
            conflict = find_conflict(data, existing, exclude_id=exclude_id)
            if conflict:
                logger.info(f"Rejected lesson on {data.date}: {conflict.message}")
                result.add_error("start_time", conflict.message)

        return result

    def _check_student_name(self, name: Any, result: ValidationResult) -> None:
        error = self.validate_required(name, "Student name")
        if error is None and not isinstance(name, str):
            error = f"Student name must be text, got {type(name).__name__}"
        if error is None:
            error = self.validate_string_length(
                name.strip(), "Student name", min_length=self.MIN_NAME_LENGTH
            ) or self.validate_string_length(
                name, "Student name", max_length=self.MAX_NAME_LENGTH
            )
        if error is None and not all(_is_name_char(ch) for ch in unicodedata.normalize("NFC", name)):
            error = "Student name may only contain letters and spaces"
        if error:
            result.add_error("student_name", error)

    def _check_date(self, value: Any, result: ValidationResult) -> None:
        error = self.validate_required(value, "Date")
        if error:
            result.add_error("date", error)
            return

        try:
            lesson_date = to_date(value)
        except FormatError:
            result.add_error("date", f"Invalid date format: {value} (expected YYYY-MM-DD)")
            return

        today = self.today or date.today()
        if lesson_date > shift_years(today, self.MAX_YEARS_AHEAD):
            result.add_error("date", "Date cannot be more than one year in the future")
        elif lesson_date < shift_years(today, -self.MAX_YEARS_BACK):
            result.add_error("date", "Date cannot be more than two years in the past")

    def _check_start_time(self, value: Any, result: ValidationResult) -> None:
        error = self.validate_required(value, "Start time")
        if error is None and not is_valid_time(value):
            error = f"Invalid time format: {value} (expected HH:MM)"
        if error:
            result.add_error("start_time", error)

    def _check_end_time(self, data: LessonFormData, result: ValidationResult) -> Optional[float]:
        """Validate end_time if given; return the duration to check (None to skip)."""
        if not data.end_time:
            return data.duration

        if not is_valid_time(data.end_time):
            result.add_error("end_time", f"Invalid time format: {data.end_time} (expected HH:MM)")
            return None

        if not is_valid_time(data.start_time):
            return None

        if to_minutes(data.end_time) <= to_minutes(data.start_time):
            result.add_error("end_time", "End time must be after start time")
            return None

        return compute_duration_hours(data.start_time, data.end_time)

    def _check_duration(
        self,
        duration: Optional[float],
        data: LessonFormData,
        result: ValidationResult
    ) -> None:
        if duration is None and data.end_time:
            return

        start_time = data.start_time

        error = self.validate_number_range(
            duration,
            "Duration",
            minimum=self.MIN_DURATION,
            maximum=self.MAX_DURATION,
            unit="hours"
        )
        if error is None and is_valid_time(start_time):
            finish = end_minutes(start_time, duration)
            if finish > MINUTES_PER_DAY:
                error = f"Lesson must end by 24:00 (would end at {format_minutes(finish)})"
        if error:
            result.add_error("duration", error)

    def _check_hourly_rate(self, value: Any, result: ValidationResult) -> None:
        error = self.validate_number_range(
            value,
            "Hourly rate",
            minimum=self.MIN_HOURLY_RATE,
            maximum=self.MAX_HOURLY_RATE,
            unit="per hour"
        )
        if error:
            result.add_error("hourly_rate", error)

    def _check_notes(self, value: Any, result: ValidationResult) -> None:
        if not value:
            return
        error = self.validate_string_length(value, "Notes", max_length=self.MAX_NOTES_LENGTH)
        if error:
            result.add_error("notes", error)

    def _check_choices(self, data: LessonFormData, result: ValidationResult) -> None:
        method = _enum_value(data.teaching_method)
        if method not in self.VALID_METHODS:
            result.add_error(
                "teaching_method",
                f"Invalid teaching method: {method} "
                f"(must be one of: {', '.join(self.VALID_METHODS)})"
            )

        status = _enum_value(data.status)
        if status not in self.VALID_STATUSES:
            result.add_error(
                "status",
                f"Invalid status: {status} "
                f"(must be one of: {', '.join(self.VALID_STATUSES)})"
            )
