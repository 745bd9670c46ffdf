"""
Editable lesson form state.

LessonDraft holds the values of the add/edit lesson form together with
the errors of the last validation. Each setter updates one field and then
clears that field's error, so a corrected input stops being flagged
before the form is validated again.
"""

from datetime import date
from typing import Iterable, Optional, Union

from src.models.lesson import LessonFormData, LessonRecord, LessonStatus, TeachingMethod
from src.models.result import Result
from src.models.settings import AppSettings
from src.scheduling.time_utils import round_half_up

from .lesson_validator import LessonValidator
from .validators import ValidationResult


class LessonDraft:
    """
    Form state for creating or editing one lesson.

    Examples:
        >>> draft = LessonDraft.new(settings, day=date(2024, 5, 1))
        >>> draft.set_student_name("Alice").set_start_time("09:00").set_end_time("10:30")
        >>> result = draft.submit(existing=lessons)
        >>> if result.is_failure:
        ...     print(draft.errors.field_errors)
    """

    def __init__(
        self,
        data: LessonFormData,
        editing_id: Optional[str] = None,
        validator: Optional[LessonValidator] = None
    ):
        self._data = data
        self.editing_id = editing_id
        self.validator = validator or LessonValidator()
        self.errors = ValidationResult()

    @classmethod
    def new(
        cls,
        settings: AppSettings,
        day: Optional[date] = None,
        start_time: str = "09:00",
        duration: float = 1.0,
        validator: Optional[LessonValidator] = None
    ) -> "LessonDraft":
        """Blank form pre-filled with the default rate and teaching method."""
        data = LessonFormData(
            date=day or date.today(),
            start_time=start_time,
            duration=duration,
            teaching_method=settings.default_teaching_method.value,
            status=LessonStatus.PLANNED.value,
            hourly_rate=settings.hourly_rate
        )
        return cls(data, validator=validator)

    @classmethod
    def edit(cls, lesson: LessonRecord, validator: Optional[LessonValidator] = None) -> "LessonDraft":
        """Form pre-filled from an existing lesson; conflicts with itself are ignored."""
        return cls(LessonFormData.from_record(lesson), editing_id=lesson.id, validator=validator)

    @property
    def data(self) -> LessonFormData:
        return self._data

    @property
    def is_editing(self) -> bool:
        return self.editing_id is not None

    def _updated(self, field_name: str) -> "LessonDraft":
        self.errors.clear_error(field_name)
        return self

    def set_date(self, value: Union[str, date]) -> "LessonDraft":
        self._data.date = value
        return self._updated("date")

    def set_start_time(self, value: str) -> "LessonDraft":
        self._data.start_time = value
        return self._updated("start_time")

    def set_end_time(self, value: Optional[str]) -> "LessonDraft":
        self._data.end_time = value
        self.errors.clear_error("duration")
        return self._updated("end_time")

    def set_duration(self, hours: float) -> "LessonDraft":
        self._data.duration = hours
        self._data.end_time = None
        self.errors.clear_error("end_time")
        return self._updated("duration")

    def set_student_name(self, value: str) -> "LessonDraft":
        self._data.student_name = value
        return self._updated("student_name")

    def set_student_id(self, value: Optional[str]) -> "LessonDraft":
        self._data.student_id = value
        return self

    def set_teaching_method(self, value: Union[str, TeachingMethod]) -> "LessonDraft":
        self._data.teaching_method = value.value if isinstance(value, TeachingMethod) else value
        return self._updated("teaching_method")

    def set_status(self, value: Union[str, LessonStatus]) -> "LessonDraft":
        self._data.status = value.value if isinstance(value, LessonStatus) else value
        return self._updated("status")

    def set_hourly_rate(self, value: float) -> "LessonDraft":
        self._data.hourly_rate = value
        return self._updated("hourly_rate")

    def set_notes(self, value: str) -> "LessonDraft":
        self._data.notes = value
        return self._updated("notes")

    def estimated_income(self) -> float:
        """Income shown under the form: rate times duration, 0 if incomplete."""
        try:
            duration = self._data.resolved_duration
        except ValueError:
            return 0.0
        if not duration or not self._data.hourly_rate:
            return 0.0
        return round_half_up(duration * self._data.hourly_rate)

    def validate(self, existing: Optional[Iterable[LessonRecord]] = None) -> ValidationResult:
        """Validate the whole form and keep the errors for display."""
        self.errors = self.validator.validate(
            self._data,
            existing=existing,
            exclude_id=self.editing_id
        )
        return self.errors

    def submit(self, existing: Optional[Iterable[LessonRecord]] = None) -> Result[LessonFormData]:
        """
        Validate and hand out the form data if it can be saved.

        Returns:
            Result with the LessonFormData, or a failure carrying field errors
        """
        result = self.validate(existing)
        if not result.is_valid:
            return Result.failure(
                "Lesson form has errors",
                field_errors=result.field_errors
            )
        return Result.success(self._data)
