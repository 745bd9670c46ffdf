"""
Lesson book service.

Ties the pieces together: candidate lessons go through the validator
(including the conflict check) before they are stored, status changes
follow the lesson state machine, and statistics always use the tax rate
from the user's settings.
"""

import logging
from datetime import datetime
from typing import Any, Callable, List, Optional

from src.models.errors import LessonNotFoundError, StorageError
from src.models.lesson import LessonFormData, LessonRecord, LessonStatus, TeachingMethod
from src.models.result import Result
from src.models.settings import AppSettings
from src.models.stats import LessonStats
from src.scheduling.date_utils import to_date
from src.stats.aggregator import StatsWindow, aggregate
from src.storage.repository import LessonRepository
from src.validation.lesson_validator import LessonValidator


logger = logging.getLogger(__name__)


def _sorted(lessons: List[LessonRecord]) -> List[LessonRecord]:
    return sorted(lessons, key=lambda lesson: lesson.sort_key)


class LessonService:
    """
    Create, edit and query lessons stored in a repository.

    Examples:
        >>> service = LessonService(JsonLessonRepository(config.data_file))
        >>> result = service.add_lesson(LessonFormData(
        ...     date="2024-05-01", start_time="09:00", duration=1,
        ...     student_name="Alice", hourly_rate=100
        ... ))
        >>> if result.is_failure:
        ...     print(result.field_errors)
        >>> stats = service.stats(StatsWindow.month(2024, 5))
    """

    def __init__(
        self,
        repository: LessonRepository,
        default_settings: Optional[AppSettings] = None,
        validator: Optional[LessonValidator] = None,
        clock: Callable[[], datetime] = datetime.now
    ):
        """
        Args:
            repository: Lesson store
            default_settings: Settings used until the user saves their own
            validator: Lesson validator (defaults to one dated by the clock)
            clock: Source of the current time, for completion checks and timestamps
        """
        self.repository = repository
        self.default_settings = default_settings or AppSettings()
        self._validator = validator
        self.clock = clock

    # Queries

    def list_lessons(self) -> List[LessonRecord]:
        return self.repository.load()

    def get_lesson(self, lesson_id: str) -> LessonRecord:
        """
        Raises:
            LessonNotFoundError: If no lesson has this id
        """
        for lesson in self.repository.load():
            if lesson.id == lesson_id:
                return lesson
        raise LessonNotFoundError(lesson_id)

    def lessons_on(self, day) -> List[LessonRecord]:
        return _sorted(StatsWindow.day(day).select(self.repository.load()))

    def lessons_in_month(self, year: int, month: int) -> List[LessonRecord]:
        return _sorted(StatsWindow.month(year, month).select(self.repository.load()))

    def lessons_for_student(self, student_name: str) -> List[LessonRecord]:
        return _sorted(StatsWindow.student(student_name).select(self.repository.load()))

    @property
    def settings(self) -> AppSettings:
        return self.repository.load_settings() or self.default_settings

    def stats(self, window: StatsWindow) -> LessonStats:
        """Aggregate the stored lessons using the tax rate from settings."""
        return aggregate(self.repository.load(), window, self.settings.tax_rate)

    # Commands

    def _validator_for_today(self) -> LessonValidator:
        return self._validator or LessonValidator(today=self.clock().date())

    def add_lesson(self, form: LessonFormData) -> Result[LessonRecord]:
        """
        Validate a candidate lesson and store it.

        Returns:
            Result with the new LessonRecord, or a failure whose
            field_errors explain what to fix (including time conflicts)
        """
        lessons = self.repository.load()
        validation = self._validator_for_today().validate(form, existing=lessons)
        if not validation.is_valid:
            logger.info(f"Lesson rejected: {validation.field_errors}")
            return Result.failure("Lesson is invalid", field_errors=validation.field_errors)

        lesson = LessonRecord.create(form, now=self.clock())
        try:
            self.repository.save(_sorted(lessons + [lesson]))
        except StorageError as e:
            logger.error(f"Failed to store lesson: {e}")
            return Result.failure(str(e), e)

        logger.info(f"Added lesson {lesson.id} on {lesson.date} {lesson.start_time}")
        return Result.success(lesson, "Lesson added")

    def update_lesson(self, lesson_id: str, form: LessonFormData) -> Result[LessonRecord]:
        """
        Replace the editable fields of a lesson after validating them.

        The lesson's own previous version is ignored by the conflict check.
        """
        lessons = self.repository.load()
        current = next((lesson for lesson in lessons if lesson.id == lesson_id), None)
        if current is None:
            return Result.failure(f"Lesson not found: {lesson_id}", LessonNotFoundError(lesson_id))

        validation = self._validator_for_today().validate(
            form, existing=lessons, exclude_id=lesson_id
        )
        if not validation.is_valid:
            return Result.failure("Lesson is invalid", field_errors=validation.field_errors)

        updated = current.with_changes(
            now=self.clock(),
            date=to_date(form.date),
            start_time=form.start_time,
            duration=float(form.resolved_duration),
            student_name=form.student_name.strip(),
            student_id=form.student_id,
            teaching_method=TeachingMethod(form.teaching_method),
            status=LessonStatus(form.status),
            hourly_rate=float(form.hourly_rate),
            notes=form.notes or ""
        )
        return self._replace(lessons, updated, "Lesson updated")

    def delete_lesson(self, lesson_id: str) -> Result[LessonRecord]:
        lessons = self.repository.load()
        remaining = [lesson for lesson in lessons if lesson.id != lesson_id]
        if len(remaining) == len(lessons):
            return Result.failure(f"Lesson not found: {lesson_id}", LessonNotFoundError(lesson_id))

        removed = next(lesson for lesson in lessons if lesson.id == lesson_id)
        try:
            self.repository.save(remaining)
        except StorageError as e:
            return Result.failure(str(e), e)

        logger.info(f"Deleted lesson {lesson_id}")
        return Result.success(removed, "Lesson deleted")

    def can_complete(self, lesson: LessonRecord) -> bool:
        """Only planned lessons that have already started can be completed."""
        return lesson.status == LessonStatus.PLANNED and lesson.starts_at <= self.clock()

    def complete_lesson(self, lesson_id: str) -> Result[LessonRecord]:
        """planned -> completed, allowed once the lesson's start time has passed."""
        return self._transition(
            lesson_id,
            LessonStatus.COMPLETED,
            guard=lambda lesson: None if lesson.starts_at <= self.clock()
            else "Cannot complete a lesson that has not started yet"
        )

    def cancel_lesson(self, lesson_id: str) -> Result[LessonRecord]:
        """planned -> cancelled, always allowed."""
        return self._transition(lesson_id, LessonStatus.CANCELLED)

    def update_settings(self, **changes: Any) -> Result[AppSettings]:
        """
        Change and persist settings.

        Examples:
            >>> service.update_settings(tax_rate=15)
        """
        try:
            settings = self.settings.with_changes(**changes)
        except (TypeError, ValueError) as e:
            return Result.failure(f"Invalid settings: {e}", e)

        problems = settings.problems()
        if problems:
            return Result.failure("Invalid settings: " + "; ".join(problems))

        try:
            self.repository.save_settings(settings)
        except StorageError as e:
            return Result.failure(str(e), e)

        logger.info(f"Settings updated: {', '.join(sorted(changes))}")
        return Result.success(settings, "Settings saved")

    # Internals

    def _transition(
        self,
        lesson_id: str,
        target: LessonStatus,
        guard: Optional[Callable[[LessonRecord], Optional[str]]] = None
    ) -> Result[LessonRecord]:
        lessons = self.repository.load()
        current = next((lesson for lesson in lessons if lesson.id == lesson_id), None)
        if current is None:
            return Result.failure(f"Lesson not found: {lesson_id}", LessonNotFoundError(lesson_id))

        if current.status != LessonStatus.PLANNED:
            return Result.failure(
                f"Only planned lessons can be marked {target.value} "
                f"(lesson is {current.status.value})"
            )

        if guard is not None:
            reason = guard(current)
            if reason:
                return Result.failure(reason)

        updated = current.with_changes(now=self.clock(), status=target)
        return self._replace(lessons, updated, f"Lesson {target.value}")

    def _replace(
        self,
        lessons: List[LessonRecord],
        updated: LessonRecord,
        message: str
    ) -> Result[LessonRecord]:
        new_lessons = [updated if lesson.id == updated.id else lesson for lesson in lessons]
        try:
            self.repository.save(_sorted(new_lessons))
        except StorageError as e:
            logger.error(f"Failed to store lesson {updated.id}: {e}")
            return Result.failure(str(e), e)

        logger.info(f"{message}: {updated.id}")
        return Result.success(updated, message)

