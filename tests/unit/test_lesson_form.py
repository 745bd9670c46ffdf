"""
Unit tests for the lesson form state and lesson models.
"""

from datetime import date, datetime

import pytest

from src.models.errors import FormatError
from src.models.lesson import LessonFormData, LessonRecord, LessonStatus, TeachingMethod
from src.models.settings import AppSettings
from src.validation.lesson_form import LessonDraft
from src.validation.lesson_validator import LessonValidator


@pytest.fixture
def validator():
    return LessonValidator(today=date(2024, 6, 1))


@pytest.fixture
def settings():
    return AppSettings(hourly_rate=80, default_teaching_method=TeachingMethod.OFFLINE)


@pytest.fixture
def lesson():
    return LessonRecord(
        id="a",
        date=date(2024, 5, 1),
        start_time="09:00",
        duration=1.5,
        student_name="Alice",
        status=LessonStatus.COMPLETED,
        hourly_rate=100,
        notes="Chapter 3",
        created_at="2024-04-20T10:00:00",
        updated_at="2024-04-20T10:00:00"
    )


class TestLessonRecord:
    """Test cases for LessonRecord."""

    def test_derived_values(self, lesson):
        assert lesson.end_time == "10:30"
        assert lesson.starts_at == datetime(2024, 5, 1, 9, 0)
        assert lesson.income == 150.0
        assert lesson.is_completed

    def test_income_zero_unless_completed(self, lesson):
        assert lesson.with_changes(status=LessonStatus.PLANNED).income == 0.0
        assert lesson.with_changes(status=LessonStatus.CANCELLED).income == 0.0

    def test_with_changes_refreshes_timestamp(self, lesson):
        updated = lesson.with_changes(now=datetime(2024, 5, 2, 8, 0), notes="Chapter 4")

        assert updated.notes == "Chapter 4"
        assert updated.updated_at == "2024-05-02T08:00:00"
        assert updated.created_at == lesson.created_at
        assert lesson.notes == "Chapter 3"

    def test_id_cannot_change(self, lesson):
        with pytest.raises(ValueError):
            lesson.with_changes(id="b")

    def test_dict_round_trip(self, lesson):
        data = lesson.to_dict()

        assert data["startTime"] == "09:00"
        assert data["studentName"] == "Alice"
        assert "studentId" not in data
        assert LessonRecord.from_dict(data) == lesson

    def test_from_dict_defaults(self):
        record = LessonRecord.from_dict({
            "id": 7,
            "date": "2024-05-01",
            "startTime": "10:00",
            "duration": "1",
            "studentName": "Bob",
            "hourlyRate": 50
        })

        assert record.id == "7"
        assert record.status == LessonStatus.PLANNED
        assert record.teaching_method == TeachingMethod.ONLINE
        assert record.duration == 1.0

    def test_create_from_form(self):
        form = LessonFormData(
            date="2024-05-01",
            start_time="09:00",
            end_time="10:45",
            student_name="  Alice ",
            hourly_rate=100
        )

        record = LessonRecord.create(form, now=datetime(2024, 4, 30, 12, 0))

        assert record.duration == 1.75
        assert record.student_name == "Alice"
        assert record.created_at == record.updated_at == "2024-04-30T12:00:00"
        assert len(record.id) == 32

    def test_ids_are_unique(self):
        form = LessonFormData(date="2024-05-01", start_time="09:00", duration=1,
                              student_name="Alice", hourly_rate=100)

        assert LessonRecord.create(form).id != LessonRecord.create(form).id

    def test_resolved_duration_with_bad_end_time(self):
        form = LessonFormData(start_time="09:00", end_time="9pm")

        with pytest.raises(FormatError):
            form.resolved_duration


class TestLessonDraft:
    """Test cases for LessonDraft."""

    def test_new_uses_settings(self, settings, validator):
        draft = LessonDraft.new(settings, day=date(2024, 5, 1), validator=validator)

        assert draft.data.hourly_rate == 80
        assert draft.data.teaching_method == "offline"
        assert draft.data.status == "planned"
        assert not draft.is_editing

    def test_edit_prefills_from_lesson(self, lesson, validator):
        draft = LessonDraft.edit(lesson, validator=validator)

        assert draft.is_editing
        assert draft.editing_id == "a"
        assert draft.data.student_name == "Alice"
        assert draft.data.duration == 1.5

    def test_setter_clears_field_error(self, settings, validator):
        draft = LessonDraft.new(settings, day=date(2024, 5, 1), validator=validator)
        draft.validate()
        assert draft.errors.error_for("student_name") == "Student name is required"

        draft.set_student_name("Alice")

        assert draft.errors.error_for("student_name") is None
        assert draft.errors.is_valid

    def test_end_time_and_duration_are_exclusive(self, settings, validator):
        draft = LessonDraft.new(settings, day=date(2024, 5, 1), validator=validator)

        draft.set_end_time("10:30")
        assert draft.data.resolved_duration == 1.5

        draft.set_duration(2)
        assert draft.data.end_time is None
        assert draft.data.resolved_duration == 2

    def test_estimated_income(self, settings, validator):
        draft = LessonDraft.new(settings, day=date(2024, 5, 1), duration=1.5, validator=validator)

        assert draft.estimated_income() == 120.0

        draft.set_end_time("bad")
        assert draft.estimated_income() == 0.0

    def test_submit_success(self, settings, validator):
        draft = LessonDraft.new(settings, day=date(2024, 5, 1), validator=validator)
        draft.set_student_name("Alice").set_start_time("14:00").set_notes("Trial")

        result = draft.submit(existing=[])

        assert result.is_success
        assert result.value.start_time == "14:00"

    def test_submit_reports_conflict(self, settings, validator, lesson):
        draft = LessonDraft.new(settings, day=date(2024, 5, 1), validator=validator)
        draft.set_student_name("Bob").set_start_time("10:00")

        result = draft.submit(existing=[lesson])

        assert result.is_failure
        assert result.field_errors["start_time"] == "Time conflict: Alice 09:00-10:30"

    def test_editing_does_not_conflict_with_itself(self, lesson, validator):
        draft = LessonDraft.edit(lesson, validator=validator)
        draft.set_start_time("09:30")

        assert draft.submit(existing=[lesson]).is_success

    def test_enum_setters(self, settings, validator):
        draft = LessonDraft.new(settings, validator=validator)
        draft.set_teaching_method(TeachingMethod.ONLINE).set_status(LessonStatus.CANCELLED)

        assert draft.data.teaching_method == "online"
        assert draft.data.status == "cancelled"
