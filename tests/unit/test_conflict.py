"""
Unit tests for scheduling conflict detection.
"""

from datetime import date

import pytest

from src.models.lesson import LessonFormData, LessonRecord, LessonStatus
from src.scheduling.conflict import find_conflict, intervals_overlap


def make_lesson(lesson_id, start_time, duration, day=date(2024, 5, 1),
                status=LessonStatus.PLANNED, student_name="Alice"):
    return LessonRecord(
        id=lesson_id,
        date=day,
        start_time=start_time,
        duration=duration,
        student_name=student_name,
        status=status,
        hourly_rate=100
    )


def make_form(start_time, duration=None, end_time=None, day="2024-05-01"):
    return LessonFormData(
        date=day,
        start_time=start_time,
        duration=duration,
        end_time=end_time,
        student_name="Bob",
        hourly_rate=100
    )


class TestIntervalsOverlap:
    """Test cases for the half-open interval test."""

    def test_overlap_is_symmetric(self):
        a, b = (540, 600), (570, 630)

        assert intervals_overlap(a, b)
        assert intervals_overlap(b, a)

    def test_touching_intervals_do_not_overlap(self):
        assert not intervals_overlap((540, 600), (600, 660))
        assert not intervals_overlap((600, 660), (540, 600))

    def test_contained_interval(self):
        assert intervals_overlap((540, 720), (600, 630))


class TestFindConflict:
    """Test cases for find_conflict."""

    @pytest.fixture
    def schedule(self):
        """Alice 09:00-10:00 on 2024-05-01."""
        return [make_lesson("a", "09:00", 1)]

    def test_overlapping_candidate(self, schedule):
        conflict = find_conflict(make_form("09:30", duration=1), schedule)

        assert conflict is not None
        assert conflict.lesson.id == "a"
        assert conflict.end_time == "10:00"
        assert conflict.message == "Time conflict: Alice 09:00-10:00"

    def test_back_to_back_is_free(self, schedule):
        assert find_conflict(make_form("10:00", duration=1), schedule) is None

    def test_candidate_ending_at_start_is_free(self, schedule):
        assert find_conflict(make_form("08:00", duration=1), schedule) is None

    def test_other_date_is_ignored(self, schedule):
        assert find_conflict(make_form("09:00", duration=1, day="2024-05-02"), schedule) is None

    def test_cancelled_lessons_never_block(self):
        existing = [make_lesson("a", "09:00", 1, status=LessonStatus.CANCELLED)]

        assert find_conflict(make_form("09:00", duration=1), existing) is None

    def test_completed_lessons_block(self):
        existing = [make_lesson("a", "09:00", 1, status=LessonStatus.COMPLETED)]

        assert find_conflict(make_form("09:30", duration=0.5), existing) is not None

    def test_excluded_lesson_is_ignored(self, schedule):
        """Test editing a lesson does not conflict with itself."""
        assert find_conflict(make_form("09:15", duration=1), schedule, exclude_id="a") is None

    def test_explicit_end_time_wins_over_duration(self, schedule):
        # Duration 3h would overlap, but the end time stops at 09:00
        form = make_form("08:00", duration=3, end_time="09:00")

        assert find_conflict(form, schedule) is None

    def test_first_match_in_input_order(self):
        existing = [
            make_lesson("late", "10:00", 1, student_name="Carol"),
            make_lesson("early", "09:00", 1, student_name="Dave"),
        ]

        conflict = find_conflict(make_form("09:30", duration=1), existing)

        assert conflict.lesson.id == "late"

    def test_record_as_candidate(self, schedule):
        candidate = make_lesson("b", "09:45", 0.5, student_name="Bob")

        assert find_conflict(candidate, schedule).lesson.id == "a"

    def test_quarter_hour_durations(self):
        existing = [make_lesson("a", "09:00", 0.75)]

        assert find_conflict(make_form("09:45", duration=1), existing) is None
        assert find_conflict(make_form("09:44", duration=1), existing) is not None

    def test_empty_schedule(self):
        assert find_conflict(make_form("09:00", duration=1), []) is None

    @pytest.mark.parametrize("first,second,clash", [
        (("09:00", 1), ("09:30", 1), True),
        (("09:00", 2), ("09:30", 0.5), True),
        (("09:00", 1), ("10:00", 1), False),
        (("09:00", 0.5), ("13:00", 1), False),
    ])
    def test_conflict_is_symmetric(self, first, second, clash):
        a = make_lesson("a", *first, student_name="Alice")
        b = make_lesson("b", *second, student_name="Bob")

        assert (find_conflict(a, [b]) is not None) == clash
        assert (find_conflict(b, [a]) is not None) == clash
