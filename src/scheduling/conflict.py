"""
Scheduling conflict detection.

Lessons occupy half-open minute intervals [start, end) on their date.
Two intervals overlap iff start_a < end_b and start_b < end_a, so
back-to-back lessons never conflict. Cancelled lessons never block a slot.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from src.models.lesson import LessonFormData, LessonRecord, LessonStatus
from src.scheduling.date_utils import to_date
from src.scheduling.time_utils import end_minutes, format_minutes, to_minutes


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConflictInfo:
    """
    The first existing lesson that overlaps a candidate.

    Attributes:
        lesson: The conflicting lesson
        end_time: Its computed end time (HH:MM)
    """

    lesson: LessonRecord
    end_time: str

    @property
    def message(self) -> str:
        return (
            f"Time conflict: {self.lesson.student_name} "
            f"{self.lesson.start_time}-{self.end_time}"
        )


def intervals_overlap(first: Tuple[int, int], second: Tuple[int, int]) -> bool:
    """Half-open interval overlap test."""
    return first[0] < second[1] and second[0] < first[1]


def candidate_interval(candidate) -> Tuple[int, int]:
    """
    Minute interval of a candidate lesson.

    The candidate needs start_time and either an end_time or a duration
    in hours. An explicit end_time on a form takes precedence; records
    always use their duration.
    """
    start = to_minutes(candidate.start_time)
    if isinstance(candidate, LessonFormData) and candidate.end_time:
        return start, to_minutes(candidate.end_time)
    return start, end_minutes(candidate.start_time, candidate.duration)


def find_conflict(
    candidate,
    existing: Iterable[LessonRecord],
    exclude_id: Optional[str] = None
) -> Optional[ConflictInfo]:
    """
    Find the first lesson on the candidate's date whose time overlaps it.

    Inputs are assumed validated (well-formed times, positive duration).

    Args:
        candidate: LessonRecord or LessonFormData being scheduled
        existing: Lessons already in the schedule (any dates)
        exclude_id: Lesson id to ignore, i.e. the lesson being edited

    Returns:
        ConflictInfo for the first overlapping lesson in input order,
        or None when the slot is free

    Examples:
        >>> conflict = find_conflict(form, lessons)
        >>> if conflict:
        ...     print(conflict.message)  # "Time conflict: Alice 09:00-10:00"
    """
    target_date = to_date(candidate.date)
    target = candidate_interval(candidate)

    for lesson in existing:
        if lesson.date != target_date:
            continue
        if lesson.status == LessonStatus.CANCELLED:
            continue
        if exclude_id is not None and lesson.id == exclude_id:
            continue

        lesson_end = end_minutes(lesson.start_time, lesson.duration)
        if intervals_overlap(target, (to_minutes(lesson.start_time), lesson_end)):
            logger.debug(
                f"Candidate {format_minutes(target[0])}-{format_minutes(target[1])} "
                f"on {target_date} overlaps lesson {lesson.id}"
            )
            return ConflictInfo(lesson=lesson, end_time=format_minutes(lesson_end))

    return None
