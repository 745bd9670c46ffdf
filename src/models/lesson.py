"""
Lesson data models with type safety.

This module provides:
- LessonData: TypedDict describing a lesson as persisted in the JSON store
- LessonStatus / TeachingMethod enums
- LessonRecord: immutable in-memory lesson
- LessonFormData: raw candidate lesson as entered by the user
"""

import uuid
from dataclasses import dataclass, replace
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional, TypedDict

from src.scheduling.date_utils import DateLike, combine_date_time, format_iso_date, to_date
from src.scheduling.time_utils import add_hours, compute_duration_hours


class LessonStatus(Enum):
    """Lesson lifecycle status."""
    PLANNED = "planned"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TeachingMethod(Enum):
    """Where the lesson takes place."""
    ONLINE = "online"
    OFFLINE = "offline"


class LessonData(TypedDict, total=False):
    """
    Lesson as stored on disk (camelCase keys).

    Examples:
        >>> lesson: LessonData = {
        ...     "id": "5f0c2c1e9a7d4c50b1d0c4a9e3f1a2b7",
        ...     "date": "2024-05-01",
        ...     "startTime": "09:00",
        ...     "duration": 1.5,
        ...     "studentName": "Alice",
        ...     "teachingMethod": "online",
        ...     "status": "planned",
        ...     "hourlyRate": 100,
        ...     "notes": "",
        ...     "createdAt": "2024-04-20T10:00:00",
        ...     "updatedAt": "2024-04-20T10:00:00"
        ... }
    """

    id: str
    date: str
    startTime: str
    duration: float
    studentName: str
    studentId: Optional[str]
    teachingMethod: str
    status: str
    hourlyRate: float
    notes: str
    createdAt: str
    updatedAt: str


def _timestamp(now: Optional[datetime] = None) -> str:
    return (now or datetime.now()).isoformat(timespec="seconds")


@dataclass(frozen=True)
class LessonRecord:
    """
    One scheduled or completed teaching session.

    Records are immutable; edits produce a new record through
    with_changes(), which also refreshes updated_at.

    Attributes:
        id: Opaque unique identifier assigned at creation
        date: Day the lesson occurs
        start_time: Wall-clock start (HH:MM)
        duration: Length in hours (e.g. 0.5, 0.75, 1.5)
        student_name: Display label for the student
        teaching_method: Online or offline
        status: Planned, completed or cancelled
        hourly_rate: Rate per hour captured at creation time
        notes: Optional free text
        student_id: Optional external roster number
        created_at: ISO timestamp of creation
        updated_at: ISO timestamp of last change
    """

    id: str
    date: date
    start_time: str
    duration: float
    student_name: str
    teaching_method: TeachingMethod = TeachingMethod.ONLINE
    status: LessonStatus = LessonStatus.PLANNED
    hourly_rate: float = 0.0
    notes: str = ""
    student_id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""

    @property
    def end_time(self) -> str:
        """End time derived from start_time + duration (may exceed 24:00)."""
        return add_hours(self.start_time, self.duration)

    @property
    def starts_at(self) -> datetime:
        """Start of the lesson as a naive local datetime."""
        return combine_date_time(self.date, self.start_time)

    @property
    def is_completed(self) -> bool:
        return self.status == LessonStatus.COMPLETED

    @property
    def is_cancelled(self) -> bool:
        return self.status == LessonStatus.CANCELLED

    @property
    def income(self) -> float:
        """Gross income of the lesson; zero unless completed."""
        if not self.is_completed:
            return 0.0
        return self.duration * self.hourly_rate

    @property
    def sort_key(self):
        """Chronological ordering key (date, then zero-padded start time)."""
        return (self.date, self.start_time.zfill(5))

    @classmethod
    def create(
        cls,
        form: "LessonFormData",
        now: Optional[datetime] = None
    ) -> "LessonRecord":
        """
        Build a new record from an already validated form.

        Args:
            form: Validated candidate lesson
            now: Creation timestamp (defaults to the current time)

        Returns:
            New LessonRecord with a fresh id
        """
        stamp = _timestamp(now)
        return cls(
            id=uuid.uuid4().hex,
            date=to_date(form.date),
            start_time=form.start_time,
            duration=float(form.resolved_duration),
            student_name=form.student_name.strip(),
            teaching_method=TeachingMethod(form.teaching_method),
            status=LessonStatus(form.status),
            hourly_rate=float(form.hourly_rate),
            notes=form.notes or "",
            student_id=form.student_id,
            created_at=stamp,
            updated_at=stamp
        )

    def with_changes(self, now: Optional[datetime] = None, **changes: Any) -> "LessonRecord":
        """Return a copy with the given fields replaced and updated_at refreshed."""
        if "id" in changes or "created_at" in changes:
            raise ValueError("id and created_at cannot be changed")
        return replace(self, updated_at=_timestamp(now), **changes)

    def to_dict(self) -> LessonData:
        """
        Convert to the persisted dictionary format.

        Returns:
            LessonData dictionary with camelCase keys
        """
        data: LessonData = {
            "id": self.id,
            "date": format_iso_date(self.date),
            "startTime": self.start_time,
            "duration": self.duration,
            "studentName": self.student_name,
            "teachingMethod": self.teaching_method.value,
            "status": self.status.value,
            "hourlyRate": self.hourly_rate,
            "notes": self.notes,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at
        }
        if self.student_id is not None:
            data["studentId"] = self.student_id
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LessonRecord":
        """
        Create a record from the persisted dictionary format.

        Raises:
            FormatError: If the date or time is malformed
            KeyError: If a required key is missing
            ValueError: If status or teaching method is unknown
        """
        return cls(
            id=str(data["id"]),
            date=to_date(data["date"]),
            start_time=data["startTime"],
            duration=float(data["duration"]),
            student_name=data["studentName"],
            teaching_method=TeachingMethod(data.get("teachingMethod", "online")),
            status=LessonStatus(data.get("status", "planned")),
            hourly_rate=float(data["hourlyRate"]),
            notes=data.get("notes") or "",
            student_id=data.get("studentId"),
            created_at=data.get("createdAt", ""),
            updated_at=data.get("updatedAt", "")
        )


@dataclass
class LessonFormData:
    """
    Candidate lesson as entered in the lesson form.

    Values are kept raw (strings, possibly missing numbers) so the
    validator can report every problem at once. When end_time is given,
    the duration is derived from the start/end range.
    """

    date: Optional[DateLike] = None
    start_time: Optional[str] = None
    duration: Optional[float] = None
    end_time: Optional[str] = None
    student_name: str = ""
    teaching_method: str = TeachingMethod.ONLINE.value
    status: str = LessonStatus.PLANNED.value
    hourly_rate: Optional[float] = None
    notes: str = ""
    student_id: Optional[str] = None

    @property
    def resolved_duration(self) -> Optional[float]:
        """Duration in hours, derived from end_time when one is set."""
        if self.end_time:
            return compute_duration_hours(self.start_time, self.end_time)
        return self.duration

    @classmethod
    def from_record(cls, lesson: LessonRecord) -> "LessonFormData":
        """Pre-fill a form from an existing lesson (edit flow)."""
        return cls(
            date=lesson.date,
            start_time=lesson.start_time,
            duration=lesson.duration,
            student_name=lesson.student_name,
            teaching_method=lesson.teaching_method.value,
            status=lesson.status.value,
            hourly_rate=lesson.hourly_rate,
            notes=lesson.notes,
            student_id=lesson.student_id
        )
