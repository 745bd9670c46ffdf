"""
Exception types shared across the application.

Validation problems and scheduling conflicts are NOT exceptions; they are
reported through ValidationResult. The classes below cover malformed
input strings and file I/O failures.
"""


class EasyTimeError(Exception):
    """Base class for application errors."""
    pass


class FormatError(EasyTimeError, ValueError):
    """Raised when a time or date string does not match the expected syntax."""
    pass


class StorageError(EasyTimeError):
    """Raised when the lesson store or a backup cannot be read or written."""
    pass


class ExportError(EasyTimeError):
    """Raised when a CSV or Excel export fails."""
    pass


class LessonNotFoundError(EasyTimeError, KeyError):
    """Raised when a lesson id is not present in the store."""

    def __init__(self, lesson_id: str):
        super().__init__(lesson_id)
        self.lesson_id = lesson_id

    def __str__(self) -> str:
        return f"Lesson not found: {self.lesson_id}"
