"""
Result<T> pattern for recoverable operations.

Service commands (adding, editing or completing lessons, changing
settings) return a Result instead of raising, so the caller can show the
message, or the per-field errors of a rejected lesson, and carry on.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Generic, Optional, TypeVar


T = TypeVar('T')
U = TypeVar('U')


class ResultStatus(Enum):
    """Status of a Result."""
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass
class Result(Generic[T]):
    """
    Outcome of a service command.

    Attributes:
        status: SUCCESS or FAILURE
        value: Produced value (a LessonRecord, AppSettings, ...); None on failure
        error: Exception behind a failure, if there was one
        message: Text to show the user
        field_errors: Field name -> message, for lessons rejected by validation

    Examples:
        >>> result = service.add_lesson(form)
        >>> if result.is_success:
        ...     print(f"Added lesson {result.value.id}")
        ... else:
        ...     print(result.field_errors.get("start_time", result.message))
    """

    status: ResultStatus
    value: Optional[T] = None
    error: Optional[Exception] = None
    message: Optional[str] = None
    field_errors: Dict[str, str] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        return self.status == ResultStatus.SUCCESS

    @property
    def is_failure(self) -> bool:
        return self.status == ResultStatus.FAILURE

    @classmethod
    def success(cls, value: T, message: Optional[str] = None) -> 'Result[T]':
        return cls(status=ResultStatus.SUCCESS, value=value, message=message)

    @classmethod
    def failure(
        cls,
        message: str,
        error: Optional[Exception] = None,
        field_errors: Optional[Dict[str, str]] = None
    ) -> 'Result[T]':
        """
        Build a failed result.

        Args:
            message: What went wrong
            error: Exception that caused it (storage errors, lookups)
            field_errors: Validation messages keyed by form field; copied
        """
        return cls(
            status=ResultStatus.FAILURE,
            message=message,
            error=error,
            field_errors=dict(field_errors or {})
        )

    def unwrap(self) -> T:
        """
        Raises:
            ValueError: If called on a failure
        """
        if self.is_failure:
            raise ValueError(f"Cannot unwrap failure result: {self.message}")
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value if self.is_success else default

    def map(self, func: Callable[[T], U]) -> 'Result[U]':
        """
        Transform the value of a success.

        A failure is passed on with its message and field errors; if func
        raises, the exception becomes the failure.

        Examples:
            >>> service.complete_lesson(lesson_id).map(lambda lesson: lesson.income).value
            150.0
        """
        if self.is_failure:
            return Result.failure(self.message, self.error, self.field_errors)

        try:
            return Result.success(func(self.value), self.message)
        except Exception as e:
            return Result.failure(str(e), e)
