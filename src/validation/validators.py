"""
Validation building blocks.

ValidationResult collects one message per form field. Validator
subclasses combine the field checks below, each of which returns an
error message or None.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class ValidationResult:
    """
    Field-level outcome of validating a form.

    Bad user input never raises; it ends up here, keyed by field name
    so each input can show its own message.

    Attributes:
        is_valid: False as soon as any field has an error
        field_errors: Field name -> first error message for that field
    """

    is_valid: bool = True
    field_errors: Dict[str, str] = field(default_factory=dict)

    def add_error(self, field_name: str, message: str) -> 'ValidationResult':
        """
        Flag a field. A field keeps its first message; later ones are dropped.

        Examples:
            >>> ValidationResult().add_error("date", "Date is required").is_valid
            False
        """
        self.field_errors.setdefault(field_name, message)
        self.is_valid = False
        return self

    def clear_error(self, field_name: str) -> 'ValidationResult':
        """Forget a field's error once the user has changed that field."""
        self.field_errors.pop(field_name, None)
        self.is_valid = not self.field_errors
        return self

    def error_for(self, field_name: str) -> Optional[str]:
        return self.field_errors.get(field_name)

    @property
    def errors(self) -> List[str]:
        """Messages in the order the fields were flagged."""
        return list(self.field_errors.values())

    @property
    def has_errors(self) -> bool:
        return bool(self.field_errors)

    def get_summary(self) -> str:
        """One line per flagged field, for logs and the report script."""
        if not self.has_errors:
            return "Validation passed"

        lines = [f"Errors ({len(self.field_errors)}):"]
        lines.extend(f"  - {name}: {message}" for name, message in self.field_errors.items())
        return "\n".join(lines)


def is_number(value: Any) -> bool:
    """int or float, but not bool."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class Validator(ABC):
    """
    Base class for form validators.

    Field checks take the value and a human readable label and return
    the message to show, or None when the value is acceptable.
    """

    @abstractmethod
    def validate(self, data: Any) -> ValidationResult:
        pass

    def validate_required(self, value: Any, label: str) -> Optional[str]:
        """Missing (None) or blank text."""
        if value is None or (isinstance(value, str) and not value.strip()):
            return f"{label} is required"
        return None

    def validate_number_range(
        self,
        value: Any,
        label: str,
        minimum: Optional[float] = None,
        maximum: Optional[float] = None,
        unit: str = ""
    ) -> Optional[str]:
        """
        A positive number within optional inclusive bounds.

        Checked in this order, first failure wins: present, numeric (NaN
        counts as not numeric), greater than zero, maximum, minimum.

        Examples:
            >>> validator.validate_number_range(0.25, "Duration", 0.5, 12, "hours")
            'Duration must be at least 0.5 hours, got 0.25'
        """
        suffix = f" {unit}" if unit else ""

        if value is None:
            return f"{label} is required"
        if not is_number(value) or value != value:
            return f"{label} must be a number, got {type(value).__name__}"
        if value <= 0:
            return f"{label} must be greater than 0"
        if maximum is not None and value > maximum:
            return f"{label} must be at most {maximum:g}{suffix}, got {value:g}"
        if minimum is not None and value < minimum:
            return f"{label} must be at least {minimum:g}{suffix}, got {value:g}"
        return None

    def validate_string_length(
        self,
        value: Any,
        label: str,
        min_length: Optional[int] = None,
        max_length: Optional[int] = None
    ) -> Optional[str]:
        """Text whose length (in characters) lies within optional bounds."""
        if not isinstance(value, str):
            return f"{label} must be text, got {type(value).__name__}"

        length = len(value)
        if min_length is not None and length < min_length:
            return f"{label} must be at least {min_length} characters, got {length}"
        if max_length is not None and length > max_length:
            return f"{label} must be at most {max_length} characters, got {length}"
        return None
