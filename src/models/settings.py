"""
Application settings model.
"""

from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, List

from src.models.lesson import TeachingMethod
from src.validation.validators import is_number


@dataclass(frozen=True)
class AppSettings:
    """
    User preferences loaded at start and persisted on change.

    Attributes:
        hourly_rate: Default rate pre-filled in new lessons
        tax_rate: Tax percentage withheld from gross income
        default_teaching_method: Method pre-selected in new lessons
        enable_notifications: Whether lesson reminders are on
        notification_minutes: Minutes before a lesson to remind
    """

    hourly_rate: float = 55.0
    tax_rate: float = 10.0
    default_teaching_method: TeachingMethod = TeachingMethod.ONLINE
    enable_notifications: bool = True
    notification_minutes: int = 30

    def problems(self) -> List[str]:
        """Return a list of invalid settings (empty when all are valid)."""
        errors = []
        if not is_number(self.hourly_rate) or not self.hourly_rate > 0:
            errors.append("hourly_rate must be a positive number")
        if not is_number(self.tax_rate) or not 0 <= self.tax_rate <= 100:
            errors.append("tax_rate must be a number between 0 and 100")
        if not isinstance(self.enable_notifications, bool):
            errors.append("enable_notifications must be true or false")
        if not is_number(self.notification_minutes) or not self.notification_minutes >= 0:
            errors.append("notification_minutes must be a non-negative number")
        return errors

    def with_changes(self, **changes: Any) -> "AppSettings":
        if "default_teaching_method" in changes:
            changes["default_teaching_method"] = TeachingMethod(changes["default_teaching_method"])
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["default_teaching_method"] = self.default_teaching_method.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any], defaults: "AppSettings" = None) -> "AppSettings":
        """
        Merge stored values over defaults; unknown keys are ignored.
        """
        base = defaults or cls()
        known = {key: value for key, value in data.items() if key in cls.__dataclass_fields__}
        return base.with_changes(**known)
