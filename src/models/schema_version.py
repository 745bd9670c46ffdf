"""
Versioned layout of the lesson store file and of backups.

Both files hold the same document:

    {"schema_version": "1.1",
     "data": {"lessons": [LessonData, ...], "settings": {...} | null}}
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class SchemaVersion(Enum):
    """
    Store format versions.

    Versions:
        V1_0: Lessons and settings
        V1_1: Optional studentId on lessons
    """

    V1_0 = "1.0"
    V1_1 = "1.1"


CURRENT_VERSION = SchemaVersion.V1_1

KNOWN_VERSIONS = frozenset(version.value for version in SchemaVersion)


@dataclass
class StoreDocument:
    """
    Raw contents of a store or backup file.

    Lessons and settings stay as plain dictionaries here; the repository
    turns them into LessonRecord / AppSettings.

    Attributes:
        lessons: Persisted lessons (camelCase LessonData)
        settings: Persisted settings, None if never saved
        schema_version: Version the document was written with
    """

    lessons: List[Dict[str, Any]] = field(default_factory=list)
    settings: Optional[Dict[str, Any]] = None
    schema_version: str = CURRENT_VERSION.value

    @property
    def is_empty(self) -> bool:
        return not self.lessons and not self.settings

    @property
    def is_known_version(self) -> bool:
        return self.schema_version in KNOWN_VERSIONS

    @property
    def is_current_version(self) -> bool:
        return self.schema_version == CURRENT_VERSION.value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema_version": self.schema_version,
            "data": {"lessons": self.lessons, "settings": self.settings}
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "StoreDocument":
        """
        Read a document; files without a version are treated as 1.0.

        Raises:
            ValueError: If "data" or its lesson list has the wrong shape
        """
        data = raw.get("data") or {}
        if not isinstance(data, dict) or not isinstance(data.get("lessons") or [], list):
            raise ValueError("expected {'data': {'lessons': [...]}}")
        lessons = data.get("lessons") or []

        return cls(
            lessons=lessons,
            settings=data.get("settings") or None,
            schema_version=str(raw.get("schema_version", SchemaVersion.V1_0.value))
        )
