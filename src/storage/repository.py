"""
Lesson persistence.

The scheduling and statistics code never touches storage directly; it
receives lists of LessonRecord. A LessonRepository is injected wherever
lessons have to be loaded or saved.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional

from src.models.errors import FormatError, StorageError
from src.models.lesson import LessonRecord
from src.models.schema_version import CURRENT_VERSION, StoreDocument
from src.models.settings import AppSettings
from src.utils.file_utils import (
    load_json,
    load_json_with_integrity,
    save_json,
    save_json_with_integrity,
)


logger = logging.getLogger(__name__)


class LessonRepository(ABC):
    """
    Abstract store for lessons and settings.

    Implementations must return new lists from load() so callers can
    never mutate the stored collection by accident.
    """

    @abstractmethod
    def load(self) -> List[LessonRecord]:
        """
        Load all lessons.

        Raises:
            StorageError: If the store cannot be read
        """
        pass

    @abstractmethod
    def save(self, lessons: List[LessonRecord]) -> None:
        """
        Replace all stored lessons.

        Raises:
            StorageError: If the store cannot be written
        """
        pass

    @abstractmethod
    def load_settings(self) -> Optional[AppSettings]:
        """Stored settings, or None if the user never saved any."""
        pass

    @abstractmethod
    def save_settings(self, settings: AppSettings) -> None:
        pass


class InMemoryLessonRepository(LessonRepository):
    """Repository kept in memory (tests, dry runs)."""

    def __init__(
        self,
        lessons: Optional[List[LessonRecord]] = None,
        settings: Optional[AppSettings] = None
    ):
        self._lessons = list(lessons or [])
        self._settings = settings

    def load(self) -> List[LessonRecord]:
        return list(self._lessons)

    def save(self, lessons: List[LessonRecord]) -> None:
        self._lessons = list(lessons)

    def load_settings(self) -> Optional[AppSettings]:
        return self._settings

    def save_settings(self, settings: AppSettings) -> None:
        self._settings = settings


def _parse_lessons(items: List[Dict[str, Any]], source: Path) -> List[LessonRecord]:
    lessons = []
    for index, item in enumerate(items):
        try:
            lessons.append(LessonRecord.from_dict(item))
        except (KeyError, TypeError, ValueError, FormatError) as e:
            raise StorageError(f"Malformed lesson #{index} in {source}: {e}") from e
    return lessons


def _parse_settings(stored: Optional[Dict[str, Any]], source: Path) -> Optional[AppSettings]:
    if not stored:
        return None
    try:
        settings = AppSettings.from_dict(stored)
    except (TypeError, ValueError) as e:
        raise StorageError(f"Malformed settings in {source}: {e}") from e

    problems = settings.problems()
    if problems:
        raise StorageError(f"Malformed settings in {source}: {'; '.join(problems)}")
    return settings


def _document(raw: Any, source: Path, what: str) -> StoreDocument:
    if not isinstance(raw, dict):
        raise StorageError(f"{what} is unreadable: {source}")
    try:
        return StoreDocument.from_dict(raw)
    except ValueError as e:
        raise StorageError(f"{what} has an invalid layout: {source} ({e})") from e


class JsonLessonRepository(LessonRepository):
    """
    Repository backed by a single versioned JSON file.

    See StoreDocument for the file layout. Lessons and settings share
    the file; saving one keeps the other as it is.

    Examples:
        >>> repository = JsonLessonRepository(Path("data/easytime.json"))
        >>> lessons = repository.load()
        >>> repository.save(lessons + [new_lesson])
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def _read(self) -> StoreDocument:
        if not self.path.exists():
            return StoreDocument()

        document = _document(load_json(self.path), self.path, "Lesson store")
        if not document.is_known_version:
            logger.warning(
                f"Unknown schema version {document.schema_version} in {self.path}, "
                f"reading as {CURRENT_VERSION.value}"
            )
        return document

    def _write(self, document: StoreDocument) -> None:
        document.schema_version = CURRENT_VERSION.value
        if not save_json(document.to_dict(), self.path):
            raise StorageError(f"Failed to write lesson store: {self.path}")

    def load(self) -> List[LessonRecord]:
        lessons = _parse_lessons(self._read().lessons, self.path)
        logger.debug(f"Loaded {len(lessons)} lessons from {self.path}")
        return lessons

    def save(self, lessons: List[LessonRecord]) -> None:
        document = self._read()
        document.lessons = [lesson.to_dict() for lesson in lessons]
        self._write(document)
        logger.debug(f"Saved {len(lessons)} lessons to {self.path}")

    def load_settings(self) -> Optional[AppSettings]:
        return _parse_settings(self._read().settings, self.path)

    def save_settings(self, settings: AppSettings) -> None:
        document = self._read()
        document.settings = settings.to_dict()
        self._write(document)

    def clear(self) -> None:
        """Delete the store file (all lessons and settings)."""
        if self.path.exists():
            self.path.unlink()
            logger.info(f"Cleared lesson store {self.path}")

    def export_backup(self, backup_path: Path) -> Path:
        """
        Write a checksummed copy of the store.

        Returns:
            Path of the backup file

        Raises:
            StorageError: If the store is empty or unreadable, or the backup
                cannot be written
        """
        document = self._read()
        if document.is_empty:
            raise StorageError("No data to back up")

        backup_path = Path(backup_path)
        if not save_json_with_integrity(document.to_dict(), backup_path):
            raise StorageError(f"Failed to write backup: {backup_path}")

        logger.info(f"Backup of {len(document.lessons)} lessons written to {backup_path}")
        return backup_path

    def import_backup(self, backup_path: Path) -> int:
        """
        Replace the store with the contents of a backup.

        The backup is fully parsed before anything is overwritten.

        Returns:
            Number of lessons restored

        Raises:
            StorageError: If the backup is missing, tampered with or malformed
        """
        backup_path = Path(backup_path)
        document = _document(load_json_with_integrity(backup_path), backup_path, "Backup file")
        if not document.is_current_version:
            logger.warning(
                f"Backup version mismatch: {document.schema_version} "
                f"vs {CURRENT_VERSION.value}"
            )

        lessons = _parse_lessons(document.lessons, backup_path)
        _parse_settings(document.settings, backup_path)

        self._write(StoreDocument(
            lessons=[lesson.to_dict() for lesson in lessons],
            settings=document.settings
        ))
        logger.info(f"Restored {len(lessons)} lessons from {backup_path}")
        return len(lessons)
