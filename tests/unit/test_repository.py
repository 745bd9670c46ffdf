"""
Unit tests for lesson persistence.
"""

import json
import logging
from datetime import date

import pytest

from src.models.errors import StorageError
from src.models.lesson import LessonRecord, LessonStatus, TeachingMethod
from src.models.schema_version import CURRENT_VERSION, SchemaVersion, StoreDocument
from src.models.settings import AppSettings
from src.storage.repository import InMemoryLessonRepository, JsonLessonRepository
from src.utils.file_utils import save_json_with_integrity


@pytest.fixture
def lessons():
    return [
        LessonRecord(
            id="a",
            date=date(2024, 5, 1),
            start_time="09:00",
            duration=1,
            student_name="Alice",
            status=LessonStatus.COMPLETED,
            hourly_rate=100,
            created_at="2024-04-20T10:00:00",
            updated_at="2024-04-20T10:00:00"
        ),
        LessonRecord(
            id="b",
            date=date(2024, 5, 2),
            start_time="14:30",
            duration=0.75,
            student_name="Bob",
            teaching_method=TeachingMethod.OFFLINE,
            hourly_rate=60,
            student_id="S-12"
        ),
    ]


@pytest.fixture
def repository(tmp_path):
    return JsonLessonRepository(tmp_path / "data" / "easytime.json")


class TestInMemoryLessonRepository:
    """Test cases for InMemoryLessonRepository."""

    def test_load_returns_copy(self, lessons):
        repository = InMemoryLessonRepository(lessons)

        loaded = repository.load()
        loaded.clear()

        assert len(repository.load()) == 2

    def test_settings(self):
        repository = InMemoryLessonRepository()
        assert repository.load_settings() is None

        repository.save_settings(AppSettings(tax_rate=20))
        assert repository.load_settings().tax_rate == 20


class TestJsonLessonRepository:
    """Test cases for JsonLessonRepository."""

    def test_missing_file_is_empty(self, repository):
        assert repository.load() == []
        assert repository.load_settings() is None

    def test_save_and_load(self, repository, lessons):
        repository.save(lessons)

        assert repository.load() == lessons

    def test_file_layout(self, repository, lessons):
        repository.save(lessons)

        raw = json.loads(repository.path.read_text(encoding="utf-8"))

        assert raw["schema_version"] == CURRENT_VERSION.value
        assert raw["data"]["lessons"][1]["studentId"] == "S-12"
        assert raw["data"]["lessons"][0]["startTime"] == "09:00"

    def test_settings_and_lessons_are_kept_apart(self, repository, lessons):
        repository.save(lessons)
        repository.save_settings(AppSettings(hourly_rate=70, tax_rate=15))
        repository.save(lessons[:1])

        assert repository.load_settings() == AppSettings(hourly_rate=70, tax_rate=15)
        assert len(repository.load()) == 1

    def test_unreadable_file(self, repository):
        repository.path.parent.mkdir(parents=True)
        repository.path.write_text("{not json", encoding="utf-8")

        with pytest.raises(StorageError):
            repository.load()

    def test_malformed_lesson(self, repository):
        document = StoreDocument(lessons=[{"id": "a", "date": "yesterday"}])
        repository.path.parent.mkdir(parents=True)
        repository.path.write_text(json.dumps(document.to_dict()), encoding="utf-8")

        with pytest.raises(StorageError, match="Malformed lesson #0"):
            repository.load()

    def test_malformed_settings(self, repository):
        document = StoreDocument(settings={"tax_rate": "15"})
        repository.path.parent.mkdir(parents=True)
        repository.path.write_text(json.dumps(document.to_dict()), encoding="utf-8")

        with pytest.raises(StorageError, match="Malformed settings.*tax_rate"):
            repository.load_settings()

    def test_unversioned_file_is_read(self, repository, lessons):
        repository.path.parent.mkdir(parents=True)
        payload = {"data": {"lessons": [lessons[0].to_dict()]}}
        repository.path.write_text(json.dumps(payload), encoding="utf-8")

        assert repository.load() == lessons[:1]

    def test_clear(self, repository, lessons):
        repository.save(lessons)
        repository.clear()

        assert not repository.path.exists()
        assert repository.load() == []


class TestBackups:
    """Test cases for export_backup and import_backup."""

    def test_round_trip(self, repository, lessons, tmp_path):
        repository.save(lessons)
        repository.save_settings(AppSettings(tax_rate=12))
        backup = repository.export_backup(tmp_path / "backups" / "backup.json")

        restored = JsonLessonRepository(tmp_path / "restored.json")
        count = restored.import_backup(backup)

        assert count == 2
        assert restored.load() == lessons
        assert restored.load_settings().tax_rate == 12

    def test_empty_store_cannot_be_backed_up(self, repository, tmp_path):
        with pytest.raises(StorageError, match="No data to back up"):
            repository.export_backup(tmp_path / "backup.json")

    def test_tampered_backup_rejected(self, repository, lessons, tmp_path):
        repository.save(lessons)
        backup = repository.export_backup(tmp_path / "backup.json")

        wrapped = json.loads(backup.read_text(encoding="utf-8"))
        wrapped["data"]["data"]["lessons"][0]["hourlyRate"] = 9999
        backup.write_text(json.dumps(wrapped), encoding="utf-8")

        with pytest.raises(StorageError, match="Backup file is unreadable"):
            JsonLessonRepository(tmp_path / "restored.json").import_backup(backup)

    def test_missing_backup(self, repository, tmp_path):
        with pytest.raises(StorageError):
            repository.import_backup(tmp_path / "nope.json")

    def test_failed_import_keeps_store(self, repository, lessons, tmp_path):
        repository.save(lessons)
        backup = tmp_path / "backup.json"
        save_json_with_integrity(StoreDocument(lessons=[{"id": "x"}]).to_dict(), backup)

        with pytest.raises(StorageError, match="Malformed lesson #0"):
            repository.import_backup(backup)
        assert repository.load() == lessons

    def test_older_backup_is_restored_with_warning(self, lessons, tmp_path, caplog):
        backup = tmp_path / "backup.json"
        document = StoreDocument(
            lessons=[lessons[0].to_dict()],
            schema_version=SchemaVersion.V1_0.value
        )
        save_json_with_integrity(document.to_dict(), backup)
        repository = JsonLessonRepository(tmp_path / "restored.json")

        with caplog.at_level(logging.WARNING):
            assert repository.import_backup(backup) == 1

        assert "Backup version mismatch: 1.0" in caplog.text
        raw = json.loads(repository.path.read_text(encoding="utf-8"))
        assert raw["schema_version"] == CURRENT_VERSION.value

    def test_wrong_layout_rejected(self, repository):
        repository.path.parent.mkdir(parents=True)
        repository.path.write_text(json.dumps({"data": {"lessons": "oops"}}), encoding="utf-8")

        with pytest.raises(StorageError, match="invalid layout"):
            repository.load()
