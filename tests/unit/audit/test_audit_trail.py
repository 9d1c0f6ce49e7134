"""Tests for the per-API audit trail."""

from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from oasvault.audit import AuditRecord, AuditTrail
from oasvault.exceptions import StorageError, ValidationError
from oasvault.storage import FileSystemStore, read_jsonl


@pytest.fixture
def store(tmp_path: Path) -> FileSystemStore:
    return FileSystemStore(tmp_path / "data")


@pytest.fixture
def trail(store: FileSystemStore) -> AuditTrail:
    return AuditTrail(store)


def _record(event: str, minutes: int, **kwargs: str) -> AuditRecord:
    return AuditRecord(
        api_id="sample-api",
        timestamp=datetime(2025, 1, 1, tzinfo=UTC) + timedelta(minutes=minutes),
        event=event,
        actor=kwargs.get("actor", "alice"),
        version=kwargs.get("version"),
    )


class TestRecordEvent:
    def test_appends_one_line_per_event(
        self, trail: AuditTrail, store: FileSystemStore
    ) -> None:
        _ = trail.record_event("sample-api", "version_created", version="v1.0.0")
        _ = trail.record_event("sample-api", "version_set_current", version="v1.0.0")

        lines = read_jsonl(store.root / "sample-api" / "audit.jsonl")
        assert [line["event"] for line in lines] == [
            "version_created",
            "version_set_current",
        ]

    def test_defaults_actor(self, store: FileSystemStore) -> None:
        trail = AuditTrail(store, default_actor="ci-bot")

        record = trail.record_event("sample-api", "version_deleted")

        assert record.actor == "ci-bot"
        assert record.timestamp.tzinfo is not None

    def test_failed_append_propagates(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        _ = blocker.write_text("file, not a directory")
        trail = AuditTrail(FileSystemStore(blocker))

        with pytest.raises(StorageError):
            _ = trail.record_event("sample-api", "version_created")


class TestGet:
    def test_missing_audit_file_is_empty(self, trail: AuditTrail) -> None:
        assert trail.get("sample-api") == []

    def test_returns_newest_first(self, trail: AuditTrail) -> None:
        for index, event in enumerate(["a", "b", "c"]):
            trail.append_event(_record(event, index))

        assert [record.event for record in trail.get("sample-api")] == ["c", "b", "a"]

    def test_applies_limit(self, trail: AuditTrail) -> None:
        for index in range(5):
            trail.append_event(_record(f"event_{index}", index))

        assert [r.event for r in trail.get("sample-api", limit=2)] == [
            "event_4",
            "event_3",
        ]

    def test_filters(self, trail: AuditTrail) -> None:
        trail.append_event(_record("version_created", 0, version="v1.0.0"))
        trail.append_event(_record("version_created", 1, version="v1.1.0", actor="bob"))
        trail.append_event(_record("version_set_current", 2, version="v1.1.0"))

        assert len(trail.get("sample-api", version="v1.1.0")) == 2
        assert len(trail.get("sample-api", event="created")) == 2
        assert len(trail.get("sample-api", actor="bob")) == 1
        since = datetime(2025, 1, 1, 0, 1, tzinfo=UTC)
        assert len(trail.get("sample-api", since=since)) == 2
        assert len(trail.get("sample-api", until=since)) == 2

    def test_rejects_non_positive_limit(self, trail: AuditTrail) -> None:
        with pytest.raises(ValidationError):
            _ = trail.get("sample-api", limit=0)

    def test_audits_are_isolated_per_api(self, trail: AuditTrail) -> None:
        _ = trail.record_event("sample-api", "version_created")

        assert trail.get("other-api") == []
