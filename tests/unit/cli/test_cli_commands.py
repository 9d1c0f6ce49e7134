"""Tests for the oasvault command-line interface."""

import json
from collections.abc import Callable
from pathlib import Path

import pytest
import yaml

from oasvault.cli._commands import ExitCode

Run = Callable[..., int]


@pytest.fixture
def created(oasvault_cli: Run, seed_file: Path, capsys: pytest.CaptureFixture[str]) -> Run:
    """CLI runner with ``sample-api`` v1.0.0 created from the petstore."""
    code = oasvault_cli(
        "--actor", "alice", "versions", "create", "sample-api", "v1.0.0",
        "--seed", str(seed_file), "-d", "Initial release",
    )
    assert code == ExitCode.SUCCESS
    _ = capsys.readouterr()
    return oasvault_cli


class TestVersions:
    def test_create_prints_version_record(
        self, oasvault_cli: Run, seed_file: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        code = oasvault_cli(
            "versions", "create", "sample-api", "v1.0.0",
            "--seed", str(seed_file), "--format", "json",
        )

        data = json.loads(capsys.readouterr().out)
        assert code == ExitCode.SUCCESS
        assert data["version"] == "v1.0.0"
        assert data["stats"]["endpoint_count"] == 4
        assert data["created_by"] == "system"

    def test_list_marks_pointers(
        self, created: Run, capsys: pytest.CaptureFixture[str]
    ) -> None:
        _ = created("versions", "create", "sample-api", "v1.1.0", "--from", "v1.0.0")
        _ = capsys.readouterr()

        code = created("versions", "list", "sample-api")

        out = capsys.readouterr().out
        assert code == ExitCode.SUCCESS
        assert "current, latest-stable" in out
        assert "v1.1.0" in out

    def test_list_as_yaml(self, created: Run, capsys: pytest.CaptureFixture[str]) -> None:
        _ = created("versions", "list", "sample-api", "-f", "yaml")

        assert yaml.safe_load(capsys.readouterr().out) == {
            "api_id": "sample-api",
            "versions": ["v1.0.0"],
            "current_version": "v1.0.0",
            "latest_stable": "v1.0.0",
        }

    def test_apis(self, created: Run, capsys: pytest.CaptureFixture[str]) -> None:
        _ = created("versions", "apis", "--format", "json")

        assert json.loads(capsys.readouterr().out) == {"apis": ["sample-api"]}

    def test_show_version(self, created: Run, capsys: pytest.CaptureFixture[str]) -> None:
        code = created("versions", "show", "sample-api", "v1.0.0")

        out = capsys.readouterr().out
        assert code == ExitCode.SUCCESS
        assert "Initial release" in out
        assert "alice" in out

    def test_set_current(self, created: Run, capsys: pytest.CaptureFixture[str]) -> None:
        _ = created("versions", "create", "sample-api", "v1.1.0", "--from", "v1.0.0")
        _ = capsys.readouterr()

        code = created("versions", "set-current", "sample-api", "v1.1.0", "-r", "ship")

        assert code == ExitCode.SUCCESS
        assert "Current version of sample-api is now v1.1.0" in capsys.readouterr().out

    def test_set_stable(self, created: Run, capsys: pytest.CaptureFixture[str]) -> None:
        code = created("versions", "set-stable", "sample-api", "v1.0.0")

        assert code == ExitCode.SUCCESS
        assert "Latest stable version of sample-api is now v1.0.0" in (
            capsys.readouterr().out
        )

    def test_delete(self, created: Run, capsys: pytest.CaptureFixture[str]) -> None:
        _ = created("versions", "create", "sample-api", "v1.1.0", "--from", "v1.0.0")
        _ = capsys.readouterr()

        code = created("versions", "delete", "sample-api", "v1.1.0")

        assert code == ExitCode.SUCCESS
        assert "Deleted sample-api v1.1.0" in capsys.readouterr().out


class TestErrors:
    def test_unknown_api_is_not_found(
        self, oasvault_cli: Run, capsys: pytest.CaptureFixture[str]
    ) -> None:
        code = oasvault_cli("versions", "list", "missing-api")

        assert code == ExitCode.NOT_FOUND
        assert "Error:" in capsys.readouterr().out

    def test_malformed_tag_is_a_validation_error(self, created: Run) -> None:
        assert created("versions", "show", "sample-api", "1.0") == (
            ExitCode.VALIDATION_ERROR
        )

    def test_duplicate_version_is_a_conflict(self, created: Run) -> None:
        assert created("versions", "create", "sample-api", "v1.0.0") == (
            ExitCode.VALIDATION_ERROR
        )

    def test_deleting_current_version_is_rejected(self, created: Run) -> None:
        _ = created("versions", "create", "sample-api", "v1.1.0", "--from", "v1.0.0")

        assert created("versions", "delete", "sample-api", "v1.0.0") == (
            ExitCode.VALIDATION_ERROR
        )

    def test_non_mapping_seed(self, oasvault_cli: Run, tmp_path: Path) -> None:
        seed = tmp_path / "list.yaml"
        _ = seed.write_text("- a\n- b\n")

        assert oasvault_cli(
            "versions", "create", "sample-api", "v1.0.0", "--seed", str(seed)
        ) == ExitCode.VALIDATION_ERROR

    def test_missing_config_file_is_an_io_error(
        self, oasvault_cli: Run, tmp_path: Path
    ) -> None:
        code = oasvault_cli(
            "--config", str(tmp_path / "absent.toml"), "versions", "apis"
        )

        assert code == ExitCode.IO_ERROR


class TestRefs:
    def test_find(self, created: Run, capsys: pytest.CaptureFixture[str]) -> None:
        code = created(
            "refs", "find", "sample-api", "v1.0.0", "schemas", "Pet", "-f", "json"
        )

        data = json.loads(capsys.readouterr().out)
        assert code == ExitCode.SUCCESS
        assert data["ref"] == "#/components/schemas/Pet"
        assert len(data["usages"]) == 4

    def test_validate_valid(self, created: Run, capsys: pytest.CaptureFixture[str]) -> None:
        code = created("refs", "validate", "sample-api", "v1.0.0")

        assert code == ExitCode.SUCCESS
        assert "All 6 internal references resolve." in capsys.readouterr().out

    def test_rewrite_then_validate_reports_broken(
        self, created: Run, capsys: pytest.CaptureFixture[str]
    ) -> None:
        code = created(
            "--actor", "bob", "refs", "rewrite", "sample-api", "v1.0.0",
            "#/components/schemas/Pet", "#/components/schemas/Animal",
        )
        assert code == ExitCode.SUCCESS
        assert "Rewrote 4 reference(s)" in capsys.readouterr().out

        code = created("refs", "validate", "sample-api", "v1.0.0")

        assert code == ExitCode.VALIDATION_ERROR
        assert "#/components/schemas/Animal" in capsys.readouterr().out

    def test_rewrite_unused_reference(self, created: Run) -> None:
        assert created(
            "refs", "rewrite", "sample-api", "v1.0.0", "#/components/schemas/Dog", "#/x"
        ) == ExitCode.NOT_FOUND

    def test_rename(self, created: Run, capsys: pytest.CaptureFixture[str]) -> None:
        code = created("refs", "rename", "sample-api", "v1.0.0", "schemas", "Pet", "Animal")

        assert code == ExitCode.SUCCESS
        assert "rewrote 4 reference(s)" in capsys.readouterr().out


class TestDiff:
    @pytest.fixture
    def breaking_pair(self, created: Run, tmp_path: Path, seed_file: Path) -> Run:
        document = yaml.safe_load(seed_file.read_text())
        del document["paths"]["/pets/{petId}"]["delete"]
        seed = tmp_path / "v2.yaml"
        _ = seed.write_text(yaml.safe_dump(document, sort_keys=False))
        assert created(
            "versions", "create", "sample-api", "v2.0.0", "--seed", str(seed)
        ) == ExitCode.SUCCESS
        return created

    def test_reports_breaking_changes(
        self, breaking_pair: Run, capsys: pytest.CaptureFixture[str]
    ) -> None:
        _ = capsys.readouterr()

        code = breaking_pair("diff", "sample-api", "v1.0.0", "v2.0.0")

        out = capsys.readouterr().out
        assert code == ExitCode.SUCCESS
        assert "DELETE /pets/{petId}" in out
        assert "1 breaking, 0 non-breaking" in out

    def test_fail_on_breaking(self, breaking_pair: Run) -> None:
        assert breaking_pair(
            "diff", "sample-api", "v1.0.0", "v2.0.0", "--fail-on-breaking"
        ) == ExitCode.VALIDATION_ERROR

    def test_self_diff(self, created: Run, capsys: pytest.CaptureFixture[str]) -> None:
        code = created("diff", "sample-api", "v1.0.0", "v1.0.0", "--fail-on-breaking")

        assert code == ExitCode.SUCCESS
        assert "No changes." in capsys.readouterr().out

    def test_unknown_version(self, created: Run) -> None:
        assert created("diff", "sample-api", "v1.0.0", "v9.9.9") == ExitCode.NOT_FOUND


class TestAuditAndStats:
    def test_audit_show(self, created: Run, capsys: pytest.CaptureFixture[str]) -> None:
        code = created("audit", "show", "sample-api", "--format", "json")

        entries = json.loads(capsys.readouterr().out)["entries"]
        assert code == ExitCode.SUCCESS
        assert [entry["event"] for entry in entries] == ["version_created"]
        assert entries[0]["actor"] == "alice"

    def test_audit_filters(self, created: Run, capsys: pytest.CaptureFixture[str]) -> None:
        code = created("audit", "show", "sample-api", "--by", "nobody")

        assert code == ExitCode.SUCCESS
        assert "No audit records." in capsys.readouterr().out

    def test_audit_rejects_bad_time(self, created: Run) -> None:
        assert created("audit", "show", "sample-api", "--since", "yesterday") == (
            ExitCode.VALIDATION_ERROR
        )

    def test_stats(self, created: Run, capsys: pytest.CaptureFixture[str]) -> None:
        code = created("stats", "--format", "json")

        assert code == ExitCode.SUCCESS
        assert json.loads(capsys.readouterr().out) == {
            "api_count": 1,
            "version_count": 1,
            "endpoint_count": 4,
            "schema_count": 4,
            "skipped": [],
        }

    def test_writes_log_file_under_root(self, created: Run, storage_root: Path) -> None:
        _ = created("stats")

        assert (storage_root / ".logs" / "oasvault.log").exists()
