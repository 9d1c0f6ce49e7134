"""Tests for shared CLI helpers."""

from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from oasvault.cli._commands import (
    ExitCode,
    exit_code_for_exception,
    format_json,
    format_table,
    format_yaml,
    parse_time_filter,
)
from oasvault.exceptions import (
    ConfigLoadError,
    ConflictError,
    LockTimeoutError,
    NotFoundError,
    StorageError,
    ValidationError,
)


class TestExitCodeForException:
    @pytest.mark.parametrize(
        ("exc", "expected"),
        [
            (NotFoundError("gone", entity_type="api", entity_id="x"), ExitCode.NOT_FOUND),
            (ValidationError("bad", field="tag", value="v1"), ExitCode.VALIDATION_ERROR),
            (
                ConflictError("dup", entity_type="version", entity_id="v1.0.0"),
                ExitCode.VALIDATION_ERROR,
            ),
            (KeyboardInterrupt(), ExitCode.CANCELLED),
            (
                StorageError("io", path=Path("x"), operation="read"),
                ExitCode.IO_ERROR,
            ),
            (
                LockTimeoutError("busy", path=Path("x"), timeout=1.0, attempts=2),
                ExitCode.IO_ERROR,
            ),
            (ConfigLoadError("bad toml"), ExitCode.IO_ERROR),
            (PermissionError("denied"), ExitCode.IO_ERROR),
            (RuntimeError("boom"), ExitCode.INTERNAL_ERROR),
            (KeyError("plain"), ExitCode.INTERNAL_ERROR),
        ],
    )
    def test_maps_exception(self, exc: BaseException, expected: ExitCode) -> None:
        assert exit_code_for_exception(exc) is expected


class TestFormatters:
    def test_json_keeps_key_order(self) -> None:
        assert format_json({"b": 1, "a": 2}, indent=False) == '{"b":1,"a":2}'

    def test_yaml_keeps_key_order(self) -> None:
        assert format_yaml({"b": 1, "a": [1]}) == "b: 1\na:\n- 1\n"

    def test_table_is_markdown(self) -> None:
        table = format_table(["Version", "Current"], [["v1.0.0", "*"]])

        assert "| Version | Current |" in table
        assert "v1.0.0" in table


class TestParseTimeFilter:
    def test_none_passes_through(self) -> None:
        assert parse_time_filter(None) is None

    @pytest.mark.parametrize(
        ("value", "delta"),
        [
            ("30m", timedelta(minutes=30)),
            ("2h", timedelta(hours=2)),
            ("1d", timedelta(days=1)),
        ],
    )
    def test_relative_values_count_back_from_now(
        self, value: str, delta: timedelta
    ) -> None:
        parsed = parse_time_filter(value)

        assert parsed is not None
        assert abs((datetime.now(UTC) - delta) - parsed) < timedelta(seconds=5)

    def test_naive_dates_are_utc(self) -> None:
        assert parse_time_filter("2024-12-01") == datetime(2024, 12, 1, tzinfo=UTC)

    def test_keeps_explicit_offsets(self) -> None:
        parsed = parse_time_filter("2024-12-01T10:30:00+02:00")

        assert parsed is not None
        assert parsed.utcoffset() == timedelta(hours=2)

    @pytest.mark.parametrize("value", ["yesterday", "10x", "1d2h", "\u0663d"])
    def test_rejects_unknown_formats(self, value: str) -> None:
        with pytest.raises(ValidationError) as exc_info:
            _ = parse_time_filter(value)

        assert exc_info.value.value == value
