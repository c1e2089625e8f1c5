"""Tests for the key: value record format."""

from __future__ import annotations

from pathlib import Path

import pytest

from synccron.core.errors import RecordFormatError
from synccron.core.records import format_records, parse_records, read_records, write_atomic


class TestParseRecords:
    """Tests for parse_records."""

    def test_parses_key_value_lines(self) -> None:
        """Should map each key to its value."""
        values = parse_records("local: /data\nremote: https://cloud.example.com\n")
        assert values == {"local": "/data", "remote": "https://cloud.example.com"}

    def test_tolerates_whitespace(self) -> None:
        """Should strip whitespace around keys and values."""
        assert parse_records("   username  :   alice   \n") == {"username": "alice"}

    def test_value_keeps_later_colons(self) -> None:
        """Should only split on the first colon."""
        assert parse_records("remote: https://x:8443/a")["remote"] == "https://x:8443/a"

    def test_skips_comments_and_blank_lines(self) -> None:
        """Should ignore blank and comment lines."""
        text = "# synccron: recent failures\n\n# config: a\nreason: x\n"
        assert parse_records(text) == {"reason": "x"}

    def test_blank_value(self) -> None:
        """Should keep keys with blank values."""
        assert parse_records("password:\n") == {"password": ""}

    def test_repeated_key_is_error(self) -> None:
        """Should reject a key that appears twice."""
        with pytest.raises(RecordFormatError, match="remote"):
            parse_records("remote: a\nremote: b\n")


class TestFormatRecords:
    """Tests for format_records."""

    def test_with_header(self) -> None:
        """Should write comment header, blank line, then records."""
        text = format_records({"a": 1, "b": "two"}, header=["title", "", "x: y"])
        assert text == "# title\n#\n# x: y\n\na: 1\nb: two\n"

    def test_output_parses_back(self) -> None:
        """Formatted records should be readable by parse_records."""
        text = format_records({"number_of_failures": 2}, header=["number_of_failures: 9"])
        assert parse_records(text) == {"number_of_failures": "2"}


class TestWriteAtomic:
    """Tests for write_atomic."""

    def test_replaces_content(self, tmp_path: Path) -> None:
        """Should replace existing content."""
        path = tmp_path / "failures.txt"
        path.write_text("old\n")
        write_atomic(path, "new\n")
        assert path.read_text() == "new\n"

    def test_leaves_no_temporary_files(self, tmp_path: Path) -> None:
        """Should not leave temporary files behind."""
        path = tmp_path / "failures.txt"
        write_atomic(path, "a: 1\n")
        assert [p.name for p in tmp_path.iterdir()] == ["failures.txt"]
        assert read_records(path) == {"a": "1"}
