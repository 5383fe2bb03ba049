"""Tests for path resolution and IOResult-based file helpers."""

from dataclasses import fields
from pathlib import Path

import pytest

from patch_mcp.engine.file_ops import FileOperations, PathResolver
from patch_mcp.engine.io_result import IOResult


class TestPathResolver:
    def test_relative_path_resolved_against_working_dir(self, tmp_path: Path) -> None:
        result = PathResolver.resolve_and_validate("sub/file.txt", working_dir=tmp_path)
        assert result.is_success
        assert result.value == (tmp_path / "sub" / "file.txt").resolve()

    @pytest.mark.parametrize("path", ["", "   "])
    def test_empty_path(self, path: str) -> None:
        result = PathResolver.resolve_and_validate(path)
        assert result.is_failure
        assert result.error_kind == "invalid_path"

    def test_symlink_rejected(self, tmp_path: Path) -> None:
        real = tmp_path / "real.txt"
        real.write_text("x")
        link = tmp_path / "link.txt"
        link.symlink_to(real)

        result = PathResolver.resolve_and_validate(str(link))
        assert result.is_failure
        assert "Symlinks not allowed" in (result.error or "")

    def test_escape_rejected_when_confined(self, tmp_path: Path) -> None:
        work = tmp_path / "work"
        work.mkdir()
        result = PathResolver.resolve_and_validate(
            "../outside.txt", working_dir=work, allow_traversal=False
        )
        assert result.is_failure
        assert result.error_kind == "invalid_path"

    def test_unknown_user_home(self, tmp_path: Path) -> None:
        result = PathResolver.resolve_and_validate("~no_such_user_zz/f.txt", working_dir=tmp_path)
        assert result.is_failure
        assert result.error_kind == "invalid_path"

    def test_nul_byte(self, tmp_path: Path) -> None:
        result = PathResolver.resolve_and_validate("a\x00b.txt", working_dir=tmp_path)
        assert result.is_failure
        assert result.error_kind == "invalid_path"

    def test_escape_allowed_by_default(self, tmp_path: Path) -> None:
        work = tmp_path / "work"
        work.mkdir()
        result = PathResolver.resolve_and_validate("../outside.txt", working_dir=work)
        assert result.value == (tmp_path / "outside.txt").resolve()


class TestFileOperations:
    def test_read_preserves_line_endings(self, tmp_path: Path) -> None:
        path = tmp_path / "crlf.txt"
        path.write_bytes(b"a\r\nb\r\n")
        assert FileOperations.read_text(path).value == "a\r\nb\r\n"

    def test_read_missing(self, tmp_path: Path) -> None:
        result = FileOperations.read_text(tmp_path / "missing.txt")
        assert result.is_failure
        assert result.error_kind == "not_found"

    def test_read_directory(self, tmp_path: Path) -> None:
        assert FileOperations.read_text(tmp_path).error_kind == "invalid_path"

    def test_read_too_large(self, tmp_path: Path) -> None:
        path = tmp_path / "big.txt"
        path.write_text("x" * 100)
        result = FileOperations.read_text(path, max_size_bytes=10)
        assert result.error_kind == "too_large"

    def test_read_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.txt"
        path.write_text("")
        result = FileOperations.read_text(path)
        assert result.is_success
        assert result.value == ""

    def test_write_returns_byte_count(self, tmp_path: Path) -> None:
        path = tmp_path / "out.txt"
        result = FileOperations.write_text(path, "é\r\n")
        assert result.value == 4
        assert path.read_bytes() == "é\r\n".encode()

    def test_encoding_failure_keeps_existing_content(self, tmp_path: Path) -> None:
        path = tmp_path / "out.txt"
        path.write_bytes(b"foo\nbar\n")

        result = FileOperations.write_text(path, "foo\nb\ud800\n")

        assert result.is_failure
        assert path.read_bytes() == b"foo\nbar\n"
        assert [p.name for p in tmp_path.iterdir()] == ["out.txt"]

    def test_write_keeps_file_mode(self, tmp_path: Path) -> None:
        path = tmp_path / "script.sh"
        path.write_text("echo a\n")
        path.chmod(0o755)

        FileOperations.write_text(path, "echo b\n")

        assert path.stat().st_mode & 0o777 == 0o755
        assert path.read_text() == "echo b\n"

    def test_copy_missing_source(self, tmp_path: Path) -> None:
        result = FileOperations.copy_file(tmp_path / "missing", tmp_path / "dest")
        assert result.error_kind == "not_found"

    def test_delete(self, tmp_path: Path) -> None:
        path = tmp_path / "gone.txt"
        path.write_text("x")
        assert FileOperations.delete_file(path).value is True
        assert FileOperations.delete_file(path).value is False


class TestIOResult:
    def test_unwrap_failure(self) -> None:
        with pytest.raises(ValueError, match="Cannot unwrap failed result"):
            IOResult.failure("boom").unwrap()

    def test_bool(self) -> None:
        assert IOResult.success(1)
        assert not IOResult.failure("boom")

    def test_inconsistent_state_rejected(self) -> None:
        with pytest.raises(ValueError):
            IOResult.failure("")

    def test_failure_carries_error_kind(self) -> None:
        result = IOResult.failure("gone", error_kind="not_found")
        assert result.error_kind == "not_found"
        assert result.value is None
        assert {f.name for f in fields(IOResult)} == {"status", "value", "error", "error_kind"}
