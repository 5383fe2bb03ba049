"""Tests for unified diff parsing."""

import pytest

from patch_mcp.engine.diff_parser import DiffParser
from patch_mcp.engine.exceptions import DiffParseError, PatchErrorCode

SIMPLE_DIFF = """\
--- a/f.txt
+++ b/f.txt
@@ -1,3 +1,3 @@
 one
-two
+TWO
 three
"""


class TestDiffParser:
    def test_parses_single_hunk(self) -> None:
        hunks = DiffParser().parse(SIMPLE_DIFF)

        assert len(hunks) == 1
        hunk = hunks[0]
        assert (hunk.old_start, hunk.old_count, hunk.new_start, hunk.new_count) == (1, 3, 1, 3)
        assert [line.kind for line in hunk.lines] == [" ", "-", "+", " "]
        assert hunk.old_lines == ["one", "two", "three"]
        assert hunk.new_lines == ["one", "TWO", "three"]
        assert hunk.error is None

    def test_counts_default_to_one(self) -> None:
        hunk = DiffParser().parse("@@ -5 +5 @@\n-a\n+b\n")[0]
        assert (hunk.old_start, hunk.old_count, hunk.new_count) == (5, 1, 1)
        assert hunk.error is None

    def test_multiple_hunks(self) -> None:
        diff = "@@ -1,1 +1,1 @@\n-a\n+A\n@@ -10,2 +10,3 @@\n x\n+y\n z\n"
        hunks = DiffParser().parse(diff)
        assert [h.old_start for h in hunks] == [1, 10]
        assert hunks[1].new_lines == ["x", "y", "z"]
        assert all(h.error is None for h in hunks)

    def test_bare_empty_line_is_context(self) -> None:
        hunk = DiffParser().parse("@@ -1,3 +1,3 @@\n a\n\n c\n")[0]
        assert hunk.old_lines == ["a", "", "c"]
        assert hunk.error is None

    def test_no_newline_marker_ignored(self) -> None:
        diff = "@@ -1 +1 @@\n-a\n\\ No newline at end of file\n+b\n\\ No newline at end of file\n"
        hunk = DiffParser().parse(diff)[0]
        assert hunk.old_lines == ["a"]
        assert hunk.new_lines == ["b"]
        assert hunk.error is None

    def test_crlf_diff_text(self) -> None:
        hunk = DiffParser().parse("@@ -1 +1 @@\r\n-a\r\n+b\r\n")[0]
        assert hunk.new_lines == ["b"]

    def test_invalid_header_is_not_fatal(self) -> None:
        hunks = DiffParser().parse("@@ bogus @@\n-a\n+b\n@@ -1 +1 @@\n-x\n+y\n")
        assert len(hunks) == 2
        assert hunks[0].error is not None
        assert hunks[0].error.startswith("Invalid hunk header")
        assert hunks[1].error is None
        assert hunks[1].new_lines == ["y"]

    def test_truncated_hunk(self) -> None:
        hunk = DiffParser().parse("@@ -1,3 +1,3 @@\n a\n-b\n")[0]
        assert hunk.error is not None
        assert hunk.error.startswith("Truncated hunk")

    def test_invalid_body_line(self) -> None:
        hunk = DiffParser().parse("@@ -1,2 +1,2 @@\n a\n*b\n")[0]
        assert hunk.error is not None
        assert hunk.error.startswith("Invalid diff line")

    def test_counts_larger_than_header(self) -> None:
        hunk = DiffParser().parse("@@ -1,1 +1,2 @@\n a\n-b\n+c\n")[0]
        assert hunk.error is not None
        assert "do not match header" in hunk.error

    @pytest.mark.parametrize("text", ["", "   \n", "just some text\nwithout hunks\n"])
    def test_no_hunks_is_fatal(self, text: str) -> None:
        with pytest.raises(DiffParseError) as exc_info:
            DiffParser().parse(text)
        assert exc_info.value.code == PatchErrorCode.DIFF_PARSE_ERROR
