"""Tests for per-edit checks and the final validation gate."""

import pytest

from patch_mcp.engine.exceptions import PatchErrorCode, PatchValidationError
from patch_mcp.engine.validation import (
    ChangeValidator,
    brace_balance,
    count_blank_lines,
    has_valid_block_structure,
    has_valid_structure,
    is_valid_block_change,
    is_valid_content,
    is_valid_hunk_change,
    split_lines,
    validate_changes,
)


class TestHelpers:
    def test_is_valid_content(self) -> None:
        assert is_valid_content("a")
        assert not is_valid_content("")
        assert not is_valid_content("a\0b")

    def test_has_valid_structure(self) -> None:
        assert has_valid_structure("short\nlines", max_line_length=5)
        assert not has_valid_structure("ok\n" + "x" * 6, max_line_length=5)

    def test_brace_balance(self) -> None:
        assert brace_balance("{{}") == 1
        assert brace_balance("}") == -1
        assert has_valid_block_structure("{ {} }")
        assert not has_valid_block_structure("{")

    def test_count_blank_lines(self) -> None:
        assert count_blank_lines("a\n\n  \nb\n") == 3

    def test_cr_only_line_endings(self) -> None:
        assert split_lines("a\rb\r\nc\n") == ["a", "b", "c", ""]
        assert has_valid_structure("ab\rcd\ref", max_line_length=2)
        assert count_blank_lines("a\r\rb\r") == 2


class TestBlockChange:
    def test_same_balance_and_length(self) -> None:
        assert is_valid_block_change("{a}", "{b}")

    def test_balance_changed(self) -> None:
        assert not is_valid_block_change("{a}", "{b")

    def test_unbalanced_result_rejected(self) -> None:
        assert not is_valid_block_change("if (x) {", "if (y) {")

    @pytest.mark.parametrize(
        ("original", "modified", "expected"),
        [
            ("ab", "abcd", True),
            ("ab", "abcde", False),
            ("abcd", "ab", True),
            ("abcd", "a", False),
        ],
    )
    def test_length_bounds(self, original: str, modified: str, expected: bool) -> None:
        assert is_valid_block_change(original, modified) is expected


class TestHunkChange:
    def test_similar_enough(self) -> None:
        assert is_valid_hunk_change("a b c", "a b d")

    def test_empty_or_nul(self) -> None:
        assert not is_valid_hunk_change("a", "")
        assert not is_valid_hunk_change("a", "a\0")

    def test_too_dissimilar(self) -> None:
        assert not is_valid_hunk_change("a", "completely different words here")


class TestChangeValidator:
    def test_rejects_empty_result(self) -> None:
        with pytest.raises(PatchValidationError) as exc_info:
            ChangeValidator().validate("a", "", "line")
        assert exc_info.value.code == PatchErrorCode.VALIDATION_FAILED

    def test_complete_length_ratio(self) -> None:
        validator = ChangeValidator()
        validator.validate("x" * 100, "y" * 60, "complete")
        with pytest.raises(PatchValidationError, match="shrinks"):
            validator.validate("x" * 100, "y" * 10, "complete")

    def test_complete_line_length(self) -> None:
        with pytest.raises(PatchValidationError, match="longer than"):
            ChangeValidator(max_line_length=5).validate("abc", "abcdefgh", "complete")

    def test_line_count_delta_limited_by_blank_lines(self) -> None:
        validator = ChangeValidator()
        # One blank line (the trailing empty segment) allows removing one line
        validator.validate("a\nb\n", "a\n", "line")
        with pytest.raises(PatchValidationError, match="line count"):
            validator.validate("a\nb\nc", "a\nc", "line")

    def test_line_count_enforced_for_cr_only_content(self) -> None:
        with pytest.raises(PatchValidationError, match="line count"):
            ChangeValidator().validate("a\rb\rc", "a\rc", "line")

    def test_block_result_must_balance_braces(self) -> None:
        validator = ChangeValidator()
        validator.validate("{ a }", "{ b }", "block")
        with pytest.raises(PatchValidationError, match="unbalanced braces"):
            validator.validate("{ a", "{ b", "block")

    def test_block_similarity(self) -> None:
        with pytest.raises(PatchValidationError, match="similarity"):
            ChangeValidator().validate("a", "b c d", "block")

    def test_diff_similarity(self) -> None:
        validator = ChangeValidator()
        validator.validate("x = 1\ny = 2\n", "x = 1\ny = 3\n", "diff")
        with pytest.raises(PatchValidationError, match="similarity"):
            validator.validate("x = 1\n", "completely_unrelated\n", "diff")

    def test_validate_changes_uses_defaults(self) -> None:
        validate_changes("a\n", "b\n", "complete")
