"""Tests for the LCS-based three-way merge."""

from patch_mcp.engine.merge import (
    find_common_ancestor,
    find_lcs,
    merge_contents,
    perform_three_way_merge,
)


class TestFindLcs:
    def test_basic(self) -> None:
        assert find_lcs(["a", "b", "c"], ["a", "c"]) == ["a", "c"]

    def test_ties_step_second_sequence(self) -> None:
        # Both "a" and "b" are LCS of length 1; stepping tokens2 on ties yields "b"
        assert find_lcs(["a", "b"], ["b", "a"]) == ["b"]

    def test_empty(self) -> None:
        assert find_lcs([], ["a"]) == []
        assert find_lcs(["a"], []) == []

    def test_common_ancestor_joins_lcs(self) -> None:
        assert find_common_ancestor("x = 1\n", "y = 2\n") == " = \n"


class TestThreeWayMerge:
    def test_identical_inputs(self) -> None:
        result = perform_three_way_merge("a b", "a b", "a b")
        assert result.content == "a b"
        assert result.conflicts == []
        assert not result.has_conflicts

    def test_takes_target_where_current_matches_base(self) -> None:
        result = perform_three_way_merge("a b c", "a b c", "a X c")
        assert result.content == "a X c"
        assert result.conflicts == []

    def test_keeps_current_where_target_matches_base(self) -> None:
        result = perform_three_way_merge("a b c", "a Y c", "a b c")
        assert result.content == "a Y c"
        assert result.conflicts == []

    def test_conflict_takes_current(self) -> None:
        result = perform_three_way_merge("a b c", "a Y c", "a X c")
        assert result.content == "a Y c"
        assert result.conflicts == ["Conflict at position 2"]

    def test_exhausted_streams_compare_equal_only_to_each_other(self) -> None:
        # target and base are both exhausted at position 0, so current is kept
        result = perform_three_way_merge("", "a", "")
        assert result.content == "a"
        assert result.conflicts == []

    def test_conflict_with_exhausted_current_takes_target(self) -> None:
        result = perform_three_way_merge("q", "", "x")
        assert result.content == "x"
        assert result.conflicts == ["Conflict at position 0"]

    def test_merge_contents_positional_conflicts(self) -> None:
        result = merge_contents("x = 1\n", "y = 2\n")
        assert result.content == "x = 1\n"
        assert result.conflicts == ["Conflict at position 0", "Conflict at position 4"]

    def test_merge_contents_identical(self) -> None:
        result = merge_contents("def f():\n    return 1\n", "def f():\n    return 1\n")
        assert result.content == "def f():\n    return 1\n"
        assert result.conflicts == []
