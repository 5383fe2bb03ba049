"""Token-level three-way merge used by complete replacement.

The merge base is the longest common subsequence of the original and proposed
tokens. The three token streams are then walked positionally, one index each,
advancing all three on every step. There is deliberately no re-synchronization
after insertions or deletions, so edits that shift token positions surface as
conflicts rather than being silently realigned.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from .tokenizer import tokenize

logger = logging.getLogger(__name__)


@dataclass
class MergeResult:
    """Merged text and the conflicts recorded while producing it."""

    content: str
    conflicts: list[str] = field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)


def find_lcs(tokens1: Sequence[str], tokens2: Sequence[str]) -> list[str]:
    """Longest common subsequence of two token sequences.

    Backtracking steps through ``tokens2`` when both directions tie, which
    fixes which of several equally long subsequences is returned.
    """
    rows = len(tokens1)
    cols = len(tokens2)
    matrix = [[0] * (cols + 1) for _ in range(rows + 1)]

    for i in range(1, rows + 1):
        for j in range(1, cols + 1):
            if tokens1[i - 1] == tokens2[j - 1]:
                matrix[i][j] = matrix[i - 1][j - 1] + 1
            else:
                matrix[i][j] = max(matrix[i - 1][j], matrix[i][j - 1])

    lcs: list[str] = []
    i, j = rows, cols
    while i > 0 and j > 0:
        if tokens1[i - 1] == tokens2[j - 1]:
            lcs.append(tokens1[i - 1])
            i -= 1
            j -= 1
        elif matrix[i - 1][j] > matrix[i][j - 1]:
            i -= 1
        else:
            j -= 1

    lcs.reverse()
    return lcs


def find_common_ancestor(content1: str, content2: str) -> str:
    """Approximate a merge base as the joined LCS of both token streams."""
    return "".join(find_lcs(tokenize(content1), tokenize(content2)))


def _token_at(tokens: list[str], index: int) -> str | None:
    return tokens[index] if index < len(tokens) else None


def perform_three_way_merge(base: str, current: str, target: str) -> MergeResult:
    """
    Merge ``current`` and ``target`` against ``base`` token by token.

    Per position: agreement keeps the token; a side equal to base takes the
    other side; otherwise a conflict ``"Conflict at position P"`` is recorded
    (P is the number of tokens merged so far) and the current token wins, or
    the target token when current is exhausted. An exhausted stream compares
    equal only to another exhausted stream.

    Args:
        base: Merge base text
        current: Text currently on disk
        target: Proposed text

    Returns:
        MergeResult with the merged text and conflict messages
    """
    base_tokens = tokenize(base)
    current_tokens = tokenize(current)
    target_tokens = tokenize(target)

    conflicts: list[str] = []
    merged: list[str] = []

    steps = max(len(base_tokens), len(current_tokens), len(target_tokens))
    for position in range(steps):
        base_token = _token_at(base_tokens, position)
        current_token = _token_at(current_tokens, position)
        target_token = _token_at(target_tokens, position)

        if current_token == target_token:
            chosen = current_token
        elif current_token == base_token:
            chosen = target_token
        elif target_token == base_token:
            chosen = current_token
        else:
            conflicts.append(f"Conflict at position {len(merged)}")
            chosen = current_token if current_token is not None else target_token

        # Exhausted streams still occupy a position
        merged.append(chosen or "")

    if conflicts:
        logger.debug(f"Three-way merge recorded {len(conflicts)} conflict(s)")

    return MergeResult(content="".join(merged), conflicts=conflicts)


def merge_contents(original: str, proposed: str) -> MergeResult:
    """Merge ``proposed`` into ``original`` using their LCS as the base."""
    base = find_common_ancestor(original, proposed)
    return perform_three_way_merge(base, original, proposed)
