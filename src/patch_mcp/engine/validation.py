"""Content checks applied to strategy output.

Two layers use these helpers: strategies validate each individual edit
(a block chunk, a diff hunk) and record a conflict when it fails, and the
engine runs ``validate_changes`` as the final gate before writing, which
raises ``PatchValidationError``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from .exceptions import PatchValidationError
from .models import PatchType
from .normalizer import LINE_SPLIT
from .similarity import text_similarity

logger = logging.getLogger(__name__)

DEFAULT_MAX_LINE_LENGTH = 10000


def is_valid_content(content: str) -> bool:
    """Non-empty and free of NUL characters."""
    return len(content) > 0 and "\0" not in content


def split_lines(content: str) -> list[str]:
    """Split on any line ending (CRLF, CR or LF)."""
    return LINE_SPLIT.split(content)


def has_valid_structure(content: str, max_line_length: int = DEFAULT_MAX_LINE_LENGTH) -> bool:
    """No line is longer than ``max_line_length``."""
    return all(len(line) <= max_line_length for line in split_lines(content))


def brace_balance(content: str) -> int:
    """Count of ``{`` minus count of ``}``."""
    return content.count("{") - content.count("}")


def has_valid_block_structure(content: str) -> bool:
    """Opening and closing braces are equal in number."""
    return brace_balance(content) == 0


def count_blank_lines(content: str) -> int:
    return sum(1 for line in split_lines(content) if not line.strip())


def is_valid_block_change(
    original: str,
    modified: str,
    length_bounds: tuple[float, float] = (0.5, 2.0),
) -> bool:
    """Check one substituted block chunk.

    The substituted chunk must have balanced braces and a length within
    ``length_bounds`` times the original chunk length.
    """
    low, high = length_bounds
    return (
        has_valid_block_structure(modified)
        and len(original) * low <= len(modified) <= len(original) * high
    )


def is_valid_hunk_change(
    original: str,
    modified: str,
    max_line_length: int = DEFAULT_MAX_LINE_LENGTH,
    min_similarity: float = 0.3,
) -> bool:
    """Check the content produced by applying one diff hunk."""
    return (
        is_valid_content(modified)
        and has_valid_structure(modified, max_line_length)
        and text_similarity(original, modified) >= min_similarity
    )


class ChangeValidator:
    """Final pre-commit validation, dispatched by patch type.

    Thresholds default to the engine settings defaults and can be overridden
    per instance.
    """

    def __init__(
        self,
        max_line_length: int = DEFAULT_MAX_LINE_LENGTH,
        complete_min_length_ratio: float = 0.5,
        block_similarity_threshold: float = 0.3,
        diff_similarity_threshold: float = 0.5,
    ):
        self.max_line_length = max_line_length
        self.complete_min_length_ratio = complete_min_length_ratio
        self.block_similarity_threshold = block_similarity_threshold
        self.diff_similarity_threshold = diff_similarity_threshold

        self._checks: dict[str, Callable[[str, str], str | None]] = {
            "complete": self._check_complete,
            "line": self._check_line,
            "block": self._check_block,
            "diff": self._check_diff,
        }

    def validate(self, original: str, modified: str, patch_type: PatchType) -> None:
        """
        Validate ``modified`` against ``original`` for the given patch type.

        Raises:
            PatchValidationError: If any check fails
        """
        if not is_valid_content(modified):
            raise PatchValidationError("Modified content is empty or contains NUL characters")

        check = self._checks.get(patch_type)
        if check is None:
            raise PatchValidationError(f"No validation rule for patch type: {patch_type}")

        reason = check(original, modified)
        if reason:
            logger.debug(f"Validation failed for {patch_type} patch: {reason}")
            raise PatchValidationError(f"Change validation failed: {reason}")

    def _check_complete(self, original: str, modified: str) -> str | None:
        if not has_valid_structure(modified, self.max_line_length):
            return f"line longer than {self.max_line_length} characters"
        if len(modified) < len(original) * self.complete_min_length_ratio:
            return (
                f"replacement shrinks content below {self.complete_min_length_ratio:.0%} "
                f"of the original ({len(modified)} < {len(original)})"
            )
        return None

    def _check_line(self, original: str, modified: str) -> str | None:
        delta = abs(len(split_lines(original)) - len(split_lines(modified)))
        allowed = count_blank_lines(original)
        if delta > allowed:
            return f"line count changed by {delta}, more than the {allowed} blank line(s) present"
        return None

    def _check_block(self, original: str, modified: str) -> str | None:
        if not has_valid_block_structure(modified):
            return f"unbalanced braces ({brace_balance(modified):+d})"
        similarity = text_similarity(original, modified)
        if similarity < self.block_similarity_threshold:
            return f"similarity {similarity:.2f} below {self.block_similarity_threshold}"
        return None

    def _check_diff(self, original: str, modified: str) -> str | None:
        if not has_valid_structure(modified, self.max_line_length):
            return f"line longer than {self.max_line_length} characters"
        similarity = text_similarity(original, modified)
        if similarity < self.diff_similarity_threshold:
            return f"similarity {similarity:.2f} below {self.diff_similarity_threshold}"
        return None


def validate_changes(original: str, modified: str, patch_type: PatchType) -> None:
    """Validate with default thresholds. See ``ChangeValidator.validate``."""
    ChangeValidator().validate(original, modified, patch_type)
