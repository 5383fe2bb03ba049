"""Built-in patch strategies: line, block, diff and complete replacement."""

from __future__ import annotations

import logging

from .diff_parser import DiffHunk, DiffParser
from .exceptions import PatchInputError
from .merge import merge_contents
from .models import PatchOperation
from .normalizer import normalize_content
from .patterns import SearchPattern, create_block_token_pattern, create_token_pattern, from_compiled
from .strategy_base import PatchStrategy, StrategyContext, StrategyOutcome
from .validation import is_valid_block_change, is_valid_hunk_change

logger = logging.getLogger(__name__)


class LineStrategy(PatchStrategy):
    """Replace or delete whole lines.

    Lines are selected either by explicit 1-based ``line_numbers`` or by
    matching each normalized line against a search pattern. Without
    ``replace`` the selected lines are deleted. Protected lines and
    replacements that grow a line too much are rejected as conflicts.
    """

    type_name = "line"

    def apply(
        self, content: str, operation: PatchOperation, context: StrategyContext
    ) -> StrategyOutcome:
        lines = content.split(context.newline)

        if operation.line_numbers:
            return self._apply_line_numbers(lines, operation, context)

        pattern = self._build_pattern(operation, context)
        if pattern is None:
            raise PatchInputError(
                "Line patch requires search, searchPattern or lineNumbers",
                path=operation.file_path,
            )
        return self._apply_pattern(lines, pattern, operation, context)

    @staticmethod
    def _build_pattern(operation: PatchOperation, context: StrategyContext) -> SearchPattern | None:
        settings = context.settings
        if operation.search_pattern is not None:
            return from_compiled(operation.search_pattern, settings.similarity_threshold)
        if operation.search is not None:
            return create_token_pattern(
                operation.search,
                context.whitespace,
                threshold=settings.similarity_threshold,
                max_tokens=settings.max_pattern_tokens,
            )
        return None

    def _apply_line_numbers(
        self, lines: list[str], operation: PatchOperation, context: StrategyContext
    ) -> StrategyOutcome:
        protection = context.protection
        growth = context.settings.max_line_growth_factor
        changes = 0
        conflicts: list[str] = []
        to_delete: list[int] = []

        # Numbers always refer to the original lines, so deletions are deferred
        for line_number in dict.fromkeys(operation.line_numbers or []):
            if not 1 <= line_number <= len(lines):
                logger.debug(f"Ignoring out-of-range line number {line_number} (file has {len(lines)})")
                continue

            index = line_number - 1
            original_line = lines[index]
            if operation.replace is not None:
                if protection.can_replace(original_line, operation.replace, growth):
                    lines[index] = operation.replace
                    changes += 1
                else:
                    conflicts.append(f"Line {line_number}: Invalid change detected")
            elif protection.can_delete(original_line):
                to_delete.append(index)
                changes += 1
            else:
                conflicts.append(f"Line {line_number}: Cannot delete protected line")

        for index in sorted(to_delete, reverse=True):
            del lines[index]

        return StrategyOutcome(context.newline.join(lines), changes, conflicts)

    def _apply_pattern(
        self,
        lines: list[str],
        pattern: SearchPattern,
        operation: PatchOperation,
        context: StrategyContext,
    ) -> StrategyOutcome:
        protection = context.protection
        growth = context.settings.max_line_growth_factor
        changes = 0
        conflicts: list[str] = []
        result: list[str] = []

        for line_number, line in enumerate(lines, start=1):
            normalized_line = normalize_content(line, context.whitespace).normalized
            if not pattern.matches(normalized_line):
                result.append(line)
                continue

            if operation.replace is not None:
                if protection.can_replace(line, operation.replace, growth):
                    result.append(operation.replace)
                    changes += 1
                else:
                    conflicts.append(f"Line {line_number}: Invalid change detected")
                    result.append(line)
            elif protection.can_delete(line):
                changes += 1
            else:
                conflicts.append(f"Line {line_number}: Cannot delete protected line")
                result.append(line)

        logger.debug(f"Line patch matched {changes + len(conflicts)} line(s), applied {changes}")
        return StrategyOutcome(context.newline.join(result), changes, conflicts)


class BlockStrategy(PatchStrategy):
    """Substitute a multi-line block, chunk by chunk.

    Content is processed in fixed-size character chunks. A chunk in which the
    search block occurs (or which is similar enough to it) has every
    occurrence replaced with the replacement text. A substitution that changes
    the chunk's brace balance or length too much is discarded with a conflict.
    """

    type_name = "block"

    def apply(
        self, content: str, operation: PatchOperation, context: StrategyContext
    ) -> StrategyOutcome:
        if not operation.search or operation.replace is None:
            raise PatchInputError(
                "Search and replace are required for block replacement", path=operation.file_path
            )

        settings = context.settings
        search = normalize_content(operation.search, context.whitespace).normalized
        replacement = normalize_content(operation.replace, context.whitespace).normalized
        pattern = create_block_token_pattern(
            search,
            context.whitespace,
            threshold=settings.similarity_threshold,
            max_tokens=settings.max_pattern_tokens,
        )

        size = settings.block_chunk_size
        chunks = [content[i : i + size] for i in range(0, len(content), size)]

        pieces: list[str] = []
        changes = 0
        conflicts: list[str] = []
        for chunk in chunks:
            if not pattern.occurs_in(chunk):
                pieces.append(chunk)
                continue

            substituted, count = pattern.regex.subn(lambda _m: replacement, chunk)
            if count == 0:
                pieces.append(chunk)
                continue

            if is_valid_block_change(chunk, substituted, settings.block_length_bounds):
                pieces.append(substituted)
                changes += 1
            else:
                conflicts.append("Block change validation failed")
                pieces.append(chunk)

        logger.debug(f"Block patch: {len(chunks)} chunk(s), {changes} changed, {len(conflicts)} rejected")
        return StrategyOutcome("".join(pieces), changes, conflicts)


class DiffStrategy(PatchStrategy):
    """Apply a unified diff hunk by hunk.

    Each hunk is placed at its header position adjusted by the net line shift
    of the hunks applied before it. If its context and deletion lines are not
    there, nearby positions are searched outward within ``diff_search_window``
    lines. Hunks that cannot be placed or fail validation are skipped with a
    conflict; the rest still apply.
    """

    type_name = "diff"

    def __init__(self, parser: DiffParser | None = None):
        self.parser = parser or DiffParser()

    def apply(
        self, content: str, operation: PatchOperation, context: StrategyContext
    ) -> StrategyOutcome:
        if not operation.diff:
            raise PatchInputError("Diff text is required for diff patches", path=operation.file_path)

        settings = context.settings
        hunks = self.parser.parse(operation.diff)
        lines = content.split(context.newline)

        offset = 0
        changes = 0
        conflicts: list[str] = []
        for number, hunk in enumerate(hunks, start=1):
            if hunk.error:
                conflicts.append(f"Failed to apply hunk {number}: {hunk.error}")
                continue

            old_lines = hunk.old_lines
            new_lines = hunk.new_lines
            expected = self._expected_index(hunk, offset)
            position = self._locate(lines, old_lines, expected, settings.diff_search_window)
            if position is None:
                conflicts.append(
                    f"Failed to apply hunk {number}: context not found near line {hunk.old_start}"
                )
                continue

            candidate = lines[:position] + new_lines + lines[position + len(old_lines) :]
            if not is_valid_hunk_change(
                context.newline.join(lines),
                context.newline.join(candidate),
                max_line_length=settings.max_line_length,
                min_similarity=settings.hunk_similarity_threshold,
            ):
                conflicts.append("Diff change validation failed")
                continue

            if position != expected:
                logger.debug(f"Hunk {number} applied at line {position + 1}, expected {expected + 1}")
            lines = candidate
            offset += (position - expected) + len(new_lines) - len(old_lines)
            changes += 1

        return StrategyOutcome(context.newline.join(lines), changes, conflicts)

    @staticmethod
    def _expected_index(hunk: DiffHunk, offset: int) -> int:
        # A zero-length old side inserts after line old_start
        start = hunk.old_start if hunk.old_count == 0 else hunk.old_start - 1
        return max(start + offset, 0)

    @staticmethod
    def _matches_at(lines: list[str], expected: list[str], index: int) -> bool:
        return all(
            lines[index + k].rstrip() == expected_line.rstrip()
            for k, expected_line in enumerate(expected)
        )

    def _locate(
        self, lines: list[str], old_lines: list[str], expected: int, window: int
    ) -> int | None:
        """Find where ``old_lines`` occur, searching outward from ``expected``."""
        if not old_lines:
            return min(expected, len(lines))

        last_start = len(lines) - len(old_lines)
        for distance in range(window + 1):
            candidates = (expected,) if distance == 0 else (expected - distance, expected + distance)
            for index in candidates:
                if 0 <= index <= last_start and self._matches_at(lines, old_lines, index):
                    return index
        return None


class CompleteStrategy(PatchStrategy):
    """Replace the whole file, optionally merging with the current content."""

    type_name = "complete"

    def apply(
        self, content: str, operation: PatchOperation, context: StrategyContext
    ) -> StrategyOutcome:
        if not operation.content:
            raise PatchInputError(
                "Content is required for complete replacement", path=operation.file_path
            )

        replacement = normalize_content(operation.content, context.whitespace).normalized

        if operation.merge_strategy in (None, "overwrite"):
            return StrategyOutcome(replacement, 1, [])

        # "smart" currently uses the same token merge as "merge"
        merged = merge_contents(content, replacement)
        if merged.has_conflicts:
            logger.debug(f"Merge produced {len(merged.conflicts)} conflict(s)")
        return StrategyOutcome(merged.content, 1, merged.conflicts)
