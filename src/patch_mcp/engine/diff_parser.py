"""Unified diff parsing.

Hunk bodies are consumed by count: a hunk ends once it has produced
``old_count`` old-side lines and ``new_count`` new-side lines. A hunk with a
malformed header, an unrecognized line, or a body cut short is returned with
``error`` set instead of aborting the whole parse, so the remaining hunks can
still be applied.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Literal

from .exceptions import DiffParseError

logger = logging.getLogger(__name__)

HUNK_HEADER = re.compile(r"^@@\s+-(\d+)(?:,(\d+))?\s+\+(\d+)(?:,(\d+))?\s+@@")
_LINE_SPLIT = re.compile(r"\r\n|\r|\n")

LineKind = Literal[" ", "-", "+"]


@dataclass
class DiffLine:
    """A single body line of a hunk."""

    kind: LineKind
    content: str


@dataclass
class DiffHunk:
    """A parsed ``@@ -a,b +c,d @@`` hunk.

    Attributes:
        old_start: 1-based start line in the old file
        old_count: Number of old-side lines (context + deletions)
        new_start: 1-based start line in the new file
        new_count: Number of new-side lines (context + additions)
        lines: Body lines in order
        header: Raw header line
        error: Parse error for this hunk, None when well-formed
    """

    old_start: int
    old_count: int
    new_start: int
    new_count: int
    lines: list[DiffLine] = field(default_factory=list)
    header: str = ""
    error: str | None = None

    @property
    def old_lines(self) -> list[str]:
        """Lines expected in the current content (context and deletions)."""
        return [line.content for line in self.lines if line.kind in (" ", "-")]

    @property
    def new_lines(self) -> list[str]:
        """Lines that replace ``old_lines`` (context and additions)."""
        return [line.content for line in self.lines if line.kind in (" ", "+")]


class DiffParser:
    """Parser for unified diff text."""

    def parse(self, diff_text: str) -> list[DiffHunk]:
        """
        Parse unified diff text into hunks.

        File headers (``---``/``+++``, ``diff --git``, ``index``) and any text
        between hunks are skipped.

        Args:
            diff_text: Unified diff format text

        Returns:
            Hunks in the order they appear, including ones carrying ``error``

        Raises:
            DiffParseError: If the text is empty or contains no hunk header at all
        """
        if not diff_text or not diff_text.strip():
            raise DiffParseError("Empty diff provided")

        lines = _LINE_SPLIT.split(diff_text)
        if lines and lines[-1] == "":
            lines.pop()

        hunks: list[DiffHunk] = []
        i = 0
        while i < len(lines):
            if lines[i].startswith("@@"):
                hunk, i = self._parse_hunk(lines, i)
                hunks.append(hunk)
            else:
                i += 1

        if not hunks:
            raise DiffParseError("No valid hunks found in diff")

        malformed = sum(1 for hunk in hunks if hunk.error)
        logger.debug(f"Parsed {len(hunks)} hunk(s), {malformed} malformed")
        return hunks

    def _parse_hunk(self, lines: list[str], start_idx: int) -> tuple[DiffHunk, int]:
        """
        Parse the hunk whose header is at ``start_idx``.

        Returns:
            The hunk and the index of the first line after it
        """
        header = lines[start_idx]
        match = HUNK_HEADER.match(header)
        if not match:
            hunk = DiffHunk(0, 0, 0, 0, header=header, error=f"Invalid hunk header: {header}")
            return hunk, self._skip_to_next_hunk(lines, start_idx + 1)

        hunk = DiffHunk(
            old_start=int(match.group(1)),
            old_count=int(match.group(2)) if match.group(2) is not None else 1,
            new_start=int(match.group(3)),
            new_count=int(match.group(4)) if match.group(4) is not None else 1,
            header=header,
        )

        old_seen = 0
        new_seen = 0
        i = start_idx + 1
        while i < len(lines) and (old_seen < hunk.old_count or new_seen < hunk.new_count):
            line = lines[i]

            if line.startswith("@@"):
                break

            if line.startswith("\\"):
                # "\ No newline at end of file"
                i += 1
                continue

            # Editors commonly strip the single space of an empty context line
            kind = line[0] if line else " "
            if kind not in (" ", "-", "+"):
                hunk.error = f"Invalid diff line: {line!r}"
                return hunk, self._skip_to_next_hunk(lines, i + 1)

            hunk.lines.append(DiffLine(kind, line[1:]))
            if kind != "+":
                old_seen += 1
            if kind != "-":
                new_seen += 1
            i += 1

        if old_seen < hunk.old_count or new_seen < hunk.new_count:
            hunk.error = (
                f"Truncated hunk: expected {hunk.old_count} old/{hunk.new_count} new lines, "
                f"got {old_seen}/{new_seen}"
            )
        elif old_seen > hunk.old_count or new_seen > hunk.new_count:
            hunk.error = (
                f"Hunk line counts do not match header: expected {hunk.old_count} old/"
                f"{hunk.new_count} new lines, got {old_seen}/{new_seen}"
            )

        # Trailing "\ No newline" marker belongs to this hunk
        while i < len(lines) and lines[i].startswith("\\"):
            i += 1

        return hunk, i

    @staticmethod
    def _skip_to_next_hunk(lines: list[str], index: int) -> int:
        while index < len(lines) and not lines[index].startswith("@@"):
            index += 1
        return index
