"""Pydantic models for patch operations and their results.

Python attributes are snake_case; the wire format (MCP tool arguments and
responses) uses camelCase aliases, e.g. ``filePath``, ``createBackup``,
``whitespaceConfig``. Both spellings are accepted on input.
"""

from __future__ import annotations

import re
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

PatchType = Literal["line", "block", "diff", "complete"]
MergeStrategy = Literal["overwrite", "merge", "smart"]
ConflictResolution = Literal["force", "revert", "manual"]


class _WireModel(BaseModel):
    """Base model emitting camelCase aliases and accepting either spelling."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class WhitespaceConfig(_WireModel):
    """Whitespace handling for normalization and pattern flexibility.

    Unset fields in an operation's config fall back to the engine defaults
    (see ``PatchSettings.whitespace``), field by field.
    """

    preserve_indentation: bool = Field(
        default=True,
        description="Keep leading indentation as-is (False replaces it with default_indentation)",
    )
    preserve_line_endings: bool = Field(
        default=True,
        description="Re-join lines with the detected line ending (False uses default_line_ending)",
    )
    normalize_whitespace: bool = Field(
        default=True,
        description="Match internal whitespace runs flexibly (one or more whitespace characters)",
    )
    trim_trailing_whitespace: bool = Field(
        default=True,
        description="Strip trailing spaces and tabs from every line",
    )
    default_indentation: str = Field(default="    ", description="Indentation unit")
    default_line_ending: str = Field(default="\n", description="Line ending used when not preserving")

    def merged_over(self, base: WhitespaceConfig) -> WhitespaceConfig:
        """Return ``base`` updated with only the fields explicitly set on this config."""
        return base.model_copy(update=self.model_dump(exclude_unset=True))


class WhitespaceStats(_WireModel):
    """Per-file whitespace statistics gathered during normalization."""

    indentation_spaces: int = 0
    indentation_tabs: int = 0
    trailing_whitespace_lines: int = Field(
        default=0, description="Number of lines that ended with spaces or tabs"
    )
    empty_lines: int = 0
    max_line_length: int = 0


class NormalizedContent(_WireModel):
    """Normalizer output."""

    normalized: str
    line_endings: str = Field(description="Line ending detected in the input")
    newline: str = Field(description="Separator used to join the normalized lines")
    indentation: str = Field(description="First indentation run observed (or the default)")
    hash: str = Field(description="SHA-256 hex digest of the normalized text")
    stats: WhitespaceStats


class PatchOperation(_WireModel):
    """A single patch request against one file.

    Required fields per type:
    - line: search, search_pattern or line_numbers (replace absent = delete)
    - block: search and replace
    - diff: diff (unified diff text)
    - complete: content
    """

    type: PatchType = Field(description="Patch strategy")
    file_path: str = Field(description="Path to the file to patch", min_length=1)

    search: str | None = Field(default=None, description="Literal search text (line/block)")
    search_pattern: re.Pattern[str] | None = Field(
        default=None,
        description="Regular expression used as-is instead of synthesizing one (line)",
    )
    replace: str | None = Field(
        default=None,
        description="Replacement text (line/block); absent deletes matching lines (line only)",
    )
    line_numbers: list[int] | None = Field(
        default=None, description="Explicit 1-based line numbers (line)"
    )
    content: str | None = Field(default=None, description="Full replacement content (complete)")
    diff: str | None = Field(default=None, description="Unified diff text (diff)")

    create_backup: bool = Field(
        default=False, description="Create <file>.bak for rollback during the operation"
    )
    whitespace_config: WhitespaceConfig | None = Field(default=None)
    merge_strategy: MergeStrategy | None = Field(
        default=None, description="Three-way merge policy for complete replacement"
    )
    conflict_resolution: ConflictResolution | None = Field(
        default=None, description="force commits despite conflicts; anything else reverts"
    )


class PatchResult(_WireModel):
    """Outcome of ``PatchEngine.apply_patch``.

    ``success=False`` guarantees the target file is unchanged on disk.
    """

    success: bool
    file_path: str
    type: PatchType
    changes_applied: int = 0
    backup_path: str | None = None
    original_lines: list[str] | None = None
    new_lines: list[str] | None = None
    conflicts: list[str] | None = None
    error: str | None = None
    error_code: str | None = None

    def to_response(self) -> dict[str, Any]:
        """Serialize for MCP tool responses (camelCase, unset optionals dropped)."""
        return self.model_dump(by_alias=True, exclude_none=True)


__all__ = [
    "PatchType",
    "MergeStrategy",
    "ConflictResolution",
    "WhitespaceConfig",
    "WhitespaceStats",
    "NormalizedContent",
    "PatchOperation",
    "PatchResult",
]
