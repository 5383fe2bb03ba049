"""Markdown formatting for MCP tool responses.

JSON responses are the camelCase model dumps; markdown is a human-readable
summary of the same data.
"""

from .engine import PatchResult

# Long files would flood the response; show the head of the new content only
PREVIEW_LINES = 20


def format_patch_result_markdown(result: PatchResult) -> str:
    """Format a patch result as markdown.

    Args:
        result: Result returned by PatchEngine.apply_patch

    Returns:
        Markdown with status, change count, conflicts and a content preview
    """
    status = "Applied" if result.success else "Failed"
    lines = [
        f"## Patch {status}: `{result.file_path}`",
        "",
        f"- **Type**: {result.type}",
        f"- **Changes applied**: {result.changes_applied}",
    ]

    if result.backup_path:
        lines.append(f"- **Backup**: `{result.backup_path}`")

    if result.error:
        lines.append(f"- **Error** ({result.error_code}): {result.error}")

    if result.conflicts:
        lines.append("")
        lines.append(f"### Conflicts ({len(result.conflicts)})")
        lines.extend(f"- {conflict}" for conflict in result.conflicts)

    if result.success and result.new_lines is not None and result.changes_applied:
        preview = result.new_lines[:PREVIEW_LINES]
        lines.append("")
        lines.append(f"### New content ({len(result.new_lines)} lines)")
        lines.append("```")
        lines.extend(preview)
        if len(result.new_lines) > PREVIEW_LINES:
            lines.append(f"... ({len(result.new_lines) - PREVIEW_LINES} more lines)")
        lines.append("```")

    return "\n".join(lines)


def format_invalid_operation_markdown(error: str) -> str:
    """Format a rejected operation payload as markdown."""
    return f"**Error** (INVALID_OPERATION): {error}"
