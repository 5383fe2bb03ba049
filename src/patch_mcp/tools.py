"""MCP tool implementations for patch application.

- Tool functions decorated with @mcp.tool()
- Flat parameter signatures with Annotated types for validation
- Async functions for all tools
- Docstrings become tool descriptions
"""

from typing import Annotated, Any, Literal

from mcp.types import ToolAnnotations
from pydantic import Field, ValidationError

from .context import AppContextType
from .engine import PatchError, PatchErrorCode, PatchOperation, WhitespaceConfig
from .formatting import format_invalid_operation_markdown, format_patch_result_markdown
from .server import mcp


def _describe_validation_error(error: ValidationError) -> str:
    parts = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail["loc"])
        parts.append(f"{location}: {detail['msg']}" if location else detail["msg"])
    return "; ".join(parts)


@mcp.tool(
    annotations=ToolAnnotations(
        title="Apply Patch",
        readOnlyHint=False,
        destructiveHint=True,  # Rewrites file content
        idempotentHint=False,
        openWorldHint=False,
    )
)
async def apply_patch(
    operation: Annotated[
        dict[str, Any],
        Field(
            description=(
                "Patch operation: {type: line|block|diff|complete, filePath, search?, "
                "searchPattern?, replace?, lineNumbers?, content?, diff?, createBackup?, "
                "whitespaceConfig?, mergeStrategy?, conflictResolution?}"
            )
        ),
    ],
    response_format: Annotated[
        Literal["json", "markdown"],
        Field(description="Output format"),
    ] = "json",
    *,
    ctx: AppContextType,
) -> dict[str, Any] | str:
    """Apply a line, block, diff or complete patch to one file. Failures leave the file unchanged."""
    try:
        patch = PatchOperation.model_validate(operation)
    except ValidationError as e:
        message = f"Invalid patch operation: {_describe_validation_error(e)}"
        if response_format == "markdown":
            return format_invalid_operation_markdown(message)
        return {
            "success": False,
            "filePath": operation.get("filePath") or operation.get("file_path") or "",
            "type": operation.get("type"),
            "changesApplied": 0,
            "error": message,
            "errorCode": PatchErrorCode.INVALID_OPERATION.value,
        }

    engine = ctx.request_context.lifespan_context.engine
    result = await engine.apply_patch(patch)

    if response_format == "markdown":
        return format_patch_result_markdown(result)
    return result.to_response()


@mcp.tool(
    annotations=ToolAnnotations(
        title="Normalize Content",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
async def normalize_content(
    content: Annotated[str, Field(description="Text to normalize")],
    whitespace_config: Annotated[
        dict[str, Any] | None,
        Field(
            description=(
                "Overrides for {preserveIndentation, preserveLineEndings, normalizeWhitespace, "
                "trimTrailingWhitespace, defaultIndentation, defaultLineEnding}"
            )
        ),
    ] = None,
    *,
    ctx: AppContextType,
) -> dict[str, Any]:
    """Normalize line endings, indentation and trailing whitespace; returns text, hash and stats."""
    config = None
    if whitespace_config is not None:
        try:
            config = WhitespaceConfig.model_validate(whitespace_config)
        except ValidationError as e:
            return {
                "error": f"Invalid whitespace config: {_describe_validation_error(e)}",
                "errorCode": PatchErrorCode.INVALID_OPERATION.value,
            }

    engine = ctx.request_context.lifespan_context.engine
    return engine.normalize_content(content, config).model_dump(by_alias=True)


@mcp.tool(
    annotations=ToolAnnotations(
        title="Create Backup",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=True,  # Overwrites the same <file>.bak
        openWorldHint=False,
    )
)
async def create_backup(
    file_path: Annotated[str, Field(description="File to back up as <file>.bak", min_length=1)],
    *,
    ctx: AppContextType,
) -> dict[str, Any]:
    """Copy a file to <file>.bak (overwriting an existing backup)."""
    engine = ctx.request_context.lifespan_context.engine
    try:
        backup_path = await engine.create_backup(file_path)
    except PatchError as e:
        return {"success": False, "error": str(e), "errorCode": e.code.value}

    return {"success": True, "backupPath": str(backup_path)}
