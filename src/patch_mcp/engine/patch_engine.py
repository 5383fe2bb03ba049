"""Patch engine: applies a ``PatchOperation`` to one file atomically.

Flow of ``apply_patch``:

1. Resolve and validate the target path
2. Acquire the per-path lock (concurrent patches to one file run in order)
3. Open a transaction (backup to ``<path>.bak`` when requested)
4. Read and normalize the current content
5. Run the strategy registered for the operation type
6. Apply the conflict policy, validate, write when something changed
7. Commit, or roll back on any error

``apply_patch`` never raises. Every failure is reported as a ``PatchResult``
with ``success=False``, in which case the file content on disk is unchanged.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from .exceptions import (
    FileAccessError,
    PatchConflictError,
    PatchError,
    PatchErrorCode,
    PatchInputError,
    TransactionError,
)
from .file_ops import FileOperations, PathResolver
from .models import NormalizedContent, PatchOperation, PatchResult, WhitespaceConfig
from .normalizer import normalize_content
from .patch_config import PatchSettings
from .path_locks import PathLocks
from .strategy_base import (
    ProtectedContentPolicy,
    StrategyContext,
    StrategyOutcome,
    StrategyRegistry,
    create_default_registry,
)
from .transaction import AtomicContext, TransactionManager
from .validation import ChangeValidator

logger = logging.getLogger(__name__)


class PatchEngine:
    """Applies patch operations with backup, validation and rollback.

    All collaborators are injectable; defaults are built from ``settings``.

    Example:
        engine = PatchEngine(settings=PatchConfigLoader().load_config())
        result = await engine.apply_patch(
            PatchOperation(type="line", file_path="app.py", search="DEBUG = True",
                           replace="DEBUG = False", create_backup=True)
        )
        if not result.success:
            print(result.error_code, result.error)
    """

    def __init__(
        self,
        settings: PatchSettings | None = None,
        registry: StrategyRegistry | None = None,
        transactions: TransactionManager | None = None,
        protection: ProtectedContentPolicy | None = None,
        locks: PathLocks | None = None,
    ):
        self.settings = settings or PatchSettings()
        self.registry = registry or create_default_registry()
        self.transactions = transactions or TransactionManager()
        self.protection = protection or ProtectedContentPolicy.from_settings(self.settings)
        self.locks = locks or PathLocks()
        self.validator = ChangeValidator(
            max_line_length=self.settings.max_line_length,
            complete_min_length_ratio=self.settings.complete_min_length_ratio,
            block_similarity_threshold=self.settings.block_similarity_threshold,
            diff_similarity_threshold=self.settings.diff_similarity_threshold,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def apply_patch(self, operation: PatchOperation) -> PatchResult:
        """Apply ``operation`` to its target file.

        Returns:
            PatchResult describing the outcome (never raises)
        """
        try:
            path = self.resolve_path(operation.file_path)
        except PatchError as e:
            logger.warning(f"Rejected {operation.type} patch for {operation.file_path}: {e}")
            return self._failure(operation, e)

        async with self.locks.hold(path):
            return await self._apply_locked(operation, path)

    def normalize_content(
        self, content: str, whitespace_config: WhitespaceConfig | None = None
    ) -> NormalizedContent:
        """Normalize text with ``whitespace_config`` merged over the engine defaults."""
        return normalize_content(content, self.effective_whitespace(whitespace_config))

    async def create_backup(self, file_path: str) -> Path:
        """Back up ``file_path`` to ``<file_path>.bak``.

        Raises:
            FileAccessError: If the path is invalid or the file does not exist
            TransactionError: If the copy fails
        """
        path = self.resolve_path(file_path)
        async with self.locks.hold(path):
            return await self.transactions.create_backup(path)

    def resolve_path(self, file_path: str) -> Path:
        """Resolve ``file_path`` against the configured working directory.

        Raises:
            FileAccessError: With INVALID_PATH when the path is rejected
        """
        result = PathResolver.resolve_and_validate(
            file_path,
            working_dir=self.settings.working_dir,
            allow_traversal=self.settings.allow_outside_working_dir,
        )
        if result.is_failure:
            raise FileAccessError.from_kind(
                result.error or "Invalid path", result.error_kind, path=file_path
            )
        return result.unwrap()

    def effective_whitespace(self, config: WhitespaceConfig | None) -> WhitespaceConfig:
        if config is None:
            return self.settings.whitespace
        return config.merged_over(self.settings.whitespace)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _apply_locked(self, operation: PatchOperation, path: Path) -> PatchResult:
        context: AtomicContext | None = None
        try:
            if not self.registry.has(operation.type):
                raise PatchInputError(f"Unsupported patch type: {operation.type}")
            strategy = self.registry.get(operation.type)

            context = await self.transactions.begin(path, create_backup=operation.create_backup)
            original = await self._read(path)

            whitespace = self.effective_whitespace(operation.whitespace_config)
            normalized = normalize_content(original, whitespace)
            strategy_context = StrategyContext(
                settings=self.settings,
                whitespace=whitespace,
                protection=self.protection,
                newline=normalized.newline,
            )

            outcome = strategy.apply(normalized.normalized, operation, strategy_context)
            logger.debug(
                f"{operation.type} strategy on {path}: {outcome.changes_applied} change(s), "
                f"{len(outcome.conflicts)} conflict(s)"
            )

            if outcome.conflicts:
                self._resolve_conflicts(operation, path, outcome)

            if outcome.changes_applied > 0:
                self.validator.validate(normalized.normalized, outcome.content, operation.type)
                await self._write(path, outcome.content)

            await self.transactions.commit(context)
            logger.info(
                f"Applied {operation.type} patch to {path}: {outcome.changes_applied} change(s)"
            )

            return PatchResult(
                success=True,
                file_path=operation.file_path,
                type=operation.type,
                changes_applied=outcome.changes_applied,
                backup_path=str(context.backup_path) if context.backup_path else None,
                original_lines=normalized.normalized.split(normalized.newline),
                new_lines=outcome.content.split(normalized.newline),
                conflicts=outcome.conflicts or None,
            )

        except PatchError as e:
            return await self._abort(operation, context, e)
        except Exception as e:
            logger.exception(f"Unexpected error applying {operation.type} patch to {path}")
            error = PatchError(f"Unexpected error: {e}", path=operation.file_path)
            return await self._abort(operation, context, error)

    def _resolve_conflicts(
        self, operation: PatchOperation, path: Path, outcome: StrategyOutcome
    ) -> None:
        """Raise unless the policy is ``force``.

        ``revert``, ``manual`` and an absent policy all refuse to commit.
        """
        if operation.conflict_resolution == "force":
            logger.warning(
                f"Forcing {operation.type} patch on {path} despite "
                f"{len(outcome.conflicts)} conflict(s)"
            )
            return
        raise PatchConflictError(outcome.conflicts, path=operation.file_path)

    async def _abort(
        self, operation: PatchOperation, context: AtomicContext | None, error: PatchError
    ) -> PatchResult:
        """Roll back (if a transaction is open) and build the failure result."""
        message = str(error)
        code = error.code

        if context is not None and context.is_open:
            try:
                await self.transactions.rollback(context)
            except TransactionError as rollback_error:
                logger.error(f"Rollback failed for {context.file_path}: {rollback_error}")
                message = f"{message}; {rollback_error}"
                code = PatchErrorCode.RESTORE_FAILED

        logger.warning(f"{operation.type} patch on {operation.file_path} failed: {message}")
        conflicts = error.conflicts if isinstance(error, PatchConflictError) else None
        return PatchResult(
            success=False,
            file_path=operation.file_path,
            type=operation.type,
            conflicts=conflicts,
            error=message,
            error_code=code.value,
        )

    @staticmethod
    def _failure(operation: PatchOperation, error: PatchError) -> PatchResult:
        return PatchResult(
            success=False,
            file_path=operation.file_path,
            type=operation.type,
            error=str(error),
            error_code=error.code.value,
        )

    async def _read(self, path: Path) -> str:
        loop = asyncio.get_event_loop()
        result = await loop.run_in_executor(
            None,
            FileOperations.read_text,
            path,
            self.settings.encoding,
            self.settings.max_file_size_bytes,
        )
        if result.is_failure:
            raise FileAccessError.from_kind(
                result.error or f"Failed to read {path}", result.error_kind, path=str(path)
            )
        return result.unwrap()

    async def _write(self, path: Path, content: str) -> None:
        loop = asyncio.get_event_loop()
        result = await loop.run_in_executor(
            None, FileOperations.write_text, path, content, self.settings.encoding
        )
        if result.is_failure:
            raise FileAccessError.from_kind(
                result.error or f"Failed to write {path}", result.error_kind, path=str(path)
            )
