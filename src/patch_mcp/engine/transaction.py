"""Backup, commit and rollback for a single patch operation.

Lifecycle of an ``AtomicContext``:

    IDLE --backup--> BACKED_UP --commit--> COMMITTED
                               \\-rollback-> ROLLED_BACK
    IDLE --commit--> COMMITTED            (no backup requested)
    IDLE --rollback-> ROLLED_BACK         (nothing to restore)

The backup of ``<path>`` is always ``<path>.bak``. File copies run in the
default executor so the event loop is never blocked on disk I/O.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .exceptions import FileAccessError, PatchErrorCode, TransactionError
from .file_ops import FileOperations

logger = logging.getLogger(__name__)

BACKUP_SUFFIX = ".bak"


class TransactionState(str, Enum):
    IDLE = "idle"
    BACKED_UP = "backed_up"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


@dataclass
class AtomicContext:
    """Per-operation transaction bookkeeping.

    Attributes:
        file_path: Target file
        backup_path: Backup location, set once a backup exists
        state: Current lifecycle state
    """

    file_path: Path
    backup_path: Path | None = None
    state: TransactionState = TransactionState.IDLE

    @property
    def is_open(self) -> bool:
        return self.state in (TransactionState.IDLE, TransactionState.BACKED_UP)


def backup_path_for(path: Path) -> Path:
    return path.with_name(path.name + BACKUP_SUFFIX)


class TransactionManager:
    """Creates backups and finalizes ``AtomicContext`` instances.

    Example:
        manager = TransactionManager()
        context = await manager.begin(path, create_backup=True)
        try:
            ...  # write new content
            await manager.commit(context)
        except Exception:
            await manager.rollback(context)
            raise
    """

    async def create_backup(self, path: Path) -> Path:
        """Copy ``path`` to ``<path>.bak``, overwriting an existing backup.

        Returns:
            Path of the backup file

        Raises:
            FileAccessError: If the source file does not exist
            TransactionError: If the copy fails (BACKUP_FAILED)
        """
        backup_path = backup_path_for(path)
        loop = asyncio.get_event_loop()
        result = await loop.run_in_executor(None, FileOperations.copy_file, path, backup_path)

        if result.is_failure:
            if result.error_kind == "not_found":
                raise FileAccessError.from_kind(
                    f"File not found: {path}", result.error_kind, path=str(path)
                )
            raise TransactionError(
                f"Failed to create backup: {result.error}",
                code=PatchErrorCode.BACKUP_FAILED,
                path=str(path),
            )

        logger.debug(f"Created backup {backup_path}")
        return backup_path

    async def begin(self, path: Path, create_backup: bool = False) -> AtomicContext:
        """Open a context for ``path``, backing it up first when requested."""
        context = AtomicContext(file_path=path)
        if create_backup:
            context.backup_path = await self.create_backup(path)
            context.state = TransactionState.BACKED_UP
        return context

    async def commit(self, context: AtomicContext) -> None:
        """Finish successfully and discard the backup.

        A backup that cannot be deleted is left on disk with a warning; the
        new content is already in place at this point.
        """
        self._ensure_open(context)
        if context.backup_path is not None:
            loop = asyncio.get_event_loop()
            result = await loop.run_in_executor(None, FileOperations.delete_file, context.backup_path)
            if result.is_failure:
                logger.warning(f"Committed {context.file_path} but could not remove backup: {result.error}")
        context.state = TransactionState.COMMITTED
        logger.debug(f"Committed {context.file_path}")

    async def rollback(self, context: AtomicContext) -> None:
        """Restore the target from its backup and delete the backup.

        Without a backup the target was never written, so there is nothing to
        restore.

        Raises:
            TransactionError: If restoring or deleting the backup fails (RESTORE_FAILED)
        """
        self._ensure_open(context)
        if context.backup_path is None:
            context.state = TransactionState.ROLLED_BACK
            return

        loop = asyncio.get_event_loop()
        restored = await loop.run_in_executor(
            None, FileOperations.copy_file, context.backup_path, context.file_path
        )
        if restored.is_failure:
            raise TransactionError(
                f"Failed to restore from backup: {restored.error}",
                code=PatchErrorCode.RESTORE_FAILED,
                path=str(context.file_path),
            )

        deleted = await loop.run_in_executor(None, FileOperations.delete_file, context.backup_path)
        if deleted.is_failure:
            raise TransactionError(
                f"Restored {context.file_path} but failed to delete backup: {deleted.error}",
                code=PatchErrorCode.RESTORE_FAILED,
                path=str(context.file_path),
            )

        context.state = TransactionState.ROLLED_BACK
        logger.warning(f"Rolled back {context.file_path} from backup")

    @staticmethod
    def _ensure_open(context: AtomicContext) -> None:
        if not context.is_open:
            raise TransactionError(
                f"Transaction for {context.file_path} already finished ({context.state.value})",
                code=PatchErrorCode.OPERATION_FAILED,
                path=str(context.file_path),
            )
