"""Patch engine exceptions.

Every failure inside the engine is raised as a ``PatchError`` subclass carrying a
``PatchErrorCode``. ``PatchEngine.apply_patch`` is the only place these are caught:
it converts them into a failed ``PatchResult`` so callers never see an exception.
"""

from __future__ import annotations

from enum import Enum


class PatchErrorCode(str, Enum):
    """Distinguishable error codes reported in ``PatchResult.error_code``."""

    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    INVALID_PATH = "INVALID_PATH"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    OPERATION_FAILED = "OPERATION_FAILED"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    BACKUP_FAILED = "BACKUP_FAILED"
    RESTORE_FAILED = "RESTORE_FAILED"
    INVALID_OPERATION = "INVALID_OPERATION"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    CONFLICT = "CONFLICT"
    DIFF_PARSE_ERROR = "DIFF_PARSE_ERROR"


class PatchError(Exception):
    """
    Base exception for patch engine failures.

    Attributes:
        code: Error code surfaced to callers
        path: File path the failure relates to (if any)
    """

    default_code: PatchErrorCode = PatchErrorCode.UNKNOWN_ERROR

    def __init__(
        self,
        message: str,
        code: PatchErrorCode | None = None,
        path: str | None = None,
    ):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            code: Error code (defaults to the class default)
            path: Related file path
        """
        super().__init__(message)
        self.code = code or self.default_code
        self.path = path

    def __repr__(self) -> str:
        """Developer-friendly representation."""
        return f"{type(self).__name__}(code={self.code.value!r}, message={str(self)!r})"


class PatchInputError(PatchError):
    """Operation is missing fields required by its type, or carries invalid values."""

    default_code = PatchErrorCode.INVALID_OPERATION


class PatchValidationError(PatchError):
    """Strategy output failed the pre-commit validation gate."""

    default_code = PatchErrorCode.VALIDATION_FAILED


class PatchConflictError(PatchError):
    """
    Conflicts were recorded and the resolution policy refused to commit.

    Attributes:
        conflicts: Conflict messages collected by the strategy
    """

    default_code = PatchErrorCode.CONFLICT

    def __init__(self, conflicts: list[str], path: str | None = None):
        self.conflicts = list(conflicts)
        super().__init__(f"Unresolved conflicts: {', '.join(self.conflicts)}", path=path)


class DiffParseError(PatchError):
    """Diff text contains no parseable hunk at all."""

    default_code = PatchErrorCode.DIFF_PARSE_ERROR


class FileAccessError(PatchError):
    """Reading, writing or resolving the target file failed."""

    default_code = PatchErrorCode.OPERATION_FAILED

    KIND_CODES = {
        "not_found": PatchErrorCode.FILE_NOT_FOUND,
        "permission": PatchErrorCode.PERMISSION_DENIED,
        "too_large": PatchErrorCode.FILE_TOO_LARGE,
        "invalid_path": PatchErrorCode.INVALID_PATH,
    }

    @classmethod
    def from_kind(cls, message: str, error_kind: str | None, path: str | None = None) -> FileAccessError:
        """Build an error whose code follows an ``IOResult.error_kind`` hint."""
        return cls(message, code=cls.KIND_CODES.get(error_kind or ""), path=path)


class TransactionError(PatchError):
    """Backup creation or restore failed.

    Uses ``BACKUP_FAILED`` or ``RESTORE_FAILED`` so callers can tell a broken
    transaction apart from the error that triggered the rollback.
    """

    default_code = PatchErrorCode.BACKUP_FAILED


__all__ = [
    "PatchErrorCode",
    "PatchError",
    "PatchInputError",
    "PatchValidationError",
    "PatchConflictError",
    "DiffParseError",
    "FileAccessError",
    "TransactionError",
]
