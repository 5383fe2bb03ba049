"""IOResult for file access at the edge of the patch engine.

File helpers (path resolution, read, write, copy, delete) report failures as
values instead of raising, so the transaction layer can decide which error code
a failure maps to. Strategies and the engine itself raise ``PatchError``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class IOStatus(str, Enum):
    """Status of a file access operation."""

    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class IOResult(Generic[T]):  # noqa: UP046
    """
    Outcome of a file access operation.

    A failed result also carries an ``error_kind`` hint ("not_found",
    "permission", "too_large", "invalid_path", "io") that the engine maps to a
    ``PatchErrorCode``.

    Usage:
        read_result = FileOperations.read_text(path)
        if read_result.is_success:
            content = read_result.value
        else:
            print(f"Read error: {read_result.error}")
    """

    status: IOStatus
    value: T | None = None
    error: str | None = None
    error_kind: str | None = None

    def __post_init__(self) -> None:
        """Reject inconsistent state combinations."""
        if self.status == IOStatus.SUCCESS and self.value is None:
            raise ValueError("Success result must have a value")
        if self.status == IOStatus.FAILED and not self.error:
            raise ValueError("Failed result must have an error message")

    @property
    def is_success(self) -> bool:
        return self.status == IOStatus.SUCCESS

    @property
    def is_failure(self) -> bool:
        return self.status == IOStatus.FAILED

    @classmethod
    def success(cls, value: T) -> "IOResult[T]":
        """Create a successful result wrapping ``value``."""
        return cls(status=IOStatus.SUCCESS, value=value)

    @classmethod
    def failure(cls, error: str, error_kind: str = "io") -> "IOResult[T]":
        """Create a failed result.

        Args:
            error: Error message describing the failure
            error_kind: Failure category used for error-code mapping
        """
        return cls(status=IOStatus.FAILED, error=error, error_kind=error_kind)

    def __bool__(self) -> bool:
        return self.is_success

    def unwrap(self) -> T:
        """Get value or raise if the operation failed."""
        if not self.is_success:
            raise ValueError(f"Cannot unwrap failed result: {self.error}")
        if self.value is None:
            raise ValueError("Cannot unwrap result: value is None")
        return self.value
