"""Per-path locks serializing concurrent patches to the same file."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path


class PathLocks:
    """One ``asyncio.Lock`` per resolved path.

    Operations on the same path run one at a time; different paths do not
    block each other. Locks are released from the registry once no holder or
    waiter remains.

    Example:
        locks = PathLocks()
        async with locks.hold(path):
            ...  # read, patch, write
    """

    def __init__(self) -> None:
        self._locks: dict[Path, asyncio.Lock] = {}
        self._users: dict[Path, int] = {}

    @asynccontextmanager
    async def hold(self, path: Path) -> AsyncIterator[None]:
        lock = self._locks.setdefault(path, asyncio.Lock())
        self._users[path] = self._users.get(path, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[path] -= 1
            if self._users[path] == 0:
                del self._users[path]
                del self._locks[path]

    def is_locked(self, path: Path) -> bool:
        lock = self._locks.get(path)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)
