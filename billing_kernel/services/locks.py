"""
Per-project single-writer locks.

Every mutation of a project's installment set runs while holding that
project's lock, so two threads of one process never interleave on the same
project.  Different projects use different locks and never wait on each
other.  Across processes the database row locks and the project version
counter take over.
"""

from __future__ import annotations

import threading
from collections.abc import Generator
from contextlib import contextmanager
from uuid import UUID

from billing_kernel.exceptions import ConcurrencyConflictError
from billing_kernel.logging_config import get_logger

logger = get_logger("services.locks")

DEFAULT_LOCK_TIMEOUT = 30.0


class ProjectLockRegistry:
    """
    Lazily created ``threading.Lock`` per project id.

    An entry lives only while some thread holds or waits on it.  The last
    thread to leave removes it, so the registry never holds more entries
    than there are threads inside ``hold``.
    """

    def __init__(self, timeout: float = DEFAULT_LOCK_TIMEOUT):
        self._timeout = timeout
        self._guard = threading.Lock()
        # project id -> [lock, holders and waiters]
        self._locks: dict[UUID, list] = {}

    def _checkout(self, project_id: UUID) -> threading.Lock:
        with self._guard:
            entry = self._locks.get(project_id)
            if entry is None:
                entry = [threading.Lock(), 0]
                self._locks[project_id] = entry
            entry[1] += 1
            return entry[0]

    def _checkin(self, project_id: UUID) -> None:
        with self._guard:
            entry = self._locks[project_id]
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[project_id]

    @contextmanager
    def hold(self, project_id: UUID) -> Generator[None, None, None]:
        """
        Hold ``project_id``'s lock for the duration of the block.

        Raises:
            ConcurrencyConflictError: if the lock is not acquired within
                the registry timeout.
        """
        lock = self._checkout(project_id)
        try:
            if not lock.acquire(timeout=self._timeout):
                logger.warning("project_lock_timeout", extra={
                    "project_id": str(project_id),
                    "timeout_seconds": self._timeout,
                })
                raise ConcurrencyConflictError(
                    str(project_id), reason="timed out waiting for project lock",
                )
            try:
                yield
            finally:
                lock.release()
        finally:
            self._checkin(project_id)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


default_lock_registry = ProjectLockRegistry()
