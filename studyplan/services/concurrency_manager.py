"""
Per-resource locking for read-modify-write sequences.
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Optional

from ..core.exceptions import ConcurrencyError

logger = logging.getLogger(__name__)


@dataclass
class _LockEntry:
    lock: threading.RLock
    users: int = 0


class ConcurrencyManager:
    """Hands out one lock per resource id.

    Locks are created on first use and dropped once no thread holds or waits
    for them, so the table only grows with the number of resources in flight.
    """

    def __init__(self, default_timeout: Optional[float] = 10.0):
        self._default_timeout = default_timeout
        self._locks: Dict[str, _LockEntry] = {}
        self._lock = threading.Lock()

    @contextmanager
    def lock(self, resource_id: str, timeout: Optional[float] = None):
        """Context manager holding the lock for ``resource_id``."""
        timeout = self._default_timeout if timeout is None else timeout
        entry = self._checkout(resource_id)
        acquired = False
        try:
            acquired = entry.lock.acquire(timeout=-1 if timeout is None else timeout)
            if not acquired:
                raise ConcurrencyError(f"Timed out waiting for lock on {resource_id}",
                                       details={'resource_id': resource_id, 'timeout': timeout})
            yield
        finally:
            if acquired:
                entry.lock.release()
            self._checkin(resource_id)

    def active_locks(self) -> int:
        """Number of resources currently locked or awaited."""
        with self._lock:
            return len(self._locks)

    def _checkout(self, resource_id: str) -> _LockEntry:
        with self._lock:
            entry = self._locks.get(resource_id)
            if entry is None:
                entry = _LockEntry(lock=threading.RLock())
                self._locks[resource_id] = entry
            entry.users += 1
            return entry

    def _checkin(self, resource_id: str) -> None:
        with self._lock:
            entry = self._locks.get(resource_id)
            if entry is None:
                return
            entry.users -= 1
            if entry.users <= 0:
                del self._locks[resource_id]
