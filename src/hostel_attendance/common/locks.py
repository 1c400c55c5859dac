from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterator

from ..core.constants import DEFAULT_LOCK_TIMEOUT_SECONDS
from ..core.exceptions import TransientError


class PersonLocks:
    """Per-person mutual exclusion.

    Every read-validate-persist sequence for one person runs under that
    person's lock; different people never contend.
    """

    def __init__(self, *, timeout: float = DEFAULT_LOCK_TIMEOUT_SECONDS):
        self._timeout = float(timeout)
        self._guard = threading.Lock()
        self._locks: Dict[int, threading.Lock] = {}

    def _lock_for(self, person_id: int) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(person_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[person_id] = lock
            return lock

    @contextmanager
    def hold(self, person_id: int) -> Iterator[None]:
        lock = self._lock_for(int(person_id))
        if not lock.acquire(timeout=self._timeout):
            raise TransientError(f"Timed out waiting for person {person_id}")
        try:
            yield
        finally:
            lock.release()
