# Overview: Locking and retry helpers shared by the catalog, checkout and snapshot store.

from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from typing import Iterable, Iterator

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from .errors import LockTimeout


class LockRegistry:
    """
    Per-product mutual exclusion.

    hold() acquires the locks for a set of product ids in sorted order, so two
    callers locking overlapping sets cannot deadlock.
    """

    def __init__(self, timeout: float | None = None):
        self._timeout = timeout
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, keys: Iterable[str], timeout: float | None = None) -> Iterator[None]:
        wait = self._timeout if timeout is None else timeout
        acquired: list[threading.Lock] = []
        try:
            for key in sorted(set(keys)):
                lock = self._lock_for(key)
                ok = lock.acquire(timeout=wait) if wait is not None else lock.acquire()
                if not ok:
                    raise LockTimeout(
                        "Timed out waiting for product lock",
                        details={"product_id": key, "timeout_seconds": wait},
                    )
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (locked database, busy timeout) and
    StaleDataError. The session is rolled back before each retry.
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc
