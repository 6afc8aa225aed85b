#!/usr/bin/env python3
"""
In-process reader/writer locking.

ReadWriteLock lets any number of readers in at once and gives a writer the
file to itself. Once a writer is waiting, new readers queue behind it so a
steady stream of reads cannot starve a write. The lock is not reentrant.

Waiting is done in short slices so that a caller's cancel event and the
configured timeout are observed while blocked. The lock wait is the only
point at which an operation can be cancelled.

LockRegistry hands out one ReadWriteLock per canonical (resolved, absolute)
file path, so every store in the process that touches the same file shares
the same lock.
"""

import contextlib
import threading
import time
from pathlib import Path
from typing import Dict, Optional, Union

from .config import get_config
from .error_handling import LockTimeoutError, OperationCancelledError, persistence_error
from .logging_config import get_logger

logger = get_logger(__name__)


class ReadWriteLock:
    """
    Writer-preferring reader/writer lock.

    Both acquire methods accept:
        timeout: Seconds to wait, None to wait forever
        cancel_event: threading.Event; when set while waiting the acquire
                      raises OperationCancelledError and the lock is not taken
    """

    def __init__(self, name: str = "", check_interval: Optional[float] = None):
        self.name = name
        self.check_interval = (check_interval if check_interval is not None
                               else get_config().get('locking.check_interval', 0.05))
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    def _wait(self, mode: str, deadline: Optional[float], timeout: Optional[float],
              cancel_event: Optional[threading.Event]) -> None:
        """Wait one slice on the condition; caller holds self._cond."""
        if cancel_event is not None and cancel_event.is_set():
            raise OperationCancelledError(persistence_error(
                'CANCELLED', operation=mode, resource=self.name))

        wait_for = self.check_interval
        if deadline is not None:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise LockTimeoutError(persistence_error(
                    'LOCK_TIMEOUT', mode=mode, resource=self.name, timeout=timeout))
            wait_for = min(wait_for, remaining)

        self._cond.wait(wait_for)

    @staticmethod
    def _deadline(timeout: Optional[float]) -> Optional[float]:
        return None if timeout is None else time.monotonic() + timeout

    def acquire_read(self, timeout: Optional[float] = None,
                     cancel_event: Optional[threading.Event] = None) -> None:
        deadline = self._deadline(timeout)
        with self._cond:
            if cancel_event is not None and cancel_event.is_set():
                raise OperationCancelledError(persistence_error(
                    'CANCELLED', operation='read', resource=self.name))
            while self._writer or self._waiting_writers:
                self._wait('read', deadline, timeout, cancel_event)
            self._readers += 1

    def acquire_write(self, timeout: Optional[float] = None,
                      cancel_event: Optional[threading.Event] = None) -> None:
        deadline = self._deadline(timeout)
        with self._cond:
            if cancel_event is not None and cancel_event.is_set():
                raise OperationCancelledError(persistence_error(
                    'CANCELLED', operation='write', resource=self.name))
            self._waiting_writers += 1
            try:
                while self._writer or self._readers:
                    self._wait('write', deadline, timeout, cancel_event)
                self._writer = True
            finally:
                self._waiting_writers -= 1
                if not self._writer:
                    # Gave up: readers queued behind this writer may proceed
                    self._cond.notify_all()

    def release_read(self) -> None:
        with self._cond:
            if self._readers <= 0:
                raise RuntimeError(f"release_read() called on {self.name!r} without a read lock held")
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def release_write(self) -> None:
        with self._cond:
            if not self._writer:
                raise RuntimeError(f"release_write() called on {self.name!r} without the write lock held")
            self._writer = False
            self._cond.notify_all()

    @contextlib.contextmanager
    def read_locked(self, timeout: Optional[float] = None,
                    cancel_event: Optional[threading.Event] = None):
        """Context manager holding the shared lock."""
        self.acquire_read(timeout, cancel_event)
        try:
            yield self
        finally:
            self.release_read()

    @contextlib.contextmanager
    def write_locked(self, timeout: Optional[float] = None,
                     cancel_event: Optional[threading.Event] = None):
        """Context manager holding the exclusive lock."""
        self.acquire_write(timeout, cancel_event)
        try:
            yield self
        finally:
            self.release_write()

    @property
    def readers(self) -> int:
        with self._cond:
            return self._readers

    @property
    def write_locked_now(self) -> bool:
        with self._cond:
            return self._writer

    @property
    def waiting_writers(self) -> int:
        with self._cond:
            return self._waiting_writers


class LockRegistry:
    """Thread-safe map from canonical file path to its locks."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, ReadWriteLock] = {}
        self._update_locks: Dict[str, threading.RLock] = {}

    @staticmethod
    def canonical_key(path: Union[str, Path]) -> str:
        """Resolved absolute path used as the registry key."""
        return str(Path(path).expanduser().resolve())

    def get_lock(self, path: Union[str, Path]) -> ReadWriteLock:
        key = self.canonical_key(path)
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = ReadWriteLock(name=key)
                self._locks[key] = lock
                logger.debug(f"Created reader/writer lock for {key}")
            return lock

    def get_update_lock(self, path: Union[str, Path]) -> threading.RLock:
        """Lock serializing read-modify-write sequences on one file."""
        key = self.canonical_key(path)
        with self._guard:
            lock = self._update_locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._update_locks[key] = lock
            return lock

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


_registry = LockRegistry()


def get_lock_registry() -> LockRegistry:
    """Process-wide lock registry."""
    return _registry
