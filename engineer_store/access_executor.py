#!/usr/bin/env python3
"""
Background dispatch of CSV store operations.

Reads and writes are submitted to a bounded ThreadPoolExecutor and handed
back as AccessTask objects. Cancelling a task is cooperative: a task that has
not started is dropped, a task waiting for the file lock gives up and reports
cancelled=True, and a task that already holds the lock runs to completion.
"""

import threading
from concurrent.futures import ThreadPoolExecutor, Future
from pathlib import Path
from typing import Optional, Sequence, Union

from .access_result import AccessResult, WriteOutcome
from .config import get_config
from .csv_store import ConcurrentCsvStore, Row
from .logging_config import get_logger

logger = get_logger(__name__)


class AccessTask:
    """Handle for one submitted store operation."""

    def __init__(self, operation: str, path: Path, future: Future, cancel_event: threading.Event):
        self.operation = operation
        self.path = path
        self._future = future
        self._cancel_event = cancel_event

    def cancel(self) -> bool:
        """
        Request cancellation.

        Returns:
            True if the task had not started and will never run
        """
        self._cancel_event.set()
        dropped = self._future.cancel()
        logger.debug(f"Cancel requested for {self.operation} of {self.path} (dropped={dropped})")
        return dropped

    def result(self, timeout: Optional[float] = None) -> Union[AccessResult, WriteOutcome]:
        """
        Wait for the store's result.

        A task dropped before it started yields a cancelled result instead of
        raising concurrent.futures.CancelledError.
        """
        if self._future.cancelled():
            if self.operation == 'read':
                return AccessResult.cancelled_result()
            return WriteOutcome.cancelled_outcome()
        return self._future.result(timeout)

    def done(self) -> bool:
        return self._future.done()

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_event.is_set()


class AccessExecutor:
    """
    Runs ConcurrentCsvStore operations on worker threads.

    Usage:
        with AccessExecutor(store) as executor:
            task = executor.submit_read("data/engineers.csv")
            result = task.result()
    """

    def __init__(self, store: Optional[ConcurrentCsvStore] = None, max_workers: Optional[int] = None):
        self.store = store or ConcurrentCsvStore()
        if max_workers is None:
            max_workers = get_config().get('limits.worker_threads', 5)
        self.max_workers = max_workers
        self._executor = ThreadPoolExecutor(max_workers=max_workers,
                                            thread_name_prefix="engineer-store")
        logger.debug(f"AccessExecutor started with {max_workers} workers")

    def submit_read(self, path: Union[str, Path]) -> AccessTask:
        path = Path(path)
        cancel_event = threading.Event()
        future = self._executor.submit(self.store.read, path, cancel_event)
        return AccessTask('read', path, future, cancel_event)

    def submit_write(self, path: Union[str, Path], rows: Sequence[Row],
                     append_mode: bool = False) -> AccessTask:
        path = Path(path)
        cancel_event = threading.Event()
        future = self._executor.submit(self.store.write, path, list(rows), append_mode, cancel_event)
        return AccessTask('write', path, future, cancel_event)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
        logger.debug("AccessExecutor shut down")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown(wait=True)
