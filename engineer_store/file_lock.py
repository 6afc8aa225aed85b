"""Inter-process file locking and atomic replacement for the engineer CSV."""
import os
import time
import fcntl
import contextlib
import tempfile
import stat
import threading
from pathlib import Path
from typing import Optional, Union, IO
import logging

from .config import get_config, get_timeout
from .error_handling import LockTimeoutError, OperationCancelledError, persistence_error


class FileLockError(LockTimeoutError):
    """Exception raised when file locking fails."""
    pass


class FileLock:
    """
    A file-based lock using fcntl for Unix-like systems.

    Guards the CSV against other processes; threads of this process are
    coordinated by the in-process reader/writer lock before this one is taken.
    Shared locks are used for reads and exclusive locks for writes.
    """

    def __init__(self,
                 lock_file: Union[str, Path],
                 timeout: Optional[float] = None,
                 check_interval: Optional[float] = None,
                 logger: Optional[logging.Logger] = None,
                 cancel_event: Optional[threading.Event] = None):
        """
        Initialize a file lock.

        Args:
            lock_file: Path to the lock file (created if it doesn't exist; its
                       directory must already exist)
            timeout: Maximum time to wait for lock acquisition (seconds), None waits forever
            check_interval: Time between lock acquisition attempts (seconds)
            logger: Optional logger for debugging
            cancel_event: Event that aborts the wait when set
        """
        self.lock_file = Path(lock_file)
        self.timeout = timeout if timeout is not None else get_timeout('file_lock')
        self.check_interval = (check_interval if check_interval is not None
                               else get_config().get('locking.check_interval', 0.05))
        self.logger = logger or logging.getLogger(__name__)
        self.cancel_event = cancel_event
        self._lock_fd: Optional[IO] = None

    def acquire(self, exclusive: bool = True) -> None:
        """
        Acquire the file lock.

        Args:
            exclusive: If True, acquire exclusive lock. If False, acquire shared lock.

        Raises:
            FileLockError: If lock cannot be acquired within timeout
            OperationCancelledError: If the cancel event was set while waiting
        """
        start_time = time.monotonic()
        mode = 'exclusive' if exclusive else 'shared'

        self._lock_fd = open(self.lock_file, 'a+')
        lock_type = fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH

        while True:
            try:
                fcntl.flock(self._lock_fd.fileno(), lock_type | fcntl.LOCK_NB)
                self.logger.debug(f"Acquired {mode} lock on {self.lock_file}")
                return
            except BlockingIOError:
                # Lock is held by another process
                if self.cancel_event is not None and self.cancel_event.is_set():
                    self._cleanup()
                    raise OperationCancelledError(persistence_error(
                        'CANCELLED', operation=mode, resource=self.lock_file))
                if self.timeout is not None and time.monotonic() - start_time > self.timeout:
                    self._cleanup()
                    raise FileLockError(persistence_error(
                        'LOCK_TIMEOUT', mode=mode, resource=self.lock_file, timeout=self.timeout))

                time.sleep(self.check_interval)

    def release(self) -> None:
        """Release the file lock."""
        if self._lock_fd is not None:
            try:
                fcntl.flock(self._lock_fd.fileno(), fcntl.LOCK_UN)
                self.logger.debug(f"Released lock on {self.lock_file}")
            finally:
                self._cleanup()

    def _cleanup(self) -> None:
        if self._lock_fd is not None:
            try:
                self._lock_fd.close()
            except OSError as e:
                self.logger.warning(f"Failed to close lock file {self.lock_file}: {e}")
            self._lock_fd = None

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()


def lock_path_for(file_path: Union[str, Path]) -> Path:
    """Sidecar lock file used for a data file."""
    return Path(f"{file_path}.lock")


@contextlib.contextmanager
def file_lock(file_path: Union[str, Path],
              exclusive: bool = True,
              timeout: Optional[float] = None,
              logger: Optional[logging.Logger] = None,
              cancel_event: Optional[threading.Event] = None):
    """
    Context manager for file locking.

    Args:
        file_path: Path to the file to lock (lock file will be file_path + '.lock')
        exclusive: If True, acquire exclusive lock. If False, acquire shared lock.
        timeout: Maximum time to wait for lock acquisition
        logger: Optional logger
        cancel_event: Event that aborts the wait when set

    Yields:
        The file path (for convenience)

    Example:
        with file_lock('/path/to/engineers.csv', exclusive=False) as locked_file:
            with open(locked_file, 'r', encoding='utf-8') as f:
                data = f.read()
    """
    lock = FileLock(lock_path_for(file_path), timeout=timeout, logger=logger,
                    cancel_event=cancel_event)
    lock.acquire(exclusive=exclusive)
    try:
        yield Path(file_path)
    finally:
        lock.release()


@contextlib.contextmanager
def atomic_write(file_path: Union[str, Path],
                 encoding: str = 'utf-8',
                 logger: Optional[logging.Logger] = None):
    """
    Write a file through a temporary sibling and os.replace it into place.

    The caller is expected to already hold the write lock. Readers see either
    the old or the new content, never a partial file.

    Yields:
        Text handle to write to
    """
    file_path = Path(file_path)

    temp_fd, temp_path = tempfile.mkstemp(
        dir=file_path.parent,
        prefix=f".{file_path.name}.",
        suffix='.tmp'
    )

    try:
        with os.fdopen(temp_fd, 'w', encoding=encoding, newline='') as temp_file:
            yield temp_file
            temp_file.flush()
            os.fsync(temp_file.fileno())

        if file_path.exists():
            os.chmod(temp_path, stat.S_IMODE(os.stat(file_path).st_mode))
        os.replace(temp_path, file_path)

        if logger:
            logger.debug(f"Atomically wrote to {file_path}")
    except BaseException:
        # Clean up temp file on error
        try:
            os.unlink(temp_path)
        except OSError:
            pass
        raise
