#!/usr/bin/env python3
"""
Concurrent CSV Store

Reads and writes one engineer CSV file under reader/writer mutual exclusion:
- Reads share the lock, a write excludes everything else on the same file
- Each body line becomes a validated Record or a row error; one bad row
  never aborts the pass
- Duplicate ids are reported once each, the records themselves are kept
- Whole-operation failures (missing file, I/O errors, lock timeout) are
  reported through fatal_error / fatal_message instead of exceptions

Optionally an fcntl lock on "<path>.lock" coordinates with other processes,
and truncating writes go through a temp file and os.replace.
"""

import contextlib
import logging
import threading
import time
from pathlib import Path
from typing import List, Optional, Sequence, Union

from .access_result import AccessResult, WriteOutcome
from .config import get_config, ensure_parent_dir
from .constants import COLUMN_COUNT, CSV_HEADERS, Columns
from .duplicate_tracker import DuplicateTracker
from .error_handling import (
    LockTimeoutError, OperationCancelledError, ValidationError,
    csv_error, file_error, persistence_error,
)
from .file_lock import atomic_write, file_lock
from .logging_config import get_logger, log_event
from .record import ErrorRecord
from .record_builder import RecordBuilder
from .row_codec import join_row, parse_line
from .rw_lock import LockRegistry, get_lock_registry

logger = get_logger(__name__)

Row = Union[str, Sequence[str]]


class ConcurrentCsvStore:
    """
    Thread-safe access to engineer CSV files.

    Usage:
        store = ConcurrentCsvStore()
        result = store.read("data/engineers.csv")
        outcome = store.write("data/engineers.csv", rows, append_mode=False)
    """

    def __init__(self, config=None, registry: Optional[LockRegistry] = None):
        """
        Args:
            config: Config instance; defaults to the global configuration
            registry: Lock registry to use. Defaults to the process-wide
                      registry, or a private one when locking.scope is "instance"
        """
        self.config = config or get_config()

        if registry is None:
            scope = self.config.get('locking.scope', 'path')
            registry = LockRegistry() if scope == 'instance' else get_lock_registry()
        self.registry = registry

        self.encoding = self.config.get('storage.encoding', 'utf-8')
        self.atomic_writes = self.config.get('storage.atomic_writes', True)
        self.interprocess = self.config.get('locking.interprocess', True)
        self.lock_timeout = self.config.get('timeouts.lock_wait', 30.0)
        self.file_lock_timeout = self.config.get('timeouts.file_lock', 30.0)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @property
    def _read_encoding(self) -> str:
        # Tolerate a BOM written by spreadsheet tools
        if self.encoding.lower().replace('_', '-') in ('utf-8', 'utf8'):
            return 'utf-8-sig'
        return self.encoding

    def _interprocess_lock(self, path: Path, exclusive: bool,
                           cancel_event: Optional[threading.Event]):
        if not self.interprocess:
            return contextlib.nullcontext(path)
        return file_lock(path, exclusive=exclusive, timeout=self.file_lock_timeout,
                         logger=logger, cancel_event=cancel_event)

    def _enter_shared_lock(self, stack: contextlib.ExitStack, path: Path,
                           cancel_event: Optional[threading.Event]) -> None:
        """Take the shared inter-process lock, or skip it when the lock file cannot be created."""
        try:
            stack.enter_context(self._interprocess_lock(path, exclusive=False,
                                                        cancel_event=cancel_event))
        except PermissionError as e:
            logger.warning(persistence_error('LOCK_FILE_UNAVAILABLE', resource=path, error=e))

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def read(self, path: Union[str, Path],
             cancel_event: Optional[threading.Event] = None) -> AccessResult:
        """
        Read and validate every body line of a CSV file.

        Args:
            path: CSV file to read
            cancel_event: Set it to abandon the read while it waits for the lock

        Returns:
            AccessResult with successes, row errors, duplicate ids and fatal state
        """
        path = Path(path)
        lock = self.registry.get_lock(path)

        try:
            lock.acquire_read(self.lock_timeout, cancel_event)
        except OperationCancelledError:
            logger.info(f"Read of {path} cancelled while waiting for the lock")
            return AccessResult.cancelled_result()
        except LockTimeoutError as e:
            log_event(logging.ERROR, 'store', str(e))
            return AccessResult.fatal(str(e))

        start_time = time.time()
        try:
            result = self._read_locked(path, cancel_event)
        finally:
            lock.release_read()

        if result.ok:
            logger.info(f"Read {path}: {len(result.successes)} records, "
                        f"{len(result.row_errors)} row errors, "
                        f"{len(result.duplicate_ids)} duplicate ids "
                        f"in {time.time() - start_time:.2f}s")
        return result

    def _read_locked(self, path: Path, cancel_event: Optional[threading.Event]) -> AccessResult:
        if not path.exists():
            message = file_error('FILE_NOT_FOUND', path=path)
            log_event(logging.WARNING, 'store', message)
            return AccessResult.fatal(message)

        result = AccessResult()
        tracker = DuplicateTracker()

        try:
            with contextlib.ExitStack() as stack:
                self._enter_shared_lock(stack, path, cancel_event)
                with open(path, 'r', encoding=self._read_encoding) as f:
                    header = parse_line(f.readline())
                    if header[:COLUMN_COUNT] != CSV_HEADERS:
                        logger.warning(csv_error('HEADER_MISMATCH', path=path, header=header))

                    for line_number, line in enumerate(f, start=1):
                        if not line.strip():
                            continue
                        self._process_line(line, line_number, tracker, result)
        except OperationCancelledError:
            logger.info(f"Read of {path} cancelled while waiting for the file lock")
            return AccessResult.cancelled_result()
        except LockTimeoutError as e:
            log_event(logging.ERROR, 'store', str(e))
            result.fatal_error = True
            result.fatal_message = str(e)
        except (OSError, UnicodeDecodeError) as e:
            message = csv_error('CSV_READ_ERROR', path=path, error=e)
            log_event(logging.ERROR, 'store', message, e)
            result.fatal_error = True
            result.fatal_message = message

        result.duplicate_ids = tracker.duplicate_ids
        return result

    def _process_line(self, line: str, line_number: int,
                      tracker: DuplicateTracker, result: AccessResult) -> None:
        """Turn one body line into a success or a row error."""
        fields: List[str] = []
        try:
            fields = parse_line(line)
            if len(fields) < COLUMN_COUNT:
                self._row_error(result, fields, line_number,
                                csv_error('INSUFFICIENT_COLUMNS', line=line_number))
                return

            record = RecordBuilder.from_fields(fields, self.config)
            if tracker.observe(record.id, line_number):
                logger.warning(csv_error('DUPLICATE_ID', id=record.id, line=line_number,
                                         first_line=tracker.first_line(record.id)))
            result.successes.append(record)

        except ValidationError as e:
            self._row_error(result, fields, line_number,
                            csv_error('ROW_VALIDATION_FAILED', line=line_number, reason=e))
        except Exception as e:
            log_event(logging.ERROR, 'store', f"Error processing line {line_number} of CSV", e)
            self._row_error(result, fields, line_number,
                            csv_error('ROW_UNEXPECTED_ERROR', line=line_number, error=e))

    @staticmethod
    def _row_error(result: AccessResult, fields: Sequence[str], line_number: int, message: str) -> None:
        raw_id = fields[Columns.ID] if len(fields) > Columns.ID else ""
        raw_name = fields[Columns.NAME] if len(fields) > Columns.NAME else ""
        logger.debug(message)
        result.add_row_error(message, ErrorRecord(line_number, raw_id, raw_name, message))

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def write(self, path: Union[str, Path], rows: Sequence[Row],
              append_mode: bool = False,
              cancel_event: Optional[threading.Event] = None) -> WriteOutcome:
        """
        Write rows to a CSV file under the exclusive lock.

        Args:
            path: Target CSV file (parent directories are created)
            rows: Field lists (joined with the delimiter) or pre-joined lines.
                  The caller supplies the header row when one is wanted.
            append_mode: Append to the end instead of replacing the file
            cancel_event: Set it to abandon the write while it waits for the lock

        Returns:
            WriteOutcome; ok=False without fatal_message when there was nothing to write
        """
        path = Path(path)
        lock = self.registry.get_lock(path)

        try:
            lock.acquire_write(self.lock_timeout, cancel_event)
        except OperationCancelledError:
            logger.info(f"Write to {path} cancelled while waiting for the lock")
            return WriteOutcome.cancelled_outcome()
        except LockTimeoutError as e:
            log_event(logging.ERROR, 'store', str(e))
            return WriteOutcome.fatal(str(e))

        try:
            return self._write_locked(path, rows, append_mode, cancel_event)
        finally:
            lock.release_write()

    def _write_locked(self, path: Path, rows: Sequence[Row], append_mode: bool,
                      cancel_event: Optional[threading.Event]) -> WriteOutcome:
        if not rows:
            logger.warning(csv_error('NO_ROWS', path=path))
            return WriteOutcome(ok=False)

        try:
            ensure_parent_dir(path)
        except OSError as e:
            message = file_error('DIRECTORY_FAILED', path=path.parent, error=e)
            log_event(logging.ERROR, 'store', message, e)
            return WriteOutcome.fatal(message)

        lines = [row if isinstance(row, str) else join_row(row) for row in rows]

        try:
            with self._interprocess_lock(path, exclusive=True, cancel_event=cancel_event):
                if append_mode:
                    with open(path, 'a', encoding=self.encoding, newline='') as f:
                        self._write_lines(f, lines)
                elif self.atomic_writes:
                    with atomic_write(path, encoding=self.encoding, logger=logger) as f:
                        self._write_lines(f, lines)
                else:
                    with open(path, 'w', encoding=self.encoding, newline='') as f:
                        self._write_lines(f, lines)
        except OperationCancelledError:
            logger.info(f"Write to {path} cancelled while waiting for the file lock")
            return WriteOutcome.cancelled_outcome()
        except LockTimeoutError as e:
            log_event(logging.ERROR, 'store', str(e))
            return WriteOutcome.fatal(str(e))
        except OSError as e:
            message = csv_error('CSV_WRITE_ERROR', path=path, error=e)
            log_event(logging.ERROR, 'store', message, e)
            return WriteOutcome.fatal(message)

        mode = 'Appended' if append_mode else 'Wrote'
        logger.info(f"{mode} {len(lines)} rows to {path}")
        return WriteOutcome(ok=True, rows_written=len(lines))

    @staticmethod
    def _write_lines(handle, lines: Sequence[str]) -> None:
        for line in lines:
            handle.write(line)
            handle.write('\n')
