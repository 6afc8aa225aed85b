#!/usr/bin/env python3
"""
Engineer Store

Concurrent CSV-backed store for engineer records with:
- Reader/writer locking per file (plus optional inter-process locking)
- Per-row validation with row errors instead of aborted reads
- Duplicate id detection
- Repository operations: save, update, delete, import, export
"""

__version__ = "1.0.0"
__author__ = "Engineer Store Team"

import sys

if sys.version_info < (3, 8):
    raise RuntimeError(
        f"CRITICAL: Python 3.8+ required for engineer_store. "
        f"Current version: {sys.version_info.major}.{sys.version_info.minor}"
    )

from .access_result import AccessResult, WriteOutcome
from .access_executor import AccessExecutor, AccessTask
from .config import Config, get_config
from .csv_store import ConcurrentCsvStore
from .duplicate_tracker import DuplicateTracker
from .error_handling import (
    StoreError, FatalStoreError, ValidationError, LockTimeoutError,
    OperationCancelledError, TooManyRecordsError, DuplicateRecordError,
    ImportAbortedError,
)
from .logging_config import get_logger, setup_logging, log_event
from .normalization import canonical_id, to_half_width
from .record import Record, ErrorRecord
from .record_builder import RecordBuilder
from .repository import EngineerRepository, ImportSummary
from .row_codec import parse_line, serialize_record, join_row
from .rw_lock import ReadWriteLock, LockRegistry, get_lock_registry

__all__ = [
    'AccessResult', 'WriteOutcome',
    'AccessExecutor', 'AccessTask',
    'Config', 'get_config',
    'ConcurrentCsvStore',
    'DuplicateTracker',
    'StoreError', 'FatalStoreError', 'ValidationError', 'LockTimeoutError',
    'OperationCancelledError', 'TooManyRecordsError', 'DuplicateRecordError',
    'ImportAbortedError',
    'get_logger', 'setup_logging', 'log_event',
    'canonical_id', 'to_half_width',
    'Record', 'ErrorRecord',
    'RecordBuilder',
    'EngineerRepository', 'ImportSummary',
    'parse_line', 'serialize_record', 'join_row',
    'ReadWriteLock', 'LockRegistry', 'get_lock_registry',
]
