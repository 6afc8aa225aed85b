#!/usr/bin/env python3
"""
Engineer Repository

Record-level operations over one engineer CSV, built on ConcurrentCsvStore:
lookup, save, update, bulk delete, import with overwrite confirmation, and
exports (data, empty template, error list).

Mutators read the whole file, change the list and write it back. The
read-modify-write sequence is serialized per file with the registry's update
lock; the store's reader/writer lock still guards each individual read and
write.
"""

import time
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Union

from .access_result import AccessResult
from .config import get_config, ensure_parent_dir
from .constants import ERROR_LIST_HEADERS
from .csv_store import ConcurrentCsvStore
from .error_handling import (
    DuplicateRecordError, FatalStoreError, ImportAbortedError, TooManyRecordsError,
    handle_file_operations, repository_error,
)
from .file_lock import atomic_write
from .logging_config import get_logger, log_operation_complete
from .normalization import comparable_id
from .record import Record, ErrorRecord
from .row_codec import header_line, header_row, serialize_record

logger = get_logger(__name__)

ConfirmOverwrite = Callable[[List[str]], bool]


@dataclass
class ImportSummary:
    """What an import did, by canonical id"""
    added: List[str] = field(default_factory=list)
    overwritten: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    row_errors: List[str] = field(default_factory=list)

    def get_summary(self) -> Dict[str, int]:
        return {
            'added': len(self.added),
            'overwritten': len(self.overwritten),
            'skipped': len(self.skipped),
            'row_errors': len(self.row_errors),
        }


class EngineerRepository:
    """
    Engineer records stored in a single CSV file.

    Args:
        csv_path: CSV file; defaults to paths.engineer_csv from the config
        store: ConcurrentCsvStore to use (a new one is created when omitted)
        config: Config instance; defaults to the global configuration
    """

    def __init__(self, csv_path: Optional[Union[str, Path]] = None,
                 store: Optional[ConcurrentCsvStore] = None,
                 config=None):
        self.config = config or get_config()
        self.csv_path = Path(csv_path or self.config.get('paths.engineer_csv', 'data/engineers.csv'))
        self.store = store or ConcurrentCsvStore(self.config)
        self.max_records = self.config.get('limits.max_records', 1000)
        self._update_lock = self.store.registry.get_update_lock(self.csv_path)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def read(self) -> AccessResult:
        """Full read result of the backing file (row errors and duplicates included)."""
        return self.store.read(self.csv_path)

    def find_all(self) -> List[Record]:
        """
        All valid records. A fatal read (including a missing file) yields an
        empty list and a warning.
        """
        result = self.read()
        if result.fatal_error or result.cancelled:
            logger.warning(f"Could not load engineers from {self.csv_path}: {result.fatal_message}")
            return []

        if len(result.successes) > self.max_records:
            logger.error(repository_error('LIMIT_EXCEEDED', count=len(result.successes),
                                          limit=self.max_records))
        if result.has_duplicates:
            logger.warning(f"{self.csv_path} contains duplicate ids: {sorted(result.duplicate_ids)}")
        return result.successes

    def find_by_id(self, record_id: str) -> Optional[Record]:
        key = comparable_id(record_id)
        for record in self.find_all():
            if record.id == key:
                return record
        return None

    # ------------------------------------------------------------------
    # Mutators
    # ------------------------------------------------------------------

    def _load_for_update(self) -> List[Record]:
        """Current records for a read-modify-write; a missing file is an empty store."""
        result = self.read()
        if result.fatal_error:
            if not self.csv_path.exists():
                return []
            raise FatalStoreError(result.fatal_message)
        if result.cancelled:
            raise FatalStoreError(f"Read of {self.csv_path} was cancelled")
        if result.has_row_errors:
            logger.warning(f"{len(result.row_errors)} invalid rows in {self.csv_path} "
                           f"will not be written back")
        return list(result.successes)

    def _write_all(self, records: Sequence[Record]) -> None:
        rows = [header_row()] + [serialize_record(record) for record in records]
        outcome = self.store.write(self.csv_path, rows)
        if not outcome.ok:
            raise FatalStoreError(outcome.fatal_message or f"Write to {self.csv_path} was cancelled")

    @staticmethod
    def _stamp(record: Record, today: Optional[date] = None) -> Record:
        if record.registered_date is not None:
            return record
        return record.with_registered_date(today or date.today())

    def save(self, record: Record) -> Record:
        """
        Add a new record.

        Returns:
            The stored record (with registered_date set)

        Raises:
            TooManyRecordsError: The store already holds the maximum number of records
            DuplicateRecordError: A record with the same id exists
            FatalStoreError: The file could not be read or written
        """
        with self._update_lock:
            records = self._load_for_update()
            if len(records) >= self.max_records:
                raise TooManyRecordsError(repository_error('TOO_MANY_RECORDS', limit=self.max_records))
            if any(existing.id == record.id for existing in records):
                raise DuplicateRecordError(repository_error('ID_EXISTS', id=record.id))

            stored = self._stamp(record)
            records.append(stored)
            self._write_all(records)

        logger.info(f"Saved engineer {stored.id}")
        return stored

    def update(self, record: Record) -> Record:
        """
        Replace the record with the same id, or append it when absent.

        A record without registered_date keeps the stored one.
        """
        with self._update_lock:
            records = self._load_for_update()
            updated: List[Record] = []
            stored = None
            for existing in records:
                if existing.id != record.id:
                    updated.append(existing)
                elif stored is None:
                    stored = self._stamp(record, existing.registered_date)
                    updated.append(stored)

            if stored is None:
                if len(records) >= self.max_records:
                    raise TooManyRecordsError(repository_error('TOO_MANY_RECORDS', limit=self.max_records))
                stored = self._stamp(record)
                updated.append(stored)
                logger.info(f"Engineer {record.id} not found, appended")

            self._write_all(updated)

        logger.info(f"Updated engineer {stored.id}")
        return stored

    def delete_all(self, ids: Iterable[str]) -> int:
        """
        Delete every record whose id is in ids.

        Returns:
            Number of records removed

        Raises:
            ValueError: If ids is empty
        """
        keys = {comparable_id(record_id) for record_id in ids}
        if not keys:
            raise ValueError("no ids given to delete")

        with self._update_lock:
            records = self._load_for_update()
            remaining = [record for record in records if record.id not in keys]
            removed = len(records) - len(remaining)
            if removed:
                self._write_all(remaining)

        logger.info(f"Deleted {removed} engineers ({len(keys)} ids requested)")
        return removed

    def import_file(self, path: Union[str, Path],
                    confirm_overwrite: Optional[ConfirmOverwrite] = None) -> ImportSummary:
        """
        Merge the records of another engineer CSV into this store.

        Args:
            path: CSV file to import
            confirm_overwrite: Called with the sorted ids that already exist;
                               return True to overwrite them, False to skip them.
                               Without a callback colliding rows are skipped.

        Raises:
            ImportAbortedError: The file could not be read or contains duplicate ids
            TooManyRecordsError: The merged store would exceed the record limit
        """
        start_time = time.time()
        path = Path(path)

        result = self.store.read(path)
        if result.fatal_error or result.cancelled:
            message = repository_error('IMPORT_FAILED', path=path,
                                       error=result.fatal_message or 'cancelled')
            logger.error(message)
            raise ImportAbortedError(message)
        if result.has_duplicates:
            raise ImportAbortedError(
                repository_error('DUPLICATES_IN_FILE', ids=', '.join(sorted(result.duplicate_ids))),
                duplicate_ids=result.duplicate_ids)

        summary = ImportSummary(row_errors=list(result.row_errors))

        with self._update_lock:
            records = self._load_for_update()
            index = {}
            for position, existing in enumerate(records):
                index.setdefault(existing.id, position)

            incoming = result.successes
            colliding = sorted(record.id for record in incoming if record.id in index)

            overwrite = False
            if colliding:
                if confirm_overwrite is None:
                    logger.warning(f"{len(colliding)} ids already exist and no confirmation "
                                   f"callback was given; skipping them")
                else:
                    overwrite = bool(confirm_overwrite(colliding))

            total = len(records) + len(incoming) - len(colliding)
            if total > self.max_records:
                raise TooManyRecordsError(repository_error('LIMIT_EXCEEDED', count=total,
                                                           limit=self.max_records))

            today = date.today()
            for record in incoming:
                position = index.get(record.id)
                if position is None:
                    records.append(self._stamp(record, today))
                    summary.added.append(record.id)
                elif overwrite:
                    old = records[position]
                    records[position] = self._stamp(record, old.registered_date or today)
                    summary.overwritten.append(record.id)
                else:
                    summary.skipped.append(record.id)

            if summary.added or summary.overwritten:
                self._write_all(records)

        log_operation_complete(logger, f"Import from {path}", True,
                               time.time() - start_time, **summary.get_summary())
        return summary

    # ------------------------------------------------------------------
    # Exports
    # ------------------------------------------------------------------

    def export_csv(self, records: Sequence[Record], path: Union[str, Path]) -> bool:
        """Write records (with header) to another CSV file."""
        rows = [header_row()] + [serialize_record(record) for record in records]
        outcome = self.store.write(path, rows)
        if outcome.ok:
            logger.info(f"Exported {len(records)} engineers to {path}")
        return outcome.ok

    @handle_file_operations("Template export", return_on_error=False)
    def export_template(self, path: Union[str, Path]) -> bool:
        """Write a header-only CSV for users to fill in."""
        path = ensure_parent_dir(path)
        with atomic_write(path, encoding=self.store.encoding, logger=logger) as f:
            f.write(header_line())
            f.write('\n')
        logger.info(f"Wrote template CSV to {path}")
        return True

    def export_error_list(self, error_records: Sequence[ErrorRecord], path: Union[str, Path]) -> bool:
        """Write the rows that failed validation, one per line with their reason."""
        if not error_records:
            logger.warning("No error records to export")
            return False

        rows = [list(ERROR_LIST_HEADERS)] + [
            [str(error.line_number), error.raw_id, error.raw_name, error.reason]
            for error in error_records
        ]
        outcome = self.store.write(path, rows)
        if outcome.ok:
            logger.info(f"Exported {len(error_records)} error rows to {path}")
        else:
            logger.warning(f"Error list export to {path} failed: {outcome.fatal_message}")
        return outcome.ok
