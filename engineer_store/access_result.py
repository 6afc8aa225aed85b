#!/usr/bin/env python3
"""
Access results - aggregated outcome objects returned by the CSV store.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Set, Dict, Any

from .record import Record, ErrorRecord


@dataclass
class AccessResult:
    """Outcome of one read pass over an engineer CSV"""
    successes: List[Record] = field(default_factory=list)
    row_errors: List[str] = field(default_factory=list)          # One message per failed row
    error_records: List[ErrorRecord] = field(default_factory=list)  # Parallel to row_errors
    duplicate_ids: Set[str] = field(default_factory=set)
    fatal_error: bool = False
    fatal_message: Optional[str] = None
    cancelled: bool = False

    @classmethod
    def fatal(cls, message: str) -> 'AccessResult':
        return cls(fatal_error=True, fatal_message=message)

    @classmethod
    def cancelled_result(cls) -> 'AccessResult':
        return cls(cancelled=True)

    def add_row_error(self, message: str, error_record: ErrorRecord) -> None:
        self.row_errors.append(message)
        self.error_records.append(error_record)

    @property
    def has_duplicates(self) -> bool:
        return bool(self.duplicate_ids)

    @property
    def has_row_errors(self) -> bool:
        return bool(self.row_errors)

    @property
    def ok(self) -> bool:
        """True when the read ran to completion (row errors may still exist)."""
        return not self.fatal_error and not self.cancelled

    def get_summary(self) -> Dict[str, Any]:
        """Get a summary of the read for logging and CLI output"""
        return {
            'records': len(self.successes),
            'row_errors': len(self.row_errors),
            'duplicate_ids': sorted(self.duplicate_ids),
            'fatal_error': self.fatal_error,
            'fatal_message': self.fatal_message,
            'cancelled': self.cancelled,
        }


@dataclass
class WriteOutcome:
    """Outcome of one write to an engineer CSV"""
    ok: bool
    fatal_message: Optional[str] = None
    cancelled: bool = False
    rows_written: int = 0

    @property
    def fatal_error(self) -> bool:
        return self.fatal_message is not None

    @classmethod
    def fatal(cls, message: str) -> 'WriteOutcome':
        return cls(ok=False, fatal_message=message)

    @classmethod
    def cancelled_outcome(cls) -> 'WriteOutcome':
        return cls(ok=False, cancelled=True)
