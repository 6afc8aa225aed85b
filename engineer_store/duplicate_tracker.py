#!/usr/bin/env python3
"""Duplicate id detection for a single read pass."""

from typing import Dict, Optional, Set

from .logging_config import get_logger

logger = get_logger(__name__)


class DuplicateTracker:
    """
    Remembers the first line each canonical id was seen on.

    A new tracker is created for every read so nothing leaks between calls.
    """

    def __init__(self):
        self._first_seen: Dict[str, int] = {}
        self._duplicates: Set[str] = set()

    def observe(self, record_id: str, line_number: int) -> bool:
        """
        Record an id occurrence.

        Returns:
            True if the id was already seen in this pass
        """
        first_line = self._first_seen.get(record_id)
        if first_line is None:
            self._first_seen[record_id] = line_number
            return False

        self._duplicates.add(record_id)
        logger.debug(f"Duplicate id {record_id} at line {line_number} (first seen at line {first_line})")
        return True

    def first_line(self, record_id: str) -> Optional[int]:
        return self._first_seen.get(record_id)

    @property
    def duplicate_ids(self) -> Set[str]:
        """Each colliding id exactly once."""
        return set(self._duplicates)

    def __len__(self) -> int:
        return len(self._first_seen)
