#!/usr/bin/env python3
"""
Record - Core data structures for engineer records
One validated CSV row, plus the placeholder kept for rows that failed.
"""

from dataclasses import dataclass, field, replace
from datetime import date
from typing import List, Optional, Dict, Any


@dataclass
class Record:
    """A validated engineer record (only ever produced by RecordBuilder)"""
    id: str                       # Canonical five digit id, e.g. "00001"
    name: str
    name_kana: str
    birth_date: date
    join_date: date               # Always the first day of the month
    career_years: int
    programming_languages: List[str] = field(default_factory=list)
    career_history: str = ""
    training_history: str = ""
    technical_skill: Optional[float] = None
    learning_attitude: Optional[float] = None
    communication_skill: Optional[float] = None
    leadership: Optional[float] = None
    note: str = ""
    registered_date: Optional[date] = None

    def to_dict(self) -> Dict[str, Any]:
        """Plain dictionary view with ISO dates, for logging and JSON output"""
        return {
            'id': self.id,
            'name': self.name,
            'name_kana': self.name_kana,
            'birth_date': self.birth_date.isoformat(),
            'join_date': self.join_date.isoformat(),
            'career_years': self.career_years,
            'programming_languages': list(self.programming_languages),
            'career_history': self.career_history,
            'training_history': self.training_history,
            'technical_skill': self.technical_skill,
            'learning_attitude': self.learning_attitude,
            'communication_skill': self.communication_skill,
            'leadership': self.leadership,
            'note': self.note,
            'registered_date': self.registered_date.isoformat() if self.registered_date else None,
        }

    def with_registered_date(self, registered: date) -> 'Record':
        """Copy of this record carrying the given registration date"""
        return replace(self, registered_date=registered)


@dataclass
class ErrorRecord:
    """Placeholder for a row that could not be turned into a Record"""
    line_number: int
    raw_id: str
    raw_name: str
    reason: str
