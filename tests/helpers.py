#!/usr/bin/env python3
"""
Shared fixtures for the engineer_store test suites.
"""

from pathlib import Path
from typing import Dict, List, Optional, Sequence

from engineer_store.config import Config
from engineer_store.constants import FIELD_NAMES
from engineer_store.record_builder import RecordBuilder
from engineer_store.row_codec import header_line, join_row

VALID_ROW = ["00001", "田中太郎", "タナカタロウ", "1990-01-01", "2015-04", "5",
             "Java;Python", "", "", "", "", "", "", "", ""]


def make_row(record_id: str = "00001", **overrides) -> List[str]:
    """A valid 15-field row with the given fields replaced (by attribute name)."""
    row = list(VALID_ROW)
    row[0] = record_id
    for name, value in overrides.items():
        row[FIELD_NAMES.index(name)] = value
    return row


def make_config(overrides: Optional[Dict[str, object]] = None) -> Config:
    """Fresh Config from the bundled defaults with dotted-key overrides."""
    config = Config()
    for key, value in (overrides or {}).items():
        config.set(key, value)
    return config


def make_record(record_id: str = "00001", config: Optional[Config] = None, **overrides):
    return RecordBuilder.from_fields(make_row(record_id, **overrides), config or make_config())


def write_csv(path: Path, rows: Sequence[Sequence[str]], header: bool = True,
              encoding: str = 'utf-8') -> Path:
    """Write rows as an engineer CSV (header included unless header=False)."""
    lines = [header_line()] if header else []
    lines.extend(join_row(row) for row in rows)
    Path(path).write_text(''.join(line + '\n' for line in lines), encoding=encoding)
    return Path(path)
