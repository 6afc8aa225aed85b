#!/usr/bin/env python3
"""
Row codec for the engineer CSV.

parse_line splits one physical line into fields, serialize_record turns a
Record back into the 15 column strings and join_row renders those as a line.
String columns keep embedded line breaks as backslash escapes so every
record stays on a single physical line.
"""

import csv
import io
import re
from typing import List, Sequence

from .constants import (
    CSV_HEADERS, Columns, FIELD_DELIMITER, LANGUAGE_DELIMITER, DATE_FORMAT,
)
from .record import Record

TEXT_COLUMNS = (
    Columns.NAME, Columns.NAME_KANA, Columns.PROGRAMMING_LANGUAGES,
    Columns.CAREER_HISTORY, Columns.TRAINING_HISTORY, Columns.NOTE,
)

ESCAPE_PATTERN = re.compile(r'\\([\\nr])')
_UNESCAPES = {'\\': '\\', 'n': '\n', 'r': '\r'}


def escape_text(value: str) -> str:
    """Escape backslashes and line breaks in a free-text value."""
    if not value:
        return ""
    return value.replace('\\', '\\\\').replace('\n', '\\n').replace('\r', '\\r')


def unescape_text(value: str) -> str:
    """Inverse of escape_text; unknown escape sequences are left as they are."""
    if not value or '\\' not in value:
        return value
    return ESCAPE_PATTERN.sub(lambda m: _UNESCAPES[m.group(1)], value)


def parse_line(line: str) -> List[str]:
    """
    Split one CSV line into fields.

    Trailing empty fields are preserved ("a,b," gives three fields) and a
    double-quoted field may contain the delimiter. String columns are
    unescaped.

    Args:
        line: One physical line, with or without its line terminator

    Returns:
        List of field strings (empty for a blank line)
    """
    line = line.rstrip('\r\n')
    if not line:
        return []

    fields = next(csv.reader([line], delimiter=FIELD_DELIMITER))
    for index in TEXT_COLUMNS:
        if index < len(fields):
            fields[index] = unescape_text(fields[index])
    return fields


def _format_skill(value) -> str:
    # repr gives the shortest text that parses back to the same float
    return "" if value is None else repr(float(value))


def serialize_record(record: Record) -> List[str]:
    """Convert a Record into its 15 column strings."""
    return [
        record.id,
        escape_text(record.name),
        escape_text(record.name_kana),
        record.birth_date.strftime(DATE_FORMAT),
        record.join_date.strftime(DATE_FORMAT),
        str(record.career_years),
        escape_text(LANGUAGE_DELIMITER.join(record.programming_languages)),
        escape_text(record.career_history),
        escape_text(record.training_history),
        _format_skill(record.technical_skill),
        _format_skill(record.learning_attitude),
        _format_skill(record.communication_skill),
        _format_skill(record.leadership),
        escape_text(record.note),
        record.registered_date.strftime(DATE_FORMAT) if record.registered_date else "",
    ]


def join_row(fields: Sequence[str]) -> str:
    """
    Render fields as one CSV line (without line terminator).

    Fields containing the delimiter or a double quote are quoted so that
    parse_line reads them back unchanged.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=FIELD_DELIMITER, lineterminator='')
    writer.writerow(["" if value is None else str(value) for value in fields])
    return buffer.getvalue()


def header_row() -> List[str]:
    """The fixed header fields."""
    return list(CSV_HEADERS)


def header_line() -> str:
    return join_row(CSV_HEADERS)
