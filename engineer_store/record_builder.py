#!/usr/bin/env python3
"""
Record Builder

Collects raw field values (strings straight from a CSV row, or typed values
from callers) and turns them into a validated Record. Validation runs in
column order and stops at the first violated field, raising
ValidationError(field, message).

Stricter checks (character classes, known language list, half-step skills,
date window) are off by default and enabled through the `validation` config
section.
"""

from datetime import date, datetime
from typing import Any, Iterable, List, Optional, Sequence, Union

from .config import get_config
from .constants import (
    AVAILABLE_LANGUAGES, COLUMN_COUNT, Columns, FORBIDDEN_ID,
    LANGUAGE_DELIMITER, SKILL_FIELDS,
)
from .error_handling import ValidationError, validation_error
from .normalization import (
    canonical_id, hiragana_to_katakana, is_japanese_name, is_katakana,
    remove_spaces, to_half_width,
)
from .record import Record

DATE_FORMATS = ("%Y-%m-%d", "%Y/%m/%d")
MONTH_FORMATS = ("%Y-%m", "%Y/%m")

DateInput = Union[str, date, None]


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _parse_date(value: str, formats: Sequence[str]) -> Optional[date]:
    text = to_half_width(value.strip())
    for fmt in formats:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


class RecordBuilder:
    """
    Fluent builder for Record.

    Usage:
        record = (RecordBuilder()
                  .set_id("1")
                  .set_name("田中太郎")
                  ...
                  .build())
    """

    def __init__(self, config=None):
        self._config = config or get_config()
        self._values = {}

    # ------------------------------------------------------------------
    # Setters
    # ------------------------------------------------------------------

    def _set(self, field_name: str, value: Any) -> 'RecordBuilder':
        self._values[field_name] = value
        return self

    def set_id(self, value: Optional[str]) -> 'RecordBuilder':
        return self._set('id', value)

    def set_name(self, value: Optional[str]) -> 'RecordBuilder':
        return self._set('name', value)

    def set_name_kana(self, value: Optional[str]) -> 'RecordBuilder':
        return self._set('name_kana', value)

    def set_birth_date(self, value: DateInput) -> 'RecordBuilder':
        return self._set('birth_date', value)

    def set_join_date(self, value: DateInput) -> 'RecordBuilder':
        return self._set('join_date', value)

    def set_career_years(self, value: Union[str, int, None]) -> 'RecordBuilder':
        return self._set('career_years', value)

    def set_programming_languages(self, value: Union[str, Iterable[str], None]) -> 'RecordBuilder':
        return self._set('programming_languages', value)

    def set_career_history(self, value: Optional[str]) -> 'RecordBuilder':
        return self._set('career_history', value)

    def set_training_history(self, value: Optional[str]) -> 'RecordBuilder':
        return self._set('training_history', value)

    def set_technical_skill(self, value: Union[str, float, None]) -> 'RecordBuilder':
        return self._set('technical_skill', value)

    def set_learning_attitude(self, value: Union[str, float, None]) -> 'RecordBuilder':
        return self._set('learning_attitude', value)

    def set_communication_skill(self, value: Union[str, float, None]) -> 'RecordBuilder':
        return self._set('communication_skill', value)

    def set_leadership(self, value: Union[str, float, None]) -> 'RecordBuilder':
        return self._set('leadership', value)

    def set_note(self, value: Optional[str]) -> 'RecordBuilder':
        return self._set('note', value)

    def set_registered_date(self, value: DateInput) -> 'RecordBuilder':
        return self._set('registered_date', value)

    @classmethod
    def from_record(cls, record: Record, config=None) -> 'RecordBuilder':
        """Builder pre-filled with an existing record's values."""
        builder = cls(config)
        builder._values.update(record.to_dict())
        builder._values['birth_date'] = record.birth_date
        builder._values['join_date'] = record.join_date
        builder._values['registered_date'] = record.registered_date
        return builder

    @classmethod
    def from_fields(cls, fields: Sequence[str], config=None) -> Record:
        """
        Build a Record from one parsed CSV row.

        Args:
            fields: At least 15 string fields in column order (extra fields are ignored)
            config: Optional Config; defaults to the global configuration

        Returns:
            The validated Record

        Raises:
            ValueError: If fewer than 15 fields are given
            ValidationError: If a field violates its constraint
        """
        if len(fields) < COLUMN_COUNT:
            raise ValueError(f"expected {COLUMN_COUNT} fields, got {len(fields)}")

        return (cls(config)
                .set_id(fields[Columns.ID])
                .set_name(fields[Columns.NAME])
                .set_name_kana(fields[Columns.NAME_KANA])
                .set_birth_date(fields[Columns.BIRTH_DATE])
                .set_join_date(fields[Columns.JOIN_DATE])
                .set_career_years(fields[Columns.CAREER_YEARS])
                .set_programming_languages(fields[Columns.PROGRAMMING_LANGUAGES])
                .set_career_history(fields[Columns.CAREER_HISTORY])
                .set_training_history(fields[Columns.TRAINING_HISTORY])
                .set_technical_skill(fields[Columns.TECHNICAL_SKILL])
                .set_learning_attitude(fields[Columns.LEARNING_ATTITUDE])
                .set_communication_skill(fields[Columns.COMMUNICATION_SKILL])
                .set_leadership(fields[Columns.LEADERSHIP])
                .set_note(fields[Columns.NOTE])
                .set_registered_date(fields[Columns.REGISTERED_DATE])
                .build())

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    def build(self) -> Record:
        """Validate every field in column order and return the Record."""
        record_id = self._validate_id(self._values.get('id'))
        name = self._validate_name(self._values.get('name'))
        name_kana = self._validate_name_kana(self._values.get('name_kana'))
        birth_date = self._validate_date('birth_date', self._values.get('birth_date'))
        join_date = self._validate_date('join_date', self._values.get('join_date'), month_only=True)
        career_years = self._validate_career_years(self._values.get('career_years'))
        languages = self._validate_languages(self._values.get('programming_languages'))
        skills = {name_: self._validate_skill(name_, self._values.get(name_)) for name_ in SKILL_FIELDS}
        career_history = self._validate_text('career_history', self._values.get('career_history'))
        training_history = self._validate_text('training_history', self._values.get('training_history'))
        note = self._validate_text('note', self._values.get('note'))
        registered_date = self._validate_registered_date(self._values.get('registered_date'))

        return Record(
            id=record_id,
            name=name,
            name_kana=name_kana,
            birth_date=birth_date,
            join_date=join_date,
            career_years=career_years,
            programming_languages=languages,
            career_history=career_history,
            training_history=training_history,
            note=note,
            registered_date=registered_date,
            **skills,
        )

    # ------------------------------------------------------------------
    # Field validators
    # ------------------------------------------------------------------

    def _setting(self, key: str, default: Any) -> Any:
        return self._config.get(f"validation.{key}", default)

    def _validate_id(self, value: Any) -> str:
        if _blank(value):
            raise ValidationError('id', validation_error('MISSING_REQUIRED'))
        try:
            record_id = canonical_id(str(value))
        except ValueError:
            raise ValidationError('id', validation_error('INVALID_FORMAT', type='id', value=value))
        if record_id == FORBIDDEN_ID:
            raise ValidationError('id', validation_error('FORBIDDEN_ID', value=record_id))
        return record_id

    def _check_length(self, field_name: str, value: str, max_length: int) -> None:
        if len(value) > max_length:
            raise ValidationError(field_name, validation_error(
                'TOO_LONG', max_length=max_length, length=len(value)))

    def _validate_name(self, value: Any) -> str:
        if _blank(value):
            raise ValidationError('name', validation_error('MISSING_REQUIRED'))
        name = str(value).strip()
        self._check_length('name', name, self._setting('name_max_length', 20))

        if self._setting('strict_charset', False) and not is_japanese_name(remove_spaces(name)):
            raise ValidationError('name', validation_error(
                'INVALID_CHARACTERS', allowed='kanji/hiragana/katakana', value=name))
        return name

    def _validate_name_kana(self, value: Any) -> str:
        if _blank(value):
            raise ValidationError('name_kana', validation_error('MISSING_REQUIRED'))
        kana = str(value).strip()

        if self._setting('strict_charset', False):
            kana = hiragana_to_katakana(to_half_width(kana))
            if not is_katakana(remove_spaces(kana)):
                raise ValidationError('name_kana', validation_error(
                    'INVALID_CHARACTERS', allowed='katakana', value=kana))

        self._check_length('name_kana', kana, self._setting('name_kana_max_length', 20))
        return kana

    def _date_window(self, field_name: str, value: date) -> date:
        min_date = self._setting('min_date', None)
        if min_date:
            if not isinstance(min_date, date):
                min_date = _parse_date(str(min_date), DATE_FORMATS)
            if min_date and value < min_date:
                raise ValidationError(field_name, validation_error(
                    'VALUE_OUT_OF_RANGE', value=value.isoformat(),
                    min_val=min_date.isoformat(), max_val='today'))

        if self._setting('reject_future_dates', False) and value > date.today():
            raise ValidationError(field_name, validation_error(
                'VALUE_OUT_OF_RANGE', value=value.isoformat(),
                min_val=min_date or '', max_val=date.today().isoformat()))
        return value

    def _validate_date(self, field_name: str, value: DateInput, month_only: bool = False) -> date:
        if _blank(value):
            raise ValidationError(field_name, validation_error('MISSING_REQUIRED'))

        if isinstance(value, datetime):
            parsed = value.date()
        elif isinstance(value, date):
            parsed = value
        else:
            formats = DATE_FORMATS + MONTH_FORMATS if month_only else DATE_FORMATS
            parsed = _parse_date(str(value), formats)
            if parsed is None:
                raise ValidationError(field_name, validation_error('INVALID_DATE', value=value))

        if month_only:
            parsed = parsed.replace(day=1)
        return self._date_window(field_name, parsed)

    def _validate_registered_date(self, value: DateInput) -> Optional[date]:
        if _blank(value):
            return None
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        parsed = _parse_date(str(value), DATE_FORMATS)
        if parsed is None:
            raise ValidationError('registered_date', validation_error('INVALID_DATE', value=value))
        return parsed

    def _validate_career_years(self, value: Any) -> int:
        if _blank(value):
            raise ValidationError('career_years', validation_error('MISSING_REQUIRED'))

        if isinstance(value, bool):
            raise ValidationError('career_years', validation_error(
                'INVALID_FORMAT', type='integer', value=value))
        if isinstance(value, int):
            years = value
        else:
            try:
                years = int(remove_spaces(to_half_width(str(value))))
            except ValueError:
                raise ValidationError('career_years', validation_error(
                    'INVALID_FORMAT', type='integer', value=value))

        max_years = self._setting('career_years_max', None)
        if years < 0 or (max_years is not None and years > max_years):
            raise ValidationError('career_years', validation_error(
                'VALUE_OUT_OF_RANGE', value=years, min_val=0,
                max_val=max_years if max_years is not None else '')
            )
        return years

    def _validate_languages(self, value: Any) -> List[str]:
        if value is None:
            items = []
        elif isinstance(value, str):
            items = value.split(LANGUAGE_DELIMITER)
        else:
            items = list(value)

        languages = [str(item).strip() for item in items if item is not None and str(item).strip()]
        if not languages:
            raise ValidationError('programming_languages', validation_error('MISSING_REQUIRED'))

        if self._setting('restrict_languages', False):
            for language in languages:
                if language not in AVAILABLE_LANGUAGES:
                    raise ValidationError('programming_languages', validation_error(
                        'UNKNOWN_LANGUAGE', value=language))
        return languages

    def _validate_skill(self, field_name: str, value: Any) -> Optional[float]:
        if _blank(value):
            return None

        try:
            skill = float(to_half_width(value.strip()) if isinstance(value, str) else value)
        except (TypeError, ValueError):
            raise ValidationError(field_name, validation_error(
                'INVALID_FORMAT', type='number', value=value))

        skill_min = self._setting('skill_min', 1.0)
        skill_max = self._setting('skill_max', 5.0)
        if not (skill_min <= skill <= skill_max):
            raise ValidationError(field_name, validation_error(
                'VALUE_OUT_OF_RANGE', value=value, min_val=skill_min, max_val=skill_max))

        if self._setting('skill_half_steps', False) and not (skill * 2).is_integer():
            raise ValidationError(field_name, validation_error(
                'INVALID_FORMAT', type='0.5 step', value=value))
        return skill

    def _validate_text(self, field_name: str, value: Any) -> str:
        if _blank(value):
            return ""
        text = str(value)
        self._check_length(field_name, text, self._setting(f"{field_name}_max_length", 500))
        return text
