#!/usr/bin/env python3
"""
Normalization utilities for engineer fields.

Width and kana normalization for text typed on Japanese keyboards, and the
canonical engineer id used for every equality and duplicate comparison:
full-width digits become half-width, whitespace and an optional "ID" prefix
are dropped, and the number is zero-padded to five digits.
"""

import re
import unicodedata
from typing import Optional

from .constants import ID_DIGITS, ID_PREFIX, FORBIDDEN_ID

# Compile regex patterns once for performance
WHITESPACE_PATTERN = re.compile(r'\s+')
ID_DIGITS_PATTERN = re.compile(r'^\d{1,%d}$' % ID_DIGITS, re.ASCII)
JAPANESE_NAME_PATTERN = re.compile(r'^[぀-ゟ゠-ヿ一-鿿々]+$')
KATAKANA_PATTERN = re.compile(r'^[゠-ヿ]+$')

_HIRAGANA_START = 0x3041
_HIRAGANA_END = 0x3096
_KANA_OFFSET = 0x60


def to_half_width(value: Optional[str]) -> Optional[str]:
    """
    Fold full-width alphanumerics to half-width and half-width katakana to
    full-width (Unicode NFKC).

    Examples:
        >>> to_half_width('０１２３４')
        '01234'
        >>> to_half_width('ﾀﾅｶ')
        'タナカ'
    """
    if value is None:
        return None
    return unicodedata.normalize('NFKC', value)


def remove_spaces(value: Optional[str]) -> Optional[str]:
    """Remove every half-width and full-width space."""
    if value is None:
        return None
    return WHITESPACE_PATTERN.sub('', value)


def hiragana_to_katakana(value: Optional[str]) -> Optional[str]:
    """Convert hiragana characters to their katakana counterparts."""
    if value is None:
        return None
    return ''.join(
        chr(ord(ch) + _KANA_OFFSET) if _HIRAGANA_START <= ord(ch) <= _HIRAGANA_END else ch
        for ch in value
    )


def canonical_id(value: Optional[str]) -> str:
    """
    Convert an engineer id to its canonical five digit form.

    Args:
        value: Raw id, e.g. "1", "ID00001", "０１２３４", " 12 3 "

    Returns:
        Canonical id such as "00001"

    Raises:
        ValueError: If the value is blank or is not 1-5 digits after normalization
    """
    if value is None:
        raise ValueError("id is blank")

    cleaned = remove_spaces(to_half_width(str(value)))
    if not cleaned:
        raise ValueError("id is blank")

    if cleaned.upper().startswith(ID_PREFIX):
        cleaned = cleaned[len(ID_PREFIX):]

    if not ID_DIGITS_PATTERN.match(cleaned):
        raise ValueError(f"id must be 1-{ID_DIGITS} digits: {value}")

    return cleaned.zfill(ID_DIGITS)


def comparable_id(value: Optional[str]) -> str:
    """
    Best-effort canonical form for lookups: the canonical id when the value
    is well formed, otherwise the trimmed input unchanged.
    """
    try:
        return canonical_id(value)
    except ValueError:
        return (value or '').strip()


def is_forbidden_id(value: Optional[str]) -> bool:
    """Check whether a (raw or canonical) id is the reserved id."""
    return comparable_id(value) == FORBIDDEN_ID


def is_japanese_name(value: str) -> bool:
    """Kanji, hiragana and katakana only."""
    return bool(JAPANESE_NAME_PATTERN.match(value))


def is_katakana(value: str) -> bool:
    """Katakana only (including the prolonged sound mark)."""
    return bool(KATAKANA_PATTERN.match(value))
