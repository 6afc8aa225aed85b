#!/usr/bin/env python3
"""
Shared Constants Module

Single source of truth for the engineer CSV column contract:
- Header names and column indices
- Field and sub-field delimiters
- Date formats
- Id format and reserved id
- Known programming languages
"""

from typing import List


# ============================================================================
# CSV COLUMN CONTRACT
# ============================================================================

CSV_HEADERS: List[str] = [
    "社員ID(必須)",
    "氏名(必須)",
    "フリガナ(必須)",
    "生年月日(必須)",
    "入社年月(必須)",
    "エンジニア歴(必須)",
    "扱える言語(必須)",
    "経歴",
    "研修の受講歴",
    "技術力",
    "受講態度",
    "コミュニケーション能力",
    "リーダーシップ",
    "備考",
    "登録日",
]

COLUMN_COUNT = len(CSV_HEADERS)


class Columns:
    """Column indices in the fixed CSV order."""
    ID = 0
    NAME = 1
    NAME_KANA = 2
    BIRTH_DATE = 3
    JOIN_DATE = 4
    CAREER_YEARS = 5
    PROGRAMMING_LANGUAGES = 6
    CAREER_HISTORY = 7
    TRAINING_HISTORY = 8
    TECHNICAL_SKILL = 9
    LEARNING_ATTITUDE = 10
    COMMUNICATION_SKILL = 11
    LEADERSHIP = 12
    NOTE = 13
    REGISTERED_DATE = 14


# Record attribute names, in column order
FIELD_NAMES: List[str] = [
    "id",
    "name",
    "name_kana",
    "birth_date",
    "join_date",
    "career_years",
    "programming_languages",
    "career_history",
    "training_history",
    "technical_skill",
    "learning_attitude",
    "communication_skill",
    "leadership",
    "note",
    "registered_date",
]

SKILL_FIELDS = ("technical_skill", "learning_attitude", "communication_skill", "leadership")


# ============================================================================
# FORMAT CONSTANTS
# ============================================================================

FIELD_DELIMITER = ","
LANGUAGE_DELIMITER = ";"
DATE_FORMAT = "%Y-%m-%d"

ID_DIGITS = 5
ID_PREFIX = "ID"
FORBIDDEN_ID = "00000"

AVAILABLE_LANGUAGES: List[str] = [
    "C++", "C#", "Java", "Python", "JavaScript",
    "TypeScript", "PHP", "Ruby", "Go", "Swift",
    "Kotlin", "SQL", "HTML/CSS", "その他",
]

# Columns of the exported error list
ERROR_LIST_HEADERS: List[str] = [
    "行番号",
    "社員ID",
    "氏名",
    "エラー内容",
]
