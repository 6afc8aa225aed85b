#!/usr/bin/env python3
"""
Unit tests for RecordBuilder validation.
"""

import unittest
from datetime import date

from engineer_store.error_handling import ValidationError
from engineer_store.record_builder import RecordBuilder

from helpers import VALID_ROW, make_config, make_row


class TestFromFields(unittest.TestCase):
    """Test building records from CSV rows"""

    def setUp(self):
        self.config = make_config()

    def build(self, row, config=None):
        return RecordBuilder.from_fields(row, config or self.config)

    def assertFieldError(self, row, field, config=None):
        with self.assertRaises(ValidationError) as ctx:
            self.build(row, config)
        self.assertEqual(ctx.exception.field, field)
        return ctx.exception

    def test_minimal_row(self):
        record = self.build(VALID_ROW)

        self.assertEqual(record.id, "00001")
        self.assertEqual(record.name, "田中太郎")
        self.assertEqual(record.name_kana, "タナカタロウ")
        self.assertEqual(record.birth_date, date(1990, 1, 1))
        self.assertEqual(record.join_date, date(2015, 4, 1))
        self.assertEqual(record.career_years, 5)
        self.assertEqual(record.programming_languages, ["Java", "Python"])
        self.assertEqual(record.career_history, "")
        self.assertEqual(record.training_history, "")
        self.assertEqual(record.note, "")
        self.assertIsNone(record.technical_skill)
        self.assertIsNone(record.learning_attitude)
        self.assertIsNone(record.communication_skill)
        self.assertIsNone(record.leadership)
        self.assertIsNone(record.registered_date)

    def test_full_width_id_is_normalized(self):
        self.assertEqual(self.build(make_row("０１２３４")).id, "01234")
        self.assertEqual(self.build(make_row("ID7")).id, "00007")

    def test_invalid_ids(self):
        for value in ["", "00000", "123456", "abc"]:
            with self.subTest(value=value):
                self.assertFieldError(make_row(value), "id")

    def test_first_violated_field_is_reported(self):
        row = make_row(name="", birth_date="not a date", career_years="-3")
        self.assertFieldError(row, "name")

    def test_field_order(self):
        row = make_row(birth_date="1990-13-01", career_years="x")
        self.assertFieldError(row, "birth_date")

    def test_required_fields(self):
        for field in ["name", "name_kana", "birth_date", "join_date",
                      "career_years", "programming_languages"]:
            with self.subTest(field=field):
                self.assertFieldError(make_row(**{field: "  "}), field)

    def test_date_formats(self):
        record = self.build(make_row(birth_date="1990/01/15", join_date="2015/04"))
        self.assertEqual(record.birth_date, date(1990, 1, 15))
        self.assertEqual(record.join_date, date(2015, 4, 1))

    def test_join_date_normalized_to_first_of_month(self):
        record = self.build(make_row(join_date="2015-04-20"))
        self.assertEqual(record.join_date, date(2015, 4, 1))

    def test_invalid_calendar_date(self):
        self.assertFieldError(make_row(birth_date="2020-02-30"), "birth_date")
        self.assertFieldError(make_row(join_date="2020-13"), "join_date")

    def test_birth_date_requires_day(self):
        self.assertFieldError(make_row(birth_date="1990-01"), "birth_date")

    def test_career_years(self):
        self.assertEqual(self.build(make_row(career_years="０")).career_years, 0)
        self.assertFieldError(make_row(career_years="-1"), "career_years")
        self.assertFieldError(make_row(career_years="2.5"), "career_years")

    def test_languages(self):
        record = self.build(make_row(programming_languages=" Go ; ;Rust;"))
        self.assertEqual(record.programming_languages, ["Go", "Rust"])
        self.assertFieldError(make_row(programming_languages=" ; ; "), "programming_languages")

    def test_skills(self):
        record = self.build(make_row(technical_skill="3", leadership="4.5"))
        self.assertEqual(record.technical_skill, 3.0)
        self.assertEqual(record.leadership, 4.5)
        self.assertIsNone(record.learning_attitude)

        self.assertFieldError(make_row(technical_skill="5.5"), "technical_skill")
        self.assertFieldError(make_row(communication_skill="0.5"), "communication_skill")
        self.assertFieldError(make_row(learning_attitude="high"), "learning_attitude")

    def test_text_length_limits(self):
        record = self.build(make_row(note="x" * 500, career_history="y" * 200))
        self.assertEqual(len(record.note), 500)

        error = self.assertFieldError(make_row(note="x" * 501), "note")
        self.assertIn("500", error.message)
        self.assertFieldError(make_row(training_history="y" * 201), "training_history")

    def test_name_length_limit(self):
        self.assertFieldError(make_row(name="田" * 21), "name")
        self.assertFieldError(make_row(name_kana="タ" * 21), "name_kana")

    def test_registered_date(self):
        record = self.build(make_row(registered_date="2024/05/06"))
        self.assertEqual(record.registered_date, date(2024, 5, 6))
        self.assertFieldError(make_row(registered_date="yesterday"), "registered_date")

    def test_error_message_names_field(self):
        error = self.assertFieldError(make_row(name=""), "name")
        self.assertEqual(str(error), "name: is required")

    def test_short_row_is_rejected(self):
        with self.assertRaises(ValueError):
            RecordBuilder.from_fields(VALID_ROW[:14], self.config)


class TestStrictValidation(unittest.TestCase):
    """Test the optional stricter rules"""

    def test_strict_charset(self):
        config = make_config({'validation.strict_charset': True})

        with self.assertRaises(ValidationError) as ctx:
            RecordBuilder.from_fields(make_row(name="Tanaka"), config)
        self.assertEqual(ctx.exception.field, "name")

        record = RecordBuilder.from_fields(make_row(name_kana="たなか ﾀﾛｳ"), config)
        self.assertEqual(record.name_kana, "タナカ タロウ")

    def test_restrict_languages(self):
        config = make_config({'validation.restrict_languages': True})
        with self.assertRaises(ValidationError) as ctx:
            RecordBuilder.from_fields(make_row(programming_languages="Java;COBOL"), config)
        self.assertEqual(ctx.exception.field, "programming_languages")

    def test_skill_half_steps(self):
        config = make_config({'validation.skill_half_steps': True})
        self.assertEqual(RecordBuilder.from_fields(make_row(leadership="3.5"), config).leadership, 3.5)
        with self.assertRaises(ValidationError):
            RecordBuilder.from_fields(make_row(leadership="3.3"), config)

    def test_date_window(self):
        config = make_config({'validation.min_date': '1950-01-01',
                              'validation.reject_future_dates': True,
                              'validation.career_years_max': 50})
        next_year = date.today().year + 1

        for overrides, field in [
            ({'birth_date': '1949-12-31'}, 'birth_date'),
            ({'join_date': f'{next_year}-01'}, 'join_date'),
            ({'career_years': '51'}, 'career_years'),
        ]:
            with self.subTest(overrides=overrides):
                with self.assertRaises(ValidationError) as ctx:
                    RecordBuilder.from_fields(make_row(**overrides), config)
                self.assertEqual(ctx.exception.field, field)


class TestFluentBuilder(unittest.TestCase):
    """Test the setter API with typed values"""

    def test_typed_values(self):
        record = (RecordBuilder(make_config())
                  .set_id("42")
                  .set_name("山田花子")
                  .set_name_kana("ヤマダハナコ")
                  .set_birth_date(date(1995, 6, 15))
                  .set_join_date(date(2020, 10, 12))
                  .set_career_years(3)
                  .set_programming_languages(["Python", "SQL"])
                  .set_technical_skill(4.0)
                  .set_note("multi\nline")
                  .build())

        self.assertEqual(record.id, "00042")
        self.assertEqual(record.join_date, date(2020, 10, 1))
        self.assertEqual(record.programming_languages, ["Python", "SQL"])
        self.assertEqual(record.technical_skill, 4.0)
        self.assertEqual(record.note, "multi\nline")

    def test_from_record_round_trip(self):
        original = RecordBuilder.from_fields(make_row(note="memo"), make_config())
        rebuilt = RecordBuilder.from_record(original, make_config()).set_note("changed").build()

        self.assertEqual(rebuilt.id, original.id)
        self.assertEqual(rebuilt.birth_date, original.birth_date)
        self.assertEqual(rebuilt.note, "changed")

    def test_missing_values(self):
        with self.assertRaises(ValidationError) as ctx:
            RecordBuilder(make_config()).set_id("1").build()
        self.assertEqual(ctx.exception.field, "name")


if __name__ == '__main__':
    unittest.main()
