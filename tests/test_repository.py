#!/usr/bin/env python3
"""
Unit tests for EngineerRepository record operations, import and export.
"""

import unittest
import shutil
import tempfile
import threading
from datetime import date
from pathlib import Path

from engineer_store.constants import CSV_HEADERS, ERROR_LIST_HEADERS
from engineer_store.csv_store import ConcurrentCsvStore
from engineer_store.error_handling import (
    DuplicateRecordError, ImportAbortedError, TooManyRecordsError,
)
from engineer_store.record import ErrorRecord
from engineer_store.repository import EngineerRepository
from engineer_store.row_codec import parse_line

from helpers import make_config, make_record, make_row, write_csv


class RepositoryTestCase(unittest.TestCase):

    config_overrides = None

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.csv_file = Path(self.temp_dir) / "engineers.csv"
        self.config = make_config(self.config_overrides)
        self.repository = EngineerRepository(self.csv_file, config=self.config)

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def stored_ids(self):
        return [record.id for record in self.repository.find_all()]


class TestQueries(RepositoryTestCase):

    def test_missing_file_is_empty(self):
        self.assertEqual(self.repository.find_all(), [])
        self.assertIsNone(self.repository.find_by_id("1"))

    def test_find_by_id_normalizes(self):
        write_csv(self.csv_file, [make_row("1"), make_row("2", name="鈴木一郎")])

        self.assertEqual(self.repository.find_by_id("ID2").name, "鈴木一郎")
        self.assertEqual(self.repository.find_by_id("０００２").name, "鈴木一郎")
        self.assertIsNone(self.repository.find_by_id("3"))

    def test_find_all_skips_invalid_rows(self):
        write_csv(self.csv_file, [make_row("1"), make_row("2", career_years="x")])
        self.assertEqual(self.stored_ids(), ["00001"])

    def test_default_path_from_config(self):
        config = make_config({'paths.engineer_csv': str(self.csv_file)})
        self.assertEqual(EngineerRepository(config=config).csv_path, self.csv_file)


class TestSave(RepositoryTestCase):

    def test_save_stamps_registered_date(self):
        stored = self.repository.save(make_record("1"))

        self.assertEqual(stored.registered_date, date.today())
        self.assertEqual(self.repository.find_by_id("1").registered_date, date.today())
        first_line = self.csv_file.read_text(encoding='utf-8').splitlines()[0]
        self.assertEqual(parse_line(first_line), CSV_HEADERS)

    def test_save_keeps_given_registered_date(self):
        stored = self.repository.save(make_record("1", registered_date="2020-01-01"))
        self.assertEqual(stored.registered_date, date(2020, 1, 1))

    def test_save_duplicate_id(self):
        self.repository.save(make_record("1"))
        with self.assertRaises(DuplicateRecordError):
            self.repository.save(make_record("ID1"))
        self.assertEqual(self.stored_ids(), ["00001"])

    def test_concurrent_saves_lose_nothing(self):
        errors = []

        def save(record_id):
            try:
                self.repository.save(make_record(str(record_id)))
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=save, args=(i,)) for i in range(1, 11)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(errors, [])
        self.assertEqual(sorted(self.stored_ids()), [f"{i:05d}" for i in range(1, 11)])


class TestRecordLimit(RepositoryTestCase):

    config_overrides = {'limits.max_records': 2}

    def test_save_rejected_at_limit(self):
        self.repository.save(make_record("1"))
        self.repository.save(make_record("2"))
        with self.assertRaises(TooManyRecordsError):
            self.repository.save(make_record("3"))

    def test_import_rejected_over_limit(self):
        self.repository.save(make_record("1"))
        source = write_csv(Path(self.temp_dir) / "import.csv", [make_row("2"), make_row("3")])

        with self.assertRaises(TooManyRecordsError):
            self.repository.import_file(source)
        self.assertEqual(self.stored_ids(), ["00001"])


class TestUpdateDelete(RepositoryTestCase):

    def test_update_replaces_and_keeps_registration(self):
        self.repository.save(make_record("1", registered_date="2020-01-01"))
        self.repository.save(make_record("2"))

        self.repository.update(make_record("1", name="佐藤次郎"))

        updated = self.repository.find_by_id("1")
        self.assertEqual(updated.name, "佐藤次郎")
        self.assertEqual(updated.registered_date, date(2020, 1, 1))
        self.assertEqual(self.stored_ids(), ["00001", "00002"])

    def test_update_appends_missing(self):
        self.repository.save(make_record("1"))
        self.repository.update(make_record("5"))
        self.assertEqual(self.stored_ids(), ["00001", "00005"])

    def test_delete_all(self):
        for i in range(1, 5):
            self.repository.save(make_record(str(i)))

        removed = self.repository.delete_all(["1", "ID3", "99"])

        self.assertEqual(removed, 2)
        self.assertEqual(self.stored_ids(), ["00002", "00004"])

    def test_delete_all_requires_ids(self):
        with self.assertRaises(ValueError):
            self.repository.delete_all([])


class TestImport(RepositoryTestCase):

    def setUp(self):
        super().setUp()
        self.repository.save(make_record("1", name="既存太郎"))
        self.source = Path(self.temp_dir) / "import.csv"

    def test_adds_new_records(self):
        write_csv(self.source, [make_row("2"), make_row("3")])

        summary = self.repository.import_file(self.source)

        self.assertEqual(summary.added, ["00002", "00003"])
        self.assertEqual(self.stored_ids(), ["00001", "00002", "00003"])
        self.assertIsNotNone(self.repository.find_by_id("2").registered_date)

    def test_overwrite_confirmed(self):
        write_csv(self.source, [make_row("1", name="新規花子"), make_row("2")])
        asked = []

        def confirm(ids):
            asked.append(ids)
            return True

        summary = self.repository.import_file(self.source, confirm_overwrite=confirm)

        self.assertEqual(asked, [["00001"]])
        self.assertEqual(summary.overwritten, ["00001"])
        self.assertEqual(summary.added, ["00002"])
        self.assertEqual(self.repository.find_by_id("1").name, "新規花子")

    def test_overwrite_declined(self):
        write_csv(self.source, [make_row("1", name="新規花子"), make_row("2")])

        summary = self.repository.import_file(self.source, confirm_overwrite=lambda ids: False)

        self.assertEqual(summary.skipped, ["00001"])
        self.assertEqual(summary.added, ["00002"])
        self.assertEqual(self.repository.find_by_id("1").name, "既存太郎")

    def test_duplicates_in_file_abort(self):
        write_csv(self.source, [make_row("2"), make_row("ID2"), make_row("3")])

        with self.assertRaises(ImportAbortedError) as ctx:
            self.repository.import_file(self.source)

        self.assertEqual(ctx.exception.duplicate_ids, ["00002"])
        self.assertEqual(self.stored_ids(), ["00001"])

    def test_missing_file_aborts(self):
        with self.assertRaises(ImportAbortedError):
            self.repository.import_file(Path(self.temp_dir) / "missing.csv")

    def test_row_errors_are_reported(self):
        write_csv(self.source, [make_row("2"), make_row("3", name="")])

        summary = self.repository.import_file(self.source)

        self.assertEqual(summary.added, ["00002"])
        self.assertEqual(summary.row_errors, ["validation error at line 2: name: is required"])
        self.assertEqual(summary.get_summary()['row_errors'], 1)


class TestExport(RepositoryTestCase):

    def test_export_csv_reads_back(self):
        records = [make_record("1", note="複数\n行"), make_record("2", leadership="3.5")]
        target = Path(self.temp_dir) / "out" / "export.csv"

        self.assertTrue(self.repository.export_csv(records, target))

        result = ConcurrentCsvStore(self.config).read(target)
        self.assertEqual(result.successes, records)

    def test_export_template(self):
        target = Path(self.temp_dir) / "template.csv"

        self.assertTrue(self.repository.export_template(target))

        lines = target.read_text(encoding='utf-8').splitlines()
        self.assertEqual(len(lines), 1)
        self.assertEqual(parse_line(lines[0]), CSV_HEADERS)
        result = ConcurrentCsvStore(self.config).read(target)
        self.assertTrue(result.ok)
        self.assertEqual(result.successes, [])

    def test_export_template_failure_returns_false(self):
        blocker = Path(self.temp_dir) / "file"
        blocker.write_text("x")
        self.assertFalse(self.repository.export_template(blocker / "template.csv"))

    def test_export_error_list(self):
        errors = [ErrorRecord(2, "00002", "山田", "insufficient columns at line 2"),
                  ErrorRecord(5, "abc", "", "validation error at line 5: id: invalid id format: abc")]
        target = Path(self.temp_dir) / "errors.csv"

        self.assertTrue(self.repository.export_error_list(errors, target))

        lines = [parse_line(line) for line in target.read_text(encoding='utf-8').splitlines()]
        self.assertEqual(lines[0], ERROR_LIST_HEADERS)
        self.assertEqual(lines[1], ["2", "00002", "山田", "insufficient columns at line 2"])
        self.assertEqual(len(lines), 3)

    def test_export_error_list_empty(self):
        self.assertFalse(self.repository.export_error_list([], Path(self.temp_dir) / "errors.csv"))


if __name__ == "__main__":
    unittest.main()
