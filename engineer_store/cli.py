#!/usr/bin/env python3
"""
Engineer Store Command Line Interface

Validate, import and export engineer CSV files from the shell.

Usage:
    engineer-store [options] <command> ...

Examples:
    engineer-store validate engineers.csv
    engineer-store validate --error-list errors.csv engineers.csv
    engineer-store template blank.csv
    engineer-store import new_hires.csv --into data/engineers.csv --skip-duplicates
    engineer-store export data/engineers.csv backup.csv
"""

import sys
import argparse
import json
from typing import List, Optional

from . import __version__
from .config import get_config
from .csv_store import ConcurrentCsvStore
from .error_handling import StoreError
from .logging_config import get_logger, setup_logging_from_config
from .repository import EngineerRepository

logger = get_logger(__name__)


def setup_argument_parser() -> argparse.ArgumentParser:
    """Set up command line argument parser."""
    parser = argparse.ArgumentParser(
        prog="engineer-store",
        description="Engineer Store - validate, import and export engineer CSV files",
        epilog="""
Examples:
  %(prog)s validate engineers.csv                 # Check every row
  %(prog)s template blank.csv                     # Header-only CSV to fill in
  %(prog)s import new.csv --into store.csv --overwrite
  %(prog)s export store.csv backup.csv
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        '--config',
        type=str,
        help='Path to configuration file (default: bundled config.yaml)'
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default=None,
        help='Set logging level (default: from config)'
    )

    parser.add_argument(
        '--log-dir',
        type=str,
        help='Directory for log files (overrides paths.logs_dir)'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    validate = subparsers.add_parser('validate', help='Read a CSV and report row errors and duplicate ids')
    validate.add_argument('csv_file', help='CSV file to check')
    validate.add_argument('--error-list', type=str, help='Write failed rows to this CSV')
    validate.add_argument('--output', type=str, help='Write the summary as JSON to this file')

    template = subparsers.add_parser('template', help='Write a header-only CSV')
    template.add_argument('output_file', help='Template file to create')

    import_cmd = subparsers.add_parser('import', help='Merge a CSV into the engineer store')
    import_cmd.add_argument('source', help='CSV file to import')
    import_cmd.add_argument('--into', type=str, help='Target store CSV (default: paths.engineer_csv)')
    duplicates = import_cmd.add_mutually_exclusive_group()
    duplicates.add_argument('--overwrite', action='store_true',
                            help='Overwrite records whose id already exists')
    duplicates.add_argument('--skip-duplicates', action='store_true',
                            help='Keep stored records whose id already exists')

    export = subparsers.add_parser('export', help='Copy the valid records of a CSV to another file')
    export.add_argument('source', help='CSV file to read')
    export.add_argument('output_file', help='CSV file to write')

    return parser


def prompt_overwrite(ids: List[str]) -> bool:
    """Ask on the terminal whether existing ids should be overwritten."""
    print(f"{len(ids)} ids already exist: {', '.join(ids)}")
    answer = input("Overwrite them? [y/N] ").strip().lower()
    return answer in ('y', 'yes')


def cmd_validate(args: argparse.Namespace, config) -> int:
    store = ConcurrentCsvStore(config)
    result = store.read(args.csv_file)
    summary = result.get_summary()

    if result.fatal_error:
        print(f"Fatal error: {result.fatal_message}")
    else:
        print(f"{summary['records']} valid records, {summary['row_errors']} row errors")
        for message in result.row_errors:
            print(f"  {message}")
        if result.has_duplicates:
            print(f"Duplicate ids: {', '.join(summary['duplicate_ids'])}")

    if args.error_list and result.error_records:
        repository = EngineerRepository(args.csv_file, store=store, config=config)
        if repository.export_error_list(result.error_records, args.error_list):
            print(f"Error list written to {args.error_list}")

    if args.output:
        with open(args.output, 'w', encoding='utf-8') as f:
            json.dump(summary, f, indent=2, ensure_ascii=False)
        logger.info(f"Summary saved to: {args.output}")

    return 1 if result.fatal_error or result.has_row_errors else 0


def cmd_template(args: argparse.Namespace, config) -> int:
    repository = EngineerRepository(store=ConcurrentCsvStore(config), config=config)
    if not repository.export_template(args.output_file):
        print(f"Failed to write template to {args.output_file}")
        return 1
    print(f"Template written to {args.output_file}")
    return 0


def cmd_import(args: argparse.Namespace, config) -> int:
    repository = EngineerRepository(args.into, store=ConcurrentCsvStore(config), config=config)

    if args.overwrite:
        confirm = lambda ids: True
    elif args.skip_duplicates:
        confirm = lambda ids: False
    else:
        confirm = prompt_overwrite

    summary = repository.import_file(args.source, confirm_overwrite=confirm)
    counts = summary.get_summary()
    print(f"Imported into {repository.csv_path}: {counts['added']} added, "
          f"{counts['overwritten']} overwritten, {counts['skipped']} skipped, "
          f"{counts['row_errors']} row errors")
    for message in summary.row_errors:
        print(f"  {message}")
    return 0


def cmd_export(args: argparse.Namespace, config) -> int:
    repository = EngineerRepository(args.source, store=ConcurrentCsvStore(config), config=config)
    result = repository.read()
    if result.fatal_error:
        print(f"Fatal error: {result.fatal_message}")
        return 1

    if not repository.export_csv(result.successes, args.output_file):
        print(f"Failed to export to {args.output_file}")
        return 1
    print(f"Exported {len(result.successes)} records to {args.output_file}")
    return 0


COMMANDS = {
    'validate': cmd_validate,
    'template': cmd_template,
    'import': cmd_import,
    'export': cmd_export,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = setup_argument_parser()
    args = parser.parse_args(argv)

    try:
        config = get_config(args.config)
        if args.log_dir:
            config.set('paths.logs_dir', args.log_dir)
        setup_logging_from_config(config, log_level=args.log_level)
        logger.debug(f"Running {args.command} (config: {config.config_path})")

        return COMMANDS[args.command](args, config)

    except KeyboardInterrupt:
        print("\nOperation interrupted by user")
        return 1
    except StoreError as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"Error: {e}")
        return 1
    except Exception as e:
        logger.error(f"{args.command} failed: {e}", exc_info=True)
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
