#!/usr/bin/env python3
"""
Unified Error Handling for the engineer store

Consolidates:
- The exception taxonomy (fatal store errors, row validation errors,
  lock outcomes, repository errors)
- Error message templates shared by the store, builder and repository
- Error handling decorators for best-effort file operations
- Helper functions for formatting errors
"""

import errno
import functools
from typing import Optional, Dict, Any, Callable

from .logging_config import get_logger


# ============================================================================
# EXCEPTIONS
# ============================================================================

class StoreError(Exception):
    """Base class for every error raised by the engineer store."""
    pass


class FatalStoreError(StoreError):
    """The whole read/write operation could not proceed (missing file, I/O failure)."""
    pass


class ValidationError(StoreError):
    """
    Raised when a row or builder value violates a field constraint.

    Attributes:
        field: Name of the first violated field
        message: Reason, without the field prefix
    """

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class LockTimeoutError(StoreError):
    """Raised when a lock could not be acquired within the configured timeout."""
    pass


class OperationCancelledError(StoreError):
    """Raised when the caller cancelled an operation while it waited for a lock."""
    pass


class TooManyRecordsError(StoreError):
    """Raised when a save or import would exceed the configured record limit."""
    pass


class DuplicateRecordError(StoreError):
    """Raised when saving a record whose id is already stored."""
    pass


class ImportAbortedError(StoreError):
    """Raised when an import cannot proceed (fatal read, duplicate ids inside the file)."""

    def __init__(self, message: str, duplicate_ids=None):
        self.duplicate_ids = sorted(duplicate_ids or [])
        super().__init__(message)


# ============================================================================
# ERROR MESSAGE TEMPLATES
# ============================================================================

class ErrorMessages:
    """Centralized error message templates with consistent formatting"""

    # File operation errors
    FILE_OPERATIONS = {
        'FILE_NOT_FOUND': "file not found: {path}",
        'PERMISSION_DENIED': "Permission denied accessing {path}",
        'DISK_FULL': "Insufficient disk space for {operation}",
        'DIRECTORY_FAILED': "Failed to create directory {path}: {error}",
        'WRITE_FAILED': "Failed to write to {path}: {error}",
        'READ_FAILED': "Failed to read from {path}: {error}"
    }

    # Field validation errors
    VALIDATION = {
        'MISSING_REQUIRED': "is required",
        'INVALID_FORMAT': "invalid {type} format: {value}",
        'INVALID_DATE': "not a valid date: {value}",
        'TOO_LONG': "must be at most {max_length} characters (got {length})",
        'VALUE_OUT_OF_RANGE': "value {value} is out of range ({min_val}-{max_val})",
        'FORBIDDEN_ID': "id {value} is reserved and cannot be used",
        'INVALID_CHARACTERS': "contains characters outside {allowed}: {value}",
        'UNKNOWN_LANGUAGE': "unknown language: {value}"
    }

    # CSV processing errors
    CSV_PROCESSING = {
        'INSUFFICIENT_COLUMNS': "insufficient columns at line {line}",
        'ROW_VALIDATION_FAILED': "validation error at line {line}: {reason}",
        'ROW_UNEXPECTED_ERROR': "unexpected error at line {line}: {error}",
        'CSV_READ_ERROR': "Failed to read CSV file {path}: {error}",
        'CSV_WRITE_ERROR': "Failed to write CSV file {path}: {error}",
        'HEADER_MISMATCH': "Unexpected CSV header in {path}: {header}",
        'NO_ROWS': "No rows to write to {path}",
        'DUPLICATE_ID': "Duplicate id {id} at line {line} (first seen at line {first_line})"
    }

    # Locking and cancellation
    PERSISTENCE = {
        'LOCK_TIMEOUT': "Failed to acquire {mode} lock for {resource} within {timeout}s",
        'CANCELLED': "Operation {operation} on {resource} was cancelled before it started",
        'LOCK_FILE_UNAVAILABLE': "Cannot create lock file for {resource} ({error}), reading without inter-process lock"
    }

    # Repository level errors
    REPOSITORY = {
        'TOO_MANY_RECORDS': "Record limit reached ({limit} records)",
        'LIMIT_EXCEEDED': "Stored records exceed the limit ({count} > {limit})",
        'ID_EXISTS': "Record with id {id} already exists",
        'DUPLICATES_IN_FILE': "Import file contains duplicate ids: {ids}",
        'IMPORT_FAILED': "Import from {path} failed: {error}"
    }

    @staticmethod
    def format_error(category: str, error_type: str, **kwargs) -> str:
        """
        Format error message with provided context.

        Args:
            category: Error category (FILE_OPERATIONS, VALIDATION, ...)
            error_type: Specific error type within category
            **kwargs: Template variables for string formatting

        Returns:
            Formatted error message, truncated to 500 characters
        """
        category_dict = getattr(ErrorMessages, category.upper(), {})
        template = category_dict.get(error_type.upper())

        if template is None:
            return f"Unknown error: {category}.{error_type}"

        try:
            message = template.format(**kwargs)
        except KeyError as e:
            return f"Error message template missing variable {e}: {template}"

        if len(message) > 500:
            message = message[:497] + "..."
        return message


# ============================================================================
# DECORATORS
# ============================================================================

def handle_file_operations(operation_name: str, return_on_error: Any = None,
                           log_errors: bool = True, context: Optional[Dict] = None):
    """
    Decorator for best-effort file operations (exports, templates).

    I/O failures are logged and converted into ``return_on_error``; anything
    that is not an OSError propagates.

    Args:
        operation_name: Name of the file operation for error messages
        return_on_error: Value to return if error occurs (default: None)
        log_errors: Whether to log errors (default: True)
        context: Additional context appended to the log message
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            logger = get_logger(func.__module__)
            suffix = f" {context}" if context else ""

            try:
                return func(*args, **kwargs)
            except FileNotFoundError as e:
                if log_errors:
                    logger.error(f"{operation_name} failed: "
                                 f"{file_error('FILE_NOT_FOUND', path=e.filename)}{suffix}")
                return return_on_error
            except PermissionError as e:
                if log_errors:
                    logger.error(f"{operation_name} failed: "
                                 f"{file_error('PERMISSION_DENIED', path=e.filename)}{suffix}")
                return return_on_error
            except OSError as e:
                if e.errno == errno.ENOSPC:
                    error_msg = file_error('DISK_FULL', operation=operation_name)
                else:
                    error_msg = f"OS error in {operation_name}: {e}"
                if log_errors:
                    logger.error(f"{error_msg}{suffix}")
                return return_on_error

        return wrapper
    return decorator


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def file_error(error_type: str, **kwargs) -> str:
    """Helper function for file operation errors"""
    return ErrorMessages.format_error('FILE_OPERATIONS', error_type, **kwargs)


def validation_error(error_type: str, **kwargs) -> str:
    """Helper function for validation errors"""
    return ErrorMessages.format_error('VALIDATION', error_type, **kwargs)


def csv_error(error_type: str, **kwargs) -> str:
    """Helper function for CSV processing errors"""
    return ErrorMessages.format_error('CSV_PROCESSING', error_type, **kwargs)


def persistence_error(error_type: str, **kwargs) -> str:
    """Helper function for locking errors"""
    return ErrorMessages.format_error('PERSISTENCE', error_type, **kwargs)


def repository_error(error_type: str, **kwargs) -> str:
    """Helper function for repository errors"""
    return ErrorMessages.format_error('REPOSITORY', error_type, **kwargs)
