"""
Custom exception classes for the Bitbucket to GitHub migration tool.
"""

from __future__ import annotations

from typing import Any


class MigrationError(Exception):
    """Base exception for migration errors."""


class AuthorizationError(MigrationError):
    """Raised when a repository stays inaccessible after credentials were supplied."""


class DateFormatError(MigrationError):
    """Raised when a Bitbucket timestamp cannot be parsed."""


class SchemaError(MigrationError):
    """Raised when an API record lacks a required field."""


class SequenceError(MigrationError):
    """Raised when source issues are not delivered in ascending id order."""


class IssueImportError(MigrationError):
    """Raised when GitHub rejects an issue import.

    The offending request body is kept on ``payload`` so it can be logged
    for diagnosis.
    """

    def __init__(self, message: str, payload: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.payload: dict[str, Any] | None = payload


class ImportTimeoutError(IssueImportError):
    """Raised when an import is still being processed after the last status check.

    GitHub may finish such an import later and assign it the number that was
    expected, so the slot cannot be reused.
    """
