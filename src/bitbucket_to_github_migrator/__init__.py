"""
Bitbucket to GitHub Issue Migration Tool

Migrates the issues, comments and milestones of a Bitbucket repository to
GitHub, keeping issue numbers identical by filling gaps with placeholders.
"""

from __future__ import annotations

from .bitbucket_reader import BitbucketReader
from .cli import main
from .exceptions import (
    AuthorizationError,
    DateFormatError,
    ImportTimeoutError,
    IssueImportError,
    MigrationError,
    SchemaError,
    SequenceError,
)
from .github_writer import GitHubWriter
from .issue_converter import IssueConverter
from .sequencer import MigrationResult, MigrationSequencer, MigrationStats
from .utils import setup_logging

# Package version
__version__ = "0.1.0"

__all__ = [
    "AuthorizationError",
    "BitbucketReader",
    "DateFormatError",
    "GitHubWriter",
    "ImportTimeoutError",
    "IssueConverter",
    "IssueImportError",
    "MigrationError",
    "MigrationResult",
    "MigrationSequencer",
    "MigrationStats",
    "SchemaError",
    "SequenceError",
    "main",
    "setup_logging",
]
