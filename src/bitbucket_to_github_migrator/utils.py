"""
Utility functions for the Bitbucket to GitHub migration tool.
"""

from __future__ import annotations

import getpass
import logging

from .exceptions import MigrationError


def setup_logging(*, verbosity: int = 0) -> None:
    """Configure logging for the migration process.

    The console shows warnings by default, info with ``-v`` and debug with
    ``-vv``. The log file always receives everything.
    """
    if verbosity <= 0:
        console_level = logging.WARNING
    elif verbosity == 1:
        console_level = logging.INFO
    else:
        console_level = logging.DEBUG

    console_handler = logging.StreamHandler()
    console_handler.setLevel(console_level)
    file_handler = logging.FileHandler("migration.log", mode="a")
    file_handler.setLevel(logging.DEBUG)

    logging.basicConfig(
        level=logging.DEBUG,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[console_handler, file_handler],
    )


def split_repo_path(repo_path: str, platform: str) -> tuple[str, str]:
    """Split an "owner/repository" path into its two parts.

    Raises:
        MigrationError: If the path is not of the form owner/repository
    """
    repo_path = repo_path.strip()
    parts = repo_path.split("/")
    if len(parts) != 2:  # noqa: PLR2004
        msg = f"Invalid {platform} repository path '{repo_path}'. Expected format: 'owner/repository'"
        raise MigrationError(msg)
    owner, name = parts
    if not owner or not name:
        msg = f"Invalid {platform} repository path '{repo_path}'. Both owner and repository name must be non-empty"
        raise MigrationError(msg)
    return owner, name


def prompt_value(question: str, *, secret: bool = False) -> str:
    """Ask the user for a value on the terminal. Secrets are read without echo."""
    try:
        value = getpass.getpass(question) if secret else input(question)
    except EOFError as e:
        msg = "Input was interrupted. Please run the command in an interactive session or pass all options."
        raise MigrationError(msg) from e
    return value.strip()
