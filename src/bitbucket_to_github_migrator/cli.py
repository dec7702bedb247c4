"""
Command-line interface for the Bitbucket to GitHub migration tool.
"""

from __future__ import annotations

import argparse
import logging
import sys

import requests
from github import GithubException

from . import bitbucket_utils as bbu
from . import github_utils as ghu
from .bitbucket_reader import BitbucketReader
from .exceptions import AuthorizationError, MigrationError
from .github_writer import GitHubWriter
from .sequencer import MigrationResult, MigrationSequencer
from .utils import prompt_value, setup_logging

logger: logging.Logger = logging.getLogger(__name__)


def parse_arguments() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Migrate Bitbucket issues to GitHub, preserving issue numbers")

    _ = parser.add_argument("--bb-repo", help='Bitbucket repository to migrate issues from (e.g. "acme/widget")')
    _ = parser.add_argument("--bb-user", help="Bitbucket user (default: $BITBUCKET_USERNAME or prompt)")
    _ = parser.add_argument(
        "--bb-pass", help="Bitbucket app password (default: $BITBUCKET_APP_PASSWORD or hidden prompt)"
    )
    _ = parser.add_argument("--gh-repo", help='GitHub repository to migrate issues to (e.g. "acme/widget")')
    _ = parser.add_argument("--gh-user", help="GitHub user (default: $GITHUB_USERNAME, may be omitted with a token)")
    _ = parser.add_argument(
        "--gh-pass", help="GitHub password or personal access token (default: $GITHUB_TOKEN or hidden prompt)"
    )

    _ = parser.add_argument(
        "--skip-failed-imports",
        action="store_true",
        help="Replace issues GitHub rejects by placeholders and continue instead of aborting",
    )
    _ = parser.add_argument(
        "--poll-interval",
        type=float,
        default=1.0,
        help="Seconds between checks of a pending GitHub issue import (default: 1.0)",
    )

    _ = parser.add_argument(
        "--verbose", "-v", action="count", default=0, help="Increase console verbosity (-v: info, -vv: debug)"
    )

    return parser.parse_args()


def connect_source(args: argparse.Namespace) -> BitbucketReader:
    """Build the Bitbucket reader, asking for credentials if the repository is private.

    Raises:
        AuthorizationError: If the repository stays inaccessible with credentials
    """
    repo_path: str = args.bb_repo or prompt_value(
        "Bitbucket repository to migrate issues from (e.g. acme/widget): "
    )
    reader = BitbucketReader(repo_path)

    logger.info(f"Checking Bitbucket repository {reader.repo_path} is accessible...")
    if reader.check_accessible():
        return reader

    logger.info(f"Bitbucket repository {reader.repo_path} is private")
    user = args.bb_user or bbu.get_user() or prompt_value("Bitbucket user: ")
    secret = args.bb_pass or bbu.get_secret() or prompt_value("Bitbucket app password: ", secret=True)
    logger.info(f"Configuring access to Bitbucket with user {user}")
    reader.configure_auth(user, secret)

    if not reader.check_accessible():
        msg = f"Bitbucket repository {reader.repo_path} is not accessible with user {user}"
        raise AuthorizationError(msg)
    return reader


def connect_target(args: argparse.Namespace) -> GitHubWriter:
    """Build the GitHub writer.

    Creating issues always needs credentials, so they are used whenever
    available and asked for if the repository cannot be reached without.

    Raises:
        AuthorizationError: If the repository stays inaccessible with credentials
    """
    repo_path: str = args.gh_repo or prompt_value("GitHub repository to migrate issues to (e.g. acme/widget): ")
    writer = GitHubWriter(repo_path, poll_interval=args.poll_interval)

    user: str | None = args.gh_user or ghu.get_user()
    secret: str | None = args.gh_pass or ghu.get_token()
    if secret:
        writer.configure_auth(user, secret)

    logger.info(f"Checking GitHub repository {writer.repo_path} is accessible...")
    if secret and writer.check_accessible():
        return writer

    logger.info(f"GitHub repository {writer.repo_path} is private, doesn't exist or needs credentials")
    user = user or prompt_value("GitHub user (leave empty when using a token): ") or None
    secret = secret or prompt_value("GitHub password or token: ", secret=True)
    writer.configure_auth(user, secret)

    if not writer.check_accessible():
        msg = f"GitHub repository {writer.repo_path} is not accessible with the given credentials"
        raise AuthorizationError(msg)
    return writer


def _print_migration_report(source: str, target: str, result: MigrationResult) -> None:
    """Print a summary of the migration run."""
    stats = result.stats
    print(f"Migration {source} -> {target}: {'PASSED' if result.success else 'FAILED'}")
    print(f"  Milestones: created={stats.milestones_created}, mapped={len(result.milestone_map)}")
    print(
        f"  Issues: created={stats.issues_created}, already present={stats.issues_skipped}, "
        f"placeholders={stats.placeholders_created}, failed={stats.imports_failed}"
    )
    print(f"  Comments: created={stats.comments_created}")
    print(f"  Issue numbers consumed: {result.expected_issue_id - 1} of {result.total_issues}")
    for error in stats.errors:
        print(f"  ERROR: {error}")


def main() -> None:
    """Main entry point."""
    args = parse_arguments()
    setup_logging(verbosity=args.verbose)

    try:
        reader = connect_source(args)
        writer = connect_target(args)

        sequencer = MigrationSequencer(
            reader,
            writer,
            reader.repo_path,
            skip_failed_imports=args.skip_failed_imports,
        )
        result = sequencer.migrate()

    except (MigrationError, requests.RequestException, GithubException):
        logger.exception("Migration failed")
        sys.exit(1)

    _print_migration_report(reader.repo_path, writer.repo_path, result)
    sys.exit(0 if result.success else 1)
