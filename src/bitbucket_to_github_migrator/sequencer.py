"""Migration sequencer that keeps GitHub issue numbers in step with Bitbucket ids.

GitHub assigns issue numbers sequentially on creation, while Bitbucket ids
may have gaps (deleted issues). The sequencer walks the source issues in
ascending id order and tracks the number GitHub will hand out next in
``expected_issue_id``.

Migration Flow
--------------
Phase 1: Milestones
    - Fetch all milestones from the source
    - Create the ones the target lacks (matched by name)
    - Build the name -> target number mapping used by the converter

Phase 2: Issues
    For each page of source issues, for each issue (ascending id):
        a. While the issue id is ahead of expected_issue_id, fill the gap
           with a closed placeholder issue
        b. Skip the issue if the target already holds its number
        c. Otherwise fetch comments and changes, convert, import
        d. Advance expected_issue_id

    Invariant: after N number slots (real or placeholder) were consumed,
    expected_issue_id == N + 1.

Resuming
--------
Every create is preceded by an existence check on the target, so a run
that was interrupted can simply be started again. Slots that are already
taken are counted without creating anything.

Error Handling
--------------
- Transport errors (requests, PyGithub) are wrapped in MigrationError and
  halt the run
- Conversion errors (DateFormatError, SchemaError) halt the run
- IssueImportError halts the run after logging the payload, unless
  skip_failed_imports is set: then a placeholder takes the slot instead.
  An import still pending after the last status check always halts the run
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import requests
from github import GithubException

from .exceptions import ImportTimeoutError, IssueImportError, MigrationError, SequenceError
from .issue_converter import IssueConverter
from .models import placeholder_issue

if TYPE_CHECKING:
    from .models import MigratedComment, MigratedIssue, SourceIssue
    from .protocols import SourceReader, TargetWriter

logger = logging.getLogger(__name__)


@dataclass
class MigrationStats:
    """Statistics collected during migration."""

    milestones_created: int = 0
    issues_created: int = 0
    issues_skipped: int = 0
    placeholders_created: int = 0
    comments_created: int = 0
    imports_failed: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass
class MigrationResult:
    """Result of a migration run."""

    success: bool
    stats: MigrationStats
    expected_issue_id: int
    total_issues: int
    milestone_map: dict[str, int]  # milestone name -> target milestone number


class MigrationSequencer:
    """Migrates all issues of a source repository to a target repository.

    Usage:
        reader = BitbucketReader("acme/widget")
        writer = GitHubWriter("acme/widget")
        result = MigrationSequencer(reader, writer, "acme/widget").migrate()
    """

    def __init__(
        self,
        reader: SourceReader,
        writer: TargetWriter,
        source_repo: str,
        *,
        skip_failed_imports: bool = False,
    ) -> None:
        """Initialize the sequencer.

        Args:
            reader: Source reader bound to the source repository
            writer: Target writer bound to the target repository
            source_repo: Source repository slug, used for links in migrated content
            skip_failed_imports: Replace rejected issues by placeholders instead of halting
        """
        self._reader: SourceReader = reader
        self._writer: TargetWriter = writer
        self.skip_failed_imports: bool = skip_failed_imports

        self.expected_issue_id: int = 1
        # Grows by one per gap, since placeholders take numbers the source count does not include
        self.total_issues: int = 0
        self.stats: MigrationStats = MigrationStats()

        self.milestone_map: dict[str, int] = {}
        self.converter: IssueConverter = IssueConverter(source_repo, self.milestone_map)

    def migrate(self) -> MigrationResult:
        """Execute the full migration.

        Raises:
            MigrationError: If a critical error occurs that prevents continuation
        """
        try:
            logger.info("Starting Bitbucket to GitHub issue migration")
            self.total_issues = self._reader.total_issue_count()
            logger.info(f"Source repository contains {self.total_issues} issues")

            self.sync_milestones()
            self.sync_issues()

        except (requests.RequestException, GithubException) as e:
            logger.exception("Migration failed")
            msg = f"Migration failed: {e}"
            raise MigrationError(msg) from e

        logger.info(
            f"Migration finished: {self.stats.issues_created} issues created, "
            f"{self.stats.issues_skipped} already present, {self.stats.placeholders_created} placeholders"
        )
        return MigrationResult(
            success=not self.stats.errors,
            stats=self.stats,
            expected_issue_id=self.expected_issue_id,
            total_issues=self.total_issues,
            milestone_map=dict(self.milestone_map),
        )

    def sync_milestones(self) -> dict[str, int]:
        """Mirror source milestones to the target by name and return the name -> number mapping."""
        milestones = self._reader.list_milestones()
        logger.info(f"Synching {len(milestones)} milestones")

        for milestone in milestones:
            number = self._writer.milestone_exists(milestone.name)
            if number is None:
                number = self._writer.create_milestone(milestone.name)
                self.stats.milestones_created += 1
                logger.info(f"Created milestone '{milestone.name}' (#{number})")
            else:
                logger.debug(f"Milestone '{milestone.name}' already exists (#{number})")
            self.milestone_map[milestone.name] = number

        return self.milestone_map

    def sync_issues(self) -> None:
        """Process every page of source issues, filling gaps as they appear."""
        page: int | None = 1
        while page is not None:
            logger.debug(f"Retrieving issues page {page}")
            issue_page = self._reader.list_issues(page)

            for issue in issue_page.items:
                if issue.id < self.expected_issue_id:
                    msg = (
                        f"Source issue #{issue.id} arrived after #{self.expected_issue_id - 1}: "
                        "issues must be listed in ascending id order"
                    )
                    raise SequenceError(msg)

                while issue.id != self.expected_issue_id:
                    self.fill_gap()

                self.sync_issue(issue)

            page = issue_page.next_page

    def fill_gap(self) -> None:
        """Consume the slot at expected_issue_id with a placeholder."""
        number = self.expected_issue_id
        self.total_issues += 1
        progress = f"Issue [{number}/{self.total_issues}] Placeholder"

        if self._writer.issue_exists(number):
            logger.info(f"{progress}: gap already filled")
        else:
            self._create_issue(progress, placeholder_issue(), [])
            self.stats.placeholders_created += 1
            logger.info(f"{progress}: gap filled")

        self.expected_issue_id += 1

    def sync_issue(self, issue: SourceIssue) -> None:
        """Migrate one source issue into the slot at expected_issue_id."""
        progress = f"Issue [{issue.id}/{self.total_issues}] {issue.title}"

        if self._writer.issue_exists(issue.id):
            self.stats.issues_skipped += 1
            logger.info(f"{progress}: already exists")
            self.expected_issue_id += 1
            return

        logger.debug(f"{progress}: retrieving comments and changes")
        comments = self._reader.list_comments(issue.id)
        changes = self._reader.list_changes(issue.id)

        migrated_issue, migrated_comments = self.converter.convert_issue(issue, comments, changes)

        try:
            self._create_issue(progress, migrated_issue, migrated_comments)
        except ImportTimeoutError:
            # A pending import may still take this number
            raise
        except IssueImportError as e:
            if not self.skip_failed_imports:
                raise
            self._replace_failed_import(issue, e)
        else:
            self.stats.issues_created += 1
            self.stats.comments_created += len(migrated_comments)
            logger.info(f"{progress}: synched")

        self.expected_issue_id += 1

    def _create_issue(self, progress: str, issue: MigratedIssue, comments: list[MigratedComment]) -> None:
        """Create an issue on the target, logging the offending payload if the import fails."""
        try:
            self._writer.create_issue(issue, comments)
        except IssueImportError as e:
            logger.error(f"{progress}: import failed: {e}\nPayload:\n{json.dumps(e.payload, indent=2)}")  # noqa: TRY400
            raise

    def _replace_failed_import(self, issue: SourceIssue, error: IssueImportError) -> None:
        """Record a rejected issue and keep its slot with a placeholder."""
        self.stats.imports_failed += 1
        self.stats.errors.append(f"Issue #{issue.id} ({issue.title}): {error}")

        if self._writer.issue_exists(issue.id):
            logger.warning(f"Issue #{issue.id} holds a number despite the failed import, no placeholder needed")
            return

        self._create_issue(f"Issue [{issue.id}/{self.total_issues}] Placeholder", placeholder_issue(), [])
        self.stats.placeholders_created += 1
        logger.warning(f"Issue #{issue.id} replaced by a placeholder after failed import")
