"""Protocols defining the contracts for the source reader and the target writer.

The migration is split into three components:

1. SourceReader: Fetches issues, comments, changes and milestones (Bitbucket)
2. TargetWriter: Checks existence of and creates milestones and issues (GitHub)
3. MigrationSequencer: Drives the flow and keeps issue numbers in step

Both collaborators are bound to a single repository when they are built,
so none of the methods take a repository slug.

This separation allows:
- Testing the sequencer against in-memory fakes
- Keeping HTTP and authentication details out of the numbering logic
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from .models import IssuePage, MigratedComment, MigratedIssue, SourceChange, SourceComment, SourceMilestone


class SourceReader(Protocol):
    """Protocol for reading issue data from the source platform.

    Pagination:
        ``list_issues()`` returns one page at a time, because the sequencer
        processes issues as they arrive. Comments, changes and milestones
        are returned fully assembled: the implementation follows every
        ``next`` pointer before returning.
    """

    def check_accessible(self) -> bool:
        """Return True if the repository can be read with the current credentials."""
        ...

    def configure_auth(self, user: str, secret: str) -> None:
        """Use the given credentials for all further requests."""
        ...

    def total_issue_count(self) -> int:
        """Return the number of issues the source reports."""
        ...

    def list_milestones(self) -> list[SourceMilestone]:
        """Return all milestones of the repository."""
        ...

    def list_issues(self, page: int) -> IssuePage:
        """Return one page of issues in ascending id order.

        Args:
            page: 1-based page number

        Returns:
            The page items plus the number of the next page, if any
        """
        ...

    def list_comments(self, issue_id: int) -> list[SourceComment]:
        """Return all comments of an issue in chronological order."""
        ...

    def list_changes(self, issue_id: int) -> list[SourceChange]:
        """Return all changes of an issue in chronological order."""
        ...


class TargetWriter(Protocol):
    """Protocol for writing issues to the target platform.

    The target assigns issue numbers sequentially on creation, so calls
    to ``create_issue()`` must be made one at a time and in order.
    """

    def check_accessible(self) -> bool:
        """Return True if the repository can be reached with the current credentials."""
        ...

    def configure_auth(self, user: str | None, secret: str) -> None:
        """Use the given credentials for all further requests."""
        ...

    def milestone_exists(self, name: str) -> int | None:
        """Return the target number of the milestone called ``name``, or None."""
        ...

    def create_milestone(self, name: str) -> int:
        """Create a milestone and return its target number."""
        ...

    def issue_exists(self, number: int) -> bool:
        """Return True if an issue (or anything else) already holds ``number``."""
        ...

    def create_issue(self, issue: MigratedIssue, comments: list[MigratedComment]) -> None:
        """Create an issue together with its comments.

        Raises:
            IssueImportError: If the target rejects the issue
        """
        ...
