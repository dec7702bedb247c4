"""
Pytest configuration and fixtures.

The sequencer is exercised against in-memory implementations of the
SourceReader and TargetWriter protocols. FakeWriter hands out issue
numbers sequentially like GitHub does, so numbering bugs show up as
wrong keys in ``FakeWriter.issues``.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from bitbucket_to_github_migrator.exceptions import ImportTimeoutError, IssueImportError
from bitbucket_to_github_migrator.models import (
    IssuePage,
    MigratedComment,
    MigratedIssue,
    SourceChange,
    SourceComment,
    SourceIssue,
    SourceMilestone,
)


def make_source_issue(issue_id: int, **overrides: Any) -> SourceIssue:  # noqa: ANN401
    """Build a SourceIssue with sensible defaults."""
    values: dict[str, Any] = {
        "id": issue_id,
        "title": f"Issue {issue_id}",
        "content": f"Body of issue {issue_id}",
        "state": "new",
        "created_on": "2019-05-01T10:15:00+00:00",
        "updated_on": "2019-05-02T11:00:00+00:00",
        "priority": "major",
        "kind": "bug",
    }
    values.update(overrides)
    return SourceIssue(**values)


class FakeReader:
    """In-memory SourceReader serving issues in pages of ``page_size``."""

    def __init__(
        self,
        issues: list[SourceIssue],
        *,
        page_size: int = 2,
        milestones: list[str] | None = None,
        comments: dict[int, list[SourceComment]] | None = None,
        changes: dict[int, list[SourceChange]] | None = None,
    ) -> None:
        self.issues = issues
        self.page_size = page_size
        self.milestones = [SourceMilestone(name) for name in milestones or []]
        self.comments = comments or {}
        self.changes = changes or {}
        self.requested_pages: list[int] = []

    def check_accessible(self) -> bool:
        return True

    def configure_auth(self, user: str, secret: str) -> None:
        pass

    def total_issue_count(self) -> int:
        return len(self.issues)

    def list_milestones(self) -> list[SourceMilestone]:
        return list(self.milestones)

    def list_issues(self, page: int) -> IssuePage:
        self.requested_pages.append(page)
        start = (page - 1) * self.page_size
        items = self.issues[start : start + self.page_size]
        has_next = start + self.page_size < len(self.issues)
        return IssuePage(items=items, next_page=page + 1 if has_next else None)

    def list_comments(self, issue_id: int) -> list[SourceComment]:
        return list(self.comments.get(issue_id, []))

    def list_changes(self, issue_id: int) -> list[SourceChange]:
        return list(self.changes.get(issue_id, []))


class FakeWriter:
    """In-memory TargetWriter numbering created issues sequentially.

    Titles in ``slow_titles`` behave like an import that is still pending
    after the last status check: ImportTimeoutError is raised, and the issue
    is committed right before the next create, as GitHub would do once the
    queued import finishes.
    """

    def __init__(self, *, reject_titles: set[str] | None = None, slow_titles: set[str] | None = None) -> None:
        self.issues: dict[int, tuple[MigratedIssue, list[MigratedComment]]] = {}
        self.milestones: dict[str, int] = {}
        self.reject_titles = reject_titles or set()
        self.slow_titles = slow_titles or set()
        self.pending: list[tuple[MigratedIssue, list[MigratedComment]]] = []
        self.create_calls = 0

    def check_accessible(self) -> bool:
        return True

    def configure_auth(self, user: str | None, secret: str) -> None:
        pass

    def milestone_exists(self, name: str) -> int | None:
        return self.milestones.get(name)

    def create_milestone(self, name: str) -> int:
        number = len(self.milestones) + 1
        self.milestones[name] = number
        return number

    def issue_exists(self, number: int) -> bool:
        return number in self.issues

    def create_issue(self, issue: MigratedIssue, comments: list[MigratedComment]) -> None:
        self.create_calls += 1
        for queued in self.pending:
            self.issues[len(self.issues) + 1] = queued
        self.pending.clear()

        if issue.title in self.reject_titles:
            msg = f"Validation failed for '{issue.title}'"
            raise IssueImportError(msg, issue.to_payload(comments))
        if issue.title in self.slow_titles:
            self.pending.append((issue, comments))
            msg = f"Import of issue '{issue.title}' still 'pending' after 3 status checks"
            raise ImportTimeoutError(msg, issue.to_payload(comments))
        self.issues[len(self.issues) + 1] = (issue, comments)


@pytest.fixture
def source_issue() -> Callable[..., SourceIssue]:
    return make_source_issue


@pytest.fixture
def fake_writer() -> FakeWriter:
    return FakeWriter()


@pytest.fixture
def fake_reader_factory() -> Callable[..., FakeReader]:
    def _factory(issue_ids: list[int], **kwargs: Any) -> FakeReader:  # noqa: ANN401
        return FakeReader([make_source_issue(issue_id) for issue_id in issue_ids], **kwargs)

    return _factory
