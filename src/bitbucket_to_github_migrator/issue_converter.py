"""Convert Bitbucket issues and comments into GitHub issue import format."""

from __future__ import annotations

import datetime as dt
import re
from typing import TYPE_CHECKING, Final

from .exceptions import DateFormatError
from .models import MigratedComment, MigratedIssue

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from .models import SourceChange, SourceComment, SourceIssue

BITBUCKET_WEB_URL: Final[str] = "https://bitbucket.org"

# Every other state (resolved, duplicate, wontfix, invalid, closed, ...) counts as closed
OPEN_STATES: Final[frozenset[str]] = frozenset({"open", "new", "on hold"})

# GitHub rejects labels longer than this
MAX_LABEL_LENGTH: Final[int] = 50

CANONICAL_DATE_FORMAT: Final[str] = "%Y-%m-%dT%H:%M:%SZ"


def convert_date(timestamp: str) -> str:
    """Convert an ISO 8601 timestamp to canonical UTC form.

    Args:
        timestamp: ISO 8601 timestamp as returned by Bitbucket
            (e.g., "2019-05-01T10:15:00.123456+00:00")

    Returns:
        Timestamp as "YYYY-MM-DDTHH:MM:SSZ". Naive timestamps are taken as UTC.

    Raises:
        DateFormatError: If the timestamp cannot be parsed
    """
    try:
        parsed = dt.datetime.fromisoformat(timestamp)
    except (ValueError, TypeError) as e:
        msg = f"Invalid timestamp: {timestamp!r}"
        raise DateFormatError(msg) from e

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.UTC)
    return parsed.astimezone(dt.UTC).strftime(CANONICAL_DATE_FORMAT)


def is_closed(state: str) -> bool:
    """Return True if a Bitbucket issue state maps to a closed GitHub issue."""
    return state not in OPEN_STATES


def sanitize_label(name: str) -> str:
    """Strip commas (not allowed in GitHub labels) and truncate to MAX_LABEL_LENGTH."""
    return name.replace(",", "")[:MAX_LABEL_LENGTH]


def build_labels(issue: SourceIssue) -> list[str]:
    """Collect labels from priority, kind, component and version, in that order."""
    labels: list[str] = []
    if issue.priority:
        labels.append(issue.priority)
    if issue.kind:
        labels.append(issue.kind)
    if issue.component:
        labels.append(sanitize_label(issue.component))
    if issue.version:
        labels.append(sanitize_label(issue.version))
    return labels


def convert_links(content: str, repo: str) -> str:
    """Rewrite absolute links to issues of ``repo`` into short "#<id>" references.

    Args:
        content: Markdown content
        repo: Bitbucket repository slug (workspace/repository)

    Returns:
        Content with every matching issue URL replaced
    """
    pattern = re.compile(rf"{re.escape(BITBUCKET_WEB_URL)}/{re.escape(repo)}/issues/(\d+)/[^\s)]+", re.IGNORECASE)
    replacements = {match.group(0): f"#{match.group(1)}" for match in pattern.finditer(content)}

    # Longest first, so a URL that prefixes another one cannot clobber it
    for url in sorted(replacements, key=len, reverse=True):
        content = content.replace(url, replacements[url])
    return content


def find_closed_date(changes: Iterable[SourceChange]) -> str | None:
    """Return the timestamp of the first open -> closed transition, if any."""
    for change in changes:
        if change.state_change is None:
            continue
        old, new = change.state_change
        if not is_closed(old) and is_closed(new):
            return convert_date(change.created_on)
    return None


def build_issue_body(issue: SourceIssue, repo: str) -> str:
    """Build the GitHub issue body with a citation of the original report."""
    body = convert_links(issue.content, repo)
    body += "\n\n---\n\n"
    body += f"**[Original report]({BITBUCKET_WEB_URL}/{repo}/issues/{issue.id})**"
    return body


def build_comment_body(comment: SourceComment, repo: str) -> str:
    """Build the GitHub comment body with author attribution."""
    body = f"**Original comment by {comment.author}.**\n\n"
    body += convert_links(comment.content or "", repo)
    return body


class IssueConverter:
    """Converts one Bitbucket issue at a time, with its comments and changes.

    Holds no state besides the repository slug used for links and the
    milestone mapping (milestone name -> GitHub milestone number).
    """

    def __init__(self, repo: str, milestone_mapping: Mapping[str, int] | None = None) -> None:
        self.repo: str = repo
        self.milestone_mapping: Mapping[str, int] = milestone_mapping if milestone_mapping is not None else {}

    def convert_issue(
        self,
        issue: SourceIssue,
        comments: Iterable[SourceComment],
        changes: Iterable[SourceChange],
    ) -> tuple[MigratedIssue, list[MigratedComment]]:
        """Convert an issue and its comments.

        Raises:
            DateFormatError: If any timestamp of the issue or its comments is malformed
        """
        updated_at = convert_date(issue.updated_on)
        closed = is_closed(issue.state)

        migrated = MigratedIssue(
            title=issue.title,
            body=build_issue_body(issue, self.repo),
            created_at=convert_date(issue.created_on),
            updated_at=updated_at,
            closed=closed,
            labels=build_labels(issue),
        )

        if issue.milestone:
            # Unknown names are dropped: milestones are synced before issues
            migrated.milestone = self.milestone_mapping.get(issue.milestone)

        if closed:
            migrated.closed_at = find_closed_date(changes) or updated_at

        return migrated, self.convert_comments(comments)

    def convert_comments(self, comments: Iterable[SourceComment]) -> list[MigratedComment]:
        """Convert comments, silently dropping those without content."""
        return [
            MigratedComment(body=build_comment_body(comment, self.repo), created_at=convert_date(comment.created_on))
            for comment in comments
            if comment.content is not None
        ]
