"""Data models exchanged between the Bitbucket reader, the converter and the GitHub writer.

Source records are decoded from Bitbucket 2.0 API JSON with ``from_api()``.
Required fields are checked explicitly: a missing one raises SchemaError
instead of turning into a silent ``None`` further down the pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .exceptions import SchemaError

ANONYMOUS_AUTHOR = "Anonymous"


def _require(data: dict[str, Any], key: str, record: str) -> Any:  # noqa: ANN401 - raw JSON value
    """Return ``data[key]`` or raise SchemaError when it is missing or null."""
    value = data.get(key)
    if value is None:
        msg = f"{record} record is missing required field '{key}': {data!r}"
        raise SchemaError(msg)
    return value


def _require_id(data: dict[str, Any], record: str) -> int:
    value = _require(data, "id", record)
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        msg = f"{record} record has a non-numeric 'id': {value!r}"
        raise SchemaError(msg) from e


def _nested_name(data: dict[str, Any], key: str) -> str | None:
    """Flatten Bitbucket's ``{"component": {"name": ...}}`` style references."""
    nested = data.get(key)
    if not isinstance(nested, dict):
        return None
    return nested.get("name") or None


def _raw_content(data: dict[str, Any]) -> str | None:
    content = data.get("content")
    if not isinstance(content, dict):
        return None
    return content.get("raw")


@dataclass(frozen=True)
class SourceIssue:
    """An issue as returned by the Bitbucket issues listing."""

    id: int
    title: str
    content: str
    state: str
    created_on: str
    updated_on: str
    priority: str | None = None
    kind: str | None = None
    component: str | None = None
    version: str | None = None
    milestone: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> SourceIssue:
        return cls(
            id=_require_id(data, "Issue"),
            title=_require(data, "title", "Issue"),
            content=_raw_content(data) or "",
            state=_require(data, "state", "Issue"),
            created_on=_require(data, "created_on", "Issue"),
            updated_on=_require(data, "updated_on", "Issue"),
            priority=data.get("priority") or None,
            kind=data.get("kind") or None,
            component=_nested_name(data, "component"),
            version=_nested_name(data, "version"),
            milestone=_nested_name(data, "milestone"),
        )


@dataclass(frozen=True)
class SourceComment:
    """A comment on a Bitbucket issue.

    ``content`` is None for comments Bitbucket returns without a body
    (e.g. pure attachment or state-change comments); those are dropped
    during conversion.
    """

    id: int
    content: str | None
    author: str
    created_on: str

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> SourceComment:
        user = data.get("user") or {}
        # Bitbucket stopped returning usernames for most accounts, fall back to the public names
        author = user.get("username") or user.get("nickname") or user.get("display_name") or ANONYMOUS_AUTHOR
        return cls(
            id=_require_id(data, "Comment"),
            content=_raw_content(data),
            author=author,
            created_on=_require(data, "created_on", "Comment"),
        )


@dataclass(frozen=True)
class SourceChange:
    """A historical change record of a Bitbucket issue."""

    created_on: str
    state_change: tuple[str, str] | None = None  # (old, new)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> SourceChange:
        state_change: tuple[str, str] | None = None
        state = (data.get("changes") or {}).get("state")
        if isinstance(state, dict) and state.get("old") is not None and state.get("new") is not None:
            state_change = (state["old"], state["new"])
        return cls(created_on=_require(data, "created_on", "Change"), state_change=state_change)


@dataclass(frozen=True)
class SourceMilestone:
    """A Bitbucket milestone. Milestones are mirrored by name only."""

    name: str

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> SourceMilestone:
        return cls(name=_require(data, "name", "Milestone"))


@dataclass(frozen=True)
class IssuePage:
    """One page of the Bitbucket issues listing."""

    items: list[SourceIssue]
    next_page: int | None = None


@dataclass
class MigratedComment:
    """A comment in GitHub issue import format."""

    body: str
    created_at: str

    def to_payload(self) -> dict[str, Any]:
        return {"body": self.body, "created_at": self.created_at}


@dataclass
class MigratedIssue:
    """An issue in GitHub issue import format.

    Timestamps are canonical ``YYYY-MM-DDTHH:MM:SSZ`` strings.
    """

    title: str
    body: str
    created_at: str | None = None
    updated_at: str | None = None
    closed: bool = False
    closed_at: str | None = None
    labels: list[str] = field(default_factory=list)
    milestone: int | None = None

    def to_payload(self, comments: list[MigratedComment] | None = None) -> dict[str, Any]:
        """Render the request body for ``POST /repos/{owner}/{repo}/import/issues``."""
        issue: dict[str, Any] = {"title": self.title, "body": self.body, "closed": self.closed}
        if self.created_at:
            issue["created_at"] = self.created_at
        if self.updated_at:
            issue["updated_at"] = self.updated_at
        if self.closed_at:
            issue["closed_at"] = self.closed_at
        if self.labels:
            issue["labels"] = list(self.labels)
        if self.milestone is not None:
            issue["milestone"] = self.milestone
        return {"issue": issue, "comments": [comment.to_payload() for comment in comments or []]}


PLACEHOLDER_TITLE = "Placeholder"
PLACEHOLDER_BODY = "Placeholder to preserve issue numbering"


def placeholder_issue() -> MigratedIssue:
    """Return a new closed dummy issue that only consumes a number on the target."""
    return MigratedIssue(title=PLACEHOLDER_TITLE, body=PLACEHOLDER_BODY, closed=True)
