"""
Tests for decoding Bitbucket API records and rendering GitHub import payloads.
"""

from __future__ import annotations

import pytest

from bitbucket_to_github_migrator.exceptions import SchemaError
from bitbucket_to_github_migrator.models import (
    MigratedComment,
    MigratedIssue,
    SourceChange,
    SourceComment,
    SourceIssue,
    SourceMilestone,
    placeholder_issue,
)


def _issue_json(**overrides: object) -> dict[str, object]:
    data: dict[str, object] = {
        "id": 42,
        "title": "Crash on start",
        "content": {"raw": "It crashes.", "markup": "markdown"},
        "state": "new",
        "priority": "major",
        "kind": "bug",
        "component": {"name": "Core"},
        "version": None,
        "milestone": {"name": "1.0"},
        "created_on": "2019-05-01T10:15:00.000000+00:00",
        "updated_on": "2019-05-02T10:15:00.000000+00:00",
    }
    data.update(overrides)
    return data


@pytest.mark.unit
class TestSourceIssue:
    def test_from_api(self) -> None:
        issue = SourceIssue.from_api(_issue_json())
        assert issue.id == 42
        assert issue.title == "Crash on start"
        assert issue.content == "It crashes."
        assert issue.component == "Core"
        assert issue.version is None
        assert issue.milestone == "1.0"

    def test_null_content_becomes_empty_string(self) -> None:
        issue = SourceIssue.from_api(_issue_json(content={"raw": None}))
        assert issue.content == ""

    @pytest.mark.parametrize("field", ["id", "title", "state", "created_on", "updated_on"])
    def test_missing_required_field(self, field: str) -> None:
        data = _issue_json()
        del data[field]
        with pytest.raises(SchemaError, match=field):
            SourceIssue.from_api(data)

    def test_numeric_string_id(self) -> None:
        assert SourceIssue.from_api(_issue_json(id="42")).id == 42

    @pytest.mark.parametrize("value", ["abc", "4.2", [42]])
    def test_non_numeric_id(self, value: object) -> None:
        with pytest.raises(SchemaError, match="non-numeric 'id'"):
            SourceIssue.from_api(_issue_json(id=value))

    def test_empty_component_name_ignored(self) -> None:
        issue = SourceIssue.from_api(_issue_json(component={"name": ""}))
        assert issue.component is None


@pytest.mark.unit
class TestSourceComment:
    def test_username_preferred(self) -> None:
        comment = SourceComment.from_api(
            {
                "id": 1,
                "content": {"raw": "Hi"},
                "user": {"username": "alice", "display_name": "Alice A."},
                "created_on": "2019-05-01T10:15:00+00:00",
            }
        )
        assert comment.author == "alice"
        assert comment.content == "Hi"

    def test_display_name_fallback(self) -> None:
        comment = SourceComment.from_api(
            {"id": 1, "content": {"raw": "Hi"}, "user": {"display_name": "Alice A."}, "created_on": "2019-05-01"}
        )
        assert comment.author == "Alice A."

    def test_deleted_user(self) -> None:
        comment = SourceComment.from_api(
            {"id": 1, "content": {"raw": "Hi"}, "user": None, "created_on": "2019-05-01"}
        )
        assert comment.author == "Anonymous"

    def test_null_content(self) -> None:
        comment = SourceComment.from_api({"id": 1, "content": {"raw": None}, "created_on": "2019-05-01"})
        assert comment.content is None

    def test_non_numeric_id(self) -> None:
        with pytest.raises(SchemaError, match="Comment record"):
            SourceComment.from_api({"id": "x1", "content": {"raw": "Hi"}, "created_on": "2019-05-01"})

    def test_missing_created_on(self) -> None:
        with pytest.raises(SchemaError, match="created_on"):
            SourceComment.from_api({"id": 1, "content": {"raw": "Hi"}})


@pytest.mark.unit
class TestSourceChange:
    def test_state_change(self) -> None:
        change = SourceChange.from_api(
            {"created_on": "2019-05-01", "changes": {"state": {"old": "new", "new": "resolved"}}}
        )
        assert change.state_change == ("new", "resolved")

    def test_other_change(self) -> None:
        change = SourceChange.from_api({"created_on": "2019-05-01", "changes": {"assignee": {"old": "", "new": "x"}}})
        assert change.state_change is None


@pytest.mark.unit
class TestSourceMilestone:
    def test_missing_name(self) -> None:
        with pytest.raises(SchemaError):
            SourceMilestone.from_api({"links": {}})


@pytest.mark.unit
class TestMigratedIssuePayload:
    def test_full_payload(self) -> None:
        issue = MigratedIssue(
            title="Crash",
            body="It crashes.",
            created_at="2019-05-01T10:15:00Z",
            updated_at="2019-05-02T10:15:00Z",
            closed=True,
            closed_at="2019-05-02T10:15:00Z",
            labels=["bug"],
            milestone=2,
        )
        payload = issue.to_payload([MigratedComment(body="Hi", created_at="2019-05-01T11:00:00Z")])

        assert payload == {
            "issue": {
                "title": "Crash",
                "body": "It crashes.",
                "closed": True,
                "created_at": "2019-05-01T10:15:00Z",
                "updated_at": "2019-05-02T10:15:00Z",
                "closed_at": "2019-05-02T10:15:00Z",
                "labels": ["bug"],
                "milestone": 2,
            },
            "comments": [{"body": "Hi", "created_at": "2019-05-01T11:00:00Z"}],
        }

    def test_placeholder_payload(self) -> None:
        assert placeholder_issue().to_payload() == {
            "issue": {"title": "Placeholder", "body": "Placeholder to preserve issue numbering", "closed": True},
            "comments": [],
        }

    def test_each_placeholder_is_a_new_instance(self) -> None:
        placeholder = placeholder_issue()
        placeholder.labels.append("migrated")

        assert placeholder_issue() is not placeholder
        assert placeholder_issue().labels == []
