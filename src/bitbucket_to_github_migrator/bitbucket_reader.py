"""
Read issues, comments, changes and milestones from the Bitbucket 2.0 REST API.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Final

from . import bitbucket_utils as bbu
from .exceptions import SchemaError
from .models import IssuePage, SourceChange, SourceComment, SourceIssue, SourceMilestone
from .utils import split_repo_path

if TYPE_CHECKING:
    import requests

# Module-wide logger
logger: logging.Logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS: Final[int] = 30

# Bitbucket answers 403 for private repositories and 401/404 for some anonymous requests
_INACCESSIBLE_STATUS_CODES: Final[frozenset[int]] = frozenset({401, 403, 404})


class BitbucketReader:
    """Source reader for one Bitbucket repository."""

    def __init__(self, repo_path: str, *, session: requests.Session | None = None) -> None:
        workspace, name = split_repo_path(repo_path, "Bitbucket")
        self.repo_path: str = f"{workspace}/{name}"
        self.repository_url: str = f"{bbu.API_URL}/repositories/{workspace}/{name}"
        self.session: requests.Session = session or bbu.get_session()

    def _get(self, endpoint: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """GET an endpoint relative to the repository URL, or an absolute ``next`` URL."""
        url = endpoint if endpoint.startswith("https://") else f"{self.repository_url}/{endpoint}"
        response = self.session.get(url, params=params, timeout=REQUEST_TIMEOUT_SECONDS)
        response.raise_for_status()
        return response.json()

    def _get_all(self, endpoint: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """Fetch every page of a listing and return the concatenated values.

        Bitbucket's ``next`` URLs already carry the query string, so params
        are only sent with the first request.
        """
        values: list[dict[str, Any]] = []
        next_url: str | None = endpoint
        page = 1
        while next_url:
            logger.debug(f"Fetching {endpoint} page {page}")
            data = self._get(next_url, params=params if page == 1 else None)
            values.extend(data.get("values", []))
            next_url = data.get("next")
            page += 1
        return values

    def check_accessible(self) -> bool:
        response = self.session.get(self.repository_url, timeout=REQUEST_TIMEOUT_SECONDS)
        if response.status_code in _INACCESSIBLE_STATUS_CODES:
            logger.debug(f"Bitbucket repository {self.repo_path} not accessible: HTTP {response.status_code}")
            return False
        response.raise_for_status()
        return True

    def configure_auth(self, user: str, secret: str) -> None:
        self.session.auth = (user, secret)

    def total_issue_count(self) -> int:
        data = self._get("issues")
        if "size" not in data:
            msg = f"Issues listing of {self.repo_path} has no 'size' field"
            raise SchemaError(msg)
        return int(data["size"])

    def list_milestones(self) -> list[SourceMilestone]:
        return [SourceMilestone.from_api(value) for value in self._get_all("milestones")]

    def list_issues(self, page: int) -> IssuePage:
        data = self._get("issues", params={"page": page, "sort": "id"})
        items = [SourceIssue.from_api(value) for value in data.get("values", [])]
        return IssuePage(items=items, next_page=page + 1 if data.get("next") else None)

    def list_comments(self, issue_id: int) -> list[SourceComment]:
        values = self._get_all(f"issues/{issue_id}/comments", params={"sort": "id"})
        return [SourceComment.from_api(value) for value in values]

    def list_changes(self, issue_id: int) -> list[SourceChange]:
        values = self._get_all(f"issues/{issue_id}/changes", params={"sort": "id"})
        return [SourceChange.from_api(value) for value in values]
