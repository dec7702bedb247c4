"""
Write milestones and issues to GitHub.

Issues are created through GitHub's issue import API, which accepts an
issue together with its comments and original timestamps in one request.
PyGithub does not wrap this API, so the requester is used for raw calls
while benefiting from PyGithub's authentication and rate limiting.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any, Final

from github import GithubException, UnknownObjectException

from . import github_utils as ghu
from .exceptions import ImportTimeoutError, IssueImportError
from .utils import split_repo_path

if TYPE_CHECKING:
    from github import Github
    from github.Repository import Repository

    from .models import MigratedComment, MigratedIssue

# Module-wide logger
logger: logging.Logger = logging.getLogger(__name__)

IMPORT_MEDIA_TYPE: Final[str] = "application/vnd.github.golden-comet-preview+json"

_INACCESSIBLE_STATUS_CODES: Final[frozenset[int]] = frozenset({401, 403, 404})


class GitHubWriter:
    """Target writer for one GitHub repository."""

    def __init__(
        self,
        repo_path: str,
        *,
        client: Github | None = None,
        poll_interval: float = 1.0,
        max_polls: int = 60,
    ) -> None:
        owner, name = split_repo_path(repo_path, "GitHub")
        self.repo_path: str = f"{owner}/{name}"
        self.client: Github = client or ghu.get_client()
        self.poll_interval: float = poll_interval
        self.max_polls: int = max_polls

        self._repo: Repository | None = None
        # Milestone title -> number, loaded once and extended by create_milestone()
        self._milestones: dict[str, int] | None = None

    @property
    def repo(self) -> Repository:
        if self._repo is None:
            self._repo = self.client.get_repo(self.repo_path)
        return self._repo

    @property
    def milestones(self) -> dict[str, int]:
        if self._milestones is None:
            self._milestones = {m.title: m.number for m in self.repo.get_milestones(state="all")}
            logger.debug(f"Loaded {len(self._milestones)} existing milestones from {self.repo_path}")
        return self._milestones

    def check_accessible(self) -> bool:
        try:
            self._repo = self.client.get_repo(self.repo_path)
        except GithubException as e:
            if e.status in _INACCESSIBLE_STATUS_CODES:
                logger.debug(f"GitHub repository {self.repo_path} not accessible: HTTP {e.status}")
                return False
            raise
        return True

    def configure_auth(self, user: str | None, secret: str) -> None:
        self.client = ghu.get_client(user, secret)
        self._repo = None
        self._milestones = None

    def milestone_exists(self, name: str) -> int | None:
        return self.milestones.get(name)

    def create_milestone(self, name: str) -> int:
        milestone = self.repo.create_milestone(title=name)
        self.milestones[name] = milestone.number
        logger.debug(f"Created milestone #{milestone.number}: {name}")
        return milestone.number

    def issue_exists(self, number: int) -> bool:
        try:
            self.repo.get_issue(number)
        except UnknownObjectException:
            return False
        except GithubException as e:
            if e.status == 410:  # noqa: PLR2004 - deleted issues still hold their number
                return True
            raise
        return True

    def create_issue(self, issue: MigratedIssue, comments: list[MigratedComment]) -> None:
        """Import an issue with its comments and wait until GitHub has processed it.

        Raises:
            IssueImportError: If GitHub rejects the payload or the import fails
            ImportTimeoutError: If the import is still pending after max_polls status checks
        """
        payload = issue.to_payload(comments)
        endpoint = f"/repos/{self.repo_path}/import/issues"

        try:
            _, data = self.client.requester.requestJsonAndCheck(
                "POST", endpoint, input=payload, headers={"Accept": IMPORT_MEDIA_TYPE}
            )
        except GithubException as e:
            msg = f"GitHub rejected import of issue '{issue.title}': {e.status} - {e.data}"
            raise IssueImportError(msg, payload) from e

        self._wait_for_import(data, payload)

    def _wait_for_import(self, data: dict[str, Any], payload: dict[str, Any]) -> None:
        """Poll the import status until it leaves 'pending'.

        Imports are processed asynchronously. The next issue must not be
        submitted before this one holds its number.
        """
        title = payload["issue"]["title"]
        status_url: str | None = data.get("url")
        polls = 0

        while True:
            status = data.get("status")
            if status == "imported":
                logger.debug(f"Imported issue '{title}': {data.get('issue_url')}")
                return
            if status == "failed":
                msg = f"GitHub failed to import issue '{title}': {data.get('errors')}"
                raise IssueImportError(msg, payload)
            if status_url is None:
                logger.warning(f"Import of issue '{title}' returned no status URL, not waiting for it")
                return
            if polls >= self.max_polls:
                msg = f"Import of issue '{title}' still '{status}' after {polls} status checks"
                raise ImportTimeoutError(msg, payload)

            time.sleep(self.poll_interval)
            _, data = self.client.requester.requestJsonAndCheck(
                "GET", status_url, headers={"Accept": IMPORT_MEDIA_TYPE}
            )
            polls += 1
