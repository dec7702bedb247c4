from __future__ import annotations

import logging
import os
from typing import Final

from github import Auth, Github

# Module-wide logger
logger: logging.Logger = logging.getLogger(__name__)

_USER_ENV_VAR: Final[str] = "GITHUB_USERNAME"
_TOKEN_ENV_VAR: Final[str] = "GITHUB_TOKEN"  # noqa: S105


def get_user() -> str | None:
    """Get the GitHub username from env var GITHUB_USERNAME."""
    return os.environ.get(_USER_ENV_VAR) or None


def get_token() -> str | None:
    """Get the GitHub token from env var GITHUB_TOKEN."""
    token = os.environ.get(_TOKEN_ENV_VAR)
    if not token:
        logger.debug(f"{_TOKEN_ENV_VAR} not set")
        return None
    return token


def get_client(user: str | None = None, secret: str | None = None) -> Github:
    """Get a GitHub client.

    With a user, the secret (password or personal access token) is sent with
    basic authentication. Without a user it is used as a token. Without a
    secret the client is anonymous.
    """
    if not secret:
        return Github()
    if user:
        return Github(auth=Auth.Login(user, secret))
    return Github(auth=Auth.Token(secret))
