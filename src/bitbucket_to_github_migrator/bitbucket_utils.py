from __future__ import annotations

import logging
import os
from typing import Final

import requests

# Module-wide logger
logger: logging.Logger = logging.getLogger(__name__)

_USER_ENV_VAR: Final[str] = "BITBUCKET_USERNAME"
_SECRET_ENV_VAR: Final[str] = "BITBUCKET_APP_PASSWORD"  # noqa: S105

API_URL: Final[str] = "https://api.bitbucket.org/2.0"


def get_user() -> str | None:
    """Get the Bitbucket username from env var BITBUCKET_USERNAME."""
    return os.environ.get(_USER_ENV_VAR) or None


def get_secret() -> str | None:
    """Get the Bitbucket app password from env var BITBUCKET_APP_PASSWORD."""
    secret = os.environ.get(_SECRET_ENV_VAR)
    if not secret:
        logger.debug(f"{_SECRET_ENV_VAR} not set")
        return None
    return secret


def get_session(user: str | None = None, secret: str | None = None) -> requests.Session:
    """Get a requests session for the Bitbucket API. Anonymous if no credentials are given."""
    session = requests.Session()
    session.headers["Accept"] = "application/json"
    if user and secret:
        session.auth = (user, secret)
    return session
