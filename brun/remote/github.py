"""GitHub remote.

Asks the REST API for the newest commit of a branch, one request per
refresh, over a single ``requests.Session`` so the connection is reused
between polls.

API docs: https://docs.github.com/en/rest/commits/commits#list-commits
"""

import logging
from typing import Optional

import requests

from brun.errors import APIError, EmptyHistory, InternalError
from brun.remote import register_remote
from brun.remote.base import CommitInfo, Remote, RepoCoordinates
from brun.run_log import TRACE

logger = logging.getLogger(__name__)

API_BASE = "https://api.github.com"
API_VERSION = "2022-11-28"
# GitHub rejects requests without a User-Agent.
USER_AGENT = "curl/7.68.0"
DEFAULT_TIMEOUT = 30.0


def _error_detail(resp: requests.Response) -> str:
    """Build an error description from a failed response."""
    detail = f"HTTP {resp.status_code}"
    if resp.reason:
        detail += f" {resp.reason}"
    try:
        message = resp.json().get("message", "")
    except (ValueError, AttributeError):
        message = ""
    if message:
        detail += f": {message}"
    return detail


@register_remote("github")
class GithubRemote(Remote):
    """GitHub REST API remote.

    Authenticates with a bearer token. The token is kept on the session
    headers only and never appears in ``repr()`` or logs.
    """

    def __init__(
        self,
        coords: RepoCoordinates,
        token: str,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
        api_base: str = API_BASE,
    ):
        super().__init__(coords)
        self.timeout = timeout
        self.api_base = api_base.rstrip("/")
        self._session = session or requests.Session()
        self._session.headers.update({
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
            "User-Agent": USER_AGENT,
        })

    def __repr__(self) -> str:
        return f"GithubRemote({self.coords}, last_commit={self.last_commit!r})"

    def commits_url(self, coords: RepoCoordinates) -> str:
        return f"{self.api_base}/repos/{coords.owner}/{coords.repo}/commits"

    def tip_of(self, coords: RepoCoordinates) -> CommitInfo:
        """Fetch the newest commit on ``coords.branch``.

        Raises:
            APIError: Transport failure, HTTP status >= 400 or a non-JSON body.
            EmptyHistory: The branch has no commits.
            InternalError: The JSON does not look like a list of commits.
        """
        url = self.commits_url(coords)
        params = {"sha": coords.branch, "per_page": 1}
        logger.log(TRACE, "request url=%s params=%s", url, params)
        try:
            resp = self._session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise APIError(str(e)) from e

        if resp.status_code >= 400:
            raise APIError(_error_detail(resp), status=resp.status_code)

        try:
            commits = resp.json()
        except ValueError as e:
            raise APIError(f"invalid JSON in response: {e}") from e

        if not isinstance(commits, list):
            raise InternalError(f"expected a list of commits, got {type(commits).__name__}")
        if not commits:
            raise EmptyHistory()

        first = commits[0]
        sha = first.get("sha") if isinstance(first, dict) else None
        if not isinstance(sha, str) or not sha:
            raise InternalError("commit in API response has no sha")

        details = first.get("commit") or {}
        message = details.get("message", "") if isinstance(details, dict) else ""
        commit = CommitInfo(sha=sha, message=message or "", url=first.get("html_url") or "")
        logger.debug("tip of %s is %s %s", coords, commit.sha, commit.headline)
        return commit

    def close(self) -> None:
        self._session.close()
