"""Git remote URL parsing.

Extracts ``(owner, repo)`` from the URL of a git remote, in the two shapes
GitHub hands out:

- scp-like SSH: ``git@github.com:owner/repo.git``
- scheme URLs: ``https://github.com/owner/repo.git``, ``ssh://git@host/owner/repo``

For scheme URLs the last two path components are used, so enterprise hosts
with a path prefix still resolve to the right pair.
"""

import re
from typing import Tuple

from brun.errors import BadRemote

# scheme://[user[:pass]@]host[:port]/path
SCHEME_URL_PATTERN = r'^[a-zA-Z][a-zA-Z0-9+.-]*://[^/]+/(.+)$'
# [user@]host:path  (no scheme, colon before the first slash)
SCP_URL_PATTERN = r'^(?:[^@/:]+@)?[^/:]+:(.+)$'


def _clean_url(url: str) -> str:
    """Strip whitespace and trailing slashes."""
    return url.strip().rstrip("/")


def _strip_git_suffix(repo: str) -> str:
    if repo.endswith(".git"):
        return repo[:-len(".git")]
    return repo


def _split_owner_repo(path: str, url: str) -> Tuple[str, str]:
    """Split ``owner/repo`` style path text, validating both halves."""
    parts = [p for p in path.split("/") if p]
    if len(parts) < 2:
        raise BadRemote(url)
    owner, repo = parts[-2], _strip_git_suffix(parts[-1])
    if not owner or not repo:
        raise BadRemote(url)
    return owner, repo


def parse_remote_url(url: str) -> Tuple[str, str]:
    """Extract owner and repository name from a git remote URL.

    Args:
        url: Remote URL as printed by ``git remote get-url``.

    Returns:
        Tuple of (owner, repo), with any ``.git`` suffix removed.

    Raises:
        BadRemote: If the URL is not in a recognised shape.
    """
    clean_url = _clean_url(url)
    if not clean_url:
        raise BadRemote(url)

    if clean_url.startswith("git@"):
        # Everything after the last ':' is owner/repo
        path = clean_url.rsplit(":", 1)[-1]
        owner, _, repo = path.partition("/")
        repo = _strip_git_suffix(repo)
        if not owner or not repo or "/" in repo:
            raise BadRemote(url)
        return owner, repo

    match = re.match(SCHEME_URL_PATTERN, clean_url)
    if match:
        return _split_owner_repo(match.group(1), url)

    # Scheme URLs with an empty host (file:///path) are local paths
    if "://" in clean_url:
        raise BadRemote(url)

    match = re.match(SCP_URL_PATTERN, clean_url)
    if match:
        return _split_owner_repo(match.group(1), url)

    raise BadRemote(url)
