"""Base classes for remote hosts.

Defines the contract the watcher relies on: a remote knows which branch it
watches, remembers the last commit it saw, and can refresh it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class RepoCoordinates:
    """Where to look: repository owner, repository name and branch."""
    owner: str
    repo: str
    branch: str

    def __str__(self) -> str:
        return f"{self.owner}/{self.repo}/{self.branch}"


@dataclass(frozen=True)
class CommitInfo:
    """Tip commit as reported by the remote. Only ``sha`` identifies it."""
    sha: str
    message: str = ""
    url: str = ""

    @property
    def headline(self) -> str:
        return self.message.splitlines()[0] if self.message else ""


class Remote(ABC):
    """Abstract base class for remote hosts.

    The remote owns the observed state: ``last_commit`` starts as None and
    is only ever replaced by :meth:`refresh`, never cleared.
    """

    def __init__(self, coords: RepoCoordinates):
        self.coords = coords
        self._last_commit: Optional[str] = None

    @property
    def last_commit(self) -> Optional[str]:
        return self._last_commit

    @abstractmethod
    def tip_of(self, coords: RepoCoordinates) -> CommitInfo:
        """Fetch the newest commit of ``coords.branch``."""

    def refresh(self) -> Optional[str]:
        """Fetch the current tip and record it.

        Returns:
            The previously recorded SHA (None on the first refresh).
        """
        commit = self.tip_of(self.coords)
        previous, self._last_commit = self._last_commit, commit.sha
        return previous

    def close(self) -> None:
        """Release network resources. Default: nothing to release."""
