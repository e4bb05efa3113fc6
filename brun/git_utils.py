"""Shared git command helpers.

Thin wrappers over :func:`brun.cli_exec.run_command` with fixed argument
vectors. The queries (work tree, branch, upstream, dirtiness) are used once
at startup; :func:`pull_ff_only` is the watcher's pull step.

- run_git(): Returns (returncode, stdout, stderr) tuple. Raises only when
  git cannot be started or is killed by a signal.
"""

import logging
from typing import Optional, Tuple

from brun.cli_exec import run_command
from brun.errors import (
    BadRemote,
    CommandSignaled,
    GitSignaled,
    NoHead,
    NoRemoteURL,
    NoUpstream,
    PullFailed,
    Signaled,
)
from brun.remote_url_parser import parse_remote_url

logger = logging.getLogger(__name__)


def run_git(*args: str, cwd: Optional[str] = None) -> Tuple[int, str, str]:
    """Run a git command and return (returncode, stdout, stderr).

    Args:
        *args: Git subcommand and arguments (e.g. "rev-parse", "HEAD").
        cwd: Working directory for the git command.

    Returns:
        (returncode, stdout, stderr) tuple with both streams stripped.

    Raises:
        GitSignaled: If git was terminated by a signal.
        LaunchFailed: If git is not installed or cannot be executed.
    """
    try:
        result = run_command("git", args, cwd=cwd)
    except Signaled as e:
        raise GitSignaled("git " + " ".join(args)) from e
    return result.returncode, result.stdout_text().strip(), result.stderr_text().strip()


def is_work_tree(cwd: Optional[str] = None) -> bool:
    """Check if we are in a git repository work tree (not `.git`)."""
    rc, _, _ = run_git("rev-parse", "--is-inside-work-tree", cwd=cwd)
    return rc == 0


def current_branch(cwd: Optional[str] = None) -> str:
    """Return the abbreviated name of the checked out branch."""
    rc, stdout, stderr = run_git("rev-parse", "--abbrev-ref", "HEAD", cwd=cwd)
    if rc != 0:
        raise NoHead(rc, stderr)
    return stdout


def upstream_name(branch: str, cwd: Optional[str] = None) -> str:
    """Return the upstream of *branch* as ``<remote>/<branch-path>``."""
    rc, stdout, stderr = run_git(
        "rev-parse", "--abbrev-ref", "--symbolic-full-name", f"{branch}@{{upstream}}",
        cwd=cwd,
    )
    if rc != 0:
        raise NoUpstream(rc, stderr)
    return stdout


def upstream_remote(branch: str, upstream: str, cwd: Optional[str] = None) -> str:
    """Resolve the remote that *branch* tracks.

    Asks git for ``branch.<name>.remote`` so upstream branches with
    slashes in their name (``origin/feature/x``) resolve correctly, and only
    falls back to splitting the upstream name when the config is unset.
    """
    rc, stdout, _ = run_git("config", "--get", f"branch.{branch}.remote", cwd=cwd)
    if rc == 0 and stdout:
        return stdout
    remote, sep, _ = upstream.partition("/")
    if not sep or not remote:
        raise BadRemote(upstream)
    return remote


def remote_url(remote: str, cwd: Optional[str] = None) -> str:
    """Return the fetch URL configured for *remote*."""
    rc, stdout, stderr = run_git("remote", "get-url", remote, cwd=cwd)
    if rc != 0:
        raise NoRemoteURL(rc, stderr)
    return stdout


def upstream_info(branch: str, cwd: Optional[str] = None) -> Tuple[str, str]:
    """Get the remote owner and repo name from the upstream of *branch*.

    Returns:
        Tuple of (owner, repo).

    Raises:
        NoUpstream: The branch has no upstream configured.
        NoRemoteURL: The upstream remote has no URL.
        BadRemote: The remote name or URL could not be parsed.
    """
    upstream = upstream_name(branch, cwd=cwd)
    remote = upstream_remote(branch, upstream, cwd=cwd)
    logger.debug("found upstream=%s remote=%s", upstream, remote)
    url = remote_url(remote, cwd=cwd)
    logger.debug("found remote url=%s", url)
    return parse_remote_url(url)


def is_dirty(cwd: Optional[str] = None) -> bool:
    """Check if tracked files have modifications that would block a pull."""
    rc, _, _ = run_git("diff", "--quiet", cwd=cwd)
    return rc != 0


def pull_ff_only(cwd: Optional[str] = None) -> str:
    """Fast-forward the current branch to its upstream.

    Returns:
        git's stdout.

    Raises:
        CommandSignaled: If ``git pull`` was killed by a signal.
        PullFailed: If the pull exited non-zero (e.g. not a fast-forward).
    """
    try:
        rc, stdout, stderr = run_git("pull", "--ff-only", cwd=cwd)
    except GitSignaled as e:
        raise CommandSignaled("git pull") from e
    if rc != 0:
        raise PullFailed(rc, stderr)
    return stdout
