"""Error types raised by brun.

Every failure that stops the watcher is a ``BrunError`` subclass. The entry
point prints ``error: <message>`` and exits with status 1; nothing is retried.
Each class carries a stable ``tag`` so callers and tests can tell failures
apart without matching on message text.
"""


class BrunError(Exception):
    """Base class for all brun failures."""

    tag = "internal"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


def _clean(stderr: str) -> str:
    return (stderr or "").strip()


# --- Environment -----------------------------------------------------------

class MissingToken(BrunError):
    tag = "missing_token"

    def __init__(self):
        super().__init__("you must set the GH_TOKEN or GITHUB_TOKEN environment variable")


class NotInWorkTree(BrunError):
    tag = "not_in_work_tree"

    def __init__(self):
        super().__init__(
            "you are not in a git repository (or you are inside the .git directory)"
        )


class Dirty(BrunError):
    tag = "dirty"

    def __init__(self):
        super().__init__(
            "there are uncommitted changes. Run `git commit` or `git stash` "
            "to save the changes and try again."
        )


class ConfigError(BrunError):
    tag = "config"

    def __init__(self, detail: str):
        super().__init__(f"invalid configuration: {detail}")
        self.detail = detail


# --- VCS probe -------------------------------------------------------------

class GitCommandError(BrunError):
    """A git query exited non-zero. Keeps the exit code and stderr."""

    what = "run git"

    def __init__(self, code: int, stderr: str):
        super().__init__(f"failed to {self.what} (code={code}): {_clean(stderr)}")
        self.code = code
        self.stderr = stderr


class NoHead(GitCommandError):
    tag = "no_head"
    what = "retrieve HEAD branch"


class NoUpstream(GitCommandError):
    tag = "no_upstream"
    what = "get upstream branch"


class NoRemoteURL(GitCommandError):
    tag = "no_remote_url"
    what = "get remote url"


class BadRemote(BrunError):
    tag = "bad_remote"

    def __init__(self, detail: str):
        super().__init__(f"could not get owner and repository from remote: {detail}")
        self.detail = detail


class GitSignaled(BrunError):
    tag = "git_signaled"

    def __init__(self, command: str):
        super().__init__(f"git stopped without status due to signal: {command}")
        self.command = command


# --- Subprocess ------------------------------------------------------------

class LaunchFailed(BrunError):
    tag = "launch_failed"

    def __init__(self, program: str, reason: str = ""):
        detail = f"{program}: {reason}" if reason else program
        super().__init__(f"failed to start command: {detail}")
        self.program = program
        self.reason = reason


class Signaled(BrunError):
    """Raised by the runner when a child dies without an exit code."""

    tag = "signaled"

    def __init__(self, program: str, signum: int):
        super().__init__(f"{program} was terminated by signal {signum}")
        self.program = program
        self.signum = signum


class CommandSignaled(BrunError):
    tag = "command_signaled"

    def __init__(self, command: str):
        super().__init__(f"command stopped without status due to signal: {command}")
        self.command = command


class UserCommandFailed(BrunError):
    tag = "user_command"

    def __init__(self, code: int, stderr: str):
        super().__init__(f"user command failed (code={code}): {_clean(stderr)}")
        self.code = code
        self.stderr = stderr


class PullFailed(GitCommandError):
    tag = "pull_failed"
    what = "pull the latest changes with `git pull --ff-only`"


# --- Remote ----------------------------------------------------------------

class EmptyHistory(BrunError):
    tag = "empty_history"

    def __init__(self):
        super().__init__("remote repository has no commits")


class APIError(BrunError):
    tag = "api"

    def __init__(self, detail: str, status: int = None):
        super().__init__(f"failed to request API: {detail}")
        self.detail = detail
        self.status = status


class InternalError(BrunError):
    tag = "internal"

    def __init__(self, detail: str):
        super().__init__(f"internal error: {detail}")
        self.detail = detail
