"""Polling loop: watch the remote branch, pull and run on change.

Each tick runs strictly in order:

1. refresh the remote tip
2. if it moved: ``git pull --ff-only``, then the user command via ``sh -c``
3. sleep ``period`` seconds

The first refresh happens before any sleep. Every error is fatal; the only
tolerated failure is a non-zero user command when stop_on_failure is off.
"""

import enum
import logging
import sys
import time
from typing import Callable, Optional, TextIO

from brun import git_utils
from brun.cli_exec import CommandResult, run_command
from brun.config import Settings
from brun.errors import CommandSignaled, Signaled, UserCommandFailed
from brun.remote.base import Remote
from brun.run_log import TRACE, bold_cyan, bold_green, status, yellow

logger = logging.getLogger(__name__)

NULL_COMMIT = "null"


class WatchState(enum.Enum):
    INIT = "init"
    ARMED = "armed"
    CHANGED = "changed"
    STOPPED = "stopped"


def _show(sha: Optional[str]) -> str:
    return sha if sha is not None else NULL_COMMIT


class Watcher:
    """Drives the refresh / pull / run cycle for one remote branch.

    Args:
        remote: The remote to poll. The watcher owns it and closes it on exit.
        settings: Period, failure policy and the user command.
        runner: Runs the user command; same contract as run_command().
        pull: Fast-forwards the checkout; raises on failure.
        sleep: Called with ``settings.period`` between ticks.
        out: Stream for status lines and the user command's stdout.
    """

    def __init__(
        self,
        remote: Remote,
        settings: Settings,
        runner: Callable[..., CommandResult] = run_command,
        pull: Callable[[], object] = git_utils.pull_ff_only,
        sleep: Callable[[float], None] = time.sleep,
        out: Optional[TextIO] = None,
    ):
        self.remote = remote
        self.settings = settings
        self.state = WatchState.INIT
        self.ticks = 0
        self._runner = runner
        self._pull = pull
        self._sleep = sleep
        self._out = out

    @property
    def out(self) -> TextIO:
        return self._out or sys.stdout

    @property
    def last_commit(self) -> Optional[str]:
        return self.remote.last_commit

    # -- Steps ----------------------------------------------------------------

    def announce(self):
        status(bold_cyan(f"Listening for changes from {self.remote.coords}", self.out), self.out)

    def _is_change(self, previous: Optional[str]) -> bool:
        if previous is None and self.settings.skip_initial:
            return False
        return previous != self.last_commit

    def pull(self):
        logger.debug("running git pull")
        self._pull()
        status(bold_green("Pulled the latest changes", self.out), self.out)

    def run_user_command(self) -> int:
        """Run the user command in a shell and echo its stdout.

        Returns:
            The command's exit code.

        Raises:
            CommandSignaled: The command was killed by a signal.
            UserCommandFailed: Non-zero exit with stop_on_failure set.
        """
        command = self.settings.user_command
        logger.debug("running user command: %s", command)
        try:
            result = self._runner("sh", ["-c", command])
        except Signaled as e:
            raise CommandSignaled(command) from e

        self.out.write(result.stdout_text())
        self.out.flush()

        if result.returncode != 0:
            if self.settings.stop_on_failure:
                raise UserCommandFailed(result.returncode, result.stderr_text())
            logger.warning(
                "user command failed (code=%d): %s",
                result.returncode, result.stderr_text().strip(),
            )
        return result.returncode

    def tick(self) -> bool:
        """Run one refresh and, on change, the pull and user command.

        Returns:
            True if the change path ran.
        """
        self.ticks += 1
        logger.debug("refreshing remote state (tick %d)", self.ticks)
        previous = self.remote.refresh()
        status(f"The last commit is: {_show(self.last_commit)}", self.out)

        if not self._is_change(previous):
            self.state = WatchState.ARMED
            return False

        self.state = WatchState.CHANGED
        status(
            yellow(
                f"Remote branch changed: {_show(previous)} -> {_show(self.last_commit)}",
                self.out,
            ),
            self.out,
        )
        self.pull()
        self.run_user_command()
        self.state = WatchState.ARMED
        return True

    # -- Loop -----------------------------------------------------------------

    def run(self, max_ticks: Optional[int] = None):
        """Poll until an error occurs (or *max_ticks* ticks have run).

        Errors propagate to the caller after the watcher is marked STOPPED
        and the remote is closed.
        """
        self.announce()
        try:
            while True:
                self.tick()
                if max_ticks is not None and self.ticks >= max_ticks:
                    break
                logger.log(TRACE, "sleeping for %s", self.settings.period)
                self._sleep(self.settings.period)
        finally:
            self.state = WatchState.STOPPED
            self.remote.close()
